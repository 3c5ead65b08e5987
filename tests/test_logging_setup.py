"""Tests for logging setup."""

import logging
from logging.handlers import RotatingFileHandler

import hll_status.logging_setup as ls


def added_handlers(before):
    return [h for h in logging.getLogger("hll_status").handlers if h not in before]


class TestSetupLogging:
    def setup_method(self):
        ls._CONFIGURED = False
        self.logger = logging.getLogger("hll_status")
        self.before = list(self.logger.handlers)

    def teardown_method(self):
        for h in added_handlers(self.before):
            h.close()
            self.logger.removeHandler(h)
        ls._CONFIGURED = False

    def test_console_only(self):
        logger = ls.setup_logging()
        added = added_handlers(self.before)
        assert len(added) == 1
        assert added[0].level == logging.INFO
        assert logger.level == logging.DEBUG

    def test_idempotent(self):
        ls.setup_logging()
        handlers = list(self.logger.handlers)
        ls.setup_logging()
        assert self.logger.handlers == handlers

    def test_debug_file(self, tmp_path):
        ls.setup_logging(debug_log=True, log_file=str(tmp_path / "debug.log"))
        files = [h for h in added_handlers(self.before) if isinstance(h, RotatingFileHandler)]
        assert len(files) == 1
        assert files[0].level == logging.DEBUG
