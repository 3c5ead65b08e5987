import logging
import os
import signal
import sys

from dotenv import load_dotenv

from . import __version__
from .config import env_flag, load_settings
from .errors import ConfigurationError, PublishError
from .history import HistoryStore
from .logging_setup import setup_logging
from .publisher import DiscordChannel
from .scheduler import RefreshScheduler, build_targets
from .snapshot import SnapshotBuilder

logger = logging.getLogger("hll_status")


def _graceful_exit(signum, frame):
    logger.info("[SHUTDOWN] Signal %s received. Exiting.", signum)
    sys.exit(0)


def main() -> int:
    load_dotenv()
    setup_logging(debug_log=env_flag(os.getenv("DEBUG_LOG_ENABLED")))
    logger.info("[INIT] Starting HLL-StatusBot v%s", __version__)

    try:
        settings = load_settings()
    except ConfigurationError as e:
        logger.error("[ERROR] %s", e)
        return 1

    for _sig in (getattr(signal, "SIGINT", None), getattr(signal, "SIGTERM", None)):
        if _sig:
            signal.signal(_sig, _graceful_exit)

    channel = DiscordChannel(settings.token, settings.channel_id)
    try:
        if not channel.channel_exists():
            logger.error("[ERROR] Channel %s not found!", settings.channel_id)
            return 1
    except PublishError as e:
        logger.error("[ERROR] Channel %s lookup failed: %s", settings.channel_id, e)
        return 1

    try:
        removed = channel.clear()
        if removed:
            logger.info("[CLEANUP] Channel cleaned up (%s messages).", removed)
    except PublishError as e:
        logger.warning("[WARN] Error cleaning up channel: %s", e)

    targets = build_targets(settings)
    logger.info("[INIT] Monitoring %s server(s): %s", len(targets), [t.url for t in targets])

    scheduler = RefreshScheduler(
        targets,
        SnapshotBuilder(HistoryStore(settings.max_history)),
        channel,
        interval=settings.interval_seconds,
        restart=settings.restart,
    )
    if scheduler.run():
        logger.info("[RESTART] Performing scheduled restart...")
    return 0


if __name__ == "__main__":
    sys.exit(main())
