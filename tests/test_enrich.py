"""Tests for merging A2S gamestate tags into status records."""

from unittest.mock import MagicMock, patch

import pytest

from hll_status.enrich import (
    apply_gamestate,
    enrich_status,
    find_gamestate_tag,
    query_tags,
)
from hll_status.errors import EnrichmentError

GS_TAG = "GS:AAAAAAAAAAAACgA8"


class TestFindGamestateTag:
    def test_from_keyword_string(self):
        assert find_gamestate_tag(f"CONMETHOD:P2P,{GS_TAG},VE:1") == GS_TAG

    def test_from_list(self):
        assert find_gamestate_tag(["foo", " " + GS_TAG]) == GS_TAG

    def test_first_match_wins(self):
        assert find_gamestate_tag(["GS:first", "GS:second"]) == "GS:first"

    @pytest.mark.parametrize("tags", [None, "", [], "CONMETHOD:P2P,VE:1", ["XGS:abc"]])
    def test_no_match(self, tags):
        assert find_gamestate_tag(tags) is None


class TestApplyGamestate:
    def test_merges_fields(self):
        record = apply_gamestate({"name": "srv"}, GS_TAG)
        assert record == {
            "name": "srv",
            "currentReserved": 5,
            "currentQueue": 3,
            "maxQueue": 6,
        }
        assert "maxReserved" not in record

    def test_no_tag_is_noop(self):
        assert apply_gamestate({"name": "srv"}, None) == {"name": "srv"}

    def test_bad_payload_is_noop(self):
        assert apply_gamestate({"name": "srv"}, "GS:%%%") == {"name": "srv"}


class TestQueryTags:
    @patch("hll_status.enrich.a2s.info")
    def test_returns_keywords(self, mock_info):
        mock_info.return_value = MagicMock(tags=None, keywords="GS:abc,VE:1")
        assert query_tags("1.2.3.4", 27015) == "GS:abc,VE:1"
        mock_info.assert_called_once_with(("1.2.3.4", 27015), timeout=2.0)

    @patch("hll_status.enrich.a2s.info")
    def test_prefers_tag_list(self, mock_info):
        mock_info.return_value = MagicMock(tags=("GS:abc",), keywords="other")
        assert query_tags("1.2.3.4", 27015) == ["GS:abc"]

    @patch("hll_status.enrich.a2s.info")
    def test_failure_is_wrapped(self, mock_info):
        mock_info.side_effect = TimeoutError("timed out")
        with pytest.raises(EnrichmentError):
            query_tags("1.2.3.4", 27015)


class TestEnrichStatus:
    def test_enriches(self):
        query = MagicMock(return_value=["VE:1", GS_TAG])
        record = enrich_status({"ping": 40}, "h", 1, query=query)
        assert record["currentReserved"] == 5
        assert record["currentQueue"] == 3
        query.assert_called_once_with("h", 1)

    def test_query_failure_keeps_record(self):
        query = MagicMock(side_effect=EnrichmentError("down"))
        assert enrich_status({"ping": 40}, "h", 1, query=query) == {"ping": 40}

    def test_no_tags_keeps_record(self):
        query = MagicMock(return_value=None)
        assert enrich_status({"ping": 40}, "h", 1, query=query) == {"ping": 40}
