"""Tests for the Discord channel publisher (mocked HTTP session)."""

import json
from unittest.mock import MagicMock

import pytest
import requests

from hll_status.errors import PublishError
from hll_status.publisher import DISCORD_EPOCH_MS, DiscordChannel, snowflake_time

EMBED = {"title": "srv", "description": "d"}
PNG = b"\x89PNG fake"


def response(status=200, body=None, headers=None):
    resp = MagicMock()
    resp.status_code = status
    resp.headers = headers or {}
    resp.text = json.dumps(body) if body is not None else ""
    resp.json.return_value = body
    return resp


def snowflake_at(unix_seconds: float) -> int:
    return (int(unix_seconds * 1000) - DISCORD_EPOCH_MS) << 22


@pytest.fixture
def session():
    s = MagicMock()
    s.headers = {}
    return s


@pytest.fixture
def channel(session):
    return DiscordChannel("tok", 123, session=session, api_base="https://discord.test/api")


class TestDiscordChannel:
    def test_auth_header(self, channel, session):
        assert session.headers["Authorization"] == "Bot tok"

    def test_send(self, channel, session):
        session.request.return_value = response(200, {"id": "555"})
        assert channel.send(EMBED, "pingchart1.png", PNG) == "555"
        method, url = session.request.call_args.args
        kwargs = session.request.call_args.kwargs
        assert (method, url) == ("POST", "https://discord.test/api/channels/123/messages")
        assert kwargs["files"]["files[0]"] == ("pingchart1.png", PNG, "image/png")
        payload = json.loads(kwargs["data"]["payload_json"])
        assert payload["embeds"] == [EMBED]
        assert payload["attachments"] == [{"id": 0, "filename": "pingchart1.png"}]

    def test_send_rejected(self, channel, session):
        session.request.return_value = response(403, {"message": "Missing Access"})
        with pytest.raises(PublishError):
            channel.send(EMBED, "a.png", PNG)

    def test_transport_error_becomes_publish_error(self, channel, session):
        session.request.side_effect = requests.ConnectionError("boom")
        with pytest.raises(PublishError):
            channel.send(EMBED, "a.png", PNG)

    def test_edit(self, channel, session):
        session.request.return_value = response(200, {"id": "555"})
        assert channel.edit("555", EMBED, "a.png", PNG) is True
        method, url = session.request.call_args.args
        assert (method, url) == ("PATCH", "https://discord.test/api/channels/123/messages/555")

    def test_edit_missing_message(self, channel, session):
        session.request.return_value = response(404, {"message": "Unknown Message"})
        assert channel.edit("555", EMBED, "a.png", PNG) is False

    def test_edit_error(self, channel, session):
        session.request.return_value = response(500, {})
        with pytest.raises(PublishError):
            channel.edit("555", EMBED, "a.png", PNG)


class TestPublish:
    def test_without_handle_creates_once(self, channel, session):
        session.request.return_value = response(200, {"id": "1"})
        assert channel.publish(None, EMBED, "a.png", PNG) == "1"
        assert [c.args[0] for c in session.request.call_args_list] == ["POST"]

    def test_with_handle_edits(self, channel, session):
        session.request.return_value = response(200, {"id": "1"})
        assert channel.publish("1", EMBED, "a.png", PNG) == "1"
        assert [c.args[0] for c in session.request.call_args_list] == ["PATCH"]

    def test_recreates_deleted_message(self, channel, session):
        session.request.side_effect = [response(404, {}), response(200, {"id": "2"})]
        assert channel.publish("1", EMBED, "a.png", PNG) == "2"
        assert [c.args[0] for c in session.request.call_args_list] == ["PATCH", "POST"]


class TestChannelExists:
    @pytest.mark.parametrize("status,expected", [(200, True), (404, False), (403, False)])
    def test_status(self, channel, session, status, expected):
        session.request.return_value = response(status, {})
        assert channel.channel_exists() is expected

    def test_server_error(self, channel, session):
        session.request.return_value = response(502, {})
        with pytest.raises(PublishError):
            channel.channel_exists()


class TestClear:
    NOW = 1_700_000_000

    def test_bulk_delete(self, channel, session):
        ids = [snowflake_at(self.NOW - 60), snowflake_at(self.NOW - 120)]
        session.request.side_effect = [response(200, [{"id": str(i)} for i in ids]), response(204)]
        assert channel.clear(now=self.NOW) == 2
        method, url = session.request.call_args.args
        assert (method, url) == ("POST", "https://discord.test/api/channels/123/messages/bulk-delete")
        assert session.request.call_args.kwargs["json"] == {"messages": [str(i) for i in ids]}

    def test_skips_old_messages(self, channel, session):
        fresh = snowflake_at(self.NOW - 60)
        stale = snowflake_at(self.NOW - 15 * 24 * 3600)
        session.request.side_effect = [response(200, [{"id": str(fresh)}, {"id": str(stale)}]), response(204)]
        assert channel.clear(now=self.NOW) == 1
        method, url = session.request.call_args.args
        assert (method, url) == ("DELETE", f"https://discord.test/api/channels/123/messages/{fresh}")

    def test_empty_channel(self, channel, session):
        session.request.return_value = response(200, [])
        assert channel.clear(now=self.NOW) == 0
        assert session.request.call_count == 1

    def test_list_failure(self, channel, session):
        session.request.return_value = response(403, {})
        with pytest.raises(PublishError):
            channel.clear(now=self.NOW)

    def test_listing_not_json(self, channel, session):
        listing = response(200)
        listing.json.side_effect = ValueError("Expecting value")
        session.request.return_value = listing
        with pytest.raises(PublishError, match="message list"):
            channel.clear(now=self.NOW)

    @pytest.mark.parametrize("body", [[{"content": "no id"}], {"message": "not a list"}])
    def test_listing_malformed(self, channel, session, body):
        session.request.return_value = response(200, body)
        with pytest.raises(PublishError, match="message list"):
            channel.clear(now=self.NOW)


def test_snowflake_time():
    assert snowflake_time(snowflake_at(1_700_000_000)) == pytest.approx(1_700_000_000)
