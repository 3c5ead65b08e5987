"""Posts and edits the status messages in one Discord channel through the bot REST API."""

import json
import logging
import time

import requests

from .errors import PublishError
from .transport import discord_request

logger = logging.getLogger(__name__)

API_BASE = "https://discord.com/api/v10"
DISCORD_EPOCH_MS = 1420070400000
BULK_DELETE_MAX_AGE = 14 * 24 * 3600  # Discord refuses older messages in bulk-delete
CLEANUP_LIMIT = 100


def _errtxt(resp) -> str:
    return f"{getattr(resp, 'status_code', '???')} - {getattr(resp, 'text', '')[:180]}"


def snowflake_time(snowflake) -> float:
    """Unix time (seconds) a Discord id was created."""
    return ((int(snowflake) >> 22) + DISCORD_EPOCH_MS) / 1000


class DiscordChannel:
    def __init__(self, token: str, channel_id: str, *, session=None, api_base: str = API_BASE):
        self.channel_id = str(channel_id)
        self.api_base = api_base.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"Bot {token}"})

    @property
    def _messages_url(self) -> str:
        return f"{self.api_base}/channels/{self.channel_id}/messages"

    def _request(self, method: str, url: str, **kwargs):
        try:
            return discord_request(method, url, session=self.session, **kwargs)
        except requests.RequestException as e:
            raise PublishError(f"request exception: {e}") from e

    def channel_exists(self) -> bool:
        resp = self._request("GET", f"{self.api_base}/channels/{self.channel_id}", timeout=10)
        if resp.status_code == 200:
            return True
        if resp.status_code in (403, 404):
            return False
        raise PublishError(f"Channel lookup failed: {_errtxt(resp)}")

    @staticmethod
    def _multipart(embed: dict, filename: str, image: bytes) -> dict:
        payload = {
            "embeds": [embed],
            "attachments": [{"id": 0, "filename": filename}],
        }
        return {
            "data": {"payload_json": json.dumps(payload)},
            "files": {"files[0]": (filename, image, "image/png")},
        }

    def send(self, embed: dict, filename: str, image: bytes) -> str:
        """Create a message with the embed and chart attached. Returns its id."""
        resp = self._request("POST", self._messages_url, timeout=20, **self._multipart(embed, filename, image))
        if not 200 <= resp.status_code < 300:
            raise PublishError(f"Post failed: {_errtxt(resp)}")
        try:
            return str(resp.json()["id"])
        except (ValueError, KeyError, TypeError) as e:
            raise PublishError(f"Couldn't parse message ID: {e}") from e

    def edit(self, message_id, embed: dict, filename: str, image: bytes) -> bool:
        """Replace a message's embed and chart. False if the message no longer exists."""
        resp = self._request("PATCH", f"{self._messages_url}/{message_id}", timeout=20,
                             **self._multipart(embed, filename, image))
        if 200 <= resp.status_code < 300:
            return True
        if resp.status_code == 404:
            return False
        raise PublishError(f"Failed to update message {message_id}: {_errtxt(resp)}")

    def publish(self, message_id, embed: dict, filename: str, image: bytes) -> str:
        """Edit ``message_id`` in place, or post a new message if there is none yet.

        Returns the id that now holds the status.
        """
        if message_id is None:
            return self.send(embed, filename, image)
        if self.edit(message_id, embed, filename, image):
            return message_id
        new_id = self.send(embed, filename, image)
        logger.info("[PUBLISH] Message %s was gone, recreated as %s", message_id, new_id)
        return new_id

    def delete(self, message_id) -> bool:
        resp = self._request("DELETE", f"{self._messages_url}/{message_id}", timeout=10)
        return resp.status_code in (200, 204, 404)

    def clear(self, limit: int = CLEANUP_LIMIT, now=None) -> int:
        """Best-effort delete of the most recent messages. Returns how many were removed."""
        resp = self._request("GET", self._messages_url, params={"limit": limit}, timeout=15)
        if resp.status_code != 200:
            raise PublishError(f"Couldn't list messages: {_errtxt(resp)}")
        now = time.time() if now is None else now
        try:
            ids = [str(m["id"]) for m in resp.json()
                   if now - snowflake_time(m["id"]) < BULK_DELETE_MAX_AGE]
        except (ValueError, KeyError, TypeError) as e:
            raise PublishError(f"Couldn't parse message list: {e}") from e
        if not ids:
            return 0
        if len(ids) == 1:
            return 1 if self.delete(ids[0]) else 0
        resp = self._request("POST", f"{self._messages_url}/bulk-delete", json={"messages": ids}, timeout=15)
        if resp.status_code not in (200, 204):
            raise PublishError(f"Bulk delete failed: {_errtxt(resp)}")
        return len(ids)
