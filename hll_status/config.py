"""Settings read from the environment (a ``.env`` file is loaded by the entry point).

Required: DISCORD_TOKEN, CHANNEL_ID, GAMESERVER_IP_1, GAMESERVER_QUERY_PORT_1.
Optional: GAMESERVER_IP_2/3 + GAMESERVER_QUERY_PORT_2/3, RESTART_TIME ("4:00AM"),
RESTART_TIMEZONE, INTERVAL_SECONDS, MAX_HISTORY, STATUS_URL_TEMPLATE,
DEBUG_LOG_ENABLED (read by the entry point before logging is set up).
"""

import os
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import ConfigurationError
from .history import MAX_HISTORY

DEFAULT_STATUS_URL = "https://qonzer.live/qV3/index.php?g=hll&q={host}:{port}&p=2&e=1"
DEFAULT_INTERVAL_SECONDS = 15
MAX_TARGETS = 3

_RESTART_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*(AM|PM)\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class TargetConfig:
    host: str
    port: int


@dataclass(frozen=True)
class RestartSchedule:
    hour: int
    minute: int
    tz: ZoneInfo | None = None

    def next_after(self, now: datetime) -> datetime:
        """Next daily restart strictly after ``now`` (aware if a timezone is set)."""
        if self.tz is not None:
            now = now.astimezone(self.tz) if now.tzinfo else now.replace(tzinfo=self.tz)
        at = now.replace(hour=self.hour, minute=self.minute, second=0, microsecond=0)
        if at <= now:
            at += timedelta(days=1)
        return at

    def now(self) -> datetime:
        return datetime.now(self.tz) if self.tz is not None else datetime.now()


@dataclass(frozen=True)
class Settings:
    token: str
    channel_id: str
    targets: list[TargetConfig]
    restart: RestartSchedule | None = None
    interval_seconds: float = DEFAULT_INTERVAL_SECONDS
    max_history: int = MAX_HISTORY
    status_url_template: str = DEFAULT_STATUS_URL


def parse_restart_time(value: str) -> tuple[int, int]:
    """``"4:00AM"`` -> ``(4, 0)``; ``"12:30AM"`` -> ``(0, 30)``; ``"1:15PM"`` -> ``(13, 15)``."""
    m = _RESTART_RE.match(value or "")
    if not m:
        raise ConfigurationError(f"RESTART_TIME must look like 4:00AM, got {value!r}")
    hour, minute, period = int(m.group(1)), int(m.group(2)), m.group(3).upper()
    if not (1 <= hour <= 12) or not (0 <= minute <= 59):
        raise ConfigurationError(f"RESTART_TIME out of range: {value!r}")
    if period == "PM" and hour != 12:
        hour += 12
    if period == "AM" and hour == 12:
        hour = 0
    return hour, minute


def env_flag(v) -> bool:
    return str(v or "").strip().lower() in ("1", "true", "yes", "on")


def _to_int(env, name: str, default: int) -> int:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


def _port(env, name: str) -> int:
    port = _to_int(env, name, 0)
    if not 1 <= port <= 65535:
        raise ConfigurationError(f"{name} must be a port number, got {env.get(name)!r}")
    return port


def load_settings(environ=None) -> Settings:
    env = os.environ if environ is None else environ

    missing = [k for k in ("DISCORD_TOKEN", "CHANNEL_ID", "GAMESERVER_IP_1", "GAMESERVER_QUERY_PORT_1")
               if not (env.get(k) or "").strip()]
    if missing:
        raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")

    targets = []
    for n in range(1, MAX_TARGETS + 1):
        host = (env.get(f"GAMESERVER_IP_{n}") or "").strip()
        if not host or not (env.get(f"GAMESERVER_QUERY_PORT_{n}") or "").strip():
            continue
        targets.append(TargetConfig(host, _port(env, f"GAMESERVER_QUERY_PORT_{n}")))

    restart = None
    if (env.get("RESTART_TIME") or "").strip():
        hour, minute = parse_restart_time(env["RESTART_TIME"])
        tz = None
        tz_name = (env.get("RESTART_TIMEZONE") or "").strip()
        if tz_name:
            try:
                tz = ZoneInfo(tz_name)
            except (ZoneInfoNotFoundError, ValueError):
                raise ConfigurationError(f"Unknown RESTART_TIMEZONE {tz_name!r}") from None
        restart = RestartSchedule(hour, minute, tz)

    template = (env.get("STATUS_URL_TEMPLATE") or "").strip() or DEFAULT_STATUS_URL
    if "{host}" not in template or "{port}" not in template:
        raise ConfigurationError("STATUS_URL_TEMPLATE must contain {host} and {port}")

    return Settings(
        token=env["DISCORD_TOKEN"].strip(),
        channel_id=env["CHANNEL_ID"].strip(),
        targets=targets,
        restart=restart,
        interval_seconds=_to_int(env, "INTERVAL_SECONDS", DEFAULT_INTERVAL_SECONDS),
        max_history=_to_int(env, "MAX_HISTORY", MAX_HISTORY),
        status_url_template=template,
    )
