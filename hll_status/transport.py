import logging
import random
import time

import requests
from requests.adapters import HTTPAdapter

from . import __version__
from .errors import FetchError

logger = logging.getLogger(__name__)

# === HTTP Session & helpers ===
SESSION = requests.Session()
SESSION.mount("https://", HTTPAdapter(pool_connections=4, pool_maxsize=8))
SESSION.mount("http://", HTTPAdapter(pool_connections=2, pool_maxsize=4))
SESSION.headers.update({"User-Agent": f"HLL-StatusBot/{__version__}"})

RATE_LIMIT_WAITS = 3


def _retry_after(resp) -> float:
    try:
        ra = resp.headers.get("Retry-After")
        if not ra:
            ra = resp.json().get("retry_after")
        return float(ra) if ra else 1.0
    except Exception:
        return 1.0


def discord_request(method: str, url: str, *, session=None, timeout: float = 15,
                    max_waits: int = RATE_LIMIT_WAITS, sleep=time.sleep, **kwargs):
    """Request wrapper that waits out 429 Retry-After. Returns the final response.

    Only rate limits are re-issued; transport errors and 5xx come straight back
    to the caller.
    """
    session = session or SESSION
    for attempt in range(max_waits + 1):
        resp = session.request(method, url, timeout=timeout, **kwargs)
        if resp.status_code != 429 or attempt >= max_waits:
            return resp
        delay = _retry_after(resp)
        logger.info("[RATELIMIT] %s %s limited, waiting %.2fs", method, url.split("?")[0], delay)
        sleep(delay + random.uniform(0, 0.25))
    return resp


def build_status_url(template: str, host: str, port: int) -> str:
    return template.format(host=host, port=port)


def fetch_status_text(url: str, *, session=None, timeout: float = 10) -> str:
    session = session or SESSION
    try:
        resp = session.get(url, timeout=timeout)
    except requests.RequestException as e:
        raise FetchError(f"request exception: {e}") from e
    logger.debug("[DEBUG] Fetch %s -> %s, %d chars", url, resp.status_code, len(resp.text))
    if not 200 <= resp.status_code < 300:
        raise FetchError(f"{resp.status_code} - {resp.text[:180]}")
    return resp.text
