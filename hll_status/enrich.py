import logging

import a2s

from .errors import EnrichmentError
from .gamestate import decode_gamestate

logger = logging.getLogger(__name__)

GAMESTATE_MARKER = "GS:"


def query_tags(host: str, port: int, timeout: float = 2.0):
    """A2S info query. Returns the server's tag list, its keyword string, or None."""
    try:
        info = a2s.info((host, port), timeout=timeout)
    except Exception as e:
        raise EnrichmentError(f"A2S info failed for {host}:{port}: {e}") from e
    tags = getattr(info, "tags", None)
    if tags:
        return list(tags)
    return getattr(info, "keywords", None)


def find_gamestate_tag(tags) -> str | None:
    """First tag starting with the gamestate marker, from a list or a comma-separated string."""
    if not tags:
        return None
    if isinstance(tags, str):
        tags = tags.split(",")
    for tag in tags:
        tag = str(tag).strip()
        if tag.startswith(GAMESTATE_MARKER):
            return tag
    return None


def apply_gamestate(record: dict, tag: str | None) -> dict:
    if not tag:
        return record
    state = decode_gamestate(tag[len(GAMESTATE_MARKER):])
    if state is None:
        return record
    record["currentReserved"] = state.current_reserved
    if state.max_reserved is not None:
        record["maxReserved"] = state.max_reserved
    record["currentQueue"] = state.current_queue
    record["maxQueue"] = state.max_queue
    return record


def enrich_status(record: dict, host: str, port: int, query=query_tags) -> dict:
    """Merge reserved-slot and queue occupancy into ``record`` when the server exposes them.

    A failed secondary query is logged and leaves the record as it was.
    """
    try:
        tags = query(host, port)
    except EnrichmentError as e:
        logger.warning("[WARN] Enrichment skipped for %s:%s: %s", host, port, e)
        return record
    return apply_gamestate(record, find_gamestate_tag(tags))
