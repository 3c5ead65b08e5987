import base64
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# The server reports a max queue size, but it is not trustworthy. HLL caps it at 6.
MAX_QUEUE = 6


@dataclass(frozen=True)
class GameState:
    current_reserved: int
    current_queue: int
    max_queue: int = MAX_QUEUE
    max_reserved: int | None = None
    mode: int = 0
    version: int = 0
    players: int = 0
    official: bool = False


class BitCursor:
    """Sequential MSB-first reader over the bits of a byte string."""

    def __init__(self, data: bytes):
        self._bits = "".join(f"{b:08b}" for b in data)
        self.offset = 0

    def __len__(self):
        return len(self._bits)

    def read_bits(self, n: int) -> int:
        end = self.offset + n
        if n <= 0 or end > len(self._bits):
            raise ValueError(f"cannot read {n} bits at offset {self.offset} of {len(self._bits)}")
        value = int(self._bits[self.offset:end], 2)
        self.offset = end
        return value

    def skip(self, n: int):
        self.read_bits(n)


def _read_gamestate(cursor: BitCursor) -> GameState:
    cursor.skip(2)
    cursor.skip(2)
    mode = cursor.read_bits(4)
    cursor.skip(8)
    cursor.skip(16)
    version = cursor.read_bits(32)
    players = cursor.read_bits(7)
    official = bool(cursor.read_bits(1))
    current_reserved = cursor.read_bits(7)
    cursor.skip(1)
    cursor.skip(7)  # reported max reserved, unreliable
    cursor.skip(2)
    current_queue = cursor.read_bits(3)
    cursor.skip(3)  # reported max queue, unreliable
    return GameState(
        current_reserved=current_reserved,
        current_queue=current_queue,
        mode=mode,
        version=version,
        players=players,
        official=official,
    )


def decode_gamestate(payload: str) -> GameState | None:
    """Decode a base64 ``GS:`` payload. Returns None if it is malformed or truncated."""
    try:
        raw = base64.b64decode(payload, validate=True)
        return _read_gamestate(BitCursor(raw))
    except Exception as e:
        logger.debug("[DEBUG] Gamestate decode failed for %r: %s", payload[:64], e)
        return None
