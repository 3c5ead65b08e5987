from collections import deque
from typing import NamedTuple

# ~12.5 minutes at the default 15s interval
MAX_HISTORY = 50


class HistorySample(NamedTuple):
    time: str
    ping: float


class HistoryStore:
    """Sliding window of latency samples per target. In memory only."""

    def __init__(self, capacity: int = MAX_HISTORY):
        if capacity < 1:
            raise ValueError("history capacity must be at least 1")
        self.capacity = capacity
        self._samples: dict = {}

    def append(self, target, time_label: str, ping: float):
        samples = self._samples.setdefault(target, deque())
        samples.append(HistorySample(time_label, ping))
        while len(samples) > self.capacity:
            samples.popleft()

    def series(self, target) -> tuple[list[str], list[float]]:
        """Parallel (labels, pings) lists, oldest first."""
        samples = self._samples.get(target, ())
        return [s.time for s in samples], [s.ping for s in samples]

    def length(self, target) -> int:
        return len(self._samples.get(target, ()))
