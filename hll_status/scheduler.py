import logging
import time
from dataclasses import dataclass

from .chart import render_chart
from .config import Settings
from .errors import StatusBotError
from .transport import build_status_url, fetch_status_text

logger = logging.getLogger(__name__)


@dataclass
class MonitoredTarget:
    index: int
    host: str
    port: int
    url: str
    message_id: str | None = None

    @property
    def label(self) -> str:
        return f"Server {self.index + 1}"


def build_targets(settings: Settings) -> list[MonitoredTarget]:
    return [
        MonitoredTarget(i, t.host, t.port, build_status_url(settings.status_url_template, t.host, t.port))
        for i, t in enumerate(settings.targets)
    ]


class RefreshScheduler:
    """Refreshes every target one after another, then waits out the rest of the interval.

    A pass always finishes before the next one starts.
    """

    def __init__(self, targets, builder, channel, *, fetch=fetch_status_text, render=render_chart,
                 interval: float = 15, restart=None, now=None, clock=time.monotonic, sleep=time.sleep):
        self.targets = targets
        self.builder = builder
        self.channel = channel
        self.fetch = fetch
        self.render = render
        self.interval = interval
        self.restart = restart
        self._now = now or (restart.now if restart is not None else None)
        self._clock = clock
        self._sleep = sleep
        self._restart_at = None

    def refresh_target(self, target: MonitoredTarget):
        text = self.fetch(target.url)
        snapshot = self.builder.build(target, text)
        image = self.render(snapshot.chart)
        target.message_id = self.channel.publish(
            target.message_id, snapshot.to_embed(), snapshot.attachment_name, image
        )
        logger.debug("[DEBUG] %s - published %s (ping %s, %s, %s samples)", target.label, target.message_id,
                     snapshot.record.get("ping"), snapshot.severity, self.builder.history.length(target.index))
        return snapshot

    def run_pass(self) -> int:
        """One sequential pass. Returns how many targets were updated."""
        updated = 0
        for target in self.targets:
            try:
                self.refresh_target(target)
                updated += 1
            except StatusBotError as e:
                logger.error("[ERROR] %s - %s: %s", target.label, type(e).__name__, e)
            except Exception:
                logger.exception("[ERROR] %s - Unexpected error updating embed", target.label)
        logger.info("[CYCLE] Updated: %s  Failed: %s", updated, len(self.targets) - updated)
        return updated

    def _restart_due(self) -> bool:
        return self._restart_at is not None and self._now() >= self._restart_at

    def _seconds_to_restart(self) -> float:
        return max(0.0, (self._restart_at - self._now()).total_seconds())

    def run(self, max_passes: int | None = None) -> bool:
        """Run passes until a scheduled restart is due (returns True) or ``max_passes`` ran."""
        if self.restart is not None:
            self._restart_at = self.restart.next_after(self._now())
            logger.info("[RESTART] Scheduled daily restart at %02d:%02d (next: %s)",
                        self.restart.hour, self.restart.minute, self._restart_at.isoformat(timespec="minutes"))

        passes = 0
        while True:
            started = self._clock()
            self.run_pass()
            passes += 1
            if max_passes is not None and passes >= max_passes:
                return False
            if self._restart_due():
                return True

            delay = max(0.0, self.interval - (self._clock() - started))
            if self._restart_at is not None:
                delay = min(delay, self._seconds_to_restart())
            self._sleep(delay)
            if self._restart_due():
                return True
