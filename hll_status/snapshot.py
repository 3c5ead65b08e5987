"""Turns a raw status response into the embed + chart shown for one server.

The status endpoint wraps its JSON in arbitrary page content, so the object is
cut out between the first ``{`` and the last ``}`` before parsing.
"""

import json
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .enrich import enrich_status
from .errors import ExtractionError
from .history import HistoryStore

logger = logging.getLogger(__name__)

GOOD, WARNING, CRITICAL = "good", "warning", "critical"

SEVERITY_COLORS = {
    GOOD: 0x00FF00,
    WARNING: 0xFFFF00,
    CRITICAL: 0xFF0000,
}

FOOTER_TEXT = "Powered by Qonzer"


def extract_json(text: str) -> dict:
    start = text.find("{")
    end = text.rfind("}") + 1
    if start == -1 or end <= start:
        raise ExtractionError("Could not extract JSON from response")
    try:
        data = json.loads(text[start:end].strip())
    except ValueError as e:
        raise ExtractionError(f"Malformed JSON in response: {e}") from e
    if not isinstance(data, dict):
        raise ExtractionError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def parse_latency(value) -> float | None:
    """Numeric ping or None. Booleans, NaN and unparsable strings count as missing."""
    if value is None or isinstance(value, bool):
        return None
    try:
        ping = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(ping):
        return None
    return ping


def classify_latency(ping) -> str:
    ping = parse_latency(ping)
    # anything that isn't a number falls through to critical
    if ping is not None and ping < 100:
        return GOOD
    if ping is not None and ping < 200:
        return WARNING
    return CRITICAL


def _is_set(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in ("", "0", "false")
    return bool(value)


def _fmt_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


@dataclass(frozen=True)
class ChartSpec:
    label: str
    labels: list[str]
    values: list[float]
    y_title: str = "Ping (ms)"
    x_title: str = "Time"
    begin_at_zero: bool = True
    width: int = 800
    height: int = 400


@dataclass
class Snapshot:
    index: int
    title: str
    description: str
    fields: list[dict]
    severity: str
    chart: ChartSpec
    record: dict = field(repr=False, default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def color(self) -> int:
        return SEVERITY_COLORS[self.severity]

    @property
    def attachment_name(self) -> str:
        return f"pingchart{self.index + 1}.png"

    def to_embed(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "fields": self.fields,
            "color": self.color,
            "timestamp": self.timestamp.isoformat(),
            "footer": {"text": FOOTER_TEXT},
            "image": {"url": f"attachment://{self.attachment_name}"},
        }


def summarize(record: dict, index: int) -> tuple[str, str, list[dict]]:
    """Title, description and inline fields for one status record."""
    title = record.get("name") or f"Unknown Server {index + 1}"
    ping = parse_latency(record.get("ping"))
    ping_text = f"{_fmt_number(ping)}ms" if ping else "N/A"
    description = (
        f"**Map:** {record.get('map') or 'N/A'}\n"
        f"**Players:** {record.get('numplayers') or 0}/{record.get('maxplayers') or 0}\n"
        f"**Ping:** {ping_text}\n"
        f"**Connect:** {record.get('connect') or 'N/A'}"
    )

    reserved = "N/A"
    if record.get("currentReserved") is not None:
        reserved = str(record["currentReserved"])
        if record.get("maxReserved") is not None:
            reserved += f"/{record['maxReserved']}"
    queue = "N/A"
    if record.get("currentQueue") is not None:
        queue = f"{record['currentQueue']}/{record.get('maxQueue')}"

    fields = [
        {"name": "Password Protected", "value": "Yes" if _is_set(record.get("password")) else "No", "inline": True},
        {"name": "Reserved Slots", "value": reserved, "inline": True},
        {"name": "Queue", "value": queue, "inline": True},
    ]
    return title, description, fields


class SnapshotBuilder:
    def __init__(self, history: HistoryStore, enricher=enrich_status, clock=datetime.now):
        self.history = history
        self.enricher = enricher
        self.clock = clock

    def build(self, target, text: str) -> Snapshot:
        """Parse, enrich and record one status response.

        Raises ExtractionError before anything is recorded if the response has
        no usable JSON, so the previous tick's history stays intact.
        """
        record = extract_json(text)
        logger.debug("[DEBUG] Server %s - parsed name=%r ping=%r players=%r",
                     target.index + 1, record.get("name"), record.get("ping"), record.get("numplayers"))

        record = self.enricher(record, target.host, target.port)

        ping = parse_latency(record.get("ping"))
        self.history.append(target.index, self.clock().strftime("%H:%M:%S"), ping if ping is not None else 0)
        labels, values = self.history.series(target.index)

        title, description, fields = summarize(record, target.index)
        chart = ChartSpec(
            label=f"Ping (ms) - Server {target.index + 1}",
            labels=labels,
            values=values,
        )
        return Snapshot(
            index=target.index,
            title=title,
            description=description,
            fields=fields,
            severity=classify_latency(record.get("ping")),
            chart=chart,
            record=record,
        )
