"""Timestamped datapoints and ISO-8601 timestamp helpers."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from tempoiq.errors import ResponseParseError


def ensure_utc(ts: datetime) -> datetime:
    """Return ``ts`` as an aware UTC datetime (naive values are taken as UTC)."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def format_timestamp(ts: datetime) -> str:
    """
    Serialize a datetime the way the API expects: ``2012-02-01T00:00:00.000Z``.

    Sub-millisecond instants keep all six fractional digits so they parse
    back unchanged.
    """
    ts = ensure_utc(ts)
    timespec = "milliseconds" if ts.microsecond % 1000 == 0 else "microseconds"
    return ts.isoformat(timespec=timespec).replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp from the API into an aware datetime."""
    if not isinstance(value, str):
        raise ResponseParseError(f"Invalid timestamp: {value!r}")
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    try:
        return ensure_utc(datetime.fromisoformat(text))
    except (ValueError, OverflowError) as e:
        raise ResponseParseError(f"Invalid timestamp: {value!r}", original_error=e)


@dataclass(frozen=True)
class DataPoint:
    """A single (timestamp, value) observation."""

    timestamp: datetime
    value: float

    def __post_init__(self):
        object.__setattr__(self, "timestamp", ensure_utc(self.timestamp))

    def to_json(self) -> dict[str, Any]:
        return {"t": format_timestamp(self.timestamp), "v": self.value}

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "DataPoint":
        try:
            return cls(timestamp=parse_timestamp(data["t"]), value=data["v"])
        except (KeyError, TypeError) as e:
            raise ResponseParseError(f"Malformed datapoint: {data!r}", original_error=e)
