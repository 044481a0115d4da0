"""Rows of read and latest-value results."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterator

from tempoiq.errors import ResponseParseError
from tempoiq.models.datapoint import ensure_utc, format_timestamp, parse_timestamp


@dataclass(frozen=True)
class Row:
    """
    One timestamp's worth of values.

    ``values`` maps device key -> sensor key (or pipeline function name) ->
    value. Result grids are sparse, so lookups of missing cells give None.
    """

    timestamp: datetime
    values: dict[str, dict[str, float]] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "timestamp", ensure_utc(self.timestamp))

    @property
    def ts(self) -> datetime:
        return self.timestamp

    def value(self, device_key: str, key: str) -> float | None:
        """Value for a device and sensor/function, or None when absent."""
        return self.values.get(device_key, {}).get(key)

    def devices(self) -> list[str]:
        return list(self.values)

    def keys(self, device_key: str) -> list[str]:
        return list(self.values.get(device_key, {}))

    def __iter__(self) -> Iterator[tuple[str, str, float]]:
        for device_key, cells in self.values.items():
            for key, value in cells.items():
                yield device_key, key, value

    def to_json(self) -> dict[str, Any]:
        return {
            "t": format_timestamp(self.timestamp),
            "data": {device: dict(cells) for device, cells in self.values.items()},
        }

    @classmethod
    def from_json(cls, data: Any) -> "Row":
        if not isinstance(data, dict) or "t" not in data:
            raise ResponseParseError(f"Malformed row: {data!r}")

        raw = data.get("data") or {}
        if not isinstance(raw, dict):
            raise ResponseParseError(f"Malformed row data: {raw!r}")

        values: dict[str, dict[str, float]] = {}
        for device_key, cells in raw.items():
            if not isinstance(cells, dict):
                raise ResponseParseError(
                    f"Malformed values for device {device_key!r}: {cells!r}"
                )
            values[device_key] = dict(cells)

        return cls(timestamp=parse_timestamp(data["t"]), values=values)
