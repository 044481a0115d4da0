"""Device and sensor provisioning models."""

from dataclasses import dataclass, field
from typing import Any

from tempoiq.errors import ResponseParseError


@dataclass
class Sensor:
    """A named data source under a device."""

    key: str
    name: str = ""
    attributes: dict[str, str] = field(default_factory=dict)

    def to_json(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "attributes": dict(self.attributes),
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "Sensor":
        try:
            return cls(
                key=data["key"],
                name=data.get("name") or "",
                attributes=dict(data.get("attributes") or {}),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise ResponseParseError(f"Malformed sensor: {data!r}", original_error=e)


@dataclass
class Device:
    """
    A device identified by a globally unique key.

    Sensors are owned by the device; their keys must be unique within it.
    """

    key: str
    name: str = ""
    attributes: dict[str, str] = field(default_factory=dict)
    sensors: list[Sensor] = field(default_factory=list)

    def __post_init__(self):
        seen = set()
        for sensor in self.sensors:
            if sensor.key in seen:
                raise ValueError(
                    f"Duplicate sensor key {sensor.key!r} on device {self.key!r}"
                )
            seen.add(sensor.key)

    def sensor(self, key: str) -> Sensor | None:
        """Get a sensor by key."""
        for sensor in self.sensors:
            if sensor.key == key:
                return sensor
        return None

    def to_json(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "attributes": dict(self.attributes),
            "sensors": [s.to_json() for s in self.sensors],
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "Device":
        if not isinstance(data, dict) or "key" not in data:
            raise ResponseParseError(f"Malformed device: {data!r}")
        try:
            return cls(
                key=data["key"],
                name=data.get("name") or "",
                attributes=dict(data.get("attributes") or {}),
                sensors=[Sensor.from_json(s) for s in data.get("sensors") or []],
            )
        except (TypeError, ValueError) as e:
            raise ResponseParseError(f"Malformed device: {data!r}", original_error=e)


@dataclass(frozen=True)
class DeleteSummary:
    """Result of a bulk delete: the number of removed resources."""

    deleted: int

    @classmethod
    def from_json(cls, data: Any) -> "DeleteSummary":
        if not isinstance(data, dict) or not isinstance(data.get("deleted"), int):
            raise ResponseParseError(f"Malformed delete summary: {data!r}")
        return cls(deleted=data["deleted"])
