"""Device/sensor selections.

A selection is a pair of filters, one over devices and one over sensors.
Each filter is a small predicate tree that compiles to the JSON the search
endpoints expect::

    {"select": "devices",
     "filters": {"devices": {"key": "thermostat.1"},
                 "sensors": {"attributes": {"unit": "F"}}}}
"""

from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class AllSelector:
    """Matches everything."""

    def to_json(self) -> Any:
        return "all"


@dataclass(frozen=True)
class ByKey:
    """Exact key match."""

    key: str

    def to_json(self) -> Any:
        return {"key": self.key}


@dataclass(frozen=True)
class ByAttributes:
    """Every listed attribute must match."""

    attributes: dict[str, str] = field(default_factory=dict)

    def to_json(self) -> Any:
        return {"attributes": dict(self.attributes)}


@dataclass(frozen=True)
class And:
    """All child filters must match."""

    filters: tuple["Filter", ...] = ()

    def to_json(self) -> Any:
        return {"and": [f.to_json() for f in self.filters]}


@dataclass(frozen=True)
class Or:
    """At least one child filter must match."""

    filters: tuple["Filter", ...] = ()

    def to_json(self) -> Any:
        return {"or": [f.to_json() for f in self.filters]}


@dataclass(frozen=True)
class RawFilter:
    """A predicate shape this client does not model; sent as-is."""

    value: Any

    def to_json(self) -> Any:
        return self.value


Filter = Union[AllSelector, ByKey, ByAttributes, And, Or, RawFilter]


def parse_filter(value: Any) -> Filter:
    """
    Build a filter from its dict form.

    Recognised shapes are ``"all"``, ``{"key": K}``, ``{"attributes": {...}}``,
    ``{"and": [...]}`` and ``{"or": [...]}``. Anything else is kept verbatim.
    """
    if value is None or value == "all":
        return AllSelector()
    if isinstance(value, (AllSelector, ByKey, ByAttributes, And, Or, RawFilter)):
        return value
    if isinstance(value, dict) and len(value) == 1:
        (name, arg), = value.items()
        if name == "key" and isinstance(arg, str):
            return ByKey(arg)
        if name == "attributes" and isinstance(arg, dict):
            return ByAttributes(dict(arg))
        if name in ("and", "or") and isinstance(arg, list):
            children = tuple(parse_filter(child) for child in arg)
            return And(children) if name == "and" else Or(children)
    return RawFilter(value)


@dataclass(frozen=True)
class Selection:
    """Filters over devices and sensors used by read/write/delete calls."""

    devices: Filter = field(default_factory=AllSelector)
    sensors: Filter = field(default_factory=AllSelector)

    @classmethod
    def from_dict(cls, spec: dict[str, Any] | None) -> "Selection":
        """Build from ``{"devices": ..., "sensors": ...}``; missing sides select all."""
        spec = spec or {}
        return cls(
            devices=parse_filter(spec.get("devices")),
            sensors=parse_filter(spec.get("sensors")),
        )

    @classmethod
    def coerce(cls, value: Union["Selection", dict[str, Any], None]) -> "Selection":
        if isinstance(value, Selection):
            return value
        return cls.from_dict(value)

    def filters(self) -> dict[str, Any]:
        return {
            "devices": self.devices.to_json(),
            "sensors": self.sensors.to_json(),
        }

    def to_json(self, select: str = "devices") -> dict[str, Any]:
        return {"select": select, "filters": self.filters()}
