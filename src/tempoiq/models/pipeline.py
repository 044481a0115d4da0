"""Server-side function pipelines applied to read results.

Steps run on the server in the order they were appended; each step
receives the output of the previous one.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from tempoiq.models.datapoint import format_timestamp


@dataclass(frozen=True)
class PipelineStep:
    """One named function with its positional arguments."""

    name: str
    arguments: tuple[Any, ...] = ()

    def to_json(self) -> dict[str, Any]:
        return {"name": self.name, "arguments": list(self.arguments)}


def _argument(value: Any) -> Any:
    if isinstance(value, datetime):
        return format_timestamp(value)
    return value


class Pipeline:
    """
    Append-only builder of pipeline steps.

    Example:
        pipeline = Pipeline().rollup("sum", "1day", start).aggregate("mean")
    """

    def __init__(self):
        self._steps: list[PipelineStep] = []

    def append(self, name: str, *arguments: Any) -> "Pipeline":
        """Append an arbitrary named function."""
        self._steps.append(
            PipelineStep(name=name, arguments=tuple(_argument(a) for a in arguments))
        )
        return self

    def rollup(self, function: str, period: str, start: datetime) -> "Pipeline":
        """
        Roll each series up into fixed periods.

        Args:
            function: Rollup function (sum, mean, max, ...)
            period: Period string such as ``"1day"`` or ``"PT1H"``
            start: Alignment start of the first period
        """
        return self.append("rollup", function, period, start)

    def aggregate(self, function: str) -> "Pipeline":
        """Aggregate across the selected sensors with ``function``."""
        return self.append("aggregation", function)

    def interpolate(
        self,
        function: str,
        period: str,
        start: datetime,
        end: datetime,
    ) -> "Pipeline":
        """Interpolate each series onto a regular grid between start and end."""
        return self.append("interpolate", function, period, start, end)

    @property
    def steps(self) -> tuple[PipelineStep, ...]:
        return tuple(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    def __bool__(self) -> bool:
        return bool(self._steps)

    def to_json(self) -> list[dict[str, Any]]:
        return [step.to_json() for step in self._steps]

    def __repr__(self) -> str:
        names = ", ".join(step.name for step in self._steps)
        return f"Pipeline([{names}])"


def fold_section(pipeline: Pipeline | None) -> dict[str, Any] | None:
    """
    Request body ``fold`` section for a pipeline.

    Returns ``None`` for a missing or empty pipeline so the field is left out.
    """
    if not pipeline:
        return None
    return {"functions": pipeline.to_json()}
