"""Bulk writes and the status model for their responses."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from tempoiq.errors import ResponseParseError, UnexpectedStatusError, WriteAlreadySubmitted
from tempoiq.models.datapoint import DataPoint


WRITE_PATH = "/v2/write"


class BulkWrite:
    """
    Accumulates datapoints for one multi-device write request.

    Datapoints are kept per (device, sensor) in insertion order; duplicate
    timestamps are not collapsed. A write is one-shot: once submission
    begins it is sealed and further pushes raise WriteAlreadySubmitted.
    """

    def __init__(self):
        self._data: dict[str, dict[str, list[DataPoint]]] = {}
        self._sealed = False

    @classmethod
    def from_values(
        cls,
        device_key: str,
        timestamp: datetime,
        values: dict[str, float],
    ) -> "BulkWrite":
        """Build a write of several sensor values sharing one timestamp."""
        write = cls()
        for sensor_key, value in values.items():
            write.push(device_key, sensor_key, DataPoint(timestamp, value))
        return write

    def push(self, device_key: str, sensor_key: str, point: DataPoint) -> "BulkWrite":
        if self._sealed:
            raise WriteAlreadySubmitted(
                "Bulk write was already submitted", source=WRITE_PATH
            )
        self._data.setdefault(device_key, {}).setdefault(sensor_key, []).append(point)
        return self

    def seal(self) -> None:
        """Mark the write as owned by an in-flight request."""
        if self._sealed:
            raise WriteAlreadySubmitted(
                "Bulk write was already submitted", source=WRITE_PATH
            )
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def device_keys(self) -> tuple[str, ...]:
        return tuple(self._data)

    def __len__(self) -> int:
        return sum(
            len(points) for sensors in self._data.values() for points in sensors.values()
        )

    def __bool__(self) -> bool:
        return len(self) > 0

    def to_json(self) -> dict[str, dict[str, list[dict[str, Any]]]]:
        return {
            device_key: {
                sensor_key: [point.to_json() for point in points]
                for sensor_key, points in sensors.items()
            }
            for device_key, sensors in self._data.items()
        }


class WriteResult(str, Enum):
    """Overall outcome of a bulk write."""
    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"
    FAILURE = "failure"


@dataclass(frozen=True)
class WriteOutcome:
    """Per-device outcome reported in a multi-status response."""
    device_key: str
    success: bool
    message: str = ""


@dataclass(frozen=True)
class WriteStatus:
    """
    Classification of a bulk write response.

    Devices missing from a multi-status body, or reported with
    ``success: true``, count as written.

    FAILURE needs a write spanning more than one device with every one of
    them reported failed. A single-device write whose device fails comes
    back as PARTIAL_SUCCESS even though nothing was written, so check
    ``failures()`` rather than assuming partial success means some data
    landed.
    """

    result: WriteResult
    outcomes: tuple[WriteOutcome, ...] = ()

    @classmethod
    def success(cls) -> "WriteStatus":
        return cls(result=WriteResult.SUCCESS)

    @classmethod
    def from_response(
        cls,
        status_code: int,
        body: Any,
        submitted_devices: tuple[str, ...] = (),
    ) -> "WriteStatus":
        """
        Interpret a write response.

        Args:
            status_code: HTTP status of the write call
            body: Decoded JSON body (None when empty)
            submitted_devices: Device keys contained in the submitted write

        Returns:
            WriteStatus for 200 and 207 responses

        Raises:
            UnexpectedStatusError: For any other status code
            ResponseParseError: If a 207 body is not a per-device map
        """
        if status_code == 200:
            return cls.success()
        if status_code != 207:
            raise UnexpectedStatusError("POST", WRITE_PATH, status_code, body)

        if body is None:
            body = {}
        if not isinstance(body, dict):
            raise ResponseParseError(
                f"Multi-status write body is not an object: {body!r}",
                source=WRITE_PATH,
            )

        outcomes = []
        for device_key, entry in body.items():
            if not isinstance(entry, dict) or not isinstance(entry.get("success"), bool):
                raise ResponseParseError(
                    f"Malformed write outcome for {device_key!r}: {entry!r}",
                    source=WRITE_PATH,
                )
            outcomes.append(WriteOutcome(
                device_key=device_key,
                success=entry["success"],
                message=entry.get("message") or "",
            ))

        failed = {o.device_key for o in outcomes if not o.success}
        if not failed:
            result = WriteResult.SUCCESS
        elif len(submitted_devices) > 1 and failed.issuperset(submitted_devices):
            result = WriteResult.FAILURE
        else:
            result = WriteResult.PARTIAL_SUCCESS

        return cls(result=result, outcomes=tuple(outcomes))

    def is_success(self) -> bool:
        return self.result == WriteResult.SUCCESS

    def is_partial_success(self) -> bool:
        return self.result == WriteResult.PARTIAL_SUCCESS

    def is_failure(self) -> bool:
        return self.result == WriteResult.FAILURE

    def failures(self) -> dict[str, str]:
        """Failure messages keyed by device, in response order."""
        return {o.device_key: o.message for o in self.outcomes if not o.success}
