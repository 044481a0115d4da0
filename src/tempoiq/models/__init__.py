"""Data models exchanged with the TempoIQ API."""

from tempoiq.models.datapoint import DataPoint, format_timestamp, parse_timestamp
from tempoiq.models.device import DeleteSummary, Device, Sensor
from tempoiq.models.pipeline import Pipeline, PipelineStep
from tempoiq.models.row import Row
from tempoiq.models.selection import (
    AllSelector,
    And,
    ByAttributes,
    ByKey,
    Or,
    RawFilter,
    Selection,
)
from tempoiq.models.write import BulkWrite, WriteOutcome, WriteResult, WriteStatus

__all__ = [
    "AllSelector",
    "And",
    "BulkWrite",
    "ByAttributes",
    "ByKey",
    "DataPoint",
    "DeleteSummary",
    "Device",
    "Or",
    "Pipeline",
    "PipelineStep",
    "RawFilter",
    "Row",
    "Selection",
    "Sensor",
    "WriteOutcome",
    "WriteResult",
    "WriteStatus",
    "format_timestamp",
    "parse_timestamp",
]
