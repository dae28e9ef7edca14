"""Core data structures for recordledger."""

from recordledger.models.config import RecordLedgerConfig
from recordledger.models.records import (
    FieldSpec,
    FieldType,
    MetricReading,
    RecordKind,
    SensorAsset,
)

__all__ = [
    "FieldSpec",
    "FieldType",
    "MetricReading",
    "RecordKind",
    "RecordLedgerConfig",
    "SensorAsset",
]
