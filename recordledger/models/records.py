"""Record data structures stored in the world state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

Number = int | float
Triple = tuple[Number, Number, Number]


class RecordKind(StrEnum):
    """Record variants, one per registered contract."""

    ASSET = "asset"
    METRIC = "metric"


class FieldType(StrEnum):
    """Value shapes a record field may hold."""

    NUMBER = "number"
    TEXT = "text"
    TRIPLE = "triple"  # fixed-length numeric array, e.g. gyroscope x/y/z


@dataclass(frozen=True)
class FieldSpec:
    """Maps a wire field name (as stored) to a record attribute."""

    wire_name: str
    attr: str
    type: FieldType


@dataclass(frozen=True)
class SensorAsset:
    """Multi-sensor IoT device reading, keyed by an opaque device identifier."""

    id: str
    snr: Number
    vbat: Number
    latitude: Number
    longitude: Number
    gas_resistance: Number
    temperature: Number
    pressure: Number
    humidity: Number
    light: Number
    gyroscope: Triple
    accelerometer: Triple
    owner: str


@dataclass(frozen=True)
class MetricReading:
    """Single metric value keyed by its timestamp string."""

    timestamp: str
    value: Number
