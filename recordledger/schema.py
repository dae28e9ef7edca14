"""Record schemas: shape validation and reconstruction.

A schema converts between three representations of one record:

- invocation arguments (the key plus one string per field, as submitted),
- the typed record dataclass,
- the wire mapping handed to the canonical encoder (including ``docType``).

No business rules live here; existence checks and lifecycle belong to
``recordledger.service.records``.
"""

from __future__ import annotations

import json
import math
from abc import ABC
from collections.abc import Mapping, Sequence
from dataclasses import replace
from typing import Any, ClassVar, Generic, TypeVar

from recordledger.errors import SchemaValidationError
from recordledger.models.records import (
    FieldSpec,
    FieldType,
    MetricReading,
    Number,
    RecordKind,
    SensorAsset,
)

R = TypeVar("R")

DOC_TYPE_FIELD = "docType"
_TRIPLE_LEN = 3
_MAX_SAFE_INTEGER = 2**53 - 1


class RecordSchema(ABC, Generic[R]):
    """Capability describing one record variant.

    Subclasses declare the class attributes; the conversion logic is shared.
    """

    kind: ClassVar[RecordKind]
    record_type: ClassVar[type]
    key_field: ClassVar[str]  # wire name of the primary key
    key_attr: ClassVar[str]
    key_in_body: ClassVar[bool] = False  # also written as a field for round trips
    transfer_field: ClassVar[str | None] = None
    fields: ClassVar[tuple[FieldSpec, ...]]

    @property
    def doc_type(self) -> str:
        return self.kind.value

    @property
    def field_names(self) -> list[str]:
        """Wire names of the non-key fields, in invocation argument order."""
        return [field_spec.wire_name for field_spec in self.fields]

    def key_of(self, record: R) -> str:
        return getattr(record, self.key_attr)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def build(self, key: str, fields: Mapping[str, Any]) -> R:
        """Validate *fields* (keyed by wire name) and build a record."""
        _check_key(self.key_field, key)
        unknown = sorted(set(fields) - set(self.field_names))
        if unknown:
            raise SchemaValidationError(unknown[0], "unknown field")

        values: dict[str, Any] = {self.key_attr: key}
        for field_spec in self.fields:
            if field_spec.wire_name not in fields:
                raise SchemaValidationError(field_spec.wire_name, "is required")
            values[field_spec.attr] = _coerce(field_spec, fields[field_spec.wire_name])
        return self.record_type(**values)

    def parse_args(self, args: Sequence[str]) -> dict[str, Any]:
        """Convert string invocation arguments into a field mapping for ``build``.

        Numbers arrive as decimal text and triples as JSON array text.
        """
        if len(args) != len(self.fields):
            raise SchemaValidationError(
                "args",
                f"expected {len(self.fields)} field arguments ({', '.join(self.field_names)}), got {len(args)}",
            )
        parsed: dict[str, Any] = {}
        for field_spec, raw in zip(self.fields, args, strict=True):
            parsed[field_spec.wire_name] = _parse_text(field_spec, raw)
        return parsed

    def with_field(self, record: R, wire_name: str, value: Any) -> R:
        """Return a copy of *record* with one field replaced and re-validated."""
        field_spec = self._field_spec(wire_name)
        return replace(record, **{field_spec.attr: _coerce(field_spec, value)})  # type: ignore[type-var]

    def seed_records(self) -> list[R]:
        """Records written unconditionally at ledger genesis."""
        return []

    # ------------------------------------------------------------------
    # Wire mapping
    # ------------------------------------------------------------------

    def to_mapping(self, record: R) -> dict[str, Any]:
        mapping: dict[str, Any] = {}
        if self.key_in_body:
            mapping[self.key_field] = self.key_of(record)
        for field_spec in self.fields:
            value = getattr(record, field_spec.attr)
            mapping[field_spec.wire_name] = list(value) if field_spec.type is FieldType.TRIPLE else value
        mapping[DOC_TYPE_FIELD] = self.doc_type
        return mapping

    def from_mapping(self, key: str, mapping: Mapping[str, Any]) -> R:
        """Reconstruct a record from a decoded stored value."""
        if not isinstance(mapping, Mapping):
            raise SchemaValidationError(self.key_field, f"stored value for {key} is not an object")
        body = dict(mapping)
        doc_type = body.pop(DOC_TYPE_FIELD, self.doc_type)
        if doc_type != self.doc_type:
            raise SchemaValidationError(DOC_TYPE_FIELD, f"expected {self.doc_type!r}, found {doc_type!r}")
        if self.key_in_body:
            stored_key = body.pop(self.key_field, key)
            if stored_key != key:
                raise SchemaValidationError(self.key_field, f"stored key {stored_key!r} does not match {key!r}")
        return self.build(key, body)

    def _field_spec(self, wire_name: str) -> FieldSpec:
        for field_spec in self.fields:
            if field_spec.wire_name == wire_name:
                return field_spec
        raise SchemaValidationError(wire_name, "unknown field")


class SensorAssetSchema(RecordSchema[SensorAsset]):
    """IoT device asset: telemetry fields plus a transferable owner."""

    kind = RecordKind.ASSET
    record_type = SensorAsset
    key_field = "ID"
    key_attr = "id"
    key_in_body = True
    transfer_field = "Owner"
    fields = (
        FieldSpec("SNR", "snr", FieldType.NUMBER),
        FieldSpec("VBAT", "vbat", FieldType.NUMBER),
        FieldSpec("Latitude", "latitude", FieldType.NUMBER),
        FieldSpec("Longitude", "longitude", FieldType.NUMBER),
        FieldSpec("Gas_resistance", "gas_resistance", FieldType.NUMBER),
        FieldSpec("Temperature", "temperature", FieldType.NUMBER),
        FieldSpec("Pressure", "pressure", FieldType.NUMBER),
        FieldSpec("Humidity", "humidity", FieldType.NUMBER),
        FieldSpec("Light", "light", FieldType.NUMBER),
        FieldSpec("Gyroscope", "gyroscope", FieldType.TRIPLE),
        FieldSpec("Accelerometer", "accelerometer", FieldType.TRIPLE),
        FieldSpec("Owner", "owner", FieldType.TEXT),
    )

    def seed_records(self) -> list[SensorAsset]:
        return [
            SensorAsset(
                id="basdni7s8acadad8a9d8",
                snr=0.5,
                vbat=3.3,
                latitude=45.464664,
                longitude=12.2629,
                gas_resistance=0.5,
                temperature=31.7,
                pressure=1000.5,
                humidity=50.5,
                light=0.5,
                gyroscope=(0.5, 0.5, 0.5),
                accelerometer=(0.5, 0.5, 0.5),
                owner="Chidera's IoT device 1",
            ),
        ]


class MetricReadingSchema(RecordSchema[MetricReading]):
    """Time-series metric: the timestamp is only the ledger key."""

    kind = RecordKind.METRIC
    record_type = MetricReading
    key_field = "Timestamp"
    key_attr = "timestamp"
    fields = (FieldSpec("Value", "value", FieldType.NUMBER),)

    def seed_records(self) -> list[MetricReading]:
        return [MetricReading(timestamp="2023-01-01T00:00:00Z", value=0.5)]


SCHEMAS: dict[RecordKind, type[RecordSchema[Any]]] = {
    RecordKind.ASSET: SensorAssetSchema,
    RecordKind.METRIC: MetricReadingSchema,
}


def _check_key(field: str, key: Any) -> None:
    if not isinstance(key, str) or not key:
        raise SchemaValidationError(field, "key must be a non-empty string")


def _check_number(field: str, value: Any) -> Number:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SchemaValidationError(field, f"expected a number, got {type(value).__name__}")
    if not math.isfinite(value):
        raise SchemaValidationError(field, "number must be finite")
    if isinstance(value, int) and abs(value) > _MAX_SAFE_INTEGER:
        raise SchemaValidationError(field, f"integer {value} is outside the interoperable range")
    return value


def _coerce(field_spec: FieldSpec, value: Any) -> Any:
    if field_spec.type is FieldType.NUMBER:
        return _check_number(field_spec.wire_name, value)
    if field_spec.type is FieldType.TEXT:
        if not isinstance(value, str):
            raise SchemaValidationError(field_spec.wire_name, f"expected text, got {type(value).__name__}")
        return value
    if not isinstance(value, (list, tuple)) or len(value) != _TRIPLE_LEN:
        raise SchemaValidationError(field_spec.wire_name, f"expected an array of {_TRIPLE_LEN} numbers")
    return tuple(_check_number(field_spec.wire_name, item) for item in value)


def _parse_text(field_spec: FieldSpec, raw: str) -> Any:
    if not isinstance(raw, str):
        raise SchemaValidationError(field_spec.wire_name, "invocation arguments must be strings")
    if field_spec.type is FieldType.TEXT:
        return raw
    if field_spec.type is FieldType.NUMBER:
        return _parse_number(field_spec.wire_name, raw)
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SchemaValidationError(field_spec.wire_name, f"expected a JSON array: {exc.msg}") from exc


def _parse_number(field: str, raw: str) -> Number:
    # JSON number text has no digit separators.
    if "_" in raw:
        raise SchemaValidationError(field, f"{raw!r} is not a number")
    text = raw.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        value = float(text)
    except ValueError as exc:
        raise SchemaValidationError(field, f"{raw!r} is not a number") from exc
    return _check_number(field, value)
