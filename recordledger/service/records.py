"""Record lifecycle operations over a ledger transaction context.

``RecordService`` implements Create, Read, Update, Delete, Exists, Transfer,
ListAll and Bootstrap once, parameterised by a ``RecordSchema``.  Every
operation receives the invocation's ``LedgerAccess`` explicitly and issues
nothing but get/put/delete/scan calls against it.

Mutations always rebuild the full record and re-encode it canonically, even
when a single field changes, so every write satisfies the canonical byte
encoding regardless of which fields were touched.

The existence check and the write that follows are two separate calls.  The
service takes no locks: conflicting concurrent invocations are serialised or
rejected by the runtime's commit-time conflict detection.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from typing import Any, Generic, TypeVar

import structlog

from recordledger.canonical import canonical_json_bytes
from recordledger.errors import (
    DecodeDegraded,
    RecordAlreadyExistsError,
    RecordNotFoundError,
    UnsupportedOperationError,
)
from recordledger.ledger.access import LedgerAccess
from recordledger.observability.logging import get_logger
from recordledger.schema import RecordSchema

R = TypeVar("R")

# Range bounds that cover the whole namespace.
_SCAN_ALL = ("", "")

# Integers beyond this lose precision as IEEE doubles and are read as floats.
_MAX_SAFE_INTEGER = 2**53 - 1


class RecordService(Generic[R]):
    """CRUD and query operations for one record schema.

    Args:
        schema: Record variant this service stores.
        logger: Observability hook; defaults to a structlog logger bound to
                ``service.<doc_type>``.
    """

    def __init__(
        self,
        schema: RecordSchema[R],
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._schema = schema
        self._log = logger or get_logger(f"service.{schema.doc_type}")

    @property
    def schema(self) -> RecordSchema[R]:
        return self._schema

    # ------------------------------------------------------------------
    # Genesis
    # ------------------------------------------------------------------

    async def bootstrap(self, ctx: LedgerAccess) -> None:
        """Write every seed record unconditionally (idempotent overwrite)."""
        for record in self._schema.seed_records():
            key = self._schema.key_of(record)
            await self._write(ctx, record)
            self._log.info("record_initialized", key=key, doc_type=self._schema.doc_type)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create(self, ctx: LedgerAccess, key: str, fields: Mapping[str, Any]) -> None:
        if await self.exists(ctx, key):
            raise RecordAlreadyExistsError(self._schema.doc_type, key)
        record = self._schema.build(key, fields)
        await self._write(ctx, record)
        self._log.debug("record_created", key=key)

    async def update(self, ctx: LedgerAccess, key: str, fields: Mapping[str, Any]) -> None:
        """Replace the stored record with one built from *fields* only."""
        if not await self.exists(ctx, key):
            raise RecordNotFoundError(self._schema.doc_type, key)
        record = self._schema.build(key, fields)
        await self._write(ctx, record)
        self._log.debug("record_updated", key=key)

    async def delete(self, ctx: LedgerAccess, key: str) -> None:
        if not await self.exists(ctx, key):
            raise RecordNotFoundError(self._schema.doc_type, key)
        await ctx.delete(key)
        self._log.debug("record_deleted", key=key)

    async def transfer(self, ctx: LedgerAccess, key: str, new_owner: str) -> str:
        """Set the owner of *key* to *new_owner* and return the previous owner."""
        owner_field = self._schema.transfer_field
        if owner_field is None:
            raise UnsupportedOperationError(
                f"{self._schema.doc_type} records have no transferable owner",
                key=key,
            )
        text = await self.read(ctx, key)
        record = self._schema.from_mapping(key, self._decode(key, text))
        previous = self._schema.to_mapping(record)[owner_field]
        await self._write(ctx, self._schema.with_field(record, owner_field, new_owner))
        self._log.debug("record_transferred", key=key, previous_owner=previous, new_owner=new_owner)
        return previous

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def read(self, ctx: LedgerAccess, key: str) -> str:
        """Return the stored canonical text of *key*."""
        value = await ctx.get(key)
        if not value:
            raise RecordNotFoundError(self._schema.doc_type, key)
        return value.decode("utf-8", errors="replace")

    async def exists(self, ctx: LedgerAccess, key: str) -> bool:
        value = await ctx.get(key)
        return bool(value)

    async def list_all(self, ctx: LedgerAccess) -> list[Any]:
        """Decode every record in the namespace, in scan order.

        Entries whose bytes are not structured data are returned as raw
        text instead of failing the listing.
        """
        results: list[Any] = []
        async for entry in ctx.scan(*_SCAN_ALL):
            text = entry.value.decode("utf-8", errors="replace")
            try:
                results.append(self._decode(entry.key, text))
            except DecodeDegraded as exc:
                self._log.warning("record_decode_degraded", key=exc.key, error=str(exc.cause))
                results.append(exc.raw)
        return results

    # ------------------------------------------------------------------
    # Encoding helpers
    # ------------------------------------------------------------------

    async def _write(self, ctx: LedgerAccess, record: R) -> None:
        key = self._schema.key_of(record)
        await ctx.put(key, canonical_json_bytes(self._schema.to_mapping(record)))

    @staticmethod
    def _decode(key: str, text: str) -> Any:
        try:
            return json.loads(
                text,
                parse_constant=_reject_constant,
                parse_float=_finite_float,
                parse_int=_json_int,
            )
        except ValueError as exc:
            raise DecodeDegraded(key, text, exc) from exc


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not a JSON value")


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"number {text} is out of range")
    return value


def _json_int(text: str) -> int | float:
    value = int(text)
    if abs(value) > _MAX_SAFE_INTEGER:
        return _finite_float(text)
    return value
