"""In-memory ledger runtime.

Stands in for the external replicated runtime during development, tests and
the local gateway.  It provides the guarantees the record service relies on
but does not implement itself:

- each invocation runs in its own ``TransactionContext`` with a private
  write set, so reads observe the invocation's own earlier writes;
- nothing is visible to other invocations until commit;
- commit validates the read set (point reads and range scans) against the
  committed versions and rejects the whole transaction with
  ``MVCCConflictError`` if any of them changed;
- a transaction that raises is discarded without touching world state.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from uuid import uuid4

import structlog

from recordledger.errors import MVCCConflictError
from recordledger.ledger.access import KeyValue, LedgerAccess

_log = structlog.get_logger(component="ledger.memory")

_ABSENT_VERSION = 0


@dataclass(frozen=True)
class _VersionedValue:
    value: bytes
    version: int


@dataclass
class _RangeRead:
    """Committed keys (and versions) a scan observed when it started."""

    start_key: str
    end_key: str
    versions: dict[str, int] = field(default_factory=dict)


def _in_range(key: str, start_key: str, end_key: str) -> bool:
    return key >= start_key and (not end_key or key < end_key)


class TransactionContext(LedgerAccess):
    """Ledger access scoped to one invocation of the in-memory runtime."""

    def __init__(self, runtime: InMemoryLedgerRuntime, namespace: str) -> None:
        self._runtime = runtime
        self._namespace = namespace
        self.tx_id = uuid4().hex
        self._reads: dict[str, int] = {}
        self._range_reads: list[_RangeRead] = []
        # key -> new value, None marks a delete
        self._writes: dict[str, bytes | None] = {}
        self._closed = False

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def write_set(self) -> dict[str, bytes | None]:
        return dict(self._writes)

    async def get(self, key: str) -> bytes | None:
        self._check_open()
        if key in self._writes:
            return self._writes[key]
        entry = self._runtime._committed(self._namespace).get(key)
        self._reads.setdefault(key, entry.version if entry else _ABSENT_VERSION)
        return entry.value if entry else None

    async def put(self, key: str, value: bytes) -> None:
        self._check_open()
        _check_key(key)
        if not isinstance(value, (bytes, bytearray)):
            raise TypeError(f"ledger values must be bytes, got {type(value).__name__}")
        self._writes[key] = bytes(value)

    async def delete(self, key: str) -> None:
        self._check_open()
        _check_key(key)
        self._writes[key] = None

    async def scan(self, start_key: str, end_key: str) -> AsyncIterator[KeyValue]:
        self._check_open()
        committed = self._runtime._committed(self._namespace)
        observed = _RangeRead(
            start_key=start_key,
            end_key=end_key,
            versions={k: v.version for k, v in committed.items() if _in_range(k, start_key, end_key)},
        )
        self._range_reads.append(observed)

        keys = set(observed.versions)
        keys.update(k for k in self._writes if _in_range(k, start_key, end_key))
        for key in sorted(keys):
            if key in self._writes:
                value = self._writes[key]
                if value is None:
                    continue
                yield KeyValue(key=key, value=value)
                continue
            entry = committed.get(key)
            if entry is None:
                # Removed by a concurrent commit; validation will reject this transaction.
                continue
            yield KeyValue(key=key, value=entry.value)

    def close(self) -> None:
        self._closed = True

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError(f"transaction {self.tx_id} is closed")


class InMemoryLedgerRuntime:
    """World state held in process memory, one keyspace per namespace."""

    def __init__(self) -> None:
        self._state: dict[str, dict[str, _VersionedValue]] = {}
        self._commit_lock = asyncio.Lock()
        self._height = 0

    @property
    def height(self) -> int:
        """Number of transactions committed so far."""
        return self._height

    @asynccontextmanager
    async def transaction(self, namespace: str, commit: bool = True) -> AsyncIterator[TransactionContext]:
        """Run one invocation.

        The write set is committed when the block exits cleanly and
        *commit* is true; read-only evaluations pass ``commit=False``.
        Any exception discards the write set and propagates.
        """
        tx = TransactionContext(self, namespace)
        try:
            yield tx
            if commit:
                await self._commit(tx)
        finally:
            tx.close()

    def snapshot(self, namespace: str) -> dict[str, bytes]:
        """Committed state of *namespace*, in key order."""
        committed = self._committed(namespace)
        return {key: committed[key].value for key in sorted(committed)}

    def _committed(self, namespace: str) -> dict[str, _VersionedValue]:
        return self._state.setdefault(namespace, {})

    async def _commit(self, tx: TransactionContext) -> None:
        async with self._commit_lock:
            committed = self._committed(tx.namespace)
            self._validate(tx, committed)

            writes = tx._writes
            if not writes:
                return
            self._height += 1
            for key, value in writes.items():
                if value is None:
                    committed.pop(key, None)
                else:
                    committed[key] = _VersionedValue(value=value, version=self._height)
            _log.debug(
                "transaction_committed",
                tx_id=tx.tx_id,
                namespace=tx.namespace,
                writes=len(writes),
                height=self._height,
            )

    def _validate(self, tx: TransactionContext, committed: dict[str, _VersionedValue]) -> None:
        for key, version in tx._reads.items():
            entry = committed.get(key)
            if (entry.version if entry else _ABSENT_VERSION) != version:
                self._reject(tx, key)
        for observed in tx._range_reads:
            current = {
                k: v.version for k, v in committed.items() if _in_range(k, observed.start_key, observed.end_key)
            }
            if current != observed.versions:
                changed = sorted(set(current.items()) ^ set(observed.versions.items()))
                self._reject(tx, changed[0][0])

    def _reject(self, tx: TransactionContext, key: str) -> None:
        _log.warning("mvcc_conflict", tx_id=tx.tx_id, namespace=tx.namespace, key=key)
        raise MVCCConflictError(tx.namespace, key)


def _check_key(key: str) -> None:
    if not isinstance(key, str) or not key:
        raise ValueError("ledger keys must be non-empty strings")
