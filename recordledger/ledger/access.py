"""Abstract interface over the ledger runtime's key-value operations.

One ``LedgerAccess`` instance is scoped to a single invocation: reads observe
earlier writes of the same invocation, and nothing becomes visible to other
invocations until the runtime commits. Every method is a suspension point
for the runtime's own I/O; callers await them strictly in sequence.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class KeyValue:
    """One entry yielded by a range scan."""

    key: str
    value: bytes


class LedgerAccess(ABC):
    """Key-value operations available inside one transaction context."""

    @property
    @abstractmethod
    def namespace(self) -> str:
        """Keyspace this context reads and writes."""

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Return the current value of *key*, or None when absent."""

    @abstractmethod
    async def put(self, key: str, value: bytes) -> None:
        """Set *key* to *value*, replacing any previous value."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove *key*.  Deleting an absent key is not an error here."""

    @abstractmethod
    def scan(self, start_key: str, end_key: str) -> AsyncIterator[KeyValue]:
        """Yield entries with ``start_key <= key < end_key`` in ascending key order.

        An empty *end_key* leaves the range open-ended, so ``scan("", "")``
        covers the whole namespace.  The iterator is lazy and finite; call
        ``scan`` again to restart.
        """


class LedgerRuntime(Protocol):
    """The runtime side: opens one transaction context per invocation."""

    def transaction(self, namespace: str, commit: bool = True) -> AbstractAsyncContextManager[LedgerAccess]:
        """Context for one invocation; committed on clean exit when *commit* is true."""
        ...
