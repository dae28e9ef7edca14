"""Ledger access layer for recordledger.

Submodules:
    access  -- Abstract per-transaction key-value interface (get/put/delete/scan).
    memory  -- In-memory reference runtime with MVCC read-set validation.
"""

from recordledger.ledger.access import KeyValue, LedgerAccess, LedgerRuntime
from recordledger.ledger.memory import InMemoryLedgerRuntime, TransactionContext

__all__ = [
    "InMemoryLedgerRuntime",
    "KeyValue",
    "LedgerAccess",
    "LedgerRuntime",
    "TransactionContext",
]
