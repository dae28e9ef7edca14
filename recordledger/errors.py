"""Exception hierarchy for recordledger.

Operation-level failures propagate to the invocation caller, which aborts
the surrounding transaction. ``DecodeDegraded`` is the only error that is
absorbed locally (by the listing operation).
"""

from __future__ import annotations


class RecordLedgerError(Exception):
    """Base class for every error raised by recordledger."""


class RecordServiceError(RecordLedgerError):
    """Raised when a record operation cannot be applied."""

    def __init__(self, message: str, key: str = "") -> None:
        super().__init__(message)
        self.key = key


class RecordAlreadyExistsError(RecordServiceError):
    """Create targeted a key that already holds a record."""

    def __init__(self, doc_type: str, key: str) -> None:
        super().__init__(f"The {doc_type} {key} already exists", key=key)


class RecordNotFoundError(RecordServiceError):
    """Read, Update, Delete or Transfer targeted an absent key."""

    def __init__(self, doc_type: str, key: str) -> None:
        super().__init__(f"The {doc_type} {key} does not exist", key=key)


class UnsupportedOperationError(RecordServiceError):
    """The record schema does not support the requested operation."""


class DecodeDegraded(RecordLedgerError):
    """Stored bytes for one record could not be decoded as structured data."""

    def __init__(self, key: str, raw: str, cause: Exception) -> None:
        super().__init__(f"Record {key} is not valid structured data: {cause}")
        self.key = key
        self.raw = raw
        self.cause = cause


class SchemaValidationError(RecordLedgerError, ValueError):
    """Invocation arguments do not match the record schema."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field


class CanonicalEncodingError(RecordLedgerError, ValueError):
    """Input to the canonical encoder is not a well-formed record value."""


class MVCCConflictError(RecordLedgerError):
    """A key read by the transaction was changed by a concurrent commit."""

    def __init__(self, namespace: str, key: str) -> None:
        super().__init__(f"Read conflict on {namespace}/{key}: key changed since it was read")
        self.namespace = namespace
        self.key = key


class UnknownContractError(RecordLedgerError):
    """No contract is registered under the requested name."""


class UnknownFunctionError(RecordLedgerError):
    """The contract does not expose the requested function."""
