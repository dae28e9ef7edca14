"""Record service package: lifecycle operations and the invocation surface."""

from recordledger.service.contract import (
    ContractFunction,
    ContractRegistry,
    RecordContract,
    build_registry,
)
from recordledger.service.records import RecordService

__all__ = [
    "ContractFunction",
    "ContractRegistry",
    "RecordContract",
    "RecordService",
    "build_registry",
]
