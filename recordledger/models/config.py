"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field

from recordledger.models.records import RecordKind


@dataclass
class LedgerConfig:
    """Contracts deployed on the in-memory runtime."""

    contracts: list[RecordKind] = field(default_factory=lambda: [RecordKind.ASSET, RecordKind.METRIC])
    bootstrap_on_start: bool = True


@dataclass
class APIConfig:
    """REST gateway configuration."""

    host: str = "127.0.0.1"
    port: int = 8080


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class RecordLedgerConfig:
    """Top-level recordledger configuration."""

    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    api: APIConfig = field(default_factory=APIConfig)
    log: LogConfig = field(default_factory=LogConfig)
