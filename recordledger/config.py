"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from recordledger.models.config import APIConfig, LedgerConfig, LogConfig, RecordLedgerConfig
from recordledger.models.records import RecordKind


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"RECORDLEDGER_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _parse_contracts(value: str) -> list[RecordKind]:
    valid = {kind.value for kind in RecordKind}
    kinds: list[RecordKind] = []
    for name in (part.strip().lower() for part in value.split(",")):
        if not name:
            continue
        if name not in valid:
            raise ValueError(f"Invalid contract: {name}. Must be one of {sorted(valid)}")
        if RecordKind(name) not in kinds:
            kinds.append(RecordKind(name))
    if not kinds:
        raise ValueError("At least one contract must be configured")
    return kinds


def load_config() -> RecordLedgerConfig:
    """Load configuration from RECORDLEDGER_* environment variables."""
    return RecordLedgerConfig(
        ledger=LedgerConfig(
            contracts=_parse_contracts(_env("CONTRACTS", "asset,metric")),
            bootstrap_on_start=_env_bool("BOOTSTRAP_ON_START", True),
        ),
        api=APIConfig(
            host=_env("API_HOST", "127.0.0.1"),
            port=_env_int("API_PORT", 8080, min_val=1024, max_val=65535),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
        ),
    )
