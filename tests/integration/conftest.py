"""Shared fixtures for recordledger integration tests.

Provides an in-memory runtime with both contracts registered so tests can
exercise full invocation pipelines (argument parsing, existence checks,
canonical encoding, commit) without a real ledger network.
"""

from __future__ import annotations

import pytest

from recordledger.ledger.memory import InMemoryLedgerRuntime
from recordledger.models.records import RecordKind
from recordledger.service.contract import ContractRegistry, build_registry

SEED_ASSET_ID = "basdni7s8acadad8a9d8"
SEED_METRIC_TIMESTAMP = "2023-01-01T00:00:00Z"


# ---------------------------------------------------------------------------
# Argument helpers
# ---------------------------------------------------------------------------


def sensor_args(
    key: str,
    owner: str = "X",
    snr: str = "0.5",
    vbat: str = "3.3",
    gyroscope: str = "[0.5,0.5,0.5]",
    accelerometer: str = "[0.5,0.5,0.5]",
) -> list[str]:
    """Ordered CreateRecord/UpdateRecord arguments for a sensor asset."""
    return [
        key,
        snr,
        vbat,
        "45.464664",
        "12.2629",
        "0.5",
        "31.7",
        "1000.5",
        "50.5",
        "0.5",
        gyroscope,
        accelerometer,
        owner,
    ]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def runtime() -> InMemoryLedgerRuntime:
    return InMemoryLedgerRuntime()


@pytest.fixture
def registry(runtime: InMemoryLedgerRuntime) -> ContractRegistry:
    return build_registry(runtime, [RecordKind.ASSET, RecordKind.METRIC])


@pytest.fixture
async def genesis_registry(registry: ContractRegistry) -> ContractRegistry:
    """Registry whose contracts have already run Bootstrap."""
    await registry.bootstrap_all()
    return registry
