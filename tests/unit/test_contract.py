"""Unit tests for the invocation surface and the contract registry."""

from __future__ import annotations

import json

import pytest

from recordledger.errors import (
    RecordAlreadyExistsError,
    RecordNotFoundError,
    SchemaValidationError,
    UnknownContractError,
    UnknownFunctionError,
)
from recordledger.ledger.memory import InMemoryLedgerRuntime
from recordledger.models.records import RecordKind
from recordledger.schema import SensorAssetSchema
from recordledger.service.contract import ContractRegistry, RecordContract, build_registry
from recordledger.service.records import RecordService

_SENSOR_ARGS = ["0.5", "3.3", "45.464664", "12.2629", "0.5", "31.7", "1000.5", "50.5", "0.5", "[0.5,0.5,0.5]", "[0.5,0.5,0.5]"]


def _create_args(key: str, owner: str) -> list[str]:
    return [key, *_SENSOR_ARGS, owner]


@pytest.fixture
def registry() -> ContractRegistry:
    return build_registry(InMemoryLedgerRuntime(), [RecordKind.ASSET, RecordKind.METRIC])


class TestRecordContract:
    def test_sensor_contract_exposes_transfer(self) -> None:
        contract = RecordContract("asset", RecordService(SensorAssetSchema()))
        assert contract.function_names == [
            "Bootstrap",
            "CreateRecord",
            "DeleteRecord",
            "ListAllRecords",
            "ReadRecord",
            "RecordExists",
            "TransferOwner",
            "UpdateRecord",
        ]

    def test_metric_contract_has_no_transfer(self, registry: ContractRegistry) -> None:
        assert "TransferOwner" not in registry.get("metric").function_names

    def test_queries_are_evaluate_only(self, registry: ContractRegistry) -> None:
        contract = registry.get("asset")
        assert not contract.function("ReadRecord").submit
        assert not contract.function("RecordExists").submit
        assert not contract.function("ListAllRecords").submit
        assert contract.function("TransferOwner").submit

    def test_unknown_function(self, registry: ContractRegistry) -> None:
        with pytest.raises(UnknownFunctionError):
            registry.get("asset").function("GetAllAssets")


class TestRegistry:
    async def test_example_scenario(self, registry: ContractRegistry) -> None:
        await registry.invoke("asset", "CreateRecord", _create_args("dev-1", "X"))
        text = await registry.invoke("asset", "ReadRecord", ["dev-1"])
        assert text.index('"Owner"') < text.index('"SNR"') < text.index('"VBAT"')
        assert await registry.invoke("asset", "TransferOwner", ["dev-1", "Y"]) == "X"
        assert json.loads(await registry.invoke("asset", "ReadRecord", ["dev-1"]))["Owner"] == "Y"

    async def test_exists_returns_bool(self, registry: ContractRegistry) -> None:
        assert await registry.invoke("asset", "RecordExists", ["dev-1"]) is False
        await registry.invoke("asset", "CreateRecord", _create_args("dev-1", "X"))
        assert await registry.invoke("asset", "RecordExists", ["dev-1"]) is True

    async def test_failed_create_leaves_state_unchanged(self, registry: ContractRegistry) -> None:
        await registry.invoke("asset", "CreateRecord", _create_args("dev-1", "X"))
        with pytest.raises(RecordAlreadyExistsError):
            await registry.invoke("asset", "CreateRecord", _create_args("dev-1", "Z"))
        assert json.loads(await registry.invoke("asset", "ReadRecord", ["dev-1"]))["Owner"] == "X"

    async def test_wrong_arity_rejected(self, registry: ContractRegistry) -> None:
        with pytest.raises(SchemaValidationError):
            await registry.invoke("asset", "ReadRecord", [])
        with pytest.raises(SchemaValidationError):
            await registry.invoke("asset", "CreateRecord", ["dev-1", "0.5"])

    async def test_list_all_returns_json_array_text(self, registry: ContractRegistry) -> None:
        await registry.invoke("metric", "CreateRecord", ["2024-05-01T12:01:00Z", "2"])
        await registry.invoke("metric", "CreateRecord", ["2024-05-01T12:00:00Z", "1.5"])
        text = await registry.invoke("metric", "ListAllRecords")
        assert text == '[{"Value":1.5,"docType":"metric"},{"Value":2,"docType":"metric"}]'

    async def test_contracts_use_separate_namespaces(self, registry: ContractRegistry) -> None:
        await registry.invoke("metric", "CreateRecord", ["t1", "1"])
        assert await registry.invoke("asset", "ListAllRecords") == "[]"

    async def test_delete_via_registry(self, registry: ContractRegistry) -> None:
        await registry.invoke("metric", "CreateRecord", ["t1", "1"])
        await registry.invoke("metric", "DeleteRecord", ["t1"])
        with pytest.raises(RecordNotFoundError):
            await registry.invoke("metric", "DeleteRecord", ["t1"])

    async def test_bootstrap_all_seeds_every_contract(self, registry: ContractRegistry) -> None:
        await registry.bootstrap_all()
        assert await registry.invoke("asset", "RecordExists", ["basdni7s8acadad8a9d8"]) is True
        assert await registry.invoke("metric", "RecordExists", ["2023-01-01T00:00:00Z"]) is True

    async def test_unknown_contract(self, registry: ContractRegistry) -> None:
        with pytest.raises(UnknownContractError):
            await registry.invoke("ledger", "ReadRecord", ["x"])

    def test_duplicate_registration_rejected(self, registry: ContractRegistry) -> None:
        with pytest.raises(ValueError, match="already registered"):
            registry.register(RecordContract("asset", RecordService(SensorAssetSchema())))

    def test_build_registry_rejects_unknown_kind(self) -> None:
        with pytest.raises(ValueError):
            build_registry(InMemoryLedgerRuntime(), ["widgets"])
