"""Invocation surface: named contract functions over string arguments.

A ``RecordContract`` exposes one ``RecordService`` under the function names
clients submit (``CreateRecord``, ``ReadRecord``, ...), converting the
ordered string arguments through the record schema.  The
``ContractRegistry`` owns one contract per namespace and runs every
invocation inside its own runtime transaction: submit functions commit,
evaluate functions (pure queries) are discarded.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

import structlog

from recordledger.canonical import canonical_json_text
from recordledger.errors import (
    RecordLedgerError,
    SchemaValidationError,
    UnknownContractError,
    UnknownFunctionError,
)
from recordledger.ledger.access import LedgerAccess, LedgerRuntime
from recordledger.models.records import RecordKind
from recordledger.schema import SCHEMAS
from recordledger.service.records import RecordService

_log = structlog.get_logger(component="service.contract")

Handler = Callable[[LedgerAccess, Sequence[str]], Awaitable[Any]]


@dataclass(frozen=True)
class ContractFunction:
    """One invocable function of a contract."""

    name: str
    handler: Handler
    arity: int
    submit: bool = True  # False for read-only evaluations


class RecordContract:
    """Binds the invocation function names to a record service."""

    def __init__(self, name: str, service: RecordService[Any]) -> None:
        self.name = name
        self.service = service
        field_count = len(service.schema.fields)

        functions = [
            ContractFunction("Bootstrap", self._bootstrap, 0),
            ContractFunction("CreateRecord", self._create, 1 + field_count),
            ContractFunction("ReadRecord", self._read, 1, submit=False),
            ContractFunction("UpdateRecord", self._update, 1 + field_count),
            ContractFunction("DeleteRecord", self._delete, 1),
            ContractFunction("RecordExists", self._exists, 1, submit=False),
            ContractFunction("ListAllRecords", self._list_all, 0, submit=False),
        ]
        if service.schema.transfer_field is not None:
            functions.append(ContractFunction("TransferOwner", self._transfer, 2))
        self._functions = {fn.name: fn for fn in functions}

    @property
    def namespace(self) -> str:
        return self.name

    @property
    def function_names(self) -> list[str]:
        return sorted(self._functions)

    def function(self, name: str) -> ContractFunction:
        try:
            return self._functions[name]
        except KeyError:
            raise UnknownFunctionError(f"Contract {self.name} has no function {name}") from None

    async def invoke(self, ctx: LedgerAccess, function: str, args: Sequence[str] = ()) -> Any:
        fn = self.function(function)
        if len(args) != fn.arity:
            raise SchemaValidationError("args", f"{function} takes {fn.arity} arguments, got {len(args)}")
        return await fn.handler(ctx, args)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _bootstrap(self, ctx: LedgerAccess, args: Sequence[str]) -> None:
        await self.service.bootstrap(ctx)

    async def _create(self, ctx: LedgerAccess, args: Sequence[str]) -> None:
        key, *fields = args
        await self.service.create(ctx, key, self.service.schema.parse_args(fields))

    async def _read(self, ctx: LedgerAccess, args: Sequence[str]) -> str:
        return await self.service.read(ctx, args[0])

    async def _update(self, ctx: LedgerAccess, args: Sequence[str]) -> None:
        key, *fields = args
        await self.service.update(ctx, key, self.service.schema.parse_args(fields))

    async def _delete(self, ctx: LedgerAccess, args: Sequence[str]) -> None:
        await self.service.delete(ctx, args[0])

    async def _exists(self, ctx: LedgerAccess, args: Sequence[str]) -> bool:
        return await self.service.exists(ctx, args[0])

    async def _transfer(self, ctx: LedgerAccess, args: Sequence[str]) -> str:
        key, new_owner = args
        return await self.service.transfer(ctx, key, new_owner)

    async def _list_all(self, ctx: LedgerAccess, args: Sequence[str]) -> str:
        return canonical_json_text(await self.service.list_all(ctx))


class ContractRegistry:
    """Contracts by name, each invoked in its own runtime transaction."""

    def __init__(self, runtime: LedgerRuntime) -> None:
        self._runtime = runtime
        self._contracts: dict[str, RecordContract] = {}

    @property
    def names(self) -> list[str]:
        return sorted(self._contracts)

    def register(self, contract: RecordContract) -> None:
        if contract.name in self._contracts:
            raise ValueError(f"Contract {contract.name} is already registered")
        self._contracts[contract.name] = contract

    def get(self, name: str) -> RecordContract:
        try:
            return self._contracts[name]
        except KeyError:
            raise UnknownContractError(f"No contract named {name}") from None

    async def invoke(self, contract_name: str, function: str, args: Sequence[str] = ()) -> Any:
        """Run one invocation; commit it when the function is a submit."""
        contract = self.get(contract_name)
        fn = contract.function(function)
        try:
            async with self._runtime.transaction(contract.namespace, commit=fn.submit) as ctx:
                result = await contract.invoke(ctx, function, args)
        except RecordLedgerError as exc:
            _log.info(
                "invocation_rejected",
                contract=contract_name,
                function=function,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise
        _log.debug("invocation_completed", contract=contract_name, function=function, submit=fn.submit)
        return result

    async def bootstrap_all(self) -> None:
        """Run ``Bootstrap`` on every registered contract (ledger genesis)."""
        for name in self.names:
            await self.invoke(name, "Bootstrap")


def build_registry(runtime: LedgerRuntime, kinds: Iterable[RecordKind | str]) -> ContractRegistry:
    """Create a registry with one contract per record kind, named after the kind."""
    registry = ContractRegistry(runtime)
    for kind in kinds:
        record_kind = RecordKind(kind)
        schema = SCHEMAS[record_kind]()
        registry.register(RecordContract(record_kind.value, RecordService(schema)))
    return registry
