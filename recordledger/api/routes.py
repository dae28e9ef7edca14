"""Route handlers for the REST gateway."""

from __future__ import annotations

from fastapi import APIRouter, Request

from recordledger.api.schemas import HealthResponse, InvokeRequest, InvokeResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    from recordledger import __version__

    registry = request.app.state.registry
    return HealthResponse(status="ok", version=__version__, contracts=registry.names)


@router.post("/contracts/{contract}/invoke", response_model=InvokeResponse)
async def invoke(contract: str, body: InvokeRequest, request: Request) -> InvokeResponse:
    """Submit or evaluate one contract function against the ledger runtime."""
    registry = request.app.state.registry
    result = await registry.invoke(contract, body.function, body.args)
    return InvokeResponse(contract=contract, function=body.function, result=result)
