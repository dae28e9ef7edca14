"""FastAPI application factory for the recordledger gateway.

Usage::

    from recordledger.api.app import create_app

    app = create_app(registry=registry, config=config)

The gateway is a thin local transport: it forwards each request to
``ContractRegistry.invoke`` and maps typed failures onto the error envelope.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from recordledger.api.routes import router
from recordledger.api.schemas import ErrorResponse
from recordledger.errors import (
    CanonicalEncodingError,
    MVCCConflictError,
    RecordAlreadyExistsError,
    RecordLedgerError,
    RecordNotFoundError,
    SchemaValidationError,
    UnknownContractError,
    UnknownFunctionError,
    UnsupportedOperationError,
)

_log = structlog.get_logger(component="api.app")

_API_PREFIX = "/api/v1"

# Most specific classes first; the first isinstance match wins.
_ERROR_MAP: list[tuple[type[RecordLedgerError], int, str]] = [
    (RecordNotFoundError, 404, "RECORD_NOT_FOUND"),
    (RecordAlreadyExistsError, 409, "RECORD_ALREADY_EXISTS"),
    (MVCCConflictError, 409, "MVCC_CONFLICT"),
    (UnsupportedOperationError, 400, "UNSUPPORTED_OPERATION"),
    (SchemaValidationError, 400, "INVALID_ARGUMENTS"),
    (CanonicalEncodingError, 400, "INVALID_ARGUMENTS"),
    (UnknownFunctionError, 404, "UNKNOWN_FUNCTION"),
    (UnknownContractError, 404, "UNKNOWN_CONTRACT"),
]


def _error_response(status_code: int, error: str, detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, detail=detail).model_dump(),
    )


def create_app(registry: Any, config: Any = None) -> FastAPI:
    """Create and configure the gateway application.

    Args:
        registry: ContractRegistry that executes invocations.
        config:   RecordLedgerConfig, kept on app.state for handlers.

    Returns:
        Configured FastAPI application, ready to be served by uvicorn.
    """
    from recordledger import __version__

    app = FastAPI(
        title="recordledger",
        summary="Deterministic record registry gateway",
        version=__version__,
        docs_url="/api/v1/docs",
        redoc_url="/api/v1/redoc",
        openapi_url="/api/v1/openapi.json",
    )

    app.state.registry = registry
    app.state.config = config

    app.include_router(router, prefix=_API_PREFIX)

    # -----------------------------------------------------------------------
    # Exception handlers
    # -----------------------------------------------------------------------

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        _request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Map Pydantic validation errors to our error envelope."""
        errors = exc.errors()
        first_msg = str(errors[0].get("msg", "")) if errors else ""
        return _error_response(400, "INVALID_ARGUMENTS", first_msg)

    @app.exception_handler(RecordLedgerError)
    async def ledger_exception_handler(
        request: Request,
        exc: RecordLedgerError,
    ) -> JSONResponse:
        for error_type, status_code, code in _ERROR_MAP:
            if isinstance(exc, error_type):
                return _error_response(status_code, code, str(exc))
        _log.error("unmapped_ledger_error", path=str(request.url.path), error=str(exc))
        return _error_response(500, "INTERNAL_ERROR", "An unexpected error occurred.")

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Catch-all for unhandled exceptions; never expose stack traces."""
        _log.error(
            "unhandled_exception",
            path=str(request.url.path),
            method=request.method,
            error=str(exc),
        )
        return _error_response(500, "INTERNAL_ERROR", "An unexpected error occurred.")

    return app
