"""Request and response bodies for the REST gateway."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class InvokeRequest(BaseModel):
    """One contract invocation: function name plus ordered string arguments."""

    function: str = Field(min_length=1, max_length=128)
    args: list[str] = Field(default_factory=list)


class InvokeResponse(BaseModel):
    contract: str
    function: str
    result: Any = None


class HealthResponse(BaseModel):
    status: str
    version: str
    contracts: list[str]


class ErrorResponse(BaseModel):
    """Error envelope returned for every non-2xx response."""

    error: str
    detail: str
