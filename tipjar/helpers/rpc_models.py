"""Pydantic models for JSON-RPC requests and responses."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class JsonRpcRequest(BaseModel):
    """JSON-RPC 2.0 request model."""

    jsonrpc: str = Field(default="2.0", description="JSON-RPC version")
    method: str = Field(..., description="Method name to call")
    params: list[Any] = Field(
        default_factory=list, description="Method parameters"
    )
    id: int = Field(..., description="Request ID")


class JsonRpcErrorObject(BaseModel):
    """The ``error`` member of a failed JSON-RPC response."""

    code: int
    message: str
    data: Any = None

    model_config = ConfigDict(extra="allow")


class JsonRpcResponse(BaseModel):
    """JSON-RPC 2.0 response envelope, either ``result`` or ``error`` is set."""

    jsonrpc: str = "2.0"
    id: int | str | None = None
    result: Any = None
    error: JsonRpcErrorObject | None = None

    model_config = ConfigDict(extra="allow")


class NetworkInfo(BaseModel):
    """Snapshot of the chain the RPC endpoint serves."""

    chain_id: str = Field(..., description="Chain id as 0x-prefixed hex")
    block_number: int = Field(..., ge=0)
    gas_price: int = Field(..., ge=0, description="Gas price in base units")


__all__ = [
    "JsonRpcErrorObject",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "NetworkInfo",
]
