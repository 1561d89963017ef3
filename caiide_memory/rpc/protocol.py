"""Envelope models for the line-delimited worker protocol."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

PROTOCOL_VERSION_TAG = "2.0"
PROTOCOL_KEY = "protocol"
# Accepted on decode so stock JSON-RPC workers can be used as-is.
PROTOCOL_KEY_ALIASES = ("protocol", "jsonrpc")


class ErrorCode:
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603


@dataclass(slots=True, frozen=True)
class RpcErrorPayload:
    """Error object carried by a response envelope."""

    code: int
    message: str
    data: Any = None


@dataclass(slots=True, frozen=True)
class RequestEnvelope:
    """Request frame written to the worker."""

    id: int
    method: str
    params: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            PROTOCOL_KEY: PROTOCOL_VERSION_TAG,
            "method": self.method,
            "params": self.params if self.params is not None else {},
            "id": self.id,
        }


@dataclass(slots=True, frozen=True)
class ResponseEnvelope:
    """Response frame read from the worker.

    Exactly one of ``result``/``error`` is meaningful: ``error`` wins when set.
    """

    id: int
    result: Any = None
    error: RpcErrorPayload | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
