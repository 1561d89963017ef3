"""Worker RPC transport: framing, envelopes and the async client."""

from caiide_memory.rpc.client import ConnectionState, PendingRequest, RpcClient
from caiide_memory.rpc.errors import (
    ConnectionClosedError,
    HandshakeError,
    RemoteError,
    RequestTimeoutError,
    ResultDecodeError,
    RpcClientError,
    SpawnError,
    TransportDecodeError,
    TransportError,
    WorkerConnectionError,
)
from caiide_memory.rpc.framer import LineFramer

__all__ = [
    "ConnectionClosedError",
    "ConnectionState",
    "HandshakeError",
    "LineFramer",
    "PendingRequest",
    "RemoteError",
    "RequestTimeoutError",
    "ResultDecodeError",
    "RpcClient",
    "RpcClientError",
    "SpawnError",
    "TransportDecodeError",
    "TransportError",
    "WorkerConnectionError",
]
