"""Error taxonomy for the worker RPC client."""

from __future__ import annotations

from typing import Any


class RpcClientError(Exception):
    """Base class for every error raised by the RPC client."""

    def __init__(self, message: str, *, code: str | int = "RPC_ERROR", data: Any = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    def __str__(self) -> str:
        if self.data:
            return f"{self.code}: {self.message} ({self.data})"
        return f"{self.code}: {self.message}"


class WorkerConnectionError(RpcClientError):
    """``connect()`` could not bring the worker to the ready state."""


class SpawnError(WorkerConnectionError):
    def __init__(self, message: str, *, data: Any = None):
        super().__init__(message, code="SPAWN_FAILED", data=data)


class HandshakeError(WorkerConnectionError):
    def __init__(self, message: str, *, data: Any = None):
        super().__init__(message, code="HANDSHAKE_FAILED", data=data)


class TransportError(RpcClientError):
    """The request could not be written to the worker."""

    def __init__(self, message: str, *, code: str = "NOT_CONNECTED", data: Any = None):
        super().__init__(message, code=code, data=data)


class TransportDecodeError(RpcClientError):
    """One line of worker output is not a valid response envelope."""

    def __init__(self, message: str, *, line: str = ""):
        super().__init__(message, code="DECODE_ERROR")
        self.line = line


class RemoteError(RpcClientError):
    """The worker answered with an error envelope."""

    def __init__(self, code: int, message: str, data: Any = None):
        super().__init__(message, code=code, data=data)


class RequestTimeoutError(RpcClientError):
    """No response arrived before the request deadline."""

    def __init__(self, method: str, timeout: float):
        super().__init__(f"worker did not answer {method} within {timeout:g}s", code="RPC_TIMEOUT")
        self.method = method
        self.timeout = timeout


class ConnectionClosedError(RpcClientError):
    """The connection closed while the request was outstanding."""

    def __init__(self, message: str = "connection closed"):
        super().__init__(message, code="CONNECTION_CLOSED")


class ResultDecodeError(RpcClientError):
    """A typed method received a result payload it cannot decode."""

    def __init__(self, method: str, message: str):
        super().__init__(f"{method}: {message}", code="RESULT_DECODE_ERROR")
        self.method = method
