"""Serialization helpers for worker RPC frames."""

from __future__ import annotations

import json
from typing import Any

from .errors import TransportDecodeError
from .protocol import (
    PROTOCOL_KEY_ALIASES,
    PROTOCOL_VERSION_TAG,
    ErrorCode,
    RequestEnvelope,
    ResponseEnvelope,
    RpcErrorPayload,
)


def safe_dict(value: Any) -> dict[str, Any]:
    """Return the value when dict-like, otherwise an empty dict."""
    return value if isinstance(value, dict) else {}


def encode_request_line(request: RequestEnvelope) -> str:
    """Encode a request frame into one newline-terminated line of JSON."""
    return json.dumps(request.to_dict(), ensure_ascii=False, separators=(",", ":")) + "\n"


def normalize_rpc_error(error: Any) -> RpcErrorPayload:
    """Normalize unknown error payloads into RpcErrorPayload."""
    row = safe_dict(error)
    code = row.get("code")
    if isinstance(code, bool) or not isinstance(code, int):
        try:
            code = int(code)
        except (TypeError, ValueError, OverflowError):
            code = ErrorCode.INTERNAL_ERROR
    message = row.get("message")
    if not isinstance(message, str) or not message:
        message = "rpc failed"
    return RpcErrorPayload(code=code, message=message, data=row.get("data"))


def decode_response_payload(payload: Any) -> ResponseEnvelope:
    """Decode a parsed JSON value into a ResponseEnvelope.

    Raises TransportDecodeError when the value is not a well-formed response:
    not an object, a foreign protocol tag, a missing or non-integer id, or
    neither ``result`` nor ``error`` present. When both are present the
    error is authoritative.
    """
    if not isinstance(payload, dict):
        raise TransportDecodeError("response is not a JSON object")
    for key in PROTOCOL_KEY_ALIASES:
        if key in payload and payload[key] != PROTOCOL_VERSION_TAG:
            raise TransportDecodeError(f"unsupported protocol tag: {payload[key]!r}")
    req_id = payload.get("id")
    if isinstance(req_id, bool) or not isinstance(req_id, int):
        raise TransportDecodeError(f"response id must be an integer, got {req_id!r}")
    if "error" in payload and payload["error"] is not None:
        return ResponseEnvelope(id=req_id, error=normalize_rpc_error(payload["error"]))
    if "result" not in payload:
        raise TransportDecodeError(f"response {req_id} carries neither result nor error")
    return ResponseEnvelope(id=req_id, result=payload["result"])


def decode_response_line(line: str) -> ResponseEnvelope:
    """Parse one framed line into a ResponseEnvelope."""
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as exc:
        raise TransportDecodeError(f"invalid JSON: {exc.msg}", line=line) from None
    except (ValueError, RecursionError) as exc:
        raise TransportDecodeError(f"invalid JSON: {type(exc).__name__}", line=line) from None
    try:
        return decode_response_payload(payload)
    except TransportDecodeError as exc:
        exc.line = line
        raise
