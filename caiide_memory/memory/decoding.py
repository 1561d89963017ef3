"""Defensive decoding of memory worker results.

Workers answer either with the structured value itself or with a tool-result
envelope ``{"content": [{"text": "<json>"}]}`` whose first text block holds
the JSON-encoded value. Worker output is untrusted, so shapes are checked
field by field instead of assumed.
"""

from __future__ import annotations

import json
from typing import Any

from caiide_memory.memory.types import MemoryEntry, MemoryStats
from caiide_memory.rpc.serialization import safe_dict


def is_tool_envelope(result: Any) -> bool:
    return isinstance(result, dict) and isinstance(result.get("content"), list)


def tool_text(result: Any) -> str | None:
    """Return the first text block of a tool-result envelope, if any."""
    if not is_tool_envelope(result):
        return None
    blocks = result["content"]
    if not blocks:
        return None
    text = safe_dict(blocks[0]).get("text")
    return text if isinstance(text, str) and text else None


def decode_payload(result: Any) -> Any:
    """Unwrap a method result into its structured value.

    Raises:
        ValueError: the envelope text is not valid JSON.
    """
    if is_tool_envelope(result):
        text = tool_text(result)
        if text is None:
            return None
        try:
            return json.loads(text)
        except RecursionError:
            raise ValueError("envelope text is nested too deeply") from None
    return result


def _optional_str(value: Any) -> str | None:
    return str(value) if value is not None else None


def decode_entry(value: Any) -> MemoryEntry | None:
    row = safe_dict(value)
    if not row:
        return None
    relevance = row.get("relevance")
    if isinstance(relevance, bool) or not isinstance(relevance, (int, float)):
        relevance = None
    else:
        try:
            relevance = float(relevance)
        except OverflowError:
            relevance = None
    tags = row.get("tags")
    return MemoryEntry(
        id=str(row.get("id") or ""),
        content=str(row.get("content") or ""),
        doc_type=str(row.get("doc_type") or ""),
        source=str(row.get("source") or ""),
        relevance=relevance,
        tags=[str(tag) for tag in tags] if isinstance(tags, list) else [],
        created_at=_optional_str(row.get("created_at")),
    )


def decode_entries(value: Any) -> list[MemoryEntry]:
    if not isinstance(value, list):
        return []
    entries = (decode_entry(item) for item in value)
    return [entry for entry in entries if entry is not None]


def decode_stats(value: Any) -> MemoryStats:
    """Decode a stats payload; ``None`` yields empty stats.

    Raises:
        ValueError: the payload is present but not a stats object.
    """
    if value is None:
        return MemoryStats()
    if not isinstance(value, dict):
        raise ValueError(f"expected an object, got {type(value).__name__}")
    total = value.get("total_documents", 0)
    try:
        total = int(total or 0)
    except (TypeError, ValueError, OverflowError):
        raise ValueError(f"total_documents is not a number: {total!r}") from None
    return MemoryStats(total_documents=total, components=safe_dict(value.get("components")))


def decode_store_id(result: Any) -> str:
    """Extract the new entry id from a ``memory_store`` result."""
    if isinstance(result, str):
        return result.strip()
    text = tool_text(result)
    if text is None:
        return str(safe_dict(result).get("id") or "")
    try:
        parsed = json.loads(text)
    except (ValueError, RecursionError):
        return text.strip()
    if isinstance(parsed, dict) and parsed.get("id") is not None:
        return str(parsed["id"])
    if isinstance(parsed, (str, int)) and not isinstance(parsed, bool):
        return str(parsed)
    return text.strip()
