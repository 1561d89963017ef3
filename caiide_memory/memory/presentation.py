"""Display helpers shared by memory front-ends."""

from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import PurePath

from caiide_memory.memory.types import MemoryStats

_LANGUAGE_BY_EXTENSION: dict[str, str] = {
    "ts": "typescript",
    "tsx": "typescriptreact",
    "js": "javascript",
    "jsx": "javascriptreact",
    "py": "python",
    "rs": "rust",
    "go": "go",
    "swift": "swift",
    "md": "markdown",
    "json": "json",
    "yaml": "yaml",
    "yml": "yaml",
    "toml": "toml",
    "sh": "shellscript",
    "bash": "shellscript",
}

MEMORY_TYPES = ("code", "note", "reference", "conversation", "file")


def preview(text: str, width: int = 80) -> str:
    """Single-line preview truncated to ``width`` characters plus an ellipsis."""
    flat = " ".join(str(text).split())
    if len(flat) <= width:
        return flat
    return flat[:width] + "..."


def detect_language(source: str) -> str:
    suffix = PurePath(source or "").suffix.lstrip(".").lower()
    return _LANGUAGE_BY_EXTENSION.get(suffix, "plaintext")


def parse_tags(raw: str | None) -> list[str]:
    """Split a comma-separated tag string, dropping blanks."""
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def merge_tags(defaults: Iterable[str], extra: Iterable[str]) -> list[str]:
    """Combine tag lists keeping first-seen order without duplicates."""
    merged: list[str] = []
    for tag in [*defaults, *extra]:
        text = str(tag).strip()
        if text and text not in merged:
            merged.append(text)
    return merged


def stats_rows(stats: MemoryStats) -> list[tuple[str, str]]:
    rows = [("Total Documents", str(stats.total_documents))]
    for name, value in stats.components.items():
        if isinstance(value, (dict, list)):
            rendered = json.dumps(value, ensure_ascii=False, sort_keys=True)
        else:
            rendered = str(value)
        rows.append((str(name), rendered))
    return rows
