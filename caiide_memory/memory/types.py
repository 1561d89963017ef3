"""Result types returned by the memory worker."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class MemoryEntry:
    """One stored memory as returned by search, list and recall."""

    id: str
    content: str
    doc_type: str
    source: str
    relevance: float | None = None
    tags: list[str] = field(default_factory=list)
    created_at: str | None = None


@dataclass(slots=True)
class MemoryStats:
    """Aggregate counters reported by ``memory_stats``."""

    total_documents: int = 0
    components: dict[str, Any] = field(default_factory=dict)
