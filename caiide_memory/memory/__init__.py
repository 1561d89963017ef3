"""Typed memory client built on the worker RPC transport."""

from caiide_memory.memory.client import MemoryClient
from caiide_memory.memory.types import MemoryEntry, MemoryStats

__all__ = ["MemoryClient", "MemoryEntry", "MemoryStats"]
