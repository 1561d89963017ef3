"""Typed memory operations over the worker RPC client."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from loguru import logger

from caiide_memory.memory.decoding import (
    decode_entries,
    decode_entry,
    decode_payload,
    decode_stats,
    decode_store_id,
)
from caiide_memory.memory.types import MemoryEntry, MemoryStats
from caiide_memory.rpc.client import ConnectionState, RpcClient
from caiide_memory.rpc.errors import ResultDecodeError

if TYPE_CHECKING:
    from caiide_memory.config.schema import Config


class MemoryClient(RpcClient):
    """Memory search/store/recall surface of the worker.

    ``search``, ``list`` and ``recall`` never fail on an undecodable result
    payload (they return ``[]`` / ``None``); transport, timeout and remote
    errors still propagate from every method.

    With ``auto_connect`` the first typed call connects a client that has
    never been connected. A closed client is not reconnected.
    """

    def __init__(
        self,
        command: str,
        *,
        tool_call_method: str | None = None,
        auto_connect: bool = False,
        **kwargs: Any,
    ):
        super().__init__(command, **kwargs)
        self.tool_call_method = (tool_call_method or "").strip() or None
        self.auto_connect = auto_connect

    @classmethod
    def from_config(cls, config: "Config", *, command: str | None = None) -> "MemoryClient":
        worker = config.worker
        return cls(
            command or worker.command,
            tool_call_method=worker.tool_call_method,
            auto_connect=config.auto_connect,
            client_name=config.client.name,
            client_version=config.client.version,
            protocol_version=config.client.protocol_version,
            request_timeout=worker.request_timeout_seconds,
            handshake_timeout=worker.handshake_timeout_seconds,
            shutdown_timeout=worker.shutdown_timeout_seconds,
            cwd=worker.cwd,
            env=worker.env,
        )

    async def _invoke(self, method: str, arguments: dict[str, Any]) -> Any:
        if self.auto_connect and self.state is ConnectionState.DISCONNECTED:
            await self.connect()
        if self.tool_call_method:
            return await self.call(self.tool_call_method, {"name": method, "arguments": arguments})
        return await self.call(method, arguments)

    def _payload_or_none(self, method: str, result: Any) -> Any:
        try:
            return decode_payload(result)
        except ValueError as exc:
            logger.warning("Ignoring undecodable {} result: {}", method, exc)
            return None

    async def search(self, query: str, limit: int = 20) -> list[MemoryEntry]:
        result = await self._invoke("memory_search", {"query": query, "limit": limit})
        return decode_entries(self._payload_or_none("memory_search", result))

    async def store(
        self,
        content: str,
        doc_type: str,
        source: str,
        tags: Iterable[str] = (),
    ) -> str:
        """Store a memory and return the worker-assigned id ("" if none)."""
        result = await self._invoke(
            "memory_store",
            {
                "content": content,
                "type": doc_type,
                "source": source,
                "tags": [str(tag) for tag in tags],
            },
        )
        return decode_store_id(result)

    async def recall(self, memory_id: str) -> MemoryEntry | None:
        result = await self._invoke("memory_recall", {"id": memory_id})
        return decode_entry(self._payload_or_none("memory_recall", result))

    async def list(self, limit: int = 20) -> list[MemoryEntry]:
        result = await self._invoke("memory_list", {"limit": limit})
        return decode_entries(self._payload_or_none("memory_list", result))

    async def get_stats(self) -> MemoryStats:
        result = await self._invoke("memory_stats", {})
        try:
            return decode_stats(decode_payload(result))
        except ValueError as exc:
            raise ResultDecodeError("memory_stats", str(exc)) from exc

    async def delete(self, memory_id: str) -> None:
        await self._invoke("memory_delete", {"id": memory_id})
