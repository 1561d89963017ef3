"""Async RPC client for a long-lived worker process speaking line-delimited JSON over stdio."""

from __future__ import annotations

import asyncio
import os
import shlex
from dataclasses import dataclass
from enum import Enum
from typing import Any

from loguru import logger

from .errors import (
    ConnectionClosedError,
    HandshakeError,
    RemoteError,
    RequestTimeoutError,
    RpcClientError,
    SpawnError,
    TransportDecodeError,
    TransportError,
)
from .framer import LineFramer
from .protocol import RequestEnvelope, ResponseEnvelope
from .serialization import decode_response_line, encode_request_line

_READ_CHUNK_SIZE = 64 * 1024


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    READY = "ready"
    CLOSED = "closed"


@dataclass(slots=True)
class PendingRequest:
    """Bookkeeping for one request written to the worker and not yet answered."""

    id: int
    method: str
    future: asyncio.Future[Any]
    timeout: float
    deadline: float
    timer: asyncio.TimerHandle | None = None


class RpcClient:
    """Line-delimited JSON RPC client over a worker's stdin/stdout.

    One background task reads worker output and routes each response to the
    future registered under its id; any number of tasks may ``call``
    concurrently. Request ids keep increasing across reconnects.
    """

    def __init__(
        self,
        command: str,
        *,
        client_name: str = "caiide-memory",
        client_version: str = "0.1.0",
        protocol_version: str = "0.1.0",
        request_timeout: float = 30.0,
        handshake_timeout: float = 10.0,
        shutdown_timeout: float = 2.0,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
    ):
        self.command = (command or "").strip()
        self.client_name = client_name
        self.client_version = client_version
        self.protocol_version = protocol_version
        self.request_timeout = request_timeout
        self.handshake_timeout = handshake_timeout
        self.shutdown_timeout = shutdown_timeout
        self.cwd = cwd
        self.env = dict(env or {})
        self.server_capabilities: Any = None
        self._proc: asyncio.subprocess.Process | None = None
        self._state = ConnectionState.DISCONNECTED
        self._pending: dict[int, PendingRequest] = {}
        self._last_id = 0
        self._write_lock = asyncio.Lock()
        self._connect_lock = asyncio.Lock()
        self._reader_task: asyncio.Task[None] | None = None
        self._stderr_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        proc = self._proc
        return self._state is ConnectionState.READY and proc is not None and proc.returncode is None

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def pid(self) -> int | None:
        return self._proc.pid if self._proc else None

    @property
    def returncode(self) -> int | None:
        return self._proc.returncode if self._proc else None

    async def __aenter__(self) -> "RpcClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.disconnect()

    async def connect(self) -> None:
        """Spawn the worker and complete the ``initialize`` handshake.

        Raises:
            SpawnError: the command could not be launched.
            HandshakeError: ``initialize`` failed, timed out, or the worker
                exited before answering.
        """
        async with self._connect_lock:
            if self._state is ConnectionState.READY:
                return
            if self._proc is not None:
                await self._release()
            self._state = ConnectionState.CONNECTING
            await self._spawn()
            try:
                capabilities = await self._request(
                    "initialize",
                    self._handshake_params(),
                    timeout=self.handshake_timeout,
                )
            except RpcClientError as exc:
                await self._shutdown(f"handshake failed: {exc.message}")
                raise HandshakeError(f"initialize failed: {exc.message}", data={"cause": exc.code}) from exc
            if self._state is not ConnectionState.CONNECTING:
                await self._shutdown("worker exited during handshake")
                raise HandshakeError("worker exited during handshake")
            self.server_capabilities = capabilities
            self._state = ConnectionState.READY
            logger.info("Memory worker ready (pid={})", self.pid)

    async def call(self, method: str, params: Any = None, timeout: float | None = None) -> Any:
        """Send one request and wait for its result.

        Raises:
            TransportError: the client is not ready or the write failed.
            RemoteError: the worker answered with an error envelope.
            RequestTimeoutError: no answer before the deadline.
            ConnectionClosedError: the connection closed while waiting.
        """
        if self._state is not ConnectionState.READY:
            raise TransportError(f"cannot call {method}: client is {self._state.value}")
        return await self._request(
            method,
            params,
            timeout=self.request_timeout if timeout is None else timeout,
        )

    async def disconnect(self) -> None:
        """Stop the worker and fail every outstanding request."""
        if self._state is ConnectionState.DISCONNECTED and self._proc is None:
            return
        await self._shutdown("client disconnected")

    def _handshake_params(self) -> dict[str, Any]:
        return {
            "protocolVersion": self.protocol_version,
            "capabilities": {},
            "clientInfo": {"name": self.client_name, "version": self.client_version},
        }

    def _argv(self) -> list[str]:
        try:
            argv = shlex.split(self.command)
        except ValueError as exc:
            raise SpawnError(f"invalid worker command: {exc}", data={"command": self.command}) from exc
        if not argv:
            raise SpawnError("worker command is empty")
        return argv

    async def _spawn(self) -> None:
        env = None
        if self.env:
            env = os.environ.copy()
            env.update(self.env)
        try:
            argv = self._argv()
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self.cwd,
                env=env,
            )
        except SpawnError:
            self._state = ConnectionState.CLOSED
            raise
        except OSError as exc:
            self._state = ConnectionState.CLOSED
            raise SpawnError(f"cannot launch worker: {exc}", data={"command": self.command}) from exc
        logger.info("Spawned memory worker pid={}: {}", proc.pid, self.command)
        self._proc = proc
        self._reader_task = asyncio.create_task(self._read_loop(proc), name="memory-worker-reader")
        self._stderr_task = asyncio.create_task(self._drain_stderr(proc), name="memory-worker-stderr")

    async def _request(self, method: str, params: Any, *, timeout: float) -> Any:
        proc = self._proc
        if proc is None or proc.stdin is None:
            raise TransportError(f"cannot call {method}: worker is not running")
        loop = asyncio.get_running_loop()
        self._last_id += 1
        req_id = self._last_id
        line = encode_request_line(RequestEnvelope(id=req_id, method=method, params=params))
        future: asyncio.Future[Any] = loop.create_future()
        pending = PendingRequest(
            id=req_id,
            method=method,
            future=future,
            timeout=timeout,
            deadline=loop.time() + timeout,
        )
        pending.timer = loop.call_later(timeout, self._expire, req_id)
        self._pending[req_id] = pending
        try:
            try:
                await self._write(proc, line, future)
            except OSError as exc:
                if not future.done():
                    raise TransportError(f"failed to write {method}: {exc}", code="WRITE_FAILED") from exc
            return await future
        finally:
            self._discard(req_id)

    async def _write(self, proc: asyncio.subprocess.Process, line: str, future: asyncio.Future[Any]) -> None:
        async with self._write_lock:
            # Expired or failed while queued behind earlier writes.
            if future.done():
                return
            assert proc.stdin is not None
            proc.stdin.write(line.encode("utf-8"))
            await proc.stdin.drain()

    def _expire(self, req_id: int) -> None:
        pending = self._pending.pop(req_id, None)
        if pending is None or pending.future.done():
            return
        logger.warning("Memory worker request {} ({}) timed out after {:g}s", req_id, pending.method, pending.timeout)
        pending.future.set_exception(RequestTimeoutError(pending.method, pending.timeout))

    def _discard(self, req_id: int) -> None:
        pending = self._pending.pop(req_id, None)
        if pending is None:
            return
        if pending.timer is not None:
            pending.timer.cancel()
        if not pending.future.done():
            pending.future.cancel()

    def _dispatch_line(self, line: str) -> None:
        try:
            response = decode_response_line(line)
        except TransportDecodeError as exc:
            logger.warning("Memory worker sent a malformed line ({}): {}", exc.message, line[:200])
            return
        self._route(response)

    def _route(self, response: ResponseEnvelope) -> None:
        pending = self._pending.pop(response.id, None)
        if pending is None:
            logger.debug("Discarding response for unknown request id {}", response.id)
            return
        if pending.timer is not None:
            pending.timer.cancel()
        if pending.future.done():
            return
        if response.error is not None:
            pending.future.set_exception(
                RemoteError(response.error.code, response.error.message, response.error.data)
            )
        else:
            pending.future.set_result(response.result)

    async def _read_loop(self, proc: asyncio.subprocess.Process) -> None:
        assert proc.stdout is not None
        framer = LineFramer()
        failure: Exception | None = None
        try:
            while True:
                chunk = await proc.stdout.read(_READ_CHUNK_SIZE)
                if not chunk:
                    break
                for line in framer.feed(chunk):
                    self._dispatch_line(line)
            for line in framer.flush():
                self._dispatch_line(line)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.exception("Memory worker reader failed")
            failure = exc
        if self._proc is not proc:
            return
        if failure is not None:
            # The worker may still be running; disconnect() reaps it.
            self._mark_closed(f"reader failed: {failure}")
            return
        self._mark_closed("worker process exited")
        returncode = await proc.wait()
        logger.info("Memory worker exited with code {}", returncode)

    async def _drain_stderr(self, proc: asyncio.subprocess.Process) -> None:
        assert proc.stderr is not None
        while True:
            try:
                raw = await proc.stderr.readline()
            except ValueError:
                logger.debug("[memory-worker] stderr line exceeded buffer limit, dropped")
                continue
            if not raw:
                return
            text = raw.decode("utf-8", errors="replace").strip()
            if text:
                logger.debug("[memory-worker] {}", text)

    def _mark_closed(self, reason: str) -> None:
        if self._state is not ConnectionState.CLOSED:
            logger.info("Memory worker connection closed: {}", reason)
            self._state = ConnectionState.CLOSED
        pending, self._pending = self._pending, {}
        for entry in pending.values():
            if entry.timer is not None:
                entry.timer.cancel()
            if not entry.future.done():
                entry.future.set_exception(ConnectionClosedError(reason))

    async def _shutdown(self, reason: str) -> None:
        self._mark_closed(reason)
        await self._release()

    async def _release(self) -> None:
        proc, self._proc = self._proc, None
        tasks = [task for task in (self._reader_task, self._stderr_task) if task is not None]
        self._reader_task = None
        self._stderr_task = None
        if proc is not None:
            await self._terminate(proc)
        current = asyncio.current_task()
        tasks = [task for task in tasks if task is not current]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _terminate(self, proc: asyncio.subprocess.Process) -> None:
        if proc.stdin is not None and not proc.stdin.is_closing():
            proc.stdin.close()
        if proc.returncode is not None:
            return
        try:
            proc.terminate()
        except ProcessLookupError:
            return
        try:
            await asyncio.wait_for(proc.wait(), timeout=self.shutdown_timeout)
        except asyncio.TimeoutError:
            logger.warning("Memory worker pid={} ignored terminate, killing", proc.pid)
            try:
                proc.kill()
            except ProcessLookupError:
                return
            await proc.wait()
