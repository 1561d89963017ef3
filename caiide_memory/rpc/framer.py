"""Newline framing for the worker's stdout byte stream."""

from __future__ import annotations


class LineFramer:
    """Reassembles newline-delimited messages from arbitrary read chunks.

    Bytes after the last newline are kept and prefixed to the next chunk, so
    a message split across reads comes out whole and a read holding several
    messages yields them in order. Blank lines are dropped.
    """

    def __init__(self, encoding: str = "utf-8"):
        self._encoding = encoding
        self._buffer = bytearray()

    @property
    def pending_bytes(self) -> int:
        return len(self._buffer)

    def feed(self, data: bytes) -> list[str]:
        """Add a chunk and return every line it completes."""
        if not data:
            return []
        self._buffer.extend(data)
        end = self._buffer.rfind(b"\n")
        if end < 0:
            return []
        complete = bytes(self._buffer[: end + 1])
        del self._buffer[: end + 1]
        return self._split(complete)

    def flush(self) -> list[str]:
        """Return the unterminated remainder at end of stream."""
        if not self._buffer:
            return []
        rest = bytes(self._buffer)
        self._buffer.clear()
        return self._split(rest)

    def _split(self, data: bytes) -> list[str]:
        lines: list[str] = []
        for raw in data.split(b"\n"):
            text = raw.decode(self._encoding, errors="replace").rstrip("\r")
            if text.strip():
                lines.append(text)
        return lines
