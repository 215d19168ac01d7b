"""Output sinks that receive live chunks from a running process."""

from __future__ import annotations

import sys
import threading
from abc import ABC, abstractmethod
from typing import TextIO


class OutputSink(ABC):
    """Accepts chunks of bytes produced by a running process.

    ``write`` is called from a drain thread, once per chunk, in the order the
    chunks were read from the stream. No guarantee is made that a chunk ends
    on a line or character boundary.
    """

    @abstractmethod
    def write(self, chunk: bytes) -> None:
        """Handle one chunk of process output."""


class DiscardSink(OutputSink):
    """Sink that drops everything."""

    def write(self, chunk: bytes) -> None:
        """Drop the chunk."""


class _StreamSink(OutputSink):
    @abstractmethod
    def _stream(self) -> TextIO:
        """Return the text stream to forward chunks to."""

    def write(self, chunk: bytes) -> None:
        stream = self._stream()
        buffer = getattr(stream, "buffer", None)
        if buffer is None:
            encoding = getattr(stream, "encoding", None) or "utf-8"
            stream.write(chunk.decode(encoding, errors="replace"))
            stream.flush()
            return
        stream.flush()
        buffer.write(chunk)
        buffer.flush()


class StandardOutputSink(_StreamSink):
    """Forward chunks to the host process's standard output."""

    def _stream(self) -> TextIO:
        # Looked up per write so that a redirected or captured sys.stdout is honoured.
        return sys.stdout


class StandardErrorSink(_StreamSink):
    """Forward chunks to the host process's standard error."""

    def _stream(self) -> TextIO:
        return sys.stderr


class BufferSink(OutputSink):
    """Collect chunks in memory, e.g. for logging or tests."""

    def __init__(self) -> None:
        self._chunks: list[bytes] = []
        self._lock = threading.Lock()

    def write(self, chunk: bytes) -> None:
        with self._lock:
            self._chunks.append(chunk)

    @property
    def chunks(self) -> list[bytes]:
        """Return a copy of the chunks received so far."""

        with self._lock:
            return list(self._chunks)

    def getvalue(self) -> bytes:
        """Return all received bytes joined together."""

        with self._lock:
            return b"".join(self._chunks)

    def text(self, encoding: str = "utf-8") -> str:
        """Return the received bytes decoded as text."""

        return self.getvalue().decode(encoding, errors="replace")
