"""Concurrent draining of a child's output streams.

A child that fills one pipe's OS buffer blocks until someone reads it. If the
parent reads stdout to the end before touching stderr (or waits for exit
before reading either) a chatty child deadlocks both sides. Each stream
therefore gets its own reader thread that runs independently of waiting for
the process to exit.
"""

from __future__ import annotations

import os
import threading
from typing import IO

from procshell.execution.sinks import OutputSink
from procshell.util.logging import get_logger

DEFAULT_CHUNK_SIZE = 64 * 1024

_LOGGER = get_logger("procshell.execution.drainer")


class ChunkLedger:
    """Ordered mapping from per-stream sequence number to captured bytes.

    A sequence number is taken when a read starts and the bytes are recorded
    under it when the read returns. ``assemble`` orders by sequence number, so
    the result does not depend on the order in which reads were recorded.
    """

    def __init__(self) -> None:
        self._chunks: dict[int, bytes] = {}
        self._next_sequence = 0
        self._lock = threading.Lock()

    def reserve(self) -> int:
        """Return the next sequence number for this stream."""

        with self._lock:
            sequence = self._next_sequence
            self._next_sequence += 1
            return sequence

    def record(self, sequence: int, chunk: bytes) -> None:
        """Store ``chunk`` under a previously reserved sequence number."""

        if not chunk:
            return
        with self._lock:
            if sequence in self._chunks:
                raise ValueError(f"Sequence number {sequence} already recorded")
            self._chunks[sequence] = chunk

    def append(self, chunk: bytes) -> int:
        """Reserve a sequence number and record ``chunk`` under it."""

        sequence = self.reserve()
        self.record(sequence, chunk)
        return sequence

    def assemble(self) -> bytes:
        """Concatenate recorded chunks in sequence-number order."""

        with self._lock:
            return b"".join(self._chunks[key] for key in sorted(self._chunks))

    def __len__(self) -> int:
        with self._lock:
            return len(self._chunks)


class StreamDrainer:
    """Reads one stream to end-of-file on a background thread."""

    def __init__(
        self,
        name: str,
        stream: IO[bytes],
        sink: OutputSink | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        """Initialize the drainer.

        Args:
            name: Stream label used in thread names and logs.
            stream: Readable end of the pipe. Closed once drained.
            sink: Receives each chunk as it is read, or None to capture only.
            chunk_size: Maximum bytes requested per read.
        """

        self.name = name
        self._stream = stream
        self._sink = sink
        self._chunk_size = chunk_size
        self._ledger = ChunkLedger()
        self._read_error: OSError | None = None
        self._sink_error: Exception | None = None
        self._thread = threading.Thread(
            target=self._drain,
            name=f"procshell-drain-{name}",
            daemon=True,
        )

    def start(self) -> StreamDrainer:
        self._thread.start()
        return self

    def join(self, timeout: float | None = None) -> None:
        """Wait for end-of-file (or a read error) on the stream."""

        self._thread.join(timeout)

    @property
    def done(self) -> bool:
        return self._thread.ident is not None and not self._thread.is_alive()

    @property
    def read_error(self) -> OSError | None:
        return self._read_error

    @property
    def sink_error(self) -> Exception | None:
        return self._sink_error

    def captured(self) -> bytes:
        """Return everything read so far, in production order."""

        return self._ledger.assemble()

    def _drain(self) -> None:
        fd = self._stream.fileno()
        try:
            while True:
                sequence = self._ledger.reserve()
                try:
                    chunk = os.read(fd, self._chunk_size)
                except OSError as exc:
                    self._read_error = exc
                    _LOGGER.debug("Read error on %s: %s", self.name, exc)
                    break
                if not chunk:
                    break
                self._ledger.record(sequence, chunk)
                self._echo(chunk)
        finally:
            self._stream.close()

    def _echo(self, chunk: bytes) -> None:
        if self._sink is None:
            return
        try:
            self._sink.write(chunk)
        except Exception as exc:
            # Draining must continue or the child blocks on a full pipe.
            self._sink_error = exc
            self._sink = None
            _LOGGER.warning("Disabled %s echo after sink failure: %s", self.name, exc)
