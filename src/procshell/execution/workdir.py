"""Per-session working directory belief."""

from __future__ import annotations

import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


class WorkingDirectoryState:
    """The directory a session believes it is in.

    Every launched process gets its own working directory, so a ``cd`` run as a
    child process cannot affect later commands. The session records the
    directory here instead and hands it to every launch. The host process's
    own working directory is never changed.

    Reads happen under ``hold``; the only writer is the directory-change
    protocol in :class:`~procshell.execution.coordinator.ExecutionCoordinator`.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        initial = os.getcwd() if path is None else os.fspath(path)
        self._path = os.path.abspath(initial)
        self._lock = threading.RLock()

    @property
    def path(self) -> str:
        """Return the current directory."""

        with self._lock:
            return self._path

    @contextmanager
    def hold(self) -> Iterator[str]:
        """Hold the state for a read-then-launch critical section."""

        with self._lock:
            yield self._path

    def record(self, path: str) -> None:
        """Store a directory reported by the directory-change protocol."""

        with self._lock:
            self._path = path

    def __repr__(self) -> str:
        return f"WorkingDirectoryState({self.path!r})"
