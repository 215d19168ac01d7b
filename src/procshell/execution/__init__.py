"""Process execution engine."""

from procshell.execution.base import (
    EXIT_CODE_LAUNCH_FAILED,
    EXIT_CODE_NOT_FOUND,
    ExecutionError,
    ExecutionOutcome,
    ExecutionTimedOut,
    Failure,
    LaunchFailed,
    NonZeroExit,
    ResolutionFailed,
    Success,
)
from procshell.execution.coordinator import ExecutionCoordinator
from procshell.execution.drainer import ChunkLedger, StreamDrainer
from procshell.execution.launcher import LaunchedProcess, ProcessLauncher
from procshell.execution.resolver import PathResolver
from procshell.execution.sinks import (
    BufferSink,
    DiscardSink,
    OutputSink,
    StandardErrorSink,
    StandardOutputSink,
)
from procshell.execution.workdir import WorkingDirectoryState

__all__ = [
    "EXIT_CODE_LAUNCH_FAILED",
    "EXIT_CODE_NOT_FOUND",
    "BufferSink",
    "ChunkLedger",
    "DiscardSink",
    "ExecutionCoordinator",
    "ExecutionError",
    "ExecutionOutcome",
    "ExecutionTimedOut",
    "Failure",
    "LaunchFailed",
    "LaunchedProcess",
    "NonZeroExit",
    "OutputSink",
    "PathResolver",
    "ProcessLauncher",
    "ResolutionFailed",
    "StandardErrorSink",
    "StandardOutputSink",
    "StreamDrainer",
    "Success",
    "WorkingDirectoryState",
]
