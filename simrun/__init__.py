"""Outcome classification for parallel simulator test runs."""

from simrun.models.status import (
    ExitStatus,
    InvalidExitStatusError,
    combine,
    has,
    string_from_exit_status,
)
from simrun.observer import ExecutionObserver, ExecutionTracker

__all__ = [
    "ExecutionObserver",
    "ExecutionTracker",
    "ExitStatus",
    "InvalidExitStatusError",
    "combine",
    "has",
    "string_from_exit_status",
]
