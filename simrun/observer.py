"""Execution progress observation for a single test execution attempt."""

import asyncio
import logging
import threading
from abc import ABC, abstractmethod

from simrun.models.status import (
    ExitStatus,
    StatusLike,
    combine,
    string_from_exit_status,
)

log = logging.getLogger(__name__)


class ExecutionOrderError(RuntimeError):
    """Raised when a tracker is updated out of milestone order."""


class ExecutionObserver(ABC):
    """Read-only view over the progress of one execution attempt.

    The three milestones are independent observations rather than a single
    state: an attempt can be launched but never start its tests (stuck
    launch), or start its tests and never complete (hang), and callers need
    to tell these apart. Each milestone only ever goes from false to true.
    """

    @abstractmethod
    def is_execution_complete(self) -> bool:
        """Whether the attempt has reached a terminal state."""

    @abstractmethod
    def is_application_launched(self) -> bool:
        """Whether the application under test was observed starting."""

    @abstractmethod
    def did_tests_start(self) -> bool:
        """Whether the harness began executing at least one test case."""

    @abstractmethod
    def exit_status(self) -> ExitStatus:
        """Return every failure flag recorded so far.

        Only a final verdict once :meth:`is_execution_complete` is true;
        earlier calls return an in-progress snapshot.
        """

    async def wait_for_completion(
        self,
        timeout: float = 1800,
        poll_interval: float = 1,
    ) -> ExitStatus:
        """Wait for the attempt to complete.

        Args:
            timeout: Maximum wait time in seconds (default: 30 minutes)
            poll_interval: Seconds between polls (default: 1)

        Returns:
            The final exit status

        Raises:
            TimeoutError: If the attempt doesn't complete within timeout

        """
        deadline = asyncio.get_running_loop().time() + timeout

        while True:
            if self.is_execution_complete():
                return self.exit_status()

            if asyncio.get_running_loop().time() >= deadline:
                raise TimeoutError(
                    f"Execution did not complete within {timeout} seconds"
                )

            await asyncio.sleep(poll_interval)


class ExecutionTracker(ExecutionObserver):
    """Thread-safe tracker recording the progress of one attempt.

    Failure flags accumulate and are never cleared. The application must be
    launched before tests can start, and nothing may be recorded once the
    attempt is complete.
    """

    def __init__(self, name: str = "attempt") -> None:
        self.name = name
        self._lock = threading.Lock()
        self._complete = False
        self._launched = False
        self._tests_started = False
        self._status = ExitStatus.ALL_PASSED

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"

    def is_execution_complete(self) -> bool:
        with self._lock:
            return self._complete

    def is_application_launched(self) -> bool:
        with self._lock:
            return self._launched

    def did_tests_start(self) -> bool:
        with self._lock:
            return self._tests_started

    def exit_status(self) -> ExitStatus:
        with self._lock:
            return self._status

    def record_application_launched(self) -> None:
        """Mark the application under test as launched."""
        with self._lock:
            self._ensure_running("record application launch")
            self._launched = True
        log.info("%s: application launched", self.name)

    def record_tests_started(self) -> None:
        """Mark the first test case as started."""
        with self._lock:
            self._ensure_running("record tests started")
            if not self._launched:
                raise ExecutionOrderError(
                    f"{self.name}: tests cannot start before the application launches"
                )
            self._tests_started = True
        log.info("%s: tests started", self.name)

    def record(self, *flags: StatusLike) -> ExitStatus:
        """Union failure flags into the status and return the new snapshot."""
        added = combine(*flags)
        with self._lock:
            self._ensure_running("record a failure")
            self._status |= added
            status = self._status
        if added:
            log.warning("%s: recorded %s", self.name, string_from_exit_status(added))
        return status

    def complete(self, *flags: StatusLike) -> ExitStatus:
        """Record any final flags and move the attempt to its terminal state."""
        added = combine(*flags)
        with self._lock:
            self._ensure_running("complete")
            self._status |= added
            self._complete = True
            status = self._status
        log.info(
            "%s: execution complete (%s)", self.name, string_from_exit_status(status)
        )
        return status

    def _ensure_running(self, action: str) -> None:
        if self._complete:
            raise ExecutionOrderError(
                f"{self.name}: cannot {action} after execution completed"
            )
