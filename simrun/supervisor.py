"""Supervision of concurrent execution attempts."""

import asyncio
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from simrun.models.result import AttemptResult
from simrun.models.status import (
    ExitStatus,
    coerce_exit_status,
    combine,
    string_from_exit_status,
)
from simrun.observer import ExecutionObserver

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class RunSummary:
    """Results of every attempt in a run."""

    results: Sequence[AttemptResult]

    @property
    def status(self) -> ExitStatus:
        """Union of every attempt's status."""
        return combine(*(result.status for result in self.results))


@dataclass(frozen=True, kw_only=True)
class RunSupervisor:
    """Waits on execution observers and collects their outcomes."""

    timeout: float = 1800
    poll_interval: float = 1

    async def run(self, observers: Mapping[str, ExecutionObserver]) -> RunSummary:
        """Wait for every observed attempt to finish.

        Args:
            observers: Execution observers mapped by bundle name

        Returns:
            Summary with one result per observer, in the given order

        """
        if not observers:
            log.info("No execution attempts to supervise")
            return RunSummary(results=[])

        log.info("Waiting for %d execution attempt(s)...", len(observers))
        outcomes = await asyncio.gather(
            *(self._wait(observer) for observer in observers.values()),
            return_exceptions=True,
        )
        log.info("All execution attempts finished")

        results = [
            self._process_outcome(bundle, observer, outcome)
            for (bundle, observer), outcome in zip(
                observers.items(), outcomes, strict=True
            )
        ]
        summary = RunSummary(results=results)
        log.info("Run status: %s", string_from_exit_status(summary.status))
        return summary

    async def _wait(self, observer: ExecutionObserver) -> tuple[float, ExitStatus]:
        """Wait for one attempt and return how long it took and its status."""
        loop = asyncio.get_running_loop()
        started = loop.time()
        try:
            status = await observer.wait_for_completion(
                timeout=self.timeout, poll_interval=self.poll_interval
            )
        except Exception as e:
            raise _AttemptFailed(loop.time() - started, e) from e
        return loop.time() - started, status

    def _process_outcome(
        self,
        bundle: str,
        observer: ExecutionObserver,
        outcome: tuple[float, ExitStatus] | BaseException,
    ) -> AttemptResult:
        """Turn a finished wait, or the exception it raised, into a result."""
        final: ExitStatus | None = None
        if isinstance(outcome, _AttemptFailed):
            duration, error = outcome.duration, outcome.error
        elif isinstance(outcome, BaseException):
            duration, error = 0.0, outcome
        else:
            (duration, final), error = outcome, None

        snapshot = ExitStatus.ALL_PASSED
        launched = tests_started = False
        try:
            snapshot = coerce_exit_status(
                observer.exit_status() if final is None else final
            )
            launched = observer.is_application_launched()
            tests_started = observer.did_tests_start()
        except Exception as e:
            log.error("Could not read state of %s: %s", bundle, e, exc_info=e)
            error = error or e

        if error is None:
            status, message = snapshot, None
        elif isinstance(error, TimeoutError):
            log.warning("Execution attempt %s timed out: %s", bundle, error)
            status, message = snapshot | ExitStatus.TEST_TIMEOUT, str(error)
        else:
            log.error("Execution attempt %s failed: %s", bundle, error, exc_info=error)
            status, message = snapshot | ExitStatus.INTERRUPTED, str(error)

        log.info(
            "Attempt completed: bundle=%s status=%s duration=%.1fs",
            bundle,
            string_from_exit_status(status),
            duration,
        )
        return AttemptResult(
            bundle=bundle,
            status=status,
            duration=duration,
            application_launched=launched,
            tests_started=tests_started,
            message=message,
        )


class _AttemptFailed(Exception):
    """Carries the elapsed time of a wait that raised."""

    def __init__(self, duration: float, error: BaseException) -> None:
        super().__init__(str(error))
        self.duration = duration
        self.error = error
