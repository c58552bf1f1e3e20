"""Reporting of run results to logs and JSON output."""

import logging
from collections.abc import Sequence
from typing import Any

from simrun.models.result import AttemptResult
from simrun.models.status import (
    ExitStatus,
    StatusLike,
    coerce_exit_status,
    primary_failure,
    string_from_exit_status,
)
from simrun.supervisor import RunSummary

log = logging.getLogger(__name__)

MAX_PROCESS_EXIT_CODE = 0xFF

STATUS_SYMBOLS = {
    ExitStatus.ALL_PASSED: "✅",
    ExitStatus.TESTS_FAILED: "❌",
    ExitStatus.TEST_TIMEOUT: "⏱️",
    ExitStatus.APP_CRASHED: "💥",
    ExitStatus.SIMULATOR_CRASHED: "💥",
    ExitStatus.INTERRUPTED: "⛔",
}
ERROR_SYMBOL = "❗"


def log_results_summary(
    logger: logging.Logger, results: Sequence[AttemptResult]
) -> None:
    """Log a formatted summary of attempt results and the overall status."""
    logger.info("=" * 80)
    logger.info("Test Results Summary:")
    logger.info("=" * 80)

    for result in results:
        symbol = STATUS_SYMBOLS.get(primary_failure(result.status), ERROR_SYMBOL)
        logger.info(
            "%s %s: %s (%.2fs)",
            symbol,
            result.bundle,
            string_from_exit_status(result.status),
            result.duration,
        )
        if result.message:
            logger.info("  Message: %s", result.message)

    overall = RunSummary(results=results).status
    logger.info(
        "Overall: %s (exit code %d)", string_from_exit_status(overall), overall
    )


def format_output(summary: RunSummary) -> dict[str, Any]:
    """Format a run summary for JSON output."""
    all_results: list[dict[str, Any]] = [
        {
            "bundle": result.bundle,
            "status": string_from_exit_status(result.status),
            "exit_status": int(result.status),
            "duration": result.duration,
            "message": result.message,
        }
        for result in summary.results
    ]

    return {
        "total": len(all_results),
        "passed": sum(1 for r in all_results if r["exit_status"] == 0),
        "failed": sum(1 for r in all_results if r["exit_status"] != 0),
        "status": string_from_exit_status(summary.status),
        "exit_status": int(summary.status),
        "results": all_results,
    }


def exit_code(status: StatusLike) -> int:
    """Return the process exit code for a status: its numeric value.

    Bits above the lowest eight are kept, but a POSIX parent only sees the
    low byte of the code, so a warning is logged when they are set.
    """
    status = coerce_exit_status(status)
    if status > MAX_PROCESS_EXIT_CODE:
        log.warning(
            "Exit status %#x exceeds %#x; the process exit code will be truncated "
            "to %d (%s is lost)",
            status,
            MAX_PROCESS_EXIT_CODE,
            status & MAX_PROCESS_EXIT_CODE,
            string_from_exit_status(status & ~MAX_PROCESS_EXIT_CODE),
        )
    return int(status)
