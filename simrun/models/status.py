"""Exit status vocabulary for test execution attempts.

Every failure condition observed during an attempt is one bit of
:class:`ExitStatus`. Conditions are independent and accumulate by bitwise
union, so a single attempt may end with several of them set at once
(``APP_CRASHED | TEST_TIMEOUT`` when a crash is seen as the deadline
expires). The numeric value of a status is also the process exit code.

Bit assignments are published: downstream scripts test specific bits of the
exit code, so members must never be renumbered.
"""

from collections.abc import Mapping, Sequence
from enum import STRICT, IntFlag

class InvalidExitStatusError(ValueError):
    """Raised when a value carries bits outside the exit status vocabulary."""


class ExitStatus(IntFlag, boundary=STRICT):
    """Combinable outcome flags of one execution attempt."""

    ALL_PASSED = 0
    TESTS_FAILED = 1 << 0
    SIMULATOR_CREATION_FAILED = 1 << 1
    INSTALL_APP_FAILED = 1 << 2
    INTERRUPTED = 1 << 3
    SIMULATOR_CRASHED = 1 << 4
    LAUNCH_APP_FAILED = 1 << 5
    TEST_TIMEOUT = 1 << 6
    APP_CRASHED = 1 << 7
    SIMULATOR_DELETED = 1 << 8
    UNINSTALL_APP_FAILED = 1 << 9
    SIMULATOR_REUSE_FAILED = 1 << 10

    @property
    def flags(self) -> Sequence["ExitStatus"]:
        """Single-bit members set in this value, in ascending bit order."""
        return [flag for flag in FAILURE_FLAGS if self & flag]

    @property
    def passed(self) -> bool:
        """Whether no failure has been recorded."""
        return self == ExitStatus.ALL_PASSED

    @classmethod
    def _missing_(cls, value: object) -> "ExitStatus | None":
        if isinstance(value, int) and (value < 0 or value & ~VALID_BITS):
            raise InvalidExitStatusError(
                f"Exit status {value:#x} has bits outside {VALID_BITS:#x}"
            )
        return super()._missing_(value)


StatusLike = ExitStatus | int

FAILURE_FLAGS: Sequence[ExitStatus] = tuple(
    ExitStatus(1 << bit) for bit in range(11)
)

VALID_BITS = sum(FAILURE_FLAGS)

DESCRIPTIONS: Mapping[ExitStatus, str] = {
    ExitStatus.ALL_PASSED: "all tests passed",
    ExitStatus.TESTS_FAILED: "tests failed",
    ExitStatus.SIMULATOR_CREATION_FAILED: "simulator creation failed",
    ExitStatus.INSTALL_APP_FAILED: "app install failed",
    ExitStatus.INTERRUPTED: "interrupted",
    ExitStatus.SIMULATOR_CRASHED: "simulator crashed",
    ExitStatus.LAUNCH_APP_FAILED: "app launch failed",
    ExitStatus.TEST_TIMEOUT: "test timeout",
    ExitStatus.APP_CRASHED: "app crashed",
    ExitStatus.SIMULATOR_DELETED: "simulator deleted",
    ExitStatus.UNINSTALL_APP_FAILED: "app uninstall failed",
    ExitStatus.SIMULATOR_REUSE_FAILED: "simulator reuse failed",
}

# Most significant first: environment, then application, then tests.
PRIORITY: Sequence[ExitStatus] = (
    ExitStatus.SIMULATOR_CREATION_FAILED,
    ExitStatus.SIMULATOR_REUSE_FAILED,
    ExitStatus.SIMULATOR_CRASHED,
    ExitStatus.SIMULATOR_DELETED,
    ExitStatus.INTERRUPTED,
    ExitStatus.INSTALL_APP_FAILED,
    ExitStatus.LAUNCH_APP_FAILED,
    ExitStatus.APP_CRASHED,
    ExitStatus.TEST_TIMEOUT,
    ExitStatus.TESTS_FAILED,
    ExitStatus.UNINSTALL_APP_FAILED,
)


def coerce_exit_status(value: StatusLike) -> ExitStatus:
    """Convert an integer into an :class:`ExitStatus`.

    Raises:
        InvalidExitStatusError: If the value is not an integer, is negative,
            or sets bits outside the defined vocabulary

    """
    if isinstance(value, ExitStatus):
        return value
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidExitStatusError(f"Exit status must be an integer, got {value!r}")
    if value < 0 or value & ~VALID_BITS:
        raise InvalidExitStatusError(
            f"Exit status {value:#x} has bits outside {VALID_BITS:#x}"
        )
    return ExitStatus(value)


def combine(*statuses: StatusLike) -> ExitStatus:
    """Union every given status; ``ALL_PASSED`` when none are given."""
    result = ExitStatus.ALL_PASSED
    for status in statuses:
        result |= coerce_exit_status(status)
    return result


def has(value: StatusLike, flag: StatusLike) -> bool:
    """Check whether every bit of ``flag`` is set in ``value``.

    ``ALL_PASSED`` carries no bit, so it is never contained in anything;
    compare against it directly to test for success.
    """
    value = coerce_exit_status(value)
    flag = coerce_exit_status(flag)
    return flag != ExitStatus.ALL_PASSED and value & flag == flag


def string_from_exit_status(value: StatusLike) -> str:
    """Describe a status for logs, listing every set flag in bit order."""
    status = coerce_exit_status(value)
    if status.passed:
        return DESCRIPTIONS[ExitStatus.ALL_PASSED]
    return ", ".join(DESCRIPTIONS[flag] for flag in status.flags)


def primary_failure(value: StatusLike) -> ExitStatus:
    """Pick the most significant flag set in ``value``."""
    status = coerce_exit_status(value)
    for flag in PRIORITY:
        if status & flag:
            return flag
    return ExitStatus.ALL_PASSED
