"""Models for execution attempt results."""

from dataclasses import dataclass

from simrun.models.status import ExitStatus


@dataclass(frozen=True, kw_only=True)
class AttemptResult:
    """Outcome of a single execution attempt.

    Progress booleans are kept next to the status so a stuck launch can be
    told apart from a hang when deciding whether to retry.
    """

    bundle: str
    status: ExitStatus
    duration: float
    application_launched: bool = False
    tests_started: bool = False
    message: str | None = None
