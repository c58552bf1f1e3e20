"""Tests for the exit status vocabulary."""

import random
from functools import reduce
from itertools import combinations

import pytest

from simrun.models.status import (
    FAILURE_FLAGS,
    ExitStatus,
    InvalidExitStatusError,
    coerce_exit_status,
    combine,
    has,
    primary_failure,
    string_from_exit_status,
)

ALL_MEMBERS = [ExitStatus.ALL_PASSED, *FAILURE_FLAGS]


def _random_subset(rng: random.Random) -> ExitStatus:
    return combine(*rng.sample(FAILURE_FLAGS, rng.randint(0, len(FAILURE_FLAGS))))


def test_bit_assignments_are_stable() -> None:
    """Published bit values never change."""
    assert {flag.name: int(flag) for flag in ALL_MEMBERS} == {
        "ALL_PASSED": 0,
        "TESTS_FAILED": 1,
        "SIMULATOR_CREATION_FAILED": 2,
        "INSTALL_APP_FAILED": 4,
        "INTERRUPTED": 8,
        "SIMULATOR_CRASHED": 16,
        "LAUNCH_APP_FAILED": 32,
        "TEST_TIMEOUT": 64,
        "APP_CRASHED": 128,
        "SIMULATOR_DELETED": 256,
        "UNINSTALL_APP_FAILED": 512,
        "SIMULATOR_REUSE_FAILED": 1024,
    }


class TestCombine:
    """Tests for combine."""

    @pytest.mark.parametrize("flag", FAILURE_FLAGS)
    def test_all_passed_is_identity(self, flag: ExitStatus) -> None:
        """Combining with ALL_PASSED leaves a flag unchanged."""
        assert combine(flag, ExitStatus.ALL_PASSED) == flag
        assert combine(ExitStatus.ALL_PASSED, flag) == flag

    @pytest.mark.parametrize("flag", FAILURE_FLAGS)
    def test_idempotent(self, flag: ExitStatus) -> None:
        """Combining a flag with itself yields the flag."""
        assert combine(flag, flag) == flag

    @pytest.mark.parametrize(("a", "b"), list(combinations(FAILURE_FLAGS, 2)))
    def test_keeps_both_flags(self, a: ExitStatus, b: ExitStatus) -> None:
        """Both constituents are set in the union."""
        combined = combine(a, b)

        assert has(combined, a)
        assert has(combined, b)

    def test_commutative_and_associative(self) -> None:
        """Union order and grouping never matter."""
        rng = random.Random(1024)
        for _ in range(200):
            a, b, c = (_random_subset(rng) for _ in range(3))

            assert combine(a, b) == combine(b, a)
            assert combine(combine(a, b), c) == combine(a, combine(b, c))
            assert combine(a, b, c) == reduce(combine, [a, b, c])

    def test_no_arguments_is_all_passed(self) -> None:
        """Empty union is success."""
        assert combine() is ExitStatus.ALL_PASSED

    def test_accepts_plain_integers(self) -> None:
        """Integers within the vocabulary are coerced."""
        result = combine(1, 128)

        assert result == ExitStatus.TESTS_FAILED | ExitStatus.APP_CRASHED
        assert isinstance(result, ExitStatus)

    def test_returns_exit_status(self) -> None:
        """Result stays within the flag type."""
        assert isinstance(combine(ExitStatus.APP_CRASHED), ExitStatus)


class TestHas:
    """Tests for has."""

    @pytest.mark.parametrize("flag", FAILURE_FLAGS)
    def test_single_flag(self, flag: ExitStatus) -> None:
        """A flag contains itself and no other flag."""
        assert has(flag, flag)
        assert not any(has(flag, other) for other in FAILURE_FLAGS if other != flag)

    def test_all_passed_has_no_flag(self) -> None:
        """ALL_PASSED is the only value with no failure flag set."""
        assert not any(has(ExitStatus.ALL_PASSED, flag) for flag in FAILURE_FLAGS)

    def test_every_other_value_has_a_flag(self) -> None:
        """Every nonzero value reports at least one failure flag."""
        for value in range(1, 1 << len(FAILURE_FLAGS)):
            assert any(has(value, flag) for flag in FAILURE_FLAGS)

    def test_all_passed_is_never_contained(self) -> None:
        """ALL_PASSED carries no bit to test for."""
        assert not has(ExitStatus.ALL_PASSED, ExitStatus.ALL_PASSED)
        assert not has(ExitStatus.APP_CRASHED, ExitStatus.ALL_PASSED)

    def test_composite_flag_requires_every_bit(self) -> None:
        """A multi-bit flag is contained only when all its bits are set."""
        crash_and_timeout = ExitStatus.APP_CRASHED | ExitStatus.TEST_TIMEOUT

        assert has(crash_and_timeout | ExitStatus.TESTS_FAILED, crash_and_timeout)
        assert not has(ExitStatus.APP_CRASHED, crash_and_timeout)


class TestInvalidValues:
    """Out-of-vocabulary values are rejected everywhere."""

    @pytest.mark.parametrize("value", [1 << 11, 2048 | 1, -1, 1 << 31])
    def test_coerce_rejects_unknown_bits(self, value: int) -> None:
        """Bits outside the vocabulary raise."""
        with pytest.raises(InvalidExitStatusError):
            coerce_exit_status(value)

    @pytest.mark.parametrize("value", ["1", 1.0, None, True])
    def test_coerce_rejects_non_integers(self, value: object) -> None:
        """Only integers are exit statuses."""
        with pytest.raises(InvalidExitStatusError, match="must be an integer"):
            coerce_exit_status(value)  # type: ignore[arg-type]

    def test_is_value_error(self) -> None:
        """Callers can catch the error as a ValueError."""
        assert issubclass(InvalidExitStatusError, ValueError)

    def test_combine_rejects(self) -> None:
        """combine applies the same policy."""
        with pytest.raises(InvalidExitStatusError):
            combine(ExitStatus.APP_CRASHED, 4096)

    def test_has_rejects(self) -> None:
        """has applies the same policy."""
        with pytest.raises(InvalidExitStatusError):
            has(4096, ExitStatus.APP_CRASHED)

    def test_formatter_rejects(self) -> None:
        """The formatter applies the same policy."""
        with pytest.raises(InvalidExitStatusError, match="outside"):
            string_from_exit_status(1 << 12)

    def test_constructor_rejects(self) -> None:
        """The flag type itself refuses unknown bits."""
        with pytest.raises(InvalidExitStatusError, match="outside"):
            ExitStatus(1 << 11)
        with pytest.raises(InvalidExitStatusError):
            ExitStatus(-1)

    def test_operators_reject(self) -> None:
        """Bitwise operators with unknown bits raise the same error."""
        with pytest.raises(InvalidExitStatusError):
            ExitStatus.APP_CRASHED | 4096
        with pytest.raises(InvalidExitStatusError):
            4096 | ExitStatus.APP_CRASHED

    def test_constructor_accepts_combined_values(self) -> None:
        """Any union of known bits is still a valid status."""
        assert ExitStatus(129) == ExitStatus.APP_CRASHED | ExitStatus.TESTS_FAILED


class TestStringFromExitStatus:
    """Tests for string_from_exit_status."""

    def test_total_and_distinct(self) -> None:
        """Every named value renders to non-empty, distinct text."""
        rendered = [string_from_exit_status(flag) for flag in ALL_MEMBERS]

        assert all(rendered)
        assert len(set(rendered)) == len(ALL_MEMBERS)

    def test_all_passed(self) -> None:
        """Success renders distinctly from any failure."""
        assert string_from_exit_status(ExitStatus.ALL_PASSED) == "all tests passed"
        assert string_from_exit_status(0) == "all tests passed"

    def test_crash_and_timeout_mentions_both(self) -> None:
        """A combined value mentions every constituent flag."""
        text = string_from_exit_status(
            combine(ExitStatus.APP_CRASHED, ExitStatus.TEST_TIMEOUT)
        )

        assert "crashed" in text
        assert "timeout" in text
        assert text == "test timeout, app crashed"

    def test_combined_value_lists_every_flag(self) -> None:
        """Each set flag's description appears in bit order."""
        rng = random.Random(7)
        for _ in range(50):
            value = _random_subset(rng)
            if value.passed:
                continue
            parts = string_from_exit_status(value).split(", ")

            assert parts == [string_from_exit_status(flag) for flag in value.flags]

    def test_deterministic(self) -> None:
        """Rendering the same value twice gives the same text."""
        value = ExitStatus.SIMULATOR_CRASHED | ExitStatus.TESTS_FAILED

        assert string_from_exit_status(value) == string_from_exit_status(value)


class TestPrimaryFailure:
    """Tests for primary_failure."""

    def test_all_passed(self) -> None:
        """No failure picks ALL_PASSED."""
        assert primary_failure(ExitStatus.ALL_PASSED) is ExitStatus.ALL_PASSED

    @pytest.mark.parametrize("flag", FAILURE_FLAGS)
    def test_single_flag(self, flag: ExitStatus) -> None:
        """A single flag is its own primary failure."""
        assert primary_failure(flag) is flag

    def test_environment_outranks_tests(self) -> None:
        """Simulator failures are reported before test failures."""
        value = ExitStatus.TESTS_FAILED | ExitStatus.SIMULATOR_CRASHED

        assert primary_failure(value) is ExitStatus.SIMULATOR_CRASHED

    def test_crash_outranks_timeout(self) -> None:
        """An app crash is reported before the timeout it caused."""
        value = ExitStatus.TEST_TIMEOUT | ExitStatus.APP_CRASHED

        assert primary_failure(value) is ExitStatus.APP_CRASHED


def test_flags_property_orders_by_bit() -> None:
    """flags lists set members from the lowest bit up."""
    value = ExitStatus.SIMULATOR_REUSE_FAILED | ExitStatus.TESTS_FAILED

    assert value.flags == [ExitStatus.TESTS_FAILED, ExitStatus.SIMULATOR_REUSE_FAILED]
    assert ExitStatus.ALL_PASSED.flags == []
