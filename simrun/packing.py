"""Packing of test bundles into groups for parallel simulators."""

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from simrun.config import PackingConfig
from simrun.models.bundle import TestBundle

log = logging.getLogger(__name__)

DEFAULT_TEST_TIME = 1.0

NO_BUNDLES_MESSAGE = (
    "Found no test bundles.\n"
    "Perhaps you forgot to build the tests before running them?"
)

_estimates_adapter = TypeAdapter(dict[str, float])


class PackingError(Exception):
    """Raised when test bundles cannot be packed."""


def pack_tests(
    bundles: Sequence[TestBundle], config: PackingConfig
) -> list[TestBundle]:
    """Pack bundles by estimated time when estimates exist, else by count."""
    if config.test_time_estimates_json_file is None:
        log.info("No test time estimates file configured, packing by test count")
        return pack_tests_by_count(bundles, config)

    log.info("Found test time estimates file, packing by execution time")
    return pack_tests_by_time(bundles, config)


def pack_tests_by_count(
    bundles: Sequence[TestBundle], config: PackingConfig
) -> list[TestBundle]:
    """Split bundles into groups of roughly equal test counts.

    Bundles small enough to fit a group, and bundles listed in no_split, are
    kept whole and placed first. Larger bundles are cut into consecutive
    chunks of their sorted tests; tests of a single bundle are never mixed
    with another's.

    Raises:
        PackingError: If there are no bundles to pack

    """
    log.info("Packing test bundles based on test counts")
    sorted_bundles = sorted(bundles, key=lambda b: b.num_tests, reverse=True)
    if not sorted_bundles:
        raise PackingError(NO_BUNDLES_MESSAGE)

    tests_to_run_by_path: dict[str, set[str]] = {}
    total_tests = 0
    for bundle in sorted_bundles:
        if bundle.name in config.no_split:
            continue
        tests_to_run = _select_tests(bundle, config)
        if tests_to_run:
            tests_to_run_by_path[bundle.path] = tests_to_run
            total_tests += len(tests_to_run)

    tests_per_group = max(1, total_tests // config.num_sims)
    log.debug(
        "Packing %d test(s) into groups of %d", total_tests, tests_per_group
    )

    packed: list[TestBundle] = []
    for bundle in sorted_bundles:
        tests_to_run = sorted(tests_to_run_by_path.get(bundle.path, ()))
        if bundle.name in config.no_split or 0 < len(tests_to_run) <= tests_per_group:
            packed.insert(
                0,
                bundle.model_copy(
                    update={"skip_test_identifiers": config.test_cases_to_skip}
                ),
            )
            continue

        all_tests = sorted(bundle.test_cases)
        for start in range(0, len(tests_to_run), tests_per_group):
            chunk = set(tests_to_run[start : start + tests_per_group])
            tests_to_skip = [test for test in all_tests if test not in chunk]
            tests_to_skip.extend(bundle.skip_test_identifiers or ())
            packed.append(
                bundle.model_copy(
                    update={"skip_test_identifiers": sorted(tests_to_skip)}
                )
            )

    return packed


def pack_tests_by_time(
    bundles: Sequence[TestBundle], config: PackingConfig
) -> list[TestBundle]:
    """Order bundles by their estimated execution time, longest first.

    Raises:
        PackingError: If there are no bundles or estimates cannot be loaded

    """
    estimates_file = config.test_time_estimates_json_file
    log.info("Packing based on test execution times in %s", estimates_file)
    if not bundles:
        raise PackingError(NO_BUNDLES_MESSAGE)
    if estimates_file is None:
        raise PackingError("No test time estimates file configured")

    test_times = load_test_time_estimates(estimates_file)

    packed = [
        bundle.model_copy(
            update={
                "skip_test_identifiers": config.test_cases_to_skip,
                "estimated_execution_time": _estimate_bundle_time(
                    _select_tests(bundle, config), test_times
                ),
            }
        )
        for bundle in bundles
    ]
    return sorted(packed, key=lambda b: b.estimated_execution_time or 0.0, reverse=True)


def load_test_time_estimates(path: Path) -> dict[str, float]:
    """Load per-test execution time estimates from a JSON file.

    Raises:
        PackingError: If the file is missing or not a mapping of test to seconds

    """
    try:
        return _estimates_adapter.validate_json(path.read_bytes())
    except (OSError, ValidationError) as e:
        raise PackingError(
            f"Could not load test time estimates from '{path}'\n{e}"
        ) from e


def _select_tests(bundle: TestBundle, config: PackingConfig) -> set[str]:
    tests = set(bundle.test_cases)
    if config.test_cases_to_run is not None:
        tests &= set(config.test_cases_to_run)
    tests -= set(config.test_cases_to_skip)
    return tests


def _estimate_bundle_time(tests: set[str], test_times: Mapping[str, float]) -> float:
    total = 0.0
    for test in tests:
        if test in test_times:
            total += test_times[test]
        else:
            log.debug(
                "Estimated test execution time not found for %s, using default",
                test,
            )
            total += DEFAULT_TEST_TIME
    return total
