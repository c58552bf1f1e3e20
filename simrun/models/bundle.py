"""Models for test bundles scheduled onto simulators."""

from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field


class TestBundle(BaseModel):
    """A test bundle and the subset of its tests a simulator should run."""

    __test__ = False

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Bundle name, matched against no_split")
    path: str = Field(..., description="Path uniquely identifying the bundle")
    test_cases: Sequence[str] = Field(
        default_factory=tuple, description="Every test identifier in the bundle"
    )
    skip_test_identifiers: Sequence[str] | None = Field(
        default=None, description="Tests excluded when the bundle runs"
    )
    estimated_execution_time: float | None = Field(
        default=None, description="Estimated seconds to run the bundle"
    )

    @property
    def num_tests(self) -> int:
        """Number of test cases in the bundle."""
        return len(self.test_cases)
