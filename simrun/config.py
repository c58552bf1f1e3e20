"""Configuration for packing tests onto parallel simulators."""

from collections.abc import Sequence
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class PackingConfig(BaseModel):
    """Configuration for test packing."""

    model_config = ConfigDict(frozen=True)

    num_sims: int = Field(default=4, ge=1)
    # None runs every test; an empty list runs none
    test_cases_to_run: Sequence[str] | None = None
    test_cases_to_skip: Sequence[str] = ()
    no_split: Sequence[str] = ()
    test_time_estimates_json_file: Path | None = None
