"""Load harness measuring per-endpoint correctness under load."""

from fastapi_handler_scopes.harness.outcome import (
    DEFAULT_CONCURRENT_THRESHOLDS,
    SEQUENTIAL_THRESHOLD,
    Mismatch,
    RunMode,
    ScenarioOutcome,
    Threshold,
    format_outcome,
)
from fastapi_handler_scopes.harness.runner import LoadHarness, request_path

__all__ = [
    "DEFAULT_CONCURRENT_THRESHOLDS",
    "SEQUENTIAL_THRESHOLD",
    "LoadHarness",
    "Mismatch",
    "RunMode",
    "ScenarioOutcome",
    "Threshold",
    "format_outcome",
    "request_path",
]
