"""Run outcomes and pass/fail thresholds."""

import operator
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

# Mismatch samples kept per run
MAX_MISMATCH_SAMPLES = 20


class RunMode(Enum):
    """How a run issued its requests."""

    SEQUENTIAL = "sequential"
    CONCURRENT = "concurrent"


@dataclass(frozen=True)
class Mismatch:
    """One failed check: what was sent and what came back.

    Attributes:
        sent_id: Id the worker sent.
        received: Trimmed response body, or a description of the failure.
        status_code: HTTP status, or None for transport errors.
    """

    sent_id: str
    received: str
    status_code: int | None = 200


@dataclass(frozen=True)
class ScenarioOutcome:
    """Aggregated result of one harness run against one endpoint.

    Attributes:
        endpoint: Endpoint name the run targeted.
        mode: Sequential or concurrent.
        total_requests: Requests that completed (successfully or not).
        correct_responses: Responses with status 200 and the sender's id.
        elapsed_s: Wall-clock duration of the run.
        concurrency: Number of workers (1 for sequential runs).
        delay_ms: Delay requested in the path, or None for the server default.
        mismatches: Up to MAX_MISMATCH_SAMPLES failed checks.
    """

    endpoint: str
    mode: RunMode
    total_requests: int
    correct_responses: int
    elapsed_s: float = 0.0
    concurrency: int = 1
    delay_ms: int | None = None
    mismatches: tuple[Mismatch, ...] = field(default=(), compare=False)

    @property
    def failed_requests(self) -> int:
        return self.total_requests - self.correct_responses

    @property
    def success_rate(self) -> float:
        """Fraction of requests that got their own id back (0.0 if none ran)."""
        if self.total_requests == 0:
            return 0.0
        return self.correct_responses / self.total_requests

    @property
    def mismatch_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.failed_requests / self.total_requests


class OutcomeTally:
    """Mutable accumulator behind a ScenarioOutcome."""

    def __init__(self) -> None:
        self.total = 0
        self.correct = 0
        self.mismatches: list[Mismatch] = []

    def record(self, mismatch: Mismatch | None) -> None:
        self.total += 1
        if mismatch is None:
            self.correct += 1
        elif len(self.mismatches) < MAX_MISMATCH_SAMPLES:
            self.mismatches.append(mismatch)


_OPERATORS: dict[str, Callable[[float, float], bool]] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "==": operator.eq,
}

_THRESHOLD_PATTERN = re.compile(r"^\s*rate\s*(<=|>=|==|<|>)\s*([0-9]*\.?[0-9]+)\s*$")


@dataclass(frozen=True)
class Threshold:
    """A success-rate condition, written like "rate < 0.9".

    Attributes:
        op: Comparison operator symbol.
        value: Rate the observed success rate is compared against.
    """

    op: str
    value: float

    def __post_init__(self) -> None:
        if self.op not in _OPERATORS:
            raise ValueError(f"Unsupported threshold operator '{self.op}'")

    @classmethod
    def parse(cls, expression: str) -> "Threshold":
        """Parse an expression such as "rate > 0.99".

        Raises:
            ValueError: If the expression is not of the form "rate <op> <number>".
        """
        match = _THRESHOLD_PATTERN.match(expression)
        if match is None:
            raise ValueError(
                f"Invalid threshold '{expression}'. Expected 'rate <op> <number>'."
            )
        return cls(op=match.group(1), value=float(match.group(2)))

    def check(self, outcome: ScenarioOutcome) -> bool:
        """Return True if the outcome's success rate satisfies this threshold.

        A run that completed no requests never passes.
        """
        if outcome.total_requests == 0:
            return False
        return _OPERATORS[self.op](outcome.success_rate, self.value)

    def __str__(self) -> str:
        return f"rate {self.op} {self.value:g}"


# Sequential runs cannot overlap, so every endpoint must be fully correct
SEQUENTIAL_THRESHOLD = Threshold("==", 1.0)

DEFAULT_CONCURRENT_THRESHOLDS: dict[str, Threshold] = {
    "unsafe": Threshold("<", 0.9),
    "safe-prototype": Threshold(">", 0.99),
    "safe-singleton": Threshold(">", 0.99),
}


def format_outcome(outcome: ScenarioOutcome, threshold: Threshold | None = None) -> str:
    """Render a one-line summary of an outcome.

    Examples:
        "unsafe [concurrent x50]: 312/1480 correct (21.08%)"
        "safe-singleton [sequential]: 3/3 correct (100.00%) ✓ rate == 1"
    """
    mode = outcome.mode.value
    if outcome.mode is RunMode.CONCURRENT:
        mode = f"{mode} x{outcome.concurrency}"

    line = (
        f"{outcome.endpoint} [{mode}]: "
        f"{outcome.correct_responses}/{outcome.total_requests} correct "
        f"({outcome.success_rate:.2%})"
    )
    if threshold is not None:
        mark = "✓" if threshold.check(outcome) else "✗"
        line += f" {mark} {threshold}"
    return line
