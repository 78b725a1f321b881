"""Per-call data carried through the handler strategies.

RequestContext is the inbound value built from the path parameters;
ResultRecord is the outbound value a strategy produces once per call.
Both are frozen and never retained after the call completes.
"""

import re
import time
from dataclasses import dataclass

from fastapi_handler_scopes.exceptions import BadRequestError

# Delay applied when the path omits the timeout segment
DEFAULT_DELAY_MS = 100

# Largest delay accepted, the range of a signed 64-bit millisecond count
MAX_DELAY_MS = 2**63 - 1

_TIMEOUT_PATTERN = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class RequestContext:
    """The requested id and simulated processing delay for one call.

    Attributes:
        id: Opaque request identifier, echoed back by every strategy.
        delay_ms: Milliseconds the strategy suspends between write and read.
    """

    id: str
    delay_ms: int = DEFAULT_DELAY_MS

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id.strip():
            raise BadRequestError("id must be a non-empty string")
        if isinstance(self.delay_ms, bool) or not isinstance(self.delay_ms, int):
            raise BadRequestError(
                f"delay_ms must be an integer, got {type(self.delay_ms).__name__}"
            )
        if self.delay_ms < 0:
            raise BadRequestError(f"delay_ms must be >= 0, got {self.delay_ms}")
        if self.delay_ms > MAX_DELAY_MS:
            raise BadRequestError(f"delay_ms must be <= {MAX_DELAY_MS}, got {self.delay_ms}")

    @classmethod
    def from_path(
        cls,
        id: str,  # noqa: A002
        timeout_ms: str | None = None,
        *,
        default_delay_ms: int = DEFAULT_DELAY_MS,
    ) -> "RequestContext":
        """Build a context from raw path parameter strings.

        Args:
            id: The {id} path segment.
            timeout_ms: The optional {timeout_ms} path segment.
            default_delay_ms: Delay used when timeout_ms is omitted.

        Returns:
            A validated RequestContext.

        Raises:
            BadRequestError: If id is blank, or timeout_ms is not a
                non-negative integer no greater than MAX_DELAY_MS.

        Examples:
            from_path("42") -> RequestContext(id="42", delay_ms=100)
            from_path("42", "3000") -> RequestContext(id="42", delay_ms=3000)
            from_path("42", "abc") -> BadRequestError
        """
        if timeout_ms is None:
            return cls(id=id, delay_ms=default_delay_ms)

        # int() accepts "+5", " 5" and "1_000"; path segments must be plain digits
        if not _TIMEOUT_PATTERN.fullmatch(timeout_ms):
            raise BadRequestError(
                f"timeout_ms must be a non-negative integer, got '{timeout_ms}'"
            )
        # Checked on the digits so huge segments never reach int()
        digits = timeout_ms.lstrip("0") or "0"
        if len(digits) > len(str(MAX_DELAY_MS)) or int(digits) > MAX_DELAY_MS:
            raise BadRequestError(
                f"timeout_ms must be at most {MAX_DELAY_MS}, got {len(timeout_ms)} digits"
            )
        return cls(id=id, delay_ms=int(digits))


@dataclass(frozen=True)
class ResultRecord:
    """Outcome of one handled call, with diagnostic metadata.

    Attributes:
        requested_id: The id the caller sent.
        resolved_id: The id the strategy read back after the delay.
        delay_ms: The delay the strategy was asked to apply.
        strategy_name: Class name of the strategy that handled the call.
        discipline_name: How the strategy stores request data.
        scope_name: Handler instance lifecycle ("singleton" or "prototype").
        timestamp_ms: Wall-clock completion time in epoch milliseconds.
        handler_identity: Identity of the handler instance that served the call.
        worker_name: Name of the asyncio task (or thread) that ran the call.
    """

    requested_id: str
    resolved_id: str
    delay_ms: int
    strategy_name: str
    discipline_name: str
    scope_name: str
    timestamp_ms: int
    handler_identity: str
    worker_name: str

    @property
    def is_correct(self) -> bool:
        """Check whether the call got its own id back."""
        return self.resolved_id == self.requested_id


def now_ms() -> int:
    """Return the current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000
