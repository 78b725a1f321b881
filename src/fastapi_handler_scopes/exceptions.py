"""Exception hierarchy for handler scope errors."""


class HandlerScopesError(Exception):
    """Base exception for all handler scope errors.

    Catching this exception will catch every error raised by the
    fastapi-handler-scopes package.

    Example:
        try:
            record = await dispatcher.route("unsafe", ctx)
        except HandlerScopesError as e:
            logger.error(f"Call failed: {e}")
    """


class BadRequestError(HandlerScopesError):
    """Raised when a request id or timeout cannot be parsed.

    Examples of malformed input:
        - An empty or blank id
        - A timeout that is not an integer: /unsafe/42/abc
        - A negative timeout: /unsafe/42/-5

    Surfaced to HTTP callers as 400 Bad Request.

    Example:
        BadRequestError("timeout_ms must be a non-negative integer, got 'abc'")
    """


class UnknownEndpointError(HandlerScopesError):
    """Raised when the dispatcher has no strategy for an endpoint name.

    Surfaced to HTTP callers as 404 Not Found.

    Example:
        UnknownEndpointError(
            "Unknown endpoint 'unsafe-v2'. "
            "Registered: unsafe, safe-prototype, safe-singleton"
        )
    """

    def __init__(self, endpoint: str, registered: tuple[str, ...] = ()) -> None:
        self.endpoint = endpoint
        self.registered = registered
        message = f"Unknown endpoint '{endpoint}'"
        if registered:
            message += f". Registered: {', '.join(registered)}"
        super().__init__(message)


class InterruptedDelayError(HandlerScopesError):
    """Raised when a simulated processing delay is woken before it elapsed.

    Never fails a call: strategies catch it, log it, and carry on to the
    read-back step so the state observed after the wake-up is still returned.

    Example:
        InterruptedDelayError("Delay of 3000ms interrupted after 412ms")
    """

    def __init__(self, requested_ms: int, elapsed_ms: float) -> None:
        self.requested_ms = requested_ms
        self.elapsed_ms = elapsed_ms
        super().__init__(
            f"Delay of {requested_ms}ms interrupted after {elapsed_ms:.0f}ms"
        )
