"""Endpoint dispatcher.

Maps endpoint names to handler providers. A provider applies the instance
lifecycle of its strategy: singleton providers build one instance up front
and hand it to every call, prototype providers build one per call.
"""

import logging
from collections.abc import Callable, Iterable
from types import MappingProxyType

from fastapi_handler_scopes.core.context import RequestContext, ResultRecord
from fastapi_handler_scopes.core.delay import ProcessingDelay
from fastapi_handler_scopes.core.strategies import STRATEGIES, HandlerStrategy, Scope
from fastapi_handler_scopes.exceptions import UnknownEndpointError

logger = logging.getLogger(__name__)

HandlerFactory = Callable[[ProcessingDelay], HandlerStrategy]


class SingletonProvider:
    """Hands the same long-lived handler instance to every call."""

    scope = Scope.SINGLETON

    def __init__(self, factory: HandlerFactory, delay: ProcessingDelay) -> None:
        self._instance = factory(delay)

    @property
    def instance(self) -> HandlerStrategy:
        return self._instance

    def acquire(self) -> HandlerStrategy:
        return self._instance


class PrototypeProvider:
    """Builds a new handler instance for every call.

    Attributes:
        created: Number of instances built so far.
    """

    scope = Scope.PROTOTYPE

    def __init__(self, factory: HandlerFactory, delay: ProcessingDelay) -> None:
        self._factory = factory
        self._delay = delay
        self.created = 0

    def acquire(self) -> HandlerStrategy:
        self.created += 1
        return self._factory(self._delay)


HandlerProvider = SingletonProvider | PrototypeProvider


def _make_provider(
    strategy: type[HandlerStrategy],
    delay: ProcessingDelay,
) -> HandlerProvider:
    match strategy.scope:
        case Scope.SINGLETON:
            return SingletonProvider(strategy, delay)
        case Scope.PROTOTYPE:
            return PrototypeProvider(strategy, delay)


class Dispatcher:
    """Routes calls to the strategy registered for an endpoint name.

    The endpoint mapping is built once in __init__ and is read-only
    afterwards, so concurrent route() calls need no locking.

    Args:
        strategies: Strategy classes to register, keyed by their endpoint
            attribute. Defaults to the unsafe, safe-prototype and
            safe-singleton strategies.
        delay: Delay shared by every strategy. A new one is created if omitted.

    Example:
        dispatcher = Dispatcher()
        record = await dispatcher.route("unsafe", RequestContext(id="42"))
    """

    def __init__(
        self,
        strategies: Iterable[type[HandlerStrategy]] = STRATEGIES,
        *,
        delay: ProcessingDelay | None = None,
    ) -> None:
        self._delay = delay if delay is not None else ProcessingDelay()

        providers: dict[str, HandlerProvider] = {}
        for strategy in strategies:
            if strategy.endpoint in providers:
                raise ValueError(f"Duplicate endpoint: {strategy.endpoint}")
            providers[strategy.endpoint] = _make_provider(strategy, self._delay)

        self._providers = MappingProxyType(providers)

        logger.info(
            "Dispatcher ready",
            extra={
                "endpoints": list(self._providers),
                "scopes": {name: p.scope.value for name, p in self._providers.items()},
            },
        )

    @property
    def endpoints(self) -> tuple[str, ...]:
        """Registered endpoint names, in registration order."""
        return tuple(self._providers)

    @property
    def delay(self) -> ProcessingDelay:
        return self._delay

    def provider(self, endpoint: str) -> HandlerProvider:
        """Return the provider registered for an endpoint.

        Raises:
            UnknownEndpointError: If no strategy is registered under that name.
        """
        provider = self._providers.get(endpoint)
        if provider is None:
            raise UnknownEndpointError(endpoint, self.endpoints)
        return provider

    async def route(self, endpoint: str, ctx: RequestContext) -> ResultRecord:
        """Forward a call to the strategy registered for endpoint.

        Args:
            endpoint: Endpoint name, e.g. "unsafe".
            ctx: The call's request context.

        Returns:
            The ResultRecord produced by the strategy.

        Raises:
            UnknownEndpointError: If no strategy is registered under that name.
        """
        handler = self.provider(endpoint).acquire()

        logger.debug(
            "Routing call",
            extra={
                "endpoint": endpoint,
                "request_id": ctx.id,
                "delay_ms": ctx.delay_ms,
                "handler": handler.identity,
            },
        )

        return await handler.handle(ctx)

    def shutdown(self) -> int:
        """Wake every call still waiting in its processing delay.

        Woken calls log the interruption and finish normally.

        Returns:
            Number of calls woken.
        """
        woken = self._delay.interrupt()
        logger.info("Dispatcher shut down", extra={"interrupted": woken})
        return woken
