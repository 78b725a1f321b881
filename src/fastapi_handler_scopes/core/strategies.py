"""Request handling strategies.

Three ways to keep a request id around while a call is suspended:

- UnsafeHandler stores it in an attribute of one shared instance. Any call
  that runs during the delay can overwrite it.
- SafePrototypeHandler runs the exact same steps, but the dispatcher builds
  a new instance for every call, so nobody else can see the attribute.
- SafeSingletonHandler never stores it on the instance at all; the id only
  lives in a local variable of the running coroutine.

The attribute of UnsafeHandler stays unsynchronized: no lock and no
per-call copy.
"""

import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from enum import Enum

from fastapi_handler_scopes.core.context import RequestContext, ResultRecord, now_ms
from fastapi_handler_scopes.core.delay import ProcessingDelay
from fastapi_handler_scopes.exceptions import InterruptedDelayError

logger = logging.getLogger(__name__)


class Discipline(Enum):
    """Where a strategy keeps request data during a call."""

    SHARED_FIELD = "shared-instance-field"
    PER_CALL_FIELD = "per-call-instance-field"
    CALL_LOCAL = "call-local-variable"


class Scope(Enum):
    """Lifecycle of the handler instance serving a call."""

    SINGLETON = "singleton"
    PROTOTYPE = "prototype"


class HandlerStrategy(ABC):
    """Base class for a strategy serving one endpoint.

    Subclasses set the class attributes and implement handle().

    Attributes:
        endpoint: Endpoint name the strategy is registered under.
        discipline: How request data is stored while the call is suspended.
        scope: Instance lifecycle the dispatcher should apply.
    """

    endpoint: str
    discipline: Discipline
    scope: Scope

    def __init__(self, delay: ProcessingDelay) -> None:
        self._delay = delay

    @property
    def identity(self) -> str:
        """Identity of this handler instance, unique while it is alive."""
        return f"{type(self).__name__}@{id(self):#x}"

    @abstractmethod
    async def handle(self, ctx: RequestContext) -> ResultRecord:
        """Resolve the request id after the configured delay."""

    async def _simulate_processing(self, ctx: RequestContext) -> None:
        """Suspend for ctx.delay_ms, tolerating an early wake-up.

        An interrupted delay is logged and the call carries on, so the value
        read afterwards is still what the caller gets back.
        """
        try:
            await self._delay.pause(ctx.delay_ms)
        except InterruptedDelayError as exc:
            logger.warning(
                "Processing delay interrupted",
                extra={
                    "endpoint": self.endpoint,
                    "request_id": ctx.id,
                    "requested_ms": exc.requested_ms,
                    "elapsed_ms": round(exc.elapsed_ms),
                },
            )

    def _record(self, ctx: RequestContext, resolved_id: str) -> ResultRecord:
        return ResultRecord(
            requested_id=ctx.id,
            resolved_id=resolved_id,
            delay_ms=ctx.delay_ms,
            strategy_name=type(self).__name__,
            discipline_name=self.discipline.value,
            scope_name=self.scope.value,
            timestamp_ms=now_ms(),
            handler_identity=self.identity,
            worker_name=_current_worker_name(),
        )


class _FieldStoringHandler(HandlerStrategy):
    """Write the id to an attribute, wait, then read the attribute back."""

    def __init__(self, delay: ProcessingDelay) -> None:
        super().__init__(delay)
        self.stored_id = ""

    async def handle(self, ctx: RequestContext) -> ResultRecord:
        # Step 1: store the id on the instance
        self.stored_id = ctx.id

        # Step 2: other calls run here
        await self._simulate_processing(ctx)

        # Step 3: read back whatever the attribute holds now
        resolved_id = self.stored_id
        return self._record(ctx, resolved_id)


class UnsafeHandler(_FieldStoringHandler):
    """One instance shared by every call, request id kept in an attribute.

    Correct only while calls never overlap.
    """

    endpoint = "unsafe"
    discipline = Discipline.SHARED_FIELD
    scope = Scope.SINGLETON


class SafePrototypeHandler(_FieldStoringHandler):
    """Same steps as UnsafeHandler, on a fresh instance for every call.

    Costs one allocation per call.
    """

    endpoint = "safe-prototype"
    discipline = Discipline.PER_CALL_FIELD
    scope = Scope.PROTOTYPE


class SafeSingletonHandler(HandlerStrategy):
    """One shared instance, request id kept in a local variable only.

    No per-call allocation and nothing on the instance to race on.
    """

    endpoint = "safe-singleton"
    discipline = Discipline.CALL_LOCAL
    scope = Scope.SINGLETON

    async def handle(self, ctx: RequestContext) -> ResultRecord:
        resolved_id = ctx.id
        await self._simulate_processing(ctx)
        return self._record(ctx, resolved_id)


# Strategies served by a default Dispatcher, in registration order
STRATEGIES: tuple[type[HandlerStrategy], ...] = (
    UnsafeHandler,
    SafePrototypeHandler,
    SafeSingletonHandler,
)


def _current_worker_name() -> str:
    try:
        task = asyncio.current_task()
    except RuntimeError:
        task = None
    if task is not None:
        return task.get_name()
    return threading.current_thread().name
