"""Simulated processing delay.

The delay is the only intentional suspension point of a call. It parks the
calling task on an event loop timer, so every other in-flight call keeps
running while this one waits. Nothing here takes a lock.
"""

import asyncio
import logging

from fastapi_handler_scopes.exceptions import InterruptedDelayError

logger = logging.getLogger(__name__)


class ProcessingDelay:
    """Suspends calls for a requested number of milliseconds.

    Pending delays can be woken early with interrupt(), which makes the
    woken pause() raise InterruptedDelayError. One ProcessingDelay is shared
    by every strategy a Dispatcher owns so that shutdown can wake them all.

    The set of pending calls is only touched on the thread running the
    event loop that serves them.
    """

    def __init__(self) -> None:
        self._pending: set[asyncio.Future[bool]] = set()
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def pending(self) -> int:
        """Number of calls currently suspended."""
        return len(self._pending)

    async def pause(self, delay_ms: int) -> None:
        """Suspend the calling task for at least delay_ms milliseconds.

        A zero delay still yields once to the event loop.

        Args:
            delay_ms: Milliseconds to wait.

        Raises:
            InterruptedDelayError: If interrupt() woke the call early.
        """
        if delay_ms <= 0:
            await asyncio.sleep(0)
            return

        loop = asyncio.get_running_loop()
        self._loop = loop
        started = loop.time()
        waiter: asyncio.Future[bool] = loop.create_future()
        timer = loop.call_later(delay_ms / 1000, _release, waiter, False)
        self._pending.add(waiter)
        try:
            interrupted = await waiter
        finally:
            timer.cancel()
            self._pending.discard(waiter)

        if interrupted:
            raise InterruptedDelayError(delay_ms, (loop.time() - started) * 1000)

    def interrupt(self) -> int:
        """Wake every pending delay before its timer fires.

        May be called from any thread. Called from outside the event loop
        thread, it blocks until the loop has marked the pending calls.

        Returns:
            Number of delays that were woken.
        """
        loop = self._loop
        if loop is None or loop.is_closed() or not loop.is_running():
            return 0

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is loop:
            return self._wake_pending()
        return asyncio.run_coroutine_threadsafe(self._wake_pending_async(), loop).result()

    def _wake_pending(self) -> int:
        woken = 0
        for waiter in list(self._pending):
            if waiter.done():
                continue
            waiter.get_loop().call_soon(_release, waiter, True)
            woken += 1

        if woken:
            logger.info("Interrupted pending delays", extra={"count": woken})
        return woken

    async def _wake_pending_async(self) -> int:
        return self._wake_pending()


def _release(waiter: "asyncio.Future[bool]", interrupted: bool) -> None:
    if not waiter.done():
        waiter.set_result(interrupted)
