"""Tests for the simulated processing delay."""

import asyncio
import threading

import pytest

from fastapi_handler_scopes.core.delay import ProcessingDelay
from fastapi_handler_scopes.exceptions import InterruptedDelayError


async def test_pause_waits_for_requested_delay() -> None:
    delay = ProcessingDelay()
    loop = asyncio.get_running_loop()

    started = loop.time()
    await delay.pause(50)

    # Loop timers may fire up to one clock tick early
    assert loop.time() - started >= 0.045
    assert delay.pending == 0


async def test_zero_delay_still_yields() -> None:
    delay = ProcessingDelay()
    ran: list[str] = []

    async def other() -> None:
        ran.append("other")

    task = asyncio.create_task(other())
    await delay.pause(0)

    assert ran == ["other"]
    await task


async def test_pause_does_not_block_other_calls() -> None:
    """Ten 100ms pauses run together, not back to back."""
    delay = ProcessingDelay()
    loop = asyncio.get_running_loop()

    started = loop.time()
    await asyncio.gather(*(delay.pause(100) for _ in range(10)))

    assert loop.time() - started < 0.5


async def test_pending_counts_suspended_calls() -> None:
    delay = ProcessingDelay()
    tasks = [asyncio.create_task(delay.pause(1_000)) for _ in range(3)]
    await asyncio.sleep(0.01)

    assert delay.pending == 3

    delay.interrupt()
    for task in tasks:
        with pytest.raises(InterruptedDelayError):
            await task
    assert delay.pending == 0


async def test_interrupt_wakes_pending_pause_early() -> None:
    delay = ProcessingDelay()
    loop = asyncio.get_running_loop()
    started = loop.time()

    task = asyncio.create_task(delay.pause(5_000))
    await asyncio.sleep(0.02)
    woken = delay.interrupt()

    with pytest.raises(InterruptedDelayError) as exc_info:
        await task

    assert woken == 1
    assert exc_info.value.requested_ms == 5_000
    assert exc_info.value.elapsed_ms < 5_000
    assert loop.time() - started < 1.0


async def test_interrupt_from_another_thread() -> None:
    delay = ProcessingDelay()
    task = asyncio.create_task(delay.pause(5_000))
    await asyncio.sleep(0.02)

    woken = await asyncio.to_thread(delay.interrupt)

    assert woken == 1
    with pytest.raises(InterruptedDelayError):
        await task


async def test_cross_thread_interrupts_while_calls_come_and_go() -> None:
    """Interrupting from a worker thread never races the loop's bookkeeping."""
    delay = ProcessingDelay()
    stop = threading.Event()
    errors: list[Exception] = []

    def keep_interrupting() -> None:
        while not stop.is_set():
            try:
                delay.interrupt()
            except RuntimeError as exc:
                errors.append(exc)
                return

    async def churn() -> None:
        for _ in range(100):
            try:
                await delay.pause(1)
            except InterruptedDelayError:
                pass

    interrupter = asyncio.create_task(asyncio.to_thread(keep_interrupting))
    try:
        await asyncio.gather(*(churn() for _ in range(20)))
    finally:
        stop.set()
        await interrupter

    assert errors == []
    assert delay.pending == 0


def test_interrupt_with_nothing_pending() -> None:
    assert ProcessingDelay().interrupt() == 0


def test_interrupt_after_loop_closed() -> None:
    delay = ProcessingDelay()
    asyncio.run(delay.pause(1))

    assert delay.interrupt() == 0


async def test_cancellation_propagates_and_cleans_up() -> None:
    delay = ProcessingDelay()
    task = asyncio.create_task(delay.pause(5_000))
    await asyncio.sleep(0.01)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert delay.pending == 0
