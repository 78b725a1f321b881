"""Load harness that measures how often each endpoint returns the caller's id.

Works with any httpx.AsyncClient: one pointed at a running server, or one
wrapping the app in-process through httpx.ASGITransport.
"""

import asyncio
import logging
import time
from collections.abc import Iterable, Sequence
from urllib.parse import quote

import httpx

from fastapi_handler_scopes.harness.outcome import (
    Mismatch,
    OutcomeTally,
    RunMode,
    ScenarioOutcome,
)

logger = logging.getLogger(__name__)


class LoadHarness:
    """Issues GET /{endpoint}/{id}[/{timeout_ms}] requests and checks the replies.

    A reply is correct when its status is 200 and its trimmed body equals
    the id that was sent. Error statuses and transport errors count as
    failures; they never abort a run.

    Args:
        client: HTTP client used for every request. Its base_url must point
            at the app.

    Example:
        async with httpx.AsyncClient(base_url="http://localhost:8080") as client:
            harness = LoadHarness(client)
            outcome = await harness.run_concurrent("unsafe", concurrency=50, duration_s=30)
            print(outcome.success_rate)
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def run_sequential(
        self,
        endpoint: str,
        ids: Iterable[str],
        *,
        delay_ms: int | None = None,
        pause_s: float = 0.0,
    ) -> ScenarioOutcome:
        """Send one request per id, strictly one at a time.

        Args:
            endpoint: Endpoint name, e.g. "unsafe".
            ids: Ids to send, in order.
            delay_ms: Processing delay to request. None uses the server default.
            pause_s: Seconds to wait between requests.

        Returns:
            The aggregated ScenarioOutcome.
        """
        tally = OutcomeTally()
        started = time.perf_counter()

        for index, request_id in enumerate(ids):
            if index and pause_s > 0:
                await asyncio.sleep(pause_s)
            mismatch = await self._check(endpoint, request_id, delay_ms)
            tally.record(mismatch)
            logger.debug(
                "Sequential request checked",
                extra={
                    "endpoint": endpoint,
                    "request_id": request_id,
                    "correct": mismatch is None,
                },
            )

        return self._finish(
            tally,
            endpoint=endpoint,
            mode=RunMode.SEQUENTIAL,
            started=started,
            concurrency=1,
            delay_ms=delay_ms,
        )

    async def run_concurrent(
        self,
        endpoint: str,
        concurrency: int,
        duration_s: float,
        *,
        delay_ms: int | None = None,
    ) -> ScenarioOutcome:
        """Run `concurrency` workers against one endpoint for `duration_s`.

        Worker N (1-based) sends str(N) as its id, over and over, until the
        duration is up. A request still in flight at the deadline is allowed
        to finish and is counted.

        Args:
            endpoint: Endpoint name, e.g. "unsafe".
            concurrency: Number of workers.
            duration_s: Seconds each worker keeps issuing requests.
            delay_ms: Processing delay to request. None uses the server default.

        Returns:
            The aggregated ScenarioOutcome.

        Raises:
            ValueError: If concurrency < 1 or duration_s <= 0.
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        if duration_s <= 0:
            raise ValueError(f"duration_s must be > 0, got {duration_s}")

        tally = OutcomeTally()
        loop = asyncio.get_running_loop()
        deadline = loop.time() + duration_s
        started = time.perf_counter()

        logger.info(
            "Concurrent run started",
            extra={
                "endpoint": endpoint,
                "concurrency": concurrency,
                "duration_s": duration_s,
                "delay_ms": delay_ms,
            },
        )

        async def worker(index: int) -> None:
            request_id = str(index)
            while loop.time() < deadline:
                tally.record(await self._check(endpoint, request_id, delay_ms))

        await asyncio.gather(*(worker(i) for i in range(1, concurrency + 1)))

        return self._finish(
            tally,
            endpoint=endpoint,
            mode=RunMode.CONCURRENT,
            started=started,
            concurrency=concurrency,
            delay_ms=delay_ms,
        )

    async def sweep_delays(
        self,
        endpoint: str,
        concurrency: int,
        duration_s: float,
        delays_ms: Sequence[int],
    ) -> list[ScenarioOutcome]:
        """Run one concurrent scenario per delay, in the given order.

        Used to watch the mismatch rate grow as the race window widens.
        """
        outcomes = []
        for delay_ms in delays_ms:
            outcomes.append(
                await self.run_concurrent(endpoint, concurrency, duration_s, delay_ms=delay_ms)
            )
        return outcomes

    async def _check(
        self,
        endpoint: str,
        request_id: str,
        delay_ms: int | None,
    ) -> Mismatch | None:
        """Send one request and return None if it came back correct."""
        try:
            response = await self._client.get(request_path(endpoint, request_id, delay_ms))
        except httpx.HTTPError as exc:
            logger.debug(
                "Request failed",
                extra={"endpoint": endpoint, "request_id": request_id, "error": repr(exc)},
            )
            return Mismatch(sent_id=request_id, received=repr(exc), status_code=None)

        body = response.text.strip()
        if response.status_code == 200 and body == request_id:
            return None
        return Mismatch(sent_id=request_id, received=body, status_code=response.status_code)

    @staticmethod
    def _finish(
        tally: OutcomeTally,
        *,
        endpoint: str,
        mode: RunMode,
        started: float,
        concurrency: int,
        delay_ms: int | None,
    ) -> ScenarioOutcome:
        outcome = ScenarioOutcome(
            endpoint=endpoint,
            mode=mode,
            total_requests=tally.total,
            correct_responses=tally.correct,
            elapsed_s=time.perf_counter() - started,
            concurrency=concurrency,
            delay_ms=delay_ms,
            mismatches=tuple(tally.mismatches),
        )

        logger.info(
            "Run finished",
            extra={
                "endpoint": endpoint,
                "mode": mode.value,
                "total_requests": outcome.total_requests,
                "correct_responses": outcome.correct_responses,
                "success_rate": round(outcome.success_rate, 4),
            },
        )
        return outcome


def request_path(endpoint: str, request_id: str, delay_ms: int | None = None) -> str:
    """Build the request path for an endpoint call.

    Examples:
        request_path("unsafe", "7") -> "/unsafe/7"
        request_path("unsafe", "7", 3000) -> "/unsafe/7/3000"
        request_path("safe-singleton", "a b") -> "/safe-singleton/a%20b"
    """
    path = f"/{endpoint}/{quote(request_id, safe='')}"
    if delay_ms is not None:
        path += f"/{delay_ms}"
    return path
