"""Command line entry point.

Usage:
    handler-scopes serve --port 8080
    handler-scopes sequential --endpoint unsafe --ids 1 2 3
    handler-scopes concurrent --endpoint unsafe --vus 50 --duration 30
    handler-scopes demo
    handler-scopes demo --in-process --vus 20 --duration 5
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence

import httpx
from dotenv import load_dotenv

from fastapi_handler_scopes.config import Settings, load_settings
from fastapi_handler_scopes.core.strategies import STRATEGIES
from fastapi_handler_scopes.harness.outcome import (
    DEFAULT_CONCURRENT_THRESHOLDS,
    SEQUENTIAL_THRESHOLD,
    ScenarioOutcome,
    Threshold,
    format_outcome,
)
from fastapi_handler_scopes.harness.runner import LoadHarness

logger = logging.getLogger("fastapi_handler_scopes.cli")

ENDPOINTS = tuple(strategy.endpoint for strategy in STRATEGIES)

DEFAULT_SEQUENTIAL_IDS = ("1", "2", "3")

LOG_LEVELS = ("CRITICAL", "FATAL", "ERROR", "WARNING", "WARN", "INFO", "DEBUG", "NOTSET")


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="handler-scopes",
        description="Serve the handler scope endpoints and measure their correctness under load.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=settings.log_level,
        help=f"Logging level (default: {settings.log_level})",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the app under uvicorn")
    serve.add_argument("--host", default=settings.host)
    serve.add_argument("--port", type=int, default=settings.port)

    def add_target(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "--base-url",
            default=settings.target_url,
            help=f"Server to test (default: {settings.target_url})",
        )
        p.add_argument(
            "--in-process",
            action="store_true",
            help="Test a fresh in-process app instead of a running server",
        )
        p.add_argument(
            "--timeout-ms",
            type=int,
            default=None,
            help="Processing delay to request (default: server default)",
        )

    sequential = sub.add_parser("sequential", help="One request at a time per endpoint")
    add_target(sequential)
    sequential.add_argument("--endpoint", nargs="+", choices=ENDPOINTS, default=list(ENDPOINTS))
    sequential.add_argument("--ids", nargs="+", default=list(DEFAULT_SEQUENTIAL_IDS))
    sequential.add_argument(
        "--pause", type=float, default=0.5, help="Seconds between requests (default: 0.5)"
    )

    concurrent = sub.add_parser("concurrent", help="Many workers hammering each endpoint")
    add_target(concurrent)
    concurrent.add_argument("--endpoint", nargs="+", choices=ENDPOINTS, default=list(ENDPOINTS))
    concurrent.add_argument("--vus", type=int, default=50, help="Concurrent workers (default: 50)")
    concurrent.add_argument(
        "--duration", type=float, default=30.0, help="Seconds per endpoint (default: 30)"
    )

    demo = sub.add_parser("demo", help="Sequential then concurrent checks with thresholds")
    add_target(demo)
    demo.add_argument("--vus", type=int, default=50)
    demo.add_argument("--duration", type=float, default=30.0)
    demo.add_argument("--pause", type=float, default=0.5)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()
    settings = load_settings()
    args = build_parser(settings).parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s:%(name)s:%(message)s",
    )

    if args.command == "serve":
        return _serve(settings, args.host, args.port, args.log_level)
    return asyncio.run(_run_harness(settings, args))


def _serve(settings: Settings, host: str, port: int, log_level: str) -> int:
    from fastapi_handler_scopes.fastapi.app import create_app
    from fastapi_handler_scopes.fastapi.server import serve

    level = logging.getLevelName(log_level)
    serve(create_app(settings), host=host, port=port, log_level=level)
    return 0


async def _run_harness(settings: Settings, args: argparse.Namespace) -> int:
    async with _make_client(settings, args) as client:
        harness = LoadHarness(client)

        if args.command == "sequential":
            results = await _sequential(harness, args.endpoint, args.ids, args)
        elif args.command == "concurrent":
            results = await _concurrent(harness, args.endpoint, args)
        else:
            results = await _sequential(harness, ENDPOINTS, DEFAULT_SEQUENTIAL_IDS, args)
            results += await _concurrent(harness, ENDPOINTS, args)

    print()
    passed = True
    for outcome, threshold in results:
        print(format_outcome(outcome, threshold))
        for mismatch in outcome.mismatches[:3]:
            print(f"    sent {mismatch.sent_id!r}, got {mismatch.received!r}")
        if threshold is not None and not threshold.check(outcome):
            passed = False

    print()
    print("All thresholds passed." if passed else "Some thresholds failed.")
    return 0 if passed else 1


async def _sequential(
    harness: LoadHarness,
    endpoints: Sequence[str],
    ids: Sequence[str],
    args: argparse.Namespace,
) -> list[tuple[ScenarioOutcome, Threshold | None]]:
    results: list[tuple[ScenarioOutcome, Threshold | None]] = []
    for endpoint in endpoints:
        outcome = await harness.run_sequential(
            endpoint, ids, delay_ms=args.timeout_ms, pause_s=args.pause
        )
        results.append((outcome, SEQUENTIAL_THRESHOLD))
    return results


async def _concurrent(
    harness: LoadHarness,
    endpoints: Sequence[str],
    args: argparse.Namespace,
) -> list[tuple[ScenarioOutcome, Threshold | None]]:
    results: list[tuple[ScenarioOutcome, Threshold | None]] = []
    for endpoint in endpoints:
        outcome = await harness.run_concurrent(
            endpoint, args.vus, args.duration, delay_ms=args.timeout_ms
        )
        results.append((outcome, DEFAULT_CONCURRENT_THRESHOLDS.get(endpoint)))
    return results


def _make_client(settings: Settings, args: argparse.Namespace) -> httpx.AsyncClient:
    delay_s = (args.timeout_ms if args.timeout_ms is not None else settings.default_delay_ms) / 1000
    timeout = httpx.Timeout(max(10.0, delay_s * 3))
    limits = httpx.Limits(max_connections=None, max_keepalive_connections=None)

    if args.in_process:
        from fastapi_handler_scopes.fastapi.app import create_app

        logger.info("Testing in-process app")
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=create_app(settings)),
            base_url="http://testserver",
            timeout=timeout,
        )

    logger.info("Testing server", extra={"base_url": args.base_url})
    return httpx.AsyncClient(base_url=args.base_url, timeout=timeout, limits=limits)


if __name__ == "__main__":
    sys.exit(main())
