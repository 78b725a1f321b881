"""Shared pytest fixtures for fastapi-handler-scopes tests."""

from collections.abc import AsyncIterator

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from fastapi_handler_scopes.config import Settings
from fastapi_handler_scopes.core.context import RequestContext
from fastapi_handler_scopes.core.dispatcher import Dispatcher
from fastapi_handler_scopes.fastapi.app import create_app

# Short delay keeping race windows open without slowing the suite down
FAST_DELAY_MS = 20


@pytest.fixture
def dispatcher() -> Dispatcher:
    """A fresh dispatcher with the three default strategies."""
    return Dispatcher()


@pytest.fixture
def app(dispatcher: Dispatcher) -> FastAPI:
    """A fresh app whose default delay is FAST_DELAY_MS."""
    return create_app(Settings(default_delay_ms=FAST_DELAY_MS), dispatcher=dispatcher)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Synchronous test client for single-request endpoint checks."""
    return TestClient(app)


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    """In-process async client for concurrent requests."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def make_ctx():
    """Build a RequestContext with a short default delay.

    Returns a callable accepting (id, delay_ms=FAST_DELAY_MS).
    """

    def _make(request_id: str, delay_ms: int = FAST_DELAY_MS) -> RequestContext:
        return RequestContext(id=request_id, delay_ms=delay_ms)

    return _make
