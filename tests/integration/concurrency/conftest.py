"""Shared fixtures for concurrency integration tests.

Every test gets a fresh app (and so a fresh Dispatcher with fresh singleton
handlers) served in-process through httpx.ASGITransport, and a LoadHarness
bound to it.
"""

from collections.abc import AsyncIterator

import httpx
import pytest
from fastapi import FastAPI

from fastapi_handler_scopes.config import Settings
from fastapi_handler_scopes.fastapi.app import create_app
from fastapi_handler_scopes.harness.runner import LoadHarness

CONCURRENT_REQUESTS = 50

ENDPOINTS = ["unsafe", "safe-prototype", "safe-singleton"]
SAFE_ENDPOINTS = ["safe-prototype", "safe-singleton"]


@pytest.fixture
def app() -> FastAPI:
    """App using the production default delay of 100ms."""
    return create_app(Settings())


@pytest.fixture
async def harness(async_client: httpx.AsyncClient) -> AsyncIterator[LoadHarness]:
    yield LoadHarness(async_client)
