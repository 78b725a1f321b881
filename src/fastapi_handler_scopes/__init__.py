"""Shared versus request-scoped handler state, served and measured under load."""

# Core types
from fastapi_handler_scopes.core.context import DEFAULT_DELAY_MS, RequestContext, ResultRecord
from fastapi_handler_scopes.core.delay import ProcessingDelay
from fastapi_handler_scopes.core.dispatcher import Dispatcher, PrototypeProvider, SingletonProvider
from fastapi_handler_scopes.core.strategies import (
    STRATEGIES,
    Discipline,
    HandlerStrategy,
    SafePrototypeHandler,
    SafeSingletonHandler,
    Scope,
    UnsafeHandler,
)

# Exceptions
from fastapi_handler_scopes.exceptions import (
    BadRequestError,
    HandlerScopesError,
    InterruptedDelayError,
    UnknownEndpointError,
)

# App factory
from fastapi_handler_scopes.fastapi.app import create_app
from fastapi_handler_scopes.fastapi.router import create_router

# Load harness
from fastapi_handler_scopes.harness import LoadHarness, ScenarioOutcome, Threshold

__all__ = [
    # Primary API
    "create_app",
    "create_router",
    "Dispatcher",
    # Core types
    "DEFAULT_DELAY_MS",
    "Discipline",
    "HandlerStrategy",
    "ProcessingDelay",
    "PrototypeProvider",
    "RequestContext",
    "ResultRecord",
    "SafePrototypeHandler",
    "SafeSingletonHandler",
    "Scope",
    "SingletonProvider",
    "STRATEGIES",
    "UnsafeHandler",
    # Load harness
    "LoadHarness",
    "ScenarioOutcome",
    "Threshold",
    # Exceptions
    "BadRequestError",
    "HandlerScopesError",
    "InterruptedDelayError",
    "UnknownEndpointError",
]

__version__ = "1.0.0"
