"""Application factory.

Wires one Dispatcher (and with it the singleton handler instances) into a
FastAPI app for the lifetime of the process, and maps package errors onto
HTTP status codes.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fastapi_handler_scopes.config import Settings
from fastapi_handler_scopes.core.dispatcher import Dispatcher
from fastapi_handler_scopes.exceptions import BadRequestError, UnknownEndpointError
from fastapi_handler_scopes.fastapi.router import create_router

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    dispatcher: Dispatcher | None = None,
) -> FastAPI:
    """Build the FastAPI app serving every registered strategy.

    Args:
        settings: Runtime settings. Defaults to Settings().
        dispatcher: Dispatcher to serve. A new one is created if omitted.

    Returns:
        A FastAPI app. app.state.dispatcher holds the dispatcher.

    Example:
        uvicorn --factory fastapi_handler_scopes.fastapi.app:create_app
    """
    settings = settings or Settings()
    dispatcher = dispatcher if dispatcher is not None else Dispatcher()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Application started", extra={"endpoints": list(dispatcher.endpoints)})
        yield
        dispatcher.shutdown()

    application = FastAPI(title="Handler Scopes", lifespan=lifespan)
    application.state.dispatcher = dispatcher
    application.state.settings = settings

    application.add_exception_handler(BadRequestError, _bad_request_handler)  # type: ignore[arg-type]
    application.add_exception_handler(UnknownEndpointError, _unknown_endpoint_handler)  # type: ignore[arg-type]

    @application.get("/health", tags=["health"])
    async def health() -> dict[str, object]:
        """Report liveness and the endpoints being served."""
        return {"status": "ok", "endpoints": list(dispatcher.endpoints)}

    application.include_router(
        create_router(dispatcher, default_delay_ms=settings.default_delay_ms)
    )

    return application


async def _bad_request_handler(request: Request, exc: BadRequestError) -> JSONResponse:
    logger.info(
        "Rejected malformed request",
        extra={"path": request.url.path, "error": str(exc)},
    )
    return JSONResponse(status_code=400, content={"detail": str(exc)})


async def _unknown_endpoint_handler(
    request: Request,
    exc: UnknownEndpointError,
) -> JSONResponse:
    logger.warning(
        "Unknown endpoint",
        extra={"path": request.url.path, "endpoint": exc.endpoint},
    )
    return JSONResponse(
        status_code=404,
        content={"detail": str(exc), "endpoints": list(exc.registered)},
    )
