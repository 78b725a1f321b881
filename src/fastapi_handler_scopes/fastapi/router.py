"""Router factory for the strategy endpoints.

Registers two GET routes per dispatcher endpoint:
    /{endpoint}/{id}
    /{endpoint}/{id}/{timeout_ms}
"""

import logging
from collections.abc import Callable, Sequence
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from fastapi_handler_scopes.core.context import DEFAULT_DELAY_MS, RequestContext
from fastapi_handler_scopes.core.dispatcher import Dispatcher
from fastapi_handler_scopes.core.responder import (
    render_extended,
    render_plain,
    wants_extended,
)

logger = logging.getLogger(__name__)


def create_router(
    dispatcher: Dispatcher,
    *,
    endpoints: Sequence[str] | None = None,
    default_delay_ms: int = DEFAULT_DELAY_MS,
    prefix: str = "",
) -> APIRouter:
    """Create an APIRouter serving the dispatcher's endpoints.

    Args:
        dispatcher: Dispatcher that handles every routed call.
        endpoints: Endpoint names to expose. Defaults to every endpoint the
            dispatcher has registered.
        default_delay_ms: Delay applied when the path omits timeout_ms.
        prefix: Optional URL prefix for all routes.

    Returns:
        A FastAPI APIRouter with two GET routes per endpoint.

    Example:
        from fastapi import FastAPI
        from fastapi_handler_scopes import Dispatcher, create_router

        app = FastAPI()
        app.include_router(create_router(Dispatcher()))
    """
    router = APIRouter(prefix=prefix)
    names = tuple(endpoints) if endpoints is not None else dispatcher.endpoints

    for endpoint in names:
        without_timeout, with_timeout = _make_endpoint_handlers(
            dispatcher, endpoint, default_delay_ms
        )
        _add_route(router, f"/{endpoint}/{{id}}", without_timeout, endpoint)
        _add_route(router, f"/{endpoint}/{{id}}/{{timeout_ms}}", with_timeout, endpoint)

    logger.info(
        "Route registration complete",
        extra={
            "route_count": len(names) * 2,
            "endpoints": list(names),
            "prefix": prefix or "(none)",
        },
    )

    return router


def _make_endpoint_handlers(
    dispatcher: Dispatcher,
    endpoint: str,
    default_delay_ms: int,
) -> tuple[Callable[..., Any], Callable[..., Any]]:
    """Build the two path handlers for one endpoint.

    timeout_ms is taken as a string so that malformed values reach
    RequestContext.from_path and come back as 400 rather than 422.
    """

    async def respond(
        request: Request,
        id: str,  # noqa: A002
        timeout_ms: str | None,
        extended: bool,
    ) -> Response:
        ctx = RequestContext.from_path(id, timeout_ms, default_delay_ms=default_delay_ms)
        record = await dispatcher.route(endpoint, ctx)

        if not record.is_correct:
            logger.debug(
                "Call resolved another request's id",
                extra={
                    "endpoint": endpoint,
                    "requested_id": record.requested_id,
                    "resolved_id": record.resolved_id,
                },
            )

        if wants_extended(request.headers.get("accept"), extended):
            return JSONResponse(render_extended(record))
        return PlainTextResponse(render_plain(record))

    async def get_without_timeout(
        request: Request,
        id: str,  # noqa: A002
        extended: bool = False,
    ) -> Response:
        return await respond(request, id, None, extended)

    async def get_with_timeout(
        request: Request,
        id: str,  # noqa: A002
        timeout_ms: str,
        extended: bool = False,
    ) -> Response:
        return await respond(request, id, timeout_ms, extended)

    for handler in (get_without_timeout, get_with_timeout):
        handler.__doc__ = (
            f"Resolve the id through the '{endpoint}' strategy after the "
            "simulated processing delay."
        )

    return get_without_timeout, get_with_timeout


def _add_route(
    router: APIRouter,
    path: str,
    handler: Callable[..., Any],
    endpoint: str,
) -> None:
    router.add_api_route(
        path=path,
        endpoint=handler,
        methods=["GET"],
        tags=[endpoint],
        description=handler.__doc__,
        response_class=PlainTextResponse,
        name=f"{endpoint}:{handler.__name__}",
    )
