"""
Route handler wrapping and catch-all responders.

Every endpoint chain (route or catch-all, with the middleware registered
before it) runs inside error_boundary(), so typed and unexpected errors are
answered from within the app's middleware stack and still receive the
security and CORS headers.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response

from ..errors import is_error_like
from .middleware import Endpoint

if TYPE_CHECKING:
    from .builder import ServerOps

logger = logging.getLogger("serverops.server")

NOT_FOUND_BODY = "Route Does Not Exist"
SERVER_ERROR_BODY = "Internal Server Error"

Handler = Callable[..., Any]


def to_response(result: Any) -> Response:
    """
    Turn a handler's return value into a response.

    Responses pass through, None becomes an empty 204, strings become plain
    text and everything else is JSON-encoded.
    """
    if isinstance(result, Response):
        return result
    if result is None:
        return Response(status_code=204)
    if isinstance(result, str):
        return PlainTextResponse(result)
    return JSONResponse(result)


async def call_handler(handler: Handler, server: ServerOps, request: Request) -> Any:
    """Call a sync or async handler with the server as explicit context."""
    if inspect.iscoroutinefunction(handler):
        return await handler(server, request)
    result = await run_in_threadpool(handler, server, request)
    if inspect.isawaitable(result):
        result = await result
    return result


def wrap_handler(server: ServerOps, handler: Handler) -> Endpoint:
    """Wrap a user handler as a Starlette endpoint."""

    async def endpoint(request: Request) -> Response:
        return to_response(await call_handler(handler, server, request))

    endpoint.__name__ = getattr(handler, "__name__", "endpoint")
    endpoint.__doc__ = getattr(handler, "__doc__", None)
    return endpoint


def error_boundary(endpoint: Endpoint) -> Endpoint:
    """
    Answer every exception raised by an endpoint chain.

    HTTPException is left to the framework's exception middleware, which
    also runs inside the user middleware.
    """

    async def guarded(request: Request) -> Response:
        try:
            return await endpoint(request)
        except HTTPException:
            raise
        except Exception as exc:
            return await handle_server_error(request, exc)

    guarded.__name__ = getattr(endpoint, "__name__", "endpoint")
    return guarded


async def not_found(request: Request) -> Response:
    """Respond to any request no route matched."""
    return PlainTextResponse(NOT_FOUND_BODY, status_code=404)


async def handle_server_error(request: Request, exc: Exception) -> Response:
    """
    Last-resort handler for uncaught exceptions.

    Typed errors are logged and sent with their own status. Anything else is
    logged with its traceback and answered with a generic 500.
    """
    if is_error_like(exc):
        return exc.log().send()  # type: ignore[attr-defined]

    logger.error(
        f"Unhandled error for {request.method} {request.url.path}",
        exc_info=(type(exc), exc, exc.__traceback__),
    )
    return PlainTextResponse(SERVER_ERROR_BODY, status_code=500)
