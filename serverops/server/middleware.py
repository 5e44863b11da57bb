"""
Middleware installed by ServerOps.

SecurityHeadersMiddleware adds defensive headers to every response.
scoped(), serve_static() and compose() build the per-endpoint middleware
chains that back ServerOps.use() and ServerOps.static().
"""

from __future__ import annotations

import os
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from starlette.datastructures import MutableHeaders
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import Response
from starlette.staticfiles import StaticFiles
from starlette.types import ASGIApp, Message, Receive, Scope, Send

Endpoint = Callable[[Request], Awaitable[Response]]
CallNext = Endpoint
MiddlewareFunc = Callable[[Request, CallNext], Awaitable[Response]]

STATIC_METHODS = ("GET", "HEAD")
STATIC_MISS_CODES = (404, 405)


@dataclass(frozen=True)
class SecurityHeadersConfig:
    """
    Security header values. All values are applied as-is; None skips a header.
    """

    content_security_policy: str | None = (
        "default-src 'self';base-uri 'self';font-src 'self' https: data:;"
        "form-action 'self';frame-ancestors 'self';img-src 'self' data:;"
        "object-src 'none';script-src 'self';script-src-attr 'none';"
        "style-src 'self' https: 'unsafe-inline';upgrade-insecure-requests"
    )
    cross_origin_opener_policy: str | None = "same-origin"
    cross_origin_resource_policy: str | None = "same-origin"
    origin_agent_cluster: str | None = "?1"
    referrer_policy: str | None = "no-referrer"
    strict_transport_security: str | None = "max-age=31536000; includeSubDomains"
    x_content_type_options: str | None = "nosniff"
    x_dns_prefetch_control: str | None = "off"
    x_frame_options: str | None = "SAMEORIGIN"
    x_permitted_cross_domain_policies: str | None = "none"
    x_xss_protection: str | None = "0"

    def headers(self) -> list[tuple[str, str]]:
        """Header name/value pairs, skipping unset values."""
        pairs = [
            ("Content-Security-Policy", self.content_security_policy),
            ("Cross-Origin-Opener-Policy", self.cross_origin_opener_policy),
            ("Cross-Origin-Resource-Policy", self.cross_origin_resource_policy),
            ("Origin-Agent-Cluster", self.origin_agent_cluster),
            ("Referrer-Policy", self.referrer_policy),
            ("Strict-Transport-Security", self.strict_transport_security),
            ("X-Content-Type-Options", self.x_content_type_options),
            ("X-DNS-Prefetch-Control", self.x_dns_prefetch_control),
            ("X-Frame-Options", self.x_frame_options),
            ("X-Permitted-Cross-Domain-Policies", self.x_permitted_cross_domain_policies),
            ("X-XSS-Protection", self.x_xss_protection),
        ]
        return [(name, value) for name, value in pairs if value is not None]


class SecurityHeadersMiddleware:
    """
    Pure ASGI middleware adding security headers to HTTP responses.

    Headers already set by the application are kept.
    """

    def __init__(self, app: ASGIApp, config: SecurityHeadersConfig | None = None) -> None:
        self.app = app
        self._headers = (config or SecurityHeadersConfig()).headers()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for name, value in self._headers:
                    if name not in headers:
                        headers.append(name, value)
            await send(message)

        await self.app(scope, receive, send_with_headers)


def path_matches(path: str, prefix: str) -> bool:
    """Check whether a request path lies under a mount-style prefix."""
    base = prefix.rstrip("/")
    if not base:
        return True
    return path == base or path.startswith(base + "/")


def scoped(func: MiddlewareFunc, prefix: str | None = None) -> MiddlewareFunc:
    """Restrict a middleware function to paths under a prefix."""
    if prefix is None:
        return func

    async def middleware(request: Request, call_next: CallNext) -> Response:
        if path_matches(request.url.path, prefix):
            return await func(request, call_next)
        return await call_next(request)

    middleware.__name__ = getattr(func, "__name__", "middleware")
    return middleware


def serve_static(prefix: str, directory: str | Path) -> MiddlewareFunc:
    """
    Serve files under a path prefix, passing every miss on.

    GET and HEAD requests for an existing file are answered from the
    directory. Anything else (other methods, missing files, directories)
    continues to call_next, so later routes stay reachable. The directory
    may not exist yet.
    """
    files = StaticFiles(directory=directory, check_dir=False)
    base = prefix.rstrip("/")

    async def middleware(request: Request, call_next: CallNext) -> Response:
        path = request.url.path
        if request.method not in STATIC_METHODS or not path_matches(path, prefix):
            return await call_next(request)

        relative = os.path.normpath(os.path.join(*path[len(base) :].split("/")))
        try:
            response = await files.get_response(relative, request.scope)
        except HTTPException as exc:
            if exc.status_code not in STATIC_MISS_CODES:
                raise
            return await call_next(request)
        if response.status_code in STATIC_MISS_CODES:
            return await call_next(request)
        return response

    middleware.__name__ = f"static:{prefix}"
    return middleware


def compose(layers: Sequence[MiddlewareFunc], endpoint: Endpoint) -> Endpoint:
    """
    Wrap an endpoint in middleware functions, first layer outermost.

    Each layer receives the next one as its call_next.
    """
    for layer in reversed(layers):
        endpoint = _bind(layer, endpoint)
    return endpoint


def _bind(layer: MiddlewareFunc, call_next: Endpoint) -> Endpoint:
    async def endpoint(request: Request) -> Response:
        return await layer(request, call_next)

    return endpoint
