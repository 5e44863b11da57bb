"""Chainable route builder on top of FastAPI."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any

import uvicorn
from fastapi import FastAPI
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware

from .. import time as _time
from ..config.server import ServerConfig
from ..errors import ServerOpsError
from ..log import setup_logging
from ..net.address import get_network_address
from ..net.request import ServerOpsRequest
from .actions import BindingAction, MiddlewareBinding, RouteBinding, StaticBinding
from .handlers import Handler, error_boundary, handle_server_error, not_found
from .middleware import Endpoint, MiddlewareFunc, SecurityHeadersMiddleware, compose

logger = logging.getLogger("serverops.server")

CATCH_ALL_PATH = "/{path:path}"

WILDCARD_HOSTS = ("0.0.0.0", "::", "")


class _NotifyingServer(uvicorn.Server):
    """Uvicorn server that runs a callback once it is listening."""

    def __init__(self, config: uvicorn.Config, on_started: Callable[[], None]) -> None:
        super().__init__(config)
        self._on_started = on_started

    async def startup(self, sockets: Any = None) -> None:
        await super().startup(sockets=sockets)
        if not self.should_exit:
            self._on_started()


class ServerOps:
    """
    Chainable builder that binds routes to a FastAPI app.

    Registrations are recorded as binding actions and applied, in order, by
    build() or launch(). Middleware and static directories apply to the routes
    registered after them, as in a request pipeline. After all user actions a
    catch-all 404 route, behind every middleware, is installed. Each route and
    the catch-all answer their own errors, inside the security and CORS
    middleware.

    Handlers are called as ``handler(server, request)``, with this ServerOps
    as explicit context, and may be sync or async. Raising an error-like value
    (see serverops.errors.ErrorLike) answers with its status and
    ``{"error": {"message": ...}}``; any other exception answers with a
    generic 500.

    Example:
        async def get_user(server, request):
            user_id = request.path_params["user_id"]
            if user_id not in users:
                raise server.error("User not found", 404)
            return users[user_id]

        users_api = ServerOps().GET("/users/{user_id}", get_user)

        (ServerOps.init({"port": 8080, "cors": "allow-all"})
            .static("/assets", "public")
            .chain(users_api)
            .launch())
    """

    def __init__(
        self,
        config: ServerConfig | Mapping[str, Any] | None = None,
        actions: Iterable[BindingAction] | None = None,
    ) -> None:
        """
        Initialize the builder and its FastAPI app.

        Args:
            config: ServerConfig, a mapping such as ``{"port": 8080, "cors":
                "*"}``, or None for defaults (port 3000, no CORS)
            actions: Initial binding actions
        """
        self._config = ServerConfig.from_value(config)
        self._actions: list[BindingAction] = list(actions or [])
        self._layers: list[MiddlewareFunc] = []
        self._launched = False
        self._app = self._create_app()
        self.http = ServerOpsRequest()

    def _create_app(self) -> FastAPI:
        """Create the app with security and CORS middleware ahead of everything else."""
        app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)

        if self._config.security_headers:
            app.user_middleware.append(Middleware(SecurityHeadersMiddleware))

        if self._config.cors is not None:
            app.user_middleware.append(
                Middleware(CORSMiddleware, **self._config.cors.to_middleware_kwargs())
            )

        return app

    # Properties

    @property
    def app(self) -> FastAPI:
        """Underlying FastAPI application."""
        return self._app

    @property
    def config(self) -> ServerConfig:
        """Server configuration."""
        return self._config

    @property
    def port(self) -> int:
        """Bind port."""
        return self._config.port

    @property
    def host(self) -> str:
        """Bind address."""
        return self._config.host

    @property
    def cors(self) -> Any:
        """CORS policy, or None when CORS is disabled."""
        return self._config.cors

    @property
    def actions(self) -> tuple[BindingAction, ...]:
        """Pending binding actions, in application order."""
        return tuple(self._actions)

    @property
    def launched(self) -> bool:
        """True once build() or launch() has applied the actions."""
        return self._launched

    @property
    def error(self) -> type[ServerOpsError]:
        """Error class shared by all handlers."""
        return ServerOpsError

    # Registration

    def _add(self, action: BindingAction) -> ServerOps:
        if self._launched:
            logger.warning(f"{action!r} added after launch will never be bound")
        self._actions.append(action)
        return self

    def bind_route(self, method: str, path: str, handler: Handler) -> ServerOps:
        """
        Bind a handler to a method and path.

        Args:
            method: HTTP method (e.g. "GET")
            path: Starlette path pattern (e.g. "/users/{user_id}")
            handler: ``handler(server, request)``, sync or async

        Returns:
            Self for method chaining
        """
        return self._add(RouteBinding(method=method.upper(), path=path, handler=handler))

    def GET(self, path: str, handler: Handler) -> ServerOps:
        """Bind a handler for GET requests to path."""
        return self.bind_route("GET", path, handler)

    def POST(self, path: str, handler: Handler) -> ServerOps:
        """Bind a handler for POST requests to path."""
        return self.bind_route("POST", path, handler)

    def PUT(self, path: str, handler: Handler) -> ServerOps:
        """Bind a handler for PUT requests to path."""
        return self.bind_route("PUT", path, handler)

    def DELETE(self, path: str, handler: Handler) -> ServerOps:
        """Bind a handler for DELETE requests to path."""
        return self.bind_route("DELETE", path, handler)

    def use(self, path_or_func: str | MiddlewareFunc, func: MiddlewareFunc | None = None) -> ServerOps:
        """
        Install middleware, optionally scoped to a path prefix.

        Usage:
            server.use(func)
            server.use("/api", func)

        ``func(request, call_next)`` is a Starlette "http" middleware function.
        Middleware runs in registration order, and only for routes registered
        after it. Unmatched requests pass through every middleware before the
        catch-all 404.

        Returns:
            Self for method chaining
        """
        if func is None:
            if isinstance(path_or_func, str):
                raise TypeError("use() requires a middleware function")
            return self._add(MiddlewareBinding(func=path_or_func))
        if not isinstance(path_or_func, str):
            raise TypeError("use() expects a path prefix before the middleware function")
        return self._add(MiddlewareBinding(func=func, path=path_or_func))

    def static(self, path: str, directory: str | Path) -> ServerOps:
        """
        Serve files from a directory under a path prefix.

        Like use(), it only affects routes registered after it. GET and HEAD
        requests for existing files are served; any other request falls
        through to later routes. The directory may be created later.

        Returns:
            Self for method chaining
        """
        return self._add(StaticBinding(path=path, directory=directory))

    def chain(self, other: ServerOps) -> ServerOps:
        """
        Append another builder's pending actions to this one.

        Args:
            other: Builder whose actions follow this builder's actions

        Returns:
            Self for method chaining
        """
        for action in other.actions:
            self._add(action)
        return self

    # Build and launch

    def build(self) -> FastAPI:
        """
        Apply every action, then install the catch-all handlers.

        The returned app can be served by any ASGI server.

        Returns:
            The configured FastAPI application

        Raises:
            RuntimeError: If the actions were already applied
        """
        if self._launched:
            raise RuntimeError("ServerOps has already been launched")
        self._launched = True

        server = self
        for action in self._actions:
            server = action.apply(server)

        # No method list: unmatched requests of any method get the 404.
        self._app.add_route(CATCH_ALL_PATH, self.bind_endpoint(not_found), name="not_found")
        self._app.add_exception_handler(Exception, handle_server_error)

        logger.debug(f"Bound {len(self._actions)} actions")
        return self._app

    def add_layer(self, layer: MiddlewareFunc) -> None:
        """Add a middleware layer for endpoints bound from now on (build time)."""
        self._layers.append(layer)

    def bind_endpoint(self, endpoint: Endpoint) -> Endpoint:
        """Wrap an endpoint in the layers added so far and the error boundary."""
        return error_boundary(compose(tuple(self._layers), endpoint))

    def _announce(self, on_ready: Callable[[ServerOps], Any] | None) -> None:
        if callable(on_ready):
            on_ready(self)
            return
        address = self.get_network_address() if self.host in WILDCARD_HOSTS else self.host
        logger.info(f"Started on {self.timestamp()}")
        logger.info(f"Running from http://{address}:{self.port}...")

    def launch(self, on_ready: Callable[[ServerOps], Any] | None = None) -> None:
        """
        Build the app and serve it with uvicorn (blocking).

        Args:
            on_ready: Called with this server once it is listening. Without
                it, a startup banner is logged.
        """
        setup_logging(self._config.log_level, self._config.log_file)
        app = self.build()

        uv = self._config.uvicorn
        config = uvicorn.Config(
            app,
            host=self.host,
            port=self.port,
            log_config=uv.to_log_config(),
            **uv.to_uvicorn_kwargs(),
        )
        _NotifyingServer(config, on_started=lambda: self._announce(on_ready)).run()

    # Static helpers

    @staticmethod
    def init(config: ServerConfig | Mapping[str, Any] | None = None) -> ServerOps:
        """Create a ServerOps (factory alias for the constructor)."""
        return ServerOps(config)

    @staticmethod
    def get_network_address() -> str:
        """First non-internal IPv4 address of this host."""
        return get_network_address()

    @staticmethod
    def timestamp(time_zone: str | None = None) -> str:
        """Current timestamp, local time unless a zone name is given."""
        return _time.timestamp(time_zone)
