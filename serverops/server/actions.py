"""
Deferred binding actions.

ServerOps records every registration as a binding action and applies them,
in order, when it is built. Actions are plain data: they can be inspected,
compared and concatenated across builders before any server exists.

Applying a middleware or static action adds a layer to the build; applying a
route binds the handler behind the layers added so far. Layers added later
never run for routes bound earlier.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from .handlers import Handler, wrap_handler
from .middleware import MiddlewareFunc, scoped, serve_static

if TYPE_CHECKING:
    from .builder import ServerOps


@dataclass(frozen=True)
class RouteBinding:
    """Bind a handler to one HTTP method and path."""

    method: str
    path: str
    handler: Handler

    def apply(self, server: ServerOps) -> ServerOps:
        server.app.add_route(
            self.path,
            server.bind_endpoint(wrap_handler(server, self.handler)),
            methods=[self.method],
            name=f"{self.method} {self.path}",
        )
        return server


@dataclass(frozen=True)
class MiddlewareBinding:
    """Install an "http" middleware function, optionally under a path prefix."""

    func: MiddlewareFunc
    path: str | None = None

    def apply(self, server: ServerOps) -> ServerOps:
        server.add_layer(scoped(self.func, self.path))
        return server


@dataclass(frozen=True)
class StaticBinding:
    """Serve files from a directory under a path prefix, falling through on a miss."""

    path: str
    directory: str | Path

    def apply(self, server: ServerOps) -> ServerOps:
        server.add_layer(serve_static(self.path, self.directory))
        return server


BindingAction = RouteBinding | MiddlewareBinding | StaticBinding
