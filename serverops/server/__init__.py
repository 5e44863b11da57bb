"""Route builder, binding actions and catch-all handlers."""

from .actions import BindingAction, MiddlewareBinding, RouteBinding, StaticBinding
from .builder import ServerOps
from .handlers import NOT_FOUND_BODY, SERVER_ERROR_BODY
from .middleware import SecurityHeadersConfig, SecurityHeadersMiddleware

__all__ = [
    "BindingAction",
    "MiddlewareBinding",
    "NOT_FOUND_BODY",
    "RouteBinding",
    "SERVER_ERROR_BODY",
    "SecurityHeadersConfig",
    "SecurityHeadersMiddleware",
    "ServerOps",
    "StaticBinding",
]
