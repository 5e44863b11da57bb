"""Configuration dataclasses for serverops."""

from .server import DEFAULT_PORT, CORSPolicy, ServerConfig, resolve_port
from .uvicorn import UvicornConfig

__all__ = [
    "CORSPolicy",
    "DEFAULT_PORT",
    "ServerConfig",
    "UvicornConfig",
    "resolve_port",
]
