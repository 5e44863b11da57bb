"""
serverops - chainable route declarations for FastAPI.

Declare routes on a builder, compose builders with chain(), and launch them
behind a catch-all 404 and a shared error handler. Handlers raise
ServerOpsError for expected failures; ServerOpsRequest turns outbound HTTP
failures into the same error type.

Example:
    from serverops import ServerOps

    async def hello(server, request):
        return {"message": "hello"}

    ServerOps.init({"port": 8080}).GET("/hello", hello).launch()
"""

from .config import CORSPolicy, ServerConfig, UvicornConfig
from .errors import ErrorLike, ServerOpsError, is_error_like
from .log import setup_logging
from .net import ServerOpsRequest, get_network_address
from .server import ServerOps
from .time import timestamp

__version__ = "0.1.0"

__all__ = [
    "CORSPolicy",
    "ErrorLike",
    "ServerConfig",
    "ServerOps",
    "ServerOpsError",
    "ServerOpsRequest",
    "UvicornConfig",
    "get_network_address",
    "is_error_like",
    "setup_logging",
    "timestamp",
]
