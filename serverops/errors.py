"""
Typed HTTP error for route handlers and outbound requests.

ServerOpsError carries a message and an HTTP status code. Raising one inside
a route handler short-circuits to a JSON error response with that status;
ServerOpsRequest turns every outbound failure into one so handlers have a
single catch path.

Wire format of every error response:

    {"error": {"message": "<message>"}}

Example:
    async def get_user(server, request):
        user = users.get(request.path_params["user_id"])
        if user is None:
            raise server.error("User not found", 404)
        return user
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from starlette.responses import JSONResponse

from . import time as _time

logger = logging.getLogger("serverops.error")

DEFAULT_MESSAGE = "Unknown Error"
DEFAULT_STATUS_CODE = 500
MIN_STATUS_CODE = 100
MAX_STATUS_CODE = 599


def validate_status_code(status_code: Any) -> int:
    """
    Validate an HTTP status code, falling back to 500.

    Only real integers in [100, 599] are accepted. Anything else (including
    bools, floats and numeric strings) is replaced by 500 and a warning is
    logged; an invalid code is never a hard failure.

    Args:
        status_code: Candidate status code

    Returns:
        int: The status code, or 500 if it was invalid
    """
    is_valid = (
        isinstance(status_code, int)
        and not isinstance(status_code, bool)
        and MIN_STATUS_CODE <= status_code <= MAX_STATUS_CODE
    )
    if not is_valid:
        logger.warning(
            f'Invalid status code "{status_code}" given - using '
            f"{DEFAULT_STATUS_CODE} instead"
        )
        return DEFAULT_STATUS_CODE
    return status_code


@runtime_checkable
class ErrorLike(Protocol):
    """
    Capability shared by every typed error.

    Catch sites test for this protocol instead of a concrete class, so errors
    raised from independently loaded modules (or other packages providing the
    same shape) are handled the same way.
    """

    status_code: int

    def log(self, formatter: Callable[[dict[str, Any]], Any] | None = None) -> Any:
        ...

    def send(self) -> Any:
        ...


def is_error_like(value: Any) -> bool:
    """Check whether a value can be logged and sent as a typed error."""
    return isinstance(value, ErrorLike) and isinstance(
        getattr(value, "status_code", None), int
    )


class ServerOpsError(Exception):
    """
    Error carrying an HTTP status code.

    Attributes:
        message: Human-readable message sent to the client
        status_code: HTTP status code in [100, 599]
    """

    def __init__(self, message: str | None = None, status_code: Any = None) -> None:
        """
        Initialize the error.

        Args:
            message: Error message (default: "Unknown Error")
            status_code: HTTP status code; invalid values become 500
        """
        self.message = DEFAULT_MESSAGE if message is None else message
        self.status_code = validate_status_code(status_code)
        super().__init__(self.message)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, "
            f"status_code={self.status_code})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Body of the error response."""
        return {"error": {"message": self.message}}

    def send(self) -> JSONResponse:
        """
        Serialize the error into a response.

        Returns:
            JSONResponse: ``{"error": {"message": ...}}`` with this status code
        """
        return JSONResponse(self.to_dict(), status_code=self.status_code)

    def reject(self, reject: Callable[[BaseException], Any]) -> None:
        """
        Forward this error into a rejection channel.

        Example:
            future = loop.create_future()
            ServerOpsError("Gone", 410).reject(future.set_exception)
        """
        reject(self)

    def log(
        self, formatter: Callable[[dict[str, Any]], Any] | None = None
    ) -> ServerOpsError:
        """
        Log the error and return it for chaining into send().

        Args:
            formatter: Optional callable receiving ``{"message", "status_code",
                "timestamp"}`` and returning the line to log

        Returns:
            ServerOpsError: self
        """
        ts = self.timestamp()
        if callable(formatter):
            line = formatter(
                {"message": self.message, "status_code": self.status_code, "timestamp": ts}
            )
        else:
            line = f"{ts} | {self.status_code} - {self.message}"
        logger.error(line)
        return self

    @staticmethod
    def init(message: str | None = None, status_code: Any = None) -> ServerOpsError:
        """Create a ServerOpsError (factory alias for the constructor)."""
        return ServerOpsError(message, status_code)

    @staticmethod
    def timestamp(time_zone: str | None = None) -> str:
        """Current timestamp, local time unless a zone name is given."""
        return _time.timestamp(time_zone)
