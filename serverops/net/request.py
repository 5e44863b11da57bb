"""
Outbound HTTP requests with typed failures.

ServerOpsRequest wraps an httpx.AsyncClient and normalizes every failure into
a ServerOpsError, so route handlers can await other services and let errors
fall through to the same response path as their own errors.

Failure mapping:
    - remote answered with an error status -> that status, message from
      ``{"error": {"message": ...}}`` or the raw body
    - request sent, no response (timeout, connection, protocol) -> 400
    - request could not be built or sent -> 500
    - typed errors -> re-raised unchanged
    - anything else -> 500

Example:
    async def weather(server, request):
        return await server.http.GET(
            "https://api.example.com/forecast",
            params={"city": request.query_params["city"]},
        )
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from ..errors import ServerOpsError, is_error_like

logger = logging.getLogger("serverops.request")

SUPPORTED_METHODS = ("get", "post")

NO_RESPONSE_MESSAGE = "No response received"
UNKNOWN_CLIENT_MESSAGE = "Unknown HTTP client error"

# Raised before a request ever leaves the process.
_UNSENDABLE_ERRORS = (httpx.InvalidURL, httpx.UnsupportedProtocol, httpx.LocalProtocolError)


def _response_body(response: httpx.Response) -> Any:
    """Parsed JSON body, or the raw text when the body is not JSON."""
    try:
        return response.json()
    except ValueError:
        return response.text


def _error_message(response: httpx.Response) -> str:
    """Message from a ``{"error": {"message": ...}}`` payload or the raw body."""
    payload = _response_body(response)
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and "message" in error:
            return str(error["message"])
    return response.text


def normalize_error(err: BaseException) -> BaseException:
    """
    Map any failure raised while sending a request to a typed error.

    Args:
        err: Exception raised by the transport or by request preparation

    Returns:
        BaseException: A ServerOpsError, or err itself if it is already
        error-like
    """
    if is_error_like(err):
        return err

    if isinstance(err, httpx.HTTPStatusError):
        response = err.response
        return ServerOpsError(_error_message(response), response.status_code)

    if isinstance(err, _UNSENDABLE_ERRORS):
        return ServerOpsError(str(err) or UNKNOWN_CLIENT_MESSAGE, 500)

    if isinstance(err, httpx.TransportError):
        return ServerOpsError(str(err) or NO_RESPONSE_MESSAGE, 400)

    if isinstance(err, httpx.HTTPError):
        return ServerOpsError(str(err) or UNKNOWN_CLIENT_MESSAGE, 500)

    return ServerOpsError(str(err), 500)


class ServerOpsRequest:
    """
    Async HTTP client for calling other services from route handlers.

    Only GET and POST are supported. GET parameters go into the query
    string; POST parameters are form-url-encoded into the body. No timeout is
    imposed.
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        """
        Initialize the client wrapper.

        Args:
            transport: Optional httpx transport (e.g. httpx.MockTransport)
            headers: Headers sent with every request
        """
        self._transport = transport
        self._headers = dict(headers or {})

    def _client(self, cookies: Mapping[str, str] | None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self._transport,
            headers=self._headers,
            cookies=dict(cookies) if cookies else None,
            timeout=None,
            follow_redirects=True,
        )

    @staticmethod
    def _request_kwargs(method: str, params: Mapping[str, Any] | None) -> dict[str, Any]:
        """Place parameters according to the method."""
        verb = method.lower()
        if verb == "post":
            return {"data": dict(params or {})}
        if verb == "get":
            return {"params": dict(params or {})}
        raise ServerOpsError(f'Unsupported HTTP Method "{method}"', 405)

    async def send(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        with_credentials: bool = False,
        cookies: Mapping[str, str] | None = None,
    ) -> Any:
        """
        Send one request and return the response body.

        Args:
            method: "get" or "post" (case-insensitive)
            url: Absolute URL
            params: Query parameters (GET) or form fields (POST)
            headers: Extra request headers
            with_credentials: Send cookies; honoured only when exactly True
            cookies: Cookies sent when with_credentials is True

        Returns:
            Parsed JSON body, or the body text

        Raises:
            ServerOpsError: On any failure, including unsupported methods (405)
        """
        try:
            kwargs = self._request_kwargs(method, params)
            send_cookies = cookies if with_credentials is True else None

            logger.debug(f"{method.upper()} {url}")
            async with self._client(send_cookies) as client:
                response = await client.request(
                    method.upper(), url, headers=dict(headers or {}), **kwargs
                )
                response.raise_for_status()
                return _response_body(response)
        except Exception as err:
            normalized = normalize_error(err)
            if normalized is err:
                raise
            raise normalized from err

    async def GET(self, url: str, **kwargs: Any) -> Any:
        """Send a GET request (see send())."""
        return await self.send("get", url, **kwargs)

    async def POST(self, url: str, **kwargs: Any) -> Any:
        """Send a POST request (see send())."""
        return await self.send("post", url, **kwargs)
