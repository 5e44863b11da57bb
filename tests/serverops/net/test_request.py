"""
Tests for serverops.net.request.

Outbound calls go through httpx.MockTransport; no network I/O happens.
"""

from unittest.mock import Mock
from urllib.parse import parse_qs

import httpx
import pytest

from serverops.errors import ServerOpsError
from serverops.net.request import (
    NO_RESPONSE_MESSAGE,
    ServerOpsRequest,
    normalize_error,
)

URL = "http://service.test/items"


def _client(handler) -> ServerOpsRequest:
    return ServerOpsRequest(transport=httpx.MockTransport(handler))


# =============================================================================
# Successful Requests
# =============================================================================


@pytest.mark.unit
class TestSend:
    """Test successful sends and parameter placement."""

    @pytest.mark.asyncio
    async def test_get_params_in_query_string(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["query"] = parse_qs(request.url.query.decode())
            seen["body"] = request.content
            return httpx.Response(200, json={"items": [1, 2]})

        body = await _client(handler).send("get", URL, params={"q": "tea", "n": 2})

        assert body == {"items": [1, 2]}
        assert seen["method"] == "GET"
        assert seen["query"] == {"q": ["tea"], "n": ["2"]}
        assert seen["body"] == b""

    @pytest.mark.asyncio
    async def test_post_params_form_encoded(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["type"] = request.headers["content-type"]
            seen["form"] = parse_qs(request.content.decode())
            seen["query"] = request.url.query
            return httpx.Response(201, json={"ok": True})

        body = await _client(handler).send("POST", URL, params={"name": "kettle"})

        assert body == {"ok": True}
        assert seen["method"] == "POST"
        assert seen["type"] == "application/x-www-form-urlencoded"
        assert seen["form"] == {"name": ["kettle"]}
        assert seen["query"] == b""

    @pytest.mark.asyncio
    async def test_text_body(self):
        client = _client(lambda request: httpx.Response(200, text="plain words"))

        assert await client.GET(URL) == "plain words"

    @pytest.mark.asyncio
    async def test_headers_forwarded(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("authorization")
            seen["base"] = request.headers.get("x-service")
            return httpx.Response(200, json={})

        client = ServerOpsRequest(
            transport=httpx.MockTransport(handler), headers={"X-Service": "api"}
        )
        await client.GET(URL, headers={"Authorization": "Bearer t"})

        assert seen == {"auth": "Bearer t", "base": "api"}

    @pytest.mark.asyncio
    async def test_cookies_only_with_credentials(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers.get("cookie"))
            return httpx.Response(200, json={})

        client = _client(handler)
        await client.GET(URL, cookies={"sid": "abc"})
        await client.GET(URL, cookies={"sid": "abc"}, with_credentials="yes")
        await client.GET(URL, cookies={"sid": "abc"}, with_credentials=True)

        assert seen == [None, None, "sid=abc"]

    @pytest.mark.asyncio
    async def test_post_alias(self):
        methods = []

        def handler(request: httpx.Request) -> httpx.Response:
            methods.append(request.method)
            return httpx.Response(200, json={})

        await _client(handler).POST(URL, params={"a": "b"})

        assert methods == ["POST"]


# =============================================================================
# Failure Normalization
# =============================================================================


@pytest.mark.unit
class TestFailures:
    """Test that every failure becomes a ServerOpsError."""

    @pytest.mark.asyncio
    async def test_structured_error_response(self):
        client = _client(
            lambda request: httpx.Response(404, json={"error": {"message": "not found"}})
        )

        with pytest.raises(ServerOpsError) as exc_info:
            await client.send("get", URL)

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "not found"

    @pytest.mark.asyncio
    async def test_raw_error_body(self):
        client = _client(lambda request: httpx.Response(503, text="upstream down"))

        with pytest.raises(ServerOpsError) as exc_info:
            await client.GET(URL)

        assert exc_info.value.status_code == 503
        assert exc_info.value.message == "upstream down"

    @pytest.mark.asyncio
    async def test_json_error_without_message_uses_raw_body(self):
        client = _client(lambda request: httpx.Response(400, text='{"detail": "bad"}'))

        with pytest.raises(ServerOpsError) as exc_info:
            await client.GET(URL)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == '{"detail": "bad"}'

    @pytest.mark.asyncio
    async def test_unsupported_method_without_io(self):
        handler = Mock()

        with pytest.raises(ServerOpsError) as exc_info:
            await _client(handler).send("patch", URL)

        assert exc_info.value.status_code == 405
        assert exc_info.value.message == 'Unsupported HTTP Method "patch"'
        handler.assert_not_called()

    @pytest.mark.asyncio
    async def test_timeout_is_400(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(ServerOpsError) as exc_info:
            await _client(handler).GET(URL)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "timed out"

    @pytest.mark.asyncio
    async def test_connect_error_without_message(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("", request=request)

        with pytest.raises(ServerOpsError) as exc_info:
            await _client(handler).GET(URL)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == NO_RESPONSE_MESSAGE

    @pytest.mark.asyncio
    async def test_unsendable_request_is_500(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.UnsupportedProtocol("missing scheme", request=request)

        with pytest.raises(ServerOpsError) as exc_info:
            await _client(handler).GET(URL)

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_other_exception_is_500(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise RuntimeError("kaboom")

        with pytest.raises(ServerOpsError) as exc_info:
            await _client(handler).GET(URL)

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "kaboom"
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_typed_error_passes_through(self):
        original = ServerOpsError("already typed", 409)

        def handler(request: httpx.Request) -> httpx.Response:
            raise original

        with pytest.raises(ServerOpsError) as exc_info:
            await _client(handler).GET(URL)

        assert exc_info.value is original
        assert (exc_info.value.message, exc_info.value.status_code) == ("already typed", 409)


@pytest.mark.unit
class TestNormalizeError:
    """Test normalize_error() directly."""

    def test_idempotent(self):
        err = ServerOpsError("same", 418)

        assert normalize_error(err) is err
        assert normalize_error(normalize_error(err)) is err

    def test_status_error(self):
        request = httpx.Request("GET", URL)
        response = httpx.Response(
            422, json={"error": {"message": "invalid"}}, request=request
        )
        err = httpx.HTTPStatusError("422", request=request, response=response)

        normalized = normalize_error(err)

        assert isinstance(normalized, ServerOpsError)
        assert (normalized.status_code, normalized.message) == (422, "invalid")

    def test_generic_exception(self):
        normalized = normalize_error(KeyError("k"))

        assert isinstance(normalized, ServerOpsError)
        assert normalized.status_code == 500
