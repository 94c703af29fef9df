"""Tests for the redirect-following HTTP client against a local server."""

import asyncio
import json

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from lanns_ticker.adapters.driven.http.client import HttpClient
from lanns_ticker.errors import (
    HttpStatusError,
    TooManyRedirectsError,
    TransportError,
    UnhandledStatusError,
    UrlValidationError,
)

__all__ = []


async def echo(request: web.Request) -> web.Response:
    """Echo method, body and the headers the client injects."""
    return web.json_response(
        {
            "method": request.method,
            "path": request.path,
            "body": await request.text(),
            "content_type": request.headers.getall("Content-Type", []),
            "content_length": request.headers.get("Content-Length"),
            "connection": request.headers.get("Connection"),
        }
    )


async def redirect_chain(request: web.Request) -> web.Response:
    """Redirect /redirect/<n> to /redirect/<n-1>, then to /echo."""
    hops = int(request.match_info["hops"])
    location = f"/redirect/{hops - 1}" if hops > 1 else "/echo"
    return web.Response(status=302, headers={"Location": location})


async def moved_permanently(request: web.Request) -> web.Response:
    location = str(request.url.with_path("/echo"))
    return web.Response(status=301, headers={"Location": location})


async def redirect_loop(request: web.Request) -> web.Response:
    return web.Response(status=302, headers={"Location": "/loop"})


async def redirect_without_location(request: web.Request) -> web.Response:
    return web.Response(status=302)


async def status(request: web.Request) -> web.Response:
    code = int(request.match_info["code"])
    reason = request.query.get("reason")
    return web.Response(status=code, reason=reason, headers={"Location": "/echo"})


async def chunked(request: web.Request) -> web.StreamResponse:
    resp = web.StreamResponse()
    resp.content_type = "text/plain"
    resp.charset = "utf-8"
    await resp.prepare(request)
    for part in ("alpha-", "beta-", "gamma"):
        await resp.write(part.encode())
    await resp.write_eof()
    return resp


async def slow(request: web.Request) -> web.Response:
    await asyncio.sleep(1)
    return web.Response(text="late")


def make_app() -> web.Application:
    app = web.Application()
    app.router.add_route("*", "/echo", echo)
    app.router.add_route("*", "/redirect/{hops}", redirect_chain)
    app.router.add_route("*", "/moved", moved_permanently)
    app.router.add_route("*", "/loop", redirect_loop)
    app.router.add_route("*", "/no-location", redirect_without_location)
    app.router.add_route("*", "/status/{code}", status)
    app.router.add_get("/chunked", chunked)
    app.router.add_get("/slow", slow)
    return app


@pytest.mark.asyncio
async def test_get_returns_full_body() -> None:
    """GET should deliver the concatenated body of a streamed response."""
    async with TestServer(make_app()) as server, HttpClient() as client:
        result = await client.get(str(server.make_url("/chunked")))

    assert result.status_code == 200
    assert result.body == "alpha-beta-gamma"


@pytest.mark.asyncio
async def test_url_without_scheme_is_treated_as_http() -> None:
    """A URL without scheme should behave like the same URL with http://."""
    async with TestServer(make_app()) as server, HttpClient() as client:
        bare = await client.get(f"{server.host}:{server.port}/echo")
        full = await client.get(f"http://{server.host}:{server.port}/echo")

    assert bare.body == full.body
    assert bare.url == full.url


@pytest.mark.asyncio
async def test_caller_port_used_when_url_has_none() -> None:
    """The port argument should apply when the URL carries no port."""
    async with TestServer(make_app()) as server, HttpClient() as client:
        result = await client.get(f"{server.host}/echo", port=server.port)

    assert result.status_code == 200


@pytest.mark.asyncio
async def test_url_port_overrides_caller_port(unused_tcp_port: int) -> None:
    """A port embedded in the URL should win over the port argument."""
    async with TestServer(make_app()) as server, HttpClient() as client:
        result = await client.get(str(server.make_url("/echo")), port=unused_tcp_port)

    assert result.status_code == 200


@pytest.mark.asyncio
async def test_post_follows_redirect_chain_with_same_method_and_body() -> None:
    """302 hops should be followed transparently, keeping POST and its body."""
    async with TestServer(make_app()) as server, HttpClient() as client:
        result = await client.post(str(server.make_url("/redirect/3")), "payload")

    echoed = json.loads(result.body)
    assert result.status_code == 200
    assert result.url.endswith("/echo")
    assert echoed["method"] == "POST"
    assert echoed["body"] == "payload"


@pytest.mark.asyncio
async def test_get_follows_absolute_301() -> None:
    """301 with an absolute Location should be followed."""
    async with TestServer(make_app()) as server, HttpClient() as client:
        result = await client.get(str(server.make_url("/moved")))

    assert result.status_code == 200
    assert '"method": "GET"' in result.body


@pytest.mark.asyncio
async def test_redirect_loop_raises_too_many_redirects() -> None:
    """An endless redirect loop should stop after max_redirects hops."""
    async with TestServer(make_app()) as server, HttpClient(max_redirects=3) as client:
        with pytest.raises(TooManyRedirectsError) as exc_info:
            await client.get(str(server.make_url("/loop")))

    assert exc_info.value.max_redirects == 3
    assert exc_info.value.code == "E_TOO_MANY_REDIRECTS"


@pytest.mark.asyncio
async def test_redirect_chain_within_limit_succeeds() -> None:
    """Exactly max_redirects hops should still reach the final response."""
    async with TestServer(make_app()) as server, HttpClient(max_redirects=3) as client:
        result = await client.get(str(server.make_url("/redirect/3")))

    assert result.status_code == 200


@pytest.mark.asyncio
async def test_redirect_without_location_is_unhandled() -> None:
    """A 302 without Location cannot be followed."""
    async with TestServer(make_app()) as server, HttpClient() as client:
        with pytest.raises(UnhandledStatusError) as exc_info:
            await client.get(str(server.make_url("/no-location")))

    assert exc_info.value.status_code == 302


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("code", "reason"),
    [(400, "Bad Request"), (404, "Not Found"), (503, "Maintenance")],
)
async def test_error_status_carries_code_and_message(code: int, reason: str) -> None:
    """Status >= 400 should raise with the exact code and reason."""
    async with TestServer(make_app()) as server, HttpClient() as client:
        url = server.make_url(f"/status/{code}").with_query(reason=reason)
        with pytest.raises(HttpStatusError) as exc_info:
            await client.get(str(url))

    assert exc_info.value.status_code == code
    assert exc_info.value.status_message == reason
    assert exc_info.value.code == f"E_STATUS_{code}"


@pytest.mark.asyncio
@pytest.mark.parametrize("code", [300, 303, 307, 308])
async def test_other_3xx_are_unhandled(code: int) -> None:
    """3xx other than 301/302 should not be followed."""
    async with TestServer(make_app()) as server, HttpClient() as client:
        with pytest.raises(UnhandledStatusError) as exc_info:
            await client.get(str(server.make_url(f"/status/{code}")))

    assert exc_info.value.status_code == code
    assert exc_info.value.code == "E_UNHANDLED_STATUSCODE"
    assert exc_info.value.response is not None


@pytest.mark.asyncio
async def test_post_injects_default_headers() -> None:
    """POST should add Content-Type, byte Content-Length and keep-alive."""
    async with TestServer(make_app()) as server, HttpClient() as client:
        result = await client.post(str(server.make_url("/echo")), "héllo")

    echoed = json.loads(result.body)
    assert echoed["body"] == "héllo"
    assert echoed["content_length"] == "6"
    assert echoed["content_type"] == ["text/plain"]
    assert echoed["connection"] == "keep-alive"


@pytest.mark.asyncio
async def test_post_serializes_structured_body() -> None:
    """A dict body should be sent as JSON text."""
    async with TestServer(make_app()) as server, HttpClient() as client:
        result = await client.post(str(server.make_url("/echo")), {"name": "pulse"})

    echoed = json.loads(result.body)
    assert echoed["body"] == '{"name": "pulse"}'
    assert echoed["content_type"] == ["text/plain"]


@pytest.mark.asyncio
async def test_lowercase_content_type_is_respected() -> None:
    """A caller-set content-type should suppress the default one."""
    async with TestServer(make_app()) as server, HttpClient() as client:
        result = await client.post(
            str(server.make_url("/echo")),
            "{}",
            headers={"content-type": "application/json"},
        )

    echoed = json.loads(result.body)
    assert echoed["content_type"] == ["application/json"]


@pytest.mark.asyncio
async def test_caller_connection_header_is_respected() -> None:
    """A caller-set connection header should not be replaced."""
    async with TestServer(make_app()) as server, HttpClient() as client:
        result = await client.get(str(server.make_url("/echo")), headers={"connection": "close"})

    echoed = json.loads(result.body)
    assert echoed["connection"] == "close"


@pytest.mark.asyncio
async def test_connection_refused_raises_transport_error(unused_tcp_port: int) -> None:
    """Connection failures should surface as TransportError without retry."""
    async with HttpClient() as client:
        with pytest.raises(TransportError) as exc_info:
            await client.get(f"http://127.0.0.1:{unused_tcp_port}/echo")

    assert exc_info.value.__cause__ is not None


@pytest.mark.asyncio
async def test_timeout_raises_transport_error() -> None:
    """A response slower than the timeout should surface as TransportError."""
    async with TestServer(make_app()) as server, HttpClient(timeout=0.1) as client:
        with pytest.raises(TransportError):
            await client.get(str(server.make_url("/slow")))


@pytest.mark.asyncio
async def test_invalid_url_fails_before_any_network_call() -> None:
    """URL validation should fail even without an open session."""
    client = HttpClient()

    with pytest.raises(UrlValidationError):
        await client.get("http://")


@pytest.mark.asyncio
async def test_request_raises_if_session_not_initialized() -> None:
    """request() should refuse to run outside the context manager."""
    client = HttpClient()

    with pytest.raises(RuntimeError, match="Session not initialized"):
        await client.get("http://example.com")


@pytest.mark.asyncio
async def test_http_client_context_manager() -> None:
    """HTTP client should initialize and close session."""
    client = HttpClient()
    assert client.session is None

    async with client as c:
        assert c.session is not None
        assert c is client

    assert client.session.closed
