"""
Tests for the rewriting reverse proxy, called directly with a mocked upstream.
"""
import httpx
import pytest

from storefront.core.config import settings
from storefront.services.demo_proxy import (
    DemoProxy,
    build_upstream_url,
    filter_request_headers,
    relative_upstream_path,
)
from storefront.services.errors import UpstreamProxyFailure
from tests.helpers.demo_helpers import CLIENT_IP, CLIENT_UA, UPSTREAM_URL


@pytest.fixture
def issued(service, demo_app):
    issued = service.issue_session(demo_app.id, CLIENT_IP, CLIENT_UA)
    result = service.validate(issued.session_token, CLIENT_IP, CLIENT_UA)
    assert result.valid
    return result


@pytest.fixture
def proxy(upstream):
    return DemoProxy(httpx.AsyncClient(transport=httpx.MockTransport(upstream)))


async def forward(proxy, result, path="", method="GET", query="", headers=None, body=b""):
    token = result.session.session_token
    return await proxy.forward(
        session=result.session,
        app=result.app,
        method=method,
        raw_path=f"/demo-proxy/{token}/{path}",
        query=query,
        headers=headers or {},
        body=body,
    )


class TestUpstreamUrl:

    def test_relative_path_strips_session_prefix(self):
        assert relative_upstream_path("/demo-proxy/tok/a/b%20c", "tok") == "a/b%20c"
        assert relative_upstream_path("/demo-proxy/tok", "tok") == ""
        assert relative_upstream_path("/demo-proxy/tok/", "tok") == ""

    def test_session_root_maps_to_demo_url(self):
        assert build_upstream_url("https://up.example/app", "") == "https://up.example/app"
        assert build_upstream_url("https://up.example", "") == "https://up.example/"

    def test_paths_resolve_against_origin(self):
        assert build_upstream_url("https://up.example/app", "static/x.js", "v=1") == "https://up.example/static/x.js?v=1"


class TestRequestHeaders:

    def test_credentials_and_hop_by_hop_are_dropped(self):
        headers = filter_request_headers([
            ("Cookie", "sid=1"),
            ("Authorization", "Bearer x"),
            ("Host", "shop.example"),
            ("Connection", "keep-alive"),
            ("X-Demo-Session", "tok"),
            ("Accept", "text/html"),
            ("User-Agent", CLIENT_UA),
        ], "https://up.example")
        names = {name.lower(): value for name, value in headers}

        assert "cookie" not in names
        assert "authorization" not in names
        assert "host" not in names
        assert "connection" not in names
        assert "x-demo-session" not in names
        assert names["accept"] == "text/html"
        assert names["user-agent"] == settings.DEMO_PROXY_USER_AGENT
        assert names["x-forwarded-proto"] == "https"

    def test_client_forwarding_headers_are_replaced(self):
        headers = filter_request_headers([
            ("X-Forwarded-Proto", "http"),
            ("X-Forwarded-Port", "80"),
            ("X-Forwarded-Prefix", "/shop"),
            ("Forwarded", "for=198.51.100.9;proto=http"),
        ], "https://up.example")

        protos = [value for name, value in headers if name.lower() == "x-forwarded-proto"]
        names = {name.lower() for name, _ in headers}

        assert protos == ["https"]
        assert "x-forwarded-port" not in names
        assert "x-forwarded-prefix" not in names
        assert "forwarded" not in names
        assert names["accept-encoding"] == "identity"

    def test_origin_is_pointed_at_upstream(self):
        headers = dict(filter_request_headers([("Origin", "https://shop.example")], "https://up.example"))
        assert headers["Origin"] == "https://up.example"


@pytest.mark.asyncio
async def test_html_response_is_rewritten(proxy, upstream, issued):
    token = issued.session.session_token
    upstream.respond(
        '<a href="https://upstream.example/x">x</a><img src="/logo.png">',
        headers={"content-type": "text/html; charset=utf-8"},
    )

    response = await forward(proxy, issued, "page")

    body = response.body.decode()
    assert f"/demo-proxy/{token}/x" in body
    assert f'src="/demo-proxy/{token}/logo.png"' in body
    assert "upstream.example" not in body
    assert response.headers["content-length"] == str(len(response.body))
    assert str(upstream.last_request.url) == UPSTREAM_URL + "/page"


@pytest.mark.asyncio
async def test_security_and_cache_headers(proxy, upstream, issued):
    upstream.respond("ok", headers={
        "content-type": "text/plain",
        "set-cookie": "sid=upstream; Path=/",
        "x-frame-options": "DENY",
        "cache-control": "public, max-age=3600",
        "x-forwarded-for": "10.0.0.1",
        "etag": '"abc"',
    })

    response = await forward(proxy, issued)

    assert "set-cookie" not in response.headers
    assert "x-forwarded-for" not in response.headers
    assert response.headers["etag"] == '"abc"'
    assert response.headers["cache-control"] == "no-cache, no-store, must-revalidate"
    assert response.headers["pragma"] == "no-cache"
    assert response.headers["expires"] == "0"
    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "SAMEORIGIN"
    assert response.headers["x-robots-tag"] == "noindex, nofollow"


@pytest.mark.asyncio
async def test_redirect_location_is_rewritten(proxy, upstream, issued):
    token = issued.session.session_token
    upstream.respond(b"", status_code=302, headers={"location": "https://upstream.example/login"})

    response = await forward(proxy, issued, "account")

    assert response.status_code == 302
    assert response.headers["location"] == f"/demo-proxy/{token}/login"


@pytest.mark.asyncio
async def test_binary_body_passes_through(proxy, upstream, issued):
    png = b"\x89PNG\r\n\x1a\n\x00\x00https://upstream.example/"
    upstream.respond(png, headers={"content-type": "image/png"})

    response = await forward(proxy, issued, "logo.png")

    assert response.body == png
    assert response.headers["content-type"] == "image/png"


@pytest.mark.asyncio
async def test_request_body_and_query_are_forwarded(proxy, upstream, issued):
    upstream.respond('{"ok": true}', headers={"content-type": "application/json"})

    await forward(
        proxy, issued, "api/save", method="POST", query="draft=1",
        headers={"content-type": "application/json", "cookie": "storefront=1"},
        body=b'{"name": "x"}',
    )

    sent = upstream.last_request
    assert sent.method == "POST"
    assert str(sent.url) == UPSTREAM_URL + "/api/save?draft=1"
    assert sent.content == b'{"name": "x"}'
    assert "cookie" not in sent.headers


@pytest.mark.asyncio
async def test_upstream_failure_is_502(proxy, upstream, issued):
    upstream.fail(httpx.ConnectError("connection refused"))

    with pytest.raises(UpstreamProxyFailure) as exc_info:
        await forward(proxy, issued)

    body = exc_info.value.to_dict()
    assert exc_info.value.status_code == 502
    assert body["error"] == "UPSTREAM_UNAVAILABLE"
    assert body["retryable"] is True


@pytest.mark.asyncio
async def test_upstream_timeout_is_502(proxy, upstream, issued):
    upstream.fail(httpx.ReadTimeout("timed out"))

    with pytest.raises(UpstreamProxyFailure):
        await forward(proxy, issued)
