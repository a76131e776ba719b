"""
Demo Proxy

Forwards an already-validated demo request to the app's upstream demo
origin and returns a rewritten, non-cacheable response whose links keep
pointing back through /demo-proxy/{token}/.

The upstream response is buffered whole because body rewriting has to see
the complete payload. Redirects are not followed; their Location header is
rewritten instead so the browser stays inside the proxy.
"""
import logging
from typing import Iterable, List, Mapping, Optional, Tuple
from urllib.parse import urlsplit

import httpx
from starlette.responses import Response

from ..core.config import settings
from ..models import App, DemoSession
from .demo_sessions import mask_token
from .errors import DemoUnavailable, UpstreamProxyFailure
from .rewrite import UrlRewriter

logger = logging.getLogger(__name__)

HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "proxy-connection",
    "te",
    "trailer",
    "trailers",
    "transfer-encoding",
    "upgrade",
}

# Client credentials and routing headers never reach the upstream
STRIPPED_REQUEST_HEADERS = HOP_BY_HOP_HEADERS | {
    "host",
    "cookie",
    "authorization",
    "x-demo-session",
    "content-length",
    "accept-encoding",
    "referer",
    "x-forwarded-for",
    "x-forwarded-host",
    "x-forwarded-proto",
    "x-forwarded-port",
    "x-forwarded-prefix",
    "forwarded",
    "x-real-ip",
}

STRIPPED_RESPONSE_HEADERS = HOP_BY_HOP_HEADERS | {
    "set-cookie",
    "x-original-url",
    "x-forwarded-host",
    "x-forwarded-for",
    "content-encoding",
    "content-length",
    "x-frame-options",
    "cache-control",
    "pragma",
    "expires",
}

PROXY_RESPONSE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Robots-Tag": "noindex, nofollow",
}

BODYLESS_METHODS = {"GET", "HEAD", "OPTIONS"}


def session_prefix(token: str) -> str:
    return f"{settings.DEMO_PROXY_PREFIX}/{token}"


def relative_upstream_path(raw_path: str, token: str) -> str:
    """
    Strip /demo-proxy/{token} from an incoming path.

    Works on the raw (still percent-encoded) path so encoded characters are
    forwarded exactly as the browser sent them. Returns "" for the bare
    session root.
    """
    prefix = session_prefix(token)
    if raw_path.startswith(prefix):
        raw_path = raw_path[len(prefix):]
    return raw_path.lstrip("/")


def build_upstream_url(demo_url: str, relative_path: str, query: str = "") -> str:
    """
    Resolve the upstream URL for a proxied path.

    The session root maps to the demo URL itself; any other path is taken
    relative to the upstream origin, which is what origin rewriting and
    root-relative rewriting in served pages produce.
    """
    parts = urlsplit(demo_url)
    if relative_path:
        url = f"{parts.scheme}://{parts.netloc}/{relative_path}"
    else:
        url = f"{parts.scheme}://{parts.netloc}{parts.path or '/'}"
        if parts.query and not query:
            query = parts.query
    if query:
        url += "?" + query
    return url


def filter_request_headers(headers: Iterable[Tuple[str, str]], upstream_origin: str) -> List[Tuple[str, str]]:
    forwarded = []
    for name, value in headers:
        lower = name.lower()
        if lower in STRIPPED_REQUEST_HEADERS or lower == "user-agent":
            continue
        if lower == "origin":
            value = upstream_origin
        forwarded.append((name, value))
    forwarded.append(("User-Agent", settings.DEMO_PROXY_USER_AGENT))
    forwarded.append(("X-Forwarded-Proto", "https"))
    forwarded.append(("Accept-Encoding", "identity"))
    return forwarded


class DemoProxy:
    """Rewriting reverse proxy over one shared httpx.AsyncClient."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def forward(
        self,
        session: DemoSession,
        app: App,
        method: str,
        raw_path: str,
        query: str,
        headers: Mapping[str, str],
        body: Optional[bytes] = None,
    ) -> Response:
        """
        Send the request upstream and build the client response.

        `session` must already have passed validation for this request.

        Raises:
            DemoUnavailable: app lost its demo URL
            UpstreamProxyFailure: the upstream could not be reached
        """
        if not app.has_demo:
            raise DemoUnavailable()

        token = session.session_token
        prefix = session_prefix(token)
        rewriter = UrlRewriter(app.demo_url, prefix)
        url = build_upstream_url(app.demo_url, relative_upstream_path(raw_path, token), query)
        header_items = headers.items() if hasattr(headers, "items") else headers
        upstream_headers = filter_request_headers(header_items, rewriter.origin)

        method = method.upper()
        try:
            upstream = await self.client.request(
                method,
                url,
                headers=upstream_headers,
                content=None if method in BODYLESS_METHODS else (body or None),
                follow_redirects=False,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(
                f"Demo proxy upstream failure for app {app.id} "
                f"(session {mask_token(token)}): {type(e).__name__}: {e}"
            )
            raise UpstreamProxyFailure()

        content_type = upstream.headers.get("content-type")
        content = rewriter.rewrite_body(upstream.content, content_type)

        response = Response(content=content, status_code=upstream.status_code)
        for name, value in upstream.headers.multi_items():
            lower = name.lower()
            if lower in STRIPPED_RESPONSE_HEADERS:
                continue
            if lower == "location":
                value = rewriter.rewrite_location(value)
            response.headers.append(name, value)
        for name, value in PROXY_RESPONSE_HEADERS.items():
            response.headers[name] = value

        logger.debug(
            f"Demo proxy {method} {mask_token(token)} -> {upstream.status_code} "
            f"({len(content)} bytes, {content_type or 'no content type'})"
        )
        return response
