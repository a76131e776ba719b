"""
URL rewriting for proxied demo content.

Upstream pages are served under /demo-proxy/{token}/, so absolute links to
the upstream origin, protocol-relative links to its host, and root-relative
references all have to be pointed back through that prefix. This is plain
string rewriting: URLs assembled at runtime by client-side JavaScript are
not seen.
"""
import re
from typing import Optional
from urllib.parse import urlsplit

HTML_TYPES = {"text/html", "application/xhtml+xml"}
CSS_TYPES = {"text/css"}
JS_TYPES = {
    "application/javascript",
    "text/javascript",
    "application/x-javascript",
    "application/ecmascript",
    "text/ecmascript",
}

# Attributes whose root-relative values are routed through the prefix
HTML_URL_ATTRS = ("src", "href", "action", "formaction", "poster")

_HTML_ATTR_RE = re.compile(
    r"""(\b(?:%s)\s*=\s*)(["'])/(?!/)""" % "|".join(HTML_URL_ATTRS),
    re.IGNORECASE,
)
_CSS_URL_RE = re.compile(r"""(url\(\s*["']?)/(?!/)""", re.IGNORECASE)


def media_type(content_type: Optional[str]) -> str:
    """Bare lowercase media type of a Content-Type header value."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def content_kind(content_type: Optional[str]) -> Optional[str]:
    """'html', 'css' or 'js' for rewritable bodies, None otherwise."""
    kind = media_type(content_type)
    if kind in HTML_TYPES:
        return "html"
    if kind in CSS_TYPES:
        return "css"
    if kind in JS_TYPES:
        return "js"
    return None


def charset_of(content_type: Optional[str], default: str = "utf-8") -> str:
    if content_type:
        for param in content_type.split(";")[1:]:
            name, _, value = param.partition("=")
            if name.strip().lower() == "charset" and value.strip():
                return value.strip().strip('"')
    return default


class UrlRewriter:
    """Rewrites references to one upstream origin onto a local path prefix."""

    def __init__(self, upstream_url: str, prefix: str):
        parts = urlsplit(upstream_url)
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"Upstream URL must be absolute: {upstream_url!r}")
        self.scheme = parts.scheme.lower()
        self.host = parts.netloc.lower()
        self.origin = f"{self.scheme}://{self.host}"
        self.prefix = prefix.rstrip("/")

        host = re.escape(self.host)
        # Host must end here: "example.com" must not match "example.com.evil.net"
        host_end = r"(?![\w.\-]|:\d)"
        self._absolute_re = re.compile(r"https?://" + host + host_end, re.IGNORECASE)
        self._escaped_absolute_re = re.compile(r"https?:\\/\\/" + host + host_end, re.IGNORECASE)
        self._protocol_relative_re = re.compile(r"(?<![\w:])//" + host + host_end, re.IGNORECASE)

    def rewrite_text(self, text: str, kind: str) -> str:
        """Rewrite a decoded HTML, CSS or JavaScript body."""
        # Root-relative first so the prefix inserted below is never prefixed twice
        if kind == "html":
            text = _HTML_ATTR_RE.sub(lambda m: f"{m.group(1)}{m.group(2)}{self.prefix}/", text)
        if kind in ("html", "css"):
            text = _CSS_URL_RE.sub(lambda m: f"{m.group(1)}{self.prefix}/", text)

        text = self._absolute_re.sub(self.prefix, text)
        if kind == "js":
            # JSON-escaped URLs inside inline data
            escaped_prefix = self.prefix.replace("/", "\\/")
            text = self._escaped_absolute_re.sub(lambda m: escaped_prefix, text)
        text = self._protocol_relative_re.sub(self.prefix, text)
        return text

    def rewrite_body(self, body: bytes, content_type: Optional[str]) -> bytes:
        """Rewrite a response body if its type is rewritable; other bodies pass through untouched."""
        kind = content_kind(content_type)
        if kind is None or not body:
            return body
        charset = charset_of(content_type)
        try:
            text = body.decode(charset, errors="surrogateescape")
        except LookupError:
            charset = "utf-8"
            text = body.decode(charset, errors="surrogateescape")
        return self.rewrite_text(text, kind).encode(charset, errors="surrogateescape")

    def rewrite_location(self, location: str) -> str:
        """
        Point a redirect target back through the prefix when it targets the
        upstream origin. Relative and foreign locations are returned as-is.
        """
        if not location:
            return location
        if location.startswith("//"):
            parts = urlsplit(self.scheme + ":" + location)
        elif location.startswith("/"):
            return self.prefix + location
        else:
            parts = urlsplit(location)
            if not parts.scheme:
                return location

        if parts.netloc.lower() != self.host or parts.scheme.lower() not in ("http", "https"):
            return location

        rewritten = self.prefix + (parts.path or "/")
        if parts.query:
            rewritten += "?" + parts.query
        if parts.fragment:
            rewritten += "#" + parts.fragment
        return rewritten
