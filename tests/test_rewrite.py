"""
Tests for proxied-content URL rewriting.
"""
import pytest

from storefront.services.rewrite import UrlRewriter, content_kind

PREFIX = "/demo-proxy/abc123"


@pytest.fixture
def rewriter():
    return UrlRewriter("https://upstream.example", PREFIX)


def rewrite(rewriter, text, content_type="text/html; charset=utf-8"):
    return rewriter.rewrite_body(text.encode(), content_type).decode()


class TestHtml:

    def test_absolute_origin_link(self, rewriter):
        out = rewrite(rewriter, '<a href="https://upstream.example/x">x</a>')
        assert out == f'<a href="{PREFIX}/x">x</a>'
        assert "upstream.example" not in out

    def test_http_scheme_of_same_host(self, rewriter):
        out = rewrite(rewriter, '<img src="http://upstream.example/logo.png">')
        assert out == f'<img src="{PREFIX}/logo.png">'

    def test_protocol_relative_link(self, rewriter):
        out = rewrite(rewriter, '<script src="//upstream.example/app.js"></script>')
        assert out == f'<script src="{PREFIX}/app.js"></script>'

    @pytest.mark.parametrize("attr", ["src", "href", "action"])
    def test_root_relative_attributes(self, rewriter, attr):
        assert rewrite(rewriter, f'<x {attr}="/a/b">') == f'<x {attr}="{PREFIX}/a/b">'
        assert rewrite(rewriter, f"<x {attr}='/a/b'>") == f"<x {attr}='{PREFIX}/a/b'>"

    def test_relative_and_foreign_links_untouched(self, rewriter):
        html = '<a href="page.html"></a><a href="https://cdn.example/x.js"></a><a href="#top"></a>'
        assert rewrite(rewriter, html) == html

    def test_lookalike_host_untouched(self, rewriter):
        html = '<a href="https://upstream.example.evil.net/x"></a>'
        assert rewrite(rewriter, html) == html

    def test_absolute_link_is_not_prefixed_twice(self, rewriter):
        out = rewrite(rewriter, '<a href="https://upstream.example/">home</a><a href="/about">about</a>')
        assert out == f'<a href="{PREFIX}/">home</a><a href="{PREFIX}/about">about</a>'
        assert PREFIX + PREFIX not in out

    def test_inline_style_url(self, rewriter):
        out = rewrite(rewriter, '<div style="background: url(/bg.png)"></div>')
        assert out == f'<div style="background: url({PREFIX}/bg.png)"></div>'


class TestCssAndJs:

    def test_css_root_relative_url(self, rewriter):
        css = "body { background: url('/img/bg.png'); } @font-face { src: url(/f.woff2); }"
        out = rewrite(rewriter, css, "text/css")
        assert f"url('{PREFIX}/img/bg.png')" in out
        assert f"url({PREFIX}/f.woff2)" in out

    def test_css_absolute_origin(self, rewriter):
        out = rewrite(rewriter, "a { background: url(https://upstream.example/a.png) }", "text/css")
        assert out == f"a {{ background: url({PREFIX}/a.png) }}"

    def test_js_origin_rewritten_but_root_paths_untouched(self, rewriter):
        js = 'fetch("https://upstream.example/api/data"); const p = "/api/local";'
        out = rewrite(rewriter, js, "application/javascript")
        assert f'fetch("{PREFIX}/api/data")' in out
        assert '"/api/local"' in out

    def test_js_escaped_origin(self, rewriter):
        js = '{"url":"https:\\/\\/upstream.example\\/x"}'
        out = rewrite(rewriter, js, "text/javascript")
        assert out == '{"url":"\\/demo-proxy\\/abc123\\/x"}'


class TestBodies:

    def test_binary_body_untouched(self, rewriter):
        body = b"\x89PNG\r\n\x1a\nhttps://upstream.example/"
        assert rewriter.rewrite_body(body, "image/png") is body

    def test_json_body_untouched(self, rewriter):
        body = b'{"next": "https://upstream.example/page/2"}'
        assert rewriter.rewrite_body(body, "application/json") == body

    def test_declared_charset_is_preserved(self, rewriter):
        body = '<p>café</p><a href="/x">'.encode("latin-1")
        out = rewriter.rewrite_body(body, "text/html; charset=ISO-8859-1")
        assert out == f'<p>café</p><a href="{PREFIX}/x">'.encode("latin-1")

    def test_undecodable_bytes_survive(self, rewriter):
        body = b'<a href="/x">\xff\xfe</a>'
        out = rewriter.rewrite_body(body, "text/html")
        assert out == f'<a href="{PREFIX}/x">'.encode() + b"\xff\xfe</a>"

    @pytest.mark.parametrize("content_type,kind", [
        ("text/html; charset=utf-8", "html"),
        ("TEXT/CSS", "css"),
        ("application/x-javascript", "js"),
        ("application/json", None),
        (None, None),
    ])
    def test_content_kind(self, content_type, kind):
        assert content_kind(content_type) == kind


class TestLocation:

    @pytest.mark.parametrize("location,expected", [
        ("https://upstream.example/login?next=%2F", PREFIX + "/login?next=%2F"),
        ("https://upstream.example", PREFIX + "/"),
        ("//upstream.example/a#frag", PREFIX + "/a#frag"),
        ("/dashboard", PREFIX + "/dashboard"),
        ("relative/path", "relative/path"),
        ("https://accounts.example/oauth", "https://accounts.example/oauth"),
    ])
    def test_rewrite_location(self, rewriter, location, expected):
        assert rewriter.rewrite_location(location) == expected


def test_relative_upstream_url_is_rejected():
    with pytest.raises(ValueError):
        UrlRewriter("/not-absolute", PREFIX)
