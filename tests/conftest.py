"""Shared fixtures for the page analyzer tests."""

import httpx
import pytest

FIXTURE_HTML = """
<html>
    <head>
        <title>Fixture Page</title>
        <meta name="description" content="A test page">
        <meta property="og:title" content="Fixture OG">
    </head>
    <body>
        <h1>Welcome</h1>
        <p>The quick brown fox jumps over the lazy dog and you can see that it was not fun for all. The dog sleeps.</p>
        <a href="/about">About us</a>
        <a href="https://other.com/page">Elsewhere</a>
    </body>
</html>
"""


def make_client(handler, calls=None) -> httpx.AsyncClient:
    """AsyncClient backed by a MockTransport.

    Args:
        handler: Function taking an httpx.Request and returning an httpx.Response
        calls: Optional list that receives every request sent
    """

    def _handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        return handler(request)

    return httpx.AsyncClient(transport=httpx.MockTransport(_handler), follow_redirects=True)


@pytest.fixture
def fixture_html():
    return FIXTURE_HTML


@pytest.fixture
def request_log():
    """List collecting the requests a mock client receives."""
    return []


@pytest.fixture
def html_client(fixture_html, request_log):
    """Client that serves the fixture page with a minimal header set."""

    def handler(request):
        return httpx.Response(
            200,
            html=fixture_html,
            headers={
                "Strict-Transport-Security": "max-age=31536000",
                "X-Frame-Options": "DENY",
            },
        )

    return make_client(handler, request_log)


@pytest.fixture
def mock_client():
    """Factory building MockTransport-backed clients from a handler."""
    return make_client
