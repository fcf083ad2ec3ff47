"""Tests for the headless browser render stage.

Playwright is mocked throughout; no browser is launched.
"""

import asyncio
import base64
import threading
from unittest.mock import MagicMock, patch

import pytest
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from pydantic import ValidationError

from pagescope.browser_config import DEBUG_CONFIG, FAST_CONFIG, BrowserConfig
from pagescope.exceptions import RenderError
from pagescope.renderer import CONSOLE_CAPTURE_SCRIPT, PageRenderer

PERFORMANCE_ENTRIES = [
    {
        "name": "https://site.com/",
        "entryType": "navigation",
        "initiatorType": "navigation",
        "startTime": 0,
        "duration": 120.5,
        "transferSize": 2048,
        "encodedBodySize": 1800,
    },
    {
        "name": "https://site.com/app.js",
        "entryType": "resource",
        "initiatorType": "script",
        "startTime": 30.2,
        "duration": 15.1,
        "transferSize": 512,
        "encodedBodySize": 480,
    },
]

NAVIGATION_METRICS = {"dom_content_loaded": 1.5, "ttfb": 42, "resource_count": 1}

CONSOLE_ENTRIES = [
    {"level": "log", "message": "hello 42", "args": ["hello", "42"]},
    {"level": "warn", "message": "careful", "args": ["careful"]},
]

STORAGE_ITEMS = {"local": {"theme": "dark"}, "session": {"visits": "3"}}

BROWSER_COOKIES = [
    {
        "name": "sid",
        "value": "abc",
        "domain": "site.com",
        "path": "/",
        "expires": -1,
        "httpOnly": True,
        "secure": True,
        "sameSite": "Lax",
    },
    {
        "name": "pref",
        "value": "1",
        "domain": ".site.com",
        "path": "/",
        "expires": 1893456000,
        "httpOnly": False,
        "secure": False,
        "sameSite": "None",
    },
]


def page_handler(page, event):
    """Handler the renderer registered with page.on for ``event``."""
    for call in page.on.call_args_list:
        name, handler = call.args
        if name == event:
            return handler
    raise AssertionError(f"No handler registered for {event}")


@pytest.fixture
def playwright_mocks():
    """Patch sync_playwright and return the mocked browser objects."""
    with patch("pagescope.renderer.sync_playwright") as mock_sync_playwright:
        playwright = mock_sync_playwright.return_value.__enter__.return_value
        browser = playwright.chromium.launch.return_value
        context = browser.new_context.return_value
        page = context.new_page.return_value

        page.content.return_value = "<html><body><h1>Rendered</h1></body></html>"
        page.screenshot.return_value = b"\x89PNG fake"
        page.url = "https://site.com/"
        page.evaluate.side_effect = [
            PERFORMANCE_ENTRIES, NAVIGATION_METRICS, CONSOLE_ENTRIES, STORAGE_ITEMS,
        ]
        context.cookies.return_value = BROWSER_COOKIES

        yield MagicMock(
            sync_playwright=mock_sync_playwright,
            playwright=playwright,
            browser=browser,
            context=context,
            page=page,
        )


class TestBrowserConfig:
    """Test cases for BrowserConfig."""

    def test_defaults(self):
        config = BrowserConfig()

        assert config.headless is True
        assert config.browser_type == "chromium"
        assert config.viewport() == {"width": 1920, "height": 1080}
        assert config.capture_screenshots is True

    def test_presets(self):
        assert FAST_CONFIG.capture_screenshots is False
        assert DEBUG_CONFIG.headless is False

    def test_rejects_invalid_values(self):
        with pytest.raises(ValidationError):
            BrowserConfig(timeout=10)
        with pytest.raises(ValidationError):
            BrowserConfig(browser_type="opera")

    def test_validates_assignment(self):
        config = BrowserConfig()
        with pytest.raises(ValidationError):
            config.wait_until = "whenever"


class TestPageRenderer:
    """Test cases for PageRenderer."""

    def test_render_collects_artifacts(self, playwright_mocks):
        """A successful render returns HTML, screenshot, resources and console."""
        renderer = PageRenderer()
        artifacts = renderer.render_blocking("https://site.com/")

        assert artifacts.rendered_html == "<html><body><h1>Rendered</h1></body></html>"
        assert base64.b64decode(artifacts.screenshot) == b"\x89PNG fake"
        assert artifacts.final_url == "https://site.com/"

        assert len(artifacts.network_resources) == 2
        script = artifacts.network_resources[1]
        assert script.name == "https://site.com/app.js"
        assert script.initiator_type == "script"
        assert script.duration_ms == pytest.approx(15.1)
        assert script.transfer_size == 512

        assert [(log.level, log.message) for log in artifacts.console_logs] == [
            ("log", "hello 42"),
            ("warn", "careful"),
        ]
        assert artifacts.performance_metrics == {
            "dom_content_loaded": 1.5,
            "ttfb": 42.0,
            "resource_count": 1.0,
        }
        renderer.shutdown()

    def test_console_capture_installed_before_navigation(self, playwright_mocks):
        """The console shim is registered as an init script before goto."""
        page = playwright_mocks.page
        order = []
        page.add_init_script.side_effect = lambda script: order.append("init")
        page.goto.side_effect = lambda *args, **kwargs: order.append("goto")

        PageRenderer().render_blocking("https://site.com/")

        page.add_init_script.assert_called_once_with(CONSOLE_CAPTURE_SCRIPT)
        assert order == ["init", "goto"]

    def test_browser_settings_applied(self, playwright_mocks):
        config = BrowserConfig(viewport_width=800, viewport_height=600, user_agent="UA/1")
        PageRenderer(config).render_blocking("https://site.com/")

        launch_kwargs = playwright_mocks.playwright.chromium.launch.call_args.kwargs
        assert launch_kwargs["headless"] is True
        playwright_mocks.browser.new_context.assert_called_once_with(
            viewport={"width": 800, "height": 600}, user_agent="UA/1"
        )
        playwright_mocks.page.goto.assert_called_once_with(
            "https://site.com/", wait_until="domcontentloaded", timeout=config.timeout
        )

    def test_screenshot_skipped_when_disabled(self, playwright_mocks):
        artifacts = PageRenderer(FAST_CONFIG).render_blocking("https://site.com/")

        assert artifacts.screenshot is None
        playwright_mocks.page.screenshot.assert_not_called()

    def test_page_errors_become_console_errors(self, playwright_mocks):
        """Uncaught page errors are appended as error entries."""
        page = playwright_mocks.page

        def goto(*args, **kwargs):
            page_handler(page, "pageerror")("ReferenceError: foo is not defined")

        page.goto.side_effect = goto

        artifacts = PageRenderer().render_blocking("https://site.com/")

        last = artifacts.console_logs[-1]
        assert last.level == "error"
        assert last.message == "JavaScript error: ReferenceError: foo is not defined"

    def test_failed_requests_recorded(self, playwright_mocks):
        """Requests the browser could not complete are kept with their error text."""
        page = playwright_mocks.page
        request = MagicMock(
            url="https://cdn.site.com/missing.js",
            method="GET",
            resource_type="script",
            failure="net::ERR_NAME_NOT_RESOLVED",
        )
        page.goto.side_effect = lambda *args, **kwargs: page_handler(page, "requestfailed")(request)

        artifacts = PageRenderer().render_blocking("https://site.com/")

        assert len(artifacts.failed_requests) == 1
        failed = artifacts.failed_requests[0]
        assert failed.url == "https://cdn.site.com/missing.js"
        assert failed.resource_type == "script"
        assert failed.error_text == "net::ERR_NAME_NOT_RESOLVED"
        assert artifacts.console_logs[-1].message == (
            "Failed to load: https://cdn.site.com/missing.js (net::ERR_NAME_NOT_RESOLVED)"
        )

    def test_cookies_and_storage_collected(self, playwright_mocks):
        artifacts = PageRenderer().render_blocking("https://site.com/")

        assert artifacts.local_storage == {"theme": "dark"}
        assert artifacts.session_storage == {"visits": "3"}

        session_cookie, persistent_cookie = artifacts.cookies
        assert session_cookie.name == "sid"
        assert session_cookie.http_only is True
        assert session_cookie.same_site == "Lax"
        assert session_cookie.expires is None
        assert persistent_cookie.expires == 1893456000.0
        assert persistent_cookie.secure is False

    def test_unreadable_storage_gives_empty_maps(self, playwright_mocks):
        playwright_mocks.page.evaluate.side_effect = [
            PERFORMANCE_ENTRIES, NAVIGATION_METRICS, CONSOLE_ENTRIES, None,
        ]
        playwright_mocks.context.cookies.return_value = []

        artifacts = PageRenderer().render_blocking("https://site.com/")

        assert artifacts.local_storage == {}
        assert artifacts.session_storage == {}
        assert artifacts.cookies == []

    def test_malformed_performance_entries_skipped(self, playwright_mocks):
        """Entries that are not objects are dropped instead of failing the render."""
        playwright_mocks.page.evaluate.side_effect = [
            [None, PERFORMANCE_ENTRIES[1]], NAVIGATION_METRICS, CONSOLE_ENTRIES, STORAGE_ITEMS,
        ]

        artifacts = PageRenderer().render_blocking("https://site.com/")

        assert [r.name for r in artifacts.network_resources] == ["https://site.com/app.js"]

    def test_body_wait_timeout_is_ignored(self, playwright_mocks):
        """A missing document.body does not fail the render."""
        playwright_mocks.page.wait_for_function.side_effect = PlaywrightTimeoutError("timeout")

        artifacts = PageRenderer().render_blocking("https://site.com/")

        assert artifacts.rendered_html.startswith("<html>")

    def test_launch_failure_raises_render_error(self, playwright_mocks):
        playwright_mocks.playwright.chromium.launch.side_effect = PlaywrightError(
            "Executable doesn't exist"
        )

        with pytest.raises(RenderError) as exc_info:
            PageRenderer().render_blocking("https://site.com/")

        assert "Browser launch failed" in exc_info.value.message
        assert exc_info.value.url == "https://site.com/"
        playwright_mocks.browser.close.assert_not_called()

    def test_navigation_failure_closes_browser(self, playwright_mocks):
        """The browser is closed when navigation fails."""
        playwright_mocks.page.goto.side_effect = PlaywrightError("net::ERR_NAME_NOT_RESOLVED")

        with pytest.raises(RenderError) as exc_info:
            PageRenderer().render_blocking("https://site.com/")

        assert "Navigation failed" in exc_info.value.message
        playwright_mocks.browser.close.assert_called_once()

    def test_script_failure_raises_render_error(self, playwright_mocks):
        playwright_mocks.page.evaluate.side_effect = PlaywrightError("Execution context was destroyed")

        with pytest.raises(RenderError) as exc_info:
            PageRenderer().render_blocking("https://site.com/")

        assert "Script evaluation failed" in exc_info.value.message
        playwright_mocks.browser.close.assert_called_once()

    def test_browser_closed_on_success(self, playwright_mocks):
        PageRenderer().render_blocking("https://site.com/")
        playwright_mocks.browser.close.assert_called_once()

    def test_cancelled_render_stops_and_closes(self, playwright_mocks):
        """A set cancel event stops the render before navigation."""
        cancel_event = threading.Event()
        cancel_event.set()

        with pytest.raises(RenderError, match="cancelled"):
            PageRenderer().render_blocking("https://site.com/", cancel_event)

        playwright_mocks.page.goto.assert_not_called()
        playwright_mocks.browser.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_async_render_runs_on_worker_thread(self, playwright_mocks):
        """render() dispatches the blocking work to the executor."""
        caller_thread = threading.get_ident()
        worker_threads = []
        playwright_mocks.page.content.side_effect = lambda: (
            worker_threads.append(threading.get_ident()) or "<html></html>"
        )

        renderer = PageRenderer(max_workers=1)
        try:
            artifacts = await renderer.render("https://site.com/")
        finally:
            renderer.shutdown()

        assert artifacts.rendered_html == "<html></html>"
        assert worker_threads and worker_threads[0] != caller_thread

    @pytest.mark.asyncio
    async def test_async_render_propagates_render_error(self, playwright_mocks):
        playwright_mocks.playwright.chromium.launch.side_effect = PlaywrightError("no browser")

        renderer = PageRenderer()
        try:
            with pytest.raises(RenderError):
                await renderer.render("https://site.com/")
        finally:
            renderer.shutdown()

    @pytest.mark.asyncio
    async def test_cancelling_render_signals_worker(self, playwright_mocks):
        """Cancelling the awaiting task tells the worker to stop."""
        started = threading.Event()
        release = threading.Event()

        def slow_goto(*args, **kwargs):
            started.set()
            release.wait(timeout=5)

        playwright_mocks.page.goto.side_effect = slow_goto

        renderer = PageRenderer(max_workers=1)
        task = asyncio.ensure_future(renderer.render("https://site.com/"))

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, started.wait, 5)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        release.set()
        renderer.shutdown(wait=True)

        # The worker saw the cancel event after navigation and tore down
        playwright_mocks.page.content.assert_not_called()
        playwright_mocks.browser.close.assert_called_once()

    def test_shared_executor_not_shut_down(self):
        executor = MagicMock()
        PageRenderer(executor=executor).shutdown()
        executor.shutdown.assert_not_called()
