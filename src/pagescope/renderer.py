"""
Dynamic render stage using a real headless browser.

Playwright's sync API is blocking and keeps per-thread state, so every
render runs on a dedicated worker thread and the calling coroutine awaits
its completion:

    renderer = PageRenderer(BrowserConfig())
    artifacts = await renderer.render("https://example.com")
    renderer.shutdown()

Each render launches its own browser and closes it on the worker before
returning, whether the render succeeded or not. Nothing is pooled across
calls.
"""
import asyncio
import base64
import logging
import threading
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, TypeVar

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from pagescope.browser_config import BrowserConfig
from pagescope.constants import CONSOLE_BUFFER_NAME, DEFAULT_RENDER_WORKERS
from pagescope.exceptions import RenderError
from pagescope.models import (
    BrowserCookie,
    ConsoleLog,
    FailedRequest,
    NetworkResource,
    RenderArtifacts,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Installed before any page script runs. Wraps the console methods so
# every call is buffered in-page and still reaches the original method.
CONSOLE_CAPTURE_SCRIPT = """
(() => {
    const buffer = [];
    Object.defineProperty(window, '%(buffer)s', {
        value: buffer,
        writable: false,
        configurable: false
    });

    const serialize = (value) => {
        if (typeof value === 'string') return value;
        try {
            const json = JSON.stringify(value);
            return json === undefined ? String(value) : json;
        } catch (e) {
            return String(value);
        }
    };

    ['log', 'warn', 'error', 'info'].forEach((level) => {
        const original = console[level];
        console[level] = function (...args) {
            try {
                const parts = args.map(serialize);
                buffer.push({ level: level, message: parts.join(' '), args: parts });
            } catch (e) {}
            return original.apply(this, args);
        };
    });
})();
""" % {"buffer": CONSOLE_BUFFER_NAME}

PERFORMANCE_ENTRIES_SCRIPT = """
() => {
    const entries = performance.getEntriesByType('navigation')
        .concat(performance.getEntriesByType('resource'));
    return entries.map((e) => ({
        name: e.name,
        entryType: e.entryType,
        initiatorType: e.initiatorType || e.entryType,
        startTime: e.startTime,
        duration: e.duration,
        transferSize: e.transferSize,
        encodedBodySize: e.encodedBodySize
    }));
}
"""

NAVIGATION_METRICS_SCRIPT = """
() => {
    const nav = performance.getEntriesByType('navigation')[0];
    if (!nav) return {};
    return {
        dom_content_loaded: nav.domContentLoadedEventEnd - nav.domContentLoadedEventStart,
        load_complete: nav.loadEventEnd - nav.loadEventStart,
        dom_interactive: nav.domInteractive,
        dom_complete: nav.domComplete,
        ttfb: nav.responseStart - nav.requestStart,
        response_time: nav.responseEnd - nav.responseStart,
        transfer_size: nav.transferSize || 0,
        encoded_body_size: nav.encodedBodySize || 0,
        decoded_body_size: nav.decodedBodySize || 0,
        resource_count: performance.getEntriesByType('resource').length
    };
}
"""

CONSOLE_BUFFER_SCRIPT = "() => window['%s'] || []" % CONSOLE_BUFFER_NAME

# Storage access throws on opaque origins (about:blank, sandboxed frames)
STORAGE_SCRIPT = """
() => {
    const dump = (storage) => {
        const items = {};
        try {
            for (let i = 0; i < storage.length; i++) {
                const key = storage.key(i);
                items[key] = storage.getItem(key);
            }
        } catch (e) {}
        return items;
    };
    let local = {};
    let session = {};
    try { local = dump(window.localStorage); } catch (e) {}
    try { session = dump(window.sessionStorage); } catch (e) {}
    return { local: local, session: session };
}
"""


class PageRenderer:
    """Renders a page in a headless browser on a worker thread."""

    def __init__(
        self,
        config: Optional[BrowserConfig] = None,
        executor: Optional[Executor] = None,
        max_workers: int = DEFAULT_RENDER_WORKERS,
    ):
        """
        Initialize the renderer.

        Args:
            config: BrowserConfig with browser settings
            executor: Executor to run renders on. When omitted a thread pool
                owned by this renderer is created.
            max_workers: Size of the owned thread pool
        """
        self._config = config or BrowserConfig()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="pagescope-render"
        )

    @property
    def config(self) -> BrowserConfig:
        return self._config

    async def render(self, url: str) -> RenderArtifacts:
        """
        Render ``url`` and collect HTML, screenshot, timings and console output.

        The blocking browser work runs on the executor; only this coroutine
        waits for it. If the awaiting task is cancelled the worker is told to
        stop at its next step and tears the browser down.

        Raises:
            RenderError: Browser launch, navigation or script evaluation failed
        """
        loop = asyncio.get_running_loop()
        cancel_event = threading.Event()

        future = loop.run_in_executor(
            self._executor, self.render_blocking, url, cancel_event
        )
        try:
            return await future
        except asyncio.CancelledError:
            logger.info(f"Render of {url} cancelled; stopping browser")
            cancel_event.set()
            raise

    def render_blocking(
        self, url: str, cancel_event: Optional[threading.Event] = None
    ) -> RenderArtifacts:
        """Synchronous render. Must not be called from an event loop thread."""
        cancel_event = cancel_event or threading.Event()
        page_errors: List[ConsoleLog] = []
        start_time = time.time()

        logger.info(f"Rendering: {url}")

        try:
            with sync_playwright() as playwright:
                browser = self._step(
                    "Browser launch failed", url, lambda: self._launch(playwright)
                )
                try:
                    self._check_cancelled(cancel_event, url)
                    artifacts = self._render_page(browser, url, cancel_event, page_errors)
                finally:
                    # Scoped to this call on both success and failure paths
                    try:
                        browser.close()
                    except PlaywrightError as e:
                        logger.warning(f"Error closing browser for {url}: {e}")
        except PlaywrightError as e:
            raise RenderError(f"Render failed for {url}: {e}", url=url) from e

        logger.info(
            f"Render complete: {url} (resources={len(artifacts.network_resources)}, "
            f"console={len(artifacts.console_logs)}, time={time.time() - start_time:.2f}s)"
        )
        return artifacts

    def shutdown(self, wait: bool = True) -> None:
        """Shut down the owned executor. A shared executor is left alone."""
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def _launch(self, playwright):
        launcher = getattr(playwright, self._config.browser_type)
        launch_options = {"headless": self._config.headless}
        if self._config.launch_args:
            launch_options["args"] = self._config.launch_args
        logger.debug(
            f"Launching {self._config.browser_type} browser (headless={self._config.headless})"
        )
        return launcher.launch(**launch_options)

    def _render_page(
        self,
        browser,
        url: str,
        cancel_event: threading.Event,
        page_errors: List[ConsoleLog],
    ) -> RenderArtifacts:
        context_options = {"viewport": self._config.viewport()}
        if self._config.user_agent:
            context_options["user_agent"] = self._config.user_agent

        context = self._step(
            "Browser context creation failed", url,
            lambda: browser.new_context(**context_options),
        )
        page = self._step("Page creation failed", url, context.new_page)

        self._step(
            "Console capture injection failed", url,
            lambda: page.add_init_script(CONSOLE_CAPTURE_SCRIPT),
        )
        page.on("pageerror", lambda error: page_errors.append(
            ConsoleLog(level="error", message=f"JavaScript error: {error}")
        ))
        failed_requests: List[FailedRequest] = []
        page.on("requestfailed", lambda request: self._record_failed_request(
            request, failed_requests, page_errors
        ))

        self._step(
            "Navigation failed", url,
            lambda: page.goto(
                url, wait_until=self._config.wait_until, timeout=self._config.timeout
            ),
        )
        self._check_cancelled(cancel_event, url)
        self._wait_for_body(page, url)
        self._check_cancelled(cancel_event, url)

        rendered_html = self._step("Reading rendered HTML failed", url, page.content)

        screenshot = None
        if self._config.capture_screenshots:
            png = self._step(
                "Screenshot failed", url,
                lambda: page.screenshot(full_page=True, type="png"),
            )
            screenshot = base64.b64encode(png).decode("ascii")

        self._check_cancelled(cancel_event, url)

        entries = self._step(
            "Script evaluation failed", url,
            lambda: page.evaluate(PERFORMANCE_ENTRIES_SCRIPT),
        )
        metrics = self._step(
            "Script evaluation failed", url,
            lambda: page.evaluate(NAVIGATION_METRICS_SCRIPT),
        )
        console_entries = self._step(
            "Script evaluation failed", url,
            lambda: page.evaluate(CONSOLE_BUFFER_SCRIPT),
        )
        storage = self._step(
            "Script evaluation failed", url,
            lambda: page.evaluate(STORAGE_SCRIPT),
        )
        if not isinstance(storage, dict):
            storage = {}
        cookies = self._step("Reading cookies failed", url, context.cookies)

        return RenderArtifacts(
            rendered_html=rendered_html,
            screenshot=screenshot,
            network_resources=[
                NetworkResource.from_entry(e) for e in entries or [] if isinstance(e, dict)
            ],
            console_logs=self._console_logs(console_entries) + page_errors,
            performance_metrics={
                k: float(v) for k, v in (metrics or {}).items()
                if isinstance(v, (int, float))
            },
            final_url=page.url,
            cookies=[
                BrowserCookie.from_playwright(c) for c in cookies or [] if isinstance(c, dict)
            ],
            local_storage=self._string_map(storage.get("local")),
            session_storage=self._string_map(storage.get("session")),
            failed_requests=failed_requests,
        )

    @staticmethod
    def _record_failed_request(
        request, failed_requests: List[FailedRequest], page_errors: List[ConsoleLog]
    ) -> None:
        error_text = request.failure or "Unknown error"
        failed_requests.append(FailedRequest(
            url=request.url,
            method=request.method,
            resource_type=request.resource_type,
            error_text=error_text,
        ))
        page_errors.append(ConsoleLog(
            level="error", message=f"Failed to load: {request.url} ({error_text})"
        ))

    @staticmethod
    def _string_map(items: Any) -> Dict[str, str]:
        if not isinstance(items, dict):
            return {}
        return {str(k): "" if v is None else str(v) for k, v in items.items()}

    def _wait_for_body(self, page, url: str) -> None:
        """Best-effort, bounded wait for document.body to exist."""
        if self._config.body_wait_timeout <= 0:
            return
        try:
            page.wait_for_function(
                "() => document.body !== null",
                timeout=self._config.body_wait_timeout,
            )
        except PlaywrightTimeoutError:
            logger.debug(f"No document.body after {self._config.body_wait_timeout}ms on {url}")

    @staticmethod
    def _console_logs(entries: Any) -> List[ConsoleLog]:
        logs = []
        for entry in entries or []:
            if not isinstance(entry, dict):
                continue
            logs.append(ConsoleLog(
                level=str(entry.get("level", "log")),
                message=str(entry.get("message", "")),
                args=entry.get("args") or None,
            ))
        return logs

    @staticmethod
    def _step(description: str, url: str, action: Callable[[], T]) -> T:
        try:
            return action()
        except PlaywrightError as e:
            logger.error(f"{description} for {url}: {e}")
            raise RenderError(f"{description}: {e}", url=url) from e

    @staticmethod
    def _check_cancelled(cancel_event: threading.Event, url: str) -> None:
        if cancel_event.is_set():
            raise RenderError("Render cancelled", url=url)
