"""Page analyzer - composes fetch, extraction, analytics, render and security."""

import asyncio
import logging
import time
from typing import Optional

import httpx

from pagescope.browser_config import BrowserConfig
from pagescope.config import AnalysisConfig, default_config
from pagescope.exceptions import InternalError, PageScopeError, RenderError
from pagescope.extractor import StaticExtractor
from pagescope.fetcher import fetch_page
from pagescope.links import social_media_links
from pagescope.models import AnalysisResult, RenderArtifacts
from pagescope.renderer import PageRenderer
from pagescope.security import SecurityAnalyzer
from pagescope.text_analytics import TextAnalyzer, page_size_kb
from pagescope.url_validator import validate_url

logger = logging.getLogger(__name__)


class PageAnalyzer:
    """Runs the full analysis pipeline for single pages.

    Stages run in order: validate, fetch, extract, text analytics, optional
    render, security, assembly. Each call either returns a complete
    AnalysisResult or raises exactly one PageScopeError.

    Example:
        async with PageAnalyzer(AnalysisConfig(enable_dynamic_render=True)) as analyzer:
            result = await analyzer.analyze("https://example.com")
    """

    def __init__(
        self,
        config: Optional[AnalysisConfig] = None,
        browser_config: Optional[BrowserConfig] = None,
        renderer: Optional[PageRenderer] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the analyzer.

        Args:
            config: Analysis configuration
            browser_config: Browser settings for the render stage. Defaults
                to a BrowserConfig following ``config.headless``.
            renderer: Pre-built renderer (shared executor, tests)
            client: Pre-built HTTP client passed to every fetch
        """
        self.config = config or default_config
        self.client = client
        self.extractor = StaticExtractor()
        self.text_analyzer = TextAnalyzer(
            reading_speed_wpm=self.config.reading_speed_wpm,
            stopwords=self.config.stopwords,
            language_words=self.config.language_words,
            max_frequency_terms=self.config.max_frequency_terms,
        )
        self.security_analyzer = SecurityAnalyzer(self.config.expected_security_headers)

        self._browser_config = browser_config or BrowserConfig(headless=self.config.headless)
        self._renderer = renderer
        self._owns_renderer = renderer is None

    @property
    def renderer(self) -> PageRenderer:
        """Renderer for the dynamic stage, created on first use."""
        if self._renderer is None:
            self._renderer = PageRenderer(
                self._browser_config, max_workers=self.config.render_workers
            )
        return self._renderer

    async def analyze(self, url: str) -> AnalysisResult:
        """Analyze a single page.

        Args:
            url: Absolute http(s) URL

        Returns:
            AnalysisResult for the page

        Raises:
            InvalidUrl: URL rejected before any network call
            NetworkError: Fetch failed at the transport level
            HttpStatusError: Non-2xx response
            RenderError: Render failed and the failure policy is "fail"
            InternalError: Unexpected failure while parsing or analysing
        """
        start_time = time.perf_counter()
        url = validate_url(url)

        logger.info(f"Analyzing: {url}")

        raw = await fetch_page(url, self.config, client=self.client)

        try:
            content = self.extractor.extract(raw.html, url)
            metrics = self.text_analyzer.analyze(content.text_content, raw.html)
        except PageScopeError:
            raise
        except Exception as e:
            logger.error(f"Unexpected error analysing {url}: {e}", exc_info=True)
            raise InternalError(f"Failed to analyse page content: {e}", url=url) from e

        render = None
        if self.config.enable_dynamic_render:
            render = await self._render(url)

        try:
            security = self.security_analyzer.analyze(
                url,
                raw.headers,
                html=render.rendered_html if render else raw.html,
                resources=render.network_resources if render else (),
                set_cookies=raw.set_cookies,
            )
            social_links = social_media_links(content.links, self.config.social_domains)
        except Exception as e:
            logger.error(f"Unexpected error in security checks for {url}: {e}", exc_info=True)
            raise InternalError(f"Failed to evaluate page security: {e}", url=url) from e

        result = AnalysisResult(
            url=url,
            status_code=raw.status_code,
            response_time_ms=(time.perf_counter() - start_time) * 1000,
            page_size_kb=page_size_kb(raw.html),
            content=content,
            metrics=metrics,
            security=security,
            social_media_links=social_links,
            response_headers=dict(raw.headers),
            final_url=raw.final_url,
            render=render,
        )

        logger.info(
            f"Analysis complete: {url} (words={metrics.word_count}, "
            f"links={len(content.links)}, rendered={render is not None}, "
            f"time={result.response_time_ms:.0f}ms)"
        )
        return result

    async def _render(self, url: str) -> Optional[RenderArtifacts]:
        try:
            try:
                return await self.renderer.render(url)
            except RenderError:
                raise
            except Exception as e:
                logger.error(f"Unexpected render failure for {url}: {e}", exc_info=True)
                raise RenderError(f"Unexpected render failure: {e}", url=url) from e
        except RenderError as e:
            if self.config.render_failure_policy == "degrade":
                logger.warning(f"Render failed for {url}, keeping static results: {e}")
                return None
            logger.error(f"Render failed for {url}: {e}")
            raise

    def close(self) -> None:
        """Release the render executor if this analyzer created it."""
        if self._owns_renderer and self._renderer is not None:
            self._renderer.shutdown(wait=False)
            self._renderer = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.close()


async def analyze(url: str, config: Optional[AnalysisConfig] = None) -> AnalysisResult:
    """Analyze one page with a fresh analyzer.

    Args:
        url: Absolute http(s) URL
        config: Analysis configuration (defaults apply when omitted)

    Returns:
        AnalysisResult for the page
    """
    async with PageAnalyzer(config) as analyzer:
        return await analyzer.analyze(url)


def analyze_sync(url: str, config: Optional[AnalysisConfig] = None) -> AnalysisResult:
    """Blocking wrapper around analyze() for callers without an event loop."""
    return asyncio.run(analyze(url, config))
