"""
Browser configuration for the Playwright-based render stage.

This module provides a validated Pydantic configuration model for the
headless browser and pre-configured instances for common use cases.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from pagescope.constants import (
    BODY_WAIT_TIMEOUT_MS,
    DESKTOP_VIEWPORT_HEIGHT,
    DESKTOP_VIEWPORT_WIDTH,
    NAVIGATION_TIMEOUT_MS,
)

# Realistic desktop Chrome user agent for the rendered view
RENDER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
]


class BrowserConfig(BaseModel):
    """
    Configuration for the headless browser used by PageRenderer.

    All fields are validated by Pydantic to ensure type safety and valid values.
    """

    model_config = ConfigDict(validate_assignment=True)

    headless: bool = Field(
        default=True,
        description="Run browser in headless mode (no visible UI)"
    )

    browser_type: Literal["chromium", "firefox", "webkit"] = Field(
        default="chromium",
        description="Browser engine to use for rendering"
    )

    timeout: int = Field(
        default=NAVIGATION_TIMEOUT_MS,
        description="Navigation timeout in milliseconds",
        ge=1000,
        le=300000
    )

    wait_until: Literal["load", "domcontentloaded", "networkidle", "commit"] = Field(
        default="domcontentloaded",
        description="When to consider navigation complete"
    )

    body_wait_timeout: int = Field(
        default=BODY_WAIT_TIMEOUT_MS,
        description="Best-effort wait for document.body in milliseconds",
        ge=0,
        le=120000
    )

    viewport_width: int = Field(default=DESKTOP_VIEWPORT_WIDTH, ge=320)
    viewport_height: int = Field(default=DESKTOP_VIEWPORT_HEIGHT, ge=240)

    capture_screenshots: bool = Field(
        default=True,
        description="Capture a full-page screenshot of the rendered page"
    )

    user_agent: Optional[str] = Field(
        default=RENDER_USER_AGENT,
        description="User agent for the browser context. None keeps the browser default."
    )

    launch_args: List[str] = Field(
        default_factory=lambda: list(DEFAULT_LAUNCH_ARGS),
        description="Additional browser launch arguments"
    )

    def viewport(self) -> dict:
        return {"width": self.viewport_width, "height": self.viewport_height}


# --- Pre-configured Instances for Common Use Cases ---

DEFAULT_CONFIG = BrowserConfig()
"""
Default configuration: headless Chromium, DOM-ready navigation,
full-page screenshot.
"""

FAST_CONFIG = BrowserConfig(
    wait_until="commit",
    timeout=15000,
    body_wait_timeout=3000,
    capture_screenshots=False,
)
"""
Fast configuration optimized for speed.

Skips the screenshot and uses the earliest navigation signal. Best when
only the rendered DOM and console output are needed.
"""

DEBUG_CONFIG = BrowserConfig(
    headless=False,
    wait_until="networkidle",
    timeout=120000,
)
"""
Debug configuration with a visible browser window and a patient
navigation strategy, for investigating pages that fail to render.
"""
