"""PageScope - single-page web analysis: content, readability, security, rendering."""

__version__ = "0.1.0"

from pagescope.analyzer import PageAnalyzer, analyze, analyze_sync
from pagescope.browser_config import BrowserConfig
from pagescope.config import AnalysisConfig
from pagescope.exceptions import (
    HttpStatusError,
    InternalError,
    InvalidUrl,
    NetworkError,
    PageScopeError,
    RenderError,
)
from pagescope.models import (
    AnalysisResult,
    BrowserCookie,
    ConsoleLog,
    ExtractedContent,
    FailedRequest,
    FormInfo,
    ImageInfo,
    LinkInfo,
    NetworkResource,
    RenderArtifacts,
    SecurityReport,
    TextMetrics,
)

__all__ = [
    "AnalysisConfig",
    "AnalysisResult",
    "BrowserConfig",
    "BrowserCookie",
    "ConsoleLog",
    "ExtractedContent",
    "FailedRequest",
    "FormInfo",
    "HttpStatusError",
    "ImageInfo",
    "InternalError",
    "InvalidUrl",
    "LinkInfo",
    "NetworkError",
    "NetworkResource",
    "PageAnalyzer",
    "PageScopeError",
    "RenderArtifacts",
    "RenderError",
    "SecurityReport",
    "TextMetrics",
    "analyze",
    "analyze_sync",
]
