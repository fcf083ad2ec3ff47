"""Data models for page analysis."""

from dataclasses import asdict, dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class RawPage:
    """HTTP response as captured by the fetcher."""

    url: str
    status_code: int
    headers: dict[str, str]  # lowercase name -> value, last duplicate wins
    html: str
    elapsed_ms: float
    final_url: Optional[str] = None
    set_cookies: tuple[str, ...] = ()


@dataclass
class LinkInfo:
    """An anchor found in the page markup."""

    text: str
    href: str  # As written in markup, not resolved
    is_external: bool = False


@dataclass
class ImageInfo:
    """An image found in the page markup."""

    src: str
    alt: str = ""
    width: Optional[str] = None  # Raw attribute value
    height: Optional[str] = None


@dataclass
class FormField:
    """An input, select, textarea or button control."""

    type: str
    name: str = ""
    id: str = ""
    placeholder: str = ""
    required: bool = False
    autocomplete: str = ""


@dataclass
class FormInfo:
    """A form and the controls inside it."""

    action: str = ""
    method: str = "get"
    id: str = ""
    enctype: str = ""
    fields: list[FormField] = field(default_factory=list)

    @property
    def field_count(self) -> int:
        return len(self.fields)


@dataclass
class ScriptInfo:
    """A script element, external (src) or inline."""

    type: str  # 'external' or 'inline'
    src: Optional[str] = None
    is_async: bool = False
    defer: bool = False
    content: str = ""  # Leading snippet of an inline script
    length: int = 0


@dataclass
class StylesheetInfo:
    """A linked stylesheet or an inline style block."""

    type: str  # 'external' or 'inline'
    href: Optional[str] = None
    media: str = "all"
    content: str = ""
    length: int = 0


@dataclass
class IframeInfo:
    src: str = ""
    width: Optional[str] = None
    height: Optional[str] = None
    sandbox: Optional[str] = None
    loading: Optional[str] = None


@dataclass
class ButtonInfo:
    text: str = ""
    type: str = ""
    id: str = ""


@dataclass
class ExtractedContent:
    """Structured fields parsed from the static HTML."""

    title: str
    description: str
    headings: list[str] = field(default_factory=list)
    links: list[LinkInfo] = field(default_factory=list)
    images: list[ImageInfo] = field(default_factory=list)
    meta_tags: dict[str, str] = field(default_factory=dict)
    text_content: str = ""
    forms: list[FormInfo] = field(default_factory=list)
    scripts: list[ScriptInfo] = field(default_factory=list)
    stylesheets: list[StylesheetInfo] = field(default_factory=list)
    iframes: list[IframeInfo] = field(default_factory=list)
    inputs: list[FormField] = field(default_factory=list)
    buttons: list[ButtonInfo] = field(default_factory=list)
    structured_data: list[Any] = field(default_factory=list)  # Parsed JSON-LD blocks


@dataclass
class TextMetrics:
    """Text statistics derived from the visible body text."""

    word_count: int = 0
    reading_time_minutes: float = 0.0
    word_frequency: dict[str, int] = field(default_factory=dict)
    readability_score: float = 0.0  # Flesch Reading Ease, 0-100
    readability_grade: str = "N/A"
    language: str = "Unknown"
    page_size_kb: float = 0.0


@dataclass
class SecurityReport:
    """Basic security posture of the page.

    Notes are heuristic advisories and never affect the flags.
    """

    is_https: bool = False
    mixed_content: bool = False
    missing_security_headers: list[str] = field(default_factory=list)
    insecure_cookies: bool = False
    csp: Optional[str] = None
    notes: list[str] = field(default_factory=list)
    mixed_content_urls: list[str] = field(default_factory=list)


@dataclass
class NetworkResource:
    """A resource or navigation performance-timing entry."""

    name: str
    initiator_type: str
    start_time_ms: float = 0.0
    duration_ms: float = 0.0
    transfer_size: Optional[int] = None
    encoded_body_size: Optional[int] = None

    @classmethod
    def from_entry(cls, entry: dict[str, Any]) -> "NetworkResource":
        """Build from a browser PerformanceResourceTiming-like dict."""

        def _size(key: str) -> Optional[int]:
            value = entry.get(key)
            return int(value) if isinstance(value, (int, float)) else None

        return cls(
            name=str(entry.get("name", "")),
            initiator_type=str(entry.get("initiatorType") or entry.get("entryType") or "other"),
            start_time_ms=float(entry.get("startTime") or 0.0),
            duration_ms=float(entry.get("duration") or 0.0),
            transfer_size=_size("transferSize"),
            encoded_body_size=_size("encodedBodySize"),
        )


@dataclass
class ConsoleLog:
    """A console message captured from the rendered page."""

    level: str
    message: str
    args: Optional[list[Any]] = None


@dataclass
class FailedRequest:
    """A request the browser could not complete while rendering."""

    url: str
    method: str = "GET"
    resource_type: str = ""
    error_text: str = "Unknown error"


@dataclass
class BrowserCookie:
    """A cookie held by the browser context after rendering."""

    name: str
    value: str = ""
    domain: str = ""
    path: str = "/"
    expires: Optional[float] = None  # Unix time, None for session cookies
    http_only: bool = False
    secure: bool = False
    same_site: Optional[str] = None

    @classmethod
    def from_playwright(cls, cookie: dict[str, Any]) -> "BrowserCookie":
        """Build from a Playwright ``BrowserContext.cookies()`` entry."""
        expires = cookie.get("expires")
        return cls(
            name=str(cookie.get("name", "")),
            value=str(cookie.get("value", "")),
            domain=str(cookie.get("domain", "")),
            path=str(cookie.get("path", "/")),
            # Playwright reports -1 for session cookies
            expires=float(expires) if isinstance(expires, (int, float)) and expires >= 0 else None,
            http_only=bool(cookie.get("httpOnly", False)),
            secure=bool(cookie.get("secure", False)),
            same_site=cookie.get("sameSite"),
        )


@dataclass
class RenderArtifacts:
    """Output of the dynamic render stage."""

    rendered_html: str
    screenshot: Optional[str] = None  # Base64-encoded PNG
    network_resources: list[NetworkResource] = field(default_factory=list)
    console_logs: list[ConsoleLog] = field(default_factory=list)
    performance_metrics: dict[str, float] = field(default_factory=dict)
    final_url: Optional[str] = None
    cookies: list[BrowserCookie] = field(default_factory=list)
    local_storage: dict[str, str] = field(default_factory=dict)
    session_storage: dict[str, str] = field(default_factory=dict)
    failed_requests: list[FailedRequest] = field(default_factory=list)


@dataclass
class AnalysisResult:
    """Complete analysis of one page. The pipeline's only success output."""

    url: str
    status_code: int
    response_time_ms: float
    page_size_kb: float
    content: ExtractedContent
    metrics: TextMetrics
    security: SecurityReport
    social_media_links: list[LinkInfo] = field(default_factory=list)
    response_headers: dict[str, str] = field(default_factory=dict)
    final_url: Optional[str] = None  # After redirects
    render: Optional[RenderArtifacts] = None

    # Convenience accessors for the most used fields
    @property
    def title(self) -> str:
        return self.content.title

    @property
    def description(self) -> str:
        return self.content.description

    @property
    def headings(self) -> list[str]:
        return self.content.headings

    @property
    def links(self) -> list[LinkInfo]:
        return self.content.links

    @property
    def screenshot(self) -> Optional[str]:
        return self.render.screenshot if self.render else None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary for JSON serialisation."""
        return asdict(self)
