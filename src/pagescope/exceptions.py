"""Error taxonomy for the analysis pipeline.

Every failed analysis surfaces exactly one of these. Missing fields in the
page itself (no title, empty body) are never errors.
"""

from typing import Optional


class PageScopeError(Exception):
    """Base class for all pipeline errors."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.url = url

    def to_dict(self) -> dict:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "url": self.url,
        }


class InvalidUrl(PageScopeError):
    """URL is malformed or uses an unsupported scheme. Raised before any I/O."""


class NetworkError(PageScopeError):
    """Connection, DNS or timeout failure while fetching the page."""


class HttpStatusError(PageScopeError):
    """The page responded with a non-2xx status."""

    def __init__(self, status_code: int, url: Optional[str] = None):
        super().__init__(f"HTTP error: {status_code}", url=url)
        self.status_code = status_code

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["status_code"] = self.status_code
        return data


class RenderError(PageScopeError):
    """Browser launch, navigation or in-page script evaluation failed."""


class InternalError(PageScopeError):
    """Unexpected failure while parsing or analysing fetched content."""
