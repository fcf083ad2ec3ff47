"""Validation of the analysis target URL."""

from urllib.parse import urlparse

from pagescope.exceptions import InvalidUrl

ALLOWED_SCHEMES = ("http", "https")


def validate_url(url: str) -> str:
    """Check that ``url`` is an absolute http(s) URL.

    Args:
        url: Candidate URL

    Returns:
        The URL with surrounding whitespace removed

    Raises:
        InvalidUrl: If the URL is empty, relative, has an unsupported
            scheme, no host, or an unparseable port
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidUrl("URL cannot be empty", url=url if isinstance(url, str) else None)

    url = url.strip()
    if any(ch.isspace() for ch in url):
        raise InvalidUrl("Invalid URL format: contains whitespace", url=url)

    try:
        parsed = urlparse(url)
        # Accessing .port validates it
        parsed.port
    except ValueError as e:
        raise InvalidUrl(f"Invalid URL format: {e}", url=url) from e

    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        scheme = parsed.scheme or "none"
        raise InvalidUrl(
            f"Invalid URL scheme: {scheme} (must be http or https)", url=url
        )

    if not parsed.netloc or not parsed.hostname:
        raise InvalidUrl("Invalid URL format: missing domain", url=url)

    return url


def host_of(url: str) -> str:
    """Lowercased host of ``url`` without port, or '' if it has none."""
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""
