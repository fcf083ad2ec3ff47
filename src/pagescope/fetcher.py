"""HTTP fetch stage: one GET, fixed timeout and user agent, no retries."""

import logging
import time
from typing import Optional

import httpx

from pagescope.config import AnalysisConfig, default_config
from pagescope.exceptions import HttpStatusError, InvalidUrl, NetworkError
from pagescope.models import RawPage
from pagescope.url_validator import validate_url

logger = logging.getLogger(__name__)

DEFAULT_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


def _collect_headers(response: httpx.Response) -> dict[str, str]:
    """Lowercase header map; on duplicates the last value wins."""
    headers: dict[str, str] = {}
    for name, value in response.headers.multi_items():
        headers[name.lower()] = value
    return headers


async def fetch_page(
    url: str,
    config: Optional[AnalysisConfig] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> RawPage:
    """Fetch a single page.

    Args:
        url: Absolute http(s) URL
        config: Analysis configuration (timeout, user agent)
        client: Optional pre-built client, mainly for tests. A client
            created here is closed before returning.

    Returns:
        RawPage with status, headers, body text and elapsed time

    Raises:
        InvalidUrl: Malformed URL, raised before any network call
        NetworkError: Connection, DNS or timeout failure
        HttpStatusError: Non-2xx response
    """
    config = config or default_config
    url = validate_url(url)

    request_headers = {
        "User-Agent": config.user_agent,
        "Accept": DEFAULT_ACCEPT,
        "Accept-Language": "en-US,en;q=0.9",
    }
    request_headers.update(config.extra_headers)

    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(
            timeout=config.timeout_seconds,
            follow_redirects=True,
        )

    logger.info(f"Fetching: {url}")
    start_time = time.perf_counter()

    try:
        response = await client.get(
            url, headers=request_headers, timeout=config.timeout_seconds
        )
    except httpx.TimeoutException as e:
        raise NetworkError(
            f"Request timeout after {config.timeout_seconds}s", url=url
        ) from e
    except httpx.InvalidURL as e:
        raise InvalidUrl(f"Invalid URL format: {e}", url=url) from e
    except httpx.RequestError as e:
        raise NetworkError(f"Connection error: {e}", url=url) from e
    finally:
        if owns_client:
            await client.aclose()

    elapsed_ms = (time.perf_counter() - start_time) * 1000

    if not 200 <= response.status_code < 300:
        logger.warning(f"Fetch of {url} returned HTTP {response.status_code}")
        raise HttpStatusError(response.status_code, url=url)

    headers = _collect_headers(response)
    set_cookies = tuple(response.headers.get_list("set-cookie"))

    logger.debug(
        f"Fetched {url} (status={response.status_code}, "
        f"bytes={len(response.content)}, time={elapsed_ms:.0f}ms)"
    )

    return RawPage(
        url=url,
        final_url=str(response.url),
        status_code=response.status_code,
        headers=headers,
        set_cookies=set_cookies,
        html=response.text,
        elapsed_ms=elapsed_ms,
    )
