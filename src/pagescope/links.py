"""Link classification: external and social media links."""

from typing import Iterable, List
from urllib.parse import urlparse

from pagescope.constants import SOCIAL_MEDIA_DOMAINS
from pagescope.models import LinkInfo
from pagescope.url_validator import host_of


def is_external_link(href: str, page_url: str) -> bool:
    """Check whether ``href`` points to a different host than the page.

    Only absolute http(s) hrefs can be external. Relative, fragment,
    mailto:, javascript: and unparseable hrefs never are. Hosts are
    compared case-insensitively with the port ignored.

    Args:
        href: Link target as written in the markup
        page_url: URL of the page the link was found on

    Returns:
        True if the link leaves the page's host
    """
    if not (href.startswith("http://") or href.startswith("https://")):
        return False

    try:
        parsed = urlparse(href)
        link_host = parsed.hostname
    except ValueError:
        return False

    if not link_host:
        return False

    return link_host.lower() != host_of(page_url)


def is_social_link(href: str, domains: Iterable[str] = SOCIAL_MEDIA_DOMAINS) -> bool:
    """Substring match of ``href`` against known social platform domains.

    Subdomains and domains embedded in a path or query string also
    match.
    """
    return any(domain in href for domain in domains)


def social_media_links(
    links: Iterable[LinkInfo], domains: Iterable[str] = SOCIAL_MEDIA_DOMAINS
) -> List[LinkInfo]:
    """Filter ``links`` down to social media links, keeping order."""
    domains = tuple(domains)
    return [link for link in links if is_social_link(link.href, domains)]
