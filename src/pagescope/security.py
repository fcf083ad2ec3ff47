"""Security posture checks: HTTPS, headers, mixed content, cookies, advisories."""

import logging
import re
from typing import Iterable, List, Mapping, Optional, Sequence

from pagescope.constants import (
    EXPECTED_SECURITY_HEADERS,
    INLINE_SCRIPT_WARNING_COUNT,
    MAX_MIXED_CONTENT_SAMPLES,
)
from pagescope.models import NetworkResource, SecurityReport

logger = logging.getLogger(__name__)

_INSECURE_URL_RE = re.compile(r"http://[^\"'\s<>]+")
_JQUERY_VERSION_RE = re.compile(r"jquery[/.-]?(\d+(?:\.\d+)*)", re.IGNORECASE)
_INLINE_SCRIPT_RE = re.compile(r"<script(?![^>]*src=)[^>]*>", re.IGNORECASE)
_FORM_RE = re.compile(r"<form[^>]*>", re.IGNORECASE)
_EXTERNAL_SCRIPT_RE = re.compile(r"<script[^>]+src=[\"']https?://", re.IGNORECASE)
_INTEGRITY_RE = re.compile(r"integrity=", re.IGNORECASE)
# mDNS hostnames such as printer.local, but not window.localStorage
_LOCAL_HOST_RE = re.compile(r"\.local\b(?![.\w-])", re.IGNORECASE)


class SecurityAnalyzer:
    """Evaluates the security posture of a single page.

    The flags (HTTPS, mixed content, missing headers, insecure cookies) are
    exact checks. The notes are heuristic advisories only and may be wrong.
    """

    # (name, pattern, risk) for library versions with known issues
    OUTDATED_LIBRARIES = (
        ('jQuery 1.x', re.compile(r"jquery[/.-]?1\.", re.IGNORECASE), 'HIGH - known XSS vulnerabilities'),
        ('jQuery 2.x', re.compile(r"jquery[/.-]?2\.", re.IGNORECASE), 'MEDIUM - security patches needed'),
        ('Angular 1.x', re.compile(r"angular[/.-]?1\.", re.IGNORECASE), 'HIGH - AngularJS reached end of life'),
        ('Bootstrap 3.x', re.compile(r"bootstrap[/.-]?3\.", re.IGNORECASE), 'MEDIUM - outdated version'),
    )

    SECRET_MARKERS = ('api_key', 'apikey', 'access_token')
    DEV_MARKERS = ('localhost', '127.0.0.1')

    def __init__(self, expected_headers: Sequence[str] = EXPECTED_SECURITY_HEADERS):
        """Initialize the security analyzer.

        Args:
            expected_headers: Security header names reported when absent
        """
        self.expected_headers = tuple(h.lower() for h in expected_headers)

    def analyze(
        self,
        url: str,
        headers: Mapping[str, str],
        html: str = "",
        resources: Iterable[NetworkResource] = (),
        set_cookies: Optional[Sequence[str]] = None,
    ) -> SecurityReport:
        """Analyze security aspects of a page.

        Args:
            url: Page URL
            headers: Response headers (any case)
            html: Rendered HTML if available, otherwise the raw HTML
            resources: Network resources captured while rendering
            set_cookies: Every Set-Cookie value received. Falls back to the
                single set-cookie header when not given.

        Returns:
            SecurityReport for the page
        """
        headers = {k.lower(): v for k, v in headers.items()}
        resources = list(resources)
        if set_cookies is None:
            set_cookies = [headers['set-cookie']] if 'set-cookie' in headers else []

        is_https = url.lower().startswith('https://')
        missing = self.missing_headers(headers)
        mixed_content, mixed_urls = self.check_mixed_content(is_https, html, resources)
        insecure_cookies = self.has_insecure_cookies(set_cookies)
        csp = headers.get('content-security-policy')

        report = SecurityReport(
            is_https=is_https,
            mixed_content=mixed_content,
            missing_security_headers=missing,
            insecure_cookies=insecure_cookies,
            csp=csp,
            notes=self._advisory_notes(is_https, headers, html, set_cookies),
            mixed_content_urls=mixed_urls,
        )

        logger.debug(
            f"Security report for {url}: https={is_https}, missing_headers={len(missing)}, "
            f"mixed_content={mixed_content}, insecure_cookies={insecure_cookies}"
        )
        return report

    def missing_headers(self, headers: Mapping[str, str]) -> List[str]:
        """Expected security headers absent from ``headers``, in expected order."""
        received = {name.lower() for name in headers}
        return [name for name in self.expected_headers if name not in received]

    @staticmethod
    def check_mixed_content(
        is_https: bool, html: str, resources: Sequence[NetworkResource]
    ) -> tuple[bool, List[str]]:
        """Detect plain-HTTP references on an HTTPS page.

        Returns:
            Tuple of (mixed_content flag, sample insecure URLs)
        """
        if not is_https:
            return False, []

        mixed = 'http://' in html
        samples = _INSECURE_URL_RE.findall(html)[:MAX_MIXED_CONTENT_SAMPLES]

        for resource in resources:
            if resource.name.startswith('http://'):
                mixed = True
                if len(samples) < MAX_MIXED_CONTENT_SAMPLES:
                    samples.append(resource.name)

        return mixed, samples

    @staticmethod
    def has_insecure_cookies(set_cookies: Iterable[str]) -> bool:
        """True if any cookie lacks the HttpOnly or Secure attribute."""
        for cookie in set_cookies:
            lowered = cookie.lower()
            if 'httponly' not in lowered or 'secure' not in lowered:
                return True
        return False

    def _advisory_notes(
        self,
        is_https: bool,
        headers: Mapping[str, str],
        html: str,
        set_cookies: Sequence[str],
    ) -> List[str]:
        notes: List[str] = []
        html_lower = html.lower()
        csp = headers.get('content-security-policy')

        # Technology fingerprints
        if 'jquery' in html_lower:
            match = _JQUERY_VERSION_RE.search(html)
            version = match.group(1) if match else 'unknown'
            notes.append(f"Detected jQuery version {version}; check for known vulnerabilities")
        if 'wordpress' in html_lower:
            notes.append('WordPress site detected; verify plugins and themes are up to date')
        if 'angular' in html_lower:
            notes.append('AngularJS detected; check for XSS vulnerabilities in older versions')
        if 'react' in html_lower:
            notes.append('React detected; ensure no dangerouslySetInnerHTML misuse')

        for name, pattern, risk in self.OUTDATED_LIBRARIES:
            if pattern.search(html):
                notes.append(f"{name} detected - {risk}")

        # Markup hygiene
        inline_scripts = len(_INLINE_SCRIPT_RE.findall(html))
        if inline_scripts > INLINE_SCRIPT_WARNING_COUNT:
            notes.append(f"Found {inline_scripts} inline scripts; consider CSP to mitigate XSS risks")

        forms = _FORM_RE.findall(html)
        if forms and 'csrf' not in html_lower and '_token' not in html_lower:
            notes.append(f"Found {len(forms)} form(s) with no obvious CSRF protection")

        has_password = 'type="password"' in html_lower
        if has_password and not is_https:
            notes.append('CRITICAL: Password fields detected on non-HTTPS page - credentials at risk!')
        if has_password and 'autocomplete="off"' not in html_lower:
            notes.append('Password fields allow autocomplete; consider disabling for security')

        if any(marker in html_lower for marker in self.SECRET_MARKERS):
            notes.append('WARNING: Possible API keys or tokens exposed in HTML source')
        if any(marker in html_lower for marker in self.DEV_MARKERS) or _LOCAL_HOST_RE.search(html):
            notes.append('Development references detected in production code')

        external_scripts = len(_EXTERNAL_SCRIPT_RE.findall(html))
        if external_scripts and not _INTEGRITY_RE.search(html):
            notes.append(f"{external_scripts} external script(s) without Subresource Integrity (SRI)")

        # Transport and headers
        if not is_https:
            notes.append('CRITICAL: Site not using HTTPS; data transmitted in plain text')
        if 'strict-transport-security' not in headers:
            notes.append('Missing HSTS header; connections could be downgraded to HTTP')
        if 'x-frame-options' not in headers and not (csp and 'frame-ancestors' in csp):
            notes.append('Missing X-Frame-Options and CSP frame-ancestors; vulnerable to clickjacking')
        if 'x-content-type-options' not in headers:
            notes.append('Missing X-Content-Type-Options; vulnerable to MIME-sniffing attacks')

        server = headers.get('server')
        if server and server.lower() != 'cloudflare':
            notes.append(f"Server header exposed: {server} - consider hiding for security")
        powered_by = headers.get('x-powered-by')
        if powered_by:
            notes.append(f"X-Powered-By header exposed: {powered_by} - remove to prevent info disclosure")
        if headers.get('access-control-allow-origin') == '*':
            notes.append('CORS set to wildcard (*); may expose sensitive data to any origin')

        # Cookies
        cookies_lower = [c.lower() for c in set_cookies]
        if is_https and any('secure' not in c for c in cookies_lower):
            notes.append('Cookies missing Secure flag on HTTPS site')
        if any('httponly' not in c for c in cookies_lower):
            notes.append('Cookies missing HttpOnly flag; vulnerable to XSS attacks')
        if any('samesite' not in c for c in cookies_lower):
            notes.append('Cookies missing SameSite attribute; vulnerable to CSRF')

        return notes
