# src/pagescope/constants.py
"""Centralized constants for the page analyzer.

This module contains the fixed lists and magic numbers used across the
pipeline. They are immutable so that callers wanting different values pass
their own through AnalysisConfig instead of mutating these.
"""

# =============================================================================
# Fetcher Constants
# =============================================================================

# Default request timeout in seconds
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30

# Identifying user agent sent with every fetch
DEFAULT_USER_AGENT = "PageScope/1.0"


# =============================================================================
# Static Extraction Constants
# =============================================================================

DEFAULT_TITLE = "No title found"
DEFAULT_DESCRIPTION = "No description found"

# Heading levels, evaluated in this order
HEADING_LEVELS = (1, 2, 3, 4, 5, 6)

# Leading characters kept from inline scripts and style blocks
INLINE_SNIPPET_LENGTH = 500

# Elements that belong to the document head when <body> is omitted
HEAD_ELEMENTS = frozenset({"head", "title", "meta", "link", "style", "script", "base", "template"})


# =============================================================================
# Text Analytics Constants
# =============================================================================

# Average reading speed (words per minute)
DEFAULT_READING_SPEED_WPM = 200

# Minimum token length for the word frequency table
MIN_FREQUENCY_WORD_LENGTH = 3

# Flesch Reading Ease formula components (for documentation)
FLESCH_FORMULA = "206.835 - 1.015 * (words/sentences) - 84.6 * (syllables/words)"

# Grade level mapping for Flesch scores
GRADE_MAPPING = {
    (90, 100): "5th Grade",
    (80, 89): "6th Grade",
    (70, 79): "7th Grade",
    (60, 69): "8th-9th Grade",
    (50, 59): "10th-12th Grade",
    (30, 49): "College",
    (0, 29): "Graduate",
}

# Common English function words excluded from the frequency table
STOP_WORDS = frozenset({
    'the', 'be', 'to', 'of', 'and', 'a', 'in', 'that', 'have', 'i',
    'it', 'for', 'not', 'on', 'with', 'he', 'as', 'you', 'do', 'at',
    'this', 'but', 'his', 'by', 'from', 'they', 'we', 'she', 'or', 'an',
    'are', 'was', 'is', 'were', 'been',
})

# Marker words for the substring-based language guess, in tie-break order
LANGUAGE_WORDS = (
    ("English", ('the', 'and', 'for', 'are', 'but', 'not', 'you', 'all', 'can', 'had', 'was')),
    ("Spanish", ('el', 'la', 'de', 'que', 'y', 'en', 'un', 'es', 'se', 'no', 'los')),
    ("French", ('le', 'de', 'et', 'à', 'un', 'il', 'être', 'en', 'avoir', 'que', 'les')),
)

UNKNOWN_LANGUAGE = "Unknown"


# =============================================================================
# Link / Security Constants
# =============================================================================

SOCIAL_MEDIA_DOMAINS = (
    'facebook.com', 'twitter.com', 'x.com', 'instagram.com', 'linkedin.com',
    'youtube.com', 'tiktok.com', 'pinterest.com', 'snapchat.com', 'reddit.com',
    'tumblr.com', 'whatsapp.com', 'telegram.org', 'discord.com',
)

EXPECTED_SECURITY_HEADERS = (
    'strict-transport-security',
    'content-security-policy',
    'x-frame-options',
    'x-content-type-options',
    'referrer-policy',
)

# Maximum mixed-content URLs kept as samples on the report
MAX_MIXED_CONTENT_SAMPLES = 10

# Inline script count above which an XSS advisory is added
INLINE_SCRIPT_WARNING_COUNT = 5


# =============================================================================
# Render Constants
# =============================================================================

DESKTOP_VIEWPORT_WIDTH = 1920
DESKTOP_VIEWPORT_HEIGHT = 1080

# Best-effort wait for document.body after navigation (milliseconds)
BODY_WAIT_TIMEOUT_MS = 10000

# Navigation timeout for the rendered view (milliseconds)
NAVIGATION_TIMEOUT_MS = 60000

# Worker threads dedicated to browser rendering
DEFAULT_RENDER_WORKERS = 4

# In-page buffer the console shim appends to
CONSOLE_BUFFER_NAME = "__pagescopeConsole"
