"""Logging configuration for the page analyzer.

Log records go to stderr so that ``--output json`` on stdout stays
parseable. Renders run on worker threads, so the default format names the
thread that emitted each record.
"""

import logging
import sys
from pathlib import Path
from typing import Iterable, Optional

DEFAULT_FORMAT = '%(asctime)s - %(name)s - [%(threadName)s] %(levelname)s - %(message)s'

# Third-party loggers that log every request or protocol frame at INFO/DEBUG
NOISY_LOGGERS = ('httpx', 'httpcore', 'asyncio', 'playwright')


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
    quiet_loggers: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """Configure root logging for a pagescope process.

    Args:
        level: Log level name; unknown names fall back to INFO
        log_file: Optional file that receives a copy of every record
        format_string: Record format, DEFAULT_FORMAT when omitted
        quiet_loggers: Logger names capped at WARNING
    """
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=numeric_level,
        format=format_string or DEFAULT_FORMAT,
        handlers=handlers,
        force=True,  # Replaces handlers from an earlier call
    )

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)
