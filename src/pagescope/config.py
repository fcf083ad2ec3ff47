from dotenv import load_dotenv
from dataclasses import dataclass, field
from typing import Optional
from pathlib import Path
import json
import os

from pagescope.constants import (
    DEFAULT_READING_SPEED_WPM,
    DEFAULT_RENDER_WORKERS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    EXPECTED_SECURITY_HEADERS,
    LANGUAGE_WORDS,
    SOCIAL_MEDIA_DOMAINS,
    STOP_WORDS,
)

load_dotenv()  # Loads variables from .env file


RENDER_FAILURE_POLICIES = ("fail", "degrade")


class Settings:
    """
    Manages application settings loaded from environment variables.
    """
    LOG_LEVEL = os.getenv("PAGESCOPE_LOG_LEVEL", "INFO")
    LOG_FILE = os.getenv("PAGESCOPE_LOG_FILE")
    ENABLE_DYNAMIC_RENDER = os.getenv("PAGESCOPE_ENABLE_DYNAMIC_RENDER", "false").lower() in ("1", "true", "yes")


settings = Settings()


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(value: str) -> tuple:
    return tuple(item.strip().lower() for item in value.split(",") if item.strip())


@dataclass
class AnalysisConfig:
    """Configuration for a single page analysis."""

    timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    user_agent: str = DEFAULT_USER_AGENT
    enable_dynamic_render: bool = False
    # 'fail' aborts the call on a render error, 'degrade' keeps static results
    render_failure_policy: str = "fail"
    reading_speed_wpm: float = DEFAULT_READING_SPEED_WPM
    expected_security_headers: tuple = EXPECTED_SECURITY_HEADERS
    stopwords: frozenset = STOP_WORDS
    social_domains: tuple = SOCIAL_MEDIA_DOMAINS
    language_words: tuple = LANGUAGE_WORDS
    max_frequency_terms: Optional[int] = None
    render_workers: int = DEFAULT_RENDER_WORKERS
    headless: bool = True
    extra_headers: dict = field(default_factory=dict)

    def __post_init__(self):
        if self.render_failure_policy not in RENDER_FAILURE_POLICIES:
            raise ValueError(
                f"render_failure_policy must be one of {RENDER_FAILURE_POLICIES}, "
                f"got {self.render_failure_policy!r}"
            )
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        if self.reading_speed_wpm <= 0:
            raise ValueError("reading_speed_wpm must be positive")
        self.expected_security_headers = tuple(
            h.lower() for h in self.expected_security_headers
        )
        self.stopwords = frozenset(self.stopwords)
        self.social_domains = tuple(self.social_domains)

    @classmethod
    def from_env(cls) -> "AnalysisConfig":
        """Load configuration from environment variables.

        Environment variables are prefixed with PAGESCOPE_,
        e.g. PAGESCOPE_TIMEOUT_SECONDS=10 or
        PAGESCOPE_EXPECTED_SECURITY_HEADERS=x-frame-options,referrer-policy

        Returns:
            AnalysisConfig with values from environment
        """
        kwargs = {}
        prefix = "PAGESCOPE_"

        readers = {
            "timeout_seconds": float,
            "user_agent": str,
            "enable_dynamic_render": _env_bool,
            "render_failure_policy": str,
            "reading_speed_wpm": float,
            "expected_security_headers": _env_list,
            "social_domains": _env_list,
            "max_frequency_terms": int,
            "render_workers": int,
            "headless": _env_bool,
        }

        for field_name, reader in readers.items():
            env_value = os.getenv(f"{prefix}{field_name.upper()}")
            if env_value is None:
                continue
            try:
                kwargs[field_name] = reader(env_value)
            except ValueError:
                pass  # Keep default if conversion fails

        return cls(**kwargs)

    @classmethod
    def from_file(cls, path: str) -> "AnalysisConfig":
        """Load configuration from a JSON file.

        The file may hold the options at top level or under an
        "analysis" key. Unknown keys are ignored.

        Args:
            path: Path to JSON configuration file

        Returns:
            AnalysisConfig with values from file
        """
        file_path = Path(path)

        if not file_path.exists():
            return cls()

        with open(file_path, 'r') as f:
            config = json.load(f)

        section = config.get('analysis', config) if isinstance(config, dict) else config
        if not isinstance(section, dict):
            raise ValueError(f"{path}: expected a JSON object of analysis options")
        kwargs = {
            name: section[name]
            for name in cls.__dataclass_fields__
            if name in section
        }
        if 'language_words' in kwargs:
            kwargs['language_words'] = tuple(
                (language, tuple(words)) for language, words in kwargs['language_words']
            )

        return cls(**kwargs)

    def to_dict(self) -> dict:
        """Convert configuration to a JSON-friendly dictionary."""
        data = {}
        for field_name in self.__dataclass_fields__:
            value = getattr(self, field_name)
            if isinstance(value, frozenset):
                value = sorted(value)
            elif isinstance(value, tuple):
                value = [list(v) if isinstance(v, tuple) else v for v in value]
            data[field_name] = value
        return data

    def save_to_file(self, path: str) -> None:
        """Save the configuration to a JSON file.

        Args:
            path: Path to save configuration
        """
        with open(path, 'w') as f:
            json.dump({'analysis': self.to_dict()}, f, indent=2)


# Global default configuration instance
default_config = AnalysisConfig()
