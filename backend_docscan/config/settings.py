"""
Application settings.

Responsibilities:
- Read configuration from environment variables (and .env via env.py).
- Validate values and provide defaults for optional ones.
- Expose one immutable Settings value (content source URL, word cloud API,
  result store backend, similarity strategy, API host/port) that callers pass
  into the analysis service. There is no global registry of backends.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from backend_docscan.config.env import (
    env_choice,
    env_float,
    env_int,
    env_str,
    load_docscan_env,
)
from backend_docscan.core.exceptions import ConfigError

RESULT_STORE_BACKENDS = ("sqlite", "sqlalchemy", "memory")
SIMILARITY_STRATEGIES = ("word_overlap", "trigram")
# Upper bound on stored similar matches per analysis.
MAX_SIMILAR_MATCHES = 5

DEFAULT_FILE_STORING_SERVICE_URL = "http://file-storing-service:8081"
DEFAULT_WORDCLOUD_API_URL = "https://quickchart.io/wordcloud"


@dataclass(frozen=True)
class Settings:
    """Service configuration. Build with Settings.from_env() or construct directly in tests."""

    file_storing_service_url: str = DEFAULT_FILE_STORING_SERVICE_URL
    content_fetch_timeout_sec: float = 10.0

    wordcloud_api_url: str = DEFAULT_WORDCLOUD_API_URL
    """Empty string disables word cloud generation."""
    wordcloud_timeout_sec: float = 10.0
    wordcloud_width: int = 800
    wordcloud_height: int = 600
    wordcloud_format: str = "png"
    wordcloud_max_words: int = 100

    result_store_backend: str = "sqlite"
    db_path: Path = Path("docscan.db")
    database_url: str | None = None

    similarity_strategy: str = "word_overlap"
    similarity_threshold: float = 5.0
    """Percent; a candidate is kept only when its score is strictly greater."""
    similarity_max_matches: int = MAX_SIMILAR_MATCHES

    api_host: str = "0.0.0.0"
    api_port: int = 8082

    def __post_init__(self) -> None:
        if self.result_store_backend not in RESULT_STORE_BACKENDS:
            raise ConfigError(f"unknown result store backend {self.result_store_backend!r}")
        if self.similarity_strategy not in SIMILARITY_STRATEGIES:
            raise ConfigError(f"unknown similarity strategy {self.similarity_strategy!r}")
        if not 0.0 <= self.similarity_threshold <= 100.0:
            raise ConfigError("similarity_threshold must be within [0, 100]")
        if not 1 <= self.similarity_max_matches <= MAX_SIMILAR_MATCHES:
            raise ConfigError(f"similarity_max_matches must be within [1, {MAX_SIMILAR_MATCHES}]")
        if self.content_fetch_timeout_sec <= 0 or self.wordcloud_timeout_sec <= 0:
            raise ConfigError("timeouts must be positive")

    @property
    def wordcloud_enabled(self) -> bool:
        return bool(self.wordcloud_api_url)

    @property
    def sqlalchemy_url(self) -> str:
        """DATABASE_URL when set; otherwise SQLite at db_path."""
        return self.database_url or f"sqlite:///{self.db_path}"

    @classmethod
    def from_env(cls) -> "Settings":
        load_docscan_env()
        return cls(
            file_storing_service_url=env_str(
                "FILE_STORING_SERVICE_URL", DEFAULT_FILE_STORING_SERVICE_URL
            ).rstrip("/"),
            content_fetch_timeout_sec=env_float("CONTENT_FETCH_TIMEOUT_SEC", 10.0),
            wordcloud_api_url=env_str("WORDCLOUD_API_URL", DEFAULT_WORDCLOUD_API_URL),
            wordcloud_timeout_sec=env_float("WORDCLOUD_TIMEOUT_SEC", 10.0),
            wordcloud_width=env_int("WORDCLOUD_WIDTH", 800),
            wordcloud_height=env_int("WORDCLOUD_HEIGHT", 600),
            wordcloud_format=env_str("WORDCLOUD_FORMAT", "png") or "png",
            wordcloud_max_words=env_int("WORDCLOUD_MAX_WORDS", 100),
            result_store_backend=env_choice("RESULT_STORE_BACKEND", "sqlite", RESULT_STORE_BACKENDS),
            db_path=Path(env_str("DB_PATH", "docscan.db") or "docscan.db"),
            database_url=env_str("DATABASE_URL", "") or None,
            similarity_strategy=env_choice("SIMILARITY_STRATEGY", "word_overlap", SIMILARITY_STRATEGIES),
            similarity_threshold=env_float("SIMILARITY_THRESHOLD", 5.0),
            similarity_max_matches=env_int("SIMILARITY_MAX_MATCHES", MAX_SIMILAR_MATCHES),
            api_host=env_str("API_HOST", "0.0.0.0") or "0.0.0.0",
            api_port=env_int("API_PORT", 8082),
        )


def get_settings() -> Settings:
    """Return settings read from the current environment."""
    return Settings.from_env()
