import os
import logging
from dataclasses import dataclass
from typing import Optional

from newsfacts.errors import ConfigurationError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _int_env(name: str, default: int, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    gemini_api_key: Optional[str] = None
    llm_model: str = "gemini-2.0-flash"
    database_path: str = "news.db"
    rss_item_limit: int = 50        # recent items taken from each feed
    max_concurrency: int = 8        # simultaneous outbound requests per stage
    http_timeout: float = 15.0
    fetch_attempts: int = 1         # 1 = no retries
    enable_article_update: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from the process environment.
        Call load_dotenv() first if a .env file should be honoured.
        """
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
            llm_model=os.getenv("LLM_MODEL", cls.llm_model),
            database_path=os.getenv("DATABASE_PATH", cls.database_path),
            rss_item_limit=_int_env("RSS_ITEM_LIMIT", cls.rss_item_limit),
            max_concurrency=_int_env("MAX_CONCURRENCY", cls.max_concurrency),
            http_timeout=_float_env("HTTP_TIMEOUT", cls.http_timeout),
            fetch_attempts=_int_env("FETCH_ATTEMPTS", cls.fetch_attempts),
            # Trigger endpoint is only enabled by the literal string "true"
            enable_article_update=os.getenv("ENABLE_ARTICLE_UPDATE", "") == "true",
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
        )

    def require_api_key(self) -> str:
        if not self.gemini_api_key:
            raise ConfigurationError("GEMINI_API_KEY is not set")
        return self.gemini_api_key


def setup_logging(settings: Settings):
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=LOG_FORMAT
    )
