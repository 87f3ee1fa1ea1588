import logging
from typing import List

from pydantic_settings import BaseSettings

_logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    # App
    APP_NAME: str = "linkmeta"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False  # exposes raw exception text in error bodies

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    # Fetching (all durations in ms)
    DEFAULT_TIMEOUT: int = 8000
    MAX_TIMEOUT: int = 15000
    MAX_REDIRECTS: int = 10
    MAX_CONTENT_BYTES: int = 10 * 1024 * 1024
    USER_AGENT: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    # Web-app manifest icons
    MANIFEST_ICONS_ENABLED: bool = True
    MANIFEST_TIMEOUT: int = 3000

    # Sentry
    SENTRY_DSN: str = ""
    SENTRY_TRACES_SAMPLE_RATE: float = 0.2
    SENTRY_ENVIRONMENT: str = "development"

    # Logging
    LOG_FORMAT: str = "json"  # "json" or "text"
    LOG_LEVEL: str = "INFO"

    # Metrics
    METRICS_ENABLED: bool = True

    def model_post_init(self, __context) -> None:
        if self.MAX_TIMEOUT <= 0:
            _logger.warning("MAX_TIMEOUT must be positive; using 15000")
            object.__setattr__(self, "MAX_TIMEOUT", 15000)
        if not 0 < self.DEFAULT_TIMEOUT <= self.MAX_TIMEOUT:
            _logger.warning(
                "DEFAULT_TIMEOUT=%s outside (0, MAX_TIMEOUT]; using %s",
                self.DEFAULT_TIMEOUT,
                self.MAX_TIMEOUT,
            )
            object.__setattr__(self, "DEFAULT_TIMEOUT", self.MAX_TIMEOUT)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
