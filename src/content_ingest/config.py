# -*- coding: utf-8 -*-
"""
Ingestion service configuration using Pydantic BaseSettings.
"""
from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central service configuration loaded from environment variables.
    Pydantic's BaseSettings provides validation, type casting,
    and reading from .env files.
    """

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8002

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # Outbound requests
    USER_AGENT: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
    )

    # Timeouts (in milliseconds)
    # Budget for a single provider call in the fallback chain
    PROVIDER_TIMEOUT: int = 10000
    # Per-mirror budget while rebuilding a thread (shorter, best-effort)
    THREAD_TIMEOUT: int = 5000
    # Overall budget for the whole thread reconstruction step
    THREAD_TOTAL_TIMEOUT: int = 12000

    # Provider-level retry on transport errors (1 = single attempt)
    PROVIDER_RETRY_ATTEMPTS: int = 1
    RETRY_MIN_WAIT: int = 1
    RETRY_MAX_WAIT: int = 5

    # ==========================================================================
    # Post acquisition
    # ==========================================================================

    # Structured JSON endpoint, tried first
    SYNDICATION_URL: str = "https://cdn.syndication.twimg.com/tweet-result"

    # HTML mirror front-ends, tried in order after the JSON endpoint
    POST_MIRRORS: List[str] = [
        "https://nitter.net",
        "https://nitter.privacydev.net",
        "https://nitter.poast.org",
        "https://nitter.1d4.us",
    ]

    # Only the first N mirrors are asked for the reply thread
    THREAD_MIRROR_LIMIT: int = 2

    # ==========================================================================
    # Translation
    # ==========================================================================

    TRANSLATION_MIRRORS: List[str] = [
        "https://lingva.ml",
        "https://lingva.lunar.icu",
        "https://translate.plausibility.cloud",
    ]
    # Longer input is truncated before being sent
    TRANSLATION_MAX_LENGTH: int = 5000

    # ==========================================================================
    # Document structuring heuristics
    # ==========================================================================

    # Lines at or above this length are never headings
    HEADING_MAX_LENGTH: int = 100
    # Paragraph buffer is flushed once it grows past this many characters
    PARAGRAPH_MAX_LENGTH: int = 500
    # Fallback title (first line) is truncated to this length
    TITLE_MAX_LENGTH: int = 50

    # Uploads
    MAX_UPLOAD_SIZE_MB: int = 50

    # API Documentation (disable in production)
    DOCS_ENABLED: bool = True

    # CORS
    CORS_ORIGINS: List[str] = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = False

    # Request tracking
    REQUEST_ID_HEADER: str = "X-Request-ID"

    # Compression
    GZIP_MIN_SIZE: int = 1000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


# Global configuration instance
settings = Settings()
