"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    """Raised when the Google API credential is missing or rejected."""


@dataclass(frozen=True)
class Settings:
    google_api_key: str
    port: int = 5000
    max_pages: int = 3
    search_timeout_seconds: float = 90.0
    request_timeout: float = 10.0
    max_retries: int = 2
    detail_workers: int = 8
    language: Optional[str] = None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    # The web client historically shipped the key under its Vite name.
    google_api_key = os.getenv("GOOGLE_PLACES_API_KEY") or os.getenv("VITE_GOOGLE_PLACES_API_KEY", "")
    port = int(os.getenv("PORT", "5000"))
    max_pages = int(os.getenv("SEARCH_MAX_PAGES", "3"))
    search_timeout_seconds = float(os.getenv("SEARCH_TIMEOUT_SECONDS", "90"))
    request_timeout = float(os.getenv("PLACES_REQUEST_TIMEOUT", "10"))
    max_retries = int(os.getenv("PLACES_MAX_RETRIES", "2"))
    detail_workers = int(os.getenv("DETAIL_WORKERS", "8"))
    language_raw = os.getenv("PLACES_LANGUAGE")
    language = language_raw.strip() if language_raw and language_raw.strip() else None

    if not google_api_key:
        logger.warning("GOOGLE_PLACES_API_KEY is not configured; place searches will fail.")
    if max_pages < 1:
        logger.warning("SEARCH_MAX_PAGES=%d is below 1; using 1.", max_pages)
        max_pages = 1

    return Settings(
        google_api_key=google_api_key,
        port=port,
        max_pages=max_pages,
        search_timeout_seconds=search_timeout_seconds,
        request_timeout=request_timeout,
        max_retries=max_retries,
        detail_workers=max(1, detail_workers),
        language=language,
    )


def require_api_key(settings: Settings) -> str:
    if not settings.google_api_key:
        raise ConfigurationError("Google Places API key is not configured")
    return settings.google_api_key
