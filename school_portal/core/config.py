"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    google_maps_api_key: str
    database_url: str
    port: int = 8080
    search_radius: int = 10000
    cache_ttl_hours: float = 24.0
    page_token_delay: float = 2.0


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    google_maps_api_key = os.getenv("GOOGLE_MAPS_API_KEY", "").strip()
    database_url = os.getenv("DATABASE_URL", "")
    port = int(os.getenv("PORT", "8080"))
    search_radius = int(os.getenv("MARKET_ANALYSIS_RADIUS", "10000"))
    cache_ttl_hours = float(os.getenv("MARKET_ANALYSIS_CACHE_TTL_HOURS", "24"))
    page_token_delay = float(os.getenv("PAGE_TOKEN_DELAY_SECONDS", "2.0"))

    if not database_url:
        logger.warning("DATABASE_URL is not set; cached market analyses cannot be read or stored.")
    if not google_maps_api_key:
        logger.warning("GOOGLE_MAPS_API_KEY is not configured; market analysis requests will fail.")

    return Settings(
        google_maps_api_key=google_maps_api_key,
        database_url=database_url,
        port=port,
        search_radius=search_radius,
        cache_ttl_hours=cache_ttl_hours,
        page_token_delay=page_token_delay,
    )
