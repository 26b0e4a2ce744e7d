from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv


def _load_env() -> None:
    # Centralized dotenv loading; safe if .env missing
    load_dotenv()


@dataclass(frozen=True)
class Settings:
    log_level: str
    run_env: str

    # HTTP
    http_timeout_seconds: int
    user_agent: str

    # Population engine
    image_cache_capacity: int
    batch_delay_ms: int
    default_font_family: str
    default_font_style: str
    template_font_family: str
    template_font_style: str

    # Remote sources
    sheets_proxy_url: str | None
    connection_sample_chars: int

    # Background removal
    bg_removal_provider: str  # removebg | none
    remove_bg_api_key: str | None
    remove_bg_api_url: str = "https://api.remove.bg/v1.0/removebg"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    _load_env()
    return Settings(
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        run_env=os.getenv("RUN_ENV", "local"),
        http_timeout_seconds=int(os.getenv("HTTP_TIMEOUT_SECONDS", "20")),
        user_agent=os.getenv("USER_AGENT", "Mozilla/5.0 (compatible; ProfilePopulator/1.0)"),
        image_cache_capacity=int(os.getenv("IMAGE_CACHE_CAPACITY", "100")),
        batch_delay_ms=int(os.getenv("BATCH_DELAY_MS", "10")),
        default_font_family=os.getenv("DEFAULT_FONT_FAMILY", "Roboto"),
        default_font_style=os.getenv("DEFAULT_FONT_STYLE", "Regular"),
        template_font_family=os.getenv("TEMPLATE_FONT_FAMILY", "Inter"),
        template_font_style=os.getenv("TEMPLATE_FONT_STYLE", "Regular"),
        sheets_proxy_url=os.getenv("SHEETS_PROXY_URL") or None,
        connection_sample_chars=int(os.getenv("CONNECTION_SAMPLE_CHARS", "200")),
        bg_removal_provider=os.getenv("BG_REMOVAL_PROVIDER", "removebg").lower(),
        remove_bg_api_key=os.getenv("REMOVE_BG_API_KEY") or None,
        remove_bg_api_url=os.getenv("REMOVE_BG_API_URL", "https://api.remove.bg/v1.0/removebg"),
    )
