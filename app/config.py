"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

_PROJECT_ROOT = Path(__file__).resolve().parents[1]


def load_env_files() -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """

    for filename in (".env", ".env.local"):
        env_path = _PROJECT_ROOT / filename
        if not env_path.exists():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(*names: str) -> str | None:
    """
    Return the first non-empty value among the given environment variables.
    """

    _load_env_once()
    for name in names:
        value = os.getenv(name)
        if value is None:
            continue
        stripped = value.strip()
        if stripped:
            return stripped
    return None


def resolve_project_path(raw_path: str) -> Path:
    """
    Resolve a possibly relative path against the project root.
    """

    candidate = Path(raw_path)
    if candidate.is_absolute():
        return candidate
    return (_PROJECT_ROOT / candidate).resolve()


@dataclass(frozen=True)
class MarketplaceScrapingSettings:
    """
    Runtime settings for marketplace listing scraping.
    """

    scraper_service_url: str = "http://localhost:4103"
    sources_config_path: str = "app/scraping/config/sources.json"
    timeout_seconds: float = 15.0
    max_retries: int = 0
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0
    rate_limit_per_second: float = 2.0
    user_agent: str = "PriceAnalysisBot/1.0 (+https://example.com/bot)"
    max_workers: int = 4


@dataclass(frozen=True)
class LLMSettings:
    """
    Text-generation collaborator settings.
    """

    adapter: str = "openai"
    model: str = "gpt-4o-mini"
    max_tokens: int = 1000
    temperature: float = 0.7
    api_key: str | None = None
    base_url: str | None = None
    timeout_seconds: float = 45.0
    format_max_retries: int = 0


@dataclass(frozen=True)
class PriceAnalysisSettings:
    """
    Request bounds and per-step time limits for the analysis pipeline.
    """

    default_limit: int = 10
    max_limit: int = 50
    scrape_timeout_seconds: float = 40.0
    generation_timeout_seconds: float = 60.0
    query_optimization_enabled: bool = True


@lru_cache(maxsize=1)
def get_marketplace_scraping_settings() -> MarketplaceScrapingSettings:
    """
    Return cached marketplace scraping settings from environment variables.
    """

    return MarketplaceScrapingSettings(
        scraper_service_url=_get_str_env("SCRAPER_URL", "http://localhost:4103").rstrip("/"),
        sources_config_path=str(
            resolve_project_path(
                _get_str_env(
                    "MARKETPLACE_SOURCES_CONFIG_PATH",
                    "app/scraping/config/sources.json",
                )
            )
        ),
        timeout_seconds=max(1.0, _get_float_env("MARKETPLACE_SCRAPE_TIMEOUT_SECONDS", 15.0)),
        max_retries=max(0, _get_int_env("MARKETPLACE_SCRAPE_MAX_RETRIES", 0)),
        backoff_initial_seconds=max(
            0.1,
            _get_float_env("MARKETPLACE_SCRAPE_BACKOFF_INITIAL_SECONDS", 0.5),
        ),
        backoff_multiplier=max(1.0, _get_float_env("MARKETPLACE_SCRAPE_BACKOFF_MULTIPLIER", 2.0)),
        rate_limit_per_second=max(
            0.1,
            _get_float_env("MARKETPLACE_SCRAPE_RATE_LIMIT_PER_SECOND", 2.0),
        ),
        user_agent=_get_str_env(
            "MARKETPLACE_SCRAPE_USER_AGENT",
            "PriceAnalysisBot/1.0 (+https://example.com/bot)",
        ),
        max_workers=max(1, _get_int_env("MARKETPLACE_SCRAPE_MAX_WORKERS", 4)),
    )


@lru_cache(maxsize=1)
def get_llm_settings() -> LLMSettings:
    """
    Return cached LLM adapter settings from environment variables.
    """

    return LLMSettings(
        adapter=_get_str_env("LLM_ADAPTER", "openai").lower(),
        model=_get_str_env("LLM_MODEL", _get_str_env("OPENAI_MODEL", "gpt-4o-mini")),
        max_tokens=max(64, _get_int_env("LLM_MAX_TOKENS", 1000)),
        temperature=min(2.0, max(0.0, _get_float_env("LLM_TEMPERATURE", 0.7))),
        api_key=_get_optional_str_env("LLM_API_KEY", "OPENAI_API_KEY"),
        base_url=_get_optional_str_env("LLM_BASE_URL", "OPENAI_API_BASE"),
        timeout_seconds=max(1.0, _get_float_env("LLM_TIMEOUT_SECONDS", 45.0)),
        format_max_retries=max(0, _get_int_env("LLM_FORMAT_MAX_RETRIES", 0)),
    )


@lru_cache(maxsize=1)
def get_price_analysis_settings() -> PriceAnalysisSettings:
    """
    Return cached price analysis pipeline settings.
    """

    max_limit = max(1, _get_int_env("PRICE_ANALYSIS_MAX_LIMIT", 50))
    default_limit = min(max_limit, max(1, _get_int_env("PRICE_ANALYSIS_DEFAULT_LIMIT", 10)))
    return PriceAnalysisSettings(
        default_limit=default_limit,
        max_limit=max_limit,
        scrape_timeout_seconds=max(
            1.0,
            _get_float_env("PRICE_ANALYSIS_SCRAPE_TIMEOUT_SECONDS", 40.0),
        ),
        generation_timeout_seconds=max(
            1.0,
            _get_float_env("PRICE_ANALYSIS_GENERATION_TIMEOUT_SECONDS", 60.0),
        ),
        query_optimization_enabled=_get_bool_env("QUERY_OPTIMIZATION_ENABLED", True),
    )
