"""
JSON config loader for marketplace sources.
"""

from __future__ import annotations

import json

from app.config import resolve_project_path
from app.scraping.config.models import MarketplaceSourceConfig

REQUIRED_HTML_SELECTORS = ("item", "name", "price")


def load_marketplace_sources(*, config_path: str) -> list[MarketplaceSourceConfig]:
    """
    Load marketplace source configurations from a JSON file.

    Malformed entries are skipped; duplicate source names are rejected since
    the name doubles as the listing ``source`` tag.
    """

    path = resolve_project_path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Marketplace sources config file not found: {path}")

    raw_data = json.loads(path.read_text(encoding="utf-8"))
    sources = raw_data.get("sources", []) if isinstance(raw_data, dict) else None
    if not isinstance(sources, list):
        raise ValueError("Invalid marketplace config: 'sources' must be a list.")

    parsed: list[MarketplaceSourceConfig] = []
    seen: set[str] = set()
    for entry in sources:
        if not isinstance(entry, dict):
            continue

        name = str(entry.get("name", "")).strip().lower()
        kind = str(entry.get("kind", "scraper_api")).strip().lower()
        if not name:
            continue
        if name in seen:
            raise ValueError(f"Duplicate marketplace source name '{name}'.")

        config = MarketplaceSourceConfig(
            name=name,
            kind=kind,
            endpoint=_optional_str(entry.get("endpoint")),
            search_url=_optional_str(entry.get("search_url")),
            selectors=_normalize_str_mapping(entry.get("selectors", {}), lower_keys=True),
            enabled=_optional_bool(entry.get("enabled"), True),
            headers=_normalize_str_mapping(entry.get("headers", {})),
            rate_limit_per_second=_optional_float(entry.get("rate_limit_per_second")),
            source_class=_optional_str(entry.get("source_class")),
        )
        if not _is_complete(config):
            continue

        seen.add(name)
        parsed.append(config)

    return parsed


def _is_complete(config: MarketplaceSourceConfig) -> bool:
    if config.source_class:
        return True
    if config.kind == "scraper_api":
        return config.endpoint is not None
    if config.kind == "html":
        return config.search_url is not None and all(
            config.selectors.get(key) for key in REQUIRED_HTML_SELECTORS
        )
    return True


def _normalize_str_mapping(values: object, *, lower_keys: bool = False) -> dict[str, str]:
    if not isinstance(values, dict):
        return {}

    normalized: dict[str, str] = {}
    for key, value in values.items():
        if not isinstance(key, str) or not isinstance(value, str):
            continue
        if key.strip() and value.strip():
            normalized[key.strip().lower() if lower_keys else key.strip()] = value.strip()
    return normalized


def _optional_str(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _optional_float(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _optional_bool(value: object, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    return default
