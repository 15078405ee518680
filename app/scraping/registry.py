"""
Marketplace source class registry and factory.
"""

from __future__ import annotations

import importlib
import threading
from collections.abc import Mapping

import requests

from app.config import MarketplaceScrapingSettings
from app.scraping.base import MarketplaceSource
from app.scraping.config.models import MarketplaceSourceConfig
from app.scraping.rate_limiter import DomainRateLimiter
from app.scraping.sources import HTMLListingSource, ScraperServiceSource


class SourceRegistry:
    """
    Source registry supporting built-in kinds and dynamic import paths.
    """

    def __init__(self, registrations: Mapping[str, type[MarketplaceSource]] | None = None) -> None:
        builtins: dict[str, type[MarketplaceSource]] = {
            "scraper_api": ScraperServiceSource,
            "html": HTMLListingSource,
        }
        if registrations:
            builtins.update(registrations)
        self._registrations = builtins

    def register(self, *, kind: str, source_class: type[MarketplaceSource]) -> None:
        self._registrations[kind.strip().lower()] = source_class

    def create_source(
        self,
        *,
        config: MarketplaceSourceConfig,
        settings: MarketplaceScrapingSettings,
        session: requests.Session,
        rate_limiter: DomainRateLimiter,
        cancel_event: threading.Event | None = None,
    ) -> MarketplaceSource:
        source_class = self._resolve_source_class(config)
        return source_class(
            config=config,
            settings=settings,
            session=session,
            rate_limiter=rate_limiter,
            cancel_event=cancel_event,
        )

    def _resolve_source_class(self, config: MarketplaceSourceConfig) -> type[MarketplaceSource]:
        if config.source_class:
            return self._load_dynamic_class(config.source_class)

        resolved = self._registrations.get(config.kind)
        if resolved is None:
            allowed = ", ".join(sorted(self._registrations.keys()))
            raise ValueError(
                f"Unknown kind='{config.kind}' for source='{config.name}'. "
                f"Allowed kinds: {allowed}."
            )
        return resolved

    @staticmethod
    def _load_dynamic_class(path: str) -> type[MarketplaceSource]:
        if ":" not in path:
            raise ValueError(f"Invalid source_class '{path}'. Use 'module.path:ClassName'.")

        module_path, class_name = path.split(":", 1)
        module = importlib.import_module(module_path)
        loaded = getattr(module, class_name, None)
        if loaded is None:
            raise ValueError(f"Unable to resolve source class '{path}'.")
        if not isinstance(loaded, type) or not issubclass(loaded, MarketplaceSource):
            raise ValueError(f"Class '{path}' must inherit from MarketplaceSource.")
        return loaded
