"""
Marketplace source configuration models.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class MarketplaceSourceConfig:
    """
    One marketplace source configuration.

    ``kind`` selects the source implementation: ``scraper_api`` sources call a
    JSON scraper service at ``endpoint``; ``html`` sources fetch ``search_url``
    (with a ``{query}`` placeholder) and read listings via CSS ``selectors``.
    """

    name: str
    kind: str
    endpoint: str | None = None
    search_url: str | None = None
    selectors: dict[str, str] = field(default_factory=dict)
    enabled: bool = True
    headers: dict[str, str] = field(default_factory=dict)
    rate_limit_per_second: float | None = None
    source_class: str | None = None
