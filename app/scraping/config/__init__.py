"""
Config helpers for marketplace scraping.
"""

from app.scraping.config.loader import load_marketplace_sources
from app.scraping.config.models import MarketplaceSourceConfig

__all__ = [
    "MarketplaceSourceConfig",
    "load_marketplace_sources",
]
