"""
Marketplace source exports.
"""

from app.scraping.sources.html_listing import HTMLListingSource
from app.scraping.sources.scraper_service import ScraperServiceSource

__all__ = ["HTMLListingSource", "ScraperServiceSource"]
