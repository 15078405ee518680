"""
Config-driven marketplace source that parses search-result HTML.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote_plus

from bs4 import BeautifulSoup

from app.scraping.base import MarketplaceSource, SourceFetchError
from app.scraping.parsing.html_parsers import HTMLListingParser


class HTMLListingSource(MarketplaceSource):
    """
    Fetches ``search_url`` with the query substituted for ``{query}`` and
    extracts listing cards using the configured selectors.
    """

    def search_url(self, query: str) -> str:
        template = self.config.search_url
        if not template:
            raise SourceFetchError(f"{self.name} has no search_url configured")
        return template.replace("{query}", quote_plus(query))

    def fetch_raw_items(self, *, query: str, limit: int) -> list[Any]:
        page_url = self.search_url(query)
        response = self._request_with_retry(page_url)
        soup = BeautifulSoup(response.text, "html.parser")
        return HTMLListingParser.extract_listings(
            soup=soup,
            selectors=self.config.selectors,
            page_url=page_url,
            limit=limit,
        )
