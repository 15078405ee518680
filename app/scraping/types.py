"""
Shared scraping runtime data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from app.domain.price_analysis import ListingRecord


@dataclass(frozen=True)
class SourceFetchResult:
    """
    Outcome for one marketplace source within one scrape call.
    """

    source: str
    listings: list[ListingRecord]
    dropped_items: int = 0


@dataclass(frozen=True)
class ScrapeOutcome:
    """
    Combined outcome of one scrape call across every configured source.
    """

    listings: list[ListingRecord]
    succeeded_sources: list[str] = field(default_factory=list)
    source_errors: dict[str, str] = field(default_factory=dict)
    dropped_items: int = 0

    @property
    def attempted_sources(self) -> int:
        return len(self.succeeded_sources) + len(self.source_errors)

    @property
    def valid_price_count(self) -> int:
        return sum(1 for listing in self.listings if listing.has_valid_price)
