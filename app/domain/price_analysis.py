"""
app/domain/price_analysis.py

Domain models for the price analysis pipeline.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from app.domain.errors import AnalysisInputError


@dataclass(frozen=True)
class ListingRecord:
    """
    One scraped product offer, normalized across marketplace sources.

    ``price_numeric`` is ``None`` when ``price_raw`` could not be parsed; such
    records are kept for display but never enter the statistics.
    """

    name: str
    price_raw: str
    price_numeric: float | None
    source: str
    rating: str | None = None
    image_url: str | None = None
    product_url: str | None = None
    shop_location: str | None = None
    sold_count: str | None = None

    @property
    def has_valid_price(self) -> bool:
        return self.price_numeric is not None


@dataclass(frozen=True)
class PriceStatistics:
    """
    Descriptive statistics over the valid prices of one analysis request.

    Quartiles use the median-of-halves method and are ``None`` when fewer
    than two prices are available.
    """

    min: float
    max: float
    average: float
    median: float
    total_products: int
    q1: float | None = None
    q3: float | None = None
    iqr: float | None = None
    price_range: float = 0.0
    standard_deviation: float = 0.0
    lower_outlier_bound: float | None = None
    upper_outlier_bound: float | None = None
    outlier_count: int = 0


@dataclass(frozen=True)
class Recommendation:
    """
    Validated pricing recommendation produced by the generation step.
    """

    recommendation: str
    insights: list[str]
    suggested_price: float | None = None


@dataclass(frozen=True)
class AnalysisResult:
    """
    Complete, all-or-nothing outcome of one price analysis request.
    """

    query: str
    products: list[ListingRecord]
    statistics: PriceStatistics
    analysis: Recommendation
    optimized_query: str | None = None


@dataclass(frozen=True)
class AnalysisRequest:
    """
    Validated caller input for one analysis.
    """

    query: str
    limit: int
    user_price: float | None = None

    @classmethod
    def create(
        cls,
        *,
        query: object,
        limit: object = None,
        user_price: object = None,
        default_limit: int = 10,
        max_limit: int = 50,
        min_query_length: int = 1,
    ) -> "AnalysisRequest":
        """
        Validate raw caller input, raising ``AnalysisInputError`` on any problem.
        """

        if not isinstance(query, str) or not query.strip():
            raise AnalysisInputError("Query is required and must be a non-empty string.")
        normalized_query = " ".join(query.split())
        if len(normalized_query) < min_query_length:
            raise AnalysisInputError(
                f"Query must be at least {min_query_length} characters long."
            )

        if limit is None:
            resolved_limit = default_limit
        else:
            if isinstance(limit, bool) or not isinstance(limit, (int, float)):
                raise AnalysisInputError("Limit must be an integer.")
            if isinstance(limit, float) and not limit.is_integer():
                raise AnalysisInputError("Limit must be an integer.")
            resolved_limit = int(limit)
            if resolved_limit <= 0:
                raise AnalysisInputError("Limit must be a positive integer.")
            if resolved_limit > max_limit:
                raise AnalysisInputError(f"Limit must not exceed {max_limit}.")

        resolved_price: float | None = None
        if user_price is not None:
            if isinstance(user_price, bool) or not isinstance(user_price, (int, float)):
                raise AnalysisInputError("User price must be a number.")
            resolved_price = float(user_price)
            if not math.isfinite(resolved_price) or resolved_price <= 0:
                raise AnalysisInputError("User price must be a positive number.")

        return cls(query=normalized_query, limit=resolved_limit, user_price=resolved_price)


def valid_prices(listings: Sequence[ListingRecord]) -> list[float]:
    """
    Return the parsed prices of listings that carry one, in listing order.
    """

    return [listing.price_numeric for listing in listings if listing.price_numeric is not None]
