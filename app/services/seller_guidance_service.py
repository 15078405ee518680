"""
app/services/seller_guidance_service.py

Seller-facing guidance derived from a completed price analysis: where a
planned listing price sits in the market, whether to go ahead with it, and
what to watch out for.

Price positions (user price p against market statistics)
--------------------------------------------------------
very_low       p <  0.7 * min
low            p <  min
below_average  p <= 0.9 * average
average        p <= 1.1 * average
above_average  p <= max
high           p <= 1.2 * max
very_high      otherwise
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from app.domain.errors import AnalysisInputError
from app.domain.price_analysis import AnalysisResult, PriceStatistics
from app.logging_utils import log_event
from app.services.price_analysis_service import PriceAnalysisService
from llm_synthesis.formatting import format_rupiah

logger = logging.getLogger(__name__)

SELLER_MIN_QUERY_LENGTH = 3
QUICK_CHECK_LIMIT = 5
THIN_MARKET_PRODUCT_COUNT = 5
SUGGESTED_PRICE_TOLERANCE_PERCENT = 10.0


class PricePosition(str, Enum):
    NOT_SPECIFIED = "not_specified"
    VERY_LOW = "very_low"
    LOW = "low"
    BELOW_AVERAGE = "below_average"
    AVERAGE = "average"
    ABOVE_AVERAGE = "above_average"
    HIGH = "high"
    VERY_HIGH = "very_high"


@dataclass(frozen=True)
class SellerGuidance:
    should_proceed: bool
    price_position: PricePosition
    warnings: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SellerAnalysis:
    result: AnalysisResult
    guidance: SellerGuidance


@dataclass(frozen=True)
class QuickCheckResult:
    user_price: float
    market_average: float
    market_min: float
    market_max: float
    position: PricePosition
    should_proceed: bool
    quick_advice: str


def get_price_position(statistics: PriceStatistics, user_price: float | None) -> PricePosition:
    if user_price is None:
        return PricePosition.NOT_SPECIFIED
    if user_price < statistics.min * 0.7:
        return PricePosition.VERY_LOW
    if user_price < statistics.min:
        return PricePosition.LOW
    if user_price <= statistics.average * 0.9:
        return PricePosition.BELOW_AVERAGE
    if user_price <= statistics.average * 1.1:
        return PricePosition.AVERAGE
    if user_price <= statistics.max:
        return PricePosition.ABOVE_AVERAGE
    if user_price <= statistics.max * 1.2:
        return PricePosition.HIGH
    return PricePosition.VERY_HIGH


def should_proceed(statistics: PriceStatistics, user_price: float | None) -> bool:
    """
    False only for prices more than 20% above the market maximum or below
    half the market minimum.
    """

    if user_price is None:
        return True
    if user_price > statistics.max * 1.2:
        return False
    if user_price < statistics.min * 0.5:
        return False
    return True


_POSITION_WARNINGS: dict[PricePosition, tuple[str, ...]] = {
    PricePosition.VERY_LOW: (
        "Price is very low; buyers may doubt the product's quality.",
        "Make sure the price still covers your operating costs.",
    ),
    PricePosition.LOW: (
        "Price is below the market range; it can attract many buyers.",
        "Make sure the profit margin is still sufficient.",
    ),
    PricePosition.HIGH: ("Price is above the market range; make sure the product stands out.",),
    PricePosition.VERY_HIGH: (
        "Price is very high; the product may struggle to compete.",
        "Offer a clear value proposition such as a warranty or bonus items.",
    ),
}


def build_warnings(result: AnalysisResult, user_price: float | None) -> list[str]:
    if user_price is None:
        return ["No price set yet. Use the market analysis below to choose one."]

    position = get_price_position(result.statistics, user_price)
    warnings = list(_POSITION_WARNINGS.get(position, ()))
    if result.statistics.total_products < THIN_MARKET_PRODUCT_COUNT:
        warnings.append("Market data is limited. Consider additional research.")
    return warnings


def build_suggestions(result: AnalysisResult, user_price: float | None) -> list[str]:
    statistics = result.statistics
    suggestions: list[str] = []

    suggested_price = result.analysis.suggested_price
    if suggested_price:
        suggestions.append(f"Suggested price: {format_rupiah(suggested_price)}")
        if user_price is not None:
            difference = (user_price - suggested_price) / suggested_price * 100
            if abs(difference) > SUGGESTED_PRICE_TOLERANCE_PERCENT:
                direction = "higher" if difference > 0 else "lower"
                suggestions.append(
                    f"Your price is {abs(difference):.1f}% {direction} than the suggested price."
                )

    suggestions.append(
        f"Market price range: {format_rupiah(statistics.min)} - {format_rupiah(statistics.max)}"
    )
    suggestions.append(f"Average price: {format_rupiah(statistics.average)}")
    suggestions.append(f"Median price: {format_rupiah(statistics.median)}")

    if user_price is not None:
        position = get_price_position(statistics, user_price)
        if position in (PricePosition.BELOW_AVERAGE, PricePosition.LOW):
            suggestions.append("Strategy: high volume with a thin margin.")
            suggestions.append("Compete on shipping speed and service.")
        elif position in (PricePosition.ABOVE_AVERAGE, PricePosition.HIGH):
            suggestions.append("Strategy: premium positioning.")
            suggestions.append("Highlight quality, warranty or bonus items.")
        else:
            suggestions.append("Strategy: compete around the median price.")
            suggestions.append("Win on reviews, product photos and descriptions.")

    return suggestions


def build_guidance(result: AnalysisResult, user_price: float | None) -> SellerGuidance:
    return SellerGuidance(
        should_proceed=should_proceed(result.statistics, user_price),
        price_position=get_price_position(result.statistics, user_price),
        warnings=build_warnings(result, user_price),
        suggestions=build_suggestions(result, user_price),
    )


def quick_advice(position: PricePosition) -> str:
    if position in (PricePosition.VERY_LOW, PricePosition.VERY_HIGH):
        return "Extreme price; consider adjusting it."
    if position is PricePosition.AVERAGE:
        return "Competitive price."
    return "Reasonable price."


class SellerGuidanceService:
    """
    Runs price analyses on behalf of sellers and attaches guidance.
    """

    def __init__(self, analysis_service: PriceAnalysisService) -> None:
        self._analysis_service = analysis_service

    async def analyze_before_create(
        self,
        product_name: object,
        user_price: object = None,
        limit: object = None,
    ) -> SellerAnalysis:
        request = self._analysis_service.build_request(
            query=product_name,
            limit=limit,
            user_price=user_price,
            min_query_length=SELLER_MIN_QUERY_LENGTH,
        )
        log_event(
            logger,
            logging.INFO,
            "seller_price_analysis",
            product_name=request.query,
            user_price=request.user_price,
            limit=request.limit,
        )
        result = await self._analysis_service.analyze(request)
        return SellerAnalysis(result=result, guidance=build_guidance(result, request.user_price))

    async def quick_check(self, product_name: object, user_price: object) -> QuickCheckResult:
        """
        Small analysis (five listings) answering whether ``user_price`` is
        reasonable for ``product_name``.
        """

        if user_price is None:
            raise AnalysisInputError("User price is required for a quick check.")
        request = self._analysis_service.build_request(
            query=product_name,
            limit=QUICK_CHECK_LIMIT,
            user_price=user_price,
            min_query_length=SELLER_MIN_QUERY_LENGTH,
        )
        result = await self._analysis_service.analyze(request)
        statistics = result.statistics
        price = request.user_price
        position = get_price_position(statistics, price)
        return QuickCheckResult(
            user_price=price,
            market_average=statistics.average,
            market_min=statistics.min,
            market_max=statistics.max,
            position=position,
            should_proceed=should_proceed(statistics, price),
            quick_advice=quick_advice(position),
        )
