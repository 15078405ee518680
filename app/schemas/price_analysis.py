"""
app/schemas/price_analysis.py

Request, response and streaming event schemas for price analysis.

Wire keys are camelCase; Python attributes stay snake_case.
"""

from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.domain.price_analysis import (
    AnalysisResult,
    ListingRecord,
    PriceStatistics,
    Recommendation,
)


class CamelModel(BaseModel):
    """
    Base model serializing to camelCase and accepting either naming on input.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ListingRecordResponse(CamelModel):
    name: str
    price_raw: str
    price_numeric: float | None = None
    rating: str | None = None
    image_url: str | None = None
    product_url: str | None = None
    shop_location: str | None = None
    sold_count: str | None = None
    source: str

    @classmethod
    def from_domain(cls, listing: ListingRecord) -> "ListingRecordResponse":
        return cls(
            name=listing.name,
            price_raw=listing.price_raw,
            price_numeric=listing.price_numeric,
            rating=listing.rating,
            image_url=listing.image_url,
            product_url=listing.product_url,
            shop_location=listing.shop_location,
            sold_count=listing.sold_count,
            source=listing.source,
        )


class PriceStatisticsResponse(CamelModel):
    min: float
    max: float
    average: float
    median: float
    q1: float | None = None
    q3: float | None = None
    total_products: int = Field(..., ge=0)
    iqr: float | None = None
    price_range: float
    standard_deviation: float
    lower_outlier_bound: float | None = None
    upper_outlier_bound: float | None = None
    outlier_count: int = Field(..., ge=0)

    @classmethod
    def from_domain(cls, statistics: PriceStatistics) -> "PriceStatisticsResponse":
        return cls(
            min=statistics.min,
            max=statistics.max,
            average=statistics.average,
            median=statistics.median,
            q1=statistics.q1,
            q3=statistics.q3,
            total_products=statistics.total_products,
            iqr=statistics.iqr,
            price_range=statistics.price_range,
            standard_deviation=statistics.standard_deviation,
            lower_outlier_bound=statistics.lower_outlier_bound,
            upper_outlier_bound=statistics.upper_outlier_bound,
            outlier_count=statistics.outlier_count,
        )


class RecommendationResponse(CamelModel):
    recommendation: str
    insights: list[str]
    suggested_price: float | None = None

    @classmethod
    def from_domain(cls, recommendation: Recommendation) -> "RecommendationResponse":
        return cls(
            recommendation=recommendation.recommendation,
            insights=list(recommendation.insights),
            suggested_price=recommendation.suggested_price,
        )


class AnalysisResultResponse(CamelModel):
    """
    API model for one complete price analysis.
    """

    query: str
    optimized_query: str | None = None
    products: list[ListingRecordResponse]
    statistics: PriceStatisticsResponse
    analysis: RecommendationResponse

    @classmethod
    def from_domain(cls, result: AnalysisResult) -> "AnalysisResultResponse":
        return cls(
            query=result.query,
            optimized_query=result.optimized_query,
            products=[ListingRecordResponse.from_domain(item) for item in result.products],
            statistics=PriceStatisticsResponse.from_domain(result.statistics),
            analysis=RecommendationResponse.from_domain(result.analysis),
        )


class AnalysisRequestBody(CamelModel):
    """
    JSON body for the non-streaming POST endpoint. Bounds are enforced by
    ``AnalysisRequest.create`` so every endpoint reports them the same way.
    """

    query: str | None = None
    limit: int | None = None
    user_price: float | None = None


class ErrorDetail(BaseModel):
    code: str
    details: dict | None = None


class PriceAnalysisEnvelope(CamelModel):
    """
    Standard response envelope for price analysis endpoints.
    """

    success: bool
    message: str
    data: AnalysisResultResponse | None = None
    error: ErrorDetail | None = None


# ---------------------------------------------------------------------------
# Streaming events
# ---------------------------------------------------------------------------


class ConnectedEvent(CamelModel):
    type: Literal["connected"] = "connected"
    message: str = "WebSocket connected successfully"


class ProgressUpdateEvent(CamelModel):
    type: Literal["progress"] = "progress"
    progress: int = Field(..., ge=0, le=100)
    message: str
    step: str


class CompleteEvent(CamelModel):
    type: Literal["complete"] = "complete"
    data: AnalysisResultResponse


class ErrorEvent(CamelModel):
    type: Literal["error"] = "error"
    message: str
    code: str


ProgressEvent = Union[ConnectedEvent, ProgressUpdateEvent, CompleteEvent, ErrorEvent]


# ---------------------------------------------------------------------------
# Seller guidance
# ---------------------------------------------------------------------------


class SellerGuidanceResponse(CamelModel):
    should_proceed: bool
    price_position: str
    warnings: list[str]
    suggestions: list[str]


class SellerAnalysisResponse(AnalysisResultResponse):
    seller_guidance: SellerGuidanceResponse


class SellerAnalysisEnvelope(CamelModel):
    success: bool
    message: str
    data: SellerAnalysisResponse | None = None
    error: ErrorDetail | None = None


class QuickCheckRequestBody(CamelModel):
    product_name: str | None = None
    user_price: float | None = None


class MarketRange(BaseModel):
    min: float
    max: float


class QuickCheckResponse(CamelModel):
    user_price: float
    market_average: float
    market_range: MarketRange
    position: str
    should_proceed: bool
    quick_advice: str


class QuickCheckEnvelope(CamelModel):
    success: bool
    message: str
    data: QuickCheckResponse | None = None
    error: ErrorDetail | None = None


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
    service: str = "price-analysis"
