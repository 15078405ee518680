"""
app/api/routers/seller_price_analysis.py

Seller-facing price analysis: full analysis with guidance, and a quick check
used while a seller is typing a price.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from app.api.dependencies import get_seller_guidance_service
from app.api.responses import error_response
from app.domain.errors import PriceAnalysisError
from app.schemas.price_analysis import (
    AnalysisResultResponse,
    MarketRange,
    QuickCheckEnvelope,
    QuickCheckRequestBody,
    QuickCheckResponse,
    SellerAnalysisEnvelope,
    SellerAnalysisResponse,
    SellerGuidanceResponse,
)
from app.services.seller_guidance_service import SellerGuidanceService

router = APIRouter(prefix="/api/seller/price-analysis", tags=["seller-price-analysis"])


@router.get("", response_model=SellerAnalysisEnvelope)
async def analyze_before_create(
    product_name: str | None = Query(default=None, alias="productName"),
    user_price: float | None = Query(default=None, alias="userPrice"),
    limit: int | None = Query(default=None),
    guidance_service: SellerGuidanceService = Depends(get_seller_guidance_service),
) -> SellerAnalysisEnvelope | JSONResponse:
    """
    Analyse the market for a product before a seller lists it.
    """

    try:
        analysis = await guidance_service.analyze_before_create(product_name, user_price, limit)
    except PriceAnalysisError as exc:
        return error_response(exc)

    base = AnalysisResultResponse.from_domain(analysis.result)
    guidance = analysis.guidance
    return SellerAnalysisEnvelope(
        success=True,
        message="Price analysis completed successfully",
        data=SellerAnalysisResponse(
            **dict(base),
            seller_guidance=SellerGuidanceResponse(
                should_proceed=guidance.should_proceed,
                price_position=guidance.price_position.value,
                warnings=guidance.warnings,
                suggestions=guidance.suggestions,
            ),
        ),
    )


@router.post("/quick-check", response_model=QuickCheckEnvelope)
async def quick_price_check(
    body: QuickCheckRequestBody,
    guidance_service: SellerGuidanceService = Depends(get_seller_guidance_service),
) -> QuickCheckEnvelope | JSONResponse:
    try:
        check = await guidance_service.quick_check(body.product_name, body.user_price)
    except PriceAnalysisError as exc:
        return error_response(exc)

    return QuickCheckEnvelope(
        success=True,
        message="Quick check completed successfully",
        data=QuickCheckResponse(
            user_price=check.user_price,
            market_average=check.market_average,
            market_range=MarketRange(min=check.market_min, max=check.market_max),
            position=check.position.value,
            should_proceed=check.should_proceed,
            quick_advice=check.quick_advice,
        ),
    )
