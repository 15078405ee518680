"""
app/api/dependencies.py

Shared FastAPI dependencies.
"""

from __future__ import annotations

from fastapi import Depends

from app.services.price_analysis_service import PriceAnalysisService, get_price_analysis_service
from app.services.seller_guidance_service import SellerGuidanceService


def get_seller_guidance_service(
    analysis_service: PriceAnalysisService = Depends(get_price_analysis_service),
) -> SellerGuidanceService:
    """
    Build seller guidance on top of the (overridable) analysis service.
    """

    return SellerGuidanceService(analysis_service)
