"""
app/api/routers package marker.
"""

from app.api.routers.price_analysis import router as price_analysis_router
from app.api.routers.seller_price_analysis import router as seller_price_analysis_router

__all__ = [
    "price_analysis_router",
    "seller_price_analysis_router",
]
