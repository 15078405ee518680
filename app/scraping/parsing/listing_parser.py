"""
Boundary validation for raw listing payloads returned by marketplace sources.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from app.domain.price_analysis import ListingRecord
from app.scraping.parsing.price_parser import parse_price


class ListingParseError(ValueError):
    """
    Raised when a raw source item cannot become a ``ListingRecord``.
    """

    def __init__(self, source: str, errors: list[str]) -> None:
        self.source = source
        self.errors = errors
        super().__init__(f"source={source} invalid listing: " + "; ".join(errors))


class RawListingPayload(BaseModel):
    """
    Shape every source item must satisfy before normalization.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    name: str = Field(min_length=1)
    price: str = Field(min_length=1)
    rating: str | None = None
    image_url: str | None = None
    product_url: str | None = None
    shop_location: str | None = None
    sold: str | None = None

    @field_validator("price", "rating", "sold", mode="before")
    @classmethod
    def _coerce_number_to_text(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("rating", "image_url", "product_url", "shop_location", "sold")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value or None


def parse_listing(item: object, *, source: str) -> ListingRecord:
    """
    Validate one raw item and return a fully-typed ``ListingRecord``.

    An unparseable price is not an error: the record is returned with
    ``price_numeric=None`` so it can still be displayed.
    """

    if not isinstance(item, dict):
        raise ListingParseError(source, ["item must be a JSON object"])
    try:
        payload = RawListingPayload.model_validate(item)
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        ]
        raise ListingParseError(source, errors) from exc

    # Numeric JSON prices are parsed as numbers; the text form is for display.
    raw_price = item.get("price")
    if isinstance(raw_price, bool) or not isinstance(raw_price, (int, float)):
        raw_price = payload.price

    return ListingRecord(
        name=payload.name,
        price_raw=payload.price,
        price_numeric=parse_price(raw_price),
        source=source,
        rating=payload.rating,
        image_url=payload.image_url,
        product_url=payload.product_url,
        shop_location=payload.shop_location,
        sold_count=payload.sold,
    )
