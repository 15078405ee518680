"""
Parsing helpers for marketplace listings.
"""

from app.scraping.parsing.html_parsers import HTMLListingParser
from app.scraping.parsing.listing_parser import ListingParseError, RawListingPayload, parse_listing
from app.scraping.parsing.price_parser import parse_price

__all__ = [
    "HTMLListingParser",
    "ListingParseError",
    "RawListingPayload",
    "parse_listing",
    "parse_price",
]
