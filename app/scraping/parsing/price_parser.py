"""
Marketplace price string parsing.
"""

from __future__ import annotations

import math
import re

# Indonesian Rupiah formatting: "." groups thousands, "," marks decimals.
# A lone "." followed by one or two digits is read as a decimal point.
_PRICE_TOKEN = re.compile(
    r"(?P<grouped>\d{1,3}(?:\.\d{3})+(?:,\d{1,2})?)(?![\d.])"
    r"|(?P<dotted>\d+\.\d{1,2})(?![\d.])"
    r"|(?P<plain>\d+(?:,\d{1,2})?)(?![\d.])"
)
_CURRENCY_PREFIX = re.compile(r"^\s*(?:rp\.?|idr)\s*", flags=re.IGNORECASE)
# Shorthand like "1,5 jt" or "50rb" is a display abbreviation, not a price.
_UNIT_SUFFIX = re.compile(r"^\s*(?:rb|ribu|jt|juta|k)\b", flags=re.IGNORECASE)


def _token_to_text(match: re.Match[str]) -> str:
    if match.group("grouped") is not None:
        return match.group("grouped").replace(".", "").replace(",", ".")
    if match.group("dotted") is not None:
        return match.group("dotted")
    return match.group("plain").replace(",", ".")


def parse_price(raw: object) -> float | None:
    """
    Parse a source-formatted price into a non-negative finite float.

    Handles ``Rp1.234.567``, ``Rp 1.234.567,50``, ``IDR 15000``, ``12.99`` and
    takes the lower bound of ranges such as ``Rp10.000 - Rp20.000``. Numbers
    pass through unchanged. Returns ``None`` when no price can be read,
    including abbreviated amounts such as ``Rp 1,5 jt``.
    """

    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
        return value if math.isfinite(value) and value >= 0 else None
    if not isinstance(raw, str):
        return None

    text = _CURRENCY_PREFIX.sub("", raw.replace("\xa0", " ").strip())
    if text.startswith("-"):
        return None
    match = _PRICE_TOKEN.search(text)
    if match is None:
        return None
    if _UNIT_SUFFIX.match(text[match.end():]):
        return None

    try:
        value = float(_token_to_text(match))
    except ValueError:
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value
