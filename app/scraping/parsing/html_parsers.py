"""
BeautifulSoup-based parsing layer for marketplace search pages.
"""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

# Selector keys mapped to raw listing payload keys.
FIELD_KEYS = {
    "name": "name",
    "price": "price",
    "rating": "rating",
    "image_url": "image_url",
    "product_url": "product_url",
    "shop_location": "shop_location",
    "sold_count": "sold",
}
URL_FIELDS = {"image_url", "product_url"}


class HTMLListingParser:
    """
    Deterministic listing extraction from search-result HTML.

    A field selector may read an attribute with ``selector@attr``; an empty
    selector before ``@`` targets the item node itself.
    """

    @classmethod
    def extract_listings(
        cls,
        *,
        soup: BeautifulSoup,
        selectors: dict[str, str],
        page_url: str,
        limit: int,
    ) -> list[dict[str, Any]]:
        item_selector = selectors.get("item")
        if not item_selector:
            return []

        items: list[dict[str, Any]] = []
        for node in soup.select(item_selector)[:300]:
            item: dict[str, Any] = {}
            for selector_key, payload_key in FIELD_KEYS.items():
                selector = selectors.get(selector_key)
                if not selector:
                    continue
                value = cls._read_field(node, selector)
                if value and selector_key in URL_FIELDS:
                    value = urljoin(page_url, value)
                if value:
                    item[payload_key] = value
            if item.get("name") and item.get("price"):
                items.append(item)
        return cls._dedupe(items)[:limit]

    @classmethod
    def _read_field(cls, node: Tag, selector: str) -> str | None:
        css, _, attribute = selector.partition("@")
        css = css.strip()
        target = node if not css else node.select_one(css)
        if target is None:
            return None
        if attribute:
            raw = target.get(attribute.strip())
            if isinstance(raw, list):
                raw = " ".join(raw)
            return cls._clean_text(raw) if isinstance(raw, str) else None
        return cls._clean_text(target.get_text(" ", strip=True)) or None

    @staticmethod
    def _clean_text(value: str) -> str:
        return re.sub(r"\s+", " ", value).strip()

    @staticmethod
    def _dedupe(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
        seen: set[str] = set()
        deduped: list[dict[str, Any]] = []
        for item in items:
            key = repr(sorted(item.items()))
            if key in seen:
                continue
            seen.add(key)
            deduped.append(item)
        return deduped
