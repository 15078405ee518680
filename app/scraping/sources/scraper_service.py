"""
Marketplace source backed by the JSON scraper service.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from app.scraping.base import MarketplaceSource, SourceFetchError


class ScraperServiceResponse(BaseModel):
    """
    Envelope returned by ``GET {SCRAPER_URL}{endpoint}``.
    """

    model_config = ConfigDict(extra="ignore")

    success: bool
    data: list[Any] = []
    count: int | None = None


class ScraperServiceSource(MarketplaceSource):
    """
    Calls ``{scraper_service_url}{endpoint}?query=...&limit=...`` and returns
    the ``data`` items of a successful response.
    """

    def endpoint_url(self) -> str:
        endpoint = self.config.endpoint or f"/api/scraper/{self.name}"
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        return f"{self.settings.scraper_service_url}/{endpoint.lstrip('/')}"

    def fetch_raw_items(self, *, query: str, limit: int) -> list[Any]:
        response = self._request_with_retry(
            self.endpoint_url(),
            params={"query": query, "limit": limit},
        )
        try:
            payload = response.json()
        except ValueError as exc:
            raise SourceFetchError(f"{self.name} response was not valid JSON") from exc

        try:
            envelope = ScraperServiceResponse.model_validate(payload)
        except ValidationError as exc:
            raise SourceFetchError(f"{self.name} response had an unexpected shape") from exc

        if not envelope.success:
            raise SourceFetchError(f"{self.name} scraper returned an unsuccessful response")
        return envelope.data
