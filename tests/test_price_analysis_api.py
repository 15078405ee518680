"""
tests/test_price_analysis_api.py

API contract tests for the price analysis REST and WebSocket endpoints.

The service dependency is overridden with in-memory stubs; no network.
"""

from __future__ import annotations

import threading

import pytest
from fastapi.testclient import TestClient

from app import failure_codes
from app.config import PriceAnalysisSettings
from app.domain.errors import ScrapeError
from app.domain.price_analysis import ListingRecord, Recommendation
from app.scraping.types import ScrapeOutcome
from app.services.price_analysis_service import PriceAnalysisService, get_price_analysis_service


class StubScraper:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[tuple[str, int]] = []

    def fetch_listings_detailed(self, query, limit, *, cancel_event=None) -> ScrapeOutcome:
        self.calls.append((query, limit))
        if self.error is not None:
            raise self.error
        listings = [
            ListingRecord(
                name=f"{query} #{index}",
                price_raw=f"Rp{price}",
                price_numeric=float(price),
                source="tokopedia" if index % 2 == 0 else "blibli",
                shop_location="Jakarta",
            )
            for index, price in enumerate([10000, 20000, 30000, 40000])
        ]
        return ScrapeOutcome(listings=listings[:limit], succeeded_sources=["tokopedia", "blibli"])


class StubGenerator:
    def generate_recommendation(self, statistics, user_price=None, *, query="", listings=()):
        return Recommendation(
            recommendation="Price near the median.",
            insights=["Listings cluster around the median."],
            suggested_price=25000.0,
        )


def _client(monkeypatch, scraper: StubScraper) -> TestClient:
    monkeypatch.setenv("LLM_ADAPTER", "mock")
    from app.main import create_app

    application = create_app()
    service = PriceAnalysisService(
        scraper=scraper,
        generator=StubGenerator(),
        settings=PriceAnalysisSettings(),
    )
    application.dependency_overrides[get_price_analysis_service] = lambda: service
    return TestClient(application)


@pytest.fixture()
def scraper() -> StubScraper:
    return StubScraper()


@pytest.fixture()
def client(monkeypatch, scraper: StubScraper) -> TestClient:
    return _client(monkeypatch, scraper)


# ---------------------------------------------------------------------------
# REST
# ---------------------------------------------------------------------------


class TestAnalyzeEndpoint:
    def test_success_envelope(self, client: TestClient, scraper: StubScraper) -> None:
        response = client.get("/api/price-analysis", params={"query": "iphone 13", "limit": 4})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["query"] == "iphone 13"
        assert len(body["data"]["products"]) == 4
        assert body["data"]["statistics"]["median"] == 25000
        assert body["data"]["statistics"]["totalProducts"] == 4
        assert body["data"]["analysis"]["suggestedPrice"] == 25000
        assert scraper.calls == [("iphone 13", 4)]

    def test_default_limit_is_ten(self, client: TestClient, scraper: StubScraper) -> None:
        client.get("/api/price-analysis", params={"query": "iphone"})
        assert scraper.calls == [("iphone", 10)]

    def test_post_body_with_user_price(self, client: TestClient) -> None:
        response = client.post("/api/price-analysis", json={"query": "iphone", "userPrice": 5000})
        assert response.status_code == 200
        assert response.json()["success"] is True

    @pytest.mark.parametrize(
        "params",
        [
            {},
            {"query": "   "},
            {"query": "iphone", "limit": 0},
            {"query": "iphone", "limit": 51},
            {"query": "iphone", "userPrice": -1},
            {"query": "iphone", "limit": "abc"},
            {"query": "iphone", "userPrice": "cheap"},
        ],
    )
    def test_validation_errors_are_400(self, client: TestClient, scraper: StubScraper, params: dict) -> None:
        response = client.get("/api/price-analysis", params=params)

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == failure_codes.VALIDATION_ERROR
        assert scraper.calls == []

    @pytest.mark.parametrize(
        "body",
        [
            {"query": "iphone", "limit": 2.5},
            {"query": "iphone", "userPrice": "cheap"},
            {"query": ["iphone"]},
        ],
    )
    def test_malformed_body_is_400_envelope(self, client: TestClient, scraper: StubScraper, body: dict) -> None:
        response = client.post("/api/price-analysis", json=body)

        assert response.status_code == 400
        payload = response.json()
        assert payload["success"] is False
        assert payload["error"]["code"] == failure_codes.VALIDATION_ERROR
        assert "detail" not in payload
        assert "cheap" not in response.text
        assert scraper.calls == []

    def test_all_sources_down_is_502(self, monkeypatch) -> None:
        client = _client(
            monkeypatch,
            StubScraper(error=ScrapeError("Failed to fetch listings from every marketplace source.")),
        )

        response = client.get("/api/price-analysis", params={"query": "iphone"})

        assert response.status_code == 502
        assert response.json()["error"]["code"] == failure_codes.SCRAPE_FAILED

    def test_no_results_is_404(self, monkeypatch) -> None:
        client = _client(
            monkeypatch,
            StubScraper(error=ScrapeError("No listings found.", code=failure_codes.NO_RESULTS)),
        )

        response = client.get("/api/price-analysis", params={"query": "zzzz"})

        assert response.status_code == 404
        assert response.json()["message"] == "No listings found."

    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


# ---------------------------------------------------------------------------
# WebSocket
# ---------------------------------------------------------------------------


def _collect_until_terminal(websocket) -> list[dict]:
    events = []
    while True:
        event = websocket.receive_json()
        events.append(event)
        if event["type"] in {"complete", "error"}:
            return events


class TestStreamEndpoint:
    def test_streams_progress_then_complete(self, client: TestClient) -> None:
        with client.websocket_connect("/api/price-analysis/stream") as websocket:
            assert websocket.receive_json()["type"] == "connected"
            websocket.send_json({"type": "start-analysis", "query": "iphone 13", "limit": 4, "userPrice": 15000})
            events = _collect_until_terminal(websocket)

        assert events[-1]["type"] == "complete"
        progress = [event["progress"] for event in events if event["type"] == "progress"]
        assert progress == sorted(progress)
        assert progress[-1] == 100
        assert len(events[-1]["data"]["products"]) == 4

    def test_unknown_message_type_yields_error(self, client: TestClient) -> None:
        with client.websocket_connect("/api/price-analysis/stream") as websocket:
            websocket.receive_json()
            websocket.send_json({"type": "ping"})
            event = websocket.receive_json()

        assert event["type"] == "error"
        assert event["code"] == failure_codes.VALIDATION_ERROR
        assert "Unknown message type" in event["message"]

    def test_invalid_payload_yields_error(self, client: TestClient, scraper: StubScraper) -> None:
        with client.websocket_connect("/api/price-analysis/stream") as websocket:
            websocket.receive_json()
            websocket.send_json({"type": "start-analysis", "query": "", "limit": 10})
            event = websocket.receive_json()

        assert event["type"] == "error"
        assert event["code"] == failure_codes.VALIDATION_ERROR
        assert scraper.calls == []

    def test_client_disconnect_mid_scrape_cancels_sources(self, monkeypatch) -> None:
        class BlockingScraper(StubScraper):
            def __init__(self) -> None:
                super().__init__()
                self.started = threading.Event()
                self.cancel_event: threading.Event | None = None

            def fetch_listings_detailed(self, query, limit, *, cancel_event=None) -> ScrapeOutcome:
                self.cancel_event = cancel_event
                self.started.set()
                cancel_event.wait(5)
                return super().fetch_listings_detailed(query, limit)

        scraper = BlockingScraper()
        client = _client(monkeypatch, scraper)

        with client.websocket_connect("/api/price-analysis/stream") as websocket:
            websocket.receive_json()
            websocket.send_json({"type": "start-analysis", "query": "iphone"})
            assert websocket.receive_json()["progress"] == 25
            assert scraper.started.wait(5)

        assert scraper.cancel_event is not None
        assert scraper.cancel_event.wait(5)

    def test_scrape_failure_yields_single_error(self, monkeypatch) -> None:
        client = _client(monkeypatch, StubScraper(error=ScrapeError("Failed to fetch listings.")))

        with client.websocket_connect("/api/price-analysis/stream") as websocket:
            websocket.receive_json()
            websocket.send_json({"type": "start-analysis", "query": "iphone"})
            events = _collect_until_terminal(websocket)

        assert [event["type"] for event in events].count("error") == 1
        assert events[-1]["code"] == failure_codes.SCRAPE_FAILED


# ---------------------------------------------------------------------------
# Seller endpoints
# ---------------------------------------------------------------------------


class TestSellerEndpoints:
    def test_analysis_includes_seller_guidance(self, client: TestClient) -> None:
        response = client.get(
            "/api/seller/price-analysis",
            params={"productName": "iphone 13", "userPrice": 4000},
        )

        assert response.status_code == 200
        guidance = response.json()["data"]["sellerGuidance"]
        assert guidance["pricePosition"] == "very_low"
        assert guidance["shouldProceed"] is False
        assert guidance["warnings"]
        assert guidance["suggestions"]

    def test_product_name_needs_three_characters(self, client: TestClient) -> None:
        response = client.get("/api/seller/price-analysis", params={"productName": "ip"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == failure_codes.VALIDATION_ERROR

    def test_quick_check(self, client: TestClient, scraper: StubScraper) -> None:
        response = client.post(
            "/api/seller/price-analysis/quick-check",
            json={"productName": "iphone 13", "userPrice": 25000},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["position"] == "average"
        assert data["shouldProceed"] is True
        assert data["marketRange"] == {"min": 10000, "max": 40000}
        assert data["quickAdvice"] == "Competitive price."
        assert scraper.calls == [("iphone 13", 5)]

    def test_quick_check_requires_price(self, client: TestClient) -> None:
        response = client.post(
            "/api/seller/price-analysis/quick-check",
            json={"productName": "iphone 13"},
        )
        assert response.status_code == 400

    def test_quick_check_rejects_non_numeric_price(self, client: TestClient) -> None:
        response = client.post(
            "/api/seller/price-analysis/quick-check",
            json={"productName": "iphone 13", "userPrice": "cheap"},
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == failure_codes.VALIDATION_ERROR
