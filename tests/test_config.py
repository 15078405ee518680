from __future__ import annotations

import pytest

from app import config
from app.domain.errors import AnalysisInputError
from app.domain.price_analysis import AnalysisRequest


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    config.get_price_analysis_settings.cache_clear()
    config.get_marketplace_scraping_settings.cache_clear()
    config.get_llm_settings.cache_clear()
    yield
    config.get_price_analysis_settings.cache_clear()
    config.get_marketplace_scraping_settings.cache_clear()
    config.get_llm_settings.cache_clear()


def test_price_analysis_defaults(monkeypatch) -> None:
    for name in (
        "PRICE_ANALYSIS_DEFAULT_LIMIT",
        "PRICE_ANALYSIS_MAX_LIMIT",
        "QUERY_OPTIMIZATION_ENABLED",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = config.get_price_analysis_settings()

    assert settings.default_limit == 10
    assert settings.max_limit == 50
    assert settings.query_optimization_enabled is True


def test_price_analysis_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv("PRICE_ANALYSIS_MAX_LIMIT", "20")
    monkeypatch.setenv("PRICE_ANALYSIS_DEFAULT_LIMIT", "30")
    monkeypatch.setenv("QUERY_OPTIMIZATION_ENABLED", "false")

    settings = config.get_price_analysis_settings()

    assert settings.max_limit == 20
    assert settings.default_limit == 20
    assert settings.query_optimization_enabled is False


def test_scraper_url_trailing_slash_is_trimmed(monkeypatch) -> None:
    monkeypatch.setenv("SCRAPER_URL", "http://scraper.internal:4103/")
    settings = config.get_marketplace_scraping_settings()
    assert settings.scraper_service_url == "http://scraper.internal:4103"
    assert settings.sources_config_path.endswith("sources.json")


def test_llm_key_falls_back_to_openai_variable(monkeypatch) -> None:
    monkeypatch.delenv("LLM_API_KEY", raising=False)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("LLM_ADAPTER", "Mock")

    settings = config.get_llm_settings()

    assert settings.api_key == "sk-test"
    assert settings.adapter == "mock"


class TestAnalysisRequest:
    def test_normalizes_query_and_applies_default_limit(self) -> None:
        request = AnalysisRequest.create(query="  iphone   13  ")
        assert request.query == "iphone 13"
        assert request.limit == 10
        assert request.user_price is None

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"query": None},
            {"query": 42},
            {"query": "iphone", "limit": True},
            {"query": "iphone", "limit": "10"},
            {"query": "iphone", "limit": 2.5},
            {"query": "iphone", "limit": -3},
            {"query": "iphone", "limit": 51},
            {"query": "iphone", "user_price": 0},
            {"query": "iphone", "user_price": float("inf")},
            {"query": "iphone", "user_price": "5000"},
            {"query": "ip", "min_query_length": 3},
        ],
    )
    def test_rejects_malformed_input(self, kwargs: dict) -> None:
        with pytest.raises(AnalysisInputError):
            AnalysisRequest.create(**kwargs)

    def test_accepts_integral_float_limit(self) -> None:
        assert AnalysisRequest.create(query="iphone", limit=5.0).limit == 5
