"""
tests/test_recommendation_service.py

Pytest unit tests for RecommendationGenerator and QueryOptimizer using
scripted LLM adapters; no network.
"""

from __future__ import annotations

import json

import pytest

from app import failure_codes
from app.config import LLMSettings
from app.domain.errors import GenerationError
from app.domain.price_analysis import ListingRecord
from app.services.query_optimizer import QueryOptimizer
from app.services.recommendation_service import (
    RecommendationGenerator,
    build_llm_adapter,
    describe_budget_position,
)
from app.services.statistics_service import compute_statistics
from llm_synthesis.adapter import BaseLLMAdapter, LLMAdapterError, MockLLMAdapter


class ScriptedAdapter(BaseLLMAdapter):
    def __init__(self, response: str | Exception) -> None:
        self._response = response
        self.prompts: list[str] = []

    def generate(self, prompt: str, *, system: str | None = None) -> str:
        self.prompts.append(prompt)
        if isinstance(self._response, Exception):
            raise self._response
        return self._response


def _recommendation_json(**overrides) -> str:
    payload = {
        "recommendation": "Price near the median of Rp25.000.",
        "insights": ["Listings cluster between Rp15.000 and Rp35.000"],
        "suggested_price": 25000,
    }
    payload.update(overrides)
    return json.dumps(payload)


@pytest.fixture()
def statistics():
    return compute_statistics([10000, 20000, 30000, 40000])


class TestRecommendationGenerator:
    def test_returns_validated_recommendation(self, statistics) -> None:
        generator = RecommendationGenerator(ScriptedAdapter(_recommendation_json()))

        recommendation = generator.generate_recommendation(statistics)

        assert recommendation.recommendation == "Price near the median of Rp25.000."
        assert recommendation.insights == ["Listings cluster between Rp15.000 and Rp35.000"]
        assert recommendation.suggested_price == 25000

    def test_budget_below_market_is_flagged_first(self, statistics) -> None:
        generator = RecommendationGenerator(ScriptedAdapter(_recommendation_json()))

        recommendation = generator.generate_recommendation(statistics, user_price=5000)

        assert len(recommendation.insights) == 2
        first = recommendation.insights[0].lower()
        assert "budget" in first
        assert "below the observed market range" in first
        assert "rp10.000" in first and "rp40.000" in first

    def test_budget_above_market_is_flagged(self, statistics) -> None:
        generator = RecommendationGenerator(ScriptedAdapter(_recommendation_json()))

        recommendation = generator.generate_recommendation(statistics, user_price=90000)

        assert "above the observed market range" in recommendation.insights[0]

    def test_budget_inside_range_adds_nothing(self, statistics) -> None:
        generator = RecommendationGenerator(ScriptedAdapter(_recommendation_json()))

        recommendation = generator.generate_recommendation(statistics, user_price=25000)

        assert recommendation.insights == ["Listings cluster between Rp15.000 and Rp35.000"]

    def test_prompt_carries_user_price_and_listings(self, statistics) -> None:
        adapter = ScriptedAdapter(_recommendation_json())
        listings = [
            ListingRecord(name="Case A", price_raw="Rp10.000", price_numeric=10000, source="tokopedia"),
            ListingRecord(name="Case B", price_raw="Call", price_numeric=None, source="blibli"),
        ]

        RecommendationGenerator(adapter).generate_recommendation(
            statistics,
            user_price=5000,
            query="iphone case",
            listings=listings,
        )

        prompt = adapter.prompts[0]
        assert "iphone case" in prompt
        assert "Case A" in prompt
        assert "Case B" not in prompt
        assert "Rp5.000" in prompt

    def test_out_of_range_suggested_price_is_kept(self, statistics) -> None:
        generator = RecommendationGenerator(
            ScriptedAdapter(_recommendation_json(suggested_price=99000))
        )
        assert generator.generate_recommendation(statistics).suggested_price == 99000

    def test_adapter_failure_raises_generation_error(self, statistics) -> None:
        generator = RecommendationGenerator(ScriptedAdapter(LLMAdapterError("503 from provider")))

        with pytest.raises(GenerationError) as excinfo:
            generator.generate_recommendation(statistics)

        assert excinfo.value.code == failure_codes.GENERATION_FAILED
        assert "503" not in excinfo.value.message

    @pytest.mark.parametrize(
        "raw",
        [
            "I think you should price it at 25k.",
            json.dumps({"recommendation": "ok"}),
            json.dumps({"recommendation": "ok", "insights": []}),
        ],
    )
    def test_invalid_output_raises_generation_error(self, statistics, raw: str) -> None:
        generator = RecommendationGenerator(ScriptedAdapter(raw))
        with pytest.raises(GenerationError):
            generator.generate_recommendation(statistics)


class TestDescribeBudgetPosition:
    def test_none_without_price(self, statistics) -> None:
        assert describe_budget_position(statistics, None) is None

    def test_boundaries_are_inside_the_range(self, statistics) -> None:
        assert describe_budget_position(statistics, 10000) is None
        assert describe_budget_position(statistics, 40000) is None


class TestBuildLLMAdapter:
    def test_mock_adapter_selected(self) -> None:
        assert isinstance(build_llm_adapter(LLMSettings(adapter="mock")), MockLLMAdapter)


class TestQueryOptimizer:
    def test_returns_rewritten_query(self) -> None:
        optimizer = QueryOptimizer(ScriptedAdapter(json.dumps({"optimized_query": "iphone smartphone"})))
        assert optimizer.optimize("iphone") == "iphone smartphone"

    def test_normalizes_whitespace_and_quotes(self) -> None:
        optimizer = QueryOptimizer(ScriptedAdapter(json.dumps({"optimized_query": '"samsung   hp"'})))
        assert optimizer.optimize("samsung") == "samsung hp"

    @pytest.mark.parametrize(
        "response",
        [
            LLMAdapterError("timeout"),
            "not json",
            json.dumps({"optimized_query": ""}),
            json.dumps({"unexpected": "shape"}),
        ],
    )
    def test_falls_back_to_original_query(self, response) -> None:
        optimizer = QueryOptimizer(ScriptedAdapter(response))
        assert optimizer.optimize("iphone 13 case") == "iphone 13 case"

    def test_mock_adapter_falls_back(self) -> None:
        assert QueryOptimizer(MockLLMAdapter()).optimize("macbook") == "macbook"
