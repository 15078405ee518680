import json

import pytest

from llm_synthesis.adapter import BaseLLMAdapter, MockLLMAdapter
from llm_synthesis.formatting import format_rupiah
from llm_synthesis.prompt_builder import PricingPromptBuilder
from llm_synthesis.retry import LLMRetryExhaustedError, generate_with_retry
from llm_synthesis.schema import QueryRewriteOutput, RecommendationOutput
from llm_synthesis.validator import LLMOutputValidationError, validate_llm_output


class ScriptedAdapter(BaseLLMAdapter):
    def __init__(self, responses: list[str]) -> None:
        self._responses = list(responses)
        self.prompts: list[str] = []

    def generate(self, prompt: str, *, system=None) -> str:
        self.prompts.append(prompt)
        return self._responses.pop(0)


def _payload() -> dict:
    return {
        "recommendation": "List at Rp14.500.000 to stay competitive.",
        "insights": ["Most listings sit near the median", "- Two outliers inflate the average"],
        "suggested_price": 14500000,
    }


def test_recommendation_output_contract() -> None:
    output = validate_llm_output(json.dumps(_payload()))

    assert output.recommendation.startswith("List at")
    assert output.insights == [
        "Most listings sit near the median",
        "Two outliers inflate the average",
    ]
    assert output.suggested_price == 14500000.0


def test_strips_markdown_fences() -> None:
    raw = "```json\n" + json.dumps(_payload()) + "\n```"
    assert validate_llm_output(raw).suggested_price == 14500000.0


def test_accepts_camel_case_suggested_price_and_numeric_strings() -> None:
    data = _payload()
    del data["suggested_price"]
    data["suggestedPrice"] = "14500000"
    assert validate_llm_output(json.dumps(data)).suggested_price == 14500000.0


def test_suggested_price_is_optional() -> None:
    data = _payload()
    data["suggested_price"] = None
    assert validate_llm_output(json.dumps(data)).suggested_price is None


def test_invalid_json_fails_at_parse_stage() -> None:
    with pytest.raises(LLMOutputValidationError) as excinfo:
        validate_llm_output("Here is my analysis: the price is fine.")
    assert excinfo.value.stage == "json_parse"


@pytest.mark.parametrize(
    "mutation",
    [
        {"recommendation": ""},
        {"insights": []},
        {"insights": ["   ", "-"]},
        {"suggested_price": -5},
        {"suggested_price": "cheap"},
    ],
)
def test_schema_violations_fail_at_schema_stage(mutation: dict) -> None:
    data = {**_payload(), **mutation}
    with pytest.raises(LLMOutputValidationError) as excinfo:
        validate_llm_output(json.dumps(data))
    assert excinfo.value.stage == "schema"


def test_missing_fields_fail() -> None:
    with pytest.raises(LLMOutputValidationError):
        validate_llm_output(json.dumps({"insights": ["only insights"]}))


def test_top_level_array_is_rejected() -> None:
    with pytest.raises(LLMOutputValidationError) as excinfo:
        validate_llm_output(json.dumps([_payload()]))
    assert excinfo.value.stage == "schema"


def test_query_rewrite_output_limits_length() -> None:
    with pytest.raises(LLMOutputValidationError):
        validate_llm_output(json.dumps({"optimized_query": "x" * 101}), QueryRewriteOutput)


def test_retry_recovers_after_formatting_error() -> None:
    adapter = ScriptedAdapter(["not json", json.dumps(_payload())])
    output = generate_with_retry(adapter, "prompt", max_retries=1)
    assert isinstance(output, RecommendationOutput)
    assert len(adapter.prompts) == 2


def test_no_retry_by_default() -> None:
    adapter = ScriptedAdapter(["not json", json.dumps(_payload())])
    with pytest.raises(LLMRetryExhaustedError) as excinfo:
        generate_with_retry(adapter, "prompt")
    assert excinfo.value.attempts == 1
    assert len(adapter.prompts) == 1


def test_mock_adapter_output_is_valid() -> None:
    output = validate_llm_output(MockLLMAdapter().generate("anything"))
    assert output.insights
    assert output.suggested_price is None


@pytest.mark.parametrize(
    ("value", "expected"),
    [(1234567.4, "Rp1.234.567"), (15000, "Rp15.000"), (999, "Rp999"), (0, "Rp0")],
)
def test_format_rupiah(value: float, expected: str) -> None:
    assert format_rupiah(value) == expected


def test_prompt_includes_statistics_listings_and_user_price() -> None:
    prompt = PricingPromptBuilder().build_prompt(
        query="iphone 13",
        statistics={"min": 10000, "max": 40000, "average": 25000, "median": 25000, "total_products": 4},
        listings=[{"name": f"Listing {index}", "price_raw": "Rp10.000"} for index in range(8)],
        user_price=5000,
    )
    assert "iphone 13" in prompt
    assert "Rp40.000" in prompt
    assert "Listing 4" in prompt
    assert "Listing 5" not in prompt
    assert "User Target Price" in prompt
    assert "Rp5.000" in prompt


def test_prompt_omits_user_price_section_without_price() -> None:
    prompt = PricingPromptBuilder().build_prompt(
        query="iphone 13",
        statistics={"min": 10000, "max": 40000, "average": 25000, "median": 25000},
    )
    assert "User Target Price" not in prompt
