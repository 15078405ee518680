"""Structured prompt builders for pricing generation."""

import json
from typing import Any, Dict, List, Optional, Sequence

from llm_synthesis.formatting import format_rupiah
from llm_synthesis.schema import RecommendationOutput

PRICING_SYSTEM_MESSAGE = (
    "You are a pricing analyst specializing in Indonesian e-commerce "
    "marketplaces. Provide clear, actionable insights."
)

_SCHEMA_JSON = json.dumps(RecommendationOutput.model_json_schema(), indent=2)

_EXAMPLE_OUTPUT = json.dumps(
    {
        "recommendation": "List at Rp14.500.000, just under the median, to win price-sensitive buyers.",
        "insights": [
            "Most listings sit between Rp13.000.000 and Rp16.000.000",
            "Top-rated sellers price 5-8% above the median",
            "Two outliers above Rp20.000.000 inflate the average",
        ],
        "suggested_price": 14500000,
    },
    indent=2,
)

_SYSTEM_INSTRUCTIONS = """\
You are analysing marketplace price data for a seller.

STRICT RULES:
- Use ONLY the data provided below. Do not invent listings or prices.
- suggested_price must be a plain number in Indonesian Rupiah, or null.
- Return strictly valid JSON matching the schema defined below.
- Do NOT include any text outside the JSON object.
- Do NOT wrap the JSON in markdown code fences.
"""

_SECTION_TEMPLATE = """\
## {title}
```json
{data}
```
"""

_TOP_LISTINGS = 5

_QUERY_OPTIMIZATION_TEMPLATE = """\
You optimise search queries for Indonesian marketplaces (Tokopedia, Blibli).

User query: "{query}"

Rules:
1. If the query names only a brand or model WITHOUT an accessory, add the main
   product keyword (e.g. "iphone" -> "iphone smartphone", "macbook" -> "macbook laptop").
2. If the query ALREADY names an accessory or a specific product (case, charger,
   tempered glass, ...), keep it unchanged.
3. Keep marketplace wording; Indonesian keywords are fine ("samsung" -> "samsung hp").
4. Keep it short and specific to avoid irrelevant results.

Return only a JSON object: {{"optimized_query": "<query>"}}
"""


class PricingPromptBuilder:
    """Builds deterministic structured prompts for pricing generation.

    Combines market statistics, a sample of listings and the user's target
    price into a single prompt asking for a ``RecommendationOutput`` JSON
    object.
    """

    def build_prompt(
        self,
        *,
        query: str,
        statistics: Dict[str, Any],
        listings: Sequence[Dict[str, Any]] = (),
        user_price: Optional[float] = None,
    ) -> str:
        """Build the full pricing prompt.

        Args:
            query: Product search query the data was collected for.
            statistics: Market statistics (min, max, average, median, ...).
            listings: Listing summaries in scrape order; the first five are used.
            user_price: Optional seller target price to compare against.

        Returns:
            A fully formatted prompt string ready for LLM consumption.
        """
        sections = {
            "market_statistics": self._describe_statistics(statistics),
            "top_listings": self._describe_listings(listings),
        }
        if user_price is not None:
            sections["user_target_price"] = {
                "value": user_price,
                "formatted": format_rupiah(user_price),
                "instruction": (
                    "Compare this price against the market data and say whether it "
                    "is competitive, below or above the observed range."
                ),
            }

        return (
            f"{_SYSTEM_INSTRUCTIONS}\n"
            f"# QUERY\n\n{query}\n\n"
            f"# PROVIDED DATA\n\n{self._format_data_sections(**sections)}\n"
            f"# OUTPUT SCHEMA\n\n"
            f"Your response MUST conform to this JSON schema:\n\n"
            f"```json\n{_SCHEMA_JSON}\n```\n\n"
            f"# EXAMPLE OUTPUT\n\n"
            f"```json\n{_EXAMPLE_OUTPUT}\n```\n\n"
            f"# TASK\n\n"
            f"Provide a concise pricing recommendation (1-2 sentences), 3-5 key "
            f"insights about this market segment and a single optimal price point, "
            f"as one JSON object matching the schema above."
        )

    def build_query_optimization_prompt(self, query: str) -> str:
        """Build the prompt asking for a more specific marketplace query."""
        return _QUERY_OPTIMIZATION_TEMPLATE.format(query=query.replace('"', "'"))

    @staticmethod
    def _describe_statistics(statistics: Dict[str, Any]) -> Dict[str, Any]:
        described: Dict[str, Any] = {}
        for key in ("min", "max", "average", "median", "q1", "q3"):
            value = statistics.get(key)
            if value is None:
                continue
            described[key] = {"value": value, "formatted": format_rupiah(value)}
        if "total_products" in statistics:
            described["total_products"] = statistics["total_products"]
        return described

    @staticmethod
    def _describe_listings(listings: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
        described = []
        for listing in list(listings)[:_TOP_LISTINGS]:
            entry = {
                key: listing.get(key)
                for key in ("name", "price_raw", "price_numeric", "rating", "shop_location", "source")
                if listing.get(key) is not None
            }
            described.append(entry)
        return described

    def _format_data_sections(self, **data: Any) -> str:
        """Format each data value as a labeled JSON section."""
        parts = []
        for key, value in data.items():
            title = key.replace("_", " ").title()
            body = json.dumps(value, indent=2, default=str)
            parts.append(_SECTION_TEMPLATE.format(title=title, data=body))
        return "\n".join(parts)

