"""Structured output schemas for pricing generation results."""

from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class RecommendationOutput(BaseModel):
    """Only allowed output contract for the pricing recommendation step."""

    model_config = ConfigDict(
        extra="ignore",
        frozen=True,
        str_strip_whitespace=True,
    )

    recommendation: str = Field(min_length=1)
    insights: List[str] = Field(min_length=1)
    suggested_price: Optional[float] = Field(
        default=None,
        ge=0,
        allow_inf_nan=False,
        validation_alias=AliasChoices("suggested_price", "suggestedPrice"),
    )

    @field_validator("insights")
    @classmethod
    def _drop_blank_insights(cls, value: List[str]) -> List[str]:
        cleaned = [item.strip().lstrip("-").strip() for item in value]
        cleaned = [item for item in cleaned if item]
        if not cleaned:
            raise ValueError("insights must contain at least one non-empty entry")
        return cleaned

    @field_validator("suggested_price", mode="before")
    @classmethod
    def _numeric_string(cls, value: Any) -> Any:
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                return None
            return stripped.replace("_", "")
        return value


class QueryRewriteOutput(BaseModel):
    """Output contract for the search query optimisation step."""

    model_config = ConfigDict(
        extra="ignore",
        frozen=True,
        str_strip_whitespace=True,
    )

    optimized_query: str = Field(min_length=1, max_length=100)
