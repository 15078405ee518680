"""Parse raw LLM text into a pydantic output model."""

import json
import re
from typing import List, Type, TypeVar

from pydantic import BaseModel, ValidationError

from llm_synthesis.schema import RecommendationOutput

ModelT = TypeVar("ModelT", bound=BaseModel)

_FENCED_JSON = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)


class LLMOutputValidationError(Exception):
    """Raised when model output is not JSON (``stage="json_parse"``) or does
    not match the output model (``stage="schema"``)."""

    def __init__(self, stage: str, errors: List[str], raw_response: str) -> None:
        self.stage = stage
        self.errors = errors
        self.raw_response = raw_response
        super().__init__(f"LLM output invalid ({stage}): " + "; ".join(errors))


def validate_llm_output(raw_response: str, model: Type[ModelT] = RecommendationOutput) -> ModelT:
    """
    Return ``raw_response`` as a validated ``model``.

    Models often wrap JSON in markdown fences, so a single fenced block is
    unwrapped first. Only a top-level JSON object is accepted.
    """
    text = (raw_response or "").strip()
    fenced = _FENCED_JSON.match(text)
    if fenced:
        text = fenced.group(1).strip()

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise LLMOutputValidationError("json_parse", [str(exc)], raw_response) from exc
    if not isinstance(data, dict):
        raise LLMOutputValidationError("schema", ["top-level JSON must be an object"], raw_response)

    try:
        return model.model_validate(data)
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        ]
        raise LLMOutputValidationError("schema", errors, raw_response) from exc
