import json
import logging
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from app.agent.llm_client import GenerationClient, GenerationRequest, GenerationResponse

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class GenerationResult(BaseModel, Generic[T]):
    """
    Outcome of a schema-bound generation.

    `parsed` is either None or an instance that passed schema validation.
    `raw_text` and `raw` always come from the last attempt made.
    """

    raw_text: str
    parsed: T | None = None
    raw: Any = None
    attempts: int = 1


def describe_schema(schema: type[BaseModel]) -> str:
    """Render a schema model as stable JSON Schema text for prompts."""
    return json.dumps(schema.model_json_schema(), sort_keys=True)


def extract_json_candidate(text: str) -> str:
    """Greedy first-`{` to last-`}` span, or the whole text when there is none."""
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        return text[start:end + 1]
    return text


def parse_structured(text: str, schema: type[T]) -> T | None:
    candidate = extract_json_candidate(text or "")
    try:
        data = json.loads(candidate, strict=False)
    except json.JSONDecodeError as e:
        logger.info("Generated text is not valid JSON: %s", e)
        return None
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        logger.info("Generated JSON does not match %s: %s", schema.__name__, e.error_count())
        return None


def build_corrective_prompt(prompt: str, schema: type[BaseModel]) -> str:
    return f"Return ONLY JSON that matches this schema: {describe_schema(schema)}\n\n{prompt}"


async def generate_structured(
    client: GenerationClient,
    request: GenerationRequest,
    schema: type[T],
) -> GenerationResult[T]:
    """
    Generate, extract and validate against `schema`, with one corrective attempt.

    The first attempt uses the request as given. If its output does not parse or
    validate, a single corrective request prefixed with a strict JSON-only
    instruction is sent at temperature 0. A second failure yields
    `parsed=None`; content failures never raise. Transport failures from the
    client (GenerationUnavailable) propagate unchanged.
    """
    first: GenerationResponse = await client.generate(request)
    parsed = parse_structured(first.text, schema)
    if parsed is not None:
        return GenerationResult[schema](raw_text=first.text, parsed=parsed, raw=first.raw, attempts=1)

    logger.warning(
        "Structured parsing failed for %s on first attempt. Issuing corrective request...",
        schema.__name__,
    )
    corrective_request = request.model_copy(
        update={
            "prompt": build_corrective_prompt(request.prompt, schema),
            "temperature": 0.0,
        }
    )
    second: GenerationResponse = await client.generate(corrective_request)
    parsed = parse_structured(second.text, schema)
    if parsed is None:
        logger.error(
            "Structured parsing failed for %s after corrective attempt; returning raw text only.",
            schema.__name__,
        )
    return GenerationResult[schema](raw_text=second.text, parsed=parsed, raw=second.raw, attempts=2)
