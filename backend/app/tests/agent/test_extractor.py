import json

import pytest

from app.agent.artifacts import MarketAssessment, QualityAssessment
from app.agent.extractor import (
    build_corrective_prompt,
    describe_schema,
    extract_json_candidate,
    generate_structured,
    parse_structured,
)
from app.agent.llm_client import GenerationRequest
from app.core.errors import GenerationUnavailable

VALID_QUALITY = {
    "quality_grade": "grade_a",
    "quality_score": 84,
    "visual_assessment": ["Uniform red colour", "Firm skin", "No bruising"],
    "defects_detected": [],
    "market_readiness": "ready",
    "recommendations": "Sort by size before packing and keep in shade.",
    "estimated_price_range": "KSh 80-100 per kg",
    "shelf_life": "5-7 days",
}


def test_extract_json_candidate_takes_first_to_last_brace():
    text = 'Sure! Here it is:\n```json\n{"a": {"b": 1}}\n```\nAnything else?'
    assert extract_json_candidate(text) == '{"a": {"b": 1}}'
    assert extract_json_candidate("no braces here") == "no braces here"


def test_parse_structured_tolerates_control_characters_in_strings():
    text = '{"suggested_price_optimal": 55, "market_analysis": "Prices are\tsteady"}'
    parsed = parse_structured(text, MarketAssessment)
    assert parsed is not None
    assert parsed.market_analysis == "Prices are\tsteady"


def test_parse_structured_rejects_out_of_range_and_unknown_enum():
    bad_score = {**VALID_QUALITY, "quality_score": 140}
    bad_grade = {**VALID_QUALITY, "quality_grade": "excellent"}
    assert parse_structured(json.dumps(bad_score), QualityAssessment) is None
    assert parse_structured(json.dumps(bad_grade), QualityAssessment) is None


def test_corrective_prompt_embeds_schema_before_original_prompt():
    prompt = build_corrective_prompt("Grade this tomato", QualityAssessment)
    assert prompt.startswith(
        f"Return ONLY JSON that matches this schema: {describe_schema(QualityAssessment)}\n\n"
    )
    assert prompt.endswith("Grade this tomato")


@pytest.mark.asyncio
async def test_valid_first_reply_makes_one_call(scripted_llm):
    llm = scripted_llm("```json\n" + json.dumps(VALID_QUALITY) + "\n```")

    result = await generate_structured(llm, GenerationRequest(prompt="Grade this"), QualityAssessment)

    assert len(llm.requests) == 1
    assert result.attempts == 1
    assert result.parsed == QualityAssessment.model_validate(VALID_QUALITY)


@pytest.mark.asyncio
async def test_malformed_first_reply_triggers_exactly_one_corrective_call(scripted_llm):
    llm = scripted_llm("I think it's grade A!", json.dumps(VALID_QUALITY))
    request = GenerationRequest(prompt="Grade this", temperature=0.7, max_output_tokens=512)

    result = await generate_structured(llm, request, QualityAssessment)

    assert len(llm.requests) == 2
    corrective = llm.requests[1]
    assert corrective.prompt.startswith("Return ONLY JSON that matches this schema:")
    assert corrective.prompt.endswith("Grade this")
    assert corrective.temperature == 0
    assert corrective.max_output_tokens == 512
    assert result.attempts == 2
    assert result.parsed is not None
    assert result.parsed.quality_grade == "grade_a"


@pytest.mark.asyncio
async def test_schema_mismatch_also_triggers_correction(scripted_llm):
    missing_field = {k: v for k, v in VALID_QUALITY.items() if k != "shelf_life"}
    llm = scripted_llm(json.dumps(missing_field), json.dumps(VALID_QUALITY))

    result = await generate_structured(llm, GenerationRequest(prompt="Grade this"), QualityAssessment)

    assert len(llm.requests) == 2
    assert result.parsed is not None


@pytest.mark.asyncio
async def test_two_failures_return_last_raw_text_without_raising(scripted_llm):
    llm = scripted_llm("not json", '{"quality_grade": "grade_a"')

    result = await generate_structured(llm, GenerationRequest(prompt="Grade this"), QualityAssessment)

    assert len(llm.requests) == 2
    assert result.parsed is None
    assert result.raw_text == '{"quality_grade": "grade_a"'
    assert result.raw == {"text": '{"quality_grade": "grade_a"'}


@pytest.mark.asyncio
async def test_transport_failure_propagates(scripted_llm):
    llm = scripted_llm(GenerationUnavailable())

    with pytest.raises(GenerationUnavailable):
        await generate_structured(llm, GenerationRequest(prompt="Grade this"), QualityAssessment)
