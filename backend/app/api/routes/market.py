import logging
from typing import Annotated, Any, get_args

from fastapi import APIRouter
from pydantic import BaseModel, BeforeValidator, Field

from app import crud
from app.agent.market_agent import MarketAgent, MarketInput
from app.agent.prompts.weather import summarize_current_weather
from app.api.deps import OptionalUser, ServicesDep, SessionDep, resolve_limit
from app.core.errors import GenerationUnavailable, LocationNotFound, ValidationError
from app.models import MarketTrendCreate, MarketTrendPublic, QualityGradeValue

router = APIRouter()
logger = logging.getLogger(__name__)

QUALITY_GRADES = set(get_args(QualityGradeValue))


def _blank_to_none(value: Any) -> Any:
    # Form clients post untouched optional inputs as "".
    if isinstance(value, str) and not value.strip():
        return None
    return value


class MarketAnalyzeRequest(BaseModel):
    produce_type: str | None = Field(default=None, max_length=255)
    location: str | None = Field(default=None, max_length=255)
    quantity: Annotated[float | None, BeforeValidator(_blank_to_none)] = Field(default=None, ge=0)
    # Free text for the prompt, e.g. "standard" or "economy".
    quality_grade: Annotated[str | None, BeforeValidator(_blank_to_none)] = Field(default=None, max_length=50)


@router.post("/market-analyze")
async def market_analyze(
    payload: MarketAnalyzeRequest,
    session: SessionDep,
    services: ServicesDep,
    current_user: OptionalUser,
) -> Any:
    """
    Price advice for a produce type at a location, informed by the local weather.

    The analysis row is stored even when the model output never validates, with
    the assessment fields left empty and the raw provider response kept. The
    weather summary stands in for a missing `weather_impact`.
    """
    produce_type = (payload.produce_type or "").strip()
    location = (payload.location or "").strip()
    if not produce_type or not location:
        raise ValidationError("produce_type and location are required")

    place = await services.weather.geocode(location)
    if place is None:
        raise LocationNotFound()
    snapshot = await services.weather.forecast(place.latitude, place.longitude)
    weather_summary = summarize_current_weather(snapshot.current)

    try:
        result = await MarketAgent(services.structured_llm).run(
            MarketInput(
                produce_type=produce_type,
                location=location,
                weather_summary=weather_summary,
                quantity=payload.quantity,
                quality_grade=payload.quality_grade,
            )
        )
    except GenerationUnavailable as exc:
        raise GenerationUnavailable("Failed to analyze market") from exc

    assessment = result.parsed.model_dump() if result.parsed else {}
    if result.parsed is None:
        logger.warning("Market analysis for %s in %s saved without a validated assessment", produce_type, location)
    assessment["weather_impact"] = assessment.get("weather_impact") or weather_summary

    analysis = crud.create_market_trend(
        session=session,
        trend_in=MarketTrendCreate(
            user_id=current_user.id if current_user else None,
            produce_type=produce_type,
            location=location,
            quantity=payload.quantity,
            quality_grade=payload.quality_grade if payload.quality_grade in QUALITY_GRADES else None,
            weather_raw=snapshot.raw,
            llm_raw=result.raw,
            **assessment,
        ),
    )
    return {"analysis": MarketTrendPublic.model_validate(analysis).model_dump(mode="json")}


@router.get("/market-trends", response_model=list[MarketTrendPublic])
def read_market_trends(
    session: SessionDep,
    limit: int | None = None,
) -> Any:
    return crud.get_market_trends(session=session, limit=resolve_limit(limit, default=5))
