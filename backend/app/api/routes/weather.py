import logging
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from app import crud
from app.agent.weather_agent import WeatherAgent, WeatherInput
from app.api.deps import ServicesDep, SessionDep, resolve_limit
from app.core.errors import GenerationUnavailable, LocationNotFound, ValidationError
from app.models import WeatherAnalysisCreate, WeatherAnalysisPublic

router = APIRouter()
logger = logging.getLogger(__name__)


class WeatherAnalyzeRequest(BaseModel):
    location: str | None = Field(default=None, max_length=255)


@router.post("/weather-analyze")
async def weather_analyze(
    payload: WeatherAnalyzeRequest,
    session: SessionDep,
    services: ServicesDep,
) -> Any:
    location = (payload.location or "").strip()
    if not location:
        raise ValidationError("location is required")

    place = await services.weather.geocode(location)
    if place is None:
        raise LocationNotFound()
    snapshot = await services.weather.forecast(place.latitude, place.longitude)
    forecast_7day = [day.model_dump() for day in snapshot.daily]

    try:
        result = await WeatherAgent(services.structured_llm).run(
            WeatherInput(location_name=place.name, current=snapshot.current, forecast=snapshot.daily)
        )
    except GenerationUnavailable as exc:
        raise GenerationUnavailable("Failed to analyze weather") from exc

    assessment = result.parsed
    if assessment is None:
        logger.warning("Weather analysis for %s saved without a validated assessment", place.name)

    analysis = crud.create_weather_analysis(
        session=session,
        analysis_in=WeatherAnalysisCreate(
            location=place.name,
            latitude=place.latitude,
            longitude=place.longitude,
            current_temperature=snapshot.current.temperature,
            current_conditions=snapshot.current.conditions,
            wind_speed=snapshot.current.windspeed,
            forecast_7day=forecast_7day,
            agricultural_impact=assessment.agricultural_impact if assessment else None,
            planting_recommendations=(
                [rec.model_dump() for rec in assessment.recommendations] if assessment else None
            ),
            risk_alerts=assessment.risk_alerts if assessment else None,
            historical_comparison=assessment.historical_comparison if assessment else None,
            llm_raw=result.raw,
        ),
    )

    return {
        "weather": snapshot.raw,
        "aiResponse": assessment.model_dump(mode="json") if assessment else None,
        "locationName": place.name,
        "forecast7day": forecast_7day,
        "analysis": WeatherAnalysisPublic.model_validate(analysis).model_dump(mode="json"),
    }


@router.get("/weather-analyses", response_model=list[WeatherAnalysisPublic])
def read_weather_analyses(
    session: SessionDep,
    limit: int | None = None,
) -> Any:
    return crud.get_weather_analyses(session=session, limit=resolve_limit(limit, default=5))
