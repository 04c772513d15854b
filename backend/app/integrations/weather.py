import logging
from typing import Any

import httpx
from pydantic import BaseModel

from app.core.config import settings
from app.core.errors import WeatherUnavailable

logger = logging.getLogger(__name__)

DAILY_FIELDS = (
    "temperature_2m_max",
    "temperature_2m_min",
    "precipitation_sum",
    "precipitation_probability_max",
    "weathercode",
)

# WMO weather interpretation codes used by Open-Meteo.
WEATHER_CODES = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    56: "Light freezing drizzle",
    57: "Dense freezing drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    66: "Light freezing rain",
    67: "Heavy freezing rain",
    71: "Slight snow fall",
    73: "Moderate snow fall",
    75: "Heavy snow fall",
    77: "Snow grains",
    80: "Slight rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    85: "Slight snow showers",
    86: "Heavy snow showers",
    95: "Thunderstorm",
    96: "Thunderstorm with slight hail",
    99: "Thunderstorm with heavy hail",
}


def describe_weather_code(code: int | None) -> str:
    if code is None:
        return "Unknown"
    return WEATHER_CODES.get(int(code), f"Weather code {code}")


class GeoLocation(BaseModel):
    name: str
    latitude: float
    longitude: float
    country: str | None = None
    admin1: str | None = None


class CurrentWeather(BaseModel):
    temperature: float | None = None
    windspeed: float | None = None
    weathercode: int | None = None

    @property
    def conditions(self) -> str:
        return describe_weather_code(self.weathercode)


class DailyForecast(BaseModel):
    date: str
    temp_max: float | None = None
    temp_min: float | None = None
    weathercode: int | None = None
    precipitation_chance: float | None = None
    precipitation_amount: float | None = None


class ForecastSnapshot(BaseModel):
    current: CurrentWeather
    daily: list[DailyForecast]
    raw: dict[str, Any]


def parse_forecast(raw: dict[str, Any]) -> ForecastSnapshot:
    current = CurrentWeather.model_validate(raw.get("current_weather") or {})
    daily = raw.get("daily") or {}
    dates = daily.get("time") or []

    def _at(key: str, idx: int) -> Any:
        values = daily.get(key) or []
        return values[idx] if idx < len(values) else None

    forecast = [
        DailyForecast(
            date=date,
            temp_max=_at("temperature_2m_max", idx),
            temp_min=_at("temperature_2m_min", idx),
            weathercode=_at("weathercode", idx),
            precipitation_chance=_at("precipitation_probability_max", idx),
            precipitation_amount=_at("precipitation_sum", idx),
        )
        for idx, date in enumerate(dates)
    ]
    return ForecastSnapshot(current=current, daily=forecast, raw=raw)


class OpenMeteoClient:
    """Geocoding and 7-day forecasts from the public Open-Meteo APIs."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        geocoding_url: str | None = None,
        forecast_url: str | None = None,
        timezone: str | None = None,
    ):
        self.http = http_client or httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)
        self.geocoding_url = geocoding_url or settings.GEOCODING_URL
        self.forecast_url = forecast_url or settings.FORECAST_URL
        self.timezone = timezone or settings.WEATHER_TIMEZONE

    async def _get_json(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self.http.get(url, params=params)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            logger.error("Weather provider returned %s for %s", exc.response.status_code, url)
            raise WeatherUnavailable() from exc
        except httpx.HTTPError as exc:
            logger.error("Failed to contact weather provider at %s: %s", url, exc)
            raise WeatherUnavailable() from exc
        except ValueError as exc:
            raise WeatherUnavailable() from exc
        if not isinstance(body, dict):
            raise WeatherUnavailable()
        return body

    async def geocode(self, place: str) -> GeoLocation | None:
        body = await self._get_json(self.geocoding_url, {"name": place, "count": 1})
        results = body.get("results") or []
        if not results:
            logger.info("No geocoding match for %r", place)
            return None
        return GeoLocation.model_validate(results[0])

    async def forecast(self, latitude: float, longitude: float) -> ForecastSnapshot:
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "current_weather": "true",
            "daily": ",".join(DAILY_FIELDS),
            "timezone": self.timezone,
            "forecast_days": 7,
        }
        return parse_forecast(await self._get_json(self.forecast_url, params))

    async def aclose(self) -> None:
        await self.http.aclose()
