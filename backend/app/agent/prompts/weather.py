from app.agent.artifacts import WeatherAssessment
from app.agent.extractor import describe_schema
from app.integrations.weather import CurrentWeather, DailyForecast, describe_weather_code


def _forecast_line(day: DailyForecast) -> str:
    return (
        f"{day.date}: {describe_weather_code(day.weathercode)}, High: {day.temp_max}°C, "
        f"Low: {day.temp_min}°C, Rain: {day.precipitation_amount}mm "
        f"({day.precipitation_chance}% chance)"
    )


def summarize_current_weather(current: CurrentWeather) -> str:
    return f"{current.conditions}, {current.temperature}°C, wind {current.windspeed} km/h"


def build_weather_prompt(
    *,
    location_name: str,
    current: CurrentWeather,
    forecast: list[DailyForecast],
) -> str:
    forecast_text = "\n".join(_forecast_line(day) for day in forecast) or "No forecast available"
    return (
        "You are an agricultural weather advisor for Kenyan farmers.\n\n"
        f"Location: {location_name}\n"
        "Current Weather:\n"
        f"- Temperature: {current.temperature}°C\n"
        f"- Conditions: {current.conditions}\n"
        f"- Wind: {current.windspeed} km/h\n\n"
        f"7-Day Forecast:\n{forecast_text}\n\n"
        "Assess the agricultural impact, recommend planting and field activities with timing "
        "and priority (optimal/postpone/monitor), list risk alerts, and compare with typical "
        "conditions for this time of year.\n\n"
        f"Provide JSON matching schema:\n{describe_schema(WeatherAssessment)}"
    )
