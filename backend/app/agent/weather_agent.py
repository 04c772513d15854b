from pydantic import BaseModel

from app.agent.artifacts import WeatherAssessment
from app.agent.base import BaseAgent
from app.agent.extractor import GenerationResult, generate_structured
from app.agent.llm_client import GenerationRequest
from app.agent.prompts.weather import build_weather_prompt
from app.integrations.weather import CurrentWeather, DailyForecast


class WeatherInput(BaseModel):
    location_name: str
    current: CurrentWeather
    forecast: list[DailyForecast]


class WeatherAgent(BaseAgent[WeatherInput, GenerationResult[WeatherAssessment]]):
    async def run(self, input_data: WeatherInput) -> GenerationResult[WeatherAssessment]:
        prompt = build_weather_prompt(
            location_name=input_data.location_name,
            current=input_data.current,
            forecast=input_data.forecast,
        )
        return await generate_structured(self.llm, GenerationRequest(prompt=prompt), WeatherAssessment)
