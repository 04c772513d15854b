from pydantic import BaseModel

from app.agent.artifacts import MarketAssessment
from app.agent.base import BaseAgent
from app.agent.extractor import GenerationResult, generate_structured
from app.agent.llm_client import GenerationRequest
from app.agent.prompts.market import build_market_prompt


class MarketInput(BaseModel):
    produce_type: str
    location: str
    weather_summary: str
    quantity: float | None = None
    quality_grade: str | None = None


class MarketAgent(BaseAgent[MarketInput, GenerationResult[MarketAssessment]]):
    """Suggests a price band and market outlook for a produce type at a location."""

    async def run(self, input_data: MarketInput) -> GenerationResult[MarketAssessment]:
        prompt = build_market_prompt(
            produce_type=input_data.produce_type,
            location=input_data.location,
            weather_summary=input_data.weather_summary,
            quantity=input_data.quantity,
            quality_grade=input_data.quality_grade,
        )
        return await generate_structured(self.llm, GenerationRequest(prompt=prompt), MarketAssessment)
