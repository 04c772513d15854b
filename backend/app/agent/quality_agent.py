from pydantic import BaseModel

from app.agent.artifacts import QualityAssessment
from app.agent.base import BaseAgent
from app.agent.extractor import GenerationResult, generate_structured
from app.agent.llm_client import GenerationRequest
from app.agent.prompts.quality import QUALITY_SYSTEM_PROMPT, build_quality_prompt


class QualityCheckInput(BaseModel):
    product_type: str
    product_name: str
    image_url: str | None = None


class QualityAgent(BaseAgent[QualityCheckInput, GenerationResult[QualityAssessment]]):
    """
    Grades produce from an uploaded image. A None `parsed` means the model never
    produced a valid assessment and the caller should fail the request.
    """

    async def run(self, input_data: QualityCheckInput) -> GenerationResult[QualityAssessment]:
        request = GenerationRequest(
            prompt=build_quality_prompt(input_data.product_name, input_data.product_type),
            system_prompt=QUALITY_SYSTEM_PROMPT,
            image_url=input_data.image_url,
            max_output_tokens=1024,
        )
        return await generate_structured(self.llm, request, QualityAssessment)
