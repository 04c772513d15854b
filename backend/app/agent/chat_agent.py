from app.agent.base import BaseAgent
from app.agent.llm_client import GenerationRequest
from app.agent.prompts.chat import AGRIBOT_SYSTEM_PROMPT
from app.core.errors import GenerationUnavailable


class ChatAgent(BaseAgent[str, str]):
    """AgriBot: free-form agricultural answers, no schema."""

    async def run(self, input_data: str) -> str:
        response = await self.llm.generate(
            GenerationRequest(
                prompt=input_data,
                system_prompt=AGRIBOT_SYSTEM_PROMPT,
                max_output_tokens=1000,
                temperature=0.7,
            )
        )
        reply = response.text.strip()
        if not reply:
            raise GenerationUnavailable("Model returned an empty reply")
        return reply
