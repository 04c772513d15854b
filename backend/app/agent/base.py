from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from pydantic import BaseModel

from app.agent.llm_client import GenerationClient

InType = TypeVar("InType", bound=BaseModel | str)
OutType = TypeVar("OutType")


class BaseAgent(ABC, Generic[InType, OutType]):
    """Abstract base class for the advisory agents. The generation client is injected."""

    def __init__(self, llm: GenerationClient):
        self.llm = llm

    @abstractmethod
    async def run(self, input_data: InType) -> OutType:
        """Run the agent on the given input to produce its result."""
        pass
