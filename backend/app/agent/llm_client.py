import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx
import openai
from openai import AsyncOpenAI
from pydantic import BaseModel, ConfigDict, Field

from app.core.config import settings
from app.core.errors import GenerationUnavailable

logger = logging.getLogger(__name__)


class GenerationRequest(BaseModel):
    """One call's worth of input for a text-generation provider."""

    model_config = ConfigDict(frozen=True)

    prompt: str
    system_prompt: str | None = None
    image_url: str | None = None
    max_output_tokens: int = Field(default=1024, gt=0)
    temperature: float = Field(default=0.2, ge=0)


class GenerationResponse(BaseModel):
    text: str
    raw: Any = None


class TransportError(Exception):
    """Connection failure, timeout or non-2xx status from a provider."""


class GenerationClient(ABC):
    """
    Provider-agnostic text generation with bounded transport retry.

    Subclasses implement a single provider call in `_send`. `generate` retries
    transport failures with exponential backoff and raises
    `GenerationUnavailable` once the retries are spent. Content problems are
    the caller's concern.
    """

    def __init__(
        self,
        *,
        model_name: str,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
    ):
        self.model_name = model_name
        self.max_retries = settings.GENERATION_MAX_RETRIES if max_retries is None else max_retries
        self.backoff_seconds = (
            settings.GENERATION_BACKOFF_SECONDS if backoff_seconds is None else backoff_seconds
        )

    @abstractmethod
    async def _send(self, request: GenerationRequest) -> GenerationResponse:
        """Perform one provider call, raising TransportError on transport failure."""

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        attempts = self.max_retries + 1
        delay = self.backoff_seconds
        for attempt_idx in range(1, attempts + 1):
            try:
                logger.info(
                    "Issuing generation request to model %s (attempt %s/%s)...",
                    self.model_name,
                    attempt_idx,
                    attempts,
                )
                response = await self._send(request)
                logger.info(
                    "Received generation response from %s (%s chars).",
                    self.model_name,
                    len(response.text),
                )
                return response
            except TransportError as e:
                if attempt_idx < attempts:
                    logger.warning(
                        "Transport failure from %s on attempt %s/%s: %s. Retrying in %.2fs...",
                        self.model_name,
                        attempt_idx,
                        attempts,
                        e,
                        delay,
                    )
                    await asyncio.sleep(delay)
                    delay *= 2
                    continue
                logger.error("Generation provider %s unavailable after %s attempts: %s", self.model_name, attempts, e)
                raise GenerationUnavailable() from e

        # Unreachable: the loop returns or raises.
        raise GenerationUnavailable()

    async def aclose(self) -> None:
        return None


class ChatCompletionsClient(GenerationClient):
    """Generation through an OpenAI-compatible chat completions endpoint (Gemini by default)."""

    def __init__(
        self,
        model_name: str | None = None,
        base_url: str | None = None,
        api_key: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(model_name=model_name or settings.MODEL_DEFAULT, **kwargs)

        # Use LLM_API_KEY or fallback to GEMINI_API_KEY if they only provided the original one
        resolved_api_key = api_key or settings.LLM_API_KEY or settings.GEMINI_API_KEY
        resolved_base_url = base_url or settings.LLM_BASE_URL

        # Retries are handled by GenerationClient.generate.
        self.client = AsyncOpenAI(
            base_url=resolved_base_url,
            api_key=resolved_api_key,
            max_retries=0,
            timeout=settings.GENERATION_TIMEOUT_SECONDS,
        )

    def _messages(self, request: GenerationRequest) -> list[dict[str, Any]]:
        messages: list[dict[str, Any]] = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        if request.image_url:
            messages.append(
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": request.prompt},
                        {"type": "image_url", "image_url": {"url": request.image_url}},
                    ],
                }
            )
        else:
            messages.append({"role": "user", "content": request.prompt})
        return messages

    async def _send(self, request: GenerationRequest) -> GenerationResponse:
        try:
            response = await self.client.chat.completions.create(
                model=self.model_name,
                messages=self._messages(request),
                max_tokens=request.max_output_tokens,
                temperature=request.temperature,
            )
        except (openai.APIConnectionError, openai.APIStatusError) as e:
            raise TransportError(str(e)) from e

        if not getattr(response, "choices", None):
            logger.warning("Received 0 choices from %s", self.model_name)
            return GenerationResponse(text="", raw=_dump_response(response))
        text = response.choices[0].message.content or ""
        return GenerationResponse(text=text, raw=_dump_response(response))

    async def aclose(self) -> None:
        await self.client.close()


class PredictionClient(GenerationClient):
    """Generation through a Vertex AI `:predict` endpoint over raw HTTP."""

    def __init__(
        self,
        model_name: str | None = None,
        endpoint: str | None = None,
        api_key: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        **kwargs: Any,
    ):
        super().__init__(model_name=model_name or settings.VERTEX_MODEL, **kwargs)
        self.endpoint = endpoint or settings.vertex_predict_url
        self.api_key = api_key if api_key is not None else settings.VERTEX_API_KEY
        self.http = http_client or httpx.AsyncClient(timeout=settings.GENERATION_TIMEOUT_SECONDS)

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    @staticmethod
    def _content(request: GenerationRequest) -> str:
        # The prediction API takes a single text instance; images are not supported.
        if request.system_prompt:
            return f"{request.system_prompt}\n\n{request.prompt}"
        return request.prompt

    async def _send(self, request: GenerationRequest) -> GenerationResponse:
        body = {
            "instances": [{"content": self._content(request)}],
            "parameters": {
                "maxOutputTokens": request.max_output_tokens,
                "temperature": request.temperature,
            },
        }
        try:
            response = await self.http.post(self.endpoint, headers=self._headers(), json=body)
            response.raise_for_status()
            raw = response.json()
        except httpx.HTTPStatusError as e:
            raise TransportError(f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise TransportError(str(e) or e.__class__.__name__) from e
        except ValueError as e:
            raise TransportError("Provider returned a non-JSON body") from e

        return GenerationResponse(text=extract_prediction_text(raw), raw=raw)

    async def aclose(self) -> None:
        await self.http.aclose()


def extract_prediction_text(raw: Any) -> str:
    """Best-effort text from the response shapes prediction endpoints use."""
    if isinstance(raw, dict):
        predictions = raw.get("predictions")
        if isinstance(predictions, list) and predictions:
            first = predictions[0]
            if isinstance(first, dict) and isinstance(first.get("content"), str):
                return first["content"]
        for key in ("prediction", "response"):
            if isinstance(raw.get(key), str):
                return raw[key]
    return json.dumps(raw)


def _dump_response(response: Any) -> Any:
    if hasattr(response, "model_dump"):
        return response.model_dump(mode="json")
    return None


def build_generation_client(*, model_name: str | None = None) -> GenerationClient:
    if settings.LLM_PROVIDER == "vertex":
        return PredictionClient()
    return ChatCompletionsClient(model_name=model_name)
