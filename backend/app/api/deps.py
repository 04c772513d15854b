from collections.abc import Generator
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from app import crud
from app.agent.llm_client import ChatCompletionsClient, GenerationClient, build_generation_client
from app.core.config import settings
from app.core.db import engine
from app.core.errors import AuthenticationError, RateLimitExceeded
from app.integrations.supabase import AuthUser, SupabaseAuth, SupabaseStorage
from app.integrations.weather import OpenMeteoClient


@dataclass
class Services:
    """External collaborators, built once per process and passed to handlers."""

    structured_llm: GenerationClient
    chat_llm: GenerationClient
    weather: OpenMeteoClient
    auth: SupabaseAuth
    storage: SupabaseStorage

    async def aclose(self) -> None:
        for client in (self.structured_llm, self.chat_llm, self.weather, self.auth, self.storage):
            await client.aclose()


def build_services() -> Services:
    return Services(
        structured_llm=build_generation_client(),
        chat_llm=ChatCompletionsClient(model_name=settings.MODEL_CHAT),
        weather=OpenMeteoClient(),
        auth=SupabaseAuth(),
        storage=SupabaseStorage(),
    )


bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


def get_services(request: Request) -> Services:
    return request.app.state.services


SessionDep = Annotated[Session, Depends(get_db)]
ServicesDep = Annotated[Services, Depends(get_services)]
CredentialsDep = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


async def get_current_user(services: ServicesDep, credentials: CredentialsDep) -> AuthUser:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authentication required")
    return await services.auth.verify(credentials.credentials)


async def get_optional_user(services: ServicesDep, credentials: CredentialsDep) -> AuthUser | None:
    if credentials is None or not credentials.credentials:
        return None
    return await services.auth.verify(credentials.credentials)


CurrentUser = Annotated[AuthUser, Depends(get_current_user)]
OptionalUser = Annotated[AuthUser | None, Depends(get_optional_user)]


def enforce_rate_limit(session: Session, user: AuthUser, endpoint: str) -> None:
    window_minutes = settings.RATE_LIMIT_WINDOW_MINUTES
    allowed = crud.check_rate_limit(
        session=session,
        user_id=user.id,
        endpoint=endpoint,
        max_calls=settings.RATE_LIMIT_MAX_CALLS,
        window_minutes=window_minutes,
    )
    if not allowed:
        raise RateLimitExceeded(retry_after=window_minutes * 60)


MAX_LIST_LIMIT = 100


def resolve_limit(limit: int | None, *, default: int) -> int:
    """Missing, zero or negative limits fall back to `default`; large ones are capped."""
    if not limit or limit < 0:
        return default
    return min(limit, MAX_LIST_LIMIT)
