import logging
from typing import Any

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from app import crud
from app.agent.chat_agent import ChatAgent
from app.api.deps import CurrentUser, ServicesDep, SessionDep, enforce_rate_limit
from app.core.errors import PersistenceFailure, UpstreamUnavailable, ValidationError
from app.models import ChatHistoryCreate, ChatHistoryPublic

router = APIRouter()
logger = logging.getLogger(__name__)


class ChatRequest(BaseModel):
    message: str | None = None


class ChatResponse(BaseModel):
    bot_response: str = Field(serialization_alias="botResponse")


@router.post("/chat", response_model=ChatResponse)
async def chat(
    payload: ChatRequest,
    session: SessionDep,
    services: ServicesDep,
    current_user: CurrentUser,
) -> Any:
    """
    Answer a farming question with AgriBot and record the exchange.
    Losing the history row does not fail the request.
    """
    message = (payload.message or "").strip()
    if not message:
        raise ValidationError("Message is required")

    enforce_rate_limit(session, current_user, "chat")

    try:
        bot_response = await ChatAgent(services.chat_llm).run(message)
    except UpstreamUnavailable as exc:
        logger.error("Chat generation failed for user %s: %s", current_user.id, exc)
        raise UpstreamUnavailable("Failed to get response from bot") from exc

    try:
        crud.create_chat_history(
            session=session,
            chat_in=ChatHistoryCreate(
                user_id=current_user.id,
                user_message=message,
                bot_response=bot_response,
            ),
        )
    except PersistenceFailure as exc:
        logger.warning("Chat history not saved for user %s: %s", current_user.id, exc)

    return ChatResponse(bot_response=bot_response)


@router.get("/chat/history", response_model=list[ChatHistoryPublic])
def read_chat_history(
    session: SessionDep,
    current_user: CurrentUser,
    limit: int = Query(default=20, ge=1, le=100),
) -> Any:
    return crud.get_chat_history(session=session, user_id=current_user.id, limit=limit)
