from typing import Any

from fastapi import APIRouter

from app import crud
from app.api.deps import CurrentUser, SessionDep
from app.core.errors import NotFoundError
from app.models import ProfilePublic, ProfileUpdate

router = APIRouter()


@router.get("/profile", response_model=ProfilePublic)
def read_profile(session: SessionDep, current_user: CurrentUser) -> Any:
    profile = crud.get_profile(session=session, user_id=current_user.id)
    if not profile:
        raise NotFoundError("Profile not found")
    return profile


@router.put("/profile", response_model=ProfilePublic)
def update_profile(session: SessionDep, current_user: CurrentUser, profile_in: ProfileUpdate) -> Any:
    return crud.upsert_profile(session=session, user_id=current_user.id, profile_in=profile_in)
