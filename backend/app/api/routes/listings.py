import uuid
from typing import Any

from fastapi import APIRouter, Query

from app import crud
from app.api.deps import CurrentUser, ServicesDep, SessionDep
from app.api.uploads import decode_image_payload, upload_file_name
from app.core.config import settings
from app.core.errors import NotFoundError, PermissionDenied
from app.models import (
    MarketListingCreate,
    MarketListingPublic,
    MarketListingStatusUpdate,
)

router = APIRouter()


@router.get("/listings", response_model=list[MarketListingPublic])
def read_listings(
    session: SessionDep,
    category: str | None = None,
    q: str | None = Query(default=None, max_length=100),
) -> Any:
    """
    Active marketplace listings, newest first. `q` searches title and description.
    """
    return crud.get_active_listings(session=session, category=category, query=q)


@router.get("/listings/{id}", response_model=MarketListingPublic)
def read_listing(id: uuid.UUID, session: SessionDep) -> Any:
    listing = crud.get_listing(session=session, listing_id=id)
    if not listing or listing.status != "active":
        raise NotFoundError("Listing not found")
    return listing


@router.post("/listings", response_model=MarketListingPublic)
async def create_listing(
    listing_in: MarketListingCreate,
    session: SessionDep,
    services: ServicesDep,
    current_user: CurrentUser,
) -> Any:
    image_url = None
    if listing_in.image_file:
        image = decode_image_payload(listing_in.image_file)
        image_url = await services.storage.upload(
            settings.LISTINGS_BUCKET,
            upload_file_name(current_user.id, "listing"),
            image.content,
            content_type=image.content_type,
        )

    profile = crud.get_profile(session=session, user_id=current_user.id)
    seller_name = (profile.full_name if profile else None) or (
        current_user.email.split("@")[0] if current_user.email else "Unknown Seller"
    )
    return crud.create_listing(
        session=session,
        listing_in=listing_in,
        seller_id=current_user.id,
        seller_name=seller_name,
        seller_phone=profile.phone_number if profile else None,
        seller_email=current_user.email,
        image_url=image_url,
    )


@router.patch("/listings/{id}/status", response_model=MarketListingPublic)
def update_listing_status(
    id: uuid.UUID,
    status_in: MarketListingStatusUpdate,
    session: SessionDep,
    current_user: CurrentUser,
) -> Any:
    listing = crud.get_listing(session=session, listing_id=id)
    if not listing:
        raise NotFoundError("Listing not found")
    if listing.seller_id != current_user.id:
        raise PermissionDenied()
    return crud.update_listing_status(session=session, db_listing=listing, status=status_in.status)
