from fastapi import APIRouter

from app.api.routes import chat, listings, market, profile, quality, utils, weather

api_router = APIRouter()
api_router.include_router(utils.router, tags=["utils"])
api_router.include_router(chat.router, tags=["chat"])
api_router.include_router(quality.router, tags=["quality"])
api_router.include_router(market.router, tags=["market"])
api_router.include_router(weather.router, tags=["weather"])
api_router.include_router(listings.router, tags=["listings"])
api_router.include_router(profile.router, tags=["profile"])
