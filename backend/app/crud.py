import logging
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, col, select

from app.core.errors import PersistenceFailure
from app.models import (
    ApiCallLog,
    ChatHistory,
    ChatHistoryCreate,
    MarketListing,
    MarketListingCreate,
    MarketTrend,
    MarketTrendCreate,
    Profile,
    ProfileUpdate,
    QualityReport,
    QualityReportCreate,
    WeatherAnalysis,
    WeatherAnalysisCreate,
    get_datetime_utc,
)

logger = logging.getLogger(__name__)


def _save(session: Session, db_obj: SQLModel, *, label: str) -> SQLModel:
    try:
        session.add(db_obj)
        session.commit()
        session.refresh(db_obj)
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Failed to save %s: %s", label, exc)
        raise PersistenceFailure(f"Failed to save {label}") from exc
    return db_obj


def create_chat_history(*, session: Session, chat_in: ChatHistoryCreate) -> ChatHistory:
    db_obj = ChatHistory.model_validate(chat_in)
    return _save(session, db_obj, label="chat history")


def get_chat_history(*, session: Session, user_id: str, limit: int = 20) -> list[ChatHistory]:
    statement = (
        select(ChatHistory)
        .where(ChatHistory.user_id == user_id)
        .order_by(col(ChatHistory.created_at).desc())
        .limit(limit)
    )
    return list(session.exec(statement).all())


def create_quality_report(*, session: Session, report_in: QualityReportCreate) -> QualityReport:
    db_obj = QualityReport.model_validate(report_in)
    return _save(session, db_obj, label="report")


def get_quality_reports(*, session: Session, user_id: str, limit: int = 10) -> list[QualityReport]:
    statement = (
        select(QualityReport)
        .where(QualityReport.user_id == user_id)
        .order_by(col(QualityReport.created_at).desc())
        .limit(limit)
    )
    return list(session.exec(statement).all())


def create_market_trend(*, session: Session, trend_in: MarketTrendCreate) -> MarketTrend:
    db_obj = MarketTrend.model_validate(trend_in)
    return _save(session, db_obj, label="analysis")


def get_market_trends(*, session: Session, limit: int = 5) -> list[MarketTrend]:
    statement = select(MarketTrend).order_by(col(MarketTrend.created_at).desc()).limit(limit)
    return list(session.exec(statement).all())


def create_weather_analysis(*, session: Session, analysis_in: WeatherAnalysisCreate) -> WeatherAnalysis:
    db_obj = WeatherAnalysis.model_validate(analysis_in)
    return _save(session, db_obj, label="weather analysis")


def get_weather_analyses(*, session: Session, limit: int = 5) -> list[WeatherAnalysis]:
    statement = select(WeatherAnalysis).order_by(col(WeatherAnalysis.created_at).desc()).limit(limit)
    return list(session.exec(statement).all())


def check_rate_limit(
    *,
    session: Session,
    user_id: str,
    endpoint: str,
    max_calls: int,
    window_minutes: int,
    now: datetime | None = None,
) -> bool:
    """
    Check-then-act admission: count the calls this user made to `endpoint`
    inside the window, deny once `max_calls` is reached, otherwise record the
    call and admit it.
    """
    now = now or datetime.now(timezone.utc)
    window_start = now - timedelta(minutes=window_minutes)
    statement = (
        select(func.count())
        .select_from(ApiCallLog)
        .where(
            ApiCallLog.user_id == user_id,
            ApiCallLog.endpoint == endpoint,
            col(ApiCallLog.created_at) > window_start,
        )
    )
    calls = session.exec(statement).one()
    if calls >= max_calls:
        return False

    _save(
        session,
        ApiCallLog(user_id=user_id, endpoint=endpoint, created_at=now),
        label="rate limit entry",
    )
    return True


def get_profile(*, session: Session, user_id: str) -> Profile | None:
    return session.get(Profile, user_id)


def upsert_profile(*, session: Session, user_id: str, profile_in: ProfileUpdate) -> Profile:
    profile_data = profile_in.model_dump(exclude_unset=True, exclude_none=True)
    db_profile = session.get(Profile, user_id)
    if db_profile is None:
        db_profile = Profile.model_validate(profile_data, update={"id": user_id})
    else:
        db_profile.sqlmodel_update(profile_data, update={"updated_at": get_datetime_utc()})
    return _save(session, db_profile, label="profile")


def create_listing(
    *,
    session: Session,
    listing_in: MarketListingCreate,
    seller_id: str,
    seller_name: str | None,
    seller_phone: str | None,
    seller_email: str | None,
    image_url: str | None = None,
) -> MarketListing:
    db_listing = MarketListing.model_validate(
        listing_in.model_dump(exclude={"image_file"}),
        update={
            "seller_id": seller_id,
            "seller_name": seller_name,
            "seller_phone": seller_phone,
            "seller_email": seller_email,
            "image_url": image_url,
        },
    )
    return _save(session, db_listing, label="listing")


def get_active_listings(
    *, session: Session, category: str | None = None, query: str | None = None
) -> list[MarketListing]:
    statement = select(MarketListing).where(MarketListing.status == "active")
    if category and category != "all":
        statement = statement.where(MarketListing.category == category)
    if query and query.strip():
        pattern = f"%{query.strip().lower()}%"
        statement = statement.where(
            or_(
                func.lower(MarketListing.title).like(pattern),
                func.lower(func.coalesce(MarketListing.description, "")).like(pattern),
            )
        )
    statement = statement.order_by(col(MarketListing.created_at).desc())
    return list(session.exec(statement).all())


def get_listing(*, session: Session, listing_id: uuid.UUID) -> MarketListing | None:
    return session.get(MarketListing, listing_id)


def update_listing_status(*, session: Session, db_listing: MarketListing, status: str) -> MarketListing:
    db_listing.status = status
    db_listing.updated_at = get_datetime_utc()
    return _save(session, db_listing, label="listing")
