import uuid
from datetime import datetime, timezone
from typing import Any, Literal

from sqlalchemy import JSON, DateTime
from sqlmodel import Field, SQLModel


def get_datetime_utc() -> datetime:
    return datetime.now(timezone.utc)


QualityGradeValue = Literal["premium", "grade_a", "grade_b", "grade_c", "reject"]
ListingCategory = Literal["crops", "livestock", "dairy", "poultry", "seeds", "equipment", "other"]
ListingStatus = Literal["active", "sold", "inactive"]
ProductType = Literal["crop", "livestock", "dairy", "processed"]
UserType = Literal["farmer", "buyer"]
FarmType = Literal["crops", "livestock", "mixed", "poultry", "dairy"]


# Chat history

class ChatHistoryBase(SQLModel):
    user_message: str
    bot_response: str


class ChatHistoryCreate(ChatHistoryBase):
    user_id: str


class ChatHistory(ChatHistoryBase, table=True):
    __tablename__ = "chat_history"  # type: ignore[assignment]

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: str = Field(index=True, max_length=255)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class ChatHistoryPublic(ChatHistoryBase):
    id: uuid.UUID
    user_id: str
    created_at: datetime | None = None


# Quality reports

class QualityReportBase(SQLModel):
    product_type: str = Field(max_length=50)
    product_name: str = Field(max_length=255)
    image_url: str | None = None
    quality_grade: str | None = Field(default=None, max_length=20)
    quality_score: float | None = None
    visual_assessment: list[str] = Field(default_factory=list, sa_type=JSON)
    defects_detected: list[str] = Field(default_factory=list, sa_type=JSON)
    market_readiness: str | None = Field(default=None, max_length=30)
    recommendations: str | None = None
    estimated_price_range: str | None = None
    shelf_life: str | None = None


class QualityReportCreate(QualityReportBase):
    user_id: str


class QualityReport(QualityReportBase, table=True):
    __tablename__ = "quality_reports"  # type: ignore[assignment]

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: str = Field(index=True, max_length=255)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class QualityReportPublic(QualityReportBase):
    id: uuid.UUID
    user_id: str
    created_at: datetime | None = None


# Market trends

class MarketTrendBase(SQLModel):
    produce_type: str = Field(max_length=255)
    location: str = Field(max_length=255)
    quantity: float | None = None
    quality_grade: str | None = Field(default=None, max_length=20)
    suggested_price_min: float | None = None
    suggested_price_optimal: float | None = None
    suggested_price_max: float | None = None
    demand_level: str | None = Field(default=None, max_length=20)
    supply_level: str | None = Field(default=None, max_length=20)
    price_trend: str | None = Field(default=None, max_length=20)
    market_analysis: str | None = None
    weather_impact: str | None = None
    recommendations: list[str] | None = Field(default=None, sa_type=JSON)
    confidence_score: float | None = None


class MarketTrendCreate(MarketTrendBase):
    user_id: str | None = None
    weather_raw: dict[str, Any] | None = None
    llm_raw: Any = None


class MarketTrend(MarketTrendBase, table=True):
    __tablename__ = "market_trends"  # type: ignore[assignment]

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: str | None = Field(default=None, index=True, max_length=255)
    weather_raw: dict[str, Any] | None = Field(default=None, sa_type=JSON)
    llm_raw: Any = Field(default=None, sa_type=JSON)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class MarketTrendPublic(MarketTrendBase):
    id: uuid.UUID
    user_id: str | None = None
    created_at: datetime | None = None


# Weather analysis

class WeatherAnalysisBase(SQLModel):
    location: str = Field(max_length=255)
    latitude: float
    longitude: float
    current_temperature: float | None = None
    current_conditions: str | None = None
    wind_speed: float | None = None
    forecast_7day: list[dict[str, Any]] = Field(default_factory=list, sa_type=JSON)
    agricultural_impact: str | None = None
    planting_recommendations: list[dict[str, Any]] | None = Field(default=None, sa_type=JSON)
    risk_alerts: list[str] | None = Field(default=None, sa_type=JSON)
    historical_comparison: str | None = None


class WeatherAnalysisCreate(WeatherAnalysisBase):
    llm_raw: Any = None


class WeatherAnalysis(WeatherAnalysisBase, table=True):
    __tablename__ = "weather_analysis"  # type: ignore[assignment]

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    llm_raw: Any = Field(default=None, sa_type=JSON)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class WeatherAnalysisPublic(WeatherAnalysisBase):
    id: uuid.UUID
    created_at: datetime | None = None


# Rate limiting: one row per admitted call

class ApiCallLog(SQLModel, table=True):
    __tablename__ = "api_call_log"  # type: ignore[assignment]

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: str = Field(index=True, max_length=255)
    endpoint: str = Field(index=True, max_length=100)
    created_at: datetime = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


# Profiles

class ProfileBase(SQLModel):
    full_name: str | None = Field(default=None, max_length=255)
    user_type: str = Field(default="buyer", max_length=20)
    location: str | None = Field(default=None, max_length=255)
    phone_number: str | None = Field(default=None, max_length=50)
    farm_name: str | None = Field(default=None, max_length=255)
    farm_type: str | None = Field(default=None, max_length=20)
    farm_size: str | None = Field(default=None, max_length=100)
    primary_crops: list[str] = Field(default_factory=list, sa_type=JSON)
    business_name: str | None = Field(default=None, max_length=255)
    purchase_interests: list[str] = Field(default_factory=list, sa_type=JSON)


# Properties to receive via API on update, all are optional
class ProfileUpdate(SQLModel):
    full_name: str | None = Field(default=None, max_length=255)
    user_type: UserType | None = None
    location: str | None = Field(default=None, max_length=255)
    phone_number: str | None = Field(default=None, max_length=50)
    farm_name: str | None = Field(default=None, max_length=255)
    farm_type: FarmType | None = None
    farm_size: str | None = Field(default=None, max_length=100)
    primary_crops: list[str] | None = None
    business_name: str | None = Field(default=None, max_length=255)
    purchase_interests: list[str] | None = None


class Profile(ProfileBase, table=True):
    __tablename__ = "profiles"  # type: ignore[assignment]

    # Same id as the auth service user.
    id: str = Field(primary_key=True, max_length=255)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    updated_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class ProfilePublic(ProfileBase):
    id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


# Marketplace listings

class MarketListingBase(SQLModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    price: float = Field(ge=0)
    unit: str = Field(min_length=1, max_length=50)
    category: str = Field(default="other", max_length=20)
    location: str = Field(min_length=1, max_length=255)
    quantity_available: float | None = Field(default=None, ge=0)


class MarketListingCreate(MarketListingBase):
    category: ListingCategory = "other"
    image_file: str | None = Field(default=None, alias="imageFile")

    model_config = {"populate_by_name": True}


class MarketListingStatusUpdate(SQLModel):
    status: ListingStatus


class MarketListing(MarketListingBase, table=True):
    __tablename__ = "market_listings"  # type: ignore[assignment]

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    seller_id: str = Field(index=True, max_length=255)
    image_url: str | None = None
    seller_name: str | None = Field(default=None, max_length=255)
    seller_phone: str | None = Field(default=None, max_length=50)
    seller_email: str | None = Field(default=None, max_length=255)
    status: str = Field(default="active", index=True, max_length=20)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    updated_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class MarketListingPublic(MarketListingBase):
    id: uuid.UUID
    seller_id: str
    image_url: str | None = None
    seller_name: str | None = None
    seller_phone: str | None = None
    seller_email: str | None = None
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
