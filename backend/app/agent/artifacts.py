from typing import Literal

from pydantic import BaseModel, Field

DemandSupplyLevel = Literal["very_low", "low", "moderate", "high", "very_high"]


class QualityAssessment(BaseModel):
    """Structured output of the quality grader."""
    quality_grade: Literal["premium", "grade_a", "grade_b", "grade_c", "reject"] = Field(
        description="Overall grade of the product"
    )
    quality_score: float = Field(ge=0, le=100, description="Quality score from 0 to 100")
    visual_assessment: list[str] = Field(
        description="3-5 short positive visual quality indicators"
    )
    defects_detected: list[str] = Field(description="Defects seen in the image, empty if none")
    market_readiness: Literal["ready", "needs_improvement", "not_ready"]
    recommendations: str = Field(description="Detailed paragraph of improvement recommendations")
    estimated_price_range: str = Field(
        description="Estimated price range in Kenyan Shillings, e.g. 'KSh 50-70 per kg'"
    )
    shelf_life: str = Field(description="Expected shelf life, e.g. '5-7 days'")


class MarketAssessment(BaseModel):
    """Structured output of the market-price advisor. Prices are in KSh per unit."""
    suggested_price_min: float | None = None
    suggested_price_optimal: float = Field(description="Best selling price in KSh")
    suggested_price_max: float | None = None
    demand_level: DemandSupplyLevel | None = None
    supply_level: DemandSupplyLevel | None = None
    price_trend: Literal["falling", "stable", "rising"] | None = None
    market_analysis: str | None = Field(default=None, description="Short narrative of market conditions")
    weather_impact: str | None = Field(default=None, description="How current weather affects this market")
    recommendations: list[str] = Field(default_factory=list, description="Actionable selling advice")
    confidence_score: float | None = Field(default=None, ge=0, le=100)


class PlantingRecommendation(BaseModel):
    activity: str
    timing: str
    reason: str
    priority: Literal["optimal", "postpone", "monitor"]


class WeatherAssessment(BaseModel):
    """Structured output of the weather advisor."""
    risk_level: Literal["low", "moderate", "high", "critical"] | None = None
    agricultural_impact: str = Field(description="How the forecast affects farming this week")
    recommendations: list[PlantingRecommendation] = Field(default_factory=list)
    risk_alerts: list[str] = Field(default_factory=list)
    historical_comparison: str | None = None
