from app.agent.artifacts import MarketAssessment
from app.agent.extractor import describe_schema


def build_market_prompt(
    *,
    produce_type: str,
    location: str,
    weather_summary: str,
    quantity: float | None = None,
    quality_grade: str | None = None,
) -> str:
    quantity_text = f"{quantity:g}" if quantity is not None else "not specified"
    return (
        f"Analyze the market for {produce_type} in {location}, Kenya with the following inputs:\n"
        f"- quality_grade: {quality_grade or 'standard'}\n"
        f"- quantity: {quantity_text}\n"
        f"- current weather: {weather_summary}\n\n"
        "Suggest minimum, optimal and maximum selling prices in Kenyan Shillings per unit, "
        "rate demand and supply (very_low/low/moderate/high/very_high), the price trend "
        "(falling/stable/rising), explain how the weather affects this market, and give "
        "a confidence score from 0 to 100.\n\n"
        f"Provide output as JSON matching schema:\n{describe_schema(MarketAssessment)}"
    )
