from typing import Annotated, Any, Literal

from pydantic import AnyUrl, BeforeValidator, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Use top level .env file (one level above ./backend/)
        env_file="../.env",
        env_ignore_empty=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "Shamba Connect"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"

    BACKEND_CORS_ORIGINS: Annotated[
        list[AnyUrl] | str, BeforeValidator(parse_cors)
    ] = []

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS]

    # Postgres (e.g. the Supabase database) in production, SQLite locally.
    DATABASE_URL: str = "sqlite:///./shamba.db"

    # Generation provider. "openai" talks to any OpenAI-compatible chat endpoint
    # (Gemini by default); "vertex" posts to a Vertex AI :predict endpoint.
    LLM_PROVIDER: Literal["openai", "vertex"] = "openai"
    LLM_API_KEY: str = ""
    GEMINI_API_KEY: str = ""
    LLM_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    MODEL_DEFAULT: str = "gemini-1.5-flash"
    MODEL_CHAT: str = "gemini-1.5-flash"

    VERTEX_API_KEY: str = ""
    VERTEX_PROJECT_ID: str = ""
    VERTEX_LOCATION: str = "us-central1"
    VERTEX_MODEL: str = "text-bison"

    GENERATION_MAX_RETRIES: int = 2
    GENERATION_BACKOFF_SECONDS: float = 0.3
    GENERATION_TIMEOUT_SECONDS: float = 60.0

    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""
    QUALITY_CHECK_BUCKET: str = "quality-checks"
    LISTINGS_BUCKET: str = "listings"

    GEOCODING_URL: str = "https://geocoding-api.open-meteo.com/v1/search"
    FORECAST_URL: str = "https://api.open-meteo.com/v1/forecast"
    WEATHER_TIMEZONE: str = "Africa/Nairobi"
    HTTP_TIMEOUT_SECONDS: float = 15.0

    RATE_LIMIT_MAX_CALLS: int = 100
    RATE_LIMIT_WINDOW_MINUTES: int = 60

    @computed_field  # type: ignore[prop-decorator]
    @property
    def vertex_predict_url(self) -> str:
        return (
            f"https://{self.VERTEX_LOCATION}-aiplatform.googleapis.com/v1/projects/"
            f"{self.VERTEX_PROJECT_ID}/locations/{self.VERTEX_LOCATION}/publishers/google/"
            f"models/{self.VERTEX_MODEL}:predict"
        )


settings = Settings()  # type: ignore
