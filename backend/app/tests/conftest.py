from collections.abc import Generator
from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from app.agent.llm_client import GenerationClient, GenerationRequest, GenerationResponse
from app.api.deps import Services, get_db
from app.core.db import init_db
from app.core.errors import AuthenticationError
from app.integrations.supabase import AuthUser
from app.integrations.weather import GeoLocation, parse_forecast
from app.main import create_app

FARMER = AuthUser(id="7b0e8f4e-3f5c-4c1e-9a8e-2f1d5b6c7a01", email="wanjiku@example.com")
BUYER = AuthUser(id="c2d4e6f8-1a3b-4c5d-8e9f-0a1b2c3d4e5f", email="otieno@example.com")
TOKENS = {"farmer-token": FARMER, "buyer-token": BUYER}

FORECAST_BODY = {
    "current_weather": {"temperature": 23.4, "windspeed": 11.2, "weathercode": 2},
    "daily": {
        "time": ["2026-10-19", "2026-10-20"],
        "temperature_2m_max": [26.1, 24.8],
        "temperature_2m_min": [13.0, 12.5],
        "precipitation_sum": [0.0, 6.4],
        "precipitation_probability_max": [10, 70],
        "weathercode": [1, 61],
    },
}


class ScriptedGenerationClient(GenerationClient):
    """Replays queued texts (or raises queued exceptions) and records every request."""

    def __init__(self, *replies: Any):
        super().__init__(model_name="scripted", max_retries=0, backoff_seconds=0)
        self.replies = list(replies)
        self.requests: list[GenerationRequest] = []

    async def _send(self, request: GenerationRequest) -> GenerationResponse:
        self.requests.append(request)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return GenerationResponse(text=reply, raw={"text": reply})


class FakeAuth:
    async def verify(self, token: str) -> AuthUser:
        if token not in TOKENS:
            raise AuthenticationError("Invalid authentication")
        return TOKENS[token]

    async def aclose(self) -> None:
        return None


class FakeStorage:
    def __init__(self):
        self.uploads: list[tuple[str, str, bytes]] = []

    async def upload(self, bucket: str, path: str, content: bytes, *, content_type: str = "image/jpeg") -> str:
        self.uploads.append((bucket, path, content))
        return f"https://storage.test/{bucket}/{path}"

    async def aclose(self) -> None:
        return None


class FakeWeather:
    def __init__(self, places: dict[str, GeoLocation] | None = None):
        self.places = places or {
            "nakuru": GeoLocation(name="Nakuru", latitude=-0.3031, longitude=36.08, country="Kenya"),
        }
        self.forecast_calls: list[tuple[float, float]] = []

    async def geocode(self, place: str) -> GeoLocation | None:
        return self.places.get(place.strip().lower())

    async def forecast(self, latitude: float, longitude: float):
        self.forecast_calls.append((latitude, longitude))
        return parse_forecast(FORECAST_BODY)

    async def aclose(self) -> None:
        return None


@pytest.fixture
def session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture
def services() -> Services:
    return Services(
        structured_llm=ScriptedGenerationClient(),
        chat_llm=ScriptedGenerationClient(),
        weather=FakeWeather(),  # type: ignore[arg-type]
        auth=FakeAuth(),  # type: ignore[arg-type]
        storage=FakeStorage(),  # type: ignore[arg-type]
    )


@pytest.fixture
def client(services: Services, session: Session) -> Generator[TestClient, None, None]:
    app = create_app(services=services)

    def _get_db() -> Generator[Session, None, None]:
        yield session

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": "Bearer farmer-token"}


@pytest.fixture
def scripted_llm() -> type[ScriptedGenerationClient]:
    return ScriptedGenerationClient


@pytest.fixture
def farmer() -> AuthUser:
    return FARMER
