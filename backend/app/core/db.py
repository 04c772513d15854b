from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from app.core.config import settings


def _connect_args(url: str) -> dict:
    # FastAPI serves sync dependencies from a threadpool.
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.DATABASE_URL,
    connect_args=_connect_args(settings.DATABASE_URL),
    pool_pre_ping=True,
)


def init_db(bind: Engine) -> None:
    # Tables should be created with Alembic migrations in managed deployments.
    # Importing the models registers them on SQLModel.metadata.
    from app import models  # noqa: F401

    SQLModel.metadata.create_all(bind)
