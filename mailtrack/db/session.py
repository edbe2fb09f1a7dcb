"""SQLAlchemy session handling utilities."""
from __future__ import annotations

from typing import Any, Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from mailtrack.core.config import settings


def _connect_args(database_url: str) -> dict[str, Any]:
    db_url = make_url(database_url)
    if db_url.drivername.startswith("postgresql+psycopg"):
        return {"sslmode": "require"}
    if db_url.drivername.startswith("sqlite"):
        # FastAPI runs sync dependencies in a threadpool.
        return {"check_same_thread": False}
    return {}


def build_engine(database_url: str) -> Engine:
    return create_engine(
        database_url,
        future=True,
        pool_pre_ping=True,
        connect_args=_connect_args(database_url),
    )


# The engine is created once and reused for all requests.
engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Iterator[Session]:
    """FastAPI dependency that yields a scoped session."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
