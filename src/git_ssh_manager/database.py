"""Database engine creation and helper utilities."""

from __future__ import annotations

import logging

from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from .config import settings

logger = logging.getLogger(__name__)


def build_engine(url: str):
    """Create an engine suited to the configured backend.

    SQLite needs ``check_same_thread`` disabled because FastAPI runs sync
    dependencies in a threadpool; an in-memory SQLite database additionally
    has to share one connection or every session would see an empty schema.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)
    connect_args = {"check_same_thread": False}
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(url, connect_args=connect_args, poolclass=StaticPool)
    return create_engine(url, connect_args=connect_args)


engine = build_engine(settings.db_url)


def init_db() -> None:
    """Create database tables."""
    logger.debug("Creating database schema")
    SQLModel.metadata.create_all(engine)


def get_session():
    """FastAPI dependency hook yielding a new session."""
    with Session(engine) as session:
        yield session
