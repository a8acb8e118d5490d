"""
SQLAlchemy database setup for the reliever local cache.
"""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase


class Base(DeclarativeBase):
    """Base declarative class for ORM models."""

    pass


def init_database(db_path: Path) -> sessionmaker:
    """
    Initialize the SQLite cache database, create tables, and return a session factory.

    Called once by the bootstrap in main.py; tests build their own engine.
    """
    # Import ORM models so their metadata is registered on Base
    from .cache_repository import CacheEntryORM  # noqa: F401

    engine = create_engine(f"sqlite:///{db_path}", future=True, echo=False)
    Base.metadata.create_all(bind=engine)

    return sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        future=True,
    )
