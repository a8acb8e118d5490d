"""
Repository layer for the local cache tier (SQLite via SQLAlchemy).
"""

from .database import Base, init_database
from .cache_repository import CacheRepository, CacheEntry, CacheEntryORM

__all__ = [
    "Base",
    "init_database",
    "CacheRepository",
    "CacheEntry",
    "CacheEntryORM",
]
