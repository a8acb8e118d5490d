"""
Local cache store: durable key/value records for vessel snapshots, the
owner's vessel list, and the working copy of the open session.

Values are stored as JSON text in the Vessel API's row format, so a cached
vessel goes through the same normalization as a freshly fetched one.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import String, Text, DateTime
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Mapped, mapped_column, Session

from .database import Base
from ..config.defaults import (
    KEY_CASES,
    KEY_CURRENT_VESSEL_ID,
    KEY_SESSION_CASE,
    KEY_SESSION_VESSEL,
    KEY_VESSEL,
    KEY_VESSEL_LIST,
)
from ..models import CaseType
from ..services.sync_errors import CacheCorruptError

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CacheEntryORM(Base):
    __tablename__ = "cache_entries"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, onupdate=_utc_now)


@dataclass(slots=True)
class CacheEntry:
    """Last-known snapshot of one vessel and its case set."""

    vessel_id: str
    vessel: Dict[str, Any]
    cases: List[Dict[str, Any]] = field(default_factory=list)


def _decode(key: str, raw: str, expected: type) -> Any:
    try:
        value = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise CacheCorruptError(key, str(exc)) from exc
    if not isinstance(value, expected):
        raise CacheCorruptError(key, f"expected {expected.__name__}, got {type(value).__name__}")
    return value


class CacheRepository:
    """Repository for the local cache tier (no network access)."""

    def __init__(self, db: Session) -> None:
        self._db = db

    # ------------------------------------------------------------ primitives

    def _read(self, key: str) -> Optional[str]:
        obj = self._db.get(CacheEntryORM, key)
        return obj.payload if obj is not None else None

    def _stage(self, key: str, value: Any) -> None:
        payload = json.dumps(value)
        obj = self._db.get(CacheEntryORM, key)
        if obj is None:
            self._db.add(CacheEntryORM(key=key, payload=payload))
        else:
            obj.payload = payload
            obj.updated_at = _utc_now()

    def _unstage(self, key: str) -> None:
        obj = self._db.get(CacheEntryORM, key)
        if obj is not None:
            self._db.delete(obj)

    def _commit(self, what: str) -> bool:
        try:
            self._db.commit()
            return True
        except SQLAlchemyError:
            self._db.rollback()
            logger.exception("Cache write failed (%s)", what)
            return False

    def _remove_keys(self, *keys: str) -> None:
        for key in keys:
            self._unstage(key)
        self._commit(f"remove {', '.join(keys)}")

    # -------------------------------------------------------- vessel entries

    def get(self, vessel_id: str) -> Optional[CacheEntry]:
        """Return the cached snapshot for a vessel, or None on a miss.

        A snapshot is only returned when both halves are present and parse;
        anything else invalidates the entry so the caller refetches.
        """
        vessel_key = KEY_VESSEL.format(vessel_id=vessel_id)
        cases_key = KEY_CASES.format(vessel_id=vessel_id)
        raw_vessel = self._read(vessel_key)
        raw_cases = self._read(cases_key)
        if raw_vessel is None or raw_cases is None:
            return None
        try:
            vessel = _decode(vessel_key, raw_vessel, dict)
            cases = _decode(cases_key, raw_cases, list)
        except CacheCorruptError as exc:
            logger.warning("%s; invalidating cache for vessel %s", exc.message, vessel_id)
            self.invalidate(vessel_id)
            return None
        return CacheEntry(vessel_id=vessel_id, vessel=vessel, cases=cases)

    def put(self, vessel_id: str, vessel: Dict[str, Any], cases: List[Dict[str, Any]]) -> bool:
        """Store a vessel snapshot and its case set in a single transaction."""
        self._stage(KEY_VESSEL.format(vessel_id=vessel_id), vessel)
        self._stage(KEY_CASES.format(vessel_id=vessel_id), cases)
        if self._commit(f"put vessel {vessel_id}"):
            return True
        # Whatever survived the rollback may be older than the remote now
        self.invalidate(vessel_id)
        return False

    def invalidate(self, vessel_id: str) -> None:
        self._remove_keys(
            KEY_VESSEL.format(vessel_id=vessel_id),
            KEY_CASES.format(vessel_id=vessel_id),
        )

    # ----------------------------------------------------------- vessel list

    def get_vessel_list(self) -> Optional[List[Dict[str, Any]]]:
        raw = self._read(KEY_VESSEL_LIST)
        if raw is None:
            return None
        try:
            return _decode(KEY_VESSEL_LIST, raw, list)
        except CacheCorruptError as exc:
            logger.warning("%s; dropping cached vessel list", exc.message)
            self.invalidate_vessel_list()
            return None

    def put_vessel_list(self, rows: List[Dict[str, Any]]) -> bool:
        self._stage(KEY_VESSEL_LIST, rows)
        return self._commit("put vessel list")

    def patch_vessel_list_entry(self, vessel_id: str, tag: str, name: str | None) -> bool:
        """Update tag/name of one cached list row in place. False if not cached."""
        rows = self.get_vessel_list()
        if rows is None:
            return False
        patched = False
        for row in rows:
            if isinstance(row, dict) and str(row.get("id")) == str(vessel_id):
                row["vessel_tag"] = tag
                row["vessel_name"] = name
                patched = True
        if patched:
            return self.put_vessel_list(rows)
        return False

    def invalidate_vessel_list(self) -> None:
        self._remove_keys(KEY_VESSEL_LIST)

    # ------------------------------------------------------ current vessel id

    def get_current_vessel_id(self) -> Optional[str]:
        raw = self._read(KEY_CURRENT_VESSEL_ID)
        if raw is None:
            return None
        try:
            value = json.loads(raw)
        except ValueError:
            return None
        return str(value) if value else None

    def set_current_vessel_id(self, vessel_id: str | None) -> None:
        if vessel_id is None:
            self._remove_keys(KEY_CURRENT_VESSEL_ID)
            return
        self._stage(KEY_CURRENT_VESSEL_ID, vessel_id)
        self._commit("set current vessel id")

    # ---------------------------------------------------------- working copy

    def save_working_copy(self, vessel: Dict[str, Any], cases: List[Dict[str, Any]]) -> bool:
        self._stage(KEY_SESSION_VESSEL, vessel)
        for row in cases:
            case_type = row.get("case_type")
            if case_type:
                self._stage(KEY_SESSION_CASE.format(case_type=case_type), row)
        return self._commit("save working copy")

    def load_working_copy(self) -> Tuple[Optional[Dict[str, Any]], List[Dict[str, Any]]]:
        """Return the persisted session (vessel row, case rows); empty on corruption."""
        raw_vessel = self._read(KEY_SESSION_VESSEL)
        try:
            vessel = _decode(KEY_SESSION_VESSEL, raw_vessel, dict) if raw_vessel is not None else None
            cases: List[Dict[str, Any]] = []
            for case_type in CaseType:
                key = KEY_SESSION_CASE.format(case_type=case_type.value)
                raw = self._read(key)
                if raw is not None:
                    cases.append(_decode(key, raw, dict))
        except CacheCorruptError as exc:
            logger.warning("%s; discarding working copy", exc.message)
            self.clear_working_copy()
            return None, []
        return vessel, cases

    def clear_case_storage(self) -> None:
        """Drop the per-case working-copy record of every case type."""
        self._remove_keys(*(KEY_SESSION_CASE.format(case_type=ct.value) for ct in CaseType))

    def clear_working_copy(self) -> None:
        self._remove_keys(
            KEY_SESSION_VESSEL,
            *(KEY_SESSION_CASE.format(case_type=ct.value) for ct in CaseType),
        )
