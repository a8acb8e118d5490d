"""Pytest configuration and fixtures."""

from __future__ import annotations

import copy
import sys
import tempfile
import threading
from collections import Counter
from pathlib import Path

import pytest

# Ensure project root is on path when running tests
_project_root = Path(__file__).resolve().parents[2]
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from reliever_app.models import CaseType, HeadType, Vessel, VesselOrientation
from reliever_app.services.sync_errors import NetworkFailureError, VesselConflictError


_VESSEL_FIELDS = {
    "vesselTag": "vessel_tag",
    "vesselName": "vessel_name",
    "vesselOrientation": "vessel_orientation",
    "vesselDiameter": "vessel_diameter",
    "straightSideHeight": "straight_side_height",
    "headType": "head_type",
    "vesselDesignMawp": "vessel_design_mawp",
    "asmeSetPressure": "asme_set_pressure",
    "workingFluid": "working_fluid",
    "headProtectedBySkirt": "head_protected_by_skirt",
    "fireSourceElevation": "fire_source_elevation",
}

_CASE_FIELDS = {
    "caseType": "case_type",
    "caseName": "case_name",
    "flowData": "flow_data",
    "pressureData": "pressure_data",
    "isSelected": "is_selected",
    "isCalculated": "is_calculated",
    "asmeVIIIDesignFlow": "asme_viii_design_flow",
}


class FakeVesselApi:
    """In-memory stand-in for VesselApiClient, storing rows like the real service."""

    def __init__(self) -> None:
        self.vessels: dict[str, dict] = {}
        self.cases: dict[str, list] = {}
        self.calls: Counter = Counter()
        self.failures: dict[str, Exception] = {}
        self._next_id = 1
        self._clock = 0
        self._lock = threading.Lock()

    def _enter(self, name: str) -> None:
        with self._lock:
            self.calls[name] += 1
            error = self.failures.get(name)
        if error is not None:
            raise error

    def _touch(self) -> str:
        self._clock += 1
        return f"2026-01-01T00:{self._clock // 60:02d}:{self._clock % 60:02d}Z"

    def add_vessel(self, tag: str, name: str = "", **fields) -> str:
        """Seed a vessel directly (bypasses call counting)."""
        with self._lock:
            vessel_id = f"v{self._next_id}"
            self._next_id += 1
            row = {"id": vessel_id, "vessel_tag": tag, "vessel_name": name, "updated_at": self._touch()}
            row.update(fields)
            self.vessels[vessel_id] = row
        return vessel_id

    def list_vessels(self):
        self._enter("list_vessels")
        with self._lock:
            rows = sorted(self.vessels.values(), key=lambda r: r["updated_at"], reverse=True)
            return copy.deepcopy(rows)

    def fetch_vessel(self, vessel_id):
        self._enter("fetch_vessel")
        with self._lock:
            if vessel_id not in self.vessels:
                raise NetworkFailureError("Vessel not found", 404)
            return copy.deepcopy(self.vessels[vessel_id])

    def save_vessel(self, payload):
        self._enter("save_vessel")
        with self._lock:
            vessel_id = payload.get("id")
            tag = payload.get("vesselTag")
            for other_id, row in self.vessels.items():
                if other_id != vessel_id and row.get("vessel_tag") == tag:
                    raise VesselConflictError("Vessel tag already in use.", 409)
            if vessel_id is None:
                vessel_id = f"v{self._next_id}"
                self._next_id += 1
            row = {"id": vessel_id}
            for camel, snake in _VESSEL_FIELDS.items():
                row[snake] = payload.get(camel)
            row["updated_at"] = self._touch()
            self.vessels[vessel_id] = row
            return copy.deepcopy(row)

    def delete_vessel(self, vessel_id):
        self._enter("delete_vessel")
        with self._lock:
            if self.vessels.pop(vessel_id, None) is None:
                raise NetworkFailureError("Vessel not found", 404)
            self.cases.pop(vessel_id, None)

    def fetch_cases(self, vessel_id):
        self._enter("fetch_cases")
        with self._lock:
            return copy.deepcopy(self.cases.get(vessel_id, []))

    def save_cases(self, vessel_id, cases):
        self._enter("save_cases")
        with self._lock:
            rows = []
            for item in cases:
                rows.append({snake: copy.deepcopy(item.get(camel)) for camel, snake in _CASE_FIELDS.items()})
            self.cases[vessel_id] = rows
        return None


@pytest.fixture
def temp_db():
    """Create a temporary SQLite database and return its path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        path = Path(f.name)
    yield path
    try:
        path.unlink(missing_ok=True)
    except OSError:
        pass  # Windows may hold file; ignore cleanup failure


@pytest.fixture
def db_session(temp_db):
    """Provide a database session with initialized schema."""
    from sqlalchemy import create_engine
    from sqlalchemy.orm import sessionmaker
    from reliever_app.repositories.database import Base
    from reliever_app.repositories.cache_repository import CacheEntryORM  # noqa: F401

    engine = create_engine(f"sqlite:///{temp_db}", future=True)
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def cache(db_session):
    from reliever_app.repositories.cache_repository import CacheRepository

    return CacheRepository(db_session)


@pytest.fixture
def fake_api():
    return FakeVesselApi()


@pytest.fixture
def engine(cache, fake_api):
    """Sync engine over a fresh cache and an empty fake Vessel API."""
    from reliever_app.services.session_state import CaseSession, VesselSession
    from reliever_app.services.sync_engine import SyncEngine

    sync = SyncEngine(VesselSession(), CaseSession(), cache, fake_api)
    yield sync
    sync.close()


@pytest.fixture
def sample_vessel():
    """Vertical vessel used by the external fire scenario."""
    return Vessel(
        id=None,
        tag="V-101",
        name="Flash Drum",
        orientation=VesselOrientation.VERTICAL,
        diameter_in=120.0,
        straight_side_height_in=240.0,
        head_type=HeadType.HEMISPHERICAL,
        design_mawp_psig=150.0,
        asme_set_pressure_psig=150.0,
        working_fluid="Hexane",
    )


@pytest.fixture
def fire_inputs():
    """External fire flow data: NFPA 30, 150 Btu/lb, no reduction factor."""
    return {
        "applicableFireCode": "NFPA 30",
        "heatOfVaporization": 150.0,
        "nfpaReductionFactor": 1.0,
    }


@pytest.fixture
def all_case_types():
    return list(CaseType)
