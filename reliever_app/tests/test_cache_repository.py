"""Tests for the local cache store."""

from __future__ import annotations

from reliever_app.repositories.cache_repository import CacheEntryORM


def _corrupt(db_session, key: str) -> None:
    db_session.get(CacheEntryORM, key).payload = "{not json"
    db_session.commit()


class TestVesselEntries:
    def test_put_and_get(self, cache):
        assert cache.put("v1", {"id": "v1", "vessel_tag": "T-1"}, [{"case_type": "external-fire"}])
        entry = cache.get("v1")
        assert entry is not None
        assert entry.vessel["vessel_tag"] == "T-1"
        assert entry.cases == [{"case_type": "external-fire"}]

    def test_miss(self, cache):
        assert cache.get("missing") is None

    def test_put_overwrites(self, cache):
        cache.put("v1", {"id": "v1", "vessel_tag": "A"}, [])
        cache.put("v1", {"id": "v1", "vessel_tag": "B"}, [])
        assert cache.get("v1").vessel["vessel_tag"] == "B"

    def test_invalidate(self, cache):
        cache.put("v1", {"id": "v1"}, [])
        cache.invalidate("v1")
        assert cache.get("v1") is None

    def test_half_entry_is_a_miss(self, cache, db_session):
        cache.put("v1", {"id": "v1"}, [])
        db_session.delete(db_session.get(CacheEntryORM, "cache:cases:v1"))
        db_session.commit()
        assert cache.get("v1") is None

    def test_corrupt_entry_is_purged(self, cache, db_session):
        cache.put("v1", {"id": "v1"}, [])
        _corrupt(db_session, "cache:cases:v1")

        assert cache.get("v1") is None
        assert db_session.get(CacheEntryORM, "cache:vessel:v1") is None
        assert db_session.get(CacheEntryORM, "cache:cases:v1") is None

    def test_wrong_shape_is_corrupt(self, cache, db_session):
        cache.put("v1", {"id": "v1"}, [])
        db_session.get(CacheEntryORM, "cache:vessel:v1").payload = "[1, 2]"
        db_session.commit()
        assert cache.get("v1") is None


class TestVesselList:
    def test_round_trip_and_patch(self, cache):
        rows = [
            {"id": "v2", "vessel_tag": "B", "vessel_name": "Bravo"},
            {"id": "v1", "vessel_tag": "A", "vessel_name": "Alpha"},
        ]
        cache.put_vessel_list(rows)
        assert cache.patch_vessel_list_entry("v1", "A-2", "Alpha 2")

        cached = cache.get_vessel_list()
        assert [r["id"] for r in cached] == ["v2", "v1"]
        assert cached[1]["vessel_tag"] == "A-2"
        assert cached[1]["vessel_name"] == "Alpha 2"

    def test_patch_unknown_id(self, cache):
        cache.put_vessel_list([{"id": "v1", "vessel_tag": "A"}])
        assert cache.patch_vessel_list_entry("v9", "X", None) is False

    def test_patch_without_list(self, cache):
        assert cache.patch_vessel_list_entry("v1", "X", None) is False

    def test_invalidate(self, cache):
        cache.put_vessel_list([])
        assert cache.get_vessel_list() == []
        cache.invalidate_vessel_list()
        assert cache.get_vessel_list() is None

    def test_corrupt_list_is_dropped(self, cache, db_session):
        cache.put_vessel_list([])
        _corrupt(db_session, "cache:vessel-list")
        assert cache.get_vessel_list() is None


class TestCurrentVesselId:
    def test_set_get_clear(self, cache):
        assert cache.get_current_vessel_id() is None
        cache.set_current_vessel_id("v3")
        assert cache.get_current_vessel_id() == "v3"
        cache.set_current_vessel_id(None)
        assert cache.get_current_vessel_id() is None


class TestWorkingCopy:
    def test_save_and_load(self, cache):
        vessel = {"id": "v1", "vessel_tag": "A"}
        cases = [
            {"case_type": "external-fire", "is_selected": True},
            {"case_type": "liquid-overfill", "is_selected": False},
        ]
        cache.save_working_copy(vessel, cases)

        loaded_vessel, loaded_cases = cache.load_working_copy()
        assert loaded_vessel == vessel
        assert [c["case_type"] for c in loaded_cases] == ["external-fire", "liquid-overfill"]

    def test_empty(self, cache):
        assert cache.load_working_copy() == (None, [])

    def test_corrupt_case_discards_everything(self, cache, db_session):
        cache.save_working_copy({"id": "v1"}, [{"case_type": "external-fire"}])
        _corrupt(db_session, "session:case:external-fire")

        assert cache.load_working_copy() == (None, [])
        assert db_session.get(CacheEntryORM, "session:vessel") is None

    def test_clear_case_storage_keeps_vessel(self, cache):
        cache.save_working_copy({"id": "v1"}, [{"case_type": "external-fire"}])
        cache.clear_case_storage()
        vessel, cases = cache.load_working_copy()
        assert vessel == {"id": "v1"}
        assert cases == []
