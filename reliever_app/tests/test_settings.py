"""Tests for settings and bootstrap wiring."""

from __future__ import annotations

from reliever_app.config.settings import DEFAULT_API_TIMEOUT_S, Settings
from reliever_app.main import build_engine
from reliever_app.repositories import database
from reliever_app.repositories.cache_repository import CacheRepository
from reliever_app.services.auth import TokenAuth


class TestSettings:
    def test_for_data_dir(self, tmp_path):
        settings = Settings.for_data_dir(tmp_path / "data", "http://api.test/api/")
        assert settings.data_dir.is_dir()
        assert settings.db_path == tmp_path / "data" / "reliever_cache.db"
        assert settings.api_base_url == "http://api.test/api"
        assert settings.api_timeout_s == DEFAULT_API_TIMEOUT_S

    def test_default_reads_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("RELIEVER_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("RELIEVER_API_URL", "https://vessels.example.com/api/")
        monkeypatch.setenv("RELIEVER_API_TIMEOUT", "not-a-number")

        settings = Settings.default()

        assert settings.data_dir == tmp_path
        assert settings.api_base_url == "https://vessels.example.com/api"
        assert settings.api_timeout_s == DEFAULT_API_TIMEOUT_S


def test_build_engine_starts_with_defaults(tmp_path):
    settings = Settings.for_data_dir(tmp_path)
    engine = build_engine(settings, auth=TokenAuth("tok"))
    try:
        assert settings.db_path.exists()
        assert engine.vessels.current_vessel_id is None
        assert len(engine.cases.records()) == 7
        assert not engine.guard.busy
    finally:
        engine.close()


def test_init_database_returns_independent_factories(tmp_path):
    first = database.init_database(tmp_path / "one.db")
    second = database.init_database(tmp_path / "two.db")

    CacheRepository(first()).set_current_vessel_id("v1")

    assert CacheRepository(second()).get_current_vessel_id() is None
    assert CacheRepository(first()).get_current_vessel_id() == "v1"
    assert not hasattr(database, "SessionLocal")
