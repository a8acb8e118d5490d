"""
Wiring for the reliever session core.

The UI shell calls ``build_engine`` once at startup and drives the returned
engine; nothing here owns an event loop or a window.
"""

from __future__ import annotations

import logging
from typing import Optional

from reliever_app.config.settings import Settings, init_logging
from reliever_app.repositories.cache_repository import CacheRepository
from reliever_app.repositories.database import init_database
from reliever_app.services.auth import AuthProvider, TokenAuth
from reliever_app.services.session_state import CaseSession, VesselSession
from reliever_app.services.sync_engine import SyncEngine
from reliever_app.services.vessel_api import VesselApiClient

logger = logging.getLogger(__name__)


def build_engine(
    settings: Optional[Settings] = None,
    auth: Optional[AuthProvider] = None,
    restore: bool = True,
) -> SyncEngine:
    """Bootstraps settings, logging, the cache database and the sync engine."""
    settings = settings or Settings.default()
    init_logging(settings)

    session_factory = init_database(settings.db_path)
    cache = CacheRepository(session_factory())

    auth = auth or TokenAuth()
    remote = VesselApiClient(settings.api_base_url, auth, timeout_s=settings.api_timeout_s)

    engine = SyncEngine(VesselSession(), CaseSession(), cache, remote)
    engine.attach_auth(auth)
    if restore:
        outcome = engine.restore_session()
        logger.info("Session ready (vessel %s)", outcome.vessel_id or "unsaved")
    return engine
