"""
Synchronization engine: keeps the open vessel consistent across session
state, the local cache store and the remote Vessel API.

Every public operation is a coroutine returning a SyncOutcome. Anticipated
failures (auth, network, contention) never escape as exceptions; the UI
inspects the outcome and decides whether to alert.

Remote calls are blocking ``requests`` calls and run in worker threads.
Session state and the cache store are only touched from the event loop.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import re
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional

from ..config.defaults import (
    DEFAULT_VESSEL_NAME,
    MSG_CREATING,
    MSG_DELETING,
    MSG_LOADING,
    MSG_SAVING,
    UNSAVED_VESSEL,
    UNTITLED_TAG_PATTERN,
    UNTITLED_TAG_PREFIX,
    UNTITLED_TAG_WIDTH,
)
from ..models import CaseRecord, CaseType, Vessel, VesselSummary
from ..repositories.cache_repository import CacheRepository
from .auth import AuthProvider
from .normalization import (
    cases_from_rows,
    cases_to_request,
    cases_to_rows,
    summaries_from_rows,
    vessel_from_row,
    vessel_to_request,
    vessel_to_row,
)
from .relief_calculations import Calculator, CaseComputation, compute_case
from .session_state import CaseSession, VesselSession
from .switch_guard import SwitchGuard
from .sync_errors import ConcurrentOperationError, OutcomeStatus, SyncError, SyncOutcome
from .vessel_api import VesselApiClient

logger = logging.getLogger(__name__)

_UNTITLED_TAG_RE = re.compile(UNTITLED_TAG_PATTERN)


def generate_untitled_tag(existing_tags: Iterable[Optional[str]]) -> str:
    """First ``untitled-NN`` tag not already used by the owner."""
    taken = {tag for tag in existing_tags if tag and _UNTITLED_TAG_RE.match(tag)}
    index = 1
    while True:
        candidate = f"{UNTITLED_TAG_PREFIX}{index:0{UNTITLED_TAG_WIDTH}d}"
        if candidate not in taken:
            return candidate
        index += 1


class SyncEngine:
    """Coordinates switch, save, create and delete for one user session."""

    def __init__(
        self,
        vessel_session: VesselSession,
        case_session: CaseSession,
        cache: CacheRepository,
        remote: VesselApiClient,
        calculators: Optional[Mapping[CaseType, Calculator]] = None,
    ) -> None:
        self.vessels = vessel_session
        self.cases = case_session
        self._cache = cache
        self._remote = remote
        self._calculators = calculators
        self.guard = SwitchGuard()

        # Bulk replacements write the working copy once, after both halves land
        self._write_through_paused = False
        self._unsubscribe = [
            vessel_session.subscribe(self._write_working_copy),
            case_session.subscribe(self._write_working_copy),
        ]

    def close(self) -> None:
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe = []

    def attach_auth(self, auth: AuthProvider) -> Callable[[], None]:
        """Drop the cached vessel list whenever the signed-in user changes."""

        def on_change(token: Optional[str]) -> None:
            logger.info("Auth changed; dropping cached vessel list")
            self._cache.invalidate_vessel_list()

        return auth.on_auth_change(on_change)

    # ------------------------------------------------------------ plumbing

    async def _call_remote(self, func: Callable[..., Any], *args: Any) -> Any:
        return await asyncio.to_thread(func, *args)

    async def _show_loading(self, message: str) -> None:
        self.vessels.set_loading(True, message)
        # Let the UI paint the indicator before the first remote call
        await asyncio.sleep(0)

    async def _guarded(
        self, operation: str, body: Callable[[], Awaitable[SyncOutcome]]
    ) -> SyncOutcome:
        if not self.guard.try_acquire(operation):
            return SyncOutcome.rejected(ConcurrentOperationError(operation, self.guard.holder))
        try:
            return await body()
        except SyncError as exc:
            logger.error("%s failed: %s", operation, exc.message)
            return SyncOutcome.failed(exc, self.vessels.current_vessel_id)
        except Exception as exc:
            logger.exception("Unexpected error during %s", operation)
            return SyncOutcome.failed(
                SyncError(f"{operation} failed unexpectedly: {exc}"),
                self.vessels.current_vessel_id,
            )
        finally:
            self.vessels.set_loading(False)
            self.guard.release()

    def _write_working_copy(self) -> None:
        if self._write_through_paused:
            return
        self._cache.save_working_copy(
            vessel_to_row(self.vessels.vessel),
            cases_to_rows(self.cases.snapshot()),
        )

    def _apply_session(self, vessel: Vessel, cases: Dict[CaseType, CaseRecord]) -> None:
        self._write_through_paused = True
        try:
            self.vessels.load(vessel)
            self.cases.apply_case_data(cases)
        finally:
            self._write_through_paused = False
        self._write_working_copy()

    def _reset_session(self) -> None:
        self._write_through_paused = True
        try:
            self.vessels.reset()
            self.cases.reset()
        finally:
            self._write_through_paused = False
        self._cache.clear_working_copy()

    def _apply_rows(self, vessel_id: str, vessel_row: Dict[str, Any], case_rows: List[Any]) -> None:
        vessel = vessel_from_row(vessel_row)
        vessel.id = vessel_id
        self._apply_session(vessel, cases_from_rows(case_rows))
        self._cache.set_current_vessel_id(vessel_id)

    def _adopt_id(self, vessel_id: str) -> None:
        if self.vessels.current_vessel_id != vessel_id:
            self.vessels.set_id(vessel_id)
        self._cache.set_current_vessel_id(vessel_id)

    # --------------------------------------------------------- vessel list

    async def _fetch_vessel_list(self) -> List[VesselSummary]:
        rows = await self._call_remote(self._remote.list_vessels)
        self._cache.put_vessel_list(rows)
        return summaries_from_rows(rows)

    async def refresh_vessel_list(self) -> List[VesselSummary]:
        """Fetch the owner's vessels and cache them; falls back to the cached list."""
        try:
            return await self._fetch_vessel_list()
        except SyncError as exc:
            logger.warning("Could not refresh vessel list: %s", exc.message)
            return summaries_from_rows(self._cache.get_vessel_list() or [])

    async def vessel_list(self) -> List[VesselSummary]:
        """The list the vessel dropdown is built from (cached when available)."""
        rows = self._cache.get_vessel_list()
        if rows is not None:
            return summaries_from_rows(rows)
        return await self.refresh_vessel_list()

    # ---------------------------------------------------------------- save

    async def _save(
        self,
        silent: bool,
        vessel: Optional[Vessel] = None,
        cases: Optional[Dict[CaseType, CaseRecord]] = None,
        vessel_id: Optional[str] = None,
    ) -> SyncOutcome:
        saving_current = vessel is None
        snapshot = vessel if vessel is not None else self.vessels.snapshot()
        case_snapshot = cases if cases is not None else self.cases.snapshot()
        if vessel_id is not None:
            snapshot = dataclasses.replace(snapshot, id=vessel_id)

        if not silent:
            await self._show_loading(MSG_SAVING)
        try:
            saved_row = await self._call_remote(self._remote.save_vessel, vessel_to_request(snapshot))
            resolved_id = str(saved_row["id"])
            if saving_current:
                # Vessel exists remotely from here on; a retry must update it
                self._adopt_id(resolved_id)
            echoed = await self._call_remote(
                self._remote.save_cases, resolved_id, cases_to_request(case_snapshot)
            )
        except SyncError as exc:
            if silent:
                logger.warning("Auto-save of vessel %s failed: %s", snapshot.id, exc.message)
            else:
                logger.error("Saving vessel %s failed: %s", snapshot.id or "(new)", exc.message)
            return SyncOutcome.failed(exc, self.vessels.current_vessel_id if saving_current else snapshot.id)
        finally:
            if not silent:
                self.vessels.set_loading(False)

        case_rows = echoed if echoed is not None else cases_to_rows(case_snapshot)
        self._cache.put(resolved_id, saved_row, case_rows)

        if silent:
            if not self._cache.patch_vessel_list_entry(resolved_id, snapshot.tag, snapshot.name or None):
                # Not in the cached list (new vessel); refetch on next use
                self._cache.invalidate_vessel_list()
        else:
            try:
                await self._fetch_vessel_list()
            except SyncError as exc:
                logger.warning("Vessel %s saved but list refresh failed: %s", resolved_id, exc.message)
                self._cache.invalidate_vessel_list()

        logger.info("Saved vessel %s%s", resolved_id, " (auto-save)" if silent else "")
        return SyncOutcome.success(resolved_id)

    async def save(
        self,
        silent: bool = False,
        vessel: Optional[Vessel] = None,
        vessel_id: Optional[str] = None,
        cases: Optional[Dict[CaseType, CaseRecord]] = None,
    ) -> SyncOutcome:
        """Save the open vessel (or an explicit snapshot) with its seven cases."""
        return await self._guarded(
            "save", lambda: self._save(silent, vessel=vessel, cases=cases, vessel_id=vessel_id)
        )

    async def _save_and_leave_current(self) -> None:
        previous_id = self.vessels.current_vessel_id
        if previous_id is None:
            return
        await self._save(
            silent=True,
            vessel=self.vessels.snapshot(),
            cases=self.cases.snapshot(),
            vessel_id=previous_id,
        )
        # Next visit must come from the remote, whatever the save did
        self._cache.invalidate(previous_id)

    # -------------------------------------------------------------- switch

    async def _load_vessel(self, vessel_id: str, use_cache: bool = True) -> SyncOutcome:
        entry = self._cache.get(vessel_id) if use_cache else None
        if entry is not None:
            logger.debug("Cache hit for vessel %s", vessel_id)
            self._apply_rows(vessel_id, entry.vessel, entry.cases)
            self.vessels.set_loading(False)

        try:
            vessel_row, case_rows = await asyncio.gather(
                self._call_remote(self._remote.fetch_vessel, vessel_id),
                self._call_remote(self._remote.fetch_cases, vessel_id),
            )
        except SyncError as exc:
            if entry is not None:
                logger.warning("Showing cached vessel %s; refresh failed: %s", vessel_id, exc.message)
                return SyncOutcome.success(vessel_id, from_cache=True, stale=True)
            logger.error("Loading vessel %s failed: %s", vessel_id, exc.message)
            return SyncOutcome.failed(exc, vessel_id)

        self._cache.put(vessel_id, vessel_row, case_rows)
        if entry is None:
            self._apply_rows(vessel_id, vessel_row, case_rows)
        elif entry.vessel != vessel_row or entry.cases != case_rows:
            # The cached view stays on screen until the next switch
            logger.info("Vessel %s changed remotely; cache refreshed", vessel_id)
        return SyncOutcome.success(vessel_id, from_cache=entry is not None)

    async def _switch(self, target_id: str) -> SyncOutcome:
        await self._show_loading(MSG_LOADING)
        await self._save_and_leave_current()
        return await self._load_vessel(target_id)

    async def switch_to(self, target_id: str) -> SyncOutcome:
        """Make ``target_id`` the open vessel, auto-saving the one being left."""
        current_id = self.vessels.current_vessel_id
        if target_id == UNSAVED_VESSEL or target_id == current_id:
            return SyncOutcome.noop(current_id)
        return await self._guarded("switch", lambda: self._switch(target_id))

    # -------------------------------------------------------------- create

    async def _create(self, name: Optional[str]) -> SyncOutcome:
        await self._show_loading(MSG_CREATING)
        await self._save_and_leave_current()
        try:
            summaries = await self._fetch_vessel_list()
            tag = generate_untitled_tag(summary.tag for summary in summaries)
            draft = Vessel(tag=tag, name=name or DEFAULT_VESSEL_NAME)
            saved_row = await self._call_remote(self._remote.save_vessel, vessel_to_request(draft))
        except SyncError as exc:
            logger.error("Creating vessel failed: %s", exc.message)
            return SyncOutcome.failed(exc, self.vessels.current_vessel_id)

        new_id = str(saved_row["id"])
        logger.info("Created vessel %s (%s)", new_id, tag)
        try:
            await self._fetch_vessel_list()
        except SyncError as exc:
            logger.warning("Vessel list refresh after create failed: %s", exc.message)
            self._cache.invalidate_vessel_list()
        return await self._load_vessel(new_id)

    async def create_vessel(self, name: Optional[str] = None) -> SyncOutcome:
        return await self._guarded("create", lambda: self._create(name))

    # -------------------------------------------------------------- delete

    async def _delete(self, vessel_id: str) -> SyncOutcome:
        await self._show_loading(MSG_DELETING)
        was_current = vessel_id == self.vessels.current_vessel_id
        try:
            await self._call_remote(self._remote.delete_vessel, vessel_id)
        except SyncError as exc:
            logger.error("Deleting vessel %s failed: %s", vessel_id, exc.message)
            return SyncOutcome.failed(exc, self.vessels.current_vessel_id)

        logger.info("Deleted vessel %s", vessel_id)
        self._cache.invalidate(vessel_id)
        self._cache.invalidate_vessel_list()

        if not was_current:
            await self.refresh_vessel_list()
            return SyncOutcome.success(self.vessels.current_vessel_id)

        self._cache.set_current_vessel_id(None)
        self._cache.clear_case_storage()
        self._reset_session()

        try:
            remaining = await self._fetch_vessel_list()
        except SyncError as exc:
            logger.error("Vessel list fetch after delete failed: %s", exc.message)
            return SyncOutcome(OutcomeStatus.FAILED, error=exc, navigate_home=True)
        if not remaining:
            return SyncOutcome.success(None, navigate_home=True)
        # Fallback selection always comes from the remote
        return await self._load_vessel(remaining[0].id, use_cache=False)

    async def delete_vessel(self, vessel_id: str) -> SyncOutcome:
        return await self._guarded("delete", lambda: self._delete(vessel_id))

    # ---------------------------------------------------- session restore

    def restore_session(self) -> SyncOutcome:
        """Rebuild session state from the persisted working copy at startup."""
        vessel_row, case_rows = self._cache.load_working_copy()
        current_id = self._cache.get_current_vessel_id()

        if vessel_row is None and current_id is not None:
            entry = self._cache.get(current_id)
            if entry is not None:
                vessel_row, case_rows = entry.vessel, entry.cases

        vessel = vessel_from_row(vessel_row)
        if vessel_row is not None and vessel.id is None and current_id is not None:
            vessel.id = current_id
        self._apply_session(vessel, cases_from_rows(case_rows))
        self._cache.set_current_vessel_id(vessel.id)

        logger.info("Restored session for vessel %s", vessel.id or "(unsaved)")
        return SyncOutcome.success(vessel.id, from_cache=vessel_row is not None)

    # ------------------------------------------------------- case results

    def record_case_result(self, case_type: CaseType, computation: CaseComputation) -> None:
        """Store a calculator result on the case; invalid results clear it."""
        if computation.is_valid and computation.flow is not None:
            self.cases.update_case_result(case_type, computation.flow, True)
        else:
            self.cases.update_case_result(case_type, None, False)

    def calculate_case(self, case_type: CaseType) -> CaseComputation:
        """Run the registered calculator for a case against the open vessel."""
        record = self.cases.get(case_type)
        inputs: Dict[str, Any] = {**record.pressure_data, **record.flow_data}
        computation = compute_case(case_type, self.vessels.vessel, inputs, self._calculators)
        self.record_case_result(case_type, computation)
        return computation

