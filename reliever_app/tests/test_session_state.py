"""Tests for in-memory session state and the switch guard."""

from __future__ import annotations

import pytest

from reliever_app.models import CaseRecord, CaseType, HeadType, Vessel
from reliever_app.services.session_state import CaseSession, VesselSession
from reliever_app.services.switch_guard import SwitchGuard


def _calculated(session: CaseSession, case_type: CaseType, flow: float, selected: bool = True) -> None:
    session.set_selected(case_type, selected)
    session.update_case_result(case_type, flow, True)


class TestVesselSession:
    def test_update_field_coerces(self):
        session = VesselSession()
        session.update_field("diameter_in", "48")
        session.update_field("head_type", "flat")
        session.update_field("head_protected_by_skirt", 1)
        assert session.vessel.diameter_in == 48.0
        assert session.vessel.head_type == HeadType.FLAT
        assert session.vessel.head_protected_by_skirt is True

    def test_id_is_not_editable(self):
        with pytest.raises(ValueError):
            VesselSession().update_field("id", "v1")

    def test_listeners(self):
        session = VesselSession()
        calls = []
        unsubscribe = session.subscribe(lambda: calls.append(1))
        session.update_field("tag", "T-1")
        unsubscribe()
        session.update_field("tag", "T-2")
        assert calls == [1]

    def test_snapshot_is_a_copy(self):
        session = VesselSession(Vessel(id="v1", tag="A"))
        snapshot = session.snapshot()
        session.update_field("tag", "B")
        assert snapshot.tag == "A"
        assert session.current_vessel_id == "v1"

    def test_loading_message_cleared(self):
        session = VesselSession()
        session.set_loading(True, "Loading...")
        assert session.loading_message == "Loading..."
        session.set_loading(False)
        assert session.loading is False
        assert session.loading_message == ""


class TestCaseSession:
    def test_starts_with_seven_defaults(self):
        session = CaseSession()
        assert [r.case_type for r in session.records()] == list(CaseType)
        assert session.selected_count() == 0
        assert not session.has_calculated_results()

    def test_apply_replaces_and_fills(self):
        session = CaseSession()
        session.toggle_case(CaseType.BLOCKED_OUTLET)
        record = CaseRecord.default_for(CaseType.EXTERNAL_FIRE)
        record.is_selected = True

        session.apply_case_data({CaseType.EXTERNAL_FIRE: record})
        assert session.get(CaseType.EXTERNAL_FIRE).is_selected
        assert not session.get(CaseType.BLOCKED_OUTLET).is_selected
        assert len(session.records()) == 7

    def test_design_basis_is_max_of_selected_calculated(self):
        session = CaseSession()
        _calculated(session, CaseType.EXTERNAL_FIRE, 12000.0)
        _calculated(session, CaseType.BLOCKED_OUTLET, 30000.0)
        _calculated(session, CaseType.LIQUID_OVERFILL, 99000.0, selected=False)

        basis = session.design_basis_flow()
        assert basis.flow_lb_hr == 30000.0
        assert basis.case_type == CaseType.BLOCKED_OUTLET
        assert basis.case_name == "Blocked Outlet"

    def test_design_basis_tie_keeps_earliest(self):
        session = CaseSession()
        _calculated(session, CaseType.HYDRAULIC_EXPANSION, 500.0)
        _calculated(session, CaseType.CONTROL_VALVE_FAILURE, 500.0)
        assert session.design_basis_flow().case_type == CaseType.CONTROL_VALVE_FAILURE

    def test_design_basis_none(self):
        session = CaseSession()
        session.set_selected(CaseType.EXTERNAL_FIRE, True)
        assert session.design_basis_flow() is None

    def test_reset_case_keeps_selection(self):
        session = CaseSession()
        _calculated(session, CaseType.EXTERNAL_FIRE, 100.0)
        session.update_case_inputs(CaseType.EXTERNAL_FIRE, flow_data={"heatOfVaporization": 150})
        session.reset_case(CaseType.EXTERNAL_FIRE)

        record = session.get(CaseType.EXTERNAL_FIRE)
        assert record.is_selected
        assert not record.is_calculated
        assert record.flow_data == {}


class TestSwitchGuard:
    def test_single_holder(self):
        guard = SwitchGuard()
        assert guard.try_acquire("switch")
        assert guard.busy
        assert not guard.try_acquire("save")
        assert guard.holder == "switch"
        guard.release()
        assert not guard.busy
        assert guard.try_acquire("save")
