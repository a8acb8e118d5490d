"""
In-memory state of the currently open vessel and its seven cases.

The UI binds to these objects and edits them directly; the synchronization
engine is the only thing that replaces them wholesale (on load, delete and
reset). Listeners are told after every change so the engine can keep the
persisted working copy current.
"""

from __future__ import annotations

import copy
import dataclasses
from typing import Any, Callable, Dict, List, Optional

from ..models import CaseRecord, CaseType, DesignBasisFlow, HeadType, Vessel, VesselOrientation
from .normalization import default_cases, parse_head_type, parse_orientation

Listener = Callable[[], None]

_VESSEL_FIELDS = {f.name for f in dataclasses.fields(Vessel)}
_FLOAT_FIELDS = {
    "diameter_in",
    "straight_side_height_in",
    "design_mawp_psig",
    "asme_set_pressure_psig",
    "fire_source_elevation_ft",
}


class _Observable:
    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()


class VesselSession(_Observable):
    """The open vessel plus the loading indicator shown while syncing."""

    def __init__(self, vessel: Optional[Vessel] = None) -> None:
        super().__init__()
        self._vessel = vessel or Vessel()
        self.loading = False
        self.loading_message = ""

    @property
    def vessel(self) -> Vessel:
        return self._vessel

    @property
    def current_vessel_id(self) -> Optional[str]:
        return self._vessel.id

    @property
    def is_open(self) -> bool:
        """True when a saved vessel is open (an unsaved draft does not count)."""
        return self._vessel.id is not None

    def snapshot(self) -> Vessel:
        return dataclasses.replace(self._vessel)

    def load(self, vessel: Vessel) -> None:
        self._vessel = dataclasses.replace(vessel)
        self._notify()

    def set_id(self, vessel_id: Optional[str]) -> None:
        self._vessel.id = vessel_id
        self._notify()

    def update_field(self, field: str, value: Any) -> None:
        """Apply a single user edit to the open vessel."""
        if field not in _VESSEL_FIELDS or field == "id":
            raise ValueError(f"Unknown vessel field: {field}")
        if field == "orientation" and not isinstance(value, VesselOrientation):
            value = parse_orientation(value)
        elif field == "head_type" and not isinstance(value, HeadType):
            value = parse_head_type(value)
        elif field in _FLOAT_FIELDS:
            value = float(value or 0.0)
        elif field == "head_protected_by_skirt":
            value = bool(value)
        else:
            value = "" if value is None else str(value)
        setattr(self._vessel, field, value)
        self._notify()

    def reset(self) -> None:
        self._vessel = Vessel()
        self._notify()

    def set_loading(self, loading: bool, message: str = "") -> None:
        self.loading = loading
        self.loading_message = message if loading else ""


class CaseSession(_Observable):
    """Selection state and results of the seven cases of the open vessel."""

    def __init__(self) -> None:
        super().__init__()
        self._cases: Dict[CaseType, CaseRecord] = default_cases()

    def get(self, case_type: CaseType) -> CaseRecord:
        return self._cases[case_type]

    def records(self) -> List[CaseRecord]:
        return [self._cases[case_type] for case_type in CaseType]

    def snapshot(self) -> Dict[CaseType, CaseRecord]:
        return copy.deepcopy(self._cases)

    def apply_case_data(self, cases: Dict[CaseType, CaseRecord]) -> None:
        """Replace the whole case set; types missing from ``cases`` get defaults."""
        merged = default_cases()
        for case_type, record in cases.items():
            merged[case_type] = copy.deepcopy(record)
        self._cases = merged
        self._notify()

    def reset(self) -> None:
        self._cases = default_cases()
        self._notify()

    def toggle_case(self, case_type: CaseType) -> bool:
        record = self._cases[case_type]
        record.is_selected = not record.is_selected
        self._notify()
        return record.is_selected

    def set_selected(self, case_type: CaseType, selected: bool) -> None:
        self._cases[case_type].is_selected = bool(selected)
        self._notify()

    def update_case_inputs(
        self,
        case_type: CaseType,
        flow_data: Optional[Dict[str, Any]] = None,
        pressure_data: Optional[Dict[str, Any]] = None,
    ) -> None:
        record = self._cases[case_type]
        if flow_data is not None:
            record.flow_data = dict(flow_data)
        if pressure_data is not None:
            record.pressure_data = dict(pressure_data)
        self._notify()

    def update_case_result(
        self,
        case_type: CaseType,
        design_flow_lb_hr: Optional[float],
        is_calculated: bool,
        case_name: Optional[str] = None,
    ) -> None:
        record = self._cases[case_type]
        record.design_flow_lb_hr = design_flow_lb_hr
        record.is_calculated = is_calculated
        if case_name:
            record.case_name = case_name
        self._notify()

    def reset_case(self, case_type: CaseType) -> None:
        selected = self._cases[case_type].is_selected
        self._cases[case_type] = CaseRecord.default_for(case_type)
        self._cases[case_type].is_selected = selected
        self._notify()

    def design_basis_flow(self) -> Optional[DesignBasisFlow]:
        """Highest design flow among selected, calculated cases (None if there is none)."""
        best: Optional[CaseRecord] = None
        for record in self.records():
            if not (record.is_selected and record.is_calculated):
                continue
            if record.design_flow_lb_hr is None:
                continue
            if best is None or record.design_flow_lb_hr > best.design_flow_lb_hr:
                best = record
        if best is None:
            return None
        return DesignBasisFlow(
            flow_lb_hr=best.design_flow_lb_hr,
            case_type=best.case_type,
            case_name=best.case_name or best.case_type.display_name,
        )

    def selected_count(self) -> int:
        return sum(1 for record in self._cases.values() if record.is_selected)

    def has_calculated_results(self) -> bool:
        return any(record.is_calculated for record in self._cases.values())
