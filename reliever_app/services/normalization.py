"""
Conversion between the Vessel API wire format and domain objects.

Every path by which outside data reaches the session (remote fetch, cache
read, working-copy restore) goes through these functions, so missing or
malformed fields are filled with defaults in exactly one place.

Rows (what the API returns and the cache stores) use snake_case column
names; request bodies use the camelCase names the API accepts.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..models import CaseRecord, CaseType, HeadType, Vessel, VesselOrientation, VesselSummary

logger = logging.getLogger(__name__)

# Case ids renamed since older saves
_LEGACY_CASE_TYPES = {
    "nitrogen-control": CaseType.CONTROL_VALVE_FAILURE,
}


def _to_float(value: Any, default: float = 0.0) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _to_optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_str(value: Any) -> str:
    return "" if value is None else str(value)


def _to_dict(value: Any) -> Dict[str, Any]:
    return dict(value) if isinstance(value, Mapping) else {}


def parse_orientation(value: Any) -> VesselOrientation:
    text = _to_str(value).strip().lower()
    for orientation in VesselOrientation:
        if orientation.value == text:
            return orientation
    return VesselOrientation.VERTICAL


def parse_head_type(value: Any) -> HeadType:
    text = _to_str(value).strip().lower()
    for head in HeadType:
        if head.value.lower() == text:
            return head
    return HeadType.HEMISPHERICAL


def parse_case_type(value: Any) -> Optional[CaseType]:
    text = _to_str(value).strip()
    if text in _LEGACY_CASE_TYPES:
        return _LEGACY_CASE_TYPES[text]
    try:
        return CaseType(text)
    except ValueError:
        return None


# ----------------------------------------------------------------- vessels


def vessel_from_row(row: Optional[Mapping[str, Any]]) -> Vessel:
    """Build a Vessel from an API/cache row, merging every field with defaults."""
    if not row:
        return Vessel()
    raw_id = row.get("id")
    return Vessel(
        id=str(raw_id) if raw_id not in (None, "") else None,
        tag=_to_str(row.get("vessel_tag")),
        name=_to_str(row.get("vessel_name")),
        orientation=parse_orientation(row.get("vessel_orientation")),
        diameter_in=_to_float(row.get("vessel_diameter")),
        straight_side_height_in=_to_float(row.get("straight_side_height")),
        head_type=parse_head_type(row.get("head_type")),
        design_mawp_psig=_to_float(row.get("vessel_design_mawp")),
        asme_set_pressure_psig=_to_float(row.get("asme_set_pressure")),
        working_fluid=_to_str(row.get("working_fluid")),
        head_protected_by_skirt=bool(row.get("head_protected_by_skirt") or False),
        fire_source_elevation_ft=_to_float(row.get("fire_source_elevation")),
    )


def vessel_to_row(vessel: Vessel) -> Dict[str, Any]:
    return {
        "id": vessel.id,
        "vessel_tag": vessel.tag,
        "vessel_name": vessel.name or None,
        "vessel_orientation": vessel.orientation.value,
        "vessel_diameter": vessel.diameter_in,
        "straight_side_height": vessel.straight_side_height_in,
        "head_type": vessel.head_type.value,
        "vessel_design_mawp": vessel.design_mawp_psig,
        "asme_set_pressure": vessel.asme_set_pressure_psig,
        "working_fluid": vessel.working_fluid,
        "head_protected_by_skirt": vessel.head_protected_by_skirt,
        "fire_source_elevation": vessel.fire_source_elevation_ft,
    }


def vessel_to_request(vessel: Vessel) -> Dict[str, Any]:
    """Request body for POST /vessels (id None asks the API to assign one)."""
    return {
        "id": vessel.id,
        "vesselTag": vessel.tag,
        "vesselName": vessel.name or None,
        "vesselOrientation": vessel.orientation.value,
        "vesselDiameter": vessel.diameter_in,
        "straightSideHeight": vessel.straight_side_height_in,
        "headType": vessel.head_type.value,
        "vesselDesignMawp": vessel.design_mawp_psig,
        "asmeSetPressure": vessel.asme_set_pressure_psig,
        "workingFluid": vessel.working_fluid,
        "headProtectedBySkirt": vessel.head_protected_by_skirt,
        "fireSourceElevation": vessel.fire_source_elevation_ft,
    }


def summary_from_row(row: Any) -> Optional[VesselSummary]:
    if not isinstance(row, Mapping) or row.get("id") in (None, ""):
        return None
    return VesselSummary(
        id=str(row["id"]),
        tag=_to_str(row.get("vessel_tag")),
        name=_to_str(row.get("vessel_name")),
        updated_at=row.get("updated_at"),
    )


def summaries_from_rows(rows: Iterable[Any]) -> List[VesselSummary]:
    summaries = []
    for row in rows or []:
        summary = summary_from_row(row)
        if summary is not None:
            summaries.append(summary)
    return summaries


# ------------------------------------------------------------------- cases


def default_cases() -> Dict[CaseType, CaseRecord]:
    return {case_type: CaseRecord.default_for(case_type) for case_type in CaseType}


def case_from_row(case_type: CaseType, row: Mapping[str, Any]) -> CaseRecord:
    return CaseRecord(
        case_type=case_type,
        case_name=_to_str(row.get("case_name")) or case_type.display_name,
        is_selected=bool(row.get("is_selected") or False),
        flow_data=_to_dict(row.get("flow_data")),
        pressure_data=_to_dict(row.get("pressure_data")),
        design_flow_lb_hr=_to_optional_float(row.get("asme_viii_design_flow")),
        is_calculated=bool(row.get("is_calculated") or False),
    )


def cases_from_rows(rows: Optional[Iterable[Any]]) -> Dict[CaseType, CaseRecord]:
    """Build the full seven-case set; types absent from ``rows`` get defaults."""
    cases = default_cases()
    for row in rows or []:
        if not isinstance(row, Mapping):
            continue
        case_type = parse_case_type(row.get("case_type"))
        if case_type is None:
            logger.debug("Ignoring unknown case type %r", row.get("case_type"))
            continue
        cases[case_type] = case_from_row(case_type, row)
    return cases


def case_to_row(case: CaseRecord) -> Dict[str, Any]:
    return {
        "case_type": case.case_type.value,
        "case_name": case.case_name or case.case_type.display_name,
        "is_selected": case.is_selected,
        "flow_data": dict(case.flow_data),
        "pressure_data": dict(case.pressure_data),
        "asme_viii_design_flow": case.design_flow_lb_hr,
        "is_calculated": case.is_calculated,
    }


def cases_to_rows(cases: Mapping[CaseType, CaseRecord]) -> List[Dict[str, Any]]:
    return [case_to_row(cases[case_type]) for case_type in CaseType if case_type in cases]


def cases_to_request(cases: Mapping[CaseType, CaseRecord]) -> List[Dict[str, Any]]:
    """Request body items for POST /vessels/{id}/cases, in canonical order."""
    payload = []
    for case_type in CaseType:
        case = cases.get(case_type) or CaseRecord.default_for(case_type)
        payload.append(
            {
                "caseType": case_type.value,
                "caseName": case.case_name or case_type.display_name,
                "flowData": dict(case.flow_data),
                "pressureData": dict(case.pressure_data),
                "isSelected": case.is_selected,
                "isCalculated": case.is_calculated,
                "asmeVIIIDesignFlow": case.design_flow_lb_hr,
            }
        )
    return payload
