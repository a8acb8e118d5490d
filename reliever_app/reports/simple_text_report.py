"""
Simple text-based summary of a vessel's relief loads.
"""

from __future__ import annotations

from typing import Iterable, Optional

from reliever_app.models import CaseRecord, DesignBasisFlow, Vessel


def build_relief_summary_text(
    vessel: Vessel,
    cases: Iterable[CaseRecord],
    design_basis: Optional[DesignBasisFlow] = None,
) -> str:
    lines: list[str] = []
    lines.append(f"Vessel: {vessel.display_name} ({vessel.tag or 'no tag'})")
    lines.append(f"Orientation: {vessel.orientation.value}, head: {vessel.head_type.value}")
    lines.append(f"Diameter: {vessel.diameter_in:.2f} in")
    lines.append(f"Straight side: {vessel.straight_side_height_in:.2f} in")
    lines.append(f"Set pressure: {vessel.asme_set_pressure_psig:.1f} psig")
    lines.append("")
    for case in cases:
        if not case.is_selected:
            continue
        if case.is_calculated and case.design_flow_lb_hr is not None:
            lines.append(f"{case.case_name}: {case.design_flow_lb_hr:,.0f} lb/h")
        else:
            lines.append(f"{case.case_name}: not calculated")
    if design_basis is not None:
        lines.append("")
        lines.append(f"Design basis: {design_basis.flow_lb_hr:,.0f} lb/h ({design_basis.case_name})")
    return "\n".join(lines)
