from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class CaseType(Enum):
    """The seven overpressure scenarios every vessel carries (canonical order)."""

    EXTERNAL_FIRE = "external-fire"
    CONTROL_VALVE_FAILURE = "control-valve-failure"
    LIQUID_OVERFILL = "liquid-overfill"
    BLOCKED_OUTLET = "blocked-outlet"
    COOLING_REFLUX_FAILURE = "cooling-reflux-failure"
    HYDRAULIC_EXPANSION = "hydraulic-expansion"
    HEAT_EXCHANGER_TUBE_RUPTURE = "heat-exchanger-tube-rupture"

    @property
    def display_name(self) -> str:
        return CASE_DISPLAY_NAMES[self]


CASE_DISPLAY_NAMES: Dict[CaseType, str] = {
    CaseType.EXTERNAL_FIRE: "External Fire",
    CaseType.CONTROL_VALVE_FAILURE: "Control Valve Failure (Gas)",
    CaseType.LIQUID_OVERFILL: "Liquid Overfill",
    CaseType.BLOCKED_OUTLET: "Blocked Outlet",
    CaseType.COOLING_REFLUX_FAILURE: "Cooling/Reflux Failure",
    CaseType.HYDRAULIC_EXPANSION: "Hydraulic Expansion",
    CaseType.HEAT_EXCHANGER_TUBE_RUPTURE: "Heat Exchanger Tube Rupture",
}


@dataclass(slots=True)
class CaseRecord:
    case_type: CaseType = CaseType.EXTERNAL_FIRE
    case_name: str = ""

    # Included in the relief-load summary (design basis) or not
    is_selected: bool = False

    # Scenario inputs; opaque to the session core
    flow_data: Dict[str, Any] = field(default_factory=dict)
    pressure_data: Dict[str, Any] = field(default_factory=dict)

    # Result of the last calculation (ASME VIII design flow, lb/h)
    design_flow_lb_hr: float | None = None
    is_calculated: bool = False

    @classmethod
    def default_for(cls, case_type: CaseType) -> "CaseRecord":
        return cls(case_type=case_type, case_name=case_type.display_name)


@dataclass(slots=True)
class DesignBasisFlow:
    """Largest design flow among selected, calculated cases."""

    flow_lb_hr: float
    case_type: CaseType
    case_name: str
