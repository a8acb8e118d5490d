"""
Relief load calculations for the case types that have a calculator.

External fire follows NFPA 30 / API 521 (wetted area, heat input, relieving
flow = Q / heat of vaporization). Control valve failure takes a manually
entered flow and converts it to lb/h. Every result reports the ASME VIII
design flow (relieving flow / 0.9 for fire) rounded to whole lb/h.

Case inputs use the same keys the case pages store in ``flow_data``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional

from ..config.defaults import ASME_VIII_FLOW_FACTOR
from ..models import CaseType, HeadType, Vessel, VesselOrientation

NFPA_30 = "NFPA 30"
API_521 = "API 521"

# API 521 4.4.13.2.2: only wetted surface up to 25 ft above the fire source counts
API_MAX_HEIGHT_ABOVE_FIRE_FT = 25.0

# NFPA 30 22.7.3.2.3: 55 % of the total exposed area of a sphere
NFPA_SPHERE_AREA_FRACTION = 0.55

# (area min, area max or None, coefficient, exponent); Q = C * A^n, Btu/h
NFPA_HEAT_INPUT_FORMULAS = [
    (20.0, 200.0, 20000.0, 1.0),
    (200.0, 1000.0, 199300.0, 0.566),
    (1000.0, 2800.0, 963400.0, 0.338),
    (2800.0, None, 21000.0, 0.82),
]

API_COEFF_DRAINAGE = 21000.0
API_COEFF_NO_DRAINAGE = 34500.0
API_EXPONENT = 0.82

# Head areas (sq ft) by nominal diameter (in) for sizes above the formula range
HEMISPHERICAL_HEAD_AREAS = {
    8.625: 0.48, 10.75: 0.75, 12.75: 1.05, 14: 1.32, 16: 1.65, 18: 2.09,
    20: 2.59, 22: 3.13, 24: 3.72, 30: 5.82, 36: 8.38, 42: 11.40, 48: 14.89,
    54: 18.84, 60: 23.04, 66: 28.15, 72: 33.50, 78: 39.32, 84: 45.60,
    90: 52.35, 96: 59.56, 102: 67.23, 108: 75.38, 114: 83.99, 120: 93.06,
    126: 102.60, 132: 112.60, 138: 123.07, 144: 134.00, 156: 171.79,
    168: 199.24,
}

ELLIPTICAL_HEAD_AREAS = {
    4.5: 0.1524, 5.583: 0.233, 6.625: 0.33, 8.625: 0.56, 10.75: 0.87,
    12.75: 1.22, 14: 1.46, 16: 1.91, 18: 2.42, 20: 2.99, 22: 3.61, 24: 4.30,
    30: 6.72, 36: 9.68, 42: 13.18, 48: 17.21, 54: 21.79, 60: 26.88,
    66: 32.53, 72: 38.75, 78: 45.43, 84: 52.70, 90: 60.49, 96: 70.25,
    102: 77.69, 108: 87.15, 114: 98.18, 120: 107.53, 126: 118.62,
    132: 130.24, 138: 142.31, 144: 155.06, 156: 206.77, 168: 239.81,
}

# Manual flow entry
SCFH_PER_LBMOL = 379.0
LB_PER_KG = 0.453592
DEFAULT_GAS_MW = 28.0134  # nitrogen


@dataclass(slots=True)
class CaseComputation:
    """Result shape handed back to the case session."""

    flow: Optional[float]
    is_valid: bool
    reason: Optional[str] = None

    @classmethod
    def invalid(cls, reason: str) -> "CaseComputation":
        return cls(flow=None, is_valid=False, reason=reason)


def _num(inputs: Mapping[str, Any], key: str, default: float = 0.0) -> float:
    value = inputs.get(key)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


# ------------------------------------------------------------ geometry


def head_area_sqft(diameter_in: float, head_type: HeadType) -> float:
    """Surface area of one vessel head in sq ft (0 for non-standard sizes)."""
    if diameter_in <= 0:
        return 0.0
    if head_type == HeadType.FLAT:
        return (diameter_in / 2) ** 2 * math.pi / 144
    if head_type == HeadType.HEMISPHERICAL:
        if diameter_in <= 6.625:
            return diameter_in ** 2 / 144 * 1.57
        return HEMISPHERICAL_HEAD_AREAS.get(diameter_in, 0.0)
    return ELLIPTICAL_HEAD_AREAS.get(diameter_in, 0.0)


def fire_exposed_area_sqft(vessel: Vessel, fire_code: str) -> float:
    """Wetted surface exposed to a pool fire, per NFPA 30 or API 521 Table 4."""
    if vessel.diameter_in <= 0 or vessel.straight_side_height_in <= 0:
        return 0.0

    diameter_ft = vessel.diameter_in / 12
    height_ft = vessel.straight_side_height_in / 12
    radius_ft = diameter_ft / 2

    if vessel.orientation == VesselOrientation.SPHERE:
        total = 4 * math.pi * radius_ft ** 2
        if fire_code == NFPA_30:
            return total * NFPA_SPHERE_AREA_FRACTION
        # At least the whole bottom hemisphere, even above 25 ft
        return total / 2

    max_height = API_MAX_HEIGHT_ABOVE_FIRE_FT if fire_code == API_521 else math.inf
    height_limit = vessel.fire_source_elevation_ft + max_height
    effective_height = min(height_ft, height_limit)
    if effective_height <= 0:
        return 0.0

    area = 2 * math.pi * radius_ft * effective_height
    head = head_area_sqft(vessel.diameter_in, vessel.head_type)

    # Bottom head is shielded when it sits inside a support skirt
    if not vessel.head_protected_by_skirt:
        area += head

    if vessel.orientation == VesselOrientation.VERTICAL:
        if height_ft <= height_limit:
            area += head
    elif vessel.orientation == VesselOrientation.HORIZONTAL and effective_height >= height_ft:
        area += head

    return area


# ----------------------------------------------------------- heat input


def environmental_factor(storage_type: Optional[str]) -> float:
    """API 521 Table 5 F factor for bare, earth-covered and below-grade storage."""
    if storage_type == "below-grade":
        return 0.0
    if storage_type == "earth-covered":
        return 0.03
    return 1.0


def heat_input_btu_hr(
    fire_code: str,
    area_sqft: float,
    adequate_drainage: Optional[bool] = None,
    env_factor: float = 1.0,
) -> Optional[float]:
    """Total heat absorbed from the fire, or None when no formula applies."""
    if fire_code == NFPA_30:
        for low, high, coefficient, exponent in NFPA_HEAT_INPUT_FORMULAS:
            if area_sqft >= low and (high is None or area_sqft <= high):
                return coefficient * area_sqft ** exponent
        return None
    if fire_code == API_521:
        coefficient = API_COEFF_NO_DRAINAGE if adequate_drainage is False else API_COEFF_DRAINAGE
        return coefficient * env_factor * area_sqft ** API_EXPONENT
    return None


# ------------------------------------------------------- case calculators


def compute_external_fire(vessel: Vessel, inputs: Mapping[str, Any]) -> CaseComputation:
    fire_code = inputs.get("applicableFireCode") or NFPA_30
    heat_of_vaporization = _num(inputs, "heatOfVaporization")
    if heat_of_vaporization <= 0:
        return CaseComputation.invalid("No heat of vaporization")
    if vessel.diameter_in <= 0 or vessel.straight_side_height_in <= 0:
        return CaseComputation.invalid("Missing vessel data")

    area = fire_exposed_area_sqft(vessel, fire_code)
    if area <= 0:
        return CaseComputation.invalid("Invalid fire exposed area")

    drainage = inputs.get("hasAdequateDrainageFirefighting")
    if fire_code == API_521 and drainage is None:
        return CaseComputation.invalid("API 521 requires drainage selection")

    heat_input = heat_input_btu_hr(
        fire_code, area, drainage, environmental_factor(inputs.get("storageType"))
    )
    if not heat_input:
        if fire_code == NFPA_30 and area < 20:
            return CaseComputation.invalid(f"NFPA 30 requires area >= 20 sq ft (current: {area:.1f} sq ft)")
        return CaseComputation.invalid("Heat input calculation failed")

    reduction = _num(inputs, "nfpaReductionFactor", 1.0)
    if fire_code == NFPA_30 and 0 < reduction < 1.0:
        heat_input *= reduction

    relieving_flow = round(heat_input / heat_of_vaporization)
    return CaseComputation(flow=float(round(relieving_flow / ASME_VIII_FLOW_FACTOR)), is_valid=True)


def convert_to_lb_hr(value: float, unit: str, molecular_weight: float = DEFAULT_GAS_MW) -> float:
    if unit == "SCFH":
        return value / SCFH_PER_LBMOL * molecular_weight
    if unit == "kg/hr":
        return value / LB_PER_KG
    if unit == "kg/s":
        return value * 3600 / LB_PER_KG
    return value


def compute_control_valve_failure(vessel: Vessel, inputs: Mapping[str, Any]) -> CaseComputation:
    gas = inputs.get("gasProperties")
    molecular_weight = DEFAULT_GAS_MW
    if isinstance(gas, Mapping):
        molecular_weight = _num(gas, "molecularWeight", DEFAULT_GAS_MW) or DEFAULT_GAS_MW

    if "manualFlowRateRaw" in inputs:
        unit = inputs.get("manualFlowUnit") or "lb/hr"
        flow = convert_to_lb_hr(_num(inputs, "manualFlowRateRaw"), unit, molecular_weight)
    else:
        flow = _num(inputs, "manualFlowRate")

    if flow <= 0:
        return CaseComputation.invalid("No manual flow rate entered")
    return CaseComputation(flow=float(round(flow)), is_valid=True)


Calculator = Callable[[Vessel, Mapping[str, Any]], CaseComputation]

# Built-in calculators; callers wanting more pass their own mapping
DEFAULT_CALCULATORS: Mapping[CaseType, Calculator] = MappingProxyType(
    {
        CaseType.EXTERNAL_FIRE: compute_external_fire,
        CaseType.CONTROL_VALVE_FAILURE: compute_control_valve_failure,
    }
)


def compute_case(
    case_type: CaseType,
    vessel: Vessel,
    inputs: Mapping[str, Any],
    calculators: Optional[Mapping[CaseType, Calculator]] = None,
) -> CaseComputation:
    """Run the calculator ``calculators`` holds for ``case_type``."""
    registry = DEFAULT_CALCULATORS if calculators is None else calculators
    calculator = registry.get(case_type)
    if calculator is None:
        return CaseComputation.invalid(f"No calculator for {case_type.display_name}")
    return calculator(vessel, inputs)
