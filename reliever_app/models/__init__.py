"""
Domain models for the reliever session core.

These are pure Python/domain classes, separate from ORM mappings and from the
wire format used by the Vessel API.
"""

from .vessel import Vessel, VesselSummary, VesselOrientation, HeadType
from .case import CaseType, CaseRecord, DesignBasisFlow, CASE_DISPLAY_NAMES

__all__ = [
    "Vessel",
    "VesselSummary",
    "VesselOrientation",
    "HeadType",
    "CaseType",
    "CaseRecord",
    "DesignBasisFlow",
    "CASE_DISPLAY_NAMES",
]
