from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class VesselOrientation(Enum):
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"
    SPHERE = "sphere"


class HeadType(Enum):
    ELLIPTICAL = "Elliptical"
    HEMISPHERICAL = "Hemispherical"
    FLAT = "Flat"


@dataclass(slots=True)
class Vessel:
    id: str | None = None
    tag: str = ""
    name: str = ""

    orientation: VesselOrientation = VesselOrientation.VERTICAL

    # Geometry in inches, as entered on the vessel properties form
    diameter_in: float = 0.0
    straight_side_height_in: float = 0.0
    head_type: HeadType = HeadType.HEMISPHERICAL

    design_mawp_psig: float = 0.0
    asme_set_pressure_psig: float = 0.0
    working_fluid: str = ""

    # API 521: bottom head shielded by a support skirt is not fire exposed
    head_protected_by_skirt: bool = False
    # API 521: base level (ft above grade) for the 25 ft wetted-area limit
    fire_source_elevation_ft: float = 0.0

    @property
    def is_saved(self) -> bool:
        return self.id is not None

    @property
    def display_name(self) -> str:
        return self.name or self.tag or "Untitled Vessel"


@dataclass(slots=True)
class VesselSummary:
    """One row of the owner's vessel list (dropdown entry)."""

    id: str
    tag: str = ""
    name: str = ""
    updated_at: str | None = None
