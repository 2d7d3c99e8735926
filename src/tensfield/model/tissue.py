"""
Tissue Configuration Data Model
===============================
Defines the immutable anatomical snapshot consumed by every simulation call.

Why is this file needed?
------------------------
1. Snapshots: The admin layer edits tissue parameters interactively. The
   simulation never sees that mutable state, only a frozen TissueConfig.
2. Sanitizing: Normalized fields are clamped into their declared ranges on
   construction, so an interactive session cannot crash mid-adjustment.
3. Serialization: to_dict/from_dict speak the camelCase keys used by the
   configuration layer and the bundled presets JSON.

Classes:
    InclusionType: Kind of embedded anatomical feature.
    TissueType: Coarse tissue category (used by the risk classifier).
    Inclusion: One localized feature inside the stack.
    TissueConfig: The full layered tissue description.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any, Dict, Iterable, Optional, Tuple
import logging

from tensfield.utils import clamp01

logger = logging.getLogger(__name__)


class InclusionType(StrEnum):
    BONE = "bone"
    MUSCLE = "muscle"
    FAT = "fat"
    METAL_IMPLANT = "metal_implant"


class TissueType(StrEnum):
    SOFT = "soft"
    MUSCULAR = "muscular"
    MIXED = "mixed"


def _non_negative(name: str, value: float) -> float:
    value = float(value)
    if value < 0.0:
        logger.debug(f"Clamped {name}={value} to 0.")
        return 0.0
    return value


def _unit(name: str, value: float) -> float:
    value = float(value)
    clamped = clamp01(value)
    if clamped != value:
        logger.debug(f"Clamped {name}={value} into [0, 1].")
    return clamped


@dataclass(frozen=True)
class Inclusion:
    """
    A localized anatomical feature embedded in the tissue stack.

    position: lateral placement between the electrodes (0 = proximal side)
    depth:    normalized depth into the stack (0 = surface)
    span:     relative size, scales the influence radius
    """
    id: str
    type: InclusionType
    position: float = 0.5
    depth: float = 0.5
    span: float = 0.3

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", InclusionType(self.type))
        object.__setattr__(self, "position", _unit("position", self.position))
        object.__setattr__(self, "depth", _unit("depth", self.depth))
        object.__setattr__(self, "span", _unit("span", self.span))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "position": self.position,
            "depth": self.depth,
            "span": self.span,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Inclusion:
        try:
            return Inclusion(
                id=str(data["id"]),
                type=InclusionType(data["type"]),
                position=data.get("position", 0.5),
                depth=data.get("depth", 0.5),
                span=data.get("span", 0.3),
            )
        except (KeyError, ValueError) as e:
            logger.error(f"Invalid inclusion definition {data!r}: {e}")
            raise


@dataclass(frozen=True)
class TissueConfig:
    """
    Layered tissue description. Layer thicknesses are normalized (>= 0) and
    stacked from the skin surface downwards.
    """
    skin_thickness: float = 0.15
    fat_thickness: float = 0.25
    muscle_thickness: float = 0.60
    bone_depth: float = 0.85

    # Legacy single-implant description (kept alongside implant inclusions)
    has_metal_implant: bool = False
    metal_implant_depth: Optional[float] = None
    metal_implant_span: Optional[float] = None

    inclusions: Tuple[Inclusion, ...] = field(default_factory=tuple)
    enable_risk_simulation: bool = True

    name: str = "Antebraço Padrão"
    description: str = ""
    tissue_type: TissueType = TissueType.MUSCULAR

    def __post_init__(self) -> None:
        object.__setattr__(self, "skin_thickness", _non_negative("skin_thickness", self.skin_thickness))
        object.__setattr__(self, "fat_thickness", _non_negative("fat_thickness", self.fat_thickness))
        object.__setattr__(self, "muscle_thickness", _non_negative("muscle_thickness", self.muscle_thickness))
        object.__setattr__(self, "bone_depth", _non_negative("bone_depth", self.bone_depth))
        object.__setattr__(self, "has_metal_implant", bool(self.has_metal_implant))
        object.__setattr__(self, "tissue_type", TissueType(self.tissue_type))

        # Implant geometry only exists while the implant flag is set
        if self.has_metal_implant:
            if self.metal_implant_depth is not None:
                object.__setattr__(self, "metal_implant_depth", _unit("metal_implant_depth", self.metal_implant_depth))
            if self.metal_implant_span is not None:
                object.__setattr__(self, "metal_implant_span", _unit("metal_implant_span", self.metal_implant_span))
        else:
            object.__setattr__(self, "metal_implant_depth", None)
            object.__setattr__(self, "metal_implant_span", None)

        inclusions = tuple(self.inclusions)
        ids = [inc.id for inc in inclusions]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Inclusion ids must be unique, got {ids}.")
        object.__setattr__(self, "inclusions", inclusions)

    @property
    def total_tissue_depth(self) -> float:
        """Soft tissue depth above the bone (skin + fat + muscle)."""
        return self.skin_thickness + self.fat_thickness + self.muscle_thickness

    @property
    def has_implant_geometry(self) -> bool:
        return (
            self.has_metal_implant
            and self.metal_implant_depth is not None
            and self.metal_implant_span is not None
        )

    def implant_inclusions(self) -> Tuple[Inclusion, ...]:
        return tuple(inc for inc in self.inclusions if inc.type == InclusionType.METAL_IMPLANT)

    def with_inclusions(self, inclusions: Iterable[Inclusion]) -> TissueConfig:
        """Return a copy with the inclusion list replaced."""
        return replace(self, inclusions=tuple(inclusions))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "skinThickness": self.skin_thickness,
            "fatThickness": self.fat_thickness,
            "muscleThickness": self.muscle_thickness,
            "boneDepth": self.bone_depth,
            "hasMetalImplant": self.has_metal_implant,
            "tissueType": self.tissue_type.value,
            "enableRiskSimulation": self.enable_risk_simulation,
            "inclusions": [inc.to_dict() for inc in self.inclusions],
        }
        if self.metal_implant_depth is not None:
            data["metalImplantDepth"] = self.metal_implant_depth
        if self.metal_implant_span is not None:
            data["metalImplantSpan"] = self.metal_implant_span
        return data

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> TissueConfig:
        """Factory method to deserialize the configuration-layer payload."""
        defaults = TissueConfig()
        try:
            return TissueConfig(
                skin_thickness=data.get("skinThickness", defaults.skin_thickness),
                fat_thickness=data.get("fatThickness", defaults.fat_thickness),
                muscle_thickness=data.get("muscleThickness", defaults.muscle_thickness),
                bone_depth=data.get("boneDepth", defaults.bone_depth),
                has_metal_implant=data.get("hasMetalImplant", False),
                metal_implant_depth=data.get("metalImplantDepth"),
                metal_implant_span=data.get("metalImplantSpan"),
                inclusions=tuple(Inclusion.from_dict(d) for d in data.get("inclusions") or []),
                enable_risk_simulation=data.get("enableRiskSimulation", True),
                name=data.get("name", defaults.name),
                description=data.get("description") or "",
                tissue_type=TissueType(data.get("tissueType", defaults.tissue_type)),
            )
        except ValueError as e:
            logger.error(f"Invalid tissue configuration: {e}")
            raise
