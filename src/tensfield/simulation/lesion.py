"""
Lesion Index
============
Combines an externally supplied risk classification with the stimulation
parameters and tissue risk factors into one severity scalar in [0, 1].

Classes:
    RiskLevel: Classification produced by the risk classifier.
    RiskResult: Classifier output consumed read-only here.
    LesionStages: Visual stages derived from the index for the heatmap.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Dict, Tuple
import logging

from tensfield.model.stimulation import StimulationParams
from tensfield.model.tissue import TissueConfig
from tensfield.utils import clamp, clamp01

logger = logging.getLogger(__name__)


class RiskLevel(StrEnum):
    BAIXO = "baixo"
    MODERADO = "moderado"
    ALTO = "alto"


RISK_LEVEL_WEIGHT: Dict[RiskLevel, float] = {
    RiskLevel.ALTO: 0.7,
    RiskLevel.MODERADO: 0.4,
    RiskLevel.BAIXO: 0.0,
}

INTENSITY_WEIGHT = 0.3
PULSE_WEIGHT = 0.3

METAL_IMPLANT_TERM = 0.4         # implant with intensity_norm > 0.5
SUPERFICIAL_BONE_TERM = 0.3      # bone_depth < 0.4 with intensity_norm > 0.6
THIN_SKIN_TERM = 0.25            # skin < 0.2 with intensity_norm > 0.5


@dataclass(frozen=True)
class RiskResult:
    risk_level: RiskLevel = RiskLevel.BAIXO
    risk_score: float = 0.0
    messages: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "risk_level", RiskLevel(self.risk_level))
        object.__setattr__(self, "risk_score", clamp(float(self.risk_score), 0.0, 100.0))
        object.__setattr__(self, "messages", tuple(self.messages))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "riskLevel": self.risk_level.value,
            "riskScore": self.risk_score,
            "messages": list(self.messages),
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> RiskResult:
        try:
            return RiskResult(
                risk_level=RiskLevel(data["riskLevel"]),
                risk_score=data.get("riskScore", 0.0),
                messages=tuple(data.get("messages") or ()),
            )
        except (KeyError, ValueError) as e:
            logger.error(f"Invalid risk result {data!r}: {e}")
            raise


def lesion_index(
    risk: RiskResult,
    params: StimulationParams,
    tissue: TissueConfig,
) -> float:
    """
    Severity scalar for the stress heatmap.

    Returns:
        Sum of the risk, intensity, pulse and tissue terms, clamped to [0, 1].
    """
    intensity_norm = params.intensity_norm
    pulse_norm = params.pulse_norm

    index = RISK_LEVEL_WEIGHT[risk.risk_level]
    index += intensity_norm * INTENSITY_WEIGHT
    index += pulse_norm * PULSE_WEIGHT

    if tissue.has_metal_implant and intensity_norm > 0.5:
        index += METAL_IMPLANT_TERM
    if tissue.bone_depth < 0.4 and intensity_norm > 0.6:
        index += SUPERFICIAL_BONE_TERM
    if tissue.skin_thickness < 0.2 and intensity_norm > 0.5:
        index += THIN_SKIN_TERM

    if index > 1.0:
        logger.debug(f"Lesion index {index:.3f} saturated at 1.0")
    return clamp01(index)


@dataclass(frozen=True)
class LesionStages:
    """
    Intensities of the visual lesion stages.

    erythema:      superficial skin damage, from index 0.3
    muscle_damage: deep muscle damage, from index 0.5
    implant_glow:  hotspot around a metal implant, from index 0.4; may exceed
                   1.0 (up to 1.2) as extra brightness
    """
    erythema: float = 0.0
    muscle_damage: float = 0.0
    implant_glow: float = 0.0


def lesion_stages(index: float, tissue: TissueConfig) -> LesionStages:
    index = clamp01(index)
    erythema = min(1.0, (index - 0.3) / 0.4) if index > 0.3 else 0.0
    muscle_damage = min(1.0, (index - 0.5) / 0.3) if index > 0.5 else 0.0
    implant_glow = min(1.2, index * 1.5) if tissue.has_metal_implant and index > 0.4 else 0.0
    return LesionStages(erythema=erythema, muscle_damage=muscle_damage, implant_glow=implant_glow)
