"""
Penetration Model
=================
Effective depth reached by the field, from the normalized intensity and the
fat layer, then scaled by every bone, fat and muscle inclusion.

The layer-only depth is kept in [0.3, 1.5] and the final depth in
[0.2, 2.0].
"""
from __future__ import annotations

from typing import Callable, Dict, Iterable
import logging

from tensfield.config import REFERENCE_FAT_THICKNESS
from tensfield.model.tissue import Inclusion, InclusionType, TissueConfig
from tensfield.utils import clamp, clamp01

logger = logging.getLogger(__name__)

# Bounds of the intermediate (layer only) and final (with inclusions) depth
LAYER_DEPTH_RANGE = (0.3, 1.5)
PENETRATION_RANGE = (0.2, 2.0)

# Multiplicative depth factor per inclusion type, as a function of span
INCLUSION_DEPTH_FACTORS: Dict[InclusionType, Callable[[float], float]] = {
    InclusionType.BONE: lambda span: 1.0 - span * 0.3,     # barrier
    InclusionType.FAT: lambda span: 1.0 - span * 0.2,      # poor conductor
    InclusionType.MUSCLE: lambda span: 1.0 + span * 0.15,  # good conductor
}


def layer_penetration(intensity_norm: float, fat_thickness: float) -> float:
    """Penetration from intensity and the fat layer alone, in [0.3, 1.5]."""
    base_penetration = clamp01(intensity_norm) * 0.8
    fat_resistance = max(0.0, fat_thickness) / REFERENCE_FAT_THICKNESS
    return clamp(base_penetration * (1.0 - fat_resistance * 0.3), *LAYER_DEPTH_RANGE)


def apply_inclusions(depth: float, inclusions: Iterable[Inclusion]) -> float:
    """Apply the inclusion factors in declaration order (unclamped)."""
    for inclusion in inclusions:
        factor = INCLUSION_DEPTH_FACTORS.get(inclusion.type)
        if factor is not None:
            depth *= factor(clamp01(inclusion.span))
    return depth


def penetration_depth(
    intensity_norm: float,
    tissue: TissueConfig,
    use_inclusions: bool = True,
) -> float:
    """
    Effective field penetration depth.

    Args:
        intensity_norm: Stimulation intensity relative to the maximum, [0, 1].
        tissue: Tissue snapshot (fat thickness and inclusions are used).
        use_inclusions: Feature flag, when False inclusions are ignored.

    Returns:
        Depth in [0.2, 2.0].
    """
    depth = layer_penetration(intensity_norm, tissue.fat_thickness)
    if use_inclusions:
        depth = apply_inclusions(depth, tissue.inclusions)
    result = clamp(depth, *PENETRATION_RANGE)
    logger.debug(f"Penetration depth {result:.4f} (intensity_norm={intensity_norm:.3f})")
    return result
