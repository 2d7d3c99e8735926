"""
Implant hotspots.

A metal implant concentrates the field (metal hotspot) and, with long
pulses, heats up the surrounding tissue (thermal hotspot). Both descriptors
carry a scene position so the renderer can place a glow at the implant.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple
import logging

from tensfield.model.stimulation import ElectrodePair, StimulationParams
from tensfield.model.tissue import TissueConfig
from tensfield.simulation.field_lines import scene_depth

logger = logging.getLogger(__name__)

THERMAL_THRESHOLD = 0.3


@dataclass(frozen=True)
class Hotspot:
    intensity: float
    depth: float
    span: float
    position: Tuple[float, float, float]


def _implant_sources(tissue: TissueConfig, use_inclusions: bool = True) -> List[Tuple[float, float]]:
    """(depth, span) of the legacy implant followed by implant inclusions."""
    sources = []
    if tissue.has_implant_geometry:
        sources.append((tissue.metal_implant_depth, tissue.metal_implant_span))
    if use_inclusions:
        sources.extend((inc.depth, inc.span) for inc in tissue.implant_inclusions())
    return sources


def _position(tissue: TissueConfig, electrodes: ElectrodePair, depth: float) -> Tuple[float, float, float]:
    return (electrodes.midpoint.x, scene_depth(depth, tissue.total_tissue_depth), 0.0)


def metal_hotspot(
    tissue: TissueConfig,
    params: StimulationParams,
    electrodes: ElectrodePair = ElectrodePair(),
    use_inclusions: bool = True,
) -> Optional[Hotspot]:
    """
    Field concentration at the implant, strongest for mid-depth implants.

    The first implant sets depth and span; each further implant adds half of
    its own intensity. Intensity is capped at 1.
    """
    hotspot: Optional[Hotspot] = None
    for depth, span in _implant_sources(tissue, use_inclusions):
        depth_factor = 1.0 - abs(depth - 0.5) * 0.5
        intensity = params.intensity_norm * depth_factor * span * 2.5
        if hotspot is None:
            hotspot = Hotspot(
                intensity=min(1.0, intensity),
                depth=depth,
                span=span,
                position=_position(tissue, electrodes, depth),
            )
        else:
            hotspot = Hotspot(
                intensity=min(1.0, hotspot.intensity + intensity * 0.5),
                depth=hotspot.depth,
                span=hotspot.span,
                position=hotspot.position,
            )
    return hotspot


def thermal_hotspot(
    tissue: TissueConfig,
    params: StimulationParams,
    electrodes: ElectrodePair = ElectrodePair(),
    use_inclusions: bool = True,
) -> Optional[Hotspot]:
    """
    Heating around the implant, driven by intensity, pulse width and span.
    Shallow implants heat more. Only the strongest source above the
    threshold is reported.
    """
    best: Optional[Hotspot] = None
    for depth, span in _implant_sources(tissue, use_inclusions):
        intensity = params.intensity_norm * params.pulse_norm * span * (1.0 + (1.0 - depth) * 0.5)
        if intensity <= THERMAL_THRESHOLD:
            continue
        if best is None or intensity > best.intensity:
            best = Hotspot(
                intensity=min(1.0, intensity),
                depth=depth,
                span=span,
                position=_position(tissue, electrodes, depth),
            )
    if best is not None:
        logger.debug(f"Thermal hotspot at depth {best.depth:.2f} (intensity {best.intensity:.2f})")
    return best
