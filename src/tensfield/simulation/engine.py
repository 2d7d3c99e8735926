"""
Simulation Engine
=================
One compute pass of the TENS lab: tissue snapshot + stimulation snapshot in,
everything the renderer needs out.

Why is this file needed?
------------------------
1. Orchestration: It chains the stack, penetration, field geometry, lesion
   and hotspot models in the right order.
2. Feature Flags: Implant and inclusion support are switched on/off here
   instead of living in separate copies of the model.
3. Memoization: The UI recomputes on every slider event. Identical input
   tuples are answered from an LRU cache, and cached results are immutable
   (frozen dataclasses, read-only arrays) so callers cannot corrupt them.

Note: This module is pure Python/NumPy and performs no I/O.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple, TYPE_CHECKING
import logging

import numpy as np

from tensfield.model.stimulation import ElectrodeConfig, ElectrodePair, StimulationParams
from tensfield.model.tissue import TissueConfig
from tensfield.simulation import activation as field_activation
from tensfield.simulation.activation import Activation, ActivationZone, ElectricField, Heatmap
from tensfield.simulation.comfort import ComfortEstimate, estimate_comfort
from tensfield.simulation.field_lines import FieldVolume, generate_field_lines
from tensfield.simulation.hotspots import Hotspot, metal_hotspot, thermal_hotspot
from tensfield.simulation.lesion import LesionStages, RiskResult, lesion_index, lesion_stages
from tensfield.simulation.penetration import penetration_depth
from tensfield.simulation.risk import classify_tissue_risk, disabled_risk
from tensfield.simulation.stack import TissueStack, compute_tissue_stack
from tensfield.simulation.waveform import TimeLike, line_opacity, volume_opacity
from tensfield.utils import frame_timer

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

CACHE_SIZE = 64

WARN_STACK_OVERFLOW = "stack_overflow"
WARN_IMPLANT_GEOMETRY = "implant_missing_geometry"


@dataclass(frozen=True)
class FeatureFlags:
    metal_implant: bool = True
    inclusions: bool = True
    risk_simulation: bool = True


@dataclass(frozen=True, eq=False)
class SimulationResult:
    params: StimulationParams
    stack: TissueStack
    penetration_depth: float
    field_lines: Tuple[npt.NDArray[np.float64], ...]
    field_volume: FieldVolume
    risk: RiskResult
    lesion_index: float
    lesion_stages: LesionStages
    comfort: ComfortEstimate
    electric_field: ElectricField
    activation: Activation
    activation_zone: ActivationZone
    heatmap: Heatmap
    distance_explanation: str
    metal_hotspot: Optional[Hotspot] = None
    thermal_hotspot: Optional[Hotspot] = None
    warnings: Tuple[str, ...] = ()

    @property
    def intensity_norm(self) -> float:
        return self.params.intensity_norm

    def opacity(self, line_index: int, time: TimeLike) -> TimeLike:
        """Waveform envelope of one field line at elapsed time `time`."""
        return line_opacity(
            self.params.mode,
            self.params.frequency_hz,
            self.params.intensity_norm,
            line_index,
            time,
        )

    def volume_opacity(self, time: TimeLike) -> TimeLike:
        return volume_opacity(time, self.params)


def _collect_warnings(tissue: TissueConfig, stack: TissueStack, flags: FeatureFlags) -> Tuple[str, ...]:
    warnings = []
    if stack.overflow:
        warnings.append(WARN_STACK_OVERFLOW)
    if flags.metal_implant and tissue.has_metal_implant and not tissue.has_implant_geometry:
        warnings.append(WARN_IMPLANT_GEOMETRY)
    return tuple(warnings)


@lru_cache(maxsize=CACHE_SIZE)
def _simulate_cached(
    tissue: TissueConfig,
    params: StimulationParams,
    electrodes: ElectrodePair,
    risk: Optional[RiskResult],
    seed: int,
    flags: FeatureFlags,
    electrode_config: ElectrodeConfig,
) -> SimulationResult:
    logger.debug(f"Cache miss, computing pass (seed={seed}, flags={flags})")

    stack = compute_tissue_stack(tissue)
    intensity_norm = params.intensity_norm
    depth = penetration_depth(intensity_norm, tissue, use_inclusions=flags.inclusions)

    lines = generate_field_lines(
        tissue,
        electrodes,
        intensity_norm,
        depth,
        rng=np.random.default_rng(seed),
        use_metal_implant=flags.metal_implant,
        use_inclusions=flags.inclusions,
    )

    if not flags.risk_simulation:
        risk = disabled_risk()
    elif risk is None:
        risk = classify_tissue_risk(params, tissue)
    index = lesion_index(risk, params, tissue)

    metal = thermal = None
    if flags.metal_implant:
        metal = metal_hotspot(tissue, params, electrodes, use_inclusions=flags.inclusions)
        thermal = thermal_hotspot(tissue, params, electrodes, use_inclusions=flags.inclusions)

    field = field_activation.electric_field(
        params, tissue, electrode_config,
        use_metal_implant=flags.metal_implant,
        use_inclusions=flags.inclusions,
    )
    act = field_activation.activation(params, tissue, electrode_config)

    return SimulationResult(
        params=params,
        stack=stack,
        penetration_depth=depth,
        field_lines=lines,
        field_volume=FieldVolume.from_penetration(electrodes, depth),
        risk=risk,
        lesion_index=index,
        lesion_stages=lesion_stages(index, tissue),
        comfort=estimate_comfort(params),
        electric_field=field,
        activation=act,
        activation_zone=ActivationZone.from_activation(act),
        heatmap=field_activation.heatmap(params, tissue, field, electrode_config,
                                         use_metal_implant=flags.metal_implant),
        distance_explanation=field_activation.distance_explanation(electrode_config, act),
        metal_hotspot=metal,
        thermal_hotspot=thermal,
        warnings=_collect_warnings(tissue, stack, flags),
    )


@frame_timer
def simulate(
    tissue: TissueConfig,
    params: StimulationParams,
    electrodes: ElectrodePair = ElectrodePair(),
    risk: Optional[RiskResult] = None,
    seed: int = 0,
    flags: FeatureFlags = FeatureFlags(),
    electrode_config: ElectrodeConfig = ElectrodeConfig(),
) -> SimulationResult:
    """
    Run one compute pass.

    Args:
        tissue: Immutable tissue snapshot.
        params: Immutable stimulation snapshot.
        electrodes: Electrode anchors in scene coordinates.
        risk: Externally classified risk. When None, the bundled
              rule-based classifier is used. Ignored when
              `flags.risk_simulation` is off.
        seed: Seed of the field-line jitter.
        flags: Feature flags for implant / inclusion support and the
               risk simulation.
        electrode_config: Pad distance and size for the field /
                          activation model.

    Returns:
        SimulationResult (shared between identical calls, do not mutate).
    """
    return _simulate_cached(tissue, params, electrodes, risk, int(seed), flags, electrode_config)


def clear_cache() -> None:
    _simulate_cached.cache_clear()


def cache_info():
    return _simulate_cached.cache_info()
