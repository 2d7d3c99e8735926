"""
Stimulation Parameters
======================
Immutable description of what the stimulator is doing and where the
electrodes sit.

Classes:
    TensMode: Waveform program selected on the stimulator.
    StimulationParams: Frequency, pulse width, intensity and mode.
    StimulationLimits: Admin-configured ranges for the lab controls.
    ElectrodePair: The two contact anchors defining the stimulation axis.
    ElectrodeConfig: Pad distance, size and placement preset.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any, Dict, Tuple
import logging
import math

from tensfield.config import MAX_INTENSITY_MA, PULSE_WIDTH_MIN_US, PULSE_WIDTH_MAX_US
from tensfield.model.geometry_primitives import Point, Vector
from tensfield.utils import clamp, clamp01

logger = logging.getLogger(__name__)

# Floor used in place of non-positive frequencies / pulse widths
_MIN_POSITIVE = 1e-6


class TensMode(StrEnum):
    CONVENCIONAL = "convencional"
    ACUPUNTURA = "acupuntura"
    BURST = "burst"
    MODULADO = "modulado"


@dataclass(frozen=True)
class StimulationParams:
    frequency_hz: float = 80.0
    pulse_width_us: float = 200.0
    intensity_ma: float = 20.0
    mode: TensMode = TensMode.CONVENCIONAL

    def __post_init__(self) -> None:
        object.__setattr__(self, "frequency_hz", max(_MIN_POSITIVE, float(self.frequency_hz)))
        object.__setattr__(self, "pulse_width_us", max(_MIN_POSITIVE, float(self.pulse_width_us)))
        object.__setattr__(self, "intensity_ma", max(0.0, float(self.intensity_ma)))
        object.__setattr__(self, "mode", TensMode(self.mode))

    @property
    def intensity_norm(self) -> float:
        """Intensity relative to the stimulator maximum, in [0, 1]."""
        return clamp01(self.intensity_ma / MAX_INTENSITY_MA)

    @property
    def pulse_norm(self) -> float:
        """Pulse width mapped from [50, 400] us onto [0, 1]."""
        return clamp01(
            (self.pulse_width_us - PULSE_WIDTH_MIN_US) / (PULSE_WIDTH_MAX_US - PULSE_WIDTH_MIN_US)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "frequencyHz": self.frequency_hz,
            "pulseWidthUs": self.pulse_width_us,
            "intensitymA": self.intensity_ma,
            "mode": self.mode.value,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> StimulationParams:
        defaults = StimulationParams()
        try:
            return StimulationParams(
                frequency_hz=data.get("frequencyHz", defaults.frequency_hz),
                pulse_width_us=data.get("pulseWidthUs", defaults.pulse_width_us),
                intensity_ma=data.get("intensitymA", defaults.intensity_ma),
                mode=TensMode(data.get("mode", defaults.mode)),
            )
        except ValueError as e:
            logger.error(f"Invalid stimulation parameters: {e}")
            raise


@dataclass(frozen=True)
class StimulationLimits:
    """
    Ranges the lab administrator allows for each control.
    """
    frequency_range: Tuple[float, float] = (1.0, 200.0)
    pulse_width_range: Tuple[float, float] = (PULSE_WIDTH_MIN_US, PULSE_WIDTH_MAX_US)
    intensity_range: Tuple[float, float] = (0.0, MAX_INTENSITY_MA)
    allowed_modes: Tuple[TensMode, ...] = field(default_factory=lambda: tuple(TensMode))

    def __post_init__(self) -> None:
        if not self.allowed_modes:
            raise ValueError("At least one stimulation mode must be allowed.")
        object.__setattr__(self, "allowed_modes", tuple(TensMode(m) for m in self.allowed_modes))

    def apply(self, params: StimulationParams) -> StimulationParams:
        """Return a copy of `params` clamped to these limits."""
        mode = params.mode
        if mode not in self.allowed_modes:
            logger.info(f"Mode '{mode}' not allowed, falling back to '{self.allowed_modes[0]}'.")
            mode = self.allowed_modes[0]
        return replace(
            params,
            frequency_hz=clamp(params.frequency_hz, *self.frequency_range),
            pulse_width_us=clamp(params.pulse_width_us, *self.pulse_width_range),
            intensity_ma=clamp(params.intensity_ma, *self.intensity_range),
            mode=mode,
        )


@dataclass(frozen=True)
class ElectrodePair:
    """Proximal and distal electrode contacts in scene coordinates."""
    proximal: Point = Point(-3.0, 0.0, 0.0)
    distal: Point = Point(3.0, 0.0, 0.0)

    @property
    def axis(self) -> Vector:
        return self.distal - self.proximal

    @property
    def midpoint(self) -> Point:
        return self.proximal.midpoint(self.distal)

    @property
    def span_x(self) -> float:
        return abs(self.distal.x - self.proximal.x)


class ElectrodePlacement(StrEnum):
    DEFAULT = "default"
    MUSCLE_TARGET = "muscle_target"
    SUPERFICIAL = "superficial"
    SPREAD = "spread"


@dataclass(frozen=True)
class PlacementPreset:
    label: str
    description: str
    distance_cm: float


PLACEMENT_PRESETS: Dict[ElectrodePlacement, PlacementPreset] = {
    ElectrodePlacement.DEFAULT: PlacementPreset(
        "Padrão", "Posicionamento padrão sobre a região alvo", 6.0),
    ElectrodePlacement.MUSCLE_TARGET: PlacementPreset(
        "Sobre músculo alvo", "Eletrodos posicionados diretamente sobre o ventre muscular", 5.0),
    ElectrodePlacement.SUPERFICIAL: PlacementPreset(
        "Mais superficial", "Eletrodos próximos para ativação cutânea/sensorial", 3.0),
    ElectrodePlacement.SPREAD: PlacementPreset(
        "Mais espalhado", "Maior distância para cobertura ampla e ativação profunda", 10.0),
}

ELECTRODE_DISTANCE_RANGE_CM = (2.0, 12.0)
ELECTRODE_SIZE_RANGE_CM = (2.0, 5.0)


@dataclass(frozen=True)
class ElectrodeConfig:
    """
    Physical electrode setup: center-to-center distance and pad size.

    Pads are circular with diameter `size_cm`. Distance and size are clamped
    to the ranges of the lab controls. The anode / cathode positions are the
    scene anchors handed to the field-line generator.
    """
    distance_cm: float = 6.0
    size_cm: float = 4.0
    placement: ElectrodePlacement = ElectrodePlacement.DEFAULT
    anode_position: Point = Point(-3.0, 0.0, 0.0)
    cathode_position: Point = Point(3.0, 0.0, 0.0)

    def __post_init__(self) -> None:
        object.__setattr__(self, "distance_cm", clamp(float(self.distance_cm), *ELECTRODE_DISTANCE_RANGE_CM))
        object.__setattr__(self, "size_cm", clamp(float(self.size_cm), *ELECTRODE_SIZE_RANGE_CM))
        object.__setattr__(self, "placement", ElectrodePlacement(self.placement))

    @property
    def area_cm2(self) -> float:
        return math.pi * (self.size_cm / 2.0) ** 2

    @property
    def electrode_pair(self) -> ElectrodePair:
        return ElectrodePair(proximal=self.anode_position, distal=self.cathode_position)

    def with_placement(self, placement: ElectrodePlacement) -> ElectrodeConfig:
        """Switch placement and take over its preset distance."""
        placement = ElectrodePlacement(placement)
        return replace(self, placement=placement, distance_cm=PLACEMENT_PRESETS[placement].distance_cm)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "distanceCm": self.distance_cm,
            "sizeCm": self.size_cm,
            "shape": "circular",
            "placement": self.placement.value,
            "anodePosition": [self.anode_position.x, self.anode_position.y, self.anode_position.z],
            "cathodePosition": [self.cathode_position.x, self.cathode_position.y, self.cathode_position.z],
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> ElectrodeConfig:
        defaults = ElectrodeConfig()
        try:
            if data.get("shape", "circular") != "circular":
                raise ValueError(f"Unsupported electrode shape '{data['shape']}'.")
            anode = data.get("anodePosition")
            cathode = data.get("cathodePosition")
            return ElectrodeConfig(
                distance_cm=data.get("distanceCm", defaults.distance_cm),
                size_cm=data.get("sizeCm", defaults.size_cm),
                placement=ElectrodePlacement(data.get("placement", defaults.placement)),
                anode_position=Point.from_sequence(anode) if anode is not None else defaults.anode_position,
                cathode_position=Point.from_sequence(cathode) if cathode is not None else defaults.cathode_position,
            )
        except ValueError as e:
            logger.error(f"Invalid electrode configuration: {e}")
            raise
