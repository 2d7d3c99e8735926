"""
TENS Field Simulation
=====================

Closed-form tissue-field and lesion-risk model behind the electrotherapy
(TENS) teaching lab. Deterministic, bounded and fast enough to recompute on
every UI event. Not a finite-element or bio-heat solver.

Modules
-------
model       : Immutable tissue / stimulation snapshots and presets
simulation  : Stack, penetration, field lines, waveform, lesion index
config      : Resource paths and model constants
"""
from importlib.metadata import version, PackageNotFoundError

from .model.geometry_primitives import Point, Vector
from .model.tissue import Inclusion, InclusionType, TissueConfig, TissueType
from .model.stimulation import (
    ElectrodeConfig, ElectrodePair, ElectrodePlacement, StimulationLimits, StimulationParams, TensMode,
)
from .model.presets import TissuePreset, get_preset, load_presets
from .simulation.stack import TissueStack, compute_tissue_stack
from .simulation.penetration import penetration_depth
from .simulation.field_lines import FieldVolume, generate_field_lines, line_count, smooth_field_line
from .simulation.waveform import envelope_function, line_opacity
from .simulation.lesion import LesionStages, RiskLevel, RiskResult, lesion_index, lesion_stages
from .simulation.activation import Activation, ActivationZone, ElectricField, Heatmap
from .simulation.risk import classify_tissue_risk
from .simulation.engine import FeatureFlags, SimulationResult, simulate

try:
    __version__ = version("tensfield")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"
