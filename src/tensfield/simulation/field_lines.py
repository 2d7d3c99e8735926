"""
Field Geometry Generator
========================
Produces the curved electric-field lines drawn between the two electrodes.

Why is this file needed?
------------------------
1. Geometry: Each line is a sampled arc dipping below the skin, as deep as
   the penetration model allows.
2. Distortion: A metal implant pulls nearby samples towards itself (high
   conductivity), bone and fat push them away, muscle islands pull them in.
3. Determinism: The per-line jitter comes from an injected numpy Generator,
   so the same seed always gives the same lines.

Note: Lines are returned as raw samples. Spline smoothing for display is
available through `smooth_field_line` but is normally the renderer's job.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, TYPE_CHECKING
import logging
import math

import numpy as np
import matplotlib.pyplot as plt
from scipy.interpolate import CubicSpline

from tensfield.config import DEPTH_SCALE, SAMPLE_COUNT
from tensfield.model.stimulation import ElectrodePair
from tensfield.model.tissue import InclusionType, TissueConfig
from tensfield.simulation.stack import compute_tissue_stack
from tensfield.utils import clamp01

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

# Sample parameters t = 0, 0.05, ..., 1 (computed from integers, no drift)
T_SAMPLES: npt.NDArray[np.float64] = np.arange(SAMPLE_COUNT, dtype=np.float64) / (SAMPLE_COUNT - 1)

# Per-line random draws
OFFSET_Z_RANGE = (-2.0, 2.0)
ARC_JITTER_RANGE = (0.0, 0.4)

# Influence radius multipliers
IMPLANT_RADIUS_FACTOR = 2.0
INCLUSION_RADIUS_FACTOR = 1.5

# Displacement strength at the center of each feature.
# Positive = attraction towards the center, negative = deflection away.
IMPLANT_STRENGTH = 0.4
INCLUSION_STRENGTH = {
    InclusionType.BONE: -0.3,
    InclusionType.MUSCLE: 0.2,
    InclusionType.FAT: -0.15,
}


def line_count(intensity_norm: float) -> int:
    """Number of field lines for a given normalized intensity (8 to 20)."""
    return int(math.floor(8 + clamp01(intensity_norm) * 12))


def scene_depth(depth_norm: float, total_tissue_depth: float) -> float:
    """Vertical scene coordinate of a normalized depth in the stack."""
    return -depth_norm * total_tissue_depth * DEPTH_SCALE


def _displace(
    x: npt.NDArray[np.float64],
    y: npt.NDArray[np.float64],
    cx: float,
    cy: float,
    radius: float,
    strength: float,
) -> None:
    """
    Move the samples within `radius` of (cx, cy), in place.

    Attraction (strength > 0) moves a sample by a fraction of the vector to
    the center. Deflection (strength < 0) moves it along the unit normal
    pointing away from the center. Samples exactly on the center are left
    untouched.
    """
    if radius <= 0.0:
        return
    dx = x - cx
    dy = y - cy
    dist = np.hypot(dx, dy)
    mask = (dist < radius) & (dist > 0.0)
    if not np.any(mask):
        return

    falloff = (1.0 - dist[mask] / radius) * abs(strength)
    if strength > 0.0:
        x[mask] -= dx[mask] * falloff
        y[mask] -= dy[mask] * falloff
    else:
        x[mask] += dx[mask] / dist[mask] * falloff
        y[mask] += dy[mask] / dist[mask] * falloff


def generate_field_lines(
    tissue: TissueConfig,
    electrodes: ElectrodePair,
    intensity_norm: float,
    penetration: float,
    rng: Optional[np.random.Generator] = None,
    use_metal_implant: bool = True,
    use_inclusions: bool = True,
) -> Tuple[npt.NDArray[np.float64], ...]:
    """
    Generate the distorted field lines between the electrodes.

    Args:
        tissue: Tissue snapshot (implant and inclusions distort the lines).
        electrodes: Proximal / distal contacts.
        intensity_norm: Normalized intensity, sets the number of lines.
        penetration: Effective penetration depth (arc depth).
        rng: Jitter source. Pass a seeded Generator for reproducible output.
        use_metal_implant: Feature flag for the implant distortion.
        use_inclusions: Feature flag for the inclusion distortion.

    Returns:
        Tuple of read-only arrays of shape (21, 3).
    """
    if rng is None:
        rng = np.random.default_rng()

    n_lines = line_count(intensity_norm)
    p0 = electrodes.proximal
    axis = electrodes.axis
    total_depth = compute_tissue_stack(tissue).total_tissue_depth

    # Random draws: offset_z then arc jitter, one pair per line
    offsets_z = np.empty(n_lines)
    arc_heights = np.empty(n_lines)
    for i in range(n_lines):
        offsets_z[i] = rng.uniform(*OFFSET_Z_RANGE)
        arc_heights[i] = -penetration * (0.8 + rng.uniform(*ARC_JITTER_RANGE))

    curve = np.sin(T_SAMPLES * np.pi)

    # (n_lines, SAMPLE_COUNT) coordinate grids
    x = np.tile(p0.x + axis.x * T_SAMPLES, (n_lines, 1))
    y = p0.y + axis.y * T_SAMPLES + arc_heights[:, None] * curve
    z = p0.z + axis.z * T_SAMPLES + offsets_z[:, None] * curve

    if use_metal_implant and tissue.has_implant_geometry:
        _displace(
            x, y,
            cx=electrodes.midpoint.x,
            cy=scene_depth(tissue.metal_implant_depth, total_depth),
            radius=tissue.metal_implant_span * IMPLANT_RADIUS_FACTOR,
            strength=IMPLANT_STRENGTH,
        )
    elif use_metal_implant and tissue.has_metal_implant:
        logger.warning("Metal implant flagged without depth/span, distortion skipped.")

    if use_inclusions:
        for inclusion in tissue.inclusions:
            strength = INCLUSION_STRENGTH.get(inclusion.type)
            if strength is None:
                continue
            _displace(
                x, y,
                cx=p0.x + axis.x * inclusion.position,
                cy=scene_depth(inclusion.depth, total_depth),
                radius=inclusion.span * INCLUSION_RADIUS_FACTOR,
                strength=strength,
            )

    lines = []
    for i in range(n_lines):
        line = np.column_stack((x[i], y[i], z[i]))
        line.flags.writeable = False
        lines.append(line)

    logger.debug(f"Generated {n_lines} field lines (penetration={penetration:.3f})")
    return tuple(lines)


def smooth_field_line(line: npt.NDArray[np.float64], n_points: int = 50) -> npt.NDArray[np.float64]:
    """
    Resample a field line with a cubic spline through its samples.

    Returns:
        Array of shape (n_points, 3) that passes through the end samples.
    """
    if n_points < 2:
        raise ValueError("n_points must be at least 2.")
    t = np.linspace(0.0, 1.0, len(line))
    spline = CubicSpline(t, line, axis=0)
    return spline(np.linspace(0.0, 1.0, n_points))


@dataclass(frozen=True)
class FieldVolume:
    """Box enclosing the field, drawn as translucent fog by the renderer."""
    center: Tuple[float, float, float]
    size: Tuple[float, float, float]

    @staticmethod
    def from_penetration(electrodes: ElectrodePair, penetration: float) -> FieldVolume:
        mid = electrodes.midpoint
        return FieldVolume(
            center=(mid.x, -penetration / 2.0, 0.0),
            size=(electrodes.span_x + 2.0, penetration * 1.5, 4.0),
        )


def plot_field_lines(
    lines: Tuple[npt.NDArray[np.float64], ...],
    tissue: Optional[TissueConfig] = None,
    show: bool = True,
) -> plt.Figure:
    """
    Plot the x/y projection of the field lines, with the layer boundaries.
    """
    plt.rcParams["figure.constrained_layout.use"] = True
    fig = plt.figure(figsize=(8, 5))
    ax = fig.gca()

    if tissue is not None:
        stack = compute_tissue_stack(tissue)
        for name, _, end in stack.layers()[:3]:
            ax.axhline(-end * DEPTH_SCALE, color='gray', lw=0.8, linestyle='--')
            ax.annotate(name, xy=(0.01, -end * DEPTH_SCALE), xycoords=('axes fraction', 'data'),
                        fontsize=8, color='gray', va='bottom')

    for line in lines:
        ax.plot(line[:, 0], line[:, 1], color='#4499ff', lw=1.2)

    ax.grid(visible=True, which='major', axis='both', linestyle='-', color='gray', lw=0.5)
    ax.set_title(f"Electric Field Lines ({len(lines)})")
    ax.set_xlabel("x (scene units)")
    ax.set_ylabel("y (scene units)")

    if show:
        plt.show()
    return fig
