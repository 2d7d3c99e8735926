"""
Waveform Envelope
=================
Time- and mode-dependent opacity of each field line.

Each stimulation mode has its own pure envelope function taking the elapsed
time, the animation speed (frequency / 50) and the line index. The functions
are dispatched through `MODE_ENVELOPES`, and the result is scaled by the
normalized intensity and clamped to [0, 1] for every mode.
"""
from __future__ import annotations

from typing import Callable, Dict, Optional, Union, TYPE_CHECKING

import numpy as np
import matplotlib.pyplot as plt

from tensfield.model.stimulation import StimulationParams, TensMode

if TYPE_CHECKING:
    import numpy.typing as npt

TimeLike = Union[float, "npt.NDArray[np.float64]"]
Envelope = Callable[[TimeLike, float, int], TimeLike]

SPEED_DIVISOR = 50.0
TWO_PI = 2.0 * np.pi


def animation_speed(frequency_hz: float) -> float:
    return frequency_hz / SPEED_DIVISOR


def _as_output(value: npt.NDArray[np.float64]) -> TimeLike:
    return float(value) if np.ndim(value) == 0 else value


def conventional_envelope(t: TimeLike, speed: float, index: int) -> TimeLike:
    """Continuous flow, phase shifted along the line index."""
    phase = np.mod(np.asarray(t) * speed + index * 0.1, 1.0)
    return _as_output(0.3 + np.sin(phase * TWO_PI) * 0.3)


def acupuncture_envelope(t: TimeLike, speed: float, index: int) -> TimeLike:
    """Sharp pulses: bright for the first 10% of each cycle."""
    phase = np.mod(np.asarray(t) * speed * 2.0, 1.0)
    return _as_output(np.where(phase < 0.1, 0.8, 0.1))


def burst_envelope(t: TimeLike, speed: float, index: int) -> TimeLike:
    """Pulse trains during the first 30% of each burst cycle."""
    t = np.asarray(t)
    burst_phase = np.mod(t * speed, 1.0)
    pulse_phase = np.mod(t * speed * 5.0, 1.0)
    in_burst = 0.3 + np.sin(pulse_phase * TWO_PI) * 0.4
    return _as_output(np.where(burst_phase < 0.3, in_burst, 0.1))


def modulated_envelope(t: TimeLike, speed: float, index: int) -> TimeLike:
    """Slow amplitude envelope over a faster per-line carrier."""
    t = np.asarray(t)
    envelope = np.sin(t * speed * 0.5) * 0.5 + 0.5
    carrier = np.sin(t * speed * 3.0 + index * 0.2) * 0.5 + 0.5
    return _as_output(0.2 + envelope * carrier * 0.6)


MODE_ENVELOPES: Dict[TensMode, Envelope] = {
    TensMode.CONVENCIONAL: conventional_envelope,
    TensMode.ACUPUNTURA: acupuncture_envelope,
    TensMode.BURST: burst_envelope,
    TensMode.MODULADO: modulated_envelope,
}


def raw_opacity(mode: TensMode, t: TimeLike, frequency_hz: float, index: int = 0) -> TimeLike:
    """Opacity before the intensity scaling."""
    return MODE_ENVELOPES[TensMode(mode)](t, animation_speed(frequency_hz), index)


def line_opacity(
    mode: TensMode,
    frequency_hz: float,
    intensity_norm: float,
    index: int,
    t: TimeLike,
) -> TimeLike:
    """
    Opacity of field line `index` at elapsed time `t` (seconds).

    Returns:
        raw envelope * intensity_norm, clamped to [0, 1].
    """
    raw = raw_opacity(mode, t, frequency_hz, index)
    return _as_output(np.clip(np.asarray(raw) * intensity_norm, 0.0, 1.0))


def envelope_function(params: StimulationParams) -> Callable[[int, TimeLike], TimeLike]:
    """
    Build the `(line_index, time) -> opacity` callable handed to the renderer.
    """
    mode = params.mode
    frequency_hz = params.frequency_hz
    intensity_norm = params.intensity_norm

    def opacity(line_index: int, time: TimeLike) -> TimeLike:
        return line_opacity(mode, frequency_hz, intensity_norm, line_index, time)

    return opacity


def volume_opacity(t: TimeLike, params: StimulationParams) -> TimeLike:
    """Opacity of the translucent field volume (slow pulse)."""
    speed = animation_speed(params.frequency_hz)
    pulse = np.sin(np.asarray(t) * speed * 2.0) * 0.5 + 0.5
    return _as_output(np.clip(params.intensity_norm * pulse * 0.15, 0.0, 1.0))


def plot_envelope(
    params: StimulationParams,
    duration: float = 2.0,
    line_indices: tuple[int, ...] = (0, 5),
    show: bool = True,
    ax: Optional[plt.Axes] = None,
) -> plt.Figure:
    """
    Plot the opacity of a few field lines over time.
    """
    times = np.linspace(0.0, duration, 1000)
    opacity = envelope_function(params)

    if ax is None:
        plt.rcParams["figure.constrained_layout.use"] = True
        fig = plt.figure(figsize=(7, 4))
        ax = fig.gca()
    else:
        fig = ax.figure

    for index in line_indices:
        ax.plot(times, opacity(index, times), lw=1.5, label=f"line {index}")

    ax.grid(visible=True, which='major', axis='both', linestyle='-', color='gray', lw=0.5)
    ax.set_title(f"Waveform Envelope: {params.mode.value} @ {params.frequency_hz:.0f} Hz")
    ax.set_xlabel("Time (s)")
    ax.set_ylabel("Opacity")
    ax.set_ylim(-0.05, 1.05)
    ax.legend()

    if show:
        plt.show()
    return fig
