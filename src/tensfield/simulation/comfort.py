"""
Comfort Estimate
================
Patient comfort and sensory activation shown on the feedback card. Both
levels are integers in [0, 100].
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from tensfield.model.stimulation import StimulationParams, TensMode
from tensfield.utils import clamp01, round_half_up

# Positive bias = the mode feels more comfortable
COMFORT_BIAS: Dict[TensMode, float] = {
    TensMode.CONVENCIONAL: 0.10,
    TensMode.ACUPUNTURA: -0.05,
    TensMode.BURST: -0.10,
    TensMode.MODULADO: 0.0,
}

ACTIVATION_BOOST: Dict[TensMode, float] = {
    TensMode.CONVENCIONAL: 0.05,
    TensMode.ACUPUNTURA: 0.10,
    TensMode.BURST: 0.15,
    TensMode.MODULADO: 0.08,
}


@dataclass(frozen=True)
class ComfortEstimate:
    comfort_level: int      # 0-100, 100 = very comfortable
    activation_level: int   # 0-100, sensory activation
    message: str


def estimate_comfort(params: StimulationParams) -> ComfortEstimate:
    """Patient comfort and sensory activation for the feedback card."""
    intensity = params.intensity_norm
    pulse = params.pulse_norm
    frequency = clamp01((params.frequency_hz - 1.0) / (200.0 - 1.0))

    discomfort = 0.55 * intensity + 0.30 * pulse + 0.15 * frequency
    discomfort = clamp01(discomfort - COMFORT_BIAS[params.mode])
    comfort_level = round_half_up((1.0 - discomfort) * 100)

    activation = 0.60 * intensity + 0.25 * frequency + 0.15 * pulse
    activation_level = round_half_up(clamp01(activation + ACTIVATION_BOOST[params.mode]) * 100)

    if comfort_level >= 70:
        message = "Estimulação confortável"
    elif comfort_level >= 40:
        message = "Estimulação intensa (monitorar conforto do paciente)"
    else:
        message = "Parâmetros potencialmente desconfortáveis. Ajuste a intensidade ou largura de pulso"

    return ComfortEstimate(comfort_level=comfort_level, activation_level=activation_level, message=message)
