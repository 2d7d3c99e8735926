"""
Tissue Risk Classifier
======================
Reference classifier producing the RiskResult consumed by the lesion index.

The lab normally receives its RiskResult from the risk service; this
rule-based version lets the engine run end to end without it. It is an
educational simplification, not a clinical decision tool.

Note: This classifier uses its own normalizations (intensity / 100,
frequency / 150, pulse / 400), independent of the field model.
"""
from __future__ import annotations

from typing import List
import logging

from tensfield.model.stimulation import StimulationParams, TensMode
from tensfield.model.tissue import TissueConfig, TissueType
from tensfield.simulation.lesion import RiskLevel, RiskResult
from tensfield.utils import clamp, round_half_up

logger = logging.getLogger(__name__)

MAX_MESSAGES = 3
MODERATE_THRESHOLD = 30.0
HIGH_THRESHOLD = 70.0

MSG_DISABLED = "Simulação de risco desativada para este cenário."
MSG_SAFE = "Configuração segura. Parâmetros dentro dos limites recomendados."


def classify_level(score: float) -> RiskLevel:
    if score < MODERATE_THRESHOLD:
        return RiskLevel.BAIXO
    if score < HIGH_THRESHOLD:
        return RiskLevel.MODERADO
    return RiskLevel.ALTO


def disabled_risk() -> RiskResult:
    """Result reported while risk simulation is switched off."""
    return RiskResult(risk_level=RiskLevel.BAIXO, risk_score=0.0, messages=(MSG_DISABLED,))


def classify_tissue_risk(params: StimulationParams, tissue: TissueConfig) -> RiskResult:
    """
    Score the risk of applying `params` to `tissue`.

    Returns:
        RiskResult with a rounded score in [0, 100] and at most three messages.
    """
    if not tissue.enable_risk_simulation:
        return disabled_risk()

    intensity = params.intensity_ma / 100.0
    frequency = params.frequency_hz / 150.0
    pulse = params.pulse_width_us / 400.0

    score = 0.0
    messages: List[str] = []

    # Metal implant concentrates current
    if tissue.has_metal_implant and tissue.metal_implant_depth is not None:
        # A missing or zero span counts as half the segment
        span = tissue.metal_implant_span or 0.5
        score += intensity * span * 40.0
        if intensity > 0.6:
            messages.append(
                "ALERTA: Implante metálico detectado. Alta intensidade pode causar "
                "aquecimento localizado e desconforto severo."
            )
        elif intensity > 0.3:
            messages.append(
                "CUIDADO: Implante metálico presente. Monitore sensações de aquecimento "
                "ou formigamento excessivo."
            )

    # Thick fat with low intensity: observation only
    if tissue.fat_thickness > 0.6 and intensity < 0.3:
        messages.append(
            "INFO: Camada adiposa espessa. Intensidade baixa pode resultar em "
            "estimulação superficial insuficiente."
        )
        score += 5.0

    if tissue.bone_depth < 0.4 and intensity > 0.7:
        score += (1.0 - tissue.bone_depth) * intensity * 25.0
        messages.append(
            "ATENÇÃO: Estrutura óssea superficial. Alta intensidade pode causar "
            "desconforto periosteal."
        )

    # Thick muscle allows a safe, deep stimulation
    if tissue.muscle_thickness > 0.5 and intensity < 0.7:
        messages.append(
            "IDEAL: Camada muscular adequada permite boa profundidade de estimulação "
            "com segurança."
        )
        score -= 10.0

    if frequency > 0.8 and pulse > 0.7:
        score += frequency * pulse * 20.0
        messages.append(
            "CUIDADO: Combinação de alta frequência e pulso longo pode causar fadiga "
            "muscular ou desconforto."
        )

    if tissue.skin_thickness < 0.2 and intensity > 0.6:
        score += (1.0 - tissue.skin_thickness) * intensity * 15.0
        messages.append(
            "ATENÇÃO: Pele fina. Alta intensidade pode causar irritação cutânea. "
            "Use gel condutor adequado."
        )

    if params.mode == TensMode.BURST and tissue.tissue_type == TissueType.SOFT:
        messages.append(
            "DICA: Modo burst em tecido mole pode ser desconfortável. Considere modo convencional."
        )
        score += 5.0

    if params.mode == TensMode.ACUPUNTURA and tissue.muscle_thickness > 0.6:
        messages.append(
            "BOM: Modo acupuntura em músculo espesso é ideal para liberação de endorfinas."
        )
        score -= 5.0

    score = clamp(score, 0.0, 100.0)
    level = classify_level(score)
    if level == RiskLevel.BAIXO and not messages:
        messages.append(MSG_SAFE)

    logger.debug(f"Risk classified as {level} (score={score:.1f})")
    return RiskResult(
        risk_level=level,
        risk_score=float(round_half_up(score)),
        messages=tuple(messages[:MAX_MESSAGES]),
    )
