"""Run one simulation pass on a bundled preset and preview it."""
import logging
import sys

import matplotlib.pyplot as plt

from tensfield.logging_config import setup_logging
from tensfield.model.presets import get_preset
from tensfield.model.stimulation import StimulationParams, TensMode
from tensfield.simulation.engine import simulate
from tensfield.simulation.field_lines import plot_field_lines
from tensfield.simulation.waveform import plot_envelope

logger = logging.getLogger("tensfield")


def main(argv: list[str] | None = None) -> None:
    setup_logging(level=logging.INFO)
    args = sys.argv[1:] if argv is None else argv
    preset_id = args[0] if args else "thigh_obese_implant"

    preset = get_preset(preset_id)
    params = StimulationParams(frequency_hz=80.0, pulse_width_us=250.0, intensity_ma=50.0,
                               mode=TensMode.BURST)

    result = simulate(preset.config, params)

    logger.info(f"Preset: {preset.label}")
    logger.info(f"Penetration depth: {result.penetration_depth:.3f}")
    logger.info(f"Field lines: {len(result.field_lines)}")
    logger.info(f"Risk: {result.risk.risk_level} ({result.risk.risk_score:.0f})")
    logger.info(f"Lesion index: {result.lesion_index:.3f}")
    logger.info(f"Comfort: {result.comfort.comfort_level} - {result.comfort.message}")
    logger.info(f"Field: skin {result.electric_field.e_skin:.2f} V/cm, "
                f"muscle {result.electric_field.e_muscle:.2f} V/cm")
    logger.info(f"Activation: {result.activation.depth_mm:.1f} mm, "
                f"sensory {result.activation.sensory}, motor {result.activation.motor}")
    logger.info(result.distance_explanation)
    for message in result.risk.messages:
        logger.info(f"  {message}")
    if result.warnings:
        logger.warning(f"Warnings: {', '.join(result.warnings)}")

    plot_field_lines(result.field_lines, preset.config, show=False)
    plot_envelope(params, show=False)
    result.heatmap.plot(result.activation_zone, show=False)
    plt.show()


if __name__ == "__main__":
    main()
