import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from tensfield.model.geometry_primitives import Point
from tensfield.model.stimulation import ElectrodePair, StimulationParams, TensMode
from tensfield.model.tissue import Inclusion, InclusionType, TissueConfig
from tensfield.simulation import engine


@pytest.fixture(autouse=True)
def _fresh_engine_cache():
    engine.clear_cache()
    yield
    engine.clear_cache()


@pytest.fixture
def electrodes():
    return ElectrodePair(proximal=Point(-3.0, 0.0, 0.0), distal=Point(3.0, 0.0, 0.0))


@pytest.fixture
def plain_tissue():
    return TissueConfig(
        skin_thickness=0.15,
        fat_thickness=0.0,
        muscle_thickness=0.6,
        bone_depth=0.85,
    )


@pytest.fixture
def implant_tissue():
    return TissueConfig(
        skin_thickness=0.2,
        fat_thickness=0.55,
        muscle_thickness=0.5,
        bone_depth=0.85,
        has_metal_implant=True,
        metal_implant_depth=0.55,
        metal_implant_span=0.8,
    )


@pytest.fixture
def mixed_inclusions():
    return (
        Inclusion(id="b1", type=InclusionType.BONE, position=0.3, depth=0.4, span=0.5),
        Inclusion(id="m1", type=InclusionType.MUSCLE, position=0.5, depth=0.3, span=0.6),
        Inclusion(id="f1", type=InclusionType.FAT, position=0.7, depth=0.2, span=0.4),
    )


@pytest.fixture
def max_params():
    return StimulationParams(frequency_hz=100.0, pulse_width_us=200.0, intensity_ma=80.0,
                             mode=TensMode.CONVENCIONAL)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
