import math

import numpy as np
import pytest

from tensfield.config import DEPTH_SCALE
from tensfield.model.geometry_primitives import Point
from tensfield.model.stimulation import ElectrodePair
from tensfield.model.tissue import Inclusion, InclusionType, TissueConfig
from tensfield.simulation.field_lines import (
    FieldVolume,
    T_SAMPLES,
    generate_field_lines,
    line_count,
    plot_field_lines,
    smooth_field_line,
)


class _FixedJitter:
    """Generator stand-in returning the midpoint of every requested range."""

    def uniform(self, low, high):
        return (low + high) / 2.0


@pytest.mark.parametrize("intensity_norm", [0.0, 0.1, 0.25, 0.5, 0.77, 1.0])
def test_line_and_sample_counts(intensity_norm, plain_tissue, electrodes, rng):
    lines = generate_field_lines(plain_tissue, electrodes, intensity_norm, 0.8, rng=rng)
    assert len(lines) == math.floor(8 + intensity_norm * 12)
    assert all(line.shape == (21, 3) for line in lines)


def test_line_count_bounds():
    assert line_count(0.0) == 8
    assert line_count(1.0) == 20
    assert line_count(5.0) == 20


def test_t_samples():
    assert len(T_SAMPLES) == 21
    assert T_SAMPLES[0] == 0.0
    assert T_SAMPLES[-1] == 1.0
    assert T_SAMPLES[1] == pytest.approx(0.05)


def test_same_seed_same_lines(implant_tissue, mixed_inclusions, electrodes):
    tissue = implant_tissue.with_inclusions(mixed_inclusions)
    first = generate_field_lines(tissue, electrodes, 0.7, 1.1, rng=np.random.default_rng(7))
    second = generate_field_lines(tissue, electrodes, 0.7, 1.1, rng=np.random.default_rng(7))
    assert len(first) == len(second)
    for a, b in zip(first, second):
        np.testing.assert_array_equal(a, b)


def test_different_seed_different_lines(plain_tissue, electrodes):
    first = generate_field_lines(plain_tissue, electrodes, 0.5, 1.0, rng=np.random.default_rng(1))
    second = generate_field_lines(plain_tissue, electrodes, 0.5, 1.0, rng=np.random.default_rng(2))
    assert not np.array_equal(first[0], second[0])


def test_lines_are_read_only(plain_tissue, electrodes, rng):
    line = generate_field_lines(plain_tissue, electrodes, 0.5, 1.0, rng=rng)[0]
    with pytest.raises(ValueError):
        line[0, 0] = 42.0


def test_undistorted_arc_geometry(plain_tissue, electrodes):
    penetration = 1.0
    line = generate_field_lines(plain_tissue, electrodes, 0.0, penetration, rng=_FixedJitter())[0]
    curve = np.sin(T_SAMPLES * np.pi)
    # jitter = 0.2 -> arc height = -1.0, offset_z = 0
    np.testing.assert_allclose(line[:, 0], -3.0 + 6.0 * T_SAMPLES)
    np.testing.assert_allclose(line[:, 1], -1.0 * curve, atol=1e-12)
    np.testing.assert_allclose(line[:, 2], 0.0, atol=1e-12)


def test_lines_start_and_end_at_electrodes(plain_tissue, electrodes, rng):
    for line in generate_field_lines(plain_tissue, electrodes, 1.0, 1.5, rng=rng):
        np.testing.assert_allclose(line[0], [-3.0, 0.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(line[-1], [3.0, 0.0, 0.0], atol=1e-12)


def test_jitter_ranges(plain_tissue, electrodes, rng):
    penetration = 1.0
    for line in generate_field_lines(plain_tissue, electrodes, 1.0, penetration, rng=rng):
        mid = line[10]  # t = 0.5, sin = 1
        assert -2.0 <= mid[2] < 2.0
        assert -penetration * 1.2 < mid[1] <= -penetration * 0.8


def test_metal_implant_attracts_lines(electrodes):
    base = TissueConfig(skin_thickness=0.2, fat_thickness=0.2, muscle_thickness=0.2)
    implant = TissueConfig(skin_thickness=0.2, fat_thickness=0.2, muscle_thickness=0.2,
                           has_metal_implant=True, metal_implant_depth=0.5, metal_implant_span=1.0)
    implant_y = -0.5 * 0.6 * DEPTH_SCALE  # -1.5

    plain = generate_field_lines(base, electrodes, 0.0, 0.5, rng=_FixedJitter())[0]
    pulled = generate_field_lines(implant, electrodes, 0.0, 0.5, rng=_FixedJitter())[0]

    center = np.array([0.0, implant_y])
    d_plain = np.hypot(*(plain[:, :2] - center).T)
    d_pulled = np.hypot(*(pulled[:, :2] - center).T)
    inside = d_plain < 2.0
    assert inside.any()
    assert np.all(d_pulled[inside] < d_plain[inside])
    np.testing.assert_array_equal(pulled[~inside], plain[~inside])

    # attraction = (1 - d/r) * 0.4 of the vector to the implant
    k = np.flatnonzero(inside)[0]
    factor = (1.0 - d_plain[k] / 2.0) * 0.4
    expected = plain[k, :2] + (center - plain[k, :2]) * factor
    np.testing.assert_allclose(pulled[k, :2], expected)


def test_implant_flag_can_be_disabled(implant_tissue, electrodes):
    plain = TissueConfig(skin_thickness=0.2, fat_thickness=0.55, muscle_thickness=0.5)
    a = generate_field_lines(implant_tissue, electrodes, 0.0, 1.0, rng=_FixedJitter(), use_metal_implant=False)
    b = generate_field_lines(plain, electrodes, 0.0, 1.0, rng=_FixedJitter())
    np.testing.assert_array_equal(a[0], b[0])


def test_bone_inclusion_deflects_lines(electrodes):
    base = TissueConfig(skin_thickness=0.2, fat_thickness=0.2, muscle_thickness=0.2)
    bone = base.with_inclusions([Inclusion(id="b", type=InclusionType.BONE, position=0.5, depth=0.4, span=1.0)])
    center = np.array([0.0, -0.4 * 0.6 * DEPTH_SCALE])

    plain = generate_field_lines(base, electrodes, 0.0, 1.0, rng=_FixedJitter())[0]
    pushed = generate_field_lines(bone, electrodes, 0.0, 1.0, rng=_FixedJitter())[0]

    d_plain = np.hypot(*(plain[:, :2] - center).T)
    d_pushed = np.hypot(*(pushed[:, :2] - center).T)
    inside = (d_plain < 1.5) & (d_plain > 0.0)
    assert inside.any()
    # deflection moves each sample (1 - d/r) * 0.3 further from the center
    np.testing.assert_allclose(d_pushed[inside], d_plain[inside] + (1.0 - d_plain[inside] / 1.5) * 0.3)


def test_muscle_inclusion_attracts_and_fat_deflects(electrodes):
    base = TissueConfig(skin_thickness=0.2, fat_thickness=0.2, muscle_thickness=0.2)
    center = np.array([0.0, -0.4 * 0.6 * DEPTH_SCALE])
    plain = generate_field_lines(base, electrodes, 0.0, 1.0, rng=_FixedJitter())[0]
    d_plain = np.hypot(*(plain[:, :2] - center).T)
    inside = d_plain < 1.5

    for kind, closer in ((InclusionType.MUSCLE, True), (InclusionType.FAT, False)):
        tissue = base.with_inclusions([Inclusion(id="x", type=kind, position=0.5, depth=0.4, span=1.0)])
        line = generate_field_lines(tissue, electrodes, 0.0, 1.0, rng=_FixedJitter())[0]
        d = np.hypot(*(line[:, :2] - center).T)
        if closer:
            assert np.all(d[inside] < d_plain[inside])
        else:
            assert np.all(d[inside] > d_plain[inside])


def test_sample_on_feature_center_is_left_alone():
    # Flat electrodes, zero penetration: the t=0.5 sample sits at (0, 0)
    electrodes = ElectrodePair(Point(-1.0, 0.0, 0.0), Point(1.0, 0.0, 0.0))
    tissue = TissueConfig(inclusions=(
        Inclusion(id="b", type=InclusionType.BONE, position=0.5, depth=0.0, span=1.0),
    ))
    line = generate_field_lines(tissue, electrodes, 0.0, 0.0, rng=_FixedJitter())[0]
    assert np.all(np.isfinite(line))
    np.testing.assert_array_equal(line[10, :2], [0.0, 0.0])


def test_metal_implant_inclusion_does_not_distort(plain_tissue, electrodes):
    tissue = plain_tissue.with_inclusions([
        Inclusion(id="i", type=InclusionType.METAL_IMPLANT, position=0.5, depth=0.2, span=1.0),
    ])
    a = generate_field_lines(tissue, electrodes, 0.3, 1.0, rng=_FixedJitter())
    b = generate_field_lines(plain_tissue, electrodes, 0.3, 1.0, rng=_FixedJitter())
    np.testing.assert_array_equal(np.stack(a), np.stack(b))


def test_smooth_field_line(plain_tissue, electrodes, rng):
    line = generate_field_lines(plain_tissue, electrodes, 0.5, 1.0, rng=rng)[0]
    smooth = smooth_field_line(line, n_points=50)
    assert smooth.shape == (50, 3)
    np.testing.assert_allclose(smooth[0], line[0], atol=1e-9)
    np.testing.assert_allclose(smooth[-1], line[-1], atol=1e-9)
    with pytest.raises(ValueError):
        smooth_field_line(line, n_points=1)


def test_field_volume(electrodes):
    volume = FieldVolume.from_penetration(electrodes, 1.0)
    assert volume.center == (0.0, -0.5, 0.0)
    assert volume.size == (8.0, 1.5, 4.0)


def test_plot_field_lines(plain_tissue, electrodes, rng):
    lines = generate_field_lines(plain_tissue, electrodes, 0.5, 1.0, rng=rng)
    fig = plot_field_lines(lines, plain_tissue, show=False)
    assert len(fig.axes[0].lines) >= len(lines)
