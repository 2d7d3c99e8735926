import dataclasses
import json

import pytest

from tensfield.model.geometry_primitives import Point, Vector
from tensfield.model.presets import default_presets, get_preset, load_presets
from tensfield.model.stimulation import ElectrodePair, StimulationLimits, StimulationParams, TensMode
from tensfield.model.tissue import Inclusion, InclusionType, TissueConfig, TissueType


class TestTissueConfig:
    def test_negative_thickness_clamped_to_zero(self):
        tissue = TissueConfig(skin_thickness=-0.2, fat_thickness=-1.0, muscle_thickness=0.4)
        assert tissue.skin_thickness == 0.0
        assert tissue.fat_thickness == 0.0
        assert tissue.muscle_thickness == 0.4

    def test_implant_fields_clamped(self):
        tissue = TissueConfig(has_metal_implant=True, metal_implant_depth=1.7, metal_implant_span=-0.3)
        assert tissue.metal_implant_depth == 1.0
        assert tissue.metal_implant_span == 0.0
        assert tissue.has_implant_geometry

    def test_implant_fields_dropped_without_flag(self):
        tissue = TissueConfig(has_metal_implant=False, metal_implant_depth=0.5, metal_implant_span=0.5)
        assert tissue.metal_implant_depth is None
        assert tissue.metal_implant_span is None
        assert not tissue.has_implant_geometry

    def test_implant_flag_without_geometry(self):
        tissue = TissueConfig(has_metal_implant=True)
        assert tissue.has_metal_implant
        assert not tissue.has_implant_geometry

    def test_inclusion_fields_clamped(self):
        inc = Inclusion(id="x", type="bone", position=-1.0, depth=2.0, span=0.5)
        assert inc.type is InclusionType.BONE
        assert inc.position == 0.0
        assert inc.depth == 1.0

    def test_duplicate_inclusion_ids_rejected(self):
        inc = Inclusion(id="dup", type=InclusionType.FAT)
        with pytest.raises(ValueError):
            TissueConfig(inclusions=(inc, inc))

    def test_unknown_inclusion_type_rejected(self):
        with pytest.raises(ValueError):
            Inclusion.from_dict({"id": "a", "type": "cartilage"})

    def test_snapshot_is_frozen_and_hashable(self, implant_tissue):
        with pytest.raises(dataclasses.FrozenInstanceError):
            implant_tissue.skin_thickness = 0.5
        assert hash(implant_tissue) == hash(dataclasses.replace(implant_tissue))

    def test_with_inclusions_returns_new_snapshot(self, plain_tissue, mixed_inclusions):
        updated = plain_tissue.with_inclusions(mixed_inclusions)
        assert updated is not plain_tissue
        assert plain_tissue.inclusions == ()
        assert [inc.id for inc in updated.inclusions] == ["b1", "m1", "f1"]

    def test_dict_round_trip_keeps_camel_case_keys(self, implant_tissue, mixed_inclusions):
        tissue = implant_tissue.with_inclusions(mixed_inclusions)
        data = tissue.to_dict()
        assert data["skinThickness"] == 0.2
        assert data["metalImplantDepth"] == 0.55
        assert data["inclusions"][0]["type"] == "bone"
        assert TissueConfig.from_dict(json.loads(json.dumps(data))) == tissue

    def test_from_dict_defaults(self):
        tissue = TissueConfig.from_dict({"skinThickness": 0.1})
        assert tissue.skin_thickness == 0.1
        assert tissue.inclusions == ()
        assert tissue.tissue_type is TissueType.MUSCULAR

    def test_total_tissue_depth(self):
        tissue = TissueConfig(skin_thickness=0.1, fat_thickness=0.2, muscle_thickness=0.3)
        assert tissue.total_tissue_depth == pytest.approx(0.6)


class TestStimulationParams:
    def test_normalizations(self):
        params = StimulationParams(intensity_ma=40.0, pulse_width_us=225.0)
        assert params.intensity_norm == pytest.approx(0.5)
        assert params.pulse_norm == pytest.approx(0.5)

    def test_normalizations_are_clamped(self):
        params = StimulationParams(intensity_ma=500.0, pulse_width_us=10.0)
        assert params.intensity_norm == 1.0
        assert params.pulse_norm == 0.0

    def test_out_of_range_inputs_clamped(self):
        params = StimulationParams(frequency_hz=-5.0, pulse_width_us=0.0, intensity_ma=-3.0)
        assert params.frequency_hz > 0.0
        assert params.pulse_width_us > 0.0
        assert params.intensity_ma == 0.0

    def test_mode_from_string(self):
        assert StimulationParams(mode="burst").mode is TensMode.BURST
        with pytest.raises(ValueError):
            StimulationParams(mode="sine")

    def test_from_dict(self):
        params = StimulationParams.from_dict(
            {"frequencyHz": 2, "pulseWidthUs": 300, "intensitymA": 30, "mode": "acupuntura"}
        )
        assert params == StimulationParams(2.0, 300.0, 30.0, TensMode.ACUPUNTURA)
        assert StimulationParams.from_dict(params.to_dict()) == params


class TestStimulationLimits:
    def test_apply_clamps_to_ranges(self):
        limits = StimulationLimits(intensity_range=(0.0, 40.0))
        params = limits.apply(StimulationParams(frequency_hz=500.0, pulse_width_us=20.0, intensity_ma=70.0))
        assert params.frequency_hz == 200.0
        assert params.pulse_width_us == 50.0
        assert params.intensity_ma == 40.0

    def test_disallowed_mode_falls_back(self):
        limits = StimulationLimits(allowed_modes=(TensMode.MODULADO, TensMode.BURST))
        params = limits.apply(StimulationParams(mode=TensMode.ACUPUNTURA))
        assert params.mode is TensMode.MODULADO

    def test_empty_modes_rejected(self):
        with pytest.raises(ValueError):
            StimulationLimits(allowed_modes=())


class TestGeometry:
    def test_electrode_pair(self):
        pair = ElectrodePair(Point(-2.0, 1.0, 0.0), Point(4.0, 1.0, 2.0))
        assert pair.midpoint == Point(1.0, 1.0, 1.0)
        assert pair.axis == Vector(6.0, 0.0, 2.0)
        assert pair.span_x == 6.0

    def test_point_arithmetic(self):
        p = Point(1.0, 2.0, 3.0)
        assert p + Vector(1.0, 1.0, 1.0) == Point(2.0, 3.0, 4.0)
        assert p - Point(1.0, 2.0, 0.0) == Vector(0.0, 0.0, 3.0)
        assert p.lerp(Point(3.0, 2.0, 3.0), 0.25) == Point(1.5, 2.0, 3.0)
        with pytest.raises(TypeError):
            p + p
        with pytest.raises(TypeError):
            p - Vector(1.0, 0.0, 0.0)

    def test_point_from_sequence(self):
        assert Point.from_sequence([1, 2, 3]) == Point(1.0, 2.0, 3.0)
        with pytest.raises(ValueError):
            Point.from_sequence([1, 2])


class TestPresets:
    def test_bundled_presets(self):
        presets = default_presets()
        assert list(presets) == [
            "forearm_slim", "forearm_muscular", "thigh_obese_implant", "ankle_bony", "custom",
        ]
        assert presets["custom"].is_custom

    def test_implant_preset(self):
        preset = get_preset("thigh_obese_implant")
        assert preset.config.has_implant_geometry
        assert preset.config.metal_implant_span == 0.8
        assert preset.config.tissue_type is TissueType.MIXED

    def test_unknown_preset(self):
        with pytest.raises(KeyError):
            get_preset("shoulder")

    def test_load_presets_rejects_duplicates(self, tmp_path):
        entry = {"id": "a", "label": "A", "config": {"skinThickness": 0.1}}
        path = tmp_path / "presets.json"
        path.write_text(json.dumps([entry, entry]), encoding="utf-8")
        with pytest.raises(ValueError):
            load_presets(str(path))

    def test_load_presets_rejects_bad_entry(self, tmp_path):
        path = tmp_path / "presets.json"
        path.write_text(json.dumps([{"label": "no id"}]), encoding="utf-8")
        with pytest.raises(ValueError):
            load_presets(str(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            load_presets(str(tmp_path / "missing.json"))
