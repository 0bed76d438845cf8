"""Tests for setup dimensions and JSON overrides."""

import json

import pytest

from gdml_builder.config import SetupConfig, load_config


class TestDefaults:

    def test_chamber(self, setup_config):
        chamber = setup_config.chamber
        assert chamber.radius == 51
        assert chamber.gas_radius == 50

    def test_pipe_sections_add_up(self, setup_config):
        pipe = setup_config.detector_pipe
        assert pipe.section_2_length == 132
        assert pipe.section_1_length == 327
        total = (
            pipe.chamber_flange_thickness
            + pipe.section_1_length
            + pipe.section_2_length
            + pipe.telescope_flange_thickness
        )
        assert total == pipe.total_length

    def test_bore_sections(self, setup_config):
        pipe = setup_config.detector_pipe
        assert pipe.bore_section_1_length == pytest.approx(179.35)
        assert pipe.bore_section_3_length == pytest.approx(106)
        assert pipe.bore_section_2_length == pytest.approx(160.28)
        bore = (
            pipe.bore_section_1_length + pipe.bore_cone_length_1
            + pipe.bore_section_2_length + pipe.bore_cone_length_2
            + pipe.bore_section_3_length + pipe.bore_cone_length_3
        )
        assert bore == pytest.approx(pipe.total_length)

    def test_materials(self, setup_config):
        assert setup_config.materials["Copper"] == "G4_Cu"
        assert setup_config.materials["Air"] == "G4_AIR"
        assert setup_config.output_path == "Setup.gdml"


class TestOverrides:

    def test_nested_override(self):
        config = SetupConfig.from_dict({"chamber": {"height": 40}, "world_size": 5000})
        assert config.chamber.height == 40
        assert config.chamber.diameter == 102
        assert config.world_size == 5000

    def test_materials_are_merged(self):
        config = SetupConfig.from_dict({"materials": {"Gas": "G4_Xe"}})
        assert config.materials["Gas"] == "G4_Xe"
        assert config.materials["Copper"] == "G4_Cu"

    @pytest.mark.parametrize("data", [{}, {"materials": {"Gas": "G4_Xe"}}])
    def test_materials_are_read_only(self, data):
        config = SetupConfig.from_dict(data)
        with pytest.raises(TypeError):
            config.materials["Gas"] = "G4_He"
        assert SetupConfig().materials["Gas"] == "G4_Ar"

    def test_unknown_top_level_key(self):
        with pytest.raises(ValueError):
            SetupConfig.from_dict({"colour": "red"})

    def test_unknown_nested_key(self):
        with pytest.raises(ValueError, match="shielding.thickness"):
            SetupConfig.from_dict({"shielding": {"thickness": 200}})

    def test_load_config(self, tmp_path):
        path = tmp_path / "setup.json"
        path.write_text(json.dumps({"shielding": {"size_z": 600}}), encoding="utf-8")
        config = load_config(str(path))
        assert config.shielding.size_z == 600
        assert config.shielding.size_xy == 590

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "missing.json"))

    def test_non_object(self, tmp_path):
        path = tmp_path / "setup.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(str(path))
