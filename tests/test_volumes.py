"""Tests for binding solids and materials into logical volumes."""

import pytest

from gdml_builder.contracts import MaterialRef, SolidRef, Volume, VolumeRef
from gdml_builder.errors import DuplicateNameError, UnknownReferenceError
from gdml_builder.materials import MaterialRegistry
from gdml_builder.solids import SolidRegistry
from gdml_builder.volumes import VolumeRegistry


@pytest.fixture
def registries(catalog):
    solids = SolidRegistry()
    materials = MaterialRegistry(catalog)
    solids.box(1, 1, 1, "cube")
    materials.define("Copper", "G4_Cu")
    return solids, materials, VolumeRegistry(solids, materials)


class TestVolumeRegistry:

    def test_bind(self, registries):
        _, _, volumes = registries
        ref = volumes.bind(SolidRef("cube"), MaterialRef("Copper"), "cubeVolume")
        assert ref == VolumeRef("cubeVolume")
        assert volumes.get(ref) == Volume("cubeVolume", SolidRef("cube"), MaterialRef("Copper"))

    def test_one_solid_many_volumes(self, registries):
        _, materials, volumes = registries
        materials.define("Lead", "G4_Pb")
        volumes.bind(SolidRef("cube"), MaterialRef("Copper"), "a")
        volumes.bind(SolidRef("cube"), MaterialRef("Lead"), "b")
        assert volumes.names() == ["a", "b"]

    def test_unknown_solid(self, registries):
        _, _, volumes = registries
        with pytest.raises(UnknownReferenceError) as exc:
            volumes.bind(SolidRef("sphere"), MaterialRef("Copper"), "v")
        assert exc.value.kind == "solid"
        assert "v" not in volumes

    def test_unknown_material(self, registries):
        _, _, volumes = registries
        with pytest.raises(UnknownReferenceError) as exc:
            volumes.bind(SolidRef("cube"), MaterialRef("Gold"), "v")
        assert exc.value.kind == "material"
        assert len(volumes) == 0

    def test_duplicate_name(self, registries):
        _, _, volumes = registries
        volumes.bind(SolidRef("cube"), MaterialRef("Copper"), "v")
        with pytest.raises(DuplicateNameError):
            volumes.bind(SolidRef("cube"), MaterialRef("Copper"), "v")

    def test_empty_name(self, registries):
        _, _, volumes = registries
        with pytest.raises(ValueError):
            volumes.bind(SolidRef("cube"), MaterialRef("Copper"), "")

    def test_volume_and_solid_may_share_a_name(self, registries):
        _, _, volumes = registries
        volumes.bind(SolidRef("cube"), MaterialRef("Copper"), "cube")
        assert "cube" in volumes
