"""Tests for the material catalog and the symbolic material registry."""

import pytest
import requests

from gdml_builder import materials as materials_module
from gdml_builder.contracts import MaterialRef
from gdml_builder.errors import (
    DuplicateNameError,
    GeometryError,
    UnknownMaterialError,
    UnknownReferenceError,
)
from gdml_builder.materials import MaterialCatalog, MaterialRegistry


class _FakeResponse:
    def __init__(self, text, status=200):
        self.text = text
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class TestCatalogParsing:
    """Reading a GDML materials document."""

    def test_entries_of_every_kind(self, catalog):
        assert "Cu63" in catalog
        assert "Cu" in catalog
        assert "G4_Cu" in catalog
        assert catalog.resolve("Cu63").tag == "isotope"
        assert catalog.resolve("Cu").tag == "element"
        assert catalog.resolve("G4_Cu").tag == "material"

    def test_refs_are_collected(self, catalog):
        assert catalog.resolve("G4_AIR").refs == ("N", "O")
        assert catalog.resolve("Cu").refs == ("Cu63", "Cu65")

    def test_unknown_id(self, catalog):
        with pytest.raises(UnknownMaterialError):
            catalog.resolve("G4_UNOBTAINIUM")

    def test_bare_materials_root(self):
        text = '<materials><material name="M"><D value="1"/></material></materials>'
        assert MaterialCatalog.from_xml(text).names() == ["M"]

    def test_namespaced_document(self):
        text = (
            '<gdml xmlns="urn:example"><materials>'
            '<element name="X" Z="1"><atom value="1"/></element>'
            "</materials></gdml>"
        )
        assert "X" in MaterialCatalog.from_xml(text)

    def test_invalid_xml(self):
        with pytest.raises(UnknownMaterialError):
            MaterialCatalog.from_xml("<gdml><materials>")

    def test_missing_materials_section(self):
        with pytest.raises(UnknownMaterialError):
            MaterialCatalog.from_xml("<gdml><solids/></gdml>")

    def test_from_file(self, catalog_file):
        catalog = MaterialCatalog.from_file(str(catalog_file))
        assert "G4_KAPTON" in catalog
        assert catalog.source == str(catalog_file)

    def test_from_missing_file(self, tmp_path):
        with pytest.raises(UnknownMaterialError):
            MaterialCatalog.from_file(str(tmp_path / "nope.xml"))

    def test_catalog_errors_are_geometry_errors(self):
        assert issubclass(UnknownMaterialError, GeometryError)


class TestDefinitionClosure:
    """Definitions needed to write a set of materials."""

    def test_dependencies_come_first(self, catalog):
        names = [d.name for d in catalog.definitions_for(["G4_Cu"])]
        assert names == ["Cu63", "Cu65", "Cu", "G4_Cu"]

    def test_shared_elements_written_once(self, catalog):
        names = [d.name for d in catalog.definitions_for(["G4_KAPTON", "G4_MYLAR"])]
        assert names.count("C") == 1
        assert names.count("H") == 1
        assert names.index("O") < names.index("G4_MYLAR")
        assert "G4_Fe" not in names
        assert "Fe" not in names

    def test_builtin_refs_are_skipped(self):
        text = (
            "<materials>"
            '<material name="G4_WATER"><fraction n="1" ref="G4_H"/></material>'
            "</materials>"
        )
        catalog = MaterialCatalog.from_xml(text)
        assert [d.name for d in catalog.definitions_for(["G4_WATER"])] == ["G4_WATER"]

    def test_unknown_request(self, catalog):
        with pytest.raises(UnknownMaterialError):
            catalog.definitions_for(["G4_Cu", "missing"])

    def test_to_element_is_a_clean_copy(self, catalog):
        handle = catalog.resolve("G4_AIR")
        element = handle.to_element()
        assert element is not handle.element
        assert element.get("name") == "G4_AIR"
        assert all(node.text is None for node in element.iter())


class TestCatalogFetch:
    """Downloading the catalog over HTTP."""

    def test_successful_fetch(self, monkeypatch, catalog_xml):
        calls = []

        def fake_get(url, timeout):
            calls.append((url, timeout))
            return _FakeResponse(catalog_xml)

        monkeypatch.setattr(materials_module.requests, "get", fake_get)
        catalog = MaterialCatalog.fetch("https://example.org/materials.xml", timeout=5)
        assert "G4_Pb" in catalog
        assert catalog.source == "https://example.org/materials.xml"
        assert calls == [("https://example.org/materials.xml", 5)]

    def test_retries_then_fails(self, monkeypatch):
        attempts = []
        sleeps = []

        def failing_get(url, timeout):
            attempts.append(url)
            raise requests.ConnectionError("offline")

        monkeypatch.setattr(materials_module.requests, "get", failing_get)
        monkeypatch.setattr(materials_module.time, "sleep", sleeps.append)
        with pytest.raises(UnknownMaterialError):
            MaterialCatalog.fetch("https://example.org/m.xml", retries=3, backoff_seconds=0.5)
        assert len(attempts) == 3
        assert sleeps == [0.5, 1.0]

    def test_http_error_is_retried(self, monkeypatch, catalog_xml):
        responses = [_FakeResponse("", status=503), _FakeResponse(catalog_xml)]
        monkeypatch.setattr(
            materials_module.requests, "get", lambda url, timeout: responses.pop(0)
        )
        monkeypatch.setattr(materials_module.time, "sleep", lambda s: None)
        catalog = MaterialCatalog.fetch("https://example.org/m.xml")
        assert "G4_Cu" in catalog


class TestMaterialRegistry:
    """Symbolic names bound to catalog materials."""

    def test_define_and_lookup(self, catalog):
        registry = MaterialRegistry(catalog)
        ref = registry.define("Copper", "G4_Cu")
        assert ref == MaterialRef("Copper")
        assert registry.catalog_id(ref) == "G4_Cu"
        assert "Copper" in registry
        assert ref in registry

    def test_duplicate_name(self, catalog):
        registry = MaterialRegistry(catalog)
        registry.define("Copper", "G4_Cu")
        with pytest.raises(DuplicateNameError):
            registry.define("Copper", "G4_Pb")
        assert registry.catalog_id(MaterialRef("Copper")) == "G4_Cu"

    def test_unknown_catalog_id_registers_nothing(self, catalog):
        registry = MaterialRegistry(catalog)
        with pytest.raises(UnknownMaterialError):
            registry.define("Steel", "G4_STAINLESS-STEEL")
        assert "Steel" not in registry
        assert len(registry) == 0

    def test_two_names_for_one_catalog_entry(self, catalog):
        registry = MaterialRegistry(catalog)
        registry.define("Gas", "G4_Ar")
        registry.define("Argon", "G4_Ar")
        assert len(registry) == 2

    def test_unknown_ref(self, catalog):
        registry = MaterialRegistry(catalog)
        with pytest.raises(UnknownReferenceError):
            registry.get(MaterialRef("Copper"))
