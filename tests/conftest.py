"""
Shared test fixtures for geometry construction and GDML output tests.
"""
import sys
from pathlib import Path

import pytest

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gdml_builder.config import SetupConfig
from gdml_builder.geometry import Geometry
from gdml_builder.materials import MaterialCatalog


CATALOG_XML = """<?xml version="1.0" encoding="UTF-8"?>
<gdml>
  <materials>
    <isotope name="Cu63" Z="29" N="63">
      <atom value="62.9296"/>
    </isotope>
    <isotope name="Cu65" Z="29" N="65">
      <atom value="64.9278"/>
    </isotope>
    <element name="Cu">
      <fraction ref="Cu63" n="0.6917"/>
      <fraction ref="Cu65" n="0.3083"/>
    </element>
    <element name="H" formula="H" Z="1"><atom value="1.008"/></element>
    <element name="C" formula="C" Z="6"><atom value="12.011"/></element>
    <element name="N" formula="N" Z="7"><atom value="14.007"/></element>
    <element name="O" formula="O" Z="8"><atom value="15.999"/></element>
    <element name="F" formula="F" Z="9"><atom value="18.998"/></element>
    <element name="Ar" formula="Ar" Z="18"><atom value="39.948"/></element>
    <element name="Fe" formula="Fe" Z="26"><atom value="55.845"/></element>
    <element name="Pb" formula="Pb" Z="82"><atom value="207.2"/></element>
    <material name="G4_Cu" state="solid">
      <D value="8.96"/>
      <fraction n="1" ref="Cu"/>
    </material>
    <material name="G4_AIR" state="gas">
      <D value="0.00120479"/>
      <fraction n="0.7553" ref="N"/>
      <fraction n="0.2447" ref="O"/>
    </material>
    <material name="G4_Ar" state="gas">
      <D value="0.00166201"/>
      <fraction n="1" ref="Ar"/>
    </material>
    <material name="G4_Galactic" state="gas">
      <D value="1e-25"/>
      <fraction n="1" ref="H"/>
    </material>
    <material name="G4_Pb" state="solid">
      <D value="11.35"/>
      <fraction n="1" ref="Pb"/>
    </material>
    <material name="G4_TEFLON" state="solid">
      <D value="2.2"/>
      <composite n="2" ref="C"/>
      <composite n="4" ref="F"/>
    </material>
    <material name="G4_KAPTON" state="solid">
      <D value="1.42"/>
      <composite n="22" ref="C"/>
      <composite n="10" ref="H"/>
      <composite n="2" ref="N"/>
      <composite n="5" ref="O"/>
    </material>
    <material name="G4_MYLAR" state="solid">
      <D value="1.4"/>
      <composite n="10" ref="C"/>
      <composite n="8" ref="H"/>
      <composite n="4" ref="O"/>
    </material>
    <material name="G4_Fe" state="solid">
      <D value="7.874"/>
      <fraction n="1" ref="Fe"/>
    </material>
  </materials>
</gdml>
"""


@pytest.fixture
def catalog_xml():
    """GDML materials document covering every material the setup uses."""
    return CATALOG_XML


@pytest.fixture
def catalog():
    return MaterialCatalog.from_xml(CATALOG_XML, source="test-catalog")


@pytest.fixture
def catalog_file(tmp_path):
    path = tmp_path / "materials.xml"
    path.write_text(CATALOG_XML, encoding="utf-8")
    return path


@pytest.fixture
def geometry(catalog):
    """Empty geometry bound to the test catalog."""
    return Geometry(catalog, name="test")


@pytest.fixture
def setup_config():
    return SetupConfig()
