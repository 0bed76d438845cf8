"""
GDML writer for a finished Geometry.

Converts the registries and the scene graph into a GDML document readable
by Geant4 (G4GDMLParser) and ROOT (TGeoManager::Import). Entities are
written in dependency order: catalog definitions before the materials that
use them, operands before booleans, placed volumes and assemblies before
their parents, and the world volume last.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from fractions import Fraction
from pathlib import Path
from typing import Dict, List, Optional, Set, Union
from xml.dom import minidom

from gdml_builder.contracts import (
    BooleanSolid,
    BoxDims,
    ConeDims,
    Placement,
    PrimitiveSolid,
    Solid,
    Transform,
    TubeDims,
    VolumeRef,
)
from gdml_builder.geometry import Geometry

logger = logging.getLogger(__name__)

GDML_SCHEMA = "http://service-spi.web.cern.ch/service-spi/app/releases/GDML/schema/gdml.xsd"
XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"

Number = Union[int, float, Fraction]


def format_number(value: Number) -> str:
    """Deterministic text for a dimension: integers bare, floats shortest-exact."""
    if isinstance(value, bool):
        raise TypeError("booleans are not dimensions")
    if isinstance(value, int):
        return str(value)
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def _set_numbers(element: ET.Element, **values: Number) -> None:
    for key, value in values.items():
        element.set(key, format_number(value))


class _NameAllocator:
    """Names for inline positions and rotations, unique within one document."""

    def __init__(self):
        self.used: Set[str] = set()

    def unique(self, base: str) -> str:
        name = base
        suffix = 1
        while name in self.used:
            name = f"{base}_{suffix}"
            suffix += 1
        self.used.add(name)
        return name


def _transform_elements(
    parent: ET.Element,
    transform: Transform,
    prefix: str,
    names: Optional[_NameAllocator] = None,
) -> None:
    names = names if names is not None else _NameAllocator()
    position = transform.position
    if not position.is_zero:
        pos = ET.SubElement(
            parent, "position", name=names.unique(f"{prefix}_pos"), unit=position.unit
        )
        _set_numbers(pos, x=position.x, y=position.y, z=position.z)
    rotation = transform.rotation
    if not rotation.is_zero:
        rot = ET.SubElement(
            parent, "rotation", name=names.unique(f"{prefix}_rot"), unit=rotation.unit
        )
        _set_numbers(rot, x=rotation.x, y=rotation.y, z=rotation.z)


def solid_to_element(solid: Solid, names: Optional[_NameAllocator] = None) -> ET.Element:
    """One <solids> child for a primitive or boolean solid."""
    if isinstance(solid, BooleanSolid):
        element = ET.Element(solid.op.value, name=solid.name)
        ET.SubElement(element, "first", ref=solid.first.name)
        ET.SubElement(element, "second", ref=solid.second.name)
        _transform_elements(element, solid.transform, solid.name, names)
        return element

    if not isinstance(solid, PrimitiveSolid):
        raise TypeError(f"not a solid: {solid!r}")
    dims = solid.dims
    element = ET.Element(solid.kind.value, name=solid.name)
    if isinstance(dims, BoxDims):
        _set_numbers(element, x=dims.x, y=dims.y, z=dims.z)
    elif isinstance(dims, TubeDims):
        _set_numbers(
            element,
            rmin=dims.rmin, rmax=dims.rmax, z=dims.z,
            startphi=dims.startphi, deltaphi=dims.deltaphi,
        )
        element.set("aunit", "deg")
    elif isinstance(dims, ConeDims):
        _set_numbers(
            element,
            rmin1=dims.rmin1, rmax1=dims.rmax1,
            rmin2=dims.rmin2, rmax2=dims.rmax2, z=dims.z,
            startphi=dims.startphi, deltaphi=dims.deltaphi,
        )
        element.set("aunit", "deg")
    element.set("lunit", "mm")
    return element


def physvol_to_element(
    placement: Placement, parent_name: str, names: Optional[_NameAllocator] = None
) -> ET.Element:
    element = ET.Element("physvol", name=placement.name)
    ET.SubElement(element, "volumeref", ref=placement.target.name)
    _transform_elements(element, placement.transform, f"{parent_name}_{placement.name}", names)
    return element


def geometry_to_tree(geometry: Geometry) -> ET.Element:
    """Build the GDML element tree; raises UnresolvedWorldError without a world."""
    world = geometry.scene.require_world()
    names = _NameAllocator()

    root = ET.Element("gdml")
    root.set("xmlns:xsi", XSI_NAMESPACE)
    root.set("xsi:noNamespaceSchemaLocation", GDML_SCHEMA)

    ET.SubElement(root, "define")

    materials = ET.SubElement(root, "materials")
    catalog_ids: List[str] = []
    for _, handle in geometry.materials.items():
        if handle.name not in catalog_ids:
            catalog_ids.append(handle.name)
    for definition in geometry.materials.catalog.definitions_for(catalog_ids):
        materials.append(definition.to_element())

    solids = ET.SubElement(root, "solids")
    for solid in geometry.iter_solids():
        solids.append(solid_to_element(solid, names))

    structure = ET.SubElement(root, "structure")
    material_ids: Dict[str, str] = {
        name: handle.name for name, handle in geometry.materials.items()
    }

    def volume_element(volume_name: str) -> ET.Element:
        volume = geometry.volumes.get(VolumeRef(volume_name))
        element = ET.Element("volume", name=volume.name)
        ET.SubElement(element, "materialref", ref=material_ids[volume.material.name])
        ET.SubElement(element, "solidref", ref=volume.solid.name)
        return element

    for volume_name in geometry.volumes.names():
        if volume_name != world.name:
            structure.append(volume_element(volume_name))

    for assembly in geometry.scene.topological_assemblies():
        element = ET.SubElement(structure, "assembly", name=assembly.name)
        for placement in assembly.placements:
            element.append(physvol_to_element(placement, assembly.name, names))

    world_element = volume_element(world.name)
    for placement in geometry.scene.placements(world):
        world_element.append(physvol_to_element(placement, world.name, names))
    structure.append(world_element)

    setup = ET.SubElement(root, "setup", name="Default", version="1.0")
    ET.SubElement(setup, "world", ref=world.name)
    return root


def to_gdml(geometry: Geometry) -> str:
    """Render `geometry` as a pretty-printed GDML string."""
    root = geometry_to_tree(geometry)
    rough_string = ET.tostring(root, encoding="unicode")
    reparsed = minidom.parseString(rough_string)
    return reparsed.toprettyxml(indent="  ")


def write_gdml(geometry: Geometry, path: Union[str, Path]) -> Path:
    """Render the whole document, then write it in one go."""
    text = to_gdml(geometry)
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as f:
        f.write(text)
    logger.info("Wrote %s (%d bytes)", output_path, len(text.encode("utf-8")))
    return output_path
