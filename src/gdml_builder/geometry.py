"""
One geometry construction run.

`Geometry` owns the four registries (materials, solids, volumes, assemblies)
and the scene graph for a single pass, and is what the GDML writer consumes.
Independent parts of a setup may be built in separate Geometry objects that
share a catalog and then be merged; the merge is the only point where names
and references across the parts are checked against each other.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from gdml_builder.chain import build_chain
from gdml_builder.contracts import (
    AssemblyRef,
    MaterialRef,
    Placement,
    PlacementTarget,
    Position,
    Rotation,
    Solid,
    SolidRef,
    Transform,
    VolumeRef,
)
from gdml_builder.errors import (
    DuplicateNameError,
    UnknownReferenceError,
    WorldAlreadySetError,
)
from gdml_builder.materials import MaterialCatalog, MaterialRegistry
from gdml_builder.replication import replicate_radially
from gdml_builder.scene import Container, SceneGraph
from gdml_builder.solids import SolidRegistry
from gdml_builder.volumes import VolumeRegistry

logger = logging.getLogger(__name__)


def _transform(position: Optional[Position], rotation: Optional[Rotation]) -> Transform:
    return Transform(
        position=position if position is not None else Position(),
        rotation=rotation if rotation is not None else Rotation(),
    )


class Geometry:
    """Registries and scene graph for one geometry."""

    def __init__(self, catalog: MaterialCatalog, name: str = "geometry"):
        self.name = name
        self.materials = MaterialRegistry(catalog)
        self.solids = SolidRegistry()
        self.volumes = VolumeRegistry(self.solids, self.materials)
        self.scene = SceneGraph(self.volumes)

    # --- materials ---

    def material(self, name: str, catalog_id: str) -> MaterialRef:
        return self.materials.define(name, catalog_id)

    # --- solids ---

    def box(self, x: float, y: float, z: float, name: str) -> SolidRef:
        return self.solids.box(x, y, z, name)

    def tube(self, rmax: float, z: float, name: str, rmin: float = 0.0,
             startphi: float = 0.0, deltaphi: float = 360.0) -> SolidRef:
        return self.solids.tube(rmax, z, name, rmin=rmin, startphi=startphi, deltaphi=deltaphi)

    def cone(self, z: float, rmax1: float, rmax2: float, name: str,
             rmin1: float = 0.0, rmin2: float = 0.0) -> SolidRef:
        return self.solids.cone(z, rmax1, rmax2, name, rmin1=rmin1, rmin2=rmin2)

    def union(self, first: SolidRef, second: SolidRef, name: str,
              position: Optional[Position] = None,
              rotation: Optional[Rotation] = None) -> SolidRef:
        return self.solids.define_union(first, second, name, _transform(position, rotation))

    def subtraction(self, first: SolidRef, second: SolidRef, name: str,
                    position: Optional[Position] = None,
                    rotation: Optional[Rotation] = None) -> SolidRef:
        return self.solids.define_subtraction(first, second, name, _transform(position, rotation))

    def chain(self, segments: Sequence[SolidRef], name: str,
              lengths: Optional[Sequence[float]] = None, axis: str = "z") -> SolidRef:
        return build_chain(self.solids, segments, name, lengths=lengths, axis=axis)

    def replicate(self, base: SolidRef, pattern: SolidRef, name: str,
                  count: Optional[int] = None, step: Optional[float] = None,
                  angles: Optional[Sequence[float]] = None, axis: str = "z",
                  hub: Optional[SolidRef] = None) -> SolidRef:
        return replicate_radially(
            self.solids, base, pattern, name,
            count=count, step=step, angles=angles, axis=axis, hub=hub,
        )

    def iter_solids(self) -> List[Solid]:
        """All solids with dependencies before dependents."""
        return self.solids.topological_order()

    # --- structure ---

    def volume(self, solid: SolidRef, material: MaterialRef, name: str) -> VolumeRef:
        return self.volumes.bind(solid, material, name)

    def assembly(self, name: str) -> AssemblyRef:
        return self.scene.begin_assembly(name)

    def place(self, parent: Container, target: PlacementTarget, name: str,
              position: Optional[Position] = None,
              rotation: Optional[Rotation] = None) -> Placement:
        return self.scene.place(parent, target, name, position=position, rotation=rotation)

    def set_world(self, volume: VolumeRef) -> VolumeRef:
        return self.scene.set_world(volume)

    @property
    def world(self) -> Optional[VolumeRef]:
        return self.scene.world

    def counts(self) -> Dict[str, int]:
        return {
            "materials": len(self.materials),
            "solids": len(self.solids),
            "volumes": len(self.volumes),
            "assemblies": len(self.scene.assembly_names()),
        }

    # --- merging ---

    def merge(self, other: "Geometry") -> None:
        """Fold another construction run into this one.

        All names and references are checked first; on any error nothing
        is merged. A material bound under the same name to the same catalog
        entry in both runs is one material, not a collision.
        """
        other_solids = other.solids.topological_order()
        other_assemblies = other.scene.topological_assemblies()

        for solid in other_solids:
            if solid.name in self.solids:
                raise DuplicateNameError("solid", solid.name)

        for name, handle in other.materials.items():
            if name in self.materials:
                if self.materials.catalog_id(MaterialRef(name)) != handle.name:
                    raise DuplicateNameError("material", name)
            else:
                self.materials.catalog.resolve(handle.name)

        solid_names = set(self.solids.names()) | {s.name for s in other_solids}
        material_names = set(self.materials.names()) | set(other.materials.names())
        for volume in other.volumes:
            if volume.name in self.volumes:
                raise DuplicateNameError("volume", volume.name)
            if volume.solid.name not in solid_names:
                raise UnknownReferenceError("solid", volume.solid.name, f"volume '{volume.name}'")
            if volume.material.name not in material_names:
                raise UnknownReferenceError(
                    "material", volume.material.name, f"volume '{volume.name}'"
                )

        volume_names = set(self.volumes.names()) | set(other.volumes.names())
        assembly_names = set(self.scene.assembly_names()) | {a.name for a in other_assemblies}
        for assembly in other_assemblies:
            if assembly.name in self.scene.assembly_names():
                raise DuplicateNameError("assembly", assembly.name)
            for placement in assembly.placements:
                known = assembly_names if isinstance(placement.target, AssemblyRef) else volume_names
                if placement.target.name not in known:
                    raise UnknownReferenceError(
                        "placement target", placement.target.name, f"assembly '{assembly.name}'"
                    )

        if other.world is not None:
            if self.world is not None:
                raise WorldAlreadySetError(
                    f"both '{self.name}' and '{other.name}' define a world volume"
                )
            for placement in other.scene.placements(other.world):
                known = assembly_names if isinstance(placement.target, AssemblyRef) else volume_names
                if placement.target.name not in known:
                    raise UnknownReferenceError(
                        "placement target", placement.target.name, "world"
                    )

        self.materials.absorb(other.materials.items())
        self.solids.absorb(other.solids)
        self.volumes.absorb(iter(other.volumes))
        self.scene.absorb(other.scene)
        logger.info("Merged %s into %s: %s", other.name, self.name, other.counts())
