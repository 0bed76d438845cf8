"""
Scene graph: assemblies and physical placements rooted at one world volume.

Placements reference volumes or assemblies by name. The same target may be
placed many times. An assembly is sealed as soon as it is placed somewhere,
so the tree seen by the writer can never change after it has been used.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple, Union

import numpy as np
from scipy.spatial.transform import Rotation as SpatialRotation

from gdml_builder.contracts import (
    ANGLE_TO_RAD,
    LENGTH_TO_MM,
    Assembly,
    AssemblyRef,
    Placement,
    PlacementTarget,
    Position,
    Rotation,
    Transform,
    VolumeRef,
)
from gdml_builder.errors import (
    CyclicDependencyError,
    DuplicateNameError,
    SealedAssemblyError,
    UnknownReferenceError,
    UnresolvedWorldError,
    WorldAlreadySetError,
)
from gdml_builder.volumes import VolumeRegistry

logger = logging.getLogger(__name__)

Container = Union[AssemblyRef, VolumeRef]


@dataclass
class PlacedInstance:
    """A volume instance reachable from the world, in world coordinates."""

    path: Tuple[str, ...]      # placement names from the world down
    volume: str
    position: np.ndarray       # (3,) mm
    rotation: np.ndarray       # (3, 3) active rotation of the instance


def euler_rotation(rotation: Rotation) -> SpatialRotation:
    """GDML Euler angles (extrinsic x, then y, then z)."""
    factor = ANGLE_TO_RAD[rotation.unit]
    euler_angles = np.asarray(rotation.as_tuple(), dtype=float) * factor
    return SpatialRotation.from_euler("xyz", euler_angles)


def rotation_matrix(rotation: Rotation) -> np.ndarray:
    """GDML Euler angles as the matrix Rz @ Ry @ Rx."""
    return euler_rotation(rotation).as_matrix()


def placement_frame(transform: Transform) -> Tuple[np.ndarray, SpatialRotation]:
    """Translation (mm) and active rotation of a daughter placed with `transform`.

    Geant4 applies the inverse of the GDML rotation to physvol daughters.
    """
    scale = LENGTH_TO_MM[transform.position.unit]
    translation = np.asarray(transform.position.as_tuple(), dtype=float) * scale
    return translation, euler_rotation(transform.rotation).inv()


class SceneGraph:
    """Assemblies, the world volume and every placement between them."""

    def __init__(self, volumes: VolumeRegistry):
        self._volumes = volumes
        self._assemblies: Dict[str, Assembly] = {}
        self._world: Optional[str] = None
        self._world_placements: List[Placement] = []

    # --- construction ---

    def begin_assembly(self, name: str) -> AssemblyRef:
        if not name:
            raise ValueError("assembly name must be a non-empty string")
        if name in self._assemblies:
            raise DuplicateNameError("assembly", name)
        self._assemblies[name] = Assembly(name=name)
        logger.debug("Started assembly %s", name)
        return AssemblyRef(name)

    def set_world(self, volume: VolumeRef) -> VolumeRef:
        if self._world is not None:
            raise WorldAlreadySetError(
                f"world is already '{self._world}', cannot set it to '{volume.name}'"
            )
        self._volumes.get(volume)
        self._world = volume.name
        logger.debug("World volume is %s", volume.name)
        return VolumeRef(volume.name)

    def place(
        self,
        parent: Container,
        target: PlacementTarget,
        name: str,
        position: Optional[Position] = None,
        rotation: Optional[Rotation] = None,
    ) -> Placement:
        """Place `target` inside `parent` (an assembly or the world volume)."""
        siblings = self._children_of(parent)
        if isinstance(parent, AssemblyRef) and self._assemblies[parent.name].sealed:
            raise SealedAssemblyError(
                f"assembly '{parent.name}' is already placed; cannot add '{name}'"
            )

        self._check_target(parent, target, name)
        if not name:
            raise ValueError("placement name must be a non-empty string")
        if any(p.name == name for p in siblings):
            raise DuplicateNameError("placement", f"{parent.name}/{name}")

        placement = Placement(
            name=name,
            target=target,
            transform=Transform(
                position=position if position is not None else Position(),
                rotation=rotation if rotation is not None else Rotation(),
            ),
        )
        siblings.append(placement)
        if isinstance(target, AssemblyRef):
            self._assemblies[target.name].sealed = True
        logger.debug("Placed %s as %s in %s", target.name, name, parent.name)
        return placement

    def _children_of(self, parent: Container) -> List[Placement]:
        if isinstance(parent, AssemblyRef):
            assembly = self._assemblies.get(parent.name)
            if assembly is None:
                raise UnknownReferenceError("assembly", parent.name)
            return assembly.placements
        if isinstance(parent, VolumeRef):
            if self._world is None:
                raise UnresolvedWorldError(
                    f"cannot place into '{parent.name}' before the world is set"
                )
            if parent.name != self._world:
                raise UnknownReferenceError("placement container", parent.name)
            return self._world_placements
        raise TypeError(f"cannot place into {parent!r}")

    def _check_target(self, parent: Container, target: PlacementTarget, name: str) -> None:
        context = f"placement '{name}' in '{parent.name}'"
        if isinstance(target, VolumeRef):
            if target not in self._volumes:
                raise UnknownReferenceError("volume", target.name, context)
            if target.name == self._world:
                raise CyclicDependencyError("the world volume cannot be placed")
            return
        if isinstance(target, AssemblyRef):
            if target.name not in self._assemblies:
                raise UnknownReferenceError("assembly", target.name, context)
            if isinstance(parent, AssemblyRef) and (
                target.name == parent.name or parent.name in self._descendants(target.name)
            ):
                raise CyclicDependencyError(
                    f"placing assembly '{target.name}' in '{parent.name}' would close a cycle"
                )
            return
        raise TypeError(f"cannot place {target!r}")

    def _descendants(self, assembly_name: str) -> Set[str]:
        found: Set[str] = set()
        stack = [assembly_name]
        while stack:
            for placement in self._assemblies[stack.pop()].placements:
                if isinstance(placement.target, AssemblyRef) and placement.target.name not in found:
                    found.add(placement.target.name)
                    stack.append(placement.target.name)
        return found

    # --- queries ---

    @property
    def world(self) -> Optional[VolumeRef]:
        return VolumeRef(self._world) if self._world is not None else None

    def require_world(self) -> VolumeRef:
        if self._world is None:
            raise UnresolvedWorldError("no world volume has been set")
        return VolumeRef(self._world)

    def assembly(self, ref: AssemblyRef) -> Assembly:
        try:
            return self._assemblies[ref.name]
        except KeyError:
            raise UnknownReferenceError("assembly", ref.name) from None

    def assembly_names(self) -> List[str]:
        return list(self._assemblies)

    def placements(self, parent: Container) -> List[Placement]:
        return list(self._children_of(parent))

    def topological_assemblies(self) -> List[Assembly]:
        """Every assembly after all assemblies it places."""
        done: Set[str] = set()
        active: Set[str] = set()
        order: List[Assembly] = []

        def visit(name: str) -> None:
            if name in done:
                return
            if name in active:
                raise CyclicDependencyError(f"assembly graph has a cycle through '{name}'")
            active.add(name)
            for placement in self._assemblies[name].placements:
                if isinstance(placement.target, AssemblyRef):
                    visit(placement.target.name)
            active.discard(name)
            done.add(name)
            order.append(self._assemblies[name])

        for name in self._assemblies:
            visit(name)
        return order

    def flatten(self) -> List[PlacedInstance]:
        """Every volume instance under the world with its world-frame transform."""
        self.require_world()
        instances: List[PlacedInstance] = []

        def walk(placements: List[Placement], path: Tuple[str, ...],
                 origin: np.ndarray, frame: SpatialRotation) -> None:
            for placement in placements:
                translation, rotation = placement_frame(placement.transform)
                position = origin + frame.apply(translation)
                orientation = frame * rotation
                child_path = path + (placement.name,)
                if isinstance(placement.target, AssemblyRef):
                    walk(self._assemblies[placement.target.name].placements,
                         child_path, position, orientation)
                else:
                    instances.append(PlacedInstance(
                        path=child_path,
                        volume=placement.target.name,
                        position=position,
                        rotation=orientation.as_matrix(),
                    ))

        walk(self._world_placements, (), np.zeros(3), SpatialRotation.identity())
        return instances

    # --- merging ---

    def absorb(self, other: "SceneGraph") -> None:
        """Take over the assemblies and world of an already checked scene."""
        for assembly in other.topological_assemblies():
            self._assemblies[assembly.name] = Assembly(
                name=assembly.name,
                placements=list(assembly.placements),
                sealed=assembly.sealed,
            )
        if other._world is not None:
            self._world = other._world
            self._world_placements = list(other._world_placements)
