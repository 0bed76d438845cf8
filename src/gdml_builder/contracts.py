"""Value types shared by the geometry registries, the scene graph and the writer."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple, Union

Vec3 = Tuple[float, float, float]

AXES = ("x", "y", "z")

LENGTH_TO_MM = {"nm": 1e-6, "um": 1e-3, "mm": 1.0, "cm": 10.0, "m": 1000.0, "km": 1e6}
ANGLE_TO_RAD = {"rad": 1.0, "mrad": 1e-3, "deg": math.pi / 180.0}


def check_axis(axis: str) -> str:
    if axis not in AXES:
        raise ValueError(f"axis must be one of {AXES}, got {axis!r}")
    return axis


@dataclass(frozen=True)
class Position:
    """Translation in the parent (or first operand) frame."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    unit: str = "mm"

    def __post_init__(self):
        if self.unit not in LENGTH_TO_MM:
            raise ValueError(f"length unit must be one of {sorted(LENGTH_TO_MM)}, got {self.unit!r}")

    @classmethod
    def along(cls, axis: str, value: float) -> "Position":
        check_axis(axis)
        return cls(**{axis: value})

    @property
    def is_zero(self) -> bool:
        return self.x == 0 and self.y == 0 and self.z == 0

    def as_tuple(self) -> Vec3:
        return (self.x, self.y, self.z)


@dataclass(frozen=True)
class Rotation:
    """Euler angles about x, y, z in GDML order."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    unit: str = "deg"

    def __post_init__(self):
        if self.unit not in ANGLE_TO_RAD:
            raise ValueError(f"angle unit must be one of {sorted(ANGLE_TO_RAD)}, got {self.unit!r}")

    @classmethod
    def about(cls, axis: str, angle: float, unit: str = "deg") -> "Rotation":
        check_axis(axis)
        return cls(**{axis: angle}, unit=unit)

    @property
    def is_zero(self) -> bool:
        return self.x == 0 and self.y == 0 and self.z == 0

    def as_tuple(self) -> Vec3:
        return (self.x, self.y, self.z)


@dataclass(frozen=True)
class Transform:
    """Rigid transform: rotation followed by translation."""

    position: Position = field(default_factory=Position)
    rotation: Rotation = field(default_factory=Rotation)

    @property
    def is_identity(self) -> bool:
        return self.position.is_zero and self.rotation.is_zero


IDENTITY = Transform()


# --- References (lookup keys into the owning registry, never owners) ---

@dataclass(frozen=True)
class SolidRef:
    name: str


@dataclass(frozen=True)
class MaterialRef:
    name: str


@dataclass(frozen=True)
class VolumeRef:
    name: str


@dataclass(frozen=True)
class AssemblyRef:
    name: str


PlacementTarget = Union[VolumeRef, AssemblyRef]


# --- Solids ---

class SolidKind(Enum):
    """Primitive solid shapes."""
    BOX = "box"
    TUBE = "tube"
    CONE = "cone"


class BooleanOp(Enum):
    """Boolean combinations of two solids."""
    UNION = "union"
    SUBTRACTION = "subtraction"


@dataclass(frozen=True)
class BoxDims:
    """Full side lengths."""

    x: float
    y: float
    z: float

    def axial_length(self, axis: str) -> float:
        return getattr(self, check_axis(axis))


@dataclass(frozen=True)
class TubeDims:
    """Cylindrical (optionally hollow) segment; z is the full axial length."""

    rmax: float
    z: float
    rmin: float = 0.0
    startphi: float = 0.0
    deltaphi: float = 360.0

    def axial_length(self, axis: str) -> float:
        if check_axis(axis) != "z":
            raise ValueError("tube axial length is only defined along z")
        return self.z


@dataclass(frozen=True)
class ConeDims:
    """Conical section from radius rmax1 at -z/2 to rmax2 at +z/2."""

    z: float
    rmax1: float
    rmax2: float
    rmin1: float = 0.0
    rmin2: float = 0.0
    startphi: float = 0.0
    deltaphi: float = 360.0

    def axial_length(self, axis: str) -> float:
        if check_axis(axis) != "z":
            raise ValueError("cone axial length is only defined along z")
        return self.z


PrimitiveDims = Union[BoxDims, TubeDims, ConeDims]

DIMS_BY_KIND = {
    SolidKind.BOX: BoxDims,
    SolidKind.TUBE: TubeDims,
    SolidKind.CONE: ConeDims,
}


@dataclass(frozen=True)
class PrimitiveSolid:
    name: str
    kind: SolidKind
    dims: PrimitiveDims

    @property
    def operands(self) -> Tuple[SolidRef, ...]:
        return ()


@dataclass(frozen=True)
class BooleanSolid:
    """Boolean node; `transform` places `second` in the frame of `first`."""

    name: str
    op: BooleanOp
    first: SolidRef
    second: SolidRef
    transform: Transform = IDENTITY

    @property
    def operands(self) -> Tuple[SolidRef, ...]:
        return (self.first, self.second)


Solid = Union[PrimitiveSolid, BooleanSolid]


@dataclass(frozen=True)
class RecipeStep:
    """One step of a flattened boolean lineage (see SolidRegistry.recipe)."""

    op: str  # "base", "union" or "subtraction"
    solid: SolidRef
    transform: Transform = IDENTITY
    result: str = ""


# --- Structure ---

@dataclass(frozen=True)
class Volume:
    """Logical volume: a solid filled with a material. Carries no transform."""

    name: str
    solid: SolidRef
    material: MaterialRef


@dataclass(frozen=True)
class Placement:
    """Physical placement of a volume or assembly inside a parent."""

    name: str
    target: PlacementTarget
    transform: Transform = IDENTITY


@dataclass
class Assembly:
    """Grouping node holding an ordered list of placements."""

    name: str
    placements: List[Placement] = field(default_factory=list)
    sealed: bool = False
