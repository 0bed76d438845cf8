"""
Solid registry: primitive solids and boolean combinations.

The registry owns every solid; callers only hold name-based SolidRefs.
Booleans can only reference solids that already exist, so definition order
is always a valid dependency order. `topological_order` still walks the
graph and checks for cycles before the writer relies on it.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional, Set

from gdml_builder.contracts import (
    DIMS_BY_KIND,
    IDENTITY,
    BooleanOp,
    BooleanSolid,
    BoxDims,
    ConeDims,
    PrimitiveDims,
    PrimitiveSolid,
    RecipeStep,
    Solid,
    SolidKind,
    SolidRef,
    Transform,
    TubeDims,
)
from gdml_builder.errors import (
    CyclicDependencyError,
    DuplicateNameError,
    UnknownReferenceError,
)

logger = logging.getLogger(__name__)


class SolidRegistry:
    """Named solids forming a directed acyclic graph."""

    def __init__(self):
        self._solids: Dict[str, Solid] = {}

    def __contains__(self, ref: object) -> bool:
        name = ref.name if isinstance(ref, SolidRef) else ref
        return name in self._solids

    def __len__(self) -> int:
        return len(self._solids)

    def __iter__(self) -> Iterator[Solid]:
        return iter(list(self._solids.values()))

    def names(self) -> List[str]:
        return list(self._solids)

    def get(self, ref: SolidRef) -> Solid:
        try:
            return self._solids[ref.name]
        except KeyError:
            raise UnknownReferenceError("solid", ref.name) from None

    # --- primitives ---

    def define_primitive(
        self, kind: SolidKind, dims: PrimitiveDims, name: str
    ) -> SolidRef:
        kind = SolidKind(kind)
        expected = DIMS_BY_KIND[kind]
        if not isinstance(dims, expected):
            raise TypeError(
                f"{kind.value} '{name}' needs {expected.__name__}, "
                f"got {type(dims).__name__}"
            )
        self._check_new(name)
        self._solids[name] = PrimitiveSolid(name=name, kind=kind, dims=dims)
        logger.debug("Defined %s solid %s: %s", kind.value, name, dims)
        return SolidRef(name)

    def box(self, x: float, y: float, z: float, name: str) -> SolidRef:
        return self.define_primitive(SolidKind.BOX, BoxDims(x, y, z), name)

    def tube(
        self,
        rmax: float,
        z: float,
        name: str,
        rmin: float = 0.0,
        startphi: float = 0.0,
        deltaphi: float = 360.0,
    ) -> SolidRef:
        dims = TubeDims(rmax=rmax, z=z, rmin=rmin, startphi=startphi, deltaphi=deltaphi)
        return self.define_primitive(SolidKind.TUBE, dims, name)

    def cone(
        self,
        z: float,
        rmax1: float,
        rmax2: float,
        name: str,
        rmin1: float = 0.0,
        rmin2: float = 0.0,
        startphi: float = 0.0,
        deltaphi: float = 360.0,
    ) -> SolidRef:
        dims = ConeDims(
            z=z,
            rmax1=rmax1,
            rmax2=rmax2,
            rmin1=rmin1,
            rmin2=rmin2,
            startphi=startphi,
            deltaphi=deltaphi,
        )
        return self.define_primitive(SolidKind.CONE, dims, name)

    # --- booleans ---

    def define_union(
        self,
        first: SolidRef,
        second: SolidRef,
        name: str,
        transform: Optional[Transform] = None,
    ) -> SolidRef:
        return self._define_boolean(BooleanOp.UNION, first, second, name, transform)

    def define_subtraction(
        self,
        first: SolidRef,
        second: SolidRef,
        name: str,
        transform: Optional[Transform] = None,
    ) -> SolidRef:
        return self._define_boolean(
            BooleanOp.SUBTRACTION, first, second, name, transform
        )

    def _define_boolean(
        self,
        op: BooleanOp,
        first: SolidRef,
        second: SolidRef,
        name: str,
        transform: Optional[Transform],
    ) -> SolidRef:
        self._check_new(name)
        for operand in (first, second):
            if operand.name == name:
                raise CyclicDependencyError(
                    f"{op.value} '{name}' cannot use itself as an operand"
                )
            if operand.name not in self._solids:
                raise UnknownReferenceError("solid", operand.name, f"{op.value} '{name}'")

        self._solids[name] = BooleanSolid(
            name=name,
            op=op,
            first=first,
            second=second,
            transform=transform if transform is not None else IDENTITY,
        )
        logger.debug(
            "Defined %s %s = %s, %s", op.value, name, first.name, second.name
        )
        return SolidRef(name)

    def _check_new(self, name: str) -> None:
        if not name:
            raise ValueError("solid name must be a non-empty string")
        if name in self._solids:
            raise DuplicateNameError("solid", name)

    def check_available(self, names: List[str], operands: List[SolidRef]) -> None:
        """Fail before a multi-step build if any of its names or inputs is bad."""
        seen: Set[str] = set()
        for name in names:
            if name in seen:
                raise DuplicateNameError("solid", name)
            self._check_new(name)
            seen.add(name)
        for operand in operands:
            if operand.name not in self._solids:
                raise UnknownReferenceError("solid", operand.name)

    # --- graph queries ---

    def dependencies(self, ref: SolidRef) -> List[SolidRef]:
        """All solids `ref` is built from, dependencies first, excluding `ref`."""
        ordered = self._postorder([ref.name])
        return [SolidRef(name) for name in ordered if name != ref.name]

    def topological_order(self) -> List[Solid]:
        """Every solid, each after all the solids it references."""
        return [self._solids[name] for name in self._postorder(list(self._solids))]

    def _postorder(self, roots: List[str]) -> List[str]:
        done: Set[str] = set()
        active: Set[str] = set()
        order: List[str] = []

        def visit(name: str) -> None:
            if name in done:
                return
            if name in active:
                raise CyclicDependencyError(f"solid graph has a cycle through '{name}'")
            solid = self._solids.get(name)
            if solid is None:
                raise UnknownReferenceError("solid", name)
            active.add(name)
            for operand in solid.operands:
                visit(operand.name)
            active.discard(name)
            done.add(name)
            order.append(name)

        for root in roots:
            visit(root)
        return order

    def recipe(self, ref: SolidRef) -> List[RecipeStep]:
        """Flatten the boolean lineage of `ref` along its first operands.

        The first step is the base solid; each following step is one boolean
        applied to the running result, in the order they were combined.
        """
        lineage: List[BooleanSolid] = []
        current = self.get(ref)
        while isinstance(current, BooleanSolid):
            lineage.insert(0, current)
            current = self.get(current.first)

        steps = [RecipeStep(op="base", solid=SolidRef(current.name), result=current.name)]
        for node in lineage:
            steps.append(
                RecipeStep(
                    op=node.op.value,
                    solid=node.second,
                    transform=node.transform,
                    result=node.name,
                )
            )
        return steps

    def absorb(self, other: "SolidRegistry") -> None:
        """Append every solid of `other`; the caller has checked for collisions."""
        for solid in other.topological_order():
            self._solids[solid.name] = solid
