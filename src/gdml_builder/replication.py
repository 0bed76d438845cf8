"""
Radial replication of a pattern solid around an axis.

Builds a union chain: the base solid, then one copy of the pattern per
angle, then an optional hub solid. Angular spacing is independent of the
count, so partial patterns (e.g. 4 copies 45 degrees apart) are allowed.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from gdml_builder.contracts import Rotation, SolidRef, Transform, check_axis
from gdml_builder.errors import InvalidReplicationCountError
from gdml_builder.solids import SolidRegistry

logger = logging.getLogger(__name__)


def replication_angles_for(
    count: Optional[int] = None,
    step: Optional[float] = None,
    angles: Optional[Sequence[float]] = None,
) -> List[float]:
    """Resolve the list of copy angles (degrees) from count/step or explicit angles."""
    if angles is not None:
        if count is not None and count != len(angles):
            raise ValueError(f"count={count} does not match {len(angles)} explicit angles")
        if len(angles) == 0:
            raise InvalidReplicationCountError("replication needs at least one angle")
        return list(angles)

    if count is None or count <= 0:
        raise InvalidReplicationCountError(
            f"replication count must be positive, got {count}"
        )
    if step is None:
        step = 360.0 / count
    return [i * step for i in range(count)]


def replicate_radially(
    solids: SolidRegistry,
    base: SolidRef,
    pattern: SolidRef,
    name: str,
    count: Optional[int] = None,
    step: Optional[float] = None,
    angles: Optional[Sequence[float]] = None,
    axis: str = "z",
    hub: Optional[SolidRef] = None,
) -> SolidRef:
    """Union `count` rotated copies of `pattern` (and `hub`) onto `base`.

    Intermediate unions are named ``{name}Aux{i}`` and the final union is
    named `name`.
    """
    check_axis(axis)
    copy_angles = replication_angles_for(count, step, angles)

    total = len(copy_angles) + (1 if hub is not None else 0)
    union_names = [f"{name}Aux{i}" for i in range(total - 1)] + [name]
    operands = [base, pattern] + ([hub] if hub is not None else [])
    solids.check_available(union_names, operands)

    current = base
    for union_name, angle in zip(union_names, copy_angles):
        current = solids.define_union(
            current,
            pattern,
            union_name,
            transform=Transform(rotation=Rotation.about(axis, angle)),
        )
    if hub is not None:
        current = solids.define_union(current, hub, union_names[-1])

    logger.debug(
        "Replicated %s %d times about %s into %s", pattern.name, len(copy_angles), axis, name
    )
    return current


def replication_angles(
    solids: SolidRegistry, ref: SolidRef, pattern: SolidRef, axis: str = "z"
) -> List[float]:
    """Angles about `axis` at which `pattern` was unioned into `ref`'s lineage."""
    check_axis(axis)
    found = []
    for step in solids.recipe(ref):
        if step.op == "union" and step.solid == pattern:
            found.append(getattr(step.transform.rotation, axis))
    return found
