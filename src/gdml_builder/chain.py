"""
Chain placement: stack solids flush along one axis.

Each segment's center sits half its own length past the far face of the
previous segment, so consecutive segments touch without gap or overlap.
Only axial lengths matter; radii (and cone tapers) are irrelevant here.

Offsets use whatever number type the lengths come in. Pass
`fractions.Fraction` lengths to get exact offsets.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from gdml_builder.contracts import (
    BooleanSolid,
    Position,
    SolidRef,
    Transform,
    check_axis,
)
from gdml_builder.solids import SolidRegistry

logger = logging.getLogger(__name__)


def chain_offsets(lengths: Sequence[float]) -> List[float]:
    """Center offset of every segment relative to the first segment's center.

    z_0 = 0 and z_i = z_{i-1} + L_{i-1}/2 + L_i/2.
    """
    offsets: List[float] = []
    previous: Optional[float] = None
    for length in lengths:
        if length < 0:
            raise ValueError(f"segment length must be non-negative, got {length}")
        if previous is None:
            offsets.append(length - length)  # zero of the input's type
        else:
            offsets.append(offsets[-1] + previous / 2 + length / 2)
        previous = length
    return offsets


def chain_length(lengths: Sequence[float]) -> float:
    """Total axial extent of a flush chain."""
    total = 0
    for length in lengths:
        total = total + length
    return total


def flush_start_offset(first_length: float, other_first_length: float) -> float:
    """Offset of a second chain so both chains start at the same face.

    Both chains are positioned by the centers of their first segments;
    shifting the second one by this amount aligns their start faces.
    """
    return other_first_length / 2 - first_length / 2


def segment_lengths(
    solids: SolidRegistry, segments: Sequence[SolidRef], axis: str = "z"
) -> List[float]:
    """Axial extent of each segment, read from its primitive dimensions."""
    lengths = []
    for ref in segments:
        solid = solids.get(ref)
        if isinstance(solid, BooleanSolid):
            raise ValueError(
                f"cannot infer the axial length of boolean solid '{ref.name}'; "
                "pass explicit lengths"
            )
        lengths.append(solid.dims.axial_length(axis))
    return lengths


def build_chain(
    solids: SolidRegistry,
    segments: Sequence[SolidRef],
    name: str,
    lengths: Optional[Sequence[float]] = None,
    axis: str = "z",
) -> SolidRef:
    """Union `segments` into one solid, each flush against the previous one.

    The result lives in the frame of the first segment. Intermediate unions
    are named ``{name}Aux{i}``; the last union is named `name`. A single
    segment is returned unchanged.
    """
    check_axis(axis)
    if not segments:
        raise ValueError(f"chain '{name}' needs at least one segment")
    if len(segments) == 1:
        solids.get(segments[0])
        return segments[0]
    if lengths is None:
        lengths = segment_lengths(solids, segments, axis)
    elif len(lengths) != len(segments):
        raise ValueError(
            f"chain '{name}' has {len(segments)} segments but {len(lengths)} lengths"
        )

    offsets = chain_offsets(lengths)
    last = len(segments) - 1
    union_names = [name if i == last else f"{name}Aux{i}" for i in range(1, len(segments))]
    solids.check_available(union_names, list(segments))

    current = segments[0]
    for i, union_name in enumerate(union_names, start=1):
        current = solids.define_union(
            current,
            segments[i],
            union_name,
            transform=Transform(position=Position.along(axis, offsets[i])),
        )
    logger.debug(
        "Chained %d segments into %s (length %s)",
        len(segments), name, chain_length(lengths),
    )
    return current
