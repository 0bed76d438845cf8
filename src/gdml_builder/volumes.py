"""Volume binder: logical volumes pairing a solid with a material."""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List

from gdml_builder.contracts import MaterialRef, SolidRef, Volume, VolumeRef
from gdml_builder.errors import DuplicateNameError, UnknownReferenceError
from gdml_builder.materials import MaterialRegistry
from gdml_builder.solids import SolidRegistry

logger = logging.getLogger(__name__)


class VolumeRegistry:
    """Named logical volumes; every reference is checked against its registry."""

    def __init__(self, solids: SolidRegistry, materials: MaterialRegistry):
        self._solids = solids
        self._materials = materials
        self._volumes: Dict[str, Volume] = {}

    def __contains__(self, ref: object) -> bool:
        name = ref.name if isinstance(ref, VolumeRef) else ref
        return name in self._volumes

    def __len__(self) -> int:
        return len(self._volumes)

    def __iter__(self) -> Iterator[Volume]:
        return iter(list(self._volumes.values()))

    def names(self) -> List[str]:
        return list(self._volumes)

    def bind(self, solid: SolidRef, material: MaterialRef, name: str) -> VolumeRef:
        if not name:
            raise ValueError("volume name must be a non-empty string")
        if name in self._volumes:
            raise DuplicateNameError("volume", name)
        if solid not in self._solids:
            raise UnknownReferenceError("solid", solid.name, f"volume '{name}'")
        if material not in self._materials:
            raise UnknownReferenceError("material", material.name, f"volume '{name}'")

        self._volumes[name] = Volume(name=name, solid=solid, material=material)
        logger.debug("Bound volume %s = %s in %s", name, solid.name, material.name)
        return VolumeRef(name)

    def get(self, ref: VolumeRef) -> Volume:
        try:
            return self._volumes[ref.name]
        except KeyError:
            raise UnknownReferenceError("volume", ref.name) from None

    def absorb(self, volumes: Iterator[Volume]) -> None:
        """Add already validated volumes from another construction run."""
        for volume in volumes:
            self._volumes[volume.name] = volume
