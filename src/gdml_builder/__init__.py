"""Public API for building CSG detector geometries and writing them as GDML."""

from gdml_builder.chain import build_chain, chain_offsets, flush_start_offset
from gdml_builder.config import SetupConfig, load_config
from gdml_builder.contracts import (
    AssemblyRef,
    MaterialRef,
    Position,
    Rotation,
    SolidRef,
    Transform,
    VolumeRef,
)
from gdml_builder.detector import build_setup
from gdml_builder.errors import (
    CyclicDependencyError,
    DuplicateNameError,
    GeometryError,
    InvalidReplicationCountError,
    SealedAssemblyError,
    UnknownMaterialError,
    UnknownReferenceError,
    UnresolvedWorldError,
    WorldAlreadySetError,
)
from gdml_builder.gdml_writer import to_gdml, write_gdml
from gdml_builder.geometry import Geometry
from gdml_builder.materials import MaterialCatalog
from gdml_builder.output import GeometryManifest, write_geometry
from gdml_builder.replication import replicate_radially

__all__ = [
    "AssemblyRef",
    "CyclicDependencyError",
    "DuplicateNameError",
    "Geometry",
    "GeometryError",
    "GeometryManifest",
    "InvalidReplicationCountError",
    "MaterialCatalog",
    "MaterialRef",
    "Position",
    "Rotation",
    "SealedAssemblyError",
    "SetupConfig",
    "SolidRef",
    "Transform",
    "UnknownMaterialError",
    "UnknownReferenceError",
    "UnresolvedWorldError",
    "VolumeRef",
    "WorldAlreadySetError",
    "build_chain",
    "build_setup",
    "chain_offsets",
    "flush_start_offset",
    "load_config",
    "replicate_radially",
    "to_gdml",
    "write_gdml",
    "write_geometry",
]
