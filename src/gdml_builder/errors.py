"""
Error kinds raised while building a geometry.

Every error is fatal to the current construction run: it is raised at the
call that caused it and no partial geometry is ever written.
"""


class GeometryError(Exception):
    """Base exception for geometry construction errors."""
    pass


class DuplicateNameError(GeometryError):
    """A solid, material, volume or assembly name is already registered."""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"{kind} '{name}' is already defined")


class UnknownReferenceError(GeometryError):
    """A reference names an entity that has not been defined yet."""

    def __init__(self, kind: str, name: str, context: str = ""):
        self.kind = kind
        self.name = name
        message = f"unknown {kind} '{name}'"
        if context:
            message += f" (referenced by {context})"
        super().__init__(message)


class CyclicDependencyError(GeometryError):
    """A reference would close a cycle in the solid or placement graph."""
    pass


class UnresolvedWorldError(GeometryError):
    """Serialization was attempted before a world volume was set."""
    pass


class WorldAlreadySetError(GeometryError):
    """The world volume may only be set once."""
    pass


class SealedAssemblyError(GeometryError):
    """Placement into an assembly that has already been placed elsewhere."""
    pass


class InvalidReplicationCountError(GeometryError):
    """Radial replication requested with a non-positive count."""
    pass


class UnknownMaterialError(GeometryError):
    """A catalog identifier could not be resolved, or the catalog is unavailable."""
    pass
