"""
METIS Intermediate Representation (IR) types.

Value types shared by the structure engine, its codec and the CLI.
All types are re-exported from this package.
"""

# Geometry
from .geometry import Counter, Vector2D

# Mission structure
from .structure import (
    LineDirection,
    PrototypeDeleteMethod,
    PrototypeRecord,
    PrototypeRelation,
    PrototypeSlot,
    RelationshipLine,
    StructureDocument,
)

__all__ = [
    # Geometry
    "Counter",
    "Vector2D",
    # Mission structure
    "LineDirection",
    "PrototypeDeleteMethod",
    "PrototypeRecord",
    "PrototypeRelation",
    "PrototypeSlot",
    "RelationshipLine",
    "StructureDocument",
]
