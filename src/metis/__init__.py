"""
METIS - mission structure engine.

Models a mission's skeleton as a tree of prototypes, edits it through
pending transformations, and lays it out as a deterministic 2-D diagram.
"""

from __future__ import annotations

# Re-export commonly used types for convenience
from ._version import get_version
from .core import ir
from .core.errors import (
    CyclicStructureError,
    MetisError,
    StructureError,
    TransformationError,
    TransformationNotReadyError,
)
from .core.ir import PrototypeDeleteMethod, PrototypeRelation
from .structure import MissionStructure, Prototype

__version__ = get_version()

__all__ = [
    "__version__",
    "ir",
    "MissionStructure",
    "Prototype",
    "PrototypeRelation",
    "PrototypeDeleteMethod",
    "MetisError",
    "StructureError",
    "CyclicStructureError",
    "TransformationError",
    "TransformationNotReadyError",
]
