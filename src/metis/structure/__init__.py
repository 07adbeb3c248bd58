"""
METIS mission structure engine.

Prototype tree, pending transformations, layout, connector routing, event
bus and structure document codec.
"""

from .codec import (
    dump_document,
    dump_structure,
    load_structure,
    read_structure_file,
    write_structure_file,
)
from .events import (
    StructureEvent,
    StructureEventBus,
    StructureEventHandler,
    StructureEventKind,
    Subscription,
)
from .layout import LayoutCursor, position_prototypes
from .mission import ROOT_ID, MissionStructure, StructureListener
from .prototype import Prototype, validate_depth_padding
from .routing import route_relationship_lines
from .slots import SLOT_ORDER, applicable_relations, build_slots
from .transformations import PrototypeCreation, PrototypeTranslation, Transformation

__all__ = [
    # Engine
    "ROOT_ID",
    "MissionStructure",
    "StructureListener",
    "Prototype",
    "validate_depth_padding",
    # Transformations
    "Transformation",
    "PrototypeCreation",
    "PrototypeTranslation",
    # Derived state
    "LayoutCursor",
    "position_prototypes",
    "route_relationship_lines",
    "SLOT_ORDER",
    "applicable_relations",
    "build_slots",
    # Events
    "StructureEvent",
    "StructureEventBus",
    "StructureEventHandler",
    "StructureEventKind",
    "Subscription",
    # Documents
    "dump_document",
    "dump_structure",
    "load_structure",
    "read_structure_file",
    "write_structure_file",
]
