"""
Mission structure types for METIS IR.

This module contains the value types exchanged between the structure engine
and its host: relation kinds, prototype slots, relationship lines, deletion
methods and the structure document schema.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .geometry import Vector2D


class PrototypeRelation(str, Enum):
    """
    Where a created or moved prototype lands relative to its destination.
    """

    PARENT_OF_TARGET_ONLY = "parent-of-target-only"  # Directly above the target
    BETWEEN_TARGET_AND_CHILDREN = "between-target-and-children"  # Adopts the target's children
    PREVIOUS_SIBLING_OF_TARGET = "previous-sibling-of-target"
    FOLLOWING_SIBLING_OF_TARGET = "following-sibling-of-target"


class PrototypeDeleteMethod(str, Enum):
    """How the children of a deleted prototype are handled."""

    DELETE_CHILDREN = "delete-children"  # Remove the whole subtree
    SHIFT_CHILDREN = "shift-children"  # Children take the prototype's place


class LineDirection(str, Enum):
    """Direction of a relationship line."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class PrototypeSlot(BaseModel):
    """
    Candidate insertion point offered while a transformation is pending.

    Slots are derived from the engine state on every structure change and
    are never persisted.

    Attributes:
        relative_id: Id of the destination prototype the slot is relative to
        relation: Relation the slot applies when chosen
        position: Top-left corner of the slot on the map
        depth: Column the slot occupies
    """

    model_config = ConfigDict(frozen=True)

    relative_id: str
    relation: PrototypeRelation
    position: Vector2D
    depth: int

    @property
    def key(self) -> str:
        """Stable rendering key."""
        return f"{self.relative_id}:{self.relation.value}"


class RelationshipLine(BaseModel):
    """
    Straight connector segment on the mission map.

    Attributes:
        start: Top (vertical) or left (horizontal) end of the segment
        direction: Whether the segment runs horizontally or vertically
        length: Length of the segment in layout units
        blurred: Whether the segment belongs to a subtree being relocated
    """

    model_config = ConfigDict(frozen=True)

    start: Vector2D
    direction: LineDirection
    length: float = Field(ge=0.0)
    blurred: bool = False

    @property
    def end(self) -> Vector2D:
        """Opposite end of the segment."""
        if self.direction == LineDirection.HORIZONTAL:
            return self.start.translate_x(self.length)
        return self.start.translate_y(self.length)


class PrototypeRecord(BaseModel):
    """
    Prototype entry of a structure document.

    Attributes:
        id: Prototype id (``_id`` in documents)
        structure_key: Key of the prototype in the nested structure
            (``structureKey``, defaults to the id)
        depth_padding: Extra indentation columns (``depthPadding``)
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(alias="_id", min_length=1)
    structure_key: str | None = Field(default=None, alias="structureKey")
    depth_padding: int = Field(default=0, ge=0, alias="depthPadding")

    @property
    def key(self) -> str:
        """Key used in the nested structure."""
        return self.structure_key or self.id


class StructureDocument(BaseModel):
    """
    Persisted form of a mission's prototype tree.

    ``structure`` nests structure keys the way the tree nests prototypes,
    starting below the invisible root::

        {"a": {"b": {}, "c": {}}, "d": {}}

    Attributes:
        structure: Nested mapping of structure keys
        prototypes: Prototype records referenced by the structure
    """

    model_config = ConfigDict(populate_by_name=True)

    structure: dict[str, Any] = Field(default_factory=dict)
    prototypes: list[PrototypeRecord] = Field(default_factory=list)

    @field_validator("prototypes")
    @classmethod
    def validate_unique_ids(cls, v: list[PrototypeRecord]) -> list[PrototypeRecord]:
        """Validate prototype ids and structure keys are unique."""
        seen_ids: set[str] = set()
        seen_keys: set[str] = set()
        for record in v:
            if record.id in seen_ids:
                raise ValueError(f"duplicate prototype id: {record.id}")
            if record.key in seen_keys:
                raise ValueError(f"duplicate structureKey: {record.key}")
            seen_ids.add(record.id)
            seen_keys.add(record.key)
        return v


__all__ = [
    "LineDirection",
    "PrototypeDeleteMethod",
    "PrototypeRecord",
    "PrototypeRelation",
    "PrototypeSlot",
    "RelationshipLine",
    "StructureDocument",
]
