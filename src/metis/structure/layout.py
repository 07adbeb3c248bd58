"""
Position-assignment algorithm.

Assigns every non-root prototype a column (depth), a row and a map position
in a single depth-first, pre-order pass from the root. Rows are counted
across the whole tree, so prototypes appear in document order from top to
bottom.

While a transformation offers slots, the pass also reserves room for them
and records where each slot belongs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from metis.core.ir import Counter, PrototypeRelation, Vector2D
from metis.core.manifest import LayoutConfig

from .slots import applicable_relations

if TYPE_CHECKING:
    from .prototype import Prototype


@dataclass
class LayoutCursor:
    """
    Accumulator threaded through the layout recursion.

    Attributes:
        rows: Current row index
        button_rows: Number of button rows reserved so far
        max_depth: Greatest prototype depth seen (-1 for an empty mission)
        slot_anchors: Position and depth of each reserved slot
    """

    rows: Counter = field(default_factory=Counter)
    button_rows: Counter = field(default_factory=Counter)
    max_depth: int = -1
    slot_anchors: dict[PrototypeRelation, tuple[Vector2D, int]] = field(default_factory=dict)

    def position(self, depth: int, config: LayoutConfig) -> Vector2D:
        """Map position of the current row at ``depth``."""
        return Vector2D(
            x=depth * config.column_width,
            y=self.rows.count * config.row_height
            + self.button_rows.count * config.buttons_height,
        )


def position_prototypes(
    root: Prototype,
    config: LayoutConfig,
    destination: Prototype | None = None,
) -> LayoutCursor:
    """
    Lay out the tree below ``root``.

    Args:
        root: Invisible root prototype
        config: Map geometry
        destination: Destination of a transformation currently offering
            slots; None when no slots are offered

    Returns:
        The final cursor, holding the mission depth and the slot anchors
    """
    cursor = LayoutCursor()
    root._set_layout(Vector2D(), -1, -1)
    offered = applicable_relations(destination) if destination is not None else ()
    _position_children(root, -1, cursor, config, destination, offered)
    return cursor


def _position_children(
    parent: Prototype,
    depth: int,
    cursor: LayoutCursor,
    config: LayoutConfig,
    destination: Prototype | None,
    offered: tuple[PrototypeRelation, ...],
) -> None:
    children = parent.children

    if destination is not None:
        # Room for the between slot
        if destination.id == parent.id:
            depth += 1
        # Room for the parent-of-target slot; shifts every top-level prototype
        if parent.is_root and PrototypeRelation.PARENT_OF_TARGET_ONLY in offered:
            if any(child.id == destination.id for child in children):
                depth += 1

    previous: Prototype | None = None
    for child in children:
        if previous is not None:
            cursor.rows.increment()
            if previous.buttons:
                cursor.button_rows.increment()

        child_depth = depth + 1 + child.depth_padding
        is_destination = destination is not None and child.id == destination.id

        if is_destination:
            cursor.slot_anchors[PrototypeRelation.PREVIOUS_SIBLING_OF_TARGET] = (
                cursor.position(child_depth, config),
                child_depth,
            )
            cursor.rows.increment()

        _position_prototype(child, child_depth, cursor, config, destination, offered)

        if is_destination:
            cursor.rows.increment()
            cursor.slot_anchors[PrototypeRelation.FOLLOWING_SIBLING_OF_TARGET] = (
                cursor.position(child_depth, config),
                child_depth,
            )

        previous = child


def _position_prototype(
    prototype: Prototype,
    depth: int,
    cursor: LayoutCursor,
    config: LayoutConfig,
    destination: Prototype | None,
    offered: tuple[PrototypeRelation, ...],
) -> None:
    position = cursor.position(depth, config)
    prototype._set_layout(position, depth, cursor.rows.count)
    cursor.max_depth = max(cursor.max_depth, depth)

    if destination is not None and prototype.id == destination.id:
        cursor.slot_anchors[PrototypeRelation.BETWEEN_TARGET_AND_CHILDREN] = (
            position.translate_x(config.column_width),
            depth + 1,
        )
        if PrototypeRelation.PARENT_OF_TARGET_ONLY in offered:
            cursor.slot_anchors[PrototypeRelation.PARENT_OF_TARGET_ONLY] = (
                position.translate_x(-config.column_width),
                depth - 1,
            )

    _position_children(prototype, depth, cursor, config, destination, offered)


__all__ = ["LayoutCursor", "position_prototypes"]
