"""
Connector-routing algorithm.

Turns the laid-out tree into straight horizontal and vertical segments that
connect each parent to its children. While slots are offered, extra
segments connect every slot to its context.

Each parent's connectors follow the same shape::

    [parent]──┬──[child 1]
              ├──[child 2]
              └──[child 3]

The vertical segment runs along the children's column boundary, half a
column gap to the left of the leftmost child.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from metis.core.ir import LineDirection, PrototypeRelation, PrototypeSlot, RelationshipLine, Vector2D
from metis.core.manifest import LayoutConfig

if TYPE_CHECKING:
    from .prototype import Prototype


def route_relationship_lines(
    root: Prototype,
    config: LayoutConfig,
    destination: Prototype | None = None,
    slots: Iterable[PrototypeSlot] = (),
    translated: Prototype | None = None,
) -> tuple[RelationshipLine, ...]:
    """
    Compute every relationship line of a laid-out tree.

    Args:
        root: Invisible root prototype (positions must be current)
        config: Map geometry
        destination: Destination of a transformation offering slots
        slots: Slots currently offered for ``destination``
        translated: Prototype being relocated; lines within its subtree
            are marked as blurred

    Returns:
        Lines of the base pass in pre-order, followed by slot connectors
    """
    slots_by_relation = {slot.relation: slot for slot in slots} if destination else {}
    blurred_ids: set[str] = set()
    if translated is not None:
        blurred_ids = {translated.id} | {p.id for p in translated.descendants()}

    lines: list[RelationshipLine] = []
    for prototype in root.descendants():
        if prototype.has_children:
            lines.extend(
                _route_children(prototype, config, destination, slots_by_relation, blurred_ids)
            )
    if destination is not None:
        lines.extend(_route_slots(destination, config, slots_by_relation))
    return tuple(lines)


def _mid(position: Vector2D, config: LayoutConfig) -> float:
    return position.y + config.prototype_height / 2


def _children_boundary(parent: Prototype, config: LayoutConfig) -> float:
    """X coordinate of the vertical connector for ``parent``'s children."""
    return min(child.position.x for child in parent.children) - config.column_gap


def _horizontal(x1: float, x2: float, y: float, blurred: bool = False) -> RelationshipLine:
    left, right = min(x1, x2), max(x1, x2)
    return RelationshipLine(
        start=Vector2D(x=left, y=y),
        direction=LineDirection.HORIZONTAL,
        length=right - left,
        blurred=blurred,
    )


def _route_children(
    parent: Prototype,
    config: LayoutConfig,
    destination: Prototype | None,
    slots_by_relation: dict[PrototypeRelation, PrototypeSlot],
    blurred_ids: set[str],
) -> list[RelationshipLine]:
    children = parent.children
    blurred = parent.id in blurred_ids
    boundary = _children_boundary(parent, config)
    parent_mid = _mid(parent.position, config)

    # Parent to boundary, passing through the between slot when present
    start_x = parent.position.x + config.prototype_width
    between = slots_by_relation.get(PrototypeRelation.BETWEEN_TARGET_AND_CHILDREN)
    if between is not None and destination is not None and destination.id == parent.id:
        start_x = between.position.x + config.prototype_width
    lines = [_horizontal(start_x, boundary, parent_mid, blurred)]

    # Boundary, spanning every child and the sibling slots next to the destination
    span = [parent_mid]
    for child in children:
        span.append(_mid(child.position, config))
        if destination is not None and child.id == destination.id:
            for relation in (
                PrototypeRelation.PREVIOUS_SIBLING_OF_TARGET,
                PrototypeRelation.FOLLOWING_SIBLING_OF_TARGET,
            ):
                slot = slots_by_relation.get(relation)
                if slot is not None:
                    span.append(_mid(slot.position, config))
    top, bottom = min(span), max(span)
    if bottom > top:
        lines.append(
            RelationshipLine(
                start=Vector2D(x=boundary, y=top),
                direction=LineDirection.VERTICAL,
                length=bottom - top,
                blurred=blurred,
            )
        )

    # Boundary to each child
    for child in children:
        lines.append(
            _horizontal(
                boundary,
                child.position.x,
                _mid(child.position, config),
                blurred or child.id in blurred_ids,
            )
        )
    return lines


def _route_slots(
    destination: Prototype,
    config: LayoutConfig,
    slots_by_relation: dict[PrototypeRelation, PrototypeSlot],
) -> list[RelationshipLine]:
    lines: list[RelationshipLine] = []
    destination_mid = _mid(destination.position, config)
    parent = destination.parent

    for relation, slot in slots_by_relation.items():
        if relation == PrototypeRelation.BETWEEN_TARGET_AND_CHILDREN:
            lines.append(
                _horizontal(
                    destination.position.x + config.prototype_width,
                    slot.position.x,
                    destination_mid,
                )
            )
        elif relation in (
            PrototypeRelation.PREVIOUS_SIBLING_OF_TARGET,
            PrototypeRelation.FOLLOWING_SIBLING_OF_TARGET,
        ):
            # Top-level prototypes have no visible parent to connect to
            if parent is not None and not parent.is_root:
                lines.append(
                    _horizontal(
                        _children_boundary(parent, config),
                        slot.position.x,
                        _mid(slot.position, config),
                    )
                )
        elif relation == PrototypeRelation.PARENT_OF_TARGET_ONLY:
            if destination.is_top_level:
                lines.append(
                    _horizontal(
                        slot.position.x + config.prototype_width,
                        destination.position.x,
                        destination_mid,
                    )
                )
    return lines


__all__ = ["route_relationship_lines"]
