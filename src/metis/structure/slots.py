"""
Prototype slot derivation.

Slots are the candidate insertion points shown while a transformation waits
for a relation. The layout pass records where each applicable slot sits;
this module decides which relations apply and turns the recorded anchors
into :class:`PrototypeSlot` values.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from metis.core.ir import PrototypeRelation, PrototypeSlot, Vector2D

if TYPE_CHECKING:
    from .prototype import Prototype


# Order in which slots are offered
SLOT_ORDER: tuple[PrototypeRelation, ...] = (
    PrototypeRelation.PARENT_OF_TARGET_ONLY,
    PrototypeRelation.BETWEEN_TARGET_AND_CHILDREN,
    PrototypeRelation.PREVIOUS_SIBLING_OF_TARGET,
    PrototypeRelation.FOLLOWING_SIBLING_OF_TARGET,
)


def applicable_relations(destination: Prototype) -> tuple[PrototypeRelation, ...]:
    """
    Relations offered for a destination.

    ``parent-of-target-only`` is only offered when the destination hangs
    directly below the invisible root; the other three always are.
    """
    if destination.is_top_level:
        return SLOT_ORDER
    return tuple(r for r in SLOT_ORDER if r != PrototypeRelation.PARENT_OF_TARGET_ONLY)


def build_slots(
    destination: Prototype,
    anchors: Mapping[PrototypeRelation, tuple[Vector2D, int]],
) -> tuple[PrototypeSlot, ...]:
    """
    Build the slots offered for ``destination``.

    Args:
        destination: Destination of the pending transformation
        anchors: Position and depth recorded by the layout pass per relation

    Returns:
        One slot per applicable relation, in :data:`SLOT_ORDER`
    """
    slots: list[PrototypeSlot] = []
    for relation in applicable_relations(destination):
        if relation not in anchors:
            continue
        position, depth = anchors[relation]
        slots.append(
            PrototypeSlot(
                relative_id=destination.id,
                relation=relation,
                position=position,
                depth=depth,
            )
        )
    return tuple(slots)


__all__ = ["SLOT_ORDER", "applicable_relations", "build_slots"]
