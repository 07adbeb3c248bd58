"""
Prototype tree nodes.

A prototype is a structural placeholder in a mission's skeleton. Prototypes
are stored arena-style by their mission structure: each prototype keeps the
id of its parent and the ordered ids of its children, and resolves them
through the mission. The child list is the only ownership edge; the parent
id is a lookup reference.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from metis.core.errors import make_structure_error
from metis.core.ir import PrototypeRelation, Vector2D

from .events import StructureEventKind

if TYPE_CHECKING:
    from .mission import MissionStructure

logger = logging.getLogger(__name__)


def validate_depth_padding(depth_padding: Any, prototype_id: str | None = None) -> int:
    """
    Validate a depth padding value.

    Raises:
        StructureError: If the value is not a non-negative integer
    """
    if isinstance(depth_padding, bool) or not isinstance(depth_padding, int) or depth_padding < 0:
        raise make_structure_error(
            f"depth_padding must be a non-negative integer, got: {depth_padding!r}",
            prototype_id=prototype_id,
        )
    return depth_padding


class Prototype:
    """
    Node of a mission's prototype tree.

    Structural state (parent, children) is mutated only by :meth:`move` and
    by the owning :class:`MissionStructure`. Rendering state (position, row,
    depth) is written by the layout pass.
    """

    def __init__(
        self,
        mission: MissionStructure,
        prototype_id: str | None = None,
        depth_padding: int = 0,
        structure_key: str | None = None,
    ) -> None:
        self._mission = mission
        self._id = prototype_id or str(uuid4())
        self._structure_key = structure_key or self._id
        self._parent_id: str | None = None
        self._child_ids: list[str] = []
        self._depth_padding = validate_depth_padding(depth_padding, self._id)
        self._buttons: tuple[Any, ...] = ()
        self._position = Vector2D()
        self._depth = -1
        self._row = -1

    def __repr__(self) -> str:
        return f"Prototype(id={self._id!r}, children={len(self._child_ids)})"

    # =========================================================================
    # Identity
    # =========================================================================

    @property
    def id(self) -> str:
        return self._id

    @property
    def structure_key(self) -> str:
        """
        Key naming this prototype in a saved structure document.

        Other documents (forces) refer to prototypes by this key, so it is
        kept across load and save. New prototypes use their id.
        """
        return self._structure_key

    @property
    def mission(self) -> MissionStructure:
        """The mission structure owning this prototype."""
        return self._mission

    @property
    def is_root(self) -> bool:
        return self._id == self._mission.root_id

    # =========================================================================
    # Tree navigation
    # =========================================================================

    @property
    def parent(self) -> Prototype | None:
        if self._parent_id is None:
            return None
        return self._mission.get_prototype(self._parent_id)

    @property
    def children(self) -> list[Prototype]:
        """Children in order (a copy; mutate through the mission)."""
        return [self._mission.get_prototype(child_id) for child_id in self._child_ids]

    @property
    def child_ids(self) -> tuple[str, ...]:
        return tuple(self._child_ids)

    @property
    def first_child(self) -> Prototype | None:
        return self._mission.get_prototype(self._child_ids[0]) if self._child_ids else None

    @property
    def last_child(self) -> Prototype | None:
        return self._mission.get_prototype(self._child_ids[-1]) if self._child_ids else None

    @property
    def has_children(self) -> bool:
        return len(self._child_ids) > 0

    @property
    def is_top_level(self) -> bool:
        """Whether the prototype hangs directly below the invisible root."""
        return self._parent_id == self._mission.root_id

    @property
    def children_of_parent(self) -> list[Prototype]:
        """Siblings plus self, in order."""
        parent = self.parent
        return parent.children if parent is not None else []

    @property
    def siblings(self) -> list[Prototype]:
        return [p for p in self.children_of_parent if p.id != self._id]

    @property
    def has_siblings(self) -> bool:
        return len(self.children_of_parent) > 1

    @property
    def previous_sibling(self) -> Prototype | None:
        parent = self.parent
        if parent is None:
            return None
        index = parent._child_ids.index(self._id)
        return self._mission.get_prototype(parent._child_ids[index - 1]) if index > 0 else None

    @property
    def following_sibling(self) -> Prototype | None:
        parent = self.parent
        if parent is None:
            return None
        index = parent._child_ids.index(self._id)
        if index + 1 < len(parent._child_ids):
            return self._mission.get_prototype(parent._child_ids[index + 1])
        return None

    def ancestors(self) -> Iterator[Prototype]:
        """Yield the parent, grandparent, ... up to and including the root."""
        cursor = self.parent
        while cursor is not None:
            yield cursor
            cursor = cursor.parent

    def descendants(self) -> Iterator[Prototype]:
        """Yield every descendant in pre-order."""
        for child in self.children:
            yield child
            yield from child.descendants()

    def is_descendant_of(self, other: Prototype) -> bool:
        return any(ancestor.id == other.id for ancestor in self.ancestors())

    @property
    def is_attached(self) -> bool:
        """Whether the prototype is reachable from the root."""
        return self.is_root or any(a.id == self._mission.root_id for a in self.ancestors())

    # =========================================================================
    # Author and host state
    # =========================================================================

    @property
    def depth_padding(self) -> int:
        """Extra indentation columns assigned by the author."""
        return self._depth_padding

    @depth_padding.setter
    def depth_padding(self, value: int) -> None:
        self._depth_padding = validate_depth_padding(value, self._id)
        self._mission.handle_structure_change()

    @property
    def buttons(self) -> tuple[Any, ...]:
        """Decorations attached by the host (opaque to the engine)."""
        return self._buttons

    @buttons.setter
    def buttons(self, value: Sequence[Any]) -> None:
        had_buttons = bool(self._buttons)
        self._buttons = tuple(value)
        self._mission.bus.emit(
            StructureEventKind.SET_BUTTONS, self._id, button_count=len(self._buttons)
        )
        # Decorated prototypes reserve extra space below them.
        if had_buttons != bool(self._buttons):
            self._mission.handle_structure_change()

    # =========================================================================
    # Layout state
    # =========================================================================

    @property
    def position(self) -> Vector2D:
        """Top-left corner on the mission map."""
        return self._position

    @property
    def depth(self) -> int:
        """Column index, -1 until laid out (and always for the root)."""
        return self._depth

    @property
    def row(self) -> int:
        """Row index, -1 until laid out (and always for the root)."""
        return self._row

    def _set_layout(self, position: Vector2D, depth: int, row: int) -> None:
        self._position = position
        self._depth = depth
        self._row = row

    def _reset_layout(self) -> None:
        self._position = Vector2D()
        self._depth = -1
        self._row = -1

    # =========================================================================
    # Mutation
    # =========================================================================

    def move(self, destination: Prototype, relation: PrototypeRelation | str) -> None:
        """
        Relocate this prototype, with its subtree, relative to ``destination``.

        The layout is not recomputed; use :meth:`MissionStructure.move` for
        that.

        Args:
            destination: Prototype to place this one relative to
            relation: Where this prototype lands relative to the destination

        Raises:
            CyclicStructureError: If the destination is this prototype or
                one of its descendants
            StructureError: If the destination is the root or belongs to
                another mission
        """
        relation = PrototypeRelation(relation)
        self.validate_destination(destination, relation)

        # Attached non-root destinations always have a parent.
        parent = destination.parent
        if parent is None:
            raise make_structure_error(
                "Destination is not attached",
                prototype_id=self._id,
                destination_id=destination.id,
                relation=relation.value,
            )
        self._detach()

        if relation == PrototypeRelation.PARENT_OF_TARGET_ONLY:
            index = parent._child_ids.index(destination.id)
            parent._child_ids[index] = self._id
            self._parent_id = parent.id
            self._child_ids.append(destination.id)
            destination._parent_id = self._id
        elif relation == PrototypeRelation.BETWEEN_TARGET_AND_CHILDREN:
            adopted = destination._child_ids
            destination._child_ids = [self._id]
            self._parent_id = destination.id
            for child_id in adopted:
                self._mission.get_prototype(child_id)._parent_id = self._id
            self._child_ids.extend(adopted)
        elif relation == PrototypeRelation.PREVIOUS_SIBLING_OF_TARGET:
            parent._insert_child(self, parent._child_ids.index(destination.id))
        elif relation == PrototypeRelation.FOLLOWING_SIBLING_OF_TARGET:
            parent._insert_child(self, parent._child_ids.index(destination.id) + 1)

        logger.debug("Moved %s to %s of %s", self._id, relation.value, destination.id)

    def validate_destination(
        self,
        destination: Prototype,
        relation: PrototypeRelation | None = None,
    ) -> None:
        """
        Check that this prototype may be placed relative to ``destination``.

        Raises:
            CyclicStructureError: If the destination is this prototype or a descendant
            StructureError: If the destination is the root or foreign
        """
        relation_value = relation.value if relation is not None else None
        if destination.mission is not self._mission:
            raise make_structure_error(
                "Destination belongs to another mission",
                prototype_id=self._id,
                destination_id=destination.id,
                relation=relation_value,
            )
        if self.is_root:
            raise make_structure_error("The root prototype cannot be moved", prototype_id=self._id)
        if destination.is_root:
            raise make_structure_error(
                "The root prototype cannot be a destination",
                prototype_id=self._id,
                destination_id=destination.id,
                relation=relation_value,
            )
        if destination.id == self._id or destination.is_descendant_of(self):
            raise make_structure_error(
                "A prototype cannot be placed relative to itself or its own descendants",
                prototype_id=self._id,
                destination_id=destination.id,
                relation=relation_value,
                cyclic=True,
            )
        if not destination.is_attached:
            raise make_structure_error(
                "Destination is not attached",
                prototype_id=self._id,
                destination_id=destination.id,
                relation=relation_value,
            )

    def _detach(self) -> None:
        parent = self.parent
        if parent is not None:
            parent._child_ids.remove(self._id)
        self._parent_id = None

    def _insert_child(self, child: Prototype, index: int) -> None:
        self._child_ids.insert(index, child.id)
        child._parent_id = self._id

    def _append_child(self, child: Prototype) -> None:
        self._child_ids.append(child.id)
        child._parent_id = self._id


__all__ = ["Prototype", "validate_depth_padding"]
