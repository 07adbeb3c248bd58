"""
Mission structure engine.

Owns a mission's prototype tree, arena-style: every prototype is stored by
id, and the tree is described by the parent id and child id list kept on
each prototype. The engine is the only writer of the tree and of the
derived state (positions, depth, slots, relationship lines), which is
recomputed in full on every structure change.

Example:
    mission = MissionStructure()
    first = mission.create_prototype()
    mission.begin_creation(first)
    mission.choose_slot(PrototypeRelation.FOLLOWING_SIBLING_OF_TARGET)
    mission.apply_transformation()
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any
from uuid import uuid4

from metis.core.errors import TransformationError, make_structure_error
from metis.core.ir import (
    PrototypeDeleteMethod,
    PrototypeRelation,
    PrototypeSlot,
    RelationshipLine,
)
from metis.core.manifest import LayoutConfig

from .events import StructureEvent, StructureEventBus, StructureEventHandler, StructureEventKind
from .layout import position_prototypes
from .prototype import Prototype
from .routing import route_relationship_lines
from .slots import applicable_relations, build_slots
from .transformations import PrototypeCreation, PrototypeTranslation, Transformation

logger = logging.getLogger(__name__)

ROOT_ID = "ROOT"

# Type alias for structure listeners (receive the new structure change key)
StructureListener = Callable[[str], None]


class MissionStructure:
    """
    Prototype tree of one mission plus its derived diagram.

    Attributes:
        config: Map geometry used by layout and routing
        bus: Event bus receiving every engine event
    """

    def __init__(
        self,
        config: LayoutConfig | None = None,
        bus: StructureEventBus | None = None,
        root_id: str = ROOT_ID,
    ) -> None:
        self.config = config or LayoutConfig()
        self.bus = bus or StructureEventBus()
        self._root = Prototype(self, root_id)
        self._prototypes: dict[str, Prototype] = {}
        self._structure_keys: dict[str, str] = {}
        self._depth = -1
        self._transformation: Transformation | None = None
        self._selection: Any = None
        self._structure_change_key = uuid4().hex
        self._relationship_lines: tuple[RelationshipLine, ...] = ()
        self._prototype_slots: tuple[PrototypeSlot, ...] = ()
        self._structure_listeners: dict[StructureListener, StructureEventHandler] = {}
        self._suspend_depth = 0
        self._change_pending = False
        self.last_created_prototype: Prototype | None = None
        self._recompute()

    def __repr__(self) -> str:
        return f"MissionStructure(prototypes={len(self._prototypes)}, depth={self._depth})"

    # =========================================================================
    # Read accessors
    # =========================================================================

    @property
    def root_id(self) -> str:
        return self._root.id

    @property
    def root(self) -> Prototype:
        """Invisible root prototype."""
        return self._root

    @property
    def prototypes(self) -> list[Prototype]:
        """Every live non-root prototype, in creation order."""
        return list(self._prototypes.values())

    @property
    def depth(self) -> int:
        """Greatest prototype depth, -1 for an empty mission."""
        return self._depth

    @property
    def transformation(self) -> Transformation | None:
        return self._transformation

    @property
    def selection(self) -> Any:
        """Host-level selection (prototype or any other host object)."""
        return self._selection

    @property
    def structure_change_key(self) -> str:
        """Token regenerated on every structure change."""
        return self._structure_change_key

    @property
    def relationship_lines(self) -> tuple[RelationshipLine, ...]:
        return self._relationship_lines

    @property
    def prototype_slots(self) -> tuple[PrototypeSlot, ...]:
        return self._prototype_slots

    def get_prototype(self, prototype_id: str) -> Prototype:
        """
        Look up a prototype by id (the root included).

        Raises:
            StructureError: If no such prototype exists
        """
        if prototype_id == self._root.id:
            return self._root
        try:
            return self._prototypes[prototype_id]
        except KeyError:
            raise make_structure_error(
                "Unknown prototype", prototype_id=prototype_id
            ) from None

    def has_prototype(self, prototype_id: str) -> bool:
        return prototype_id in self._prototypes

    def walk(self) -> Iterator[Prototype]:
        """Yield every prototype reachable from the root, in pre-order."""
        yield from self._root.descendants()

    # =========================================================================
    # Structure changes
    # =========================================================================

    def handle_structure_change(self) -> None:
        """
        Regenerate the structure change key, recompute the derived state and
        notify observers.

        Inside :meth:`suspend_structure_changes` the change is deferred until
        the outermost block exits.
        """
        if self._suspend_depth > 0:
            self._change_pending = True
            return

        self._structure_change_key = uuid4().hex
        self._recompute()
        logger.debug(
            "Structure change %s: %d prototypes, depth %d, %d lines, %d slots",
            self._structure_change_key,
            len(self._prototypes),
            self._depth,
            len(self._relationship_lines),
            len(self._prototype_slots),
        )
        self.bus.emit(StructureEventKind.STRUCTURE_CHANGE, self._structure_change_key)

    @contextmanager
    def suspend_structure_changes(self) -> Iterator[MissionStructure]:
        """
        Defer structure changes until the block exits.

        Blocks nest; a single structure change fires when the outermost
        block exits, and only if something changed.
        """
        self._suspend_depth += 1
        try:
            yield self
        finally:
            self._suspend_depth -= 1
        if self._suspend_depth == 0 and self._change_pending:
            self._change_pending = False
            self.handle_structure_change()

    def _recompute(self) -> None:
        transformation = self._transformation
        destination = None
        if transformation is not None and transformation.awaiting_relation:
            destination = transformation.destination

        cursor = position_prototypes(self._root, self.config, destination)
        self._depth = cursor.max_depth
        self._prototype_slots = (
            build_slots(destination, cursor.slot_anchors) if destination is not None else ()
        )

        translated = None
        if isinstance(transformation, PrototypeTranslation):
            translated = transformation.prototype
        self._relationship_lines = route_relationship_lines(
            self._root,
            self.config,
            destination,
            self._prototype_slots,
            translated,
        )

    def add_structure_listener(self, listener: StructureListener) -> None:
        """Call ``listener`` with the new key after every structure change."""

        def handler(event: StructureEvent) -> None:
            listener(event.key)

        self.remove_structure_listener(listener)
        self._structure_listeners[listener] = handler
        self.bus.subscribe(StructureEventKind.STRUCTURE_CHANGE, handler)

    def remove_structure_listener(self, listener: StructureListener) -> None:
        handler = self._structure_listeners.pop(listener, None)
        if handler is not None:
            self.bus.unsubscribe(handler)

    # =========================================================================
    # Prototype management
    # =========================================================================

    def create_prototype(
        self,
        prototype_id: str | None = None,
        depth_padding: int = 0,
        attach: bool = True,
        structure_key: str | None = None,
    ) -> Prototype:
        """
        Create a prototype, appended to the root's children by default.

        Args:
            prototype_id: Id to use (a UUID4 string when omitted)
            depth_padding: Extra indentation columns
            attach: Leave the prototype detached when False; the caller must
                then place it with :meth:`attach_prototype` or
                :meth:`Prototype.move`
            structure_key: Key used in saved documents (the id when omitted)

        Returns:
            The created prototype

        Raises:
            StructureError: If the id or structure key is taken or the
                padding is invalid
        """
        if prototype_id is not None and (
            prototype_id == self._root.id or prototype_id in self._prototypes
        ):
            raise make_structure_error("Prototype id already in use", prototype_id=prototype_id)

        prototype = Prototype(self, prototype_id, depth_padding, structure_key)
        if prototype.structure_key in self._structure_keys:
            raise make_structure_error(
                f"Structure key '{prototype.structure_key}' already in use",
                prototype_id=prototype.id,
            )
        self._prototypes[prototype.id] = prototype
        self._structure_keys[prototype.structure_key] = prototype.id
        self.last_created_prototype = prototype
        if attach:
            self._root._append_child(prototype)

        self.bus.emit(StructureEventKind.NEW_PROTOTYPE, prototype.id, attached=attach)
        if attach:
            self.handle_structure_change()
        return prototype

    def attach_prototype(self, prototype: Prototype, parent: Prototype | None = None) -> None:
        """
        Append a detached prototype to ``parent``'s children (the root by
        default).

        Raises:
            StructureError: If the prototype is already attached or foreign
        """
        parent = parent or self._root
        if prototype.mission is not self or self._prototypes.get(prototype.id) is not prototype:
            raise make_structure_error("Prototype belongs to another mission", prototype.id)
        if prototype.parent is not None:
            raise make_structure_error("Prototype is already attached", prototype.id)
        if prototype.id == parent.id or parent.is_descendant_of(prototype):
            raise make_structure_error(
                "A prototype cannot be attached below itself",
                prototype_id=prototype.id,
                destination_id=parent.id,
                cyclic=True,
            )
        parent._append_child(prototype)
        self.handle_structure_change()

    def duplicate_prototype(
        self,
        prototype: Prototype,
        include_descendants: bool = False,
    ) -> Prototype:
        """
        Copy a prototype and place the copy as its following sibling.

        Args:
            prototype: Prototype to copy
            include_descendants: Copy the whole subtree

        Returns:
            The copy (root of the copied subtree)

        Raises:
            StructureError: If the prototype is the root or not attached
        """
        if prototype.is_root:
            raise make_structure_error("The root prototype cannot be duplicated", prototype.id)
        if not prototype.is_attached:
            raise make_structure_error("Prototype is not attached", prototype.id)

        with self.suspend_structure_changes():
            copy = self._copy_prototype(prototype, include_descendants)
            copy.move(prototype, PrototypeRelation.FOLLOWING_SIBLING_OF_TARGET)
            self.last_created_prototype = copy
            self.handle_structure_change()
        return copy

    def _copy_prototype(self, source: Prototype, include_descendants: bool) -> Prototype:
        copy = self.create_prototype(depth_padding=source.depth_padding, attach=False)
        if include_descendants:
            for child in source.children:
                copy._append_child(self._copy_prototype(child, include_descendants=True))
        return copy

    def delete_prototype(
        self,
        prototype: Prototype,
        method: PrototypeDeleteMethod | str = PrototypeDeleteMethod.DELETE_CHILDREN,
    ) -> list[str]:
        """
        Remove a prototype from the mission.

        Args:
            prototype: Prototype to remove
            method: ``delete-children`` removes the whole subtree;
                ``shift-children`` moves the children into the prototype's
                place in its parent

        Returns:
            Ids of the removed prototypes

        Raises:
            StructureError: If the prototype is the root or not part of this
                mission
        """
        method = PrototypeDeleteMethod(method)
        if prototype.is_root:
            raise make_structure_error("The root prototype cannot be deleted", prototype.id)
        if self._prototypes.get(prototype.id) is not prototype:
            raise make_structure_error("Prototype is not part of this mission", prototype.id)

        parent = prototype.parent
        if method == PrototypeDeleteMethod.SHIFT_CHILDREN and parent is None:
            # Children of a detached prototype have nowhere to shift to
            logger.info("Prototype %s is detached, deleting its children too", prototype.id)
            method = PrototypeDeleteMethod.DELETE_CHILDREN

        if parent is None or method == PrototypeDeleteMethod.DELETE_CHILDREN:
            removed = [prototype, *prototype.descendants()]
            prototype._detach()
        else:
            removed = [prototype]
            children = prototype.children
            index = parent._child_ids.index(prototype.id)
            parent._child_ids[index : index + 1] = [child.id for child in children]
            for child in children:
                child._parent_id = parent.id
            prototype._child_ids = []
            prototype._parent_id = None

        removed_ids = [p.id for p in removed]
        with self.suspend_structure_changes():
            for removed_prototype in removed:
                del self._prototypes[removed_prototype.id]
                del self._structure_keys[removed_prototype.structure_key]

            transformation = self._transformation
            if transformation is not None and any(transformation.involves(i) for i in removed_ids):
                self._set_transformation(None)
            if isinstance(self._selection, Prototype) and self._selection.id in removed_ids:
                self._set_selection(None)
            if self.last_created_prototype is not None:
                if self.last_created_prototype.id in removed_ids:
                    self.last_created_prototype = None

            for prototype_id in removed_ids:
                self.bus.emit(
                    StructureEventKind.DELETE_PROTOTYPE, prototype_id, method=method.value
                )
            self.handle_structure_change()

        logger.debug("Deleted %d prototype(s) using %s", len(removed_ids), method.value)
        return removed_ids

    def move(
        self,
        prototype: Prototype,
        destination: Prototype,
        relation: PrototypeRelation | str,
    ) -> None:
        """
        Relocate ``prototype`` relative to ``destination`` and recompute.

        Raises:
            CyclicStructureError: If the destination lies in the moved subtree
            StructureError: If the destination is the root or foreign
        """
        prototype.move(destination, relation)
        self.handle_structure_change()

    # =========================================================================
    # Transformations
    # =========================================================================

    def _set_transformation(self, transformation: Transformation | None) -> None:
        previous = self._transformation
        self._transformation = transformation
        if previous is None and transformation is None:
            return
        self._emit_transformation_change()
        self.handle_structure_change()

    def _emit_transformation_change(self) -> None:
        transformation = self._transformation
        payload: dict[str, Any] = {"variant": None, "destination": None, "relation": None}
        if transformation is not None:
            payload["variant"] = transformation.kind
            if transformation.destination is not None:
                payload["destination"] = transformation.destination.id
            if transformation.relation is not None:
                payload["relation"] = transformation.relation.value
            if isinstance(transformation, PrototypeTranslation):
                payload["prototype"] = transformation.prototype.id
        logger.debug("Transformation changed: %s", payload)
        self.bus.emit(StructureEventKind.TRANSFORMATION_CHANGE, **payload)

    def begin_creation(self, destination: Prototype) -> PrototypeCreation:
        """
        Start creating a prototype relative to ``destination``.

        Any pending transformation is replaced.

        Raises:
            StructureError: If the destination is the root or foreign
        """
        creation = PrototypeCreation(destination)
        self._set_transformation(creation)
        return creation

    def begin_translation(self, prototype: Prototype) -> PrototypeTranslation:
        """
        Start relocating ``prototype``; the destination is chosen later.

        Any pending transformation is replaced.

        Raises:
            TransformationError: If the prototype is the root
        """
        translation = PrototypeTranslation(prototype)
        self._set_transformation(translation)
        return translation

    def choose_destination(self, destination: Prototype) -> None:
        """
        Set the destination of the pending translation.

        Raises:
            TransformationError: If no translation is pending
            CyclicStructureError: If the destination lies in the moved subtree
            StructureError: If the destination is the root or foreign
        """
        transformation = self._transformation
        if not isinstance(transformation, PrototypeTranslation):
            raise TransformationError("Only a pending translation can change its destination")
        transformation.destination = destination
        self._emit_transformation_change()
        self.handle_structure_change()

    def available_slots(self) -> list[PrototypeSlot]:
        """Slots offered for the pending transformation (empty when none)."""
        return list(self._prototype_slots)

    def choose_slot(self, slot: PrototypeSlot | PrototypeRelation | str) -> None:
        """
        Choose where the pending transformation lands.

        A slot of a translation may also set its destination from the slot's
        ``relative_id``.

        Raises:
            TransformationError: If no transformation is pending, no
                destination is known, or the relation is not offered for
                the destination
        """
        transformation = self._transformation
        if transformation is None:
            raise TransformationError("No transformation is pending")

        if isinstance(slot, PrototypeSlot):
            destination = transformation.destination
            if destination is None or destination.id != slot.relative_id:
                if not isinstance(transformation, PrototypeTranslation):
                    raise TransformationError(
                        f"Slot {slot.key} does not belong to the pending creation"
                    )
                transformation.destination = self.get_prototype(slot.relative_id)
            relation = slot.relation
        else:
            relation = PrototypeRelation(slot)

        destination = transformation.destination
        if destination is None:
            raise TransformationError("Choose a destination before choosing a relation")
        if relation not in applicable_relations(destination):
            raise TransformationError(
                f"Relation {relation.value} is not offered for prototype {destination.id}"
            )

        transformation.relation = relation
        self._emit_transformation_change()
        self.handle_structure_change()

    def apply_transformation(self) -> bool:
        """
        Commit the pending transformation.

        Returns:
            True if the tree changed; False (with a warning logged) when no
            transformation is ready to apply
        """
        transformation = self._transformation
        if transformation is None or not transformation.ready_to_apply:
            logger.warning(
                "Ignoring apply: %s",
                "no transformation is pending"
                if transformation is None
                else f"{transformation.kind} is not ready to apply",
            )
            return False

        with self.suspend_structure_changes():
            prototype = transformation.apply()
            self._set_transformation(None)
            self.handle_structure_change()

        logger.debug("Applied %s of %s", transformation.kind, prototype.id)
        return True

    def cancel_transformation(self) -> None:
        """Drop the pending transformation, if any."""
        if self._transformation is not None:
            logger.debug("Cancelled %s", self._transformation.kind)
        self._set_transformation(None)

    # =========================================================================
    # Selection
    # =========================================================================

    def _set_selection(self, selection: Any) -> None:
        self._selection = selection
        key = selection.id if isinstance(selection, Prototype) else ""
        self.bus.emit(StructureEventKind.SELECTION_CHANGE, key)

    def select(self, selection: Any) -> None:
        """Select a host object; cancels any pending transformation."""
        with self.suspend_structure_changes():
            self.cancel_transformation()
            self._set_selection(selection)

    def deselect(self) -> None:
        """Clear the selection; cancels any pending transformation."""
        self.select(None)

    # =========================================================================
    # Integrity
    # =========================================================================

    def check_integrity(self) -> None:
        """
        Verify the tree invariants.

        Every prototype must be reachable from the root exactly once, parent
        ids must match the child lists, and no child list may repeat an id.

        Raises:
            StructureError: On the first violation found
        """
        seen: set[str] = set()
        pending = [self._root]
        while pending:
            parent = pending.pop()
            for child_id in parent._child_ids:
                if child_id == parent.id:
                    raise make_structure_error("Prototype is its own child", child_id)
                if child_id in seen:
                    raise make_structure_error(
                        "Prototype appears more than once in the tree", child_id
                    )
                if child_id not in self._prototypes:
                    raise make_structure_error(
                        f"Child of {parent.id} is not part of the mission", child_id
                    )
                child = self._prototypes[child_id]
                if child._parent_id != parent.id:
                    raise make_structure_error(
                        f"Parent link does not match child list of {parent.id}", child_id
                    )
                seen.add(child_id)
                pending.append(child)

        unreachable = [p for p in self._prototypes if p not in seen]
        if unreachable:
            raise make_structure_error(
                f"Prototypes not reachable from the root: {', '.join(sorted(unreachable))}"
            )


__all__ = ["ROOT_ID", "MissionStructure", "StructureListener"]
