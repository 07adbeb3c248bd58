"""
Pending structural edits.

A transformation describes an edit the user has started but not committed:
where the edited prototype will land (destination + relation). The mission
structure holds at most one transformation at a time and derives prototype
slots from it while it still awaits a relation.

Variants:
- PrototypeCreation: ``apply()`` creates a brand-new prototype
- PrototypeTranslation: ``apply()`` relocates an existing prototype
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from metis.core.errors import (
    TransformationError,
    TransformationNotReadyError,
    make_structure_error,
)
from metis.core.ir import PrototypeRelation

if TYPE_CHECKING:
    from .mission import MissionStructure
    from .prototype import Prototype


class Transformation(ABC):
    """Abstract pending edit to a mission's prototype tree."""

    def __init__(self, mission: MissionStructure, destination: Prototype | None = None) -> None:
        self._mission = mission
        self._destination: Prototype | None = None
        self._relation: PrototypeRelation | None = None
        if destination is not None:
            self.destination = destination

    @property
    def mission(self) -> MissionStructure:
        return self._mission

    @property
    def kind(self) -> str:
        """Short name used in events and logs."""
        return "transformation"

    @property
    def destination(self) -> Prototype | None:
        """Prototype the edited prototype is placed relative to."""
        return self._destination

    @destination.setter
    def destination(self, destination: Prototype | None) -> None:
        if destination is not None:
            self.validate_destination(destination)
        self._destination = destination
        # A relation only makes sense relative to a destination.
        self._relation = None

    @property
    def relation(self) -> PrototypeRelation | None:
        return self._relation

    @relation.setter
    def relation(self, relation: PrototypeRelation | str | None) -> None:
        if relation is None:
            self._relation = None
            return
        if self._destination is None:
            raise TransformationError("Choose a destination before choosing a relation")
        self._relation = PrototypeRelation(relation)

    @property
    def awaiting_relation(self) -> bool:
        """Whether slots should be offered (destination chosen, relation not)."""
        return self._destination is not None and self._relation is None

    @property
    @abstractmethod
    def ready_to_apply(self) -> bool:
        """Whether :meth:`apply` may be called."""
        ...

    def validate_destination(self, destination: Prototype) -> None:
        """
        Check a destination candidate.

        Raises:
            StructureError: If the destination cannot be used
        """
        if destination.mission is not self._mission:
            raise make_structure_error(
                "Destination belongs to another mission", destination_id=destination.id
            )
        if destination.is_root:
            raise make_structure_error(
                "The root prototype cannot be a destination", destination_id=destination.id
            )
        if not destination.is_attached:
            raise make_structure_error(
                "Destination is not attached", destination_id=destination.id
            )

    def involves(self, prototype_id: str) -> bool:
        """Whether the transformation refers to the given prototype."""
        return self._destination is not None and self._destination.id == prototype_id

    @abstractmethod
    def apply(self) -> Prototype:
        """
        Perform the tree mutation.

        Layout is not recomputed and the transformation is not cleared from
        the mission; :meth:`MissionStructure.apply_transformation` does both.

        Returns:
            The created or moved prototype

        Raises:
            TransformationNotReadyError: If not ready to apply
        """
        ...

    def _require_ready(self) -> tuple[Prototype, PrototypeRelation]:
        if not self.ready_to_apply or self._destination is None or self._relation is None:
            raise TransformationNotReadyError(
                f"{self.kind} is not ready to apply "
                f"(destination={self._destination.id if self._destination else None}, "
                f"relation={self._relation.value if self._relation else None})"
            )
        return self._destination, self._relation


class PrototypeCreation(Transformation):
    """Creates a new prototype relative to a destination."""

    def __init__(self, destination: Prototype) -> None:
        super().__init__(destination.mission, destination)

    @property
    def kind(self) -> str:
        return "creation"

    @property
    def ready_to_apply(self) -> bool:
        return self._relation is not None

    def apply(self) -> Prototype:
        destination, relation = self._require_ready()
        self.validate_destination(destination)
        prototype = self._mission.create_prototype(attach=False)
        prototype.move(destination, relation)
        return prototype


class PrototypeTranslation(Transformation):
    """Relocates an existing prototype, with its subtree."""

    def __init__(self, prototype: Prototype, destination: Prototype | None = None) -> None:
        if prototype.is_root:
            raise TransformationError("The root prototype cannot be moved")
        self._prototype = prototype
        super().__init__(prototype.mission, destination)

    @property
    def kind(self) -> str:
        return "translation"

    @property
    def prototype(self) -> Prototype:
        """Prototype being relocated."""
        return self._prototype

    @property
    def ready_to_apply(self) -> bool:
        return self._destination is not None and self._relation is not None

    def validate_destination(self, destination: Prototype) -> None:
        super().validate_destination(destination)
        self._prototype.validate_destination(destination)

    def involves(self, prototype_id: str) -> bool:
        return self._prototype.id == prototype_id or super().involves(prototype_id)

    def apply(self) -> Prototype:
        destination, relation = self._require_ready()
        self._prototype.move(destination, relation)
        return self._prototype


__all__ = ["PrototypeCreation", "PrototypeTranslation", "Transformation"]
