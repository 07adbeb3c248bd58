"""
Error types for the METIS mission structure engine.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


class MetisError(Exception):
    """Base exception for all METIS errors."""

    def __init__(self, message: str, context: Optional["ErrorContext"] = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}\n{self.message}"
        return self.message


class StructureError(MetisError):
    """
    Raised when an operation would break the prototype tree invariants.

    Examples:
    - Unknown prototype id
    - Using the root as a move destination or deleting it
    - Integrity check failure (unreachable prototype, duplicate child)
    - Invalid depth padding
    """

    pass


class CyclicStructureError(StructureError):
    """
    Raised when a prototype would be placed relative to itself or one of
    its own descendants.
    """

    pass


class TransformationError(MetisError):
    """
    Raised when a transformation is used incorrectly.

    Examples:
    - Choosing a slot while no transformation is pending
    - Choosing a relation that is not offered for the destination
    - Choosing a destination for a creation
    """

    pass


class TransformationNotReadyError(TransformationError):
    """Raised when a transformation is applied before it is ready."""

    pass


class StructureDocumentError(MetisError):
    """
    Raised when a structure document cannot be turned into a prototype tree.

    Examples:
    - Duplicate structure keys
    - Structure values that are not objects
    - Structure keys without a prototype record
    """

    pass


class ManifestError(MetisError):
    """Raised when ``metis.toml`` is malformed."""

    pass


@dataclass
class ErrorContext:
    """
    Context information for an error.

    Attributes:
        prototype_id: Prototype the failing operation acted on
        destination_id: Destination prototype, for placement errors
        relation: Relation requested, for placement errors
        file: Source document, for load errors
    """

    prototype_id: str | None = None
    destination_id: str | None = None
    relation: str | None = None
    file: Path | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "structure.json: prototype abc -> def (previous-sibling-of-target)"
        """
        parts: list[str] = []
        if self.prototype_id:
            parts.append(f"prototype {self.prototype_id}")
        if self.destination_id:
            target = f"-> {self.destination_id}"
            if self.relation:
                target += f" ({self.relation})"
            parts.append(target)
        location = " ".join(parts)
        if self.file:
            return f"{self.file}: {location}" if location else str(self.file)
        return location


def make_structure_error(
    message: str,
    prototype_id: str | None = None,
    destination_id: str | None = None,
    relation: str | None = None,
    cyclic: bool = False,
) -> StructureError:
    """
    Helper to create a StructureError with optional context.

    Args:
        message: Error description
        prototype_id: Optional prototype being acted on
        destination_id: Optional destination prototype
        relation: Optional relation value
        cyclic: Create a CyclicStructureError instead

    Returns:
        StructureError with context if any id was provided
    """
    error_type = CyclicStructureError if cyclic else StructureError
    if prototype_id or destination_id:
        context = ErrorContext(
            prototype_id=prototype_id,
            destination_id=destination_id,
            relation=relation,
        )
        return error_type(message, context)
    return error_type(message)


def make_document_error(message: str, file: Path | None = None) -> StructureDocumentError:
    """
    Helper to create a StructureDocumentError with optional file context.

    Args:
        message: Error description
        file: Optional source document path

    Returns:
        StructureDocumentError with context if a file was provided
    """
    if file:
        return StructureDocumentError(message, ErrorContext(file=file))
    return StructureDocumentError(message)
