"""
Structure document load/save.

A structure document stores a mission's prototype tree as a nested mapping
of structure keys plus a flat list of prototype records::

    {
        "structure": {"a": {"b": {}}, "c": {}},
        "prototypes": [
            {"_id": "a", "structureKey": "a", "depthPadding": 0},
            {"_id": "b", "structureKey": "b", "depthPadding": 1},
            {"_id": "c", "structureKey": "c", "depthPadding": 0}
        ]
    }

Prototype records missing from the nested structure are attached below the
root, in listing order, after the nested ones. Structure keys survive a
load and save; prototypes created in between are keyed by their id.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from metis.core.errors import StructureError, make_document_error
from metis.core.ir import PrototypeRecord, StructureDocument
from metis.core.manifest import LayoutConfig

from .events import StructureEventBus
from .mission import MissionStructure
from .prototype import Prototype

logger = logging.getLogger(__name__)


def load_structure(
    data: Mapping[str, Any] | StructureDocument,
    config: LayoutConfig | None = None,
    bus: StructureEventBus | None = None,
    file: Path | None = None,
) -> MissionStructure:
    """
    Build a mission structure from a structure document.

    Args:
        data: Parsed JSON document or an already validated document
        config: Map geometry for the new mission
        bus: Event bus for the new mission
        file: Source path, used in error messages

    Returns:
        Mission structure with layout and routing computed

    Raises:
        StructureDocumentError: If the document is malformed
    """
    if isinstance(data, StructureDocument):
        document = data
    else:
        try:
            document = StructureDocument.model_validate(data)
        except ValidationError as e:
            raise make_document_error(f"Invalid structure document: {e}", file) from e

    records_by_key = {record.key: record for record in document.prototypes}
    mission = MissionStructure(config=config, bus=bus)
    placed: set[str] = set()

    def attach_branch(parent: Prototype, branch: Any, path: str) -> None:
        if not isinstance(branch, Mapping):
            raise make_document_error(
                f"Structure value at '{path}' must be an object, got {type(branch).__name__}",
                file,
            )
        for key, sub_branch in branch.items():
            record = records_by_key.get(key)
            if record is None:
                raise make_document_error(f"Structure key '{key}' has no prototype record", file)
            if key in placed:
                raise make_document_error(f"Duplicate structure key '{key}'", file)
            placed.add(key)
            prototype = mission.get_prototype(record.id)
            mission.attach_prototype(prototype, parent)
            attach_branch(prototype, sub_branch, f"{path}/{key}" if path else key)

    with mission.suspend_structure_changes():
        try:
            for record in document.prototypes:
                mission.create_prototype(
                    record.id, record.depth_padding, attach=False, structure_key=record.key
                )
        except StructureError as e:
            raise make_document_error(e.message, file) from e

        attach_branch(mission.root, document.structure, "")

        for record in document.prototypes:
            if record.key not in placed:
                logger.info("Prototype %s is not in the structure, attaching to root", record.id)
                mission.attach_prototype(mission.get_prototype(record.id))

        mission.last_created_prototype = None

    logger.debug("Loaded %d prototypes", len(mission.prototypes))
    return mission


def dump_document(mission: MissionStructure) -> StructureDocument:
    """Convert a mission's prototype tree into a structure document."""

    def branch(parent: Prototype) -> dict[str, Any]:
        return {child.structure_key: branch(child) for child in parent.children}

    return StructureDocument(
        structure=branch(mission.root),
        prototypes=[
            PrototypeRecord(
                id=prototype.id,
                structure_key=prototype.structure_key,
                depth_padding=prototype.depth_padding,
            )
            for prototype in mission.walk()
        ],
    )


def dump_structure(mission: MissionStructure) -> dict[str, Any]:
    """Convert a mission's prototype tree into a JSON-serializable document."""
    return dump_document(mission).model_dump(by_alias=True)


def read_structure_file(
    path: Path,
    config: LayoutConfig | None = None,
    bus: StructureEventBus | None = None,
) -> MissionStructure:
    """
    Load a mission structure from a JSON file.

    Raises:
        StructureDocumentError: If the file cannot be read or is malformed
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise make_document_error(f"Cannot read structure document: {e}", path) from e
    except json.JSONDecodeError as e:
        raise make_document_error(f"Invalid JSON: {e}", path) from e

    if not isinstance(data, dict):
        raise make_document_error("Structure document must be a JSON object", path)
    return load_structure(data, config=config, bus=bus, file=path)


def write_structure_file(mission: MissionStructure, path: Path) -> None:
    """
    Write a mission structure to a JSON file.

    Raises:
        StructureDocumentError: If the file cannot be written
    """
    try:
        path.write_text(json.dumps(dump_structure(mission), indent=2) + "\n", encoding="utf-8")
    except OSError as e:
        raise make_document_error(f"Cannot write structure document: {e}", path) from e
    logger.info("Wrote %d prototypes to %s", len(mission.prototypes), path)


__all__ = [
    "dump_document",
    "dump_structure",
    "load_structure",
    "read_structure_file",
    "write_structure_file",
]
