"""Shared pytest fixtures for METIS tests."""

from collections.abc import Callable
from typing import Any

import pytest

from metis.core.manifest import LayoutConfig
from metis.structure import MissionStructure, StructureEventBus, load_structure

TreeFactory = Callable[[dict[str, Any]], MissionStructure]


def _keys(structure: dict[str, Any]) -> list[str]:
    keys: list[str] = []
    for key, branch in structure.items():
        keys.append(key)
        keys.extend(_keys(branch))
    return keys


@pytest.fixture
def layout_config() -> LayoutConfig:
    """Return the default map geometry."""
    return LayoutConfig()


@pytest.fixture
def bus() -> StructureEventBus:
    return StructureEventBus()


@pytest.fixture
def mission(bus: StructureEventBus) -> MissionStructure:
    """Return an empty mission structure."""
    return MissionStructure(bus=bus)


@pytest.fixture
def make_tree(bus: StructureEventBus) -> TreeFactory:
    """
    Return a factory building a mission from nested ids.

    Example:
        make_tree({"A": {}, "B": {"C": {}}})
    """

    def factory(structure: dict[str, Any]) -> MissionStructure:
        document = {
            "structure": structure,
            "prototypes": [{"_id": key} for key in _keys(structure)],
        }
        return load_structure(document, bus=bus)

    return factory


@pytest.fixture
def sample_document() -> dict[str, Any]:
    """Return a structure document as stored by the mission editor."""
    return {
        "structure": {
            "recon": {"approach": {}, "survey": {"report": {}}},
            "strike": {},
        },
        "prototypes": [
            {"_id": "p-recon", "structureKey": "recon", "depthPadding": 0},
            {"_id": "p-approach", "structureKey": "approach", "depthPadding": 0},
            {"_id": "p-survey", "structureKey": "survey", "depthPadding": 1},
            {"_id": "p-report", "structureKey": "report", "depthPadding": 0},
            {"_id": "p-strike", "structureKey": "strike", "depthPadding": 0},
        ],
    }
