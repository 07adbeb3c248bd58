"""Tests for structure document load/save."""

import json
from pathlib import Path

import pytest

from metis.core.errors import StructureDocumentError
from metis.core.ir import PrototypeRelation
from metis.core.manifest import LayoutConfig
from metis.structure import (
    dump_structure,
    load_structure,
    read_structure_file,
    write_structure_file,
)


def ids(prototypes) -> list[str]:
    return [p.id for p in prototypes]


class TestLoadStructure:
    """Tests for load_structure."""

    def test_builds_tree(self, sample_document) -> None:
        mission = load_structure(sample_document)

        assert ids(mission.walk()) == [
            "p-recon",
            "p-approach",
            "p-survey",
            "p-report",
            "p-strike",
        ]
        assert mission.get_prototype("p-report").parent.id == "p-survey"
        assert mission.get_prototype("p-survey").depth_padding == 1
        assert mission.get_prototype("p-survey").depth == 2
        assert mission.last_created_prototype is None
        mission.check_integrity()

    def test_single_structure_change(self, sample_document, bus) -> None:
        changes = []
        bus.subscribe("structure-change", changes.append)

        load_structure(sample_document, bus=bus)

        assert len(changes) == 1

    def test_uses_layout_config(self, sample_document) -> None:
        config = LayoutConfig(column_width=5.0, prototype_width=4.0)
        mission = load_structure(sample_document, config=config)

        assert mission.get_prototype("p-approach").position.x == pytest.approx(5.0)

    def test_structure_key_defaults_to_id(self) -> None:
        mission = load_structure(
            {"structure": {"a": {"b": {}}}, "prototypes": [{"_id": "a"}, {"_id": "b"}]}
        )
        assert mission.get_prototype("b").parent.id == "a"

    def test_unlisted_prototypes_attach_to_root(self) -> None:
        mission = load_structure(
            {
                "structure": {"a": {}},
                "prototypes": [{"_id": "loose"}, {"_id": "a"}],
            }
        )
        assert ids(mission.root.children) == ["a", "loose"]

    def test_empty_document(self) -> None:
        mission = load_structure({})
        assert mission.prototypes == []
        assert mission.depth == -1

    def test_key_without_record(self) -> None:
        with pytest.raises(StructureDocumentError, match="no prototype record"):
            load_structure({"structure": {"ghost": {}}, "prototypes": []})

    def test_duplicate_key_across_levels(self) -> None:
        with pytest.raises(StructureDocumentError, match="Duplicate structure key"):
            load_structure(
                {
                    "structure": {"a": {"b": {}}, "b": {}},
                    "prototypes": [{"_id": "a"}, {"_id": "b"}],
                }
            )

    def test_non_object_value(self) -> None:
        with pytest.raises(StructureDocumentError, match="must be an object"):
            load_structure({"structure": {"a": []}, "prototypes": [{"_id": "a"}]})

    def test_duplicate_prototype_ids(self) -> None:
        with pytest.raises(StructureDocumentError, match="duplicate prototype id"):
            load_structure({"prototypes": [{"_id": "a"}, {"_id": "a"}]})

    def test_duplicate_structure_keys_in_records(self) -> None:
        with pytest.raises(StructureDocumentError, match="duplicate structureKey"):
            load_structure(
                {
                    "prototypes": [
                        {"_id": "a", "structureKey": "k"},
                        {"_id": "b", "structureKey": "k"},
                    ]
                }
            )

    def test_negative_depth_padding(self) -> None:
        with pytest.raises(StructureDocumentError):
            load_structure({"prototypes": [{"_id": "a", "depthPadding": -1}]})

    def test_reserved_root_id(self) -> None:
        with pytest.raises(StructureDocumentError, match="already in use"):
            load_structure({"prototypes": [{"_id": "ROOT"}]})


class TestDumpStructure:
    """Tests for dump_structure."""

    def test_document_shape(self, make_tree) -> None:
        mission = make_tree({"A": {"A1": {}}, "B": {}})
        mission.get_prototype("A1").depth_padding = 2

        assert dump_structure(mission) == {
            "structure": {"A": {"A1": {}}, "B": {}},
            "prototypes": [
                {"_id": "A", "structureKey": "A", "depthPadding": 0},
                {"_id": "A1", "structureKey": "A1", "depthPadding": 2},
                {"_id": "B", "structureKey": "B", "depthPadding": 0},
            ],
        }

    def test_reload_keeps_tree(self, sample_document) -> None:
        mission = load_structure(sample_document)
        reloaded = load_structure(dump_structure(mission))

        assert [(p.id, p.parent.id, p.depth, p.row) for p in reloaded.walk()] == [
            (p.id, p.parent.id, p.depth, p.row) for p in mission.walk()
        ]

    def test_structure_keys_survive_save(self, sample_document) -> None:
        mission = load_structure(sample_document)

        saved = dump_structure(mission)

        assert saved["structure"] == sample_document["structure"]
        assert saved["prototypes"] == sample_document["prototypes"]

    def test_keys_kept_after_move(self) -> None:
        mission = load_structure(
            {
                "structure": {"k-a": {"k-b": {}}},
                "prototypes": [
                    {"_id": "p-a", "structureKey": "k-a"},
                    {"_id": "p-b", "structureKey": "k-b"},
                ],
            }
        )
        mission.move(
            mission.get_prototype("p-b"),
            mission.get_prototype("p-a"),
            PrototypeRelation.PREVIOUS_SIBLING_OF_TARGET,
        )

        assert dump_structure(mission)["structure"] == {"k-b": {}, "k-a": {}}

    def test_new_prototypes_keyed_by_id(self, sample_document) -> None:
        mission = load_structure(sample_document)
        created = mission.create_prototype("p-debrief")

        saved = dump_structure(mission)

        assert saved["structure"]["p-debrief"] == {}
        assert saved["prototypes"][-1]["structureKey"] == created.id


class TestStructureFiles:
    """Tests for reading and writing structure files."""

    def test_write_then_read(self, tmp_path: Path, make_tree) -> None:
        mission = make_tree({"A": {"A1": {}}})
        path = tmp_path / "structure.json"

        write_structure_file(mission, path)
        loaded = read_structure_file(path)

        assert json.loads(path.read_text())["structure"] == {"A": {"A1": {}}}
        assert ids(loaded.walk()) == ["A", "A1"]

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        with pytest.raises(StructureDocumentError, match="Invalid JSON") as exc_info:
            read_structure_file(path)
        assert exc_info.value.context.file == path

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(StructureDocumentError, match="Cannot read"):
            read_structure_file(tmp_path / "missing.json")

    def test_unwritable_file(self, tmp_path: Path, make_tree) -> None:
        mission = make_tree({"A": {}})
        path = tmp_path / "missing-dir" / "structure.json"

        with pytest.raises(StructureDocumentError, match="Cannot write") as exc_info:
            write_structure_file(mission, path)
        assert exc_info.value.context.file == path

    def test_non_object_document(self, tmp_path: Path) -> None:
        path = tmp_path / "list.json"
        path.write_text("[]")

        with pytest.raises(StructureDocumentError, match="JSON object"):
            read_structure_file(path)
