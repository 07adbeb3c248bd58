"""Tests for metis.toml loading."""

from pathlib import Path

import pytest

from metis.core.errors import ManifestError
from metis.core.manifest import LayoutConfig, LoggingConfig, find_manifest, load_manifest


def write_manifest(directory: Path, content: str) -> Path:
    path = directory / "metis.toml"
    path.write_text(content)
    return path


class TestLoadManifest:
    """Tests for load_manifest."""

    def test_full_manifest(self, tmp_path: Path) -> None:
        path = write_manifest(
            tmp_path,
            """
[project]
name = "recon-mission"
version = "1.2.0"
structure = "structure.json"

[layout]
column_width = 4.0
row_height = 1.5

[logging]
level = "debug"
""",
        )

        manifest = load_manifest(path)

        assert manifest.name == "recon-mission"
        assert manifest.version == "1.2.0"
        assert manifest.structure_path == "structure.json"
        assert manifest.layout.column_width == 4.0
        assert manifest.layout.row_height == 1.5
        assert manifest.layout.buttons_height == 0.425
        assert manifest.logging.level == "DEBUG"

    def test_defaults(self, tmp_path: Path) -> None:
        manifest = load_manifest(write_manifest(tmp_path, ""))

        assert manifest.name == "unnamed"
        assert manifest.structure_path is None
        assert manifest.layout == LayoutConfig()
        assert manifest.logging == LoggingConfig()

    def test_invalid_toml(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestError, match="Invalid TOML"):
            load_manifest(write_manifest(tmp_path, "[layout\n"))

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestError, match="Cannot read manifest"):
            load_manifest(tmp_path / "metis.toml")

    def test_unknown_layout_key(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestError, match="unknown keys: zoom"):
            load_manifest(write_manifest(tmp_path, "[layout]\nzoom = 2\n"))

    def test_invalid_log_level(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestError, match="level"):
            load_manifest(write_manifest(tmp_path, '[logging]\nlevel = "LOUD"\n'))


class TestLayoutConfig:
    """Tests for layout geometry validation."""

    def test_column_gap(self) -> None:
        assert LayoutConfig().column_gap == pytest.approx(0.375)

    @pytest.mark.parametrize("field", ["column_width", "row_height", "buttons_height"])
    def test_non_positive_rejected(self, field: str) -> None:
        with pytest.raises(ManifestError, match=field):
            LayoutConfig(**{field: 0})

    def test_prototype_must_fit_column(self) -> None:
        with pytest.raises(ManifestError, match="prototype_width"):
            LayoutConfig(column_width=2.0, prototype_width=2.0)

    def test_non_numeric_rejected(self) -> None:
        with pytest.raises(ManifestError):
            LayoutConfig(row_height="tall")  # type: ignore[arg-type]


class TestFindManifest:
    """Tests for manifest discovery."""

    def test_found_in_parent(self, tmp_path: Path) -> None:
        path = write_manifest(tmp_path, "")
        nested = tmp_path / "missions" / "alpha"
        nested.mkdir(parents=True)

        assert find_manifest(nested) == path

    def test_start_from_file(self, tmp_path: Path) -> None:
        path = write_manifest(tmp_path, "")
        document = tmp_path / "structure.json"
        document.write_text("{}")

        assert find_manifest(document) == path

    def test_not_found(self, tmp_path: Path) -> None:
        assert find_manifest(tmp_path / "nowhere") is None
