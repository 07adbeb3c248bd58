import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ManifestError

MANIFEST_NAME = "metis.toml"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# =============================================================================
# Layout Configuration
# =============================================================================


@dataclass(frozen=True)
class LayoutConfig:
    """
    Mission map geometry, in layout units (em on the original map).

    Examples in metis.toml:

        [layout]
        column_width = 3.0
        row_height = 1.25
        buttons_height = 0.425
    """

    column_width: float = 3.0  # Horizontal distance between depth levels
    row_height: float = 1.25  # Vertical distance between rows
    buttons_height: float = 0.425  # Extra space below a decorated prototype
    prototype_width: float = 2.25
    prototype_height: float = 0.68  # Name area plus vertical padding

    def __post_init__(self) -> None:
        for name in (
            "column_width",
            "row_height",
            "buttons_height",
            "prototype_width",
            "prototype_height",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int | float) or value <= 0:
                raise ManifestError(f"[layout] {name} must be a positive number, got: {value!r}")
        if self.prototype_width >= self.column_width:
            raise ManifestError(
                f"[layout] prototype_width ({self.prototype_width}) must be smaller "
                f"than column_width ({self.column_width})"
            )

    @property
    def column_gap(self) -> float:
        """Half of the free space between two columns of prototypes."""
        return (self.column_width - self.prototype_width) / 2


# =============================================================================
# Logging Configuration
# =============================================================================


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"  # "DEBUG" | "INFO" | "WARNING" | "ERROR" | "CRITICAL"

    def __post_init__(self) -> None:
        if self.level.upper() not in _LOG_LEVELS:
            raise ManifestError(
                f"[logging] level must be one of {', '.join(_LOG_LEVELS)}, got: {self.level}"
            )


@dataclass
class ProjectManifest:
    """
    Project manifest loaded from metis.toml.

    Contains project metadata plus layout and logging configuration.
    """

    name: str
    version: str
    structure_path: str | None = None
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_manifest(path: Path) -> ProjectManifest:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ManifestError(f"Cannot read manifest: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ManifestError(f"Invalid TOML in {path}: {e}") from e

    project = data.get("project", {})
    layout_data = data.get("layout", {})
    logging_data = data.get("logging", {})

    unknown = set(layout_data) - set(LayoutConfig.__dataclass_fields__)
    if unknown:
        raise ManifestError(f"[layout] unknown keys: {', '.join(sorted(unknown))}")

    layout_config = LayoutConfig(**layout_data)

    logging_config = LoggingConfig(
        level=str(logging_data.get("level", "WARNING")).upper(),
    )

    return ProjectManifest(
        name=project.get("name", "unnamed"),
        version=project.get("version", "0.0.0"),
        structure_path=project.get("structure"),
        layout=layout_config,
        logging=logging_config,
    )


def find_manifest(start: Path) -> Path | None:
    """
    Find metis.toml in ``start`` or one of its parents.

    Args:
        start: File or directory to start searching from

    Returns:
        Path to the manifest, or None if there is none
    """
    directory = start if start.is_dir() else start.parent
    for candidate in (directory, *directory.parents):
        manifest = candidate / MANIFEST_NAME
        if manifest.exists():
            return manifest
    return None
