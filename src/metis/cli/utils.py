"""
METIS CLI Utilities.

Shared helpers used by the CLI commands: version display, logging setup
and resolution of the manifest and structure document to operate on.
"""

from __future__ import annotations

import logging
import platform
from pathlib import Path

import typer

from metis._version import get_version
from metis.core.errors import ManifestError
from metis.core.manifest import MANIFEST_NAME, ProjectManifest, find_manifest, load_manifest

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        typer.echo(f"METIS {get_version()}")
        typer.echo(f"Python {platform.python_version()} ({platform.python_implementation()})")
        raise typer.Exit()


def configure_logging(level: str) -> None:
    """Configure logging of the ``metis`` package for a CLI run."""
    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger("metis").setLevel(level.upper())


def resolve_manifest(manifest: Path | None, start: Path) -> ProjectManifest | None:
    """
    Load the manifest to use for a command.

    Args:
        manifest: Explicit --manifest path, if given
        start: Where to search for metis.toml otherwise

    Returns:
        Loaded manifest, or None when there is none

    Raises:
        ManifestError: If an explicit manifest is missing or any manifest is
            malformed
    """
    if manifest is not None:
        if not manifest.exists():
            raise ManifestError(f"Manifest not found: {manifest}")
        path: Path | None = manifest
    else:
        path = find_manifest(start)
    if path is None:
        return None
    logger.debug("Using manifest %s", path)
    return load_manifest(path)


def resolve_structure_file(file: Path | None, manifest: Path | None) -> Path:
    """
    Pick the structure document to operate on.

    An explicit FILE wins; otherwise the manifest's ``[project] structure``
    path is used, relative to the manifest.

    Raises:
        ManifestError: If neither gives a document or the manifest is missing
    """
    if file is not None:
        return file
    if manifest is not None and not manifest.exists():
        raise ManifestError(f"Manifest not found: {manifest}")
    manifest_path = manifest if manifest is not None else find_manifest(Path.cwd())
    if manifest_path is None:
        raise ManifestError(f"No structure file given and no {MANIFEST_NAME} found")
    project = load_manifest(manifest_path)
    if project.structure_path is None:
        raise ManifestError(f"{manifest_path} does not set [project] structure")
    return manifest_path.parent / project.structure_path
