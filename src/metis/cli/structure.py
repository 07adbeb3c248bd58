"""
Structure document commands for METIS CLI.

Commands:
- metis validate [FILE]: Load a structure document and check its integrity
- metis layout [FILE]: Print prototype positions and relationship lines
- metis slots [FILE] --destination ID: Preview the slots offered for a destination
- metis move FILE PROTOTYPE DESTINATION RELATION: Move a prototype and save
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.table import Table

from metis.core.errors import MetisError
from metis.core.ir import PrototypeRelation
from metis.core.manifest import LayoutConfig
from metis.structure import MissionStructure, read_structure_file, write_structure_file

from .utils import configure_logging, resolve_manifest, resolve_structure_file

logger = logging.getLogger(__name__)

console = Console()

# Set by the main callback
_verbose = False


def set_verbose(verbose: bool) -> None:
    global _verbose
    _verbose = verbose


FileArgument = Annotated[
    Path | None,
    typer.Argument(help="Structure document (defaults to [project] structure in metis.toml)"),
]
ManifestOption = Annotated[
    Path | None,
    typer.Option("--manifest", "-m", help="Path to metis.toml (searched upwards by default)"),
]


def _open_mission(file: Path | None, manifest: Path | None) -> tuple[Path, MissionStructure]:
    """Resolve inputs, configure logging and load the mission."""
    path = resolve_structure_file(file, manifest)
    project = resolve_manifest(manifest, path)

    if _verbose:
        configure_logging("DEBUG")
    elif project is not None:
        configure_logging(project.logging.level)
    else:
        configure_logging("WARNING")

    config = project.layout if project is not None else LayoutConfig()
    return path, read_structure_file(path, config=config)


def _mission_to_dict(mission: MissionStructure) -> dict[str, Any]:
    return {
        "depth": mission.depth,
        "prototypes": [
            {
                "id": prototype.id,
                "parent": prototype.parent.id if prototype.parent else None,
                "depth": prototype.depth,
                "row": prototype.row,
                "depth_padding": prototype.depth_padding,
                "position": prototype.position.model_dump(),
            }
            for prototype in mission.walk()
        ],
        "slots": [slot.model_dump(mode="json") for slot in mission.prototype_slots],
        "lines": [line.model_dump(mode="json") for line in mission.relationship_lines],
    }


# =============================================================================
# Commands
# =============================================================================


def validate_command(
    file: FileArgument = None,
    manifest: ManifestOption = None,
) -> None:
    """
    Load a structure document and check the prototype tree invariants.
    """
    try:
        path, mission = _open_mission(file, manifest)
        mission.check_integrity()
    except MetisError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    console.print(
        f"[green]OK[/green] {path}: {len(mission.prototypes)} prototypes, depth {mission.depth}",
        soft_wrap=True,
    )


def layout_command(
    file: FileArgument = None,
    manifest: ManifestOption = None,
    format: Annotated[
        str, typer.Option("--format", "-f", help="Output format: 'table' or 'json'")
    ] = "table",
) -> None:
    """
    Print the position of every prototype and the relationship lines.
    """
    if format not in ("table", "json"):
        typer.echo(f"Error: unknown format '{format}' (use 'table' or 'json')", err=True)
        raise typer.Exit(code=2)

    try:
        _, mission = _open_mission(file, manifest)
    except MetisError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    if format == "json":
        typer.echo(json.dumps(_mission_to_dict(mission), indent=2))
        return

    table = Table(title=f"Prototypes (depth {mission.depth})")
    table.add_column("ID", style="cyan")
    table.add_column("Parent")
    table.add_column("Depth", justify="right")
    table.add_column("Row", justify="right")
    table.add_column("Padding", justify="right")
    table.add_column("Position")
    for prototype in mission.walk():
        parent = prototype.parent
        table.add_row(
            prototype.id,
            "-" if parent is None or parent.is_root else parent.id,
            str(prototype.depth),
            str(prototype.row),
            str(prototype.depth_padding),
            str(prototype.position),
        )
    console.print(table)
    console.print(f"{len(mission.relationship_lines)} relationship lines")


def slots_command(
    destination: Annotated[
        str, typer.Option("--destination", "-d", help="Destination prototype id")
    ],
    file: FileArgument = None,
    manifest: ManifestOption = None,
    translate: Annotated[
        str | None,
        typer.Option("--translate", "-t", help="Preview moving this prototype instead of creating one"),
    ] = None,
) -> None:
    """
    Preview the slots offered for a destination.
    """
    try:
        _, mission = _open_mission(file, manifest)
        target = mission.get_prototype(destination)
        if translate is not None:
            mission.begin_translation(mission.get_prototype(translate))
            mission.choose_destination(target)
        else:
            mission.begin_creation(target)
    except MetisError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    table = Table(title=f"Slots for {destination}")
    table.add_column("Relation", style="cyan")
    table.add_column("Depth", justify="right")
    table.add_column("Position")
    for slot in mission.available_slots():
        table.add_row(slot.relation.value, str(slot.depth), str(slot.position))
    console.print(table)


def move_command(
    file: Annotated[Path, typer.Argument(help="Structure document")],
    prototype: Annotated[str, typer.Argument(help="Id of the prototype to move")],
    destination: Annotated[str, typer.Argument(help="Id of the destination prototype")],
    relation: Annotated[PrototypeRelation, typer.Argument(help="Where to place the prototype")],
    manifest: ManifestOption = None,
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write here instead of in place")
    ] = None,
) -> None:
    """
    Move a prototype, with its subtree, and save the document.
    """
    try:
        path, mission = _open_mission(file, manifest)
        mission.move(mission.get_prototype(prototype), mission.get_prototype(destination), relation)
        mission.check_integrity()
        target = output or path
        write_structure_file(mission, target)
    except MetisError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    console.print(
        f"[green]Moved[/green] {prototype} ({relation.value} {destination}) -> {target}",
        soft_wrap=True,
    )
