"""
METIS CLI Package.

- structure.py: structure document commands (validate, layout, slots, move)
- utils.py: shared utilities
"""

from __future__ import annotations

import sys
from typing import Annotated

import typer

from metis.cli.structure import (
    layout_command,
    move_command,
    set_verbose,
    slots_command,
    validate_command,
)
from metis.cli.utils import version_callback

# =============================================================================
# Main Application
# =============================================================================

app = typer.Typer(
    help="""METIS - mission structure engine

Inspect and edit the prototype tree stored in a structure document.
Without FILE, commands use [project] structure from metis.toml.
""",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and environment information",
        ),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    """METIS CLI main callback for global options."""
    set_verbose(verbose)


app.command(name="validate")(validate_command)
app.command(name="layout")(layout_command)
app.command(name="slots")(slots_command)
app.command(name="move")(move_command)


# =============================================================================
# Main Entry Point
# =============================================================================


def main(argv: list[str] | None = None) -> None:
    app(args=argv, standalone_mode=True)


if __name__ == "__main__":
    main(sys.argv[1:])

__all__ = ["app", "main"]
