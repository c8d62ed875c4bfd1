"""Main Typer CLI application for the multi-camera inspector."""

import logging
from enum import Enum

import typer

from multicam_inspector.camera_config import CAMERA_COUNT, get_camera_layout, get_camera_slot


class OutputFormat(str, Enum):
    """Output format options."""

    HUMAN = "human"
    JSON = "json"


def resolve_camera_slot(camera: str) -> int:
    """Resolve a camera given by name (e.g. 'FDL') or slot index.

    Raises:
        typer.Exit: If the camera is unknown.
    """
    slot = int(camera) if camera.isdigit() else get_camera_slot(camera.upper())
    if slot is None or not 0 <= slot < CAMERA_COUNT:
        available = [c["name"] for c in get_camera_layout()]
        typer.echo(
            f"Error: Camera '{camera}' not found. Available cameras: {', '.join(available)}",
            err=True,
        )
        raise typer.Exit(1)
    return slot


app = typer.Typer(
    help="Multi-camera inspector tools for calibration and viewport geometry",
    no_args_is_help=True,
)

calibration_app = typer.Typer(help="Installation calibration commands")
view_app = typer.Typer(help="Viewport layout and coordinate mapping commands")
boxes_app = typer.Typer(help="Validation box commands")

app.add_typer(calibration_app, name="calibration")
app.add_typer(view_app, name="view")
app.add_typer(boxes_app, name="boxes")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s - %(name)s - %(message)s",
    )


def _register_commands() -> None:
    """
    Import command modules to register commands with their respective apps.

    Commands use decorators like @calibration_app.command() which register
    themselves when the module is imported.
    """
    from multicam_inspector.cli import boxes, calibration, view

    _ = boxes
    _ = calibration
    _ = view


_register_commands()


if __name__ == "__main__":
    app()
