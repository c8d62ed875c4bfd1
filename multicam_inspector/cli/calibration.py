"""Installation calibration CLI commands."""

import json
from typing import Optional

import typer

from multicam_inspector.calibration import (
    CalibrationConfig,
    CalibrationSession,
    CalibrationTransform,
    load_config,
)
from multicam_inspector.camera_config import CALIBRATION_PATH, CAMERA_COUNT, get_camera_name
from multicam_inspector.cli.main import OutputFormat, calibration_app, resolve_camera_slot


def _load(config_path: str) -> CalibrationConfig:
    try:
        return load_config(config_path)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def _save(config: CalibrationConfig, config_path: str) -> None:
    try:
        config.save_to_yaml(config_path)
    except IOError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def _require_installation(config: CalibrationConfig, installation: str) -> None:
    if installation not in config.installations:
        available = ", ".join(config.installations) or "none"
        typer.echo(
            f"Error: Installation '{installation}' not found. Available installations: {available}",
            err=True,
        )
        raise typer.Exit(1)


def _format_transform(transform: CalibrationTransform) -> str:
    flip = "  flipped" if transform.flipped else ""
    return (
        f"x={transform.x:8.2f}  y={transform.y:8.2f}  "
        f"scale={transform.scale:6.3f}  rotation={transform.rotation:7.2f}°{flip}"
    )


@calibration_app.command("list")
def list_command(
    config_path: str = typer.Option(CALIBRATION_PATH, "--config", help="Calibration YAML file"),
    output_format: OutputFormat = typer.Option(
        OutputFormat.HUMAN,
        "--format",
        "-f",
        help="Output format",
    ),
) -> None:
    """
    List known installations and how many cameras carry a correction.

    Falls back to the built-in installations when the file does not exist.

    Example:
        mci calibration list
        mci calibration list --config config/calibration.yaml --format json
    """
    config = _load(config_path)

    rows = []
    for installation in config.installations.values():
        corrected = sum(
            1 for slot in range(CAMERA_COUNT)
            if not installation.get_transform(slot).is_identity
        )
        rows.append({
            "id": installation.installation_id,
            "label": installation.label,
            "corrected_cameras": corrected,
        })

    if output_format == OutputFormat.JSON:
        typer.echo(json.dumps({"installations": rows}, indent=2))
        return

    if not rows:
        typer.echo("No installations configured")
        return
    for row in rows:
        typer.echo(f"{row['id']:<24} {row['label']:<32} {row['corrected_cameras']}/{CAMERA_COUNT} corrected")


@calibration_app.command("show")
def show_command(
    installation: str = typer.Argument(..., help="Installation id (e.g. 'hangar_rouen_vpn')"),
    config_path: str = typer.Option(CALIBRATION_PATH, "--config", help="Calibration YAML file"),
    output_format: OutputFormat = typer.Option(
        OutputFormat.HUMAN,
        "--format",
        "-f",
        help="Output format",
    ),
) -> None:
    """
    Show the calibration transform of every camera at an installation.

    Example:
        mci calibration show hangar_rouen_vpn
    """
    config = _load(config_path)
    _require_installation(config, installation)
    record = config.get_installation(installation)

    if output_format == OutputFormat.JSON:
        output = {
            "id": record.installation_id,
            "label": record.label,
            "transforms": {
                get_camera_name(slot): record.get_transform(slot).to_dict()
                for slot in range(CAMERA_COUNT)
            },
        }
        typer.echo(json.dumps(output, indent=2))
        return

    typer.echo(f"{record.label or record.installation_id} ({record.installation_id})")
    typer.echo("=" * 60)
    for slot in range(CAMERA_COUNT):
        typer.echo(f"  {slot} {get_camera_name(slot):<4} {_format_transform(record.get_transform(slot))}")


@calibration_app.command("set")
def set_command(
    installation: str = typer.Argument(..., help="Installation id"),
    camera: str = typer.Argument(..., help="Camera name (e.g. 'FDL') or slot 0-7"),
    x: Optional[float] = typer.Option(None, help="Horizontal offset in calibration units"),
    y: Optional[float] = typer.Option(None, help="Vertical offset in calibration units"),
    scale: Optional[float] = typer.Option(None, help="Uniform scale (> 0)"),
    rotation: Optional[float] = typer.Option(None, help="Clockwise rotation in degrees"),
    flipped: Optional[bool] = typer.Option(None, "--flipped/--not-flipped", help="Mirror horizontally"),
    reset: bool = typer.Option(False, "--reset", help="Reset the camera to identity first"),
    config_path: str = typer.Option(CALIBRATION_PATH, "--config", help="Calibration YAML file"),
) -> None:
    """
    Set fields of one camera's calibration transform and save the file.

    Fields not given keep their current value. Unknown installations are
    created.

    Example:
        mci calibration set hangar_rouen_vpn FDL --x 12 --rotation -1.5
        mci calibration set hangar_rouen_vpn 3 --reset
    """
    slot = resolve_camera_slot(camera)
    config = _load(config_path)
    session = CalibrationSession(config, installation)

    if reset:
        session.reset(slot)

    changes = {
        name: value
        for name, value in (
            ("x", x), ("y", y), ("scale", scale), ("rotation", rotation), ("flipped", flipped)
        )
        if value is not None
    }
    try:
        session.set_transform(slot, session.transform(slot).with_changes(**changes))
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if not session.is_dirty:
        typer.echo(f"{get_camera_name(slot)} unchanged: {_format_transform(session.transform(slot))}")
        return

    _save(session.commit(), config_path)
    typer.echo(f"{get_camera_name(slot)} updated: {_format_transform(session.transform(slot))}")


@calibration_app.command("nudge")
def nudge_command(
    installation: str = typer.Argument(..., help="Installation id"),
    camera: str = typer.Argument(..., help="Camera name (e.g. 'FDL') or slot 0-7"),
    dx: float = typer.Option(0, help="Offset steps right (negative = left)"),
    dy: float = typer.Option(0, help="Offset steps down (negative = up)"),
    dscale: float = typer.Option(0, help="Scale steps of 0.01"),
    drotation: float = typer.Option(0, help="Rotation steps of 0.1°"),
    flip: bool = typer.Option(False, "--flip", help="Toggle horizontal mirroring"),
    config_path: str = typer.Option(CALIBRATION_PATH, "--config", help="Calibration YAML file"),
) -> None:
    """
    Adjust a camera's transform by step increments and save the file.

    Example:
        mci calibration nudge hangar_rouen_vpn RUR --dx 5 --drotation -3
    """
    slot = resolve_camera_slot(camera)
    config = _load(config_path)
    session = CalibrationSession(config, installation)

    session.nudge(slot, dx=dx, dy=dy, dscale=dscale, drotation=drotation)
    if flip:
        session.toggle_flip(slot)

    if session.is_dirty:
        _save(session.commit(), config_path)
    typer.echo(f"{get_camera_name(slot)}: {_format_transform(session.transform(slot))}")
