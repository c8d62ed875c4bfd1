"""Viewport layout, transform and pointer-mapping CLI commands."""

import json
from typing import Optional

import typer

from multicam_inspector.calibration import CalibrationTransform, load_config
from multicam_inspector.camera_config import CALIBRATION_PATH, get_camera_name
from multicam_inspector.cli.main import OutputFormat, resolve_camera_slot, view_app
from multicam_inspector.coordinate_mapper import CoordinateMapper
from multicam_inspector.geometry import PanOffset, ScreenPoint, ViewportSize
from multicam_inspector.layout import resolve_contain_fit
from multicam_inspector.transform_composer import DrawTransform, resolve_draw_transform
from multicam_inspector.types import Pixels, ScreenPixels
from multicam_inspector.viewport.view_state import clamp_pan, clamp_zoom


def _calibration_for(
    installation: Optional[str],
    camera: Optional[str],
    config_path: str,
) -> CalibrationTransform:
    if installation is None or camera is None:
        return CalibrationTransform.identity()
    slot = resolve_camera_slot(camera)
    try:
        config = load_config(config_path)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    return config.get_transform(installation, slot)


def _resolve(
    image_width: int,
    image_height: int,
    display_width: float,
    display_height: float,
    zoom: float,
    pan_x: float,
    pan_y: float,
    calibration: CalibrationTransform,
) -> DrawTransform:
    viewport = ViewportSize(ScreenPixels(display_width), ScreenPixels(display_height))
    clamped_zoom = clamp_zoom(zoom)
    pan = clamp_pan(PanOffset(pan_x, pan_y), clamped_zoom, viewport)
    return resolve_draw_transform(
        Pixels(image_width), Pixels(image_height), viewport, clamped_zoom, pan, calibration
    )


def _transform_dict(transform: DrawTransform) -> dict:
    data = {
        "center": {"x": transform.center_x, "y": transform.center_y},
        "size": {"width": transform.width, "height": transform.height},
        "rotation_degrees": transform.rotation_degrees,
        "flipped": transform.flipped,
        "empty": transform.is_empty,
    }
    if not transform.is_empty:
        data["matrix"] = transform.matrix.tolist()
    return data


@view_app.command("fit")
def fit_command(
    image_width: int = typer.Option(..., help="Natural image width in pixels"),
    image_height: int = typer.Option(..., help="Natural image height in pixels"),
    display_width: float = typer.Option(..., help="Tile width in screen pixels"),
    display_height: float = typer.Option(..., help="Tile height in screen pixels"),
    output_format: OutputFormat = typer.Option(
        OutputFormat.HUMAN,
        "--format",
        "-f",
        help="Output format",
    ),
) -> None:
    """
    Compute the contain-fit rectangle of an image inside a tile.

    Example:
        mci view fit --image-width 4000 --image-height 3000 --display-width 800 --display-height 450
    """
    rect = resolve_contain_fit(image_width, image_height, display_width, display_height)

    if output_format == OutputFormat.JSON:
        typer.echo(json.dumps({
            "width": rect.width,
            "height": rect.height,
            "offset_x": rect.offset_x,
            "offset_y": rect.offset_y,
            "empty": rect.is_empty,
        }, indent=2))
        return

    if rect.is_empty:
        typer.echo("Nothing to draw (degenerate image or display size)")
        return
    typer.echo(f"Draw size:   {rect.width:.1f} x {rect.height:.1f}")
    typer.echo(f"Draw offset: ({rect.offset_x:.1f}, {rect.offset_y:.1f})")


@view_app.command("resolve")
def resolve_command(
    image_width: int = typer.Option(..., help="Natural image width in pixels"),
    image_height: int = typer.Option(..., help="Natural image height in pixels"),
    display_width: float = typer.Option(..., help="Tile width in screen pixels"),
    display_height: float = typer.Option(..., help="Tile height in screen pixels"),
    zoom: float = typer.Option(1.0, help="Zoom level (clamped to 1-10)"),
    pan_x: float = typer.Option(0.0, help="Stored pan x (clamped to the zoom's bounds)"),
    pan_y: float = typer.Option(0.0, help="Stored pan y (clamped to the zoom's bounds)"),
    installation: Optional[str] = typer.Option(None, help="Installation whose calibration applies"),
    camera: Optional[str] = typer.Option(None, help="Camera name or slot for the calibration"),
    config_path: str = typer.Option(CALIBRATION_PATH, "--config", help="Calibration YAML file"),
    output_format: OutputFormat = typer.Option(
        OutputFormat.HUMAN,
        "--format",
        "-f",
        help="Output format",
    ),
) -> None:
    """
    Resolve the full draw transform of a tile.

    Example:
        mci view resolve --image-width 1920 --image-height 1080 \\
            --display-width 800 --display-height 450 --zoom 2 \\
            --installation hangar_rouen_vpn --camera RUR
    """
    calibration = _calibration_for(installation, camera, config_path)
    transform = _resolve(
        image_width, image_height, display_width, display_height, zoom, pan_x, pan_y, calibration
    )

    if output_format == OutputFormat.JSON:
        typer.echo(json.dumps(_transform_dict(transform), indent=2))
        return

    if transform.is_empty:
        typer.echo("Nothing to draw (degenerate image or display size)")
        return

    label = get_camera_name(resolve_camera_slot(camera)) if camera is not None else "camera"
    M = transform.matrix
    lines = [
        f"Draw transform of {label}",
        "=" * 60,
        f"  Center:   ({transform.center_x:.2f}, {transform.center_y:.2f})",
        f"  Size:     {transform.width:.2f} x {transform.height:.2f}",
        f"  Rotation: {transform.rotation_degrees:.2f}°",
        f"  Flipped:  {'yes' if transform.flipped else 'no'}",
        "",
        "Image -> screen matrix:",
        f"  [{M[0, 0]:10.4f}  {M[0, 1]:10.4f}  {M[0, 2]:10.2f}]",
        f"  [{M[1, 0]:10.4f}  {M[1, 1]:10.4f}  {M[1, 2]:10.2f}]",
        f"  [{M[2, 0]:10.4f}  {M[2, 1]:10.4f}  {M[2, 2]:10.2f}]",
    ]
    typer.echo("\n".join(lines))


@view_app.command("map")
def map_command(
    x: float = typer.Argument(..., help="Pointer x relative to the tile"),
    y: float = typer.Argument(..., help="Pointer y relative to the tile"),
    image_width: int = typer.Option(..., help="Natural image width in pixels"),
    image_height: int = typer.Option(..., help="Natural image height in pixels"),
    display_width: float = typer.Option(..., help="Tile width in screen pixels"),
    display_height: float = typer.Option(..., help="Tile height in screen pixels"),
    zoom: float = typer.Option(1.0, help="Zoom level (clamped to 1-10)"),
    pan_x: float = typer.Option(0.0, help="Stored pan x"),
    pan_y: float = typer.Option(0.0, help="Stored pan y"),
    installation: Optional[str] = typer.Option(None, help="Installation whose calibration applies"),
    camera: Optional[str] = typer.Option(None, help="Camera name or slot for the calibration"),
    config_path: str = typer.Option(CALIBRATION_PATH, "--config", help="Calibration YAML file"),
    output_format: OutputFormat = typer.Option(
        OutputFormat.HUMAN,
        "--format",
        "-f",
        help="Output format",
    ),
) -> None:
    """
    Map a pointer position on a tile to image pixel and normalized coordinates.

    Example:
        mci view map 400 225 --image-width 1000 --image-height 800 \\
            --display-width 800 --display-height 450
    """
    calibration = _calibration_for(installation, camera, config_path)
    transform = _resolve(
        image_width, image_height, display_width, display_height, zoom, pan_x, pan_y, calibration
    )
    point = CoordinateMapper(transform).screen_to_image(ScreenPoint(ScreenPixels(x), ScreenPixels(y)))

    if point is None:
        typer.echo("Error: Nothing is drawn on this tile; cannot map the pointer", err=True)
        raise typer.Exit(1)

    inside = 0.0 <= point.normalized_x <= 1.0 and 0.0 <= point.normalized_y <= 1.0
    if output_format == OutputFormat.JSON:
        typer.echo(json.dumps({
            "pixel": {"x": point.pixel.x, "y": point.pixel.y},
            "normalized": {"x": point.normalized_x, "y": point.normalized_y},
            "inside_image": inside,
        }, indent=2))
        return

    typer.echo(f"Pixel:      ({point.pixel.x:.2f}, {point.pixel.y:.2f})")
    typer.echo(f"Normalized: ({point.normalized_x:.4f}, {point.normalized_y:.4f})")
    if not inside:
        typer.echo("Pointer is outside the image")
