"""
Composition of layout, zoom/pan and calibration into one draw transform.

Every render pass of a tile resolves a single :class:`DrawTransform` that both
the rendering surface and the coordinate mapper consume, so what is drawn and
what a pointer hits can never disagree.

Composition order (``z`` = zoom, ``T`` = calibration transform):
    1. scaled size      = contain-fit draw size * z
    2. base center      = draw-rect center + pan / z
    3. calibrated size  = scaled size * T.scale
    4. offset           = (T.x, T.y) * min(draw w, draw h) / 1000,
                          each clamped to +/- 0.5 * max(display w, display h)
    5. calibrated center = base center + offset
    6. rotation/flip about the calibrated center when T.rotation != 0 or
       T.flipped; otherwise the image is drawn axis-aligned at its top-left.

Screen coordinates have y pointing down, so positive rotation is clockwise
on screen.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from multicam_inspector.calibration.transform import (
    CalibrationTransform,
    translation_scale_factor,
)
from multicam_inspector.camera_config import MAX_OFFSET_FRACTION
from multicam_inspector.geometry import PanOffset, ViewportSize
from multicam_inspector.layout import DrawRect, resolve_contain_fit
from multicam_inspector.types import Degrees, Pixels, ScreenPixels, Unitless


@dataclass(frozen=True)
class DrawTransform:
    """Fully resolved placement of a tile's image for one frame.

    Attributes:
        center_x: Screen x of the image center.
        center_y: Screen y of the image center.
        width: Rendered image width in screen pixels (before rotation).
        height: Rendered image height in screen pixels (before rotation).
        rotation_degrees: Clockwise rotation about the center.
        flipped: Mirrored about the image's vertical axis.
        image_width: Natural width of the source image in pixels.
        image_height: Natural height of the source image in pixels.
    """

    center_x: ScreenPixels
    center_y: ScreenPixels
    width: ScreenPixels
    height: ScreenPixels
    rotation_degrees: Degrees
    flipped: bool
    image_width: Pixels
    image_height: Pixels

    @classmethod
    def empty(cls) -> DrawTransform:
        """Transform of a tile with nothing to draw (no image or no viewport)."""
        return cls(
            center_x=ScreenPixels(0.0),
            center_y=ScreenPixels(0.0),
            width=ScreenPixels(0.0),
            height=ScreenPixels(0.0),
            rotation_degrees=Degrees(0.0),
            flipped=False,
            image_width=Pixels(0),
            image_height=Pixels(0),
        )

    @property
    def is_empty(self) -> bool:
        """True when drawing and pointer mapping must be skipped."""
        return (
            self.width <= 0
            or self.height <= 0
            or self.image_width <= 0
            or self.image_height <= 0
        )

    @property
    def needs_rotation_context(self) -> bool:
        """True when the draw must rotate/mirror about the center."""
        return self.rotation_degrees != 0 or self.flipped

    @property
    def top_left(self) -> tuple[float, float]:
        """Top-left corner for an axis-aligned draw."""
        return (self.center_x - self.width / 2.0, self.center_y - self.height / 2.0)

    @property
    def matrix(self) -> np.ndarray:
        """3x3 affine matrix mapping image pixels to screen pixels.

        Built as ``translate(center) @ rotate @ mirror @ scale @
        translate(-image_size / 2)``.

        Raises:
            ValueError: If the transform is empty.
        """
        if self.is_empty:
            raise ValueError("Cannot build a matrix for an empty draw transform")

        theta = math.radians(self.rotation_degrees)
        cos_t, sin_t = math.cos(theta), math.sin(theta)

        to_center = np.array(
            [[1.0, 0.0, self.center_x], [0.0, 1.0, self.center_y], [0.0, 0.0, 1.0]],
            dtype=np.float64,
        )
        rotate = np.array(
            [[cos_t, -sin_t, 0.0], [sin_t, cos_t, 0.0], [0.0, 0.0, 1.0]],
            dtype=np.float64,
        )
        mirror = np.diag([-1.0 if self.flipped else 1.0, 1.0, 1.0])
        scale = np.diag([self.width / self.image_width, self.height / self.image_height, 1.0])
        from_image_center = np.array(
            [
                [1.0, 0.0, -self.image_width / 2.0],
                [0.0, 1.0, -self.image_height / 2.0],
                [0.0, 0.0, 1.0],
            ],
            dtype=np.float64,
        )
        return to_center @ rotate @ mirror @ scale @ from_image_center

    @property
    def inverse_matrix(self) -> np.ndarray:
        """3x3 affine matrix mapping screen pixels back to image pixels."""
        return np.linalg.inv(self.matrix)


def max_calibration_offset(viewport: ViewportSize) -> float:
    """Hard ceiling on the calibrated center offset for a display size."""
    return MAX_OFFSET_FRACTION * max(viewport.width, viewport.height)


def calibration_offset(
    draw_rect: DrawRect,
    viewport: ViewportSize,
    calibration: CalibrationTransform,
) -> tuple[float, float]:
    """Screen-pixel offset of the calibrated center, clamped to the ceiling."""
    factor = translation_scale_factor(draw_rect)
    limit = max_calibration_offset(viewport)
    offset_x = min(max(calibration.x * factor, -limit), limit)
    offset_y = min(max(calibration.y * factor, -limit), limit)
    return (offset_x, offset_y)


def compose_draw_transform(
    draw_rect: DrawRect,
    viewport: ViewportSize,
    zoom: Unitless,
    pan: PanOffset,
    calibration: CalibrationTransform,
    image_width: Pixels,
    image_height: Pixels,
) -> DrawTransform:
    """Compose layout, zoom/pan and calibration into a draw transform.

    Args:
        draw_rect: Contain-fit rectangle from the layout resolver.
        viewport: Display size of the tile.
        zoom: Live zoom level (>= 1.0).
        pan: Live pan offset in the zoom-multiplied unit.
        calibration: Transform of this camera at the current installation.
        image_width: Natural image width in pixels.
        image_height: Natural image height in pixels.

    Returns:
        The resolved transform, or :meth:`DrawTransform.empty` when the draw
        rectangle is degenerate or zoom is not positive.
    """
    if draw_rect.is_empty or not viewport.is_valid or zoom <= 0:
        return DrawTransform.empty()

    scaled_width = draw_rect.width * zoom
    scaled_height = draw_rect.height * zoom

    rect_center_x, rect_center_y = draw_rect.center
    base_center_x = rect_center_x + pan.x / zoom
    base_center_y = rect_center_y + pan.y / zoom

    offset_x, offset_y = calibration_offset(draw_rect, viewport, calibration)

    return DrawTransform(
        center_x=ScreenPixels(base_center_x + offset_x),
        center_y=ScreenPixels(base_center_y + offset_y),
        width=ScreenPixels(scaled_width * calibration.scale),
        height=ScreenPixels(scaled_height * calibration.scale),
        rotation_degrees=Degrees(calibration.rotation),
        flipped=calibration.flipped,
        image_width=image_width,
        image_height=image_height,
    )


def resolve_draw_transform(
    image_width: Pixels,
    image_height: Pixels,
    viewport: ViewportSize,
    zoom: Unitless,
    pan: PanOffset,
    calibration: CalibrationTransform,
) -> DrawTransform:
    """Run the layout resolver and the composer in one step."""
    draw_rect = resolve_contain_fit(image_width, image_height, viewport.width, viewport.height)
    return compose_draw_transform(
        draw_rect, viewport, zoom, pan, calibration, image_width, image_height
    )
