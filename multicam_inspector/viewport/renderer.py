"""Rendering surface for camera tiles."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Protocol

import cv2
import numpy as np

from multicam_inspector.annotation.validation_box import ValidationBox
from multicam_inspector.geometry import ScreenQuad
from multicam_inspector.transform_composer import DrawTransform

if TYPE_CHECKING:
    from multicam_inspector.viewport.controller import Camera

# BGR colors
BACKGROUND_COLOR = (17, 17, 17)
VALIDATED_COLOR = (94, 197, 34)
UNVALIDATED_COLOR = (68, 68, 239)
DRAFT_COLOR = (11, 158, 245)
TEXT_COLOR = (255, 255, 255)


@dataclass(frozen=True)
class BoxOverlay:
    """A validation box resolved to screen space for one frame."""

    box: ValidationBox
    quad: ScreenQuad
    validated: bool = False


@dataclass(frozen=True)
class TileOverlays:
    """Everything drawn on top of a tile's image."""

    boxes: list[BoxOverlay] = field(default_factory=list)
    draft: Optional[ScreenQuad] = None


class TileRenderer(Protocol):
    """Surface a controller paints tiles onto."""

    def render(
        self,
        camera: Camera,
        transform: DrawTransform,
        overlays: TileOverlays,
    ) -> None:
        """Repaint one tile."""
        ...


def _as_int_polygon(quad: ScreenQuad) -> np.ndarray:
    return np.round(quad.as_array()).astype(np.int32).reshape((-1, 1, 2))


class OpenCVTileRenderer:
    """Paint tiles into numpy canvases with OpenCV.

    The latest canvas of each slot is kept in :attr:`frames`.

    Example:
        >>> renderer = OpenCVTileRenderer()
        >>> controller = ViewportController(config, "hangar_sisjon_vpn", renderer=renderer)
        >>> controller.set_viewport(0, 800, 450)
        >>> cv2.imwrite("tile0.png", renderer.frames[0])
    """

    def __init__(self, line_thickness: int = 2, font_scale: float = 0.5):
        self.line_thickness = line_thickness
        self.font_scale = font_scale
        self.frames: dict[int, np.ndarray] = {}

    def render(
        self,
        camera: Camera,
        transform: DrawTransform,
        overlays: TileOverlays,
    ) -> None:
        width = max(int(round(camera.viewport.width)), 0)
        height = max(int(round(camera.viewport.height)), 0)
        canvas = np.full((height, width, 3), BACKGROUND_COLOR, dtype=np.uint8)

        if width == 0 or height == 0:
            self.frames[camera.slot] = canvas
            return

        if camera.image is None or transform.is_empty:
            message = "Failed to load" if camera.failed else "Loading..."
            cv2.putText(canvas, message, (10, height // 2),
                        cv2.FONT_HERSHEY_SIMPLEX, self.font_scale, TEXT_COLOR, 1)
            self.frames[camera.slot] = canvas
            return

        canvas = cv2.warpAffine(
            camera.image.pixels,
            transform.matrix[:2],
            (width, height),
            flags=cv2.INTER_LINEAR,
            borderMode=cv2.BORDER_CONSTANT,
            borderValue=BACKGROUND_COLOR,
        )

        for overlay in overlays.boxes:
            color = VALIDATED_COLOR if overlay.validated else UNVALIDATED_COLOR
            cv2.polylines(canvas, [_as_int_polygon(overlay.quad)], True, color,
                          self.line_thickness)
            if overlay.box.label:
                min_x, min_y, _, _ = overlay.quad.bounds()
                cv2.putText(canvas, overlay.box.label, (int(min_x) + 4, int(min_y) + 16),
                            cv2.FONT_HERSHEY_SIMPLEX, self.font_scale, color, 1)

        if overlays.draft is not None:
            cv2.polylines(canvas, [_as_int_polygon(overlays.draft)], True, DRAFT_COLOR,
                          self.line_thickness)

        cv2.putText(canvas, camera.name, (8, 20),
                    cv2.FONT_HERSHEY_SIMPLEX, self.font_scale, TEXT_COLOR, 1)
        self.frames[camera.slot] = canvas
