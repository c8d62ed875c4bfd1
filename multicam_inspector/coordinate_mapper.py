"""
Bidirectional mapping between screen, image-pixel and normalized coordinates.

The mapper wraps one resolved :class:`DrawTransform`. Forward mapping applies
the transform's affine matrix; inverse mapping applies its inverse, which
undoes translation, scale, rotation and mirroring in the right order:

    screen -> (undo translate) -> (undo rotate) -> (undo mirror)
           -> (undo scale: delta / calibrated size * natural size) -> image px

Normalized coordinates are always derived alongside image pixels as
``image_x / image_width`` and ``image_y / image_height``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import numpy as np

from multicam_inspector.geometry import ImagePoint, PixelPoint, ScreenPoint, ScreenQuad
from multicam_inspector.transform_composer import DrawTransform
from multicam_inspector.types import ScreenPixels

if TYPE_CHECKING:
    from multicam_inspector.annotation.validation_box import ValidationBox


class CoordinateMapper:
    """Map points and boxes through a tile's current draw transform.

    Example:
        >>> mapper = CoordinateMapper(transform)
        >>> hit = mapper.screen_to_image(ScreenPoint(412.0, 230.5))
        >>> if hit is not None:
        ...     print(hit.normalized_x, hit.normalized_y)
    """

    def __init__(self, transform: DrawTransform):
        self.transform = transform
        if transform.is_empty:
            self._forward = None
            self._inverse = None
        else:
            self._forward = transform.matrix
            self._inverse = np.linalg.inv(self._forward)

    @property
    def is_active(self) -> bool:
        """False when the tile has nothing drawn and mapping must be skipped."""
        return self._forward is not None

    def screen_to_image(self, point: ScreenPoint) -> Optional[ImagePoint]:
        """Map a pointer position (relative to the tile) to image coordinates.

        Returns:
            The image point, or None when the transform is empty. Points off
            the image are returned unclamped (normalized outside [0, 1]).
        """
        if self._inverse is None:
            return None
        u, v, _ = self._inverse @ np.array([point.x, point.y, 1.0], dtype=np.float64)
        return ImagePoint.from_pixel(
            float(u), float(v), self.transform.image_width, self.transform.image_height
        )

    def image_to_screen(self, pixel: PixelPoint) -> Optional[ScreenPoint]:
        """Map an image-pixel position to its on-screen position."""
        if self._forward is None:
            return None
        x, y, _ = self._forward @ np.array([pixel.x, pixel.y, 1.0], dtype=np.float64)
        return ScreenPoint(x=ScreenPixels(float(x)), y=ScreenPixels(float(y)))

    def normalized_to_screen(self, nx: float, ny: float) -> Optional[ScreenPoint]:
        """Map a normalized image position to its on-screen position."""
        if self._forward is None:
            return None
        return self.image_to_screen(
            PixelPoint(
                x=nx * self.transform.image_width,
                y=ny * self.transform.image_height,
            )
        )

    def rect_to_screen(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
    ) -> Optional[ScreenQuad]:
        """Map a normalized rectangle to its four on-screen corners."""
        if self._forward is None:
            return None
        iw = self.transform.image_width
        ih = self.transform.image_height
        corners = np.array(
            [
                [x * iw, y * ih, 1.0],
                [(x + width) * iw, y * ih, 1.0],
                [(x + width) * iw, (y + height) * ih, 1.0],
                [x * iw, (y + height) * ih, 1.0],
            ],
            dtype=np.float64,
        )
        screen = (self._forward @ corners.T).T
        return ScreenQuad(
            corners=tuple(
                ScreenPoint(x=ScreenPixels(float(sx)), y=ScreenPixels(float(sy)))
                for sx, sy, _ in screen
            )
        )

    def box_to_screen(self, box: ValidationBox) -> Optional[ScreenQuad]:
        """Map a validation box's normalized rectangle to the screen."""
        return self.rect_to_screen(box.x, box.y, box.width, box.height)

    def image_outline(self) -> Optional[ScreenQuad]:
        """On-screen corners of the whole image."""
        return self.rect_to_screen(0.0, 0.0, 1.0, 1.0)
