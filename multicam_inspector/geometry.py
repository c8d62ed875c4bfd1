"""Point, size and quad primitives shared by the viewport pipeline."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from multicam_inspector.types import Normalized, Pixels, PixelsFloat, ScreenPixels


@dataclass(frozen=True)
class PixelPoint:
    """Pixel coordinates in a source image.

    Attributes:
        x: Pixel x coordinate (column).
        y: Pixel y coordinate (row).
    """

    x: PixelsFloat
    y: PixelsFloat

    @property
    def to_pixel(self) -> tuple[int, int]:
        """Convert to integer pixel coordinates.

        Returns:
            Tuple of (x, y) rounded to nearest integer.
        """
        return (round(self.x), round(self.y))


@dataclass(frozen=True)
class ScreenPoint:
    """Position inside a rendered tile, relative to the tile's top-left corner."""

    x: ScreenPixels
    y: ScreenPixels


@dataclass(frozen=True)
class PanOffset:
    """Pan offset of a tile, stored in the zoom-multiplied unit.

    The composer divides the pan by the zoom level before moving the image,
    so a stored offset of ``(p, 0)`` at zoom ``z`` shifts the image ``p / z``
    screen pixels to the right.
    """

    x: float = 0.0
    y: float = 0.0

    @property
    def is_zero(self) -> bool:
        return self.x == 0.0 and self.y == 0.0


@dataclass(frozen=True)
class ViewportSize:
    """Size of a tile's display rectangle in screen pixels."""

    width: ScreenPixels
    height: ScreenPixels

    @property
    def is_valid(self) -> bool:
        """True when both sides are finite and strictly positive."""
        return bool(
            np.isfinite(self.width)
            and np.isfinite(self.height)
            and self.width > 0
            and self.height > 0
        )


@dataclass(frozen=True)
class ImagePoint:
    """A location in a source image, in pixel and normalized form.

    Normalized coordinates are the storage format for annotation geometry
    because they do not depend on the resolution of the capture.

    Attributes:
        pixel: Image-pixel coordinates.
        normalized_x: ``pixel.x / image_width``.
        normalized_y: ``pixel.y / image_height``.
    """

    pixel: PixelPoint
    normalized_x: Normalized
    normalized_y: Normalized

    @classmethod
    def from_pixel(
        cls,
        x: float,
        y: float,
        image_width: Pixels,
        image_height: Pixels,
    ) -> ImagePoint:
        """Build from image-pixel coordinates and the image's natural size.

        Raises:
            ValueError: If either image dimension is not positive.
        """
        if image_width <= 0 or image_height <= 0:
            raise ValueError(
                f"Image dimensions must be positive, got {image_width}x{image_height}"
            )
        return cls(
            pixel=PixelPoint(x=PixelsFloat(float(x)), y=PixelsFloat(float(y))),
            normalized_x=Normalized(float(x) / image_width),
            normalized_y=Normalized(float(y) / image_height),
        )

    @classmethod
    def from_normalized(
        cls,
        nx: float,
        ny: float,
        image_width: Pixels,
        image_height: Pixels,
    ) -> ImagePoint:
        """Build from normalized coordinates and the image's natural size."""
        return cls(
            pixel=PixelPoint(
                x=PixelsFloat(float(nx) * image_width),
                y=PixelsFloat(float(ny) * image_height),
            ),
            normalized_x=Normalized(float(nx)),
            normalized_y=Normalized(float(ny)),
        )

    def clamped(self, image_width: Pixels, image_height: Pixels) -> ImagePoint:
        """Return the nearest point inside the image (normalized in [0, 1])."""
        nx = min(max(self.normalized_x, 0.0), 1.0)
        ny = min(max(self.normalized_y, 0.0), 1.0)
        if nx == self.normalized_x and ny == self.normalized_y:
            return self
        return ImagePoint.from_normalized(nx, ny, image_width, image_height)


# Tolerance for point-on-edge tests, in screen pixels squared
_EDGE_EPSILON = 1e-9


@dataclass(frozen=True)
class ScreenQuad:
    """Four screen-space corners of a mapped image rectangle.

    Corners are ordered top-left, top-right, bottom-right, bottom-left in image
    space. Under rotation or mirroring the on-screen order changes but the quad
    stays convex, which is all :meth:`contains` relies on.
    """

    corners: tuple[ScreenPoint, ScreenPoint, ScreenPoint, ScreenPoint]

    def as_array(self) -> np.ndarray:
        """Return the corners as a (4, 2) float64 array."""
        return np.array([[c.x, c.y] for c in self.corners], dtype=np.float64)

    @property
    def area(self) -> float:
        """Unsigned area (shoelace formula)."""
        pts = self.as_array()
        x, y = pts[:, 0], pts[:, 1]
        return float(abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))) / 2.0)

    def bounds(self) -> tuple[float, float, float, float]:
        """Axis-aligned bounds as (left, top, right, bottom)."""
        pts = self.as_array()
        return (
            float(pts[:, 0].min()),
            float(pts[:, 1].min()),
            float(pts[:, 0].max()),
            float(pts[:, 1].max()),
        )

    def contains(self, point: ScreenPoint) -> bool:
        """Test whether a screen point lies inside or on the edge of the quad.

        Zero-area quads contain nothing.
        """
        if self.area <= _EDGE_EPSILON:
            return False

        pts = self.as_array()
        edges = np.roll(pts, -1, axis=0) - pts
        to_point = np.array([point.x, point.y], dtype=np.float64) - pts
        cross = edges[:, 0] * to_point[:, 1] - edges[:, 1] * to_point[:, 0]
        return bool(np.all(cross >= -_EDGE_EPSILON) or np.all(cross <= _EDGE_EPSILON))
