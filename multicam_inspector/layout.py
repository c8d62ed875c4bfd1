"""
Contain-fit layout of a source image inside a tile.

The layout resolver is the first stage of every render: it computes where an
image of arbitrary aspect ratio sits inside a fixed display rectangle before
any zoom, pan or calibration is applied.

Contain semantics:
    - The image is scaled to the largest size that fits entirely inside the
      display rectangle while preserving its aspect ratio.
    - If the image is relatively wider than the display, its width fills the
      display and the height is derived; otherwise (taller or equal aspect)
      its height fills and the width is derived.
    - The result is centered on both axes.

Example:
    >>> rect = resolve_contain_fit(4000, 3000, 800, 450)
    >>> (rect.width, rect.height, rect.offset_x, rect.offset_y)
    (600.0, 450.0, 100.0, 0.0)
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from multicam_inspector.types import ScreenPixels


@dataclass(frozen=True)
class DrawRect:
    """Rectangle an image occupies inside its display area.

    Attributes:
        width: Drawn width in screen pixels.
        height: Drawn height in screen pixels.
        offset_x: Left edge relative to the display's left edge.
        offset_y: Top edge relative to the display's top edge.
    """

    width: ScreenPixels
    height: ScreenPixels
    offset_x: ScreenPixels
    offset_y: ScreenPixels

    @classmethod
    def empty(cls) -> DrawRect:
        """Return the degenerate zero-area rectangle."""
        return cls(
            width=ScreenPixels(0.0),
            height=ScreenPixels(0.0),
            offset_x=ScreenPixels(0.0),
            offset_y=ScreenPixels(0.0),
        )

    @property
    def is_empty(self) -> bool:
        """True when the rectangle has no drawable area."""
        return self.width <= 0 or self.height <= 0

    @property
    def center(self) -> tuple[float, float]:
        """Center of the drawn rectangle in display coordinates."""
        return (self.offset_x + self.width / 2.0, self.offset_y + self.height / 2.0)


def _is_positive_finite(value: float) -> bool:
    try:
        v = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(v) and v > 0


def resolve_contain_fit(
    image_width: float,
    image_height: float,
    display_width: float,
    display_height: float,
) -> DrawRect:
    """Fit an image inside a display rectangle with contain semantics.

    Args:
        image_width: Natural image width in pixels.
        image_height: Natural image height in pixels.
        display_width: Display rectangle width in screen pixels.
        display_height: Display rectangle height in screen pixels.

    Returns:
        The centered draw rectangle. When any input is zero, negative or not
        finite, :meth:`DrawRect.empty` is returned instead of raising, and
        callers are expected to skip drawing and pointer mapping.
    """
    if not all(
        _is_positive_finite(v)
        for v in (image_width, image_height, display_width, display_height)
    ):
        return DrawRect.empty()

    image_aspect = image_width / image_height
    display_aspect = display_width / display_height

    if image_aspect > display_aspect:
        # Image is wider - fit to width
        draw_width = float(display_width)
        draw_height = display_width / image_aspect
        offset_x = 0.0
        offset_y = (display_height - draw_height) / 2.0
    else:
        # Image is taller (or same aspect) - fit to height
        draw_width = display_height * image_aspect
        draw_height = float(display_height)
        offset_x = (display_width - draw_width) / 2.0
        offset_y = 0.0

    return DrawRect(
        width=ScreenPixels(draw_width),
        height=ScreenPixels(draw_height),
        offset_x=ScreenPixels(offset_x),
        offset_y=ScreenPixels(offset_y),
    )
