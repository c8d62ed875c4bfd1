"""Validation box record and its creation draft."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any, Optional

from multicam_inspector.geometry import ImagePoint
from multicam_inspector.types import Normalized, Pixels

# Slack for float error in x + width <= 1 checks
_BOUNDS_TOLERANCE = 1e-9

_LEGACY_PIXEL_KEYS = ("pixelX", "pixelY", "pixelWidth", "pixelHeight")


@dataclass(frozen=True)
class ValidationBox:
    """A labeled region an inspector must acknowledge before passing a task.

    Geometry is normalized to the source image so a box drawn on one capture
    resolution lines up on any other.

    Attributes:
        id: Unique box identifier, generated when creation starts.
        x: Left edge as a fraction of image width.
        y: Top edge as a fraction of image height.
        width: Width as a fraction of image width.
        height: Height as a fraction of image height.
        label: Short text shown on the box.
        description: Optional longer text.
        pixel_x: Legacy pixel-space mirror of ``x`` (may be None).
        pixel_y: Legacy pixel-space mirror of ``y``.
        pixel_width: Legacy pixel-space mirror of ``width``.
        pixel_height: Legacy pixel-space mirror of ``height``.
    """

    id: str
    x: Normalized
    y: Normalized
    width: Normalized
    height: Normalized
    label: str = ""
    description: str = ""
    pixel_x: Optional[float] = None
    pixel_y: Optional[float] = None
    pixel_width: Optional[float] = None
    pixel_height: Optional[float] = None

    def __post_init__(self) -> None:
        """Validate the normalized rectangle lies inside the unit square."""
        if not self.id:
            raise ValueError("Validation box id must not be empty")
        for name in ("x", "y", "width", "height"):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise ValueError(f"Box {name} must be finite, got {value}")
        if self.x < 0 or self.y < 0:
            raise ValueError(f"Box origin must be non-negative, got ({self.x}, {self.y})")
        if self.width < 0 or self.height < 0:
            raise ValueError(
                f"Box size must be non-negative, got {self.width}x{self.height}"
            )
        if self.x + self.width > 1 + _BOUNDS_TOLERANCE:
            raise ValueError(f"Box exceeds image width: x={self.x}, width={self.width}")
        if self.y + self.height > 1 + _BOUNDS_TOLERANCE:
            raise ValueError(f"Box exceeds image height: y={self.y}, height={self.height}")

    @classmethod
    def from_corners(
        cls,
        box_id: str,
        first: ImagePoint,
        second: ImagePoint,
        image_width: Pixels,
        image_height: Pixels,
        label: str = "",
        description: str = "",
    ) -> ValidationBox:
        """Build a box spanning two opposite corners.

        Corners are clamped into the image first, then ordered with min/max so
        the drag direction does not matter.
        """
        a = first.clamped(image_width, image_height)
        b = second.clamped(image_width, image_height)
        left = min(a.normalized_x, b.normalized_x)
        top = min(a.normalized_y, b.normalized_y)
        right = max(a.normalized_x, b.normalized_x)
        bottom = max(a.normalized_y, b.normalized_y)
        return cls(
            id=box_id,
            x=Normalized(left),
            y=Normalized(top),
            width=Normalized(right - left),
            height=Normalized(bottom - top),
            label=label,
            description=description,
            pixel_x=left * image_width,
            pixel_y=top * image_height,
            pixel_width=(right - left) * image_width,
            pixel_height=(bottom - top) * image_height,
        )

    def pixel_size(self, image_width: Pixels, image_height: Pixels) -> tuple[float, float]:
        """Width and height in pixels of an image of the given size."""
        return (self.width * image_width, self.height * image_height)

    def contains_normalized(self, nx: float, ny: float) -> bool:
        return self.x <= nx <= self.x + self.width and self.y <= ny <= self.y + self.height

    def with_label(self, label: str) -> ValidationBox:
        return replace(self, label=label)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary using the task file's field names."""
        data: dict[str, Any] = {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "label": self.label,
            "description": self.description,
        }
        mirrors = (self.pixel_x, self.pixel_y, self.pixel_width, self.pixel_height)
        for key, value in zip(_LEGACY_PIXEL_KEYS, mirrors):
            if value is not None:
                data[key] = value
        return data

    @staticmethod
    def uses_pixel_coordinates(data: dict[str, Any]) -> bool:
        """True for an older task-file box storing pixels in x/y/width/height.

        Raises:
            KeyError: If a coordinate is missing.
        """
        return any(float(data[k]) > 1 for k in ("x", "y", "width", "height"))

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        image_width: Optional[Pixels] = None,
        image_height: Optional[Pixels] = None,
    ) -> ValidationBox:
        """Create a box from a task-file dictionary.

        Older task files stored pixel values directly in x/y/width/height.
        Such boxes are detected (any value above 1) and normalized when the
        image size is known; the pixel values are kept as mirrors.

        Raises:
            KeyError: If required keys are missing.
            ValueError: If geometry is invalid, or a legacy pixel box is given
                without image dimensions.
        """
        geometry = [float(data[k]) for k in ("x", "y", "width", "height")]
        mirrors = [
            float(data[k]) if data.get(k) is not None else None for k in _LEGACY_PIXEL_KEYS
        ]

        if cls.uses_pixel_coordinates(data):
            if not image_width or not image_height:
                raise ValueError(
                    f"Box '{data.get('id')}' uses pixel coordinates; "
                    f"image dimensions are required to normalize it"
                )
            mirrors = list(geometry)
            geometry = [
                geometry[0] / image_width,
                geometry[1] / image_height,
                geometry[2] / image_width,
                geometry[3] / image_height,
            ]

        return cls(
            id=str(data["id"]),
            x=Normalized(geometry[0]),
            y=Normalized(geometry[1]),
            width=Normalized(geometry[2]),
            height=Normalized(geometry[3]),
            label=str(data.get("label", "")),
            description=str(data.get("description", "")),
            pixel_x=mirrors[0],
            pixel_y=mirrors[1],
            pixel_width=mirrors[2],
            pixel_height=mirrors[3],
        )


@dataclass(frozen=True)
class ValidationBoxCreationState:
    """Draft of a box being drawn with a two-point gesture.

    Replaced (not mutated) on every pointer move. Exists only between the
    first corner and commit/cancel.

    Attributes:
        box_id: Id the box will get if committed.
        label: Label the box will get.
        slot: Camera slot the draft belongs to.
        image_width: Natural width of the image being annotated.
        image_height: Natural height of the image being annotated.
        start: First corner.
        current: Live second corner (for preview only).
    """

    box_id: str
    label: str
    slot: int
    image_width: Pixels
    image_height: Pixels
    start: ImagePoint
    current: ImagePoint

    def with_current(self, point: ImagePoint) -> ValidationBoxCreationState:
        return replace(self, current=point)

    def to_box(self, end: Optional[ImagePoint] = None) -> ValidationBox:
        """Build the box spanned by the start corner and ``end`` (or current)."""
        return ValidationBox.from_corners(
            self.box_id,
            self.start,
            end if end is not None else self.current,
            self.image_width,
            self.image_height,
            label=self.label,
        )
