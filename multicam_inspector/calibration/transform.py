"""Per-camera calibration transform and its device-independent scaling."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any

from multicam_inspector.camera_config import CALIBRATION_UNIT_DIVISOR
from multicam_inspector.layout import DrawRect
from multicam_inspector.types import CalibrationUnits, Degrees, Unitless


@dataclass(frozen=True)
class CalibrationTransform:
    """Corrective 2-D transform for one camera at one installation.

    Compensates for physical camera-mounting variance so the tile's framing
    matches the baseline installation. This is a similarity-like transform
    (translation, uniform scale, rotation, horizontal mirror); there is no
    perspective component.

    Attributes:
        x: Horizontal offset in calibration units (positive = right).
        y: Vertical offset in calibration units (positive = down).
        scale: Multiplicative size correction (1.0 = unchanged).
        rotation: Clockwise rotation in degrees about the image center.
        flipped: Mirror the image about its vertical axis.
    """

    x: CalibrationUnits = 0.0  # type: ignore[assignment]
    y: CalibrationUnits = 0.0  # type: ignore[assignment]
    scale: Unitless = 1.0  # type: ignore[assignment]
    rotation: Degrees = 0.0  # type: ignore[assignment]
    flipped: bool = False

    def __post_init__(self) -> None:
        """Validate transform values."""
        for name in ("x", "y", "scale", "rotation"):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise ValueError(f"{name} must be finite, got {value}")
        if self.scale <= 0:
            raise ValueError(f"scale must be positive, got {self.scale}")

    @classmethod
    def identity(cls) -> CalibrationTransform:
        """Return the identity transform ``{0, 0, 1, 0, False}``."""
        return cls()

    @property
    def is_identity(self) -> bool:
        return (
            self.x == 0
            and self.y == 0
            and self.scale == 1
            and self.rotation == 0
            and not self.flipped
        )

    @property
    def needs_rotation_context(self) -> bool:
        """True when drawing requires rotating/mirroring about the image center."""
        return self.rotation != 0 or self.flipped

    def with_changes(self, **changes: Any) -> CalibrationTransform:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary for YAML/JSON serialization."""
        data: dict[str, Any] = {
            "x": self.x,
            "y": self.y,
            "scale": self.scale,
            "rotation": self.rotation,
        }
        if self.flipped:
            data["flipped"] = True
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CalibrationTransform:
        """Create a transform from a dictionary.

        Missing keys take their identity defaults, so ``{}`` is the identity.

        Raises:
            ValueError: If a value is not numeric or the result is invalid.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Calibration transform must be a dictionary, got {type(data)}")
        try:
            return cls(
                x=CalibrationUnits(float(data.get("x", 0.0))),
                y=CalibrationUnits(float(data.get("y", 0.0))),
                scale=Unitless(float(data.get("scale", 1.0))),
                rotation=Degrees(float(data.get("rotation", 0.0))),
                flipped=bool(data.get("flipped", False)),
            )
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid calibration transform {data!r}: {e}") from e


def translation_scale_factor(draw_rect: DrawRect) -> Unitless:
    """Screen pixels per calibration unit for a drawn image.

    Derived from the contain-fitted (pre-zoom) draw rectangle as
    ``min(width, height) / 1000`` so a stored offset moves the image by the
    same fraction of its rendered size in portrait or landscape tiles of any
    size.

    Args:
        draw_rect: Output of the layout resolver for the current frame.

    Returns:
        The scale factor; 0.0 for an empty draw rectangle.
    """
    if draw_rect.is_empty:
        return Unitless(0.0)
    return Unitless(min(draw_rect.width, draw_rect.height) / CALIBRATION_UNIT_DIVISOR)
