"""
Zoom/pan state of a tile and the pure reducers that update it.

Pan is stored in the zoom-multiplied unit that the transform composer divides
by zoom. With that unit the permitted range on each axis is::

    overhang = (viewport_size * zoom - viewport_size) / 2
    |pan|   <= overhang * zoom

and at zoom 1.0 no panning is allowed at all, so zooming back to identity
always re-centers the image.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from multicam_inspector.camera_config import MAX_ZOOM, MIN_ZOOM
from multicam_inspector.geometry import PanOffset, ViewportSize
from multicam_inspector.types import Normalized, Unitless

# Zoom levels within this distance of MIN_ZOOM snap to it exactly
ZOOM_EPSILON = 1e-9


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def clamp_zoom(zoom: float) -> Unitless:
    """Clamp to [MIN_ZOOM, MAX_ZOOM], snapping near-identity values to 1.0."""
    zoom = clamp(zoom, MIN_ZOOM, MAX_ZOOM)
    if zoom - MIN_ZOOM <= ZOOM_EPSILON:
        zoom = MIN_ZOOM
    return Unitless(zoom)


def max_pan(zoom: float, viewport: ViewportSize) -> tuple[float, float]:
    """Largest permitted |pan| on each axis.

    Returns:
        (max_x, max_y); both 0.0 when zoom <= 1.0.
    """
    if zoom <= MIN_ZOOM:
        return (0.0, 0.0)
    overhang_x = (viewport.width * zoom - viewport.width) / 2.0
    overhang_y = (viewport.height * zoom - viewport.height) / 2.0
    return (overhang_x * zoom, overhang_y * zoom)


def clamp_pan(pan: PanOffset, zoom: float, viewport: ViewportSize) -> PanOffset:
    """Restrict a pan offset so the zoomed image cannot leave the viewport.

    Args:
        pan: Requested pan offset.
        zoom: Zoom level the pan applies to.
        viewport: Display size of the tile.

    Returns:
        ``PanOffset(0, 0)`` when zoom <= 1.0, otherwise the pan with each axis
        clamped independently to ``+/- overhang * zoom``.
    """
    if zoom <= MIN_ZOOM:
        return PanOffset(0.0, 0.0)
    limit_x, limit_y = max_pan(zoom, viewport)
    return PanOffset(
        x=clamp(pan.x, -limit_x, limit_x),
        y=clamp(pan.y, -limit_y, limit_y),
    )


@dataclass(frozen=True)
class ViewState:
    """Zoom and pan of one tile.

    Attributes:
        zoom: Zoom level in [1.0, 10.0].
        pan: Pan offset in the zoom-multiplied unit.
    """

    zoom: Unitless = 1.0  # type: ignore[assignment]
    pan: PanOffset = PanOffset()

    def __post_init__(self) -> None:
        """Validate the zoom range and the identity-zoom invariant."""
        if not MIN_ZOOM <= self.zoom <= MAX_ZOOM:
            raise ValueError(f"zoom must be in [{MIN_ZOOM}, {MAX_ZOOM}], got {self.zoom}")
        if self.zoom == MIN_ZOOM and not self.pan.is_zero:
            raise ValueError(f"pan must be zero at zoom {MIN_ZOOM}, got {self.pan}")

    @property
    def is_identity(self) -> bool:
        return self.zoom == MIN_ZOOM


def reset_view() -> ViewState:
    """Identity zoom, centered."""
    return ViewState()


def set_zoom(state: ViewState, zoom: float, viewport: ViewportSize) -> ViewState:
    """Set an absolute zoom level, keeping the current pan where allowed."""
    new_zoom = clamp_zoom(zoom)
    if new_zoom == MIN_ZOOM:
        return reset_view()
    return ViewState(zoom=new_zoom, pan=clamp_pan(state.pan, new_zoom, viewport))


def apply_zoom(state: ViewState, factor: float, viewport: ViewportSize) -> ViewState:
    """Multiply the zoom by a factor (wheel or pinch step).

    The pan is scaled by the effective zoom ratio so the point at the viewport
    center stays put, then clamped to the new bounds.
    """
    new_zoom = clamp_zoom(state.zoom * factor)
    if new_zoom == MIN_ZOOM:
        return reset_view()
    ratio = new_zoom / state.zoom
    scaled = PanOffset(x=state.pan.x * ratio, y=state.pan.y * ratio)
    return ViewState(zoom=new_zoom, pan=clamp_pan(scaled, new_zoom, viewport))


def apply_pan(state: ViewState, dx: float, dy: float, viewport: ViewportSize) -> ViewState:
    """Add a delta (in the stored pan unit) to the pan and clamp it."""
    if state.zoom <= MIN_ZOOM:
        return state
    moved = PanOffset(x=state.pan.x + dx, y=state.pan.y + dy)
    return ViewState(zoom=state.zoom, pan=clamp_pan(moved, state.zoom, viewport))


def reclamp(state: ViewState, viewport: ViewportSize) -> ViewState:
    """Re-apply the pan bounds, e.g. after the viewport was resized."""
    clamped = clamp_pan(state.pan, state.zoom, viewport)
    if clamped == state.pan:
        return state
    return ViewState(zoom=state.zoom, pan=clamped)


@dataclass(frozen=True)
class RoiBox:
    """Normalized region of interest, used as a per-task viewport preset.

    Attributes:
        x: Left edge as a fraction of image width.
        y: Top edge as a fraction of image height.
        width: Width as a fraction of image width.
        height: Height as a fraction of image height.
    """

    x: Normalized
    y: Normalized
    width: Normalized
    height: Normalized

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"ROI width and height must be positive, got {self.width}x{self.height}"
            )

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RoiBox:
        """Create an ROI from a task-file dictionary.

        Raises:
            KeyError: If a coordinate is missing.
            ValueError: If the size is not positive.
        """
        return cls(
            x=Normalized(float(data["x"])),
            y=Normalized(float(data["y"])),
            width=Normalized(float(data["width"])),
            height=Normalized(float(data["height"])),
        )


def viewport_to_roi_box(state: ViewState, viewport: ViewportSize) -> RoiBox:
    """Describe the currently visible part of the image as a normalized ROI."""
    visible_w = 1.0 / state.zoom
    visible_h = 1.0 / state.zoom
    center_x = 0.5
    center_y = 0.5

    if state.zoom > MIN_ZOOM:
        limit_x, limit_y = max_pan(state.zoom, viewport)
        # Pan is normalized to [-1, 1] of its permitted range
        norm_x = state.pan.x / limit_x if limit_x > 0 else 0.0
        norm_y = state.pan.y / limit_y if limit_y > 0 else 0.0
        center_x = 0.5 + norm_x * (1.0 - visible_w) / 2.0
        center_y = 0.5 + norm_y * (1.0 - visible_h) / 2.0

    return RoiBox(
        x=Normalized(clamp(center_x - visible_w / 2.0, 0.0, 1.0 - visible_w)),
        y=Normalized(clamp(center_y - visible_h / 2.0, 0.0, 1.0 - visible_h)),
        width=Normalized(visible_w),
        height=Normalized(visible_h),
    )


def roi_box_to_view(roi: RoiBox, viewport: ViewportSize) -> ViewState:
    """Compute the view that frames a normalized ROI."""
    zoom = clamp_zoom(min(1.0 / roi.width, 1.0 / roi.height))
    if zoom == MIN_ZOOM:
        return reset_view()

    limit_x, limit_y = max_pan(zoom, viewport)
    visible = 1.0 / zoom
    half_travel = (1.0 - visible) / 2.0
    roi_center_x = roi.x + roi.width / 2.0
    roi_center_y = roi.y + roi.height / 2.0

    pan = PanOffset(
        x=(roi_center_x - 0.5) / half_travel * limit_x,
        y=(roi_center_y - 0.5) / half_travel * limit_y,
    )
    return ViewState(zoom=zoom, pan=clamp_pan(pan, zoom, viewport))
