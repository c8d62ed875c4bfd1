"""Tile viewports: view state, image loading, control and rendering."""

from multicam_inspector.viewport.controller import Camera, ViewportController
from multicam_inspector.viewport.image_loader import ImageLoader, ImageLoadError, LoadedImage
from multicam_inspector.viewport.renderer import (
    BoxOverlay,
    OpenCVTileRenderer,
    TileOverlays,
    TileRenderer,
)
from multicam_inspector.viewport.view_state import (
    RoiBox,
    ViewState,
    clamp_pan,
    roi_box_to_view,
    viewport_to_roi_box,
)

__all__ = [
    "BoxOverlay",
    "Camera",
    "ImageLoadError",
    "ImageLoader",
    "LoadedImage",
    "OpenCVTileRenderer",
    "RoiBox",
    "TileOverlays",
    "TileRenderer",
    "ViewState",
    "ViewportController",
    "clamp_pan",
    "roi_box_to_view",
    "viewport_to_roi_box",
]
