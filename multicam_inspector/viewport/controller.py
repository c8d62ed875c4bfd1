"""
Per-tile view state, gestures and image loading for the eight camera tiles.

The controller owns one :class:`Camera` per slot and is the only place the
view of a tile changes. Every mutation re-resolves the tile's draw transform
and hands it to the renderer, so the drawn image and pointer mapping always
use the same transform.

Pointer gestures are bridged to the annotation engine: while a box is being
armed or drawn, pointer events go to the engine instead of panning.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from multicam_inspector.annotation.engine import AnnotationEngine, AnnotationEvent, AnnotationState
from multicam_inspector.calibration.config import CalibrationConfig
from multicam_inspector.calibration.transform import CalibrationTransform
from multicam_inspector.camera_config import (
    BUTTON_ZOOM_STEP,
    CAMERA_COUNT,
    DRAG_THRESHOLD_PX,
    WHEEL_ZOOM_IN_FACTOR,
    WHEEL_ZOOM_OUT_FACTOR,
    get_camera_name,
)
from multicam_inspector.coordinate_mapper import CoordinateMapper
from multicam_inspector.geometry import ImagePoint, ScreenPoint, ViewportSize
from multicam_inspector.transform_composer import DrawTransform, resolve_draw_transform
from multicam_inspector.types import ScreenPixels
from multicam_inspector.viewport.image_loader import ImageLoader, ImageLoadError, LoadedImage
from multicam_inspector.viewport.renderer import BoxOverlay, TileOverlays, TileRenderer
from multicam_inspector.viewport.view_state import (
    RoiBox,
    ViewState,
    apply_pan,
    apply_zoom,
    reclamp,
    reset_view,
    roi_box_to_view,
    set_zoom,
    viewport_to_roi_box,
)

if TYPE_CHECKING:
    from multicam_inspector.tasks import InspectionTask

logger = logging.getLogger(__name__)


@dataclass
class Camera:
    """One camera tile.

    Attributes:
        slot: Position 0-7 in the grid.
        name: Camera name boxes are stored under.
        image: Decoded image, None until loaded.
        view: Current zoom and pan.
        viewport: Display size of the tile.
        loading: True while an image fetch is in flight.
        failed: True when the last load gave up.
        image_url: URL of the current or last requested image.
    """

    slot: int
    name: str
    image: Optional[LoadedImage] = None
    view: ViewState = field(default_factory=ViewState)
    viewport: ViewportSize = ViewportSize(ScreenPixels(0.0), ScreenPixels(0.0))
    loading: bool = False
    failed: bool = False
    image_url: Optional[str] = None

    @property
    def has_image(self) -> bool:
        return self.image is not None


@dataclass
class _DragGesture:
    start: ScreenPoint
    last: ScreenPoint
    moved: bool = False


class ViewportController:
    """Zoom, pan, calibration and image state of all tiles.

    Args:
        calibration: Calibration transforms of every installation.
        installation_id: Installation whose transforms are applied, or None
            for identity everywhere.
        loader: Image loader used by :meth:`load_image`.
        renderer: Surface repainted after every mutation.
        engine: Annotation engine receiving pointer events while drawing and
            supplying box overlays.
    """

    def __init__(
        self,
        calibration: CalibrationConfig,
        installation_id: Optional[str] = None,
        loader: Optional[ImageLoader] = None,
        renderer: Optional[TileRenderer] = None,
        engine: Optional[AnnotationEngine] = None,
    ):
        self.calibration = calibration
        self.installation_id = installation_id
        self.loader = loader if loader is not None else ImageLoader()
        self.renderer = renderer
        self.engine = engine
        self.cameras = [Camera(slot=slot, name=get_camera_name(slot)) for slot in range(CAMERA_COUNT)]
        self._drags: dict[int, _DragGesture] = {}

    def camera(self, slot: int) -> Camera:
        if not 0 <= slot < CAMERA_COUNT:
            raise ValueError(f"Camera slot must be in range 0-{CAMERA_COUNT - 1}, got {slot}")
        return self.cameras[slot]

    # --- Layout and images -------------------------------------------------

    def set_viewport(self, slot: int, width: float, height: float) -> None:
        """Record a tile's display size and re-clamp its pan."""
        camera = self.camera(slot)
        camera.viewport = ViewportSize(ScreenPixels(float(width)), ScreenPixels(float(height)))
        if camera.viewport.is_valid:
            camera.view = reclamp(camera.view, camera.viewport)
        self.render(slot)

    def set_image(self, slot: int, image: Optional[LoadedImage]) -> None:
        """Replace a tile's image; the view resets with it."""
        camera = self.camera(slot)
        camera.image = image
        camera.failed = False
        camera.loading = False
        camera.view = reset_view()
        self._drags.pop(slot, None)
        if self.engine is not None and self.engine.task is not None:
            self._normalize_camera_boxes(self.engine.task, camera)
        self.render(slot)

    def normalize_task_boxes(self, task: InspectionTask) -> None:
        """Normalize a task's pixel-space boxes on every tile with an image."""
        for camera in self.cameras:
            self._normalize_camera_boxes(task, camera)

    @staticmethod
    def _normalize_camera_boxes(task: InspectionTask, camera: Camera) -> None:
        if camera.image is not None:
            task.normalize_pixel_boxes(camera.name, camera.image.width, camera.image.height)

    def load_image(self, slot: int, url: str) -> bool:
        """Fetch a tile's image through the loader.

        Returns:
            True if the image loaded, False if the tile was marked failed.
        """
        camera = self.camera(slot)
        camera.image_url = url
        camera.image = None
        camera.view = reset_view()
        camera.loading = True
        camera.failed = False
        self.render(slot)

        try:
            image = self.loader.load(url)
        except ImageLoadError as e:
            logger.error("Camera %s: %s", camera.name, e)
            camera.loading = False
            camera.failed = True
            self.render(slot)
            return False

        self.set_image(slot, image)
        logger.info("Camera %s loaded %dx%d image", camera.name, image.width, image.height)
        return True

    def all_images_loaded(self) -> bool:
        return all(camera.has_image and not camera.loading for camera in self.cameras)

    # --- Zoom ---------------------------------------------------------------

    def _update_view(self, slot: int, view: ViewState) -> ViewState:
        camera = self.camera(slot)
        camera.view = view
        self.render(slot)
        return view

    def on_wheel(self, slot: int, delta_y: float) -> ViewState:
        """Zoom one wheel step: in for negative delta, out for positive."""
        camera = self.camera(slot)
        if delta_y == 0 or not camera.viewport.is_valid:
            return camera.view
        factor = WHEEL_ZOOM_IN_FACTOR if delta_y < 0 else WHEEL_ZOOM_OUT_FACTOR
        return self._update_view(slot, apply_zoom(camera.view, factor, camera.viewport))

    def on_pinch(self, slot: int, factor: float) -> ViewState:
        """Zoom by a pinch scale factor relative to the current zoom."""
        camera = self.camera(slot)
        if not math.isfinite(factor) or factor <= 0 or not camera.viewport.is_valid:
            return camera.view
        return self._update_view(slot, apply_zoom(camera.view, factor, camera.viewport))

    def zoom_in(self, slot: int) -> ViewState:
        camera = self.camera(slot)
        if not camera.viewport.is_valid:
            return camera.view
        return self._update_view(
            slot, set_zoom(camera.view, camera.view.zoom + BUTTON_ZOOM_STEP, camera.viewport)
        )

    def zoom_out(self, slot: int) -> ViewState:
        camera = self.camera(slot)
        if not camera.viewport.is_valid:
            return camera.view
        return self._update_view(
            slot, set_zoom(camera.view, camera.view.zoom - BUTTON_ZOOM_STEP, camera.viewport)
        )

    # --- Pan ----------------------------------------------------------------

    def begin_drag(self, slot: int, point: ScreenPoint) -> None:
        self.camera(slot)
        self._drags[slot] = _DragGesture(start=point, last=point)

    def drag_to(self, slot: int, point: ScreenPoint) -> ViewState:
        """Pan by the pointer movement since the last event.

        The stored pan is in the zoom-multiplied unit, so the screen delta is
        multiplied by the zoom to keep the image under the pointer.
        """
        camera = self.camera(slot)
        gesture = self._drags.get(slot)
        if gesture is None:
            return camera.view

        dx = point.x - gesture.last.x
        dy = point.y - gesture.last.y
        gesture.last = point
        if math.hypot(point.x - gesture.start.x, point.y - gesture.start.y) > DRAG_THRESHOLD_PX:
            gesture.moved = True

        if not camera.viewport.is_valid:
            return camera.view
        zoom = camera.view.zoom
        return self._update_view(
            slot, apply_pan(camera.view, dx * zoom, dy * zoom, camera.viewport)
        )

    def end_drag(self, slot: int) -> bool:
        """Finish a gesture.

        Returns:
            True if the pointer moved more than the drag threshold, in which
            case the gesture must not be treated as a click.
        """
        self.camera(slot)
        gesture = self._drags.pop(slot, None)
        return gesture is not None and gesture.moved

    # --- Resets and presets -------------------------------------------------

    def reset_view(self, slot: int) -> None:
        self._drags.pop(slot, None)
        self._update_view(slot, reset_view())

    def reset_all(self) -> None:
        for slot in range(CAMERA_COUNT):
            self.reset_view(slot)
        logger.info("Reset zoom and pan of all cameras")

    def apply_roi(self, slot: int, roi: RoiBox) -> ViewState:
        """Frame a normalized region of a tile's image."""
        camera = self.camera(slot)
        if not camera.viewport.is_valid:
            return camera.view
        return self._update_view(slot, roi_box_to_view(roi, camera.viewport))

    def current_roi(self, slot: int) -> Optional[RoiBox]:
        """The visible region of a tile as a normalized ROI."""
        camera = self.camera(slot)
        if not camera.viewport.is_valid:
            return None
        return viewport_to_roi_box(camera.view, camera.viewport)

    # --- Calibration --------------------------------------------------------

    def set_installation(self, installation_id: Optional[str]) -> None:
        """Switch the installation whose calibration transforms are applied."""
        self.installation_id = installation_id
        logger.info("Using calibration of installation %s", installation_id)
        self.render_all()

    def set_calibration(self, calibration: CalibrationConfig) -> None:
        self.calibration = calibration
        self.render_all()

    def calibration_for(self, slot: int) -> CalibrationTransform:
        return self.calibration.get_transform(self.installation_id, slot)

    # --- Transforms and mapping ---------------------------------------------

    def resolve_transform(self, slot: int) -> DrawTransform:
        """Draw transform of a tile for its current state."""
        camera = self.camera(slot)
        if camera.image is None or not camera.viewport.is_valid:
            return DrawTransform.empty()
        return resolve_draw_transform(
            camera.image.width,
            camera.image.height,
            camera.viewport,
            camera.view.zoom,
            camera.view.pan,
            self.calibration_for(slot),
        )

    def mapper(self, slot: int) -> CoordinateMapper:
        return CoordinateMapper(self.resolve_transform(slot))

    def map_pointer(self, slot: int, point: ScreenPoint) -> Optional[ImagePoint]:
        """Image coordinates under a pointer, None without a decoded image."""
        return self.mapper(slot).screen_to_image(point)

    # --- Pointer bridge -----------------------------------------------------

    def _engine_captures(self) -> bool:
        return self.engine is not None and self.engine.state is not AnnotationState.IDLE

    def pointer_down(self, slot: int, point: ScreenPoint) -> Optional[AnnotationEvent]:
        if self._engine_captures():
            event = self.engine.on_pointer_down(slot, self.mapper(slot), point)
            self.render(slot)
            return event
        self.begin_drag(slot, point)
        return None

    def pointer_move(self, slot: int, point: ScreenPoint) -> Optional[AnnotationEvent]:
        if self._engine_captures():
            event = self.engine.on_pointer_move(slot, self.mapper(slot), point)
            if event is not None:
                self.render(slot)
            return event
        self.drag_to(slot, point)
        return None

    def pointer_up(self, slot: int, point: ScreenPoint) -> Optional[AnnotationEvent]:
        was_drag = self.end_drag(slot)
        if self.engine is None:
            return None
        event = self.engine.on_pointer_up(slot, self.mapper(slot), point, was_drag=was_drag)
        if event is not None:
            self.render(slot)
        return event

    # --- Rendering ----------------------------------------------------------

    def overlays(self, slot: int, mapper: Optional[CoordinateMapper] = None) -> TileOverlays:
        """Box and draft overlays of a tile for the current task."""
        if self.engine is None:
            return TileOverlays()
        mapper = mapper if mapper is not None else self.mapper(slot)
        if not mapper.is_active:
            return TileOverlays()
        task_id = self.engine.task.task_id if self.engine.task is not None else None
        boxes = [
            BoxOverlay(
                box=box,
                quad=quad,
                validated=task_id is not None and self.engine.validated.is_validated(task_id, box.id),
            )
            for box, quad in self.engine.box_quads(slot, mapper)
        ]
        return TileOverlays(boxes=boxes, draft=self.engine.preview_quad(slot, mapper))

    def render(self, slot: int) -> None:
        if self.renderer is None:
            return
        transform = self.resolve_transform(slot)
        overlays = self.overlays(slot, CoordinateMapper(transform))
        self.renderer.render(self.camera(slot), transform, overlays)

    def render_all(self) -> None:
        for slot in range(CAMERA_COUNT):
            self.render(slot)
