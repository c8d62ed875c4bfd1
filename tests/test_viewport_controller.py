"""Unit tests for multicam_inspector.viewport.controller module."""

import cv2
import numpy as np
import pytest

from multicam_inspector.annotation import (
    AnnotationEngine,
    AnnotationEventKind,
    ValidatedBoxes,
    ValidationBox,
)
from multicam_inspector.calibration import CalibrationConfig, CalibrationTransform
from multicam_inspector.geometry import ScreenPoint
from multicam_inspector.tasks import InspectionTask
from multicam_inspector.viewport import ImageLoader, LoadedImage, RoiBox, ViewportController


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _image(width: int = 1600, height: int = 900) -> LoadedImage:
    return LoadedImage.from_array(np.zeros((height, width, 3), dtype=np.uint8), "http://cam/x.jpg")


def _failing_fetch(url: str) -> bytes:
    raise RuntimeError("connection refused")


@pytest.fixture
def calibration() -> CalibrationConfig:
    return CalibrationConfig.from_dict({
        "installations": [
            {"id": "hangar_rouen_vpn", "transforms": {2: {"x": 40, "scale": 1.1}}},
        ]
    })


@pytest.fixture
def controller(calibration: CalibrationConfig) -> ViewportController:
    controller = ViewportController(calibration)
    controller.set_viewport(0, 800, 450)
    controller.set_image(0, _image())
    return controller


def P(x: float, y: float) -> ScreenPoint:
    return ScreenPoint(x, y)


class TestCameras:
    def test_eight_named_tiles(self, calibration: CalibrationConfig) -> None:
        controller = ViewportController(calibration)

        assert [c.name for c in controller.cameras] == [
            "RUR", "FUR", "FUL", "RUL", "RDR", "FDR", "FDL", "RDL"
        ]

    @pytest.mark.parametrize("slot", [-1, 8], ids=["negative", "past-end"])
    def test_invalid_slot(self, controller: ViewportController, slot: int) -> None:
        with pytest.raises(ValueError, match="slot"):
            controller.camera(slot)

    def test_calibration_follows_installation(self, controller: ViewportController) -> None:
        assert controller.calibration_for(2).is_identity

        controller.set_installation("hangar_rouen_vpn")

        assert controller.calibration_for(2) == CalibrationTransform(x=40.0, scale=1.1)
        assert controller.calibration_for(0).is_identity


class TestImages:
    """Tests for image loading state."""

    def test_map_pointer_needs_image(self, calibration: CalibrationConfig) -> None:
        controller = ViewportController(calibration)
        controller.set_viewport(1, 800, 450)

        assert controller.map_pointer(1, P(400.0, 225.0)) is None

    def test_map_pointer_with_image(self, controller: ViewportController) -> None:
        point = controller.map_pointer(0, P(400.0, 225.0))

        assert point is not None
        assert (point.pixel.x, point.pixel.y) == pytest.approx((800.0, 450.0))

    def test_load_success(self, calibration: CalibrationConfig) -> None:
        ok, png = cv2.imencode(".png", np.zeros((20, 30, 3), dtype=np.uint8))
        assert ok
        loader = ImageLoader(fetch=lambda url: png.tobytes(), sleep=lambda s: None)
        controller = ViewportController(calibration, loader=loader)

        assert controller.load_image(4, "http://cam/rdr.jpg")

        camera = controller.camera(4)
        assert camera.has_image and not camera.failed and not camera.loading
        assert camera.image_url == "http://cam/rdr.jpg"

    def test_load_failure_marks_failed(self, calibration: CalibrationConfig) -> None:
        loader = ImageLoader(fetch=_failing_fetch, sleep=lambda s: None)
        controller = ViewportController(calibration, loader=loader)

        assert controller.load_image(4, "http://cam/rdr.jpg") is False

        camera = controller.camera(4)
        assert camera.failed and not camera.loading and not camera.has_image

    def test_all_images_loaded(self, controller: ViewportController) -> None:
        assert not controller.all_images_loaded()

        for slot in range(1, 8):
            controller.set_image(slot, _image())

        assert controller.all_images_loaded()

    def test_new_image_resets_view(self, controller: ViewportController) -> None:
        controller.on_wheel(0, -1.0)

        controller.set_image(0, _image())

        assert controller.camera(0).view.is_identity


class TestZoomAndPan:
    """Tests for wheel, button and drag gestures."""

    @pytest.mark.parametrize(
        "delta,expected",
        [(-120.0, 1.25), (0.0, 1.0), (120.0, 1.0)],
        ids=["in", "no-op", "out-clamped"],
    )
    def test_wheel(self, controller: ViewportController, delta: float, expected: float) -> None:
        assert controller.on_wheel(0, delta).zoom == pytest.approx(expected)

    def test_wheel_out_after_in(self, controller: ViewportController) -> None:
        controller.on_wheel(0, -1.0)
        controller.on_wheel(0, -1.0)

        view = controller.on_wheel(0, 1.0)

        assert view.zoom == pytest.approx(1.25)

    def test_buttons_step_half(self, controller: ViewportController) -> None:
        controller.zoom_in(0)
        assert controller.zoom_in(0).zoom == pytest.approx(2.0)
        assert controller.zoom_out(0).zoom == pytest.approx(1.5)

    def test_zoom_without_viewport_is_noop(self, calibration: CalibrationConfig) -> None:
        controller = ViewportController(calibration)

        assert controller.zoom_in(3).is_identity

    def test_drag_pans_by_zoomed_delta(self, controller: ViewportController) -> None:
        controller.zoom_in(0)
        controller.zoom_in(0)
        controller.begin_drag(0, P(400.0, 225.0))

        view = controller.drag_to(0, P(410.0, 220.0))

        assert (view.pan.x, view.pan.y) == pytest.approx((20.0, -10.0))
        assert controller.end_drag(0) is True

    def test_short_move_is_a_click(self, controller: ViewportController) -> None:
        controller.begin_drag(0, P(400.0, 225.0))
        controller.drag_to(0, P(403.0, 224.0))

        assert controller.end_drag(0) is False

    def test_no_pan_at_identity_zoom(self, controller: ViewportController) -> None:
        controller.begin_drag(0, P(400.0, 225.0))

        view = controller.drag_to(0, P(500.0, 300.0))

        assert view.pan.is_zero

    def test_resize_reclamps_pan(self, controller: ViewportController) -> None:
        controller.zoom_in(0)
        controller.zoom_in(0)
        controller.begin_drag(0, P(0.0, 0.0))
        controller.drag_to(0, P(1000.0, 0.0))
        assert controller.camera(0).view.pan.x == pytest.approx(800.0)

        controller.set_viewport(0, 400, 225)

        assert controller.camera(0).view.pan.x == pytest.approx(400.0)

    def test_reset_all(self, controller: ViewportController) -> None:
        controller.set_viewport(5, 800, 450)
        controller.on_wheel(0, -1.0)
        controller.on_wheel(5, -1.0)

        controller.reset_all()

        assert all(c.view.is_identity for c in controller.cameras)


class TestRoi:
    def test_apply_and_read_back(self, controller: ViewportController) -> None:
        roi = RoiBox(0.25, 0.25, 0.5, 0.5)

        view = controller.apply_roi(0, roi)
        current = controller.current_roi(0)

        assert view.zoom == pytest.approx(2.0)
        assert current is not None
        assert (current.x, current.y, current.width, current.height) == pytest.approx(
            (0.25, 0.25, 0.5, 0.5)
        )

    def test_roi_needs_viewport(self, calibration: CalibrationConfig) -> None:
        controller = ViewportController(calibration)

        assert controller.apply_roi(2, RoiBox(0.0, 0.0, 0.5, 0.5)).is_identity
        assert controller.current_roi(2) is None


class TestPointerBridge:
    """Tests for routing pointer gestures to the annotation engine."""

    @pytest.fixture
    def task(self) -> InspectionTask:
        task = InspectionTask(task_id="t1")
        task.add_box("RUR", ValidationBox(id="vb_a", x=0.25, y=0.25, width=0.5, height=0.5))
        return task

    @pytest.fixture
    def engine(self, task: InspectionTask) -> AnnotationEngine:
        engine = AnnotationEngine(ValidatedBoxes(clock=FakeClock()))
        engine.set_task(task)
        return engine

    @pytest.fixture
    def bridged(self, controller: ViewportController, engine: AnnotationEngine) -> ViewportController:
        controller.engine = engine
        return controller

    def test_click_toggles_box(self, bridged: ViewportController, engine: AnnotationEngine) -> None:
        bridged.pointer_down(0, P(400.0, 225.0))

        event = bridged.pointer_up(0, P(400.0, 225.0))

        assert event is not None and event.kind is AnnotationEventKind.BOX_VALIDATED
        assert engine.validated.is_validated("t1", "vb_a")

    def test_drag_does_not_toggle(self, bridged: ViewportController, engine: AnnotationEngine) -> None:
        bridged.zoom_in(0)
        bridged.pointer_down(0, P(300.0, 200.0))
        bridged.pointer_move(0, P(330.0, 200.0))

        assert bridged.pointer_up(0, P(330.0, 200.0)) is None
        assert not engine.validated.is_validated("t1", "vb_a")

    def test_drawing_captures_pointer(self, bridged: ViewportController, engine: AnnotationEngine,
                                      task: InspectionTask) -> None:
        bridged.zoom_in(0)
        bridged.zoom_in(0)
        engine.start_creation(label="Skid")

        bridged.pointer_down(0, P(100.0, 100.0))
        bridged.pointer_move(0, P(300.0, 300.0))
        event = bridged.pointer_up(0, P(300.0, 300.0))

        assert event is not None and event.kind is AnnotationEventKind.BOX_CREATED
        assert bridged.camera(0).view.pan.is_zero
        assert [b.id for b in task.boxes_for("RUR")][-1] == event.box_id

    def test_overlays(self, bridged: ViewportController, engine: AnnotationEngine) -> None:
        bridged.pointer_down(0, P(400.0, 225.0))
        bridged.pointer_up(0, P(400.0, 225.0))

        overlays = bridged.overlays(0)

        assert len(overlays.boxes) == 1
        assert overlays.boxes[0].validated
        assert overlays.draft is None
        assert bridged.overlays(1).boxes == []

    def test_image_load_normalizes_pixel_boxes(self, bridged: ViewportController,
                                               engine: AnnotationEngine) -> None:
        task = InspectionTask.from_dict({
            "id": "t2",
            "validationBoxes": {"RUR": [{"id": "vb_px", "x": 400, "y": 225, "width": 800, "height": 450}]},
        })
        engine.set_task(task)
        assert task.boxes_for("RUR") == []

        bridged.set_image(0, _image(1600, 900))
        bridged.pointer_down(0, P(400.0, 225.0))
        event = bridged.pointer_up(0, P(400.0, 225.0))

        assert [b.id for b in task.boxes_for("RUR")] == ["vb_px"]
        assert event is not None and event.box_id == "vb_px"
        assert event.kind is AnnotationEventKind.BOX_VALIDATED
