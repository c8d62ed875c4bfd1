"""Scenario tests for the validation-box annotation engine."""

import re

import pytest

from multicam_inspector.annotation import (
    AnnotationEngine,
    AnnotationEventKind,
    AnnotationState,
    ValidatedBoxes,
    ValidationBox,
    generate_box_id,
)
from multicam_inspector.calibration import CalibrationTransform
from multicam_inspector.coordinate_mapper import CoordinateMapper
from multicam_inspector.geometry import PanOffset, ScreenPoint, ViewportSize
from multicam_inspector.tasks import InspectionTask
from multicam_inspector.transform_composer import DrawTransform, resolve_draw_transform


class RecordingStore:
    """ValidationBoxStore that records every stored box."""

    def __init__(self):
        self.calls: list[tuple[str, str, ValidationBox]] = []

    def store_box(self, task_id: str, camera_name: str, box: ValidationBox) -> None:
        self.calls.append((task_id, camera_name, box))


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _mapper(calibration: CalibrationTransform = CalibrationTransform()) -> CoordinateMapper:
    """1600x900 image filling an 800x450 tile: image = 2 * screen."""
    return CoordinateMapper(
        resolve_draw_transform(1600, 900, ViewportSize(800.0, 450.0), 1.0, PanOffset(), calibration)
    )


def P(x: float, y: float) -> ScreenPoint:
    return ScreenPoint(x, y)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def task() -> InspectionTask:
    return InspectionTask(task_id="t1", title="Check rotor")


@pytest.fixture
def engine(clock: FakeClock, store: RecordingStore, task: InspectionTask) -> AnnotationEngine:
    engine = AnnotationEngine(ValidatedBoxes(clock=clock), store=store)
    engine.set_task(task)
    return engine


class TestBoxCreation:
    """Tests for the arm / draw / commit protocol."""

    def test_drag_creates_box(self, engine: AnnotationEngine, store: RecordingStore, task: InspectionTask) -> None:
        mapper = _mapper()
        box_id = engine.start_creation(label="Rotor")
        assert engine.state is AnnotationState.ARMED

        started = engine.on_pointer_down(0, mapper, P(160.0, 90.0))
        assert started is not None and started.kind is AnnotationEventKind.DRAFT_STARTED
        assert engine.state is AnnotationState.DRAWING

        updated = engine.on_pointer_move(0, mapper, P(300.0, 200.0))
        assert updated is not None and updated.kind is AnnotationEventKind.DRAFT_UPDATED
        assert engine.preview_quad(0, mapper) is not None

        created = engine.on_pointer_up(0, mapper, P(400.0, 225.0))

        assert created is not None and created.kind is AnnotationEventKind.BOX_CREATED
        box = created.box
        assert box is not None
        assert box.id == box_id
        assert box.label == "Rotor"
        assert (box.x, box.y, box.width, box.height) == pytest.approx((0.2, 0.2, 0.3, 0.3))
        assert engine.state is AnnotationState.IDLE
        assert store.calls == [("t1", "RUR", box)]
        assert task.boxes_for("RUR") == [box]

    def test_second_click_commits(self, engine: AnnotationEngine, store: RecordingStore) -> None:
        mapper = _mapper()
        engine.start_creation()
        engine.on_pointer_down(3, mapper, P(100.0, 100.0))

        event = engine.on_pointer_down(3, mapper, P(300.0, 300.0))

        assert event is not None and event.kind is AnnotationEventKind.BOX_CREATED
        assert store.calls[0][1] == "RUL"

    def test_too_small_box_dropped(self, engine: AnnotationEngine, store: RecordingStore) -> None:
        mapper = _mapper()
        engine.start_creation()
        engine.on_pointer_down(0, mapper, P(100.0, 100.0))

        # 4 screen px = 8 image px
        event = engine.on_pointer_up(0, mapper, P(104.0, 300.0))

        assert event is not None and event.kind is AnnotationEventKind.BOX_TOO_SMALL
        assert engine.state is AnnotationState.IDLE
        assert store.calls == []

    def test_other_slot_ignored_while_drawing(self, engine: AnnotationEngine) -> None:
        mapper = _mapper()
        engine.start_creation()
        engine.on_pointer_down(2, mapper, P(100.0, 100.0))

        assert engine.on_pointer_down(5, mapper, P(200.0, 200.0)) is None
        assert engine.on_pointer_move(5, mapper, P(200.0, 200.0)) is None
        assert engine.on_pointer_up(5, mapper, P(200.0, 200.0)) is None
        assert engine.draft is not None and engine.draft.slot == 2

    def test_corners_outside_image_clamped(self, engine: AnnotationEngine) -> None:
        # 4000x3000 in 800x450: drawn 600x450 at x offset 100
        mapper = CoordinateMapper(
            resolve_draw_transform(4000, 3000, ViewportSize(800.0, 450.0), 1.0, PanOffset(),
                                   CalibrationTransform())
        )
        engine.start_creation()
        engine.on_pointer_down(0, mapper, P(400.0, 225.0))

        event = engine.on_pointer_up(0, mapper, P(790.0, 10.0))

        assert event is not None and event.box is not None
        assert event.box.x + event.box.width == pytest.approx(1.0)

    def test_cancel_discards_draft(self, engine: AnnotationEngine, store: RecordingStore) -> None:
        mapper = _mapper()
        engine.start_creation()
        engine.on_pointer_down(0, mapper, P(100.0, 100.0))

        event = engine.cancel()

        assert event is not None and event.kind is AnnotationEventKind.DRAFT_CANCELLED
        assert engine.state is AnnotationState.IDLE
        assert engine.on_pointer_up(0, mapper, P(300.0, 300.0)) is None
        assert store.calls == []

    def test_cancel_when_idle_is_noop(self, engine: AnnotationEngine) -> None:
        assert engine.cancel() is None

    def test_pointer_down_when_not_armed(self, engine: AnnotationEngine) -> None:
        assert engine.on_pointer_down(0, _mapper(), P(100.0, 100.0)) is None
        assert engine.state is AnnotationState.IDLE

    def test_empty_transform_keeps_armed(self, engine: AnnotationEngine) -> None:
        engine.start_creation()

        assert engine.on_pointer_down(0, CoordinateMapper(DrawTransform.empty()), P(1.0, 1.0)) is None
        assert engine.state is AnnotationState.ARMED

    def test_without_task_box_not_stored(self, clock: FakeClock, store: RecordingStore) -> None:
        engine = AnnotationEngine(ValidatedBoxes(clock=clock), store=store)
        mapper = _mapper()
        engine.start_creation()
        engine.on_pointer_down(0, mapper, P(100.0, 100.0))

        event = engine.on_pointer_up(0, mapper, P(300.0, 300.0))

        assert event is not None and event.kind is AnnotationEventKind.BOX_CREATED
        assert store.calls == []

    def test_generated_ids(self) -> None:
        first, second = generate_box_id(), generate_box_id()

        assert re.fullmatch(r"vb_[0-9a-f]{12}", first)
        assert first != second


class TestHitTesting:
    """Tests for toggling validation by clicking boxes."""

    @pytest.fixture
    def boxed_task(self, task: InspectionTask) -> InspectionTask:
        task.add_box("RUR", ValidationBox(id="vb_a", x=0.25, y=0.25, width=0.5, height=0.5))
        return task

    def test_click_inside_toggles(self, engine: AnnotationEngine, boxed_task, clock: FakeClock) -> None:
        mapper = _mapper()

        first = engine.on_pointer_up(0, mapper, P(400.0, 225.0))
        clock.now = 0.05
        debounced = engine.on_pointer_up(0, mapper, P(400.0, 225.0))
        clock.now = 1.0
        second = engine.on_pointer_up(0, mapper, P(400.0, 225.0))

        assert first is not None and first.kind is AnnotationEventKind.BOX_VALIDATED
        assert debounced is not None and debounced.kind is AnnotationEventKind.TOGGLE_DEBOUNCED
        assert second is not None and second.kind is AnnotationEventKind.BOX_UNVALIDATED

    def test_drag_does_not_toggle(self, engine: AnnotationEngine, boxed_task) -> None:
        assert engine.on_pointer_up(0, _mapper(), P(400.0, 225.0), was_drag=True) is None
        assert not engine.validated.is_validated("t1", "vb_a")

    def test_click_outside_or_other_camera(self, engine: AnnotationEngine, boxed_task) -> None:
        mapper = _mapper()

        assert engine.on_pointer_up(0, mapper, P(10.0, 10.0)) is None
        assert engine.on_pointer_up(1, mapper, P(400.0, 225.0)) is None

    def test_rotated_box_uses_quad_not_bounds(self, engine: AnnotationEngine, task: InspectionTask) -> None:
        task.add_box("RUR", ValidationBox(id="vb_r", x=0.4, y=0.3, width=0.2, height=0.4))
        mapper = _mapper(CalibrationTransform(rotation=45.0))
        quad = mapper.box_to_screen(task.boxes_for("RUR")[0])
        assert quad is not None
        left, top, _, _ = quad.bounds()

        # Just inside the bounding box corner, outside the rotated quad
        assert engine.on_pointer_up(0, mapper, P(left + 1.0, top + 1.0)) is None
        event = engine.on_pointer_up(0, mapper, P(400.0, 225.0))
        assert event is not None and event.box_id == "vb_r"

    def test_armed_click_does_not_toggle(self, engine: AnnotationEngine, boxed_task) -> None:
        engine.start_creation()

        assert engine.on_pointer_up(0, _mapper(), P(400.0, 225.0)) is None
        assert not engine.validated.is_validated("t1", "vb_a")

    def test_box_quads_for_rendering(self, engine: AnnotationEngine, boxed_task) -> None:
        quads = engine.box_quads(0, _mapper())

        assert len(quads) == 1
        box, quad = quads[0]
        assert box.id == "vb_a"
        assert quad.bounds() == pytest.approx((200.0, 112.5, 600.0, 337.5))
