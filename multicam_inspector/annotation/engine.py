"""
Interactive creation and hit-testing of validation boxes.

State machine (one engine shared by all tiles):

    IDLE    --start_creation()-->        ARMED
    ARMED   --pointer down on slot s-->  DRAWING(s)
    DRAWING --pointer move on s-->       DRAWING(s)   (live preview only)
    DRAWING --pointer up on s-->         IDLE         (commit or reject)
    DRAWING --pointer down on s-->       IDLE         (second click commits)
    ARMED/DRAWING --cancel()-->          IDLE         (no side effects)

Pointer events on any other slot while DRAWING(s) are ignored. While IDLE,
a pointer-up that was not a drag hit-tests the slot's boxes and toggles the
first hit in the current task's validated set.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

from multicam_inspector.annotation.validated_boxes import ValidatedBoxes
from multicam_inspector.annotation.validation_box import (
    ValidationBox,
    ValidationBoxCreationState,
)
from multicam_inspector.camera_config import MIN_BOX_SIZE_PX, get_camera_name
from multicam_inspector.coordinate_mapper import CoordinateMapper
from multicam_inspector.geometry import ScreenPoint, ScreenQuad

if TYPE_CHECKING:
    from multicam_inspector.tasks import InspectionTask, ValidationBoxStore

logger = logging.getLogger(__name__)


class AnnotationState(Enum):
    """Phase of the box-creation gesture."""

    IDLE = "idle"
    ARMED = "armed"
    DRAWING = "drawing"


class AnnotationEventKind(Enum):
    """What an input event did to the annotation state."""

    DRAFT_STARTED = "draft_started"
    DRAFT_UPDATED = "draft_updated"
    BOX_CREATED = "box_created"
    BOX_TOO_SMALL = "box_too_small"
    DRAFT_CANCELLED = "draft_cancelled"
    BOX_VALIDATED = "box_validated"
    BOX_UNVALIDATED = "box_unvalidated"
    TOGGLE_DEBOUNCED = "toggle_debounced"


@dataclass(frozen=True)
class AnnotationEvent:
    """Observable outcome of a pointer or keyboard event.

    Attributes:
        kind: What happened.
        slot: Camera slot involved, if any.
        box_id: Box involved, if any.
        box: The committed box for BOX_CREATED.
    """

    kind: AnnotationEventKind
    slot: Optional[int] = None
    box_id: Optional[str] = None
    box: Optional[ValidationBox] = None


def generate_box_id() -> str:
    return f"vb_{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class _PendingBox:
    box_id: str
    label: str


class AnnotationEngine:
    """Validation-box creation protocol and box hit-testing.

    Args:
        validated: Shared per-task validated-box sets.
        store: Persistence collaborator receiving committed boxes.
        camera_name: Maps a slot to the camera name boxes are stored under.
        min_box_size_px: Minimum box width and height at native resolution.
    """

    def __init__(
        self,
        validated: ValidatedBoxes,
        store: Optional[ValidationBoxStore] = None,
        camera_name: Callable[[int], str] = get_camera_name,
        min_box_size_px: float = MIN_BOX_SIZE_PX,
    ):
        self.validated = validated
        self.store = store
        self.camera_name = camera_name
        self.min_box_size_px = min_box_size_px
        self.task: Optional[InspectionTask] = None
        self._pending: Optional[_PendingBox] = None
        self._draft: Optional[ValidationBoxCreationState] = None

    @property
    def state(self) -> AnnotationState:
        if self._draft is not None:
            return AnnotationState.DRAWING
        if self._pending is not None:
            return AnnotationState.ARMED
        return AnnotationState.IDLE

    @property
    def draft(self) -> Optional[ValidationBoxCreationState]:
        """The in-progress draft, if a box is being drawn."""
        return self._draft

    def set_task(self, task: Optional[InspectionTask]) -> None:
        """Select the task whose boxes are hit-tested and extended."""
        self.task = task

    def start_creation(self, label: str = "", box_id: Optional[str] = None) -> str:
        """Arm box creation; the next pointer-down on a tile starts the draft.

        Returns:
            The id the new box will receive.
        """
        pending = _PendingBox(box_id=box_id or generate_box_id(), label=label)
        self._pending = pending
        self._draft = None
        logger.debug("Armed validation box creation %s", pending.box_id)
        return pending.box_id

    def cancel(self) -> Optional[AnnotationEvent]:
        """Discard any draft and leave creation mode (Escape)."""
        if self.state is AnnotationState.IDLE:
            return None
        slot = self._draft.slot if self._draft is not None else None
        box_id = self._pending.box_id if self._pending is not None else None
        self._reset()
        logger.info("Validation box creation cancelled")
        return AnnotationEvent(AnnotationEventKind.DRAFT_CANCELLED, slot=slot, box_id=box_id)

    def on_pointer_down(
        self,
        slot: int,
        mapper: CoordinateMapper,
        point: ScreenPoint,
    ) -> Optional[AnnotationEvent]:
        """Start a draft, or finish one with a second click on the same tile."""
        if self._draft is not None:
            if self._draft.slot != slot:
                return None
            return self._commit(self._draft, mapper, point)

        if self._pending is None:
            return None

        image_point = mapper.screen_to_image(point)
        if image_point is None:
            return None

        transform = mapper.transform
        self._draft = ValidationBoxCreationState(
            box_id=self._pending.box_id,
            label=self._pending.label,
            slot=slot,
            image_width=transform.image_width,
            image_height=transform.image_height,
            start=image_point,
            current=image_point,
        )
        logger.info(
            "Start validation box at (%.0f, %.0f) on camera %d",
            image_point.pixel.x,
            image_point.pixel.y,
            slot,
        )
        return AnnotationEvent(
            AnnotationEventKind.DRAFT_STARTED, slot=slot, box_id=self._draft.box_id
        )

    def on_pointer_move(
        self,
        slot: int,
        mapper: CoordinateMapper,
        point: ScreenPoint,
    ) -> Optional[AnnotationEvent]:
        """Update the live corner of the draft on this slot."""
        if self._draft is None or self._draft.slot != slot:
            return None
        image_point = mapper.screen_to_image(point)
        if image_point is None:
            return None
        self._draft = self._draft.with_current(image_point)
        return AnnotationEvent(
            AnnotationEventKind.DRAFT_UPDATED, slot=slot, box_id=self._draft.box_id
        )

    def on_pointer_up(
        self,
        slot: int,
        mapper: CoordinateMapper,
        point: ScreenPoint,
        was_drag: bool = False,
    ) -> Optional[AnnotationEvent]:
        """Commit the draft on this slot, or hit-test boxes when idle.

        Args:
            slot: Camera slot receiving the event.
            mapper: Mapper for the slot's current draw transform.
            point: Pointer position relative to the tile.
            was_drag: True if the gesture panned the image; drags never toggle.
        """
        if self._draft is not None:
            if self._draft.slot != slot:
                return None
            return self._commit(self._draft, mapper, point)

        if self._pending is not None or was_drag:
            return None

        return self._hit_test(slot, mapper, point)

    def box_quads(self, slot: int, mapper: CoordinateMapper) -> list[tuple[ValidationBox, ScreenQuad]]:
        """Screen quads of the current task's boxes on a slot, for rendering."""
        if self.task is None:
            return []
        quads = []
        for box in self.task.boxes_for(self.camera_name(slot)):
            quad = mapper.box_to_screen(box)
            if quad is not None:
                quads.append((box, quad))
        return quads

    def preview_quad(self, slot: int, mapper: CoordinateMapper) -> Optional[ScreenQuad]:
        """Screen quad of the draft being drawn on a slot, for live preview."""
        if self._draft is None or self._draft.slot != slot:
            return None
        return mapper.box_to_screen(self._draft.to_box())

    def _commit(
        self,
        draft: ValidationBoxCreationState,
        mapper: CoordinateMapper,
        point: ScreenPoint,
    ) -> AnnotationEvent:
        self._reset()

        end = mapper.screen_to_image(point) or draft.current
        box = draft.to_box(end)
        width_px, height_px = box.pixel_size(draft.image_width, draft.image_height)

        if width_px <= self.min_box_size_px or height_px <= self.min_box_size_px:
            logger.warning(
                "Validation box too small (%.0fx%.0f px) - minimum size is %.0fx%.0f pixels",
                width_px,
                height_px,
                self.min_box_size_px,
                self.min_box_size_px,
            )
            return AnnotationEvent(
                AnnotationEventKind.BOX_TOO_SMALL, slot=draft.slot, box_id=draft.box_id
            )

        camera_name = self.camera_name(draft.slot)
        if self.task is None:
            logger.warning("Validation box %s created with no active task; not stored", box.id)
        else:
            self.task.add_box(camera_name, box)
            if self.store is not None:
                self.store.store_box(self.task.task_id, camera_name, box)
            logger.info(
                "Validation box created for %s on task %s: %s",
                camera_name,
                self.task.task_id,
                box.to_dict(),
            )

        return AnnotationEvent(
            AnnotationEventKind.BOX_CREATED, slot=draft.slot, box_id=box.id, box=box
        )

    def _hit_test(
        self,
        slot: int,
        mapper: CoordinateMapper,
        point: ScreenPoint,
    ) -> Optional[AnnotationEvent]:
        if self.task is None:
            return None
        for box, quad in self.box_quads(slot, mapper):
            if not quad.contains(point):
                continue
            result = self.validated.toggle(self.task.task_id, box.id)
            if result is None:
                kind = AnnotationEventKind.TOGGLE_DEBOUNCED
            elif result:
                kind = AnnotationEventKind.BOX_VALIDATED
            else:
                kind = AnnotationEventKind.BOX_UNVALIDATED
            return AnnotationEvent(kind, slot=slot, box_id=box.id)
        return None

    def _reset(self) -> None:
        self._pending = None
        self._draft = None
