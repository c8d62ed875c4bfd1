"""
Inspection session: task navigation, the pass gate and keyboard shortcuts.

A session walks an inspector through a list of tasks. Opening a task points
the annotation engine at it and frames every tile on the task's ROI preset
(or resets the view). Passing or failing a task advances to the next one;
passing is refused while any of the task's validation boxes is unvalidated.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from multicam_inspector.annotation.engine import AnnotationEngine
from multicam_inspector.camera_config import CAMERA_COUNT
from multicam_inspector.tasks import InspectionTask, TaskStatus
from multicam_inspector.viewport.controller import ViewportController

logger = logging.getLogger(__name__)


class StatusOutcome(Enum):
    """Result of trying to set a task's status."""

    ACCEPTED = "accepted"
    BLOCKED_UNVALIDATED = "blocked_unvalidated"
    BLOCKED_IMAGES_MISSING = "blocked_images_missing"
    NO_TASK = "no_task"


class InspectionSession:
    """Drive the inspection of a task list across the eight tiles.

    Args:
        tasks: Tasks in inspection order.
        controller: Viewport controller of the tiles.
        engine: Annotation engine, sharing its validated sets with the session.
        clock: Returns the current time, used for completion stamps.
    """

    def __init__(
        self,
        tasks: list[InspectionTask],
        controller: ViewportController,
        engine: AnnotationEngine,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.tasks = tasks
        self.controller = controller
        self.engine = engine
        self.clock = clock
        self.index = 0
        self.fullscreen_slot: Optional[int] = None
        self.hover_slot: Optional[int] = None
        self._open_current()

    @property
    def current_task(self) -> Optional[InspectionTask]:
        """The open task, None once every task has been decided."""
        if 0 <= self.index < len(self.tasks):
            return self.tasks[self.index]
        return None

    @property
    def is_complete(self) -> bool:
        return self.index >= len(self.tasks)

    def progress(self) -> tuple[int, int]:
        """(validated, total) boxes of the open task."""
        task = self.current_task
        if task is None:
            return (0, 0)
        return self.engine.validated.progress(task.task_id, task.all_box_ids())

    def can_pass(self) -> bool:
        task = self.current_task
        if task is None:
            return False
        return self.engine.validated.can_pass(task.task_id, task.all_box_ids())

    def go_to(self, index: int) -> Optional[InspectionTask]:
        """Open a task by position; the completed position is len(tasks)."""
        if not 0 <= index <= len(self.tasks):
            raise IndexError(f"Task index must be in range 0-{len(self.tasks)}, got {index}")
        self.index = index
        self._open_current()
        return self.current_task

    def next_task(self) -> Optional[InspectionTask]:
        if self.index >= len(self.tasks):
            return None
        return self.go_to(self.index + 1)

    def previous_task(self) -> Optional[InspectionTask]:
        if self.index == 0:
            return self.current_task
        return self.go_to(self.index - 1)

    def select_status(self, status: TaskStatus | str) -> StatusOutcome:
        """Record a decision on the open task.

        Pass and fail require every tile to have an image, and pass requires
        every validation box of the task to be validated. Pass and fail
        advance to the next task; N/A stays on the task.
        """
        status = TaskStatus(status)
        task = self.current_task
        if task is None:
            return StatusOutcome.NO_TASK

        advances = status in (TaskStatus.PASS, TaskStatus.FAIL)
        if advances and not self.controller.all_images_loaded():
            logger.warning("Cannot set %s on task %s: images are not loaded",
                           status.value.upper(), task.task_id)
            return StatusOutcome.BLOCKED_IMAGES_MISSING

        if status is TaskStatus.PASS and not self.can_pass():
            done, total = self.progress()
            logger.warning(
                "Cannot PASS: must validate all %d inspection areas first (%d/%d completed)",
                total, done, total,
            )
            return StatusOutcome.BLOCKED_UNVALIDATED

        task.status = status
        task.completed_at = self.clock().isoformat()
        logger.info("Task %d: %s - %s", self.index + 1, status.value.upper(), task.title[:40])

        if advances:
            self.next_task()
            if self.is_complete:
                logger.info("All inspection tasks completed")
        return StatusOutcome.ACCEPTED

    def set_comment(self, comment: str) -> None:
        task = self.current_task
        if task is not None:
            task.comment = comment

    # --- Fullscreen ---------------------------------------------------------

    def enter_fullscreen(self, slot: Optional[int] = None) -> int:
        """Show one tile fullscreen (the hovered one, or slot 0)."""
        if slot is None:
            slot = self.hover_slot if self.hover_slot is not None else 0
        self.controller.camera(slot)
        self.fullscreen_slot = slot
        return slot

    def exit_fullscreen(self) -> None:
        if self.fullscreen_slot is None:
            return
        self.controller.reset_view(self.fullscreen_slot)
        self.fullscreen_slot = None

    def cycle_fullscreen(self, step: int) -> Optional[int]:
        """Move the fullscreen tile by ``step`` slots, wrapping around."""
        if self.fullscreen_slot is None:
            return None
        self.fullscreen_slot = (self.fullscreen_slot + step) % CAMERA_COUNT
        return self.fullscreen_slot

    def _open_current(self) -> None:
        task = self.current_task
        self.engine.cancel()
        self.engine.set_task(task)
        if task is not None:
            self.controller.normalize_task_boxes(task)
        for camera in self.controller.cameras:
            roi = task.roi_for(camera.name) if task is not None else None
            if roi is not None and camera.viewport.is_valid:
                self.controller.apply_roi(camera.slot, roi)
            else:
                self.controller.reset_view(camera.slot)
        if task is not None:
            logger.info("Opened task %d/%d: %s", self.index + 1, len(self.tasks), task.title[:40])


class ShortcutDispatcher:
    """Map key presses to session actions.

    Keys are matched case-insensitively. While a tile is fullscreen only
    Escape and the arrow keys are active.
    """

    def __init__(self, session: InspectionSession):
        self.session = session
        self._keys: dict[str, Callable[[], object]] = {
            "f": self.session.enter_fullscreen,
            "r": self.session.controller.reset_all,
            "p": lambda: self.session.select_status(TaskStatus.PASS),
            "x": lambda: self.session.select_status(TaskStatus.FAIL),
            "escape": self._escape,
        }
        self._fullscreen_keys: dict[str, Callable[[], object]] = {
            "escape": self.session.exit_fullscreen,
            "arrowleft": lambda: self.session.cycle_fullscreen(CAMERA_COUNT - 1),
            "arrowright": lambda: self.session.cycle_fullscreen(1),
        }

    def dispatch(self, key: str) -> bool:
        """Handle a key press.

        Returns:
            True if the key was bound in the current mode.
        """
        key = key.lower()
        keys = self._fullscreen_keys if self.session.fullscreen_slot is not None else self._keys
        handler = keys.get(key)
        if handler is None:
            return False
        logger.debug("Shortcut %s", key)
        handler()
        return True

    def _escape(self) -> None:
        self.session.engine.cancel()
