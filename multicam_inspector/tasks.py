"""Inspection tasks, their validation boxes, and box persistence."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Protocol

from multicam_inspector.annotation.validation_box import ValidationBox
from multicam_inspector.types import Pixels
from multicam_inspector.viewport.view_state import RoiBox

logger = logging.getLogger(__name__)


class TaskStatus(str, Enum):
    """Inspector decision on a task."""

    PENDING = ""
    PASS = "pass"
    FAIL = "fail"
    NA = "na"


@dataclass
class InspectionTask:
    """One inspection task and the boxes that gate passing it.

    Boxes from older task files store image pixels in x/y/width/height.
    They are held raw in ``pixel_boxes`` until the camera's image size is
    known, then moved into ``validation_boxes`` by :meth:`normalize_pixel_boxes`.
    They gate passing from the moment the task is loaded.

    Attributes:
        task_id: Task identifier.
        title: Short description shown to the inspector.
        validation_boxes: Camera name -> boxes drawn on that camera.
        status: Current decision.
        roi_boxes: Camera name -> region the tile is framed on when the
            task is opened.
        comment: Free-text inspector note.
        completed_at: ISO timestamp of the last pass/fail/na decision.
        pixel_boxes: Camera name -> raw pixel-space box dicts awaiting the
            image size.
    """

    task_id: str
    title: str = ""
    validation_boxes: dict[str, list[ValidationBox]] = field(default_factory=dict)
    status: TaskStatus = TaskStatus.PENDING
    roi_boxes: dict[str, RoiBox] = field(default_factory=dict)
    comment: str = ""
    completed_at: Optional[str] = None
    pixel_boxes: dict[str, list[dict[str, Any]]] = field(default_factory=dict)

    def boxes_for(self, camera_name: str) -> list[ValidationBox]:
        return list(self.validation_boxes.get(camera_name, []))

    def roi_for(self, camera_name: str) -> Optional[RoiBox]:
        return self.roi_boxes.get(camera_name)

    def all_box_ids(self) -> list[str]:
        ids = [box.id for boxes in self.validation_boxes.values() for box in boxes]
        ids.extend(str(raw["id"]) for raws in self.pixel_boxes.values() for raw in raws)
        return ids

    def add_box(self, camera_name: str, box: ValidationBox) -> None:
        """Add a box to a camera, replacing any box with the same id."""
        boxes = [b for b in self.validation_boxes.get(camera_name, []) if b.id != box.id]
        boxes.append(box)
        self.validation_boxes[camera_name] = boxes

    def normalize_pixel_boxes(
        self,
        camera_name: str,
        image_width: Pixels,
        image_height: Pixels,
    ) -> list[ValidationBox]:
        """Convert a camera's pixel-space boxes now that its image size is known.

        A box that does not fit the image is dropped with a warning.

        Returns:
            The boxes that were added.
        """
        raws = self.pixel_boxes.pop(camera_name, [])
        added = []
        for raw in raws:
            try:
                box = ValidationBox.from_dict(raw, image_width, image_height)
            except ValueError as e:
                logger.warning("Dropping box %s of task %s on %s: %s",
                               raw.get("id"), self.task_id, camera_name, e)
                continue
            self.add_box(camera_name, box)
            added.append(box)
        if added:
            logger.info("Normalized %d pixel box(es) of task %s on %s to %dx%d",
                        len(added), self.task_id, camera_name, image_width, image_height)
        return added

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InspectionTask:
        """Create a task from a task-file dictionary.

        Raises:
            KeyError: If 'id' or a box coordinate is missing.
            ValueError: If a box or status is invalid.
        """
        raw_boxes = data.get("validationBoxes") or {}
        if not isinstance(raw_boxes, dict):
            raise ValueError(
                f"'validationBoxes' of task {data.get('id')} must be a mapping, got {type(raw_boxes)}"
            )
        boxes: dict[str, list[ValidationBox]] = {}
        pixel_boxes: dict[str, list[dict[str, Any]]] = {}
        for camera, camera_boxes in raw_boxes.items():
            for raw in camera_boxes or []:
                if ValidationBox.uses_pixel_coordinates(raw):
                    pixel_boxes.setdefault(str(camera), []).append(dict(raw))
                else:
                    boxes.setdefault(str(camera), []).append(ValidationBox.from_dict(raw))
        # Only the first ROI per camera is used as the preset
        rois = {
            str(camera): RoiBox.from_dict(camera_rois[0])
            for camera, camera_rois in (data.get("roiBoxes") or {}).items()
            if camera_rois
        }
        return cls(
            task_id=str(data["id"]),
            title=str(data.get("title", "")),
            validation_boxes=boxes,
            status=TaskStatus(data.get("status") or ""),
            roi_boxes=rois,
            comment=str(data.get("comment", "")),
            completed_at=data.get("completedAt"),
            pixel_boxes=pixel_boxes,
        )

    def boxes_to_dict(self) -> dict[str, list[dict[str, Any]]]:
        """``validationBoxes`` mapping, pixel-space boxes kept as loaded."""
        data: dict[str, list[dict[str, Any]]] = {
            camera: [box.to_dict() for box in boxes]
            for camera, boxes in self.validation_boxes.items()
        }
        for camera, raws in self.pixel_boxes.items():
            data.setdefault(camera, []).extend(dict(raw) for raw in raws)
        return data

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.task_id,
            "title": self.title,
            "status": self.status.value,
            "validationBoxes": self.boxes_to_dict(),
        }
        if self.roi_boxes:
            data["roiBoxes"] = {camera: [roi.to_dict()] for camera, roi in self.roi_boxes.items()}
        if self.comment:
            data["comment"] = self.comment
        if self.completed_at is not None:
            data["completedAt"] = self.completed_at
        return data


class ValidationBoxStore(Protocol):
    """Persistence collaborator for newly created boxes."""

    def store_box(self, task_id: str, camera_name: str, box: ValidationBox) -> None:
        """Persist one box for a task and camera."""
        ...


class FileSystem(Protocol):
    """Protocol for file system operations."""

    def read_text(self, path: str | Path) -> str:
        """Read text from a file."""
        ...

    def write_text(self, path: str | Path, content: str) -> None:
        """Write text to a file."""
        ...


class DefaultFileSystem:
    """Default file system implementation."""

    def read_text(self, path: str | Path) -> str:
        """Read text from a file."""
        return Path(path).read_text(encoding="utf-8")

    def write_text(self, path: str | Path, content: str) -> None:
        """Write text to a file."""
        Path(path).write_text(content, encoding="utf-8")


def _get_fs(fs: FileSystem | None) -> FileSystem:
    """Return the provided filesystem or the default."""
    return fs if fs is not None else DefaultFileSystem()


def parse_tasks(data: dict[str, Any]) -> list[InspectionTask]:
    """Parse the ``{"tasks": [...]}`` structure of an inspection file."""
    if not isinstance(data, dict) or not isinstance(data.get("tasks"), list):
        raise ValueError("Inspection data must be an object with a 'tasks' list")
    return [InspectionTask.from_dict(t) for t in data["tasks"]]


def load_tasks(path: str | Path, fs: FileSystem | None = None) -> list[InspectionTask]:
    """Load inspection tasks from a JSON file.

    Raises:
        FileNotFoundError: If file doesn't exist.
        json.JSONDecodeError: If JSON is invalid.
        ValueError: If data format is invalid.
    """
    return parse_tasks(json.loads(_get_fs(fs).read_text(path)))


class JsonTaskStore:
    """Store boxes back into the inspection JSON file they were loaded from.

    Only the touched task's ``validationBoxes`` entry is rewritten; every
    other field in the file is preserved as-is.
    """

    def __init__(self, path: str | Path, fs: Optional[FileSystem] = None):
        self.path = Path(path)
        self.fs = _get_fs(fs)

    def store_box(self, task_id: str, camera_name: str, box: ValidationBox) -> None:
        """Insert or replace a box by id.

        Raises:
            KeyError: If no task with ``task_id`` exists in the file.
        """
        data = json.loads(self.fs.read_text(self.path))
        task = next((t for t in data.get("tasks", []) if str(t.get("id")) == task_id), None)
        if task is None:
            raise KeyError(f"Task not found: {task_id}")

        all_boxes = task.setdefault("validationBoxes", {})
        boxes = [b for b in all_boxes.get(camera_name, []) if b.get("id") != box.id]
        boxes.append(box.to_dict())
        all_boxes[camera_name] = boxes

        self.fs.write_text(self.path, json.dumps(data, indent=2, ensure_ascii=False))
        logger.info("Validation box %s saved for %s on task %s", box.id, camera_name, task_id)
