"""Validation boxes: records, validated sets and the interactive engine."""

from multicam_inspector.annotation.engine import (
    AnnotationEngine,
    AnnotationEvent,
    AnnotationEventKind,
    AnnotationState,
    generate_box_id,
)
from multicam_inspector.annotation.validated_boxes import ValidatedBoxes
from multicam_inspector.annotation.validation_box import (
    ValidationBox,
    ValidationBoxCreationState,
)

__all__ = [
    "AnnotationEngine",
    "AnnotationEvent",
    "AnnotationEventKind",
    "AnnotationState",
    "ValidatedBoxes",
    "ValidationBox",
    "ValidationBoxCreationState",
    "generate_box_id",
]
