"""Per-task sets of validated box ids and the pass gate built on them."""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Iterable, Optional, Set

from multicam_inspector.camera_config import TOGGLE_DEBOUNCE_S

logger = logging.getLogger(__name__)


class ValidatedBoxes:
    """Track which validation boxes have been acknowledged, per task.

    Sets are keyed by task id and never cleared on navigation, so returning to
    a task shows the boxes validated earlier. Toggling the same box twice
    within the debounce window is treated as a double-fired click and ignored.

    Args:
        clock: Monotonic time source in seconds (injectable for tests).
        debounce_s: Window for ignoring a repeated toggle of the same box.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        debounce_s: float = TOGGLE_DEBOUNCE_S,
    ):
        self._sets: Dict[str, Set[str]] = {}
        self._clock = clock
        self._debounce_s = debounce_s
        self._last_toggle: Optional[tuple[str, float]] = None

    def validated(self, task_id: str) -> frozenset[str]:
        """Ids validated for a task (empty if none)."""
        return frozenset(self._sets.get(task_id, ()))

    def is_validated(self, task_id: str, box_id: str) -> bool:
        return box_id in self._sets.get(task_id, ())

    def toggle(self, task_id: str, box_id: str) -> Optional[bool]:
        """Flip a box's membership in a task's validated set.

        Returns:
            True if the box is now validated, False if it was un-validated,
            None if the toggle was debounced.
        """
        now = self._clock()
        if self._last_toggle is not None:
            last_id, last_time = self._last_toggle
            if last_id == box_id and now - last_time < self._debounce_s:
                logger.debug("Ignoring rapid repeat toggle of box %s", box_id)
                return None
        self._last_toggle = (box_id, now)

        ids = self._sets.setdefault(task_id, set())
        if box_id in ids:
            ids.discard(box_id)
            logger.info("Unchecked validation: %s (task %s)", box_id, task_id)
            return False
        ids.add(box_id)
        logger.info("Validated: %s (task %s)", box_id, task_id)
        return True

    def progress(self, task_id: str, box_ids: Iterable[str]) -> tuple[int, int]:
        """Count (validated, total) among the given box ids."""
        ids = set(box_ids)
        return (len(ids & self._sets.get(task_id, set())), len(ids))

    def can_pass(self, task_id: str, box_ids: Iterable[str]) -> bool:
        """True when every listed box is validated (or there are none).

        Only a pass decision is gated; failing a task is always allowed.
        """
        done, total = self.progress(task_id, box_ids)
        return total == 0 or done == total
