"""Interactive editing of one installation's calibration transforms."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from multicam_inspector.calibration.config import CalibrationConfig, InstallationCalibration
from multicam_inspector.calibration.transform import CalibrationTransform
from multicam_inspector.camera_config import CAMERA_COUNT

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdjustmentSteps:
    """Increment applied by one nudge of each transform field."""

    offset: float = 1.0
    scale: float = 0.01
    rotation: float = 0.1


MIN_CALIBRATION_SCALE = 0.1


class CalibrationSession:
    """Edit the transforms of one installation without touching the config.

    Changes are staged in the session until :meth:`commit` returns a new
    :class:`CalibrationConfig`; :meth:`discard` restores the loaded values.

    Example:
        >>> session = CalibrationSession(config, "hangar_rouen_vpn")
        >>> session.nudge(slot=2, dx=5)
        >>> session.toggle_flip(slot=2)
        >>> config = session.commit()
    """

    def __init__(
        self,
        config: CalibrationConfig,
        installation_id: str,
        steps: AdjustmentSteps = AdjustmentSteps(),
    ):
        self._config = config
        self.installation_id = installation_id
        self.steps = steps
        self._original = config.get_installation(installation_id)
        self._staged: InstallationCalibration = self._original

    @property
    def is_dirty(self) -> bool:
        """True when staged transforms differ from the loaded ones."""
        return any(
            self._staged.get_transform(slot) != self._original.get_transform(slot)
            for slot in range(CAMERA_COUNT)
        )

    def transform(self, slot: int) -> CalibrationTransform:
        """Current staged transform of a slot."""
        self._check_slot(slot)
        return self._staged.get_transform(slot)

    def set_transform(self, slot: int, transform: CalibrationTransform) -> None:
        self._check_slot(slot)
        self._staged = self._staged.with_transform(slot, transform)

    def nudge(
        self,
        slot: int,
        dx: float = 0,
        dy: float = 0,
        dscale: float = 0,
        drotation: float = 0,
    ) -> CalibrationTransform:
        """Apply step-sized adjustments to one slot.

        Each delta is a number of steps (e.g. ``dx=-2`` moves two offset steps
        left). Scale never drops below ``MIN_CALIBRATION_SCALE``.

        Returns:
            The updated staged transform.
        """
        current = self.transform(slot)
        scale = max(
            MIN_CALIBRATION_SCALE,
            round(current.scale + dscale * self.steps.scale, 6),
        )
        updated = current.with_changes(
            x=current.x + dx * self.steps.offset,
            y=current.y + dy * self.steps.offset,
            scale=scale,
            rotation=round(current.rotation + drotation * self.steps.rotation, 6),
        )
        self.set_transform(slot, updated)
        return updated

    def toggle_flip(self, slot: int) -> CalibrationTransform:
        current = self.transform(slot)
        updated = current.with_changes(flipped=not current.flipped)
        self.set_transform(slot, updated)
        return updated

    def reset(self, slot: int) -> None:
        """Reset one slot to identity."""
        self.set_transform(slot, CalibrationTransform.identity())

    def discard(self) -> None:
        """Drop all staged changes."""
        self._staged = self._original

    def commit(self) -> CalibrationConfig:
        """Return a config containing the staged transforms.

        The session keeps editing on top of the committed values.
        """
        self._config = self._config.with_installation(self._staged)
        self._original = self._staged
        logger.info("Committed calibration for installation %s", self.installation_id)
        return self._config

    @staticmethod
    def _check_slot(slot: int) -> None:
        if not 0 <= slot < CAMERA_COUNT:
            raise ValueError(f"Camera slot must be in range 0-{CAMERA_COUNT - 1}, got {slot}")
