"""Per-installation camera calibration: transforms, configuration and editing."""

from multicam_inspector.calibration.config import (
    CalibrationConfig,
    InstallationCalibration,
    get_default_config,
    load_config,
)
from multicam_inspector.calibration.session import AdjustmentSteps, CalibrationSession
from multicam_inspector.calibration.transform import (
    CalibrationTransform,
    translation_scale_factor,
)

__all__ = [
    "AdjustmentSteps",
    "CalibrationConfig",
    "CalibrationSession",
    "CalibrationTransform",
    "InstallationCalibration",
    "get_default_config",
    "load_config",
    "translation_scale_factor",
]
