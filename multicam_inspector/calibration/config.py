"""
Calibration configuration for all installations.

Holds the ``installation -> camera slot -> CalibrationTransform`` mapping that
is loaded at startup, edited during a calibration session, and saved back.
The in-memory structure is the contract; the YAML file is one way to persist
it.

File format:
    calibration:
      installations:
        - id: hangar_rouen_vpn
          label: Forges-les-Eaux
          transforms:
            0: {x: 42, y: -15, scale: 1.15, rotation: 1.2}
            5: {x: 25, y: 18, scale: 1.14, rotation: 1.8, flipped: true}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Optional

import yaml

from multicam_inspector.calibration.transform import CalibrationTransform
from multicam_inspector.camera_config import CAMERA_COUNT, get_installation_configs

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstallationCalibration:
    """Calibration transforms of one installation.

    Attributes:
        installation_id: Installation identifier (e.g., "hangar_rouen_vpn").
        label: Human-readable name.
        transforms: Camera slot -> transform. Absent slots are identity.
    """

    installation_id: str
    label: str = ""
    transforms: Dict[int, CalibrationTransform] = field(default_factory=dict, hash=False)

    def get_transform(self, slot: int) -> CalibrationTransform:
        """Get the transform for a camera slot, identity if none is stored."""
        return self.transforms.get(slot, CalibrationTransform.identity())

    def with_transform(self, slot: int, transform: CalibrationTransform) -> InstallationCalibration:
        """Return a copy with one slot's transform replaced."""
        transforms = dict(self.transforms)
        transforms[slot] = transform
        return replace(self, transforms=transforms)

    def to_dict(self) -> dict:
        return {
            'id': self.installation_id,
            'label': self.label,
            'transforms': {
                slot: transform.to_dict()
                for slot, transform in sorted(self.transforms.items())
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> InstallationCalibration:
        """Create from a dictionary with 'id', optional 'label' and 'transforms'.

        Raises:
            ValueError: If the id is missing, a slot is out of range, or a
                transform is invalid.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Installation entry must be a dictionary, got {type(data)}")
        if 'id' not in data:
            raise ValueError("Installation entry missing required 'id' field")

        installation_id = str(data['id'])
        raw_transforms = data.get('transforms') or {}
        if not isinstance(raw_transforms, dict):
            raise ValueError(
                f"'transforms' for installation '{installation_id}' must be a mapping, "
                f"got {type(raw_transforms)}"
            )

        transforms: Dict[int, CalibrationTransform] = {}
        for raw_slot, raw_transform in raw_transforms.items():
            try:
                slot = int(raw_slot)
            except (TypeError, ValueError):
                raise ValueError(
                    f"Invalid camera slot '{raw_slot}' for installation '{installation_id}'"
                ) from None
            if not 0 <= slot < CAMERA_COUNT:
                raise ValueError(
                    f"Camera slot {slot} for installation '{installation_id}' "
                    f"must be in range 0-{CAMERA_COUNT - 1}"
                )
            transforms[slot] = CalibrationTransform.from_dict(raw_transform or {})

        return cls(
            installation_id=installation_id,
            label=str(data.get('label', '')),
            transforms=transforms,
        )


@dataclass
class CalibrationConfig:
    """Calibration transforms for every known installation.

    Attributes:
        installations: Installation id -> calibration record.
    """
    installations: Dict[str, InstallationCalibration] = field(default_factory=dict)

    def get_transform(self, installation_id: Optional[str], slot: int) -> CalibrationTransform:
        """Get a camera's transform at an installation.

        Unknown installations and slots resolve to the identity transform;
        a missing calibration is never an error.
        """
        if installation_id is None:
            return CalibrationTransform.identity()
        installation = self.installations.get(installation_id)
        if installation is None:
            return CalibrationTransform.identity()
        return installation.get_transform(slot)

    def get_installation(self, installation_id: str) -> InstallationCalibration:
        """Get an installation record, an empty one if unknown."""
        return self.installations.get(
            installation_id, InstallationCalibration(installation_id=installation_id)
        )

    def with_transform(
        self,
        installation_id: str,
        slot: int,
        transform: CalibrationTransform,
    ) -> CalibrationConfig:
        """Return a new config with one transform replaced."""
        if not 0 <= slot < CAMERA_COUNT:
            raise ValueError(f"Camera slot must be in range 0-{CAMERA_COUNT - 1}, got {slot}")
        installations = dict(self.installations)
        installations[installation_id] = self.get_installation(installation_id).with_transform(
            slot, transform
        )
        return CalibrationConfig(installations=installations)

    def with_installation(self, installation: InstallationCalibration) -> CalibrationConfig:
        """Return a new config with one installation record replaced."""
        installations = dict(self.installations)
        installations[installation.installation_id] = installation
        return CalibrationConfig(installations=installations)

    @classmethod
    def from_yaml(cls, path: str) -> 'CalibrationConfig':
        """Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            CalibrationConfig instance loaded from file

        Raises:
            FileNotFoundError: If configuration file does not exist
            ValueError: If configuration file is malformed or contains invalid values

        Example:
            >>> config = CalibrationConfig.from_yaml('config/calibration.yaml')
            >>> config.get_transform('hangar_rouen_vpn', 0).scale
            1.15
        """
        config_path = Path(path)

        if not config_path.exists():
            raise FileNotFoundError(
                f"Calibration file not found: {path}\n"
                f"Please create a calibration file or use get_default_config()"
            )

        try:
            with open(config_path, 'r') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse YAML calibration file: {e}") from e

        if not data:
            raise ValueError(
                f"Calibration file is empty: {path}\n"
                f"Expected a 'calibration' section with installations"
            )

        if not isinstance(data, dict) or 'calibration' not in data:
            raise ValueError(
                f"Calibration file missing 'calibration' section: {path}\n"
                f"Expected structure: calibration:\n  installations: ..."
            )

        return cls.from_dict(data['calibration'])

    @classmethod
    def from_dict(cls, config: dict) -> 'CalibrationConfig':
        """Create configuration from dictionary.

        Args:
            config: Dictionary with an 'installations' list. Each entry has
                'id', optional 'label' and a 'transforms' mapping of camera
                slot to transform fields.

        Returns:
            CalibrationConfig instance

        Raises:
            ValueError: If configuration is invalid or contains duplicate ids
        """
        if not isinstance(config, dict):
            raise ValueError(f"Configuration must be a dictionary, got {type(config)}")

        entries = config.get('installations', [])
        if not isinstance(entries, list):
            raise ValueError(f"'installations' must be a list, got {type(entries)}")

        installations: Dict[str, InstallationCalibration] = {}
        for entry in entries:
            installation = InstallationCalibration.from_dict(entry)
            if installation.installation_id in installations:
                raise ValueError(
                    f"Duplicate installation id '{installation.installation_id}'"
                )
            installations[installation.installation_id] = installation

        return cls(installations=installations)

    def to_dict(self) -> dict:
        """Convert configuration to dictionary.

        Returns:
            Dictionary representation suitable for YAML serialization
        """
        return {
            'installations': [
                installation.to_dict() for installation in self.installations.values()
            ]
        }

    def save_to_yaml(self, path: str) -> None:
        """Save configuration to YAML file.

        Args:
            path: Path where configuration file should be written.
                Parent directories are created as needed.

        Raises:
            IOError: If file cannot be written
        """
        config_path = Path(path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        # Wrap in 'calibration' section for consistency with from_yaml
        output = {'calibration': self.to_dict()}

        try:
            with open(config_path, 'w') as f:
                yaml.safe_dump(output, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
        except IOError as e:
            raise IOError(f"Failed to write calibration file: {e}") from e

        logger.info(
            "Saved calibration for %d installation(s) to %s",
            len(self.installations),
            config_path,
        )


def get_default_config() -> CalibrationConfig:
    """Return the built-in calibration of the known installations.

    Returns:
        CalibrationConfig with the baseline hangar (identity everywhere) and
        the measured corrections of the other sites.
    """
    return CalibrationConfig.from_dict({'installations': get_installation_configs()})


def load_config(path: Optional[str] = None) -> CalibrationConfig:
    """Load the calibration file, falling back to the built-in defaults.

    Args:
        path: Calibration YAML path. If it does not exist the defaults are used.

    Raises:
        ValueError: If the file exists but is malformed.
    """
    if path is not None and Path(path).exists():
        return CalibrationConfig.from_yaml(path)
    logger.debug("No calibration file at %s, using built-in defaults", path)
    return get_default_config()
