"""
Camera layout and installation configuration.
Central location for the tile layout, viewport limits and the calibration
values measured at each installation.
"""

import os
from typing import Optional

# Default calibration file, overridable from the environment
CALIBRATION_PATH = os.getenv("MCI_CALIBRATION_PATH", "config/calibration.yaml")

# =============================================================================
# CAMERA LAYOUT
# =============================================================================
# Eight cameras per hangar. Names encode position on the drone:
#   R/F = rear/front, U/D = upper/lower, R/L = right/left
# Top row: RUR, FUR, FUL, RUL
# Bottom row: RDR, FDR, FDL, RDL
# =============================================================================

CAMERA_COUNT = 8

CAMERA_LAYOUT = [
    {"slot": 0, "name": "RUR"},
    {"slot": 1, "name": "FUR"},
    {"slot": 2, "name": "FUL"},
    {"slot": 3, "name": "RUL"},
    {"slot": 4, "name": "RDR"},
    {"slot": 5, "name": "FDR"},
    {"slot": 6, "name": "FDL"},
    {"slot": 7, "name": "RDL"},
]

# =============================================================================
# VIEWPORT LIMITS
# =============================================================================

MIN_ZOOM = 1.0
MAX_ZOOM = 10.0
WHEEL_ZOOM_IN_FACTOR = 1.25  # scroll up
WHEEL_ZOOM_OUT_FACTOR = 0.8  # scroll down
BUTTON_ZOOM_STEP = 0.5
DRAG_THRESHOLD_PX = 5.0  # pointer travel below this is a click, not a drag

# =============================================================================
# CALIBRATION
# =============================================================================
# Offsets are stored in installation-independent units. One unit is 1/1000 of
# the shorter side of the drawn (contain-fitted, unzoomed) image, so the same
# stored value nudges the image by the same fraction in every tile size.
CALIBRATION_UNIT_DIVISOR = 1000.0
# Calibrated offsets never move the image center more than this fraction of
# the longer display side
MAX_OFFSET_FRACTION = 0.5

# =============================================================================
# ANNOTATION
# =============================================================================

MIN_BOX_SIZE_PX = 10.0  # at the image's native resolution
TOGGLE_DEBOUNCE_S = 0.1

# =============================================================================
# IMAGE LOADING
# =============================================================================

IMAGE_LOAD_ATTEMPTS = 3
IMAGE_RETRY_BASE_DELAY_S = 0.5
IMAGE_FETCH_TIMEOUT_S = 10.0

# Installations and their measured corrections. The baseline hangar defines
# the canonical framing, so every transform there is identity.
INSTALLATIONS = [
    {
        "id": "hangar_sisjon_vpn",
        "label": "Mölndal (hangar_sisjon_vpn) - BASELINE",
        "transforms": {
            slot: {"x": 0, "y": 0, "scale": 1.0, "rotation": 0}
            for slot in range(CAMERA_COUNT)
        },
    },
    {
        "id": "hangar_rouen_vpn",
        "label": "Forges-les-Eaux (hangar_rouen_vpn)",
        "transforms": {
            0: {"x": 42, "y": -15, "scale": 1.15, "rotation": 1.2},
            1: {"x": 38, "y": -12, "scale": 1.12, "rotation": 0.8},
            2: {"x": -35, "y": -18, "scale": 1.08, "rotation": -0.9},
            3: {"x": -32, "y": -14, "scale": 1.05, "rotation": -1.1},
            4: {"x": 28, "y": 22, "scale": 1.18, "rotation": 2.1},
            5: {"x": 25, "y": 18, "scale": 1.14, "rotation": 1.8},
            6: {"x": -28, "y": 25, "scale": 1.11, "rotation": -1.5},
            7: {"x": -25, "y": 20, "scale": 1.09, "rotation": -1.8},
        },
    },
]


def get_camera_layout() -> list:
    """
    Get the eight-tile camera layout.

    Returns:
        List of {"slot": int, "name": str} dicts ordered by slot.
    """
    return CAMERA_LAYOUT


def get_camera_name(slot: int) -> str:
    """
    Get the display name for a camera slot.

    Args:
        slot: Camera slot index (0-7)

    Returns:
        Camera name (e.g., "RUR"), or "Camera<slot>" for unknown slots
    """
    cam = next((c for c in CAMERA_LAYOUT if c["slot"] == slot), None)
    return cam["name"] if cam else f"Camera{slot}"


def get_camera_slot(name: str) -> Optional[int]:
    """
    Find the slot index for a camera name.

    Args:
        name: Camera name (e.g., "FDL")

    Returns:
        Slot index, or None if no camera has that name
    """
    return next((c["slot"] for c in CAMERA_LAYOUT if c["name"] == name), None)


def get_installation_configs() -> list:
    """
    Get the built-in installation calibration records.

    Returns:
        List of installation dicts with id, label and per-slot transforms.
    """
    return INSTALLATIONS


# Validation
if __name__ == "__main__":
    print("Camera Layout")
    print("=" * 70)
    for cam in CAMERA_LAYOUT:
        print(f"  slot {cam['slot']}: {cam['name']}")

    print(f"\nConfigured Installations: {len(INSTALLATIONS)}")
    for inst in INSTALLATIONS:
        print(f"\n{inst['label']}:")
        for slot, t in inst["transforms"].items():
            print(f"  {get_camera_name(slot)}: {t}")
