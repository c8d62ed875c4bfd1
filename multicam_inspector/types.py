"""
Unit type annotations for type-safe numeric parameters.

This module defines NewType aliases for the units that flow through the
viewport pipeline. Three coordinate spaces meet in this codebase and mixing
them up is the most common source of bugs:

    - Screen space: pixels of the rendered tile, origin at the tile's top-left
    - Image space: pixels of the decoded source image (native resolution)
    - Normalized space: fractions [0, 1] of the image width/height

NewType aliases are erased at runtime, so they cost nothing, but they let a
static type checker catch a normalized value passed where image pixels are
expected.

Usage Example:
    >>> from multicam_inspector.types import Degrees, ScreenPixels, Unitless
    >>>
    >>> def rotate_tile(angle: Degrees, zoom: Unitless) -> ScreenPixels:
    ...     pass
"""

from typing import NewType

# Angular units
Degrees = NewType('Degrees', float)
"""Angle in degrees (e.g., calibration rotation)"""

# Image coordinate units
Pixels = NewType('Pixels', int)
"""Integer image dimensions in pixels (e.g., natural width/height)"""

PixelsFloat = NewType('PixelsFloat', float)
"""Floating-point image coordinates in pixels (subpixel positions)"""

ScreenPixels = NewType('ScreenPixels', float)
"""Positions or sizes in the rendered tile (CSS/device-independent pixels)"""

Normalized = NewType('Normalized', float)
"""Fraction of the image width or height, nominally within [0, 1]"""

# Calibration units
CalibrationUnits = NewType('CalibrationUnits', float)
"""Installation-independent calibration offset (1000 units = min side of the drawn image)"""

# Dimensionless quantities
Unitless = NewType('Unitless', float)
"""Dimensionless scalar (e.g., zoom factor, calibration scale, ratios)"""
