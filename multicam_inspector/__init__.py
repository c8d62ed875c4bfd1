"""
Multi-Camera Inspector Package.

This package provides the viewport engine behind an eight-tile camera
inspection view: each tile shows one camera of a hangar installation and can
be zoomed, panned, calibrated and annotated independently.

The core is a single draw transform per tile, composed from:
    - Layout: contain-fit of the image into the tile
    - View: zoom (1x-10x) and clamped pan
    - Calibration: per-installation translate/scale/rotate/flip correction

Rendering and pointer mapping both consume that transform, so validation
boxes drawn on screen always line up with the image pixels they cover.

Example Usage:
    >>> from multicam_inspector import (
    ...     AnnotationEngine,
    ...     ValidatedBoxes,
    ...     ViewportController,
    ...     get_default_config,
    ... )
    >>> from multicam_inspector.geometry import ScreenPoint
    >>>
    >>> engine = AnnotationEngine(ValidatedBoxes())
    >>> controller = ViewportController(get_default_config(), "hangar_rouen_vpn", engine=engine)
    >>> controller.set_viewport(0, 800, 450)
    >>> controller.load_image(0, "http://camera-host/images/RUR.jpg")
    >>> controller.on_wheel(0, delta_y=-120)
    >>> point = controller.map_pointer(0, ScreenPoint(400.0, 225.0))

Available Classes:
    Geometry:
        - DrawTransform: Resolved placement of a tile's image
        - CoordinateMapper: Screen <-> image <-> normalized mapping
    Calibration:
        - CalibrationTransform: Per-camera correction
        - CalibrationConfig: Corrections of every installation (YAML)
        - CalibrationSession: Interactive editing of one installation
    Annotation:
        - ValidationBox: Normalized box a task requires validating
        - ValidatedBoxes: Per-task validated sets and the pass gate
        - AnnotationEngine: Box creation and hit-testing
    Viewport:
        - ViewportController: Per-tile zoom, pan, images and rendering
        - ImageLoader: HTTP image fetch with cache-busting retries
        - OpenCVTileRenderer: Paints tiles into numpy canvases
    Session:
        - InspectionSession: Task navigation and status decisions
        - ShortcutDispatcher: Keyboard shortcuts
"""

# Geometry pipeline
from multicam_inspector.coordinate_mapper import CoordinateMapper
from multicam_inspector.layout import DrawRect, resolve_contain_fit
from multicam_inspector.transform_composer import (
    DrawTransform,
    compose_draw_transform,
    resolve_draw_transform,
)

# Calibration
from multicam_inspector.calibration import (
    CalibrationConfig,
    CalibrationSession,
    CalibrationTransform,
    get_default_config,
    load_config,
)

# Annotation
from multicam_inspector.annotation import AnnotationEngine, ValidatedBoxes, ValidationBox

# Viewport and session
from multicam_inspector.viewport import ImageLoader, OpenCVTileRenderer, ViewportController
from multicam_inspector.tasks import InspectionTask, JsonTaskStore, load_tasks
from multicam_inspector.session import InspectionSession, ShortcutDispatcher

# Define public API
__all__ = [
    # Geometry pipeline
    'CoordinateMapper',
    'DrawRect',
    'DrawTransform',
    'compose_draw_transform',
    'resolve_contain_fit',
    'resolve_draw_transform',

    # Calibration
    'CalibrationConfig',
    'CalibrationSession',
    'CalibrationTransform',
    'get_default_config',
    'load_config',

    # Annotation
    'AnnotationEngine',
    'ValidatedBoxes',
    'ValidationBox',

    # Viewport and session
    'ImageLoader',
    'InspectionSession',
    'InspectionTask',
    'JsonTaskStore',
    'OpenCVTileRenderer',
    'ShortcutDispatcher',
    'ViewportController',
    'load_tasks',
]

# Package metadata
__version__ = '0.1.0'
