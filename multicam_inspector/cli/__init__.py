"""CLI module for the multi-camera inspector.

Provides a unified `mci` command-line interface for calibration, viewport
geometry and validation-box tools.
"""

from multicam_inspector.cli.main import app

__all__ = ["app"]
