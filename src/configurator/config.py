"""
Configuration & Path Management
===============================
This module serves as the central registry for file paths and global constants.

Why is this file needed?
------------------------
1. Abstraction: Timing, easing and layout constants of the runtime engine live
   in one place instead of being scattered across the camera and focus code.
2. Deployment: It handles the logic required by PyInstaller (sys._MEIPASS) to
   find assets (example configurations) when the app is frozen into an .exe.

Exports:
    ASSETS_PATH (str): Absolute path to the assets directory.
    DEFAULT_CONFIG_PATH (str): Absolute path to the bundled example configuration.
"""
import sys
import os
from pathlib import Path
from typing import Dict, Any


def get_resource_path(relative_path: str) -> str:
    """
    Get absolute path to resource, works for dev and for PyInstaller.
    """
    if hasattr(sys, '_MEIPASS'):
        # PyInstaller temp folder
        base_path: str = getattr(sys, '_MEIPASS')
        return os.path.join(base_path, relative_path)

    # Development mode: resolve relative to this file
    # config.py is in src/configurator/
    current_file_path: Path = Path(__file__)
    project_root: Path = current_file_path.parent.parent.parent
    return os.path.join(str(project_root), relative_path)


# Global Constants
ASSETS_PATH: str = get_resource_path("assets")
DEFAULT_CONFIG_PATH: str = os.path.join(ASSETS_PATH, "configurator.json")

# Camera
TRANSITION_DURATION: float = 1.2  # seconds per scripted tween
LOOK_AT_BLEND: float = 0.08  # per-frame blend, not normalised to elapsed time

# Focus tracking: marker line as a fraction of the viewport height
FOCUS_MARKER_RATIO: float = 0.35

DEFAULT_FOCUS_KEY: str = "overview"
DEFAULT_FOCUS_TARGET: Dict[str, Any] = {
    "radius": 5.0,
    "polarDeg": 60.0,
    "azimuthDeg": 30.0,
    "lookAt": [0.0, 0.0, 0.0],
}

# Pricing display
CURRENCY_SYMBOL: str = "$"
INCLUDED_LABEL: str = "Included"
