"""
Configuration & Path Management
===============================
This module serves as the central registry for file paths and global constants.

Why is this file needed?
------------------------
1. Abstraction: It prevents hardcoded paths and magic numbers scattered
   throughout the simulation modules.
2. Deployment: It handles the logic required by PyInstaller (sys._MEIPASS) to
   find assets (preset JSONs) when the app is frozen into an .exe.

Exports:
    ASSETS_PATH (str): Absolute path to the assets directory.
    DEFAULT_PRESETS_PATH (str): Absolute path to the bundled tissue presets.
"""
import sys
import os
from pathlib import Path


def get_resource_path(relative_path: str) -> str:
    """
    Get absolute path to resource, works for dev and for PyInstaller.
    """
    if hasattr(sys, '_MEIPASS'):
        # PyInstaller temp folder
        base_path: str = getattr(sys, '_MEIPASS')
        return os.path.join(base_path, "tensfield", relative_path)

    # Development / installed mode: resolve relative to this file
    # config.py is in src/tensfield/
    package_root: Path = Path(__file__).parent
    return os.path.join(str(package_root), relative_path)


# Global Paths
ASSETS_PATH: str = get_resource_path("assets")
DEFAULT_PRESETS_PATH: str = os.path.join(ASSETS_PATH, "tissue_presets.json")

# ------------------------------------------------------------------------------
# Model Constants
# ------------------------------------------------------------------------------
MAX_INTENSITY_MA: float = 80.0         # mA, top of the stimulator dial
REFERENCE_FAT_THICKNESS: float = 100.0  # divisor of the fat resistance term
TOTAL_BLOCK_DEPTH: float = 6.0          # depth of the tissue block (stack units)
DEPTH_SCALE: float = 5.0                # normalized depth -> scene units

PULSE_WIDTH_MIN_US: float = 50.0
PULSE_WIDTH_MAX_US: float = 400.0

SAMPLE_COUNT: int = 21                  # t = 0, 0.05, ..., 1.0
FRAME_BUDGET_MS: float = 16.0           # one interactive frame
