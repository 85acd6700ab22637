"""
Configuration & Path Management
===============================
Central registry for file paths and global constants of the viewer.

Why is this file needed?
------------------------
1. Abstraction: Scene defaults (light placement, ground plane size, shadow
   resolution, collision highlight) live in one place instead of being
   scattered over the controller and the rendering backend.
2. Deployment: It handles the logic required by PyInstaller (sys._MEIPASS) to
   find the bundled sample robot when the app is frozen into an .exe.

Exports:
    ASSETS_PATH (str): Absolute path to the assets directory.
    SAMPLE_URDF_PATH (str): Absolute path to the bundled sample robot.
"""
import os
import sys
from pathlib import Path


def get_resource_path(relative_path: str) -> str:
    """
    Get absolute path to resource, works for dev and for PyInstaller.
    """
    if hasattr(sys, '_MEIPASS'):
        base_path: str = getattr(sys, '_MEIPASS')
        return os.path.join(base_path, relative_path)

    # config.py is in src/robotviewer/
    current_file_path: Path = Path(__file__)
    project_root: Path = current_file_path.parent.parent.parent
    return os.path.join(str(project_root), relative_path)


ASSETS_PATH: str = get_resource_path("assets")
SAMPLE_URDF_PATH: str = os.path.join(ASSETS_PATH, "sample_arm", "sample_arm.urdf")

# --- Viewer defaults ---
DEFAULT_UP_AXIS: str = "+Z"
DEFAULT_AMBIENT_COLOR: str = "#7d7c7a"

# Keeps the ground plane just below the model (z-fighting)
GROUND_EPSILON: float = 1e-3
GROUND_PLANE_SIZE: float = 40.0
GROUND_PLANE_SCALE: float = 10.0
GROUND_PLANE_INITIAL_Y: float = -0.5
GROUND_PLANE_OPACITY: float = 0.25

# --- Lights ---
AMBIENT_INTENSITY: float = 0.5
DIRECTIONAL_INTENSITY: float = 3.141592653589793
DIRECTIONAL_POSITION: tuple[float, float, float] = (4.0, 10.0, 1.0)

# --- Camera / manipulation ---
CAMERA_FOV: float = 75.0
CAMERA_NEAR: float = 0.1
CAMERA_FAR: float = 1000.0
CAMERA_DISTANCE: float = 7.0
CAMERA_ZOOM: float = 8.0
CONTROLS_MIN_DISTANCE: float = 0.25
CONTROLS_MAX_DISTANCE: float = 50.0

# --- Collision highlight material ---
COLLISION_COLOR: str = "#ffbe38"
COLLISION_OPACITY: float = 0.35
COLLISION_SHININESS: float = 2.5

# --- Render loop / loading ---
FRAME_INTERVAL_MS: int = 16
FETCH_TIMEOUT_S: float = 30.0
