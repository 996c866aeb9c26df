"""Camera module for primary ray generation.

Components:
    pinhole: Eye point plus four-corner image plane

Camera responsibilities:
    - Validate the image plane corners
    - Map (column, row) pixel coordinates, including sub-pixel offsets,
      affinely onto the image plane
    - Build unit-direction rays from the eye, in "screen" or "pinhole"
      projection
"""

from .pinhole import (
    CAMERA_PROJECTIONS,
    Camera,
    get_camera_info,
    get_camera_origin,
    get_plane_point,
    get_ray,
    make_camera,
    setup_camera,
)

__all__ = [
    "CAMERA_PROJECTIONS",
    "Camera",
    "make_camera",
    "setup_camera",
    "get_ray",
    "get_plane_point",
    "get_camera_origin",
    "get_camera_info",
]
