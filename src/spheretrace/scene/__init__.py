"""Scene module for sphere storage and ray-scene queries.

Components:
    intersection: Sphere fields and the nearest-hit scene query
    manager: Host-side scene with validation and JSON serialization
    default_scene: Ready-made scene and camera

Spheres are kept in scene order in Taichi fields; the order decides which
sphere wins when two hits are equally close.
"""

from .default_scene import DefaultSceneParams, create_default_scene
from .intersection import (
    MAX_SPHERES,
    NO_HIT,
    T_MIN,
    SceneHit,
    add_sphere,
    clear_scene,
    get_sphere,
    get_sphere_count,
    intersect_scene,
)
from .manager import SceneConfig, SceneManager, SphereInfo

__all__ = [
    # Intersection module
    "SceneHit",
    "add_sphere",
    "clear_scene",
    "get_sphere",
    "get_sphere_count",
    "intersect_scene",
    "MAX_SPHERES",
    "NO_HIT",
    "T_MIN",
    # Manager module
    "SceneManager",
    "SceneConfig",
    "SphereInfo",
    # Default scene
    "DefaultSceneParams",
    "create_default_scene",
]
