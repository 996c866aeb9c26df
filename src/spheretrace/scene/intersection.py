"""Scene-level nearest-hit search over the sphere list.

The scene stores its spheres in Taichi fields (Structure of Arrays) in the
order they were added. intersect_scene scans every sphere, keeps the smallest
near root strictly greater than T_MIN, and reports the index of the sphere
that produced it. The scan is linear in the number of spheres.

Example:
    >>> from src.spheretrace.scene.intersection import (
    ...     add_sphere, clear_scene, intersect_scene, vec3
    ... )
    >>> clear_scene()
    >>> add_sphere((0.0, 0.0, -1.0), 0.5)
    0
    >>> # Use intersect_scene within a Taichi kernel
"""

from collections.abc import Sequence

import taichi as ti
import taichi.math as tm

from src.spheretrace.geometry.sphere import Sphere, hit_sphere

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Roots at or below this distance are rejected so that rays leaving a
# surface do not immediately hit it again.
T_MIN = 1e-3

# Index reported when no sphere is hit
NO_HIT = -1


@ti.dataclass
class SceneHit:
    """Record of a ray-scene query.

    Attributes:
        index: Index of the nearest sphere hit, or NO_HIT (-1).
        t: Distance along the ray to the hit. Only valid if index >= 0.
    """

    index: ti.i32
    t: ti.f32


# Maximum number of spheres supported in the scene
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all spheres from the scene.

    Resets the sphere count to zero. Stale field data is overwritten when new
    spheres are added.
    """
    num_spheres[None] = 0


def add_sphere(center: Sequence[float], radius: float) -> int:
    """Append a sphere to the scene.

    Args:
        center: The center point of the sphere as (x, y, z).
        radius: The radius of the sphere.

    Returns:
        The index of the added sphere.

    Raises:
        ValueError: If radius is not strictly positive.
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    if not radius > 0.0:
        raise ValueError(f"Sphere radius must be positive, got {radius}")
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = [float(center[0]), float(center[1]), float(center[2])]
    sphere_radii[idx] = float(radius)
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def get_sphere(index: ti.i32) -> Sphere:
    """Load the sphere stored at index."""
    return Sphere(center=sphere_centers[index], radius=sphere_radii[index])


@ti.func
def intersect_scene(ray_origin: vec3, ray_direction: vec3) -> SceneHit:
    """Find the nearest sphere in front of the ray.

    Ties keep the sphere that comes first in scene order, because a later
    sphere must be strictly closer to replace the current best.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray.

    Returns:
        A SceneHit with the index and distance of the nearest hit with
        t > T_MIN, or index == NO_HIT if there is none.
    """
    best_index = NO_HIT
    best_t = 0.0

    n_spheres = num_spheres[None]
    for i in range(n_spheres):
        rec = hit_sphere(ray_origin, ray_direction, get_sphere(i))
        if rec.hit == 1 and rec.t > T_MIN:
            if best_index == NO_HIT or rec.t < best_t:
                best_index = i
                best_t = rec.t

    return SceneHit(index=best_index, t=best_t)
