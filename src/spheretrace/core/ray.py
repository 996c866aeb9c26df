"""Ray data structure and vector utilities.

This module provides the Ray dataclass and the vector helpers used by the
intersection, camera and shading code. All functions are Taichi functions
(@ti.func) and are meant to be called from inside kernels.

Vector arithmetic (add, subtract, component-wise multiply, scalar multiply and
divide) uses the native operators of ``taichi.math.vec3``. The helpers below
cover the remaining geometric operations.

Zero-length vectors follow a single policy: ``normalize`` returns the zero
vector and ``angle_between`` returns 0.0 instead of dividing by zero.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretrace.core.ray import make_ray, ray_at, vec3
    >>> @ti.kernel
    ... def probe() -> ti.f32:
    ...     ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -2.0))
    ...     return ray_at(ray, 5.0).z
    >>> probe()
    -5.0
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A ray with an origin point and a unit direction.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction of the ray (vec3). Rays built with make_ray
            always carry a unit direction, so t measures true distance.
    """

    origin: vec3
    direction: vec3


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product of two vectors."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length (magnitude) of a vector."""
    return ti.sqrt(length_squared(v))


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the direction of v, or the zero vector when v has
        zero length.
    """
    result = vec3(0.0, 0.0, 0.0)
    len_sq = length_squared(v)
    if len_sq > 0.0:
        result = v / ti.sqrt(len_sq)
    return result


@ti.func
def angle_between(a: vec3, b: vec3) -> ti.f32:
    """Compute the angle in radians between two vectors.

    The cosine is clamped to [-1, 1] before acos so rounding cannot produce
    NaN for (anti)parallel vectors.

    Args:
        a: First vector.
        b: Second vector.

    Returns:
        The angle in [0, pi], or 0.0 if either vector has zero length.
    """
    angle = 0.0
    denom = length(a) * length(b)
    if denom > 0.0:
        cos_theta = tm.clamp(tm.dot(a, b) / denom, -1.0, 1.0)
        angle = tm.acos(cos_theta)
    return angle


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Returns:
        1 if all components are below 1e-8 in magnitude, 0 otherwise.
    """
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


# =============================================================================
# Ray Construction
# =============================================================================


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray, normalizing its direction.

    Args:
        origin: The starting point of the ray.
        direction: Any non-zero direction vector. A zero vector yields a ray
            with zero direction, which never hits anything.

    Returns:
        A new Ray with a unit direction.
    """
    return Ray(origin=origin, direction=normalize(direction))


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction
