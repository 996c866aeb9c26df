"""Sphere primitive with near-root ray-sphere intersection.

A sphere is the implicit surface |P - center|^2 = radius^2. Substituting the
ray P(t) = o + t * d gives the quadratic

    a*t^2 + b*t + c = 0

with

    oc = o - center
    a  = dot(d, d)          (1 for unit directions)
    b  = 2 * dot(oc, d)
    c  = dot(oc, oc) - radius^2

Only the near root (-b - sqrt(b^2 - 4ac)) / 2a is ever computed. It can be
negative when the sphere is behind the ray origin, or when the origin is
inside the sphere; rejecting such roots is the job of the scene query.

Example:
    >>> from src.spheretrace.geometry.sphere import Sphere, hit_sphere, vec3
    >>> @ti.kernel
    ... def probe() -> ti.f32:
    ...     sphere = Sphere(center=vec3(0.0, 0.0, -1.0), radius=0.5)
    ...     rec = hit_sphere(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0), sphere)
    ...     return rec.t
    >>> probe()
    0.5
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere. Host-side code rejects radius <= 0
            before a sphere ever reaches a kernel.
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class SphereHit:
    """Result of a ray-sphere intersection test.

    Attributes:
        hit: 1 if the quadratic has a real root, 0 otherwise.
        t: The near root. Only valid if hit == 1; may be negative.
    """

    hit: ti.i32
    t: ti.f32


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a sphere from center and radius inside a kernel."""
    return Sphere(center=center, radius=radius)


@ti.func
def sphere_normal(sphere: Sphere, point: vec3) -> vec3:
    """Outward (unnormalized) normal at a point on the sphere.

    Args:
        sphere: The sphere.
        point: A point on the sphere surface.

    Returns:
        point - center. Its length is the radius; callers normalize if they
        need a unit normal.
    """
    return point - sphere.center


@ti.func
def hit_sphere(ray_origin: vec3, ray_direction: vec3, sphere: Sphere) -> SphereHit:
    """Solve the ray-sphere quadratic for its near root.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray (unit length for rays built
            with make_ray, but any non-zero vector works).
        sphere: The sphere to test.

    Returns:
        A SphereHit. hit is 0 when the discriminant is negative or when the
        direction is the zero vector (degenerate quadratic).
    """
    oc = ray_origin - sphere.center

    a = tm.dot(ray_direction, ray_direction)
    b = 2.0 * tm.dot(oc, ray_direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    discriminant = b * b - 4.0 * a * c

    did_hit = 0
    t = 0.0
    if a > 0.0 and discriminant >= 0.0:
        did_hit = 1
        t = (-b - ti.sqrt(discriminant)) / (2.0 * a)

    return SphereHit(hit=did_hit, t=t)
