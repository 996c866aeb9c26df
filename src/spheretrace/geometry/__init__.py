"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive, its normal, and the near-root ray-sphere test

All intersection routines are Taichi functions (@ti.func) evaluated inside
the render kernels:
    rec = hit_sphere(ray_origin, ray_direction, sphere)
"""

from .sphere import Sphere, SphereHit, hit_sphere, make_sphere, sphere_normal

__all__ = [
    "Sphere",
    "SphereHit",
    "hit_sphere",
    "make_sphere",
    "sphere_normal",
]
