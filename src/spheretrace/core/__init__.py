"""Core rendering module.

Components:
    ray: Ray data structure and vector utilities
    rng: Per-pixel random generators threaded through the sampling code
    integrator: Sky shading, diffuse bouncing and sample accumulation kernels
    renderer: FrameRenderer and the render() entry point

All per-ray code runs inside Taichi kernels; every pixel is computed
independently, which is what lets Taichi parallelize the pixel loop.
"""

from .ray import (
    Ray,
    angle_between,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    normalize,
    ray_at,
    vec3,
)
from .rng import (
    random_float,
    random_in_unit_cube_shell,
    random_in_unit_sphere,
    random_unit_vector,
    seed_rng,
)

# Note: integrator and renderer are NOT imported here to avoid circular imports.
# Import directly from src.spheretrace.core.integrator or src.spheretrace.core.renderer.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "dot",
    "cross",
    "length",
    "length_squared",
    "normalize",
    "angle_between",
    "near_zero",
    "seed_rng",
    "random_float",
    "random_in_unit_cube_shell",
    "random_in_unit_sphere",
    "random_unit_vector",
]
