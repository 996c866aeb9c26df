"""Diffuse light transport and per-pixel sample accumulation.

This module implements the shading kernel and the frame accumulator.

Shading follows a recursive definition with a bounce budget:

    shade(ray, 0)     = black
    shade(ray, depth) = 0.5 * shade(bounce_ray, depth - 1)   if ray hits a sphere
                      = sky(ray.direction)                    otherwise

where the sky is a vertical gradient from white (looking straight down) to
sky blue (looking straight up). Taichi functions are inlined and cannot
recurse, so shade() unrolls the definition into a loop that carries the
product of the 0.5 factors; the returned color is the same.

Each pixel fires ``samples`` rays. Sample s offsets both pixel coordinates by
the same k = s / samples, the colors are averaged, clamped to [0, 255] and
truncated to integers.

Example:
    >>> from src.spheretrace.core.integrator import setup_render_target, render_rows
    >>> setup_render_target(64, 48)
    >>> render_rows(0, 48, samples=4, max_depth=10, seed=0)
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.spheretrace.camera.pinhole import get_ray
from src.spheretrace.core.ray import Ray, make_ray, near_zero, normalize, ray_at
from src.spheretrace.core.rng import random_in_unit_cube_shell, random_unit_vector, seed_rng
from src.spheretrace.geometry.sphere import sphere_normal
from src.spheretrace.scene.intersection import NO_HIT, get_sphere, intersect_scene

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Shading Constants
# =============================================================================

# Fraction of incoming light kept at every bounce
ALBEDO = 0.5

# Sky gradient end points, in 0-255 channel units
SKY_BOTTOM_COLOR = vec3(255.0, 255.0, 255.0)
SKY_TOP_COLOR = vec3(125.0, 200.0, 255.0)

# Bounce direction models
DIFFUSE_CUBE = 0  # rejection sample of [0, 1)^3 outside the unit sphere
DIFFUSE_LAMBERTIAN = 1  # normal + random unit vector

DIFFUSE_MODELS = {
    "cube": DIFFUSE_CUBE,
    "lambertian": DIFFUSE_LAMBERTIAN,
}

# Output channel range
MAX_CHANNEL = 255.0


# =============================================================================
# Render Target (Pixel Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Final integer pixel colors, indexed [column, row] with row 0 at the bottom
_pixel_buffer = ti.Vector.field(3, dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the pixel buffer for an image of the given size.

    Args:
        width: Image width in pixels (1 to MAX_IMAGE_WIDTH).
        height: Image height in pixels (1 to MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If a dimension is not positive or exceeds the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Reset every pixel to black."""
    _pixel_buffer.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Raise if setup_render_target has not been called."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Shading
# =============================================================================


@ti.func
def sky_color(direction: vec3) -> vec3:
    """Background color seen along a direction.

    Blends linearly from SKY_BOTTOM_COLOR (direction.y = -1) to SKY_TOP_COLOR
    (direction.y = +1) using t = 0.5 * (unit_direction.y + 1).

    Args:
        direction: The ray direction (need not be normalized).

    Returns:
        The sky color in 0-255 channel units.
    """
    unit_direction = normalize(direction)
    t = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - t) * SKY_BOTTOM_COLOR + t * SKY_TOP_COLOR


@ti.func
def sample_bounce(normal: vec3, rng_state: ti.u32, diffuse: ti.i32):
    """Draw the direction of a diffuse bounce.

    Args:
        normal: The (unnormalized) outward normal at the hit point.
        rng_state: The current generator state.
        diffuse: DIFFUSE_CUBE or DIFFUSE_LAMBERTIAN.

    Returns:
        A tuple (new_rng_state, direction). The direction is not normalized;
        make_ray normalizes it.
    """
    state = rng_state
    direction = vec3(0.0, 0.0, 0.0)
    if diffuse == DIFFUSE_LAMBERTIAN:
        unit_normal = normalize(normal)
        state, offset = random_unit_vector(state)
        direction = unit_normal + offset
        # The sample can cancel the normal exactly
        if near_zero(direction):
            direction = unit_normal
    else:
        state, direction = random_in_unit_cube_shell(state)
    return state, direction


@ti.func
def shade(ray: Ray, depth_budget: ti.i32, rng_state: ti.u32, diffuse: ti.i32):
    """Estimate the color carried back along a ray.

    Args:
        ray: The ray to shade.
        depth_budget: Number of surface interactions still allowed. A ray that
            hits a surface with no budget left contributes black.
        rng_state: The current generator state.
        diffuse: DIFFUSE_CUBE or DIFFUSE_LAMBERTIAN.

    Returns:
        A tuple (color, new_rng_state) with color in 0-255 channel units.
    """
    state = rng_state
    origin = ray.origin
    direction = ray.direction

    color = vec3(0.0, 0.0, 0.0)
    attenuation = 1.0

    # Path continuation flag (set to 0 once the ray escapes to the sky)
    active = 1

    for _ in range(depth_budget):
        if active == 1:
            rec = intersect_scene(origin, direction)

            if rec.index == NO_HIT:
                color = attenuation * sky_color(direction)
                active = 0
            else:
                hit_point = ray_at(Ray(origin=origin, direction=direction), rec.t)
                normal = sphere_normal(get_sphere(rec.index), hit_point)

                state, bounce_direction = sample_bounce(normal, state, diffuse)
                bounce = make_ray(hit_point, bounce_direction)

                origin = bounce.origin
                direction = bounce.direction
                attenuation *= ALBEDO

    # A ray still active here ran out of bounces: fully absorbed, color stays black
    return color, state


@ti.func
def render_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
    seed: ti.u32,
    diffuse: ti.i32,
):
    """Average ``samples`` shaded rays through one pixel.

    Args:
        pixel_i: Pixel column (0 = left).
        pixel_j: Pixel row (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        samples: Samples per pixel (> 0).
        max_depth: Bounce budget for each primary ray.
        seed: Render seed.
        diffuse: Bounce direction model.

    Returns:
        The integer pixel color, each channel clamped to [0, 255].
    """
    state = seed_rng(seed, ti.cast(pixel_j * width + pixel_i, ti.u32))
    total = vec3(0.0, 0.0, 0.0)
    inv_samples = 1.0 / ti.cast(samples, ti.f32)

    for s in range(samples):
        k = ti.cast(s, ti.f32) * inv_samples
        ray = get_ray(ti.cast(pixel_i, ti.f32) + k, ti.cast(pixel_j, ti.f32) + k, width, height)
        color, state = shade(ray, max_depth, state, diffuse)
        total += color

    average = tm.clamp(total * inv_samples, 0.0, MAX_CHANNEL)
    return ti.cast(average, ti.i32)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows(
    row_start: ti.i32,
    row_end: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
    seed: ti.u32,
    diffuse: ti.i32,
):
    """Render every pixel in rows [row_start, row_end)."""
    for i, j in ti.ndrange(width, (row_start, row_end)):
        _pixel_buffer[i, j] = render_pixel(i, j, width, height, samples, max_depth, seed, diffuse)


@ti.kernel
def _shade_pixel_sample(
    x: ti.f32,
    y: ti.f32,
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.i32,
    seed: ti.u32,
    diffuse: ti.i32,
) -> vec3:
    """Shade a single primary ray through pixel coordinate (x, y)."""
    ray = get_ray(x, y, width, height)
    color, _ = shade(ray, max_depth, seed_rng(seed, ti.cast(0, ti.u32)), diffuse)
    return color


# =============================================================================
# Public Rendering API
# =============================================================================


def _diffuse_index(diffuse: str) -> int:
    """Translate a diffuse model name into its kernel constant."""
    try:
        return DIFFUSE_MODELS[diffuse]
    except KeyError:
        raise ValueError(
            f"Unknown diffuse model {diffuse!r}, expected one of {sorted(DIFFUSE_MODELS)}"
        ) from None


def render_rows(
    row_start: int,
    row_end: int,
    *,
    samples: int,
    max_depth: int,
    seed: int = 0,
    diffuse: str = "cube",
) -> None:
    """Render rows [row_start, row_end) of the current render target.

    Pixels are independent, so rendering an image in several row bands gives
    exactly the same result as rendering it in one call.

    Args:
        row_start: First row to render (0 = bottom).
        row_end: One past the last row to render.
        samples: Samples per pixel (> 0).
        max_depth: Bounce budget per primary ray (>= 0).
        seed: Render seed; only the low 32 bits are used.
        diffuse: Bounce direction model, "cube" or "lambertian".

    Raises:
        RuntimeError: If the render target has not been set up.
        ValueError: If the row range or sampling parameters are invalid.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    if not 0 <= row_start <= row_end <= height:
        raise ValueError(f"Invalid row range [{row_start}, {row_end}) for height {height}")
    if samples <= 0:
        raise ValueError(f"samples must be positive, got {samples}")
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")

    if row_start == row_end:
        return

    _render_rows(
        row_start,
        row_end,
        width,
        height,
        samples,
        max_depth,
        seed & 0xFFFFFFFF,
        _diffuse_index(diffuse),
    )


def render_sample(
    x: float,
    y: float,
    *,
    max_depth: int,
    seed: int = 0,
    diffuse: str = "cube",
) -> tuple[float, float, float]:
    """Shade one primary ray through pixel coordinate (x, y).

    This is a Python-callable function for debugging and tests; it does not
    touch the pixel buffer.

    Args:
        x: Column coordinate, may be fractional.
        y: Row coordinate, may be fractional.
        max_depth: Bounce budget.
        seed: Seed for the ray's generator.
        diffuse: Bounce direction model.

    Returns:
        Tuple of (R, G, B) before clamping.

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    color = _shade_pixel_sample(
        x, y, width, height, max_depth, seed & 0xFFFFFFFF, _diffuse_index(diffuse)
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def get_pixels_numpy() -> npt.NDArray[np.int32]:
    """Get the rendered pixel grid.

    Returns:
        Array of shape (width, height, 3), dtype int32, indexed
        [column, row] with row 0 at the bottom.

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    full = _pixel_buffer.to_numpy()
    return np.ascontiguousarray(full[:width, :height, :], dtype=np.int32)
