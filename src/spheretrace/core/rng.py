"""Explicit pseudo-random number generation for Taichi kernels.

Every pixel owns a 32-bit generator state that is threaded through the
sampling call chain by value: each draw takes a state and returns the advanced
state together with the sample. States are derived from the render seed and
the pixel index with a Wang hash, then advanced with xorshift32. Because no
state is shared between pixels, a render is reproducible for a given seed no
matter how the backend schedules the parallel pixel loop.

Example:
    >>> @ti.kernel
    ... def draw() -> ti.f32:
    ...     state = seed_rng(ti.u32(7), ti.u32(0))
    ...     state, x = random_float(state)
    ...     return x
"""

import taichi as ti
import taichi.math as tm

from src.spheretrace.core.ray import length_squared, normalize

vec3 = tm.vec3

# Upper bound on rejection sampling rounds. The acceptance rate of both
# samplers below is close to one half, so this is never reached in practice.
MAX_REJECTION_ROUNDS = 64

# 2^-24: maps the top 24 bits of a state onto [0, 1)
_INV_2_24 = 1.0 / 16777216.0


@ti.func
def wang_hash(key: ti.u32) -> ti.u32:
    """Scramble a 32-bit key with Thomas Wang's integer hash."""
    h = key
    h = (h ^ ti.cast(61, ti.u32)) ^ ti.bit_shr(h, 16)
    h = h * ti.cast(9, ti.u32)
    h = h ^ ti.bit_shr(h, 4)
    h = h * ti.cast(0x27D4EB2D, ti.u32)
    h = h ^ ti.bit_shr(h, 15)
    return h


@ti.func
def seed_rng(seed: ti.u32, stream: ti.u32) -> ti.u32:
    """Derive the initial generator state for one stream (one pixel).

    Args:
        seed: The render-wide seed.
        stream: Stream identifier, typically the flattened pixel index.

    Returns:
        A non-zero generator state.
    """
    state = wang_hash(seed ^ wang_hash(stream))
    # xorshift has a fixed point at zero
    if state == ti.cast(0, ti.u32):
        state = ti.cast(1, ti.u32)
    return state


@ti.func
def next_state(state: ti.u32) -> ti.u32:
    """Advance a generator state with xorshift32 (13, 17, 5)."""
    x = state
    x = x ^ (x << 13)
    x = x ^ ti.bit_shr(x, 17)
    x = x ^ (x << 5)
    return x


@ti.func
def random_float(state: ti.u32):
    """Draw a uniform float in [0, 1).

    Args:
        state: The current generator state.

    Returns:
        A tuple (new_state, value).
    """
    new_state = next_state(state)
    value = ti.cast(ti.bit_shr(new_state, 8), ti.f32) * _INV_2_24
    return new_state, value


@ti.func
def random_vec3(state: ti.u32):
    """Draw a vector with components uniform in [0, 1).

    Returns:
        A tuple (new_state, vector).
    """
    s = state
    s, x = random_float(s)
    s, y = random_float(s)
    s, z = random_float(s)
    return s, vec3(x, y, z)


@ti.func
def random_in_unit_cube_shell(state: ti.u32):
    """Draw from the unit cube [0, 1)^3 outside the unit sphere.

    Components are redrawn until the squared length is at least 1. This is
    the default bounce sampler: it keeps only the part of
    the positive octant cube that lies outside the unit sphere, so every
    sample points into the +x +y +z octant.

    Returns:
        A tuple (new_state, vector) with length_squared(vector) >= 1.
    """
    s = state
    # (1, 1, 1) is inside the acceptance region
    p = vec3(1.0, 1.0, 1.0)
    found = 0
    for _ in range(MAX_REJECTION_ROUNDS):
        if found == 0:
            s, candidate = random_vec3(s)
            if length_squared(candidate) >= 1.0:
                p = candidate
                found = 1
    return s, p


@ti.func
def random_in_unit_sphere(state: ti.u32):
    """Draw a point uniformly inside the unit sphere by rejection.

    Returns:
        A tuple (new_state, point) with length_squared(point) < 1.
    """
    s = state
    p = vec3(0.0, 0.0, 0.0)
    found = 0
    for _ in range(MAX_REJECTION_ROUNDS):
        if found == 0:
            s, candidate = random_vec3(s)
            candidate = candidate * 2.0 - 1.0
            if length_squared(candidate) < 1.0:
                p = candidate
                found = 1
    return s, p


@ti.func
def random_unit_vector(state: ti.u32):
    """Draw a unit vector uniformly distributed on the sphere.

    Returns:
        A tuple (new_state, unit_vector). The zero vector is returned in the
        vanishingly rare case the sphere sample was the origin.
    """
    s, p = random_in_unit_sphere(state)
    return s, normalize(p)
