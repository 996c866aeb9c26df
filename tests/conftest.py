"""Pytest configuration for raytracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls, which would reset
    the runtime and invalidate fields created by earlier imports.
    """
    ti.init(arch=ti.cpu)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene data before and after each test.

    This ensures tests are isolated from each other.
    """
    # Import here to avoid circular imports and ensure Taichi is initialized
    from src.spheretrace.core.integrator import clear_render_target
    from src.spheretrace.scene.intersection import clear_scene

    def _clear_all():
        clear_scene()
        clear_render_target()

    _clear_all()

    yield

    _clear_all()


@pytest.fixture
def query_scene():
    """Run the nearest-hit scene query for a ray from Python.

    Returns:
        A callable (origin, direction) -> (index, t).
    """
    from src.spheretrace.scene.intersection import intersect_scene, vec3

    index = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())

    @ti.kernel
    def _kernel(ox: ti.f32, oy: ti.f32, oz: ti.f32, dx: ti.f32, dy: ti.f32, dz: ti.f32):
        rec = intersect_scene(vec3(ox, oy, oz), vec3(dx, dy, dz))
        index[None] = rec.index
        t_val[None] = rec.t

    def _query(origin, direction):
        _kernel(*map(float, (*origin, *direction)))
        return int(index[None]), float(t_val[None])

    return _query
