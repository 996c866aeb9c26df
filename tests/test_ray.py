"""Unit tests for the ray module.

Tests cover:
- Ray dataclass, make_ray and ray_at
- Vector utility functions (dot, cross, length, normalize, angle_between)
- Zero-vector behavior of normalize and angle_between
"""

import math

import taichi as ti


class TestRayBasics:
    """Tests for Ray dataclass and basic operations."""

    def test_ray_at_origin(self):
        """Test ray_at returns origin when t=0."""
        from src.spheretrace.core.ray import Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(1.0, 2.0, 3.0), direction=vec3(0.0, 0.0, -1.0))
            result[None] = ray_at(ray, 0.0)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 2.0) < 1e-6
        assert abs(r[2] - 3.0) < 1e-6

    def test_ray_at_positive_t(self):
        """Test ray_at computes the point origin + t * direction."""
        from src.spheretrace.core.ray import Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(1.0, 0.0, 0.0), direction=vec3(0.0, 1.0, 0.0))
            result[None] = ray_at(ray, 2.5)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 2.5) < 1e-6
        assert abs(r[2] - 0.0) < 1e-6

    def test_ray_at_negative_t(self):
        """Test ray_at handles negative t (behind origin)."""
        from src.spheretrace.core.ray import Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 1.0, 0.0))
            result[None] = ray_at(ray, -3.0)

        test_kernel()
        assert abs(result[None][1] - (-3.0)) < 1e-6

    def test_make_ray_normalizes_direction(self):
        """Test make_ray stores a unit direction."""
        from src.spheretrace.core.ray import make_ray, vec3

        direction = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(3.0, 0.0, 4.0))
            direction[None] = ray.direction

        test_kernel()
        d = direction[None]
        assert abs(d[0] - 0.6) < 1e-6
        assert abs(d[1] - 0.0) < 1e-6
        assert abs(d[2] - 0.8) < 1e-6

    def test_make_ray_zero_direction(self):
        """Test make_ray with a zero direction keeps a zero direction."""
        from src.spheretrace.core.ray import make_ray, vec3

        direction = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(1.0, 1.0, 1.0), vec3(0.0, 0.0, 0.0))
            direction[None] = ray.direction

        test_kernel()
        d = direction[None]
        assert d[0] == 0.0 and d[1] == 0.0 and d[2] == 0.0


class TestVectorUtilities:
    """Tests for vector helper functions."""

    def test_dot_and_cross(self):
        """Test dot and cross products of basis vectors."""
        from src.spheretrace.core.ray import cross, dot, vec3

        dot_result = ti.field(dtype=ti.f32, shape=())
        cross_result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            dot_result[None] = dot(vec3(1.0, 2.0, 3.0), vec3(4.0, -5.0, 6.0))
            cross_result[None] = cross(vec3(1.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        assert abs(dot_result[None] - 12.0) < 1e-6
        c = cross_result[None]
        assert abs(c[0]) < 1e-6
        assert abs(c[1]) < 1e-6
        assert abs(c[2] - 1.0) < 1e-6

    def test_length(self):
        """Test length and length_squared of a 3-4-12 vector."""
        from src.spheretrace.core.ray import length, length_squared, vec3

        len_result = ti.field(dtype=ti.f32, shape=())
        len_sq_result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            v = vec3(3.0, 4.0, 12.0)
            len_result[None] = length(v)
            len_sq_result[None] = length_squared(v)

        test_kernel()
        assert abs(len_result[None] - 13.0) < 1e-5
        assert abs(len_sq_result[None] - 169.0) < 1e-4

    def test_normalize(self):
        """Test normalize returns a unit vector with the same direction."""
        from src.spheretrace.core.ray import normalize, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = normalize(vec3(0.0, -2.0, 0.0))

        test_kernel()
        r = result[None]
        assert abs(r[0]) < 1e-6
        assert abs(r[1] - (-1.0)) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_normalize_zero_vector(self):
        """Test normalize of the zero vector is the zero vector, not NaN."""
        from src.spheretrace.core.ray import normalize, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = normalize(vec3(0.0, 0.0, 0.0))

        test_kernel()
        r = result[None]
        for i in range(3):
            assert not math.isnan(r[i])
            assert r[i] == 0.0

    def test_angle_between(self):
        """Test angle_between for orthogonal, parallel and opposite vectors."""
        from src.spheretrace.core.ray import angle_between, vec3

        results = ti.field(dtype=ti.f32, shape=3)

        @ti.kernel
        def test_kernel():
            results[0] = angle_between(vec3(1.0, 0.0, 0.0), vec3(0.0, 3.0, 0.0))
            results[1] = angle_between(vec3(2.0, 2.0, 0.0), vec3(1.0, 1.0, 0.0))
            results[2] = angle_between(vec3(0.0, 0.0, 1.0), vec3(0.0, 0.0, -5.0))

        test_kernel()
        assert abs(results[0] - math.pi / 2) < 1e-5
        assert abs(results[1]) < 1e-3
        assert abs(results[2] - math.pi) < 1e-3

    def test_angle_between_zero_vector(self):
        """Test angle_between with a zero-length operand returns 0."""
        from src.spheretrace.core.ray import angle_between, vec3

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = angle_between(vec3(0.0, 0.0, 0.0), vec3(1.0, 0.0, 0.0))

        test_kernel()
        assert result[None] == 0.0

    def test_near_zero(self):
        """Test near_zero flags only vectors with all tiny components."""
        from src.spheretrace.core.ray import near_zero, vec3

        results = ti.field(dtype=ti.i32, shape=2)

        @ti.kernel
        def test_kernel():
            results[0] = near_zero(vec3(1e-9, -1e-9, 0.0))
            results[1] = near_zero(vec3(1e-9, 1e-3, 0.0))

        test_kernel()
        assert results[0] == 1
        assert results[1] == 0
