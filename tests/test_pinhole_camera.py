"""Unit tests for the pinhole camera.

Tests cover:
- Camera corner validation
- make_camera layout
- Uploading camera state to Taichi fields
- Pixel-to-plane mapping and primary ray generation
- Screen and pinhole projections
"""

import math

import pytest
import taichi as ti

WIDTH = 8
HEIGHT = 6


def _plane_point(x, y):
    """Evaluate get_plane_point for the currently uploaded camera."""
    from src.spheretrace.camera.pinhole import get_plane_point

    result = ti.field(dtype=ti.math.vec3, shape=())

    @ti.kernel
    def test_kernel(x: ti.f32, y: ti.f32):
        result[None] = get_plane_point(x, y, WIDTH, HEIGHT)

    test_kernel(x, y)
    r = result[None]
    return (float(r[0]), float(r[1]), float(r[2]))


def _primary_ray(x, y):
    """Evaluate get_ray for the currently uploaded camera."""
    from src.spheretrace.camera.pinhole import get_ray

    origin = ti.field(dtype=ti.math.vec3, shape=())
    direction = ti.field(dtype=ti.math.vec3, shape=())

    @ti.kernel
    def test_kernel(x: ti.f32, y: ti.f32):
        ray = get_ray(x, y, WIDTH, HEIGHT)
        origin[None] = ray.origin
        direction[None] = ray.direction

    test_kernel(x, y)
    o, d = origin[None], direction[None]
    return (float(o[0]), float(o[1]), float(o[2])), (float(d[0]), float(d[1]), float(d[2]))


def _assert_close(actual, expected, tol=1e-5):
    for a, e in zip(actual, expected):
        assert abs(a - e) < tol, f"{actual} != {expected}"


class TestCameraValidation:
    """Tests for Camera construction."""

    def test_valid_camera(self):
        """Test a rectangle of corners is accepted."""
        from src.spheretrace.camera.pinhole import Camera

        camera = Camera(
            origin=(0.0, 0.0, 0.0),
            corners=((-1, -1, -1), (1, -1, -1), (-1, 1, -1), (1, 1, -1)),
        )
        assert camera.horizontal == (2, 0, 0)
        assert camera.vertical == (0, 2, 0)

    def test_wrong_corner_count(self):
        """Test fewer than four corners are rejected."""
        from src.spheretrace.camera.pinhole import Camera

        with pytest.raises(ValueError, match="4 corners"):
            Camera(origin=(0.0, 0.0, 0.0), corners=((-1, -1, -1), (1, -1, -1), (-1, 1, -1)))

    def test_inconsistent_fourth_corner(self):
        """Test corner 3 must complete the parallelogram."""
        from src.spheretrace.camera.pinhole import Camera

        with pytest.raises(ValueError, match="corner 3"):
            Camera(
                origin=(0.0, 0.0, 0.0),
                corners=((-1, -1, -1), (1, -1, -1), (-1, 1, -1), (1, 2, -1)),
            )

    def test_degenerate_plane(self):
        """Test collinear corners are rejected."""
        from src.spheretrace.camera.pinhole import Camera

        with pytest.raises(ValueError, match="span a plane"):
            Camera(
                origin=(0.0, 0.0, 0.0),
                corners=((0, 0, -1), (1, 0, -1), (2, 0, -1), (3, 0, -1)),
            )

    def test_unknown_projection(self):
        """Test only the screen and pinhole projections are accepted."""
        from src.spheretrace.camera.pinhole import Camera

        with pytest.raises(ValueError, match="projection"):
            Camera(
                origin=(0.0, 0.0, 0.0),
                corners=((-1, -1, -1), (1, -1, -1), (-1, 1, -1), (1, 1, -1)),
                projection="orthographic",
            )

    def test_bad_origin(self):
        """Test the origin needs three components."""
        from src.spheretrace.camera.pinhole import Camera

        with pytest.raises(ValueError, match="origin"):
            Camera(
                origin=(0.0, 0.0),
                corners=((-1, -1, -1), (1, -1, -1), (-1, 1, -1), (1, 1, -1)),
            )


class TestMakeCamera:
    """Tests for the make_camera helper."""

    def test_corner_layout(self):
        """Test corners are lower-left, lower-right, upper-left, upper-right."""
        from src.spheretrace.camera.pinhole import make_camera

        camera = make_camera(origin=(0.0, 0.0, -0.4), plane_distance=1.0,
                             half_width=2.0, half_height=1.5)
        assert camera.origin == (0.0, 0.0, -0.4)
        _assert_close(camera.corners[0], (-2.0, -1.5, -1.4))
        _assert_close(camera.corners[1], (2.0, -1.5, -1.4))
        _assert_close(camera.corners[2], (-2.0, 1.5, -1.4))
        _assert_close(camera.corners[3], (2.0, 1.5, -1.4))
        assert camera.projection == "screen"

    @pytest.mark.parametrize(
        "kwargs",
        [{"plane_distance": 0.0}, {"half_width": -1.0}, {"half_height": 0.0}],
    )
    def test_non_positive_extent(self, kwargs):
        """Test every extent must be strictly positive."""
        from src.spheretrace.camera.pinhole import make_camera

        with pytest.raises(ValueError, match="positive"):
            make_camera(**kwargs)


class TestCameraSetup:
    """Tests for uploading camera state."""

    def test_setup_camera(self):
        """Test the uploaded fields match the camera."""
        from src.spheretrace.camera.pinhole import get_camera_info, make_camera, setup_camera

        camera = make_camera(origin=(1.0, 2.0, 3.0), plane_distance=2.0,
                             half_width=1.0, half_height=0.5)
        setup_camera(camera)

        info = get_camera_info()
        _assert_close(info["origin"], (1.0, 2.0, 3.0))
        _assert_close(info["corner"], (0.0, 1.5, 1.0))
        _assert_close(info["horizontal"], (2.0, 0.0, 0.0))
        _assert_close(info["vertical"], (0.0, 1.0, 0.0))
        assert info["projection"] == "screen"

    def test_setup_pinhole_projection(self):
        from src.spheretrace.camera.pinhole import get_camera_info, make_camera, setup_camera

        setup_camera(make_camera(projection="pinhole"))
        assert get_camera_info()["projection"] == "pinhole"

        setup_camera(make_camera())
        assert get_camera_info()["projection"] == "screen"


class TestRayGeneration:
    """Tests for mapping pixels onto the image plane."""

    @pytest.fixture(autouse=True)
    def _camera(self):
        from src.spheretrace.camera.pinhole import make_camera, setup_camera

        self.camera = make_camera(origin=(0.0, 0.0, -0.4), plane_distance=1.0,
                                  half_width=4.0 / 3.0, half_height=1.0)
        setup_camera(self.camera)

    def test_pixel_corners_map_to_plane_corners(self):
        """Test (0,0), (W,0), (0,H) and (W,H) land on the four corners."""
        _assert_close(_plane_point(0.0, 0.0), self.camera.corners[0])
        _assert_close(_plane_point(WIDTH, 0.0), self.camera.corners[1])
        _assert_close(_plane_point(0.0, HEIGHT), self.camera.corners[2])
        _assert_close(_plane_point(WIDTH, HEIGHT), self.camera.corners[3])

    def test_image_center(self):
        """Test the middle of the image maps onto the view axis."""
        _assert_close(_plane_point(WIDTH / 2, HEIGHT / 2), (0.0, 0.0, -1.4))

    def test_mapping_is_affine(self):
        """Test increasing x moves right and increasing y moves up."""
        left = _plane_point(1.0, 2.0)
        right = _plane_point(2.0, 2.0)
        up = _plane_point(1.0, 3.0)
        _assert_close((right[0] - left[0], right[1] - left[1]), (1.0 / 3.0, 0.0))
        _assert_close((up[0] - left[0], up[1] - left[1]), (0.0, 1.0 / 3.0))

    def test_ray_direction_is_plane_point(self):
        """Test the default projection uses the plane point as the direction.

        The eye is off the world origin, so the ray leaves the eye along the
        plane point's position vector rather than through the plane point.
        """
        origin, direction = _primary_ray(0.0, 0.0)
        _assert_close(origin, (0.0, 0.0, -0.4))

        norm = math.sqrt(sum(c * c for c in direction))
        assert abs(norm - 1.0) < 1e-5

        target = (-4.0 / 3.0, -1.0, -1.4)
        target_len = math.sqrt(sum(c * c for c in target))
        _assert_close(direction, [c / target_len for c in target])

    def test_upper_left_ray_direction(self):
        _, direction = _primary_ray(0.0, HEIGHT)
        target = self.camera.corners[2]
        target_len = math.sqrt(sum(c * c for c in target))
        _assert_close(direction, [c / target_len for c in target])

    def test_center_ray_looks_down_negative_z(self):
        """Test the central ray points along -Z."""
        _, direction = _primary_ray(WIDTH / 2, HEIGHT / 2)
        _assert_close(direction, (0.0, 0.0, -1.0))


class TestPinholeProjection:
    """Tests for rays aimed from the eye through the image plane."""

    @pytest.fixture(autouse=True)
    def _camera(self):
        from src.spheretrace.camera.pinhole import make_camera, setup_camera

        self.camera = make_camera(origin=(0.0, 0.0, -0.4), plane_distance=1.0,
                                  half_width=4.0 / 3.0, half_height=1.0,
                                  projection="pinhole")
        setup_camera(self.camera)

    def test_ray_from_eye_through_plane(self):
        """Test the direction points from the eye to the plane point."""
        origin, direction = _primary_ray(0.0, HEIGHT)
        _assert_close(origin, (0.0, 0.0, -0.4))

        target = self.camera.corners[2]
        offset = [t - o for t, o in zip(target, origin)]
        offset_len = math.sqrt(sum(c * c for c in offset))
        _assert_close(direction, [c / offset_len for c in offset])

    def test_center_ray_looks_down_negative_z(self):
        _, direction = _primary_ray(WIDTH / 2, HEIGHT / 2)
        _assert_close(direction, (0.0, 0.0, -1.0))

    def test_projections_agree_with_eye_at_origin(self):
        """Test both projections give the same ray when the eye is the origin."""
        from src.spheretrace.camera.pinhole import make_camera, setup_camera

        setup_camera(make_camera(half_width=4.0 / 3.0, projection="pinhole"))
        pinhole = _primary_ray(1.5, 2.5)

        setup_camera(make_camera(half_width=4.0 / 3.0, projection="screen"))
        screen = _primary_ray(1.5, 2.5)

        _assert_close(pinhole[0], screen[0])
        _assert_close(pinhole[1], screen[1])
