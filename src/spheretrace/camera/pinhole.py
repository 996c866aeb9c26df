"""Pinhole camera mapping pixel coordinates onto a rectangular image plane.

The camera is an eye point plus the four corners of the image plane. Pixel
coordinates map affinely onto the plane:

    point = corners[0] + (x / width) * (corners[1] - corners[0])
                       + (y / height) * (corners[2] - corners[0])

Primary rays always start at the eye. Their direction depends on the
camera projection:

    "screen"   direction = point, the plane point taken as a position
               vector, the default
    "pinhole"  direction = point - eye, a ray through the plane point

The two agree when the eye sits at the world origin. Corner order
follows the pixel grid, whose row 0 is the bottom row of the output image:

    corners[0]  pixel (0, 0)          lower-left
    corners[1]  pixel (width, 0)      lower-right
    corners[2]  pixel (0, height)     upper-left
    corners[3]  pixel (width, height) upper-right

Because the mapping only uses the corner vectors, the image plane can face
any direction; which world axis is "vertical on screen" is decided entirely
by the corners. make_camera builds the usual layout: looking down -Z with +Y
up, which is also the "up" the sky gradient uses.

Example:
    >>> from src.spheretrace.camera.pinhole import make_camera, setup_camera, get_ray
    >>> camera = make_camera(origin=(0.0, 0.0, -0.4), plane_distance=1.0,
    ...                      half_width=1.0, half_height=0.75)
    >>> setup_camera(camera)
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(320.0, 240.0, 640, 480)  # Ray through image center
"""

from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from src.spheretrace.core.ray import Ray, make_ray, vec3

# Tolerance used when checking that the corners form a parallelogram
CORNER_TOLERANCE = 1e-6

# Projection name -> id stored in the camera field
PROJECTION_SCREEN = 0
PROJECTION_PINHOLE = 1
CAMERA_PROJECTIONS = {"screen": PROJECTION_SCREEN, "pinhole": PROJECTION_PINHOLE}

Point = tuple[float, float, float]


# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class Camera:
    """Eye point and image plane corners.

    Attributes:
        origin: The eye point. Every primary ray starts here.
        corners: The four image plane corners, in the order lower-left,
            lower-right, upper-left, upper-right.
        projection: "screen" to use the plane point itself as the ray
            direction, or "pinhole" to aim from the eye through it.

    Raises:
        ValueError: If there are not exactly four corners, if the plane edges
            are degenerate, or if corners[3] is not corners[1] + corners[2] -
            corners[0], or if the projection is unknown.
    """

    origin: Point
    corners: tuple[Point, Point, Point, Point]
    projection: str = "screen"

    def __post_init__(self) -> None:
        if self.projection not in CAMERA_PROJECTIONS:
            raise ValueError(
                f"Unknown camera projection {self.projection!r}, "
                f"expected one of {sorted(CAMERA_PROJECTIONS)}"
            )
        if len(self.origin) != 3:
            raise ValueError(f"Camera origin must have 3 components, got {self.origin!r}")
        if len(self.corners) != 4:
            raise ValueError(f"Camera needs exactly 4 corners, got {len(self.corners)}")

        c0, c1, c2, c3 = (np.asarray(c, dtype=np.float64) for c in self.corners)
        horizontal = c1 - c0
        vertical = c2 - c0

        if np.linalg.norm(np.cross(horizontal, vertical)) <= CORNER_TOLERANCE:
            raise ValueError("Camera corners do not span a plane")

        expected = c1 + c2 - c0
        scale = max(1.0, float(np.abs(expected).max()))
        if np.abs(c3 - expected).max() > CORNER_TOLERANCE * scale:
            raise ValueError(
                f"Camera corner 3 {tuple(c3)} does not complete the rectangle "
                f"(expected {tuple(expected)})"
            )

    @property
    def horizontal(self) -> Point:
        """Edge from the lower-left to the lower-right corner."""
        c0, c1 = self.corners[0], self.corners[1]
        return (c1[0] - c0[0], c1[1] - c0[1], c1[2] - c0[2])

    @property
    def vertical(self) -> Point:
        """Edge from the lower-left to the upper-left corner."""
        c0, c2 = self.corners[0], self.corners[2]
        return (c2[0] - c0[0], c2[1] - c0[1], c2[2] - c0[2])


def make_camera(
    origin: Point = (0.0, 0.0, 0.0),
    plane_distance: float = 1.0,
    half_width: float = 1.0,
    half_height: float = 1.0,
    projection: str = "screen",
) -> Camera:
    """Build a camera looking down -Z with +Y up and a centered image plane.

    Args:
        origin: The eye point.
        plane_distance: Distance from the eye to the image plane along -Z.
        half_width: Half the plane extent along X.
        half_height: Half the plane extent along Y.
        projection: Ray direction model, see Camera.

    Returns:
        A Camera whose image plane is centered on the view axis.

    Raises:
        ValueError: If any extent is not strictly positive.
    """
    if plane_distance <= 0.0 or half_width <= 0.0 or half_height <= 0.0:
        raise ValueError(
            "plane_distance, half_width and half_height must be positive, got "
            f"{plane_distance}, {half_width}, {half_height}"
        )
    ox, oy, oz = (float(v) for v in origin)
    z = oz - plane_distance
    return Camera(
        origin=(ox, oy, oz),
        corners=(
            (ox - half_width, oy - half_height, z),
            (ox + half_width, oy - half_height, z),
            (ox - half_width, oy + half_height, z),
            (ox + half_width, oy + half_height, z),
        ),
        projection=projection,
    )


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_plane_corner = ti.Vector.field(3, dtype=ti.f32, shape=())  # corners[0]
_plane_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())  # corners[1] - corners[0]
_plane_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())  # corners[2] - corners[0]
_camera_projection = ti.field(dtype=ti.i32, shape=())  # CAMERA_PROJECTIONS id


def setup_camera(camera: Camera) -> None:
    """Upload the camera state to the Taichi fields.

    Must be called before rendering, from Python scope.

    Args:
        camera: The camera to use for subsequent get_ray calls.
    """
    _camera_origin[None] = list(camera.origin)
    _plane_corner[None] = list(camera.corners[0])
    _plane_horizontal[None] = list(camera.horizontal)
    _plane_vertical[None] = list(camera.vertical)
    _camera_projection[None] = CAMERA_PROJECTIONS[camera.projection]


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def get_plane_point(x: ti.f32, y: ti.f32, width: ti.i32, height: ti.i32) -> vec3:
    """Map a (possibly fractional) pixel coordinate onto the image plane.

    Args:
        x: Column coordinate; 0 maps to the left edge, width to the right edge.
        y: Row coordinate; 0 maps to the bottom edge, height to the top edge.
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        The world-space point on the image plane.
    """
    u = x / ti.cast(width, ti.f32)
    v = y / ti.cast(height, ti.f32)
    return _plane_corner[None] + u * _plane_horizontal[None] + v * _plane_vertical[None]


@ti.func
def get_ray(x: ti.f32, y: ti.f32, width: ti.i32, height: ti.i32) -> Ray:
    """Generate the primary ray through a pixel coordinate.

    Args:
        x: Column coordinate, including any sub-pixel offset.
        y: Row coordinate, including any sub-pixel offset.
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        A Ray starting at the eye with a unit direction. Under the "screen"
        projection the direction is the plane point itself; under "pinhole"
        it points from the eye through the plane point.
    """
    origin = _camera_origin[None]
    point = get_plane_point(x, y, width, height)
    direction = point
    if _camera_projection[None] == PROJECTION_PINHOLE:
        direction = point - origin
    return make_ray(origin, direction)


@ti.func
def get_camera_origin() -> vec3:
    """Get the eye point in world space."""
    return _camera_origin[None]


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, object]:
    """Get the uploaded camera state for debugging.

    Returns:
        Dictionary with origin, corner, horizontal, vertical and projection.
    """

    def _read(f: ti.MatrixField) -> tuple[float, float, float]:
        value = f[None]
        return (float(value[0]), float(value[1]), float(value[2]))

    return {
        "origin": _read(_camera_origin),
        "corner": _read(_plane_corner),
        "horizontal": _read(_plane_horizontal),
        "vertical": _read(_plane_vertical),
        "projection": _projection_name(_camera_projection[None]),
    }


def _projection_name(projection_id: int) -> str:
    for name, value in CAMERA_PROJECTIONS.items():
        if value == projection_id:
            return name
    raise ValueError(f"Unknown camera projection id {projection_id}")
