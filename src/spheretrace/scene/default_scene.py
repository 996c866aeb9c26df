"""Default sphere scene.

A small sphere floating above a much larger "ground" sphere, seen by a
camera looking down -Z with +Y up:

- Subject sphere: radius 0.2, centered at (0, 0, -1)
- Ground sphere: radius 100, its top touching y = -0.2 just under the subject
- Camera eye at (0, 0, -0.4), image plane one unit further down -Z

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretrace.scene.default_scene import create_default_scene
    >>> from src.spheretrace.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_default_scene()
    >>> setup_camera(camera)
"""

from dataclasses import dataclass

from src.spheretrace.camera.pinhole import Camera, make_camera
from src.spheretrace.scene.manager import SceneManager


@dataclass
class DefaultSceneParams:
    """Parameters for the default scene.

    Attributes:
        subject_center: Center of the small sphere.
        subject_radius: Radius of the small sphere.
        ground_radius: Radius of the ground sphere. The ground is placed
            directly below the subject so the two touch.
        with_ground: Whether to add the ground sphere at all.
        camera_origin: The eye point.
        plane_distance: Distance from the eye to the image plane.
        aspect_ratio: Width over height of the image plane. Should match the
            image size to avoid stretching.
        projection: Camera projection, "screen" or "pinhole".
    """

    subject_center: tuple[float, float, float] = (0.0, 0.0, -1.0)
    subject_radius: float = 0.2
    ground_radius: float = 100.0
    with_ground: bool = True
    camera_origin: tuple[float, float, float] = (0.0, 0.0, -0.4)
    plane_distance: float = 1.0
    aspect_ratio: float = 4.0 / 3.0
    projection: str = "screen"


def create_default_scene(
    params: DefaultSceneParams | None = None,
) -> tuple[SceneManager, Camera]:
    """Create the default scene and its camera.

    The subject sphere is always added first, so it has index 0.

    Args:
        params: Scene parameters; defaults to DefaultSceneParams().

    Returns:
        A tuple (scene, camera).
    """
    if params is None:
        params = DefaultSceneParams()

    scene = SceneManager()
    scene.add_sphere(params.subject_center, params.subject_radius)

    if params.with_ground:
        cx, cy, cz = params.subject_center
        ground_center = (cx, cy - params.subject_radius - params.ground_radius, cz)
        scene.add_sphere(ground_center, params.ground_radius)

    half_height = 0.5
    camera = make_camera(
        origin=params.camera_origin,
        plane_distance=params.plane_distance,
        half_width=half_height * params.aspect_ratio,
        half_height=half_height,
        projection=params.projection,
    )
    scene.camera = camera

    return scene, camera
