"""Scene manager for building, validating and serializing sphere scenes.

The SceneManager is the host-side owner of the scene. It keeps an ordered
list of SphereInfo records, mirrors every sphere into the Taichi fields used
by intersect_scene, and converts the scene to and from plain dictionaries
and JSON files.

A scene file looks like:

    {
        "spheres": [
            {"center": [0.0, 0.0, -1.0], "radius": 0.2},
            {"center": [0.0, -100.2, -1.0], "radius": 100.0}
        ],
        "camera": {
            "origin": [0.0, 0.0, -0.4],
            "corners": [[-1.0, -0.75, -1.4], [1.0, -0.75, -1.4],
                        [-1.0, 0.75, -1.4], [1.0, 0.75, -1.4]],
            "projection": "screen"
        }
    }

The camera block is optional, and so is its "projection" key ("screen" or
"pinhole", default "screen").

The Taichi sphere fields are shared by every SceneManager. Call upload()
to make them hold this scene again after another scene has been built.

Example:
    >>> from src.spheretrace.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> scene.add_sphere(center=(0, 0, -1), radius=0.5)
    0
    >>> scene.get_sphere_count()
    1
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from src.spheretrace.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
)

if TYPE_CHECKING:
    from src.spheretrace.camera.pinhole import Camera


@dataclass(frozen=True)
class SphereInfo:
    """Host-side description of a sphere.

    Attributes:
        center: The center of the sphere.
        radius: The radius of the sphere, strictly positive.

    Raises:
        ValueError: If radius <= 0 or center does not have three components.
    """

    center: tuple[float, float, float]
    radius: float

    def __post_init__(self) -> None:
        if len(self.center) != 3:
            raise ValueError(f"Sphere center must have 3 components, got {self.center!r}")
        if not self.radius > 0.0:
            raise ValueError(f"Sphere radius must be positive, got {self.radius}")


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        spheres: List of sphere configurations.
        camera: Optional camera configuration.
    """

    spheres: list[dict[str, Any]] = field(default_factory=list)
    camera: dict[str, Any] | None = None


def _as_point(value: Any, what: str) -> tuple[float, float, float]:
    """Convert a 3-element sequence to a float tuple."""
    try:
        x, y, z = value
        return (float(x), float(y), float(z))
    except (TypeError, ValueError) as e:
        raise ValueError(f"{what} must be a list of 3 numbers, got {value!r}") from e


class SceneManager:
    """Ordered sphere scene mirrored into Taichi fields.

    Sphere order matters: the scene query resolves equal-distance hits in
    favor of the sphere added first.

    Attributes:
        spheres: List of SphereInfo in scene order.
        camera: Camera loaded from a scene file, if any.

    Example:
        >>> scene = SceneManager()
        >>> scene.add_sphere((0, 0, -1), 0.2)
        0
        >>> scene.add_sphere((0, -100.2, -1), 100.0)
        1
        >>> data = scene.to_dict()
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.spheres: list[SphereInfo] = []
        self.camera: Camera | None = None
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear the Taichi fields and local tracking."""
        clear_scene()
        self.spheres.clear()
        self.camera = None

    def clear(self) -> None:
        """Remove every sphere (and any loaded camera) from the scene."""
        self._clear_all()

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def add_sphere(self, center: tuple[float, float, float], radius: float) -> int:
        """Add a sphere to the scene.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere.

        Returns:
            The index of the added sphere.

        Raises:
            ValueError: If the sphere is degenerate.
            RuntimeError: If the maximum number of spheres is exceeded.
        """
        info = SphereInfo(center=_as_point(center, "center"), radius=float(radius))
        sphere_index = add_sphere(info.center, info.radius)
        self.spheres.append(info)
        return sphere_index

    def add_spheres(self, spheres: list[SphereInfo] | list[tuple[Any, float]]) -> None:
        """Add several spheres in order.

        Args:
            spheres: SphereInfo records or (center, radius) pairs.
        """
        for sphere in spheres:
            if isinstance(sphere, SphereInfo):
                self.add_sphere(sphere.center, sphere.radius)
            else:
                center, radius = sphere
                self.add_sphere(center, radius)

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return len(self.spheres)

    def upload(self) -> None:
        """Rewrite the Taichi sphere fields from this scene's sphere list.

        Another SceneManager, or a direct clear_scene/add_sphere call, may
        have replaced the field contents since these spheres were added.
        """
        clear_scene()
        for sphere in self.spheres:
            add_sphere(sphere.center, sphere.radius)

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object."""
        config = SceneConfig()

        for sphere in self.spheres:
            config.spheres.append(
                {
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                }
            )

        if self.camera is not None:
            config.camera = {
                "origin": list(self.camera.origin),
                "corners": [list(corner) for corner in self.camera.corners],
                "projection": self.camera.projection,
            }

        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Every entry is validated before the current scene is touched, so a
        bad configuration leaves the scene unchanged.

        Args:
            config: The scene configuration to load.

        Raises:
            ValueError: If the configuration contains invalid data.
            RuntimeError: If the configuration has more than MAX_SPHERES spheres.
        """
        from src.spheretrace.camera.pinhole import Camera

        spheres: list[SphereInfo] = []
        for sphere_config in config.spheres:
            if not isinstance(sphere_config, dict):
                raise ValueError(f"Sphere entry must be an object, got {sphere_config!r}")
            if "center" not in sphere_config or "radius" not in sphere_config:
                raise ValueError(f"Sphere entry needs 'center' and 'radius': {sphere_config!r}")
            center = _as_point(sphere_config["center"], "center")
            try:
                radius = float(sphere_config["radius"])
            except (TypeError, ValueError) as e:
                raise ValueError(f"Invalid radius: {sphere_config['radius']!r}") from e
            spheres.append(SphereInfo(center=center, radius=radius))

        if len(spheres) > MAX_SPHERES:
            raise RuntimeError(
                f"Scene has {len(spheres)} spheres, the maximum is {MAX_SPHERES}"
            )

        camera: Camera | None = None
        if config.camera is not None:
            try:
                origin = config.camera["origin"]
                corners = config.camera["corners"]
            except KeyError as e:
                raise ValueError(f"Camera entry is missing {e.args[0]!r}") from e
            if len(corners) != 4:
                raise ValueError(f"Camera needs exactly 4 corners, got {len(corners)}")
            camera = Camera(
                origin=_as_point(origin, "camera origin"),
                corners=tuple(_as_point(c, "camera corner") for c in corners),
                projection=config.camera.get("projection", "screen"),
            )

        self.clear()
        self.add_spheres(spheres)
        self.camera = camera

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        config = self.to_config()
        data: dict[str, Any] = {"spheres": config.spheres}
        if config.camera is not None:
            data["camera"] = config.camera
        return data

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary.

        Args:
            data: Dictionary with a 'spheres' key and an optional 'camera' key.

        Raises:
            ValueError: If the dictionary is malformed.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Scene must be a JSON object, got {type(data).__name__}")
        unknown = set(data) - {"spheres", "camera"}
        if unknown:
            raise ValueError(f"Unknown scene keys: {sorted(unknown)}")
        config = SceneConfig(
            spheres=data.get("spheres", []),
            camera=data.get("camera"),
        )
        self.from_config(config)

    def save_json(self, filepath: str | Path) -> None:
        """Write the scene to a JSON file."""
        Path(filepath).write_text(json.dumps(self.to_dict(), indent=2))

    def load_json(self, filepath: str | Path) -> None:
        """Load the scene from a JSON file.

        Raises:
            ValueError: If the file is not valid JSON or not a valid scene.
        """
        try:
            data = json.loads(Path(filepath).read_text())
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid scene file {filepath}: {e}") from e
        self.from_dict(data)

    @staticmethod
    def get_max_spheres() -> int:
        """Get the maximum number of spheres supported."""
        return MAX_SPHERES
