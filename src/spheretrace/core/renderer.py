"""Frame renderer tying camera, scene and integrator together.

This module provides the single-call entry point ``render`` and the
FrameRenderer class it is built on. FrameRenderer renders the image in bands
of rows so callers can follow progress:
- Blocking render with an optional progress callback
- Generator-based render yielding after every band
- PPM and PNG output of the finished pixel grid

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretrace.camera.pinhole import make_camera
    >>> from src.spheretrace.core.renderer import render
    >>> from src.spheretrace.scene.manager import SphereInfo
    >>>
    >>> camera = make_camera((0.0, 0.0, -0.4), 1.0, 1.0, 0.75)
    >>> pixels = render(camera, [SphereInfo((0.0, 0.0, -1.0), 0.2)], 64, 48,
    ...                 samples=8, max_depth=10)
    >>> pixels.shape
    (64, 48, 3)
"""

from __future__ import annotations

from collections.abc import Callable, Generator, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np
import numpy.typing as npt

from src.spheretrace.camera.pinhole import Camera, setup_camera
from src.spheretrace.core.integrator import (
    DIFFUSE_MODELS,
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    get_pixels_numpy,
    render_rows,
    setup_render_target,
)
from src.spheretrace.scene.manager import SceneManager, SphereInfo

# Type alias for progress callback
# Callback receives (rows_done, rows_total)
ProgressCallback = Callable[[int, int], None]

# Default number of rows rendered per kernel launch
DEFAULT_BATCH_ROWS = 16


@dataclass(frozen=True)
class RenderSettings:
    """Image size and sampling parameters for a render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples: Samples per pixel.
        max_depth: Maximum number of bounces per primary ray.
        seed: Seed for the per-pixel random generators.
        diffuse: Bounce direction model, "cube" (the default) or
            "lambertian".

    Raises:
        ValueError: If any parameter is out of range.
    """

    width: int = 640
    height: int = 480
    samples: int = 16
    max_depth: int = 100
    seed: int = 0
    diffuse: str = "cube"

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {self.width}x{self.height}")
        if self.width > MAX_IMAGE_WIDTH or self.height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) exceed maximum supported "
                f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )
        if self.samples <= 0:
            raise ValueError(f"samples must be positive, got {self.samples}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.diffuse not in DIFFUSE_MODELS:
            raise ValueError(
                f"Unknown diffuse model {self.diffuse!r}, expected one of {sorted(DIFFUSE_MODELS)}"
            )


class FrameRenderer:
    """Renders one frame of a scene through a camera.

    The renderer owns the render target for its image size. Scene spheres
    and camera state live in module-level Taichi fields, so only one frame
    can be configured at a time. Every render uploads the camera, and the
    scene when one is given, so several renderers can take turns.

    Attributes:
        camera: The camera rays are generated from.
        settings: Image size and sampling parameters.
        scene: The scene to upload before rendering. When None, whatever
            spheres the Taichi fields hold are rendered.
    """

    def __init__(
        self,
        camera: Camera,
        settings: RenderSettings,
        scene: SceneManager | None = None,
    ) -> None:
        """Initialize the renderer.

        Args:
            camera: The camera to render through.
            settings: Image size and sampling parameters.
            scene: Optional scene to render.
        """
        self.camera = camera
        self.settings = settings
        self.scene = scene
        self._rows_done = 0
        setup_render_target(settings.width, settings.height)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self.settings.width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self.settings.height

    @property
    def rows_done(self) -> int:
        """Number of rows rendered since the last reset."""
        return self._rows_done

    @property
    def is_complete(self) -> bool:
        """Whether every row has been rendered."""
        return self._rows_done >= self.height

    def reset(self) -> None:
        """Clear the pixel buffer so the frame can be rendered again."""
        setup_render_target(self.width, self.height)
        self._rows_done = 0

    def render(
        self,
        batch_rows: int = DEFAULT_BATCH_ROWS,
        callback: ProgressCallback | None = None,
    ) -> npt.NDArray[np.int32]:
        """Render the whole frame.

        Args:
            batch_rows: Number of rows per kernel launch. Larger batches
                reduce launch overhead but report progress less often. The
                image does not depend on this value.
            callback: Optional callback called after each batch with
                (rows_done, rows_total).

        Returns:
            The pixel grid, see get_pixels().

        Example:
            >>> def progress(done, total):
            ...     print(f"Progress: {done}/{total} rows")
            >>> pixels = renderer.render(batch_rows=8, callback=progress)
        """
        for done, total in self.render_progressive(batch_rows=batch_rows):
            if callback is not None:
                callback(done, total)
        return self.get_pixels()

    def render_progressive(
        self,
        batch_rows: int = DEFAULT_BATCH_ROWS,
    ) -> Generator[tuple[int, int], None, None]:
        """Render the frame band by band, yielding progress after each band.

        Starts over from row 0 on every call.

        Args:
            batch_rows: Number of rows per band.

        Yields:
            Tuple of (rows_done, rows_total).

        Raises:
            ValueError: If batch_rows is not positive.
        """
        if batch_rows <= 0:
            raise ValueError(f"batch_rows must be positive, got {batch_rows}")

        self.reset()
        setup_camera(self.camera)
        if self.scene is not None:
            self.scene.upload()

        while self._rows_done < self.height:
            row_end = min(self._rows_done + batch_rows, self.height)
            render_rows(
                self._rows_done,
                row_end,
                samples=self.settings.samples,
                max_depth=self.settings.max_depth,
                seed=self.settings.seed,
                diffuse=self.settings.diffuse,
            )
            self._rows_done = row_end
            yield (self._rows_done, self.height)

    def get_pixels(self) -> npt.NDArray[np.int32]:
        """Get the pixel grid.

        Returns:
            Array of shape (width, height, 3), dtype int32, indexed
            [column, row] with row 0 at the bottom. Rows not rendered yet
            are black.
        """
        return get_pixels_numpy()

    def save_ppm(self, filepath: str | Path) -> None:
        """Save the pixel grid as an ASCII PPM (P3) file."""
        from src.spheretrace.preview.export import write_ppm

        write_ppm(self.get_pixels(), filepath)

    def save_png(self, filepath: str | Path) -> None:
        """Save the pixel grid as a PNG file."""
        from src.spheretrace.preview.export import save_png

        save_png(self.get_pixels(), filepath)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"FrameRenderer(width={self.width}, height={self.height}, "
            f"samples={self.settings.samples}, rows_done={self.rows_done})"
        )


def render(
    camera: Camera,
    spheres: SceneManager | Sequence[SphereInfo] | Sequence[tuple[Any, float]],
    width: int,
    height: int,
    samples: int,
    max_depth: int,
    *,
    seed: int = 0,
    diffuse: str = "cube",
) -> npt.NDArray[np.int32]:
    """Render a sphere scene to a pixel grid.

    Args:
        camera: The camera to render through.
        spheres: A SceneManager, or an ordered sequence of SphereInfo
            records or (center, radius) pairs. Either way exactly these
            spheres are rendered, whatever was loaded before.
        width: Image width in pixels.
        height: Image height in pixels.
        samples: Samples per pixel.
        max_depth: Maximum number of bounces per primary ray.
        seed: Seed for the per-pixel random generators. The same seed, scene
            and settings always give the same image.
        diffuse: Bounce direction model, "cube" or "lambertian".

    Returns:
        Array of shape (width, height, 3), dtype int32, indexed [column, row]
        with row 0 at the bottom and channels in [0, 255].

    Raises:
        ValueError: If a sphere or setting is invalid.
    """
    settings = RenderSettings(
        width=width,
        height=height,
        samples=samples,
        max_depth=max_depth,
        seed=seed,
        diffuse=diffuse,
    )

    if isinstance(spheres, SceneManager):
        scene = spheres
    else:
        scene = SceneManager()
        scene.add_spheres(list(spheres))

    renderer = FrameRenderer(camera, settings, scene)
    return renderer.render(batch_rows=settings.height)
