"""Preview module for image output.

Components:
    export: PPM (P3) and PNG writers for rendered pixel grids

Example:
    >>> from src.spheretrace.preview import save_image
    >>> save_image(pixels, "output.ppm")
"""

from src.spheretrace.preview.export import (
    format_ppm,
    grid_to_image,
    save_image,
    save_png,
    write_ppm,
)

__all__ = [
    "format_ppm",
    "write_ppm",
    "save_png",
    "save_image",
    "grid_to_image",
]
