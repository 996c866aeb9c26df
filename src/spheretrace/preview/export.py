"""Image export utilities for rendered pixel grids.

A pixel grid is an integer array of shape (width, height, 3) indexed
[column, row] with row 0 at the bottom of the image.

Supported formats:
    - PPM, ASCII "P3" variant, one "R G B" line per pixel
    - PNG (8-bit RGB via Pillow)

PPM layout:

    P3
    <width> <height>
    255
    <R> <G> <B>        rows height-1 down to 0, columns left to right

Example:
    >>> from src.spheretrace.preview.export import write_ppm
    >>> write_ppm(pixels, "output.ppm")
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

# Largest channel value written to the PPM header
PPM_MAX_VALUE = 255


def _validate_grid(grid: npt.ArrayLike) -> npt.NDArray[np.int64]:
    """Check the grid shape and clamp its channels to [0, 255].

    Raises:
        ValueError: If the grid is not a non-empty (width, height, 3) array.
    """
    array = np.asarray(grid)
    if array.ndim != 3 or array.shape[2] != 3:
        raise ValueError(f"Pixel grid must have shape (width, height, 3), got {array.shape}")
    if array.shape[0] == 0 or array.shape[1] == 0:
        raise ValueError(f"Pixel grid must not be empty, got {array.shape}")
    # Truncate toward zero, matching the integer conversion of the renderer
    return np.clip(np.trunc(array), 0, PPM_MAX_VALUE).astype(np.int64)


def grid_to_image(grid: npt.ArrayLike) -> npt.NDArray[np.uint8]:
    """Convert a pixel grid to a top-down image array.

    Args:
        grid: Pixel grid of shape (width, height, 3), row 0 at the bottom.

    Returns:
        Array of shape (height, width, 3), dtype uint8, row 0 at the top.
    """
    pixels = _validate_grid(grid)

    # Transpose from (width, height, 3) to (height, width, 3) for standard image format
    image = np.transpose(pixels, (1, 0, 2))

    # Flip vertically (grid rows count up from the bottom, images from the top)
    image = np.flipud(image)

    return np.ascontiguousarray(image, dtype=np.uint8)


def format_ppm(grid: npt.ArrayLike) -> str:
    """Encode a pixel grid as ASCII PPM (P3) text.

    Channels outside [0, 255] are clamped.

    Args:
        grid: Pixel grid of shape (width, height, 3), row 0 at the bottom.

    Returns:
        The full file contents, ending with a newline.
    """
    image = grid_to_image(grid)
    height, width, _ = image.shape

    lines = ["P3", f"{width} {height}", str(PPM_MAX_VALUE)]
    lines.extend(f"{r} {g} {b}" for r, g, b in image.reshape(-1, 3).tolist())
    return "\n".join(lines) + "\n"


def write_ppm(grid: npt.ArrayLike, filepath: str | Path) -> None:
    """Write a pixel grid to an ASCII PPM (P3) file.

    Args:
        grid: Pixel grid of shape (width, height, 3), row 0 at the bottom.
        filepath: Output file path (should end in .ppm).
    """
    Path(filepath).write_text(format_ppm(grid), encoding="ascii")


def save_png(grid: npt.ArrayLike, filepath: str | Path) -> None:
    """Write a pixel grid to a PNG file.

    Args:
        grid: Pixel grid of shape (width, height, 3), row 0 at the bottom.
        filepath: Output file path (should end in .png).
    """
    image = grid_to_image(grid)
    pil_image = PILImage.fromarray(image)
    pil_image.save(str(filepath))


def save_image(grid: npt.ArrayLike, filepath: str | Path) -> Path:
    """Write a pixel grid, choosing the format from the file extension.

    Args:
        grid: Pixel grid of shape (width, height, 3), row 0 at the bottom.
        filepath: Output path ending in .ppm or .png.

    Returns:
        The output path.

    Raises:
        ValueError: If the extension is not supported.
    """
    path = Path(filepath)
    suffix = path.suffix.lower()
    if suffix == ".ppm":
        write_ppm(grid, path)
    elif suffix == ".png":
        save_png(grid, path)
    else:
        raise ValueError(f"Unsupported output format {suffix!r}, use .ppm or .png")
    return path
