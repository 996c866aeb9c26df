#!/usr/bin/env python3
"""Render a sphere scene to a PPM or PNG file.

Renders the default scene (a small sphere above a ground sphere under a sky
gradient), or a scene loaded from a JSON file, and writes the result.

Usage:
    python -m examples.render_spheres [options]

Options:
    --width WIDTH         Image width in pixels (default: 640)
    --height HEIGHT       Image height in pixels (default: 480)
    --samples SAMPLES     Samples per pixel (default: 16)
    --max-depth DEPTH     Maximum bounces per ray (default: 100)
    --seed SEED           Random seed (default: 0)
    --diffuse MODEL       Bounce model: cube or lambertian (default: cube)
    --projection MODE     Camera projection: screen or pinhole (default: the
                          scene's own, screen for the built-in scene)
    --scene FILE          JSON scene file (default: built-in scene)
    --output OUTPUT       Output file, .ppm or .png (default: output.ppm)
    --batch-rows ROWS     Rows per progress update (default: 16)
    --cpu                 Force the CPU backend
    --quiet               Suppress progress output

Example:
    python -m examples.render_spheres --width 320 --height 240 --samples 32
"""

from __future__ import annotations

import argparse
import sys
import time
from dataclasses import replace
from pathlib import Path

import taichi as ti


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a sphere scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=640,
        help="Image width in pixels (default: 640)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=480,
        help="Image height in pixels (default: 480)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=16,
        help="Samples per pixel (default: 16)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=100,
        help="Maximum bounces per ray (default: 100)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Random seed (default: 0)",
    )
    parser.add_argument(
        "--diffuse",
        choices=["cube", "lambertian"],
        default="cube",
        help="Bounce direction model (default: cube)",
    )
    parser.add_argument(
        "--projection",
        choices=["screen", "pinhole"],
        default=None,
        help="Camera projection (default: the scene's own, screen for the built-in scene)",
    )
    parser.add_argument(
        "--scene",
        type=str,
        default=None,
        help="JSON scene file (default: built-in scene)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="output.ppm",
        help="Output file path, .ppm or .png (default: output.ppm)",
    )
    parser.add_argument(
        "--batch-rows",
        type=int,
        default=16,
        help="Rows per progress update (default: 16)",
    )
    parser.add_argument(
        "--cpu",
        action="store_true",
        help="Force the CPU backend",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args(argv)


def render_spheres(
    width: int = 640,
    height: int = 480,
    num_samples: int = 16,
    max_depth: int = 100,
    seed: int = 0,
    diffuse: str = "cube",
    projection: str | None = None,
    scene_path: str | None = None,
    output_path: str = "output.ppm",
    batch_rows: int = 16,
    quiet: bool = False,
) -> Path:
    """Render a scene and save it to file.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        num_samples: Samples per pixel.
        max_depth: Maximum bounces per ray.
        seed: Random seed.
        diffuse: Bounce direction model.
        projection: Camera projection override, "screen" or "pinhole".
        scene_path: Optional JSON scene file. Its camera is used if it has
            one, otherwise the default camera is used.
        output_path: Output file path (.ppm or .png).
        batch_rows: Rows to render between progress updates.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from src.spheretrace.core.renderer import FrameRenderer, RenderSettings
    from src.spheretrace.preview.export import save_image
    from src.spheretrace.scene.default_scene import DefaultSceneParams, create_default_scene

    settings = RenderSettings(
        width=width,
        height=height,
        samples=num_samples,
        max_depth=max_depth,
        seed=seed,
        diffuse=diffuse,
    )

    scene, camera = create_default_scene(DefaultSceneParams(aspect_ratio=width / height))
    if scene_path is not None:
        if not quiet:
            print(f"Loading scene from {scene_path}...")
        scene.load_json(scene_path)
        if scene.camera is not None:
            camera = scene.camera
    if projection is not None:
        camera = replace(camera, projection=projection)

    if not quiet:
        print(f"Rendering {scene.get_sphere_count()} spheres ({width}x{height})...")
        print(f"Rendering {num_samples} samples per pixel, max depth {max_depth}...")

    renderer = FrameRenderer(camera, settings, scene)

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            rows_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} rows "
                f"({progress_pct:.1f}%) - {rows_per_sec:.1f} rows/s",
                end="",
                flush=True,
            )

    pixels = renderer.render(batch_rows=batch_rows, callback=progress_callback)

    if not quiet:
        print()  # Newline after progress

    output_file = save_image(pixels, output_path)

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    # Initialize Taichi
    # Use GPU if available, fall back to CPU
    if args.cpu:
        ti.init(arch=ti.cpu)
    else:
        try:
            ti.init(arch=ti.gpu)
            if not args.quiet:
                print("Using GPU backend")
        except Exception:
            ti.init(arch=ti.cpu)
            if not args.quiet:
                print("Using CPU backend")

    try:
        render_spheres(
            width=args.width,
            height=args.height,
            num_samples=args.samples,
            max_depth=args.max_depth,
            seed=args.seed,
            diffuse=args.diffuse,
            projection=args.projection,
            scene_path=args.scene,
            output_path=args.output,
            batch_rows=args.batch_rows,
            quiet=args.quiet,
        )
        return 0
    except (ValueError, RuntimeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
