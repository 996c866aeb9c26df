"""Taichi-based sphere ray tracer.

This package renders scenes made of spheres lit by a sky gradient, with:
- Pinhole camera mapping pixels onto a four-corner image plane
- Near-root ray-sphere intersection and nearest-hit scene queries
- Depth-bounded diffuse bouncing with a fixed 50% albedo
- Multi-sample anti-aliasing with deterministic per-pixel random streams
- ASCII PPM (P3) and PNG output

Subpackages:
    core: Rays, vector helpers, random generators, shading and frame rendering
    geometry: Sphere primitive and intersection
    scene: Scene storage, nearest-hit query, scene files, default scene
    camera: Pinhole camera and primary ray generation
    preview: Image export
"""

__version__ = "0.1.0"
