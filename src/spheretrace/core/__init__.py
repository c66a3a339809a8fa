"""Core rendering module.

Components:
    ray: Ray data structure, vector helpers and random sampling
    tracer: Iterative ray-colour evaluator (scatter and sky gradient)
    tiles: Tile grid and the atomic work-counter render kernel
    renderer: Host-side TileRenderer driving one render pass

All compute-intensive operations are Taichi kernels.
"""

from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    normalize,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    ray_at,
    reflect,
    refract,
    schlick_reflectance,
    vec3,
)

# Note: tracer, tiles and renderer are NOT imported here to avoid circular
# imports (they depend on scene and camera, which depend on this module).
# Import them directly, e.g. from src.spheretrace.core.renderer import TileRenderer

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_reflectance",
    "near_zero",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
]
