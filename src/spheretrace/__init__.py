"""Tiled, multithreaded sphere path tracer built on Taichi.

Renders scenes of spheres with diffuse, metal and glass materials through a
thin-lens camera, writing the result as a plain-text PPM (optionally PNG).

Subpackages:
    core: Ray primitives, the ray-colour evaluator, tiles and the renderer
    geometry: Sphere intersection
    materials: Lambertian, metal and dielectric scattering
    scene: World storage, material ids and demo scenes
    camera: Thin-lens camera with depth of field
    preview: Gamma encoding and image export
"""

__version__ = "0.1.0"
