"""Ideal diffuse (Lambertian) reflection.

The bounce direction is normal + u, with u uniform on the unit sphere. The
resulting directions follow a cosine lobe about the normal, so the sampling
density already carries the cos(theta) term and the attenuation reduces to
the albedo.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretrace.materials.lambertian import scatter_lambertian
    >>> # inside a kernel:
    >>> # direction, attenuation, did_scatter = scatter_lambertian(albedo, normal)
"""

import taichi as ti
import taichi.math as tm

from src.spheretrace.core.ray import near_zero, random_unit_vector
from src.spheretrace.materials.registry import check_albedo, claim_slot

vec3 = tm.vec3


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3):
    """Diffuse bounce off a surface with the given normal.

    Returns:
        (scattered_direction, albedo, 1); diffuse surfaces never absorb.
    """
    direction = normal + random_unit_vector()
    # u almost exactly opposite the normal
    if near_zero(direction):
        direction = normal
    return direction, albedo, 1


# =============================================================================
# Registry
# =============================================================================

MAX_LAMBERTIAN_MATERIALS = 1024

lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Register a diffuse material.

    Args:
        albedo: Diffuse reflectance (R, G, B), each in [0, 1].

    Returns:
        Index of the material in the Lambertian registry.

    Raises:
        ValueError: If an albedo component is outside [0, 1].
        RuntimeError: If the registry is full.
    """
    rgb = check_albedo(albedo)
    idx = claim_slot(num_lambertian_materials, MAX_LAMBERTIAN_MATERIALS, "Lambertian")
    lambertian_albedos[idx] = rgb
    return idx


def get_lambertian_material_count() -> int:
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    return lambertian_albedos[material_idx]


@ti.func
def scatter_lambertian_by_id(material_idx: ti.i32, normal: vec3):
    """scatter_lambertian with the albedo of registry entry material_idx."""
    return scatter_lambertian(get_lambertian_albedo(material_idx), normal)
