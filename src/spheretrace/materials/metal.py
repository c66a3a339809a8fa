"""Reflective metal with optional roughness.

A perfect mirror sends the ray along reflect(unit(d), n). A fuzz value in
[0, 1] moves the end of that vector by a random point in a ball of radius
fuzz, which blurs the reflection. If the result dips below the surface the
ray is absorbed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretrace.materials.metal import scatter_metal
    >>> # inside a kernel:
    >>> # direction, attenuation, did_scatter = scatter_metal(albedo, fuzz, d, n)
"""

import taichi as ti
import taichi.math as tm

from src.spheretrace.core.ray import random_in_unit_sphere, reflect
from src.spheretrace.materials.registry import check_albedo, check_unit_interval, claim_slot

vec3 = tm.vec3


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
):
    """Mirror-like bounce, perturbed by fuzz.

    The incident direction is normalized first, so fuzz is relative to a unit
    reflection whatever the length of the incoming ray.

    Args:
        albedo: Reflectance (RGB).
        fuzz: Roughness in [0, 1].
        incident_direction: Incoming direction, any length.
        normal: Unit normal facing the incoming ray.

    Returns:
        (scattered_direction, albedo, did_scatter), did_scatter being 0 when
        the perturbed direction does not leave the surface.
    """
    direction = reflect(tm.normalize(incident_direction), normal) + fuzz * random_in_unit_sphere()
    leaves = 0
    if tm.dot(direction, normal) > 0.0:
        leaves = 1
    return direction, albedo, leaves


# =============================================================================
# Registry
# =============================================================================

MAX_METAL_MATERIALS = 1024

# SoA: albedo and fuzz of metal i live at index i of each field
metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    num_metal_materials[None] = 0


def add_metal_material(
    albedo: tuple[float, float, float],
    fuzz: float = 0.0,
) -> int:
    """Register a metal.

    Args:
        albedo: Reflectance (R, G, B), each in [0, 1].
        fuzz: Radius of the reflection perturbation in [0, 1]; 0 is a mirror.

    Returns:
        Index of the material in the metal registry.

    Raises:
        ValueError: If albedo or fuzz is outside [0, 1].
        RuntimeError: If the registry is full.
    """
    rgb = check_albedo(albedo)
    fuzz = check_unit_interval("Fuzz", fuzz)
    idx = claim_slot(num_metal_materials, MAX_METAL_MATERIALS, "metal")
    metal_albedos[idx] = rgb
    metal_fuzzes[idx] = fuzz
    return idx


def get_metal_material_count() -> int:
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    return metal_fuzzes[material_idx]


@ti.func
def scatter_metal_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
):
    """scatter_metal with the parameters of registry entry material_idx."""
    return scatter_metal(
        get_metal_albedo(material_idx),
        get_metal_fuzz(material_idx),
        incident_direction,
        normal,
    )
