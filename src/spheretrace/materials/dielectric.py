"""Clear refractive material (glass, water, diamond).

At every hit the ray either reflects or refracts, never both:

    n1 sin(theta1) = n2 sin(theta2)                      Snell
    r0 + (1 - r0)(1 - cos theta)^5,  r0 = ((1-k)/(1+k))^2  Schlick

When k sin(theta1) > 1 (k = n1 / n2) no refracted ray exists and the ray
reflects. Otherwise it reflects with the Schlick probability. Nothing is
absorbed, so the attenuation is white.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretrace.materials.dielectric import scatter_dielectric
    >>> # inside a kernel:
    >>> # direction, attenuation, did_scatter = scatter_dielectric(1.5, d, n, front)
"""

import taichi as ti
import taichi.math as tm

from src.spheretrace.core.ray import reflect, refract, schlick_reflectance
from src.spheretrace.materials.registry import claim_slot

vec3 = tm.vec3


@ti.func
def _incidence(ior: ti.f32, incident_direction: vec3, normal: vec3, front_face: ti.i32):
    """Unit incident direction, cos(theta1), sin(theta1) and k = n1 / n2."""
    # Outside is air (n = 1); leaving the material inverts the ratio
    ratio = ior
    if front_face != 0:
        ratio = 1.0 / ior
    unit = tm.normalize(incident_direction)
    cosine = tm.min(-tm.dot(unit, normal), 1.0)
    sine = ti.sqrt(tm.max(1.0 - cosine * cosine, 0.0))
    return unit, cosine, sine, ratio


@ti.func
def will_reflect(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.i32:
    """1 under total internal reflection, else 0."""
    unit, cosine, sine, ratio = _incidence(ior, incident_direction, normal, front_face)
    return 1 if ratio * sine > 1.0 else 0


@ti.func
def fresnel_reflectance(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.f32:
    """Schlick probability that this ray reflects."""
    unit, cosine, sine, ratio = _incidence(ior, incident_direction, normal, front_face)
    return schlick_reflectance(cosine, ratio)


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Reflect or refract a ray at a dielectric boundary.

    Args:
        ior: Index of refraction of the material.
        incident_direction: Incoming direction, any length.
        normal: Unit normal facing the incoming ray.
        front_face: 1 when the ray arrives from outside the material.

    Returns:
        (scattered_direction, attenuation, did_scatter) with a white
        attenuation and did_scatter always 1.
    """
    unit, cosine, sine, ratio = _incidence(ior, incident_direction, normal, front_face)

    direction = vec3(0.0, 0.0, 0.0)
    if ratio * sine > 1.0 or schlick_reflectance(cosine, ratio) > ti.random(ti.f32):
        direction = reflect(unit, normal)
    else:
        direction = refract(unit, normal, ratio)

    return direction, vec3(1.0, 1.0, 1.0), 1


# =============================================================================
# Registry
# =============================================================================

MAX_DIELECTRIC_MATERIALS = 1024

dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Register a dielectric.

    Args:
        ior: Index of refraction, 1.5 for ordinary glass. Values below 1
            describe a medium less dense than its surroundings.

    Returns:
        Index of the material in the dielectric registry.

    Raises:
        ValueError: If ior is not strictly positive.
        RuntimeError: If the registry is full.
    """
    if not ior > 0.0:
        raise ValueError(f"Index of refraction must be strictly positive, got {ior}")
    idx = claim_slot(num_dielectric_materials, MAX_DIELECTRIC_MATERIALS, "dielectric")
    dielectric_iors[idx] = ior
    return idx


def get_dielectric_material_count() -> int:
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    return dielectric_iors[material_idx]


@ti.func
def scatter_dielectric_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """scatter_dielectric with the ior of registry entry material_idx."""
    return scatter_dielectric(
        get_dielectric_ior(material_idx), incident_direction, normal, front_face
    )
