"""Rays, small vector helpers and random sampling.

Everything here is a Taichi function and inlines into the kernels that call
it. Random draws come from Taichi's per-thread generator (ti.random).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretrace.core.ray import Ray, ray_at, vec3
    >>> ray = Ray(origin=vec3(1.0, 0.0, 0.0), direction=vec3(0.0, 2.0, 0.0))
    >>> # ray_at(ray, 0.5) == vec3(1.0, 1.0, 0.0) inside a kernel
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

# Attempts before a rejection sampler gives up and returns the origin
MAX_REJECTION_TRIES = 100


@ti.dataclass
class Ray:
    """Origin plus direction; the direction is not necessarily unit length."""

    origin: vec3
    direction: vec3


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    return Ray(origin=origin, direction=direction)


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Point at parameter t along the ray."""
    return ray.origin + t * ray.direction


# =============================================================================
# Vector helpers
# =============================================================================


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    return tm.cross(a, b)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    return v.dot(v)


@ti.func
def length(v: vec3) -> ti.f32:
    return ti.sqrt(length_squared(v))


@ti.func
def normalize(v: vec3) -> vec3:
    return v / length(v)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """1 if every component of v has magnitude below 1e-8."""
    return ti.abs(v).max() < 1e-8


@ti.func
def reflect(v: vec3, n: vec3) -> vec3:
    """Mirror v about the unit normal n: v - 2 (v . n) n."""
    return v - 2.0 * dot(v, n) * n


@ti.func
def refract(uv: vec3, n: vec3, eta: ti.f32) -> vec3:
    """Bend the unit vector uv through a surface with Snell's law.

    The refracted ray is built from its parts perpendicular and parallel to
    n. eta is n_from / n_to. Total internal reflection must be ruled out by
    the caller; if it happens anyway the parallel part collapses to zero.

    Args:
        uv: Unit incident direction.
        n: Unit normal on the incident side.
        eta: Ratio of refractive indices.
    """
    cos_theta = ti.min(-dot(uv, n), 1.0)
    perpendicular = eta * (uv + cos_theta * n)
    parallel = -ti.sqrt(ti.abs(1.0 - length_squared(perpendicular))) * n
    return perpendicular + parallel


@ti.func
def schlick_reflectance(cosine: ti.f32, ratio: ti.f32) -> ti.f32:
    """Schlick's approximation of the Fresnel reflectance.

    r0 = ((1 - ratio) / (1 + ratio))^2, reflectance = r0 + (1 - r0)(1 - cos)^5
    """
    r0 = (1.0 - ratio) / (1.0 + ratio)
    r0 *= r0
    return r0 + (1.0 - r0) * ti.pow(1.0 - cosine, 5)


# =============================================================================
# Monte Carlo sampling
# =============================================================================


@ti.func
def random_signed() -> ti.f32:
    """Uniform float in [-1, 1)."""
    return 2.0 * ti.random(ti.f32) - 1.0


@ti.func
def random_in_unit_sphere() -> vec3:
    """Uniform point inside the unit ball, by rejection from the cube [-1, 1)^3."""
    point = vec3(0.0, 0.0, 0.0)
    tries = 0
    while tries < MAX_REJECTION_TRIES:
        candidate = vec3(random_signed(), random_signed(), random_signed())
        tries += 1
        if length_squared(candidate) < 1.0:
            point = candidate
            tries = MAX_REJECTION_TRIES
    return point


@ti.func
def random_unit_vector() -> vec3:
    """Uniform direction on the unit sphere."""
    return normalize(random_in_unit_sphere())


@ti.func
def random_in_unit_disk() -> vec3:
    """Uniform point (x, y, 0) inside the unit disk, for lens sampling."""
    point = vec3(0.0, 0.0, 0.0)
    tries = 0
    while tries < MAX_REJECTION_TRIES:
        candidate = vec3(random_signed(), random_signed(), 0.0)
        tries += 1
        if length_squared(candidate) < 1.0:
            point = candidate
            tries = MAX_REJECTION_TRIES
    return point
