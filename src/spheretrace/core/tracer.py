"""Ray-colour evaluator for Monte Carlo path tracing.

A ray's colour is resolved by following it through the scene:

    colour(ray, depth) = black                                   if depth <= 0
                       = attenuation * colour(scattered, depth-1) if it hits and scatters
                       = black                                   if it hits and is absorbed
                       = sky(ray.direction)                      if it escapes

Taichi functions cannot recurse, so the recursion is unrolled into a loop
that carries the product of attenuations (the throughput) forward. The loop
runs at most max_depth times; a path still bouncing when the budget runs out
contributes black, which bounds the work for geometry such as nested glass
that can trap rays indefinitely.

The background is a vertical gradient from white at the horizon to sky blue
at the zenith, driven by the normalized direction's y component.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretrace.core.tracer import trace_ray
    >>> r, g, b = trace_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), max_depth=50)
    >>> # Empty world: (r, g, b) is the zenith colour (0.5, 0.7, 1.0)
"""

import taichi as ti
import taichi.math as tm

from src.spheretrace.materials.dielectric import get_dielectric_ior, scatter_dielectric
from src.spheretrace.materials.lambertian import get_lambertian_albedo, scatter_lambertian
from src.spheretrace.materials.metal import get_metal_albedo, get_metal_fuzz, scatter_metal
from src.spheretrace.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)
from src.spheretrace.scene.world import hit_world

vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Default bounce budget per camera ray
MAX_DEPTH = 50

# Hits closer than this are ignored to avoid shadow acne from re-hitting
# the surface a scattered ray just left
T_MIN = 0.001
T_MAX = 1e10

HORIZON_COLOUR = vec3(1.0, 1.0, 1.0)
ZENITH_COLOUR = vec3(0.5, 0.7, 1.0)


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Dispatch to the scatter function of the material's type.

    Args:
        material_id: The unified material ID of the surface that was hit.
        incident_direction: The incoming ray direction.
        normal: The surface normal, facing the incoming ray.
        front_face: 1 if the outer surface was hit, 0 otherwise.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). Unknown
        material ids absorb the ray.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        albedo = get_lambertian_albedo(type_index)
        scattered_direction, attenuation, did_scatter = scatter_lambertian(albedo, normal)

    elif mat_type == int(MaterialType.METAL):
        albedo = get_metal_albedo(type_index)
        fuzz = get_metal_fuzz(type_index)
        scattered_direction, attenuation, did_scatter = scatter_metal(
            albedo, fuzz, incident_direction, normal
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        ior = get_dielectric_ior(type_index)
        scattered_direction, attenuation, did_scatter = scatter_dielectric(
            ior, incident_direction, normal, front_face
        )

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Ray Colour
# =============================================================================


@ti.func
def sky_colour(direction: vec3) -> vec3:
    """Background gradient seen by a ray that escapes the scene."""
    unit_direction = tm.normalize(direction)
    t = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - t) * HORIZON_COLOUR + t * ZENITH_COLOUR


@ti.func
def ray_colour(origin: vec3, direction: vec3, max_depth: ti.i32) -> vec3:
    """Resolve the colour carried back along a ray.

    Args:
        origin: The ray origin.
        direction: The ray direction (any non-zero length).
        max_depth: Bounce budget. Values <= 0 return black immediately.

    Returns:
        The linear RGB colour of the path.
    """
    colour = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    ray_origin = origin
    ray_direction = direction

    # Cleared once the path reaches a terminal state
    active = 1

    for _ in range(max_depth):
        if active == 1:
            rec = hit_world(ray_origin, ray_direction, T_MIN, T_MAX)

            if rec.hit == 0:
                colour = throughput * sky_colour(ray_direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = scatter_material(
                    rec.material_id, ray_direction, rec.normal, rec.front_face
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    ray_origin = rec.point
                    ray_direction = scattered_direction

    # A path still active here ran out of bounces and stays black
    return colour


# =============================================================================
# Host-callable entry points
# =============================================================================


@ti.kernel
def _trace_ray_kernel(origin: vec3, direction: vec3, max_depth: ti.i32) -> vec3:
    return ray_colour(origin, direction, max_depth)


@ti.kernel
def _sky_colour_kernel(direction: vec3) -> vec3:
    return sky_colour(direction)


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = MAX_DEPTH,
) -> tuple[float, float, float]:
    """Trace a single ray through the current world from Python.

    Intended for tests and debugging; rendering goes through the tile kernel.

    Args:
        origin: The ray origin (x, y, z).
        direction: The ray direction (x, y, z).
        max_depth: Bounce budget.

    Returns:
        Tuple of (R, G, B) linear colour values.
    """
    colour = _trace_ray_kernel(vec3(*origin), vec3(*direction), max_depth)
    return (float(colour[0]), float(colour[1]), float(colour[2]))


def sky_colour_of(direction: tuple[float, float, float]) -> tuple[float, float, float]:
    """Evaluate the background gradient for a direction from Python."""
    colour = _sky_colour_kernel(vec3(*direction))
    return (float(colour[0]), float(colour[1]), float(colour[2]))
