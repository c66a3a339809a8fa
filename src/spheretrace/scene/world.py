"""World storage and nearest-hit queries over all spheres.

The world is an ordered list of spheres kept in Taichi fields
(Structure-of-Arrays layout). Each sphere references a unified material id;
many spheres may share one id. The fields are written only while a scene is
being built and are read-only for the duration of a render pass, which is
what lets every render worker read them without locking.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretrace.scene.world import add_sphere, clear_world, hit_world
    >>> clear_world()
    >>> add_sphere(ti.math.vec3(0, 0, -1), 0.5, material_id=0)
    >>> # Use hit_world within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.spheretrace.geometry.sphere import HitRecord, Sphere, hit_sphere

vec3 = tm.vec3


@ti.dataclass
class WorldHitRecord:
    """Record of a ray-world intersection with material information.

    Attributes:
        hit: 1 if the ray intersected any sphere, 0 otherwise.
        t: Ray parameter of the nearest intersection.
        point: The nearest intersection point.
        normal: Unit normal facing against the incoming ray.
        front_face: 1 if the outer surface was struck, 0 otherwise.
        material_id: Unified material id of the sphere that was hit,
            -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


MAX_SPHERES = 1024

sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_world() -> None:
    """Remove every sphere from the world.

    Only the count is reset; stale field data is overwritten by later adds.
    """
    num_spheres[None] = 0


def add_sphere(center: vec3, radius: float, material_id: int = 0) -> int:
    """Append a sphere to the world.

    Args:
        center: Sphere center.
        radius: Signed radius.
        material_id: Unified material id.

    Returns:
        Index of the new sphere, equal to the previous count.

    Raises:
        RuntimeError: If the world already holds MAX_SPHERES spheres.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"World is full ({MAX_SPHERES} spheres)")
    sphere_centers[idx] = center
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Number of spheres added since the last clear_world()."""
    return int(num_spheres[None])


@ti.func
def _with_material(candidate: HitRecord, material_id: ti.i32) -> WorldHitRecord:
    return WorldHitRecord(
        hit=candidate.hit,
        t=candidate.t,
        point=candidate.point,
        normal=candidate.normal,
        front_face=candidate.front_face,
        material_id=material_id,
    )


@ti.func
def _miss() -> WorldHitRecord:
    return WorldHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def hit_world(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> WorldHitRecord:
    """Find the nearest sphere hit by a ray within (t_min, t_max).

    Scans every sphere in insertion order. Each hit shrinks the upper bound
    to its own t, so later spheres can only replace it with a nearer hit.

    Args:
        ray_origin: Ray origin.
        ray_direction: Ray direction, any non-zero length.
        t_min: Exclusive lower bound on t.
        t_max: Exclusive upper bound on t.

    Returns:
        The nearest WorldHitRecord, or a miss record (hit == 0).
    """
    nearest = t_max
    result = _miss()

    for i in range(num_spheres[None]):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        candidate = hit_sphere(ray_origin, ray_direction, sphere, t_min, nearest)
        if candidate.hit == 1:
            nearest = candidate.t
            result = _with_material(candidate, sphere_material_ids[i])

    return result
