"""Spheres and ray-sphere intersection.

Substituting P(t) = origin + t * direction into |P(t) - center|^2 = r^2
gives a quadratic in t. The roots are taken from the cancellation-free form
(q = -(h + sign(h) * sqrt(disc)), roots q / a and c / q), so grazing rays
keep their precision.

Radii are signed. A negative radius intersects exactly like its absolute
value but reverses the outward normal, which models the inside wall of a
hollow shell such as a glass bubble.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretrace.geometry.sphere import Sphere, hit_sphere, vec3
    >>> ball = Sphere(center=vec3(0.0, 0.0, -1.0), radius=0.5)
    >>> # hit_sphere(origin, direction, ball, 0.001, 1e10) inside a kernel
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """Center and signed radius of one sphere."""

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Result of a ray-sphere test.

    Attributes:
        hit: 1 on intersection, 0 on a miss. The other fields are only
            meaningful when hit == 1.
        t: Ray parameter of the intersection.
        point: Intersection point.
        normal: Unit normal pointing against the incoming ray.
        front_face: 1 when the ray arrived from the outward side.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    return Sphere(center=center, radius=radius)


@ti.func
def stable_roots(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_disc: ti.f32):
    """Ordered roots (near, far) of a*t^2 + 2*h*t + c = 0."""
    near = 0.0
    far = 0.0
    q = -(h + ti.select(h < 0.0, -sqrt_disc, sqrt_disc))
    if ti.abs(q) < 1e-10:
        # h and the discriminant are both ~0: a double root at -h / a
        near = (-h - sqrt_disc) / a
        far = (-h + sqrt_disc) / a
    else:
        r0 = q / a
        r1 = c / q
        near = ti.min(r0, r1)
        far = ti.max(r0, r1)
    return near, far


@ti.func
def set_face_normal(direction: vec3, outward: vec3):
    """Orient an outward normal against the ray.

    Returns:
        Tuple of (normal, front_face).
    """
    front_face = 1
    normal = outward
    if tm.dot(direction, outward) > 0.0:
        front_face = 0
        normal = -outward
    return normal, front_face


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Intersect a ray with a sphere inside the open interval (t_min, t_max).

    With oc = origin - center:

        a = |d|^2,  h = d . oc,  c = |oc|^2 - r^2,  disc = h^2 - a*c

    disc < 0 is a miss. Otherwise the near root wins if it is inside the
    interval, then the far root; if neither is, the ray misses.

    Args:
        ray_origin: Ray origin.
        ray_direction: Ray direction, any non-zero length.
        sphere: The sphere to test.
        t_min: Exclusive lower bound, keeps bounced rays off their own surface.
        t_max: Exclusive upper bound, usually the closest hit so far.

    Returns:
        A HitRecord.
    """
    found = 0
    root = 0.0
    point = vec3(0.0, 0.0, 0.0)
    normal = vec3(0.0, 0.0, 0.0)
    front_face = 0

    oc = ray_origin - sphere.center
    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    disc = h * h - a * c

    if disc >= 0.0:
        near, far = stable_roots(h, a, c, ti.sqrt(disc))

        if near > t_min and near < t_max:
            root = near
            found = 1
        elif far > t_min and far < t_max:
            root = far
            found = 1

        if found == 1:
            point = ray_origin + root * ray_direction
            normal, front_face = set_face_normal(
                ray_direction, (point - sphere.center) / sphere.radius
            )

    return HitRecord(hit=found, t=root, point=point, normal=normal, front_face=front_face)
