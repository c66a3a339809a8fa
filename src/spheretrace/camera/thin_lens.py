"""Thin-lens camera with depth of field.

From the view parameters the camera derives a right-handed frame:

    w = unit(lookfrom - lookat)    points back, away from the scene
    u = unit(vup x w)              image right
    v = w x u                      image up

The viewport is centred focus_dist in front of the eye along -w. Points on
that plane are sharp; ray origins are spread over a lens disk of radius
aperture / 2 in the (u, v) plane, which blurs everything else. An aperture of
0 is a pinhole and every ray starts at lookfrom.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretrace.camera.thin_lens import ThinLensCamera, setup_camera
    >>> setup_camera(
    ...     ThinLensCamera(
    ...         lookfrom=(13.0, 2.0, 3.0),
    ...         lookat=(0.0, 0.0, 0.0),
    ...         vup=(0.0, 1.0, 0.0),
    ...         vfov=20.0,
    ...         aspect_ratio=1.5,
    ...         aperture=0.1,
    ...         focus_dist=10.0,
    ...     )
    ... )
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti

from src.spheretrace.core.ray import Ray, make_ray, random_in_unit_disk, vec3

Vec3Tuple = tuple[float, float, float]


def _np_vec(values: Vec3Tuple) -> np.ndarray:
    return np.asarray(values, dtype=np.float64)


@dataclass
class ThinLensCamera:
    """View and lens parameters.

    Attributes:
        lookfrom: Eye position.
        lookat: Point the camera aims at.
        vup: World up hint; only its component perpendicular to the view
            direction matters.
        vfov: Vertical field of view, degrees.
        aspect_ratio: Image width over height.
        aperture: Lens diameter, 0 for a pinhole.
        focus_dist: Distance to the sharp plane. None focuses on lookat.
    """

    lookfrom: Vec3Tuple
    lookat: Vec3Tuple
    vup: Vec3Tuple
    vfov: float
    aspect_ratio: float
    aperture: float = 0.0
    focus_dist: float | None = None

    def resolved_focus_dist(self) -> float:
        if self.focus_dist is None:
            return float(np.linalg.norm(_np_vec(self.lookfrom) - _np_vec(self.lookat)))
        return float(self.focus_dist)

    def validate(self) -> None:
        """Raise ValueError if no usable camera frame can be built."""
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"vfov must be in (0, 180) degrees, got {self.vfov}")
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if self.aperture < 0.0:
            raise ValueError(f"aperture must be non-negative, got {self.aperture}")

        back = _np_vec(self.lookfrom) - _np_vec(self.lookat)
        distance = np.linalg.norm(back)
        if distance < 1e-12:
            raise ValueError("lookfrom and lookat must be distinct points")
        if np.linalg.norm(np.cross(_np_vec(self.vup), back / distance)) < 1e-12:
            raise ValueError("vup must not be parallel to the view direction")
        if self.resolved_focus_dist() <= 0.0:
            raise ValueError(f"focus_dist must be positive, got {self.focus_dist}")


# Derived state, written by setup_camera() and read by the render kernels
_eye = ti.Vector.field(3, dtype=ti.f32, shape=())
_right = ti.Vector.field(3, dtype=ti.f32, shape=())
_up = ti.Vector.field(3, dtype=ti.f32, shape=())
_back = ti.Vector.field(3, dtype=ti.f32, shape=())
_span_x = ti.Vector.field(3, dtype=ti.f32, shape=())
_span_y = ti.Vector.field(3, dtype=ti.f32, shape=())
_corner = ti.Vector.field(3, dtype=ti.f32, shape=())
_lens_radius = ti.field(dtype=ti.f32, shape=())


def setup_camera(camera: ThinLensCamera) -> None:
    """Validate camera and store its frame for the kernels.

    At unit distance the viewport is 2 * tan(vfov / 2) high and aspect_ratio
    times that wide. Both spans are multiplied by the focus distance, which
    puts the viewport on the focal plane.

    Raises:
        ValueError: See ThinLensCamera.validate().
    """
    camera.validate()

    half_height = math.tan(math.radians(camera.vfov) / 2.0)
    focus = camera.resolved_focus_dist()
    eye = _np_vec(camera.lookfrom)

    back = eye - _np_vec(camera.lookat)
    back /= np.linalg.norm(back)
    right = np.cross(_np_vec(camera.vup), back)
    right /= np.linalg.norm(right)
    up = np.cross(back, right)

    span_x = (2.0 * half_height * camera.aspect_ratio * focus) * right
    span_y = (2.0 * half_height * focus) * up
    corner = eye - 0.5 * span_x - 0.5 * span_y - focus * back

    for target, value in (
        (_eye, eye),
        (_right, right),
        (_up, up),
        (_back, back),
        (_span_x, span_x),
        (_span_y, span_y),
        (_corner, corner),
    ):
        target[None] = value.tolist()
    _lens_radius[None] = 0.5 * camera.aperture


@ti.func
def get_ray(s: ti.f32, t: ti.f32) -> Ray:
    """Ray through viewport coordinates (s, t), both in [0, 1].

    s runs left to right and t bottom to top. The origin is sampled on the
    lens and the (unnormalized) direction aims at the focal-plane point.
    """
    origin = _eye[None]
    radius = _lens_radius[None]
    if radius > 0.0:
        disk = radius * random_in_unit_disk()
        origin += disk.x * _right[None] + disk.y * _up[None]

    target = _corner[None] + s * _span_x[None] + t * _span_y[None]
    return make_ray(origin, target - origin)


@ti.func
def get_ray_for_pixel(
    pixel_x: ti.i32,
    pixel_y: ti.i32,
    width: ti.i32,
    height: ti.i32,
    jitter: ti.i32,
) -> Ray:
    """Camera ray for one sample of pixel (pixel_x, pixel_y).

    Images are stored top row first, so the row index is flipped:

        s = (x + jx) / (width - 1)
        t = 1 - (y + jy) / (height - 1)

    With jitter != 0, jx and jy are uniform in [0, 1); otherwise both are 0.
    width and height must be at least 2.
    """
    jx = 0.0
    jy = 0.0
    if jitter != 0:
        jx = ti.random(ti.f32)
        jy = ti.random(ti.f32)

    s = (ti.cast(pixel_x, ti.f32) + jx) / ti.cast(width - 1, ti.f32)
    t = 1.0 - (ti.cast(pixel_y, ti.f32) + jy) / ti.cast(height - 1, ti.f32)
    return get_ray(s, t)


def get_camera_info() -> dict[str, Vec3Tuple | float]:
    """Snapshot of the stored camera state, for logging and tests.

    Keys: origin, u, v, w, horizontal, vertical, lower_left (3-tuples) and
    lens_radius.
    """
    info: dict[str, Vec3Tuple | float] = {}
    for key, source in (
        ("origin", _eye),
        ("u", _right),
        ("v", _up),
        ("w", _back),
        ("horizontal", _span_x),
        ("vertical", _span_y),
        ("lower_left", _corner),
    ):
        value = source[None]
        info[key] = (float(value[0]), float(value[1]), float(value[2]))
    info["lens_radius"] = float(_lens_radius[None])
    return info
