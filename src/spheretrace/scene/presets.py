"""Demo scenes.

Each preset populates a SceneManager and returns the camera that frames it
together with the aspect ratio the image should be rendered at.

Available scenes:
    random: a field of small random spheres around three large ones
    three: ground, diffuse, hollow glass and metal spheres side by side
    two: two tangential diffuse spheres filling a 90 degree view
"""

import math
import random
from collections.abc import Callable

from src.spheretrace.camera.thin_lens import ThinLensCamera
from src.spheretrace.scene.manager import SceneManager

ScenePreset = Callable[[SceneManager], tuple[ThinLensCamera, float]]

WIDE_ASPECT = 16.0 / 9.0
PHOTO_ASPECT = 3.0 / 2.0


def three_balls(scene: SceneManager) -> tuple[ThinLensCamera, float]:
    """Ground plus diffuse, hollow glass and metal spheres, shallow focus."""
    material_ground = scene.add_lambertian_material((0.8, 0.8, 0.0))
    material_center = scene.add_lambertian_material((0.1, 0.2, 0.5))
    material_left = scene.add_dielectric_material(1.5)
    material_right = scene.add_metal_material((0.8, 0.6, 0.2), 0.0)

    scene.add_sphere((0.0, -100.5, -1.0), 100.0, material_ground)
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, material_center)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, material_left)
    # Same material, negative radius: the inner wall of a glass bubble
    scene.add_sphere((-1.0, 0.0, -1.0), -0.4, material_left)
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, material_right)

    camera = ThinLensCamera(
        lookfrom=(3.0, 3.0, 2.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=WIDE_ASPECT,
        aperture=2.0,
    )
    return camera, WIDE_ASPECT


def two_balls(scene: SceneManager) -> tuple[ThinLensCamera, float]:
    """Two tangential spheres, blue and red, seen through a pinhole."""
    r = math.cos(math.pi / 4.0)
    material_left = scene.add_lambertian_material((0.0, 0.0, 1.0))
    material_right = scene.add_lambertian_material((1.0, 0.0, 0.0))

    scene.add_sphere((-r, 0.0, -1.0), r, material_left)
    scene.add_sphere((r, 0.0, -1.0), r, material_right)

    camera = ThinLensCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=WIDE_ASPECT,
        aperture=0.0,
    )
    return camera, WIDE_ASPECT


def random_balls(scene: SceneManager, seed: int | None = None) -> tuple[ThinLensCamera, float]:
    """Cover image scene: a grid of randomized small spheres and three big ones.

    Args:
        scene: The scene to populate.
        seed: Seed for the layout generator; None picks a fresh layout.
    """
    rng = random.Random(seed)

    ground = scene.add_lambertian_material((0.2, 0.6, 0.7))
    scene.add_sphere((0.0, -1000.0, 0.0), 1000.0, ground)

    for a in range(-11, 11):
        for b in range(-11, 11):
            choose_mat = rng.random()
            center = (a + 0.9 * rng.random(), 0.2, b + 0.9 * rng.random())

            if math.dist(center, (4.0, 0.2, 0.0)) <= 0.9:
                continue

            if choose_mat < 0.8:
                albedo = tuple(rng.random() * rng.random() for _ in range(3))
                scene.add_lambertian_sphere(center, 0.2, albedo)
            elif choose_mat < 0.95:
                albedo = tuple(rng.uniform(0.5, 1.0) for _ in range(3))
                scene.add_metal_sphere(center, 0.2, albedo, rng.uniform(0.0, 0.5))
            else:
                scene.add_dielectric_sphere(center, 0.2, 1.5)

    scene.add_dielectric_sphere((0.0, 1.0, 0.0), 1.0, 1.5)
    scene.add_lambertian_sphere((-4.0, 1.0, 0.0), 1.0, (0.4, 0.2, 0.1))
    scene.add_metal_sphere((4.0, 1.0, 0.0), 1.0, (0.7, 0.6, 0.5), 0.0)

    camera = ThinLensCamera(
        lookfrom=(12.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=PHOTO_ASPECT,
        aperture=0.1,
        focus_dist=10.0,
    )
    return camera, PHOTO_ASPECT


SCENES: dict[str, ScenePreset] = {
    "random": random_balls,
    "three": three_balls,
    "two": two_balls,
}


def build_scene(
    name: str,
    scene: SceneManager,
    seed: int | None = None,
) -> tuple[ThinLensCamera, float]:
    """Populate scene with the named preset.

    Args:
        name: One of SCENES.
        scene: The scene manager to populate (cleared first).
        seed: Layout seed, used by the random preset only.

    Returns:
        Tuple of (camera, aspect_ratio).

    Raises:
        ValueError: If the scene name is unknown.
    """
    if name not in SCENES:
        raise ValueError(f"Unknown scene '{name}', expected one of {sorted(SCENES)}")

    scene.clear()
    if name == "random":
        return random_balls(scene, seed=seed)
    return SCENES[name](scene)
