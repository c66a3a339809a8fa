"""Scene construction and the unified material id space.

Materials of every kind share one id space. For each id two Taichi fields
record the MaterialType and the index into that type's own registry, so a
kernel can go from the id stored on a sphere to the right parameters. Spheres
refer to materials by id only, and any number of spheres may share one (the
inner and outer walls of a glass bubble do).

SceneManager is the host-side builder. Next to the Taichi fields it keeps a
plain-Python record of every material and sphere it added.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretrace.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> glass = scene.add_dielectric_material(ior=1.5)
    >>> scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
    >>> scene.add_sphere((-1.0, 0.0, -1.0), -0.4, glass)
"""

import logging
import math
from dataclasses import dataclass
from enum import IntEnum

import taichi as ti
import taichi.math as tm

from src.spheretrace.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from src.spheretrace.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from src.spheretrace.materials.metal import (
    add_metal_material,
    clear_metal_materials,
)
from src.spheretrace.scene.world import (
    add_sphere,
    clear_world,
    get_sphere_count,
)

logger = logging.getLogger(__name__)

vec3 = tm.vec3

Vec3Tuple = tuple[float, float, float]


class MaterialType(IntEnum):
    """Closed set of material variants used for scatter dispatch."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# One slot per registry entry across all three types
MAX_MATERIALS = 3 * 1024

material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """MaterialType of material_id, or -1 for an unknown id."""
    kind = -1
    if material_id >= 0 and material_id < num_materials[None]:
        kind = material_types[material_id]
    return kind


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Index of material_id within its type's registry, or -1 for an unknown id."""
    index = -1
    if material_id >= 0 and material_id < num_materials[None]:
        index = material_type_indices[material_id]
    return index


@dataclass
class MaterialInfo:
    """Host-side record of one registered material.

    Attributes:
        material_id: Id in the unified space.
        material_type: Which registry holds the parameters.
        type_index: Index within that registry.
    """

    material_id: int
    material_type: MaterialType
    type_index: int


@dataclass
class SphereInfo:
    sphere_index: int
    center: Vec3Tuple
    radius: float
    material_id: int


class SceneManager:
    """Builds a scene into the world and material registries.

    Creating a SceneManager empties every registry, so only one scene is
    live at a time.

    Attributes:
        materials: MaterialInfo for every material, indexed by material id.
        spheres: SphereInfo for every sphere, indexed by sphere index.
    """

    def __init__(self) -> None:
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self.clear()

    def __repr__(self) -> str:
        return f"SceneManager(materials={len(self.materials)}, spheres={len(self.spheres)})"

    def clear(self) -> None:
        """Remove every sphere and material."""
        clear_world()
        for clear_registry in (
            clear_lambertian_materials,
            clear_metal_materials,
            clear_dielectric_materials,
            _clear_material_tracking,
        ):
            clear_registry()
        self.materials.clear()
        self.spheres.clear()

    # -------------------------------------------------------------------------
    # Materials
    # -------------------------------------------------------------------------

    def _register(self, material_type: MaterialType, type_index: int) -> int:
        material_id = int(num_materials[None])
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(MaterialInfo(material_id, material_type, type_index))
        logger.debug("Material %d: %s #%d", material_id, material_type.name, type_index)
        return material_id

    def add_lambertian_material(self, albedo: Vec3Tuple) -> int:
        """Register a diffuse material and return its material id.

        Raises:
            ValueError: If an albedo component is outside [0, 1].
            RuntimeError: If a registry is full.
        """
        type_index = add_lambertian_material(albedo)
        return self._register(MaterialType.LAMBERTIAN, type_index)

    def add_metal_material(self, albedo: Vec3Tuple, fuzz: float = 0.0) -> int:
        """Register a metal and return its material id.

        Raises:
            ValueError: If albedo or fuzz is outside [0, 1].
            RuntimeError: If a registry is full.
        """
        type_index = add_metal_material(albedo, fuzz)
        return self._register(MaterialType.METAL, type_index)

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Register a dielectric and return its material id.

        Raises:
            ValueError: If ior is not strictly positive.
            RuntimeError: If a registry is full.
        """
        type_index = add_dielectric_material(ior)
        return self._register(MaterialType.DIELECTRIC, type_index)

    def get_material_count(self) -> int:
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Host-side counterpart of get_material_type(); None for unknown ids."""
        info = self.get_material_info(material_id)
        return None if info is None else info.material_type

    # -------------------------------------------------------------------------
    # Spheres
    # -------------------------------------------------------------------------

    def add_sphere(self, center: Vec3Tuple, radius: float, material_id: int) -> int:
        """Add a sphere that uses an already registered material.

        Args:
            center: Sphere center (x, y, z).
            radius: Signed radius. A negative radius keeps the surface but
                points its normal inward (hollow shells). Zero is rejected.
            material_id: Id returned by one of the add_*_material methods.

        Returns:
            Index of the sphere in the world.

        Raises:
            ValueError: If radius is zero or not finite, or material_id is
                unknown.
            RuntimeError: If the world is full.
        """
        if radius == 0.0 or not math.isfinite(radius):
            raise ValueError(f"Invalid sphere radius: {radius}")
        if not 0 <= material_id < self.get_material_count():
            raise ValueError(f"Invalid material_id: {material_id}")

        sphere_index = add_sphere(vec3(*center), radius, material_id)
        self.spheres.append(SphereInfo(sphere_index, center, radius, material_id))
        logger.debug(
            "Sphere %d at %s, r=%g, material %d", sphere_index, center, radius, material_id
        )
        return sphere_index

    def add_lambertian_sphere(
        self, center: Vec3Tuple, radius: float, albedo: Vec3Tuple
    ) -> tuple[int, int]:
        """Add a sphere with its own new diffuse material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_lambertian_material(albedo)
        return self.add_sphere(center, radius, material_id), material_id

    def add_metal_sphere(
        self, center: Vec3Tuple, radius: float, albedo: Vec3Tuple, fuzz: float = 0.0
    ) -> tuple[int, int]:
        material_id = self.add_metal_material(albedo, fuzz)
        return self.add_sphere(center, radius, material_id), material_id

    def add_dielectric_sphere(
        self, center: Vec3Tuple, radius: float, ior: float = 1.5
    ) -> tuple[int, int]:
        material_id = self.add_dielectric_material(ior)
        return self.add_sphere(center, radius, material_id), material_id

    def get_sphere_count(self) -> int:
        return get_sphere_count()
