"""Scene module for world storage, material bookkeeping and demo scenes.

Components:
    world: Sphere storage in Taichi fields and nearest-hit queries
    manager: Unified material ids and the SceneManager builder
    presets: Demo scenes (random, three, two)

Scene data is organized for kernel access:
    - Structure-of-Arrays layout for sphere data
    - Per-type material registries addressed through one material id space
"""

from ..config import DEFAULT_SCENE
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
    material_type_indices,
    material_types,
    num_materials,
)
from .presets import SCENES, build_scene, random_balls, three_balls, two_balls
from .world import (
    MAX_SPHERES,
    WorldHitRecord,
    add_sphere,
    clear_world,
    get_sphere_count,
    hit_world,
)

__all__ = [
    # World module
    "WorldHitRecord",
    "add_sphere",
    "clear_world",
    "get_sphere_count",
    "hit_world",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    "material_types",
    "material_type_indices",
    "num_materials",
    # Presets
    "SCENES",
    "DEFAULT_SCENE",
    "build_scene",
    "random_balls",
    "three_balls",
    "two_balls",
]
