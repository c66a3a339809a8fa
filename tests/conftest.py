"""Shared fixtures: one Taichi runtime per session and an empty scene per test."""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Start the CPU backend with a fixed seed.

    Repeated ti.init() calls tear down every field created so far, so the
    module-level fields of the package must all live in one runtime.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Empty the world and every material registry around each test."""
    # Import here so the package's fields are created after ti.init
    from src.spheretrace.materials.dielectric import clear_dielectric_materials
    from src.spheretrace.materials.lambertian import clear_lambertian_materials
    from src.spheretrace.materials.metal import clear_metal_materials
    from src.spheretrace.scene.manager import _clear_material_tracking
    from src.spheretrace.scene.world import clear_world

    def _clear_all():
        clear_world()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()

    _clear_all()
    yield
    _clear_all()
