"""Unit tests for the Lambertian (diffuse) material.

Tests cover:
- Scatter direction lies in the hemisphere around the normal
- Attenuation equals the albedo and the ray is never absorbed
- Material registry and validation
"""

import pytest
import taichi as ti


class TestScatterLambertian:
    """Tests for scatter_lambertian."""

    def test_scatter_direction_in_hemisphere(self):
        """normal + unit vector never points below the surface."""
        from src.spheretrace.core.ray import dot
        from src.spheretrace.materials.lambertian import scatter_lambertian, vec3

        min_dot = ti.field(dtype=ti.f32, shape=())
        min_dot[None] = 10.0

        @ti.kernel
        def test_kernel():
            normal = vec3(0.0, 1.0, 0.0)
            for _ in range(1000):
                direction, att, did_scatter = scatter_lambertian(vec3(0.5, 0.5, 0.5), normal)
                ti.atomic_min(min_dot[None], dot(direction, normal))

        test_kernel()
        assert min_dot[None] >= -1e-6

    def test_scatter_attenuation_and_never_absorbs(self):
        from src.spheretrace.materials.lambertian import scatter_lambertian, vec3

        attenuation = ti.field(dtype=ti.math.vec3, shape=())
        absorbed = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            for _ in range(500):
                direction, att, did_scatter = scatter_lambertian(
                    vec3(0.8, 0.3, 0.1), vec3(0.0, 0.0, 1.0)
                )
                attenuation[None] = att
                if did_scatter == 0:
                    absorbed[None] += 1

        test_kernel()
        a = attenuation[None]
        assert abs(a[0] - 0.8) < 1e-6
        assert abs(a[1] - 0.3) < 1e-6
        assert abs(a[2] - 0.1) < 1e-6
        assert absorbed[None] == 0

    def test_scatter_direction_never_degenerate(self):
        from src.spheretrace.core.ray import length
        from src.spheretrace.materials.lambertian import scatter_lambertian, vec3

        min_len = ti.field(dtype=ti.f32, shape=())
        min_len[None] = 10.0

        @ti.kernel
        def test_kernel():
            for _ in range(1000):
                direction, att, did_scatter = scatter_lambertian(
                    vec3(1.0, 1.0, 1.0), vec3(1.0, 0.0, 0.0)
                )
                ti.atomic_min(min_len[None], length(direction))

        test_kernel()
        assert min_len[None] > 1e-8


class TestMaterialRegistry:
    """Tests for the Lambertian material registry."""

    def test_add_and_get_material(self):
        from src.spheretrace.materials.lambertian import (
            add_lambertian_material,
            get_lambertian_albedo,
        )

        idx = add_lambertian_material((0.2, 0.4, 0.6))
        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel(mat_idx: ti.i32):
            result[None] = get_lambertian_albedo(mat_idx)

        test_kernel(idx)
        r = result[None]
        assert idx == 0
        assert abs(r[0] - 0.2) < 1e-6
        assert abs(r[1] - 0.4) < 1e-6
        assert abs(r[2] - 0.6) < 1e-6

    def test_material_count(self):
        from src.spheretrace.materials.lambertian import (
            add_lambertian_material,
            clear_lambertian_materials,
            get_lambertian_material_count,
        )

        assert get_lambertian_material_count() == 0
        add_lambertian_material((0.1, 0.1, 0.1))
        add_lambertian_material((0.9, 0.9, 0.9))
        assert get_lambertian_material_count() == 2

        clear_lambertian_materials()
        assert get_lambertian_material_count() == 0

    @pytest.mark.parametrize("albedo", [(-0.1, 0.5, 0.5), (0.5, 1.1, 0.5)])
    def test_albedo_validation(self, albedo):
        from src.spheretrace.materials.lambertian import add_lambertian_material

        with pytest.raises(ValueError, match="outside"):
            add_lambertian_material(albedo)

    def test_albedo_boundaries_are_valid(self):
        from src.spheretrace.materials.lambertian import add_lambertian_material

        assert add_lambertian_material((0.0, 0.0, 0.0)) == 0
        assert add_lambertian_material((1.0, 1.0, 1.0)) == 1

    def test_scatter_by_id(self):
        from src.spheretrace.materials.lambertian import (
            add_lambertian_material,
            scatter_lambertian_by_id,
            vec3,
        )

        add_lambertian_material((0.9, 0.9, 0.9))
        idx = add_lambertian_material((0.1, 0.7, 0.3))
        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel(mat_idx: ti.i32):
            direction, attenuation, did_scatter = scatter_lambertian_by_id(
                mat_idx, vec3(0.0, 1.0, 0.0)
            )
            result[None] = attenuation

        test_kernel(idx)
        r = result[None]
        assert abs(r[0] - 0.1) < 1e-6
        assert abs(r[1] - 0.7) < 1e-6
        assert abs(r[2] - 0.3) < 1e-6
