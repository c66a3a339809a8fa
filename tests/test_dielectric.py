"""Unit tests for the dielectric (glass) material.

Tests cover:
- Refraction ratio from front_face
- Total internal reflection
- Schlick reflection probability
- Attenuation is white and the ray is never absorbed
- Material registry and validation
"""

import math

import pytest
import taichi as ti


class TestRefraction:
    """Tests for the refracted branch."""

    def test_normal_incidence_passes_straight_through(self):
        """Head-on rays rarely reflect (r0 = 0.04) and otherwise go straight."""
        from src.spheretrace.materials.dielectric import scatter_dielectric, vec3

        straight = ti.field(dtype=ti.i32, shape=())
        reflected = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            for _ in range(2000):
                d, att, did_scatter = scatter_dielectric(
                    1.5, vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 1
                )
                if d.y < -0.999:
                    straight[None] += 1
                elif d.y > 0.999:
                    reflected[None] += 1

        test_kernel()
        assert straight[None] + reflected[None] == 2000
        # Expected reflection rate is 4%
        assert 20 < reflected[None] < 160

    def test_air_to_glass_bends_toward_normal(self):
        from src.spheretrace.materials.dielectric import scatter_dielectric, vec3

        max_x = ti.field(dtype=ti.f32, shape=())
        max_x[None] = -10.0

        @ti.kernel
        def test_kernel():
            incident = vec3(1.0, -1.0, 0.0)
            for _ in range(200):
                d, att, did_scatter = scatter_dielectric(1.5, incident, vec3(0.0, 1.0, 0.0), 1)
                # Keep only refracted samples (pointing below the surface)
                if d.y < 0.0:
                    ti.atomic_max(max_x[None], d.x)

        test_kernel()
        expected = math.sin(math.radians(45.0)) / 1.5
        assert abs(max_x[None] - expected) < 1e-4


class TestTotalInternalReflection:
    """Tests for total internal reflection inside the material."""

    def test_tir_always_reflects(self):
        """Leaving glass at a steep angle never refracts."""
        from src.spheretrace.materials.dielectric import scatter_dielectric, vec3

        refracted = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            incident = vec3(0.9, -0.1, 0.0)
            for _ in range(500):
                d, att, did_scatter = scatter_dielectric(1.5, incident, vec3(0.0, 1.0, 0.0), 0)
                if d.y < 0.0:
                    refracted[None] += 1

        test_kernel()
        assert refracted[None] == 0

    def test_will_reflect(self):
        from src.spheretrace.materials.dielectric import will_reflect, vec3

        result = ti.field(dtype=ti.i32, shape=3)

        @ti.kernel
        def test_kernel():
            normal = vec3(0.0, 1.0, 0.0)
            steep = vec3(0.9, -0.1, 0.0)
            # Glass to air at a steep angle
            result[0] = will_reflect(1.5, steep, normal, 0)
            # Air to glass never totally reflects
            result[1] = will_reflect(1.5, steep, normal, 1)
            # Head-on from inside
            result[2] = will_reflect(1.5, vec3(0.0, -1.0, 0.0), normal, 0)

        test_kernel()
        assert result[0] == 1
        assert result[1] == 0
        assert result[2] == 0


class TestFresnelReflectance:
    """Tests for the Schlick term as seen by the material."""

    def test_fresnel_increases_with_angle(self):
        from src.spheretrace.materials.dielectric import fresnel_reflectance, vec3

        result = ti.field(dtype=ti.f32, shape=3)

        @ti.kernel
        def test_kernel():
            normal = vec3(0.0, 1.0, 0.0)
            result[0] = fresnel_reflectance(1.5, vec3(0.0, -1.0, 0.0), normal, 1)
            result[1] = fresnel_reflectance(1.5, vec3(1.0, -1.0, 0.0), normal, 1)
            result[2] = fresnel_reflectance(1.5, vec3(1.0, -0.05, 0.0), normal, 1)

        test_kernel()
        assert abs(result[0] - 0.04) < 1e-5
        assert result[0] < result[1] < result[2] <= 1.0


class TestAttenuation:
    """Glass is clear and never absorbs."""

    def test_attenuation_is_white_and_always_scatters(self):
        from src.spheretrace.materials.dielectric import scatter_dielectric, vec3

        min_att = ti.field(dtype=ti.f32, shape=())
        absorbed = ti.field(dtype=ti.i32, shape=())
        min_att[None] = 10.0

        @ti.kernel
        def test_kernel():
            for i in range(1000):
                front = i % 2
                d, att, did_scatter = scatter_dielectric(
                    1.5, vec3(0.3, -1.0, 0.2), vec3(0.0, 1.0, 0.0), front
                )
                ti.atomic_min(min_att[None], att.min())
                if did_scatter == 0:
                    absorbed[None] += 1

        test_kernel()
        assert min_att[None] == 1.0
        assert absorbed[None] == 0

    def test_scattered_direction_is_unit_length(self):
        from src.spheretrace.core.ray import length
        from src.spheretrace.materials.dielectric import scatter_dielectric, vec3

        max_err = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            for i in range(1000):
                d, att, did_scatter = scatter_dielectric(
                    1.5, vec3(2.0, -3.0, 1.0), vec3(0.0, 1.0, 0.0), i % 2
                )
                ti.atomic_max(max_err[None], ti.abs(length(d) - 1.0))

        test_kernel()
        assert max_err[None] < 1e-4


class TestMaterialRegistry:
    """Tests for the dielectric material registry."""

    def test_add_and_get_material(self):
        from src.spheretrace.materials.dielectric import add_dielectric_material, get_dielectric_ior

        idx = add_dielectric_material(2.4)
        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(mat_idx: ti.i32):
            result[None] = get_dielectric_ior(mat_idx)

        test_kernel(idx)
        assert abs(result[None] - 2.4) < 1e-6

    def test_default_ior_is_glass(self):
        from src.spheretrace.materials.dielectric import add_dielectric_material, get_dielectric_ior

        idx = add_dielectric_material()
        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(mat_idx: ti.i32):
            result[None] = get_dielectric_ior(mat_idx)

        test_kernel(idx)
        assert abs(result[None] - 1.5) < 1e-6

    def test_material_count(self):
        from src.spheretrace.materials.dielectric import (
            add_dielectric_material,
            clear_dielectric_materials,
            get_dielectric_material_count,
        )

        add_dielectric_material(1.3)
        add_dielectric_material(1.7)
        assert get_dielectric_material_count() == 2
        clear_dielectric_materials()
        assert get_dielectric_material_count() == 0

    @pytest.mark.parametrize("ior", [0.0, -1.5])
    def test_ior_must_be_positive(self, ior):
        from src.spheretrace.materials.dielectric import add_dielectric_material

        with pytest.raises(ValueError, match="strictly positive"):
            add_dielectric_material(ior)

    def test_ior_below_one_is_accepted(self):
        """An ior below 1 models a bubble of a less dense medium."""
        from src.spheretrace.materials.dielectric import add_dielectric_material

        assert add_dielectric_material(0.75) == 0

    def test_scatter_by_id(self):
        from src.spheretrace.materials.dielectric import (
            add_dielectric_material,
            scatter_dielectric_by_id,
            vec3,
        )

        idx = add_dielectric_material(1.5)
        scattered = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel(mat_idx: ti.i32):
            d, att, did_scatter = scatter_dielectric_by_id(
                mat_idx, vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 1
            )
            scattered[None] = did_scatter

        test_kernel(idx)
        assert scattered[None] == 1
