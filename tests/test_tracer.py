"""Unit tests for the ray-colour evaluator.

Tests cover:
- Background gradient
- Bounce budget (depth 0 and exhausted paths are black)
- Attenuation along a deterministic mirror path
- Absorption and unknown material ids
"""

import pytest


class TestSkyColour:
    """Tests for the background gradient."""

    @pytest.mark.parametrize(
        "direction, expected",
        [
            ((0.0, 1.0, 0.0), (0.5, 0.7, 1.0)),
            ((0.0, -1.0, 0.0), (1.0, 1.0, 1.0)),
            ((1.0, 0.0, 0.0), (0.75, 0.85, 1.0)),
        ],
    )
    def test_gradient(self, direction, expected):
        from src.spheretrace.core.tracer import sky_colour_of

        assert sky_colour_of(direction) == pytest.approx(expected, abs=1e-6)

    def test_direction_length_is_ignored(self):
        from src.spheretrace.core.tracer import sky_colour_of

        assert sky_colour_of((0.0, 5.0, 0.0)) == pytest.approx(
            sky_colour_of((0.0, 1.0, 0.0)), abs=1e-6
        )


class TestRayColour:
    """Tests for trace_ray against small scenes."""

    def test_empty_world_returns_sky(self):
        from src.spheretrace.core.tracer import sky_colour_of, trace_ray

        direction = (0.3, 0.4, -1.0)
        assert trace_ray((0.0, 0.0, 0.0), direction) == pytest.approx(
            sky_colour_of(direction), abs=1e-6
        )

    def test_zero_depth_is_black(self):
        from src.spheretrace.core.tracer import trace_ray

        assert trace_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), max_depth=0) == (0.0, 0.0, 0.0)

    def test_mirror_attenuates_sky(self):
        """A head-on ray bounces off a perfect mirror and sees the horizon."""
        from src.spheretrace.core.tracer import trace_ray
        from src.spheretrace.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_metal_sphere((0.0, 0.0, -2.0), 0.5, albedo=(0.5, 0.5, 0.5), fuzz=0.0)

        colour = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_depth=2)
        assert colour == pytest.approx((0.375, 0.425, 0.5), abs=1e-5)

    def test_exhausted_budget_is_black(self):
        """One bounce is not enough to leave the mirror and reach the sky."""
        from src.spheretrace.core.tracer import trace_ray
        from src.spheretrace.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_metal_sphere((0.0, 0.0, -2.0), 0.5, albedo=(0.9, 0.9, 0.9), fuzz=0.0)

        assert trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_depth=1) == (0.0, 0.0, 0.0)

    def test_black_lambertian_absorbs_everything(self):
        from src.spheretrace.core.tracer import trace_ray
        from src.spheretrace.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0.0, 0.0, -2.0), 0.5, albedo=(0.0, 0.0, 0.0))

        for _ in range(10):
            assert trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)) == pytest.approx(
                (0.0, 0.0, 0.0), abs=1e-7
            )

    def test_unknown_material_absorbs(self):
        from src.spheretrace.core.tracer import trace_ray
        from src.spheretrace.scene.world import add_sphere, vec3

        add_sphere(vec3(0.0, 0.0, -2.0), 0.5, 42)
        assert trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)) == (0.0, 0.0, 0.0)

    def test_diffuse_colour_is_bounded_by_albedo(self):
        """Without emitters a path can never be brighter than the sky."""
        from src.spheretrace.core.tracer import trace_ray
        from src.spheretrace.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0.0, 0.0, -2.0), 0.5, albedo=(0.5, 0.5, 0.5))

        for _ in range(20):
            r, g, b = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
            assert 0.0 <= r <= 0.5 + 1e-6
            assert 0.0 <= g <= 0.5 + 1e-6
            assert 0.0 <= b <= 0.5 + 1e-6
