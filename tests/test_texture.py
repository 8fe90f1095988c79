"""Tests for the texture registry and lookups."""

import numpy as np
import pytest
import taichi as ti


def _lookup(texture_id: int, point) -> np.ndarray:
    from raytracer.core.ray import vec3
    from raytracer.materials.texture import texture_value

    result = ti.Vector.field(3, dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel(idx: ti.i32, p: vec3):
        result[None] = texture_value(idx, p)

    test_kernel(texture_id, vec3(*point))
    return result[None].to_numpy()


class TestTextureRegistry:
    """Tests for adding and clearing textures."""

    def test_indices_are_sequential(self):
        """Textures get consecutive indices starting at zero."""
        from raytracer.materials.texture import (
            add_checker_texture,
            add_constant_texture,
            get_texture_count,
        )

        assert add_constant_texture((0.1, 0.2, 0.3)) == 0
        assert add_checker_texture((0.0, 0.0, 0.0), (1.0, 1.0, 1.0)) == 1
        assert get_texture_count() == 2

    def test_clear(self):
        """clear_textures resets the count."""
        from raytracer.materials.texture import (
            add_constant_texture,
            clear_textures,
            get_texture_count,
        )

        add_constant_texture((0.5, 0.5, 0.5))
        clear_textures()
        assert get_texture_count() == 0

    @pytest.mark.parametrize("color", [(1.5, 0.0, 0.0), (0.0, -0.1, 0.0)])
    def test_out_of_range_color_rejected(self, color):
        """Colours outside [0, 1] raise ValueError."""
        from raytracer.materials.texture import add_constant_texture

        with pytest.raises(ValueError, match="outside"):
            add_constant_texture(color)

    def test_wrong_length_rejected(self):
        """Colours must have exactly three components."""
        from raytracer.materials.texture import add_checker_texture

        with pytest.raises(ValueError, match="3 components"):
            add_checker_texture((0.0, 0.0), (1.0, 1.0, 1.0))

    def test_capacity(self):
        """Adding past MAX_TEXTURES raises RuntimeError."""
        from raytracer.materials.texture import MAX_TEXTURES, add_constant_texture

        for _ in range(MAX_TEXTURES):
            add_constant_texture((0.5, 0.5, 0.5))

        with pytest.raises(RuntimeError, match="Maximum number of textures"):
            add_constant_texture((0.5, 0.5, 0.5))


class TestTextureValue:
    """Tests for texture evaluation inside kernels."""

    def test_constant_everywhere(self):
        """A constant texture ignores the point."""
        from raytracer.materials.texture import add_constant_texture

        idx = add_constant_texture((0.2, 0.4, 0.6))

        for point in [(0.0, 0.0, 0.0), (3.0, -7.0, 11.0)]:
            np.testing.assert_allclose(_lookup(idx, point), [0.2, 0.4, 0.6], atol=1e-6)

    def test_checker_parity(self):
        """The sign of the sine product picks the odd or even colour."""
        from raytracer.materials.texture import add_checker_texture

        odd = (0.1, 0.1, 0.1)
        even = (0.9, 0.9, 0.9)
        idx = add_checker_texture(odd, even)

        # sin(-1) sin(1) sin(1) < 0
        np.testing.assert_allclose(_lookup(idx, (-0.1, 0.1, 0.1)), odd, atol=1e-6)
        # sin(1)^3 > 0
        np.testing.assert_allclose(_lookup(idx, (0.1, 0.1, 0.1)), even, atol=1e-6)
        # Two negative factors give a positive product
        np.testing.assert_allclose(_lookup(idx, (-0.1, -0.1, 0.1)), even, atol=1e-6)

    def test_checker_zero_product_is_even(self):
        """A zero product is not negative, so it takes the even colour."""
        from raytracer.materials.texture import add_checker_texture

        idx = add_checker_texture((0.0, 0.0, 0.0), (1.0, 1.0, 1.0))
        np.testing.assert_allclose(_lookup(idx, (0.0, 0.5, 0.5)), [1.0, 1.0, 1.0])
