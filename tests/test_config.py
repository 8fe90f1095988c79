"""Tests for render configuration."""

import pytest

from raytracer.config import DEFAULT_MAX_DEPTH, RenderConfig, init_taichi


class TestRenderConfig:
    """Tests for RenderConfig."""

    def test_defaults(self):
        """Defaults match the standard 1200x800 render."""
        config = RenderConfig()

        assert (config.width, config.height) == (1200, 800)
        assert config.samples_per_pixel == 10
        assert config.max_depth == DEFAULT_MAX_DEPTH == 50
        assert config.aspect_ratio == pytest.approx(1.5)
        config.validate()

    def test_depth_zero_is_valid(self):
        """A zero bounce limit is allowed."""
        RenderConfig(max_depth=0).validate()

    @pytest.mark.parametrize(
        "kwargs, message",
        [
            ({"width": 0}, "exceed maximum"),
            ({"height": 3000}, "exceed maximum"),
            ({"samples_per_pixel": 0}, "samples_per_pixel"),
            ({"max_depth": -1}, "max_depth"),
            ({"seed": -1}, "seed"),
        ],
    )
    def test_validate_rejects(self, kwargs, message):
        """Out-of-range settings raise ValueError."""
        with pytest.raises(ValueError, match=message):
            RenderConfig(**kwargs).validate()


class TestInitTaichi:
    """Tests for init_taichi."""

    def test_unknown_backend(self):
        """Unknown backends are rejected before touching the runtime."""
        with pytest.raises(ValueError, match="Unknown backend"):
            init_taichi("tpu")
