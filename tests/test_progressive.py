"""Tests for the progressive renderer.

This module tests the ProgressiveRenderer class including:
- Initialization and setup
- Progressive sample accumulation
- Batch rendering and its equivalence to a single pass
- Progress callbacks and generators
- Reset functionality
- Image output

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

import numpy as np
import pytest


@pytest.fixture
def quads_scene():
    """The built-in quads scene at 16x16."""
    from raytracer.scene.presets import build_scene

    return build_scene("quads", 16, 16)


class TestProgressiveRendererInit:
    """Test ProgressiveRenderer initialization."""

    def test_init_creates_render_target(self, quads_scene):
        """Initialization sets up an empty render target of the given size."""
        from raytracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(32, 24, camera=quads_scene.camera)

        assert renderer.width == 32
        assert renderer.height == 24
        assert renderer.sample_count == 0

    def test_init_rejects_oversized_dimensions(self):
        """Dimensions above the maximum raise ValueError."""
        from raytracer.core.progressive import ProgressiveRenderer

        with pytest.raises(ValueError, match="exceed maximum"):
            ProgressiveRenderer(4096, 100)

    def test_init_rejects_negative_depth(self):
        """A negative bounce limit raises ValueError."""
        from raytracer.core.progressive import ProgressiveRenderer

        with pytest.raises(ValueError, match="max_depth"):
            ProgressiveRenderer(16, 16, max_depth=-1)

    def test_repr(self, quads_scene):
        """repr shows the size and sample count."""
        from raytracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 8, camera=quads_scene.camera)
        assert repr(renderer) == "ProgressiveRenderer(width=16, height=8, samples=0)"


class TestProgressiveAccumulation:
    """Test sample accumulation across batches."""

    def test_render_adds_samples(self, quads_scene):
        """Repeated render calls keep adding samples."""
        from raytracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16, max_depth=5, camera=quads_scene.camera)
        renderer.render(3)
        renderer.render(2, batch_size=2)

        assert renderer.sample_count == 5

    def test_batches_match_single_pass(self, quads_scene):
        """Two batches of one sample equal one batch of two, for the same seed."""
        from raytracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16, max_depth=5, seed=9, camera=quads_scene.camera)
        renderer.render(2, batch_size=1)
        split = renderer.snapshot()

        renderer.reset()
        renderer.render(2, batch_size=2)
        single = renderer.snapshot()

        np.testing.assert_allclose(split, single, rtol=1e-5, atol=1e-6)

    def test_matches_one_shot_render(self, quads_scene):
        """Progressive rendering agrees with integrator.render for the same seed."""
        from raytracer.core.integrator import render
        from raytracer.core.progressive import ProgressiveRenderer

        expected = render(quads_scene, 16, 16, num_samples=4, max_depth=5, seed=4)

        renderer = ProgressiveRenderer(16, 16, max_depth=5, seed=4, camera=quads_scene.camera)
        renderer.render(4, batch_size=3)

        np.testing.assert_allclose(renderer.snapshot(), expected, rtol=1e-5, atol=1e-6)

    def test_reset_clears_and_repeats(self, quads_scene):
        """After reset the same render is produced again."""
        from raytracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16, max_depth=5, seed=2, camera=quads_scene.camera)
        renderer.render(2)
        first = renderer.snapshot()

        renderer.reset()
        assert renderer.sample_count == 0

        renderer.render(2)
        np.testing.assert_array_equal(renderer.snapshot(), first)

    def test_resize(self, quads_scene):
        """resize changes the target size and clears samples."""
        from raytracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16, max_depth=5, camera=quads_scene.camera)
        renderer.render(1)
        renderer.resize(8, 4)

        assert (renderer.width, renderer.height) == (8, 4)
        assert renderer.sample_count == 0
        assert renderer.snapshot().shape == (4, 8, 3)


class TestProgressCallbacks:
    """Test the callback and generator interfaces."""

    def test_callback_receives_progress(self, quads_scene):
        """The callback is called after every batch with (current, target)."""
        from raytracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8, max_depth=3, camera=quads_scene.camera)
        calls = []
        renderer.render(5, batch_size=2, callback=lambda cur, tgt: calls.append((cur, tgt)))

        assert calls == [(2, 5), (4, 5), (5, 5)]

    def test_generator_yields_progress(self, quads_scene):
        """render_progressive yields after each batch."""
        from raytracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8, max_depth=3, camera=quads_scene.camera)
        renderer.render(1)

        progress = list(renderer.render_progressive(3, batch_size=3))
        assert progress == [(4, 4)]

    def test_zero_samples_is_a_no_op(self, quads_scene):
        """Asking for no samples renders nothing."""
        from raytracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8, camera=quads_scene.camera)
        assert list(renderer.render_progressive(0)) == []
        assert renderer.sample_count == 0

    def test_invalid_batch_size(self, quads_scene):
        """A batch size below 1 raises ValueError."""
        from raytracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8, camera=quads_scene.camera)
        with pytest.raises(ValueError, match="batch_size"):
            renderer.render(4, batch_size=0)


class TestProgressiveOutput:
    """Test snapshots and saved images."""

    def test_snapshot_is_a_copy(self, quads_scene):
        """Later renders do not change an earlier snapshot."""
        from raytracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8, max_depth=3, camera=quads_scene.camera)
        renderer.render(1)
        snapshot = renderer.snapshot()
        saved = snapshot.copy()

        renderer.render(4)
        np.testing.assert_array_equal(snapshot, saved)

    def test_save_image(self, quads_scene, tmp_path):
        """save_image writes a PNG of the render size."""
        from PIL import Image

        from raytracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 8, max_depth=3, camera=quads_scene.camera)
        renderer.render(1)
        output = tmp_path / "render.png"
        renderer.save_image(output)

        assert output.exists()
        with Image.open(output) as img:
            assert img.size == (16, 8)
            assert img.mode == "RGB"

    def test_world_survives_another_scene(self, quads_scene):
        """A renderer given a world keeps drawing it after another scene is built."""
        from raytracer.core.progressive import ProgressiveRenderer
        from raytracer.scene.presets import build_scene

        renderer = ProgressiveRenderer(
            16, 16, max_depth=5, seed=5, camera=quads_scene.camera, world=quads_scene.world
        )
        renderer.render(2)
        expected = renderer.snapshot()

        renderer.reset()
        build_scene("spheres", 16, 16)
        renderer.render(2)

        np.testing.assert_array_equal(renderer.snapshot(), expected)
