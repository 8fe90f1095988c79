"""Progressive renderer for iterative sample accumulation.

This module provides a convenient wrapper around the core integrator that supports:
- Progressive rendering that refines over time
- Batch rendering (multiple SPP in one kernel launch)
- Progress callbacks and a generator interface for UI updates
- Easy reset and re-render functionality

Each batch is summed per pixel inside the render task and merged into the
running mean once, so rendering N samples as several batches with the same
seed gives the same image as a single batch of N (up to float rounding).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raytracer.core.progressive import ProgressiveRenderer
    >>> from raytracer.scene.presets import build_scene
    >>>
    >>> scene = build_scene("spheres", width=300, height=200)
    >>> renderer = ProgressiveRenderer(
    ...     300, 200, camera=scene.camera, world=scene.world, seed=7
    ... )
    >>> renderer.render(64, batch_size=8)
    >>> image = renderer.snapshot()
"""

import logging
from collections.abc import Callable, Generator
from pathlib import Path

import numpy as np
import numpy.typing as npt

from raytracer.camera.camera import Camera, setup_camera
from raytracer.config import DEFAULT_MAX_DEPTH
from raytracer.core.integrator import (
    clear_render_target,
    get_image,
    get_total_samples,
    render_batch,
    setup_render_target,
)
from raytracer.core.sampler import seed_streams
from raytracer.preview.export import DEFAULT_GAMMA, save_png
from raytracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """A progressive renderer that accumulates samples over time.

    The renderer maintains its own width/height, depth and seed, and
    delegates to the global integrator buffers (which are Taichi fields).
    Given a world and camera, it sets them up again before each batch, so
    building another scene in between does not change what is drawn.
    Without them it draws whatever scene and camera are currently loaded.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Maximum bounces per path.
        seed: Seed for the per-pixel random streams.
        world: The scene drawn, or None for the currently loaded scene.
    """

    def __init__(
        self,
        width: int,
        height: int,
        max_depth: int = DEFAULT_MAX_DEPTH,
        seed: int = 0,
        camera: Camera | None = None,
        world: SceneManager | None = None,
    ) -> None:
        """Initialize the progressive renderer.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).
            max_depth: Maximum bounces per path.
            seed: Seed for the per-pixel random streams.
            camera: Camera to set up. If omitted, the camera already set up
                with setup_camera() is used.
            world: Scene to draw. If omitted, the scene currently loaded in
                the global fields is drawn.

        Raises:
            ValueError: If dimensions, depth or seed are out of range.
        """
        if max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {max_depth}")

        self._width = width
        self._height = height
        self.max_depth = max_depth
        self.seed = seed
        self.world = world
        self._camera = camera

        self._activate_scene()
        setup_render_target(width, height)
        seed_streams(seed)

    def _activate_scene(self) -> None:
        """Load this renderer's world and camera if either was given."""
        if self.world is not None:
            self.world.activate()
        if self._camera is not None:
            setup_camera(self._camera)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Reset the accumulator for a new render.

        Clears the colour buffer and sample count and reseeds the random
        streams, so the next render repeats the first one exactly.
        """
        clear_render_target()
        seed_streams(self.seed)

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and reset accumulator.

        Raises:
            ValueError: If dimensions exceed maximum supported size.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height
        seed_streams(self.seed)

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render samples progressively with optional progress callback.

        Accumulates the specified number of samples into the existing buffer.
        Can be called multiple times to continue refining the image.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples per kernel launch and per callback.
                A larger batch size reduces launch overhead but provides
                less frequent updates.
            callback: Optional callback function called after each batch.
                Receives (current_total_samples, target_total_samples).

        Example:
            >>> def progress(current, target):
            ...     print(f"Progress: {current}/{target} samples")
            >>> renderer.render(100, batch_size=10, callback=progress)
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples progressively, yielding progress after each batch.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each yield.

        Yields:
            Tuple of (current_total_samples, target_total_samples).

        Raises:
            ValueError: If batch_size is less than 1.

        Example:
            >>> for current, target in renderer.render_progressive(100, batch_size=10):
            ...     print(f"Progress: {current}/{target} samples")
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        if num_samples <= 0:
            return

        target_samples = self.sample_count + num_samples

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            self._activate_scene()
            render_batch(batch, self.max_depth)
            remaining -= batch
            logger.debug("Accumulated %d/%d samples", self.sample_count, target_samples)
            yield (self.sample_count, target_samples)

    def snapshot(self) -> npt.NDArray[np.float32]:
        """Get a copy of the current image.

        Returns:
            A new float32 array of shape (height, width, 3), linear RGB,
            row 0 at the top. Later renders do not modify it.
        """
        return get_image()

    def save_image(self, filepath: str | Path, gamma: float = DEFAULT_GAMMA) -> None:
        """Save the current image as a PNG file.

        Args:
            filepath: Path to save the image (e.g., "output.png").
            gamma: Display gamma. Default 2.0.
        """
        save_png(self.snapshot(), filepath, gamma=gamma)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count})"
        )
