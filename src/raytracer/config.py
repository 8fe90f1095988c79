"""Render configuration and backend initialization.

This module holds the settings that shape a render's cost/quality trade-off
(resolution, samples per pixel, bounce depth, seed) and the preallocated
capacity limits shared by the Taichi field declarations. None of these affect
the correctness of the light transport, only its cost and noise level.

Example:
    >>> from raytracer.config import RenderConfig
    >>> config = RenderConfig(width=400, height=200, samples_per_pixel=16)
    >>> config.validate()
    >>> config.aspect_ratio
    2.0
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import taichi as ti

logger = logging.getLogger(__name__)

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Default bounce limit for the radiance estimator
DEFAULT_MAX_DEPTH = 50


@dataclass
class RenderConfig:
    """Settings for a single render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of independent radiance samples averaged
            per pixel.
        max_depth: Maximum number of bounces per camera ray. A depth of zero
            renders the background colour everywhere.
        seed: Seed for the per-pixel random streams.
    """

    width: int = 1200
    height: int = 800
    samples_per_pixel: int = 10
    max_depth: int = DEFAULT_MAX_DEPTH
    seed: int = 0

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height

    def validate(self) -> None:
        """Check that every setting is usable.

        Raises:
            ValueError: If any setting is out of range.
        """
        if not 0 < self.width <= MAX_IMAGE_WIDTH or not 0 < self.height <= MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) exceed maximum supported "
                f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT}) or are not positive"
            )
        if self.samples_per_pixel < 1:
            raise ValueError(
                f"samples_per_pixel must be at least 1, got {self.samples_per_pixel}"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.seed < 0:
            raise ValueError(f"seed must be non-negative, got {self.seed}")


def init_taichi(arch: str = "cpu", seed: int = 0) -> str:
    """Initialize the Taichi runtime.

    Must be called before importing any module that declares Taichi fields.
    Requesting ``"gpu"`` falls back to the CPU backend when no GPU backend is
    available.

    Args:
        arch: ``"cpu"`` or ``"gpu"``.
        seed: Seed for Taichi's own runtime generator.

    Returns:
        The name of the backend actually initialized.

    Raises:
        ValueError: If arch is not recognized.
    """
    if arch not in ("cpu", "gpu"):
        raise ValueError(f"Unknown backend: {arch}")

    if arch == "gpu":
        try:
            ti.init(arch=ti.gpu, random_seed=seed)
            return "gpu"
        except RuntimeError as exc:
            logger.warning("GPU backend unavailable (%s), falling back to CPU", exc)

    ti.init(arch=ti.cpu, random_seed=seed)
    return "cpu"
