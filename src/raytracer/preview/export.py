"""Image export utilities for rendered images.

This module turns the renderer's linear float buffer into 8-bit pixels and
saves them to disk. Encoding is:

    1. clamp each channel to [0, 1]
    2. gamma-encode (gamma 2.0, i.e. a square root, by default)
    3. scale by 255 and truncate to an integer

Supported formats:
    - PNG (8-bit via Pillow)

Example:
    >>> from raytracer.core.integrator import render
    >>> from raytracer.preview.export import save_png
    >>>
    >>> image = render(scene, 400, 200, num_samples=16)
    >>> save_png(image, "output.png")
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)

# Default display gamma (square-root encoding)
DEFAULT_GAMMA = 2.0


def _check_image_shape(image: npt.NDArray[np.floating]) -> None:
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (H, W, 3), got {image.shape}")


def apply_gamma(
    image: npt.NDArray[np.floating],
    gamma: float = DEFAULT_GAMMA,
) -> npt.NDArray[np.float32]:
    """Clamp a linear image to [0, 1] and gamma-encode it.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Display gamma (> 0). 2.0 takes the square root.

    Returns:
        The encoded float32 image, values in [0, 1].

    Raises:
        ValueError: If gamma is not positive.
    """
    if gamma <= 0.0:
        raise ValueError(f"Gamma must be positive, got {gamma}")

    clamped = np.clip(image, 0.0, 1.0).astype(np.float32)
    if gamma == 2.0:
        return np.sqrt(clamped)
    if gamma == 1.0:
        return clamped
    return np.power(clamped, 1.0 / gamma).astype(np.float32)


def encode_image(
    image: npt.NDArray[np.floating],
    gamma: float = DEFAULT_GAMMA,
) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to 8-bit pixels.

    Args:
        image: Linear image array of shape (H, W, 3), row 0 at the top.
        gamma: Display gamma. Default 2.0.

    Returns:
        8-bit image array of shape (H, W, 3).

    Raises:
        ValueError: If the image is not (H, W, 3) or gamma is not positive.
    """
    _check_image_shape(image)
    encoded = apply_gamma(image, gamma)
    # Truncation, not rounding: 255 is only reached by a full-intensity channel
    return (encoded * 255.0).astype(np.uint8)


def save_png(
    image: npt.NDArray[np.floating],
    filepath: str | Path,
    gamma: float = DEFAULT_GAMMA,
) -> None:
    """Save a linear float image as an 8-bit PNG file.

    Args:
        image: Linear image array of shape (H, W, 3), row 0 at the top.
        filepath: Output file path (should end in .png).
        gamma: Display gamma. Default 2.0.

    Raises:
        ValueError: If the image is not (H, W, 3) or gamma is not positive.
        OSError: If the file cannot be written.
    """
    pixels = encode_image(image, gamma)
    PILImage.fromarray(pixels).save(filepath)
    logger.info("Saved %dx%d image to %s", pixels.shape[1], pixels.shape[0], filepath)
