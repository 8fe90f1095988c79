"""Preview module for rendered output.

Components:
    export: Gamma encoding and PNG export (Pillow)

Example:
    >>> from raytracer.preview import save_png
    >>> save_png(image, "output.png")
"""

from .export import DEFAULT_GAMMA, apply_gamma, encode_image, save_png

__all__ = [
    "DEFAULT_GAMMA",
    "apply_gamma",
    "encode_image",
    "save_png",
]
