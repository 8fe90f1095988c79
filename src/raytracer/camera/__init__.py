"""Camera module for view and ray generation.

Components:
    camera: Thin-lens camera with look-at positioning and depth of field

Camera responsibilities:
    - Transform (s, t) image coordinates to world-space rays
    - Apply anti-aliasing jitter for sub-pixel sampling
    - Sample the lens aperture for depth of field

Ray generation uses normalized device coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image
"""

from .camera import (
    Camera,
    get_camera_info,
    get_ray,
    get_ray_jittered,
    setup_camera,
)

__all__ = [
    "Camera",
    "setup_camera",
    "get_ray",
    "get_ray_jittered",
    "get_camera_info",
]
