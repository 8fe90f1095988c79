"""Thin-lens camera model for primary ray generation.

This module implements a look-at camera with optional depth of field.
The camera supports:
- Look-at positioning (look_from, look_at, vup)
- Vertical field of view in degrees
- Arbitrary aspect ratios
- A circular aperture focused at a chosen distance (aperture 0 = pinhole)
- Jittered sampling for anti-aliasing

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from look_at toward look_from (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The image plane is placed at the focus distance, so points at that distance
are sharp regardless of the aperture. Each ray starts at a random point on
the lens disk and passes through the image-plane point for (s, t).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raytracer.camera.camera import Camera, get_ray, setup_camera
    >>>
    >>> camera = Camera(
    ...     look_from=(13.0, 2.0, 3.0),
    ...     look_at=(0.0, 0.0, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=20.0,
    ...     aspect_ratio=3.0 / 2.0,
    ...     aperture=0.1,
    ...     focus_distance=10.0,
    ... )
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(0.5, 0.5, 0)  # Ray through image center, stream 0
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
import taichi as ti

from raytracer.core.ray import Ray, make_ray, random_in_unit_disk
from raytracer.core.sampler import random_f32

logger = logging.getLogger(__name__)

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class Camera:
    """Configuration for a thin-lens (perspective) camera.

    Attributes:
        look_from: Camera position in world space (x, y, z).
        look_at: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter. 0 gives a pinhole camera.
        focus_distance: Distance from look_from to the plane in focus.
    """

    look_from: tuple[float, float, float]
    look_at: tuple[float, float, float]
    vup: tuple[float, float, float]
    vfov: float
    aspect_ratio: float
    aperture: float = 0.0
    focus_distance: float = 1.0

    def __post_init__(self) -> None:
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"vfov must be in (0, 180) degrees, got {self.vfov}")
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if self.aperture < 0.0:
            raise ValueError(f"aperture must be non-negative, got {self.aperture}")
        if self.focus_distance <= 0.0:
            raise ValueError(f"focus_distance must be positive, got {self.focus_distance}")

        view = np.subtract(self.look_from, self.look_at)
        if not np.any(view):
            raise ValueError("look_from and look_at must be different points")
        if not np.any(np.cross(self.vup, view)):
            raise ValueError("vup must not be parallel to the viewing direction")

    @property
    def lens_radius(self) -> float:
        """Radius of the lens disk rays are started from."""
        return self.aperture / 2.0


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

# Camera origin (eye position)
_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Image plane at the focus distance
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full width
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full height
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())  # Lower-left of viewport

_lens_radius = ti.field(dtype=ti.f32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def setup_camera(camera: Camera) -> None:
    """Initialize camera state from configuration.

    Computes the camera's orthonormal basis (u, v, w) and the image plane at
    the focus distance. This must be called before rendering.

    Args:
        camera: Camera configuration with position, orientation, FOV and lens.

    Note:
        This function writes to Taichi fields and should be called from
        Python (not from within a Taichi kernel).
    """
    theta = math.radians(camera.vfov)
    half_height = math.tan(theta / 2.0)
    half_width = camera.aspect_ratio * half_height

    # Build orthonormal basis using NumPy (Python-side computation)
    look_from = np.array(camera.look_from, dtype=np.float64)
    look_at = np.array(camera.look_at, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    # w points from look_at toward look_from (backward)
    w = look_from - look_at
    w = w / np.linalg.norm(w)

    # u points right (perpendicular to w and vup)
    u = np.cross(vup, w)
    u = u / np.linalg.norm(u)

    # v points up in the camera's frame
    v = np.cross(w, u)

    focus = camera.focus_distance
    horizontal = 2.0 * focus * half_width * u
    vertical = 2.0 * focus * half_height * v
    lower_left = look_from - focus * (half_width * u + half_height * v + w)

    _camera_origin[None] = look_from.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()
    _lens_radius[None] = camera.lens_radius

    logger.debug(
        "Camera at %s looking at %s (vfov=%.1f, aperture=%.3f, focus=%.2f)",
        camera.look_from,
        camera.look_at,
        camera.vfov,
        camera.aperture,
        camera.focus_distance,
    )


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def get_ray(s: ti.f32, t: ti.f32, stream: ti.i32) -> Ray:
    """Generate a ray through normalized image coordinates (s, t).

    The ray starts at a random point on the lens disk and passes through the
    point (s, t) of the image plane. The coordinates are normalized:
    - s = 0: left edge, s = 1: right edge
    - t = 0: bottom edge, t = 1: top edge

    The direction is not normalized.

    Args:
        s: Horizontal coordinate in [0, 1] (left to right).
        t: Vertical coordinate in [0, 1] (bottom to top).
        stream: Index of the random stream owned by the calling task.

    Returns:
        A Ray from the lens toward the specified point on the image plane.
    """
    rd = _lens_radius[None] * random_in_unit_disk(stream)
    offset = _camera_u[None] * rd.x + _camera_v[None] * rd.y
    origin = _camera_origin[None] + offset

    target = _lower_left_corner[None] + s * _viewport_horizontal[None] + t * _viewport_vertical[None]

    return make_ray(origin, target - origin)


@ti.func
def get_ray_jittered(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    stream: ti.i32,
) -> Ray:
    """Generate a jittered ray for anti-aliasing.

    Adds a uniform random offset in [0, 1) to the pixel coordinates before
    converting them to normalized image coordinates. When accumulated over
    multiple samples, this produces smooth edges.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        stream: Index of the random stream owned by the calling task.

    Returns:
        A Ray with random sub-pixel offset.
    """
    jitter_s = random_f32(stream)
    jitter_t = random_f32(stream)

    s = (ti.cast(pixel_i, ti.f32) + jitter_s) / ti.cast(width, ti.f32)
    t = (ti.cast(pixel_j, ti.f32) + jitter_t) / ti.cast(height, ti.f32)

    return get_ray(s, t, stream)


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float] | float]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left
        and lens_radius.
    """

    def _as_tuple(field) -> tuple[float, float, float]:
        value = field[None]
        return (float(value[0]), float(value[1]), float(value[2]))

    return {
        "origin": _as_tuple(_camera_origin),
        "u": _as_tuple(_camera_u),
        "v": _as_tuple(_camera_v),
        "w": _as_tuple(_camera_w),
        "horizontal": _as_tuple(_viewport_horizontal),
        "vertical": _as_tuple(_viewport_vertical),
        "lower_left": _as_tuple(_lower_left_corner),
        "lens_radius": float(_lens_radius[None]),
    }
