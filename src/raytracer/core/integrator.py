"""Path tracing integrator for Monte Carlo light transport.

This module implements the radiance estimator and the parallel render kernel.

The estimator follows a camera ray through the scene. At every hit it adds the
surface's emission weighted by the path throughput, then asks the material
how the ray continues and multiplies the throughput by the material's
attenuation. A path ends when it escapes (picking up the background), is
absorbed, or runs out of bounces. Unrolled, this is the recursion

    L(ray, depth) = emitted + attenuation * L(scattered, depth - 1)

with L = background at depth 0 or on a miss. The background is black, so a
scene is lit only by its emissive surfaces.

Key features:
    - Material dispatch (Lambertian, Metal, Dielectric, DiffuseLight)
    - Hard depth cutoff, no Russian roulette
    - Bounce rays start exactly at the hit point; T_MIN skips self-hits
    - One random stream per pixel, so renders are reproducible per seed
    - Batched accumulation into a running per-pixel mean

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raytracer.core.integrator import render
    >>> from raytracer.scene.presets import build_scene
    >>>
    >>> scene = build_scene("quads", width=200, height=200)
    >>> image = render(scene, 200, 200, num_samples=16, max_depth=10, seed=1)
    >>> image.shape
    (200, 200, 3)
"""

import logging

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from raytracer.camera.camera import get_ray, get_ray_jittered, setup_camera
from raytracer.config import DEFAULT_MAX_DEPTH, MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH, RenderConfig
from raytracer.core.ray import Ray, make_ray
from raytracer.core.sampler import seed_streams
from raytracer.materials.dielectric import scatter_dielectric_by_id
from raytracer.materials.diffuse_light import get_light_emission
from raytracer.materials.lambertian import scatter_lambertian_by_id
from raytracer.materials.metal import scatter_metal_by_id
from raytracer.scene.intersection import intersect_scene
from raytracer.scene.manager import (
    MaterialType,
    Scene,
    get_material_type,
    get_material_type_index,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# t_min and t_max for ray intersection
T_MIN = 0.001
T_MAX = tm.inf

# Background/environment color (black: only emissive surfaces light the scene)
BACKGROUND_COLOR = vec3(0.0, 0.0, 0.0)

# Aspect ratios further apart than this trigger a warning
ASPECT_TOLERANCE = 1e-3

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Running mean of all samples per pixel (preallocated to max size)
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Number of samples averaged into every active pixel
_total_samples = ti.field(dtype=ti.i32, shape=())

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())

# Result slot for single-ray traces
_traced_color = ti.Vector.field(3, dtype=ti.f32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers. The buffers are
    preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT to avoid Taichi
    kernel recompilation.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum.
    """
    if not 0 < width <= MAX_IMAGE_WIDTH or not 0 < height <= MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT}) or are not positive"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _total_samples[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_total_samples() -> int:
    """Get the number of samples averaged into each pixel so far.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return int(_total_samples[None])


def get_image() -> npt.NDArray[np.float32]:
    """Get the rendered image as a NumPy array.

    The buffer is indexed (i, j) with j = 0 at the bottom; the returned array
    is (height, width, 3) with row 0 at the top, i.e. pixel (i, j) lands in
    row height - j - 1. Values are linear radiance and are not clamped.

    Returns:
        A new float32 array of shape (height, width, 3).

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    full_image = _color_buffer.to_numpy()

    # Transpose from (width, height, 3) to (height, width, 3), then put the top row first
    image = np.transpose(full_image[:width, :height, :], (1, 0, 2))
    image = np.flipud(image)

    return np.ascontiguousarray(image, dtype=np.float32)


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    hit_point: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Dispatch to the appropriate material scattering function.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction.
        hit_point: The intersection point on the surface.
        normal: The normal reported by the hit surface.
        stream: Index of the random stream owned by the calling task.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The new ray direction.
        - attenuation: The color attenuation for this bounce.
        - did_scatter: 1 if ray scattered, 0 if absorbed or emitted.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    # Default values (lights and unknown materials do not scatter)
    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation, did_scatter = scatter_lambertian_by_id(
            type_index, hit_point, normal, stream
        )

    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter = scatter_metal_by_id(
            type_index, incident_direction, normal, stream
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, did_scatter = scatter_dielectric_by_id(
            type_index, incident_direction, normal, stream
        )

    return scattered_direction, attenuation, did_scatter


@ti.func
def _get_emission(material_id: ti.i32) -> vec3:
    """Get the radiance emitted by a material (zero unless it is a light)."""
    emission = vec3(0.0, 0.0, 0.0)
    if get_material_type(material_id) == int(MaterialType.DIFFUSE_LIGHT):
        emission = get_light_emission(get_material_type_index(material_id))
    return emission


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def radiance(ray: Ray, max_depth: ti.i32, stream: ti.i32) -> vec3:
    """Estimate the radiance arriving along a ray.

    Args:
        ray: The ray to trace. Its direction need not be normalized.
        max_depth: Maximum number of surface interactions. 0 returns the
            background colour without tracing.
        stream: Index of the random stream owned by the calling task.

    Returns:
        A one-sample radiance estimate (RGB).
    """
    origin = ray.origin
    direction = ray.direction

    # Accumulated radiance and path throughput
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)

    # Active flag for path continuation (no break in ti.func loops)
    active = 1

    for _ in range(max_depth):
        if active == 1:
            hit_record = intersect_scene(make_ray(origin, direction), T_MIN, T_MAX)

            if hit_record.hit == 0:
                # Ray escaped
                color += throughput * BACKGROUND_COLOR
                active = 0
            else:
                color += throughput * _get_emission(hit_record.material_id)

                scattered_direction, attenuation, did_scatter = _scatter_material(
                    hit_record.material_id,
                    direction,
                    hit_record.point,
                    hit_record.normal,
                    stream,
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    origin = hit_record.point
                    direction = scattered_direction

    # Depth exhausted with the path still alive
    if active == 1:
        color += throughput * BACKGROUND_COLOR

    return color


@ti.func
def sample_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.i32,
    stream: ti.i32,
) -> vec3:
    """Trace one jittered camera ray through a pixel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Maximum number of bounces.
        stream: Index of the random stream owned by the calling task.

    Returns:
        The radiance estimate for this sample.
    """
    ray = get_ray_jittered(pixel_i, pixel_j, width, height, stream)
    return radiance(ray, max_depth, stream)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_batch(
    width: ti.i32,
    height: ti.i32,
    num_samples: ti.i32,
    max_depth: ti.i32,
    previous_samples: ti.i32,
):
    """Render a batch of samples for every pixel and fold them into the mean.

    Each pixel is one parallel task using the random stream j * width + i.
    The batch is summed in a task-local accumulator and merged into the
    pixel's running mean once:

        mean' = (mean * previous + batch_sum) / (previous + num_samples)
    """
    for i, j in ti.ndrange(width, height):
        stream = j * width + i

        batch_sum = vec3(0.0, 0.0, 0.0)
        for _ in range(num_samples):
            batch_sum += sample_pixel(i, j, width, height, max_depth, stream)

        total = ti.cast(previous_samples + num_samples, ti.f32)
        previous = ti.cast(previous_samples, ti.f32)
        _color_buffer[i, j] = (_color_buffer[i, j] * previous + batch_sum) / total


@ti.kernel
def _trace_ray_kernel(origin: vec3, direction: vec3, max_depth: ti.i32, stream: ti.i32):
    # Single-iteration outer loop keeps the path loop serial
    for _ in range(1):
        _traced_color[None] = radiance(make_ray(origin, direction), max_depth, stream)


@ti.kernel
def _trace_camera_ray_kernel(s: ti.f32, t: ti.f32, max_depth: ti.i32, stream: ti.i32):
    for _ in range(1):
        _traced_color[None] = radiance(get_ray(s, t, stream), max_depth, stream)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_batch(num_samples: int, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
    """Add num_samples samples per pixel to the render target.

    Uses the scene, camera and random streams as currently set up. Can be
    called repeatedly to refine the image.

    Args:
        num_samples: Number of samples to add per pixel (>= 1).
        max_depth: Maximum number of bounces per path (>= 0).

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If num_samples or max_depth is out of range.
    """
    _check_render_target_initialized()
    if num_samples < 1:
        raise ValueError(f"num_samples must be at least 1, got {num_samples}")
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")

    width, height = get_image_dimensions()
    previous = int(_total_samples[None])
    _render_batch(width, height, num_samples, max_depth, previous)
    _total_samples[None] = previous + num_samples


def render(
    scene: Scene,
    width: int,
    height: int,
    num_samples: int,
    max_depth: int = DEFAULT_MAX_DEPTH,
    seed: int = 0,
) -> npt.NDArray[np.float32]:
    """Render a scene to a linear RGB image.

    Every pixel averages num_samples independent jittered samples. For a
    fixed scene, size, sample count, depth and seed the result is
    bit-for-bit reproducible.

    Args:
        scene: The scene to render. Its world is reloaded first if another
            scene has replaced it in the global fields.
        width: Image width in pixels.
        height: Image height in pixels.
        num_samples: Samples per pixel.
        max_depth: Maximum number of bounces per path.
        seed: Seed for the per-pixel random streams.

    Returns:
        A float32 array of shape (height, width, 3), row 0 at the top.

    Raises:
        ValueError: If any parameter is out of range.
    """
    config = RenderConfig(
        width=width,
        height=height,
        samples_per_pixel=num_samples,
        max_depth=max_depth,
        seed=seed,
    )
    config.validate()

    if abs(scene.camera.aspect_ratio - config.aspect_ratio) > ASPECT_TOLERANCE:
        logger.warning(
            "Camera aspect ratio %.4f does not match image aspect ratio %.4f; "
            "the image will be stretched",
            scene.camera.aspect_ratio,
            config.aspect_ratio,
        )

    scene.world.activate()
    setup_camera(scene.camera)
    seed_streams(seed)
    setup_render_target(width, height)

    logger.info(
        "Rendering %dx%d, %d samples/pixel, max depth %d, %d surfaces",
        width,
        height,
        num_samples,
        max_depth,
        scene.world.get_surface_count(),
    )
    render_batch(num_samples, max_depth)

    return get_image()


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = DEFAULT_MAX_DEPTH,
    stream: int = 0,
) -> tuple[float, float, float]:
    """Estimate the radiance along a single ray (one sample).

    This is a Python-callable function for testing and debugging. For
    production rendering, use render() which processes all pixels in
    parallel.

    Args:
        origin: Ray origin.
        direction: Ray direction (any non-zero length).
        max_depth: Maximum number of bounces.
        stream: Random stream to draw from.

    Returns:
        Tuple of (R, G, B) radiance values.
    """
    _trace_ray_kernel(
        vec3(origin[0], origin[1], origin[2]),
        vec3(direction[0], direction[1], direction[2]),
        max_depth,
        stream,
    )
    color = _traced_color[None]
    return (float(color[0]), float(color[1]), float(color[2]))


def trace_camera_ray(
    s: float,
    t: float,
    max_depth: int = DEFAULT_MAX_DEPTH,
    stream: int = 0,
) -> tuple[float, float, float]:
    """Estimate the radiance through image coordinates (s, t) of the current camera.

    Args:
        s: Horizontal image coordinate in [0, 1] (left to right).
        t: Vertical image coordinate in [0, 1] (bottom to top).
        max_depth: Maximum number of bounces.
        stream: Random stream to draw from.

    Returns:
        Tuple of (R, G, B) radiance values.
    """
    _trace_camera_ray_kernel(s, t, max_depth, stream)
    color = _traced_color[None]
    return (float(color[0]), float(color[1]), float(color[2]))
