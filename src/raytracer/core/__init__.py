"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    ray: Ray data structure and vector utilities
    sampler: Per-task random number streams
    integrator: Radiance estimation and the parallel render kernel
    progressive: Batched, resumable rendering on top of the integrator

The integrator estimates radiance with an iterative path tracer: emission is
accumulated along the path, throughput is multiplied by each material's
attenuation, and the path ends on escape, absorption or depth exhaustion.

All compute-intensive operations use Taichi kernels.
"""

from .ray import (
    Ray,
    length_squared,
    make_ray,
    normalize,
    random_in_unit_disk,
    random_in_unit_sphere,
    ray_at,
    reflect,
    refract,
    schlick_fresnel,
    vec3,
)
from .sampler import get_stream_state, next_u32, random_f32, seed_streams

# Note: integrator and progressive are NOT imported here to avoid circular imports.
# Import directly from raytracer.core.integrator or raytracer.core.progressive.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length_squared",
    "normalize",
    "reflect",
    "refract",
    "schlick_fresnel",
    "random_in_unit_sphere",
    "random_in_unit_disk",
    "seed_streams",
    "get_stream_state",
    "next_u32",
    "random_f32",
]
