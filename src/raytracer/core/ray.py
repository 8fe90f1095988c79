"""Ray data structure and vector utilities for the Monte Carlo ray tracer.

This module provides the Ray dataclass and the vector helpers used by the
intersection, material and camera code. Every helper is a Taichi function so
it can be called from inside the rendering kernels.

Ray directions are never normalized by construction. Every formula that
consumes a direction must therefore be invariant to its length.

Random sampling helpers draw from an explicit per-task stream (see
``raytracer.core.sampler``) instead of a global generator.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raytracer.core.ray import Ray, ray_at, vec3
    >>> @ti.kernel
    ... def trace_one() -> vec3:
    ...     ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 0.0, -2.0))
    ...     return ray_at(ray, 1.5)  # (0, 0, -3)
"""

import taichi as ti
import taichi.math as tm

from raytracer.core.sampler import random_f32

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Rejection sampling gives up after this many tries. The acceptance rate is
# above 50% so the cap is never reached with a healthy stream.
MAX_REJECTION_TRIES = 100


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not normalized;
            its length only scales the ray parameter t.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a kernel."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector."""
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Unlike ``tm.normalize`` this never divides by zero: a zero-length input
    yields the zero vector, which every consumer treats as "no direction"
    (it can never produce a hit).

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as v, or the zero vector.
    """
    len_sq = length_squared(v)
    result = vec3(0.0, 0.0, 0.0)
    if len_sq > 0.0:
        result = v / ti.sqrt(len_sq)
    return result


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Computes r = d - 2 (d . n) n. The normal must be unit length.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (unit length).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(unit_incident: vec3, normal: vec3, eta_ratio: ti.f32):
    """Refract a unit incident vector through a surface (Snell's law).

    Uses the vector form of Snell's law. The normal must oppose the incident
    direction. When the discriminant 1 - eta^2 (1 - cos^2) is not positive
    the ray cannot refract (total internal reflection).

    Args:
        unit_incident: The incoming direction (unit length).
        normal: The surface normal facing the incoming ray (unit length).
        eta_ratio: Ratio of refractive indices n_incident / n_transmitted.

    Returns:
        A tuple (refracted, can_refract) where refracted is the transmitted
        direction (zero vector when can_refract is 0).
    """
    dt = tm.dot(unit_incident, normal)
    discriminant = 1.0 - eta_ratio * eta_ratio * (1.0 - dt * dt)
    refracted = vec3(0.0, 0.0, 0.0)
    can_refract = 0
    if discriminant > 0.0:
        refracted = eta_ratio * (unit_incident - normal * dt) - normal * ti.sqrt(discriminant)
        can_refract = 1
    return refracted, can_refract


@ti.func
def schlick_fresnel(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Compute Fresnel reflectance using Schlick's approximation.

    r0 = ((1 - n) / (1 + n))^2, R = r0 + (1 - r0) (1 - cos)^5. The value
    of r0 is the same for n and 1/n, so either ratio may be passed.

    Args:
        cosine: Cosine of the angle between incident direction and normal.
        ref_idx: Ratio of refractive indices.

    Returns:
        The approximate reflection probability.
    """
    r0 = ((1.0 - ref_idx) / (1.0 + ref_idx)) ** 2
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_in_unit_sphere(stream: ti.i32) -> vec3:
    """Generate a uniformly distributed point inside the unit ball.

    Rejection samples the cube [-1, 1)^3 until a point with squared length
    below one is found.

    Args:
        stream: Index of the random stream owned by the calling task.

    Returns:
        A random point with length < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_TRIES):
        if not found:
            p = vec3(
                random_f32(stream) * 2.0 - 1.0,
                random_f32(stream) * 2.0 - 1.0,
                random_f32(stream) * 2.0 - 1.0,
            )
            if length_squared(p) < 1.0:
                found = True
    if not found:
        p = vec3(0.0, 0.0, 0.0)
    return p


@ti.func
def random_in_unit_disk(stream: ti.i32) -> vec3:
    """Generate a uniformly distributed point inside the unit disk (z = 0).

    Used for depth-of-field lens sampling.

    Args:
        stream: Index of the random stream owned by the calling task.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_TRIES):
        if not found:
            p = vec3(
                random_f32(stream) * 2.0 - 1.0,
                random_f32(stream) * 2.0 - 1.0,
                0.0,
            )
            if p.x * p.x + p.y * p.y < 1.0:
                found = True
    if not found:
        p = vec3(0.0, 0.0, 0.0)
    return p
