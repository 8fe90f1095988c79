"""Sphere primitive with ray-sphere intersection.

The ray-sphere intersection is found by solving:
    |ray_origin + t * ray_direction - center|^2 = radius^2

which expands to the quadratic a*t^2 + 2*h*t + c = 0 with
    a = dot(direction, direction)
    h = dot(direction, origin - center)   (half of the usual b)
    c = dot(origin - center, origin - center) - radius^2

The reported normal is (point - center) / radius. It is unit length for a
positive radius and points inward for a negative radius, which is how hollow
glass shells are modelled (a negative-radius sphere nested inside a positive
one).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raytracer.geometry.sphere import Sphere, hit_sphere
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from raytracer.core.ray import Ray, ray_at

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere. Negative values flip the normal.
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: Whether the ray intersected the primitive (1 if hit, 0 if miss).
        t: The ray parameter of the intersection. Only valid if hit == 1.
        point: The 3D intersection point. Only valid if hit == 1.
        normal: The surface normal at the intersection point.
            Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3


@ti.func
def make_miss() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
    )


@ti.func
def hit_sphere(
    ray: Ray,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection.

    Only hits with t strictly inside (t_min, t_max) are reported. The nearer
    root is tried first, then the farther one. A tangent ray (discriminant
    exactly zero) is treated as a miss, as is any zero-radius sphere.

    Args:
        ray: The ray to test. Its direction need not be normalized.
        sphere: The sphere to test intersection against.
        t_min: Exclusive lower bound on t (avoids self-intersection).
        t_max: Exclusive upper bound on t (closest hit found so far).

    Returns:
        A HitRecord containing intersection information. Check the hit field
        to determine if an intersection occurred.
    """
    oc = ray.origin - sphere.center

    a = tm.dot(ray.direction, ray.direction)
    h = tm.dot(ray.direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    discriminant = h * h - a * c

    # Initialize result fields (Taichi requires outer-scope declaration)
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)

    # discriminant > 0 implies a > 0, so the divisions below are safe
    if discriminant > 0.0 and sphere.radius != 0.0:
        sqrt_d = ti.sqrt(discriminant)

        t = (-h - sqrt_d) / a
        valid = (t > t_min) and (t < t_max)

        if not valid:
            t = (-h + sqrt_d) / a
            valid = (t > t_min) and (t < t_max)

        if valid:
            did_hit = 1
            hit_t = t
            hit_point = ray_at(ray, t)
            hit_normal = (hit_point - sphere.center) / sphere.radius

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
    )


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a sphere from center and radius inside a kernel."""
    return Sphere(center=center, radius=radius)
