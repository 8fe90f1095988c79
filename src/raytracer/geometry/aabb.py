"""Axis-aligned bounding boxes.

An AABB is the building block of a bounding volume hierarchy. The renderer
does not use one (the World is a linear scan), but the slab test and box
union are kept so bounding boxes can be computed and checked for any
primitive in the scene.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raytracer.geometry.aabb import AABB, hit_aabb, surrounding_box
    >>> # Use within a Taichi kernel:
    >>> # box = surrounding_box(sphere_box(s0), sphere_box(s1))
    >>> # if hit_aabb(box, ray, 0.001, 1e10): ...
"""

import taichi as ti
import taichi.math as tm

from raytracer.core.ray import Ray
from raytracer.geometry.quad import Quad
from raytracer.geometry.sphere import Sphere

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class AABB:
    """An axis-aligned box given by its minimum and maximum corners.

    Attributes:
        minimum: Corner with the smallest coordinates (vec3).
        maximum: Corner with the largest coordinates (vec3).
    """

    minimum: vec3
    maximum: vec3


@ti.func
def hit_aabb(box: AABB, ray: Ray, t_min: ti.f32, t_max: ti.f32) -> ti.i32:
    """Slab test: does the ray pass through the box within (t_min, t_max)?

    For each axis the ray's entry and exit parameters are intersected with
    the running interval; an empty interval means a miss. A zero direction
    component yields infinite slab bounds under IEEE arithmetic, which the
    comparisons handle without special cases.

    Args:
        box: The box to test.
        ray: The ray to test. Its direction need not be normalized.
        t_min: Lower bound of the parameter interval.
        t_max: Upper bound of the parameter interval.

    Returns:
        1 if the ray overlaps the box inside the interval, 0 otherwise.
    """
    lo = t_min
    hi = t_max
    result = 1
    for axis in ti.static(range(3)):
        inv_d = 1.0 / ray.direction[axis]
        t0 = (box.minimum[axis] - ray.origin[axis]) * inv_d
        t1 = (box.maximum[axis] - ray.origin[axis]) * inv_d
        if inv_d < 0.0:
            temp = t0
            t0 = t1
            t1 = temp
        if t0 > lo:
            lo = t0
        if t1 < hi:
            hi = t1
        if hi <= lo:
            result = 0
    return result


@ti.func
def surrounding_box(box0: AABB, box1: AABB) -> AABB:
    """Smallest box enclosing both input boxes."""
    return AABB(
        minimum=tm.min(box0.minimum, box1.minimum),
        maximum=tm.max(box0.maximum, box1.maximum),
    )


@ti.func
def sphere_box(sphere: Sphere) -> AABB:
    """Bounding box of a sphere (valid for negative radii too)."""
    extent = ti.abs(sphere.radius)
    r = vec3(extent, extent, extent)
    return AABB(minimum=sphere.center - r, maximum=sphere.center + r)


@ti.func
def quad_box(quad: Quad) -> AABB:
    """Bounding box of a quad's four corners."""
    far = quad.Q + quad.u + quad.v
    diagonal = AABB(minimum=tm.min(quad.Q, far), maximum=tm.max(quad.Q, far))
    corner_u = quad.Q + quad.u
    corner_v = quad.Q + quad.v
    other = AABB(minimum=tm.min(corner_u, corner_v), maximum=tm.max(corner_u, corner_v))
    return surrounding_box(diagonal, other)
