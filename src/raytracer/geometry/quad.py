"""Quad primitive with ray-quad intersection.

A quad is defined by:
- Q: A corner point of the quad
- u: Edge vector from Q to adjacent corner
- v: Edge vector from Q to other adjacent corner

The quad spans the parallelogram from Q to Q+u+v. Plane data is derived once
when the quad is built and cached alongside the corner and edges:
- normal: normalize(u x v)
- d: plane offset, dot(normal, Q)
- w: (u x v) / dot(u x v, u x v), used to recover planar coordinates

Ray-quad intersection uses the parametric plane test:
1. Find where the ray intersects the plane containing the quad
2. Express the hit point as Q + alpha*u + beta*v
3. Accept only 0 <= alpha < 1 and 0 <= beta < 1 (the far edges are excluded)

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raytracer.geometry.quad import hit_quad, make_quad
    >>> # Floor quad at y=0, spanning x=[0,1) and z=[0,1)
    >>> # quad = make_quad(vec3(0, 0, 0), vec3(1, 0, 0), vec3(0, 0, 1))  (in a kernel)
"""

import taichi as ti
import taichi.math as tm

from raytracer.core.ray import Ray, ray_at
from raytracer.geometry.sphere import HitRecord

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Rays with |dot(normal, direction)| below this are treated as parallel
PARALLEL_EPSILON = 1e-8


@ti.dataclass
class Quad:
    """A quad (parallelogram) with its cached plane frame.

    Attributes:
        Q: The corner point of the quad (vec3).
        u: Edge vector from Q to adjacent corner (vec3).
        v: Edge vector from Q to other adjacent corner (vec3).
        normal: Unit plane normal, normalize(u x v). Zero for a degenerate quad.
        d: Plane offset dot(normal, Q).
        w: Helper vector (u x v) / |u x v|^2. Zero for a degenerate quad.
    """

    Q: vec3
    u: vec3
    v: vec3
    normal: vec3
    d: ti.f32
    w: vec3


@ti.func
def make_quad(q: vec3, u: vec3, v: vec3) -> Quad:
    """Create a quad and derive its plane frame.

    A degenerate quad (u parallel to v, or a zero edge) gets a zero normal,
    which makes every ray look parallel to it so it is never hit.

    Args:
        q: The corner point of the quad.
        u: Edge vector from q to adjacent corner.
        v: Edge vector from q to other adjacent corner.

    Returns:
        A new Quad instance with cached normal, d and w.
    """
    n = tm.cross(u, v)
    n_dot_n = tm.dot(n, n)

    normal = vec3(0.0, 0.0, 0.0)
    w = vec3(0.0, 0.0, 0.0)
    if n_dot_n > 0.0:
        normal = n / ti.sqrt(n_dot_n)
        w = n / n_dot_n

    return Quad(Q=q, u=u, v=v, normal=normal, d=tm.dot(normal, q), w=w)


@ti.func
def hit_quad(
    ray: Ray,
    quad: Quad,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-quad intersection.

    The ray-plane intersection is found by solving:
        dot(normal, ray_origin + t * ray_direction) = d

    The planar hit vector p = P - Q gives the quad coordinates
        alpha = dot(w, p x v)
        beta = dot(w, u x p)

    The reported normal always opposes the incoming ray.

    Args:
        ray: The ray to test. Its direction need not be normalized.
        quad: The quad to test intersection against.
        t_min: Exclusive lower bound on t (avoids self-intersection).
        t_max: Exclusive upper bound on t.

    Returns:
        A HitRecord containing intersection information. Check the hit field
        to determine if an intersection occurred.
    """
    denom = tm.dot(quad.normal, ray.direction)

    # Initialize result
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)

    # Ray not parallel to plane
    if ti.abs(denom) >= PARALLEL_EPSILON:
        t = (quad.d - tm.dot(quad.normal, ray.origin)) / denom

        if t > t_min and t < t_max:
            point = ray_at(ray, t)
            planar = point - quad.Q
            alpha = tm.dot(quad.w, tm.cross(planar, quad.v))
            beta = tm.dot(quad.w, tm.cross(quad.u, planar))

            # Half-open interior test
            if alpha >= 0.0 and alpha < 1.0 and beta >= 0.0 and beta < 1.0:
                did_hit = 1
                hit_t = t
                hit_point = point
                hit_normal = quad.normal
                if denom >= 0.0:
                    hit_normal = -quad.normal

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
    )

