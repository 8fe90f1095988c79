"""Geometry module for shape primitives.

This module provides geometric primitives and intersection algorithms:

Components:
    sphere: Sphere primitive with ray-sphere intersection
    quad: Parallelogram primitive with cached plane frame
    aabb: Axis-Aligned Bounding Box slab test and union

All intersection routines are implemented as Taichi functions (@ti.func)
and follow the pattern:
    record = hit_shape(ray, shape, t_min, t_max)

Only hits with t strictly inside (t_min, t_max) are reported.
"""

from .aabb import AABB, hit_aabb, quad_box, sphere_box, surrounding_box
from .quad import Quad, hit_quad, make_quad
from .sphere import HitRecord, Sphere, hit_sphere, make_miss, make_sphere

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_sphere",
    "make_miss",
    "Quad",
    "hit_quad",
    "make_quad",
    "AABB",
    "hit_aabb",
    "surrounding_box",
    "sphere_box",
    "quad_box",
]
