"""Scene-level closest-hit queries over all surfaces.

The World is a flat, insertion-ordered list of surfaces, each of which is a
sphere or a quad carrying a material ID. Surface data lives in Taichi fields
in structure-of-arrays layout; a separate surface table records, in the
order surfaces were added, which kind each one is and where its data is.

Closest hit is found with a linear scan that shrinks the search window: the
upper bound starts at t_max and drops to each accepted hit's t, so later
surfaces can only win by being strictly nearer. The result is the globally
closest hit whatever the insertion order.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raytracer.scene.intersection import add_quad, add_sphere, clear_scene
    >>> clear_scene()
    >>> add_sphere(vec3(0, 0, -1), 0.5, material_id=0)
    >>> add_quad(vec3(-1, -0.5, -2), vec3(2, 0, 0), vec3(0, 1, 0), material_id=1)
    >>> # Use intersect_scene within a Taichi kernel
"""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

from raytracer.core.ray import Ray
from raytracer.geometry.quad import Quad, hit_quad, make_quad
from raytracer.geometry.sphere import HitRecord, Sphere, hit_sphere, make_miss

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


class SurfaceType(IntEnum):
    """Kinds of surface the World can hold."""

    SPHERE = 0
    QUAD = 1


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Extends the basic HitRecord with material_id for scene-level queries.

    Attributes:
        hit: Whether the ray intersected any surface (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
        point: The 3D point where the ray intersected the surface.
        normal: The normal reported by the hit surface (see hit_sphere and
            hit_quad for orientation rules).
        material_id: The material ID of the hit surface. -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    material_id: ti.i32


# Maximum number of surfaces supported in the scene
MAX_SPHERES = 1024
MAX_QUADS = 1024
MAX_SURFACES = MAX_SPHERES + MAX_QUADS

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Quad storage: corner, edges and the plane frame cached at construction
quad_corners = ti.Vector.field(3, dtype=ti.f32, shape=MAX_QUADS)
quad_edge_u = ti.Vector.field(3, dtype=ti.f32, shape=MAX_QUADS)
quad_edge_v = ti.Vector.field(3, dtype=ti.f32, shape=MAX_QUADS)
quad_normals = ti.Vector.field(3, dtype=ti.f32, shape=MAX_QUADS)
quad_offsets = ti.field(dtype=ti.f32, shape=MAX_QUADS)
quad_w = ti.Vector.field(3, dtype=ti.f32, shape=MAX_QUADS)
num_quads = ti.field(dtype=ti.i32, shape=())

# Surface table in insertion order: kind, index into the kind's arrays, material
surface_types = ti.field(dtype=ti.i32, shape=MAX_SURFACES)
surface_indices = ti.field(dtype=ti.i32, shape=MAX_SURFACES)
surface_material_ids = ti.field(dtype=ti.i32, shape=MAX_SURFACES)
num_surfaces = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all surfaces from the scene.

    Resets the counts to zero. The actual field data is not cleared but will
    be overwritten when new surfaces are added.
    """
    num_spheres[None] = 0
    num_quads[None] = 0
    num_surfaces[None] = 0


def _append_surface(surface_type: SurfaceType, type_index: int, material_id: int) -> int:
    idx = num_surfaces[None]
    surface_types[idx] = int(surface_type)
    surface_indices[idx] = type_index
    surface_material_ids[idx] = material_id
    num_surfaces[None] = idx + 1
    return idx


def add_sphere(center: vec3, radius: float, material_id: int = 0) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere. A negative radius flips the normal
            inward (used for hollow shells).
        material_id: The material ID to associate with this sphere.

    Returns:
        The surface index (position in insertion order) of the sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = center
    sphere_radii[idx] = radius
    num_spheres[None] = idx + 1
    return _append_surface(SurfaceType.SPHERE, idx, material_id)


@ti.kernel
def _store_quad(idx: ti.i32, q: vec3, u: vec3, v: vec3):
    quad = make_quad(q, u, v)
    quad_corners[idx] = quad.Q
    quad_edge_u[idx] = quad.u
    quad_edge_v[idx] = quad.v
    quad_normals[idx] = quad.normal
    quad_offsets[idx] = quad.d
    quad_w[idx] = quad.w


def add_quad(q: vec3, u: vec3, v: vec3, material_id: int = 0) -> int:
    """Add a quad to the scene.

    The quad represents a parallelogram with vertices at Q, Q+u, Q+v, Q+u+v.
    Its plane frame (normal, offset, w) is derived once here.

    Args:
        q: The corner point of the quad.
        u: Edge vector from q to adjacent corner.
        v: Edge vector from q to other adjacent corner.
        material_id: The material ID to associate with this quad.

    Returns:
        The surface index (position in insertion order) of the quad.

    Raises:
        RuntimeError: If the maximum number of quads is exceeded.
    """
    idx = num_quads[None]
    if idx >= MAX_QUADS:
        raise RuntimeError(f"Maximum number of quads ({MAX_QUADS}) exceeded")
    _store_quad(idx, q, u, v)
    num_quads[None] = idx + 1
    return _append_surface(SurfaceType.QUAD, idx, material_id)


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


def get_quad_count() -> int:
    """Get the number of quads in the scene."""
    return int(num_quads[None])


def get_surface_count() -> int:
    """Get the total number of surfaces in the scene."""
    return int(num_surfaces[None])


@ti.func
def _load_quad(idx: ti.i32) -> Quad:
    return Quad(
        Q=quad_corners[idx],
        u=quad_edge_u[idx],
        v=quad_edge_v[idx],
        normal=quad_normals[idx],
        d=quad_offsets[idx],
        w=quad_w[idx],
    )


@ti.func
def _hit_surface(surface: ti.i32, ray: Ray, t_min: ti.f32, t_max: ti.f32) -> HitRecord:
    """Dispatch a hit query to the surface's primitive routine."""
    idx = surface_indices[surface]
    rec = make_miss()
    if surface_types[surface] == int(SurfaceType.SPHERE):
        sphere = Sphere(center=sphere_centers[idx], radius=sphere_radii[idx])
        rec = hit_sphere(ray, sphere, t_min, t_max)
    else:
        rec = hit_quad(ray, _load_quad(idx), t_min, t_max)
    return rec


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        material_id=-1,
    )


@ti.func
def intersect_scene(ray: Ray, t_min: ti.f32, t_max: ti.f32) -> SceneHitRecord:
    """Find the closest surface hit by a ray.

    Surfaces are visited in insertion order; each is queried with the window
    (t_min, closest_t), and closest_t shrinks on every accepted hit.

    Args:
        ray: The ray to trace.
        t_min: Exclusive lower bound on t.
        t_max: Exclusive upper bound on t (may be infinite).

    Returns:
        A SceneHitRecord for the closest intersection, or a miss record if
        nothing was hit.
    """
    closest_t = t_max
    result = _make_miss_record()

    for surface in range(num_surfaces[None]):
        rec = _hit_surface(surface, ray, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = SceneHitRecord(
                hit=1,
                t=rec.t,
                point=rec.point,
                normal=rec.normal,
                material_id=surface_material_ids[surface],
            )

    return result
