"""Lambertian (diffuse) material implementation.

A Lambertian surface scatters every incoming ray into a random direction
around the surface normal. The scattered direction is

    normal + random_in_unit_sphere()

i.e. a point drawn uniformly from the unit ball centred on the tip of the
normal. This favours directions close to the normal, but it is NOT an exact
cosine-weighted sampler (that would use a point on the unit sphere instead).
The distribution is kept as is so renders match the established look.

The attenuation is the material's texture evaluated at the hit point, so a
Lambertian surface can be a flat colour or a procedural pattern.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raytracer.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_lambertian(albedo, normal, stream)
"""

import taichi as ti
import taichi.math as tm

from raytracer.core.ray import random_in_unit_sphere
from raytracer.materials.texture import get_texture_count, texture_value

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3, stream: ti.i32):
    """Sample a scattered direction for a diffuse surface.

    Args:
        albedo: The diffuse colour at the hit point.
        normal: The surface normal at the hit point.
        stream: Index of the random stream owned by the calling task.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: normal + a random point in the unit ball
          (not normalized).
        - attenuation: The albedo.
        - did_scatter: Always 1, diffuse surfaces never absorb a ray.
    """
    scattered_direction = normal + random_in_unit_sphere(stream)
    return scattered_direction, albedo, 1


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 1024

# Each Lambertian material references a texture from the texture registry
lambertian_texture_ids = ti.field(dtype=ti.i32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_lambertian_materials[None] = 0


def add_lambertian_material(texture_id: int) -> int:
    """Add a Lambertian material to the material registry.

    Args:
        texture_id: Index of a texture in the texture registry that gives
            the surface colour.

    Returns:
        The index of the added material.

    Raises:
        ValueError: If texture_id does not name a registered texture.
        RuntimeError: If the maximum number of materials is exceeded.
    """
    if texture_id < 0 or texture_id >= get_texture_count():
        raise ValueError(f"Unknown texture id: {texture_id}")

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_texture_ids[idx] = texture_id
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32, point: vec3) -> vec3:
    """Get the colour of a Lambertian material at a point.

    Args:
        material_idx: The index of the material in the registry.
        point: The hit point used to evaluate the texture.

    Returns:
        The albedo colour (RGB) at the point.
    """
    return texture_value(lambertian_texture_ids[material_idx], point)


@ti.func
def scatter_lambertian_by_id(
    material_idx: ti.i32,
    point: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Sample a scattered direction for a Lambertian material by index.

    Convenience function that evaluates the material's texture at the hit
    point and calls scatter_lambertian.

    Args:
        material_idx: The index of the material in the registry.
        point: The hit point.
        normal: The surface normal at the hit point.
        stream: Index of the random stream owned by the calling task.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter).
    """
    albedo = get_lambertian_albedo(material_idx, point)
    return scatter_lambertian(albedo, normal, stream)
