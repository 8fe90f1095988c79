"""Dielectric (glass-like) material implementation.

This module implements transparent materials like glass and water that both
reflect and refract light. The split between reflection and refraction is
decided stochastically with Schlick's approximation to the Fresnel equations.

Which side of the surface a ray is on is read from the geometric normal: a
direction with a positive dot product against the normal is leaving the
material. This works for quads (whose normal faces the ray) and for spheres,
including negative-radius spheres whose normal points inward.

Common indices of refraction:
    - Air: 1.0
    - Water: 1.33
    - Glass: 1.5
    - Diamond: 2.4

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raytracer.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_dielectric(
    >>> #     ior, incident_dir, normal, stream
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from raytracer.core.ray import normalize, reflect, refract, schlick_fresnel
from raytracer.core.sampler import random_f32

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Compute the scattered direction for a dielectric surface.

    A uniform draw above the Schlick reflectance selects refraction; total
    internal reflection (no real refracted direction) falls back to mirror
    reflection. Dielectrics do not absorb, so the attenuation is white.

    Args:
        ior: Index of refraction of the material (>= 1).
        incident_direction: The incoming ray direction (any length).
        normal: The geometric surface normal at the hit point.
        stream: Index of the random stream owned by the calling task.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The reflected or refracted direction.
        - attenuation: Always (1, 1, 1).
        - did_scatter: Always 1.
    """
    attenuation = vec3(1.0, 1.0, 1.0)

    # Leaving the material: n_glass / n_air, normal flipped to face the ray
    facing_normal = normal
    eta_ratio = 1.0 / ior
    if tm.dot(incident_direction, normal) > 0.0:
        facing_normal = -normal
        eta_ratio = ior

    unit_direction = normalize(incident_direction)
    cos_theta = tm.min(-tm.dot(unit_direction, facing_normal), 1.0)
    reflectance = schlick_fresnel(cos_theta, eta_ratio)

    scattered_direction = reflect(unit_direction, facing_normal)
    if random_f32(stream) > reflectance:
        refracted, can_refract = refract(unit_direction, facing_normal, eta_ratio)
        if can_refract == 1:
            scattered_direction = refracted

    return scattered_direction, attenuation, 1


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 1024

# Storage for dielectric material properties
dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        ior: Index of refraction. Default is 1.5 (typical glass).

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If ior is less than 1.0.
    """
    if ior < 1.0:
        raise ValueError(
            f"Index of refraction = {ior} is less than 1.0. "
            "Physical materials have IOR >= 1.0."
        )

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    """Get the index of refraction for a dielectric material by index."""
    return dielectric_iors[material_idx]


@ti.func
def scatter_dielectric_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Scatter off a dielectric material looked up by registry index.

    Args:
        material_idx: The index of the material in the registry.
        incident_direction: The incoming ray direction.
        normal: The geometric surface normal at the hit point.
        stream: Index of the random stream owned by the calling task.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter).
    """
    ior = get_dielectric_ior(material_idx)
    return scatter_dielectric(ior, incident_direction, normal, stream)
