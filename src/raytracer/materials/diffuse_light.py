"""Diffuse area light material implementation.

A diffuse light is an emissive surface: it adds its emission colour to every
path that reaches it and never scatters, so a path ends at a light. Any
surface (sphere or quad) can carry this material, which makes lights regular
scene objects rather than a separate light list.

Emission is unbounded above, so colours brighter than 1.0 act as HDR light
sources whose contribution survives a few dim bounces.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raytracer.materials.diffuse_light import add_diffuse_light_material
    >>> lamp = add_diffuse_light_material((1.0, 0.9, 0.8), intensity=4.0)
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors
vec3 = tm.vec3


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of light materials in the scene
MAX_DIFFUSE_LIGHT_MATERIALS = 1024

# Emitted radiance (colour already multiplied by intensity)
light_emissions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_DIFFUSE_LIGHT_MATERIALS)
num_diffuse_light_materials = ti.field(dtype=ti.i32, shape=())


def clear_diffuse_light_materials() -> None:
    """Clear all diffuse light materials."""
    num_diffuse_light_materials[None] = 0


def add_diffuse_light_material(
    emission: tuple[float, float, float],
    intensity: float = 1.0,
) -> int:
    """Add a diffuse light material to the material registry.

    Args:
        emission: The emitted colour as an (R, G, B) tuple. Components may
            exceed 1.0 but must be non-negative.
        intensity: Scale factor applied to the colour. Default 1.0.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any emission component is negative.
        ValueError: If intensity is negative.
    """
    for i, component in enumerate(emission):
        if component < 0.0:
            raise ValueError(f"Emission component {i} = {component} is negative.")

    if intensity < 0.0:
        raise ValueError(f"Light intensity = {intensity} is negative.")

    idx = num_diffuse_light_materials[None]
    if idx >= MAX_DIFFUSE_LIGHT_MATERIALS:
        raise RuntimeError(
            f"Maximum number of diffuse light materials "
            f"({MAX_DIFFUSE_LIGHT_MATERIALS}) exceeded"
        )

    light_emissions[idx] = vec3(emission[0], emission[1], emission[2]) * intensity
    num_diffuse_light_materials[None] = idx + 1
    return idx


def get_diffuse_light_material_count() -> int:
    """Get the number of diffuse light materials in the registry."""
    return int(num_diffuse_light_materials[None])


@ti.func
def get_light_emission(material_idx: ti.i32) -> vec3:
    """Get the emitted radiance of a diffuse light by index.

    Args:
        material_idx: The index of the material in the registry.

    Returns:
        The emitted radiance (RGB).
    """
    return light_emissions[material_idx]
