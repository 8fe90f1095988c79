"""Materials module for surface scattering models.

This module implements the material models used by the path tracer:

Components:
    texture: Constant and solid checkerboard textures
    lambertian: Diffuse reflection with a textured colour
    metal: Mirror reflection with optional fuzz
    dielectric: Glass-like reflection and refraction (Schlick Fresnel)
    diffuse_light: Emissive surfaces that end a path

Each material provides a scatter function returning
    (scattered_direction, attenuation, did_scatter)
and registry functions (add/clear/count) backed by Taichi fields. Lights
expose their emitted radiance instead of scattering.

All scattering computations are implemented as Taichi functions and draw
their random numbers from the caller's stream.
"""

from .dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
    get_dielectric_ior,
    get_dielectric_material_count,
    scatter_dielectric,
    scatter_dielectric_by_id,
)
from .diffuse_light import (
    add_diffuse_light_material,
    clear_diffuse_light_materials,
    get_diffuse_light_material_count,
    get_light_emission,
)
from .lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_albedo,
    get_lambertian_material_count,
    scatter_lambertian,
    scatter_lambertian_by_id,
)
from .metal import (
    add_metal_material,
    clear_metal_materials,
    get_metal_material_count,
    scatter_metal,
    scatter_metal_by_id,
)
from .texture import (
    TextureType,
    add_checker_texture,
    add_constant_texture,
    checker_value,
    clear_textures,
    get_texture_count,
    texture_value,
)

__all__ = [
    # Textures
    "TextureType",
    "add_constant_texture",
    "add_checker_texture",
    "clear_textures",
    "get_texture_count",
    "checker_value",
    "texture_value",
    # Lambertian
    "scatter_lambertian",
    "scatter_lambertian_by_id",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_material_count",
    "get_lambertian_albedo",
    # Metal
    "scatter_metal",
    "scatter_metal_by_id",
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_material_count",
    # Dielectric
    "scatter_dielectric",
    "scatter_dielectric_by_id",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_material_count",
    "get_dielectric_ior",
    # Diffuse light
    "add_diffuse_light_material",
    "clear_diffuse_light_materials",
    "get_diffuse_light_material_count",
    "get_light_emission",
]
