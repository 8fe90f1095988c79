"""Scene module for scene management and ray-scene queries.

Components:
    intersection: Surface storage and closest-hit queries (the World)
    manager: Unified scene manager coordinating surfaces, materials, textures
    presets: Built-in "spheres" and "quads" scenes

Scene data is organized for kernel access:
    - Structure-of-Arrays layout for geometric data
    - An insertion-ordered surface table with material IDs
    - A unified material ID space mapping to per-type registries
"""

from .intersection import (
    MAX_QUADS,
    MAX_SPHERES,
    SceneHitRecord,
    SurfaceType,
    add_quad,
    add_sphere,
    clear_scene,
    get_quad_count,
    get_sphere_count,
    get_surface_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    QuadInfo,
    Scene,
    SceneConfig,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
)
from .presets import SCENES, build_quads_scene, build_scene, build_spheres_scene

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "SurfaceType",
    "add_sphere",
    "add_quad",
    "clear_scene",
    "get_sphere_count",
    "get_quad_count",
    "get_surface_count",
    "intersect_scene",
    "MAX_SPHERES",
    "MAX_QUADS",
    # Manager module
    "SceneManager",
    "Scene",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "QuadInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    # Presets
    "SCENES",
    "build_scene",
    "build_spheres_scene",
    "build_quads_scene",
]
