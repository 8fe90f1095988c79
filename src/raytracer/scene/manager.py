"""Unified scene manager for coordinating surfaces, materials and textures.

This module provides a high-level scene building API that coordinates
surface storage (spheres, quads) with material assignment. It tracks which
material type (Lambertian, Metal, Dielectric, DiffuseLight) each material ID
corresponds to, enabling material dispatch in the path tracer.

The SceneManager maintains:
- A unified material_id space across all material types
- Mapping from material_id to (material_type, type_local_index)
- The texture registry used by Lambertian materials
- Scene serialization/configuration support

Scene data lives in global Taichi fields, so only one SceneManager is live at
a time; constructing a new one clears the previous scene. An older manager
can be put back with activate(), which reloads it from its own description.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raytracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> red = scene.add_lambertian_material(albedo=(0.8, 0.3, 0.3))
    >>> scene.add_sphere(center=(0, 0, -1), radius=0.5, material_id=red)
"""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import taichi as ti
import taichi.math as tm

from raytracer.camera.camera import Camera
from raytracer.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from raytracer.materials.diffuse_light import (
    add_diffuse_light_material,
    clear_diffuse_light_materials,
)
from raytracer.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from raytracer.materials.metal import (
    add_metal_material,
    clear_metal_materials,
)
from raytracer.materials.texture import (
    add_checker_texture,
    add_constant_texture,
    clear_textures,
)
from raytracer.scene.intersection import (
    MAX_QUADS,
    MAX_SPHERES,
    add_quad,
    add_sphere,
    clear_scene,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the path tracer to determine which
    scattering function to call.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2
    DIFFUSE_LIGHT = 3


# Maximum number of materials across all types
MAX_MATERIALS = 2048

# Taichi fields for kernel-side material type lookup
# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
# (e.g., if material_id 5 is the 2nd metal material, material_type_indices[5] = 1)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())

# Bumped whenever the scene fields are cleared. A SceneManager owns the fields
# only while its generation matches.
_scene_generation = 0


def _clear_material_tracking() -> None:
    """Clear the material tracking fields."""
    global _scene_generation
    num_materials[None] = 0
    _scene_generation += 1


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material ID.

    Args:
        material_id: The unified material ID.

    Returns:
        The material type as an integer (see MaterialType enum).
        Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the type-local index for a given material ID.

    This is used to look up material properties in the type-specific
    material arrays (e.g., metal_albedos[type_index]).

    Returns:
        The index into the type-specific material array.
        Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material ID.
        material_type: The type of material.
        type_index: The index within the type-specific material array.
        params: The material parameters as provided during creation.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class SphereInfo:
    """Information about a sphere in the scene."""

    surface_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int


@dataclass
class QuadInfo:
    """Information about a quad in the scene.

    Attributes:
        surface_index: The position of the quad in the surface table.
        corner: The corner point (Q) of the quad.
        edge_u: The first edge vector.
        edge_v: The second edge vector.
        material_id: The material ID assigned to the quad.
    """

    surface_index: int
    corner: tuple[float, float, float]
    edge_u: tuple[float, float, float]
    edge_v: tuple[float, float, float]
    material_id: int


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        textures: List of texture configurations.
        materials: List of material configurations.
        spheres: List of sphere configurations.
        quads: List of quad configurations.
    """

    textures: list[dict[str, Any]] = field(default_factory=list)
    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)
    quads: list[dict[str, Any]] = field(default_factory=list)


def _as_vec(values: Any, name: str) -> tuple[float, float, float]:
    if len(values) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(values)}")
    return (float(values[0]), float(values[1]), float(values[2]))


class SceneManager:
    """Unified scene manager coordinating surfaces, materials and textures.

    The SceneManager provides a high-level API for building scenes with
    automatic material tracking. It maintains a unified material_id space
    that maps to type-specific material registries, enabling the path tracer
    to dispatch to the correct scattering function.

    Attributes:
        textures: Parameters of every registered texture, by texture ID.
        materials: List of MaterialInfo for all registered materials.
        spheres: List of SphereInfo for all spheres in the scene.
        quads: List of QuadInfo for all quads in the scene.

    Example:
        >>> scene = SceneManager()
        >>> red_diffuse = scene.add_lambertian_material(albedo=(0.8, 0.1, 0.1))
        >>> gold_metal = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
        >>> glass = scene.add_dielectric_material(ior=1.5)
        >>> scene.add_sphere((0, 0, -1), 0.5, red_diffuse)
        >>> scene.add_sphere((1, 0, -1), 0.5, gold_metal)
        >>> scene.add_sphere((-1, 0, -1), 0.5, glass)
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.textures: list[dict[str, Any]] = []
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self.quads: list[QuadInfo] = []
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_scene()
        clear_textures()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        clear_diffuse_light_materials()
        _clear_material_tracking()
        self._generation = _scene_generation
        self.textures.clear()
        self.materials.clear()
        self.spheres.clear()
        self.quads.clear()

    def clear(self) -> None:
        """Clear the entire scene (surfaces, materials and textures)."""
        self._clear_all()

    @property
    def is_active(self) -> bool:
        """Whether the global scene fields currently hold this scene."""
        return self._generation == _scene_generation

    def activate(self) -> None:
        """Make this scene the one traced by the kernels.

        If another SceneManager has cleared the fields since this scene was
        built, the scene is reloaded from its own description. Texture,
        material and surface IDs are unchanged by the reload.
        """
        if self.is_active:
            return
        logger.info("Reloading inactive scene with %d surfaces", self.get_surface_count())
        self.from_config(self.to_config())

    # =========================================================================
    # Texture Management
    # =========================================================================

    def add_constant_texture(self, color: tuple[float, float, float]) -> int:
        """Add a single-colour texture.

        Returns:
            The texture ID.
        """
        texture_id = add_constant_texture(color)
        self.textures.append({"type": "constant", "color": color})
        return texture_id

    def add_checker_texture(
        self,
        odd: tuple[float, float, float],
        even: tuple[float, float, float],
    ) -> int:
        """Add a solid checkerboard texture.

        Args:
            odd: Colour where sin(10x) sin(10y) sin(10z) is negative.
            even: Colour elsewhere.

        Returns:
            The texture ID.
        """
        texture_id = add_checker_texture(odd, even)
        self.textures.append({"type": "checker", "odd": odd, "even": even})
        return texture_id

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register_material(
        self,
        material_type: MaterialType,
        type_index: int,
        params: dict[str, Any],
    ) -> int:
        """Assign a unified material ID to a type-local material."""
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                type_index=type_index,
                params=params,
            )
        )
        return material_id

    def add_lambertian_material(self, albedo: tuple[float, float, float]) -> int:
        """Add a flat-coloured Lambertian (diffuse) material.

        A constant texture is created for the colour.

        Args:
            albedo: The diffuse reflectance colour as (R, G, B), each in [0, 1].

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If a capacity is exceeded.
            ValueError: If any albedo component is outside [0, 1].
        """
        texture_id = self.add_constant_texture(albedo)
        return self.add_textured_lambertian_material(texture_id)

    def add_textured_lambertian_material(self, texture_id: int) -> int:
        """Add a Lambertian material coloured by an existing texture.

        Args:
            texture_id: A texture ID returned by add_*_texture().

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If a capacity is exceeded.
            ValueError: If texture_id is invalid.
        """
        type_index = add_lambertian_material(texture_id)
        return self._register_material(
            MaterialType.LAMBERTIAN, type_index, {"texture_id": texture_id}
        )

    def add_metal_material(
        self,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Add a metal (specular reflective) material to the scene.

        Args:
            albedo: The reflective colour as (R, G, B) tuple, each in [0, 1].
            fuzz: The reflection blur in [0, 1]. Default is 0 (perfect mirror).

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component or fuzz is outside [0, 1].
        """
        type_index = add_metal_material(albedo, fuzz)
        return self._register_material(
            MaterialType.METAL, type_index, {"albedo": albedo, "fuzz": fuzz}
        )

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Add a dielectric (glass/water) material to the scene.

        Args:
            ior: Index of refraction. Default is 1.5 (typical glass).
                Common values: Air=1.0, Water=1.33, Glass=1.5, Diamond=2.4

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If IOR is less than 1.0.
        """
        type_index = add_dielectric_material(ior)
        return self._register_material(MaterialType.DIELECTRIC, type_index, {"ior": ior})

    def add_diffuse_light_material(
        self,
        emission: tuple[float, float, float],
        intensity: float = 1.0,
    ) -> int:
        """Add an emissive material to the scene.

        Surfaces with this material emit emission * intensity and end any
        path that reaches them.

        Args:
            emission: The emitted colour as (R, G, B). Values may exceed 1.0.
            intensity: Scale factor for the colour. Default 1.0.

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If emission or intensity is negative.
        """
        type_index = add_diffuse_light_material(emission, intensity)
        return self._register_material(
            MaterialType.DIFFUSE_LIGHT,
            type_index,
            {"emission": emission, "intensity": intensity},
        )

    def get_material_count(self) -> int:
        """Get the total number of materials in the scene."""
        return len(self.materials)

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by ID.

        Returns:
            MaterialInfo for the material, or None if not found.
        """
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    # =========================================================================
    # Surface Management
    # =========================================================================

    def _check_material(self, material_id: int) -> None:
        if material_id < 0 or material_id >= num_materials[None]:
            raise ValueError(f"Invalid material_id: {material_id}")

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere to the scene.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere. Negative radii give an inward
                normal, which models the inner wall of a hollow shell.
            material_id: The unified material ID to assign to the sphere.

        Returns:
            The surface index of the added sphere.

        Raises:
            RuntimeError: If the maximum number of spheres is exceeded.
            ValueError: If material_id is invalid.
        """
        self._check_material(material_id)

        surface_index = add_sphere(vec3(center[0], center[1], center[2]), radius, material_id)
        self.spheres.append(
            SphereInfo(
                surface_index=surface_index,
                center=center,
                radius=radius,
                material_id=material_id,
            )
        )
        return surface_index

    def add_quad(
        self,
        corner: tuple[float, float, float],
        edge_u: tuple[float, float, float],
        edge_v: tuple[float, float, float],
        material_id: int,
    ) -> int:
        """Add a quad (parallelogram) to the scene.

        The quad represents a parallelogram with vertices at:
        corner, corner+edge_u, corner+edge_v, corner+edge_u+edge_v

        Args:
            corner: The corner point (Q) of the quad as (x, y, z).
            edge_u: The first edge vector as (x, y, z).
            edge_v: The second edge vector as (x, y, z).
            material_id: The unified material ID to assign to the quad.

        Returns:
            The surface index of the added quad.

        Raises:
            RuntimeError: If the maximum number of quads is exceeded.
            ValueError: If material_id is invalid.
        """
        self._check_material(material_id)

        q = vec3(corner[0], corner[1], corner[2])
        u = vec3(edge_u[0], edge_u[1], edge_u[2])
        v = vec3(edge_v[0], edge_v[1], edge_v[2])
        surface_index = add_quad(q, u, v, material_id)
        self.quads.append(
            QuadInfo(
                surface_index=surface_index,
                corner=corner,
                edge_u=edge_u,
                edge_v=edge_v,
                material_id=material_id,
            )
        )
        return surface_index

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return len(self.spheres)

    def get_quad_count(self) -> int:
        """Get the number of quads in the scene."""
        return len(self.quads)

    def get_surface_count(self) -> int:
        """Get the total number of surfaces in the scene."""
        return len(self.spheres) + len(self.quads)

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object.

        Surfaces are exported per kind; each entry carries its surface index
        so the original insertion order can be restored.

        Returns:
            A SceneConfig containing all textures, materials and surfaces.
        """
        config = SceneConfig()

        for texture in self.textures:
            config.textures.append(
                {key: list(value) if key != "type" else value for key, value in texture.items()}
            )

        for mat in self.materials:
            mat_config: dict[str, Any] = {"type": mat.material_type.name.lower()}
            for key, value in mat.params.items():
                mat_config[key] = list(value) if isinstance(value, tuple) else value
            config.materials.append(mat_config)

        for sphere in self.spheres:
            config.spheres.append(
                {
                    "surface_index": sphere.surface_index,
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                    "material_id": sphere.material_id,
                }
            )

        for quad in self.quads:
            config.quads.append(
                {
                    "surface_index": quad.surface_index,
                    "corner": list(quad.corner),
                    "edge_u": list(quad.edge_u),
                    "edge_v": list(quad.edge_v),
                    "material_id": quad.material_id,
                }
            )

        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Clears the current scene and loads the configuration. Textures must
        be listed before the materials that use them, and materials before
        surfaces. Surfaces are re-added in surface_index order when present.

        Args:
            config: The scene configuration to load.

        Raises:
            ValueError: If the configuration contains invalid data.
        """
        self.clear()

        for tex_config in config.textures:
            tex_type = tex_config.get("type", "").lower()
            if tex_type == "constant":
                self.add_constant_texture(_as_vec(tex_config["color"], "color"))
            elif tex_type == "checker":
                self.add_checker_texture(
                    _as_vec(tex_config["odd"], "odd"),
                    _as_vec(tex_config["even"], "even"),
                )
            else:
                raise ValueError(f"Unknown texture type: {tex_type}")

        for mat_config in config.materials:
            mat_type = mat_config.get("type", "").lower()
            if mat_type == "lambertian":
                if "texture_id" in mat_config:
                    self.add_textured_lambertian_material(int(mat_config["texture_id"]))
                else:
                    albedo = _as_vec(mat_config.get("albedo", [0.5, 0.5, 0.5]), "albedo")
                    self.add_lambertian_material(albedo)
            elif mat_type == "metal":
                albedo = _as_vec(mat_config.get("albedo", [0.8, 0.8, 0.8]), "albedo")
                self.add_metal_material(albedo, mat_config.get("fuzz", 0.0))
            elif mat_type == "dielectric":
                self.add_dielectric_material(mat_config.get("ior", 1.5))
            elif mat_type in ("diffuse_light", "light"):
                emission = _as_vec(mat_config.get("emission", [1.0, 1.0, 1.0]), "emission")
                self.add_diffuse_light_material(emission, mat_config.get("intensity", 1.0))
            else:
                raise ValueError(f"Unknown material type: {mat_type}")

        surfaces: list[tuple[int, str, dict[str, Any]]] = []
        for order, sphere_config in enumerate(config.spheres):
            surfaces.append((sphere_config.get("surface_index", order), "sphere", sphere_config))
        for order, quad_config in enumerate(config.quads):
            position = quad_config.get("surface_index", len(config.spheres) + order)
            surfaces.append((position, "quad", quad_config))
        surfaces.sort(key=lambda entry: entry[0])

        for _, kind, surface_config in surfaces:
            material_id = surface_config.get("material_id", 0)
            if kind == "sphere":
                self.add_sphere(
                    _as_vec(surface_config.get("center", [0, 0, 0]), "center"),
                    float(surface_config.get("radius", 1.0)),
                    material_id,
                )
            else:
                self.add_quad(
                    _as_vec(surface_config.get("corner", [0, 0, 0]), "corner"),
                    _as_vec(surface_config.get("edge_u", [1, 0, 0]), "edge_u"),
                    _as_vec(surface_config.get("edge_v", [0, 1, 0]), "edge_v"),
                    material_id,
                )

        logger.debug(
            "Loaded scene: %d textures, %d materials, %d surfaces",
            len(self.textures),
            len(self.materials),
            self.get_surface_count(),
        )

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        config = self.to_config()
        return {
            "textures": config.textures,
            "materials": config.materials,
            "spheres": config.spheres,
            "quads": config.quads,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary.

        Args:
            data: Dictionary with 'textures', 'materials', 'spheres' and
                'quads' keys. Missing keys are treated as empty.
        """
        config = SceneConfig(
            textures=data.get("textures", []),
            materials=data.get("materials", []),
            spheres=data.get("spheres", []),
            quads=data.get("quads", []),
        )
        self.from_config(config)

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_spheres() -> int:
        """Get the maximum number of spheres supported."""
        return MAX_SPHERES

    @staticmethod
    def get_max_quads() -> int:
        """Get the maximum number of quads supported."""
        return MAX_QUADS

    @staticmethod
    def get_max_materials() -> int:
        """Get the maximum number of materials supported."""
        return MAX_MATERIALS


@dataclass
class Scene:
    """A renderable scene: the surfaces with their materials, and a camera.

    Attributes:
        world: The scene manager holding surfaces, materials and textures.
        camera: The camera to render through.
    """

    world: SceneManager
    camera: Camera
