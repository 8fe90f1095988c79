"""Built-in demonstration scenes.

Two scenes are provided, selectable by name:

- "spheres": a checkered ground sphere, a 22x22 grid of small randomly placed
  spheres with random materials, three large feature spheres (diffuse, glass
  and mirror) and a 5x5 grid of spherical lights above them.
- "quads": five coloured quads forming an open box, lit by an emissive
  top quad.

The random choices of the "spheres" scene come from NumPy's generator seeded
with the scene seed, so a given seed always produces the same layout.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raytracer.scene.presets import build_scene
    >>> scene = build_scene("quads", width=400, height=400)
    >>> scene.world.get_quad_count()
    5
"""

import logging
from collections.abc import Callable

import numpy as np

from raytracer.camera.camera import Camera
from raytracer.scene.manager import Scene, SceneManager

logger = logging.getLogger(__name__)

# Emission of the lights in both scenes
LIGHT_EMISSION = (1.0, 1.0, 1.0)

# Small spheres are kept out of this distance from the glass sphere's footprint
_CLEARANCE_POINT = np.array([4.0, 0.2, 0.0])
_CLEARANCE = 0.9


def _random_material(world: SceneManager, rng: np.random.Generator) -> int:
    """Pick a random material: 50% diffuse, 25% metal, 25% glass."""
    choice = rng.random()

    if choice < 0.5:
        albedo = rng.random(3) * rng.random(3)
        return world.add_lambertian_material(tuple(float(c) for c in albedo))
    if choice < 0.75:
        albedo = 0.5 * (rng.random(3) + 1.0)
        fuzz = 0.5 * rng.random()
        return world.add_metal_material(tuple(float(c) for c in albedo), float(fuzz))
    return world.add_dielectric_material(1.5)


def build_spheres_scene(width: int, height: int, seed: int = 0) -> Scene:
    """Build the "spheres" scene.

    Args:
        width: Image width in pixels (sets the camera aspect ratio).
        height: Image height in pixels.
        seed: Seed for the random sphere layout and materials.

    Returns:
        The assembled scene.
    """
    camera = Camera(
        look_from=(13.0, 2.0, 3.0),
        look_at=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=width / height,
        aperture=0.1,
        focus_distance=10.0,
    )

    world = SceneManager()
    rng = np.random.default_rng(seed)

    checker = world.add_checker_texture((0.0, 0.0, 0.0), (1.0, 1.0, 1.0))
    ground = world.add_textured_lambertian_material(checker)
    world.add_sphere((0.0, -1000.0, 0.0), 1000.0, ground)

    for a in range(-11, 11):
        for b in range(-11, 11):
            center = np.array([a + 0.9 * rng.random(), 0.2, b + 0.9 * rng.random()])
            if np.linalg.norm(center - _CLEARANCE_POINT) > _CLEARANCE:
                material_id = _random_material(world, rng)
                world.add_sphere(tuple(float(c) for c in center), 0.2, material_id)

    world.add_sphere((-4.0, 1.0, 0.0), 1.0, world.add_lambertian_material((0.4, 0.2, 0.1)))
    world.add_sphere((0.0, 1.0, 0.0), 1.0, world.add_dielectric_material(1.5))
    world.add_sphere((4.0, 1.0, 0.0), 1.0, world.add_metal_material((0.7, 0.6, 0.5), 0.0))

    light = world.add_diffuse_light_material(LIGHT_EMISSION)
    for x in range(-8, 9, 4):
        for z in range(-8, 9, 4):
            world.add_sphere((float(x), 4.0, float(z)), 1.0, light)

    logger.info("Built spheres scene with %d surfaces", world.get_surface_count())
    return Scene(world=world, camera=camera)


def build_quads_scene(width: int, height: int, seed: int = 0) -> Scene:
    """Build the "quads" scene.

    Args:
        width: Image width in pixels (sets the camera aspect ratio).
        height: Image height in pixels.
        seed: Unused; accepted so every scene builder has the same signature.

    Returns:
        The assembled scene.
    """
    camera = Camera(
        look_from=(0.0, 0.0, 9.0),
        look_at=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=80.0,
        aspect_ratio=width / height,
        aperture=0.1,
        focus_distance=10.0,
    )

    world = SceneManager()

    left_red = world.add_lambertian_material((1.0, 0.2, 0.2))
    back_green = world.add_lambertian_material((0.2, 1.0, 0.2))
    right_blue = world.add_lambertian_material((0.2, 0.2, 1.0))
    upper_light = world.add_diffuse_light_material(LIGHT_EMISSION)
    lower_teal = world.add_lambertian_material((0.2, 0.8, 0.8))

    world.add_quad((-3.0, -2.0, 5.0), (0.0, 0.0, -4.0), (0.0, 4.0, 0.0), left_red)
    world.add_quad((-2.0, -2.0, 0.0), (4.0, 0.0, 0.0), (0.0, 4.0, 0.0), back_green)
    world.add_quad((3.0, -2.0, 1.0), (0.0, 0.0, 4.0), (0.0, 4.0, 0.0), right_blue)
    world.add_quad((-2.0, 3.0, 1.0), (4.0, 0.0, 0.0), (0.0, 0.0, 4.0), upper_light)
    world.add_quad((-2.0, -3.0, 5.0), (4.0, 0.0, 0.0), (0.0, 0.0, -4.0), lower_teal)

    logger.info("Built quads scene with %d surfaces", world.get_surface_count())
    return Scene(world=world, camera=camera)


SCENES: dict[str, Callable[[int, int, int], Scene]] = {
    "spheres": build_spheres_scene,
    "quads": build_quads_scene,
}


def build_scene(name: str, width: int, height: int, seed: int = 0) -> Scene:
    """Build a built-in scene by name.

    Args:
        name: "spheres" or "quads".
        width: Image width in pixels.
        height: Image height in pixels.
        seed: Seed for any random scene content.

    Returns:
        The assembled scene.

    Raises:
        ValueError: If the name is unknown or the size is not positive.
    """
    if name not in SCENES:
        raise ValueError(f"Unknown scene: {name!r} (available: {', '.join(SCENES)})")
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    return SCENES[name](width, height, seed)
