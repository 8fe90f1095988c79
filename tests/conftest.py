"""Pytest configuration for raytracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls, which would
    invalidate every field declared by modules imported earlier.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene data and reseed the random streams before each test.

    This ensures tests are isolated from each other.
    """
    # Import here so Taichi is initialized before any field is declared
    from raytracer.core.integrator import clear_render_target
    from raytracer.core.sampler import seed_streams
    from raytracer.materials.dielectric import clear_dielectric_materials
    from raytracer.materials.diffuse_light import clear_diffuse_light_materials
    from raytracer.materials.lambertian import clear_lambertian_materials
    from raytracer.materials.metal import clear_metal_materials
    from raytracer.materials.texture import clear_textures
    from raytracer.scene.intersection import clear_scene
    from raytracer.scene.manager import _clear_material_tracking

    def _clear_all():
        clear_scene()
        clear_textures()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        clear_diffuse_light_materials()
        _clear_material_tracking()
        clear_render_target()

    _clear_all()
    seed_streams(0)

    yield

    _clear_all()
