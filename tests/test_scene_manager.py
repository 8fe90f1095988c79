"""Tests for the unified scene manager.

This module tests:
- Unified material IDs across material types
- Kernel-side material type lookup
- Surface validation against registered materials
- Scene serialization round trips
"""

import pytest
import taichi as ti


class TestMaterialRegistration:
    """Tests for material ID assignment."""

    def test_ids_are_unified_across_types(self):
        """Material IDs are consecutive regardless of material type."""
        from raytracer.scene.manager import MaterialType, SceneManager

        scene = SceneManager()
        diffuse = scene.add_lambertian_material((0.5, 0.5, 0.5))
        metal = scene.add_metal_material((0.8, 0.8, 0.8), fuzz=0.1)
        glass = scene.add_dielectric_material(1.5)
        light = scene.add_diffuse_light_material((4.0, 4.0, 4.0))

        assert (diffuse, metal, glass, light) == (0, 1, 2, 3)
        assert scene.get_material_count() == 4
        assert scene.get_material_info(metal).material_type == MaterialType.METAL
        assert scene.get_material_info(metal).type_index == 0
        assert scene.get_material_info(99) is None

    def test_lambertian_creates_constant_texture(self):
        """A flat-coloured Lambertian material registers its own texture."""
        from raytracer.materials.texture import get_texture_count
        from raytracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_material((0.1, 0.2, 0.3))

        assert get_texture_count() == 1
        assert scene.textures == [{"type": "constant", "color": (0.1, 0.2, 0.3)}]

    def test_textured_lambertian_shares_texture(self):
        """Several materials may reference one texture."""
        from raytracer.materials.texture import get_texture_count
        from raytracer.scene.manager import SceneManager

        scene = SceneManager()
        checker = scene.add_checker_texture((0.0, 0.0, 0.0), (1.0, 1.0, 1.0))
        first = scene.add_textured_lambertian_material(checker)
        second = scene.add_textured_lambertian_material(checker)

        assert (first, second) == (0, 1)
        assert get_texture_count() == 1

    def test_kernel_type_lookup(self):
        """get_material_type and get_material_type_index work inside kernels."""
        from raytracer.scene.manager import MaterialType, SceneManager
        from raytracer.scene.manager import get_material_type, get_material_type_index

        scene = SceneManager()
        scene.add_metal_material((0.5, 0.5, 0.5))
        scene.add_dielectric_material(1.3)
        scene.add_metal_material((0.7, 0.7, 0.7))

        types = ti.field(dtype=ti.i32, shape=4)
        indices = ti.field(dtype=ti.i32, shape=4)

        @ti.kernel
        def test_kernel():
            for k in range(4):
                types[k] = get_material_type(k)
                indices[k] = get_material_type_index(k)

        test_kernel()
        assert types[0] == int(MaterialType.METAL)
        assert types[1] == int(MaterialType.DIELECTRIC)
        assert types[2] == int(MaterialType.METAL)
        assert indices[2] == 1
        # Unregistered IDs report -1
        assert types[3] == -1
        assert indices[3] == -1

    def test_new_manager_clears_previous_scene(self):
        """Constructing a SceneManager resets the global registries."""
        from raytracer.scene.manager import SceneManager

        first = SceneManager()
        material = first.add_lambertian_material((0.5, 0.5, 0.5))
        first.add_sphere((0, 0, 0), 1.0, material)

        second = SceneManager()
        assert second.get_material_count() == 0
        assert second.get_surface_count() == 0


class TestSurfaces:
    """Tests for adding surfaces through the manager."""

    def test_invalid_material_rejected(self):
        """Surfaces must reference a registered material."""
        from raytracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_material((0.5, 0.5, 0.5))

        with pytest.raises(ValueError, match="Invalid material_id"):
            scene.add_sphere((0, 0, 0), 1.0, 5)
        with pytest.raises(ValueError, match="Invalid material_id"):
            scene.add_quad((0, 0, 0), (1, 0, 0), (0, 1, 0), -1)

    def test_counts(self):
        """Sphere, quad and surface counts track additions."""
        from raytracer.scene.manager import SceneManager

        scene = SceneManager()
        material = scene.add_lambertian_material((0.5, 0.5, 0.5))
        scene.add_sphere((0, 0, 0), 1.0, material)
        scene.add_quad((0, 0, 0), (1, 0, 0), (0, 1, 0), material)
        scene.add_sphere((0, 3, 0), 1.0, material)

        assert scene.get_sphere_count() == 2
        assert scene.get_quad_count() == 1
        assert scene.get_surface_count() == 3
        assert [s.surface_index for s in scene.spheres] == [0, 2]
        assert scene.quads[0].surface_index == 1

    def test_capacity_limits(self):
        """The static capacity getters report the field sizes."""
        from raytracer.scene.intersection import MAX_QUADS, MAX_SPHERES
        from raytracer.scene.manager import MAX_MATERIALS, SceneManager

        assert SceneManager.get_max_spheres() == MAX_SPHERES
        assert SceneManager.get_max_quads() == MAX_QUADS
        assert SceneManager.get_max_materials() == MAX_MATERIALS


class TestSerialization:
    """Tests for to_dict/from_dict and to_config/from_config."""

    def _build(self):
        from raytracer.scene.manager import SceneManager

        scene = SceneManager()
        checker = scene.add_checker_texture((0.2, 0.3, 0.1), (0.9, 0.9, 0.9))
        ground = scene.add_textured_lambertian_material(checker)
        red = scene.add_lambertian_material((0.8, 0.1, 0.1))
        mirror = scene.add_metal_material((0.7, 0.6, 0.5), 0.2)
        glass = scene.add_dielectric_material(1.5)
        light = scene.add_diffuse_light_material((1.0, 0.9, 0.8), intensity=3.0)

        scene.add_sphere((0, -1000, 0), 1000.0, ground)
        scene.add_quad((-1, 0, -2), (2, 0, 0), (0, 2, 0), red)
        scene.add_sphere((2, 1, 0), 1.0, mirror)
        scene.add_sphere((0, 1, 0), -0.9, glass)
        scene.add_quad((-1, 4, -1), (2, 0, 0), (0, 0, 2), light)
        return scene

    def test_round_trip(self):
        """Exporting and reloading reproduces the scene description."""
        from raytracer.scene.manager import SceneManager

        data = self._build().to_dict()

        reloaded = SceneManager()
        reloaded.from_dict(data)

        assert reloaded.to_dict() == data
        assert reloaded.get_material_count() == 5
        assert reloaded.get_sphere_count() == 3
        assert reloaded.get_quad_count() == 2

    def test_round_trip_preserves_interleaving(self):
        """Surfaces are restored in their original insertion order."""
        from raytracer.scene.manager import SceneManager

        data = self._build().to_dict()

        reloaded = SceneManager()
        reloaded.from_dict(data)

        assert [s.surface_index for s in reloaded.spheres] == [0, 2, 3]
        assert [q.surface_index for q in reloaded.quads] == [1, 4]

    def test_light_alias(self):
        """'light' is accepted as a material type name."""
        from raytracer.scene.manager import MaterialType, SceneManager

        scene = SceneManager()
        scene.from_dict({"materials": [{"type": "light", "emission": [2.0, 2.0, 2.0]}]})

        assert scene.get_material_info(0).material_type == MaterialType.DIFFUSE_LIGHT

    def test_unknown_material_type(self):
        """Unknown material types raise ValueError."""
        from raytracer.scene.manager import SceneManager

        scene = SceneManager()
        with pytest.raises(ValueError, match="Unknown material type"):
            scene.from_dict({"materials": [{"type": "plastic"}]})

    def test_unknown_texture_type(self):
        """Unknown texture types raise ValueError."""
        from raytracer.scene.manager import SceneManager

        scene = SceneManager()
        with pytest.raises(ValueError, match="Unknown texture type"):
            scene.from_dict({"textures": [{"type": "marble"}]})

    def test_missing_keys_are_empty(self):
        """A dict without any keys loads an empty scene."""
        from raytracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.from_dict({})

        assert scene.get_material_count() == 0
        assert scene.get_surface_count() == 0


class TestActivation:
    """Tests for is_active and activate."""

    def test_new_manager_deactivates_old(self):
        """Only the most recently cleared manager is active."""
        from raytracer.scene.manager import SceneManager

        first = SceneManager()
        assert first.is_active

        second = SceneManager()
        assert second.is_active
        assert not first.is_active

    def test_inactive_counts_are_its_own(self):
        """Counts of an inactive manager describe its own scene."""
        from raytracer.scene.manager import SceneManager

        first = SceneManager()
        material = first.add_lambertian_material((0.5, 0.5, 0.5))
        first.add_sphere((0, 0, 0), 1.0, material)

        second = SceneManager()
        second.add_metal_material((0.5, 0.5, 0.5))

        assert first.get_surface_count() == 1
        assert first.get_material_count() == 1
        assert second.get_surface_count() == 0

    def test_activate_reloads_scene(self):
        """activate() restores the fields with unchanged IDs."""
        from raytracer.materials.texture import get_texture_count
        from raytracer.scene.intersection import get_sphere_count, get_surface_count
        from raytracer.scene.manager import SceneManager

        first = SceneManager()
        checker = first.add_checker_texture((0.0, 0.0, 0.0), (1.0, 1.0, 1.0))
        ground = first.add_textured_lambertian_material(checker)
        first.add_sphere((0, -100, 0), 100.0, ground)
        first.add_quad((0, 0, 0), (1, 0, 0), (0, 1, 0), ground)
        data = first.to_dict()

        second = SceneManager()
        second.add_dielectric_material(1.5)

        first.activate()

        assert first.is_active
        assert not second.is_active
        assert first.to_dict() == data
        assert get_texture_count() == 1
        assert get_sphere_count() == 1
        assert get_surface_count() == 2

    def test_activate_active_is_a_no_op(self):
        """Activating the active manager keeps its generation."""
        from raytracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_material((0.5, 0.5, 0.5))
        generation = scene._generation

        scene.activate()
        assert scene._generation == generation
