"""Unit tests for quad intersection.

Tests cover:
- Plane frame derivation in make_quad
- Hits inside the half-open parameter square
- Rays parallel to the plane and degenerate quads
- The reported normal always facing the incoming ray
"""

import numpy as np
import taichi as ti


def _hit_quad(origin, direction, q, u, v, t_min=0.001, t_max=1000.0):
    """Intersect one ray with one quad and return (hit, t, point, normal)."""
    from raytracer.core.ray import make_ray, vec3
    from raytracer.geometry.quad import hit_quad, make_quad

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    point = ti.Vector.field(3, dtype=ti.f32, shape=())
    normal = ti.Vector.field(3, dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel(o: vec3, d: vec3, q: vec3, u: vec3, v: vec3, lo: ti.f32, hi: ti.f32):
        record = hit_quad(make_ray(o, d), make_quad(q, u, v), lo, hi)
        hit[None] = record.hit
        t_val[None] = record.t
        point[None] = record.point
        normal[None] = record.normal

    test_kernel(vec3(*origin), vec3(*direction), vec3(*q), vec3(*u), vec3(*v), t_min, t_max)
    return hit[None], t_val[None], point[None].to_numpy(), normal[None].to_numpy()


UNIT_Q = (0.0, 0.0, 0.0)
UNIT_U = (1.0, 0.0, 0.0)
UNIT_V = (0.0, 1.0, 0.0)


class TestMakeQuad:
    """Tests for the cached plane frame."""

    def test_plane_frame(self):
        """normal, d and w follow from the edges."""
        from raytracer.geometry.quad import make_quad, vec3

        normal = ti.Vector.field(3, dtype=ti.f32, shape=())
        offset = ti.field(dtype=ti.f32, shape=())
        w = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            quad = make_quad(vec3(0.0, 0.0, 2.0), vec3(2.0, 0.0, 0.0), vec3(0.0, 2.0, 0.0))
            normal[None] = quad.normal
            offset[None] = quad.d
            w[None] = quad.w

        test_kernel()
        np.testing.assert_allclose(normal[None].to_numpy(), [0.0, 0.0, 1.0], atol=1e-6)
        assert abs(offset[None] - 2.0) < 1e-6
        # (u x v) / |u x v|^2 = (0, 0, 4) / 16
        np.testing.assert_allclose(w[None].to_numpy(), [0.0, 0.0, 0.25], atol=1e-6)


class TestQuadIntersection:
    """Tests for ray-quad intersection."""

    def test_hit_center(self):
        """Ray through the middle of the quad hits it."""
        hit, t, point, _ = _hit_quad((0.5, 0.5, 5.0), (0.0, 0.0, -1.0), UNIT_Q, UNIT_U, UNIT_V)

        assert hit == 1
        assert abs(t - 5.0) < 1e-5
        np.testing.assert_allclose(point, [0.5, 0.5, 0.0], atol=1e-5)

    def test_corner_is_inside(self):
        """alpha = beta = 0 lies on the closed side of the interval."""
        hit, _, _, _ = _hit_quad((0.0, 0.0, 5.0), (0.0, 0.0, -1.0), UNIT_Q, UNIT_U, UNIT_V)
        assert hit == 1

    def test_far_edge_is_outside(self):
        """alpha = 1 lies on the open side of the interval."""
        hit, _, _, _ = _hit_quad((1.0, 0.5, 5.0), (0.0, 0.0, -1.0), UNIT_Q, UNIT_U, UNIT_V)
        assert hit == 0

    def test_far_corner_is_outside(self):
        """alpha = beta = 1 lies outside the half-open square."""
        hit, _, _, _ = _hit_quad((1.0, 1.0, 5.0), (0.0, 0.0, -1.0), UNIT_Q, UNIT_U, UNIT_V)
        assert hit == 0

    def test_miss_outside(self):
        """Ray hitting the plane outside the parallelogram misses."""
        hit, _, _, _ = _hit_quad((2.0, 0.5, 5.0), (0.0, 0.0, -1.0), UNIT_Q, UNIT_U, UNIT_V)
        assert hit == 0

    def test_parallel_ray_misses(self):
        """Ray parallel to the plane never hits."""
        hit, _, _, _ = _hit_quad((-1.0, 0.5, 0.0), (1.0, 0.0, 0.0), UNIT_Q, UNIT_U, UNIT_V)
        assert hit == 0

    def test_plane_behind_ray(self):
        """A plane behind the ray origin is not hit."""
        hit, _, _, _ = _hit_quad((0.5, 0.5, 5.0), (0.0, 0.0, 1.0), UNIT_Q, UNIT_U, UNIT_V)
        assert hit == 0

    def test_degenerate_quad_misses(self):
        """Parallel edges give no plane, so nothing is hit."""
        hit, _, _, _ = _hit_quad(
            (0.5, 0.0, 5.0), (0.0, 0.0, -1.0), UNIT_Q, UNIT_U, (2.0, 0.0, 0.0)
        )
        assert hit == 0

    def test_normal_faces_ray_from_front(self):
        """From the front the geometric normal already opposes the ray."""
        _, _, _, normal = _hit_quad((0.5, 0.5, 5.0), (0.0, 0.0, -1.0), UNIT_Q, UNIT_U, UNIT_V)
        np.testing.assert_allclose(normal, [0.0, 0.0, 1.0], atol=1e-6)

    def test_normal_faces_ray_from_back(self):
        """From the back the normal is flipped toward the ray."""
        hit, _, _, normal = _hit_quad(
            (0.5, 0.5, -5.0), (0.0, 0.0, 1.0), UNIT_Q, UNIT_U, UNIT_V
        )

        assert hit == 1
        np.testing.assert_allclose(normal, [0.0, 0.0, -1.0], atol=1e-6)

    def test_skewed_parallelogram(self):
        """Non-orthogonal edges use the parallelogram, not its bounding box."""
        q = (0.0, 0.0, 0.0)
        u = (2.0, 0.0, 0.0)
        v = (1.0, 1.0, 0.0)

        inside, _, _, _ = _hit_quad((2.0, 0.5, 5.0), (0.0, 0.0, -1.0), q, u, v)
        outside, _, _, _ = _hit_quad((0.2, 0.8, 5.0), (0.0, 0.0, -1.0), q, u, v)

        assert inside == 1
        assert outside == 0
