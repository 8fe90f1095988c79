"""Procedural textures for diffuse materials.

A texture maps a 3D point on a surface to a colour. Two kinds are supported:

- Constant: the same colour everywhere.
- Checker: a solid 3D checkerboard. The sign of
      sin(10 x) * sin(10 y) * sin(10 z)
  selects between an "odd" colour (negative product) and an "even" colour
  (zero or positive product). Being a solid texture, it needs no surface
  parameterization and works on any shape.

Textures are stored in a global registry of Taichi fields and referenced by
index, so Lambertian materials can share them.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raytracer.materials.texture import add_checker_texture, texture_value
    >>> checker = add_checker_texture((0.0, 0.0, 0.0), (1.0, 1.0, 1.0))
    >>> # Use within a Taichi kernel:
    >>> # color = texture_value(checker, hit_point)
"""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors
vec3 = tm.vec3

# Spatial frequency of the checker pattern
CHECKER_SCALE = 10.0


class TextureType(IntEnum):
    """Kinds of texture the registry can hold."""

    CONSTANT = 0
    CHECKER = 1


# =============================================================================
# Texture Field Storage
# =============================================================================

MAX_TEXTURES = 1024

# Constant textures only use color_a; checker uses a (odd) and b (even)
texture_types = ti.field(dtype=ti.i32, shape=MAX_TEXTURES)
texture_color_a = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TEXTURES)
texture_color_b = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TEXTURES)
num_textures = ti.field(dtype=ti.i32, shape=())


def _validate_color(name: str, color: tuple[float, float, float]) -> None:
    if len(color) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(color)}")
    for i, component in enumerate(color):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"{name} component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )


def _append_texture(
    texture_type: TextureType,
    color_a: tuple[float, float, float],
    color_b: tuple[float, float, float],
) -> int:
    idx = num_textures[None]
    if idx >= MAX_TEXTURES:
        raise RuntimeError(f"Maximum number of textures ({MAX_TEXTURES}) exceeded")

    texture_types[idx] = int(texture_type)
    texture_color_a[idx] = vec3(color_a[0], color_a[1], color_a[2])
    texture_color_b[idx] = vec3(color_b[0], color_b[1], color_b[2])
    num_textures[None] = idx + 1
    return idx


def clear_textures() -> None:
    """Clear all textures.

    Resets the texture count to zero. Existing data in the fields will be
    overwritten when new textures are added.
    """
    num_textures[None] = 0


def add_constant_texture(color: tuple[float, float, float]) -> int:
    """Add a single-colour texture to the registry.

    Args:
        color: The colour as an (R, G, B) tuple, each component in [0, 1].

    Returns:
        The index of the added texture.

    Raises:
        ValueError: If any colour component is outside [0, 1].
        RuntimeError: If the maximum number of textures is exceeded.
    """
    _validate_color("Texture color", color)
    return _append_texture(TextureType.CONSTANT, color, color)


def add_checker_texture(
    odd: tuple[float, float, float],
    even: tuple[float, float, float],
) -> int:
    """Add a solid checkerboard texture to the registry.

    Args:
        odd: Colour where the sine product is negative.
        even: Colour where the sine product is zero or positive.

    Returns:
        The index of the added texture.

    Raises:
        ValueError: If any colour component is outside [0, 1].
        RuntimeError: If the maximum number of textures is exceeded.
    """
    _validate_color("Checker odd color", odd)
    _validate_color("Checker even color", even)
    return _append_texture(TextureType.CHECKER, odd, even)


def get_texture_count() -> int:
    """Get the number of textures in the registry."""
    return int(num_textures[None])


@ti.func
def checker_value(odd: vec3, even: vec3, p: vec3) -> vec3:
    """Evaluate a solid checkerboard at a point.

    Args:
        odd: Colour for a negative sine product.
        even: Colour for a zero or positive sine product.
        p: The point to evaluate.

    Returns:
        Either odd or even.
    """
    sines = (
        ti.sin(CHECKER_SCALE * p.x)
        * ti.sin(CHECKER_SCALE * p.y)
        * ti.sin(CHECKER_SCALE * p.z)
    )
    result = even
    if sines < 0.0:
        result = odd
    return result


@ti.func
def texture_value(texture_id: ti.i32, p: vec3) -> vec3:
    """Look up a texture's colour at a point.

    Args:
        texture_id: Index of the texture in the registry.
        p: The point on the surface (world space).

    Returns:
        The colour of the texture at p.
    """
    result = texture_color_a[texture_id]
    if texture_types[texture_id] == int(TextureType.CHECKER):
        result = checker_value(texture_color_a[texture_id], texture_color_b[texture_id], p)
    return result
