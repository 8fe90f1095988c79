"""Taichi-based Monte Carlo ray tracer.

This package renders images of sphere and quad scenes by stochastic ray
tracing, with support for:
- Diffuse (textured), metal, glass and emissive materials
- A thin-lens camera with depth of field
- Reproducible parallel rendering with per-pixel random streams
- Progressive rendering with accumulation

Subpackages:
    core: Rays, random streams, the radiance estimator and rendering loop
    geometry: Shape primitives, intersection algorithms and bounding boxes
    materials: Textures and material scattering models
    scene: Scene management, closest-hit queries and preset scenes
    camera: Camera model with ray generation
    preview: Image encoding and PNG export

Taichi must be initialized (ti.init or raytracer.config.init_taichi) before
importing any subpackage, since they allocate Taichi fields at import time.
"""

__version__ = "0.1.0"
