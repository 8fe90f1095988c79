#!/usr/bin/env python3
"""Render one of the built-in scenes to a PNG file.

This script builds the selected scene, sets up the camera and renders with
progressive refinement, reporting progress and the total render time.

Usage:
    python examples/render_scene.py [options]

Options:
    --width WIDTH         Image width in pixels (default: 1200)
    --height HEIGHT       Image height in pixels (default: 800)
    --samples SAMPLES     Number of samples per pixel (default: 10)
    --depth DEPTH         Maximum bounces per path (default: 50)
    --scene NAME          Scene to render: spheres or quads (default: spheres)
    --seed SEED           Seed for the scene layout and sampling (default: 0)
    --output OUTPUT       Output file path (default: output.png)
    --batch-size SIZE     Samples per progress update (default: 10)
    --arch {cpu,gpu}      Taichi backend (default: cpu)
    --quiet               Suppress progress output

Example:
    python examples/render_scene.py --scene quads --width 400 --height 400 --samples 50
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

logger = logging.getLogger("render_scene")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a built-in scene with the Monte Carlo ray tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=1200,
        help="Image width in pixels (default: 1200)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=800,
        help="Image height in pixels (default: 800)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=10,
        help="Number of samples per pixel (default: 10)",
    )
    parser.add_argument(
        "--depth",
        type=int,
        default=50,
        help="Maximum bounces per path (default: 50)",
    )
    parser.add_argument(
        "--scene",
        choices=["spheres", "quads"],
        default="spheres",
        help="Scene to render (default: spheres)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed for the scene layout and sampling (default: 0)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="output.png",
        help="Output file path (default: output.png)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--arch",
        choices=["cpu", "gpu"],
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args(argv)


def render_scene(
    scene_name: str = "spheres",
    width: int = 1200,
    height: int = 800,
    num_samples: int = 10,
    max_depth: int = 50,
    seed: int = 0,
    output_path: str = "output.png",
    batch_size: int = 10,
    quiet: bool = False,
) -> Path:
    """Render a built-in scene and save it to file.

    Args:
        scene_name: "spheres" or "quads".
        width: Image width in pixels.
        height: Image height in pixels.
        num_samples: Number of samples per pixel.
        max_depth: Maximum bounces per path.
        seed: Seed for the scene layout and the random streams.
        output_path: Output file path (PNG).
        batch_size: Number of samples to render between progress updates.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from raytracer.config import RenderConfig
    from raytracer.core.progressive import ProgressiveRenderer
    from raytracer.scene.presets import build_scene

    config = RenderConfig(
        width=width,
        height=height,
        samples_per_pixel=num_samples,
        max_depth=max_depth,
        seed=seed,
    )
    config.validate()

    start_time = time.time()

    scene = build_scene(scene_name, width, height, seed=seed)
    renderer = ProgressiveRenderer(
        width,
        height,
        max_depth=max_depth,
        seed=seed,
        camera=scene.camera,
        world=scene.world,
    )

    def progress_callback(current: int, target: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            print(
                f"\r  Progress: {current}/{target} samples ({progress_pct:.1f}%) "
                f"- {elapsed:.1f}s",
                end="",
                flush=True,
            )

    renderer.render(
        num_samples=num_samples,
        batch_size=batch_size,
        callback=progress_callback,
    )

    if not quiet:
        print()  # Newline after progress

    output_file = Path(output_path)
    renderer.save_image(output_file)

    print(f"Generated image in {time.time() - start_time:.2f} seconds")
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    from raytracer.config import init_taichi

    try:
        backend = init_taichi(args.arch, seed=args.seed)
        logger.info("Using %s backend", backend)
        render_scene(
            scene_name=args.scene,
            width=args.width,
            height=args.height,
            num_samples=args.samples,
            max_depth=args.depth,
            seed=args.seed,
            output_path=args.output,
            batch_size=args.batch_size,
            quiet=args.quiet,
        )
        return 0
    except (ValueError, RuntimeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
