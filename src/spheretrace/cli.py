"""Command-line entry point.

Usage:
    spheretrace [width [samples [depth [scene]]]] [options]
    python -m src.spheretrace [width [samples [depth [scene]]]] [options]

Positional arguments are all optional. A width, sample count or depth that
is missing, not a number or not positive falls back to its default
(800, 100, 50). Unknown scene names fall back to "random".

Options:
    -o, --output PATH   Write the PPM to PATH instead of stdout
    --png PATH          Also write a PNG
    --workers N         Parallel workers (default: one per CPU)
    --tile-size N       Nominal tile edge length (default: 32)
    --seed N            Seed for Taichi's generator and the random scene layout
    --arch {cpu,gpu}    Taichi backend (default: cpu)
    --quiet             Only log warnings and errors

Progress and timing go to stderr so stdout carries nothing but the image.

Example:
    spheretrace 400 20 10 three > three.ppm
"""

from __future__ import annotations

import argparse
import logging
import sys

import taichi as ti

from src.spheretrace.config import (
    DEFAULT_DEPTH,
    DEFAULT_SAMPLES,
    DEFAULT_SCENE,
    DEFAULT_WIDTH,
    SCENE_NAMES,
    TILE_SIZE,
    RenderConfig,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Exit status for a width too small to give a two-row image
EXIT_BAD_SIZE = 2


def setup_logging(quiet: bool = False) -> None:
    """Send log records to stderr; INFO by default, WARNING when quiet."""
    level = logging.WARNING if quiet else logging.INFO

    root = logging.getLogger("src.spheretrace")
    root.setLevel(level)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.handlers = [handler]


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="spheretrace",
        description="Render a scene of spheres to a PPM image.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "width", nargs="?", help=f"Image width in pixels (default: {DEFAULT_WIDTH})"
    )
    parser.add_argument(
        "samples", nargs="?", help=f"Samples per pixel (default: {DEFAULT_SAMPLES})"
    )
    parser.add_argument("depth", nargs="?", help=f"Maximum ray depth (default: {DEFAULT_DEPTH})")
    parser.add_argument(
        "scene",
        nargs="?",
        help=f"Scene to render: {', '.join(SCENE_NAMES)} (default: {DEFAULT_SCENE})",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Output PPM path (default: stdout)",
    )
    parser.add_argument("--png", type=str, default=None, help="Also write a PNG to this path")
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of parallel workers (default: one per CPU)",
    )
    parser.add_argument(
        "--tile-size",
        type=int,
        default=TILE_SIZE,
        help=f"Nominal tile edge length in pixels (default: {TILE_SIZE})",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu"),
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    return parser.parse_args(argv)


def positive_or_default(value: str | None, default: int, name: str) -> int:
    """Parse value as a positive int, or return default."""
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        logger.warning("Ignoring non-numeric %s %r, using %d", name, value, default)
        return default
    if parsed <= 0:
        logger.warning("Ignoring non-positive %s %d, using %d", name, parsed, default)
        return default
    return parsed


def scene_or_default(name: str | None) -> str:
    if name is None:
        return DEFAULT_SCENE
    if name not in SCENE_NAMES:
        logger.warning("Unknown scene %r, rendering %r", name, DEFAULT_SCENE)
        return DEFAULT_SCENE
    return name


def build_config(args: argparse.Namespace) -> RenderConfig:
    """Turn parsed arguments into a RenderConfig, applying the fallbacks."""
    return RenderConfig(
        width=positive_or_default(args.width, DEFAULT_WIDTH, "width"),
        samples_per_pixel=positive_or_default(args.samples, DEFAULT_SAMPLES, "samples"),
        max_depth=positive_or_default(args.depth, DEFAULT_DEPTH, "depth"),
        scene=scene_or_default(args.scene),
        tile_size=args.tile_size,
        num_workers=args.workers,
        seed=args.seed,
        output=args.output,
        png=args.png,
        arch=args.arch,
    )


def render(config: RenderConfig) -> int:
    """Build the scene, render it and write the outputs.

    Taichi must already be initialized.

    Returns:
        Process exit status.
    """
    # Lazy imports so Taichi fields are created after ti.init
    from src.spheretrace.camera.thin_lens import setup_camera
    from src.spheretrace.core.renderer import TileRenderer
    from src.spheretrace.preview.export import save_png_from_array, write_ppm
    from src.spheretrace.scene.manager import SceneManager
    from src.spheretrace.scene.presets import build_scene

    scene = SceneManager()
    camera, aspect_ratio = build_scene(config.scene, scene, seed=config.seed)
    logger.info(
        "Scene %r: %d spheres, %d materials",
        config.scene,
        scene.get_sphere_count(),
        scene.get_material_count(),
    )

    height = config.image_height(aspect_ratio)
    if height < 2:
        logger.error("Width %d gives an image height of %d; need at least 2", config.width, height)
        return EXIT_BAD_SIZE

    setup_camera(camera)

    renderer = TileRenderer(
        config.width,
        height,
        tile_size=config.tile_size,
        num_workers=config.num_workers,
    )
    renderer.render(config.samples_per_pixel, config.max_depth)
    image = renderer.get_image_numpy()

    if config.output is None:
        write_ppm(image, sys.stdout)
    else:
        with open(config.output, "w", encoding="ascii") as f:
            write_ppm(image, f)
        logger.info("Saved PPM to %s", config.output)

    if config.png is not None:
        save_png_from_array(image, config.png)
        logger.info("Saved PNG to %s", config.png)

    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.quiet)

    try:
        config = build_config(args)
        config.validate()
    except ValueError as e:
        logger.error("%s", e)
        return 1

    arch = ti.gpu if config.arch == "gpu" else ti.cpu
    if config.seed is None:
        ti.init(arch=arch)
    else:
        ti.init(arch=arch, random_seed=config.seed)

    try:
        return render(config)
    except (ValueError, RuntimeError, OSError) as e:
        logger.error("Render failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
