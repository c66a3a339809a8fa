"""Tile renderer: one full-image render pass over a shared work counter.

TileRenderer owns the image size, the tile grid and the worker count, and
drives the render kernel in core.tiles. A pass renders every pixel exactly
once with samples_per_pixel rays and leaves the linear (not gamma-encoded)
average in the image buffer.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretrace.camera.thin_lens import setup_camera
    >>> from src.spheretrace.core.renderer import TileRenderer
    >>> from src.spheretrace.scene.manager import SceneManager
    >>> from src.spheretrace.scene.presets import build_scene
    >>>
    >>> camera, aspect = build_scene("two", SceneManager())
    >>> setup_camera(camera)
    >>> renderer = TileRenderer(320, int(320 / aspect))
    >>> stats = renderer.render(samples_per_pixel=10, max_depth=50)
    >>> image = renderer.get_image_numpy()
"""

import logging
import os
import time
from dataclasses import dataclass, field

import numpy as np
import numpy.typing as npt

from src.spheretrace.config import TILE_SIZE
from src.spheretrace.core.tiles import (
    MAX_WORKERS,
    Tile,
    compute_tile_grid,
    get_image_dimensions,
    get_image_numpy,
    get_worker_tile_counts,
    get_write_counts_numpy,
    render_tiles,
    setup_render_target,
)

logger = logging.getLogger(__name__)


def default_worker_count() -> int:
    """One worker per CPU, capped at MAX_WORKERS."""
    return max(1, min(os.cpu_count() or 1, MAX_WORKERS))


@dataclass
class RenderStats:
    """Diagnostics for one render pass.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Rays averaged per pixel.
        tiles: Number of tiles in the grid.
        worker_tiles: Tiles rendered by each worker.
        elapsed: Wall-clock seconds for the pass.
    """

    width: int
    height: int
    samples_per_pixel: int
    tiles: int
    worker_tiles: list[int] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def total_rays(self) -> int:
        """Camera rays cast (bounces not included)."""
        return self.width * self.height * self.samples_per_pixel

    @property
    def tiles_completed(self) -> int:
        """Tiles the workers finished; equals tiles after a full pass."""
        return sum(self.worker_tiles)

    @property
    def rays_per_second(self) -> float:
        if self.elapsed <= 0.0:
            return 0.0
        return self.total_rays / self.elapsed


class TileRenderer:
    """Renders the current scene through the current camera in tiles.

    The scene (world and materials) and the camera must be set up before
    render() is called; they are module-level Taichi fields and are only
    read during the pass.

    All renderers share one set of image buffers. render() sizes them for
    this renderer, and the readback methods raise RuntimeError once another
    renderer has taken them over.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        tile_size: Nominal tile edge length in pixels.
        num_workers: Parallel workers used per pass.
    """

    _target_owner: "TileRenderer | None" = None

    def __init__(
        self,
        width: int,
        height: int,
        tile_size: int = TILE_SIZE,
        num_workers: int | None = None,
    ) -> None:
        """Set up the render target and tile grid.

        Args:
            width: Image width in pixels (2..MAX_IMAGE_WIDTH).
            height: Image height in pixels (2..MAX_IMAGE_HEIGHT).
            tile_size: Nominal tile edge length in pixels.
            num_workers: Parallel workers, defaults to one per CPU.

        Raises:
            ValueError: If any dimension, the tile size or the worker count
                is out of range.
        """
        if num_workers is None:
            num_workers = default_worker_count()
        if not 1 <= num_workers <= MAX_WORKERS:
            raise ValueError(f"num_workers must be in [1, {MAX_WORKERS}], got {num_workers}")

        self._tiles = compute_tile_grid(width, height, tile_size)
        self._width = width
        self._height = height
        self._tile_size = tile_size
        self._num_workers = num_workers
        self._claim_target()

    def __repr__(self) -> str:
        return (
            f"TileRenderer(width={self._width}, height={self._height}, "
            f"tile_size={self._tile_size}, num_workers={self._num_workers}, "
            f"tiles={len(self._tiles)})"
        )

    def _claim_target(self) -> None:
        setup_render_target(self._width, self._height)
        TileRenderer._target_owner = self

    def _check_target(self) -> None:
        owned = TileRenderer._target_owner is self
        if not owned or get_image_dimensions() != (self._width, self._height):
            raise RuntimeError(
                "Image buffers now belong to another TileRenderer; call render() again"
            )

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def tile_size(self) -> int:
        return self._tile_size

    @property
    def num_workers(self) -> int:
        return self._num_workers

    @property
    def tiles(self) -> list[Tile]:
        """The tile grid in claim order."""
        return list(self._tiles)

    def render(
        self,
        samples_per_pixel: int,
        max_depth: int,
        jitter: bool = True,
    ) -> RenderStats:
        """Render every pixel once, overwriting the previous image.

        Args:
            samples_per_pixel: Camera rays averaged per pixel (> 0).
            max_depth: Bounce budget per camera ray (>= 0).
            jitter: Randomize the sample position within each pixel. With
                jitter off every sample goes through the pixel corner.

        Returns:
            RenderStats for the pass.

        Raises:
            ValueError: If samples_per_pixel or max_depth is out of range.
        """
        if samples_per_pixel <= 0:
            raise ValueError(f"samples_per_pixel must be positive, got {samples_per_pixel}")
        if max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {max_depth}")

        stats = RenderStats(
            width=self._width,
            height=self._height,
            samples_per_pixel=samples_per_pixel,
            tiles=len(self._tiles),
        )
        logger.info(
            "Rendering %dx%d, %d samples per pixel, %d rays, %d tiles on %d workers",
            self._width,
            self._height,
            samples_per_pixel,
            stats.total_rays,
            stats.tiles,
            self._num_workers,
        )

        self._claim_target()
        start = time.perf_counter()
        render_tiles(self._num_workers, self._tile_size, samples_per_pixel, max_depth, jitter)
        stats.elapsed = time.perf_counter() - start
        stats.worker_tiles = get_worker_tile_counts(self._num_workers)

        logger.info(
            "Rendered %d of %d tiles in %.3f s (%.1f krays/s)",
            stats.tiles_completed,
            stats.tiles,
            stats.elapsed,
            stats.rays_per_second / 1000.0,
        )
        logger.debug("Tiles per worker: %s", stats.worker_tiles)
        return stats

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Linear image of shape (height, width, 3), row 0 at the top."""
        self._check_target()
        return get_image_numpy()

    def get_write_counts(self) -> npt.NDArray[np.int32]:
        """How often each pixel was written by the last pass, shape (height, width)."""
        self._check_target()
        return get_write_counts_numpy()

    def get_worker_tile_counts(self) -> list[int]:
        """Tiles rendered by each worker during the last pass."""
        self._check_target()
        return get_worker_tile_counts(self._num_workers)

    def save_ppm(self, filepath: str) -> None:
        """Write the gamma-encoded image as a plain-text PPM."""
        from src.spheretrace.preview.export import write_ppm

        with open(filepath, "w", encoding="ascii") as f:
            write_ppm(self.get_image_numpy(), f)

    def save_png(self, filepath: str) -> None:
        """Write the gamma-encoded image as a PNG."""
        from src.spheretrace.preview.export import save_png_from_array

        save_png_from_array(self.get_image_numpy(), filepath)
