"""Tile grid and the work-counter render kernel.

The image is split into a grid of rectangular tiles. A render pass launches a
fixed number of workers; each worker repeatedly claims the next unrendered
tile by atomically incrementing a shared counter, renders every pixel of that
tile and goes back for more until the counter runs past the last tile. Fast
workers therefore pick up more tiles than slow ones and the load balances
itself without any other coordination.

Tile edges are computed in integer arithmetic:

    tiles_x = max(1, width // tile_size)
    x_k     = (width * k) // tiles_x        for k in 0..tiles_x

so x_0 = 0, x_tiles_x = width and neighbouring tiles share an edge. Tiles are
stretched to cover the remainder when width is not a multiple of tile_size.
The same expression is used on the host (compute_tile_grid) and in the kernel
(tile_bounds), so every pixel belongs to exactly one tile.

The image buffer is a flat field indexed y * width + x with row 0 at the top
of the image. Each pixel is written exactly once per pass; the write count
field records this so tests can check it.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretrace.core.tiles import compute_tile_grid
    >>> tiles = compute_tile_grid(100, 70, 32)
    >>> len(tiles)
    6
"""

from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.spheretrace.camera.thin_lens import get_ray_for_pixel
from src.spheretrace.core.tracer import ray_colour

vec3 = tm.vec3

# =============================================================================
# Tile Grid (Python-side)
# =============================================================================


@dataclass(frozen=True)
class Tile:
    """A half-open rectangle of pixels [x0, x1) x [y0, y1).

    Attributes:
        index: Position of the tile in claim order (row-major over the grid).
        x0: First column.
        x1: One past the last column.
        y0: First row (0 = top of the image).
        y1: One past the last row.
    """

    index: int
    x0: int
    x1: int
    y0: int
    y1: int

    @property
    def width(self) -> int:
        return self.x1 - self.x0

    @property
    def height(self) -> int:
        return self.y1 - self.y0

    @property
    def pixel_count(self) -> int:
        return self.width * self.height


def grid_shape(width: int, height: int, tile_size: int) -> tuple[int, int]:
    """Return the number of tiles along x and y.

    Raises:
        ValueError: If any argument is not positive.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if tile_size <= 0:
        raise ValueError(f"tile_size must be positive, got {tile_size}")
    return max(1, width // tile_size), max(1, height // tile_size)


def compute_tile_grid(width: int, height: int, tile_size: int) -> list[Tile]:
    """Split a width x height image into tiles of roughly tile_size pixels.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        tile_size: Nominal tile edge length in pixels.

    Returns:
        Tiles in claim order. They are disjoint and together cover every pixel.

    Raises:
        ValueError: If any argument is not positive.
    """
    tiles_x, tiles_y = grid_shape(width, height, tile_size)

    tiles = []
    for ty in range(tiles_y):
        for tx in range(tiles_x):
            tiles.append(
                Tile(
                    index=ty * tiles_x + tx,
                    x0=(width * tx) // tiles_x,
                    x1=(width * (tx + 1)) // tiles_x,
                    y0=(height * ty) // tiles_y,
                    y1=(height * (ty + 1)) // tiles_y,
                )
            )
    return tiles


# =============================================================================
# Render Target
# =============================================================================

# Buffers are sized for the largest image so kernels compile once
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048
MAX_PIXELS = MAX_IMAGE_WIDTH * MAX_IMAGE_HEIGHT

# Upper bound on workers launched by one pass
MAX_WORKERS = 256

# Linear RGB, flat row-major buffer
_image = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PIXELS)

# Number of times each pixel was written during the last pass
_write_count = ti.field(dtype=ti.i32, shape=MAX_PIXELS)

# Next tile to hand out
_tile_counter = ti.field(dtype=ti.i32, shape=())

# Tiles rendered by each worker during the last pass
_worker_tiles = ti.field(dtype=ti.i32, shape=MAX_WORKERS)

_active_width = ti.field(dtype=ti.i32, shape=())
_active_height = ti.field(dtype=ti.i32, shape=())
_target_ready = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Set the active image size and clear the buffers.

    Args:
        width: Image width in pixels (2..MAX_IMAGE_WIDTH).
        height: Image height in pixels (2..MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If a dimension is below 2 or exceeds the maximum.
    """
    if width < 2 or height < 2:
        raise ValueError(f"Image dimensions must be at least 2x2, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image {width}x{height} is larger than the maximum "
            f"{MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT}"
        )

    _active_width[None] = width
    _active_height[None] = height
    _target_ready[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Zero the image, the write counts and the work bookkeeping."""
    _image.fill(0.0)
    _write_count.fill(0)
    _worker_tiles.fill(0)
    _tile_counter[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Return the active (width, height)."""
    return int(_active_width[None]), int(_active_height[None])


def _require_target() -> None:
    if _target_ready[None] == 0:
        raise RuntimeError("No render target; call setup_render_target() first")


# =============================================================================
# Render Kernel
# =============================================================================


@ti.func
def tile_bounds(tile: ti.i32, width: ti.i32, height: ti.i32, tiles_x: ti.i32, tiles_y: ti.i32):
    """Return (x0, x1, y0, y1) of a tile, matching compute_tile_grid."""
    tx = tile % tiles_x
    ty = tile // tiles_x
    x0 = (width * tx) // tiles_x
    x1 = (width * (tx + 1)) // tiles_x
    y0 = (height * ty) // tiles_y
    y1 = (height * (ty + 1)) // tiles_y
    return x0, x1, y0, y1


@ti.func
def render_pixel(
    x: ti.i32,
    y: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
    jitter: ti.i32,
) -> vec3:
    """Average samples camera rays through pixel (x, y)."""
    colour = vec3(0.0, 0.0, 0.0)
    for _ in range(samples):
        ray = get_ray_for_pixel(x, y, width, height, jitter)
        colour += ray_colour(ray.origin, ray.direction, max_depth)
    return colour / ti.cast(samples, ti.f32)


@ti.kernel
def _render_tiles(
    num_workers: ti.i32,
    width: ti.i32,
    height: ti.i32,
    tiles_x: ti.i32,
    tiles_y: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
    jitter: ti.i32,
):
    """Run one pass: num_workers workers drain the shared tile counter."""
    # One worker per thread; the tiles inside a worker are rendered serially
    ti.loop_config(block_dim=1)
    for worker in range(num_workers):
        tile_count = tiles_x * tiles_y
        claiming = 1
        while claiming == 1:
            tile = ti.atomic_add(_tile_counter[None], 1)
            if tile >= tile_count:
                claiming = 0
            else:
                x0, x1, y0, y1 = tile_bounds(tile, width, height, tiles_x, tiles_y)
                for y in range(y0, y1):
                    for x in range(x0, x1):
                        idx = y * width + x
                        _image[idx] = render_pixel(x, y, width, height, samples, max_depth, jitter)
                        _write_count[idx] += 1
                _worker_tiles[worker] += 1


def render_tiles(
    num_workers: int,
    tile_size: int,
    samples_per_pixel: int,
    max_depth: int,
    jitter: bool = True,
) -> None:
    """Render one full pass into the render target and wait for it.

    Args:
        num_workers: Number of parallel workers (1..MAX_WORKERS).
        tile_size: Nominal tile edge length in pixels.
        samples_per_pixel: Camera rays averaged per pixel.
        max_depth: Bounce budget per camera ray.
        jitter: Randomize the sample position within each pixel.

    Raises:
        RuntimeError: If the render target has not been set up.
        ValueError: If num_workers is out of range.
    """
    _require_target()
    if not 1 <= num_workers <= MAX_WORKERS:
        raise ValueError(f"num_workers must be in [1, {MAX_WORKERS}], got {num_workers}")

    width, height = get_image_dimensions()
    tiles_x, tiles_y = grid_shape(width, height, tile_size)

    clear_render_target()
    _render_tiles(
        num_workers,
        width,
        height,
        tiles_x,
        tiles_y,
        samples_per_pixel,
        max_depth,
        1 if jitter else 0,
    )
    ti.sync()


# =============================================================================
# Readback
# =============================================================================


def get_image_numpy() -> npt.NDArray[np.float32]:
    """Return the linear image as an array of shape (height, width, 3).

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    _require_target()
    width, height = get_image_dimensions()
    flat = _image.to_numpy()[: width * height]
    return flat.reshape(height, width, 3).astype(np.float32)


def get_write_counts_numpy() -> npt.NDArray[np.int32]:
    """Return per-pixel write counts of the last pass, shape (height, width).

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    _require_target()
    width, height = get_image_dimensions()
    flat = _write_count.to_numpy()[: width * height]
    return flat.reshape(height, width).astype(np.int32)


def get_worker_tile_counts(num_workers: int) -> list[int]:
    """Return how many tiles each of the first num_workers workers rendered."""
    counts = _worker_tiles.to_numpy()[:num_workers]
    return [int(c) for c in counts]


def get_tiles_claimed() -> int:
    """Return the raw counter value; exceeds the tile count by the worker count."""
    return int(_tile_counter[None])
