"""Render configuration and defaults.

The defaults apply whenever a command-line value is missing or unusable.
"""

from dataclasses import dataclass

DEFAULT_WIDTH = 800
DEFAULT_SAMPLES = 100
DEFAULT_DEPTH = 50
DEFAULT_SCENE = "random"
SCENE_NAMES = ("random", "three", "two")

# Nominal tile edge length in pixels
TILE_SIZE = 32


@dataclass
class RenderConfig:
    """Everything needed to run one render.

    Attributes:
        width: Image width in pixels.
        samples_per_pixel: Camera rays averaged per pixel.
        max_depth: Bounce budget per camera ray.
        scene: Name of the scene preset.
        tile_size: Nominal tile edge length in pixels.
        num_workers: Parallel workers, None for one per CPU.
        seed: Seed for Taichi's generator and the random scene layout.
        output: PPM destination path, None for stdout.
        png: Optional PNG destination path.
        arch: Taichi backend, "cpu" or "gpu".
    """

    width: int = DEFAULT_WIDTH
    samples_per_pixel: int = DEFAULT_SAMPLES
    max_depth: int = DEFAULT_DEPTH
    scene: str = DEFAULT_SCENE
    tile_size: int = TILE_SIZE
    num_workers: int | None = None
    seed: int | None = None
    output: str | None = None
    png: str | None = None
    arch: str = "cpu"

    def image_height(self, aspect_ratio: float) -> int:
        """Height matching width at the given aspect ratio (truncated)."""
        return int(self.width / aspect_ratio)

    def validate(self) -> None:
        """Raise ValueError for values a render cannot use."""
        if self.width <= 0:
            raise ValueError(f"width must be positive, got {self.width}")
        if self.samples_per_pixel <= 0:
            raise ValueError(f"samples_per_pixel must be positive, got {self.samples_per_pixel}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.tile_size <= 0:
            raise ValueError(f"tile_size must be positive, got {self.tile_size}")
        if self.num_workers is not None and self.num_workers <= 0:
            raise ValueError(f"num_workers must be positive, got {self.num_workers}")
        if self.arch not in ("cpu", "gpu"):
            raise ValueError(f"arch must be 'cpu' or 'gpu', got {self.arch!r}")
