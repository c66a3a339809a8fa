"""Image export utilities for rendered images.

This module turns the renderer's linear colour buffer into 8-bit output.
Each channel is gamma encoded with gamma 2 and quantized:

    value = int(256 * clamp(sqrt(c), 0, 0.999))

which maps [0, 1] onto 0..255 with equal-width buckets. The encode is lossy;
no decoder is provided.

Supported formats:
    - PPM "P3" (plain text, one pixel per line)
    - PNG (8-bit RGB via Pillow)

Example:
    >>> import sys
    >>> from src.spheretrace.preview.export import write_ppm
    >>> write_ppm(renderer.get_image_numpy(), sys.stdout)
"""

from __future__ import annotations

import math
from typing import TextIO

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

# Upper clamp before quantizing; keeps 1.0 inside the 255 bucket
MAX_ENCODED = 0.999


def encode_channel(value: float) -> int:
    """Gamma encode and quantize one linear channel value to 0..255."""
    if not value > 0.0:
        # Negative and NaN both encode as black
        return 0
    return int(256 * min(math.sqrt(value), MAX_ENCODED))


def _encode(image: npt.NDArray[np.floating]) -> npt.NDArray[np.float64]:
    linear = np.nan_to_num(image.astype(np.float64), nan=0.0, posinf=1.0, neginf=0.0)
    encoded = np.sqrt(np.clip(linear, 0.0, None))
    return np.clip(encoded, 0.0, MAX_ENCODED)


def gamma_encode(image: npt.NDArray[np.floating]) -> npt.NDArray[np.float32]:
    """Apply gamma 2 and clamp to [0, MAX_ENCODED].

    Args:
        image: Linear image array of shape (H, W, 3).

    Returns:
        Encoded float32 image of the same shape.
    """
    return _encode(image).astype(np.float32)


def image_to_uint8(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to gamma-encoded uint8.

    Quantization happens in double precision so the result matches
    encode_channel for every value.

    Args:
        image: Linear image array of shape (H, W, 3).

    Returns:
        8-bit image array of shape (H, W, 3).
    """
    return np.floor(256.0 * _encode(image)).astype(np.uint8)


def format_ppm(image: npt.NDArray[np.floating]) -> str:
    """Render a linear image as the text of a P3 PPM file.

    The header is "P3", the dimensions and the maximum value 255, each on its
    own line, followed by one "r g b" line per pixel in row-major order
    starting at the top row.

    Args:
        image: Linear image array of shape (H, W, 3).

    Returns:
        The complete file contents, ending with a newline.
    """
    height, width = image.shape[:2]
    pixels = image_to_uint8(image).reshape(-1, 3)
    lines = [f"P3\n{width} {height}\n255"]
    lines.extend(f"{r} {g} {b}" for r, g, b in pixels.tolist())
    return "\n".join(lines) + "\n"


def write_ppm(image: npt.NDArray[np.floating], stream: TextIO) -> None:
    """Write a linear image to a text stream as a P3 PPM."""
    stream.write(format_ppm(image))
    stream.flush()


def save_png_from_array(image: npt.NDArray[np.floating], filepath: str) -> None:
    """Save a linear image as a PNG with the same encoding as the PPM.

    Args:
        image: Linear image array of shape (H, W, 3).
        filepath: Output file path (should end in .png).
    """
    pil_image = PILImage.fromarray(image_to_uint8(image))
    pil_image.save(filepath)
