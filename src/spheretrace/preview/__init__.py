"""Preview module for image output.

Components:
    export: Gamma encoding, PPM and PNG export

The render buffer holds linear colour; gamma encoding happens only here,
on the way out.

Example:
    >>> from src.spheretrace.preview import write_ppm
    >>> import sys
    >>> write_ppm(renderer.get_image_numpy(), sys.stdout)
"""

from src.spheretrace.preview.export import (
    encode_channel,
    format_ppm,
    gamma_encode,
    image_to_uint8,
    save_png_from_array,
    write_ppm,
)

__all__ = [
    "encode_channel",
    "gamma_encode",
    "image_to_uint8",
    "format_ppm",
    "write_ppm",
    "save_png_from_array",
]
