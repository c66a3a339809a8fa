"""Camera setup and primary ray generation.

Components:
    thin_lens: Look-at camera with vertical FOV and an optional lens aperture
"""

from .thin_lens import (
    ThinLensCamera,
    get_camera_info,
    get_ray,
    get_ray_for_pixel,
    setup_camera,
)

__all__ = [
    "ThinLensCamera",
    "setup_camera",
    "get_ray",
    "get_ray_for_pixel",
    "get_camera_info",
]
