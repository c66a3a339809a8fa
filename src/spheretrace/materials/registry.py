"""Host-side bookkeeping shared by the per-type material registries.

Each material module keeps its parameters in fixed-capacity Taichi fields
plus a scalar count field. These helpers validate parameters and hand out
the next free slot.
"""

import math
from collections.abc import Sequence

import taichi as ti


def check_albedo(albedo: Sequence[float]) -> tuple[float, float, float]:
    """Validate an RGB reflectance and return it as a float tuple.

    Raises:
        ValueError: If albedo does not have three components or any of them
            is outside [0, 1] (NaN included).
    """
    if len(albedo) != 3:
        raise ValueError(f"Albedo needs 3 components, got {len(albedo)}")
    for channel, value in zip("RGB", albedo):
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"Albedo {channel} = {value} is outside [0, 1]")
    return float(albedo[0]), float(albedo[1]), float(albedo[2])


def check_unit_interval(name: str, value: float) -> float:
    """Raise ValueError unless value lies in [0, 1]."""
    if math.isnan(value) or value < 0.0 or value > 1.0:
        raise ValueError(f"{name} = {value} is outside [0, 1]")
    return float(value)


def claim_slot(count: "ti.ScalarField", capacity: int, kind: str) -> int:
    """Reserve the next index of a registry.

    Args:
        count: Scalar i32 field holding the number of used slots.
        capacity: Size of the registry's parameter fields.
        kind: Material kind, used in the error message.

    Returns:
        The reserved index.

    Raises:
        RuntimeError: If the registry is full.
    """
    idx = int(count[None])
    if idx >= capacity:
        raise RuntimeError(f"Maximum number of {kind} materials ({capacity}) exceeded")
    count[None] = idx + 1
    return idx
