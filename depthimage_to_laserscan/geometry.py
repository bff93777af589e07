"""Ray helpers used to derive the field of view of a pinhole camera."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

Ray = Sequence[float]


def magnitude_of_ray(ray: Ray) -> float:
    """Euclidean length of ``ray`` taken as a vector from the origin."""

    x, y, z = ray
    return math.sqrt(x * x + y * y + z * z)


def angle_between_rays(ray1: Ray, ray2: Ray) -> float:
    """Angle in radians between two rays from the origin.

    Computes ``arccos(a.b / (|a||b|))``. The result is NaN when either ray has
    zero length.
    """

    dot = float(np.dot(ray1, ray2))
    norm = magnitude_of_ray(ray1) * magnitude_of_ray(ray2)
    if norm == 0.0:
        return math.nan
    # Rounding can push the cosine of (anti)parallel rays just past +/-1.
    return math.acos(min(1.0, max(-1.0, dot / norm)))
