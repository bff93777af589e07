"""Pinhole camera intrinsics taken from a ``sensor_msgs/CameraInfo`` snapshot."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple

import cv2
import numpy as np

__all__ = ["CameraIntrinsics"]

_IDENTITY = (1.0, 0.0, 0.0, 0.0, 1.0, 0.0, 0.0, 0.0, 1.0)


def _field(msg: Any, name: str) -> Sequence[float]:
    # ROS 2 messages use lower-case matrix fields, ROS 1 upper-case.
    value = getattr(msg, name, None)
    if value is None:
        value = getattr(msg, name.upper(), None)
    return tuple(float(v) for v in (value if value is not None else ()))


@dataclass(frozen=True)
class CameraIntrinsics:
    """Immutable intrinsics of a (rectified) pinhole camera.

    ``fx``, ``fy``, ``cx`` and ``cy`` describe the rectified image, i.e. they
    come from the projection matrix P. ``camera_matrix``, ``distortion`` and
    ``rectification`` describe the raw image and are only needed to rectify
    raw pixel coordinates.
    """

    fx: float
    fy: float
    cx: float
    cy: float
    camera_matrix: Optional[Tuple[float, ...]] = None
    distortion: Tuple[float, ...] = ()
    rectification: Tuple[float, ...] = _IDENTITY

    def __post_init__(self) -> None:
        for name in ("fx", "fy"):
            value = getattr(self, name)
            if not (math.isfinite(value) and value > 0.0):
                raise ValueError(f"Focal length {name} must be a positive number, got {value}")
        if not (math.isfinite(self.cx) and math.isfinite(self.cy)):
            raise ValueError(f"Principal point must be finite, got ({self.cx}, {self.cy})")

    @classmethod
    def from_camera_info(cls, msg: Any) -> "CameraIntrinsics":
        k = _field(msg, "k")
        p = _field(msg, "p")
        if len(p) == 12 and any(p):
            fx, cx, fy, cy = p[0], p[2], p[5], p[6]
        elif len(k) == 9 and any(k):
            fx, cx, fy, cy = k[0], k[2], k[4], k[5]
        else:
            raise ValueError("CameraInfo carries neither a projection nor a camera matrix")
        r = _field(msg, "r")
        return cls(
            fx=fx,
            fy=fy,
            cx=cx,
            cy=cy,
            camera_matrix=k if len(k) == 9 and any(k) else None,
            distortion=_field(msg, "d"),
            rectification=r if len(r) == 9 and any(r) else _IDENTITY,
        )

    @property
    def has_distortion(self) -> bool:
        return self.camera_matrix is not None and any(self.distortion)

    def project_pixel_to_3d_ray(self, u: float, v: float) -> Tuple[float, float, float]:
        """Ray through rectified pixel ``(u, v)`` with unit depth."""

        return ((u - self.cx) / self.fx, (v - self.cy) / self.fy, 1.0)

    def rectify_point(self, u: float, v: float) -> Tuple[float, float]:
        """Map a raw pixel to rectified coordinates; identity without distortion."""

        if not self.has_distortion:
            return (float(u), float(v))
        projection = np.array(
            [[self.fx, 0.0, self.cx], [0.0, self.fy, self.cy], [0.0, 0.0, 1.0]],
            dtype=np.float64,
        )
        rectified = cv2.undistortPoints(
            np.array([[[u, v]]], dtype=np.float64),
            np.array(self.camera_matrix, dtype=np.float64).reshape(3, 3),
            np.array(self.distortion, dtype=np.float64),
            R=np.array(self.rectification, dtype=np.float64).reshape(3, 3),
            P=projection,
        )
        return (float(rectified[0, 0, 0]), float(rectified[0, 0, 1]))
