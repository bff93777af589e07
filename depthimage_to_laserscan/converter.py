"""Depth image to LaserScan conversion.

Every pixel of a horizontal band of the depth image is projected into the
camera frame, its Euclidean range from the optical centre is computed, and the
range is binned by its horizontal bearing. When several pixels land in the
same angular bucket the closest acceptable range wins (see :func:`use_point`).
"""

from __future__ import annotations

import dataclasses
import logging
import math
import threading
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

import numpy as np

from .camera import CameraIntrinsics
from .config import ScanConfig, ScanConfigurationError
from .depth_traits import DepthEncoding, encoding_from_name
from .geometry import angle_between_rays

__all__ = [
    "DepthFrame",
    "DepthImageToLaserScan",
    "LaserScan",
    "bucket_indices",
    "convert",
    "field_of_view",
    "use_point",
    "use_points",
]

_LOGGER = logging.getLogger(__name__)

_BOUNDARY_SNAP = 1e-9


@dataclass(frozen=True)
class DepthFrame:
    """A raw depth image as delivered by ``sensor_msgs/Image``."""

    width: int
    height: int
    step: int
    data: bytes
    encoding: DepthEncoding
    is_bigendian: bool = False
    frame_id: str = ""
    stamp: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "encoding", encoding_from_name(self.encoding))

    @classmethod
    def from_array(
        cls,
        depth: np.ndarray,
        encoding: DepthEncoding | str | None = None,
        *,
        frame_id: str = "",
        stamp: Any = None,
    ) -> "DepthFrame":
        """Pack a 2D array into a frame; the encoding follows the dtype if omitted."""

        depth = np.asarray(depth)
        if depth.ndim != 2:
            raise ValueError(f"Depth images must be 2D, got shape {depth.shape}")
        if encoding is None:
            if depth.dtype == np.uint16:
                encoding = DepthEncoding.UINT16_MM
            elif depth.dtype.kind == "f":
                encoding = DepthEncoding.FLOAT32_M
            else:
                raise ValueError(f"Cannot infer a depth encoding for dtype {depth.dtype}")
        encoding = encoding_from_name(encoding)
        if depth.dtype.kind != encoding.dtype.kind:
            raise ValueError(f"{encoding.value} depth needs {encoding.dtype} samples, got an array of {depth.dtype}")
        packed = np.ascontiguousarray(depth, dtype=encoding.dtype.newbyteorder("<"))
        height, width = packed.shape
        return cls(
            width=width,
            height=height,
            step=width * packed.itemsize,
            data=packed.tobytes(),
            encoding=encoding,
            is_bigendian=False,
            frame_id=frame_id,
            stamp=stamp,
        )

    def as_array(self) -> np.ndarray:
        """Return the pixels as a ``(height, width)`` array in native byte order."""

        dtype = self.encoding.dtype.newbyteorder(">" if self.is_bigendian else "<")
        row_bytes = self.width * dtype.itemsize
        if self.step < row_bytes:
            raise ValueError(f"Row step {self.step} is shorter than a row of {row_bytes} bytes")
        needed = self.step * (self.height - 1) + row_bytes if self.height else 0
        if len(self.data) < needed:
            raise ValueError(f"Depth buffer holds {len(self.data)} bytes, expected at least {needed}")
        pixels = np.ndarray(
            shape=(self.height, self.width),
            dtype=dtype,
            buffer=memoryview(self.data),
            strides=(self.step, dtype.itemsize),
        )
        return pixels.astype(self.encoding.dtype, copy=False)


@dataclass
class LaserScan:
    """Output scan; slot ``i`` covers bearing ``angle_min + i * angle_increment``."""

    frame_id: str
    angle_min: float
    angle_max: float
    angle_increment: float
    range_min: float
    range_max: float
    ranges: np.ndarray
    scan_time: float = 0.0
    time_increment: float = 0.0
    stamp: Any = None
    intensities: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.float32))

    @classmethod
    def allocate(
        cls,
        width: int,
        angle_min: float,
        angle_max: float,
        config: ScanConfig,
        *,
        frame_id: str = "",
        stamp: Any = None,
    ) -> "LaserScan":
        """Create a scan of ``width`` slots, all set to "no return" (``+inf``)."""

        return cls(
            frame_id=config.output_frame_id or frame_id,
            stamp=stamp,
            angle_min=angle_min,
            angle_max=angle_max,
            angle_increment=(angle_max - angle_min) / (width - 1),
            range_min=config.range_min,
            range_max=config.range_max,
            ranges=np.full(width, np.inf, dtype=np.float32),
            scan_time=config.scan_time,
        )

    def bearings(self) -> np.ndarray:
        return self.angle_min + np.arange(len(self.ranges)) * self.angle_increment


def use_points(new_value, old_value, range_min: float, range_max: float) -> np.ndarray:
    """Element-wise form of :func:`use_point`."""

    new = np.asarray(new_value, dtype=np.float64)
    old = np.asarray(old_value, dtype=np.float64)
    usable = ~np.isnan(new) & ~(new < 0.0)
    no_prior = ~np.isfinite(old)
    first = no_prior & ((new > range_max) | (new >= range_min))
    closer = ~no_prior & (new < old) & (new >= range_min)
    return usable & (first | closer)


def use_point(new_value: float, old_value: float, range_min: float, range_max: float) -> bool:
    """Decide whether ``new_value`` should replace ``old_value`` in a scan bucket.

    NaN and negative candidates are never used. An empty bucket (NaN or
    infinite ``old_value``) takes any candidate at or beyond ``range_min``,
    including ones past ``range_max`` which then mark "nothing closer than
    range_max". A filled bucket only takes a strictly closer candidate that is
    not below ``range_min``.
    """

    return bool(use_points(new_value, old_value, range_min, range_max))


def field_of_view(intrinsics: CameraIntrinsics, width: int) -> Tuple[float, float]:
    """Return ``(angle_min, angle_max)`` covered by an image ``width`` pixels wide.

    Angles are measured between the optical-centre ray and the rays through
    the outermost columns of the principal row. The left edge gives the
    positive (counter-clockwise) limit.
    """

    def ray(u: float) -> Tuple[float, float, float]:
        return intrinsics.project_pixel_to_3d_ray(*intrinsics.rectify_point(u, intrinsics.cy))

    left, center, right = ray(0), ray(intrinsics.cx), ray(width - 1)
    return -angle_between_rays(center, right), angle_between_rays(left, center)


def bucket_indices(intrinsics: CameraIntrinsics, scan: LaserScan, unit_scaling: float = 1.0) -> np.ndarray:
    """Scan slot of every image column, ``floor((bearing - angle_min) / angle_increment)``.

    Positions within ``_BOUNDARY_SNAP`` of a slot boundary are snapped onto
    it, so a column whose bearing equals ``angle_min`` or a bucket edge up to
    rounding lands in that slot.

    Raises
    ------
    ScanConfigurationError
        When a column falls outside the scan.
    """

    width = len(scan.ranges)
    lateral = (np.arange(width, dtype=np.float64) - intrinsics.cx) * (unit_scaling / intrinsics.fx)
    # Depth divides out of atan2(x, z), so the bearing only depends on u.
    theta = -np.arctan2(lateral, unit_scaling)
    position = (theta - scan.angle_min) / scan.angle_increment
    index = np.floor(position + _BOUNDARY_SNAP).astype(np.int64)
    outside = (index < 0) | (index >= width)
    if np.any(outside):
        column = int(np.flatnonzero(outside)[0])
        raise ScanConfigurationError(
            f"Pixel column {column} maps to scan slot {int(index[column])} outside [0, {width}); "
            "camera info does not match the depth image"
        )
    return index


def _row_window(intrinsics: CameraIntrinsics, scan_height: int, image_height: int) -> Tuple[int, int]:
    offset = math.floor(intrinsics.cy - scan_height / 2.0 + 0.5)
    if offset < 0 or offset + scan_height > image_height:
        raise ScanConfigurationError(
            f"scan_height ({scan_height} pixels) is too large for the image height "
            f"({image_height} pixels, cy={intrinsics.cy:g})"
        )
    return offset, offset + scan_height


def convert(frame: DepthFrame, intrinsics: CameraIntrinsics, config: ScanConfig) -> LaserScan:
    """Convert one depth frame into a :class:`LaserScan`.

    Parameters
    ----------
    frame:
        Depth image; its declared encoding selects how raw samples are read.
    intrinsics:
        Camera model matching ``frame``.
    config:
        Snapshot of the scan parameters used for the whole call.

    Raises
    ------
    ScanConfigurationError
        When the row window leaves the image or a pixel column falls outside
        the scan, which means the camera model does not describe this image.
    """

    width = frame.width
    if width < 2:
        raise ScanConfigurationError(f"Depth image must be at least 2 pixels wide, got {width}")
    encoding = frame.encoding

    angle_min, angle_max = field_of_view(intrinsics, width)
    scan = LaserScan.allocate(width, angle_min, angle_max, config, frame_id=frame.frame_id, stamp=frame.stamp)
    if not (math.isfinite(scan.angle_increment) and scan.angle_increment > 0.0):
        raise ScanConfigurationError(
            f"Camera model gives a degenerate field of view [{angle_min}, {angle_max}] for width {width}"
        )

    first_row, end_row = _row_window(intrinsics, config.scan_height, frame.height)
    window = frame.as_array()[first_row:end_row]

    unit_scaling = encoding.unit_scaling
    constant_x = unit_scaling / intrinsics.fx
    lateral = (np.arange(width, dtype=np.float64) - intrinsics.cx) * constant_x
    index = bucket_indices(intrinsics, scan, unit_scaling)

    raw = window.astype(np.float64)
    valid = encoding.valid(window)
    with np.errstate(invalid="ignore"):
        x = lateral * raw
        z = encoding.to_meters(window)
        # Invalid samples pass through untouched so NaN and Inf reach use_point.
        ranges = np.where(valid, np.hypot(x, z), raw)

    # range_min <= range_max (enforced by ScanConfig) makes sequential
    # use_point updates equal to a minimum over what an empty bucket accepts.
    accepted = use_points(ranges, np.inf, scan.range_min, scan.range_max)
    buckets = np.broadcast_to(index, ranges.shape)[accepted]
    np.minimum.at(scan.ranges, buckets, ranges[accepted].astype(np.float32))

    _LOGGER.debug(
        "Converted %dx%d %s frame rows [%d, %d): %d/%d candidates accepted",
        width,
        frame.height,
        encoding.value,
        first_row,
        end_row,
        int(np.count_nonzero(accepted)),
        ranges.size,
    )
    return scan


class DepthImageToLaserScan:
    """Stateful front end holding the scan parameters between conversions.

    Setters swap in a new :class:`ScanConfig` snapshot under a lock, and every
    conversion reads exactly one snapshot, so conversions running on other
    threads never see a half-applied update.
    """

    def __init__(self, config: Optional[ScanConfig] = None) -> None:
        self._lock = threading.Lock()
        self._config = config if config is not None else ScanConfig()

    @property
    def config(self) -> ScanConfig:
        with self._lock:
            return self._config

    def _update(self, **changes: Any) -> ScanConfig:
        with self._lock:
            self._config = dataclasses.replace(self._config, **changes)
            return self._config

    def set_config(self, config: ScanConfig) -> None:
        with self._lock:
            self._config = config

    def set_scan_time(self, scan_time: float) -> None:
        """Set the time between scans in seconds, copied into every scan."""

        self._update(scan_time=float(scan_time))

    def set_range_limits(self, range_min: float, range_max: float) -> None:
        """Set the closest usable range and the range reported as the maximum."""

        self._update(range_min=float(range_min), range_max=float(range_max))

    def set_scan_height(self, scan_height: int) -> None:
        """Set how many rows around the principal point feed each bucket."""

        self._update(scan_height=scan_height)

    def set_output_frame(self, output_frame_id: str) -> None:
        """Set the frame id of output scans; empty keeps the image's frame."""

        self._update(output_frame_id=str(output_frame_id))

    def convert_msg(self, frame: DepthFrame, intrinsics: CameraIntrinsics) -> LaserScan:
        return convert(frame, intrinsics, self.config)
