"""Depth sample accessors for the supported image encodings."""

from __future__ import annotations

import enum

import numpy as np

__all__ = [
    "DepthEncoding",
    "UnsupportedEncodingError",
    "encoding_from_name",
]


class UnsupportedEncodingError(ValueError):
    """Raised when a depth image uses an encoding the converter cannot read."""


class DepthEncoding(enum.Enum):
    """Closed set of depth encodings, keyed by their ROS encoding name."""

    UINT16_MM = "16UC1"
    FLOAT32_M = "32FC1"

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(np.uint16) if self is DepthEncoding.UINT16_MM else np.dtype(np.float32)

    @property
    def unit_scaling(self) -> float:
        """Metres represented by one raw depth unit."""

        return self.to_meters(1)

    def to_meters(self, raw):
        meters = np.asarray(raw, dtype=np.float64)
        if self is DepthEncoding.UINT16_MM:
            meters = meters * 0.001
        return meters if meters.ndim else float(meters)

    def from_meters(self, meters):
        """Inverse of :meth:`to_meters`, rounding to the nearest millimetre."""

        raw = np.asarray(meters, dtype=np.float64)
        if self is DepthEncoding.UINT16_MM:
            raw = np.rint(raw * 1000.0)
        raw = raw.astype(self.dtype)
        return raw if raw.ndim else raw.item()

    def valid(self, raw):
        """Return whether ``raw`` holds a usable depth reading.

        Millimetre images use ``0`` for "no reading"; float images use NaN and
        infinities. Works element-wise on arrays.
        """

        if self is DepthEncoding.UINT16_MM:
            return np.asarray(raw) != 0
        return np.isfinite(raw)


_ENCODING_ALIASES = {
    "16UC1": DepthEncoding.UINT16_MM,
    "mono16": DepthEncoding.UINT16_MM,
    "32FC1": DepthEncoding.FLOAT32_M,
}


def encoding_from_name(name: str | DepthEncoding) -> DepthEncoding:
    """Resolve a ROS image encoding string to a :class:`DepthEncoding`."""

    if isinstance(name, DepthEncoding):
        return name
    try:
        return _ENCODING_ALIASES[str(name).strip()]
    except KeyError as exc:
        raise UnsupportedEncodingError(f"Depth image has unsupported encoding: {name}") from exc
