"""Scan configuration snapshot and YAML loaders for parameters and calibration."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, MutableMapping

import yaml

from .camera import CameraIntrinsics

__all__ = [
    "DEFAULT_NODE_NAME",
    "ConfigFileError",
    "ScanConfig",
    "ScanConfigurationError",
    "load_camera_info",
    "load_scan_config",
]

_LOGGER = logging.getLogger(__name__)

DEFAULT_NODE_NAME = "depthimage_to_laserscan"


class ScanConfigurationError(RuntimeError):
    """Raised when the scan configuration does not fit the image or camera."""


class ConfigFileError(RuntimeError):
    """Raised when a parameter or calibration file cannot be loaded."""


@dataclass(frozen=True)
class ScanConfig:
    """Immutable snapshot of the values that shape an output scan.

    ``scan_time`` is the time between scans in seconds; it cannot be derived
    from the images and is copied verbatim into each scan. ``scan_height`` is
    the number of image rows, centred on the principal point, that are
    compressed into one scan.
    """

    scan_time: float = 0.033
    range_min: float = 0.45
    range_max: float = 10.0
    scan_height: int = 1
    output_frame_id: str = "camera_depth_frame"

    def __post_init__(self) -> None:
        try:
            height = int(self.scan_height)
        except (TypeError, ValueError) as exc:
            raise ScanConfigurationError(f"scan_height must be an integer, got {self.scan_height!r}") from exc
        if isinstance(self.scan_height, bool) or height != self.scan_height:
            raise ScanConfigurationError(f"scan_height must be an integer, got {self.scan_height!r}")
        object.__setattr__(self, "scan_height", height)
        if self.scan_height < 1:
            raise ScanConfigurationError(f"scan_height must be at least 1 pixel, got {self.scan_height}")
        if math.isnan(self.range_min) or math.isnan(self.range_max):
            raise ScanConfigurationError("range limits must be numbers")
        if self.range_min < 0.0:
            raise ScanConfigurationError(f"range_min must not be negative, got {self.range_min}")
        if self.range_max < self.range_min:
            raise ScanConfigurationError(
                f"range_max ({self.range_max}) must not be smaller than range_min ({self.range_min})"
            )
        if not self.scan_time >= 0.0:
            raise ScanConfigurationError(f"scan_time must not be negative, got {self.scan_time}")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "ScanConfig":
        """Build a config from ROS-style parameter names, ignoring unknown keys."""

        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in values.items():
            name = "output_frame_id" if key == "output_frame" else key
            if name not in known:
                _LOGGER.debug("Ignoring unknown scan parameter %s", key)
                continue
            kwargs[name] = value
        try:
            for name in ("scan_time", "range_min", "range_max"):
                if name in kwargs:
                    kwargs[name] = float(kwargs[name])
            if "output_frame_id" in kwargs:
                kwargs["output_frame_id"] = str(kwargs["output_frame_id"] or "")
        except (TypeError, ValueError) as exc:
            raise ScanConfigurationError(f"Invalid scan parameter: {exc}") from exc
        return cls(**kwargs)

    def with_parameters(self, updates: Mapping[str, Any]) -> "ScanConfig":
        """Return a copy with the named ROS parameters replaced."""

        values: dict[str, Any] = {
            "scan_time": self.scan_time,
            "range_min": self.range_min,
            "range_max": self.range_max,
            "scan_height": self.scan_height,
            "output_frame_id": self.output_frame_id,
        }
        for key, value in updates.items():
            values["output_frame_id" if key == "output_frame" else key] = value
        return ScanConfig.from_mapping(values)


def _read_yaml(path: Path | str) -> MutableMapping[str, Any]:
    resolved = Path(path)
    if not resolved.exists():
        raise ConfigFileError(f"Configuration file not found: {resolved}")
    try:
        data = yaml.safe_load(resolved.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigFileError(f"Failed to parse {resolved}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, MutableMapping):
        raise ConfigFileError(f"Expected mapping at root of {resolved} but received {type(data)!r}")
    return data


def load_scan_config(path: Path | str, node_name: str = DEFAULT_NODE_NAME) -> ScanConfig:
    """Load a :class:`ScanConfig` from a ROS 2 parameter file.

    Accepts the ``<node>: {ros__parameters: {...}}`` layout used by
    ``ros2 run --params-file`` as well as a flat mapping of parameter names.
    """

    data = _read_yaml(path)
    block: Any = data
    for candidate in (node_name, f"/{node_name}", "/**"):
        if isinstance(data.get(candidate), Mapping):
            block = data[candidate]
            break
    if isinstance(block, Mapping) and isinstance(block.get("ros__parameters"), Mapping):
        block = block["ros__parameters"]
    config = ScanConfig.from_mapping(block)
    _LOGGER.info("Loaded scan parameters from %s: %s", path, config)
    return config


def _matrix(data: Mapping[str, Any], key: str) -> tuple[float, ...]:
    entry = data.get(key)
    if entry is None:
        return ()
    values = entry.get("data") if isinstance(entry, Mapping) else entry
    try:
        return tuple(float(v) for v in values or ())
    except (TypeError, ValueError) as exc:
        raise ConfigFileError(f"Calibration entry {key} is not numeric") from exc


@dataclass(frozen=True)
class _CalibrationRecord:
    k: tuple[float, ...]
    d: tuple[float, ...]
    r: tuple[float, ...]
    p: tuple[float, ...]


def load_camera_info(path: Path | str) -> CameraIntrinsics:
    """Load intrinsics from a ``camera_calibration`` YAML file."""

    data = _read_yaml(path)
    info = {
        "k": _matrix(data, "camera_matrix"),
        "d": _matrix(data, "distortion_coefficients"),
        "r": _matrix(data, "rectification_matrix"),
        "p": _matrix(data, "projection_matrix"),
    }
    try:
        return CameraIntrinsics.from_camera_info(_CalibrationRecord(**info))
    except ValueError as exc:
        raise ConfigFileError(f"{path}: {exc}") from exc
