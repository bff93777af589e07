"""Command line interface converting a stored depth image into a scan."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Iterable, Optional

import cv2
import numpy as np

from .camera import CameraIntrinsics
from .config import ConfigFileError, ScanConfig, ScanConfigurationError, load_camera_info, load_scan_config
from .converter import DepthFrame, convert
from .depth_traits import UnsupportedEncodingError
from .ros_conversions import scan_to_dict

_LOGGER = logging.getLogger(__name__)

_CONFIG_ERROR_EXIT = 2


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="depthimage-to-laserscan",
        description="Convert a depth image (.npy or 16-bit/float image file) into a LaserScan printed as JSON",
    )
    parser.add_argument("depth", type=Path, help="Depth image: .npy array or an image readable by OpenCV")
    parser.add_argument("--camera-info", type=Path, help="camera_calibration YAML with the depth intrinsics")
    parser.add_argument("--fx", type=float, help="Focal length along x in pixels")
    parser.add_argument("--fy", type=float, help="Focal length along y in pixels (defaults to fx)")
    parser.add_argument("--cx", type=float, help="Principal point column (defaults to the image centre)")
    parser.add_argument("--cy", type=float, help="Principal point row (defaults to the image centre)")
    parser.add_argument("--encoding", choices=["16UC1", "mono16", "32FC1"], help="Override the depth encoding")
    parser.add_argument("--params", type=Path, help="ROS 2 parameter YAML with the scan parameters")
    parser.add_argument("--scan-height", type=int, help="Rows around the principal point to compress")
    parser.add_argument("--range-min", type=float, help="Closest usable range in metres")
    parser.add_argument("--range-max", type=float, help="Farthest reported range in metres")
    parser.add_argument("--scan-time", type=float, help="Time between scans in seconds")
    parser.add_argument("--output-frame", help="Frame id written into the scan")
    parser.add_argument("--indent", type=int, default=None, help="Indent the JSON output")
    parser.add_argument("--log-level", default=os.environ.get("DEPTHSCAN_LOG_LEVEL", "WARNING"))
    return parser.parse_args(argv)


def load_depth(path: Path) -> np.ndarray:
    """Read a depth image from ``path`` keeping its original bit depth."""

    if not path.exists():
        raise FileNotFoundError(f"Depth image not found: {path}")
    if path.suffix.lower() == ".npy":
        depth = np.load(path)
    else:
        depth = cv2.imread(str(path), cv2.IMREAD_ANYDEPTH)
        if depth is None:
            raise ValueError(f"OpenCV could not read {path}")
    if depth.ndim != 2:
        raise ValueError(f"Depth image {path} must have a single channel, got shape {depth.shape}")
    return depth


def resolve_intrinsics(args: argparse.Namespace, width: int, height: int) -> CameraIntrinsics:
    if args.camera_info is not None:
        intrinsics = load_camera_info(args.camera_info)
        _LOGGER.info("Using calibration from %s", args.camera_info)
        return intrinsics
    if args.fx is None:
        raise ScanConfigurationError("Either --camera-info or --fx is required")
    return CameraIntrinsics(
        fx=args.fx,
        fy=args.fy if args.fy is not None else args.fx,
        cx=args.cx if args.cx is not None else (width - 1) / 2.0,
        cy=args.cy if args.cy is not None else (height - 1) / 2.0,
    )


def resolve_config(args: argparse.Namespace) -> ScanConfig:
    config = load_scan_config(args.params) if args.params is not None else ScanConfig()
    overrides = {
        "scan_height": args.scan_height,
        "range_min": args.range_min,
        "range_max": args.range_max,
        "scan_time": args.scan_time,
        "output_frame": args.output_frame,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    return config.with_parameters(overrides) if overrides else config


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        depth = load_depth(args.depth)
        frame = DepthFrame.from_array(depth, args.encoding)
        intrinsics = resolve_intrinsics(args, frame.width, frame.height)
        config = resolve_config(args)
        scan = convert(frame, intrinsics, config)
    except (ScanConfigurationError, ConfigFileError, UnsupportedEncodingError, ValueError, OSError) as exc:
        _LOGGER.debug("Conversion failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return _CONFIG_ERROR_EXIT

    _LOGGER.info(
        "Scan of %d slots covering [%.3f, %.3f] rad", len(scan.ranges), scan.angle_min, scan.angle_max
    )
    print(json.dumps(scan_to_dict(scan), indent=args.indent))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
