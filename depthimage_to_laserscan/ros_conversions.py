"""Translate between ROS message objects and the converter's value types.

Only attribute access is used, so any object shaped like ``sensor_msgs/Image``
or ``sensor_msgs/LaserScan`` works.
"""

from __future__ import annotations

import math
from typing import Any

from .converter import DepthFrame, LaserScan


def depth_frame_from_image(msg: Any) -> DepthFrame:
    """Wrap a ``sensor_msgs/Image`` without decoding its pixels."""

    header = getattr(msg, "header", None)
    return DepthFrame(
        width=int(msg.width),
        height=int(msg.height),
        step=int(msg.step),
        data=bytes(msg.data),
        encoding=msg.encoding,
        is_bigendian=bool(getattr(msg, "is_bigendian", False)),
        frame_id=getattr(header, "frame_id", "") if header is not None else "",
        stamp=getattr(header, "stamp", None) if header is not None else None,
    )


def fill_laserscan_msg(msg: Any, scan: LaserScan) -> Any:
    """Copy ``scan`` into a ``sensor_msgs/LaserScan`` instance and return it."""

    msg.header.frame_id = scan.frame_id
    if scan.stamp is not None:
        msg.header.stamp = scan.stamp
    msg.angle_min = float(scan.angle_min)
    msg.angle_max = float(scan.angle_max)
    msg.angle_increment = float(scan.angle_increment)
    msg.time_increment = float(scan.time_increment)
    msg.scan_time = float(scan.scan_time)
    msg.range_min = float(scan.range_min)
    msg.range_max = float(scan.range_max)
    msg.ranges = [float(r) for r in scan.ranges]
    msg.intensities = [float(i) for i in scan.intensities]
    return msg


def scan_to_dict(scan: LaserScan) -> dict[str, Any]:
    """JSON-friendly view of ``scan``; non-finite ranges become ``None``."""

    return {
        "frame_id": scan.frame_id,
        "angle_min": float(scan.angle_min),
        "angle_max": float(scan.angle_max),
        "angle_increment": float(scan.angle_increment),
        "time_increment": float(scan.time_increment),
        "scan_time": float(scan.scan_time),
        "range_min": float(scan.range_min),
        "range_max": float(scan.range_max),
        "ranges": [float(r) if math.isfinite(r) else None for r in scan.ranges],
    }
