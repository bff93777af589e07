"""ROS 2 node that republishes depth images as LaserScan messages."""

from __future__ import annotations

import threading
from typing import Optional

import rclpy
from rcl_interfaces.msg import SetParametersResult
from rclpy.node import Node
from rclpy.qos import QoSPresetProfiles
from sensor_msgs.msg import CameraInfo, Image, LaserScan

from .camera import CameraIntrinsics
from .config import DEFAULT_NODE_NAME, ScanConfig, ScanConfigurationError
from .converter import DepthImageToLaserScan
from .ros_conversions import depth_frame_from_image, fill_laserscan_msg

_SCAN_PARAMETERS = frozenset({"scan_time", "range_min", "range_max", "scan_height", "output_frame"})


class DepthImageToLaserScanNode(Node):
    """Subscribe to a depth image and its camera info, publish ``scan``."""

    _WARN_PERIOD = 5.0  # seconds

    def __init__(self) -> None:
        super().__init__(DEFAULT_NODE_NAME)
        defaults = ScanConfig()
        config = ScanConfig(
            scan_time=self.declare_parameter("scan_time", defaults.scan_time).get_parameter_value().double_value,
            range_min=self.declare_parameter("range_min", defaults.range_min).get_parameter_value().double_value,
            range_max=self.declare_parameter("range_max", defaults.range_max).get_parameter_value().double_value,
            scan_height=self.declare_parameter("scan_height", defaults.scan_height)
            .get_parameter_value()
            .integer_value,
            output_frame_id=self.declare_parameter("output_frame", defaults.output_frame_id)
            .get_parameter_value()
            .string_value,
        )
        self._converter = DepthImageToLaserScan(config)
        self._info_lock = threading.Lock()
        self._intrinsics: Optional[CameraIntrinsics] = None

        qos = QoSPresetProfiles.SENSOR_DATA.value
        self._scan_pub = self.create_publisher(LaserScan, "scan", qos)
        self.create_subscription(CameraInfo, "depth_camera_info", self._info_callback, qos)
        self.create_subscription(Image, "depth", self._depth_callback, qos)
        self.add_on_set_parameters_callback(self._on_set_parameters)

        self.get_logger().info(
            f"depthimage_to_laserscan ready (scan_height={config.scan_height}, "
            f"range=[{config.range_min}, {config.range_max}] m, frame={config.output_frame_id!r})"
        )

    def _info_callback(self, msg: CameraInfo) -> None:
        """Cache the latest camera model for the next depth frame."""

        try:
            intrinsics = CameraIntrinsics.from_camera_info(msg)
        except ValueError as exc:
            self.get_logger().warning(f"Ignoring camera info: {exc}", throttle_duration_sec=self._WARN_PERIOD)
            return
        with self._info_lock:
            self._intrinsics = intrinsics

    def _depth_callback(self, msg: Image) -> None:
        with self._info_lock:
            intrinsics = self._intrinsics
        if intrinsics is None:
            self.get_logger().warning(
                "No camera info received yet; dropping depth image", throttle_duration_sec=self._WARN_PERIOD
            )
            return

        try:
            scan = self._converter.convert_msg(depth_frame_from_image(msg), intrinsics)
        except (ScanConfigurationError, ValueError) as exc:
            self.get_logger().error(f"Could not convert depth image: {exc}", throttle_duration_sec=self._WARN_PERIOD)
            return

        self._scan_pub.publish(fill_laserscan_msg(LaserScan(), scan))

    def _on_set_parameters(self, params) -> SetParametersResult:
        """Validate and apply live parameter changes as one new snapshot."""

        updates = {param.name: param.value for param in params if param.name in _SCAN_PARAMETERS}
        if not updates:
            return SetParametersResult(successful=True)
        try:
            config = self._converter.config.with_parameters(updates)
        except ScanConfigurationError as exc:
            self.get_logger().warning(f"Rejected parameter update: {exc}")
            return SetParametersResult(successful=False, reason=str(exc))

        self._converter.set_config(config)
        self.get_logger().info(f"Scan parameters updated: {config}")
        return SetParametersResult(successful=True)


def main(args: Optional[list[str]] = None) -> None:
    rclpy.init(args=args)
    node = DepthImageToLaserScanNode()
    try:
        rclpy.spin(node)
    except KeyboardInterrupt:  # pragma: no cover - manual shutdown
        pass
    finally:
        node.destroy_node()
        rclpy.shutdown()


if __name__ == "__main__":
    main()
