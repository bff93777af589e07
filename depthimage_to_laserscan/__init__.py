"""Convert depth images into planar LaserScan data."""

from .camera import CameraIntrinsics
from .config import ConfigFileError, ScanConfig, ScanConfigurationError, load_camera_info, load_scan_config
from .converter import DepthFrame, DepthImageToLaserScan, LaserScan, convert, field_of_view, use_point
from .depth_traits import DepthEncoding, UnsupportedEncodingError
from .geometry import angle_between_rays, magnitude_of_ray

__all__ = [
    "CameraIntrinsics",
    "ConfigFileError",
    "DepthEncoding",
    "DepthFrame",
    "DepthImageToLaserScan",
    "LaserScan",
    "ScanConfig",
    "ScanConfigurationError",
    "UnsupportedEncodingError",
    "angle_between_rays",
    "convert",
    "field_of_view",
    "load_camera_info",
    "load_scan_config",
    "magnitude_of_ray",
    "use_point",
]
