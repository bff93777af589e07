"""Pytest configuration for the depthimage_to_laserscan tests."""

import sys
from pathlib import Path

import pytest

PACKAGE_PARENT = Path(__file__).resolve().parents[1]
if str(PACKAGE_PARENT) not in sys.path:
    sys.path.insert(0, str(PACKAGE_PARENT))

from depthimage_to_laserscan.camera import CameraIntrinsics  # noqa: E402


@pytest.fixture
def centred_camera():
    """Camera whose principal point sits in the middle of a 5x3 image."""

    return CameraIntrinsics(fx=2.0, fy=2.0, cx=2.0, cy=1.0)
