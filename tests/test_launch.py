from __future__ import annotations

import importlib.util
from pathlib import Path

import pytest

LAUNCH_FILE = Path(__file__).resolve().parents[1] / "launch" / "depthimage_to_laserscan.launch.py"


def test_launch_description_declares_topic_arguments() -> None:
    pytest.importorskip("launch_ros")
    from launch.actions import DeclareLaunchArgument

    spec = importlib.util.spec_from_file_location("depthimage_to_laserscan_launch", LAUNCH_FILE)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    description = module.generate_launch_description()
    declared = {action.name for action in description.entities if isinstance(action, DeclareLaunchArgument)}
    assert declared == {"depth_topic", "depth_camera_info_topic", "scan_topic", "params_file"}
