from __future__ import annotations

from pathlib import Path

import pytest

from depthimage_to_laserscan.config import (
    ConfigFileError,
    ScanConfig,
    ScanConfigurationError,
    load_camera_info,
    load_scan_config,
)

PARAMS_FILE = Path(__file__).resolve().parents[1] / "params" / "depthimage_to_laserscan.yaml"


def write(tmp_path: Path, content: str, name: str = "config.yaml") -> Path:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


def test_defaults_match_the_shipped_parameter_file() -> None:
    assert load_scan_config(PARAMS_FILE) == ScanConfig()


def test_load_ros2_parameter_layout(tmp_path: Path) -> None:
    path = write(
        tmp_path,
        """
depthimage_to_laserscan:
  ros__parameters:
    scan_time: 0.1
    range_min: 0.2
    range_max: 4
    scan_height: 5
    output_frame: base_scan
    use_sim_time: true
""",
    )
    assert load_scan_config(path) == ScanConfig(
        scan_time=0.1, range_min=0.2, range_max=4.0, scan_height=5, output_frame_id="base_scan"
    )


def test_load_wildcard_and_flat_layouts(tmp_path: Path) -> None:
    wildcard = write(tmp_path, "/**:\n  ros__parameters:\n    scan_height: 3\n", "wildcard.yaml")
    flat = write(tmp_path, "range_max: 8.0\n", "flat.yaml")
    assert load_scan_config(wildcard).scan_height == 3
    assert load_scan_config(flat).range_max == 8.0


def test_empty_file_gives_defaults(tmp_path: Path) -> None:
    assert load_scan_config(write(tmp_path, "")) == ScanConfig()


def test_missing_and_malformed_files(tmp_path: Path) -> None:
    with pytest.raises(ConfigFileError, match="not found"):
        load_scan_config(tmp_path / "missing.yaml")
    with pytest.raises(ConfigFileError, match="Failed to parse"):
        load_scan_config(write(tmp_path, "scan_height: [1, 2\n"))
    with pytest.raises(ConfigFileError, match="Expected mapping"):
        load_scan_config(write(tmp_path, "- 1\n- 2\n"))


@pytest.mark.parametrize(
    "kwargs",
    [
        {"scan_height": 0},
        {"scan_height": 2.5},
        {"scan_height": True},
        {"scan_height": "three"},
        {"range_min": -0.1},
        {"range_min": 2.0, "range_max": 1.0},
        {"range_max": float("nan")},
        {"scan_time": -1.0},
    ],
)
def test_invalid_configurations_are_rejected(kwargs) -> None:
    with pytest.raises(ScanConfigurationError):
        ScanConfig(**kwargs)


def test_integral_scan_height_is_normalised() -> None:
    assert ScanConfig(scan_height=3.0).scan_height == 3
    assert isinstance(ScanConfig(scan_height=3.0).scan_height, int)


def test_with_parameters_accepts_ros_names() -> None:
    config = ScanConfig().with_parameters({"output_frame": "laser", "range_max": 6})
    assert config.output_frame_id == "laser"
    assert config.range_max == 6.0
    assert config.scan_height == 1


def test_with_parameters_rejects_bad_values() -> None:
    with pytest.raises(ScanConfigurationError, match="Invalid scan parameter"):
        ScanConfig().with_parameters({"range_min": "near"})


def test_load_camera_calibration(tmp_path: Path) -> None:
    path = write(
        tmp_path,
        """
image_width: 640
image_height: 480
camera_name: depth
camera_matrix:
  rows: 3
  cols: 3
  data: [570.3, 0, 319.5, 0, 570.3, 239.5, 0, 0, 1]
distortion_model: plumb_bob
distortion_coefficients:
  rows: 1
  cols: 5
  data: [0, 0, 0, 0, 0]
rectification_matrix:
  rows: 3
  cols: 3
  data: [1, 0, 0, 0, 1, 0, 0, 0, 1]
projection_matrix:
  rows: 3
  cols: 4
  data: [570.3, 0, 319.5, 0, 0, 570.3, 239.5, 0, 0, 0, 1, 0]
""",
    )
    camera = load_camera_info(path)
    assert (camera.fx, camera.cx, camera.cy) == (570.3, 319.5, 239.5)
    assert not camera.has_distortion


def test_calibration_without_matrices_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ConfigFileError):
        load_camera_info(write(tmp_path, "image_width: 640\n"))
    with pytest.raises(ConfigFileError, match="not numeric"):
        load_camera_info(write(tmp_path, "camera_matrix:\n  data: [a, b]\n"))
