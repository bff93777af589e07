from __future__ import annotations

import json
import math
from pathlib import Path

import numpy as np
import pytest

from depthimage_to_laserscan import cli


@pytest.fixture
def flat_wall(tmp_path: Path) -> Path:
    path = tmp_path / "wall.npy"
    np.save(path, np.full((3, 5), 2.0, dtype=np.float32))
    return path


def test_converts_npy_depth_to_json(flat_wall: Path, capsys) -> None:
    assert cli.main([str(flat_wall), "--fx", "2"]) == 0
    scan = json.loads(capsys.readouterr().out)
    # Columns 3 and 4 share slot 0 (closest wins), so slot 1 receives no column.
    assert scan["ranges"][1] is None
    finite = [scan["ranges"][i] for i in (0, 2, 3, 4)]
    assert finite == pytest.approx([math.hypot(1, 2), 2.0, math.hypot(1, 2), math.hypot(2, 2)], rel=1e-6)
    assert scan["angle_min"] == pytest.approx(-scan["angle_max"])
    assert scan["frame_id"] == "camera_depth_frame"


def test_overrides_and_params_file(flat_wall: Path, tmp_path: Path, capsys) -> None:
    params = tmp_path / "params.yaml"
    params.write_text(
        "depthimage_to_laserscan:\n  ros__parameters:\n    range_max: 2.5\n    output_frame: base_scan\n",
        encoding="utf-8",
    )
    args = [str(flat_wall), "--fx", "2", "--params", str(params), "--output-frame", "laser", "--scan-height", "3"]
    assert cli.main(args) == 0
    scan = json.loads(capsys.readouterr().out)
    assert scan["range_max"] == 2.5
    assert scan["frame_id"] == "laser"


def test_uint16_image_file_is_read_in_millimetres(tmp_path: Path, capsys) -> None:
    cv2 = pytest.importorskip("cv2")
    path = tmp_path / "depth.png"
    assert cv2.imwrite(str(path), np.full((3, 5), 2000, dtype=np.uint16))
    assert cli.main([str(path), "--fx", "2"]) == 0
    scan = json.loads(capsys.readouterr().out)
    assert scan["ranges"][2] == pytest.approx(2.0)


def test_missing_intrinsics_is_an_error(flat_wall: Path, capsys) -> None:
    assert cli.main([str(flat_wall)]) == 2
    assert "--camera-info or --fx" in capsys.readouterr().err


def test_scan_height_too_large_is_an_error(flat_wall: Path, capsys) -> None:
    assert cli.main([str(flat_wall), "--fx", "2", "--scan-height", "10"]) == 2
    assert "too large" in capsys.readouterr().err


def test_missing_depth_file(tmp_path: Path, capsys) -> None:
    assert cli.main([str(tmp_path / "nope.npy"), "--fx", "1"]) == 2
    assert "not found" in capsys.readouterr().err


def test_zero_focal_length_is_an_error(flat_wall: Path, capsys) -> None:
    assert cli.main([str(flat_wall), "--fx", "0"]) == 2
    assert "Focal length fx" in capsys.readouterr().err


def test_float_depth_with_millimetre_encoding_is_an_error(flat_wall: Path, capsys) -> None:
    assert cli.main([str(flat_wall), "--fx", "2", "--encoding", "16UC1"]) == 2
    assert "needs uint16 samples" in capsys.readouterr().err


def test_unknown_log_level_falls_back_to_warning(flat_wall: Path, capsys) -> None:
    assert cli.main([str(flat_wall), "--fx", "2", "--log-level", "chatty"]) == 0
    assert json.loads(capsys.readouterr().out)["ranges"][2] == pytest.approx(2.0)


def test_colour_images_are_rejected(tmp_path: Path, capsys) -> None:
    path = tmp_path / "rgb.npy"
    np.save(path, np.zeros((2, 2, 3), dtype=np.float32))
    assert cli.main([str(path), "--fx", "1"]) == 2
    assert "single channel" in capsys.readouterr().err
