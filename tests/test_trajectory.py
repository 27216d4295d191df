import math

import numpy as np
import pytest

from slamkit.trajectory import (
    FrameRecord,
    camera_center,
    format_kitti_line,
    format_tum_line,
    rotation_to_quaternion,
    save_trajectory_kitti,
    save_trajectory_tum,
)


def _rot_z(angle):
    c, s = math.cos(angle), math.sin(angle)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def _pose(R, t):
    T = np.eye(4)
    T[:3, :3] = R
    T[:3, 3] = t
    return T


def test_identity_quaternion():
    q = rotation_to_quaternion(np.eye(3))
    assert np.allclose(q, [0.0, 0.0, 0.0, 1.0])


def test_half_turn_about_x():
    q = rotation_to_quaternion(np.diag([1.0, -1.0, -1.0]))
    assert abs(abs(q[0]) - 1.0) < 1e-12
    assert np.allclose(q[1:], 0.0)


@pytest.mark.parametrize("angle", [0.3, 1.2, 2.9, -2.5])
def test_quaternion_is_unit_and_axis_along_z(angle):
    q = rotation_to_quaternion(_rot_z(angle))
    assert np.isclose(np.linalg.norm(q), 1.0)
    assert np.allclose(q[:2], 0.0)
    recovered = 2.0 * math.atan2(q[2], q[3])
    assert np.isclose(math.remainder(recovered - angle, 2 * math.pi), 0.0)


def test_quaternion_rejects_bad_shape():
    with pytest.raises(ValueError):
        rotation_to_quaternion(np.eye(4))


def test_camera_center_identity_rotation():
    c = camera_center(_pose(np.eye(3), [1.0, 2.0, 3.0]))
    assert np.allclose(c, [-1.0, -2.0, -3.0])


def test_camera_center_maps_to_origin():
    R = _rot_z(0.7)
    t = np.array([0.5, -1.0, 2.0])
    c = camera_center(_pose(R, t))
    assert np.allclose(R @ c + t, 0.0)


def test_tum_line_fields():
    R = _rot_z(0.4)
    t = np.array([1.0, 2.0, -0.5])
    line = format_tum_line(12.25, _pose(R, t))
    parts = line.split()
    assert len(parts) == 8
    assert parts[0] == "12.250000"
    assert len(parts[1].split(".")[1]) == 9
    values = np.array([float(p) for p in parts[1:]])
    assert np.allclose(values[:3], camera_center(_pose(R, t)), atol=1e-8)
    assert np.allclose(values[3:], rotation_to_quaternion(R.T), atol=1e-8)


def test_tum_line_precision():
    line = format_tum_line(1.0, np.eye(4), precision=7)
    assert all(len(p.split(".")[1]) == 7 for p in line.split()[1:])


def test_kitti_line_reconstructs_inverse():
    R = _rot_z(-1.1)
    t = np.array([3.0, 0.0, 1.0])
    T = _pose(R, t)
    values = np.array([float(p) for p in format_kitti_line(T).split()])
    assert values.shape == (12,)
    Twc = np.vstack([values.reshape(3, 4), [0.0, 0.0, 0.0, 1.0]])
    assert np.allclose(Twc @ T, np.eye(4), atol=1e-8)


def test_bad_pose_shape():
    with pytest.raises(ValueError):
        format_kitti_line(np.eye(3))


def test_save_tum_skips_lost(tmp_path):
    records = [
        FrameRecord(0.0, np.eye(4)),
        FrameRecord(0.1, np.eye(4), lost=True),
        FrameRecord(0.2, _pose(_rot_z(0.2), [0.0, 1.0, 0.0])),
    ]
    path = tmp_path / "traj.txt"
    assert save_trajectory_tum(path, records) == 2
    lines = path.read_text().splitlines()
    assert [float(line.split()[0]) for line in lines] == [0.0, 0.2]


def test_save_kitti_keeps_all(tmp_path):
    records = [FrameRecord(float(i), np.eye(4), lost=(i == 1)) for i in range(3)]
    path = tmp_path / "kitti.txt"
    assert save_trajectory_kitti(path, records) == 3
    lines = path.read_text().splitlines()
    assert len(lines) == 3
    assert lines[0] == format_kitti_line(np.eye(4))