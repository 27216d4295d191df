import math

import numpy as np
import pytest

from slamkit.motion_model import compute_velocity, predict_pose, scale_baseline


def _pose(angle, t):
    c, s = math.cos(angle), math.sin(angle)
    T = np.eye(4)
    T[:3, :3] = [[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]]
    T[:3, 3] = t
    return T


def test_velocity_of_still_camera_is_identity():
    T = _pose(0.3, [1.0, -2.0, 0.5])
    assert np.allclose(compute_velocity(T, T), np.eye(4))


def test_velocity_without_last_pose_is_none():
    assert compute_velocity(np.eye(4), None) is None


def test_prediction_reproduces_current_pose():
    last = _pose(0.2, [0.1, 0.2, 0.3])
    current = _pose(0.5, [1.0, 0.0, -1.0])
    velocity = compute_velocity(current, last)
    assert np.allclose(predict_pose(velocity, last), current)


def test_constant_velocity_extrapolates():
    step = _pose(0.1, [0.5, 0.0, 0.0])
    p0 = np.eye(4)
    p1 = step @ p0
    p2 = step @ p1
    velocity = compute_velocity(p1, p0)
    assert np.allclose(predict_pose(velocity, p1), p2)


def test_scale_baseline_scales_translation_only():
    T = _pose(0.4, [2.0, 4.0, 6.0])
    scaled = scale_baseline(T, 2.0)
    assert np.allclose(scaled[:3, 3], [1.0, 2.0, 3.0])
    assert np.allclose(scaled[:3, :3], T[:3, :3])
    assert np.allclose(scaled[3], [0.0, 0.0, 0.0, 1.0])


def test_scale_baseline_does_not_modify_input():
    T = _pose(0.0, [2.0, 2.0, 2.0])
    scale_baseline(T, 4.0)
    assert np.allclose(T[:3, 3], [2.0, 2.0, 2.0])


@pytest.mark.parametrize("depth", [0.0, -1.0])
def test_scale_baseline_rejects_non_positive_depth(depth):
    with pytest.raises(ValueError):
        scale_baseline(np.eye(4), depth)


def test_bad_shape_rejected():
    with pytest.raises(ValueError):
        predict_pose(np.eye(3), np.eye(4))