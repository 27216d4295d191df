"""Constant-velocity motion model and initial-map scaling for camera poses."""

from __future__ import annotations

import numpy as np


def _as_pose(T):
    T = np.asarray(T, dtype=float)
    if T.shape != (4, 4):
        raise ValueError("pose must be a 4x4 matrix")
    return T


def _inverse(Tcw):
    Rwc = Tcw[:3, :3].T
    Twc = np.eye(4)
    Twc[:3, :3] = Rwc
    Twc[:3, 3] = -Rwc @ Tcw[:3, 3]
    return Twc


def compute_velocity(current_Tcw, last_Tcw):
    """Relative motion from the last frame to the current one.

    Returns None when the last pose is unknown.
    """
    current = _as_pose(current_Tcw)
    if last_Tcw is None:
        return None
    last = _as_pose(last_Tcw)
    return current @ _inverse(last)


def predict_pose(velocity, last_Tcw):
    """Pose of the next frame assuming it moves like the last one did."""
    return _as_pose(velocity) @ _as_pose(last_Tcw)


def scale_baseline(Tcw, median_depth):
    """Divide the translation of ``Tcw`` by the scene median depth.

    Used after monocular initialization so that the median depth becomes one.
    """
    if median_depth <= 0:
        raise ValueError("median depth must be positive")
    T = _as_pose(Tcw).copy()
    T[:3, 3] *= 1.0 / median_depth
    return T