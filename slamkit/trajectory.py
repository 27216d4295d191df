"""Writing camera trajectories in the TUM and KITTI text formats."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

_TIMESTAMP_PRECISION = 6
_KITTI_PRECISION = 9


@dataclass(frozen=True, eq=False)
class FrameRecord:
    """One tracked frame: its timestamp, world-to-camera pose and lost flag."""

    timestamp: float
    pose: np.ndarray
    lost: bool = False


def _as_pose(Tcw):
    T = np.asarray(Tcw, dtype=float)
    if T.shape not in ((4, 4), (3, 4)):
        raise ValueError("pose must be a 4x4 or 3x4 matrix")
    return T


def rotation_to_quaternion(R):
    """Convert a 3x3 rotation matrix to a unit quaternion ``(x, y, z, w)``."""
    R = np.asarray(R, dtype=float)
    if R.shape != (3, 3):
        raise ValueError("rotation must be a 3x3 matrix")
    trace = R[0, 0] + R[1, 1] + R[2, 2]
    if trace > 0.0:
        s = 2.0 * math.sqrt(trace + 1.0)
        w = 0.25 * s
        x = (R[2, 1] - R[1, 2]) / s
        y = (R[0, 2] - R[2, 0]) / s
        z = (R[1, 0] - R[0, 1]) / s
    elif R[0, 0] > R[1, 1] and R[0, 0] > R[2, 2]:
        s = 2.0 * math.sqrt(1.0 + R[0, 0] - R[1, 1] - R[2, 2])
        w = (R[2, 1] - R[1, 2]) / s
        x = 0.25 * s
        y = (R[0, 1] + R[1, 0]) / s
        z = (R[0, 2] + R[2, 0]) / s
    elif R[1, 1] > R[2, 2]:
        s = 2.0 * math.sqrt(1.0 + R[1, 1] - R[0, 0] - R[2, 2])
        w = (R[0, 2] - R[2, 0]) / s
        x = (R[0, 1] + R[1, 0]) / s
        y = 0.25 * s
        z = (R[1, 2] + R[2, 1]) / s
    else:
        s = 2.0 * math.sqrt(1.0 + R[2, 2] - R[0, 0] - R[1, 1])
        w = (R[1, 0] - R[0, 1]) / s
        x = (R[0, 2] + R[2, 0]) / s
        y = (R[1, 2] + R[2, 1]) / s
        z = 0.25 * s
    return np.array([x, y, z, w])


def _inverse_parts(Tcw):
    T = _as_pose(Tcw)
    Rwc = T[:3, :3].T
    twc = -Rwc @ T[:3, 3]
    return Rwc, twc


def camera_center(Tcw):
    """Position of the camera in world coordinates."""
    return _inverse_parts(Tcw)[1]


def _fmt(value, precision):
    return f"{value:.{precision}f}"


def format_tum_line(timestamp, Tcw, precision=9):
    """``timestamp tx ty tz qx qy qz qw`` for the camera-to-world pose."""
    Rwc, twc = _inverse_parts(Tcw)
    q = rotation_to_quaternion(Rwc)
    fields = [_fmt(timestamp, _TIMESTAMP_PRECISION)]
    fields.extend(_fmt(v, precision) for v in (*twc, *q))
    return " ".join(fields)


def format_kitti_line(Tcw):
    """The top three rows of the camera-to-world matrix, row by row."""
    Rwc, twc = _inverse_parts(Tcw)
    values = []
    for row in range(3):
        values.extend(Rwc[row])
        values.append(twc[row])
    return " ".join(_fmt(v, _KITTI_PRECISION) for v in values)


def save_trajectory_tum(path, records):
    """Write the frames that were not lost in TUM format; return the line count."""
    written = 0
    with open(path, "w", encoding="utf-8") as out:
        for record in records:
            if record.lost:
                continue
            out.write(format_tum_line(record.timestamp, record.pose) + "\n")
            written += 1
    return written


def save_trajectory_kitti(path, records):
    """Write every frame in KITTI format; return the line count."""
    written = 0
    with open(path, "w", encoding="utf-8") as out:
        for record in records:
            out.write(format_kitti_line(record.pose) + "\n")
            written += 1
    return written