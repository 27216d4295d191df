"""Per-frame log of poses relative to their reference keyframes."""

from __future__ import annotations

from typing import Any, NamedTuple

import numpy as np


class _Entry(NamedTuple):
    relative_pose: np.ndarray
    reference: Any
    timestamp: float
    lost: bool


class FrameLog:
    """Stores each frame's pose relative to its reference keyframe.

    Keeping relative poses lets the full trajectory be recovered after the
    keyframes have been optimized.
    """

    def __init__(self):
        self._entries = []

    def __len__(self):
        return len(self._entries)

    def record(self, Tcw, reference_pose_inverse, reference, timestamp, lost=False):
        """Log a frame with a known pose; returns the stored relative pose."""
        Tcw = np.asarray(Tcw, dtype=float)
        Twr = np.asarray(reference_pose_inverse, dtype=float)
        if Tcw.shape != (4, 4) or Twr.shape != (4, 4):
            raise ValueError("poses must be 4x4 matrices")
        Tcr = Tcw @ Twr
        self._entries.append(_Entry(Tcr, reference, float(timestamp), bool(lost)))
        return Tcr

    def record_lost(self, lost=True):
        """Log a frame without a pose by repeating the previous entry."""
        if not self._entries:
            raise IndexError("no previous frame to repeat")
        last = self._entries[-1]
        self._entries.append(_Entry(last.relative_pose, last.reference,
                                    last.timestamp, bool(lost)))

    def reset(self):
        self._entries.clear()

    def records(self):
        """All entries as ``(relative_pose, reference, timestamp, lost)`` tuples."""
        return list(self._entries)