"""Rules used while tracking the local map."""

from __future__ import annotations

from collections import Counter

from .settings import Sensor

_MIN_INLIERS_AFTER_RELOC = 50
_MIN_INLIERS = 30


def local_map_tracked(frame_id, last_reloc_frame_id, max_frames, matches_inliers):
    """Whether local map tracking succeeded; stricter just after relocalization."""
    if frame_id < last_reloc_frame_id + max_frames and matches_inliers < _MIN_INLIERS_AFTER_RELOC:
        return False
    return matches_inliers >= _MIN_INLIERS


def count_keyframe_votes(observations):
    """Count, per keyframe, how many of the frame's map points it observes.

    ``observations`` yields, for each valid map point, the keyframes that
    observe it.
    """
    votes = Counter()
    for keyframes in observations:
        votes.update(keyframes)
    return votes


def search_threshold(sensor, frame_id, last_reloc_frame_id):
    """Search window radius for projecting local map points into the frame."""
    threshold = 3 if Sensor(sensor) is Sensor.RGBD else 1
    if frame_id < last_reloc_frame_id + 2:
        threshold = 5
    return threshold