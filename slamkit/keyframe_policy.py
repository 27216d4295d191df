"""Deciding when to insert a keyframe and which close points to turn into map points."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from .settings import Sensor

# Points tracked/untracked below the depth threshold that trigger a keyframe.
_MAX_TRACKED_CLOSE = 100
_MIN_NON_TRACKED_CLOSE = 70
# Number of closest points always created, even beyond the depth threshold.
_MIN_CLOSE_POINTS = 100
_MIN_INLIERS = 15
_WEAK_TRACKING_RATIO = 0.25
_MAX_QUEUED_KEYFRAMES = 3


@dataclass
class KeyFrameContext:
    """Everything the keyframe decision looks at for the current frame.

    ``ref_matches`` is the number of map points of the reference keyframe seen
    by at least ``min_observations`` keyframes (3, or 2 when the map holds two
    keyframes or fewer). ``depths`` and ``tracked`` are per keypoint: the
    measured depth (non-positive when unknown) and whether the keypoint is
    matched to a map point that is not an outlier. ``interrupt_ba`` is called
    when a keyframe is wanted but local mapping is busy.
    """

    frame_id: int
    last_keyframe_id: int
    last_reloc_frame_id: int
    n_keyframes: int
    ref_matches: int
    matches_inliers: int
    sensor: Sensor = Sensor.MONOCULAR
    min_frames: int = 0
    max_frames: int = 30
    only_tracking: bool = False
    local_mapping_stopped: bool = False
    local_mapping_stop_requested: bool = False
    local_mapping_idle: bool = True
    keyframes_in_queue: int = 0
    th_depth: float = 0.0
    depths: Sequence[float] = ()
    tracked: Sequence[bool] = ()
    interrupt_ba: Callable[[], None] | None = field(default=None, repr=False)

    @property
    def min_observations(self):
        """Minimum observations for a reference map point to count as tracked."""
        return 2 if self.n_keyframes <= 2 else 3


def _close_point_counts(ctx):
    if len(ctx.depths) != len(ctx.tracked):
        raise ValueError("depths and tracked must have the same length")
    tracked_close = 0
    non_tracked_close = 0
    for depth, tracked in zip(ctx.depths, ctx.tracked):
        if 0 < depth < ctx.th_depth:
            if tracked:
                tracked_close += 1
            else:
                non_tracked_close += 1
    return tracked_close, non_tracked_close


def need_new_keyframe(ctx):
    """Return True if the current frame should become a keyframe."""
    if ctx.only_tracking:
        return False
    if ctx.local_mapping_stopped or ctx.local_mapping_stop_requested:
        return False

    n_kfs = ctx.n_keyframes
    if ctx.frame_id < ctx.last_reloc_frame_id + ctx.max_frames and n_kfs > ctx.max_frames:
        return False

    sensor = Sensor(ctx.sensor)
    monocular = sensor is Sensor.MONOCULAR

    need_close = False
    if not monocular:
        tracked_close, non_tracked_close = _close_point_counts(ctx)
        need_close = (tracked_close < _MAX_TRACKED_CLOSE
                      and non_tracked_close > _MIN_NON_TRACKED_CLOSE)

    ref_ratio = 0.75
    if n_kfs < 2:
        ref_ratio = 0.4
    if monocular:
        ref_ratio = 0.9

    inliers = ctx.matches_inliers
    c1a = ctx.frame_id >= ctx.last_keyframe_id + ctx.max_frames
    c1b = ctx.frame_id >= ctx.last_keyframe_id + ctx.min_frames and ctx.local_mapping_idle
    c1c = not monocular and (inliers < ctx.ref_matches * _WEAK_TRACKING_RATIO or need_close)
    c2 = (inliers < ctx.ref_matches * ref_ratio or need_close) and inliers > _MIN_INLIERS

    if not ((c1a or c1b or c1c) and c2):
        return False
    if ctx.local_mapping_idle:
        return True

    if ctx.interrupt_ba is not None:
        ctx.interrupt_ba()
    if monocular:
        return False
    return ctx.keyframes_in_queue < _MAX_QUEUED_KEYFRAMES


def select_close_points(depths, th_depth, existing=None):
    """Indices of keypoints that should get a new map point, closest first.

    Keypoints with a positive depth are visited by increasing depth. Each one
    without an existing map point is selected. The walk stops at the first
    point beyond ``th_depth`` once more than 100 points have been visited.
    """
    depths = list(depths)
    if existing is None:
        existing = [False] * len(depths)
    else:
        existing = list(existing)
        if len(existing) != len(depths):
            raise ValueError("depths and existing must have the same length")

    ordered = sorted((depth, index) for index, depth in enumerate(depths) if depth > 0)
    selected = []
    for n_points, (depth, index) in enumerate(ordered, start=1):
        if not existing[index]:
            selected.append(index)
        if depth > th_depth and n_points > _MIN_CLOSE_POINTS:
            break
    return selected