"""Tracking states and the choice of pose-estimation strategy per frame."""

from __future__ import annotations

from enum import Enum, IntEnum


class TrackingState(IntEnum):
    """State of the tracker."""

    SYSTEM_NOT_READY = -1
    NO_IMAGES_YET = 0
    NOT_INITIALIZED = 1
    OK = 2
    LOST = 3


class TrackingMethod(Enum):
    """Ways to obtain an initial camera pose for a frame."""

    INITIALIZATION = "initialization"
    REFERENCE_KEYFRAME = "reference_keyframe"
    MOTION_MODEL = "motion_model"
    RELOCALIZATION = "relocalization"


def select_tracking_methods(state, only_tracking, visual_odometry, has_velocity,
                            frame_id, last_reloc_frame_id):
    """Return the methods to run for a frame, in order.

    Usually the later entries are fallbacks tried when the earlier one fails.
    In localization mode with visual odometry both the motion model and
    relocalization are run, and a successful relocalization is preferred.
    """
    state = TrackingState(state)
    if state is TrackingState.SYSTEM_NOT_READY:
        raise ValueError("the system is not ready")
    if state in (TrackingState.NO_IMAGES_YET, TrackingState.NOT_INITIALIZED):
        return (TrackingMethod.INITIALIZATION,)

    if not only_tracking:
        if state is not TrackingState.OK:
            return (TrackingMethod.RELOCALIZATION,)
        if not has_velocity or frame_id < last_reloc_frame_id + 2:
            return (TrackingMethod.REFERENCE_KEYFRAME,)
        return (TrackingMethod.MOTION_MODEL, TrackingMethod.REFERENCE_KEYFRAME)

    if state is TrackingState.LOST:
        return (TrackingMethod.RELOCALIZATION,)
    if not visual_odometry:
        if has_velocity:
            return (TrackingMethod.MOTION_MODEL,)
        return (TrackingMethod.REFERENCE_KEYFRAME,)
    if has_velocity:
        return (TrackingMethod.MOTION_MODEL, TrackingMethod.RELOCALIZATION)
    return (TrackingMethod.RELOCALIZATION,)


def next_state(tracking_ok):
    """State after tracking an initialized frame."""
    return TrackingState.OK if tracking_ok else TrackingState.LOST