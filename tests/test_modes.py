import pytest

from slamkit.modes import (
    TrackingMethod,
    TrackingState,
    next_state,
    select_tracking_methods,
)


def test_next_state():
    assert next_state(True) is TrackingState.OK
    assert next_state(False) is TrackingState.LOST


def test_state_from_int():
    assert TrackingState(-1) is TrackingState.SYSTEM_NOT_READY
    assert next_state(False) == 3


@pytest.mark.parametrize("state", [TrackingState.NO_IMAGES_YET, TrackingState.NOT_INITIALIZED])
def test_uninitialized_runs_initialization(state):
    assert select_tracking_methods(state, False, False, True, 10, 0) == (
        TrackingMethod.INITIALIZATION,
    )


def test_system_not_ready_raises():
    with pytest.raises(ValueError):
        select_tracking_methods(TrackingState.SYSTEM_NOT_READY, False, False, False, 0, 0)


def test_mapping_ok_with_velocity_uses_motion_model_then_reference():
    assert select_tracking_methods(TrackingState.OK, False, False, True, 10, 0) == (
        TrackingMethod.MOTION_MODEL,
        TrackingMethod.REFERENCE_KEYFRAME,
    )


def test_mapping_ok_without_velocity_uses_reference():
    assert select_tracking_methods(TrackingState.OK, False, False, False, 10, 0) == (
        TrackingMethod.REFERENCE_KEYFRAME,
    )


def test_mapping_recent_relocalization_uses_reference():
    assert select_tracking_methods(TrackingState.OK, False, False, True, 6, 5) == (
        TrackingMethod.REFERENCE_KEYFRAME,
    )
    assert select_tracking_methods(TrackingState.OK, False, False, True, 7, 5)[0] is (
        TrackingMethod.MOTION_MODEL
    )


def test_mapping_lost_relocalizes():
    assert select_tracking_methods(TrackingState.LOST, False, False, True, 10, 0) == (
        TrackingMethod.RELOCALIZATION,
    )


def test_localization_lost_relocalizes():
    assert select_tracking_methods(TrackingState.LOST, True, True, True, 10, 0) == (
        TrackingMethod.RELOCALIZATION,
    )


def test_localization_without_vo():
    assert select_tracking_methods(TrackingState.OK, True, False, True, 10, 0) == (
        TrackingMethod.MOTION_MODEL,
    )
    assert select_tracking_methods(TrackingState.OK, True, False, False, 10, 0) == (
        TrackingMethod.REFERENCE_KEYFRAME,
    )


def test_localization_with_vo():
    assert select_tracking_methods(TrackingState.OK, True, True, True, 10, 0) == (
        TrackingMethod.MOTION_MODEL,
        TrackingMethod.RELOCALIZATION,
    )
    assert select_tracking_methods(TrackingState.OK, True, True, False, 10, 0) == (
        TrackingMethod.RELOCALIZATION,
    )