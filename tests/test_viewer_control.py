import threading

import pytest

from slamkit.viewer_control import ViewerControl, ViewerSettings


def test_settings_defaults_when_missing():
    settings = ViewerSettings.from_mapping({})
    assert settings.frame_period_ms == pytest.approx(1e3 / 30)
    assert settings.image_width == 640
    assert settings.image_height == 480
    assert settings.viewpoint_f == 0.0


def test_settings_read_values():
    settings = ViewerSettings.from_mapping({
        "Camera.fps": 20.0,
        "Camera.width": 1241,
        "Camera.height": 376,
        "Viewer.ViewpointX": 0.0,
        "Viewer.ViewpointY": -0.7,
        "Viewer.ViewpointZ": -1.8,
        "Viewer.ViewpointF": 500.0,
    })
    assert settings.frame_period_ms == pytest.approx(1e3 / 20.0)
    assert settings.image_width == 1241
    assert settings.image_height == 376
    assert settings.viewpoint_y == -0.7
    assert settings.viewpoint_z == -1.8
    assert settings.viewpoint_f == 500.0


def test_settings_invalid_size_falls_back_to_default_pair():
    settings = ViewerSettings.from_mapping({"Camera.width": 800, "Camera.height": 0})
    assert (settings.image_width, settings.image_height) == (640, 480)


def test_initial_state():
    control = ViewerControl()
    assert control.is_finished() is True
    assert control.check_finish() is False
    assert control.is_stopped() is False
    assert control.stop() is False


def test_stop_after_request_then_release():
    control = ViewerControl()
    control.request_stop()
    assert control.stop() is True
    assert control.is_stopped() is True
    assert control.stop() is False
    control.release()
    assert control.is_stopped() is False


def test_request_stop_ignored_while_stopped():
    control = ViewerControl()
    control.request_stop()
    assert control.stop() is True
    control.request_stop()
    control.release()
    assert control.stop() is False


def test_finish_request_blocks_stop():
    control = ViewerControl()
    control.request_stop()
    control.request_finish()
    assert control.check_finish() is True
    assert control.stop() is False
    assert control.is_stopped() is False


def test_set_finish_marks_finished():
    control = ViewerControl()
    control.set_finish()
    assert control.is_finished() is True


def test_stop_request_from_other_thread():
    control = ViewerControl()
    worker = threading.Thread(target=control.request_stop)
    worker.start()
    worker.join()
    assert control.stop() is True
    assert control.is_stopped() is True