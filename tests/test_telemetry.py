from bodyosc.core.constants import Constants
from bodyosc.core.telemetry import (
    TelemetryPublisher,
    TelemetrySnapshot,
    build_snapshot,
    format_floats,
    format_uptime,
)


def test_format_uptime():
    assert format_uptime(0) == "0:00:00"
    assert format_uptime(3725.9) == "1:02:05"
    assert format_uptime(90000) == "25:00:00"
    assert format_uptime(-3) == "0:00:00"


def test_format_floats_nested():
    data = {"a": 1.23456, "b": [2.71828, "x"], "c": {"d": 3}}
    assert format_floats(data) == {"a": 1.235, "b": [2.718, "x"], "c": {"d": 3}}


def test_build_snapshot_texts():
    snapshot = build_snapshot(
        frames_per_second=29.969,
        uptime_s=65.0,
        status_text="OSC body -> 127.0.0.1:12345 ok",
        active_subject=3,
        frame_count=100,
    )
    assert snapshot.frames_text == "29.97 fps"
    assert snapshot.uptime_text == "Uptime: 0:01:05"
    assert snapshot.active_subject == 3
    assert snapshot.to_dict()["frame_count"] == 100


def test_initial_snapshot_reports_initializing():
    publisher = TelemetryPublisher(log_enabled=False)
    assert publisher.last.uptime_text == Constants.INITIALIZING_STATUS_TEXT
    assert publisher.last.frames_per_second == 0.0


def test_subscribers_and_unsubscribe():
    publisher = TelemetryPublisher(log_enabled=False)
    received = []

    def broken(_):
        raise RuntimeError("subscriber failed")

    publisher.subscribe(broken)
    unsubscribe = publisher.subscribe(received.append)

    first = build_snapshot(30.0, 1.0, "ok", 1, 30)
    publisher.publish(first)
    assert received == [first]
    assert publisher.last is first

    unsubscribe()
    publisher.publish(build_snapshot(30.0, 2.0, "ok", 1, 60))
    assert received == [first]
    assert publisher.publish_count == 2


def test_set_status_replaces_uptime_text_only():
    publisher = TelemetryPublisher(log_enabled=False)
    publisher.publish(build_snapshot(30.0, 10.0, "OSC body -> 127.0.0.1:12345 ok", 4, 300))

    publisher.set_status(Constants.NO_SENSOR_FOUND_TEXT)
    last = publisher.last
    assert last.uptime_text == Constants.NO_SENSOR_FOUND_TEXT
    assert last.frames_text == "30.00 fps"
    assert last.status_text == "OSC body -> 127.0.0.1:12345 ok"
    assert last.active_subject == 4


def test_periodic_logging_does_not_interfere():
    publisher = TelemetryPublisher(log_enabled=True, log_interval=2)
    for i in range(5):
        publisher.publish(build_snapshot(30.0, float(i), "ok", None, i))
    assert publisher.publish_count == 5

    publisher.reset()
    assert publisher.publish_count == 0
    assert isinstance(publisher.last, TelemetrySnapshot)
