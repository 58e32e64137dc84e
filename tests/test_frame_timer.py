import math

import pytest

from bodyosc.monitoring import FrameTimer


def test_zero_before_any_frame():
    timer = FrameTimer()
    assert timer.frames_per_second() == 0.0
    assert timer.uptime() == 0.0
    assert timer.frame_count == 0


def test_single_frame_has_no_rate():
    timer = FrameTimer()
    timer.record_frame(5.0)
    assert timer.frames_per_second() == 0.0
    assert timer.uptime() == 0.0
    assert timer.frame_count == 1


def test_steady_rate_over_window():
    timer = FrameTimer(window_seconds=1.0)
    for i in range(11):
        timer.record_frame(i / 10)
    assert timer.frames_per_second() == pytest.approx(10.0)
    assert timer.uptime() == pytest.approx(1.0)


def test_only_recent_window_counts():
    timer = FrameTimer(window_seconds=1.0)
    # 30 fps burst, then 1 fps
    for i in range(30):
        timer.record_frame(i / 30)
    for t in range(2, 10):
        timer.record_frame(float(t))
    assert timer.frames_per_second() == pytest.approx(1.0)
    assert timer.uptime() == pytest.approx(9.0)


def test_identical_timestamps_do_not_divide_by_zero():
    timer = FrameTimer()
    for _ in range(50):
        timer.record_frame(3.0)
    fps = timer.frames_per_second()
    assert fps == 0.0
    assert math.isfinite(fps)
    assert timer.uptime() == 0.0


def test_backwards_timestamp_is_clamped():
    timer = FrameTimer()
    timer.record_frame(10.0)
    timer.record_frame(9.0)
    assert timer.uptime() == 0.0
    assert timer.frames_per_second() >= 0.0


def test_default_clock_is_non_negative():
    timer = FrameTimer()
    for _ in range(5):
        timer.record_frame()
    fps = timer.frames_per_second()
    assert fps >= 0.0 and math.isfinite(fps)
    assert timer.uptime() >= 0.0


def test_reset_and_stats():
    timer = FrameTimer()
    timer.record_frame(0.0)
    timer.record_frame(0.5)
    stats = timer.get_stats()
    assert stats['frame_count'] == 2
    assert stats['uptime_s'] == pytest.approx(0.5)

    timer.reset()
    assert timer.frame_count == 0
    assert timer.frames_per_second() == 0.0
    assert timer.uptime() == 0.0


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


def test_uptime_keeps_running_between_frames():
    clock = FakeClock()
    timer = FrameTimer(clock=clock)
    timer.record_frame()
    clock.now = 101.0
    timer.record_frame()

    # Frames stop arriving; uptime still advances
    clock.now = 165.0
    assert timer.uptime() == pytest.approx(65.0)
    assert timer.get_stats()['uptime_s'] == pytest.approx(65.0)
    assert timer.frames_per_second() == pytest.approx(1.0)

    timer.reset()
    assert timer.uptime() == 0.0


def test_injected_timestamps_use_frame_clock():
    clock = FakeClock(now=1000.0)
    timer = FrameTimer(clock=clock)
    timer.record_frame(0.0)
    timer.record_frame(2.0)
    assert timer.uptime() == pytest.approx(2.0)
