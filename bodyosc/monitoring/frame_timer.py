"""
Frame timer
===========

Frame-rate and uptime bookkeeping for the body-frame channel.
"""
import math
import time
from collections import deque
from typing import Callable, Deque, Optional

from ..core.logger import logger


class FrameTimer:
    """
    Frame timer

    Responsibilities:
    - Count frames (record_frame once per body frame)
    - Windowed FPS: frames seen in the last `window_seconds`, divided by the
      time span those frames cover
    - Uptime since the first recorded frame (keeps running between frames;
      with injected timestamps it is measured on that frame clock instead)

    Usage:
        timer = FrameTimer(window_seconds=1.0)

        for frame in frames:
            timer.record_frame()
            print(f"FPS: {timer.frames_per_second():.2f}, up {timer.uptime():.0f}s")
    """

    def __init__(
        self,
        window_seconds: float = 1.0,
        history_size: int = 240,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            window_seconds: FPS averaging window (seconds)
            history_size: maximum number of timestamps kept
            clock: time source for frames recorded without a timestamp
        """
        self._clock = clock
        self._injected_timestamps = False
        self.window_seconds = window_seconds if window_seconds > 0 else 1.0
        self._timestamps: Deque[float] = deque(maxlen=max(2, history_size))
        self.first_frame_time: Optional[float] = None
        self.last_frame_time: Optional[float] = None
        self.frame_count: int = 0

    def record_frame(self, timestamp: Optional[float] = None):
        """
        Record one frame

        Args:
            timestamp: frame time (seconds), defaults to the clock
        """
        if timestamp is not None:
            self._injected_timestamps = True
        current_time = timestamp if timestamp is not None else self._clock()

        # Timestamps never go backwards
        if self.last_frame_time is not None and current_time < self.last_frame_time:
            current_time = self.last_frame_time

        if self.first_frame_time is None:
            self.first_frame_time = current_time

        self._timestamps.append(current_time)
        self.last_frame_time = current_time
        self.frame_count += 1

    def frames_per_second(self) -> float:
        """
        Windowed frames-per-second estimate

        Returns:
            FPS >= 0; 0.0 until two distinct timestamps exist in the window
        """
        if self.last_frame_time is None or len(self._timestamps) < 2:
            return 0.0

        window_start = self.last_frame_time - self.window_seconds
        in_window = [t for t in self._timestamps if t >= window_start]
        if len(in_window) < 2:
            return 0.0

        span = in_window[-1] - in_window[0]
        if span <= 0:
            return 0.0

        fps = (len(in_window) - 1) / span
        return fps if math.isfinite(fps) else 0.0

    def uptime(self) -> float:
        """Seconds since the first recorded frame (0.0 before any frame)"""
        if self.first_frame_time is None or self.last_frame_time is None:
            return 0.0
        if self._injected_timestamps:
            now = self.last_frame_time
        else:
            now = max(self.last_frame_time, self._clock())
        return max(0.0, now - self.first_frame_time)

    def reset(self):
        """Reset all statistics"""
        self._timestamps.clear()
        self.first_frame_time = None
        self.last_frame_time = None
        self.frame_count = 0
        self._injected_timestamps = False
        logger.info("FrameTimer: reset")

    def get_stats(self) -> dict:
        return {
            'fps': self.frames_per_second(),
            'uptime_s': self.uptime(),
            'frame_count': self.frame_count,
        }

    def __repr__(self) -> str:
        return f"FrameTimer(fps={self.frames_per_second():.2f}, uptime={self.uptime():.1f}s, frames={self.frame_count})"
