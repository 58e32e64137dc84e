"""
Telemetry module
================

Builds, formats and publishes the status snapshot (frame rate, uptime,
last transmission status) once per body frame.
"""
import json
import threading
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, List, Optional

from .constants import Constants
from .logger import logger


def format_floats(obj: Any) -> Any:
    """
    Recursively round floats to 3 decimals

    Args:
        obj: dict, list, float or anything else

    Returns:
        the formatted object
    """
    if isinstance(obj, dict):
        return {k: format_floats(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [format_floats(item) for item in obj]
    elif isinstance(obj, float):
        return round(obj, 3)
    else:
        return obj


def format_uptime(seconds: float) -> str:
    """Seconds -> H:MM:SS (days are folded into hours)"""
    total = int(max(0.0, seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours}:{minutes:02d}:{secs:02d}"


@dataclass(frozen=True)
class TelemetrySnapshot:
    """Status visible to the UI shell / loggers; replaced wholesale every tick"""
    frames_per_second: float = 0.0
    uptime_s: float = 0.0
    frames_text: str = ""
    uptime_text: str = Constants.INITIALIZING_STATUS_TEXT
    status_text: str = ""
    active_subject: Optional[int] = None
    frame_count: int = 0
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        return asdict(self)


def build_snapshot(
    frames_per_second: float,
    uptime_s: float,
    status_text: str,
    active_subject: Optional[int],
    frame_count: int,
) -> TelemetrySnapshot:
    return TelemetrySnapshot(
        frames_per_second=frames_per_second,
        uptime_s=uptime_s,
        frames_text=Constants.FRAMES_TEXT_FORMAT.format(frames_per_second),
        uptime_text=Constants.UPTIME_TEXT_FORMAT.format(format_uptime(uptime_s)),
        status_text=status_text,
        active_subject=active_subject,
        frame_count=frame_count,
    )


class TelemetryPublisher:
    """
    Telemetry publisher

    Responsibilities:
    - Keep the last snapshot (always readable by the UI shell)
    - Notify subscribers on every publish
    - Log the snapshot as JSON every `log_interval` frames

    Usage:
        publisher = TelemetryPublisher(log_enabled=True, log_interval=150)
        unsubscribe = publisher.subscribe(lambda s: print(s.frames_text))
        publisher.publish(snapshot)
        unsubscribe()
    """

    def __init__(self, log_enabled: bool = True, log_interval: int = 150):
        """
        Args:
            log_enabled: log snapshots periodically
            log_interval: log every N published snapshots
        """
        self.log_enabled = log_enabled
        self.log_interval = max(1, int(log_interval))
        self._last: TelemetrySnapshot = TelemetrySnapshot()
        self._lock = threading.Lock()
        self._subs: List[Callable[[TelemetrySnapshot], None]] = []
        self.publish_count = 0

    @property
    def last(self) -> TelemetrySnapshot:
        return self._last

    def publish(self, snapshot: TelemetrySnapshot) -> None:
        self._last = snapshot
        self.publish_count += 1

        with self._lock:
            subs = list(self._subs)

        for fn in subs:
            try:
                fn(snapshot)
            except Exception as e:
                logger.error(f"Telemetry subscriber failed: {e}", exc_info=True)

        self._log_if_enabled(snapshot)

    def set_status(self, status_text: str) -> None:
        """
        Show a lifecycle message (initializing, sensor missing) in the uptime
        slot; the other fields keep their last values
        """
        last = self._last
        self.publish(TelemetrySnapshot(
            frames_per_second=last.frames_per_second,
            uptime_s=last.uptime_s,
            frames_text=last.frames_text,
            uptime_text=status_text,
            status_text=last.status_text,
            active_subject=last.active_subject,
            frame_count=last.frame_count,
        ))

    def subscribe(self, fn: Callable[[TelemetrySnapshot], None]) -> Callable[[], None]:
        """
        Subscribe to snapshots

        Returns:
            unsubscribe function
        """
        with self._lock:
            self._subs.append(fn)

        def unsubscribe():
            with self._lock:
                try:
                    self._subs.remove(fn)
                except ValueError:
                    pass

        return unsubscribe

    def _log_if_enabled(self, snapshot: TelemetrySnapshot):
        if not self.log_enabled:
            return
        if self.publish_count % self.log_interval != 0:
            return
        logger.info(f"[Telemetry] {json.dumps(format_floats(snapshot.to_dict()), ensure_ascii=False)}")

    def reset(self):
        self._last = TelemetrySnapshot()
        self.publish_count = 0
