"""
Body sensor abstract interface
==============================

Defines the contract every body/face tracking sensor must implement:
- frame references delivered on push-based event channels (body, face)
- scoped frames that must be released right after their data is consumed
- an asynchronous "tracking id lost" side channel from the face source
- a face-source target identity that the pipeline keeps in sync

Design principles:
1. The pipeline depends only on this interface (dependency inversion)
2. New sensors are added by subclassing, never by editing the pipeline
"""
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, List, Optional, TypeVar

from ..core.logger import logger
from .types import Body, FaceAlignment

T = TypeVar("T")


class EventChannel(Generic[T]):
    """
    Thread-safe event channel with subscribe/unsubscribe

    Handlers run on the emitting thread; a failing handler is logged and
    does not prevent the others from running.
    """

    def __init__(self, name: str = "channel"):
        self._name = name
        self._lock = threading.Lock()
        self._subs: List[Callable[[T], None]] = []

    def subscribe(self, fn: Callable[[T], None]) -> Callable[[], None]:
        """
        Register a handler

        Returns:
            unsubscribe function (removes the handler when called)
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

    def emit(self, event: T) -> None:
        with self._lock:
            subs = list(self._subs)

        # Handlers run outside the lock
        for fn in subs:
            try:
                fn(event)
            except Exception as e:
                logger.error(f"EventChannel '{self._name}' handler failed: {e}", exc_info=True)

    def __len__(self) -> int:
        with self._lock:
            return len(self._subs)


class SensorFrame(ABC):
    """
    A frame borrowed from the sensor's internal pool

    Must be released as soon as its data has been read; use it as a
    context manager so that every exit path releases it.
    """

    @abstractmethod
    def release(self) -> None:
        """Return the frame to the sensor pool (idempotent)"""

    @property
    def relative_time(self) -> float:
        """Sensor timestamp of the frame (seconds)"""
        return 0.0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False


class BodyFrame(SensorFrame):
    """Body frame: a fixed-size array of candidate bodies"""

    @property
    @abstractmethod
    def body_count(self) -> int:
        """Size of the body array"""

    @abstractmethod
    def refresh_bodies(self, buffer: List[Optional[Body]]) -> None:
        """
        Fill buffer in place with body_count candidate bodies

        Args:
            buffer: caller-owned list; resized to body_count and overwritten
        """


class FaceFrame(SensorFrame):
    """Face frame: one face alignment result for the face source's target"""

    @property
    @abstractmethod
    def tracking_id(self) -> Optional[int]:
        """Identity the face source was targeting when the frame was captured"""

    @abstractmethod
    def refresh_face_alignment(self, alignment: FaceAlignment) -> None:
        """
        Overwrite alignment in place with this frame's measurement

        Args:
            alignment: caller-owned, reused buffer
        """


class FrameReference(ABC):
    """Handle delivered by a frame-arrival event"""

    @abstractmethod
    def acquire_frame(self) -> Optional[Any]:
        """
        Acquire the referenced frame

        Returns:
            the frame, or None when it is no longer available (not an error)
        """

    @property
    def relative_time(self) -> float:
        return 0.0


class BodySensorInterface(ABC):
    """
    Unified body sensor interface

    All sensor drivers must honour this contract.
    """

    @abstractmethod
    def open(self) -> bool:
        """
        Open the sensor and start delivering frames

        Returns:
            bool: True on success
        """

    @abstractmethod
    def close(self) -> None:
        """Stop delivering frames and release the device"""

    @abstractmethod
    def is_available(self) -> bool:
        """True when the device is connected and usable"""

    @property
    @abstractmethod
    def body_count(self) -> int:
        """Number of bodies in every body frame"""

    @abstractmethod
    def subscribe_body_frames(self, handler: Callable[[FrameReference], None]) -> Callable[[], None]:
        """Register a body-frame handler; returns an unsubscribe function"""

    @abstractmethod
    def subscribe_face_frames(self, handler: Callable[[FrameReference], None]) -> Callable[[], None]:
        """Register a face-frame handler; returns an unsubscribe function"""

    @abstractmethod
    def subscribe_tracking_id_lost(self, handler: Callable[[int], None]) -> Callable[[], None]:
        """Register a handler for "face source lost its tracking id" events"""

    @abstractmethod
    def set_face_tracking_id(self, tracking_id: Optional[int]) -> None:
        """Set the face source's target identity (None = no target)"""

    @property
    @abstractmethod
    def face_tracking_id(self) -> Optional[int]:
        """Current face source target identity"""

    # ========== Optional interface ==========

    def get_status(self) -> str:
        """
        Sensor status

        Returns:
            "ok", "stopped" or "unavailable"
        """
        return "ok" if self.is_available() else "unavailable"

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
