"""
Mock body sensor (for tests and demo runs without hardware)

Features:
- Synthetic subjects walking on fixed paths in front of the sensor
- One worker thread per channel (body, face), each at its own cadence
- Face frames only for the current face target; "tracking id lost" when the
  target leaves the scene
- Manual push API for deterministic tests
- Counts acquired and released frames so leaks can be asserted
"""
import math
import threading
import time
from typing import Callable, Dict, Iterable, List, Optional

import numpy as np

from ..core.logger import logger
from .sensor_interface import (
    BodyFrame,
    BodySensorInterface,
    EventChannel,
    FaceFrame,
    FrameReference,
)
from .types import (
    ANIMATION_UNIT_ORDER,
    Body,
    CameraSpacePoint,
    FaceAlignment,
    FaceShapeAnimation,
    HandState,
    Joint,
    JointType,
    Quaternion,
    TrackingConfidence,
)


# Joint offsets from SpineBase (meters), standing pose facing the sensor
SKELETON_TEMPLATE: Dict[JointType, tuple] = {
    JointType.SPINE_BASE: (0.0, 0.0, 0.0),
    JointType.SPINE_MID: (0.0, 0.30, 0.0),
    JointType.NECK: (0.0, 0.58, -0.02),
    JointType.HEAD: (0.0, 0.72, -0.03),
    JointType.SHOULDER_LEFT: (-0.18, 0.50, 0.0),
    JointType.ELBOW_LEFT: (-0.25, 0.25, 0.02),
    JointType.WRIST_LEFT: (-0.27, 0.02, 0.0),
    JointType.HAND_LEFT: (-0.27, -0.06, 0.0),
    JointType.SHOULDER_RIGHT: (0.18, 0.50, 0.0),
    JointType.ELBOW_RIGHT: (0.25, 0.25, 0.02),
    JointType.WRIST_RIGHT: (0.27, 0.02, 0.0),
    JointType.HAND_RIGHT: (0.27, -0.06, 0.0),
    JointType.HIP_LEFT: (-0.08, -0.05, 0.0),
    JointType.KNEE_LEFT: (-0.09, -0.45, 0.01),
    JointType.ANKLE_LEFT: (-0.09, -0.82, 0.03),
    JointType.FOOT_LEFT: (-0.09, -0.88, -0.08),
    JointType.HIP_RIGHT: (0.08, -0.05, 0.0),
    JointType.KNEE_RIGHT: (0.09, -0.45, 0.01),
    JointType.ANKLE_RIGHT: (0.09, -0.82, 0.03),
    JointType.FOOT_RIGHT: (0.09, -0.88, -0.08),
    JointType.SPINE_SHOULDER: (0.0, 0.52, -0.01),
    JointType.HAND_TIP_LEFT: (-0.27, -0.14, 0.0),
    JointType.THUMB_LEFT: (-0.24, -0.08, -0.03),
    JointType.HAND_TIP_RIGHT: (0.27, -0.14, 0.0),
    JointType.THUMB_RIGHT: (0.24, -0.08, -0.03),
}


def make_body(
    tracking_id: int,
    spine_base: Iterable[float],
    is_tracked: bool = True,
    hand_left_state: HandState = HandState.OPEN,
    hand_right_state: HandState = HandState.OPEN,
) -> Body:
    """Build a full 25-joint body around the given SpineBase position"""
    origin = np.asarray(list(spine_base), dtype=float)
    joints = {}
    for joint_type, offset in SKELETON_TEMPLATE.items():
        x, y, z = (origin + np.asarray(offset, dtype=float)).tolist()
        joints[joint_type] = Joint(joint_type, CameraSpacePoint(x, y, z))
    return Body(
        tracking_id=tracking_id,
        is_tracked=is_tracked,
        joints=joints,
        hand_left_state=hand_left_state,
        hand_left_confidence=TrackingConfidence.HIGH,
        hand_right_state=hand_right_state,
        hand_right_confidence=TrackingConfidence.HIGH,
    )


def empty_body() -> Body:
    """Untracked placeholder slot"""
    return Body(tracking_id=0, is_tracked=False)


class MockBodyFrame(BodyFrame):
    """Body frame holding a fixed list of bodies"""

    def __init__(self, sensor: "MockBodySensor", bodies: List[Body], relative_time: float):
        self._sensor = sensor
        self._bodies = list(bodies)
        self._relative_time = relative_time
        self.released = False

    @property
    def body_count(self) -> int:
        return self._sensor.body_count

    @property
    def relative_time(self) -> float:
        return self._relative_time

    def refresh_bodies(self, buffer: List[Optional[Body]]) -> None:
        if self.released:
            raise RuntimeError("Body frame already released")
        count = self.body_count
        bodies = self._bodies[:count]
        bodies.extend(empty_body() for _ in range(count - len(bodies)))
        buffer[:] = bodies

    def release(self) -> None:
        if not self.released:
            self.released = True
            self._sensor._on_frame_released()


class MockFaceFrame(FaceFrame):
    """Face frame holding one alignment measurement"""

    def __init__(
        self,
        sensor: "MockBodySensor",
        tracking_id: Optional[int],
        head_pivot_point: CameraSpacePoint,
        face_orientation: Quaternion,
        animation_units: Dict[FaceShapeAnimation, float],
        relative_time: float,
    ):
        self._sensor = sensor
        self._tracking_id = tracking_id
        self._head_pivot_point = head_pivot_point
        self._face_orientation = face_orientation
        self._animation_units = dict(animation_units)
        self._relative_time = relative_time
        self.released = False

    @property
    def tracking_id(self) -> Optional[int]:
        return self._tracking_id

    @property
    def relative_time(self) -> float:
        return self._relative_time

    def refresh_face_alignment(self, alignment: FaceAlignment) -> None:
        if self.released:
            raise RuntimeError("Face frame already released")
        alignment.update(self._head_pivot_point, self._face_orientation, self._animation_units)

    def release(self) -> None:
        if not self.released:
            self.released = True
            self._sensor._on_frame_released()


class MockFrameReference(FrameReference):
    """Reference that yields its frame once; None afterwards or when unavailable"""

    def __init__(self, sensor: "MockBodySensor", frame_factory: Callable[[], object], relative_time: float):
        self._sensor = sensor
        self._frame_factory = frame_factory
        self._relative_time = relative_time
        self._acquired = False

    @property
    def relative_time(self) -> float:
        return self._relative_time

    def acquire_frame(self):
        if self._acquired or not self._sensor.is_available():
            return None
        self._acquired = True
        frame = self._frame_factory()
        self._sensor._on_frame_acquired()
        return frame


class MockBodySensor(BodySensorInterface):
    """
    Mock body sensor (for unit tests and hardware-free demo runs)

    Usage (threaded):
        sensor = MockBodySensor(subjects=2)
        sensor.subscribe_body_frames(on_body)
        sensor.open()
        ...
        sensor.close()

    Usage (manual, deterministic):
        sensor = MockBodySensor(threaded=False)
        sensor.open()
        sensor.push_body_frame([make_body(7, (0, 0, 2.0))])
        sensor.push_face_frame(tracking_id=7)
    """

    def __init__(
        self,
        body_count: int = 6,
        body_fps: float = 30.0,
        face_fps: float = 15.0,
        subjects: int = 2,
        available: bool = True,
        threaded: bool = True,
    ):
        self._body_count = body_count
        self.body_fps = max(1.0, body_fps)
        self.face_fps = max(1.0, face_fps)
        self.subjects = max(0, min(subjects, body_count))
        self._available = available
        self.threaded = threaded

        self._body_channel: EventChannel[FrameReference] = EventChannel("body_frames")
        self._face_channel: EventChannel[FrameReference] = EventChannel("face_frames")
        self._lost_channel: EventChannel[int] = EventChannel("tracking_id_lost")

        self._face_tracking_id: Optional[int] = None
        self._opened = False
        self._start_time = time.monotonic()
        self._stop = threading.Event()
        self._threads: List[threading.Thread] = []

        # Last synthetic scene (used by the face worker)
        self._scene: List[Body] = []

        # Frame pool accounting
        self._count_lock = threading.Lock()
        self.frames_acquired = 0
        self.frames_released = 0

    # ------------------------------------------------------------------
    #  BodySensorInterface
    # ------------------------------------------------------------------

    def open(self) -> bool:
        if not self._available:
            logger.warning("MockBodySensor: sensor unavailable, not opening")
            return False
        if self._opened:
            return True

        self._opened = True
        self._start_time = time.monotonic()
        self._stop.clear()

        if self.threaded:
            self._threads = [
                threading.Thread(target=self._body_loop, name="mock-body", daemon=True),
                threading.Thread(target=self._face_loop, name="mock-face", daemon=True),
            ]
            for thread in self._threads:
                thread.start()

        logger.info(
            f"MockBodySensor opened: bodies={self._body_count}, subjects={self.subjects}, "
            f"body_fps={self.body_fps:.0f}, face_fps={self.face_fps:.0f}, threaded={self.threaded}"
        )
        return True

    def close(self) -> None:
        self._stop.set()
        for thread in self._threads:
            thread.join(timeout=2.0)
        self._threads = []
        if self._opened:
            logger.info("MockBodySensor closed")
        self._opened = False

    def is_available(self) -> bool:
        return self._available

    def set_available(self, available: bool) -> None:
        """Simulate the device disappearing/reappearing"""
        self._available = available

    @property
    def body_count(self) -> int:
        return self._body_count

    def subscribe_body_frames(self, handler: Callable[[FrameReference], None]) -> Callable[[], None]:
        return self._body_channel.subscribe(handler)

    def subscribe_face_frames(self, handler: Callable[[FrameReference], None]) -> Callable[[], None]:
        return self._face_channel.subscribe(handler)

    def subscribe_tracking_id_lost(self, handler: Callable[[int], None]) -> Callable[[], None]:
        return self._lost_channel.subscribe(handler)

    def set_face_tracking_id(self, tracking_id: Optional[int]) -> None:
        self._face_tracking_id = tracking_id

    @property
    def face_tracking_id(self) -> Optional[int]:
        return self._face_tracking_id

    def get_status(self) -> str:
        if not self._available:
            return "unavailable"
        return "ok" if self._opened else "stopped"

    # ------------------------------------------------------------------
    #  Manual push API
    # ------------------------------------------------------------------

    def push_body_frame(self, bodies: List[Body]) -> None:
        """Deliver one body frame to every body handler (synchronously)"""
        now = self._now()
        reference = MockFrameReference(self, lambda: MockBodyFrame(self, bodies, now), now)
        self._body_channel.emit(reference)

    def push_face_frame(
        self,
        tracking_id: Optional[int] = None,
        head_pivot_point: CameraSpacePoint = CameraSpacePoint(0.0, 0.5, 2.0),
        face_orientation: Quaternion = Quaternion(0.0, 0.0, 0.0, 1.0),
        animation_units: Optional[Dict[FaceShapeAnimation, float]] = None,
    ) -> None:
        """Deliver one face frame to every face handler (synchronously)"""
        now = self._now()
        target = tracking_id if tracking_id is not None else self._face_tracking_id
        units = animation_units if animation_units is not None else {}
        reference = MockFrameReference(
            self,
            lambda: MockFaceFrame(self, target, head_pivot_point, face_orientation, units, now),
            now,
        )
        self._face_channel.emit(reference)

    def raise_tracking_id_lost(self, tracking_id: int) -> None:
        """Emit a "tracking id lost" event (synchronously)"""
        self._lost_channel.emit(tracking_id)

    @property
    def outstanding_frames(self) -> int:
        """Frames acquired but not yet released"""
        with self._count_lock:
            return self.frames_acquired - self.frames_released

    # ------------------------------------------------------------------
    #  Synthetic scene
    # ------------------------------------------------------------------

    def synthesize_bodies(self, t: float) -> List[Body]:
        """Subjects walking on ellipses at increasing depth"""
        bodies = []
        for i in range(self.subjects):
            phase = t * 0.4 + i * math.pi / 2
            spine_base = (
                0.6 * math.sin(phase) + (i - (self.subjects - 1) / 2) * 0.7,
                -0.3,
                2.0 + i * 0.8 + 0.3 * math.cos(phase),
            )
            bodies.append(make_body(tracking_id=1000 + i, spine_base=spine_base))
        return bodies

    def synthesize_face(self, t: float, body: Body):
        head = body.joint_position(JointType.HEAD) or CameraSpacePoint(0.0, 0.4, 2.0)
        yaw = 0.3 * math.sin(t * 0.7)
        orientation = Quaternion(0.0, math.sin(yaw / 2), 0.0, math.cos(yaw / 2))
        units = {
            unit: 0.5 + 0.5 * math.sin(t * 1.3 + index * 0.4)
            for index, unit in enumerate(ANIMATION_UNIT_ORDER)
        }
        return head, orientation, units

    # ------------------------------------------------------------------
    #  Worker threads (one per channel)
    # ------------------------------------------------------------------

    def _body_loop(self):
        interval = 1.0 / self.body_fps
        while not self._stop.is_set():
            t0 = time.monotonic()
            self._scene = self.synthesize_bodies(self._now())
            self.push_body_frame(self._scene)
            self._sleep_rest(t0, interval)

    def _face_loop(self):
        interval = 1.0 / self.face_fps
        while not self._stop.is_set():
            t0 = time.monotonic()
            target = self._face_tracking_id
            if target is not None:
                body = next((b for b in self._scene if b.tracking_id == target and b.is_tracked), None)
                if body is None:
                    self._face_tracking_id = None
                    self._lost_channel.emit(target)
                else:
                    head, orientation, units = self.synthesize_face(self._now(), body)
                    self.push_face_frame(target, head, orientation, units)
            self._sleep_rest(t0, interval)

    def _sleep_rest(self, t0: float, interval: float):
        elapsed = time.monotonic() - t0
        if elapsed < interval:
            self._stop.wait(interval - elapsed)

    def _now(self) -> float:
        return time.monotonic() - self._start_time

    def _on_frame_acquired(self):
        with self._count_lock:
            self.frames_acquired += 1

    def _on_frame_released(self):
        with self._count_lock:
            self.frames_released += 1
