"""
Pipeline orchestrator
=====================

Wires the sensor's frame events to the tracking/encoding/dispatch chain.
"""
import threading
from typing import Any, Callable, Dict, List, Optional

from .constants import Constants
from .logger import logger
from .telemetry import TelemetryPublisher, TelemetrySnapshot, build_snapshot
from ..encoding import PoseEncoder
from ..monitoring import FrameTimer
from ..network import OscDispatcher
from ..sensor import Body, BodySensorInterface, FaceAlignment, FrameReference
from ..tracking import SubjectTracker, find_body_with_tracking_id


class PipelineOrchestrator:
    """
    Pipeline orchestrator

    Responsibilities:
    - Attach/detach the body, face and "tracking id lost" handlers
    - Body tick: refresh bodies -> timer -> subject tracker -> encode +
      dispatch the active subject -> publish telemetry
    - Face tick: refresh the retained alignment in place -> encode +
      dispatch for the active subject (skipped while unacquired)
    - Keep the sensor's face target equal to the active subject
    - Contain every per-tick exception (log, abandon the tick, carry on)

    Usage:
        orchestrator = PipelineOrchestrator(
            sensor=sensor,
            dispatcher=OscDispatcher(addresses, port),
        )
        orchestrator.start()
        ...
        orchestrator.stop()
    """

    def __init__(
        self,
        sensor: Optional[BodySensorInterface],
        dispatcher: OscDispatcher,
        tracker: Optional[SubjectTracker] = None,
        encoder: Optional[PoseEncoder] = None,
        timer: Optional[FrameTimer] = None,
        telemetry: Optional[TelemetryPublisher] = None,
    ):
        """
        Args:
            sensor: body sensor (None = no sensor, degraded mode)
            dispatcher: OSC dispatcher
            tracker: subject tracker (default SubjectTracker())
            encoder: payload encoder (default PoseEncoder())
            timer: frame timer (default FrameTimer())
            telemetry: telemetry publisher (default TelemetryPublisher())
        """
        self.sensor = sensor
        self.dispatcher = dispatcher
        self.tracker = tracker or SubjectTracker()
        self.encoder = encoder or PoseEncoder()
        self.timer = timer or FrameTimer()
        self.telemetry = telemetry or TelemetryPublisher()

        # Reused buffers (contents valid until the next refresh)
        self._bodies: List[Optional[Body]] = []
        self._alignment = FaceAlignment()

        self._unsubscribers: List[Callable[[], None]] = []
        self._lock = threading.Lock()
        self.running = False
        self.degraded = False

        # Counters
        self.body_ticks = 0
        self.face_ticks = 0
        self.frames_unavailable = 0
        self.face_skipped_unacquired = 0
        self.tick_errors = 0

        logger.info("PipelineOrchestrator: initialized")
        logger.info(f"  - sensor: {type(sensor).__name__ if sensor else 'none (degraded mode)'}")
        logger.info(f"  - destinations: {', '.join(d.label for d in dispatcher.destinations) or 'none'}")

    # ------------------------------------------------------------------
    #  Lifecycle (outside the per-frame hot path)
    # ------------------------------------------------------------------

    def start(self) -> bool:
        """
        Attach handlers and open the sensor

        Returns:
            True when frames are expected; False in degraded no-data mode
        """
        with self._lock:
            if self.running:
                return not self.degraded

            self.running = True

            if self.sensor is None or not self.sensor.is_available():
                return self._enter_degraded_mode()

            self._unsubscribers = [
                self.sensor.subscribe_body_frames(self.on_body_frame),
                self.sensor.subscribe_face_frames(self.on_face_frame),
                self.sensor.subscribe_tracking_id_lost(self.on_tracking_id_lost),
                self.tracker.subscribe(self._push_face_target),
            ]
            self._push_face_target(self.tracker.active_identity)

            try:
                opened = self.sensor.open()
            except Exception as e:
                logger.error(f"Sensor open failed: {e}")
                opened = False

            if not opened:
                self._detach()
                return self._enter_degraded_mode()

            self.degraded = False
            self.telemetry.set_status(Constants.INITIALIZING_STATUS_TEXT)
            logger.info("PipelineOrchestrator: started")
            return True

    def stop(self) -> None:
        """Detach handlers and release the sensor"""
        with self._lock:
            if not self.running:
                return
            self.running = False
            self._detach()

            if self.sensor is not None and not self.degraded:
                try:
                    self.sensor.close()
                except Exception as e:
                    logger.warning(f"Sensor close failed: {e}")

        logger.info(
            f"PipelineOrchestrator: stopped (body_ticks={self.body_ticks}, "
            f"face_ticks={self.face_ticks}, errors={self.tick_errors})"
        )

    def _detach(self):
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    def _enter_degraded_mode(self) -> bool:
        self.degraded = True
        self.telemetry.set_status(Constants.NO_SENSOR_FOUND_TEXT)
        logger.warning(f"PipelineOrchestrator: {Constants.NO_SENSOR_FOUND_TEXT} Running without data.")
        return False

    # ------------------------------------------------------------------
    #  Frame handlers
    # ------------------------------------------------------------------

    def on_body_frame(self, frame_reference: FrameReference) -> None:
        """Body-frame arrival: one complete body tick"""
        try:
            frame = frame_reference.acquire_frame()
            if frame is None:
                self.frames_unavailable += 1
                return

            with frame:
                frame.refresh_bodies(self._bodies)

            self.body_ticks += 1
            self.timer.record_frame()
            active_id = self.tracker.update(self._bodies)

            if active_id is not None:
                body = find_body_with_tracking_id(self._bodies, active_id)
                if body is not None:
                    self.dispatcher.send_body(self.encoder.encode_body(body))

            self.telemetry.publish(build_snapshot(
                frames_per_second=self.timer.frames_per_second(),
                uptime_s=self.timer.uptime(),
                status_text=self.dispatcher.status_text(),
                active_subject=active_id,
                frame_count=self.timer.frame_count,
            ))
        except Exception as e:
            self._on_tick_error("body", e)

    def on_face_frame(self, frame_reference: FrameReference) -> None:
        """Face-frame arrival: refresh the retained alignment, send it for the active subject"""
        try:
            frame = frame_reference.acquire_frame()
            if frame is None:
                self.frames_unavailable += 1
                return

            with frame:
                frame.refresh_face_alignment(self._alignment)

            self.face_ticks += 1
            active_id = self.tracker.active_identity
            if active_id is None:
                self.face_skipped_unacquired += 1
                return

            self.dispatcher.send_face(self.encoder.encode_face(self._alignment, active_id))
        except Exception as e:
            self._on_tick_error("face", e)

    def on_tracking_id_lost(self, tracking_id: int) -> None:
        """Face source could no longer correlate a face to a body"""
        try:
            self.tracker.notify_identity_lost(tracking_id)
        except Exception as e:
            self._on_tick_error("tracking-id-lost", e)

    def _push_face_target(self, tracking_id: Optional[int]) -> None:
        if self.sensor is not None:
            self.sensor.set_face_tracking_id(tracking_id)

    def _on_tick_error(self, channel: str, error: Exception):
        self.tick_errors += 1
        logger.error(f"Frame exception encountered ({channel})... {error}")
        logger.debug(f"{channel} tick traceback", exc_info=True)

    # ------------------------------------------------------------------
    #  Status
    # ------------------------------------------------------------------

    @property
    def face_alignment(self) -> FaceAlignment:
        """Last refreshed alignment (valid until the next face frame)"""
        return self._alignment

    def get_status(self) -> TelemetrySnapshot:
        return self.telemetry.last

    def get_stats(self) -> Dict[str, Any]:
        return {
            'running': self.running,
            'degraded': self.degraded,
            'body_ticks': self.body_ticks,
            'face_ticks': self.face_ticks,
            'frames_unavailable': self.frames_unavailable,
            'face_skipped_unacquired': self.face_skipped_unacquired,
            'tick_errors': self.tick_errors,
            'timer': self.timer.get_stats(),
            'tracker': self.tracker.get_stats(),
            'encoder': self.encoder.get_stats(),
            'network': self.dispatcher.get_stats(),
        }
