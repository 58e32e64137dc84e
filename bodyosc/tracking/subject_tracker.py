"""
Subject Tracking Module - Closest Body Selector
================================================

Keeps a single "active subject" identity across body frames.

Features:
- Initial acquisition: closest tracked body (reference joint distance to the
  sensor origin)
- Continuity: the active subject is kept for as long as it stays tracked
- Reacquisition: when the active subject disappears or stops being tracked,
  the closest tracked body is selected in the same tick
- External loss: the face source can force the tracker back to UNACQUIRED
- Face-source sync: every identity change is pushed to target listeners
  (None means "no target")

Ties between equidistant bodies go to the first one in candidate order.
That order comes from the sensor and carries no meaning.
"""
from __future__ import annotations

import math
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

import numpy as np

from ..core.logger import logger
from ..sensor.sensor_interface import EventChannel
from ..sensor.types import Body, JointType


class TrackerState(Enum):
    """Subject tracker state machine"""
    UNACQUIRED = "unacquired"
    TRACKING = "tracking"


@dataclass
class SubjectTrackerConfig:
    """Configuration for subject tracking"""
    # Joint whose distance to the sensor origin ranks candidates
    reference_joint: JointType = JointType.SPINE_BASE

    # Logging
    log_switches: bool = True

    @classmethod
    def from_config(cls, section: Optional[Any]) -> "SubjectTrackerConfig":
        """Build from the `tracking` config section (DictConfig or dict)"""
        if section is None:
            return cls()
        joint_name = section.get('reference_joint', JointType.SPINE_BASE.value)
        try:
            reference_joint = JointType(joint_name)
        except ValueError:
            logger.warning(f"[SubjectTracker] Unknown reference joint '{joint_name}', using SpineBase")
            reference_joint = JointType.SPINE_BASE
        return cls(
            reference_joint=reference_joint,
            log_switches=bool(section.get('log_switches', True)),
        )


def body_distance(body: Body, reference_joint: JointType = JointType.SPINE_BASE) -> float:
    """Euclidean distance of the reference joint from the sensor origin (inf if missing)"""
    position = body.joint_position(reference_joint)
    if position is None:
        return math.inf
    distance = float(np.linalg.norm(np.asarray(position, dtype=float)))
    return distance if math.isfinite(distance) else math.inf


def find_closest_body(
    candidates: Iterable[Optional[Body]],
    reference_joint: JointType = JointType.SPINE_BASE
) -> Tuple[Optional[Body], float]:
    """
    Closest tracked body

    Returns:
        (body, distance), or (None, inf) when nothing is tracked
    """
    result: Optional[Body] = None
    closest_distance = math.inf

    for body in candidates:
        if body is None or not body.is_tracked:
            continue
        distance = body_distance(body, reference_joint)
        # Strict comparison: first in order wins ties
        if result is None or distance < closest_distance:
            result = body
            closest_distance = distance

    return result, closest_distance


def find_body_with_tracking_id(
    candidates: Iterable[Optional[Body]],
    tracking_id: int
) -> Optional[Body]:
    """Tracked body with the given identity, or None"""
    for body in candidates:
        if body is not None and body.is_tracked and body.tracking_id == tracking_id:
            return body
    return None


class SubjectTracker:
    """
    Selects and keeps the active subject.

    Usage:
        tracker = SubjectTracker(config)
        tracker.subscribe(sensor.set_face_tracking_id)

        # Each body frame:
        active_id = tracker.update(bodies)
        if active_id is not None:
            send(active_id)

        # Face source lost its subject:
        tracker.notify_identity_lost()
    """

    def __init__(self, config: Optional[SubjectTrackerConfig] = None):
        self.config = config or SubjectTrackerConfig()

        # State (replaced wholesale, readable without the lock)
        self.state = TrackerState.UNACQUIRED
        self.active_identity: Optional[int] = None
        self.active_distance: Optional[float] = None

        self._lock = threading.Lock()
        # Bumped on every identity change (under _lock)
        self._generation = 0
        self._target_listeners: EventChannel[Optional[int]] = EventChannel("subject_target")

        # Statistics
        self.acquisition_count: int = 0
        self.loss_count: int = 0
        self.external_loss_count: int = 0
        self.total_frames: int = 0

        logger.info(
            f"SubjectTracker initialized: reference_joint={self.config.reference_joint.value}"
        )

    def subscribe(self, listener: Callable[[Optional[int]], None]) -> Callable[[], None]:
        """
        Register a target listener (called with the new identity, or None)

        Returns:
            unsubscribe function
        """
        return self._target_listeners.subscribe(listener)

    @property
    def is_tracking(self) -> bool:
        return self.active_identity is not None

    def update(self, candidates: Iterable[Optional[Body]]) -> Optional[int]:
        """
        Run one state-machine transition for a new candidate list.

        Args:
            candidates: bodies of the current frame (None slots are ignored)

        Returns:
            the active identity after the transition, or None
        """
        candidates = list(candidates)

        with self._lock:
            self.total_frames += 1
            previous = self.active_identity

            if self.state == TrackerState.TRACKING and previous is not None:
                if find_body_with_tracking_id(candidates, previous) is not None:
                    # Still tracked, no change
                    return previous
                self.loss_count += 1
                if self.config.log_switches:
                    logger.info(f"[SubjectTracker] Lost subject {previous}, reacquiring")

            # UNACQUIRED, or the active subject was lost
            closest, distance = find_closest_body(candidates, self.config.reference_joint)
            if closest is None:
                self._set_unacquired()
            else:
                self._set_tracking(closest.tracking_id, distance)

            current = self.active_identity

        if current != previous:
            self._publish_target()
        return current

    def notify_identity_lost(self, tracking_id: Optional[int] = None) -> None:
        """
        Force UNACQUIRED (face source could no longer correlate a face to a body).

        The next update() reacquires via closest-body selection.

        Args:
            tracking_id: identity reported by the face source (informational)
        """
        with self._lock:
            previous = self.active_identity
            self.external_loss_count += 1
            self._set_unacquired()

        if self.config.log_switches:
            logger.info(
                f"[SubjectTracker] Tracking id lost (reported={tracking_id}, active={previous})"
            )

        if previous is not None:
            self._publish_target()

    def reset(self):
        """Reset tracker state"""
        with self._lock:
            previous = self.active_identity
            self._set_unacquired()
        if previous is not None:
            self._publish_target()
        logger.info("[SubjectTracker] Reset")

    def get_stats(self) -> Dict[str, Any]:
        return {
            'state': self.state.value,
            'active_identity': self.active_identity,
            'active_distance': self.active_distance,
            'acquisition_count': self.acquisition_count,
            'loss_count': self.loss_count,
            'external_loss_count': self.external_loss_count,
            'total_frames': self.total_frames,
        }

    def _publish_target(self):
        """
        Deliver the active identity to target listeners (called without the lock)

        Body and face threads can both change the identity; a delivery that
        raced with a newer change is followed by another one, so the last
        value every listener receives is the current identity.
        """
        while True:
            with self._lock:
                generation = self._generation
                identity = self.active_identity

            self._target_listeners.emit(identity)

            with self._lock:
                if self._generation == generation:
                    return

    def _set_tracking(self, tracking_id: int, distance: float):
        if tracking_id != self.active_identity:
            self._generation += 1
        self.active_identity = tracking_id
        self.active_distance = distance if math.isfinite(distance) else None
        self.state = TrackerState.TRACKING
        self.acquisition_count += 1

        if self.config.log_switches:
            distance_text = f"{distance:.2f}m" if math.isfinite(distance) else "n/a"
            logger.info(f"[SubjectTracker] New subject: id={tracking_id}, distance={distance_text}")

    def _set_unacquired(self):
        if self.active_identity is not None:
            self._generation += 1
        self.active_identity = None
        self.active_distance = None
        self.state = TrackerState.UNACQUIRED
