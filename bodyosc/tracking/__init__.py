"""
Subject tracking module

Usage:
    from bodyosc.tracking import SubjectTracker

    tracker = SubjectTracker()
    tracker.subscribe(sensor.set_face_tracking_id)

    # In the body-frame handler
    active_id = tracker.update(bodies)
"""

from .subject_tracker import (
    SubjectTracker,
    SubjectTrackerConfig,
    TrackerState,
    body_distance,
    find_body_with_tracking_id,
    find_closest_body,
)

__all__ = [
    'SubjectTracker',
    'SubjectTrackerConfig',
    'TrackerState',
    'body_distance',
    'find_body_with_tracking_id',
    'find_closest_body',
]
