"""
Sensor module

Core components:
- BodySensorInterface: abstract body/face sensor contract
- MockBodySensor: synthetic sensor for tests and hardware-free runs
- Body / Joint / FaceAlignment: per-frame data model
"""
from .types import (
    ANIMATION_UNIT_ORDER,
    JOINT_ORDER,
    Body,
    CameraSpacePoint,
    FaceAlignment,
    FaceShapeAnimation,
    HandState,
    Joint,
    JointType,
    Quaternion,
    TrackingConfidence,
    TrackingState,
)
from .sensor_interface import (
    BodyFrame,
    BodySensorInterface,
    EventChannel,
    FaceFrame,
    FrameReference,
    SensorFrame,
)
from .mock_sensor import MockBodySensor, make_body
from .factory import create_sensor

__all__ = [
    'ANIMATION_UNIT_ORDER',
    'JOINT_ORDER',
    'Body',
    'BodyFrame',
    'BodySensorInterface',
    'CameraSpacePoint',
    'EventChannel',
    'FaceAlignment',
    'FaceFrame',
    'FaceShapeAnimation',
    'FrameReference',
    'HandState',
    'Joint',
    'JointType',
    'MockBodySensor',
    'Quaternion',
    'SensorFrame',
    'TrackingConfidence',
    'TrackingState',
    'create_sensor',
    'make_body',
]
