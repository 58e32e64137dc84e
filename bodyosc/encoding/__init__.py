"""
Payload encoding module
=======================

Flattens bodies and face alignments into ordered payloads for dispatch.
"""
from .pose_encoder import (
    FACE_PARAMETER_ORDER,
    BodyPayload,
    FaceParameter,
    FacePayload,
    HandSample,
    JointSample,
    PoseEncoder,
    quaternion_to_euler_degrees,
)

__all__ = [
    'FACE_PARAMETER_ORDER',
    'BodyPayload',
    'FaceParameter',
    'FacePayload',
    'HandSample',
    'JointSample',
    'PoseEncoder',
    'quaternion_to_euler_degrees',
]
