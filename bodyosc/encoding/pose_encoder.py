"""
Pose/face payload encoder
=========================

Flattens a body (joints + hand states) or a face alignment result (head
orientation + animation units) into ordered, serializable payloads.

Body ordering: JointType enumeration order (SpineBase ... ThumbRight),
joints missing from the body are omitted.
Face ordering: Pitch, Yaw, Roll (degrees), the 17 animation units in
FaceShapeAnimation order, then HeadPivotX/Y/Z.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

import numpy as np

from ..sensor.types import (
    ANIMATION_UNIT_ORDER,
    JOINT_ORDER,
    Body,
    FaceAlignment,
    Quaternion,
)


class JointSample(NamedTuple):
    name: str
    x: float
    y: float
    z: float
    tracking_state: str = "Tracked"


class HandSample(NamedTuple):
    side: str
    state: str
    confidence: str


class FaceParameter(NamedTuple):
    name: str
    value: float


@dataclass
class BodyPayload:
    """Encoded body: joints in fixed order, then hands"""
    tracking_id: int
    joints: List[JointSample] = field(default_factory=list)
    hands: List[HandSample] = field(default_factory=list)


@dataclass
class FacePayload:
    """Encoded face: named scalar parameters in fixed order"""
    tracking_id: int
    parameters: List[FaceParameter] = field(default_factory=list)

    def as_dict(self) -> Dict[str, float]:
        return {p.name: p.value for p in self.parameters}


HEAD_ORIENTATION_NAMES = ("Pitch", "Yaw", "Roll")
HEAD_PIVOT_NAMES = ("HeadPivotX", "HeadPivotY", "HeadPivotZ")

FACE_PARAMETER_ORDER: Tuple[str, ...] = (
    HEAD_ORIENTATION_NAMES
    + tuple(unit.value for unit in ANIMATION_UNIT_ORDER)
    + HEAD_PIVOT_NAMES
)


def quaternion_to_euler_degrees(q: Quaternion) -> Tuple[float, float, float]:
    """
    Face orientation quaternion -> (pitch, yaw, roll) in degrees

    A zero or non-finite quaternion is treated as the identity rotation.
    """
    v = np.asarray(q, dtype=float)
    norm = float(np.linalg.norm(v))
    if not np.isfinite(norm) or norm == 0.0:
        return 0.0, 0.0, 0.0
    x, y, z, w = (v / norm).tolist()

    pitch = np.degrees(np.arctan2(2.0 * (y * z + w * x), w * w - x * x - y * y + z * z))
    yaw = np.degrees(np.arcsin(np.clip(2.0 * (w * y - x * z), -1.0, 1.0)))
    roll = np.degrees(np.arctan2(2.0 * (x * y + w * z), w * w + x * x - y * y - z * z))
    return float(pitch), float(yaw), float(roll)


class PoseEncoder:
    """
    Converts bodies and face alignments into payloads

    Usage:
        encoder = PoseEncoder(include_hands=True)
        body_payload = encoder.encode_body(body)
        face_payload = encoder.encode_face(alignment, tracking_id=body.tracking_id)
    """

    def __init__(self, include_hands: bool = True, include_head_pivot: bool = True):
        self.include_hands = include_hands
        self.include_head_pivot = include_head_pivot
        self.bodies_encoded = 0
        self.faces_encoded = 0

    def encode_body(self, body: Body) -> BodyPayload:
        """
        Flatten a body's joints (and hands)

        Sensor-space coordinates pass through unchanged; K joints give
        exactly K samples in JointType order.
        """
        joints = []
        for joint_type in JOINT_ORDER:
            joint = body.joints.get(joint_type)
            if joint is None:
                continue
            position = joint.position
            joints.append(JointSample(
                joint_type.value,
                float(position.x),
                float(position.y),
                float(position.z),
                joint.tracking_state.value,
            ))

        hands = []
        if self.include_hands:
            hands = [
                HandSample("Left", body.hand_left_state.value, body.hand_left_confidence.value),
                HandSample("Right", body.hand_right_state.value, body.hand_right_confidence.value),
            ]

        self.bodies_encoded += 1
        return BodyPayload(tracking_id=body.tracking_id, joints=joints, hands=hands)

    def encode_face(self, alignment: FaceAlignment, tracking_id: int) -> FacePayload:
        """
        Flatten a face alignment result

        Missing animation units encode as 0.0 so every payload has the
        same parameter list.
        """
        pitch, yaw, roll = quaternion_to_euler_degrees(alignment.face_orientation)
        parameters = [
            FaceParameter("Pitch", pitch),
            FaceParameter("Yaw", yaw),
            FaceParameter("Roll", roll),
        ]

        for unit in ANIMATION_UNIT_ORDER:
            value = float(alignment.animation_units.get(unit, 0.0))
            parameters.append(FaceParameter(unit.value, value if np.isfinite(value) else 0.0))

        if self.include_head_pivot:
            pivot = alignment.head_pivot_point
            parameters.extend([
                FaceParameter("HeadPivotX", float(pivot.x)),
                FaceParameter("HeadPivotY", float(pivot.y)),
                FaceParameter("HeadPivotZ", float(pivot.z)),
            ])

        self.faces_encoded += 1
        return FacePayload(tracking_id=tracking_id, parameters=parameters)

    def get_stats(self) -> Dict[str, Any]:
        return {
            'bodies_encoded': self.bodies_encoded,
            'faces_encoded': self.faces_encoded,
        }
