"""
Sensor data model
=================

Bodies, joints and face alignment results as delivered by the body sensor.
The enumerations keep the sensor's own ordering, which is also the wire
ordering used by the encoder.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, NamedTuple, Optional, Tuple


class JointType(Enum):
    """Skeleton joints, in sensor enumeration order"""
    SPINE_BASE = "SpineBase"
    SPINE_MID = "SpineMid"
    NECK = "Neck"
    HEAD = "Head"
    SHOULDER_LEFT = "ShoulderLeft"
    ELBOW_LEFT = "ElbowLeft"
    WRIST_LEFT = "WristLeft"
    HAND_LEFT = "HandLeft"
    SHOULDER_RIGHT = "ShoulderRight"
    ELBOW_RIGHT = "ElbowRight"
    WRIST_RIGHT = "WristRight"
    HAND_RIGHT = "HandRight"
    HIP_LEFT = "HipLeft"
    KNEE_LEFT = "KneeLeft"
    ANKLE_LEFT = "AnkleLeft"
    FOOT_LEFT = "FootLeft"
    HIP_RIGHT = "HipRight"
    KNEE_RIGHT = "KneeRight"
    ANKLE_RIGHT = "AnkleRight"
    FOOT_RIGHT = "FootRight"
    SPINE_SHOULDER = "SpineShoulder"
    HAND_TIP_LEFT = "HandTipLeft"
    THUMB_LEFT = "ThumbLeft"
    HAND_TIP_RIGHT = "HandTipRight"
    THUMB_RIGHT = "ThumbRight"


# Fixed joint order (index == sensor enumeration value)
JOINT_ORDER: Tuple[JointType, ...] = tuple(JointType)


class TrackingState(Enum):
    """Per-joint tracking quality"""
    NOT_TRACKED = "NotTracked"
    INFERRED = "Inferred"
    TRACKED = "Tracked"


class HandState(Enum):
    """Hand pose classification"""
    UNKNOWN = "Unknown"
    NOT_TRACKED = "NotTracked"
    OPEN = "Open"
    CLOSED = "Closed"
    LASSO = "Lasso"


class TrackingConfidence(Enum):
    """Hand state confidence"""
    LOW = "Low"
    HIGH = "High"


class FaceShapeAnimation(Enum):
    """Face animation units, in sensor enumeration order"""
    JAW_OPEN = "JawOpen"
    LIP_PUCKER = "LipPucker"
    JAW_SLIDE_RIGHT = "JawSlideRight"
    LIP_STRETCHER_RIGHT = "LipStretcherRight"
    LIP_STRETCHER_LEFT = "LipStretcherLeft"
    LIP_CORNER_PULLER_LEFT = "LipCornerPullerLeft"
    LIP_CORNER_PULLER_RIGHT = "LipCornerPullerRight"
    LIP_CORNER_DEPRESSOR_LEFT = "LipCornerDepressorLeft"
    LIP_CORNER_DEPRESSOR_RIGHT = "LipCornerDepressorRight"
    LEFT_CHEEK_PUFF = "LeftcheekPuff"
    RIGHT_CHEEK_PUFF = "RightcheekPuff"
    LEFT_EYE_CLOSED = "LefteyeClosed"
    RIGHT_EYE_CLOSED = "RighteyeClosed"
    RIGHT_EYEBROW_LOWERER = "RighteyebrowLowerer"
    LEFT_EYEBROW_LOWERER = "LefteyebrowLowerer"
    LOWER_LIP_DEPRESSOR_LEFT = "LowerlipDepressorLeft"
    LOWER_LIP_DEPRESSOR_RIGHT = "LowerlipDepressorRight"


ANIMATION_UNIT_ORDER: Tuple[FaceShapeAnimation, ...] = tuple(FaceShapeAnimation)


class CameraSpacePoint(NamedTuple):
    """3D point in sensor space (meters)"""
    x: float
    y: float
    z: float


class Quaternion(NamedTuple):
    """Orientation quaternion (x, y, z, w)"""
    x: float
    y: float
    z: float
    w: float


IDENTITY_QUATERNION = Quaternion(0.0, 0.0, 0.0, 1.0)


@dataclass(frozen=True)
class Joint:
    """One skeleton joint"""
    joint_type: JointType
    position: CameraSpacePoint
    tracking_state: TrackingState = TrackingState.TRACKED


@dataclass(frozen=True)
class Body:
    """
    One candidate body as reported by the sensor in a tick

    The core never mutates a Body; the sensor hands out fresh ones.
    """
    tracking_id: int
    is_tracked: bool
    joints: Dict[JointType, Joint] = field(default_factory=dict)

    hand_left_state: HandState = HandState.UNKNOWN
    hand_left_confidence: TrackingConfidence = TrackingConfidence.LOW
    hand_right_state: HandState = HandState.UNKNOWN
    hand_right_confidence: TrackingConfidence = TrackingConfidence.LOW

    def joint_position(self, joint_type: JointType) -> Optional[CameraSpacePoint]:
        joint = self.joints.get(joint_type)
        return joint.position if joint is not None else None


@dataclass
class FaceAlignment:
    """
    Face alignment result (head pose + animation units)

    A single instance is owned by the pipeline and refreshed in place by
    FaceFrame.refresh_face_alignment(); its contents are only valid until
    the next refresh.
    """
    head_pivot_point: CameraSpacePoint = CameraSpacePoint(0.0, 0.0, 0.0)
    face_orientation: Quaternion = IDENTITY_QUATERNION
    animation_units: Dict[FaceShapeAnimation, float] = field(default_factory=dict)

    def update(
        self,
        head_pivot_point: CameraSpacePoint,
        face_orientation: Quaternion,
        animation_units: Dict[FaceShapeAnimation, float]
    ) -> None:
        """Overwrite the contents without reallocating the container"""
        self.head_pivot_point = head_pivot_point
        self.face_orientation = face_orientation
        self.animation_units.clear()
        self.animation_units.update(animation_units)
