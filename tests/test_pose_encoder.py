import math

import pytest

from bodyosc.encoding import FACE_PARAMETER_ORDER, PoseEncoder, quaternion_to_euler_degrees
from bodyosc.sensor import (
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
    TrackingState,
    make_body,
)


def test_full_body_in_joint_order():
    body = make_body(42, (0.1, -0.2, 2.5), hand_left_state=HandState.CLOSED)
    payload = PoseEncoder().encode_body(body)

    assert payload.tracking_id == 42
    assert [j.name for j in payload.joints] == [t.value for t in JOINT_ORDER]
    spine_base = payload.joints[0]
    assert (spine_base.x, spine_base.y, spine_base.z) == pytest.approx((0.1, -0.2, 2.5))
    assert spine_base.tracking_state == "Tracked"

    assert [(h.side, h.state, h.confidence) for h in payload.hands] == [
        ("Left", "Closed", "High"),
        ("Right", "Open", "High"),
    ]


def test_partial_body_keeps_order_and_values():
    joints = {
        JointType.HEAD: Joint(JointType.HEAD, CameraSpacePoint(0.0, 1.5, 2.0)),
        JointType.SPINE_BASE: Joint(JointType.SPINE_BASE, CameraSpacePoint(0.0, 0.8, 2.0)),
        JointType.THUMB_RIGHT: Joint(
            JointType.THUMB_RIGHT, CameraSpacePoint(0.25, 0.75, 1.75), TrackingState.INFERRED
        ),
    }
    payload = PoseEncoder().encode_body(Body(tracking_id=3, is_tracked=True, joints=joints))

    assert [j.name for j in payload.joints] == ["SpineBase", "Head", "ThumbRight"]
    assert payload.joints[2] == ("ThumbRight", 0.25, 0.75, 1.75, "Inferred")


def test_body_without_joints():
    payload = PoseEncoder(include_hands=False).encode_body(Body(tracking_id=1, is_tracked=True))
    assert payload.joints == []
    assert payload.hands == []


def test_face_parameter_order():
    alignment = FaceAlignment(
        head_pivot_point=CameraSpacePoint(0.5, 0.25, 2.0),
        face_orientation=Quaternion(0.0, 0.0, 0.0, 1.0),
        animation_units={unit: 0.5 for unit in ANIMATION_UNIT_ORDER},
    )
    payload = PoseEncoder().encode_face(alignment, tracking_id=7)

    assert payload.tracking_id == 7
    assert [p.name for p in payload.parameters] == list(FACE_PARAMETER_ORDER)
    assert len(payload.parameters) == 3 + 17 + 3

    values = payload.as_dict()
    assert values["Pitch"] == values["Yaw"] == values["Roll"] == 0.0
    assert values["JawOpen"] == 0.5
    assert (values["HeadPivotX"], values["HeadPivotY"], values["HeadPivotZ"]) == (0.5, 0.25, 2.0)


def test_missing_or_invalid_animation_units_encode_as_zero():
    alignment = FaceAlignment(animation_units={
        FaceShapeAnimation.JAW_OPEN: 0.75,
        FaceShapeAnimation.LIP_PUCKER: float("nan"),
    })
    values = PoseEncoder(include_head_pivot=False).encode_face(alignment, tracking_id=1).as_dict()

    assert len(values) == 3 + 17
    assert values["JawOpen"] == 0.75
    assert values["LipPucker"] == 0.0
    assert values["LowerlipDepressorRight"] == 0.0


def test_face_encoding_reads_refreshed_alignment():
    alignment = FaceAlignment()
    encoder = PoseEncoder()

    alignment.update(CameraSpacePoint(0.0, 0.0, 1.0), Quaternion(0.0, 0.0, 0.0, 1.0),
                     {FaceShapeAnimation.JAW_OPEN: 1.0})
    first = encoder.encode_face(alignment, tracking_id=1).as_dict()

    alignment.update(CameraSpacePoint(0.0, 0.0, 1.0), Quaternion(0.0, 0.0, 0.0, 1.0), {})
    second = encoder.encode_face(alignment, tracking_id=1).as_dict()

    assert first["JawOpen"] == 1.0
    assert second["JawOpen"] == 0.0
    assert encoder.get_stats()['faces_encoded'] == 2


def test_quaternion_identity_and_degenerate():
    assert quaternion_to_euler_degrees(Quaternion(0.0, 0.0, 0.0, 1.0)) == (0.0, 0.0, 0.0)
    assert quaternion_to_euler_degrees(Quaternion(0.0, 0.0, 0.0, 0.0)) == (0.0, 0.0, 0.0)


def test_quaternion_single_axis_rotations():
    half = math.radians(15.0)

    pitch, yaw, roll = quaternion_to_euler_degrees(Quaternion(math.sin(half), 0.0, 0.0, math.cos(half)))
    assert (pitch, yaw, roll) == pytest.approx((30.0, 0.0, 0.0), abs=1e-6)

    pitch, yaw, roll = quaternion_to_euler_degrees(Quaternion(0.0, math.sin(half), 0.0, math.cos(half)))
    assert (pitch, yaw, roll) == pytest.approx((0.0, 30.0, 0.0), abs=1e-6)

    pitch, yaw, roll = quaternion_to_euler_degrees(Quaternion(0.0, 0.0, math.sin(half), math.cos(half)))
    assert (pitch, yaw, roll) == pytest.approx((0.0, 0.0, 30.0), abs=1e-6)


def test_quaternion_is_normalized_first():
    half = math.radians(15.0)
    scaled = Quaternion(0.0, 3.0 * math.sin(half), 0.0, 3.0 * math.cos(half))
    assert quaternion_to_euler_degrees(scaled)[1] == pytest.approx(30.0, abs=1e-6)
