import pytest

from repcoach.exercise_analysis.landmarks import Landmark, Pose, PoseLandmark
from repcoach.exercise_analysis.pose_utils import (
    DEGENERATE_ANGLE, calculate_angle, check_landmark_visibility, is_degenerate, lean_from_vertical,
    midpoint, missing_landmarks
)


def test_collinear_points_give_straight_angle():
    assert calculate_angle([0, 0], [1, 1], [2, 2]) == pytest.approx(180.0)


def test_right_angle():
    assert calculate_angle([1, 0], [0, 0], [0, 1]) == pytest.approx(90.0)


def test_folded_back_points_give_zero():
    assert calculate_angle([1, 0], [0, 0], [2, 0]) == pytest.approx(0.0)


@pytest.mark.parametrize("a, b, c", [
    ([0.1, 0.9], [0.4, 0.2], [0.9, 0.95]),
    ([0.3, 0.3], [0.3, 0.31], [0.31, 0.3]),
    ([-5.0, 2.0], [100.0, -40.0], [0.0, 0.0]),
])
def test_angle_stays_in_range(a, b, c):
    assert 0.0 <= calculate_angle(a, b, c) <= 180.0


def test_atan2_method_matches_dot():
    a, b, c = [0.2, 0.8], [0.5, 0.5], [0.9, 0.6]
    assert calculate_angle(a, b, c, method="atan2") == pytest.approx(calculate_angle(a, b, c))


def test_unknown_method_rejected():
    with pytest.raises(ValueError):
        calculate_angle([1, 0], [0, 0], [0, 1], method="cosine")


def test_degenerate_input_returns_sentinel():
    assert is_degenerate([0.5, 0.5], [0.5, 0.5], [1, 1])
    assert calculate_angle([0.5, 0.5], [0.5, 0.5], [1, 1]) == DEGENERATE_ANGLE
    assert not is_degenerate([1, 0], [0, 0], [0, 1])


def test_depth_used_only_when_asked():
    a, b, c = Landmark(0, 0, 0), Landmark(0, 0, 1), Landmark(1, 0, 1)
    assert is_degenerate(a, b, c)
    assert calculate_angle(a, b, c, use_depth=True) == pytest.approx(90.0)


def test_midpoint_averages_and_keeps_weakest_visibility():
    mid = midpoint(Landmark(0.0, 0.0, 0.0, 0.9), Landmark(1.0, 2.0, 4.0, 0.4))
    assert (mid.x, mid.y, mid.z) == (0.5, 1.0, 2.0)
    assert mid.visibility == 0.4


def test_lean_from_vertical():
    assert lean_from_vertical([0.5, 0.5], [0.5, 0.2]) == pytest.approx(0.0)
    assert lean_from_vertical([0.5, 0.5], [0.8, 0.5]) == pytest.approx(90.0)


def test_visibility_gate():
    required = [PoseLandmark.LEFT_HIP, "left_knee"]
    pose = Pose([Landmark(0.5, 0.5, 0.0, 0.5)] * 33)
    assert check_landmark_visibility(pose, required, 0.5)
    assert not check_landmark_visibility(pose, required, 0.6)
    assert not check_landmark_visibility(None, required, 0.5)
    assert missing_landmarks(pose, required, 0.6) == ["left_hip", "left_knee"]


def test_pose_pads_missing_slots():
    pose = Pose.from_dict({"left_knee": [0.1, 0.2, 0.0, 0.9], "not_a_landmark": [0, 0, 0, 1]})
    assert len(pose) == 33
    assert pose["left_knee"].visibility == 0.9
    assert pose[PoseLandmark.RIGHT_KNEE].visibility == 0.0
    with pytest.raises(KeyError):
        pose["tail"]
