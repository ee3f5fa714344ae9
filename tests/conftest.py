import math

import pytest

from repcoach.exercise_analysis.landmarks import NUM_LANDMARKS, Landmark, Pose, PoseLandmark

SHIN = 0.2
THIGH = 0.2
TORSO = 0.3
ARM = 0.15


class FakeClock:
    """Manually driven clock; optionally advances by ``step`` on every read."""

    def __init__(self, start: float = 1000.0, step: float = 0.0):
        self.now = start
        self.step = step

    def __call__(self) -> float:
        current = self.now
        self.now += self.step
        return current

    def advance(self, seconds: float) -> None:
        self.now += seconds


def build_squat_pose(knee_angle, visibility=1.0, lean=0.0, shoulder_visibility=None):
    """
    Side-on pose whose knee angle is ``knee_angle`` on both legs.

    Shins are vertical with the ankle under the knee, the thigh is rotated
    from the shin by the knee angle, and the torso rises from the hips
    ``lean`` degrees off vertical. Left and right sides overlap.
    """
    knee = (0.5, 0.6)
    ankle = (0.5, knee[1] + SHIN)
    theta = math.radians(knee_angle)
    hip = (knee[0] - THIGH * math.sin(theta), knee[1] + THIGH * math.cos(theta))
    lean_rad = math.radians(lean)
    shoulder = (hip[0] + TORSO * math.sin(lean_rad), hip[1] - TORSO * math.cos(lean_rad))

    slots = [Landmark(0.5, 0.1, 0.0, 1.0)] * NUM_LANDMARKS
    points = {
        "SHOULDER": shoulder,
        "HIP": hip,
        "KNEE": knee,
        "ANKLE": ankle,
    }
    for side in ("LEFT", "RIGHT"):
        for part, (x, y) in points.items():
            vis = shoulder_visibility if part == "SHOULDER" and shoulder_visibility is not None else visibility
            slots[PoseLandmark[f"{side}_{part}"]] = Landmark(x, y, 0.0, vis)
    slots[PoseLandmark.NOSE] = Landmark(shoulder[0], shoulder[1] - 0.1, 0.0, 1.0)
    return Pose(slots)


def build_pushup_pose(elbow_angle, visibility=1.0):
    """
    Side-on plank with both elbows bent to ``elbow_angle``.

    Shoulder, hip, knee and ankle lie on one straight line, the wrist stays
    directly below the shoulder and the elbow points towards the feet.
    """
    shoulder = (0.4, 0.4)
    half = math.radians(elbow_angle) / 2
    reach = 2 * ARM * math.sin(half)
    wrist = (shoulder[0], shoulder[1] + reach)
    elbow = (shoulder[0] + ARM * math.cos(half), shoulder[1] + reach / 2)
    points = {
        "SHOULDER": shoulder,
        "ELBOW": elbow,
        "WRIST": wrist,
        "HIP": (0.7, 0.45),
        "KNEE": (0.85, 0.475),
        "ANKLE": (1.0, 0.5),
    }
    return _two_sided_pose(points, visibility)


def build_situp_pose(hip_angle, visibility=1.0, nose_offset=0.0):
    """
    Sit-up pose whose shoulder-hip-knee angle is ``hip_angle``.

    Thighs point along +x from the hip; the nose continues the hip-shoulder
    line unless shifted by ``nose_offset``.
    """
    hip = (0.5, 0.7)
    theta = math.radians(hip_angle)
    direction = (math.cos(theta), -math.sin(theta))
    points = {
        "HIP": hip,
        "KNEE": (hip[0] + THIGH, hip[1]),
        "SHOULDER": (hip[0] + TORSO * direction[0], hip[1] + TORSO * direction[1]),
    }
    pose = _two_sided_pose(points, visibility)
    slots = list(pose)
    slots[PoseLandmark.NOSE] = Landmark(
        hip[0] + (TORSO + 0.1) * direction[0] + nose_offset,
        hip[1] + (TORSO + 0.1) * direction[1],
        0.0,
        1.0
    )
    return Pose(slots)


def _two_sided_pose(points, visibility):
    slots = [Landmark(0.5, 0.1, 0.0, 1.0)] * NUM_LANDMARKS
    for side in ("LEFT", "RIGHT"):
        for part, (x, y) in points.items():
            slots[PoseLandmark[f"{side}_{part}"]] = Landmark(x, y, 0.0, visibility)
    return Pose(slots)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def squat_pose():
    return build_squat_pose


@pytest.fixture
def pushup_pose():
    return build_pushup_pose


@pytest.fixture
def situp_pose():
    return build_situp_pose
