"""
form_checks.py - Boolean structural rules evaluated on every frame of a rep attempt.

Each rule is a plain function registered under a name that exercise configs
refer to. A rule returns True (passed), False (failed) or None when it cannot
be judged on this frame (e.g. a landmark it needs is not visible).
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

import numpy as np

from .landmarks import Pose, PoseLandmark
from .phase_machine import ExercisePhase
from .pose_utils import calculate_angle, horizontal_offset, lean_from_vertical, midpoint, vertical_offset


class CheckCategory(Enum):
    """Form-check categories, declared in feedback precedence order."""
    ALIGNMENT = "alignment"
    LEAN = "lean"
    DEPTH = "depth"
    SYMMETRY = "symmetry"


CATEGORY_PRECEDENCE = {category: rank for rank, category in enumerate(CheckCategory)}


@dataclass
class CheckContext:
    """Per-frame facts a rule may need besides the landmarks."""
    angle: float
    deepest_angle: float
    phase: ExercisePhase
    joint_angles: Tuple[float, ...] = ()
    visibility_threshold: float = 0.5


CheckFunction = Callable[..., Optional[bool]]

FORM_CHECK_REGISTRY: Dict[str, CheckFunction] = {}


def register_form_check(name: str):
    def decorator(fn: CheckFunction) -> CheckFunction:
        FORM_CHECK_REGISTRY[name] = fn
        return fn
    return decorator


@dataclass
class FormCheck:
    """A configured instance of a registered rule."""
    name: str
    category: CheckCategory
    message: str
    params: Dict[str, Any] = field(default_factory=dict)
    rule: Optional[str] = None  # Registry key, defaults to name

    def __post_init__(self):
        key = self.rule or self.name
        if key not in FORM_CHECK_REGISTRY:
            raise KeyError(f"Unknown form check: {key}")
        self._fn = FORM_CHECK_REGISTRY[key]

    def evaluate(self, pose: Pose, context: CheckContext) -> Optional[bool]:
        result = self._fn(pose, context, **self.params)
        return None if result is None else bool(result)


def _visible(pose: Pose, context: CheckContext, *indices: PoseLandmark) -> bool:
    return all(pose[i].visibility >= context.visibility_threshold for i in indices)


# --- Shared rules ---
@register_form_check("depth")
def check_depth(pose: Pose, context: CheckContext, max_angle: float = 90.0) -> Optional[bool]:
    """Deepest angle of the attempt reached the target; judged once the subject is coming back up."""
    if context.phase != ExercisePhase.ASCENDING:
        return None
    return context.deepest_angle <= max_angle or bool(np.isclose(context.deepest_angle, max_angle))


@register_form_check("limb_symmetry")
def check_limb_symmetry(pose: Pose, context: CheckContext, max_difference: float = 20.0) -> Optional[bool]:
    """Left and right joint angles move together."""
    if len(context.joint_angles) < 2:
        return None
    return max(context.joint_angles) - min(context.joint_angles) <= max_difference


# --- Push-up rules ---
@register_form_check("body_line")
def check_body_line(pose: Pose, context: CheckContext, tolerance: float = 15.0) -> bool:
    """Shoulders, hips and ankles stay close to a straight line."""
    shoulders = midpoint(pose[PoseLandmark.LEFT_SHOULDER], pose[PoseLandmark.RIGHT_SHOULDER])
    hips = midpoint(pose[PoseLandmark.LEFT_HIP], pose[PoseLandmark.RIGHT_HIP])
    ankles = midpoint(pose[PoseLandmark.LEFT_ANKLE], pose[PoseLandmark.RIGHT_ANKLE])
    body_line_angle = calculate_angle(shoulders, hips, ankles)
    return abs(180.0 - body_line_angle) < tolerance


@register_form_check("wrists_under_shoulders")
def check_wrists_under_shoulders(pose: Pose, context: CheckContext, max_offset: float = 0.1) -> bool:
    return (horizontal_offset(pose[PoseLandmark.LEFT_SHOULDER], pose[PoseLandmark.LEFT_WRIST]) < max_offset
            and horizontal_offset(pose[PoseLandmark.RIGHT_SHOULDER], pose[PoseLandmark.RIGHT_WRIST]) < max_offset)


@register_form_check("elbow_flare")
def check_elbow_flare(pose: Pose, context: CheckContext, max_angle: float = 100.0) -> bool:
    """Upper arm stays within ``max_angle`` of the torso on both sides."""
    flares = [
        calculate_angle(pose[PoseLandmark.LEFT_HIP], pose[PoseLandmark.LEFT_SHOULDER], pose[PoseLandmark.LEFT_ELBOW]),
        calculate_angle(pose[PoseLandmark.RIGHT_HIP], pose[PoseLandmark.RIGHT_SHOULDER], pose[PoseLandmark.RIGHT_ELBOW]),
    ]
    return max(flares) <= max_angle


# --- Squat rules ---
@register_form_check("knee_over_ankle")
def check_knee_over_ankle(pose: Pose, context: CheckContext, max_offset: float = 0.1) -> bool:
    return (horizontal_offset(pose[PoseLandmark.LEFT_KNEE], pose[PoseLandmark.LEFT_ANKLE]) <= max_offset
            and horizontal_offset(pose[PoseLandmark.RIGHT_KNEE], pose[PoseLandmark.RIGHT_ANKLE]) <= max_offset)


@register_form_check("torso_lean")
def check_torso_lean(pose: Pose, context: CheckContext, max_lean: float = 35.0) -> Optional[bool]:
    """Torso (hip midpoint to shoulder midpoint) leans no more than ``max_lean`` from vertical."""
    if not _visible(pose, context, PoseLandmark.LEFT_SHOULDER, PoseLandmark.RIGHT_SHOULDER):
        return None
    shoulders = midpoint(pose[PoseLandmark.LEFT_SHOULDER], pose[PoseLandmark.RIGHT_SHOULDER])
    hips = midpoint(pose[PoseLandmark.LEFT_HIP], pose[PoseLandmark.RIGHT_HIP])
    return lean_from_vertical(hips, shoulders) <= max_lean


@register_form_check("level_hips")
def check_level_hips(pose: Pose, context: CheckContext, max_difference: float = 0.05) -> bool:
    return vertical_offset(pose[PoseLandmark.LEFT_HIP], pose[PoseLandmark.RIGHT_HIP]) < max_difference


# --- Sit-up rules ---
@register_form_check("spine_straight")
def check_spine_straight(pose: Pose, context: CheckContext, min_angle: float = 150.0) -> Optional[bool]:
    """Hip midpoint, shoulder midpoint and nose stay roughly in line."""
    if not _visible(pose, context, PoseLandmark.NOSE):
        return None
    shoulders = midpoint(pose[PoseLandmark.LEFT_SHOULDER], pose[PoseLandmark.RIGHT_SHOULDER])
    hips = midpoint(pose[PoseLandmark.LEFT_HIP], pose[PoseLandmark.RIGHT_HIP])
    return calculate_angle(hips, shoulders, pose[PoseLandmark.NOSE]) > min_angle


@register_form_check("level_shoulders")
def check_level_shoulders(pose: Pose, context: CheckContext, max_difference: float = 0.05) -> bool:
    return vertical_offset(pose[PoseLandmark.LEFT_SHOULDER], pose[PoseLandmark.RIGHT_SHOULDER]) < max_difference
