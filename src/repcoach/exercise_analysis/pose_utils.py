"""
pose_utils.py - Shared utilities for pose geometry and landmark gating.
"""
import numpy as np
from typing import Iterable, List, Optional, Sequence, Union

from .landmarks import Landmark, LandmarkKey, Pose, landmark_index, LANDMARK_NAMES

Point = Union[Landmark, Sequence[float]]

# Returned when one of the rays has zero length; callers must treat it as "no angle"
DEGENERATE_ANGLE = 0.0
_MIN_VECTOR_NORM = 1e-9


def _as_landmark(p: Point) -> Landmark:
    return p if isinstance(p, Landmark) else Landmark.from_list(p)


def _coords(p: Point, use_depth: bool) -> np.ndarray:
    lm = _as_landmark(p)
    return np.array([lm.x, lm.y, lm.z]) if use_depth else np.array([lm.x, lm.y])


# --- Math & Geometry Utilities ---
def midpoint(p1: Point, p2: Point) -> Landmark:
    """
    Componentwise average of two landmarks.

    The visibility of the result is the lower of the two inputs, so a midpoint
    is never more trustworthy than its weakest end.
    """
    a, b = _as_landmark(p1), _as_landmark(p2)
    return Landmark(
        (a.x + b.x) / 2,
        (a.y + b.y) / 2,
        (a.z + b.z) / 2,
        min(a.visibility, b.visibility)
    )


def is_degenerate(a: Point, b: Point, c: Point, use_depth: bool = False) -> bool:
    """True when ``a`` or ``c`` coincides with the vertex ``b``."""
    vb = _coords(b, use_depth)
    return (np.linalg.norm(_coords(a, use_depth) - vb) < _MIN_VECTOR_NORM
            or np.linalg.norm(_coords(c, use_depth) - vb) < _MIN_VECTOR_NORM)


def calculate_angle(a: Point, b: Point, c: Point, use_depth: bool = False, method: str = "dot") -> float:
    """
    Calculate the angle at vertex ``b`` between rays ``b->a`` and ``b->c``.

    Point ordering convention:
    - a: First point (e.g., shoulder for elbow angle)
    - b: Middle point (e.g., elbow for elbow angle)
    - c: Last point (e.g., wrist for elbow angle)

    Args:
        a: First point, a Landmark or [x, y, z, visibility]
        b: Vertex
        c: Last point
        use_depth: Include the z component
        method: "dot" (arccos of the normalized dot product) or "atan2"
            (difference of ray headings, 2D only)
    Returns:
        Angle in degrees clamped to [0, 180], or DEGENERATE_ANGLE when a ray
        has zero length
    """
    if is_degenerate(a, b, c, use_depth):
        return DEGENERATE_ANGLE
    va, vb, vc = _coords(a, use_depth), _coords(b, use_depth), _coords(c, use_depth)
    ba = va - vb
    bc = vc - vb
    if method == "atan2":
        radians = np.arctan2(bc[1], bc[0]) - np.arctan2(ba[1], ba[0])
        angle = abs(np.degrees(radians)) % 360.0
        if angle > 180.0:
            angle = 360.0 - angle
    elif method == "dot":
        cosine_angle = np.dot(ba, bc) / (np.linalg.norm(ba) * np.linalg.norm(bc))
        angle = np.degrees(np.arccos(np.clip(cosine_angle, -1.0, 1.0)))
    else:
        raise ValueError(f"Unknown angle method: {method}")
    return float(np.clip(angle, 0.0, 180.0))


def horizontal_offset(a: Point, b: Point) -> float:
    return abs(_as_landmark(a).x - _as_landmark(b).x)


def vertical_offset(a: Point, b: Point) -> float:
    return abs(_as_landmark(a).y - _as_landmark(b).y)


def lean_from_vertical(base: Point, top: Point) -> float:
    """
    Angle between the segment base->top and the upward vertical.

    Image y grows downwards, so "up" is a point above ``base`` with smaller y.
    """
    lm = _as_landmark(base)
    vertical_point = Landmark(lm.x, lm.y - 1.0, lm.z, lm.visibility)
    return calculate_angle(vertical_point, lm, top)


# --- Landmark Gate ---
def missing_landmarks(pose: Pose, required: Iterable[LandmarkKey], min_visibility: float = 0.5) -> List[str]:
    """Names of the required landmarks whose visibility is below the threshold."""
    missing = []
    for key in required:
        idx = landmark_index(key)
        if pose[idx].visibility < min_visibility:
            missing.append(LANDMARK_NAMES[idx])
    return missing


def check_landmark_visibility(pose: Optional[Pose], required: Iterable[LandmarkKey], min_visibility: float = 0.5) -> bool:
    """Check that every required landmark is visible at or above the threshold."""
    if pose is None:
        return False
    return not missing_landmarks(pose, required, min_visibility)
