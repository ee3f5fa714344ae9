"""
landmarks.py - Pose data model shared by the detectors and the analyzers.

A pose always carries the full 33-slot BlazePose schema. Slots the estimator
did not report are filled with zero-visibility landmarks so that indices stay
stable from frame to frame.
"""
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Iterable, Optional, Sequence, Union


LANDMARK_NAMES = [
    "nose", "left_eye_inner", "left_eye", "left_eye_outer",
    "right_eye_inner", "right_eye", "right_eye_outer", "left_ear",
    "right_ear", "mouth_left", "mouth_right", "left_shoulder",
    "right_shoulder", "left_elbow", "right_elbow", "left_wrist",
    "right_wrist", "left_pinky", "right_pinky", "left_index",
    "right_index", "left_thumb", "right_thumb", "left_hip",
    "right_hip", "left_knee", "right_knee", "left_ankle",
    "right_ankle", "left_heel", "right_heel", "left_foot_index",
    "right_foot_index"
]

NUM_LANDMARKS = len(LANDMARK_NAMES)

PoseLandmark = IntEnum("PoseLandmark", {name.upper(): idx for idx, name in enumerate(LANDMARK_NAMES)})
PoseLandmark.__doc__ = "Index of each body part in the BlazePose landmark schema."


@dataclass(frozen=True)
class Landmark:
    """A single tracked body point: normalized position plus confidence."""
    x: float
    y: float
    z: float = 0.0
    visibility: float = 1.0

    @classmethod
    def from_list(cls, values: Sequence[float]) -> "Landmark":
        """Build from the detector's ``[x, y, z, visibility]`` list format."""
        x, y = values[0], values[1]
        z = values[2] if len(values) > 2 else 0.0
        visibility = values[3] if len(values) > 3 else 1.0
        return cls(float(x), float(y), float(z), float(visibility))


MISSING_LANDMARK = Landmark(0.0, 0.0, 0.0, 0.0)

LandmarkKey = Union[int, str]


def landmark_index(key: LandmarkKey) -> int:
    """Resolve a landmark name or index to its slot in the schema."""
    if isinstance(key, str):
        try:
            return LANDMARK_NAMES.index(key)
        except ValueError:
            raise KeyError(f"Unknown landmark name: {key}") from None
    index = int(key)
    if not 0 <= index < NUM_LANDMARKS:
        raise KeyError(f"Landmark index out of range: {index}")
    return index


class Pose:
    """The full set of landmarks produced for one frame."""

    def __init__(self, landmarks: Iterable[Landmark], timestamp: Optional[float] = None):
        slots = list(landmarks)[:NUM_LANDMARKS]
        if len(slots) < NUM_LANDMARKS:
            slots.extend([MISSING_LANDMARK] * (NUM_LANDMARKS - len(slots)))
        self._landmarks = tuple(slots)
        self.timestamp = timestamp

    @classmethod
    def from_dict(cls, landmarks: Dict[str, Sequence[float]], timestamp: Optional[float] = None) -> "Pose":
        """
        Build a pose from ``{name: [x, y, z, visibility]}``.

        Names that are not part of the schema are ignored; absent names become
        zero-visibility landmarks.
        """
        slots = [MISSING_LANDMARK] * NUM_LANDMARKS
        for name, values in landmarks.items():
            if name in LANDMARK_NAMES:
                slots[LANDMARK_NAMES.index(name)] = Landmark.from_list(values)
        return cls(slots, timestamp)

    @classmethod
    def from_mediapipe(cls, landmark_list, timestamp: Optional[float] = None) -> "Pose":
        """Build a pose from a MediaPipe ``NormalizedLandmarkList`` (or its ``.landmark`` sequence)."""
        items = getattr(landmark_list, "landmark", landmark_list)
        return cls(
            [Landmark(lm.x, lm.y, lm.z, getattr(lm, "visibility", 1.0)) for lm in items],
            timestamp
        )

    def __getitem__(self, key: LandmarkKey) -> Landmark:
        return self._landmarks[landmark_index(key)]

    def __len__(self) -> int:
        return NUM_LANDMARKS

    def __iter__(self):
        return iter(self._landmarks)
