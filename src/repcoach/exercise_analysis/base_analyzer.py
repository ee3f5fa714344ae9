from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import numpy as np

from .form_quality import QualityGrade, RepQuality
from .landmarks import Pose
from .phase_machine import ExercisePhase


class UserLevel(Enum):
    """Enum representing different user experience levels."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class AnalysisStatus(Enum):
    OK = "ok"
    PARTIAL_DETECTION = "partial_detection"
    DEGENERATE_GEOMETRY = "degenerate_geometry"
    NO_POSE = "no_pose"


@dataclass
class ExerciseState:
    """Everything the UI layer needs after one processed frame."""
    name: str
    phase: ExercisePhase
    phase_label: str
    rep_count: int
    current_angle: float  # Smoothed joint angle in degrees, [0, 180]
    quality: QualityGrade
    feedback: str
    last_rep_duration_seconds: float = 0.0
    rest_seconds: float = 0.0
    quality_history: List[RepQuality] = field(default_factory=list)
    form_score: Optional[int] = None  # Score of the last completed rep
    tempo_feedback: Optional[str] = None
    milestone: Optional[str] = None
    calories: float = 0.0
    elapsed_seconds: float = 0.0
    violations: List[str] = field(default_factory=list)
    confidence: float = 0.0  # Mean visibility of the required landmarks
    analysis_reliable: bool = True
    status: AnalysisStatus = AnalysisStatus.OK
    error_message: Optional[str] = None
    user_level: UserLevel = UserLevel.BEGINNER

    @property
    def count(self) -> int:
        return self.rep_count


class BaseExerciseAnalyzer(ABC):
    """Interface shared by exercise analyzers."""

    def __init__(self, user_level: UserLevel = UserLevel.BEGINNER):
        self.user_level = user_level

    @abstractmethod
    def process_frame(self, pose: Optional[Pose]) -> ExerciseState:
        """
        Analyze a single frame of exercise performance.

        Args:
            pose: Landmarks for the frame, or None when no person was detected

        Returns:
            ExerciseState object containing analysis results
        """
        pass

    @abstractmethod
    def reset(self) -> None:
        """Zero all counters and histories and forget the current phase."""
        pass

    @abstractmethod
    def get_exercise_name(self) -> str:
        pass

    @abstractmethod
    def get_required_landmarks(self) -> List[int]:
        """Get the landmark indices that must be visible for a frame to be analyzed."""
        pass

    def calculate_confidence(self, pose: Optional[Pose]) -> float:
        """
        Calculate confidence score for the detection from the visibility of the required landmarks.

        Returns:
            Confidence score between 0 and 1 (0: not visible, 1: fully visible)
        """
        if pose is None:
            return 0.0
        visibilities = [pose[idx].visibility for idx in self.get_required_landmarks()]
        if not visibilities:
            return 0.0
        return float(np.mean(visibilities))
