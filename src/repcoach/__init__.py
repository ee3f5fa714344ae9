"""
RepCoach: rep counting and form feedback for push-ups, squats and sit-ups from 2D pose landmarks.
"""

from .exercise_analysis import (
    ConfigurationError, ExercisePhase, ExerciseState, Landmark, Pose, QualityGrade, RepCounter, UserLevel
)

__version__ = "0.1.0"

__all__ = [
    'ConfigurationError',
    'ExercisePhase',
    'ExerciseState',
    'Landmark',
    'Pose',
    'QualityGrade',
    'RepCounter',
    'UserLevel'
]
