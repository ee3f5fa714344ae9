"""
Exercise analysis package for rep counting and form evaluation.
"""

from .base_analyzer import AnalysisStatus, BaseExerciseAnalyzer, ExerciseState, UserLevel
from .config_utils import (
    ConfigurationError, ExerciseConfig, available_exercises, build_exercise_config, load_exercise_config
)
from .form_checks import FORM_CHECK_REGISTRY, CheckCategory, FormCheck, register_form_check
from .form_quality import FormQualityEvaluator, QualityGrade, RepQuality
from .landmarks import Landmark, Pose, PoseLandmark
from .phase_machine import ExercisePhase, PhaseEvent, PhaseStateMachine
from .rep_counter import RepCounter
from .session import SessionAggregator
from .smoothing import AngleSmoother

__all__ = [
    'AnalysisStatus',
    'AngleSmoother',
    'BaseExerciseAnalyzer',
    'CheckCategory',
    'ConfigurationError',
    'ExerciseConfig',
    'ExercisePhase',
    'ExerciseState',
    'FORM_CHECK_REGISTRY',
    'FormCheck',
    'FormQualityEvaluator',
    'Landmark',
    'PhaseEvent',
    'PhaseStateMachine',
    'Pose',
    'PoseLandmark',
    'QualityGrade',
    'RepCounter',
    'RepQuality',
    'SessionAggregator',
    'UserLevel',
    'available_exercises',
    'build_exercise_config',
    'load_exercise_config',
    'register_form_check'
]
