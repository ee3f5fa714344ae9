"""
rep_counter.py - Configuration-driven rep counting engine.

One RepCounter tracks one subject doing one exercise. Each call to
process_frame runs the whole pipeline synchronously:

    landmark gate -> joint angle -> smoother -> phase machine
        -> form checks (while a rep attempt is open) -> session aggregator

Frames that cannot be analyzed (no pose, required landmarks not visible,
degenerate joint geometry) produce an unreliable ExerciseState and leave the
session untouched.
"""
import logging
import time
from typing import Callable, List, Optional, Sequence, Union

import numpy as np

from ..feedback.feedback_generator import FeedbackGenerator
from .base_analyzer import AnalysisStatus, BaseExerciseAnalyzer, ExerciseState, UserLevel
from .config_utils import ConfigurationError, ExerciseConfig, build_exercise_config
from .form_checks import CheckContext
from .form_quality import FrameCheckResult, FormQualityEvaluator
from .landmarks import Pose
from .phase_machine import ExercisePhase, PhaseEvent, PhaseStateMachine, PhaseTransition, TRANSITION_PHASES
from .pose_utils import calculate_angle, check_landmark_visibility, is_degenerate, missing_landmarks
from .session import SessionAggregator
from .smoothing import AngleSmoother

# --- Logger Setup ---
logger = logging.getLogger("RepCounter")
if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter('%(asctime)s %(levelname)s %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
logger.setLevel(logging.INFO)
logger.propagate = False

ExerciseChoice = Union[str, ExerciseConfig]


class RepCounter(BaseExerciseAnalyzer):
    """Counts reps and grades their form for a single configured exercise."""

    def __init__(
        self,
        exercise: ExerciseChoice = "squat",
        user_level: UserLevel = UserLevel.BEGINNER,
        clock: Callable[[], float] = time.time,
        config_data: Optional[dict] = None
    ):
        """
        Args:
            exercise: Exercise name from the config file, or a prepared ExerciseConfig
            user_level: Selects per-level thresholds
            clock: Wall-clock source in seconds, used for rep and rest durations
            config_data: Parsed exercise config to resolve names against (defaults to the packaged one)

        Raises:
            ConfigurationError: Unknown exercise or invalid thresholds
        """
        super().__init__(user_level)
        self._clock = clock
        self._config_data = config_data
        self._apply_config(self._resolve_config(exercise, user_level))

    # --- Configuration ---
    def _resolve_config(self, exercise: ExerciseChoice, user_level: UserLevel) -> ExerciseConfig:
        if isinstance(exercise, ExerciseConfig):
            return exercise.validate()
        if isinstance(exercise, str):
            return build_exercise_config(exercise, user_level, config_data=self._config_data)
        raise ConfigurationError(f"Unsupported exercise type: {exercise!r}")

    def _apply_config(self, config: ExerciseConfig) -> None:
        self._config = config
        self.smoother = AngleSmoother(config.smoothing_window)
        self.state_machine = PhaseStateMachine(
            config.top_min_angle, config.bottom_max_angle, config.hysteresis_buffer
        )
        self.evaluator = FormQualityEvaluator(config.form_checks)
        self._session = SessionAggregator(config.message("initial"), config.calories_per_rep)
        self._current_angle = 0.0
        self._attempt_deepest: Optional[float] = None

    def configure(self, exercise: ExerciseChoice, user_level: Optional[UserLevel] = None) -> None:
        """Swap in a new exercise configuration and reset. The old one stays if validation fails."""
        level = user_level if user_level is not None else self.user_level
        config = self._resolve_config(exercise, level)
        self.user_level = level
        self._apply_config(config)
        logger.info(f"Configured for {config.name} ({level.value})")

    def reset(self) -> None:
        self.smoother.clear()
        self.state_machine.reset()
        self.evaluator.discard()
        self._session.reset()
        self._current_angle = 0.0
        self._attempt_deepest = None
        logger.debug(f"{self._config.name} session reset")

    # --- Read-only views ---
    @property
    def config(self) -> ExerciseConfig:
        return self._config

    @property
    def phase(self) -> ExercisePhase:
        return self.state_machine.phase

    @property
    def count(self) -> int:
        return self._session.count

    @property
    def session(self) -> SessionAggregator:
        return self._session

    def get_exercise_name(self) -> str:
        return self._config.name

    def get_required_landmarks(self) -> List[int]:
        return list(self._config.required_landmarks)

    # --- Frame processing ---
    def process_frame(self, pose: Optional[Pose]) -> ExerciseState:
        now = self._clock()
        self._session.mark_frame(now)
        config = self._config

        if pose is None:
            return self._build_state(
                now, status=AnalysisStatus.NO_POSE, feedback=FeedbackGenerator.no_pose()
            )

        confidence = self.calculate_confidence(pose)
        if not check_landmark_visibility(pose, config.required_landmarks, config.visibility_threshold):
            missing = missing_landmarks(pose, config.required_landmarks, config.visibility_threshold)
            logger.debug(f"Landmark gate failed, missing: {missing}")
            return self._build_state(
                now,
                status=AnalysisStatus.PARTIAL_DETECTION,
                feedback=config.message("partial_detection", FeedbackGenerator.partial_detection()),
                error_message=FeedbackGenerator.missing_landmarks(missing),
                confidence=confidence
            )

        joint_angles = self._joint_angles(pose)
        if joint_angles is None:
            logger.debug("Degenerate joint geometry, frame skipped")
            return self._build_state(
                now,
                status=AnalysisStatus.DEGENERATE_GEOMETRY,
                feedback=FeedbackGenerator.degenerate_geometry(),
                error_message=FeedbackGenerator.degenerate_geometry(),
                confidence=confidence
            )

        angle = self.smoother.update(float(np.mean(joint_angles)))
        self._current_angle = angle
        transition = self.state_machine.update(angle)
        self._track_depth(transition.current, angle)
        self._apply_transition(transition, now)

        # The accumulator stays open through BOTTOM, but only moving frames are judged
        frame_result = None
        if self.evaluator.is_open and transition.current in TRANSITION_PHASES:
            context = CheckContext(
                angle=angle,
                deepest_angle=self._attempt_deepest if self._attempt_deepest is not None else angle,
                phase=transition.current,
                joint_angles=tuple(joint_angles),
                visibility_threshold=config.visibility_threshold
            )
            frame_result = self.evaluator.evaluate(pose, context)

        self._session.feedback = self._select_feedback(transition, frame_result)
        violations = []
        if frame_result is not None:
            violations = [c.message for c in self.evaluator.checks if frame_result.results.get(c.name) is False]
        return self._build_state(now, violations=violations, confidence=confidence)

    def _joint_angles(self, pose: Pose) -> Optional[List[float]]:
        """Angles at each configured joint, or None if any joint is degenerate."""
        angles = []
        for a, b, c in self._config.angle_joints:
            if is_degenerate(pose[a], pose[b], pose[c], use_depth=self._config.use_depth):
                return None
            angles.append(calculate_angle(pose[a], pose[b], pose[c], use_depth=self._config.use_depth))
        return angles

    def _track_depth(self, phase: ExercisePhase, angle: float) -> None:
        if phase in (ExercisePhase.TOP, ExercisePhase.UNKNOWN):
            self._attempt_deepest = None
        elif self._attempt_deepest is None or angle < self._attempt_deepest:
            self._attempt_deepest = angle

    def _apply_transition(self, transition: PhaseTransition, now: float) -> None:
        session = self._session
        session.milestone = None
        if transition.event == PhaseEvent.REP_COMPLETED:
            quality = session.complete_rep(self.evaluator.finalize(), now)
            session.tempo_feedback = FeedbackGenerator.tempo(
                quality.duration_seconds, self._config.min_rep_seconds, self._config.max_rep_seconds
            )
            session.milestone = FeedbackGenerator.milestone(
                session.count, self._config.plural_name, self._config.milestone_interval
            )
            if session.milestone:
                logger.info(session.milestone)
        elif transition.event == PhaseEvent.REP_ABANDONED:
            self.evaluator.discard()
            session.abandon_rep(now, returned_to_top=transition.current == ExercisePhase.TOP)

        if transition.changed and transition.current in TRANSITION_PHASES:
            session.start_rep(now)
            if not self.evaluator.is_open:
                self.evaluator.open()

    def _select_feedback(self, transition: PhaseTransition, frame_result: Optional[FrameCheckResult]) -> str:
        """Exactly one message per frame, by event, then live form, then phase."""
        config = self._config
        current = transition.current
        if transition.event == PhaseEvent.REP_COMPLETED:
            return FeedbackGenerator.grade(config.messages, self._session.quality)
        if transition.event == PhaseEvent.REP_ABANDONED:
            key = "abandoned_descent" if current == ExercisePhase.TOP else "abandoned_ascent"
            return config.message(key, self._session.feedback)
        if frame_result is not None:
            if frame_result.failing is not None:
                return frame_result.failing.message
            if transition.changed:
                return config.message(current.value, self._session.feedback)
            return config.message("good_form", self._session.feedback)
        if current == ExercisePhase.UNKNOWN:
            return config.message("start_wait", self._session.feedback)
        if transition.changed and transition.previous == ExercisePhase.UNKNOWN:
            key = "start_top" if current == ExercisePhase.TOP else "start_bottom"
            return config.message(key, self._session.feedback)
        if transition.changed and current == ExercisePhase.BOTTOM:
            return config.message("bottom", self._session.feedback)
        return self._session.feedback

    def _build_state(
        self,
        now: float,
        status: AnalysisStatus = AnalysisStatus.OK,
        feedback: Optional[str] = None,
        error_message: Optional[str] = None,
        violations: Sequence[str] = (),
        confidence: float = 0.0
    ) -> ExerciseState:
        session = self._session
        phase = self.state_machine.phase
        history = list(session.quality_history)
        return ExerciseState(
            name=self._config.name,
            phase=phase,
            phase_label=self._config.phase_label(phase),
            rep_count=session.count,
            current_angle=self._current_angle,
            quality=session.quality,
            feedback=feedback if feedback is not None else session.feedback,
            last_rep_duration_seconds=session.last_rep_duration_seconds,
            rest_seconds=session.rest_seconds(now),
            quality_history=history,
            form_score=history[-1].score if history else None,
            tempo_feedback=session.tempo_feedback,
            milestone=session.milestone if status == AnalysisStatus.OK else None,
            calories=session.calories,
            elapsed_seconds=session.elapsed_seconds(now),
            violations=list(violations),
            confidence=confidence,
            analysis_reliable=status == AnalysisStatus.OK,
            status=status,
            error_message=error_message,
            user_level=self.user_level
        )
