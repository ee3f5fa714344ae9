from abc import ABC, abstractmethod
from typing import Optional

import cv2
import numpy as np

from .exercise_analysis.base_analyzer import ExerciseState
from .exercise_analysis.landmarks import Pose

WINDOW_NAME = "RepCoach"

GREEN = (0, 255, 0)
RED = (0, 0, 255)
YELLOW = (0, 200, 255)


class Renderer(ABC):
    """Draws the engine output for one frame."""

    @abstractmethod
    def draw(self, pose: Optional[Pose], state: ExerciseState) -> None:
        pass

    def should_stop(self) -> bool:
        return False

    def close(self) -> None:
        pass


class OpenCVRenderer(Renderer):
    """Overlays count, phase, angle, quality and feedback on the provider's last frame."""

    def __init__(self, provider, window_name: str = WINDOW_NAME, min_visibility: float = 0.5):
        """
        Args:
            provider: Pose provider exposing ``last_frame`` (BGR image)
            window_name: Title of the OpenCV window
            min_visibility: Landmarks below this visibility are not drawn
        """
        self.provider = provider
        self.window_name = window_name
        self.min_visibility = min_visibility
        self._stop_requested = False

    def draw(self, pose: Optional[Pose], state: ExerciseState) -> None:
        frame = getattr(self.provider, "last_frame", None)
        if frame is None:
            return
        frame = frame.copy()
        self._draw_landmarks(frame, pose)

        if not state.analysis_reliable:
            self._put(frame, state.feedback, (10, 30), RED)
            if state.error_message:
                self._put(frame, state.error_message, (10, 60), RED, scale=0.5)
        else:
            self._put(frame, f"Exercise: {state.name}", (10, 30))
            self._put(frame, f"Phase: {state.phase_label}", (10, 60))
            self._put(frame, f"Reps: {state.rep_count}", (10, 90))
            self._put(frame, f"Angle: {state.current_angle:.0f}", (10, 120))
            if state.quality.value:
                self._put(frame, f"Last rep: {state.quality.value} ({state.form_score}%)", (10, 150))
            color = RED if state.violations else GREEN
            self._put(frame, state.feedback, (10, 180), color)
            if state.tempo_feedback:
                self._put(frame, state.tempo_feedback, (10, 210), YELLOW)
            if state.milestone:
                self._put(frame, state.milestone, (10, 240), YELLOW, scale=0.7)

        cv2.imshow(self.window_name, frame)
        if cv2.waitKey(1) & 0xFF == ord('q'):
            self._stop_requested = True

    def _draw_landmarks(self, frame: np.ndarray, pose: Optional[Pose]) -> None:
        if pose is None:
            return
        height, width = frame.shape[:2]
        for landmark in pose:
            if landmark.visibility < self.min_visibility:
                continue
            cv2.circle(frame, (int(landmark.x * width), int(landmark.y * height)), 5, GREEN, -1)

    @staticmethod
    def _put(frame: np.ndarray, text: str, org, color=GREEN, scale: float = 0.6) -> None:
        cv2.putText(frame, text, org, cv2.FONT_HERSHEY_SIMPLEX, scale, color, 2)

    def should_stop(self) -> bool:
        return self._stop_requested

    def close(self) -> None:
        cv2.destroyAllWindows()
