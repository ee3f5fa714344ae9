import logging
import time
from typing import Optional

from .exercise_analysis.base_analyzer import ExerciseState
from .exercise_analysis.rep_counter import RepCounter
from .feedback.voice_feedback import VoiceFeedback
from .pose_detection.base_detector import PoseProvider
from .rendering import Renderer


logger = logging.getLogger("WorkoutTrainer")


class WorkoutTrainer:
    """Feeds poses from a provider through the rep counter, one frame at a time."""

    def __init__(
        self,
        counter: RepCounter,
        provider: PoseProvider,
        renderer: Optional[Renderer] = None,
        voice_feedback: Optional[VoiceFeedback] = None,
        ready_timeout: float = 10.0,
        poll_interval: float = 0.1
    ):
        """
        Args:
            counter: Engine for the exercise being tracked
            provider: Source of poses
            renderer: Optional display for each processed frame
            voice_feedback: Optional spoken feedback
            ready_timeout: Seconds to wait for the provider before giving up
            poll_interval: Seconds between readiness checks
        """
        self.counter = counter
        self.provider = provider
        self.renderer = renderer
        self.voice_feedback = voice_feedback
        self.ready_timeout = ready_timeout
        self.poll_interval = poll_interval
        self.is_running = False
        self.frames_processed = 0
        self.last_state: Optional[ExerciseState] = None

    def wait_until_ready(self) -> bool:
        deadline = time.monotonic() + self.ready_timeout
        while not self.provider.is_ready():
            if self.provider.exhausted or time.monotonic() >= deadline:
                return False
            time.sleep(self.poll_interval)
        return True

    def step(self) -> Optional[ExerciseState]:
        """Process one frame. Returns None once the provider is exhausted."""
        pose = self.provider.next_pose()
        if pose is None and self.provider.exhausted:
            return None
        state = self.counter.process_frame(pose)
        self.frames_processed += 1
        self.last_state = state

        if self.voice_feedback is not None:
            message = self.voice_feedback.generate_feedback(state)
            if message:
                self.voice_feedback.speak_async(message)
        if self.renderer is not None:
            self.renderer.draw(pose, state)
        return state

    def run(self, max_frames: Optional[int] = None) -> Optional[ExerciseState]:
        """
        Run the frame loop until the source ends, the renderer asks to stop,
        or ``max_frames`` frames have been processed.

        Returns:
            The last ExerciseState produced, if any

        Raises:
            RuntimeError: The provider never became ready
        """
        if not self.wait_until_ready():
            raise RuntimeError("Pose provider did not become ready")
        logger.info(f"Tracking {self.counter.get_exercise_name()} ({self.counter.user_level.value})")
        self.is_running = True
        try:
            while self.is_running:
                if max_frames is not None and self.frames_processed >= max_frames:
                    break
                if self.step() is None:
                    break
                if self.renderer is not None and self.renderer.should_stop():
                    break
        except KeyboardInterrupt:
            logger.info("KeyboardInterrupt received. Exiting gracefully...")
        finally:
            self.stop()
        logger.info(f"Session finished: {self.counter.count} reps over {self.frames_processed} frames")
        return self.last_state

    def stop(self) -> None:
        """Stop the trainer and release resources."""
        self.is_running = False
        self.provider.close()
        if self.renderer is not None:
            self.renderer.close()
        if self.voice_feedback is not None:
            self.voice_feedback.close()
