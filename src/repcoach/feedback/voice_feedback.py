import logging
import queue
import threading
import time
from typing import Callable, Optional

import pyttsx3

from ..exercise_analysis.base_analyzer import ExerciseState


logger = logging.getLogger("VoiceFeedback")


class VoiceFeedback:
    """Speaks feedback changes on a background thread."""

    def __init__(
        self,
        rate: int = 150,
        volume: float = 1.0,
        cooldown: float = 4.0,
        clock: Callable[[], float] = time.time,
        engine=None
    ):
        """
        Initialize the voice feedback system.

        Args:
            rate: Speech rate (words per minute)
            volume: Speech volume (0.0 to 1.0)
            cooldown: Minimum seconds between two spoken messages
            clock: Time source for the cooldown
            engine: Prepared text-to-speech engine; a pyttsx3 engine is created if omitted
        """
        self.engine = engine if engine is not None else pyttsx3.init()
        self.engine.setProperty('rate', rate)
        self.engine.setProperty('volume', volume)
        self.cooldown = cooldown
        self._clock = clock

        self.last_feedback_time: Optional[float] = None
        self._last_feedback_message: Optional[str] = None

        self._tts_queue = queue.Queue()
        self._tts_thread = threading.Thread(target=self._tts_worker, daemon=True)
        self._tts_thread.start()

    def generate_feedback(self, exercise_state: ExerciseState) -> Optional[str]:
        """
        Pick the message worth speaking for this frame, if any.

        Milestones are always spoken. Other messages are spoken only when they
        differ from the last spoken one and the cooldown has elapsed.

        Returns:
            Feedback message if any, None otherwise
        """
        now = self._clock()
        if exercise_state.milestone:
            return self._mark_spoken(exercise_state.milestone, now)

        feedback = exercise_state.feedback
        if not feedback or feedback == self._last_feedback_message:
            return None
        if self.last_feedback_time is not None and now - self.last_feedback_time < self.cooldown:
            return None
        return self._mark_spoken(feedback, now)

    def _mark_spoken(self, message: str, now: float) -> str:
        self._last_feedback_message = message
        self.last_feedback_time = now
        return message

    def speak_async(self, message: str) -> None:
        """
        Queue the given message to be spoken by the background TTS thread.

        Args:
            message: Message to speak
        """
        self._tts_queue.put(message)

    def _tts_worker(self):
        while True:
            msg = self._tts_queue.get()
            if msg is None:
                break
            try:
                self.engine.say(msg)
                self.engine.runAndWait()
            except RuntimeError as e:
                logger.warning(f"Speech engine failed: {e}")

    def close(self) -> None:
        self._tts_queue.put(None)
        self._tts_thread.join(timeout=1.0)
