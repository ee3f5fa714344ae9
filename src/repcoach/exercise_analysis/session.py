"""
session.py - Counters, quality history and timing for one tracking session.

Only the engine drives this object, from phase events and finalized rep
qualities. Times are wall-clock readings passed in by the caller.
"""
import logging
from typing import List, Optional

import numpy as np

from .form_quality import QualityGrade, RepQuality


logger = logging.getLogger("SessionAggregator")


class SessionAggregator:
    def __init__(self, initial_feedback: str = "", calories_per_rep: float = 0.0):
        self.initial_feedback = initial_feedback
        self.calories_per_rep = calories_per_rep
        self.reset()

    def reset(self) -> None:
        self.count = 0
        self.quality = QualityGrade.NONE
        self.quality_history: List[RepQuality] = []
        self.feedback = self.initial_feedback
        self.tempo_feedback: Optional[str] = None
        self.milestone: Optional[str] = None
        self.last_rep_duration_seconds = 0.0
        self.calories = 0.0
        self._rep_started_at: Optional[float] = None
        self._rest_started_at: Optional[float] = None
        self._session_started_at: Optional[float] = None

    # --- Timing ---
    def mark_frame(self, now: float) -> None:
        """Start the session clock on the first frame seen after construction or reset."""
        if self._session_started_at is None:
            self._session_started_at = now

    def start_rep(self, now: float) -> None:
        """Subject left a rest position; rest ends and the rep clock starts if not already running."""
        if self._rep_started_at is None:
            self._rep_started_at = now
        self._rest_started_at = None

    @property
    def rep_in_progress(self) -> bool:
        return self._rep_started_at is not None

    def rest_seconds(self, now: float) -> float:
        if self._rest_started_at is None:
            return 0.0
        return max(0.0, now - self._rest_started_at)

    def elapsed_seconds(self, now: float) -> float:
        if self._session_started_at is None:
            return 0.0
        return max(0.0, now - self._session_started_at)

    # --- Events ---
    def complete_rep(self, quality: RepQuality, now: float) -> RepQuality:
        started = self._rep_started_at if self._rep_started_at is not None else now
        duration = max(0.0, now - started)
        quality.duration_seconds = duration
        self.count += 1
        self.quality = quality.grade
        self.quality_history.append(quality)
        self.last_rep_duration_seconds = duration
        self.calories = self.count * self.calories_per_rep
        self._rep_started_at = None
        self._rest_started_at = now
        logger.info(f"Rep {self.count} completed: {quality.score}% ({quality.grade.value}), {duration:.2f}s")
        return quality

    def abandon_rep(self, now: float, returned_to_top: bool) -> None:
        """Drop the attempt without touching count or history."""
        logger.info(f"Rep attempt abandoned ({'back at top' if returned_to_top else 'back at bottom'})")
        if returned_to_top:
            self._rep_started_at = None
            self._rest_started_at = now

    @property
    def average_score(self) -> Optional[float]:
        if not self.quality_history:
            return None
        return float(np.mean([q.score for q in self.quality_history]))
