"""
phase_machine.py - Hysteresis state machine that turns a smoothed joint angle
into rep-cycle phases and rep events.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional


logger = logging.getLogger("PhaseStateMachine")


class ExercisePhase(Enum):
    """Where in the rep cycle the subject currently is."""
    UNKNOWN = "unknown"
    TOP = "top"                 # Extended / standing / up
    DESCENDING = "descending"   # Leaving the top towards the bottom
    BOTTOM = "bottom"           # Flexed / down
    ASCENDING = "ascending"     # Leaving the bottom towards the top


TRANSITION_PHASES = (ExercisePhase.DESCENDING, ExercisePhase.ASCENDING)


class PhaseEvent(Enum):
    REP_STARTED = "rep_started"
    REP_COMPLETED = "rep_completed"
    REP_ABANDONED = "rep_abandoned"


@dataclass
class PhaseTransition:
    """Result of feeding one angle to the machine."""
    previous: ExercisePhase
    current: ExercisePhase
    angle: float
    event: Optional[PhaseEvent] = None

    @property
    def changed(self) -> bool:
        return self.previous != self.current


class PhaseStateMachine:
    """
    Drives UNKNOWN -> TOP -> DESCENDING -> BOTTOM -> ASCENDING -> TOP.

    Entering TOP or BOTTOM is immediate once the angle crosses the threshold;
    leaving either requires clearing the threshold by the hysteresis buffer.
    A rep is only completed by the full DESCENDING -> BOTTOM -> ASCENDING -> TOP
    traversal, and at most one transition happens per update.
    """

    def __init__(self, top_min_angle: float, bottom_max_angle: float, hysteresis_buffer: float = 10.0):
        if bottom_max_angle >= top_min_angle:
            raise ValueError(
                f"bottom_max_angle ({bottom_max_angle}) must be below top_min_angle ({top_min_angle})"
            )
        if hysteresis_buffer < 0:
            raise ValueError(f"hysteresis_buffer must be non-negative, got {hysteresis_buffer}")
        self.top_min_angle = top_min_angle
        self.bottom_max_angle = bottom_max_angle
        self.hysteresis_buffer = hysteresis_buffer
        self._phase = ExercisePhase.UNKNOWN

    @property
    def phase(self) -> ExercisePhase:
        return self._phase

    @property
    def in_rep_attempt(self) -> bool:
        return self._phase in TRANSITION_PHASES

    def reset(self) -> None:
        self._phase = ExercisePhase.UNKNOWN

    def update(self, angle: float) -> PhaseTransition:
        top = self.top_min_angle
        bottom = self.bottom_max_angle
        buf = self.hysteresis_buffer
        current = self._phase
        new_phase = current
        event = None

        if current == ExercisePhase.UNKNOWN:
            if angle >= top:
                new_phase = ExercisePhase.TOP
            elif angle <= bottom:
                new_phase = ExercisePhase.BOTTOM
        elif current == ExercisePhase.TOP:
            if angle < top - buf:
                new_phase = ExercisePhase.DESCENDING
                event = PhaseEvent.REP_STARTED
        elif current == ExercisePhase.DESCENDING:
            if angle <= bottom:
                new_phase = ExercisePhase.BOTTOM
            elif angle >= top:
                new_phase = ExercisePhase.TOP
                event = PhaseEvent.REP_ABANDONED
        elif current == ExercisePhase.BOTTOM:
            if angle > bottom + buf:
                new_phase = ExercisePhase.ASCENDING
        elif current == ExercisePhase.ASCENDING:
            if angle >= top:
                new_phase = ExercisePhase.TOP
                event = PhaseEvent.REP_COMPLETED
            elif angle <= bottom:
                new_phase = ExercisePhase.BOTTOM
                event = PhaseEvent.REP_ABANDONED

        if new_phase != current:
            logger.debug(f"Phase changed: {current.value} -> {new_phase.value}, Angle: {angle:.1f}")
            self._phase = new_phase
        return PhaseTransition(previous=current, current=new_phase, angle=angle, event=event)
