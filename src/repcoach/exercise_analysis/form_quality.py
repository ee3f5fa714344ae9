"""
form_quality.py - Accumulates per-frame form checks over a rep attempt and
reduces them to a score and a grade when the rep completes.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

import numpy as np

from .form_checks import CATEGORY_PRECEDENCE, CheckCategory, CheckContext, FormCheck
from .landmarks import Pose


logger = logging.getLogger("FormQuality")


class QualityGrade(Enum):
    NONE = ""
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


# (minimum score, grade), checked top to bottom
GRADE_CUTOFFS = (
    (90, QualityGrade.EXCELLENT),
    (75, QualityGrade.GOOD),
    (50, QualityGrade.FAIR),
)


def grade_for_score(score: float) -> QualityGrade:
    for cutoff, grade in GRADE_CUTOFFS:
        if score >= cutoff:
            return grade
    return QualityGrade.POOR


@dataclass
class RepQuality:
    """Quality record for one completed rep."""
    score: int
    grade: QualityGrade
    duration_seconds: float = 0.0
    category_scores: Dict[str, int] = field(default_factory=dict)


@dataclass
class FrameCheckResult:
    results: Dict[str, Optional[bool]]
    failing: Optional[FormCheck] = None

    @property
    def all_passed(self) -> bool:
        return self.failing is None


class FormCheckAccumulator:
    """Pass/total tallies for one rep attempt."""

    def __init__(self):
        self.total_checks = 0  # Frames evaluated
        self.passed: Dict[CheckCategory, int] = {}
        self.evaluated: Dict[CheckCategory, int] = {}

    def record(self, checks: Sequence[FormCheck], results: Dict[str, Optional[bool]]) -> None:
        self.total_checks += 1
        for check in checks:
            outcome = results.get(check.name)
            if outcome is None:
                continue
            self.evaluated[check.category] = self.evaluated.get(check.category, 0) + 1
            if outcome:
                self.passed[check.category] = self.passed.get(check.category, 0) + 1

    def category_scores(self) -> Dict[CheckCategory, int]:
        """``round(100 * passed / evaluated)`` for every category that was judged at least once."""
        return {
            category: int(round(100 * self.passed.get(category, 0) / count))
            for category, count in self.evaluated.items()
            if count > 0
        }

    def score(self) -> int:
        """Unweighted mean of the per-category pass rates; 100 when nothing was judged."""
        rates = [
            self.passed.get(category, 0) / count
            for category, count in self.evaluated.items()
            if count > 0
        ]
        if not rates:
            return 100
        return int(round(100 * float(np.mean(rates))))


class FormQualityEvaluator:
    """Runs an exercise's check set and owns the open accumulator, if any."""

    def __init__(self, checks: Sequence[FormCheck]):
        # Stable sort keeps declaration order within a category
        self.checks: List[FormCheck] = sorted(checks, key=lambda c: CATEGORY_PRECEDENCE[c.category])
        self._accumulator: Optional[FormCheckAccumulator] = None

    @property
    def is_open(self) -> bool:
        return self._accumulator is not None

    @property
    def accumulator(self) -> Optional[FormCheckAccumulator]:
        return self._accumulator

    def open(self) -> None:
        self._accumulator = FormCheckAccumulator()

    def discard(self) -> None:
        if self._accumulator is not None:
            logger.debug(f"Discarding form checks for abandoned rep ({self._accumulator.total_checks} frames)")
        self._accumulator = None

    def evaluate(self, pose: Pose, context: CheckContext) -> FrameCheckResult:
        """Run every check on one frame; tallies go to the open accumulator."""
        results: Dict[str, Optional[bool]] = {}
        failing = None
        for check in self.checks:
            outcome = check.evaluate(pose, context)
            results[check.name] = outcome
            if outcome is False and failing is None:
                failing = check
        if self._accumulator is not None:
            self._accumulator.record(self.checks, results)
        return FrameCheckResult(results=results, failing=failing)

    def finalize(self, duration_seconds: float = 0.0) -> RepQuality:
        """Reduce the open accumulator to a RepQuality and close it."""
        accumulator = self._accumulator or FormCheckAccumulator()
        score = accumulator.score()
        quality = RepQuality(
            score=score,
            grade=grade_for_score(score),
            duration_seconds=duration_seconds,
            category_scores={c.value: s for c, s in accumulator.category_scores().items()}
        )
        logger.debug(f"Rep quality: {quality.score}% ({quality.grade.value}) over {accumulator.total_checks} frames")
        self._accumulator = None
        return quality
