import dataclasses
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

from .base_analyzer import UserLevel
from .form_checks import CheckCategory, FormCheck
from .landmarks import NUM_LANDMARKS, landmark_index

logger = logging.getLogger("ExerciseConfig")

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "exercise_config.json")

_REQUIRED_KEYS = (
    "top_min_angle", "bottom_max_angle", "hysteresis_buffer", "visibility_threshold",
    "smoothing_window", "required_landmarks", "angle_joints"
)


class ConfigurationError(ValueError):
    """Raised when an exercise session cannot be built from its configuration."""


def load_exercise_config(config_path: str = None) -> Dict[str, Any]:
    """Load exercise definitions from JSON file."""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


_EXERCISE_CONFIG = load_exercise_config()


def available_exercises(config_data: Optional[Dict[str, Any]] = None) -> Tuple[str, ...]:
    data = config_data if config_data is not None else _EXERCISE_CONFIG
    return tuple(data.get("exercises", {}).keys())


def resolve_level_value(value: Any, user_level: UserLevel) -> Any:
    """Pick the per-level entry out of ``{"beginner": .., "advanced": ..}``, else return the value unchanged."""
    if isinstance(value, dict) and any(level.value in value for level in UserLevel):
        return value.get(user_level.value, next(iter(value.values())))
    return value


@dataclass(frozen=True)
class ExerciseConfig:
    """Fully resolved settings for one exercise session."""
    name: str
    top_min_angle: float
    bottom_max_angle: float
    hysteresis_buffer: float
    required_landmarks: Tuple[int, ...]
    visibility_threshold: float
    smoothing_window: int
    angle_joints: Tuple[Tuple[int, int, int], ...]
    form_checks: Tuple[FormCheck, ...] = ()
    display_name: str = ""
    plural_name: str = ""
    phase_labels: Dict[str, str] = field(default_factory=dict)
    messages: Dict[str, Any] = field(default_factory=dict)
    calories_per_rep: float = 0.0
    min_rep_seconds: float = 1.0
    max_rep_seconds: float = 5.0
    milestone_interval: int = 5
    use_depth: bool = False

    def validate(self) -> "ExerciseConfig":
        if self.bottom_max_angle >= self.top_min_angle:
            raise ConfigurationError(
                f"{self.name}: bottom_max_angle ({self.bottom_max_angle}) must be below "
                f"top_min_angle ({self.top_min_angle})"
            )
        for label, angle in (("top_min_angle", self.top_min_angle), ("bottom_max_angle", self.bottom_max_angle)):
            if not 0 <= angle <= 180:
                raise ConfigurationError(f"{self.name}: {label} must be within [0, 180], got {angle}")
        if self.hysteresis_buffer < 0:
            raise ConfigurationError(f"{self.name}: hysteresis_buffer must be non-negative")
        if self.smoothing_window < 1:
            raise ConfigurationError(f"{self.name}: smoothing_window must be at least 1")
        if not 0.0 <= self.visibility_threshold <= 1.0:
            raise ConfigurationError(f"{self.name}: visibility_threshold must be within [0, 1]")
        if not self.angle_joints:
            raise ConfigurationError(f"{self.name}: at least one angle joint triple is required")
        indices = list(self.required_landmarks) + [i for joint in self.angle_joints for i in joint]
        if any(not 0 <= i < NUM_LANDMARKS for i in indices):
            raise ConfigurationError(f"{self.name}: landmark indices must be within [0, {NUM_LANDMARKS})")
        if any(len(joint) != 3 for joint in self.angle_joints):
            raise ConfigurationError(f"{self.name}: each angle joint needs exactly three landmarks")
        if self.milestone_interval < 0:
            raise ConfigurationError(f"{self.name}: milestone_interval must be non-negative")
        return self

    def with_overrides(self, **overrides) -> "ExerciseConfig":
        """Copy with some fields replaced, validated like a freshly built config."""
        if "required_landmarks" in overrides:
            overrides["required_landmarks"] = _indices(self.name, overrides["required_landmarks"])
        if "angle_joints" in overrides:
            overrides["angle_joints"] = tuple(_indices(self.name, j) for j in overrides["angle_joints"])
        try:
            updated = dataclasses.replace(self, **overrides)
        except TypeError as e:
            raise ConfigurationError(f"{self.name}: {e}") from e
        return updated.validate()

    def message(self, key: str, default: str = "") -> str:
        return self.messages.get(key, default)

    def phase_label(self, phase) -> str:
        return self.phase_labels.get(phase.value, phase.value)


def _indices(exercise: str, keys: Sequence[Any]) -> Tuple[int, ...]:
    try:
        return tuple(landmark_index(k) for k in keys)
    except KeyError as e:
        raise ConfigurationError(f"{exercise}: {e.args[0]}") from e


def _build_form_checks(exercise: str, entries: Sequence[Dict[str, Any]], user_level: UserLevel) -> Tuple[FormCheck, ...]:
    checks = []
    for entry in entries:
        try:
            category = CheckCategory(entry["category"])
            params = {k: resolve_level_value(v, user_level) for k, v in entry.get("params", {}).items()}
            checks.append(FormCheck(
                name=entry["name"],
                category=category,
                message=entry.get("message", f"Check {entry['name']} failed"),
                params=params,
                rule=entry.get("rule")
            ))
        except KeyError as e:
            raise ConfigurationError(f"{exercise}: bad form check {entry!r}: {e.args[0]}") from e
        except ValueError as e:
            raise ConfigurationError(f"{exercise}: bad form check {entry!r}: {e}") from e
    return tuple(checks)


def build_exercise_config(
    exercise_type: str,
    user_level: UserLevel = UserLevel.BEGINNER,
    config_data: Optional[Dict[str, Any]] = None,
    **overrides
) -> ExerciseConfig:
    """
    Resolve one exercise from the loaded JSON into a validated ExerciseConfig.

    Args:
        exercise_type: Key under "exercises" (e.g. "squat")
        user_level: Selects per-level values where the JSON provides them
        config_data: Parsed config; defaults to the packaged exercise_config.json
        **overrides: Field replacements applied after resolution

    Raises:
        ConfigurationError: Unknown exercise or malformed settings
    """
    data = config_data if config_data is not None else _EXERCISE_CONFIG
    exercises = data.get("exercises", {})
    if exercise_type not in exercises:
        raise ConfigurationError(
            f"Unsupported exercise type: {exercise_type} (available: {', '.join(exercises) or 'none'})"
        )
    raw = exercises[exercise_type]
    missing = [k for k in _REQUIRED_KEYS if k not in raw]
    if missing:
        raise ConfigurationError(f"{exercise_type}: missing config keys: {', '.join(missing)}")

    def level(key, default=None):
        return resolve_level_value(raw.get(key, default), user_level)

    tempo = data.get("tempo", {})
    try:
        config = ExerciseConfig(
            name=exercise_type,
            top_min_angle=float(level("top_min_angle")),
            bottom_max_angle=float(level("bottom_max_angle")),
            hysteresis_buffer=float(level("hysteresis_buffer")),
            required_landmarks=_indices(exercise_type, raw["required_landmarks"]),
            visibility_threshold=float(level("visibility_threshold")),
            smoothing_window=int(level("smoothing_window")),
            angle_joints=tuple(_indices(exercise_type, joint) for joint in raw["angle_joints"]),
            form_checks=_build_form_checks(exercise_type, raw.get("form_checks", []), user_level),
            display_name=raw.get("display_name", exercise_type),
            plural_name=raw.get("plural_name", f"{exercise_type}s"),
            phase_labels=dict(raw.get("phase_labels", {})),
            messages=dict(raw.get("messages", {})),
            calories_per_rep=float(level("calories_per_rep", 0.0)),
            min_rep_seconds=float(tempo.get("min_rep_seconds", 1.0)),
            max_rep_seconds=float(tempo.get("max_rep_seconds", 5.0)),
            milestone_interval=int(data.get("milestone_interval", 5)),
            use_depth=bool(raw.get("use_depth", False)),
        )
    except ConfigurationError:
        raise
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{exercise_type}: {e}") from e

    if overrides:
        config = config.with_overrides(**overrides)
    config.validate()
    logger.info(f"Loaded {exercise_type} config for {user_level.value} level "
                f"(top={config.top_min_angle}, bottom={config.bottom_max_angle}, buffer={config.hysteresis_buffer})")
    return config
