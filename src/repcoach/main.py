import argparse
import logging
import os
import sys

from .exercise_analysis.base_analyzer import UserLevel
from .exercise_analysis.config_utils import (
    available_exercises, build_exercise_config, load_exercise_config
)
from .exercise_analysis.rep_counter import RepCounter


logger = logging.getLogger("repcoach")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="RepCoach - rep counting and form feedback from a camera")
    parser.add_argument(
        "--exercise",
        type=str,
        default="pushup",
        help=f"Type of exercise to analyze ({', '.join(available_exercises())})"
    )
    parser.add_argument(
        "--user_level",
        type=str,
        default="beginner",
        choices=[level.value for level in UserLevel],
        help="User level (beginner/intermediate/advanced)"
    )
    parser.add_argument("--camera", type=int, default=0, help="Camera device ID")
    parser.add_argument("--video", type=str, help="Path to a video file to analyze instead of the camera")
    parser.add_argument("--config", type=str, help="Path to an exercise config JSON file")
    parser.add_argument("--no-voice", action="store_true", help="Disable spoken feedback")
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )
    return parser


def main(argv=None) -> int:
    """Main entry point for RepCoach."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level, format='%(asctime)s %(levelname)s %(message)s')
    logging.getLogger().setLevel(args.log_level)
    for name in ("RepCounter", "ExerciseConfig"):
        logging.getLogger(name).setLevel(args.log_level)

    user_level = UserLevel(args.user_level)
    if args.video and not os.path.isfile(args.video):
        logger.error(f"Video file not found: {args.video}")
        return 1

    try:
        config_data = load_exercise_config(args.config) if args.config else None
        config = build_exercise_config(args.exercise, user_level, config_data=config_data)
    except (OSError, ValueError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    # Imported here so the engine stays usable without camera and speech backends
    from .pose_detection.mediapipe_detector import MediaPipePoseProvider
    from .rendering import OpenCVRenderer
    from .trainer import WorkoutTrainer

    try:
        provider = MediaPipePoseProvider(args.video if args.video else args.camera)
    except RuntimeError as e:
        logger.error(f"Error starting trainer: {e}")
        return 1

    voice = None
    if not args.no_voice:
        from .feedback.voice_feedback import VoiceFeedback
        voice = VoiceFeedback()

    counter = RepCounter(config, user_level=user_level)
    trainer = WorkoutTrainer(counter, provider, renderer=OpenCVRenderer(provider), voice_feedback=voice)
    try:
        state = trainer.run()
    except RuntimeError as e:
        logger.error(f"Error running trainer: {e}")
        return 1

    if state is not None:
        average = counter.session.average_score
        summary = f"{state.rep_count} {config.plural_name}"
        if average is not None:
            summary += f", average form {average:.0f}%"
        summary += f", {state.calories:.1f} kcal"
        print(summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
