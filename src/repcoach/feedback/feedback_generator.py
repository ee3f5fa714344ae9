from typing import Optional


# --- Feedback Templates ---
class FeedbackGenerator:
    @staticmethod
    def no_pose():
        return "No person detected. Step into the camera view."

    @staticmethod
    def partial_detection():
        return "Cannot detect full body. Please adjust position."

    @staticmethod
    def degenerate_geometry():
        return "Joints overlap in the image. Please turn to the side."

    @staticmethod
    def missing_landmarks(missing):
        return f"Missing landmarks: {', '.join(missing)}"

    @staticmethod
    def grade(messages: dict, grade) -> str:
        grades = messages.get("grades", {})
        return grades.get(grade.value, f"Rep complete: {grade.value}")

    @staticmethod
    def tempo(duration_seconds: float, min_seconds: float = 1.0, max_seconds: float = 5.0) -> str:
        if duration_seconds < min_seconds:
            return "Too fast! Slow down for better form."
        if duration_seconds > max_seconds:
            return "Good control, but try to maintain momentum."
        return "Good pace! Keep it up."

    @staticmethod
    def milestone(count: int, exercise_plural: str, interval: int = 5) -> Optional[str]:
        if interval <= 0 or count <= 0 or count % interval != 0:
            return None
        return f"{count} {exercise_plural} completed! Keep going!"
