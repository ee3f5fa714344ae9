import logging
import time
from typing import Optional, Union

import cv2
import mediapipe as mp
import numpy as np

from ..exercise_analysis.landmarks import Pose
from .base_detector import PoseProvider


logger = logging.getLogger("MediaPipePoseProvider")


class MediaPipePoseProvider(PoseProvider):
    """MediaPipe implementation of pose detection over an OpenCV capture."""

    def __init__(
        self,
        source: Union[int, str] = 0,
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
        model_complexity: int = 1
    ):
        """
        Initialize the MediaPipe pose detector and open the video source.

        Args:
            source: Camera index or path to a video file
            min_detection_confidence: Minimum confidence for pose detection
            min_tracking_confidence: Minimum confidence for pose tracking
            model_complexity: Pose Complexity for pose landmark model (0, 1 or 2)

        Raises:
            RuntimeError: The source cannot be opened
        """
        self.mp_pose = mp.solutions.pose
        self.pose = self.mp_pose.Pose(
            static_image_mode=False,
            model_complexity=model_complexity,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence
        )
        self.cap = cv2.VideoCapture(source)
        if not self.cap.isOpened():
            self.pose.close()
            raise RuntimeError(f"Failed to open video source: {source}")
        self.last_frame: Optional[np.ndarray] = None
        self.last_results = None
        self._exhausted = False
        logger.info(f"Pose provider ready on source {source}")

    def is_ready(self) -> bool:
        return self.cap is not None and self.cap.isOpened() and not self._exhausted

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    def next_pose(self) -> Optional[Pose]:
        ret, frame = self.cap.read()
        if not ret:
            self._exhausted = True
            return None
        self.last_frame = frame

        # Convert BGR to RGB
        frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        results = self.pose.process(frame_rgb)
        self.last_results = results

        if not results.pose_landmarks:
            return None
        return Pose.from_mediapipe(results.pose_landmarks.landmark, timestamp=time.time())

    def close(self) -> None:
        if self.cap is not None:
            self.cap.release()
            self.cap = None
        self.pose.close()
