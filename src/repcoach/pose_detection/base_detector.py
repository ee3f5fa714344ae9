from abc import ABC, abstractmethod
from typing import Optional

from ..exercise_analysis.landmarks import Pose


class PoseProvider(ABC):
    """Base class for sources that yield one pose result per frame."""

    @abstractmethod
    def is_ready(self) -> bool:
        """
        Whether the provider can deliver frames (model loaded, camera open).

        Returns:
            True once next_pose may be called
        """
        pass

    @abstractmethod
    def next_pose(self) -> Optional[Pose]:
        """
        Read the next frame and estimate its pose.

        Returns:
            Pose for the frame, or None if no person was detected
        """
        pass

    @property
    @abstractmethod
    def exhausted(self) -> bool:
        """True once the source has no more frames (end of video, camera lost)."""
        pass

    def close(self) -> None:
        """Release the underlying resources."""
        pass
