from collections import deque

import numpy as np


class AngleSmoother:
    """Moving average over the most recent raw angle samples."""

    def __init__(self, window_size: int = 5):
        if window_size < 1:
            raise ValueError(f"window_size must be at least 1, got {window_size}")
        self._angle_history = deque(maxlen=window_size)

    def update(self, angle: float) -> float:
        """Push a raw sample (evicting the oldest past capacity) and return the window mean."""
        self._angle_history.append(float(angle))
        return float(np.mean(self._angle_history))

    def __len__(self) -> int:
        return len(self._angle_history)

    def clear(self) -> None:
        self._angle_history.clear()
