"""
Step detection from accelerometer magnitude peaks.
"""

import numpy as np
import logging
from collections import deque
from typing import Optional

from ..math.constants import (STEP_BUFFER_LENGTH, STEP_MIN_THRESHOLD,
                              STEP_STD_FACTOR, STEP_MIN_INTERVAL_S)

logger = logging.getLogger(__name__)


class StepDetector:
    """
    Adaptive-threshold peak detector.

    A step fires when the current magnitude exceeds the window mean by
    max(min_threshold, std_factor * std) and at least min_interval seconds
    have passed since the previous step.
    """

    def __init__(self,
                 buffer_length: int = STEP_BUFFER_LENGTH,
                 min_threshold: float = STEP_MIN_THRESHOLD,
                 std_factor: float = STEP_STD_FACTOR,
                 min_interval: float = STEP_MIN_INTERVAL_S):
        if buffer_length < 1:
            raise ValueError("buffer_length must be positive")

        self.min_threshold = min_threshold
        self.std_factor = std_factor
        self.min_interval = min_interval

        self.buffer = deque(maxlen=buffer_length)
        self.last_step_time = None
        self.step_count = 0

    def threshold(self) -> Optional[float]:
        """Current detection threshold, or None before any sample."""
        if not self.buffer:
            return None
        window = np.asarray(self.buffer)
        return float(window.mean() + max(self.min_threshold, self.std_factor * window.std()))

    def update(self, accel, timestamp: float) -> bool:
        """
        Feed one accelerometer sample.

        Args:
            accel: Acceleration including gravity [x, y, z] (m/s²)
            timestamp: Sample time in seconds

        Returns:
            True if a step was detected on this sample
        """
        magnitude = float(np.linalg.norm(accel))
        self.buffer.append(magnitude)

        if magnitude <= self.threshold():
            return False

        if (self.last_step_time is not None and
                timestamp - self.last_step_time <= self.min_interval):
            return False

        self.last_step_time = timestamp
        self.step_count += 1
        logger.debug("Step %d detected at t=%.3f (|a|=%.2f)",
                     self.step_count, timestamp, magnitude)
        return True

    def reset(self):
        self.buffer.clear()
        self.last_step_time = None
        self.step_count = 0
