"""
Sensor input records, projection and step detection.
"""

from .imu import IMUSample, StepEvent
from .gps import GPSFix, LocalProjection
from .step_detector import StepDetector

__all__ = ["IMUSample", "StepEvent", "GPSFix", "LocalProjection", "StepDetector"]
