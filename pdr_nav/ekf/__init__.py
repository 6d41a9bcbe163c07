"""
Extended Kalman Filter implementation for step-based dead reckoning.
"""

from .ekf import StepEKF
from .state import PedestrianState
from .models import StepMotionModel, PositionMeasurementModel

__all__ = ["StepEKF", "PedestrianState", "StepMotionModel", "PositionMeasurementModel"]
