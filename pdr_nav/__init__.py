"""
Pedestrian dead reckoning core.

This package provides platform-independent implementations of:
- Step-driven Extended Kalman Filter with absolute position fixes
- Gradient-descent orientation filter (AHRS)
- Local tangent-plane projection and step detection
"""

__version__ = "1.0.0"
__author__ = "PDR Nav Team"

from .errors import PreconditionError, UpdateStatus
from .ekf import StepEKF, PedestrianState
from .ahrs import MadgwickAHRS
from .sensors import LocalProjection, StepDetector, IMUSample, StepEvent, GPSFix
from .navigator import PedestrianNavigator
from .config import Config, setup_logging

__all__ = [
    "PreconditionError",
    "UpdateStatus",
    "StepEKF",
    "PedestrianState",
    "MadgwickAHRS",
    "LocalProjection",
    "StepDetector",
    "IMUSample",
    "StepEvent",
    "GPSFix",
    "PedestrianNavigator",
    "Config",
    "setup_logging"
]
