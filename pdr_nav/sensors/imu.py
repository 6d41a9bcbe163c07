"""
Inertial sensor records consumed by the orientation filter and step detector.
"""

import numpy as np
import time
from dataclasses import dataclass
from typing import Optional


@dataclass
class IMUSample:
    """One motion sample as delivered by the device."""

    # Accelerometer including gravity (m/s²)
    accel_x: float
    accel_y: float
    accel_z: float

    # Gyroscope (deg/s)
    gyro_x: float = 0.0
    gyro_y: float = 0.0
    gyro_z: float = 0.0

    # Magnetometer (accepted, not used for heading correction)
    mag: Optional[np.ndarray] = None

    # Timestamp (seconds)
    timestamp: Optional[float] = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = time.time()

    @property
    def acceleration(self) -> np.ndarray:
        """Get acceleration as numpy array."""
        return np.array([self.accel_x, self.accel_y, self.accel_z])

    @property
    def angular_velocity(self) -> np.ndarray:
        """Get angular velocity (deg/s) as numpy array."""
        return np.array([self.gyro_x, self.gyro_y, self.gyro_z])

    @property
    def accel_magnitude(self) -> float:
        return float(np.linalg.norm(self.acceleration))


@dataclass
class StepEvent:
    """A detected step: length in meters, heading in radians (bias not applied)."""

    length_m: float
    heading_rad: float
    timestamp: Optional[float] = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = time.time()
