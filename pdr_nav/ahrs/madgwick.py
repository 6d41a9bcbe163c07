"""
Gradient-descent orientation filter (Madgwick, gyroscope + accelerometer).
"""

import numpy as np
import math
import logging
from typing import Tuple

from ..errors import UpdateStatus
from ..math.constants import AHRS_BETA, AHRS_SAMPLE_FREQ_HZ, DEG_TO_RAD, RAD_TO_DEG
from ..math.utils import wrap_degrees

logger = logging.getLogger(__name__)


class MadgwickAHRS:
    """
    Orientation quaternion [q0, q1, q2, q3] (scalar first) driven by gyroscope
    rates and corrected towards the measured gravity direction.

    The integration step is 1 / sample_freq on every call; the actual time
    between calls is never measured.
    """

    def __init__(self, beta: float = AHRS_BETA, sample_freq: float = AHRS_SAMPLE_FREQ_HZ):
        """
        Args:
            beta: Gradient-descent gain
            sample_freq: Assumed sample frequency (Hz)
        """
        if sample_freq <= 0:
            raise ValueError("sample_freq must be positive")

        self.beta = beta
        self.sample_freq = sample_freq
        self.q = np.array([1.0, 0.0, 0.0, 0.0])

        self.update_count = 0
        self.skipped_count = 0

    @property
    def quaternion(self) -> np.ndarray:
        """Current orientation as a copy of [q0, q1, q2, q3]."""
        return self.q.copy()

    @staticmethod
    def gravity_gradient(q: np.ndarray, accel: np.ndarray) -> np.ndarray:
        """
        Gradient of the gravity objective with respect to q.

        Args:
            q: Quaternion [q0, q1, q2, q3]
            accel: Normalized accelerometer reading [ax, ay, az]

        Returns:
            Unnormalized gradient [s0, s1, s2, s3]
        """
        q0, q1, q2, q3 = q
        ax, ay, az = accel

        q0q0, q1q1, q2q2, q3q3 = q0*q0, q1*q1, q2*q2, q3*q3

        s0 = 4*q0*q2q2 + 2*q2*ax + 4*q0*q1q1 - 2*q1*ay
        s1 = (4*q1*q3q3 - 2*q3*ax + 4*q0q0*q1 - 2*q0*ay - 4*q1
              + 8*q1*q1q1 + 8*q1*q2q2 + 4*q1*az)
        s2 = (4*q0q0*q2 + 2*q0*ax + 4*q2*q3q3 - 2*q3*ay - 4*q2
              + 8*q2*q1q1 + 8*q2*q2q2 + 4*q2*az)
        s3 = 4*q1q1*q3 - 2*q1*ax + 4*q2q2*q3 - 2*q2*ay

        return np.array([s0, s1, s2, s3])

    @staticmethod
    def quaternion_rate(q: np.ndarray, gyro: np.ndarray) -> np.ndarray:
        """Kinematic derivative 0.5 * q ⊗ [0, gx, gy, gz] (gyro in rad/s)."""
        q0, q1, q2, q3 = q
        gx, gy, gz = gyro

        return 0.5 * np.array([
            -q1*gx - q2*gy - q3*gz,
            q0*gx + q2*gz - q3*gy,
            q0*gy - q1*gz + q3*gx,
            q0*gz + q1*gy - q2*gx
        ])

    def update(self, gyro, accel, mag=None) -> UpdateStatus:
        """
        Fuse one gyroscope/accelerometer sample.

        Args:
            gyro: Angular rate [x, y, z] in deg/s
            accel: Acceleration [x, y, z] in m/s²
            mag: Optional magnetometer [x, y, z]; accepted but not used

        Returns:
            UpdateStatus.SKIPPED if the accelerometer or the gradient has
            zero norm (orientation unchanged), APPLIED otherwise
        """
        gyro = np.asarray(gyro, dtype=float) * DEG_TO_RAD
        accel = np.asarray(accel, dtype=float)

        norm = np.linalg.norm(accel)
        if norm == 0:
            return self._skip("zero accelerometer norm")
        accel = accel / norm

        gradient = self.gravity_gradient(self.q, accel)
        norm = np.linalg.norm(gradient)
        if norm == 0:
            return self._skip("zero gradient norm")

        # Corrective step towards measured gravity
        q = self.q - self.beta * gradient / norm

        # Integrate rate of change at the fixed sample period
        q = q + self.quaternion_rate(q, gyro) / self.sample_freq

        self.q = q / np.linalg.norm(q)
        self.update_count += 1

        return UpdateStatus.APPLIED

    def _skip(self, reason: str) -> UpdateStatus:
        self.skipped_count += 1
        logger.debug("AHRS update skipped: %s", reason)
        return UpdateStatus.SKIPPED

    def get_euler(self) -> Tuple[float, float, float]:
        """
        Get orientation as Euler angles.

        Returns:
            (yaw, pitch, roll) in degrees, yaw in [0, 360)
        """
        q0, q1, q2, q3 = self.q

        yaw = math.atan2(2*(q1*q2 + q0*q3), q0*q0 + q1*q1 - q2*q2 - q3*q3) * RAD_TO_DEG
        pitch = math.asin(max(-1.0, min(1.0, 2*(q0*q2 - q1*q3)))) * RAD_TO_DEG
        roll = math.atan2(2*(q0*q1 + q2*q3), q0*q0 - q1*q1 - q2*q2 + q3*q3) * RAD_TO_DEG

        return (wrap_degrees(yaw), pitch, roll)

    def reset(self):
        """Return to the identity orientation."""
        self.q = np.array([1.0, 0.0, 0.0, 0.0])
        self.update_count = 0
        self.skipped_count = 0

    def get_statistics(self) -> dict:
        yaw, pitch, roll = self.get_euler()
        return {
            'updates': self.update_count,
            'skipped': self.skipped_count,
            'quaternion': self.q.tolist(),
            'euler_deg': {'yaw': yaw, 'pitch': pitch, 'roll': roll}
        }
