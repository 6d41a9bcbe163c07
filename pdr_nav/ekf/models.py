"""
Motion and measurement models for the step EKF.
"""

import numpy as np
import math

from .state import STATE_DIM


class StepMotionModel:
    """
    Step-driven motion model.

    State: [x, y, theta_bias, scale]
    Control: step length (m) and measured heading (rad)
    """

    @staticmethod
    def predict_state(state: np.ndarray, step_length: float, measured_heading: float) -> np.ndarray:
        """
        Advance the position by one step.

        Args:
            state: Current state [x, y, theta_bias, scale]
            step_length: Step length in meters
            measured_heading: Heading in radians, bias not yet applied

        Returns:
            Predicted state vector; bias and scale are carried unchanged
        """
        x, y, theta_bias, scale = state
        theta = measured_heading + theta_bias

        return np.array([
            x + step_length * scale * math.cos(theta),
            y + step_length * scale * math.sin(theta),
            theta_bias,
            scale
        ])

    @staticmethod
    def jacobian_F(state: np.ndarray, step_length: float, measured_heading: float) -> np.ndarray:
        """
        Jacobian of the motion model, evaluated at the pre-step state.

        Args:
            state: State vector the step is applied to
            step_length: Step length in meters
            measured_heading: Heading in radians

        Returns:
            4x4 Jacobian matrix F
        """
        _, _, theta_bias, scale = state
        theta = measured_heading + theta_bias
        cos_t = math.cos(theta)
        sin_t = math.sin(theta)

        F = np.eye(STATE_DIM)
        F[0, 2] = -step_length * scale * sin_t  # dx/dtheta_bias
        F[0, 3] = step_length * cos_t           # dx/dscale
        F[1, 2] = step_length * scale * cos_t   # dy/dtheta_bias
        F[1, 3] = step_length * sin_t           # dy/dscale

        return F

    @staticmethod
    def process_noise_matrix(q: float) -> np.ndarray:
        """Constant per-step process noise q * I."""
        return np.eye(STATE_DIM) * q


class PositionMeasurementModel:
    """
    Absolute fix measurement model - directly observes position.
    """

    H = np.array([[1.0, 0.0, 0.0, 0.0],
                  [0.0, 1.0, 0.0, 0.0]])

    @staticmethod
    def measurement(state: np.ndarray) -> np.ndarray:
        """Expected measurement [x, y]."""
        return np.array([state[0], state[1]])

    @classmethod
    def jacobian_H(cls, state: np.ndarray) -> np.ndarray:
        """2x4 Jacobian of the measurement model."""
        return cls.H.copy()

    @staticmethod
    def measurement_noise_matrix(accuracy: float) -> np.ndarray:
        """Isotropic noise from a 1-sigma accuracy in meters."""
        return np.eye(2) * accuracy**2


def inverse_2x2(S: np.ndarray, threshold: float):
    """
    Closed-form inverse of a 2x2 matrix.

    Returns:
        The inverse, or None if |det S| < threshold
    """
    det = S[0, 0] * S[1, 1] - S[0, 1] * S[1, 0]
    if not abs(det) >= threshold:
        return None

    return np.array([[S[1, 1], -S[0, 1]],
                     [-S[1, 0], S[0, 0]]]) / det
