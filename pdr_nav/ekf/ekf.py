"""
Extended Kalman Filter for step-based pedestrian dead reckoning.
"""

import numpy as np
import math
import time
import logging
from typing import Optional, Dict, Any, Tuple

from .state import PedestrianState, STATE_DIM
from .models import StepMotionModel, PositionMeasurementModel, inverse_2x2
from ..errors import PreconditionError, UpdateStatus
from ..sensors.gps import LocalProjection
from ..math.constants import (INITIAL_COVARIANCE, PROCESS_NOISE,
                              DEFAULT_GPS_ACCURACY_M, SINGULAR_THRESHOLD)

logger = logging.getLogger(__name__)


class StepEKF:
    """
    Extended Kalman Filter estimating position, heading bias and step scale
    from step events and absolute position fixes.

    The filter is not thread-safe: predict_step and update_gps mutate the
    state and covariance in several statements, so callers must serialize
    them per instance.
    """

    def __init__(self,
                 initial_state: Optional[PedestrianState] = None,
                 initial_covariance: float = INITIAL_COVARIANCE,
                 process_noise: float = PROCESS_NOISE,
                 joseph_form: bool = True,
                 singular_threshold: float = SINGULAR_THRESHOLD):
        """
        Initialize the step EKF.

        Args:
            initial_state: Initial state, [0, 0, 0, 1] if omitted
            initial_covariance: Diagonal value of the initial covariance
            process_noise: Diagonal value of the per-step process noise
            joseph_form: Use the Joseph covariance update instead of (I - KH)P
            singular_threshold: |det S| below which a fix is skipped
        """
        self.initial_state = initial_state or PedestrianState()
        self.initial_covariance = initial_covariance

        # State vector and covariance
        self.state = self.initial_state.state_vector
        self.P = self._initialize_covariance()

        # Models
        self.motion_model = StepMotionModel()
        self.measurement_model = PositionMeasurementModel()
        self.Q = self.motion_model.process_noise_matrix(process_noise)

        self.joseph_form = joseph_form
        self.singular_threshold = singular_threshold

        # Local frame
        self.projection = LocalProjection()

        # Statistics
        self.prediction_count = 0
        self.gps_update_count = 0
        self.gps_skip_count = 0

    def _initialize_covariance(self) -> np.ndarray:
        """Initialize state covariance matrix."""
        return np.eye(STATE_DIM) * self.initial_covariance

    @property
    def origin(self) -> Optional[Tuple[float, float]]:
        return self.projection.origin

    @property
    def has_origin(self) -> bool:
        return self.projection.has_origin

    def set_origin(self, latitude: float, longitude: float):
        """
        Anchor the local frame.

        Setting the same origin again is a no-op. Re-anchoring a running
        filter to a different origin is undefined: the position state would
        silently change meaning. Such a call is refused here rather than
        overwriting the origin; use reset(clear_origin=True) to start over.

        Raises:
            PreconditionError: if a different origin is already set
        """
        if self.projection.has_origin:
            if self.projection.origin == (float(latitude), float(longitude)):
                return
            raise PreconditionError(
                f"Origin already set to {self.projection.origin}; "
                "reset the filter before re-anchoring")

        self.projection.set_origin(latitude, longitude)

    def predict_step(self, step_length: float, measured_heading: float):
        """
        Prediction step driven by one detected step.

        Args:
            step_length: Step length in meters
            measured_heading: Measured heading in radians (bias is added here)
        """
        F = self.motion_model.jacobian_F(self.state, step_length, measured_heading)
        self.state = self.motion_model.predict_state(self.state, step_length, measured_heading)

        # Update covariance: P = F * P * F^T + Q
        self.P = F @ self.P @ F.T + self.Q

        self.prediction_count += 1

    def update_gps(self, latitude: float, longitude: float,
                   accuracy: float = DEFAULT_GPS_ACCURACY_M) -> UpdateStatus:
        """
        Correction step with an absolute position fix.

        Args:
            latitude: Fix latitude (degrees)
            longitude: Fix longitude (degrees)
            accuracy: Isotropic 1-sigma accuracy (meters)

        Returns:
            UpdateStatus.SKIPPED (state untouched) when no origin is set, the
            accuracy is not finite or the innovation covariance is singular;
            UpdateStatus.APPLIED otherwise
        """
        if not self.projection.has_origin:
            return self._skip_gps("origin not set")

        if not math.isfinite(accuracy):
            return self._skip_gps(f"non-finite accuracy {accuracy}")

        z = np.array(self.projection.geodetic_to_local(latitude, longitude))

        # Innovation (measurement residual)
        y = z - self.measurement_model.measurement(self.state)

        H = self.measurement_model.jacobian_H(self.state)
        R = self.measurement_model.measurement_noise_matrix(accuracy)

        # Innovation covariance
        S = H @ self.P @ H.T + R

        S_inv = inverse_2x2(S, self.singular_threshold)
        if S_inv is None:
            return self._skip_gps("singular innovation covariance")

        # Kalman gain
        K = self.P @ H.T @ S_inv

        # Update state and covariance
        self.state = self.state + K @ y
        I_KH = np.eye(STATE_DIM) - K @ H
        if self.joseph_form:
            self.P = I_KH @ self.P @ I_KH.T + K @ R @ K.T
        else:
            self.P = I_KH @ self.P

        self.gps_update_count += 1

        return UpdateStatus.APPLIED

    def _skip_gps(self, reason: str) -> UpdateStatus:
        self.gps_skip_count += 1
        logger.debug("GPS update skipped: %s", reason)
        return UpdateStatus.SKIPPED

    def get_state_meters(self) -> Dict[str, float]:
        """Current state as {x, y, theta_bias, scale}."""
        x, y, theta_bias, scale = self.state
        return {'x': float(x), 'y': float(y),
                'theta_bias': float(theta_bias), 'scale': float(scale)}

    def get_lat_lon(self) -> Optional[Tuple[float, float]]:
        """Fused position in degrees, or None if no origin is set."""
        if not self.projection.has_origin:
            return None
        return self.projection.local_to_geodetic(self.state[0], self.state[1])

    def get_current_state(self) -> PedestrianState:
        """Get current estimated state."""
        return PedestrianState.from_vector(self.state, timestamp=time.time())

    def get_uncertainty(self) -> np.ndarray:
        """Get current state uncertainty (1-sigma per state)."""
        return np.sqrt(np.clip(np.diag(self.P), 0.0, None))

    def get_position_uncertainty(self) -> float:
        """Get position uncertainty (2D RMS error)."""
        pos_var = self.P[0, 0] + self.P[1, 1]
        return float(np.sqrt(max(pos_var, 0.0)))

    def reset(self, new_state: Optional[PedestrianState] = None, clear_origin: bool = False):
        """Reset filter state and covariance, optionally dropping the origin."""
        if new_state is not None:
            self.initial_state = new_state
        self.state = self.initial_state.state_vector
        self.P = self._initialize_covariance()

        if clear_origin:
            self.projection.clear_origin()

        # Reset counters
        self.prediction_count = 0
        self.gps_update_count = 0
        self.gps_skip_count = 0

    def get_statistics(self) -> Dict[str, Any]:
        """Get filter statistics."""
        return {
            'predictions': self.prediction_count,
            'gps_updates': self.gps_update_count,
            'gps_skipped': self.gps_skip_count,
            'position_uncertainty': self.get_position_uncertainty(),
            'state_uncertainty': self.get_uncertainty().tolist()
        }
