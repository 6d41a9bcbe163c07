"""
Pedestrian state representation for the step EKF.
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional
import time

STATE_DIM = 4


@dataclass
class PedestrianState:
    """
    Represents the pedestrian state for step-based dead reckoning.

    State vector: [x, y, theta_bias, scale]
    - x, y: Position in meters (local east/north frame)
    - theta_bias: Additive heading bias in radians
    - scale: Step-length scale factor (dimensionless)
    """

    # Position (meters)
    x: float = 0.0
    y: float = 0.0

    # Heading bias (radians)
    theta_bias: float = 0.0

    # Step-length scale
    scale: float = 1.0

    # Timestamp
    timestamp: Optional[float] = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = time.time()

    @property
    def state_vector(self) -> np.ndarray:
        """Get state as numpy vector."""
        return np.array([self.x, self.y, self.theta_bias, self.scale], dtype=float)

    @state_vector.setter
    def state_vector(self, vector: np.ndarray):
        """Set state from numpy vector."""
        if len(vector) != STATE_DIM:
            raise ValueError(f"State vector must have {STATE_DIM} elements")

        self.x = float(vector[0])
        self.y = float(vector[1])
        self.theta_bias = float(vector[2])
        self.scale = float(vector[3])

    @classmethod
    def from_vector(cls, vector: np.ndarray, timestamp: Optional[float] = None) -> 'PedestrianState':
        state = cls(timestamp=timestamp)
        state.state_vector = vector
        return state

    @property
    def position(self) -> np.ndarray:
        """Get position as [x, y] vector."""
        return np.array([self.x, self.y])

    def as_dict(self) -> dict:
        return {'x': self.x, 'y': self.y,
                'theta_bias': self.theta_bias, 'scale': self.scale}

    def copy(self) -> 'PedestrianState':
        """Create a copy of the state."""
        return PedestrianState(
            x=self.x,
            y=self.y,
            theta_bias=self.theta_bias,
            scale=self.scale,
            timestamp=self.timestamp
        )

    def __str__(self) -> str:
        return (
            f"PedestrianState(pos=[{self.x:.2f}, {self.y:.2f}], "
            f"theta_bias={self.theta_bias:.3f}, "
            f"scale={self.scale:.3f})"
        )
