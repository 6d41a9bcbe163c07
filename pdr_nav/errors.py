"""
Error and status types shared by the estimators.
"""

from enum import Enum


class PreconditionError(ValueError):
    """Raised when a geodetic conversion is requested before an origin is set."""


class UpdateStatus(Enum):
    """
    Outcome of a measurement update.

    SKIPPED means the call was a defined no-op (missing origin, zero-norm
    accelerometer or gradient, singular innovation covariance) and the
    estimator state is exactly what it was before the call.
    """

    APPLIED = "applied"
    SKIPPED = "skipped"

    def __bool__(self):
        return self is UpdateStatus.APPLIED
