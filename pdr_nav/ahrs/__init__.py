"""
Orientation estimation from gyroscope and accelerometer samples.
"""

from .madgwick import MadgwickAHRS

__all__ = ["MadgwickAHRS"]
