"""
Mathematical utilities for pedestrian dead reckoning calculations.
"""

from .utils import wrap_degrees, haversine_distance, calculate_bearing
from .constants import *

__all__ = ["wrap_degrees", "haversine_distance", "calculate_bearing"]
