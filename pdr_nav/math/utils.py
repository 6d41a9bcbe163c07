"""
Mathematical utility functions for pedestrian dead reckoning.
"""

import math

from .constants import EARTH_RADIUS_M


def wrap_degrees(angle):
    """
    Wrap an angle in degrees to [0, 360).

    Adding a full turn before the modulo keeps tiny negative values from
    rounding up to exactly 360.
    """
    return (angle + 360.0) % 360.0


def haversine_distance(lat1, lon1, lat2, lon2):
    """
    Calculate the great circle distance between two points on Earth.

    Args:
        lat1, lon1: Latitude and longitude of first point (degrees)
        lat2, lon2: Latitude and longitude of second point (degrees)

    Returns:
        float: Distance in meters
    """
    lat1, lon1, lat2, lon2 = map(math.radians, [lat1, lon1, lat2, lon2])

    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = math.sin(dlat/2)**2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon/2)**2
    c = 2 * math.asin(math.sqrt(a))

    return EARTH_RADIUS_M * c


def calculate_bearing(lat1, lon1, lat2, lon2):
    """
    Calculate the bearing between two GPS coordinates.

    Args:
        lat1, lon1: Starting latitude and longitude (degrees)
        lat2, lon2: Ending latitude and longitude (degrees)

    Returns:
        float: Bearing in radians [0, 2*pi), clockwise from north
    """
    lat1, lon1, lat2, lon2 = map(math.radians, [lat1, lon1, lat2, lon2])

    dlon = lon2 - lon1

    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)

    return math.atan2(y, x) % (2 * math.pi)
