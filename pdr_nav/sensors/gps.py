"""
Absolute position fixes and the local tangent-plane projection.
"""

import math
import time
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from ..errors import PreconditionError
from ..math.constants import EARTH_RADIUS_M

logger = logging.getLogger(__name__)


@dataclass
class GPSFix:
    """Absolute position fix with isotropic 1-sigma accuracy."""

    latitude: float
    longitude: float
    accuracy: Optional[float] = None  # meters; None lets the consumer pick a default

    timestamp: Optional[float] = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = time.time()

    @property
    def is_valid(self) -> bool:
        """Check if the fix can be used as a measurement."""
        return (math.isfinite(self.latitude) and
                math.isfinite(self.longitude) and
                -90 <= self.latitude <= 90 and
                -180 <= self.longitude <= 180)


class LocalProjection:
    """
    Equirectangular projection between geodetic coordinates and a local
    east/north plane anchored at an origin.

    The approximation error grows with distance from the origin and with
    the origin's absolute latitude; it is meant for walks of a few
    kilometers at most.
    """

    def __init__(self, origin_lat: Optional[float] = None,
                 origin_lon: Optional[float] = None):
        self.origin_lat = None
        self.origin_lon = None

        if origin_lat is not None and origin_lon is not None:
            self.set_origin(origin_lat, origin_lon)

    @property
    def has_origin(self) -> bool:
        return self.origin_lat is not None and self.origin_lon is not None

    @property
    def origin(self) -> Optional[Tuple[float, float]]:
        if not self.has_origin:
            return None
        return (self.origin_lat, self.origin_lon)

    def set_origin(self, latitude: float, longitude: float):
        """
        Set the anchor of the local frame.

        Args:
            latitude: Origin latitude (degrees)
            longitude: Origin longitude (degrees)
        """
        self.origin_lat = float(latitude)
        self.origin_lon = float(longitude)

        logger.info("Local origin set to: %.6f, %.6f", latitude, longitude)

    def clear_origin(self):
        self.origin_lat = None
        self.origin_lon = None

    def _require_origin(self):
        if not self.has_origin:
            raise PreconditionError("Origin not set")

    def geodetic_to_local(self, latitude: float, longitude: float) -> Tuple[float, float]:
        """
        Convert geodetic coordinates to local east/north meters.

        Args:
            latitude: Latitude in degrees
            longitude: Longitude in degrees

        Returns:
            (x, y) in meters from the origin

        Raises:
            PreconditionError: if no origin is set
        """
        self._require_origin()

        d_lat = math.radians(latitude - self.origin_lat)
        d_lon = math.radians(longitude - self.origin_lon)

        x = d_lon * EARTH_RADIUS_M * math.cos(math.radians(self.origin_lat))  # east
        y = d_lat * EARTH_RADIUS_M  # north

        return (x, y)

    def local_to_geodetic(self, x: float, y: float) -> Tuple[float, float]:
        """
        Convert local east/north meters back to geodetic coordinates.

        Args:
            x: East offset in meters from the origin
            y: North offset in meters from the origin

        Returns:
            (latitude, longitude) in degrees

        Raises:
            PreconditionError: if no origin is set
        """
        self._require_origin()

        d_lat = y / EARTH_RADIUS_M
        d_lon = x / (EARTH_RADIUS_M * math.cos(math.radians(self.origin_lat)))

        return (self.origin_lat + math.degrees(d_lat),
                self.origin_lon + math.degrees(d_lon))
