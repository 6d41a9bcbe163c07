"""
Pedestrian navigator: wires step detection, orientation and the step EKF.
"""

import threading
import time
import logging
from collections import deque
from typing import Optional, Tuple

from .ahrs import MadgwickAHRS
from .config import Config
from .ekf import StepEKF
from .errors import UpdateStatus
from .math.constants import DEG_TO_RAD
from .math.utils import haversine_distance, wrap_degrees
from .sensors import IMUSample, StepEvent, GPSFix, StepDetector

logger = logging.getLogger(__name__)


class PedestrianNavigator:
    """
    Owns one estimator set and funnels every input through a single lock.

    Motion samples, step events and fixes may arrive from independent
    threads; the estimators themselves are not thread-safe.
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or Config()

        ahrs_cfg = self.config.ahrs
        ekf_cfg = self.config.ekf
        step_cfg = self.config.step

        self.ahrs = MadgwickAHRS(beta=ahrs_cfg["beta"],
                                 sample_freq=ahrs_cfg["sample_freq_hz"])
        self.ekf = StepEKF(initial_covariance=ekf_cfg["initial_covariance"],
                           process_noise=ekf_cfg["process_noise"],
                           joseph_form=ekf_cfg["joseph_form"],
                           singular_threshold=ekf_cfg["singular_threshold"])
        self.step_detector = StepDetector(buffer_length=step_cfg["buffer_length"],
                                          min_threshold=step_cfg["min_threshold"],
                                          std_factor=step_cfg["std_factor"],
                                          min_interval=step_cfg["min_interval_s"])

        self._lock = threading.Lock()

        self.anchor = None
        self.heading_deg = None

        # Tracks of (lat, lon)
        self.fused_track = deque(maxlen=self.config.max_history)
        self.gps_track = deque(maxlen=self.config.max_history)

        self.step_count = 0
        self.last_step_time = None
        self.last_fix_time = None

    def set_anchor(self, latitude: float, longitude: float):
        """
        Register a known starting point.

        If no origin exists yet, the anchor becomes the origin and the local
        position is reset to (0, 0). Later fixes never replace it.
        """
        with self._lock:
            self.anchor = (latitude, longitude)
            if not self.ekf.has_origin:
                self.ekf.set_origin(latitude, longitude)
                self.ekf.state[0] = 0.0
                self.ekf.state[1] = 0.0
                logger.info("Origin taken from anchor")

    def process_motion(self, sample: IMUSample) -> Optional[StepEvent]:
        """
        Feed one motion sample: orientation update, heading refresh and
        step detection.

        Returns:
            The StepEvent applied if a step was detected, otherwise None
        """
        with self._lock:
            self.ahrs.update(sample.angular_velocity, sample.acceleration, sample.mag)
            self.heading_deg = self.ahrs.get_euler()[0]

            if self.step_detector.update(sample.acceleration, sample.timestamp):
                return self._step(timestamp=sample.timestamp)

        return None

    def process_device_orientation(self, alpha_deg: float):
        """Fallback heading from a platform orientation angle."""
        with self._lock:
            self.heading_deg = wrap_degrees(360.0 - alpha_deg)

    def on_step(self, length: Optional[float] = None,
                timestamp: Optional[float] = None) -> StepEvent:
        """Apply a step detected elsewhere, using the current heading."""
        with self._lock:
            return self._step(length, timestamp)

    def _step(self, length: Optional[float] = None,
              timestamp: Optional[float] = None) -> StepEvent:
        event = StepEvent(
            length_m=self.config.step_length if length is None else length,
            heading_rad=(self.heading_deg or 0.0) * DEG_TO_RAD,
            timestamp=timestamp
        )

        self.ekf.predict_step(event.length_m, event.heading_rad)
        self.step_count += 1
        self.last_step_time = event.timestamp

        position = self.ekf.get_lat_lon()
        if position is not None:
            self.fused_track.append(position)

        logger.debug("step#%d heading=%.1fdeg pos=%s", self.step_count,
                     self.heading_deg or 0.0, position)
        return event

    def process_fix(self, fix: GPSFix) -> UpdateStatus:
        """
        Apply an absolute fix. Without an origin, the anchor (if any) or
        else the fix itself becomes the origin first. A fix without an
        accuracy uses the configured default.
        """
        if not fix.is_valid:
            logger.warning("Ignoring invalid fix %.6f, %.6f", fix.latitude, fix.longitude)
            return UpdateStatus.SKIPPED

        accuracy = fix.accuracy
        if accuracy is None:
            accuracy = self.config.default_gps_accuracy

        with self._lock:
            if not self.ekf.has_origin:
                if self.anchor is not None:
                    self.ekf.set_origin(*self.anchor)
                    logger.info("Origin taken from anchor")
                else:
                    self.ekf.set_origin(fix.latitude, fix.longitude)
                    logger.info("Origin taken from first fix")

            status = self.ekf.update_gps(fix.latitude, fix.longitude, accuracy)
            self.last_fix_time = fix.timestamp

            fused = self.ekf.get_lat_lon()
            self.gps_track.append((fix.latitude, fix.longitude))
            self.fused_track.append(fused)

        logger.info("GPS obs: %.6f,%.6f acc=%.1f -> fused %.6f,%.6f (%s)",
                    fix.latitude, fix.longitude, accuracy,
                    fused[0], fused[1], status.value)
        return status

    def distance_to(self, latitude: float, longitude: float) -> Optional[float]:
        """Great-circle distance from the fused position to a target, in meters."""
        with self._lock:
            position = self.ekf.get_lat_lon()
        if position is None:
            return None
        return haversine_distance(position[0], position[1], latitude, longitude)

    def get_current_position(self) -> dict:
        """Snapshot of the fused position for external consumers."""
        with self._lock:
            state = self.ekf.get_state_meters()
            lat_lon = self.ekf.get_lat_lon()
            uncertainty = self.ekf.get_position_uncertainty()
            yaw, pitch, roll = self.ahrs.get_euler()
            stats = self.ekf.get_statistics()

        now = time.time()
        global_position = None
        if lat_lon is not None:
            global_position = {'latitude': lat_lon[0], 'longitude': lat_lon[1]}

        return {
            'timestamp': now,
            'local_position': {'x': state['x'], 'y': state['y']},
            'global_position': global_position,
            'state': state,
            'heading_deg': self.heading_deg,
            'orientation_deg': {'yaw': yaw, 'pitch': pitch, 'roll': roll},
            'step_count': self.step_count,
            'uncertainty': uncertainty,
            'gps_age': now - self.last_fix_time if self.last_fix_time is not None else None,
            'statistics': stats
        }

    @property
    def origin(self) -> Optional[Tuple[float, float]]:
        return self.ekf.origin

    def is_within(self, latitude: float, longitude: float, radius: float) -> bool:
        """True if the fused position is within radius meters of a target."""
        distance = self.distance_to(latitude, longitude)
        return distance is not None and distance < radius
