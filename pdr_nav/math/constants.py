"""
Mathematical and physical constants for pedestrian dead reckoning.
"""

import math

# Earth parameters
EARTH_RADIUS_M = 6378137.0  # WGS84 equatorial radius in meters

# Conversion factors
DEG_TO_RAD = math.pi / 180.0
RAD_TO_DEG = 180.0 / math.pi

# Orientation filter defaults
AHRS_BETA = 0.08            # Gradient-descent gain
AHRS_SAMPLE_FREQ_HZ = 50.0  # Assumed fixed sensor cadence

# Step EKF defaults
INITIAL_COVARIANCE = 0.5    # Diagonal of initial P
PROCESS_NOISE = 0.01        # Diagonal of Q, added per step
DEFAULT_GPS_ACCURACY_M = 10.0
SINGULAR_THRESHOLD = 1e-9   # |det S| below this skips the correction

# Step detection defaults
STEP_LENGTH_M = 0.7
STEP_BUFFER_LENGTH = 25
STEP_MIN_THRESHOLD = 0.8    # m/s² above the window mean
STEP_STD_FACTOR = 0.9
STEP_MIN_INTERVAL_S = 0.3
