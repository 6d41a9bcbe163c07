#!/usr/bin/env python3
"""
Basic usage example of the pedestrian navigation core.

Simulates a walk around a rectangle with a biased compass, slightly wrong
step length and noisy GPS fixes, and fuses everything through
PedestrianNavigator.
"""

import sys
import os
import math
import numpy as np

# Add package to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from pdr_nav import PedestrianNavigator, Config, GPSFix, LocalProjection, setup_logging

ORIGIN = (35.69302, 140.05084)


def simulate_walk(legs=((40, 0.0), (25, 90.0), (40, 180.0), (25, 270.0)),
                  step_length=0.75, heading_bias_deg=5.0, heading_noise_deg=2.0,
                  gps_every=10, gps_noise_m=3.0, seed=0):
    """
    Simulate a walk made of straight legs.

    Args:
        legs: (step count, heading in degrees counter-clockwise from east)
        step_length: True step length in meters
        heading_bias_deg: Constant compass error
        heading_noise_deg: Per-step compass noise (1-sigma)
        gps_every: Emit a fix every N steps
        gps_noise_m: GPS noise (1-sigma, meters)

    Yields:
        (true_xy, measured_heading_deg, fix_or_None) per step
    """
    rng = np.random.default_rng(seed)
    projection = LocalProjection(*ORIGIN)
    x, y = 0.0, 0.0
    count = 0

    for steps, heading in legs:
        for _ in range(steps):
            x += step_length * math.cos(math.radians(heading))
            y += step_length * math.sin(math.radians(heading))
            count += 1

            measured = heading + heading_bias_deg + rng.normal(0.0, heading_noise_deg)

            fix = None
            if count % gps_every == 0:
                noisy = (x + rng.normal(0.0, gps_noise_m), y + rng.normal(0.0, gps_noise_m))
                fix = GPSFix(*projection.local_to_geodetic(*noisy), accuracy=gps_noise_m)

            yield (x, y), measured, fix


def run(navigator, walk):
    """Feed a simulated walk; returns (truth, fused, gps) local tracks."""
    projection = LocalProjection(*ORIGIN)
    truth, fused, gps = [], [], []

    for true_xy, measured_heading, fix in walk:
        # Platform heading convention: heading = 360 - alpha
        navigator.process_device_orientation(360.0 - measured_heading)
        navigator.on_step()

        if fix is not None:
            navigator.process_fix(fix)
            gps.append(projection.geodetic_to_local(fix.latitude, fix.longitude))

        state = navigator.ekf.get_state_meters()
        truth.append(true_xy)
        fused.append((state['x'], state['y']))

    return np.array(truth), np.array(fused), np.array(gps)


def main():
    """Main example function."""
    config = Config()
    config.set('step.length_m', 0.7)
    config.set('log_level', 'WARNING')
    setup_logging(config)

    print("Pedestrian Dead Reckoning - Basic Usage Example")
    print("=" * 50)

    navigator = PedestrianNavigator(config)
    navigator.set_anchor(*ORIGIN)

    truth, fused, gps = run(navigator, simulate_walk())

    errors = np.linalg.norm(truth - fused, axis=1)
    state = navigator.ekf.get_state_meters()
    stats = navigator.ekf.get_statistics()

    print(f"Steps: {stats['predictions']}, GPS updates: {stats['gps_updates']} "
          f"(skipped {stats['gps_skipped']})")
    print(f"Final position: [{state['x']:.2f}, {state['y']:.2f}] m "
          f"(truth [{truth[-1][0]:.2f}, {truth[-1][1]:.2f}])")
    print(f"Heading bias: {math.degrees(state['theta_bias']):.2f} deg, "
          f"step scale: {state['scale']:.3f}")
    print(f"Position error: mean {errors.mean():.2f} m, max {errors.max():.2f} m")
    print(f"Position uncertainty: {stats['position_uncertainty']:.2f} m")

    lat_lon = navigator.ekf.get_lat_lon()
    print(f"Fused geodetic position: {lat_lon[0]:.6f}, {lat_lon[1]:.6f}")


if __name__ == "__main__":
    main()
