#!/usr/bin/env python3
"""
Plot fused, GPS and true tracks of a simulated walk.

Usage: plot_walk.py [--seed N] [--gps-every N] [--output file.png]
"""

import argparse
import os
import sys

import matplotlib.pyplot as plt

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'examples'))

from pdr_nav import PedestrianNavigator, Config
from basic_usage import ORIGIN, simulate_walk, run


def main():
    parser = argparse.ArgumentParser(description="Plot a simulated pedestrian walk")
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--gps-every", type=int, default=10)
    parser.add_argument("--gps-noise", type=float, default=3.0)
    parser.add_argument("--output", help="Save the figure instead of showing it")
    args = parser.parse_args()

    config = Config()
    navigator = PedestrianNavigator(config)
    navigator.set_anchor(*ORIGIN)

    truth, fused, gps = run(navigator, simulate_walk(gps_every=args.gps_every,
                                                     gps_noise_m=args.gps_noise,
                                                     seed=args.seed))

    plt.figure(figsize=(8, 6))
    plt.plot(truth[:, 0], truth[:, 1], 'k--', label="Truth")
    plt.plot(fused[:, 0], fused[:, 1], 'b-', label="EKF (steps + GPS)")
    if len(gps):
        plt.scatter(gps[:, 0], gps[:, 1], c='r', s=12, label="GPS fixes")
    plt.xlabel("East [m]")
    plt.ylabel("North [m]")
    plt.title("Pedestrian dead reckoning")
    plt.axis("equal")
    plt.grid(True)
    plt.legend()
    plt.tight_layout()

    if args.output:
        plt.savefig(args.output, dpi=150)
        print(f"Saved {args.output}")
    else:
        plt.show()


if __name__ == "__main__":
    main()
