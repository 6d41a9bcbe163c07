#!/usr/bin/env python3
"""
Unit tests for the step Extended Kalman Filter.
"""

import unittest
import math
import numpy as np
import sys
import os
from unittest import mock

# Add package to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from pdr_nav.ekf import StepEKF, PedestrianState
from pdr_nav.ekf.models import StepMotionModel, PositionMeasurementModel, inverse_2x2
from pdr_nav.errors import PreconditionError, UpdateStatus

ORIGIN = (35.0, 140.0)


def assert_valid_covariance(testcase, P, tol=1e-8):
    np.testing.assert_allclose(P, P.T, atol=tol)
    eigenvalues = np.linalg.eigvalsh(0.5 * (P + P.T))
    testcase.assertGreaterEqual(eigenvalues.min(), -tol)


class TestPedestrianState(unittest.TestCase):
    """Test PedestrianState class."""

    def test_defaults(self):
        state = PedestrianState()
        np.testing.assert_array_equal(state.state_vector, [0.0, 0.0, 0.0, 1.0])
        self.assertIsNotNone(state.timestamp)

    def test_state_vector_property(self):
        state = PedestrianState()
        state.state_vector = np.array([1.0, 2.0, 0.1, 1.1])

        self.assertEqual(state.x, 1.0)
        self.assertEqual(state.y, 2.0)
        self.assertEqual(state.theta_bias, 0.1)
        self.assertEqual(state.scale, 1.1)
        np.testing.assert_array_equal(state.position, [1.0, 2.0])

    def test_wrong_length_rejected(self):
        state = PedestrianState()
        with self.assertRaises(ValueError):
            state.state_vector = np.zeros(6)

    def test_copy(self):
        original = PedestrianState(x=1.0, y=2.0, theta_bias=0.3, scale=0.9)
        copy = original.copy()
        self.assertEqual(copy.as_dict(), original.as_dict())

        copy.x = 100.0
        self.assertNotEqual(copy.x, original.x)


class TestStepMotionModel(unittest.TestCase):
    """Test StepMotionModel class."""

    def test_predict_state_applies_bias_and_scale(self):
        state = np.array([1.0, 1.0, math.pi / 2, 2.0])

        predicted = StepMotionModel.predict_state(state, 0.5, -math.pi / 2)

        # Effective heading is zero, so the full scaled step goes east
        self.assertAlmostEqual(predicted[0], 2.0)
        self.assertAlmostEqual(predicted[1], 1.0)
        self.assertEqual(predicted[2], math.pi / 2)
        self.assertEqual(predicted[3], 2.0)

    def test_jacobian_matches_finite_differences(self):
        state = np.array([1.0, 2.0, 0.1, 1.2])
        step_length, heading = 0.8, 0.5
        eps = 1e-6

        F = StepMotionModel.jacobian_F(state, step_length, heading)

        numeric = np.zeros((4, 4))
        for j in range(4):
            delta = np.zeros(4)
            delta[j] = eps
            plus = StepMotionModel.predict_state(state + delta, step_length, heading)
            minus = StepMotionModel.predict_state(state - delta, step_length, heading)
            numeric[:, j] = (plus - minus) / (2 * eps)

        np.testing.assert_allclose(F, numeric, atol=1e-6)

    def test_zero_step_jacobian_is_identity(self):
        F = StepMotionModel.jacobian_F(np.array([3.0, 4.0, 0.2, 1.1]), 0.0, 1.0)
        np.testing.assert_array_equal(F, np.eye(4))


class TestPositionMeasurementModel(unittest.TestCase):
    """Test PositionMeasurementModel class."""

    def test_observes_position_only(self):
        state = np.array([10.0, 20.0, 0.5, 1.1])

        np.testing.assert_array_equal(PositionMeasurementModel.measurement(state), [10.0, 20.0])
        np.testing.assert_array_equal(PositionMeasurementModel.jacobian_H(state),
                                      [[1, 0, 0, 0], [0, 1, 0, 0]])

    def test_noise_is_accuracy_squared(self):
        R = PositionMeasurementModel.measurement_noise_matrix(3.0)
        np.testing.assert_array_equal(R, np.eye(2) * 9.0)

    def test_inverse_2x2(self):
        S = np.array([[4.0, 1.0], [2.0, 3.0]])
        np.testing.assert_allclose(inverse_2x2(S, 1e-9), np.linalg.inv(S))

        self.assertIsNone(inverse_2x2(np.array([[1.0, 2.0], [2.0, 4.0]]), 1e-9))
        self.assertIsNone(inverse_2x2(np.full((2, 2), np.nan), 1e-9))


class TestStepEKF(unittest.TestCase):
    """Test StepEKF class."""

    def setUp(self):
        self.ekf = StepEKF()
        self.ekf.set_origin(*ORIGIN)

    def fix_at(self, x, y):
        return self.ekf.projection.local_to_geodetic(x, y)

    def test_initialization(self):
        ekf = StepEKF()
        np.testing.assert_array_equal(ekf.state, [0.0, 0.0, 0.0, 1.0])
        np.testing.assert_array_equal(ekf.P, np.eye(4) * 0.5)
        np.testing.assert_array_equal(ekf.Q, np.eye(4) * 0.01)
        self.assertFalse(ekf.has_origin)
        self.assertEqual(ekf.prediction_count, 0)

    def test_predict_step_east(self):
        self.ekf.predict_step(1.0, 0.0)

        state = self.ekf.get_state_meters()
        self.assertAlmostEqual(state['x'], 1.0)
        self.assertAlmostEqual(state['y'], 0.0)
        self.assertEqual(state['theta_bias'], 0.0)
        self.assertEqual(state['scale'], 1.0)
        self.assertEqual(self.ekf.prediction_count, 1)

    def test_predict_step_north(self):
        self.assertIsNone(self.ekf.predict_step(2.0, math.pi / 2))

        self.assertAlmostEqual(self.ekf.state[0], 0.0)
        self.assertAlmostEqual(self.ekf.state[1], 2.0)

    def test_predict_step_does_not_read_clock(self):
        with mock.patch('pdr_nav.ekf.state.time') as clock:
            clock.time.side_effect = AssertionError('clock read')
            self.ekf.predict_step(1.0, 0.0)
            state = self.ekf.get_state_meters()

        self.assertAlmostEqual(state['x'], 1.0)
        self.assertEqual(state['scale'], 1.0)

    def test_zero_step_grows_covariance_by_q(self):
        self.ekf.state = np.array([3.0, -4.0, 0.2, 1.1])
        trace_before = np.trace(self.ekf.P)

        self.ekf.predict_step(0.0, 1.3)

        self.assertAlmostEqual(self.ekf.state[0], 3.0)
        self.assertAlmostEqual(self.ekf.state[1], -4.0)
        self.assertAlmostEqual(np.trace(self.ekf.P), trace_before + np.trace(self.ekf.Q))

    def test_partial_correction_towards_fix(self):
        lat, lon = self.fix_at(5.0, 0.0)

        status = self.ekf.update_gps(lat, lon, accuracy=1.0)

        self.assertIs(status, UpdateStatus.APPLIED)
        x = self.ekf.state[0]
        self.assertGreater(x, 0.0)
        self.assertLess(x, 5.0)
        # K = 0.5 / (0.5 + 1) on the position rows
        self.assertAlmostEqual(x, 5.0 / 3.0, places=6)
        self.assertAlmostEqual(self.ekf.state[1], 0.0, places=6)

    def test_covariance_shrinks_after_fix(self):
        initial = self.ekf.get_position_uncertainty()
        self.ekf.update_gps(*ORIGIN, accuracy=2.0)
        self.assertLess(self.ekf.get_position_uncertainty(), initial)

    def test_huge_accuracy_barely_moves_state(self):
        before = self.ekf.state.copy()
        lat, lon = self.fix_at(50.0, -30.0)

        self.ekf.update_gps(lat, lon, accuracy=1e6)

        self.assertLess(np.max(np.abs(self.ekf.state - before)), 1e-6)

    def test_repeated_fix_converges(self):
        for _ in range(5):
            self.ekf.predict_step(0.7, 0.3)
        target = (12.0, -7.0)
        lat, lon = self.fix_at(*target)

        for _ in range(20):
            self.ekf.update_gps(lat, lon, accuracy=0.5)

        distance = math.hypot(self.ekf.state[0] - target[0], self.ekf.state[1] - target[1])
        self.assertLess(distance, 0.5)

    def test_update_without_origin_is_skipped(self):
        ekf = StepEKF()
        before_state = ekf.state.copy()
        before_P = ekf.P.copy()

        status = ekf.update_gps(35.0, 140.0, 5.0)

        self.assertIs(status, UpdateStatus.SKIPPED)
        self.assertFalse(status)
        np.testing.assert_array_equal(ekf.state, before_state)
        np.testing.assert_array_equal(ekf.P, before_P)
        self.assertEqual(ekf.gps_skip_count, 1)

    def test_singular_innovation_is_skipped(self):
        self.ekf.P = np.zeros((4, 4))
        before = self.ekf.state.copy()
        lat, lon = self.fix_at(3.0, 3.0)

        status = self.ekf.update_gps(lat, lon, accuracy=0.0)

        self.assertIs(status, UpdateStatus.SKIPPED)
        np.testing.assert_array_equal(self.ekf.state, before)
        np.testing.assert_array_equal(self.ekf.P, np.zeros((4, 4)))

    def test_non_finite_accuracy_is_skipped(self):
        before = self.ekf.state.copy()
        self.assertIs(self.ekf.update_gps(*self.fix_at(1.0, 1.0), accuracy=float('inf')),
                      UpdateStatus.SKIPPED)
        self.assertIs(self.ekf.update_gps(*self.fix_at(1.0, 1.0), accuracy=float('nan')),
                      UpdateStatus.SKIPPED)
        np.testing.assert_array_equal(self.ekf.state, before)

    def test_covariance_stays_psd(self):
        rng = np.random.default_rng(42)

        for joseph_form in (True, False):
            ekf = StepEKF(joseph_form=joseph_form)
            ekf.set_origin(*ORIGIN)

            for _ in range(300):
                if rng.random() < 0.7:
                    ekf.predict_step(rng.uniform(0.0, 1.5), rng.uniform(-math.pi, math.pi))
                else:
                    x, y = rng.uniform(-50.0, 50.0, size=2)
                    lat, lon = ekf.projection.local_to_geodetic(x, y)
                    ekf.update_gps(lat, lon, rng.uniform(0.5, 20.0))

                assert_valid_covariance(self, ekf.P)

    def test_joseph_and_standard_forms_agree_on_first_fix(self):
        plain = StepEKF(joseph_form=False)
        plain.set_origin(*ORIGIN)
        for ekf in (self.ekf, plain):
            ekf.predict_step(0.8, 0.4)
            ekf.update_gps(*self.fix_at(1.0, 2.0), accuracy=2.0)

        np.testing.assert_allclose(self.ekf.state, plain.state, atol=1e-12)
        np.testing.assert_allclose(self.ekf.P, plain.P, atol=1e-9)

    def test_get_lat_lon(self):
        self.assertEqual(StepEKF().get_lat_lon(), None)

        lat, lon = self.ekf.get_lat_lon()
        self.assertAlmostEqual(lat, ORIGIN[0])
        self.assertAlmostEqual(lon, ORIGIN[1])

        self.ekf.predict_step(100.0, math.pi / 2)
        lat, lon = self.ekf.get_lat_lon()
        self.assertGreater(lat, ORIGIN[0])
        self.assertAlmostEqual(lon, ORIGIN[1])

    def test_set_origin_idempotent(self):
        self.ekf.set_origin(*ORIGIN)
        self.assertEqual(self.ekf.origin, ORIGIN)

        with self.assertRaises(PreconditionError):
            self.ekf.set_origin(36.0, 140.0)
        self.assertEqual(self.ekf.origin, ORIGIN)

    def test_reset(self):
        self.ekf.predict_step(1.0, 0.0)
        self.ekf.update_gps(*ORIGIN, accuracy=3.0)

        self.ekf.reset()

        np.testing.assert_array_equal(self.ekf.state, [0.0, 0.0, 0.0, 1.0])
        np.testing.assert_array_equal(self.ekf.P, np.eye(4) * 0.5)
        self.assertEqual(self.ekf.prediction_count, 0)
        self.assertEqual(self.ekf.gps_update_count, 0)
        self.assertEqual(self.ekf.origin, ORIGIN)

        self.ekf.reset(PedestrianState(x=10.0, y=20.0), clear_origin=True)
        self.assertFalse(self.ekf.has_origin)
        current_state = self.ekf.get_current_state()
        self.assertAlmostEqual(current_state.x, 10.0)
        self.assertAlmostEqual(current_state.y, 20.0)

    def test_get_statistics(self):
        self.ekf.predict_step(0.7, 0.0)
        self.ekf.update_gps(*ORIGIN, accuracy=5.0)
        self.ekf.update_gps(*ORIGIN, accuracy=float('nan'))

        stats = self.ekf.get_statistics()

        self.assertEqual(stats['predictions'], 1)
        self.assertEqual(stats['gps_updates'], 1)
        self.assertEqual(stats['gps_skipped'], 1)
        self.assertIsInstance(stats['position_uncertainty'], float)
        self.assertEqual(len(stats['state_uncertainty']), 4)


if __name__ == '__main__':
    unittest.main()
