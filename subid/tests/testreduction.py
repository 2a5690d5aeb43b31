#!/usr/bin/env python
"""Test reduction module"""
import unittest

import numpy as np

import subid
from subid import poleplace, reduction, status
from subid.status import InvalidModeError


def frequency_response(A, B, C, points):
    return [C.dot(np.linalg.solve(point*np.eye(A.shape[0]) - A, B))
        for point in points]


def observer_controller(A, B, C, D, F, G):
    """Full-order controller ``u = K y``."""
    return A + B.dot(F) + G.dot(C) + G.dot(D).dot(F), -G, F


class TestReduceController(unittest.TestCase):
    def setUp(self):
        self.A = np.array([[0., 1., 0.], [0., 0., 1.], [1., 2., 3.]])
        self.B = np.array([[0.], [0.], [1.]])
        self.C = np.array([[1., 0., 0.]])
        self.D = np.zeros((1, 1))
        self.F = poleplace.place(self.A, self.B, [-1., -2., -3.]).F
        self.G = poleplace.place(
            self.A.T, self.C.T, [-4., -5., -6.]).F.T
        self.points = 1j * np.array([0.1, 1., 10.])

    def test_full_order(self):
        """Keeping every state reproduces the observer-based controller for
        both factorizations and both truncation variants."""
        K_full = frequency_response(*observer_controller(
            self.A, self.B, self.C, self.D, self.F, self.G) +
            (self.points,))
        for jobcf in [0, 1]:
            for jobmr in [0, 1]:
                result = reduction.reduce_controller(
                    self.A, self.B, self.C, self.D, self.F, self.G, order=3,
                    ordsel=0, jobmr=jobmr, jobcf=jobcf)
                self.assertEqual(result.order, 3)
                self.assertEqual(result.warnings, [])
                self.assertEqual(result.hsv.shape, (3,))
                self.assertTrue((np.diff(result.hsv) <= 0).all())
                np.testing.assert_allclose(
                    frequency_response(
                        result.Ac, result.Bc, result.Cc, self.points),
                    K_full, rtol=1e-7)

    def test_reduced_order(self):
        """Both truncation variants give the same reduced controller up to
        a change of coordinates."""
        for jobcf in [0, 1]:
            responses = []
            hsvs = []
            for jobmr in [0, 1]:
                result = reduction.reduce_controller(
                    self.A, self.B, self.C, self.D, self.F, self.G, order=1,
                    ordsel=0, jobmr=jobmr, jobcf=jobcf)
                self.assertEqual(result.order, 1)
                self.assertEqual(result.Ac.shape, (1, 1))
                self.assertEqual(result.Bc.shape, (1, 1))
                self.assertEqual(result.Cc.shape, (1, 1))
                responses.append(frequency_response(
                    result.Ac, result.Bc, result.Cc, self.points))
                hsvs.append(result.hsv)
            np.testing.assert_allclose(responses[1], responses[0],
                rtol=1e-8)
            np.testing.assert_allclose(hsvs[1], hsvs[0], rtol=1e-12)

    def test_automatic_order(self):
        full = reduction.reduce_controller(
            self.A, self.B, self.C, self.D, self.F, self.G, order=3,
            ordsel=0)
        result = reduction.reduce_controller(
            self.A, self.B, self.C, self.D, self.F, self.G,
            tol=full.hsv[1])
        self.assertEqual(result.order, 1)
        # Without a tolerance every nonzero value is kept
        result = reduction.reduce_controller(
            self.A, self.B, self.C, self.D, self.F, self.G)
        self.assertEqual(result.order, 3)
        np.testing.assert_equal(result.hsv, full.hsv)

    def test_discrete(self):
        A = np.array([[0.5, 1.], [0., 1.2]])
        B = np.array([[0.], [1.]])
        C = np.array([[1., 0.]])
        D = np.array([[0.1]])
        F = poleplace.place(A, B, [0.1, 0.2], discrete=1).F
        G = poleplace.place(A.T, C.T, [0.3, 0.4], discrete=1).F.T
        points = np.exp(1j * np.array([0.1, 1., 3.]))
        K_full = frequency_response(
            *observer_controller(A, B, C, D, F, G) + (points,))
        for jobcf in [0, 1]:
            result = reduction.reduce_controller(
                A, B, C, D, F, G, order=2, discrete=1, ordsel=0,
                jobcf=jobcf)
            self.assertEqual(result.order, 2)
            np.testing.assert_allclose(
                frequency_response(result.Ac, result.Bc, result.Cc, points),
                K_full, rtol=1e-7)

    def test_warnings(self):
        # The factors neither reach nor see the second state
        A = np.diag([-1., -2.])
        B = np.array([[1.], [0.]])
        C = np.array([[1., 0.]])
        F = np.array([[-1., 0.]])
        G = np.array([[-1.], [0.]])
        result = reduction.reduce_controller(
            A, B, C, None, F, G, order=2, ordsel=0)
        self.assertEqual(result.order, 1)
        self.assertEqual(
            [warning.code for warning in result.warnings], [1])
        self.assertTrue(
            isinstance(result.warnings[0], status.NumericalWarning))

        # Equal singular values are not split
        eye = np.eye(2)
        result = reduction.reduce_controller(
            -eye, eye, eye, np.zeros((2, 2)), -eye, -eye, order=1,
            ordsel=0)
        np.testing.assert_allclose(result.hsv[1], result.hsv[0])
        self.assertEqual(result.order, 0)
        self.assertEqual(result.Ac.shape, (0, 0))
        self.assertEqual(result.Bc.shape, (0, 2))
        self.assertEqual(result.Cc.shape, (2, 0))
        self.assertEqual(
            [warning.code for warning in result.warnings], [2])

    def test_failures(self):
        B = np.array([[1.], [1.]])
        C = np.array([[1., 0.]])
        # Unstable observer loop
        with self.assertRaises(status.NumericalFailure) as context:
            reduction.reduce_controller(
                np.diag([1., -2.]), B, C, None, np.zeros((1, 2)),
                np.zeros((2, 1)))
        self.assertEqual(context.exception.info, 2)

        # Stable observer loop, unstable feedback loop
        for A, G, discrete in [
            (np.diag([1., -2.]), np.array([[-3.], [0.]]), 0),
            (np.diag([1.5, 0.5]), np.array([[-1.4], [0.]]), 1)]:
            with self.assertRaises(status.NumericalFailure) as context:
                reduction.reduce_controller(
                    A, B, C, None, np.zeros((1, 2)), G, discrete=discrete)
            self.assertEqual(context.exception.info, 3)

        # Requested order above the plant order
        with self.assertRaises(status.NumericalFailure) as context:
            reduction.reduce_controller(
                self.A, self.B, self.C, self.D, self.F, self.G, order=4,
                ordsel=0)
        self.assertEqual(context.exception.info, -9)

        self.assertRaises(
            InvalidModeError, reduction.reduce_controller, self.A, self.B,
            self.C, self.D, self.F, self.G, jobmr=2)

    def test_inputs_untouched(self):
        A = self.A.copy()
        F = self.F.copy()
        G = self.G.copy()
        reduction.reduce_controller(A, self.B, self.C, self.D, F, G, order=1,
            ordsel=0)
        np.testing.assert_equal(A, self.A)
        np.testing.assert_equal(F, self.F)
        np.testing.assert_equal(G, self.G)

    def test_package_namespace(self):
        self.assertIs(subid.reduce_controller, reduction.reduce_controller)


if __name__ == '__main__':
    unittest.main()
