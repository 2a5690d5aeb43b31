#!/usr/bin/env python
"""Test lyap module"""
import unittest

import numpy as np

from subid import lyap, status


class TestLyap(unittest.TestCase):
    def setUp(self):
        np.random.seed(9)
        self.num_states = 4
        self.A = np.random.random((self.num_states, self.num_states)) - 1.
        self.E = np.eye(self.num_states) + 0.1 * np.random.random(
            (self.num_states, self.num_states))
        Y_factor = np.random.random((self.num_states, self.num_states))
        self.Y = Y_factor.dot(Y_factor.T)

    def test_continuous(self):
        A, E, Y = self.A, self.E, self.Y
        X, scale = lyap.generalized_lyap(A, E, Y)
        self.assertEqual(scale, 1.)
        np.testing.assert_allclose(
            A.T.dot(X).dot(E) + E.T.dot(X).dot(A), -Y, atol=1e-10)
        np.testing.assert_equal(X, X.T)

    def test_discrete(self):
        A = 0.3 * self.A
        E, Y = self.E, self.Y
        X, scale = lyap.generalized_lyap(A, E, Y, discrete=1)
        np.testing.assert_allclose(
            A.T.dot(X).dot(A) - E.T.dot(X).dot(E), -Y, atol=1e-10)

    def test_upper_triangle(self):
        """Only the upper triangle of Y is read."""
        Y_garbage = np.triu(self.Y) + np.tril(
            np.random.random(self.Y.shape), -1)
        X, scale = lyap.generalized_lyap(self.A, self.E, self.Y)
        X_garbage, scale = lyap.generalized_lyap(self.A, self.E, Y_garbage)
        np.testing.assert_allclose(X_garbage, X, atol=1e-12)

    def test_failures(self):
        with self.assertRaises(status.NumericalFailure) as context:
            lyap.generalized_lyap(
                self.A, np.zeros((self.num_states, self.num_states)), self.Y)
        self.assertEqual(context.exception.info, 2)

        # Eigenvalues 1 and -1 make the continuous operator singular
        with self.assertRaises(status.NumericalFailure) as context:
            lyap.generalized_lyap(np.diag([1., -1.]), np.eye(2), np.eye(2))
        self.assertEqual(context.exception.info, 3)

        # Eigenvalues with product 1 do the same in discrete time
        with self.assertRaises(status.NumericalFailure) as context:
            lyap.generalized_lyap(
                np.diag([2., 0.5]), np.eye(2), np.eye(2), discrete=1)
        self.assertEqual(context.exception.info, 3)

        self.assertRaises(
            ValueError, lyap.generalized_lyap, np.eye(2), np.eye(3),
            np.eye(2))


if __name__ == '__main__':
    unittest.main()
