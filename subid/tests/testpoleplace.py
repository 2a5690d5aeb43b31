#!/usr/bin/env python
"""Test poleplace module"""
import unittest

import numpy as np

import subid
from subid import poleplace, status


def sorted_eig_vals(array):
    return np.sort_complex(np.linalg.eigvals(array))


class TestPlace(unittest.TestCase):
    def test_continuous(self):
        A = np.array([[0., 1., 0.], [0., 0., 1.], [1., 2., 3.]])
        B = np.array([[0.], [0.], [1.]])
        for poles in [[-1., -2., -3.], [-1. + 1j, -1. - 1j, -2.]]:
            result = poleplace.place(A, B, poles)
            self.assertEqual(result.F.shape, (1, 3))
            self.assertEqual(result.num_fixed, 0)
            self.assertEqual(result.num_assigned, 3)
            self.assertEqual(result.num_uncontrollable, 0)
            np.testing.assert_allclose(
                sorted_eig_vals(A + B.dot(result.F)),
                np.sort_complex(np.array(poles, dtype=complex)), atol=1e-8)
            # Z brings the closed loop to real Schur form
            Z = result.Z
            np.testing.assert_allclose(Z.T.dot(Z), np.eye(3), atol=1e-12)
            T = Z.T.dot(A + B.dot(result.F)).dot(Z)
            np.testing.assert_allclose(np.tril(T, -2), 0., atol=1e-8)

    def test_discrete_fixed_eigenvalues(self):
        """Eigenvalues inside the alpha circle are left alone."""
        A = np.diag([0.5, 2.])
        B = np.array([[1.], [1.]])
        result = poleplace.place(A, B, [0.2], discrete=1, alpha=1.)
        self.assertEqual(result.num_fixed, 1)
        self.assertEqual(result.num_assigned, 1)
        np.testing.assert_allclose(
            sorted_eig_vals(A + B.dot(result.F)), [0.2, 0.5], atol=1e-10)
        self.assertEqual(result.warnings, [])

    def test_uncontrollable(self):
        A = np.diag([-1., 2.])
        B = np.array([[0.], [1.]])
        result = poleplace.place(A, B, [-5.])
        self.assertEqual(result.num_uncontrollable, 1)
        self.assertEqual(result.num_assigned, 1)
        np.testing.assert_allclose(
            sorted_eig_vals(A + B.dot(result.F)), [-5., -1.], atol=1e-10)

    def test_failures(self):
        # Too few poles for the controllable eigenvalues
        A = np.diag([2., 3.])
        B = np.array([[1.], [1.]])
        with self.assertRaises(status.NumericalFailure) as context:
            poleplace.place(A, B, [0.1], discrete=1)
        self.assertEqual(context.exception.info, 3)

        # Half of a complex pair
        with self.assertRaises(status.NumericalFailure) as context:
            poleplace.place(A, B, [0.1 + 0.1j, 0.2], discrete=1)
        self.assertEqual(context.exception.info, 4)

        # Negative radius in discrete time
        with self.assertRaises(status.NumericalFailure) as context:
            poleplace.place(A, B, [0.1, 0.2], discrete=1, alpha=-1.)
        self.assertEqual(context.exception.info, -5)

    def test_package_namespace(self):
        """The function and its module are both reachable from subid."""
        self.assertIs(subid.place, poleplace.place)
        self.assertIs(subid.poleplace, poleplace)

    def test_empty(self):
        result = poleplace.place(np.zeros((0, 0)), np.zeros((0, 1)), [])
        self.assertEqual(result.F.shape, (1, 0))
        self.assertEqual(result.num_assigned, 0)


if __name__ == '__main__':
    unittest.main()
