#!/usr/bin/env python
"""Test modes module"""
import unittest

from subid import modes
from subid.status import InvalidModeError


class TestModes(unittest.TestCase):
    def test_translate_method(self):
        self.assertEqual(modes.translate_method(0), ('M', 'M'))
        self.assertEqual(modes.translate_method(1), ('N', 'N'))
        self.assertEqual(modes.translate_method(2), ('N', 'C'))
        for method in [-1, 3, 'M', None]:
            self.assertRaises(
                InvalidModeError, modes.translate_method, method)

    def test_translate_algorithm(self):
        self.assertEqual(
            [modes.translate_algorithm(alg) for alg in range(3)],
            ['C', 'F', 'Q'])
        with self.assertRaises(InvalidModeError) as context:
            modes.translate_algorithm(7)
        self.assertEqual(context.exception.selector, 'alg')
        self.assertEqual(context.exception.value, 7)
        self.assertEqual(context.exception.allowed, (0, 1, 2))
        # Still a ValueError for callers that only know the builtin
        self.assertTrue(isinstance(context.exception, ValueError))

    def test_translate_connection_control(self):
        """Zero enables connection and confirmation, anything else
        disables them."""
        self.assertEqual(modes.translate_connection(0), 'C')
        self.assertEqual(modes.translate_control(0), 'C')
        for value in [1, 2, -1]:
            self.assertEqual(modes.translate_connection(value), 'N')
            self.assertEqual(modes.translate_control(value), 'N')
        self.assertEqual(modes.Connection(0), modes.Connection.CONNECTED)
        self.assertEqual(modes.Control(1), modes.Control.ACCEPT)
        self.assertEqual(len(modes.Connection), 2)
        self.assertEqual(len(modes.Control), 2)

    def test_translate_domain(self):
        self.assertEqual(modes.translate_domain(0), 'C')
        self.assertEqual(modes.translate_domain(1), 'D')
        self.assertEqual(modes.translate_domain(-3), 'D')
        self.assertEqual(modes.translate_place_domain(1), 'D')
        self.assertEqual(modes.translate_place_domain(0), 'C')
        self.assertEqual(modes.translate_place_domain(2), 'C')

    def test_translate_reduction_selectors(self):
        self.assertEqual(modes.translate_order_selection(0), 'F')
        self.assertEqual(modes.translate_order_selection(3), 'A')
        self.assertEqual(modes.translate_factorization(0), 'L')
        self.assertEqual(modes.translate_factorization(-1), 'R')
        self.assertEqual(modes.translate_truncation(0), 'B')
        self.assertEqual(modes.translate_truncation(1), 'F')
        with self.assertRaises(InvalidModeError) as context:
            modes.translate_truncation(2)
        self.assertEqual(context.exception.selector, 'jobmr')

    def test_translate_modes(self):
        # Defaults: MOESP, Cholesky, independent experiments, no confirm
        selection = modes.translate_modes()
        self.assertEqual(selection, modes.ModeSelection(
            meth_a='M', meth_b='M', alg='C', jobd='M', conct='N', ctrl='N',
            jobx0='X', comuse='U', job='D'))

        selection = modes.translate_modes(
            method=2, alg=2, conct=0, ctrl=0, use_D=False)
        self.assertEqual(selection.meth_a, 'N')
        self.assertEqual(selection.meth_b, 'C')
        self.assertEqual(selection.alg, 'Q')
        self.assertEqual(selection.jobd, 'N')
        self.assertEqual(selection.conct, 'C')
        self.assertEqual(selection.ctrl, 'C')
        self.assertEqual(selection.job, 'B')

        # Anything nonzero disables the features
        selection = modes.translate_modes(conct=5, ctrl=-1)
        self.assertEqual(selection.conct, 'N')
        self.assertEqual(selection.ctrl, 'N')

        self.assertRaises(InvalidModeError, modes.translate_modes, method=4)
        self.assertRaises(InvalidModeError, modes.translate_modes, alg=-1)


if __name__ == '__main__':
    unittest.main()
