#!/usr/bin/env python
"""Test status module"""
import unittest

import numpy as np

from subid import status


class TestStatus(unittest.TestCase):
    def test_check_info(self):
        status.check_info('preprocess', 0, status.PREPROCESS_ERRORS)

        with self.assertRaises(status.NumericalFailure) as context:
            status.check_info('preprocess', -8, status.PREPROCESS_ERRORS)
        self.assertEqual(context.exception.info, -8)
        self.assertEqual(context.exception.routine, 'preprocess')
        self.assertEqual(
            str(context.exception),
            'preprocess: argument 8 had an illegal value')

        with self.assertRaises(status.NumericalFailure) as context:
            status.check_info('estimate_system', 3, status.SYSTEM_ERRORS)
        self.assertEqual(
            context.exception.message, '3: ' + status.SYSTEM_ERRORS[3])

        with self.assertRaises(status.NumericalFailure) as context:
            status.check_info('place', 99, status.PLACE_ERRORS)
        self.assertEqual(context.exception.message, 'unknown error, info = 99')
        self.assertTrue(isinstance(context.exception, RuntimeError))

    def test_translate_warning(self):
        self.assertIsNone(status.translate_warning(
            'preprocess', 0, status.PREPROCESS_WARNINGS))
        warning = status.translate_warning(
            'preprocess', 2, status.PREPROCESS_WARNINGS, experiment=3)
        self.assertEqual(warning.code, 2)
        self.assertEqual(warning.experiment, 3)
        self.assertTrue(isinstance(warning, UserWarning))
        self.assertTrue(str(warning).endswith('(experiment 3)'))
        self.assertIn(status.PREPROCESS_WARNINGS[2], str(warning))

        warning = status.translate_warning(
            'estimate_system', 42, status.SYSTEM_WARNINGS)
        self.assertIsNone(warning.experiment)
        self.assertIn('unknown warning, iwarn = 42', str(warning))

    def test_violation_warning(self):
        self.assertIsNone(status.violation_warning('place', 0))
        warning = status.violation_warning('place', 2)
        self.assertEqual(warning.code, 2)
        self.assertIn('2 violations', str(warning))

    def test_message_tables(self):
        """Every documented code has a message."""
        for table, codes in [
            (status.PREPROCESS_ERRORS, range(1, 3)),
            (status.PREPROCESS_WARNINGS, range(1, 6)),
            (status.SYSTEM_ERRORS, range(1, 11)),
            (status.SYSTEM_WARNINGS, range(1, 6)),
            (status.INITIAL_STATE_ERRORS, range(1, 3)),
            (status.INITIAL_STATE_WARNINGS, range(1, 7)),
            (status.PLACE_ERRORS, range(1, 5)),
            (status.HINFSYN_ERRORS, range(1, 11)),
            (status.NCFSYN_ERRORS, range(1, 12)),
            (status.LYAP_ERRORS, range(1, 4)),
            (status.CONRED_ERRORS, range(1, 7)),
            (status.CONRED_WARNINGS, range(1, 3))]:
            for code in codes:
                self.assertIn(code, table)

    def test_exceptions(self):
        error = status.InsufficientSamplesError(
            'too few', experiment=1, num_samples=10, required=20)
        self.assertEqual(error.experiment, 1)
        self.assertEqual(error.required, 20)
        self.assertTrue(isinstance(error, ValueError))
        self.assertTrue(issubclass(status.InvalidOrderError, ValueError))

    def test_rcond(self):
        self.assertEqual(status.rcond(np.eye(3)), 1.)
        self.assertEqual(status.rcond(np.zeros((2, 2))), 0.)
        self.assertEqual(status.rcond(np.zeros((0, 0))), 1.)
        self.assertAlmostEqual(status.rcond(np.diag([1., 1e-4])), 1e-4)


if __name__ == '__main__':
    unittest.main()
