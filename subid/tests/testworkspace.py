#!/usr/bin/env python
"""Test workspace module"""
import unittest

from subid import workspace


FLAG_COMBINATIONS = [
    (meth, alg, jobd, batch, conct)
    for meth in ['M', 'N']
    for alg in ['C', 'F', 'Q']
    for jobd in ['M', 'N']
    for batch in ['O', 'F', 'I', 'L']
    for conct in ['C', 'N']]


class TestWorkspace(unittest.TestCase):
    def test_preprocess_ldr(self):
        self.assertEqual(workspace.preprocess_ldr(1, 1, 4, 'M', 'M'), 16)
        self.assertEqual(workspace.preprocess_ldr(3, 1, 2, 'M', 'M'), 18)
        self.assertEqual(workspace.preprocess_ldr(3, 1, 2, 'M', 'N'), 16)
        self.assertEqual(workspace.preprocess_ldr(3, 1, 2, 'N', 'M'), 16)

    def test_preprocess_iwork(self):
        self.assertEqual(workspace.preprocess_iwork(2, 1, 5, 'N', 'C'), 15)
        self.assertEqual(workspace.preprocess_iwork(2, 1, 5, 'M', 'F'), 3)
        self.assertEqual(workspace.preprocess_iwork(2, 1, 5, 'M', 'Q'), 0)

    def test_preprocess_dwork_values(self):
        # MOESP with jobd = 'M' on a single Cholesky batch
        self.assertEqual(workspace.preprocess_dwork(
            1, 1, 4, 100, 16, 'M', 'C', 'M', 'O', 'N', optimal=False), 20)
        self.assertEqual(workspace.preprocess_dwork(
            1, 1, 4, 100, 16, 'N', 'C', 'N', 'O', 'N', optimal=False), 41)
        # Fast algorithm, intermediate connected batch
        self.assertEqual(workspace.preprocess_dwork(
            1, 1, 4, 100, 16, 'M', 'F', 'M', 'I', 'C', optimal=False),
            2*2*4*5)
        # QR on a long first batch
        self.assertEqual(workspace.preprocess_dwork(
            1, 1, 4, 100, 16, 'M', 'Q', 'M', 'F', 'N', optimal=False), 6*8)

    def test_preprocess_dwork_floor(self):
        """The optimal size is never below ``(ns+2)*2*(m+l)*nobr``.

        The routine documentation states this floor with the triangular-work
        length (ldrwrk) and the total length (ldwork) swapped.  The floor is
        checked against the total length, where it is applied.
        """
        m, l, nobr, nsmp = 2, 1, 3, 60
        ldr = 18
        ns = nsmp - 2*nobr + 1
        floor = (ns + 2)*2*(m + l)*nobr
        for meth, alg, jobd, batch, conct in FLAG_COMBINATIONS:
            minimum = workspace.preprocess_dwork(
                m, l, nobr, nsmp, ldr, meth, alg, jobd, batch, conct,
                optimal=False)
            optimal = workspace.preprocess_dwork(
                m, l, nobr, nsmp, ldr, meth, alg, jobd, batch, conct)
            self.assertEqual(optimal, max(minimum, floor))
            self.assertTrue(minimum >= 1)

    def test_preprocess_dwork_monotone(self):
        """Within a branch, more block rows, inputs or outputs never need
        less workspace."""
        nsmp = 10000
        for meth, alg, jobd, batch, conct in FLAG_COMBINATIONS:
            for m in [1, 2]:
                for l in [1, 2]:
                    sizes = [workspace.preprocess_dwork(
                        m, l, nobr, nsmp,
                        workspace.preprocess_ldr(m, l, nobr, meth, jobd),
                        meth, alg, jobd, batch, conct, optimal=False)
                        for nobr in range(1, 11)]
                    self.assertEqual(sizes, sorted(sizes))
            for nobr in [2, 5]:
                sizes = [workspace.preprocess_dwork(
                    m, 1, nobr, nsmp,
                    workspace.preprocess_ldr(m, 1, nobr, meth, jobd),
                    meth, alg, jobd, batch, conct, optimal=False)
                    for m in range(1, 5)]
                self.assertEqual(sizes, sorted(sizes))

    def test_system_workspace(self):
        for n in range(1, 4):
            for m in [0, 1, 2]:
                moesp = workspace.system_dwork(n, m, 1, 5, 'M')
                n4sid = workspace.system_dwork(n, m, 1, 5, 'N')
                combined = workspace.system_dwork(n, m, 1, 5, 'C')
                self.assertTrue(min(moesp, n4sid, combined) > 0)
                self.assertTrue(combined >= n4sid)
        self.assertEqual(workspace.system_iwork(2, 1, 1, 4), 6)
        self.assertEqual(workspace.system_bwork(3), 6)

    def test_initial_state_workspace(self):
        self.assertEqual(workspace.initial_state_dwork(2, 1, 1, 50), 36)
        self.assertEqual(workspace.initial_state_iwork(4), 4)

    def test_peer_workspace(self):
        self.assertEqual(workspace.place_dwork(3, 2), 15)
        self.assertEqual(workspace.place_dwork(0, 0), 1)
        self.assertEqual(workspace.hinfsyn_iwork(2, 3, 3, 1, 1), 4)
        self.assertTrue(workspace.hinfsyn_dwork(2, 3, 3, 1, 1) > 0)
        self.assertEqual(workspace.ncfsyn_iwork(2, 1, 1), 4)
        self.assertEqual(workspace.synthesis_bwork(2), 4)
        self.assertEqual(workspace.lyap_dwork(0), 1)
        self.assertEqual(workspace.lyap_dwork(3), 12)

    def test_conred_workspace(self):
        self.assertEqual(workspace.conred_iwork(3, 'B'), 0)
        self.assertEqual(workspace.conred_iwork(3, 'F'), 3)
        self.assertEqual(workspace.conred_dwork(2, 1, 1, 'L'), 30)
        self.assertEqual(workspace.conred_dwork(0, 1, 1, 'R'), 1)
        # The factor width follows the inputs (left) or the outputs (right)
        self.assertEqual(workspace.conred_dwork(2, 3, 1, 'L'), 34)
        self.assertEqual(workspace.conred_dwork(2, 3, 1, 'R'), 30)


if __name__ == '__main__':
    unittest.main()
