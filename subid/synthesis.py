"""Controller synthesis for discrete-time plants.

* :py:func:`hinfsyn`: H-infinity gamma-suboptimal output feedback.
* :py:func:`ncfsyn`: normalized coprime factor loop-shaping controller.

Both map the plant to continuous time with the bilinear transform
:math:`z = (1+s)/(1-s)`, which preserves H-infinity norms and closed-loop
stability, solve the continuous problem with the two-Riccati state-space
formulas and map the controller back.  If A has an eigenvalue at -1 the
plant is first reflected, :math:`G(z) \\to G(-z)`, and the controller
reflected back afterwards.
"""
from collections import namedtuple

import numpy as np
import scipy.linalg

from . import status, util, workspace


HinfResult = namedtuple('HinfResult', ['AK', 'BK', 'CK', 'DK', 'rcond'])

NcfResult = namedtuple(
    'NcfResult', ['AK', 'BK', 'CK', 'DK', 'rcond', 'gamma'])


_EPS = np.finfo(float).eps


class _Failure(Exception):
    """Carries a routine status code out of the synthesis helpers."""
    def __init__(self, info):
        self.info = info
        Exception.__init__(self, info)


def _norm2(array):
    if array.size == 0:
        return 0.
    return np.linalg.norm(array, 2)


def _reflection(A, fail_info):
    """Returns +1 if ``A + I`` is invertible, -1 if only ``I - A`` is."""
    n = A.shape[0]
    if status.rcond(A + np.eye(n)) > _EPS:
        return 1.
    if status.rcond(np.eye(n) - A) > _EPS:
        return -1.
    raise _Failure(fail_info)


def _to_continuous(A, B, C, D, fail_info):
    sign = _reflection(A, fail_info)
    try:
        return sign, util.bilinear(sign*A, sign*B, C, D)
    except np.linalg.LinAlgError:
        raise _Failure(fail_info)


def _to_discrete(sign, Ak, Bk, Ck, Dk, fail_info):
    if status.rcond(np.eye(Ak.shape[0]) - Ak) <= _EPS:
        raise _Failure(fail_info)
    try:
        Ak, Bk, Ck, Dk = util.inverse_bilinear(Ak, Bk, Ck, Dk)
    except np.linalg.LinAlgError:
        raise _Failure(fail_info)
    return sign*Ak, sign*Bk, Ck, Dk


def _sym(array):
    return (array + array.T) / 2.


def _is_psd(X):
    if X.size == 0:
        return True
    return np.linalg.eigvalsh(X).min() >= -np.sqrt(_EPS) * max(
        1., np.linalg.norm(X, 2))


def _hinf_continuous(A, B1, B2, C1, C2, D11, D12, D21, D22, gamma, tol,
    rcond):
    """Central H-infinity controller of a continuous-time plant.

    The plant is scaled so that ``D12 = [0; I]`` and ``D21 = [0 I]``, the
    controller is built from the stabilizing solutions of the X and Y
    Hamiltonians, and the scaling and ``D22`` are undone at the end.
    """
    n = A.shape[0]
    m1 = B1.shape[1]
    m2 = B2.shape[1]
    p1 = C1.shape[0]
    p2 = C2.shape[0]

    if util.rank(D12, tol) < m2:
        raise _Failure(3)
    if util.rank(D21, tol) < p2:
        raise _Failure(4)
    Q12, R12_full = np.linalg.qr(D12, mode='complete')
    R12 = R12_full[:m2]
    U_z = np.hstack((Q12[:, m2:], Q12[:, :m2]))
    Q21, R21_full = np.linalg.qr(D21.T, mode='complete')
    S21 = R21_full[:p2].T
    V_w = np.hstack((Q21[:, p2:], Q21[:, :p2]))
    rcond[0] = status.rcond(R12)
    rcond[1] = status.rcond(S21)
    R12_inv = np.linalg.inv(R12)
    S21_inv = np.linalg.inv(S21)

    B1 = B1.dot(V_w)
    B2 = B2.dot(R12_inv)
    C1 = U_z.T.dot(C1)
    C2 = S21_inv.dot(C2)
    D11 = U_z.T.dot(D11).dot(V_w)
    D12 = np.vstack((np.zeros((p1 - m2, m2)), np.eye(m2)))
    D21 = np.hstack((np.zeros((p2, m1 - p2)), np.eye(p2)))

    D1111 = D11[:p1 - m2, :m1 - p2]
    D1112 = D11[:p1 - m2, m1 - p2:]
    D1121 = D11[p1 - m2:, :m1 - p2]
    D1122 = D11[p1 - m2:, m1 - p2:]
    g2 = gamma**2
    if gamma <= max(_norm2(np.hstack((D1111, D1112))),
        _norm2(np.vstack((D1111, D1121)))):
        raise _Failure(5)

    B = np.hstack((B1, B2))
    C = np.vstack((C1, C2))
    D1_row = np.hstack((D11, D12))
    D1_col = np.vstack((D11, D21))
    R_x = D1_row.T.dot(D1_row) - scipy.linalg.block_diag(
        g2*np.eye(m1), np.zeros((m2, m2)))
    R_y = D1_col.dot(D1_col.T) - scipy.linalg.block_diag(
        g2*np.eye(p1), np.zeros((p2, p2)))
    R_x_inv = np.linalg.inv(R_x)
    R_y_inv = np.linalg.inv(R_y)

    H_x = np.block([
        [A, np.zeros((n, n))],
        [-C1.T.dot(C1), -A.T]]) - np.vstack((B, -C1.T.dot(D1_row))).dot(
        R_x_inv).dot(np.hstack((D1_row.T.dot(C1), B.T)))
    H_y = np.block([
        [A.T, np.zeros((n, n))],
        [-B1.dot(B1.T), -A]]) - np.vstack((C.T, -B1.dot(D1_col.T))).dot(
        R_y_inv).dot(np.hstack((D1_col.dot(B1.T), C)))
    try:
        X, rcond[2] = util.stabilizing_solution(H_x)
    except (np.linalg.LinAlgError, ValueError):
        raise _Failure(6)
    if not _is_psd(X):
        raise _Failure(6)
    try:
        Y, rcond[3] = util.stabilizing_solution(H_y)
    except (np.linalg.LinAlgError, ValueError):
        raise _Failure(7)
    if not _is_psd(Y):
        raise _Failure(7)
    if n > 0 and np.max(np.abs(np.linalg.eigvals(X.dot(Y)))) >= g2:
        raise _Failure(5)

    F = -R_x_inv.dot(D1_row.T.dot(C1) + B.T.dot(X))
    L = -(B1.dot(D1_col.T) + Y.dot(C.T)).dot(R_y_inv)
    F12 = F[m1 - p2:m1]
    F2 = F[m1:]
    L12 = L[:, p1 - m2:p1]
    L2 = L[:, p1:]

    W1_inv = np.linalg.inv(g2*np.eye(p1 - m2) - D1111.dot(D1111.T))
    W2_inv = np.linalg.inv(g2*np.eye(m1 - p2) - D1111.T.dot(D1111))
    D11_hat = -D1121.dot(D1111.T).dot(W1_inv).dot(D1112) - D1122
    try:
        D12_hat = np.linalg.cholesky(
            np.eye(m2) - D1121.dot(W2_inv).dot(D1121.T))
        D21_hat = np.linalg.cholesky(
            np.eye(p2) - D1112.T.dot(W1_inv).dot(D1112)).T
    except np.linalg.LinAlgError:
        raise _Failure(5)
    rcond[5] = status.rcond(D12_hat)
    rcond[6] = status.rcond(D21_hat)

    Z_factor = np.eye(n) - Y.dot(X) / g2
    rcond[4] = status.rcond(Z_factor)
    if rcond[4] <= _EPS:
        raise _Failure(5)
    Z = np.linalg.inv(Z_factor)
    B2_hat = Z.dot(B2 + L12).dot(D12_hat)
    C2_hat = -D21_hat.dot(C2 + F12)
    B1_hat = -Z.dot(L2) + B2_hat.dot(np.linalg.solve(D12_hat, D11_hat))
    C1_hat = F2 + D11_hat.dot(np.linalg.solve(D21_hat, C2_hat))
    A_hat = A + B.dot(F) + B1_hat.dot(np.linalg.solve(D21_hat, C2_hat))

    # Undo the scaling of u and y
    Ak = A_hat
    Bk = B1_hat.dot(S21_inv)
    Ck = R12_inv.dot(C1_hat)
    Dk = R12_inv.dot(D11_hat).dot(S21_inv)

    # Close the D22 loop around the controller
    I_DkD22 = np.eye(m2) + Dk.dot(D22)
    rcond[7] = status.rcond(I_DkD22)
    if rcond[7] <= _EPS:
        raise _Failure(8)
    M = np.linalg.inv(I_DkD22)
    return (Ak - Bk.dot(D22).dot(M).dot(Ck),
        Bk.dot(np.eye(p2) - D22.dot(M).dot(Dk)),
        M.dot(Ck),
        M.dot(Dk))


def _hinf_controller(
    n, m, np_, ncon, nmeas, gamma, a, b, c, d, ak, bk, ck, dk, rcond, tol,
    iwork, dwork, bwork):
    """Fills ``ak``, ``bk``, ``ck``, ``dk`` and ``rcond`` (length 8), returns
    ``info``."""
    m2 = ncon
    m1 = m - m2
    np2 = nmeas
    np1 = np_ - np2
    if n < 0:
        return -1
    if m < 0:
        return -2
    if np_ < 0:
        return -3
    if m2 <= 0 or m2 > np1 or m2 > m:
        return -4
    if np2 <= 0 or np2 > m1 or np2 > np_:
        return -5
    if gamma <= 0:
        return -6
    if iwork.size < workspace.hinfsyn_iwork(n, m, np_, ncon, nmeas):
        return -17
    if dwork.size < workspace.hinfsyn_dwork(n, m, np_, ncon, nmeas):
        return -18
    if bwork.size < workspace.synthesis_bwork(n):
        return -19
    A = a[:n, :n]
    B = b[:n, :m]
    C = c[:np_, :n]
    D = d[:np_, :m]
    rank_tol = tol if tol > 0 else np.sqrt(_EPS)

    # Rank conditions on the unit circle at z = 1 and z = -1
    for z in (1., -1.):
        if util.rank(np.block([
            [A - z*np.eye(n), B[:, m1:]], [C[:np1], D[:np1, m1:]]]),
            rank_tol) < n + m2:
            return 1
        if util.rank(np.block([
            [A - z*np.eye(n), B[:, :m1]], [C[np1:], D[np1:, :m1]]]),
            rank_tol) < n + np2:
            return 2

    try:
        sign, (Ac, Bc, Cc, Dc) = _to_continuous(A, B, C, D, 10)
        Akc, Bkc, Ckc, Dkc = _hinf_continuous(
            Ac, Bc[:, :m1], Bc[:, m1:], Cc[:np1], Cc[np1:],
            Dc[:np1, :m1], Dc[:np1, m1:], Dc[np1:, :m1], Dc[np1:, m1:],
            gamma, rank_tol, rcond)
        Ak, Bk, Ck, Dk = _to_discrete(sign, Akc, Bkc, Ckc, Dkc, 10)
    except _Failure as failure:
        return failure.info
    except np.linalg.LinAlgError:
        return 9
    ak[:n, :n] = Ak
    bk[:n, :np2] = Bk
    ck[:m2, :n] = Ck
    dk[:m2, :np2] = Dk
    bwork[:n] = np.abs(np.linalg.eigvals(Ak)) < 1.
    return 0


def hinfsyn(A, B, C, D, ncon, nmeas, gamma, tol=0.):
    """Computes a gamma-suboptimal H-infinity controller for a discrete-time
    plant.

    Args:
        ``A``, ``B``, ``C``, ``D``: Plant arrays.  The inputs are ordered
        ``[w; u]`` (disturbances, then controls) and the outputs
        ``[z; y]`` (performance outputs, then measurements).

        ``ncon``: Number of control inputs ``u``.

        ``nmeas``: Number of measurements ``y``.

        ``gamma``: Bound on the closed-loop H-infinity norm from ``w`` to
        ``z``.

    Kwargs:
        ``tol``: Rank tolerance for the D12 and D21 checks, 0 selects
        ``sqrt(eps)``.

    Returns:
        ``result``: :py:class:`HinfResult` with the controller ``AK``,
        ``BK``, ``CK``, ``DK`` (for ``u = K y``) and ``rcond``, the
        reciprocal condition estimates of: the control and measurement
        scalings, the X and Y Riccati bases, ``I - Y X / gamma^2``, the
        two factors ``D12_hat`` and ``D21_hat``, and ``I + DK D22``.
    """
    A = np.array(A, dtype=float)
    B = np.array(B, dtype=float)
    C = np.array(C, dtype=float)
    D = np.array(D, dtype=float)
    n = A.shape[0]
    m = B.shape[1]
    np_ = C.shape[0]
    AK = np.zeros((max(1, n), n))
    BK = np.zeros((max(1, n), nmeas))
    CK = np.zeros((max(1, ncon), n))
    DK = np.zeros((max(1, ncon), nmeas))
    rcond = np.zeros(8)
    iwork = np.zeros(workspace.hinfsyn_iwork(n, m, np_, ncon, nmeas),
        dtype=int)
    dwork = np.zeros(workspace.hinfsyn_dwork(n, m, np_, ncon, nmeas))
    bwork = np.zeros(workspace.synthesis_bwork(n), dtype=bool)
    info = _hinf_controller(
        n, m, np_, ncon, nmeas, gamma, A, B, C, D, AK, BK, CK, DK, rcond,
        tol, iwork, dwork, bwork)
    status.check_info('hinfsyn', info, status.HINFSYN_ERRORS)
    return HinfResult(
        AK=AK[:n, :n], BK=BK[:n, :nmeas], CK=CK[:ncon, :n],
        DK=DK[:ncon, :nmeas], rcond=rcond)


def _ncf_controller(
    n, m, np_, a, b, c, d, factor, ak, bk, ck, dk, rcond, tol, iwork,
    dwork, bwork):
    """Fills ``ak``, ``bk``, ``ck``, ``dk`` and ``rcond`` (length 6).

    Returns ``gamma`` and ``info``."""
    if n < 0:
        return 0., -1
    if m < 0:
        return 0., -2
    if np_ < 0:
        return 0., -3
    if factor < 1:
        return 0., -8
    if iwork.size < workspace.ncfsyn_iwork(n, m, np_):
        return 0., -15
    if dwork.size < workspace.ncfsyn_dwork(n, m, np_):
        return 0., -16
    if bwork.size < workspace.synthesis_bwork(n):
        return 0., -17
    A = a[:n, :n]
    B = b[:n, :m]
    C = c[:np_, :n]
    D = d[:np_, :m]

    singular_tol = tol if tol > 0 else _EPS
    try:
        sign, (Ac, Bc, Cc, Dc) = _to_continuous(A, B, C, D, 11)
        R = _sym(np.eye(np_) + Dc.dot(Dc.T))
        S = _sym(np.eye(m) + Dc.T.dot(Dc))
        rcond[0] = status.rcond(R)
        rcond[1] = status.rcond(S)
        S_inv = np.linalg.inv(S)
        R_inv = np.linalg.inv(R)
        A1 = Ac - Bc.dot(S_inv).dot(Dc.T).dot(Cc)
        try:
            X = scipy.linalg.solve_continuous_are(
                A1, Bc, _sym(Cc.T.dot(R_inv).dot(Cc)), S)
        except (np.linalg.LinAlgError, ValueError):
            raise _Failure(1)
        try:
            Z = scipy.linalg.solve_continuous_are(
                A1.T, Cc.T, _sym(Bc.dot(S_inv).dot(Bc.T)), R)
        except (np.linalg.LinAlgError, ValueError):
            raise _Failure(2)
        try:
            eig_XZ = np.linalg.eigvals(X.dot(Z))
        except np.linalg.LinAlgError:
            raise _Failure(3)
        gamma_min = np.sqrt(1. + max(0., np.max(eig_XZ.real)))
        gamma = factor * gamma_min
        L = (1. - gamma**2)*np.eye(n) + X.dot(Z)
        rcond[2] = status.rcond(L)
        if rcond[2] <= singular_tol:
            raise _Failure(4)
        F = -S_inv.dot(Dc.T.dot(Cc) + Bc.T.dot(X))
        gain = gamma**2 * np.linalg.solve(L.T, Z.dot(Cc.T))
        Akc = Ac + Bc.dot(F) + gain.dot(Cc + Dc.dot(F))
        Bkc = gain
        Ckc = Bc.T.dot(X)
        Dkc = -Dc.T
        rcond[5] = status.rcond(np.eye(n) - Akc)
        Ak, Bk, Ck, Dk = _to_discrete(sign, Akc, Bkc, Ckc, Dkc, 11)

        # Positive feedback loop u = K y around the discrete plant
        I_DDk = np.eye(np_) - D.dot(Dk)
        I_DkD = np.eye(m) - Dk.dot(D)
        rcond[3] = status.rcond(I_DDk)
        rcond[4] = status.rcond(I_DkD)
        if rcond[3] <= singular_tol:
            raise _Failure(8)
        if rcond[4] <= singular_tol:
            raise _Failure(9)
        E_y = np.linalg.inv(I_DDk)
        E_u = np.linalg.inv(I_DkD)
        A_cl = np.block([
            [A + B.dot(E_u).dot(Dk).dot(C), B.dot(E_u).dot(Ck)],
            [Bk.dot(E_y).dot(C), Ak + Bk.dot(E_y).dot(D).dot(Ck)]])
        if A_cl.size and np.max(np.abs(np.linalg.eigvals(A_cl))) >= 1.:
            raise _Failure(10)
    except _Failure as failure:
        return 0., failure.info
    except np.linalg.LinAlgError:
        return 0., 3
    ak[:n, :n] = Ak
    bk[:n, :np_] = Bk
    ck[:m, :n] = Ck
    dk[:m, :np_] = Dk
    bwork[:n] = np.abs(np.linalg.eigvals(Ak)) < 1.
    return gamma, 0


def ncfsyn(A, B, C, D, factor=1., tol=0.):
    """Computes a loop-shaping controller by normalized coprime factor
    robust stabilization of a discrete-time plant.

    Args:
        ``A``, ``B``, ``C``, ``D``: Arrays of the (shaped) plant.

    Kwargs:
        ``factor``: Ratio ``gamma / gamma_min``, at least 1.  Values a bit
        above 1 (e.g. 1.1) give better conditioned controllers.

        ``tol``: Reciprocal condition at or below which the gain system and
        the loop matrices ``I - D DK``, ``I - DK D`` count as singular, 0
        selects the machine precision.

    Returns:
        ``result``: :py:class:`NcfResult` with the positive-feedback
        controller ``AK``, ``BK``, ``CK``, ``DK`` (``u = K y``), ``rcond``
        (reciprocal condition estimates of ``I + D D'``, ``I + D' D``, the
        gain system, ``I - D DK``, ``I - DK D`` and the bilinear
        denominator), and the achieved ``gamma``.
    """
    A = np.array(A, dtype=float)
    B = np.array(B, dtype=float)
    C = np.array(C, dtype=float)
    D = np.array(D, dtype=float)
    n = A.shape[0]
    m = B.shape[1]
    np_ = C.shape[0]
    AK = np.zeros((max(1, n), n))
    BK = np.zeros((max(1, n), np_))
    CK = np.zeros((max(1, m), n))
    DK = np.zeros((max(1, m), np_))
    rcond = np.zeros(6)
    iwork = np.zeros(workspace.ncfsyn_iwork(n, m, np_), dtype=int)
    dwork = np.zeros(workspace.ncfsyn_dwork(n, m, np_))
    bwork = np.zeros(workspace.synthesis_bwork(n), dtype=bool)
    gamma, info = _ncf_controller(
        n, m, np_, A, B, C, D, factor, AK, BK, CK, DK, rcond, tol, iwork,
        dwork, bwork)
    status.check_info('ncfsyn', info, status.NCFSYN_ERRORS)
    return NcfResult(
        AK=AK[:n, :n], BK=BK[:n, :np_], CK=CK[:m, :n], DK=DK[:m, :np_],
        rcond=rcond, gamma=gamma)
