"""Pole placement by state feedback with a set of fixed eigenvalues.

The eigenvalues of A that are already "good enough" (real part below
``alpha`` in continuous time, modulus below ``alpha`` in discrete time) are
left alone; the remaining controllable ones are moved to the requested
locations and the uncontrollable ones stay where they are.
"""
from collections import namedtuple

import numpy as np
import scipy.linalg
import scipy.signal

from . import modes, status, util, workspace


PlaceResult = namedtuple('PlaceResult', [
    'F', 'num_fixed', 'num_assigned', 'num_uncontrollable', 'Z',
    'warnings'])


def _is_conjugate_closed(poles):
    complex_poles = np.sort_complex(poles[np.abs(poles.imag) > 0])
    return np.allclose(np.sort_complex(complex_poles.conj()), complex_poles)


def _assign_poles(dico, n, m, np_, alpha, a, b, wr, wi, tol, f, z, dwork):
    """Computes ``f`` so that ``a + b f`` has the requested eigenvalues.

    Returns ``num_fixed``, ``num_assigned``, ``num_uncontrollable``,
    ``iwarn`` and ``info``.  ``iwarn`` counts violations of the gain-norm
    bound.
    """
    if dico not in ('C', 'D'):
        return 0, 0, 0, 0, -1
    if n < 0:
        return 0, 0, 0, 0, -2
    if m < 0:
        return 0, 0, 0, 0, -3
    if np_ < 0:
        return 0, 0, 0, 0, -4
    if dico == 'D' and alpha < 0:
        return 0, 0, 0, 0, -5
    if a.shape[0] < n or a.shape[1] < n:
        return 0, 0, 0, 0, -6
    if b.shape[0] < n or b.shape[1] < m:
        return 0, 0, 0, 0, -7
    if wr.size < np_ or wi.size < np_:
        return 0, 0, 0, 0, -8
    if dwork.size < workspace.place_dwork(n, m):
        return 0, 0, 0, 0, -13
    if n == 0:
        return 0, 0, 0, 0, 0

    A = a[:n, :n]
    B = b[:n, :m]
    f[:m, :n] = 0.
    if dico == 'C':
        def is_fixed(real, imag):
            return real < alpha
    else:
        def is_fixed(real, imag):
            return real*real + imag*imag < alpha*alpha
    try:
        T, Q, num_fixed = scipy.linalg.schur(
            A, output='real', sort=is_fixed)
    except np.linalg.LinAlgError:
        return 0, 0, 0, 0, 1

    # Controllable part of the free block
    num_free = n - num_fixed
    A_free = T[num_fixed:, num_fixed:]
    B_free = Q.T.dot(B)[num_fixed:]
    if tol > 0:
        abs_tol = tol
    else:
        abs_tol = n * np.finfo(float).eps * max(
            np.linalg.norm(A, 1), np.linalg.norm(B, 1))
    krylov = []
    block = B_free
    for power in range(num_free):
        krylov.append(block)
        block = A_free.dot(block)
    if num_free > 0 and m > 0:
        U, S, V_T = np.linalg.svd(np.hstack(krylov))
        num_controllable = int((S > abs_tol).sum())
    else:
        U = np.eye(num_free)
        num_controllable = 0
    num_uncontrollable = num_free - num_controllable

    if np_ < num_controllable:
        return num_fixed, 0, num_uncontrollable, 0, 3
    poles = (wr[:np_] + 1j*wi[:np_])[:num_controllable]
    if not _is_conjugate_closed(poles):
        return num_fixed, 0, num_uncontrollable, 0, 4

    F_free = np.zeros((m, num_free))
    if num_controllable > 0:
        basis = U[:, :num_controllable]
        A_c = basis.T.dot(A_free).dot(basis)
        B_c = basis.T.dot(B_free)
        try:
            placed = scipy.signal.place_poles(A_c, B_c, poles)
        except (ValueError, np.linalg.LinAlgError):
            return num_fixed, 0, num_uncontrollable, 0, 2
        F_free = -placed.gain_matrix.dot(basis.T)
    F = np.hstack((np.zeros((m, num_fixed)), F_free)).dot(Q.T)
    f[:m, :n] = F

    try:
        T_cl, Z = scipy.linalg.schur(A + B.dot(F), output='real')
    except np.linalg.LinAlgError:
        return num_fixed, num_controllable, num_uncontrollable, 0, 2
    z[:n, :n] = Z

    iwarn = 0
    norm_B = np.linalg.norm(B, 1)
    if norm_B > 0 and (
        np.linalg.norm(F, 1) > 100. * np.linalg.norm(A, 1) / norm_B):
        iwarn = 1
    dwork[0] = workspace.place_dwork(n, m)
    return num_fixed, num_controllable, num_uncontrollable, iwarn, 0


def place(A, B, poles, discrete=0, alpha=None, tol=0.):
    """Computes a state-feedback gain ``F`` that moves the eigenvalues of
    ``A + B F`` to ``poles``.

    Args:
        ``A``: Array with dimensions [num_states, num_states].

        ``B``: Array with dimensions [num_states, num_inputs].

        ``poles``: Desired eigenvalues.  Complex ones must come in
        conjugate pairs.

    Kwargs:
        ``discrete``: 1 for a discrete-time system, anything else for
        continuous time.

        ``alpha``: Eigenvalues of A with real part (continuous) or modulus
        (discrete) below ``alpha`` are kept.  Default keeps none.

        ``tol``: Absolute controllability tolerance, 0 for a default.

    Returns:
        ``result``: :py:class:`PlaceResult` with the gain ``F``, the
        numbers of fixed, assigned and uncontrollable eigenvalues, the
        orthogonal ``Z`` that brings ``A + B F`` to real Schur form, and
        the list of warnings.
    """
    A = np.array(A, dtype=float)
    B = util.atleast_2d_col(np.array(B, dtype=float))
    poles = np.atleast_1d(np.array(poles, dtype=complex))
    dico = modes.translate_place_domain(discrete)
    if alpha is None:
        alpha = 0. if dico == 'D' else -np.inf
    n = A.shape[0]
    m = B.shape[1]
    F = np.zeros((max(1, m), n))
    Z = np.zeros((max(1, n), n))
    dwork = np.zeros(workspace.place_dwork(n, m))
    num_fixed, num_assigned, num_uncontrollable, iwarn, info = _assign_poles(
        dico, n, m, poles.size, alpha, A, B, poles.real.copy(),
        poles.imag.copy(), tol, F, Z, dwork)
    status.check_info('place', info, status.PLACE_ERRORS)
    warnings = []
    warning = status.violation_warning('place', iwarn)
    if warning is not None:
        warnings.append(warning)
    return PlaceResult(
        F=F[:m, :n], num_fixed=num_fixed, num_assigned=num_assigned,
        num_uncontrollable=num_uncontrollable, Z=Z[:n, :n],
        warnings=warnings)
