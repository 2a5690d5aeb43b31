"""Generalized Lyapunov equations.

Continuous time: :math:`A^T X E + E^T X A = -Y`

Discrete time: :math:`A^T X A - E^T X E = -Y`
"""
import numpy as np
import scipy.linalg

from . import modes, status, workspace


_EPS = np.finfo(float).eps


def _solve_lyap(dico, n, a, e, y, dwork):
    """Overwrites ``y`` with the solution ``X``.

    Only the upper triangle of ``y`` is read.  Returns ``scale`` and
    ``info``; ``scale`` is always 1.
    """
    if dico not in ('C', 'D'):
        return 1., -1
    if n < 0:
        return 1., -2
    if a.shape[0] < n or a.shape[1] < n:
        return 1., -3
    if e.shape[0] < n or e.shape[1] < n:
        return 1., -4
    if y.shape[0] < n or y.shape[1] < n:
        return 1., -5
    if dwork.size < workspace.lyap_dwork(n):
        return 1., -6
    if n == 0:
        return 1., 0

    A = a[:n, :n]
    E = e[:n, :n]
    Y = np.triu(y[:n, :n])
    Y = Y + np.triu(Y, 1).T

    if status.rcond(E) <= _EPS:
        return 1., 2
    try:
        eigvals = scipy.linalg.eigvals(A, E)
    except (np.linalg.LinAlgError, ValueError):
        return 1., 1

    # Equivalent standard equation in A E^-1
    E_inv = np.linalg.inv(E)
    A_red = A.dot(E_inv)
    Y_red = E_inv.T.dot(Y).dot(E_inv)
    scale_eig = max(1., np.abs(eigvals).max())
    if dico == 'C':
        sums = eigvals[:, np.newaxis] + eigvals.conj()[np.newaxis, :]
        if np.abs(sums).min() <= np.sqrt(_EPS) * scale_eig:
            return 1., 3
    else:
        products = eigvals[:, np.newaxis] * eigvals.conj()[np.newaxis, :]
        if np.abs(products - 1.).min() <= np.sqrt(_EPS) * scale_eig**2:
            return 1., 3

    try:
        if dico == 'C':
            X = scipy.linalg.solve_continuous_lyapunov(A_red.T, -Y_red)
        else:
            X = scipy.linalg.solve_discrete_lyapunov(A_red.T, Y_red)
    except (np.linalg.LinAlgError, ValueError):
        return 1., 3
    y[:n, :n] = (X + X.T) / 2.
    dwork[0] = workspace.lyap_dwork(n)
    return 1., 0


def generalized_lyap(A, E, Y, discrete=0):
    """Solves a generalized Lyapunov equation for symmetric ``X``.

    Args:
        ``A``: Array with dimensions [n, n].

        ``E``: Nonsingular array with dimensions [n, n].

        ``Y``: Symmetric array with dimensions [n, n].  Only its upper
        triangle is used.

    Kwargs:
        ``discrete``: 0 for the continuous-time equation
        :math:`A^T X E + E^T X A = -Y`, anything else for the discrete-time
        equation :math:`A^T X A - E^T X E = -Y`.

    Returns:
        ``X``: Symmetric solution.

        ``scale``: Scale factor of the right-hand side, always 1.
    """
    A = np.array(A, dtype=float, ndmin=2)
    E = np.array(E, dtype=float, ndmin=2)
    X = np.array(Y, dtype=float, ndmin=2)
    n = A.shape[0]
    if A.shape != (n, n) or E.shape != (n, n) or X.shape != (n, n):
        raise ValueError('A, E and Y must be square with the same shape')
    dwork = np.zeros(workspace.lyap_dwork(n))
    scale, info = _solve_lyap(modes.translate_domain(discrete), n, A, E, X,
        dwork)
    status.check_info('generalized_lyap', info, status.LYAP_ERRORS)
    return X, scale
