"""Controller order reduction by frequency-weighted balanced truncation of
coprime factors.

The full-order controller is the observer-based one built from a
state-feedback gain ``F`` and an observer gain ``G``::

    x' = (A + B F + G C + G D F) x - G y
    u  = F x

With the left factorization the factors share the dynamics ``A + G C``; with
the right one they share ``A + B F``.  The factors are balanced with
frequency-weighted Gramians and truncated, and the reduced controller is
rebuilt from the truncated factors.  Its feedthrough is zero.
"""
from collections import namedtuple

import numpy as np
import scipy.linalg

from . import modes, status, workspace


_EPS = np.finfo(float).eps

ReducedController = namedtuple('ReducedController', [
    'Ac', 'Bc', 'Cc', 'order', 'hsv', 'warnings'])


def _is_stable(dico, eig_vals):
    if eig_vals.size == 0:
        return True
    if dico == 'C':
        return eig_vals.real.max() < 0
    return np.abs(eig_vals).max() < 1


def _gramian(dico, A, BB):
    """Solves ``A X + X A' + BB = 0`` or ``A X A' - X + BB = 0``."""
    if dico == 'C':
        X = scipy.linalg.solve_continuous_lyapunov(A, -BB)
    else:
        X = scipy.linalg.solve_discrete_lyapunov(A, BB)
    return (X + X.T) / 2.


def _sqrt_factor(X):
    """Returns ``S`` with ``X = S S'`` for a symmetric semidefinite ``X``;
    rounding errors below zero are dropped."""
    eig_vals, eig_vecs = np.linalg.eigh(X)
    return eig_vecs * np.sqrt(np.maximum(eig_vals, 0.))


def _select_order(ordsel, ncr, hsv, tol):
    """Order of the reduced controller and the warning code."""
    n = hsv.size
    if n == 0 or hsv[0] == 0:
        num_minimal = 0
        threshold = 0.
    else:
        threshold = n * _EPS * hsv[0]
        num_minimal = int((hsv > threshold).sum())
    if ordsel == 'A':
        if num_minimal == 0:
            return 0, 0
        return int((hsv > max(tol, threshold)).sum()), 0
    iwarn = 0
    if ncr > num_minimal:
        ncr = num_minimal
        iwarn = 1
    # Repeated values are kept or dropped together
    requested = ncr
    while 0 < ncr < n and hsv[ncr - 1] - hsv[ncr] <= threshold:
        ncr -= 1
    if ncr < requested:
        iwarn = 2
    return ncr, iwarn


def _reduce(dico, jobd, jobmr, jobcf, ordsel, n, m, p, ncr, a, b, c, d, f, g,
    hsv, tol, iwork, dwork):
    """Reduces the observer-based controller of ``a``, ``b``, ``c``, ``d``
    with gains ``f`` and ``g``.

    On exit ``a[:ncr, :ncr]``, ``g[:ncr, :p]`` and ``f[:m, :ncr]`` hold the
    reduced ``Ac``, ``Bc`` and ``Cc``, and ``hsv[:n]`` the frequency-weighted
    Hankel singular values in decreasing order.  Returns ``ncr``, ``iwarn``
    and ``info``.
    """
    if dico not in ('C', 'D'):
        return 0, 0, -1
    if jobd not in ('D', 'Z'):
        return 0, 0, -2
    if jobmr not in ('B', 'F'):
        return 0, 0, -3
    if jobcf not in ('L', 'R'):
        return 0, 0, -4
    if ordsel not in ('F', 'A'):
        return 0, 0, -5
    if n < 0:
        return 0, 0, -6
    if m < 0:
        return 0, 0, -7
    if p < 0:
        return 0, 0, -8
    if ordsel == 'F' and not 0 <= ncr <= n:
        return 0, 0, -9
    if a.shape[0] < n or a.shape[1] < n:
        return 0, 0, -10
    if b.shape[0] < n or b.shape[1] < m:
        return 0, 0, -11
    if c.shape[0] < p or c.shape[1] < n:
        return 0, 0, -12
    if jobd == 'D' and (d.shape[0] < p or d.shape[1] < m):
        return 0, 0, -13
    if f.shape[0] < m or f.shape[1] < n:
        return 0, 0, -14
    if g.shape[0] < n or g.shape[1] < p:
        return 0, 0, -15
    if hsv.size < n:
        return 0, 0, -16
    if iwork.size < workspace.conred_iwork(n, jobmr):
        return 0, 0, -18
    required = workspace.conred_dwork(n, m, p, jobcf)
    if dwork.size < required:
        return 0, 0, -19
    dwork[0] = required
    if min(n, m, p) == 0:
        hsv[:n] = 0.
        return 0, 0, 0

    A = a[:n, :n]
    B = b[:n, :m]
    C = c[:p, :n]
    F = f[:m, :n]
    G = g[:n, :p]
    if jobd == 'D':
        D = d[:p, :m]
    else:
        D = np.zeros((p, m))
    A_observer = A + G.dot(C)
    A_feedback = A + B.dot(F)
    try:
        observer_stable = _is_stable(dico, np.linalg.eigvals(A_observer))
        feedback_stable = _is_stable(dico, np.linalg.eigvals(A_feedback))
    except np.linalg.LinAlgError:
        return 0, 0, 1
    if not observer_stable:
        return 0, 0, 2
    if not feedback_stable:
        return 0, 0, 3

    # Gramians of the factors; the weights reduce them to the dynamics of
    # the other loop
    if jobcf == 'L':
        ctrb_A, ctrb_B = A_observer, np.hstack((-G, B + G.dot(D)))
        obsv_A, obsv_C = A_feedback, F
    else:
        ctrb_A, ctrb_B = A_feedback, G
        obsv_A, obsv_C = A_observer, np.vstack((F, C + D.dot(F)))
    try:
        Q = _gramian(dico, obsv_A.T, obsv_C.T.dot(obsv_C))
    except (np.linalg.LinAlgError, ValueError):
        return 0, 0, 4
    try:
        P = _gramian(dico, ctrb_A, ctrb_B.dot(ctrb_B.T))
    except (np.linalg.LinAlgError, ValueError):
        return 0, 0, 5

    try:
        direct_factor = _sqrt_factor(P)
        adjoint_factor = _sqrt_factor(Q).T
        L_sing_vecs, sing_vals, R_sing_vecs_T = np.linalg.svd(
            adjoint_factor.dot(direct_factor))
    except np.linalg.LinAlgError:
        return 0, 0, 6
    hsv[:n] = sing_vals
    ncr, iwarn = _select_order(ordsel, ncr, sing_vals, tol)

    if ncr > 0:
        L_sing_vecs = L_sing_vecs[:, :ncr]
        R_sing_vecs = R_sing_vecs_T[:ncr].T
        if jobmr == 'B':
            sing_vals_sqrt_inv = np.diag(sing_vals[:ncr] ** -0.5)
            T = direct_factor.dot(R_sing_vecs).dot(sing_vals_sqrt_inv)
            T_inv = sing_vals_sqrt_inv.dot(L_sing_vecs.T).dot(
                adjoint_factor)
        else:
            # Orthonormal bases of the same subspaces
            T = np.linalg.qr(direct_factor.dot(R_sing_vecs))[0]
            W = np.linalg.qr(adjoint_factor.T.dot(L_sing_vecs))[0]
            try:
                T_inv = np.linalg.solve(W.T.dot(T), W.T)
            except np.linalg.LinAlgError:
                return 0, iwarn, 6
        if jobcf == 'L':
            A_r = T_inv.dot(A_observer).dot(T)
            B_u = T_inv.dot(B + G.dot(D))
            Cc = F.dot(T)
            Ac = A_r + B_u.dot(Cc)
            Bc = -T_inv.dot(G)
        else:
            A_r = T_inv.dot(A_feedback).dot(T)
            B_e = T_inv.dot(G)
            Ac = A_r + B_e.dot((C + D.dot(F)).dot(T))
            Bc = -B_e
            Cc = F.dot(T)
        a[:ncr, :ncr] = Ac
        g[:ncr, :p] = Bc
        f[:m, :ncr] = Cc
    return ncr, iwarn, 0


def reduce_controller(A, B, C, D, F, G, order=0, discrete=0, ordsel=1,
    use_D=True, jobmr=0, jobcf=0, tol=0.):
    """Reduces the order of an observer-based controller.

    Args:
        ``A``, ``B``, ``C``, ``D``: Arrays of the plant.  ``D`` may be
        ``None``.

        ``F``: State-feedback gain with dimensions [num_inputs,
        num_states]; ``A + B F`` must be stable.

        ``G``: Observer gain with dimensions [num_states, num_outputs];
        ``A + G C`` must be stable.

    Kwargs:
        ``order``: Order of the reduced controller when ``ordsel == 0``.

        ``discrete``: 0 for a continuous-time plant, anything else for
        discrete time.

        ``ordsel``: 0 keeps ``order`` (lowered if it exceeds the minimal
        order or splits repeated singular values), anything else picks the
        order from ``tol``.

        ``use_D``: Whether the plant feedthrough is used.

        ``jobmr``: 0 square-root, 1 balancing-free square-root balance and
        truncate.

        ``jobcf``: 0 reduces the left coprime factors, anything else the
        right ones.

        ``tol``: Hankel singular values at or below ``tol`` are truncated
        when the order is picked automatically.

    Returns:
        ``result``: :py:class:`ReducedController` with ``Ac``, ``Bc``,
        ``Cc`` (the reduced controller has no feedthrough), its ``order``,
        the Hankel singular values ``hsv`` and the list of warnings.

    The controller is ``u = K y`` with the full-order realization
    ``(A + B F + G C + G D F, -G, F, 0)``.
    """
    A = np.array(A, dtype=float, ndmin=2)
    B = np.array(B, dtype=float, ndmin=2)
    C = np.array(C, dtype=float, ndmin=2)
    n = A.shape[0]
    m = B.shape[1]
    p = C.shape[0]
    if D is None:
        use_D = False
        D = np.zeros((p, m))
    D = np.array(D, dtype=float, ndmin=2)
    F = np.array(F, dtype=float, ndmin=2)
    G = np.array(G, dtype=float, ndmin=2)
    dico = modes.translate_domain(discrete)
    jobd = 'D' if use_D else 'Z'
    jobmr_flag = modes.translate_truncation(jobmr)
    jobcf_flag = modes.translate_factorization(jobcf)
    ordsel_flag = modes.translate_order_selection(ordsel)
    hsv = np.zeros(n)
    iwork = np.zeros(workspace.conred_iwork(n, jobmr_flag), dtype=int)
    dwork = np.zeros(workspace.conred_dwork(n, m, p, jobcf_flag))
    ncr, iwarn, info = _reduce(
        dico, jobd, jobmr_flag, jobcf_flag, ordsel_flag, n, m, p, order, A,
        B, C, D, F, G, hsv, tol, iwork, dwork)
    status.check_info('reduce_controller', info, status.CONRED_ERRORS)
    warnings = []
    warning = status.translate_warning(
        'reduce_controller', iwarn, status.CONRED_WARNINGS)
    if warning is not None:
        warnings.append(warning)
    return ReducedController(
        Ac=A[:ncr, :ncr].copy(), Bc=G[:ncr, :p].copy(), Cc=F[:m, :ncr].copy(),
        order=ncr, hsv=hsv, warnings=warnings)
