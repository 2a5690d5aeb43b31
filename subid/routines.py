"""Numerical routines of the three identification stages.

The routines share one calling convention.  The caller owns every buffer:
output arrays are allocated with (at least) their leading dimensions and
filled in place, and integer/float/boolean scratch is sized with
:py:mod:`subid.workspace` immediately before the call.  Mode arguments are
single-character flags (see :py:mod:`subid.modes`).  Instead of raising, a
routine returns integer status codes:

* ``info``: 0 on success, ``-k`` if argument ``k`` (1-based) is illegal,
  a positive routine-specific code on numerical failure.
* ``iwarn``: 0 or a routine-specific warning code.

:py:mod:`subid.status` translates both into messages.

Data layout: the compressed factor ``R`` is the upper triangular factor of
the block-Hankel data ``H = [U_f; U_p; Y_p; Y_f]`` (future inputs, past
inputs, past outputs, future outputs, each with ``nobr`` block rows), scaled
so that ``R.T R = H H.T / ncols``.  The routines work with ``L = R.T``.
"""
import numpy as np
import scipy.linalg

from . import util, workspace


_EPS = np.finfo(float).eps

# Growth of the observability rows, relative to C, beyond which the samples
# of an unstable system are left out of the initial-state fit
_MAX_GROWTH = 1e8


def _cond(tol):
    """Cutoff passed to ``scipy.linalg.lstsq``; ``None`` selects the
    default."""
    if tol > 0:
        return tol
    return None


def _regress(target, basis, tol):
    """Solves ``target ~ coef @ basis`` in the least-squares sense.

    Returns ``coef`` and the numerical rank of ``basis``."""
    if basis.shape[0] == 0:
        return np.zeros((target.shape[0], 0)), 0
    coef_T, resid, rank, sing_vals = scipy.linalg.lstsq(
        basis.T, target.T, cond=_cond(tol))
    return coef_T.T, rank


def _sv_rcond(array):
    """Ratio of the smallest to the largest singular value."""
    if array.size == 0:
        return 1.
    sing_vals = np.linalg.svd(array, compute_uv=False)
    if sing_vals[0] == 0:
        return 0.
    return sing_vals[-1] / sing_vals[0]


def _data_matrix(inputs, outputs, nobr, num_cols):
    """Block-Hankel data ordered as ``[U_f; U_p; Y_p; Y_f]``."""
    m = inputs.shape[1]
    l = outputs.shape[1]
    input_Hankel = util.block_Hankel(inputs, 2*nobr, num_cols)
    output_Hankel = util.block_Hankel(outputs, 2*nobr, num_cols)
    return np.vstack((
        input_Hankel[m*nobr:], input_Hankel[:m*nobr],
        output_Hankel[:l*nobr], output_Hankel[l*nobr:]))


def _row_order(m, l, nobr):
    """Permutation from time-interleaved rows ``[w_0; w_1; ...]`` with
    ``w_k = [u_k; y_k]`` to the ``[U_f; U_p; Y_p; Y_f]`` ordering."""
    dim = m + l
    past = range(nobr)
    future = range(nobr, 2*nobr)
    input_comps = range(m)
    output_comps = range(m, dim)

    def rows(blocks, comps):
        return [block*dim + comp for block in blocks for comp in comps]

    return np.array(
        rows(future, input_comps) + rows(past, input_comps) +
        rows(past, output_comps) + rows(future, output_comps), dtype=int)


def _fast_correlation(inputs, outputs, nobr, num_cols):
    """Correlation ``H H.T`` of the block-Hankel data from the displacement
    structure: only the first block row is formed from inner products, the
    rest follows from rank-two updates of the block above-left."""
    signals = np.hstack((inputs, outputs))
    dim = signals.shape[1]
    num_blocks = 2*nobr
    corr = np.zeros((num_blocks*dim, num_blocks*dim))

    def blk(i):
        return slice(i*dim, (i + 1)*dim)

    head = signals[:num_cols]
    for j in range(num_blocks):
        corr[blk(0), blk(j)] = head.T.dot(signals[j:j + num_cols])
    for i in range(1, num_blocks):
        for j in range(i, num_blocks):
            corr[blk(i), blk(j)] = (
                corr[blk(i - 1), blk(j - 1)]
                - np.outer(signals[i - 1], signals[j - 1])
                + np.outer(signals[i - 1 + num_cols],
                    signals[j - 1 + num_cols]))
    for i in range(1, num_blocks):
        for j in range(i):
            corr[blk(i), blk(j)] = corr[blk(j), blk(i)].T

    order = _row_order(inputs.shape[1], outputs.shape[1], nobr)
    return corr[np.ix_(order, order)]


def _positive_diagonal(factor):
    signs = np.sign(np.diag(factor))
    signs[signs == 0] = 1.
    return signs[:, np.newaxis] * factor


def _triangular_factor(stacked, num_rows):
    """Square upper triangular factor of ``stacked`` with a nonnegative
    diagonal."""
    factor = np.linalg.qr(stacked, mode='r')
    if factor.shape[0] < num_rows:
        factor = np.vstack((
            factor, np.zeros((num_rows - factor.shape[0], factor.shape[1]))))
    return _positive_diagonal(factor[:num_rows])


def _oblique(L, target, along, onto, tol):
    """Oblique projection of the ``target`` rows of ``L`` along the
    ``along`` rows onto the ``onto`` rows.

    Returns the projection and the ranks of the ``along`` block and of the
    stacked regressors."""
    basis = np.vstack((L[along], L[onto]))
    coef, rank_all = _regress(L[target], basis, tol)
    num_along = L[along].shape[0]
    projection = coef[:, num_along:].dot(L[onto])
    rank_along = util.rank(L[along], tol) if num_along else 0
    return projection, rank_along, rank_all


def _estimate_order(sing_vals, nobr, tol):
    """Order from the singular values.

    ``tol > 0`` counts the singular values at or above ``tol``, ``tol == 0``
    uses the threshold ``nobr*eps*sing_vals[0]`` and ``tol < 0`` picks the
    largest logarithmic gap.  The result is capped at ``nobr - 1``."""
    max_order = nobr - 1
    if sing_vals.size == 0 or sing_vals[0] == 0 or max_order < 1:
        return 0
    if tol >= 0:
        if tol == 0:
            threshold = nobr * _EPS * sing_vals[0]
        else:
            threshold = tol
        order = int((sing_vals >= threshold).sum())
    else:
        floor = _EPS * sing_vals[0]
        logs = np.log10(np.maximum(sing_vals[:max_order + 1], floor))
        gaps = logs[:-1] - logs[1:]
        order = int(np.argmax(gaps)) + 1
    return min(order, max_order)


def _singular_values(L, meth, m, l, nobr, tol):
    """Singular values that reveal the order, plus a warning code."""
    mnobr = m*nobr
    lnobr = l*nobr
    past_end = 2*mnobr + lnobr
    if meth == 'M':
        return np.linalg.svd(
            L[past_end:, mnobr:past_end], compute_uv=False), 0
    projection, rank_inputs, rank_all = _oblique(
        L, np.s_[past_end:], np.s_[:mnobr], np.s_[mnobr:past_end], tol)
    iwarn = 0
    if rank_inputs < mnobr:
        iwarn = 4
    elif rank_all < past_end:
        iwarn = 5
    return np.linalg.svd(projection, compute_uv=False), iwarn


def preprocess(
    meth, alg, jobd, batch, conct, ctrl, nobr, inputs, outputs, r,
    sing_vals, state, tol_rank, tol_order, iwork, dwork, confirm=None):
    """Compresses one batch of input-output data and, on the closing batch,
    estimates the order.

    Args:
        ``meth``: ``'M'`` (MOESP) or ``'N'`` (N4SID).

        ``alg``: ``'C'`` Cholesky on correlations, ``'F'`` fast correlation
        by displacement updates, ``'Q'`` QR of the data.

        ``jobd``: ``'M'`` or ``'N'``; only meaningful for MOESP.

        ``batch``: ``'O'``, ``'F'``, ``'I'`` or ``'L'``.

        ``conct``: ``'C'`` if this batch continues the previous one in time.

        ``ctrl``: ``'C'`` to pass the order estimate through ``confirm``.

        ``nobr``: Number of block rows.

        ``inputs``, ``outputs``: Arrays with indices [time, channel].

        ``r``: Array with at least ``ldr`` rows and ``2*(m+l)*nobr``
        columns, receives the triangular factor on the closing batch.

        ``sing_vals``: Array of length ``l*nobr``, receives the singular
        values on the closing batch.

        ``state``: :py:class:`~subid.batch.AccumulationState` shared by the
        calls of one dataset.

        ``tol_rank``: Rank tolerance for least squares, ``<= 0`` default.

        ``tol_order``: Order tolerance, see :py:func:`_estimate_order`.

        ``iwork``, ``dwork``: Scratch arrays.

    Kwargs:
        ``confirm``: Callable ``confirm(order, sing_vals)`` returning the
        order to use; only called when ``ctrl == 'C'``.

    Returns:
        ``order``: Estimated order (0 for non-closing batches).

        ``iwarn``, ``info``: Status codes.
    """
    iwarn = 0
    if meth not in ('M', 'N'):
        return 0, iwarn, -1
    if alg not in ('C', 'F', 'Q'):
        return 0, iwarn, -2
    if meth == 'M' and jobd not in ('M', 'N'):
        return 0, iwarn, -3
    if batch not in ('F', 'I', 'L', 'O'):
        return 0, iwarn, -4
    if conct not in ('C', 'N'):
        return 0, iwarn, -5
    if ctrl not in ('C', 'N'):
        return 0, iwarn, -6
    if nobr <= 0:
        return 0, iwarn, -7
    inputs = np.asarray(inputs, dtype=float)
    outputs = np.asarray(outputs, dtype=float)
    if inputs.ndim != 2:
        return 0, iwarn, -8
    if outputs.ndim != 2 or outputs.shape[1] == 0:
        return 0, iwarn, -9
    nsmp, m = inputs.shape
    l = outputs.shape[1]
    if outputs.shape[0] != nsmp:
        return 0, iwarn, -8
    if batch == 'O':
        min_samples = 2*(m + l + 1)*nobr - 1
    else:
        min_samples = 2*nobr
    if nsmp < min_samples:
        return 0, iwarn, -8
    num_rows = 2*(m + l)*nobr
    lnobr = l*nobr
    if (r.shape[0] < workspace.preprocess_ldr(m, l, nobr, meth, jobd) or
        r.shape[1] != num_rows):
        return 0, iwarn, -10
    if sing_vals.size < lnobr:
        return 0, iwarn, -11
    if state.num_rows != num_rows:
        return 0, iwarn, -12
    if iwork.size < workspace.preprocess_iwork(m, l, nobr, meth, alg):
        return 0, iwarn, -15
    if dwork.size < workspace.preprocess_dwork(
        m, l, nobr, nsmp, r.shape[0], meth, alg, jobd, batch, conct,
        optimal=False):
        return 0, iwarn, -16

    try:
        if state.advance(batch):
            iwarn = 1
    except ValueError:
        return 0, iwarn, -4

    # Connected experiments share the samples that straddle the boundary
    if (conct == 'C' and batch in ('I', 'L') and
        state.tail_inputs is not None):
        inputs = np.vstack((state.tail_inputs, inputs))
        outputs = np.vstack((state.tail_outputs, outputs))
    if conct == 'C' and batch in ('F', 'I'):
        num_tail = 2*nobr - 1
        state.tail_inputs = inputs[inputs.shape[0] - num_tail:].copy()
        state.tail_outputs = outputs[outputs.shape[0] - num_tail:].copy()
    num_cols = inputs.shape[0] - 2*nobr + 1
    state.num_samples += nsmp

    data = None
    try:
        if alg == 'Q':
            data = _data_matrix(inputs, outputs, nobr, num_cols)
            state.accum = _triangular_factor(
                np.vstack((state.accum, data.T)), num_rows)
        elif alg == 'C':
            data = _data_matrix(inputs, outputs, nobr, num_cols)
            state.accum = state.accum + data.dot(data.T)
        else:
            state.accum = state.accum + _fast_correlation(
                inputs, outputs, nobr, num_cols)
    except np.linalg.LinAlgError:
        return 0, iwarn, 2
    state.num_cols += num_cols

    if batch in ('F', 'I'):
        dwork[0] = workspace.preprocess_dwork(
            m, l, nobr, nsmp, r.shape[0], meth, alg, jobd, batch, conct)
        return 0, iwarn, 0

    # Closing batch: form the scaled triangular factor
    if alg == 'Q':
        factor = state.accum / np.sqrt(state.num_cols)
    else:
        try:
            factor = scipy.linalg.cholesky(
                state.accum / state.num_cols, lower=False)
        except np.linalg.LinAlgError:
            if batch != 'O':
                return 0, iwarn, 1
            if data is None:
                data = _data_matrix(inputs, outputs, nobr, num_cols)
            factor = _triangular_factor(data.T, num_rows) / np.sqrt(
                state.num_cols)
            iwarn = max(iwarn, 2)
    r[:] = 0.
    r[:num_rows, :num_rows] = factor

    try:
        sv, code = _singular_values(factor.T, meth, m, l, nobr, tol_rank)
    except np.linalg.LinAlgError:
        return 0, iwarn, 2
    iwarn = max(iwarn, code)
    sing_vals[:lnobr] = sv

    if sv[0] == 0:
        order = 0
        iwarn = max(iwarn, 3)
    else:
        order = _estimate_order(sv, nobr, tol_order)
    if ctrl == 'C' and confirm is not None:
        order = int(confirm(order, sv.copy()))
        if order < 0 or order >= nobr:
            return 0, iwarn, -6

    dwork[0] = workspace.preprocess_dwork(
        m, l, nobr, nsmp, r.shape[0], meth, alg, jobd, batch, conct)
    return order, iwarn, 0


def _moesp_input_matrices(L, perp, gamma, m, l, nobr, tol):
    """B and D from the orthogonal complement of the observability basis.

    Returns ``B``, ``D`` and whether either least-squares problem was rank
    deficient."""
    n = gamma.shape[1]
    mnobr = m*nobr
    past_end = 2*mnobr + l*nobr
    left = perp.T
    num_perp = left.shape[0]

    coef, rank_inputs = _regress(
        left.dot(L[past_end:, :mnobr]), L[:mnobr, :mnobr], tol)
    blocks = []
    rhs = []
    for j in range(nobr):
        block = np.zeros((num_perp, l + n))
        block[:, :l] = left[:, j*l:(j + 1)*l]
        if j < nobr - 1:
            block[:, l:] = left[:, (j + 1)*l:].dot(gamma[:(nobr - 1 - j)*l])
        blocks.append(block)
        rhs.append(coef[:, j*m:(j + 1)*m])
    solution, resid, rank_DB, sv = scipy.linalg.lstsq(
        np.vstack(blocks), np.vstack(rhs), cond=_cond(tol))
    deficient = rank_inputs < mnobr or rank_DB < l + n
    return solution[l:], solution[:l], deficient


def estimate_system(
    meth, job, jobck, nobr, n, m, l, nsmpl, r, tol, a, c, b, d, q, ry, s, k,
    iwork, dwork, bwork):
    """Estimates the system matrices, noise covariances and Kalman gain from
    the compressed factor.

    Args:
        ``meth``: ``'M'`` MOESP, ``'N'`` N4SID, ``'C'`` A and C by MOESP
        with B and D by N4SID-style least squares.

        ``job``: ``'A'`` (all matrices).

        ``jobck``: ``'K'`` to compute covariances and Kalman gain, ``'N'``
        to skip them.

        ``nobr``, ``n``, ``m``, ``l``: Block rows, order, inputs, outputs.

        ``nsmpl``: Total number of samples behind ``r``.

        ``r``: Compressed factor with at least ``2*(m+l)*nobr`` rows and
        columns.

        ``tol``: Rank tolerance for least squares, ``<= 0`` default.

        ``a``, ``c``, ``b``, ``d``, ``q``, ``ry``, ``s``, ``k``: Output
        arrays with at least the natural number of rows and columns.

        ``iwork``, ``dwork``, ``bwork``: Scratch arrays.  On exit
        ``dwork[0]`` holds the required length and ``dwork[1:4]`` the
        reciprocal condition estimates of the shift problem, the B/D
        problem and the gain system; ``bwork[:n]`` flags the stable
        eigenvalues of A and ``bwork[n:2*n]`` those of ``A - K C``.

    Returns:
        ``iwarn``, ``info``: Status codes.
    """
    iwarn = 0
    if meth not in ('M', 'N', 'C'):
        return iwarn, -1
    if job != 'A':
        return iwarn, -2
    if jobck not in ('K', 'N'):
        return iwarn, -3
    if nobr <= 1:
        return iwarn, -4
    if n <= 0 or n >= nobr:
        return iwarn, -5
    if m < 0:
        return iwarn, -6
    if l <= 0:
        return iwarn, -7
    num_rows = 2*(m + l)*nobr
    if jobck == 'K' and nsmpl < num_rows:
        return iwarn, -8
    if r.shape[0] < num_rows or r.shape[1] < num_rows:
        return iwarn, -9
    shapes = [(a, n, n), (c, l, n), (b, n, m), (d, l, m), (q, n, n),
        (ry, l, l), (s, n, l), (k, n, l)]
    for position, (array, rows, cols) in enumerate(shapes):
        if array.shape[0] < rows or array.shape[1] < cols:
            return iwarn, -(11 + position)
    if iwork.size < workspace.system_iwork(n, m, l, nobr):
        return iwarn, -19
    required = workspace.system_dwork(n, m, l, nobr, meth, job)
    if dwork.size < required:
        return iwarn, -20
    if bwork.size < workspace.system_bwork(n):
        return iwarn, -21

    mnobr = m*nobr
    lnobr = l*nobr
    past_end = 2*mnobr + lnobr
    L = r[:num_rows, :num_rows].T

    try:
        U, S, V_T = np.linalg.svd(L[past_end:, mnobr:past_end])
    except np.linalg.LinAlgError:
        return iwarn, 2
    gamma = U[:, :n] * np.sqrt(S[:n])
    perp = U[:, n:]

    # States from oblique projections: X_i at the first future block row and
    # X_{i+1} one block row later
    past = np.r_[mnobr:past_end]
    past_plus = np.r_[mnobr:2*mnobr, 0:m, 2*mnobr:past_end,
        past_end:past_end + l]
    try:
        proj, rank_along, rank_all = _oblique(
            L, np.s_[past_end:], np.s_[:mnobr], past, tol)
        proj_next, rank_along_next, rank_all_next = _oblique(
            L, np.s_[past_end + l:], np.s_[m:mnobr], past_plus, tol)
        if meth == 'N':
            U_o, S_o, V_o_T = np.linalg.svd(proj)
            gamma = U_o[:, :n] * np.sqrt(S_o[:n])
    except np.linalg.LinAlgError:
        return iwarn, 2
    if (rank_along < mnobr or rank_along_next < mnobr - m or
        rank_all < past_end or rank_all_next < past_end + l):
        iwarn = 4

    gamma_up = gamma[:-l]
    if util.rank(gamma_up, tol) < n:
        return iwarn, 3
    states, rank = _regress(proj.T, gamma.T, tol)
    states = states.T
    states_next, rank = _regress(proj_next.T, gamma_up.T, tol)
    states_next = states_next.T
    inputs_now = L[:m]
    outputs_now = L[past_end:past_end + l]

    if meth in ('M', 'C'):
        A_T, rank = _regress(gamma[l:].T, gamma_up.T, tol)
        A = A_T.T
        C = gamma[:l].copy()
    rcond_BD = 1.
    if m == 0:
        B = np.zeros((n, 0))
        D = np.zeros((l, 0))
        if meth == 'N':
            A_C, rank = _regress(
                np.vstack((states_next, outputs_now)), states, tol)
            A = A_C[:n]
            C = A_C[n:]
    elif meth == 'M':
        B, D, deficient = _moesp_input_matrices(
            L, perp, gamma, m, l, nobr, tol)
        if deficient:
            iwarn = 4
    elif meth == 'N':
        regressors = np.vstack((states, inputs_now))
        theta, rank = _regress(
            np.vstack((states_next, outputs_now)), regressors, tol)
        if rank < n + m:
            iwarn = 4
        A = theta[:n, :n]
        B = theta[:n, n:]
        C = theta[n:, :n]
        D = theta[n:, n:]
        rcond_BD = _sv_rcond(regressors)
    else:
        lhs = np.vstack((
            states_next - A.dot(states), outputs_now - C.dot(states)))
        theta, rank = _regress(lhs, inputs_now, tol)
        if rank < m:
            iwarn = 4
        B = theta[:n]
        D = theta[n:]
        rcond_BD = _sv_rcond(inputs_now)

    a[:n, :n] = A
    c[:l, :n] = C
    b[:n, :m] = B
    d[:l, :m] = D
    dwork[0] = required
    dwork[1] = _sv_rcond(gamma_up)
    dwork[2] = rcond_BD
    dwork[3] = 1.
    bwork[:] = False
    bwork[:n] = np.abs(np.linalg.eigvals(A)) < 1.
    if jobck == 'N':
        return iwarn, 0

    # Noise covariances from the one-step residuals
    lhs = np.vstack((states_next, outputs_now))
    residuals = lhs - np.vstack((
        np.hstack((A, B)), np.hstack((C, D)))).dot(
        np.vstack((states, inputs_now)))
    cov = residuals.dot(residuals.T)
    cov = (cov + cov.T) / 2.
    Q = cov[:n, :n]
    S_cov = cov[:n, n:]
    Ry = cov[n:, n:]
    q[:n, :n] = Q
    s[:n, :l] = S_cov
    ry[:l, :l] = Ry

    if np.linalg.norm(cov) <= np.sqrt(_EPS) * np.linalg.norm(lhs)**2:
        k[:n, :l] = 0.
        bwork[n:2*n] = bwork[:n]
        return 5, 0

    try:
        P = scipy.linalg.solve_discrete_are(A.T, C.T, Q, Ry, s=S_cov)
    except (np.linalg.LinAlgError, ValueError):
        return iwarn, 7
    innovation_cov = C.dot(P).dot(C.T) + Ry
    dwork[3] = _sv_rcond(innovation_cov)
    if dwork[3] <= _EPS:
        return iwarn, 8
    K = np.linalg.solve(
        innovation_cov.T, (A.dot(P).dot(C.T) + S_cov).T).T
    k[:n, :l] = K
    bwork[n:2*n] = np.abs(np.linalg.eigvals(A - K.dot(C))) < 1.
    return iwarn, 0


def estimate_initial_state(
    jobx0, comuse, job, n, m, l, a, b, c, d, inputs, outputs, x0, v, tol,
    iwork, dwork):
    """Estimates the initial state of one experiment for a known system.

    Args:
        ``jobx0``: ``'X'`` to estimate ``x0``, ``'N'`` to set it to zero.

        ``comuse``: ``'U'`` to use B (and D) for the forced response,
        ``'N'`` to treat the data as a free response.

        ``job``: ``'D'`` to include D, ``'B'`` to treat D as zero.

        ``n``, ``m``, ``l``: Order, inputs and outputs.

        ``a``, ``b``, ``c``, ``d``: System arrays.

        ``inputs``, ``outputs``: Experiment data with indices [time,
        channel].

        ``x0``: Array of length ``n``, receives the initial state.

        ``v``: ``n`` by ``n`` array, receives the orthogonal factor of the
        real Schur form of A.

        ``tol``: Rank tolerance, ``<= 0`` default.

        ``iwork``, ``dwork``: Scratch arrays.  On exit ``dwork[0]`` holds
        the required length and ``dwork[1]`` the reciprocal condition
        estimate of the observability least-squares problem.

    Returns:
        ``iwarn``, ``info``: Status codes.
    """
    iwarn = 0
    if jobx0 not in ('X', 'N'):
        return iwarn, -1
    if comuse not in ('U', 'N'):
        return iwarn, -2
    if job not in ('D', 'B'):
        return iwarn, -3
    if n <= 0:
        return iwarn, -4
    if m < 0:
        return iwarn, -5
    if l <= 0:
        return iwarn, -6
    if a.shape[0] < n or a.shape[1] < n:
        return iwarn, -7
    if comuse == 'U' and (b.shape[0] < n or b.shape[1] < m):
        return iwarn, -8
    if c.shape[0] < l or c.shape[1] < n:
        return iwarn, -9
    if comuse == 'U' and job == 'D' and (d.shape[0] < l or d.shape[1] < m):
        return iwarn, -10
    inputs = np.asarray(inputs, dtype=float)
    outputs = np.asarray(outputs, dtype=float)
    nsmp = outputs.shape[0]
    if inputs.shape != (nsmp, m):
        return iwarn, -11
    if outputs.shape[1] != l or nsmp < n:
        return iwarn, -12
    if x0.size < n:
        return iwarn, -13
    if v.shape[0] < n or v.shape[1] < n:
        return iwarn, -14
    if iwork.size < workspace.initial_state_iwork(n):
        return iwarn, -16
    required = workspace.initial_state_dwork(n, m, l, nsmp)
    if dwork.size < required:
        return iwarn, -17

    A = a[:n, :n]
    C = c[:l, :n]
    try:
        T, Z = scipy.linalg.schur(A, output='real')
    except (np.linalg.LinAlgError, ValueError):
        return iwarn, 1
    v[:n, :n] = Z
    dwork[0] = required
    if jobx0 == 'N':
        x0[:n] = 0.
        return iwarn, 0

    unstable = np.max(np.abs(np.linalg.eigvals(T))) >= 1.

    with np.errstate(over='ignore', invalid='ignore'):
        # Remove the forced response, the rest is C A^k x0
        residual = outputs.copy()
        if comuse == 'U' and m > 0:
            if job == 'D':
                D = d[:l, :m]
            else:
                D = np.zeros((l, m))
            residual -= util.lsim(A, b[:n, :m], C, inputs, D=D)

        C_Schur = C.dot(Z)
        bound = _MAX_GROWTH * max(1., np.abs(C_Schur).max())
        obs = np.zeros((nsmp*l, n))
        block = C_Schur
        num_steps = nsmp
        for step in range(nsmp):
            if step > 0 and unstable and not (
                np.isfinite(residual[step]).all() and
                np.abs(block).max() <= bound):
                num_steps = step
                break
            obs[step*l:(step + 1)*l] = block
            block = block.dot(T)
    try:
        x0_Schur, resid, rank, sing_vals = scipy.linalg.lstsq(
            obs[:num_steps*l], residual[:num_steps].reshape(-1),
            cond=_cond(tol))
    except np.linalg.LinAlgError:
        return iwarn, 2
    x0[:n] = Z.dot(x0_Schur)
    dwork[1] = sing_vals[-1] / sing_vals[0] if sing_vals[0] > 0 else 0.

    if rank < n:
        iwarn = 4
    if unstable:
        iwarn = 6
    return iwarn, 0
