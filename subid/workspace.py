"""Scratch-buffer sizes for the numerical routines.

Each function is a pure closed-form computation of the integer and float
workspace a routine needs for a given problem shape and flag combination.
The routines check what they are handed against the same formulas and
report ``info = -k`` for an undersized buffer ``k``, so callers should size
buffers with these functions immediately before every call.

Sizes are element counts.
"""


def preprocess_ldr(m, l, nobr, meth, jobd):
    """Leading dimension of the compressed factor ``R``."""
    nr = 2*(m + l)*nobr
    if meth == 'M' and jobd == 'M':
        return max(nr, 3*m*nobr)
    return nr


def preprocess_iwork(m, l, nobr, meth, alg):
    """Integer workspace for the compression stage."""
    if meth == 'N':
        return (m + l)*nobr
    if alg == 'F':
        return m + l
    return 0


def preprocess_dwork(
    m, l, nobr, nsmp, ldr, meth, alg, jobd, batch, conct, optimal=True):
    """Float workspace for one compression call.

    Args:
        ``m``, ``l``, ``nobr``: Inputs, outputs and block rows.

        ``nsmp``: Number of samples in this batch.

        ``ldr``: Leading dimension of ``R``, see :py:func:`preprocess_ldr`.

        ``meth``, ``alg``, ``jobd``, ``batch``, ``conct``: Routine flags.

    Kwargs:
        ``optimal``: If true, raise the result to the performance floor
        ``(ns+2)*2*(m+l)*nobr`` with ``ns = nsmp - 2*nobr + 1``.

    Returns:
        ``ldwork``: Number of float elements.

    The routine's own documentation describes the floor with the names of
    the triangular-work and total-work lengths apparently swapped.  The
    floor is applied here to the total length, as the reference
    implementation does.
    """
    mnobr = m*nobr
    lnobr = l*nobr
    lmnobr = lnobr + mnobr
    nr = 2*lmnobr
    ns = nsmp - 2*nobr + 1

    if alg == 'C':
        if batch in ('F', 'I'):
            if conct == 'C':
                ldwork = (4*nobr - 2)*(m + l)
            else:
                ldwork = 1
        elif meth == 'M':
            if conct == 'C' and batch == 'L':
                ldwork = max((4*nobr - 2)*(m + l), 5*lnobr)
            elif jobd == 'M':
                ldwork = max((2*m - 1)*nobr, lmnobr, 5*lnobr)
            else:
                ldwork = 5*lnobr
        else:
            ldwork = 5*lmnobr + 1
    elif alg == 'F':
        if batch != 'O' and conct == 'C':
            ldwork = (m + l)*2*nobr*(m + l + 3)
        elif batch in ('F', 'I'):
            ldwork = (m + l)*2*nobr*(m + l + 1)
        else:
            ldwork = (m + l)*4*nobr*(m + l + 1) + (m + l)*2*nobr
    else:
        if ldr >= ns and batch == 'F':
            ldwork = 4*lmnobr
        elif ldr >= ns and batch == 'O':
            if meth == 'M':
                ldwork = max(4*lmnobr, 5*lnobr)
            else:
                ldwork = 5*lmnobr + 1
        elif conct == 'C' and batch in ('I', 'L'):
            ldwork = 4*(nobr + 1)*lmnobr
        else:
            ldwork = 6*lmnobr

    if optimal:
        ldwork = max(ldwork, (ns + 2)*nr)
    return ldwork


def system_iwork(n, m, l, nobr):
    """Integer workspace for the system-matrix stage."""
    return max(n, m*nobr + n, l*nobr, m*(n + l), n*n)


def system_dwork(n, m, l, nobr, meth, job='A'):
    """Float workspace for the system-matrix stage.

    ``meth`` is the stage's own method flag (``'M'``, ``'N'`` or ``'C'``)
    and ``job`` selects which matrices are computed (``'A'`` all)."""
    mnobr = m*nobr
    lnobr = l*nobr
    lnobrn = (lnobr - l)*n

    ldw1a = max(2*lnobrn + 2*n, lnobrn + n*n + 7*n)
    ldw1_n = lnobr*n + max(
        lnobrn + 2*n + (2*m + l)*nobr + l,
        2*lnobrn + n*n + 8*n,
        n + 4*(mnobr + n) + 1,
        mnobr + 3*n + l)
    ldw2_n = lnobr*n + mnobr*(n + l)*(m*(n + l) + 1) + max(
        (n + l)**2, 4*m*(n + l) + 1)

    if meth == 'M':
        ldw1b = max(
            2*lnobrn + n*n + 7*n,
            lnobrn + n + 6*mnobr,
            lnobrn + n + max(l + mnobr, lnobr + max(3*lnobr + 1, m)))
        ldw1 = max(ldw1a, ldw1b)
        if m == 0 or job == 'C':
            aw = n + n*n
        else:
            aw = 0
        ldw2 = lnobr*n + max(
            lnobrn + aw + 2*n + max(5*n, (2*m + l)*nobr + l),
            4*(mnobr + n) + 1,
            mnobr + 2*n + l)
    elif meth == 'N':
        ldw1 = ldw1_n
        if m == 0 or job == 'C':
            ldw2 = 0
        else:
            ldw2 = ldw2_n
    else:
        ldw1 = max(ldw1a, ldw1_n)
        ldw2 = ldw2_n

    ldw3 = max(4*n*n + 2*n*l + l*l + max(3*l, n*l), 14*n*n + 12*n + 5)
    return max(ldw1, ldw2, ldw3)


def system_bwork(n):
    """Boolean workspace for the system-matrix stage."""
    return 2*n


def initial_state_iwork(n):
    """Integer workspace for the initial-state stage."""
    return n


def initial_state_dwork(n, m, l, nsmp):
    """Float workspace for the initial-state stage of one experiment."""
    ldw1 = 2
    ldw2 = nsmp*l*(n + 1) + 2*n + max(2*n*n, 4*n)
    ldw3 = n*(n + 1) + 2*n + max(n*l*(n + 1) + 2*n*n + l*n, 4*n)
    return ldw1 + n*(n + m + l) + max(5*n, ldw1, min(ldw2, ldw3))


def place_dwork(n, m):
    """Float workspace for pole placement."""
    return max(1, 5*m, 5*n, 2*n + 4*m)


def hinfsyn_iwork(n, m, np, ncon, nmeas):
    """Integer workspace for H-infinity synthesis."""
    m2 = ncon
    np2 = nmeas
    return max(2*max(m2, n), m, m2 + np2, n*n)


def hinfsyn_dwork(n, m, np, ncon, nmeas):
    """Float workspace for H-infinity synthesis."""
    m2 = ncon
    m1 = m - m2
    np2 = nmeas
    np1 = np - np2
    q = max(m1, m2, np1, np2)
    return max(
        (n + q)*(n + q + 6),
        13*n*n + m*m + 2*q*q + n*(m + q)
        + max(m*(m + 7*n), 2*q*(8*n + m + 2*q)) + 6*n
        + max(14*n + 23, 16*n, 2*n + max(m, 2*q), 3*max(m, 2*q)))


def ncfsyn_iwork(n, m, np):
    """Integer workspace for loop-shaping synthesis."""
    return 2*max(n, m + np)


def ncfsyn_dwork(n, m, np):
    """Float workspace for loop-shaping synthesis."""
    return (16*n*n + 5*m*m + 7*np*np + 6*m*n + 7*m*np + 7*n*np + 6*n
            + 2*(m + np) + max(14*n + 23, 16*n, 2*m - 1, 2*np - 1))


def synthesis_bwork(n):
    """Boolean workspace for both synthesis routines."""
    return 2*n


def lyap_dwork(n):
    """Float workspace for the generalized Lyapunov solver."""
    return max(1, 4*n)


def conred_iwork(n, jobmr):
    """Integer workspace for controller reduction, only needed by the
    balancing-free variant."""
    if jobmr == 'B':
        return 0
    return n


def conred_dwork(n, m, p, jobcf):
    """Float workspace for controller reduction."""
    if jobcf == 'L':
        mp = m
    else:
        mp = p
    return 2*n*n + max(
        1, 2*n*n + 5*n, n*max(m, p),
        n*(n + max(n, mp) + min(n, mp) + 6))
