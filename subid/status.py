"""Exceptions, warning records and the status-code message tables.

Every numerical routine in :py:mod:`subid.routines` and the peer modules
reports its outcome as a pair of integers: ``info`` (0 success, negative for
an illegal argument, positive for a numerical failure) and ``iwarn`` (0 or a
warning code).  The tables below turn those codes into messages.  Failures
become :py:class:`NumericalFailure` exceptions; warnings become
:py:class:`NumericalWarning` records that are collected, never raised.
"""
import numpy as np


class InvalidModeError(ValueError):
    """A mode selector is outside its allowed set.

    The offending selector's name is kept in ``selector``."""
    def __init__(self, selector, value, allowed):
        self.selector = selector
        self.value = value
        self.allowed = tuple(allowed)
        ValueError.__init__(
            self, "invalid value %r for selector '%s', must be one of %s" % (
                value, selector, ', '.join(str(a) for a in self.allowed)))


class InvalidOrderError(ValueError):
    """Requested system order is not usable with the block-row count."""
    pass


class InsufficientSamplesError(ValueError):
    """Too few samples in one experiment, or in the dataset as a whole.

    ``experiment`` is the zero-based index of the offending experiment, or
    ``None`` when the total sample count is what falls short."""
    def __init__(self, msg, experiment=None, num_samples=None, required=None):
        self.experiment = experiment
        self.num_samples = num_samples
        self.required = required
        ValueError.__init__(self, msg)


class NumericalFailure(RuntimeError):
    """A numerical routine returned a nonzero ``info``."""
    def __init__(self, routine, info, message):
        self.routine = routine
        self.info = info
        self.message = message
        RuntimeError.__init__(self, '%s: %s' % (routine, message))


class NumericalWarning(UserWarning):
    """A non-fatal condition reported by a numerical routine.

    Instances are collected in lists and handed back to the caller.  The
    ``experiment`` attribute is ``None`` for stages that see the dataset as a
    whole.
    """
    def __init__(self, routine, code, message, experiment=None):
        self.routine = routine
        self.code = code
        self.message = message
        self.experiment = experiment
        UserWarning.__init__(self, str(self))

    def __str__(self):
        if self.experiment is None:
            return '%s: warning %s' % (self.routine, self.message)
        return '%s: warning %s (experiment %d)' % (
            self.routine, self.message, self.experiment)


# Stage A: block-Hankel compression and order estimation
PREPROCESS_ERRORS = {
    1: 'a fast algorithm was requested (ALG = C, F) in sequential data '
       'processing, but it failed; the routine can be repeatedly called '
       'again using the standard QR algorithm',
    2: 'the singular value decomposition (SVD) algorithm did not converge',
}

PREPROCESS_WARNINGS = {
    1: 'the number of 100 cycles in sequential data processing has been '
       'exhausted without signaling that the last block of data was get; '
       'the cycle counter was reinitialized',
    2: 'a fast algorithm was requested (ALG = C or F), but it failed, and '
       'the QR algorithm was then used (non-sequential data processing)',
    3: 'all singular values were exactly zero, hence N has been set to 0',
    4: 'the least squares problems with coefficient matrix U_f, used for '
       'computing the weighted oblique projection (for METH = N), have a '
       'rank-deficient coefficient matrix',
    5: 'the least squares problem with coefficient matrix r_1, used for '
       'computing the weighted oblique projection (for METH = N), has a '
       'rank-deficient coefficient matrix',
}

# Stage B: system matrices, covariances and Kalman gain
SYSTEM_ERRORS = {
    1: 'error message not specified',
    2: 'the singular value decomposition (SVD) algorithm did not converge',
    3: 'a singular upper triangular matrix was found',
    4: 'matrix A is (numerically) singular in discrete-time case',
    5: 'the Hamiltonian or symplectic matrix H cannot be reduced to real '
       'Schur form',
    6: 'the real Schur form of the Hamiltonian or symplectic matrix H cannot '
       'be appropriately ordered',
    7: 'the Hamiltonian or symplectic matrix H has less than N stable '
       'eigenvalues',
    8: 'the N-th order system of linear algebraic equations, from which the '
       'solution matrix X would be obtained, is singular to working precision',
    9: 'the QR algorithm failed to complete the reduction of the matrix Ac '
       'to Schur canonical form, T',
    10: 'the QR algorithm did not converge',
}

SYSTEM_WARNINGS = {
    1: 'warning message not specified',
    2: 'warning message not specified',
    3: 'warning message not specified',
    4: 'a least squares problem to be solved has a rank-deficient '
       'coefficient matrix',
    5: 'the computed covariance matrices are too small; the problem seems '
       'to be a deterministic one; the gain matrix is set to zero',
}

# Stage C: initial state per experiment
INITIAL_STATE_ERRORS = {
    1: 'the QR algorithm failed to compute all the eigenvalues of the '
       'matrix A (see LAPACK Library routine DGEES); the locations DWORK(i), '
       'for i = g+1:g+N*N, contain the partially converged Schur form',
    2: 'the singular value decomposition (SVD) algorithm did not converge',
}

INITIAL_STATE_WARNINGS = {
    1: 'warning message not specified',
    2: 'warning message not specified',
    3: 'warning message not specified',
    4: 'the least squares problem to be solved has a rank-deficient '
       'coefficient matrix',
    5: 'warning message not specified',
    6: 'the matrix A is unstable; the estimated x(0) and/or B and D could '
       'be inaccurate',
}

PLACE_ERRORS = {
    1: 'the reduction of A to a real Schur form failed',
    2: 'a failure was detected during the ordering of the real Schur form '
       'of A, or in the iterative process for reordering the eigenvalues of '
       "Z'*(A + B*F)*Z along the diagonal",
    3: 'the number of eigenvalues to be assigned is less than the number of '
       'possibly assignable eigenvalues; NAP eigenvalues have been properly '
       'assigned, but some assignable eigenvalues remain unmodified',
    4: 'an attempt is made to place a complex conjugate pair on the location '
       'of a real eigenvalue',
}

HINFSYN_ERRORS = {
    1: 'the matrix | A-exp(j*Theta)*I  B2  | had not full column rank',
    2: 'the matrix | A-exp(j*Theta)*I  B1  | had not full row rank',
    3: 'the matrix D12 had not full column rank in respect to the tolerance '
       'TOL',
    4: 'the matrix D21 had not full row rank in respect to the tolerance TOL',
    5: 'the controller is not admissible (too small value of gamma)',
    6: 'the X-Riccati equation was not solved successfully (the controller '
       'is not admissible or there are numerical difficulties)',
    7: 'the Z-Riccati equation was not solved successfully (the controller '
       'is not admissible or there are numerical difficulties)',
    8: 'the matrix Im2 + DKHAT*D22 is singular',
    9: 'the singular value decomposition (SVD) algorithm did not converge',
    10: 'the bilinear transformation between discrete and continuous time '
        'is singular',
}

NCFSYN_ERRORS = {
    1: 'the P-Riccati equation is not solved successfully',
    2: 'the Q-Riccati equation is not solved successfully',
    3: 'the iteration to compute eigenvalues or singular values failed to '
       'converge',
    4: 'the matrix (gamma^2-1)*In - P*Q is singular',
    5: "the matrix Rx + Bx'*X*Bx is singular",
    6: 'the matrix Ip + D*Dk is singular',
    7: 'the matrix Im + Dk*D is singular',
    8: 'the matrix Ip - D*Dk is singular',
    9: 'the matrix Im - Dk*D is singular',
    10: 'the closed-loop system is unstable',
    11: 'the bilinear transformation between discrete and continuous time '
        'is singular',
}

LYAP_ERRORS = {
    1: 'the pencil A - lambda * E cannot be reduced to generalized Schur '
       'form',
    2: 'the matrix E is singular',
    3: 'the generalized Lyapunov equation is (nearly) singular',
}

CONRED_ERRORS = {
    1: 'eigenvalue computation failure',
    2: 'the matrix A-L*C is not stable',
    3: 'the matrix A-B*F is not stable',
    4: 'the Lyapunov equation for computing the observability Grammian is '
       '(nearly) singular',
    5: 'the Lyapunov equation for computing the controllability Grammian is '
       '(nearly) singular',
    6: 'the computation of Hankel singular values failed',
}

CONRED_WARNINGS = {
    1: "with ORDSEL = 'F', the selected order NCR is greater than the "
       'order of a minimal realization of the controller',
    2: "with ORDSEL = 'F', the selected order NCR corresponds to "
       'repeated singular values, which are neither all included nor all '
       'excluded from the reduced controller; NCR is set to the largest '
       'value such that HSV(NCR) > HSV(NCR+1)',
}


def check_info(routine, info, errors):
    """Raises :py:class:`NumericalFailure` if ``info`` is nonzero.

    Args:
        ``routine``: Name of the routine, used as the message prefix.

        ``info``: Integer status returned by the routine.

        ``errors``: Dictionary mapping positive codes to messages.
    """
    if info == 0:
        return
    if info < 0:
        message = 'argument %d had an illegal value' % -info
    elif info in errors:
        message = '%d: %s' % (info, errors[info])
    else:
        message = 'unknown error, info = %d' % info
    raise NumericalFailure(routine, info, message)


def translate_warning(routine, iwarn, warnings, experiment=None):
    """Returns a :py:class:`NumericalWarning` for a nonzero ``iwarn``.

    Returns ``None`` when ``iwarn`` is zero."""
    if iwarn == 0:
        return None
    if iwarn in warnings:
        message = '%d: %s' % (iwarn, warnings[iwarn])
    else:
        message = 'unknown warning, iwarn = %d' % iwarn
    return NumericalWarning(routine, iwarn, message, experiment=experiment)


def violation_warning(routine, num_violations):
    """Warning for the pole-placement gain-norm check, whose ``iwarn`` is a
    count rather than a code."""
    if num_violations == 0:
        return None
    return NumericalWarning(
        routine, num_violations,
        '%d violations of the numerical stability condition '
        'NORM(F) <= 100*NORM(A)/NORM(B)' % num_violations)


def rcond(array):
    """Reciprocal 1-norm condition estimate of a square array.

    Returns 0 for singular arrays and 1 for empty ones."""
    array = np.asarray(array)
    if array.size == 0:
        return 1.
    try:
        with np.errstate(all='ignore'):
            cond = np.linalg.cond(array, 1)
    except np.linalg.LinAlgError:
        return 0.
    if not np.isfinite(cond) or cond == 0:
        return 0.
    return 1. / cond
