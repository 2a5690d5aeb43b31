"""Functions and classes for subspace identification of discrete-time
state-space models from input-output data.

Identification runs in three stages:

1. Compression: every experiment's block-Hankel data is folded into one
   triangular factor ``R``, the singular values are computed and the order
   estimated (:py:func:`preprocess_experiments`).
2. Realization: A, B, C, D, the noise covariances Q, Ry, S and the Kalman
   gain K are computed from ``R`` (:py:func:`estimate_realization`).
3. Initial states: the initial state of each experiment is estimated with
   the realization fixed (:py:func:`estimate_initial_states`).

:py:class:`Identification` and :py:func:`compute_ident_model` run all
three.  The identified model is

:math:`x(k+1) = A x(k) + B u(k) + K e(k)`

:math:`y(k) = C x(k) + D u(k) + e(k)`
"""
from collections import namedtuple

import numpy as np

from . import modes as modes_mod
from . import parallel, routines, status, util, workspace
from .batch import AccumulationState, batch_tag


Experiment = namedtuple('Experiment', ['inputs', 'outputs'])
Experiment.__doc__ = """One experiment: arrays of inputs and outputs with
    indices [time, channel]."""

Realization = namedtuple(
    'Realization', ['A', 'B', 'C', 'D', 'Q', 'Ry', 'S', 'K'])

Preprocessed = namedtuple(
    'Preprocessed', ['R', 'sing_vals', 'num_samples', 'order', 'status'])

IdentResult = namedtuple('IdentResult', [
    'A', 'B', 'C', 'D', 'Q', 'Ry', 'S', 'K', 'initial_states', 'sing_vals',
    'order', 'num_samples', 'warnings', 'status'])


def make_experiments(inputs, outputs):
    """Pairs input and output records into a list of :py:class:`Experiment`.

    Args:
        ``inputs``: Array with indices [time, input], or a list of such
        arrays (one per experiment).  1D arrays are treated as one channel.

        ``outputs``: Array or list of arrays with indices [time, output].

    Returns:
        ``experiments``: List of :py:class:`Experiment`.

    All experiments must have the same numbers of inputs and outputs, and
    each experiment's inputs and outputs the same number of samples.
    """
    if isinstance(inputs, np.ndarray) or isinstance(outputs, np.ndarray):
        inputs = [inputs]
        outputs = [outputs]
    if len(inputs) != len(outputs):
        raise ValueError('Got %d input records and %d output records' % (
            len(inputs), len(outputs)))
    return check_experiments(
        [Experiment(inp, out) for inp, out in zip(inputs, outputs)])


def _as_channels(array, num_samples=None):
    array = np.array(array, dtype=float)
    if array.ndim == 1:
        if array.size == 0 and num_samples is not None:
            return np.zeros((num_samples, 0))
        array = array.reshape((array.shape[0], 1))
    elif array.ndim != 2:
        raise ValueError('Signals must have 1 or 2 dims, got %d' % array.ndim)
    return array


def check_experiments(experiments):
    """Converts and checks a dataset, returns a list of
    :py:class:`Experiment` with 2D float arrays.

    A single ``(inputs, outputs)`` pair is accepted as a dataset of one."""
    if (isinstance(experiments, tuple) and len(experiments) == 2 and
        not isinstance(experiments[0], tuple)):
        experiments = [experiments]
    experiments = list(experiments)
    if len(experiments) == 0:
        raise ValueError('Dataset must contain at least one experiment')
    checked = []
    for index, (inputs, outputs) in enumerate(experiments):
        outputs = _as_channels(outputs)
        inputs = _as_channels(inputs, num_samples=outputs.shape[0])
        if inputs.shape[0] != outputs.shape[0]:
            raise ValueError(
                'Experiment %d has %d input samples and %d output samples' % (
                    index, inputs.shape[0], outputs.shape[0]))
        if outputs.shape[1] == 0:
            raise ValueError('Experiment %d has no outputs' % index)
        if checked and (
            inputs.shape[1] != checked[0].inputs.shape[1] or
            outputs.shape[1] != checked[0].outputs.shape[1]):
            raise ValueError(
                'Experiment %d has %d inputs and %d outputs, expected %d and '
                '%d' % (index, inputs.shape[1], outputs.shape[1],
                checked[0].inputs.shape[1], checked[0].outputs.shape[1]))
        checked.append(Experiment(inputs, outputs))
    return checked


def load_experiment(signal_path, num_inputs, delimiter=None):
    """Loads one experiment from a text file with columns
    [t u_1 ... u_m y_1 ... y_l].

    Args:
        ``signal_path``: Filepath of the data file.

        ``num_inputs``: Number of input columns ``m``.

    Kwargs:
        ``delimiter``: Delimiter in file.

    Returns:
        ``experiment``: :py:class:`Experiment`.

    See :py:func:`util.load_signals`.
    """
    time_values, signals = util.load_signals(signal_path, delimiter=delimiter)
    if num_inputs >= signals.shape[1]:
        raise ValueError(
            '%s has %d signal columns, need more than %d inputs' % (
                signal_path, signals.shape[1], num_inputs))
    return Experiment(signals[:, :num_inputs], signals[:, num_inputs:])


def load_experiments(signal_paths, num_inputs, delimiter=None):
    """Loads several experiments, see :py:func:`load_experiment`."""
    return check_experiments([
        load_experiment(path, num_inputs, delimiter=delimiter)
        for path in signal_paths])


def _collect(warnings, warning):
    if warning is not None and warnings is not None:
        warnings.append(warning)


def preprocess_experiments(
    experiments, nobr, modes, nuser=0, rcond=0., tol=-1.,
    confirm_order=None, warnings=None):
    """Compresses all experiments and determines the model order.

    Args:
        ``experiments``: Ordered sequence of :py:class:`Experiment`.

        ``nobr``: Number of block rows, must exceed the model order.

        ``modes``: :py:class:`~subid.modes.ModeSelection`.

    Kwargs:
        ``nuser``: Order to use instead of the estimate, if positive.  Must
        be less than ``nobr``.

        ``rcond``: Rank tolerance for least squares, 0 for the default.

        ``tol``: Order tolerance; negative picks the largest logarithmic
        gap in the singular values.

        ``confirm_order``: Callable ``f(order, sing_vals)`` that returns the
        order to use; only called when ``modes.ctrl == 'C'``.

        ``warnings``: List to which :py:class:`~subid.status.NumericalWarning`
        records are appended.

    Returns:
        ``preprocessed``: :py:class:`Preprocessed` with the square factor
        ``R``, the singular values, the total number of samples, the order
        and the ``(info, iwarn)`` pair of every routine call.

    Nothing is returned if any experiment fails.
    """
    experiments = check_experiments(experiments)
    if nobr <= 0:
        raise ValueError('nobr must be positive, got %d' % nobr)
    m = experiments[0].inputs.shape[1]
    l = experiments[0].outputs.shape[1]
    num_experiments = len(experiments)
    num_rows = 2*(m + l)*nobr
    ldr = workspace.preprocess_ldr(m, l, nobr, modes.meth_a, modes.jobd)
    R = np.zeros((ldr, num_rows))
    sing_vals = np.zeros(l*nobr)
    state = AccumulationState(num_rows)
    local_warnings = []
    status_pairs = []
    num_samples = 0
    order = 0

    for index, experiment in enumerate(experiments):
        batch = batch_tag(index, num_experiments)
        nsmp = experiment.outputs.shape[0]
        if batch == 'O':
            required = 2*(m + l + 1)*nobr - 1
        else:
            required = 2*nobr
        if nsmp < required:
            raise status.InsufficientSamplesError(
                'Experiment %d has %d samples, needs at least %d for '
                'batch %s' % (index, nsmp, required, batch),
                experiment=index, num_samples=nsmp, required=required)
        num_samples += nsmp

        iwork = np.zeros(
            workspace.preprocess_iwork(m, l, nobr, modes.meth_a, modes.alg),
            dtype=int)
        dwork = np.zeros(workspace.preprocess_dwork(
            m, l, nobr, nsmp, ldr, modes.meth_a, modes.alg, modes.jobd,
            batch, modes.conct))
        order, iwarn, info = routines.preprocess(
            modes.meth_a, modes.alg, modes.jobd, batch, modes.conct,
            modes.ctrl, nobr, experiment.inputs, experiment.outputs, R,
            sing_vals, state, rcond, tol, iwork, dwork,
            confirm=confirm_order)
        status_pairs.append((info, iwarn))
        status.check_info('preprocess', info, status.PREPROCESS_ERRORS)
        _collect(local_warnings, status.translate_warning(
            'preprocess', iwarn, status.PREPROCESS_WARNINGS,
            experiment=index))

    R = R[:num_rows, :num_rows]
    if nuser > 0:
        if nuser >= nobr:
            raise status.InvalidOrderError(
                'nuser = %d is invalid, must be less than nobr = %d' % (
                    nuser, nobr))
        order = nuser
    if warnings is not None:
        warnings.extend(local_warnings)
    return Preprocessed(R, sing_vals, num_samples, order, status_pairs)


def estimate_realization(
    R, num_samples, order, num_inputs, num_outputs, nobr, modes, rcond=0.,
    warnings=None):
    """Computes the system matrices, noise covariances and Kalman gain.

    Args:
        ``R``: Square compressed factor from :py:func:`preprocess_experiments`.

        ``num_samples``: Total number of samples behind ``R``.

        ``order``: Model order ``n``.

        ``num_inputs``, ``num_outputs``: ``m`` and ``l``.

        ``nobr``: Number of block rows used for ``R``.

        ``modes``: :py:class:`~subid.modes.ModeSelection`.

    Kwargs:
        ``rcond``: Rank tolerance for least squares, 0 for the default.

        ``warnings``: List to which warnings are appended.

    Returns:
        ``realization``: :py:class:`Realization` with natural shapes.

        ``status_pair``: ``(info, iwarn)`` of the routine call.
    """
    n = order
    m = num_inputs
    l = num_outputs
    required = 2*(m + l)*nobr
    if num_samples < required:
        raise status.InsufficientSamplesError(
            'The dataset has %d samples, needs at least %d' % (
                num_samples, required),
            num_samples=num_samples, required=required)
    ld_n = max(1, n)
    ld_l = max(1, l)
    A = np.zeros((ld_n, n))
    C = np.zeros((ld_l, n))
    B = np.zeros((ld_n, m))
    D = np.zeros((ld_l, m))
    Q = np.zeros((ld_n, n))
    Ry = np.zeros((ld_l, l))
    S = np.zeros((ld_n, l))
    K = np.zeros((ld_n, l))
    iwork = np.zeros(workspace.system_iwork(n, m, l, nobr), dtype=int)
    dwork = np.zeros(workspace.system_dwork(n, m, l, nobr, modes.meth_b))
    bwork = np.zeros(workspace.system_bwork(n), dtype=bool)

    iwarn, info = routines.estimate_system(
        modes.meth_b, 'A', 'K', nobr, n, m, l, num_samples, R, rcond,
        A, C, B, D, Q, Ry, S, K, iwork, dwork, bwork)
    status.check_info('estimate_system', info, status.SYSTEM_ERRORS)
    _collect(warnings, status.translate_warning(
        'estimate_system', iwarn, status.SYSTEM_WARNINGS))

    realization = Realization(
        A=A[:n, :n], B=B[:n, :m], C=C[:l, :n], D=D[:l, :m],
        Q=Q[:n, :n], Ry=Ry[:l, :l], S=S[:n, :l], K=K[:n, :l])
    return realization, (info, iwarn)


def _initial_state(realization, experiment, index, modes, rcond):
    """Initial state of one experiment plus its status and warning."""
    A, B, C, D = (realization.A, realization.B, realization.C,
        realization.D)
    n = A.shape[0]
    m = B.shape[1]
    l = C.shape[0]
    nsmp = experiment.outputs.shape[0]
    x0 = np.zeros(n)
    V = np.zeros((max(1, n), n))
    iwork = np.zeros(workspace.initial_state_iwork(n), dtype=int)
    dwork = np.zeros(workspace.initial_state_dwork(n, m, l, nsmp))
    iwarn, info = routines.estimate_initial_state(
        modes.jobx0, modes.comuse, modes.job, n, m, l, A, B, C, D,
        experiment.inputs, experiment.outputs, x0, V, rcond, iwork, dwork)
    warning = status.translate_warning(
        'estimate_initial_state', iwarn, status.INITIAL_STATE_WARNINGS,
        experiment=index)
    return x0, (info, iwarn), warning


def estimate_initial_states(
    realization, experiments, modes, rcond=0., warnings=None):
    """Estimates the initial state of every experiment.

    Args:
        ``realization``: :py:class:`Realization` (only A, B, C, D are used).

        ``experiments``: Sequence of :py:class:`Experiment`.

        ``modes``: :py:class:`~subid.modes.ModeSelection`.

    Kwargs:
        ``rcond``: Rank tolerance for least squares, 0 for the default.

        ``warnings``: List to which warnings are appended.

    Returns:
        ``initial_states``: List of 1D arrays, in dataset order.

        ``status_pairs``: List of ``(info, iwarn)``, in dataset order.

    Experiments are independent, so they are split among the MPI workers
    and the results gathered on all of them.
    """
    experiments = check_experiments(experiments)
    indices = list(range(len(experiments)))
    weights = [experiment.outputs.shape[0] for experiment in experiments]
    my_indices = parallel.find_assignments(
        indices, task_weights=weights)[parallel.get_rank()]
    my_results = []
    for index in my_indices:
        x0, status_pair, warning = _initial_state(
            realization, experiments[index], index, modes, rcond)
        my_results.append((index, x0, status_pair, warning))

    results = sorted(
        [result for rank_results in parallel.allgather(my_results)
            for result in rank_results],
        key=lambda result: result[0])
    for index, x0, status_pair, warning in results:
        status.check_info(
            'estimate_initial_state', status_pair[0],
            status.INITIAL_STATE_ERRORS)
    initial_states = []
    status_pairs = []
    for index, x0, status_pair, warning in results:
        initial_states.append(x0)
        status_pairs.append(status_pair)
        _collect(warnings, warning)
    return initial_states, status_pairs


def compute_ident_model(
    experiments, nobr, nuser=0, method=0, alg=0, conct=1, ctrl=1, rcond=0.,
    tol=-1., use_D=True, confirm_order=None):
    """Convenience function to identify a state-space model with the given
    settings and no console output.

    Args:
        ``experiments``: Sequence of :py:class:`Experiment` or
        ``(inputs, outputs)`` pairs.

        ``nobr``: Number of block rows.

    Kwargs:
        See :py:class:`Identification`.

    Returns:
        ``result``: :py:class:`IdentResult`.

    Usage::

      result = compute_ident_model([(u1, y1), (u2, y2)], 10, nuser=4)
      A, B, C, D = result.A, result.B, result.C, result.D
    """
    my_ident = Identification(
        method=method, alg=alg, conct=conct, ctrl=ctrl, rcond=rcond, tol=tol,
        use_D=use_D, confirm_order=confirm_order, verbosity=0)
    my_ident.compute_model(experiments, nobr, nuser=nuser)
    return my_ident.result()


class Identification(object):
    """Subspace identification of a discrete-time state-space model.

    Kwargs:
        ``method``: 0 MOESP, 1 N4SID, 2 MOESP for A and C with N4SID-style
        least squares for B and D.

        ``alg``: 0 Cholesky factorization of the correlation matrix, 1 fast
        correlation by displacement updates, 2 QR factorization of the data.

        ``conct``: 0 if consecutive experiments are contiguous in time, any
        other value if they are independent.

        ``ctrl``: 0 to pass the estimated order through ``confirm_order``,
        any other value to accept it.

        ``rcond``: Rank tolerance for the least-squares problems, 0 selects
        a default based on machine precision.

        ``tol``: Order tolerance.  Positive: count the singular values at or
        above ``tol``.  Zero: use ``nobr*eps*sing_vals[0]``.  Negative: take
        the largest logarithmic gap.

        ``use_D``: Whether the feedthrough D is used when estimating initial
        states.

        ``confirm_order``: Callable ``f(order, sing_vals)`` returning the
        order to use, for ``ctrl = 0``.

        ``put_mat``: Function to put a matrix out of subid, e.g., write it
        to file.

        ``verbosity``: 1 prints progress and warnings, 0 prints almost
        nothing.

    Simple usage::

      my_ident = Identification()
      A, B, C, D = my_ident.compute_model([(u1, y1), (u2, y2)], 10)
      x0s = my_ident.initial_states

    Another example::

      my_ident = Identification(method=1, alg=2)
      my_ident.compute_model(experiments, 10, nuser=3)
      my_ident.put_model('A.txt', 'B.txt', 'C.txt', 'D.txt')

    The selectors are checked when the object is constructed; an invalid one
    raises :py:class:`~subid.status.InvalidModeError`.
    """
    def __init__(self, method=0, alg=0, conct=1, ctrl=1, rcond=0., tol=-1.,
        use_D=True, confirm_order=None, put_mat=util.save_array_text,
        verbosity=1):
        """Constructor"""
        self.modes = modes_mod.translate_modes(
            method=method, alg=alg, conct=conct, ctrl=ctrl, use_D=use_D)
        self.rcond = rcond
        self.tol = tol
        self.confirm_order = confirm_order
        self.put_mat = put_mat
        self.verbosity = verbosity
        self.nobr = None
        self.R = None
        self.sing_vals = None
        self.order = None
        self.num_samples = None
        self.A = None
        self.B = None
        self.C = None
        self.D = None
        self.Q = None
        self.Ry = None
        self.S = None
        self.K = None
        self.initial_states = None
        self.warnings = []
        self.status = {}

    def compute_model(self, experiments, nobr, nuser=0):
        """Identifies the model from a dataset.

        Args:
            ``experiments``: Sequence of :py:class:`Experiment` or
            ``(inputs, outputs)`` pairs, in time order when ``conct = 0``.

            ``nobr``: Number of block rows.  Must exceed the model order.

        Kwargs:
            ``nuser``: Model order to use instead of the estimate, if
            positive.  Must be less than ``nobr``.

        Returns:
            ``A``, ``B``, ``C``, ``D``: State-space arrays of the model.

        Noise covariances, Kalman gain, singular values and initial states
        are kept as attributes.
        """
        experiments = check_experiments(experiments)
        m = experiments[0].inputs.shape[1]
        l = experiments[0].outputs.shape[1]
        # Attributes change only once every stage has succeeded
        warnings = []
        status_dict = {}

        preprocessed = preprocess_experiments(
            experiments, nobr, self.modes, nuser=nuser, rcond=self.rcond,
            tol=self.tol, confirm_order=self.confirm_order,
            warnings=warnings)
        status_dict['preprocess'] = preprocessed.status
        if self.verbosity:
            parallel.print_from_rank_zero(
                'Compressed %d experiments (%d samples), order %d' % (
                    len(experiments), preprocessed.num_samples,
                    preprocessed.order))

        realization, status_pair = estimate_realization(
            preprocessed.R, preprocessed.num_samples, preprocessed.order, m,
            l, nobr, self.modes, rcond=self.rcond, warnings=warnings)
        status_dict['estimate_system'] = status_pair

        initial_states, status_pairs = estimate_initial_states(
            realization, experiments, self.modes, rcond=self.rcond,
            warnings=warnings)
        status_dict['estimate_initial_state'] = status_pairs

        self.nobr = nobr
        self.R = preprocessed.R
        self.sing_vals = preprocessed.sing_vals
        self.order = preprocessed.order
        self.num_samples = preprocessed.num_samples
        (self.A, self.B, self.C, self.D, self.Q, self.Ry, self.S,
            self.K) = realization
        self.initial_states = initial_states
        self.warnings = warnings
        self.status = status_dict

        if self.verbosity:
            for warning in self.warnings:
                parallel.print_from_rank_zero('Warning: %s' % warning)
            if (np.abs(np.linalg.eigvals(self.A)) >= 1.).any():
                parallel.print_from_rank_zero(
                    'Warning: Unstable eigenvalues of identified A matrix')
                parallel.print_from_rank_zero(
                    'eig vals are', np.linalg.eigvals(self.A))
        return self.A, self.B, self.C, self.D

    def result(self):
        """Returns the last identification as an :py:class:`IdentResult`."""
        return IdentResult(
            A=self.A, B=self.B, C=self.C, D=self.D, Q=self.Q, Ry=self.Ry,
            S=self.S, K=self.K, initial_states=self.initial_states,
            sing_vals=self.sing_vals, order=self.order,
            num_samples=self.num_samples, warnings=list(self.warnings),
            status=dict(self.status))

    def _put(self, *pairs):
        """Puts each ``(array, dest)`` pair from rank zero only, since every
        worker holds the same results."""
        if parallel.is_rank_zero():
            for array, dest in pairs:
                self.put_mat(array, dest)
        parallel.barrier()

    def put_model(self, A_dest, B_dest, C_dest, D_dest):
        """Puts the A, B, C, and D matrices of the identified model in
        destinations (file or memory).
        """
        self._put(
            (self.A, A_dest), (self.B, B_dest), (self.C, C_dest),
            (self.D, D_dest))
        if self.verbosity:
            parallel.print_from_rank_zero('Put model matrices to:')
            for dest in (A_dest, B_dest, C_dest, D_dest):
                parallel.print_from_rank_zero(dest)

    def put_covariances(self, Q_dest, Ry_dest, S_dest, K_dest):
        """Puts the noise covariances Q, Ry, S and the Kalman gain K in
        destinations (file or memory)."""
        self._put(
            (self.Q, Q_dest), (self.Ry, Ry_dest), (self.S, S_dest),
            (self.K, K_dest))

    def put_sing_vals(self, sing_vals_dest):
        """Puts the singular values to ``sing_vals_dest``."""
        self._put((self.sing_vals, sing_vals_dest))

    def put_initial_states(self, initial_states_dest):
        """Puts the initial states, one column per experiment."""
        self._put(
            (np.array(self.initial_states).T, initial_states_dest))
