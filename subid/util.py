"""A group of useful functions"""
import numpy as np
import scipy
import scipy.linalg
import scipy.signal


def atleast_2d_col(array):
    """Converts 1d arrays to 2d arrays, but always as column vectors"""
    array = np.array(array)
    if array.ndim < 2:
        return np.atleast_2d(array).T
    else:
        return array


def save_array_text(array, file_name, delimiter=None):
    """Saves a 1D or 2D array to a text file.

    Args:
        ``array``: 1D or 2D or array to save to file.

        ``file_name``: Filepath to location where data is to be saved.

    Kwargs:
        ``delimiter``: Delimiter in file. Default is same as ``numpy.savetxt``.

    Format of saved files is::

      2.3 3.1 2.1 ...
      5.1 2.2 9.8 ...
      7.6 3.1 5.5 ...
      ...
    """
    array = np.array(array, dtype=float)

    # 1D arrays are saved as columns
    if array.ndim == 1:
        array = atleast_2d_col(array)
    elif array.ndim > 2:
        raise RuntimeError('Cannot save an array with >2 dimensions')

    if delimiter is None:
        np.savetxt(file_name, array)
    else:
        np.savetxt(file_name, array, delimiter=delimiter)


def load_array_text(file_name, delimiter=None):
    """Reads data saved in a text file, returns an array.

    Args:
        ``file_name``: Name of file from which to load data.

    Kwargs:
        ``delimiter``: Delimiter in file. Default is same as ``numpy.loadtxt``.

    Returns:
        ``array``: 2D array containing loaded data.

    See :py:func:`save_array_text` for the format used by this function.
    """
    return np.loadtxt(file_name, delimiter=delimiter, ndmin=2)


def load_signals(signal_path, delimiter=None):
    """Loads signals from text files with columns [t signal1 signal2 ...].

    Args:
        ``signal_path``: Filepath to file containing signals.

    Returns:
        ``time_values``: 1D array of time values.

        ``signals``: Array of signals with dimensions [time, signal].

    Example file has format::

      0 0.1 0.2
      1 0.2 0.46
      2 0.2 1.6
      3 0.6 0.1
    """
    raw_data = load_array_text(signal_path, delimiter=delimiter)
    num_signals = raw_data.shape[1] - 1
    if num_signals == 0:
        raise ValueError('Data must have at least two columns')
    time_values = raw_data[:, 0]
    signals = raw_data[:, 1:]
    return time_values, signals


def rank(array, rcond=0.):
    """Numerical rank of ``array``.

    Singular values at or below ``rcond`` times the largest one are treated
    as zero.  With ``rcond <= 0`` the threshold is the machine precision
    scaled by the largest dimension.
    """
    array = np.array(array)
    if array.size == 0:
        return 0
    sing_vals = np.linalg.svd(array, compute_uv=False)
    if sing_vals[0] == 0:
        return 0
    if rcond > 0:
        tol = rcond * sing_vals[0]
    else:
        tol = max(array.shape) * np.finfo(float).eps * sing_vals[0]
    return int((sing_vals > tol).sum())


def block_Hankel(signals, num_block_rows, num_cols):
    """
    Construct a block Hankel array from a multichannel time series.

    Args:
        ``signals``: Array with indices [time, channel].

        ``num_block_rows``: Number of block rows.

        ``num_cols``: Number of columns.

    Returns:
        Hankel: 2D array with dimensions
        ``[num_block_rows * num_channels, num_cols]``, where block row ``i``
        holds the samples ``i, i+1, ..., i+num_cols-1``.
    """
    signals = atleast_2d_col(signals)
    num_samples, num_channels = signals.shape
    if num_block_rows + num_cols - 1 > num_samples:
        raise ValueError(
            'Need %d samples for %d block rows and %d columns, have %d' % (
                num_block_rows + num_cols - 1, num_block_rows, num_cols,
                num_samples))
    Hankel = np.zeros((num_block_rows * num_channels, num_cols))
    for row in range(num_block_rows):
        Hankel[row * num_channels:(row + 1) * num_channels] = \
            signals[row:row + num_cols].T
    return Hankel


def drss(num_states, num_inputs, num_outputs):
    """Generates a discrete-time random state-space system.

    Args:
        ``num_states``: Number of states.

        ``num_inputs``: Number of inputs.

        ``num_outputs``: Number of outputs.

    Returns:
        ``A``, ``B``, ``C``: State-space arrays of discrete-time system.

    By construction, all eigenvalues are real and stable.
    """
    eig_vals = np.linspace(.2, .95, num_states)
    eig_vecs = np.random.normal(0, 2., (num_states, num_states))
    A = np.real(
        np.linalg.inv(eig_vecs).dot(np.diag(eig_vals).dot(eig_vecs)))
    B = np.random.normal(0, 1., (num_states, num_inputs))
    C = np.random.normal(0, 1., (num_outputs, num_states))
    return A, B, C


def lsim(A, B, C, inputs, D=None, initial_condition=None):
    """Simulates a discrete-time system with arbitrary inputs.

    :math:`x(n+1) = Ax(n) + Bu(n)`

    :math:`y(n) = Cx(n) + Du(n)`

    Args:
        ``A``, ``B``, and ``C``: State-space system arrays.

        ``inputs``: Array of inputs :math:`u`, with dimensions
        ``[num_time_steps, num_inputs]``.

    Kwargs:
        ``D``: Feedthrough array.  Default is zero.

        ``initial_condition``: Initial condition :math:`x(0)`.

    Returns:
        ``outputs``: Array of outputs :math:`y`, with dimensions
        ``[num_time_steps, num_outputs]``.
    """
    A = np.array(A)
    B = np.array(B)
    C = np.array(C)
    if D is None:
        D = np.zeros((C.shape[0], B.shape[1]))
    ss = scipy.signal.StateSpace(A, B, C, np.array(D), dt=1)
    tout_dum, outputs, xout_dum = scipy.signal.dlsim(
        ss, inputs, x0=initial_condition)
    return atleast_2d_col(outputs)


def bilinear(A, B, C, D):
    """Maps a discrete-time system to continuous time with
    :math:`z = (1+s)/(1-s)`.

    Args:
        ``A``, ``B``, ``C``, ``D``: Discrete-time state-space arrays.

    Returns:
        ``Ac``, ``Bc``, ``Cc``, ``Dc``: Continuous-time arrays with the same
        frequency response along the imaginary axis as the discrete system
        has along the unit circle.

    Raises ``numpy.linalg.LinAlgError`` if ``A`` has an eigenvalue at -1.
    """
    n = A.shape[0]
    A_plus_I = A + np.eye(n)
    inv_B = np.linalg.solve(A_plus_I, B)
    C_inv = np.linalg.solve(A_plus_I.T, C.T).T
    Ac = np.linalg.solve(A_plus_I, A - np.eye(n))
    Bc = np.sqrt(2.) * inv_B
    Cc = np.sqrt(2.) * C_inv
    Dc = D - C.dot(inv_B)
    return Ac, Bc, Cc, Dc


def inverse_bilinear(Ac, Bc, Cc, Dc):
    """Inverse of :py:func:`bilinear`.

    Raises ``numpy.linalg.LinAlgError`` if ``Ac`` has an eigenvalue at 1."""
    n = Ac.shape[0]
    I_minus_A = np.eye(n) - Ac
    inv_B = np.linalg.solve(I_minus_A, Bc)
    C_inv = np.linalg.solve(I_minus_A.T, Cc.T).T
    A = (np.eye(n) + Ac).dot(np.linalg.inv(I_minus_A))
    B = np.sqrt(2.) * inv_B
    C = np.sqrt(2.) * C_inv
    D = Dc + Cc.dot(inv_B)
    return A, B, C, D


def stabilizing_solution(Hamiltonian):
    """Stabilizing solution of the algebraic Riccati equation associated
    with a Hamiltonian matrix.

    Args:
        ``Hamiltonian``: Array :math:`H` of size ``[2n, 2n]``.

    Returns:
        ``X``: Symmetric array with
        :math:`H [I; X] = [I; X] (A + R X)` stable.

        ``rcond``: Reciprocal condition estimate of the basis block that is
        inverted.

    Raises ``numpy.linalg.LinAlgError`` if the stable invariant subspace does
    not have dimension ``n`` or is not a graph subspace.
    """
    num_states = Hamiltonian.shape[0] // 2
    if num_states == 0:
        return np.zeros((0, 0)), 1.
    T, Z, num_stable = scipy.linalg.schur(
        Hamiltonian, output='real', sort='lhp')
    if num_stable != num_states:
        raise np.linalg.LinAlgError(
            'Hamiltonian has %d stable eigenvalues, needs %d' % (
                num_stable, num_states))
    Z11 = Z[:num_states, :num_states]
    Z21 = Z[num_states:, :num_states]
    rcond = 1. / np.linalg.cond(Z11, 1)
    if not rcond > np.finfo(float).eps:
        raise np.linalg.LinAlgError('Stable subspace is not a graph')
    X = np.linalg.solve(Z11.T, Z21.T).T
    return (X + X.T) / 2., rcond
