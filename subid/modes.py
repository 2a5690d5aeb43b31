"""Translation of the integer mode selectors into routine flags.

The user-facing functions take small integers (``method=0``, ``alg=2``,...)
while the numerical routines take single-character flags.  The selectors are
closed enumerations: anything outside them raises
:py:class:`~subid.status.InvalidModeError` before any numerical work starts.

Note the inverted sense of ``conct`` and ``ctrl``: 0 *enables* the feature
(connected experiments, order confirmation) and any other value disables it.
"""
from collections import namedtuple
from enum import Enum

from .status import InvalidModeError


class Method(Enum):
    """Subspace identification method."""
    MOESP = 0
    N4SID = 1
    COMBINED = 2


class Algorithm(Enum):
    """Algorithm used to compress the block-Hankel data."""
    CHOLESKY = 0
    FAST_QR = 1
    QR = 2


class Connection(Enum):
    """Whether consecutive experiments continue each other in time.

    The selector is inverted: 0 means connected, and every other value is
    read as independent.
    """
    CONNECTED = 0
    INDEPENDENT = 1


class Control(Enum):
    """Whether the estimated order is passed to a confirmation callback.

    The selector is inverted: 0 asks for confirmation, and every other value
    accepts the estimate.
    """
    CONFIRM = 0
    ACCEPT = 1


class Domain(Enum):
    """Time domain of a model."""
    CONTINUOUS = 0
    DISCRETE = 1


class OrderSelection(Enum):
    """How the order of a reduced controller is chosen.

    0 keeps the requested order, every other value picks it from the Hankel
    singular values.
    """
    FIXED = 0
    AUTOMATIC = 1


class Truncation(Enum):
    """Balance and truncate variant used for controller reduction."""
    SQUARE_ROOT = 0
    BALANCING_FREE = 1


class Factorization(Enum):
    """Coprime factorization of the controller that is reduced.

    0 selects the left factorization, every other value the right one.
    """
    LEFT = 0
    RIGHT = 1


_METHOD_FLAGS = {
    Method.MOESP: ('M', 'M'),
    Method.N4SID: ('N', 'N'),
    Method.COMBINED: ('N', 'C'),
}

_ALGORITHM_FLAGS = {
    Algorithm.CHOLESKY: 'C',
    Algorithm.FAST_QR: 'F',
    Algorithm.QR: 'Q',
}

_CONNECTION_FLAGS = {
    Connection.CONNECTED: 'C',
    Connection.INDEPENDENT: 'N',
}

_CONTROL_FLAGS = {
    Control.CONFIRM: 'C',
    Control.ACCEPT: 'N',
}

_DOMAIN_FLAGS = {
    Domain.CONTINUOUS: 'C',
    Domain.DISCRETE: 'D',
}

_ORDER_SELECTION_FLAGS = {
    OrderSelection.FIXED: 'F',
    OrderSelection.AUTOMATIC: 'A',
}

_TRUNCATION_FLAGS = {
    Truncation.SQUARE_ROOT: 'B',
    Truncation.BALANCING_FREE: 'F',
}

_FACTORIZATION_FLAGS = {
    Factorization.LEFT: 'L',
    Factorization.RIGHT: 'R',
}


ModeSelection = namedtuple('ModeSelection', [
    'meth_a', 'meth_b', 'alg', 'jobd', 'conct', 'ctrl',
    'jobx0', 'comuse', 'job'])
ModeSelection.__doc__ = """Character flags for the three identification stages.

    ``meth_a``, ``alg``, ``jobd``, ``conct``, ``ctrl`` drive the compression
    stage; ``meth_b`` the system-matrix stage; ``jobx0``, ``comuse``, ``job``
    the initial-state stage.
    """


def _lookup(enum_cls, selector, value):
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidModeError(
            selector, value, [member.value for member in enum_cls])


def translate_method(method):
    """Returns ``(meth_a, meth_b)`` for ``method`` 0 (MOESP), 1 (N4SID) or
    2 (MOESP for A and C, N4SID for B and D)."""
    return _METHOD_FLAGS[_lookup(Method, 'method', method)]


def translate_algorithm(alg):
    """Returns ``'C'``, ``'F'`` or ``'Q'`` for ``alg`` 0, 1 or 2."""
    return _ALGORITHM_FLAGS[_lookup(Algorithm, 'alg', alg)]


def translate_connection(conct):
    """Returns ``'C'`` (connected) for ``conct == 0`` and ``'N'`` otherwise."""
    if conct == 0:
        return _CONNECTION_FLAGS[Connection.CONNECTED]
    return _CONNECTION_FLAGS[Connection.INDEPENDENT]


def translate_control(ctrl):
    """Returns ``'C'`` (confirm the order) for ``ctrl == 0`` and ``'N'``
    otherwise."""
    if ctrl == 0:
        return _CONTROL_FLAGS[Control.CONFIRM]
    return _CONTROL_FLAGS[Control.ACCEPT]


def translate_domain(dt):
    """Returns ``'C'`` for ``dt == 0`` and ``'D'`` otherwise."""
    if dt == 0:
        return _DOMAIN_FLAGS[Domain.CONTINUOUS]
    return _DOMAIN_FLAGS[Domain.DISCRETE]


def translate_place_domain(discrete):
    """Domain flag for pole placement: ``'D'`` only when ``discrete == 1``."""
    if discrete == 1:
        return _DOMAIN_FLAGS[Domain.DISCRETE]
    return _DOMAIN_FLAGS[Domain.CONTINUOUS]


def translate_order_selection(ordsel):
    """Returns ``'F'`` (fixed order) for ``ordsel == 0`` and ``'A'``
    otherwise."""
    if ordsel == 0:
        return _ORDER_SELECTION_FLAGS[OrderSelection.FIXED]
    return _ORDER_SELECTION_FLAGS[OrderSelection.AUTOMATIC]


def translate_truncation(jobmr):
    """Returns ``'B'`` (square root) or ``'F'`` (balancing-free square root)
    for ``jobmr`` 0 or 1."""
    return _TRUNCATION_FLAGS[_lookup(Truncation, 'jobmr', jobmr)]


def translate_factorization(jobcf):
    """Returns ``'L'`` for ``jobcf == 0`` and ``'R'`` otherwise."""
    if jobcf == 0:
        return _FACTORIZATION_FLAGS[Factorization.LEFT]
    return _FACTORIZATION_FLAGS[Factorization.RIGHT]


def translate_modes(method=0, alg=0, conct=1, ctrl=1, use_D=True):
    """Maps the user-level selectors onto a :py:class:`ModeSelection`.

    Kwargs:
        ``method``: 0 MOESP, 1 N4SID, 2 combined.

        ``alg``: 0 Cholesky on correlations, 1 fast QR, 2 QR.

        ``conct``: 0 if the experiments are consecutive in time.

        ``ctrl``: 0 to have the estimated order confirmed by a callback.

        ``use_D``: Whether the initial-state stage includes the D term.

    Returns:
        ``modes``: :py:class:`ModeSelection` of character flags.
    """
    meth_a, meth_b = translate_method(method)
    alg_flag = translate_algorithm(alg)
    if meth_a == 'M':
        jobd = 'M'
    else:
        jobd = 'N'
    conct_flag = translate_connection(conct)
    ctrl_flag = translate_control(ctrl)
    job = 'D' if use_D else 'B'
    return ModeSelection(
        meth_a=meth_a, meth_b=meth_b, alg=alg_flag, jobd=jobd,
        conct=conct_flag, ctrl=ctrl_flag, jobx0='X', comuse='U', job=job)
