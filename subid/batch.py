"""Batch tags and the accumulation state threaded through data compression.

A dataset of several experiments is compressed sequentially.  Each call of
the compression routine is tagged by the experiment's position:

* ``'O'``: the only experiment,
* ``'F'``: the first of several,
* ``'I'``: an intermediate one,
* ``'L'``: the last one.

The state that has to survive between calls (running correlation or
triangular factor, tail samples for connected experiments, column and cycle
counters) lives in an explicit :py:class:`AccumulationState` object rather
than inside the routine, so the sequencing can be driven and tested on its
own.
"""
import numpy as np


#: Number of intermediate calls after which the cycle counter wraps.
MAX_CYCLES = 100


def batch_tag(index, num_experiments):
    """Returns the batch tag of experiment ``index`` in a dataset of
    ``num_experiments``.

    Args:
        ``index``: Zero-based position of the experiment.

        ``num_experiments``: Number of experiments in the dataset.

    Returns:
        ``tag``: One of ``'O'``, ``'F'``, ``'I'``, ``'L'``.
    """
    if num_experiments < 1:
        raise ValueError('Dataset must contain at least one experiment')
    if index < 0 or index >= num_experiments:
        raise ValueError(
            'Experiment index %d out of range for %d experiments' % (
                index, num_experiments))
    if num_experiments == 1:
        return 'O'
    if index == 0:
        return 'F'
    if index == num_experiments - 1:
        return 'L'
    return 'I'


def batch_tags(num_experiments):
    """Returns the list of tags for a dataset of ``num_experiments``."""
    return [batch_tag(index, num_experiments)
        for index in range(num_experiments)]


class AccumulationState(object):
    """Data carried from one compression call to the next.

    Kwargs:
        ``num_rows``: Row count ``2*(m+l)*nobr`` of the block-Hankel data.

    Attributes:
        ``accum``: Running correlation (Cholesky algorithms) or triangular
        factor (QR algorithm), ``num_rows`` square.

        ``tail_inputs``, ``tail_outputs``: Last ``2*nobr - 1`` samples of the
        previous batch, prepended to the next one for connected experiments.

        ``num_cols``: Number of block-Hankel columns accumulated so far.

        ``num_samples``: Number of samples accumulated so far.

        ``cycle``: Cycle counter of the current sequence.

        ``last_tag``: Tag of the previous call, ``None`` before the first.
    """
    def __init__(self, num_rows=0):
        self.num_rows = num_rows
        self.accum = np.zeros((num_rows, num_rows))
        self.tail_inputs = None
        self.tail_outputs = None
        self.num_cols = 0
        self.num_samples = 0
        self.cycle = 0
        self.last_tag = None

    def is_open(self):
        """True while a sequence has been started and not yet closed."""
        return self.last_tag in ('F', 'I')

    def reset(self):
        """Clears all accumulated data."""
        self.accum = np.zeros((self.num_rows, self.num_rows))
        self.tail_inputs = None
        self.tail_outputs = None
        self.num_cols = 0
        self.num_samples = 0
        self.cycle = 0

    def advance(self, tag):
        """Moves to the next call tagged ``tag``.

        ``'O'`` and ``'F'`` start a new sequence (and clear the state),
        ``'I'`` and ``'L'`` continue an open one.  Returns ``True`` when the
        cycle counter wrapped on this call.
        """
        wrapped = False
        if tag in ('O', 'F'):
            if self.is_open():
                raise ValueError(
                    "Batch '%s' cannot start while a sequence is open" % tag)
            self.reset()
            self.cycle = 1
        elif tag in ('I', 'L'):
            if not self.is_open():
                raise ValueError(
                    "Batch '%s' must follow a batch tagged 'F' or 'I'" % tag)
            if tag == 'I':
                self.cycle += 1
                if self.cycle > MAX_CYCLES:
                    self.cycle = 1
                    wrapped = True
        else:
            raise ValueError("Unknown batch tag %r" % (tag,))
        self.last_tag = tag
        return wrapped
