"""This file makes the subid directory a python package."""
from ._version import __version__


# Modules whose internal contents are available through the subid
# namespace as "subid.foo" are imported below.  For example, this
# allows "my_ident = subid.Identification()" rather than "my_ident =
# subid.ident.Identification()".

from .ident import (
    Experiment, Realization, Preprocessed, IdentResult,
    make_experiments, check_experiments, load_experiment, load_experiments,
    preprocess_experiments, estimate_realization, estimate_initial_states,
    compute_ident_model, Identification
)

from .modes import (
    Method, Algorithm, Connection, Control, Domain, OrderSelection,
    Truncation, Factorization, ModeSelection,
    translate_method, translate_algorithm, translate_connection,
    translate_control, translate_domain, translate_place_domain,
    translate_order_selection, translate_truncation,
    translate_factorization, translate_modes
)

from .status import (
    InvalidModeError, InvalidOrderError, InsufficientSamplesError,
    NumericalFailure, NumericalWarning
)

from .batch import batch_tag, batch_tags, AccumulationState

from .poleplace import place, PlaceResult

from .synthesis import hinfsyn, ncfsyn, HinfResult, NcfResult

from .lyap import generalized_lyap

from .reduction import reduce_controller, ReducedController

from . import parallel

from .util import (
    atleast_2d_col,
    save_array_text, load_array_text, load_signals,
    rank, block_Hankel,
    drss, lsim,
    bilinear, inverse_bilinear, stabilizing_solution
)
