"""
Option resolution and cross-validation folds.

Overrides are merged onto FitOptions defaults, dependent settings are
derived (polynomial-order coupling, optimizer tolerance) and the fold
assignment is computed once per fit.
"""

import logging
import math
from typing import Any, Sequence

import numpy as np

from .errors import ConfigurationError, InvalidInputError
from .types import ConjugacyStyle, FitOptions, FoldStyle

logger = logging.getLogger(__name__)

# Option names accepted in addition to the FitOptions field names
OPTION_ALIASES = {
    "R_PolyOrd": "r_poly_order",
    "iT_PolyOrd": "it_poly_order",
    "N_PolyOrd": "n_poly_order",
    "T_PolyOrd": "t_poly_order",
    "R_coeff": "r_coeff",
    "IC_nf": "ic_nf",
    "Display": "display",
    "OptimalityTolerance": "optimality_tolerance",
    "MaxIter": "max_iter",
    "MaxFunctionEvaluations": "max_function_evaluations",
    "SpecifyObjectiveGradient": "specify_objective_gradient",
}

NF_STYLES = ("center_mfld", "actual_eigs")


def _option_name(key: Any) -> str:
    if not isinstance(key, str):
        raise InvalidInputError(f"Option names must be strings, got {key!r}")
    name = OPTION_ALIASES.get(key, key)
    if name not in FitOptions._fields:
        raise InvalidInputError(f"Unknown option: {key!r}")
    return name


def merge_overrides(overrides: Sequence = (), **kwargs) -> FitOptions:
    """
    Merge overrides onto the default options.

    Parameters
    ----------
    overrides : sequence
        Either a single polynomial order, which sets the order of R and N,
        or ``name, value`` pairs.
    **kwargs
        Named overrides, applied after the pairs.

    Returns
    -------
    FitOptions
        Merged options, not yet validated nor derived.

    Raises
    ------
    InvalidInputError
        On an odd number of positional overrides or an unknown option name.
    """
    overrides = list(overrides)
    updates = {}

    if len(overrides) == 1:
        updates["r_poly_order"] = overrides[0]
        updates["n_poly_order"] = overrides[0]
    elif len(overrides) % 2 > 0:
        raise InvalidInputError(
            "Error on input arguments. Missing or extra arguments: "
            f"{len(overrides)} positional overrides"
        )
    else:
        for key, value in zip(overrides[::2], overrides[1::2]):
            updates[_option_name(key)] = value

    for key, value in kwargs.items():
        updates[_option_name(key)] = value

    return FitOptions()._replace(**updates)


def _is_whole(value: Any, minimum: int) -> bool:
    try:
        return int(value) == value and value >= minimum
    except (TypeError, ValueError):
        return False


def _validate(options: FitOptions) -> FitOptions:
    """Normalize option values and check their ranges."""
    if options.style == "none":
        style = ConjugacyStyle.DEFAULT
    else:
        try:
            style = ConjugacyStyle(options.style)
        except ValueError as err:
            raise ConfigurationError(f"Unknown style: {options.style!r}") from err

    fold_style = options.fold_style
    if fold_style is not None:
        try:
            fold_style = FoldStyle(fold_style)
        except ValueError as err:
            raise ConfigurationError(f"Unknown fold_style: {fold_style!r}") from err

    if options.nf_style not in NF_STYLES:
        raise ConfigurationError(f"Unknown nf_style: {options.nf_style!r}")

    for name in ("r_poly_order", "it_poly_order", "n_poly_order", "t_poly_order"):
        order = getattr(options, name)
        if not _is_whole(order, minimum=1):
            raise ConfigurationError(f"{name} must be an integer >= 1, got {order!r}")

    try:
        l_vals = tuple(float(l) for l in np.atleast_1d(np.asarray(options.l_vals, dtype=float)))
    except (TypeError, ValueError) as err:
        raise ConfigurationError(f"l_vals must be numeric, got {options.l_vals!r}") from err
    if len(l_vals) == 0 or any(not np.isfinite(l) or l < 0 for l in l_vals):
        raise ConfigurationError(
            f"l_vals must be a non-empty list of non-negative values, got {options.l_vals}"
        )

    if not _is_whole(options.n_folds, minimum=0):
        raise ConfigurationError(f"n_folds must be a non-negative integer, got {options.n_folds}")

    if not options.cond_threshold > 0:
        raise ConfigurationError(
            f"cond_threshold must be positive, got {options.cond_threshold}"
        )

    return options._replace(
        style=style,
        fold_style=fold_style,
        l_vals=l_vals,
        n_folds=int(options.n_folds),
        r_poly_order=int(options.r_poly_order),
        it_poly_order=int(options.it_poly_order),
        n_poly_order=int(options.n_poly_order),
        t_poly_order=int(options.t_poly_order),
    )


def couple_polynomial_orders(options: FitOptions) -> FitOptions:
    """
    Couple the orders of iT, N and T to R for the normal form style.

    Orders of T and iT are never reduced below a user-given value.
    """
    if options.style != ConjugacyStyle.NORMALFORM:
        return options

    if options.it_poly_order * options.n_poly_order * options.t_poly_order == 1:
        options = options._replace(n_poly_order=options.r_poly_order)

    if options.n_poly_order > 1:
        if options.t_poly_order == 1 and options.it_poly_order == 1:
            order = options.n_poly_order
        else:
            order = max(options.t_poly_order, options.it_poly_order)
        options = options._replace(t_poly_order=order, it_poly_order=order)

    return options


def random_folds(
    n_data: int,
    n_folds: int,
    rng: np.random.Generator,
) -> tuple[np.ndarray, ...]:
    """
    Split a random permutation of 0..n_data-1 into contiguous folds.

    The first n_folds - 1 folds have floor(n_data / n_folds) samples, the
    last one takes the remaining tail.
    """
    if n_folds > n_data:
        raise ConfigurationError(
            f"Fold assignment: n_folds = {n_folds} exceeds the {n_data} samples"
        )
    ind_perm = rng.permutation(n_data)
    fold_size = n_data // n_folds
    folds = [ind_perm[ii * fold_size:(ii + 1) * fold_size] for ii in range(n_folds - 1)]
    folds.append(ind_perm[(n_folds - 1) * fold_size:])
    return tuple(folds)


def build_folds(
    options: FitOptions,
    idx_traj: Sequence[np.ndarray],
    n_data: int,
    rng: np.random.Generator,
) -> tuple[FitOptions, tuple[np.ndarray, ...] | None]:
    """Fold assignment, only computed when n_folds > 1."""
    if options.n_folds <= 1:
        return options, None

    if options.fold_style == FoldStyle.TRAJ:
        if len(idx_traj) < 2:
            raise ConfigurationError(
                "Fold assignment: leave-one-trajectory-out needs at least 2 trajectories"
            )
        return options._replace(n_folds=len(idx_traj)), tuple(idx_traj)

    return options, random_folds(n_data, options.n_folds, rng)


def resolve_options(
    overrides: Sequence,
    kwargs: dict,
    idx_traj: Sequence[np.ndarray],
    n_data: int,
    rng: np.random.Generator | int | None = None,
) -> tuple[FitOptions, tuple[np.ndarray, ...] | None]:
    """
    Resolve the options of one identification call.

    Parameters
    ----------
    overrides : sequence
        Positional overrides, see merge_overrides.
    kwargs : dict
        Named overrides.
    idx_traj : sequence of index arrays
        Sample index range of each trajectory.
    n_data : int
        Number of regression samples.
    rng : numpy.random.Generator, int or None
        Random source for the random fold assignment, or a seed for one.

    Returns
    -------
    options : FitOptions
        Validated options with derived fields filled in.
    idx_folds : tuple of index arrays or None
        Fold assignment, None when cross-validation is disabled.
    """
    options = _validate(merge_overrides(overrides, **kwargs))
    options = couple_polynomial_orders(options)

    if options.optimality_tolerance is None:
        options = options._replace(
            optimality_tolerance=10.0 ** (-4 - math.floor(math.log10(n_data)))
        )

    if options.style != ConjugacyStyle.NORMALFORM:
        defaults = FitOptions()
        ignored = [
            name
            for name in ("nf_style", "frequencies_norm", "tol_nf", "ic_nf", "rescale", "fig_disp_nf")
            if not np.array_equal(getattr(options, name), getattr(defaults, name))
        ]
        if ignored:
            logger.debug("Options %s only apply to the normal form style", ignored)

    if not isinstance(rng, np.random.Generator):
        rng = np.random.default_rng(rng)

    return build_folds(options, idx_traj, n_data, rng)
