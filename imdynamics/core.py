"""
Identification of reduced dynamics on an invariant manifold.

Fits the discrete-time map x_{k+1} = R(x_k), R(x) = W_r @ phi(x) with phi a
multivariate polynomial, by weighted ridge regression, and expresses it as
R = T o N o iT for the requested coordinate style.
"""

import logging
from typing import Sequence

import jax.numpy as jnp
import numpy as np
from jax import Array

from .errors import InvalidInputError
from .maps import assemble_map
from .options import resolve_options
from .polynomial import multivariate_polynomial
from .ridge import ridge_regression
from .spectral import eig_sorted
from .trajectories import assemble_regression_data, compute_sample_weights
from .transform import Conjugacy, conjugate_maps
from .types import (
    ConjugacyStyle,
    FitOptions,
    MapKind,
    PolynomialMap,
    ReducedDynamicsModel,
    RegressionDataset,
)

logger = logging.getLogger(__name__)


def fit_reduced_dynamics_map(
    data: RegressionDataset,
    phi,
    exponents: np.ndarray,
    weights: Array,
    idx_folds: Sequence[np.ndarray] | None,
    options: FitOptions,
) -> PolynomialMap:
    """
    Fit R, or wrap the preset coefficients in ``options.r_coeff``.

    With preset coefficients no regression is run and both the selected
    regularization and the cross-validation error are reported as 0.
    """
    k = data.X.shape[0]
    n_terms = exponents.shape[0]

    if options.r_coeff is not None:
        W_r = jnp.asarray(options.r_coeff)
        if W_r.shape != (k, n_terms):
            raise InvalidInputError(
                f"R_coeff has shape {W_r.shape}, expected {(k, n_terms)} for a "
                f"polynomial of order {options.r_poly_order} in {k} variables"
            )
        l_opt, cv_error = 0.0, 0.0
    else:
        logger.info("Estimation of the reduced dynamics...")
        W_r, l_opt, cv_error = ridge_regression(
            phi(data.X),
            data.X_next,
            weights,
            idx_folds,
            options.l_vals,
            verbose=options.verbose,
        )
    logger.info("Done. Selected regularization %g", l_opt)
    return assemble_map(MapKind.FITTED, W_r, exponents, l_opt=l_opt, cv_error=cv_error)


def assemble_model(
    reduced: PolynomialMap,
    conjugacy: Conjugacy,
    style: ConjugacyStyle,
    dt: float,
    V: Array,
    D: Array,
    d_cont: Array,
) -> ReducedDynamicsModel:
    """Package the maps and the spectral data of one fit."""
    return ReducedDynamicsModel(
        reduced_dynamics=reduced,
        inverse_transformation=conjugacy.inverse_transformation,
        conjugate_dynamics=conjugacy.conjugate_dynamics,
        transformation=conjugacy.transformation,
        conjugacy_style=ConjugacyStyle(style),
        dynamics_type="map",
        map_time_step=float(dt),
        eigenvalues_lin_part_map=jnp.diag(D),
        eigenvalues_lin_part_flow=d_cont,
        eigenvectors_lin_part=V,
    )


def identify_dynamics(
    trajectories: Sequence,
    *overrides,
    rng: np.random.Generator | int | None = None,
    **kwargs,
) -> ReducedDynamicsModel:
    """
    Identify the reduced dynamics map from sampled trajectories.

    Parameters
    ----------
    trajectories : sequence of (t, X)
        ``t`` has shape (m_i,), ``X`` has shape (k, m_i). Constant sampling
        time, read from the first trajectory.
    *overrides
        Either a single polynomial order for R (and N), or option
        ``name, value`` pairs, e.g. ``"R_PolyOrd", 3, "style", "modal"``.
    rng : numpy.random.Generator, int or None
        Random source (or seed) for the random fold assignment.
    **kwargs
        Named options, see FitOptions. Both field names (``r_poly_order``)
        and the classic names (``R_PolyOrd``) are accepted.

    Returns
    -------
    ReducedDynamicsModel
        Maps R, iT, N, T with R = T o N o iT, and the spectrum of the
        linear part of R.

    Raises
    ------
    InvalidInputError
        Malformed trajectories or overrides.
    ConfigurationError
        Options that cannot produce a well-posed fit.
    NumericalError
        Non-finite fit or ill-conditioned modal transformation.
    NotImplementedError
        For the normal form style.
    """
    data = assemble_regression_data(trajectories)
    k, n_data = data.X.shape

    options, idx_folds = resolve_options(overrides, kwargs, data.idx_traj, n_data, rng)
    if options.style == ConjugacyStyle.NORMALFORM:
        raise NotImplementedError("Normal form style not implemented.")

    weights = compute_sample_weights(data.t, options.c1, options.c2)

    phi, exponents = multivariate_polynomial(k, options.r_poly_order, options.powers)
    reduced = fit_reduced_dynamics_map(data, phi, exponents, weights, idx_folds, options)

    V, D, d_cont = eig_sorted(reduced.coefficients[:, :k], data.dt)
    conjugacy = conjugate_maps(options.style, reduced, V, options.cond_threshold)

    return assemble_model(reduced, conjugacy, options.style, data.dt, V, D, d_cont)
