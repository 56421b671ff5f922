"""
Weighted ridge regression with cross-validated regularization.

Solves W = argmin sum_j w_j ||Y_j - W Phi_j||^2 + l ||W||_F^2
for features Phi (n_terms, N) and targets Y (k, N).
"""

import logging
from typing import Sequence

import jax.numpy as jnp
import numpy as np
from jax import Array
from tqdm import tqdm

from .errors import ConfigurationError, NumericalError

logger = logging.getLogger(__name__)


def solve_weighted_ridge(
    Phi: Array,
    Y: Array,
    weights: Array,
    l: float,
) -> Array:
    """
    Solve the weighted ridge problem for a single regularization value.

    The normal equations are never formed: the problem is solved as the
    augmented least-squares system

        [ Phi.T * sqrt(w) ]        [ Y.T * sqrt(w) ]
        [ sqrt(l) * I     ] W.T =  [ 0             ]

    Parameters
    ----------
    Phi : Array
        Features, shape (n_terms, N).
    Y : Array
        Targets, shape (k, N).
    weights : Array
        Sample weights, shape (N,).
    l : float
        Regularization value, l >= 0.

    Returns
    -------
    Array
        Coefficients, shape (k, n_terms).
    """
    n_terms = Phi.shape[0]
    sqrt_w = jnp.sqrt(weights)

    A = jnp.vstack([(Phi * sqrt_w).T, jnp.sqrt(l) * jnp.eye(n_terms)])
    b = jnp.vstack([(Y * sqrt_w).T, jnp.zeros((n_terms, Y.shape[0]), dtype=Y.dtype)])

    W_t, _, _, _ = jnp.linalg.lstsq(A, b)
    return W_t.T


def weighted_mse(W: Array, Phi: Array, Y: Array, weights: Array) -> float:
    """Weighted mean squared one-step error of W on (Phi, Y)."""
    residual = jnp.sum(jnp.abs(Y - W @ Phi) ** 2, axis=0)
    return float(jnp.sum(weights * residual) / jnp.sum(weights))


def cross_validation_error(
    Phi: Array,
    Y: Array,
    weights: Array,
    idx_folds: Sequence[np.ndarray],
    l: float,
) -> float:
    """Mean over folds of the out-of-fold weighted error."""
    n_data = Phi.shape[1]
    errors = []
    for fold in idx_folds:
        train_mask = np.ones(n_data, dtype=bool)
        train_mask[fold] = False
        train_idx = np.flatnonzero(train_mask)

        W = solve_weighted_ridge(Phi[:, train_idx], Y[:, train_idx], weights[train_idx], l)
        errors.append(weighted_mse(W, Phi[:, fold], Y[:, fold], weights[fold]))
    return float(np.mean(errors))


def ridge_regression(
    Phi: Array,
    Y: Array,
    weights: Array,
    idx_folds: Sequence[np.ndarray] | None,
    l_vals: Sequence[float],
    verbose: bool = False,
) -> tuple[Array, float, float]:
    """
    Weighted ridge regression with regularization selected by cross-validation.

    Parameters
    ----------
    Phi : Array
        Features, shape (n_terms, N).
    Y : Array
        Targets, shape (k, N).
    weights : Array
        Sample weights, shape (N,).
    idx_folds : sequence of index arrays or None
        Disjoint folds covering 0..N-1. None disables cross-validation.
    l_vals : sequence of float
        Regularization candidates.
    verbose : bool
        Show a progress bar over the candidates.

    Returns
    -------
    W : Array
        Coefficients refitted on the whole dataset, shape (k, n_terms).
    l_opt : float
        Selected regularization value.
    cv_error : float
        Cross-validation error at l_opt, 0.0 without folds.

    Raises
    ------
    ConfigurationError
        If several candidates are given without folds.
    NumericalError
        If the fit is not finite.
    """
    l_vals = [float(l) for l in l_vals]

    if not idx_folds:
        if len(l_vals) > 1:
            raise ConfigurationError(
                f"Ridge regression: {len(l_vals)} regularization candidates "
                "need n_folds > 1 to be compared"
            )
        l_opt, cv_error = l_vals[0], 0.0
    else:
        iterator = tqdm(l_vals, desc="Cross-validation") if verbose else l_vals
        cv_errors = [
            cross_validation_error(Phi, Y, weights, idx_folds, l) for l in iterator
        ]
        logger.debug("Cross-validation errors %s for l_vals %s", cv_errors, l_vals)

        if not np.all(np.isfinite(cv_errors)):
            raise NumericalError(
                "Ridge regression: non-finite cross-validation error"
            )
        i_opt = int(np.argmin(cv_errors))
        l_opt, cv_error = l_vals[i_opt], cv_errors[i_opt]

    W = solve_weighted_ridge(Phi, Y, weights, l_opt)
    if not bool(jnp.all(jnp.isfinite(W))):
        raise NumericalError(
            f"Ridge regression: non-finite coefficients for l = {l_opt}"
        )
    return W, l_opt, cv_error
