"""
Trajectory reshaping and sample weighting.

Turns a set of sampled trajectories into the one-step-ahead regression
problem x_{j+1} = R(x_j).
"""

from typing import Sequence

import jax.numpy as jnp
import numpy as np
from jax import Array

from .errors import ConfigurationError, InvalidInputError
from .types import RegressionDataset


def _as_trajectory(index: int, entry) -> tuple[np.ndarray, np.ndarray]:
    """Validate one (t, X) pair and return it as NumPy arrays."""
    try:
        t_i, X_i = entry
    except (TypeError, ValueError) as err:
        raise InvalidInputError(
            f"Trajectory {index}: expected a (time, states) pair"
        ) from err

    t_i = np.asarray(t_i, dtype=float).ravel()
    X_i = np.asarray(X_i)
    if X_i.ndim == 1:
        X_i = X_i[None, :]
    if X_i.ndim != 2:
        raise InvalidInputError(
            f"Trajectory {index}: states must have shape (k, m), got {X_i.shape}"
        )
    if X_i.shape[1] != t_i.shape[0]:
        raise InvalidInputError(
            f"Trajectory {index}: {t_i.shape[0]} time samples vs "
            f"{X_i.shape[1]} state samples"
        )
    if t_i.shape[0] < 2:
        raise InvalidInputError(
            f"Trajectory {index}: at least 2 samples are needed, got {t_i.shape[0]}"
        )
    if not (np.all(np.isfinite(t_i)) and np.all(np.isfinite(X_i))):
        raise InvalidInputError(f"Trajectory {index}: non-finite samples")
    return t_i, X_i


def assemble_regression_data(trajectories: Sequence) -> RegressionDataset:
    """
    Build the one-step-ahead regression dataset.

    Every trajectory contributes all but its last sample as predictors and
    all but its first sample as successors, concatenated in input order.

    Parameters
    ----------
    trajectories : sequence of (t, X)
        ``t`` has shape (m_i,), ``X`` has shape (k, m_i). The sampling time
        is read from the first two samples of the first trajectory and is
        assumed to hold for all the data.

    Returns
    -------
    RegressionDataset
        N = sum(m_i - 1) samples.

    Raises
    ------
    InvalidInputError
        If the set is empty, a trajectory is malformed or shorter than 2
        samples, the state dimensions differ or the time step is not positive.
    """
    if trajectories is None or len(trajectories) == 0:
        raise InvalidInputError("Trajectory set is empty")

    t_parts, X_parts, X_next_parts, idx_traj = [], [], [], []
    k = None
    idx_end = 0
    for ii, entry in enumerate(trajectories):
        t_i, X_i = _as_trajectory(ii, entry)
        if k is None:
            k = X_i.shape[0]
        elif X_i.shape[0] != k:
            raise InvalidInputError(
                f"Trajectory {ii}: state dimension {X_i.shape[0]}, expected {k}"
            )
        t_parts.append(t_i[:-1])
        X_parts.append(X_i[:, :-1])
        X_next_parts.append(X_i[:, 1:])
        n_i = t_i.shape[0] - 1
        idx_traj.append(np.arange(idx_end, idx_end + n_i))
        idx_end += n_i

    t_first = np.asarray(trajectories[0][0], dtype=float).ravel()
    dt = float(t_first[1] - t_first[0])
    if not dt > 0:
        raise InvalidInputError(f"Sampling time must be positive, got {dt}")

    return RegressionDataset(
        X=jnp.asarray(np.hstack(X_parts)),
        X_next=jnp.asarray(np.hstack(X_next_parts)),
        t=jnp.asarray(np.concatenate(t_parts)),
        idx_traj=tuple(idx_traj),
        dt=dt,
    )


def compute_sample_weights(t: Array, c1: float = 0.0, c2: float = 0.0) -> Array:
    """
    Slow manifold weighting w(t) = (1 + c1*exp(-c2*t))^-2.

    Early samples, expected to be further from the slow manifold, are
    discounted. c1 = c2 = 0 gives uniform weights.

    Parameters
    ----------
    t : Array
        Sample times, shape (N,).
    c1, c2 : float
        Non-negative weighting coefficients.

    Returns
    -------
    Array
        Strictly positive weights, shape (N,).

    Raises
    ------
    ConfigurationError
        If the coefficients are negative or not finite, or produce weights
        that are not finite and positive.
    """
    coeffs = []
    for name, c in (("c1", c1), ("c2", c2)):
        try:
            c = float(c)
        except (TypeError, ValueError) as err:
            raise ConfigurationError(f"Weighting: {name} must be numeric, got {c!r}") from err
        if not np.isfinite(c) or c < 0:
            raise ConfigurationError(
                f"Weighting: {name} must be finite and non-negative, got {c}"
            )
        coeffs.append(c)
    c1, c2 = coeffs

    t = jnp.asarray(t)
    weights = (1.0 + c1 * jnp.exp(-c2 * t)) ** (-2)

    if not bool(jnp.all(jnp.isfinite(weights) & (weights > 0))):
        raise ConfigurationError(
            f"Weighting: c1={c1}, c2={c2} produce non-finite or vanishing weights"
        )
    return weights
