"""
Coordinate changes R = T o N o iT of the identified map.

- default: T = iT = identity, N = R
- modal: iT(x) = V^-1 x, T(y) = V y, N(y) = V^-1 R(V y)
- normalform: not available
"""

from typing import NamedTuple

import jax.numpy as jnp
from jax import Array

from .errors import NumericalError
from .maps import assemble_map, identity_map, linear_map
from .polynomial import polynomial_linear_transform
from .types import ConjugacyStyle, MapKind, PolynomialMap


class Conjugacy(NamedTuple):
    """Maps produced by a coordinate change."""

    inverse_transformation: PolynomialMap  # iT
    conjugate_dynamics: PolynomialMap  # N
    transformation: PolynomialMap  # T


def default_conjugacy(reduced: PolynomialMap) -> Conjugacy:
    """Identity coordinate change, N is R itself."""
    identity = identity_map(reduced.coefficients.shape[0])
    return Conjugacy(
        inverse_transformation=identity,
        conjugate_dynamics=reduced,
        transformation=identity,
    )


def modal_conjugacy(
    reduced: PolynomialMap,
    V: Array,
    cond_threshold: float = 1e12,
) -> Conjugacy:
    """
    Linear coordinate change to the eigenvectors of the linear part of R.

    The nonlinear coefficients are carried through the change of basis:
    W_n = V^-1 @ W_r @ V_M with phi(V y) = V_M @ phi(y).

    Parameters
    ----------
    reduced : PolynomialMap
        The map R.
    V : Array
        Eigenvectors of the linear part of R, shape (k, k).
    cond_threshold : float
        Largest accepted condition number of V.

    Raises
    ------
    NumericalError
        If V is singular or its condition number exceeds cond_threshold.
    """
    V = jnp.asarray(V)
    cond = float(jnp.linalg.cond(V))
    if not cond <= cond_threshold:
        raise NumericalError(
            f"Modal transformation: eigenvector matrix condition number {cond:.3e} "
            f"exceeds {cond_threshold:.3e}"
        )

    V_inv = jnp.linalg.inv(V)
    V_M = polynomial_linear_transform(V, reduced.exponents)
    W_n = V_inv @ reduced.coefficients @ V_M

    return Conjugacy(
        inverse_transformation=linear_map(V_inv),
        conjugate_dynamics=assemble_map(MapKind.CONJUGATE, W_n, reduced.exponents),
        transformation=linear_map(V),
    )


def conjugate_maps(
    style: ConjugacyStyle,
    reduced: PolynomialMap,
    V: Array,
    cond_threshold: float = 1e12,
) -> Conjugacy:
    """
    Dispatch the coordinate change for the requested style.

    Raises
    ------
    NotImplementedError
        For the normal form style.
    ValueError
        If the style is not recognized.
    """
    style = ConjugacyStyle(style)

    if style == ConjugacyStyle.DEFAULT:
        return default_conjugacy(reduced)
    elif style == ConjugacyStyle.MODAL:
        return modal_conjugacy(reduced, V, cond_threshold)
    elif style == ConjugacyStyle.NORMALFORM:
        raise NotImplementedError("Normal form style not implemented.")
    else:
        raise ValueError(f"Unknown conjugacy style: {style}")
