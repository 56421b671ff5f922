"""
Constructors for PolynomialMap records.

Every map of the pipeline (R, iT, N, T) goes through assemble_map so all
four share the same record layout.
"""

import jax.numpy as jnp
import numpy as np
from jax import Array

from .polynomial import generate_exponents, polynomial_order
from .types import MapKind, PolynomialMap


def assemble_map(
    kind: MapKind,
    coefficients: Array,
    exponents: np.ndarray,
    l_opt: float | None = None,
    cv_error: float | None = None,
) -> PolynomialMap:
    """
    Package coefficients and basis into a PolynomialMap.

    The polynomial order is the total degree of the last monomial of the
    exponent table.
    """
    exponents = np.asarray(exponents)
    return PolynomialMap(
        kind=MapKind(kind),
        coefficients=jnp.asarray(coefficients),
        exponents=exponents,
        polynomial_order=polynomial_order(exponents),
        l_opt=l_opt,
        cv_error=cv_error,
    )


def linear_map(matrix: Array, kind: MapKind = MapKind.LINEAR) -> PolynomialMap:
    """Map x -> matrix @ x."""
    matrix = jnp.asarray(matrix)
    return assemble_map(kind, matrix, generate_exponents(matrix.shape[1], 1))


def identity_map(dim: int) -> PolynomialMap:
    """Map x -> x on R^dim."""
    return linear_map(jnp.eye(dim), kind=MapKind.IDENTITY)
