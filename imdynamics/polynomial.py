"""
Multivariate polynomial basis without constant term.

A basis is described by an exponent table of shape (n_terms, dim): row j
holds the power of each coordinate in monomial j. Tables generated here are
ordered by total degree, so the first ``dim`` rows are the linear monomials
x_1, ..., x_dim and ``W[:, :dim]`` is the linear part of a map W @ phi(x).

Exponent tables are static NumPy data; only the evaluation is traced by JAX.
"""

from functools import partial
from itertools import combinations_with_replacement

import jax.numpy as jnp
import numpy as np
from jax import Array

from .errors import ConfigurationError


def _is_integer_table(exponents: np.ndarray) -> bool:
    return bool(np.all(np.mod(exponents, 1) == 0))


def generate_exponents(dim: int, order: int) -> np.ndarray:
    """
    Exponent table of all monomials of total degree 1 to ``order``.

    Parameters
    ----------
    dim : int
        Number of variables.
    order : int
        Highest total degree.

    Returns
    -------
    np.ndarray
        Integer table, shape (n_terms, dim), n_terms = C(dim + order, dim) - 1.
    """
    rows = []
    for degree in range(1, order + 1):
        for combo in combinations_with_replacement(range(dim), degree):
            row = np.zeros(dim, dtype=int)
            for i in combo:
                row[i] += 1
            rows.append(row)
    return np.stack(rows, axis=0)


def polynomial_order(exponents: np.ndarray) -> int | float:
    """Total degree of the last monomial of the table."""
    order = np.asarray(exponents)[-1].sum()
    if float(order).is_integer():
        return int(order)
    return float(order)


def evaluate_monomials(exponents: np.ndarray, x: Array) -> Array:
    """
    Evaluate every monomial of the table on a batch of states.

    Parameters
    ----------
    exponents : np.ndarray
        Exponent table, shape (n_terms, dim).
    x : Array
        States, shape (dim, n_points) or (dim,).

    Returns
    -------
    Array
        Features, shape (n_terms, n_points) or (n_terms,).
    """
    x = jnp.asarray(x)
    if not jnp.issubdtype(x.dtype, jnp.inexact):
        x = x.astype(jnp.float64)
    single = x.ndim == 1
    if single:
        x = x[:, None]

    exponents = np.asarray(exponents)
    integer_powers = _is_integer_table(exponents)

    # Python ints keep complex bases exact (integer_pow instead of exp/log)
    terms = []
    for row in exponents:
        term = jnp.ones((x.shape[1],), dtype=x.dtype)
        for i, p in enumerate(row):
            if p == 0:
                continue
            term = term * x[i] ** (int(p) if integer_powers else float(p))
        terms.append(term)

    features = jnp.stack(terms, axis=0)
    return features[:, 0] if single else features


def build_basis(exponents: np.ndarray):
    """Return phi with phi(x) = evaluate_monomials(exponents, x)."""
    return partial(evaluate_monomials, np.asarray(exponents))


def multivariate_polynomial(
    dim: int,
    order: int,
    powers: np.ndarray | None = None,
) -> tuple:
    """
    Build a polynomial basis and its exponent table.

    Parameters
    ----------
    dim : int
        Number of variables.
    order : int
        Highest total degree. Ignored when ``powers`` is given.
    powers : np.ndarray, optional
        Precomputed exponent table, shape (n_terms, dim). Entries may be
        fractional. The first ``dim`` rows must be the linear monomials.

    Returns
    -------
    phi : callable
        Basis evaluation, (dim, n) -> (n_terms, n).
    exponents : np.ndarray
        Exponent table, shape (n_terms, dim).

    Raises
    ------
    ConfigurationError
        If the order is below 1 or ``powers`` is malformed.
    """
    if dim < 1:
        raise ConfigurationError(f"Polynomial basis: dimension must be >= 1, got {dim}")

    if powers is None:
        if int(order) != order or order < 1:
            raise ConfigurationError(
                f"Polynomial basis: order must be an integer >= 1, got {order}"
            )
        exponents = generate_exponents(dim, int(order))
    else:
        exponents = np.asarray(powers, dtype=float)
        if exponents.ndim != 2 or exponents.shape[1] != dim:
            raise ConfigurationError(
                f"Polynomial basis: powers must have shape (n_terms, {dim}), "
                f"got {exponents.shape}"
            )
        if exponents.shape[0] < dim or not np.array_equal(exponents[:dim], np.eye(dim)):
            raise ConfigurationError(
                "Polynomial basis: the first rows of powers must be the linear monomials"
            )
        if np.any(exponents < 0):
            raise ConfigurationError("Polynomial basis: powers must be non-negative")
        if _is_integer_table(exponents):
            exponents = exponents.astype(int)

    return build_basis(exponents), exponents


def _multiply(a: dict, b: dict) -> dict:
    out = {}
    for ea, ca in a.items():
        for eb, cb in b.items():
            e = tuple(i + j for i, j in zip(ea, eb))
            out[e] = out.get(e, 0.0) + ca * cb
    return out


def polynomial_linear_transform(V: Array, exponents: np.ndarray) -> Array:
    """
    Coefficient transform induced by a linear change of variables.

    Computes V_M such that phi(V @ y) = V_M @ phi(y) for all y, by expanding
    every monomial of (V @ y) in the monomials of y. Total degree is
    preserved, so V_M is block diagonal in the degree blocks.

    Parameters
    ----------
    V : Array
        Change of variables, shape (dim, dim). May be complex.
    exponents : np.ndarray
        Integer exponent table, shape (n_terms, dim).

    Returns
    -------
    Array
        Transform matrix, shape (n_terms, n_terms).

    Raises
    ------
    ConfigurationError
        If the table has fractional exponents or is not closed under
        linear changes of variables.
    """
    exponents = np.asarray(exponents)
    if not _is_integer_table(exponents):
        raise ConfigurationError(
            "Linear transform of a polynomial needs integer exponents"
        )
    exponents = exponents.astype(int)
    V = np.asarray(V)
    n_terms, dim = exponents.shape

    index = {tuple(row): j for j, row in enumerate(exponents)}
    V_M = np.zeros((n_terms, n_terms), dtype=np.result_type(V.dtype, float))

    # Row i of V as the linear polynomial sum_l V[i, l] * y_l
    linear_rows = []
    for i in range(dim):
        row = {}
        for l in range(dim):
            if V[i, l] != 0:
                unit = [0] * dim
                unit[l] = 1
                row[tuple(unit)] = V[i, l]
        linear_rows.append(row)

    for j, row in enumerate(exponents):
        poly = {(0,) * dim: 1.0}
        for i, p in enumerate(row):
            for _ in range(p):
                poly = _multiply(poly, linear_rows[i])
        for mono, coeff in poly.items():
            if mono not in index:
                raise ConfigurationError(
                    f"Exponent table is not closed under linear changes of "
                    f"variables: monomial {mono} is missing"
                )
            V_M[j, index[mono]] += coeff

    return jnp.asarray(V_M)
