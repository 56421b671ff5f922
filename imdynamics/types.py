"""
Data structures for reduced dynamics identification.

All records are NamedTuples: immutable once built, cheap to pass around.
"""

from enum import Enum
from typing import Any, NamedTuple

import numpy as np
from jax import Array

from .polynomial import build_basis, evaluate_monomials


class ConjugacyStyle(str, Enum):
    """Coordinate change applied on top of the fitted map."""

    DEFAULT = "default"
    MODAL = "modal"
    NORMALFORM = "normalform"


class FoldStyle(str, Enum):
    """Cross-validation fold strategy."""

    DEFAULT = "default"  # Random partition of the samples
    TRAJ = "traj"  # Leave one trajectory out


class MapKind(str, Enum):
    """How a PolynomialMap was produced."""

    IDENTITY = "identity"
    LINEAR = "linear"
    FITTED = "fitted"
    CONJUGATE = "conjugate"


class RegressionDataset(NamedTuple):
    """One-step-ahead regression data built from a trajectory set."""

    X: Array  # States at step j (k, N)
    X_next: Array  # States at step j + 1 (k, N)
    t: Array  # Time of each predictor sample (N,)
    idx_traj: tuple[np.ndarray, ...]  # Sample index range of each trajectory
    dt: float  # Sampling time, taken from the first trajectory


class FitOptions(NamedTuple):
    """Immutable identification configuration."""

    r_poly_order: int = 1
    it_poly_order: int = 1
    n_poly_order: int = 1
    t_poly_order: int = 1
    c1: float = 0.0  # Slow manifold weighting (1 + c1*exp(-c2*t))^-2
    c2: float = 0.0
    l_vals: tuple[float, ...] = (0.0,)  # Ridge regularization candidates
    n_folds: int = 0
    fold_style: str | None = None
    style: str = "none"
    nf_style: str = "center_mfld"
    frequencies_norm: tuple[float, ...] | None = None
    tol_nf: float = 10.0
    r_coeff: Any = None  # Precomputed coefficients of R, skips regression
    ic_nf: int = 0
    rescale: int = 1
    fig_disp_nf: int = 1
    display: str = "iter"
    optimality_tolerance: float | None = None  # Derived from the sample count
    max_iter: int = 300
    max_function_evaluations: int = 1000
    specify_objective_gradient: bool = True
    powers: Any = None  # Precomputed exponent table for the basis of R
    cond_threshold: float = 1e12  # Largest accepted cond(V) in modal style
    verbose: bool = False


class PolynomialMap(NamedTuple):
    """
    Polynomial map x -> coefficients @ phi(x).

    phi is the monomial basis described by ``exponents`` (one row per
    monomial, one column per coordinate).
    """

    kind: MapKind
    coefficients: Array  # (n_out, n_terms)
    exponents: np.ndarray  # (n_terms, k)
    polynomial_order: int
    l_opt: float | None = None  # Selected ridge regularization
    cv_error: float | None = None  # Cross-validation error at l_opt

    @property
    def phi(self):
        """Basis evaluation function of this map."""
        return build_basis(self.exponents)

    def evaluate(self, x: Array) -> Array:
        """
        Evaluate the map.

        Parameters
        ----------
        x : Array
            States, shape (k, n_points) or (k,).

        Returns
        -------
        Array
            Images, shape (n_out, n_points) or (n_out,).
        """
        return self.coefficients @ evaluate_monomials(self.exponents, x)

    def __call__(self, x: Array) -> Array:
        return self.evaluate(x)


class ReducedDynamicsModel(NamedTuple):
    """Identified reduced dynamics, R = T o N o iT."""

    reduced_dynamics: PolynomialMap  # R
    inverse_transformation: PolynomialMap  # iT
    conjugate_dynamics: PolynomialMap  # N
    transformation: PolynomialMap  # T
    conjugacy_style: ConjugacyStyle
    dynamics_type: str  # Always "map"
    map_time_step: float
    eigenvalues_lin_part_map: Array  # Discrete-time eigenvalues (k,)
    eigenvalues_lin_part_flow: Array  # Continuous-time eigenvalues (k,)
    eigenvectors_lin_part: Array  # (k, k)
