"""
imdynamics: identification of reduced dynamics on invariant manifolds.

A JAX-based implementation of data-driven reduced order models:
- Polynomial map x_{k+1} = R(x_k) fitted by weighted ridge regression
- Regularization selected by cross-validation on random or trajectory folds
- Modal coordinates R = T o N o iT from the eigenvectors of the linear part

Usage
-----
>>> import imdynamics
>>> import jax.numpy as jnp
>>>
>>> # Fit a cubic map on two trajectories [(t1, X1), (t2, X2)]
>>> model = imdynamics.identify_dynamics(trajectories, "R_PolyOrd", 3, "style", "modal")
>>>
>>> # One step of the reduced dynamics
>>> x_next = model.reduced_dynamics.evaluate(x)
>>>
>>> # Continuous-time eigenvalues of the linear part
>>> model.eigenvalues_lin_part_flow
"""

import jax

# Enable float64 for numerical stability (least squares, eigenvectors)
jax.config.update("jax_enable_x64", True)

from .core import identify_dynamics
from .errors import (
    ConfigurationError,
    IMDynamicsError,
    InvalidInputError,
    NumericalError,
)
from .io import load_model, load_trajectories, save_model
from .types import (
    ConjugacyStyle,
    FitOptions,
    FoldStyle,
    MapKind,
    PolynomialMap,
    ReducedDynamicsModel,
    RegressionDataset,
)

try:
    from importlib.metadata import version

    __version__ = version("imdynamics")
except Exception:
    __version__ = "unknown"

__all__ = [
    # Core functions
    "identify_dynamics",
    # Types
    "ConjugacyStyle",
    "FitOptions",
    "FoldStyle",
    "MapKind",
    "PolynomialMap",
    "ReducedDynamicsModel",
    "RegressionDataset",
    # Errors
    "IMDynamicsError",
    "InvalidInputError",
    "ConfigurationError",
    "NumericalError",
    # I/O
    "load_trajectories",
    "save_model",
    "load_model",
]
