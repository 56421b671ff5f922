"""
File I/O utilities for reduced dynamics identification.

Uses NumPy for file operations (not differentiable).
"""

import os
import pickle

import jax.numpy as jnp
import numpy as np
from tqdm import tqdm

from .errors import InvalidInputError
from .maps import assemble_map
from .types import ConjugacyStyle, MapKind, PolynomialMap, ReducedDynamicsModel

MAP_FIELDS = (
    "reduced_dynamics",
    "inverse_transformation",
    "conjugate_dynamics",
    "transformation",
)


def load_trajectories(
    dirpath: str,
    skiprows: int = 1,
    verbose: bool = True,
) -> list[tuple[np.ndarray, np.ndarray]]:
    """
    Load a trajectory set from CSV files in a directory.

    Files are loaded in alphanumeric order, one trajectory per file. The
    first column is time, the remaining columns are the state coordinates.

    Parameters
    ----------
    dirpath : str
        Directory containing CSV files.
    skiprows : int
        Number of header rows to skip in each file.
    verbose : bool
        Show progress bar.

    Returns
    -------
    list of (t, X)
        ``t`` has shape (m_i,), ``X`` has shape (k, m_i).
    """
    files = sorted(
        [
            f
            for f in os.listdir(dirpath)
            if os.path.isfile(os.path.join(dirpath, f)) and f.endswith(".csv")
        ]
    )

    if not files:
        raise InvalidInputError(f"No CSV files found in {dirpath}")

    trajectories = []
    iterator = tqdm(files, desc="Loading trajectories") if verbose else files
    for f in iterator:
        data = np.loadtxt(
            os.path.join(dirpath, f),
            delimiter=",",
            skiprows=skiprows,
            ndmin=2,
        )
        if data.shape[1] < 2:
            raise InvalidInputError(
                f"{f}: expected a time column and at least one state column"
            )
        trajectories.append((data[:, 0], data[:, 1:].T))

    return trajectories


def _map_to_dict(fmap: PolynomialMap) -> dict:
    return {
        "kind": fmap.kind.value,
        "coefficients": np.asarray(fmap.coefficients),
        "exponents": np.asarray(fmap.exponents),
        "l_opt": fmap.l_opt,
        "cv_error": fmap.cv_error,
    }


def _map_from_dict(map_dict: dict) -> PolynomialMap:
    return assemble_map(
        MapKind(map_dict["kind"]),
        jnp.array(map_dict["coefficients"]),
        map_dict["exponents"],
        l_opt=map_dict.get("l_opt"),
        cv_error=map_dict.get("cv_error"),
    )


def save_model(filename: str, model: ReducedDynamicsModel) -> None:
    """
    Save an identified model to file.

    Parameters
    ----------
    filename : str
        Output filename.
    model : ReducedDynamicsModel
        Identified model.
    """
    # Convert JAX arrays to NumPy for pickling
    model_dict = {name: _map_to_dict(getattr(model, name)) for name in MAP_FIELDS}
    model_dict.update(
        {
            "conjugacy_style": model.conjugacy_style.value,
            "dynamics_type": model.dynamics_type,
            "map_time_step": float(model.map_time_step),
            "eigenvalues_lin_part_map": np.asarray(model.eigenvalues_lin_part_map),
            "eigenvalues_lin_part_flow": np.asarray(model.eigenvalues_lin_part_flow),
            "eigenvectors_lin_part": np.asarray(model.eigenvectors_lin_part),
        }
    )
    with open(filename, "wb") as f:
        pickle.dump(model_dict, f)


def load_model(filename: str) -> ReducedDynamicsModel:
    """
    Load an identified model from file.

    Parameters
    ----------
    filename : str
        Input filename.

    Returns
    -------
    ReducedDynamicsModel
        Loaded model with JAX arrays.
    """
    with open(filename, "rb") as f:
        model_dict = pickle.load(f)

    maps = {name: _map_from_dict(model_dict[name]) for name in MAP_FIELDS}
    return ReducedDynamicsModel(
        **maps,
        conjugacy_style=ConjugacyStyle(model_dict["conjugacy_style"]),
        dynamics_type=model_dict["dynamics_type"],
        map_time_step=model_dict["map_time_step"],
        eigenvalues_lin_part_map=jnp.array(model_dict["eigenvalues_lin_part_map"]),
        eigenvalues_lin_part_flow=jnp.array(model_dict["eigenvalues_lin_part_flow"]),
        eigenvectors_lin_part=jnp.array(model_dict["eigenvectors_lin_part"]),
    )
