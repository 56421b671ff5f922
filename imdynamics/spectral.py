"""
Sorted eigendecomposition of the linear part of a discrete-time map.
"""

import jax.numpy as jnp
import numpy as np
from jax import Array

from .errors import NumericalError


def eig_sorted(A: Array, dt: float) -> tuple[Array, Array, Array]:
    """
    Eigendecomposition of a map's linear part, sorted by decay rate.

    Eigenpairs are sorted by ascending continuous-time decay rate
    -Re(log(lambda) / dt), ties broken by descending imaginary part, so a
    complex conjugate pair comes out with the positive frequency first.

    Parameters
    ----------
    A : Array
        Linear part, shape (k, k).
    dt : float
        Sampling time of the map.

    Returns
    -------
    V : Array
        Eigenvectors as unit-norm columns, shape (k, k).
    D : Array
        Diagonal matrix of discrete-time eigenvalues, shape (k, k).
    d_cont : Array
        Continuous-time eigenvalues log(lambda) / dt (principal branch),
        shape (k,).

    Notes
    -----
    V and D are real when every eigenvalue and eigenvector is real. d_cont
    is real only when every eigenvalue is real and positive.
    """
    A = jnp.asarray(A)
    if not bool(jnp.all(jnp.isfinite(A))):
        raise NumericalError("Spectral analysis: linear part is not finite")

    eig_vals, eig_vecs = jnp.linalg.eig(A)
    d_cont = jnp.log(eig_vals) / dt

    # Rounding merges conjugate pairs whose real parts differ by round-off
    decay = np.round(-np.asarray(d_cont.real), 10)
    freq = -np.asarray(d_cont.imag)
    order = np.lexsort((freq, decay))

    eig_vals = eig_vals[order]
    eig_vecs = eig_vecs[:, order]
    d_cont = d_cont[order]

    if bool(jnp.all(eig_vals.imag == 0)) and bool(jnp.all(eig_vecs.imag == 0)):
        eig_vals = eig_vals.real
        eig_vecs = eig_vecs.real
    # Negative real eigenvalues keep their principal-branch frequency pi / dt
    if bool(jnp.all(d_cont.imag == 0)):
        d_cont = d_cont.real

    return eig_vecs, jnp.diag(eig_vals), d_cont
