"""Pytest configuration and shared fixtures."""

import jax
import numpy as np
import pytest

# Ensure float64 is enabled for all tests
jax.config.update("jax_enable_x64", True)


@pytest.fixture
def simulate():
    """Iterate a map from an initial condition: returns (t, X)."""

    def _simulate(step, x0, n_samples, dt=0.1, t0=0.0):
        x0 = np.atleast_1d(np.asarray(x0, dtype=float))
        t = t0 + dt * np.arange(n_samples)
        X = np.zeros((x0.shape[0], n_samples))
        X[:, 0] = x0
        for j in range(1, n_samples):
            X[:, j] = step(X[:, j - 1])
        return t, X

    return _simulate


@pytest.fixture
def diagonal_trajectories(simulate):
    """Two trajectories of x_{k+1} = diag(0.9, 0.8) x_k, dt = 0.1."""
    A = np.diag([0.9, 0.8])
    return [
        simulate(lambda x: A @ x, [1.0, 0.5], 25),
        simulate(lambda x: A @ x, [-0.3, 1.2], 20),
    ]
