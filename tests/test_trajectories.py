"""Tests for trajectory reshaping and sample weighting."""

import jax.numpy as jnp
import numpy as np
import pytest

from imdynamics.errors import ConfigurationError, InvalidInputError
from imdynamics.trajectories import assemble_regression_data, compute_sample_weights


class TestAssembleRegressionData:
    """Test the one-step-ahead dataset construction."""

    @pytest.fixture
    def two_trajectories(self):
        t1 = 0.1 * np.arange(4)
        X1 = np.array([[1.0, 2.0, 3.0, 4.0], [10.0, 20.0, 30.0, 40.0]])
        t2 = 0.1 * np.arange(3)
        X2 = np.array([[5.0, 6.0, 7.0], [50.0, 60.0, 70.0]])
        return [(t1, X1), (t2, X2)]

    def test_shapes(self, two_trajectories):
        """N should be the sum of (m_i - 1)."""
        data = assemble_regression_data(two_trajectories)

        assert data.X.shape == (2, 5)
        assert data.X_next.shape == (2, 5)
        assert data.t.shape == (5,)

    def test_successors(self, two_trajectories):
        """Column j of X_next should be one step after column j of X."""
        data = assemble_regression_data(two_trajectories)

        assert jnp.allclose(data.X[0], jnp.array([1.0, 2.0, 3.0, 5.0, 6.0]))
        assert jnp.allclose(data.X_next[0], jnp.array([2.0, 3.0, 4.0, 6.0, 7.0]))
        assert jnp.allclose(data.t, jnp.array([0.0, 0.1, 0.2, 0.0, 0.1]))

    def test_trajectory_ranges(self, two_trajectories):
        """Index ranges should be contiguous and cover all samples once."""
        data = assemble_regression_data(two_trajectories)

        assert len(data.idx_traj) == 2
        assert np.array_equal(data.idx_traj[0], [0, 1, 2])
        assert np.array_equal(data.idx_traj[1], [3, 4])

    def test_time_step_from_first_trajectory(self, simulate):
        """dt is read from the first trajectory and never re-validated."""
        traj_a = simulate(lambda x: 0.5 * x, [1.0], 5, dt=0.2)
        traj_b = simulate(lambda x: 0.5 * x, [2.0], 5, dt=0.7)
        data = assemble_regression_data([traj_a, traj_b])

        assert np.isclose(data.dt, 0.2)

    def test_length_two_trajectory(self):
        """A trajectory of length 2 gives exactly one pair."""
        data = assemble_regression_data([(np.array([0.0, 0.5]), np.array([[1.0], [2.0]]).T)])

        assert data.X.shape == (1, 1)
        assert jnp.allclose(data.X_next, 2.0)

    def test_one_dimensional_states(self):
        """1-D state arrays should be read as k = 1."""
        data = assemble_regression_data([(np.arange(3.0), np.array([1.0, 0.5, 0.25]))])

        assert data.X.shape == (1, 2)

    def test_length_one_rejected(self):
        with pytest.raises(InvalidInputError):
            assemble_regression_data([(np.array([0.0]), np.array([[1.0]]))])

    def test_inconsistent_dimension_rejected(self):
        t = np.arange(3.0)
        with pytest.raises(InvalidInputError):
            assemble_regression_data([(t, np.ones((2, 3))), (t, np.ones((3, 3)))])

    def test_time_state_mismatch_rejected(self):
        with pytest.raises(InvalidInputError):
            assemble_regression_data([(np.arange(4.0), np.ones((2, 3)))])

    def test_empty_set_rejected(self):
        with pytest.raises(InvalidInputError):
            assemble_regression_data([])

    def test_non_positive_time_step_rejected(self):
        with pytest.raises(InvalidInputError):
            assemble_regression_data([(np.array([1.0, 0.0, -1.0]), np.ones((1, 3)))])

    def test_malformed_entry_rejected(self):
        with pytest.raises(InvalidInputError):
            assemble_regression_data([np.arange(3.0)])


class TestComputeSampleWeights:
    """Test slow manifold weighting."""

    def test_uniform_by_default(self):
        t = jnp.linspace(0, 5, 11)
        weights = compute_sample_weights(t)

        assert jnp.allclose(weights, 1.0)

    def test_formula(self):
        t = jnp.array([0.0, 1.0, 2.0])
        weights = compute_sample_weights(t, c1=2.0, c2=0.5)
        expected = (1.0 + 2.0 * jnp.exp(-0.5 * t)) ** (-2)

        assert jnp.allclose(weights, expected)

    def test_early_samples_discounted(self):
        """Weights should increase with time and stay in (0, 1]."""
        t = jnp.linspace(0, 10, 50)
        weights = compute_sample_weights(t, c1=5.0, c2=1.0)

        assert jnp.all(jnp.diff(weights) > 0)
        assert jnp.all(weights > 0)
        assert jnp.all(weights <= 1.0)

    def test_negative_coefficient_rejected(self):
        with pytest.raises(ConfigurationError):
            compute_sample_weights(jnp.arange(3.0), c1=-1.0)

    def test_non_numeric_coefficient_rejected(self):
        with pytest.raises(ConfigurationError):
            compute_sample_weights(jnp.arange(3.0), c1="a")
        with pytest.raises(ConfigurationError):
            compute_sample_weights(jnp.arange(3.0), c2=[1.0, 2.0])

    def test_vanishing_weights_rejected(self):
        """exp overflow drives weights to zero, which is rejected."""
        t = jnp.array([-10.0, 0.0])
        with pytest.raises(ConfigurationError):
            compute_sample_weights(t, c1=1.0, c2=1000.0)
