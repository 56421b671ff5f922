"""Tests for coordinate changes of the identified map."""

import jax.numpy as jnp
import numpy as np
import pytest

from imdynamics.errors import NumericalError
from imdynamics.maps import assemble_map, identity_map, linear_map
from imdynamics.polynomial import generate_exponents
from imdynamics.spectral import eig_sorted
from imdynamics.transform import conjugate_maps, default_conjugacy, modal_conjugacy
from imdynamics.types import ConjugacyStyle, MapKind


@pytest.fixture
def quadratic_map():
    """R(x) = A x + quadratic terms, non-normal real linear part."""
    exponents = generate_exponents(2, 2)
    W = jnp.array([[0.9, 0.1, 0.05, -0.02, 0.01], [0.0, 0.8, 0.0, 0.03, -0.04]])
    return assemble_map(MapKind.FITTED, W, exponents, l_opt=0.0, cv_error=0.0)


@pytest.fixture
def oscillatory_map():
    """Cubic map whose linear part has a complex conjugate pair."""
    exponents = generate_exponents(2, 3)
    r, theta = 0.97, 0.2
    linear = r * np.array([[np.cos(theta), -np.sin(theta)], [np.sin(theta), np.cos(theta)]])
    nonlinear = np.zeros((2, exponents.shape[0] - 2))
    nonlinear[0, 3] = -0.1  # x1^3
    nonlinear[1, 1] = 0.05  # x1 x2
    W = jnp.array(np.hstack([linear, nonlinear]))
    return assemble_map(MapKind.FITTED, W, exponents)


@pytest.fixture
def sample_states():
    return jnp.array(np.random.default_rng(5).uniform(-0.5, 0.5, (2, 15)))


class TestMaps:
    """Test PolynomialMap constructors."""

    def test_identity(self, sample_states):
        identity = identity_map(2)

        assert identity.kind == MapKind.IDENTITY
        assert identity.polynomial_order == 1
        assert jnp.allclose(identity.coefficients, jnp.eye(2))
        assert jnp.allclose(identity.evaluate(sample_states), sample_states)

    def test_linear(self, sample_states):
        M = jnp.array([[1.0, 2.0], [3.0, 4.0]])
        fmap = linear_map(M)

        assert fmap.kind == MapKind.LINEAR
        assert jnp.allclose(fmap(sample_states), M @ sample_states)

    def test_fitted_record(self, quadratic_map):
        assert quadratic_map.polynomial_order == 2
        assert quadratic_map.l_opt == 0.0
        assert quadratic_map.phi(jnp.ones((2, 3))).shape == (5, 3)


class TestDefaultConjugacy:
    """Test the identity coordinate change."""

    def test_maps(self, quadratic_map, sample_states):
        conjugacy = default_conjugacy(quadratic_map)

        assert conjugacy.conjugate_dynamics is quadratic_map
        assert jnp.allclose(conjugacy.transformation.coefficients, jnp.eye(2))
        assert jnp.allclose(conjugacy.inverse_transformation(sample_states), sample_states)
        assert jnp.allclose(conjugacy.transformation(sample_states), sample_states)


class TestModalConjugacy:
    """Test the eigenvector coordinate change."""

    def test_round_trip(self, quadratic_map, sample_states):
        """T(N(iT(x))) should equal R(x)."""
        V, _, _ = eig_sorted(quadratic_map.coefficients[:, :2], 0.1)
        conjugacy = modal_conjugacy(quadratic_map, V)

        y = conjugacy.inverse_transformation(sample_states)
        x_next = conjugacy.transformation(conjugacy.conjugate_dynamics(y))

        assert jnp.allclose(x_next, quadratic_map(sample_states), atol=1e-12)

    def test_conjugate_definition(self, quadratic_map, sample_states):
        """N(y) should equal V^-1 R(V y)."""
        V, _, _ = eig_sorted(quadratic_map.coefficients[:, :2], 0.1)
        conjugacy = modal_conjugacy(quadratic_map, V)

        expected = jnp.linalg.solve(V, quadratic_map(V @ sample_states))

        assert conjugacy.conjugate_dynamics.kind == MapKind.CONJUGATE
        assert jnp.allclose(conjugacy.conjugate_dynamics(sample_states), expected, atol=1e-12)

    def test_diagonal_linear_part(self, quadratic_map):
        V, D, _ = eig_sorted(quadratic_map.coefficients[:, :2], 0.1)
        conjugacy = modal_conjugacy(quadratic_map, V)

        assert jnp.allclose(conjugacy.conjugate_dynamics.coefficients[:, :2], D, atol=1e-12)

    def test_complex_round_trip(self, oscillatory_map, sample_states):
        V, D, _ = eig_sorted(oscillatory_map.coefficients[:, :2], 0.1)
        conjugacy = modal_conjugacy(oscillatory_map, V)

        y = conjugacy.inverse_transformation(sample_states)
        x_next = conjugacy.transformation(conjugacy.conjugate_dynamics(y))

        assert jnp.iscomplexobj(V)
        assert jnp.allclose(conjugacy.conjugate_dynamics.coefficients[:, :2], D, atol=1e-12)
        assert jnp.allclose(x_next, oscillatory_map(sample_states), atol=1e-12)

    def test_singular_eigenvectors(self, quadratic_map):
        with pytest.raises(NumericalError):
            modal_conjugacy(quadratic_map, jnp.array([[1.0, 1.0], [1.0, 1.0]]))

    def test_condition_threshold(self, quadratic_map):
        V = jnp.array([[1.0, 0.0], [0.0, 1e-4]])
        with pytest.raises(NumericalError):
            modal_conjugacy(quadratic_map, V, cond_threshold=1e3)


class TestConjugateMaps:
    """Test style dispatch."""

    def test_default(self, quadratic_map):
        conjugacy = conjugate_maps(ConjugacyStyle.DEFAULT, quadratic_map, jnp.eye(2))

        assert conjugacy.conjugate_dynamics is quadratic_map

    def test_modal_by_name(self, quadratic_map):
        conjugacy = conjugate_maps("modal", quadratic_map, jnp.eye(2))

        assert conjugacy.transformation.kind == MapKind.LINEAR

    def test_normalform_not_implemented(self, quadratic_map):
        with pytest.raises(NotImplementedError):
            conjugate_maps(ConjugacyStyle.NORMALFORM, quadratic_map, jnp.eye(2))
