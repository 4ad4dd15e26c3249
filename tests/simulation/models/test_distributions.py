"""Tests for per-neuron parameter sampling."""

import numpy as np
import pytest
from hypothesis import given
from hypothesis import strategies as st

from spatialcells.simulation.models import sample_distribution


class TestModules:
    def test_round_robin_assignment(self):
        samples = sample_distribution("modules", [1, 2, 3], n=5)
        np.testing.assert_array_equal(samples, [1, 2, 3, 1, 2])

    def test_fewer_neurons_than_modules(self):
        samples = sample_distribution("modules", [0.3, 0.5, 0.8], n=2)
        np.testing.assert_array_equal(samples, [0.3, 0.5])

    def test_scalar_module(self):
        np.testing.assert_array_equal(sample_distribution("modules", 0.4, n=3), 0.4)

    def test_repeated_across_columns(self):
        samples = sample_distribution("modules", [1, 2], n=3, dimension=2)
        np.testing.assert_array_equal(samples, [[1, 1], [2, 2], [1, 1]])

    def test_rejects_nested_params(self):
        with pytest.raises(ValueError, match="modules distribution"):
            sample_distribution("modules", [[1, 2], [3, 4]], n=3)

    @given(st.integers(min_value=1, max_value=50))
    def test_every_value_is_a_module(self, n):
        modules = [0.3, 0.5, 0.8]
        samples = sample_distribution("modules", modules, n=n)
        assert samples.shape == (n,)
        assert set(samples.tolist()) <= set(modules)


class TestUniform:
    def test_bounds_and_shape(self):
        samples = sample_distribution(
            "uniform", (0, 2 * np.pi), n=100, dimension=2, seed=0
        )
        assert samples.shape == (100, 2)
        assert np.all((samples >= 0) & (samples <= 2 * np.pi))

    def test_scalar_means_half_to_one_and_a_half(self):
        samples = sample_distribution("uniform", 2.0, n=200, seed=0)
        assert np.all((samples >= 1.0) & (samples <= 3.0))

    def test_columns_are_independent(self):
        samples = sample_distribution("uniform", (0, 1), n=50, dimension=2, seed=0)
        assert not np.allclose(samples[:, 0], samples[:, 1])

    def test_seeded(self):
        a = sample_distribution("uniform", (0, 1), n=10, seed=7)
        b = sample_distribution("uniform", (0, 1), n=10, seed=np.random.default_rng(7))
        np.testing.assert_array_equal(a, b)

    def test_rejects_three_params(self):
        with pytest.raises(ValueError, match=r"\(low, high\)"):
            sample_distribution("uniform", (0, 1, 2), n=3)


class TestDelta:
    def test_scalar(self):
        np.testing.assert_array_equal(sample_distribution("delta", 0.5, n=3), 0.5)

    def test_vector_per_row(self):
        samples = sample_distribution("delta", [0.1, 0.2], n=3, dimension=2)
        np.testing.assert_array_equal(samples, [[0.1, 0.2]] * 3)

    def test_rejects_wrong_length(self):
        with pytest.raises(ValueError, match="length 2"):
            sample_distribution("delta", [0.1, 0.2, 0.3], n=3, dimension=2)


class TestValidation:
    def test_unknown_distribution(self):
        with pytest.raises(ValueError, match="Unknown distribution 'gaussian'"):
            sample_distribution("gaussian", (0, 1), n=3)

    def test_non_numeric_params(self):
        with pytest.raises(ValueError, match="numeric params"):
            sample_distribution("delta", "abc", n=3)

    def test_zero_neurons(self):
        assert sample_distribution("modules", [1, 2], n=0).shape == (0,)
