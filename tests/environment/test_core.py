"""
Tests for the rectangular Environment.
"""

import numpy as np
import pytest
from hypothesis import given
from hypothesis import strategies as st

from spatialcells.environment import (
    SAMPLING_METHODS,
    Environment,
    EnvironmentProtocol,
)


class TestEnvironmentCreation:
    """Tests for constructor validation and defaults."""

    def test_defaults(self):
        env = Environment()
        assert env.extent == (0.0, 1.0, 0.0, 1.0)
        assert env.dimensionality == "2D"
        assert env.boundary_conditions == "solid"
        assert env.n_dims == 2

    def test_default_1d_extent(self):
        env = Environment(dimensionality="1D")
        assert env.extent == (0.0, 1.0)
        assert env.n_dims == 1

    def test_implements_protocol(self, coarse_2d_env):
        assert isinstance(coarse_2d_env, EnvironmentProtocol)

    @pytest.mark.parametrize(
        ("kwargs", "match"),
        [
            ({"dimensionality": "3D"}, "dimensionality"),
            ({"boundary_conditions": "open"}, "boundary_conditions"),
            ({"dx": 0.0}, "dx must be positive"),
            ({"extent": (0, 1)}, "extent of length 4"),
            ({"extent": (1, 0, 0, 1)}, "increasing"),
        ],
    )
    def test_invalid_arguments(self, kwargs, match):
        with pytest.raises(ValueError, match=match):
            Environment(**kwargs)

    def test_repr_mentions_parameters(self, coarse_2d_env):
        text = repr(coarse_2d_env)
        assert "dimensionality='2D'" in text
        assert "dx=0.1" in text


class TestDiscretization:
    """Tests for the discretized position grid."""

    def test_2d_grid_shape(self, coarse_2d_env):
        assert coarse_2d_env.discrete_coords.shape == (11, 11, 2)
        assert coarse_2d_env.flattened_discrete_coords.shape == (121, 2)

    def test_x_varies_fastest(self, coarse_2d_env):
        coords = coarse_2d_env.flattened_discrete_coords
        np.testing.assert_allclose(coords[:11, 1], 0.0)
        np.testing.assert_allclose(coords[:11, 0], np.linspace(0, 1, 11))

    def test_flattened_matches_reshaped_grid(self, coarse_2d_env):
        np.testing.assert_array_equal(
            coarse_2d_env.discrete_coords.reshape(-1, 2),
            coarse_2d_env.flattened_discrete_coords,
        )

    def test_1d_grid(self, coarse_1d_env):
        coords = coarse_1d_env.flattened_discrete_coords
        assert coords.shape == (11, 1)
        np.testing.assert_allclose(coords[:, 0], np.linspace(0, 1, 11))

    def test_rectangular_extent(self):
        env = Environment(extent=(0, 2, 0, 1), dx=0.5)
        assert env.discrete_coords.shape == (3, 5, 2)
        np.testing.assert_allclose(env.side_lengths, [2.0, 1.0])


class TestSamplePositions:
    """Tests for position sampling."""

    @pytest.mark.parametrize("method", SAMPLING_METHODS)
    def test_shape_and_bounds(self, coarse_2d_env, method):
        positions = coarse_2d_env.sample_positions(10, method, seed=0)
        assert positions.shape == (10, 2)
        assert coarse_2d_env.contains(positions).all()

    def test_uniform_is_a_grid(self, coarse_2d_env):
        positions = coarse_2d_env.sample_positions(4, "uniform")
        np.testing.assert_allclose(
            positions, [[0.0, 0.0], [1.0, 0.0], [0.0, 1.0], [1.0, 1.0]]
        )

    def test_uniform_truncates_to_n(self, coarse_2d_env):
        # ceil(sqrt(5)) = 3 points per side, first 5 kept
        positions = coarse_2d_env.sample_positions(5, "uniform")
        assert positions.shape == (5, 2)
        np.testing.assert_allclose(positions[:3, 1], 0.0)

    def test_uniform_1d(self, coarse_1d_env):
        positions = coarse_1d_env.sample_positions(3, "uniform")
        np.testing.assert_allclose(positions[:, 0], [0.0, 0.5, 1.0])

    def test_jitter_perturbs_grid(self, coarse_2d_env):
        uniform = coarse_2d_env.sample_positions(9, "uniform")
        jittered = coarse_2d_env.sample_positions(9, "uniform_jitter", seed=0)
        assert not np.allclose(uniform, jittered)
        # Jitter std is 0.3 / 3 = 0.1, so points stay near their grid node
        assert np.max(np.abs(uniform - jittered)) < 0.6

    def test_seed_reproducibility(self, coarse_2d_env):
        a = coarse_2d_env.sample_positions(20, "random", seed=3)
        b = coarse_2d_env.sample_positions(20, "random", seed=3)
        np.testing.assert_array_equal(a, b)

    def test_unknown_method(self, coarse_2d_env):
        with pytest.raises(ValueError, match="Unknown sampling method"):
            coarse_2d_env.sample_positions(5, "hexagonal")


class TestDistances:
    """Tests for centre-to-position distances."""

    def test_euclidean(self, coarse_2d_env):
        dist = coarse_2d_env.get_distances_between(
            [[0.0, 0.0], [1.0, 1.0]], [[0.0, 0.0], [0.3, 0.4], [1.0, 1.0]]
        )
        assert dist.shape == (2, 3)
        np.testing.assert_allclose(dist[0], [0.0, 0.5, np.sqrt(2)])

    @pytest.mark.parametrize("wall_geometry", ["geodesic", "line_of_sight"])
    def test_wall_geometries_match_euclidean_in_empty_arena(
        self, coarse_2d_env, wall_geometry
    ):
        centres = coarse_2d_env.sample_positions(5, "random", seed=1)
        positions = coarse_2d_env.flattened_discrete_coords
        np.testing.assert_allclose(
            coarse_2d_env.get_distances_between(centres, positions, wall_geometry),
            coarse_2d_env.get_distances_between(centres, positions, "euclidean"),
        )

    def test_unknown_wall_geometry(self, coarse_2d_env):
        with pytest.raises(ValueError, match="Unknown wall_geometry"):
            coarse_2d_env.get_distances_between([[0, 0]], [[1, 1]], "manhattan")

    def test_periodic_uses_shortest_wrap(self, coarse_2d_periodic_env):
        dist = coarse_2d_periodic_env.get_distances_between([[0.1, 0.5]], [[0.9, 0.5]])
        np.testing.assert_allclose(dist, [[0.2]])

    def test_1d_distances(self, coarse_1d_env):
        dist = coarse_1d_env.get_distances_between([[0.2]], [[0.0], [0.7]])
        np.testing.assert_allclose(dist, [[0.2, 0.5]])

    @given(
        st.tuples(st.floats(0, 1), st.floats(0, 1)),
        st.tuples(st.floats(0, 1), st.floats(0, 1)),
    )
    def test_periodic_distance_bounded_by_half_diagonal(self, a, b):
        env = Environment(boundary_conditions="periodic", dx=0.5)
        dist = env.get_distances_between([a], [b])[0, 0]
        assert dist <= np.sqrt(0.5) + 1e-12


class TestContainsAndWrap:
    def test_contains_inclusive_bounds(self, coarse_2d_env):
        mask = coarse_2d_env.contains([[0.0, 0.0], [1.0, 1.0], [1.01, 0.5]])
        assert mask.tolist() == [True, True, False]

    def test_wrap(self, coarse_2d_periodic_env):
        wrapped = coarse_2d_periodic_env.wrap([[1.25, -0.25]])
        np.testing.assert_allclose(wrapped, [[0.25, 0.75]])
