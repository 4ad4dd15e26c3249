"""Tests for hexagonal and rectangular grid cells."""

import numpy as np
import pytest

from spatialcells.simulation.models import (
    GridCellConfig,
    GridCells,
    GridCells2Cos,
    GridCellTuning,
    RectangularGridCellTuning,
    TuningModel,
)

DEFAULT_WIDTH_RATIO = 4 / (3 * np.sqrt(3))


def hexagonal_tuning(env, gridscale=0.5, orientation=0.0, phase=(0.0, 0.0), **kwargs):
    return GridCellTuning(
        env, [gridscale], [phase], orientations=[orientation], **kwargs
    )


class TestGridCellConfig:
    def test_defaults(self):
        config = GridCellConfig()
        assert config.n == 30
        assert config.name == "GridCells"
        assert config.gridscale == (0.3, 0.5, 0.8)
        assert config.gridscale_distribution == "modules"
        assert config.orientation == (0.0, 0.1, 0.2)
        assert config.phase_offset_distribution == "uniform"
        assert config.description == "rectified_cosines"
        assert config.width_ratio == pytest.approx(DEFAULT_WIDTH_RATIO)

    @pytest.mark.parametrize(
        ("kwargs", "match"),
        [
            ({"gridscale_distribution": "normal"}, "gridscale_distribution"),
            ({"phase_offset_distribution": "normal"}, "phase_offset_distribution"),
            ({"description": "gaussian"}, "Unknown grid cell description"),
        ],
    )
    def test_invalid(self, kwargs, match):
        with pytest.raises(ValueError, match=match):
            GridCellConfig(**kwargs)


class TestParameterSampling:
    def test_modules_assigned_round_robin(self, agent_2d):
        gcs = GridCells(agent_2d, seed=0)
        assert gcs.n == 30
        np.testing.assert_allclose(gcs.gridscales, np.resize([0.3, 0.5, 0.8], 30))
        np.testing.assert_allclose(gcs.orientations, np.resize([0.0, 0.1, 0.2], 30))

    def test_uniform_phase_offsets(self, agent_2d):
        gcs = GridCells(agent_2d, seed=0)
        assert gcs.phase_offsets.shape == (30, 2)
        assert np.all((gcs.phase_offsets >= 0) & (gcs.phase_offsets <= 2 * np.pi))

    def test_array_gridscale_used_verbatim_and_sets_n(self, agent_2d):
        gcs = GridCells(agent_2d, n=30, gridscale=np.array([0.4, 0.6]), seed=0)
        assert gcs.n == 2
        np.testing.assert_array_equal(gcs.gridscales, [0.4, 0.6])
        assert gcs.phase_offsets.shape == (2, 2)
        assert gcs.orientations.shape == (2,)

    def test_array_phase_and_orientation(self, agent_2d):
        phases = np.array([[0.0, 0.0], [1.0, 2.0]])
        gcs = GridCells(
            agent_2d,
            n=2,
            phase_offset=phases,
            orientation=np.array([0.3, 0.4]),
            seed=0,
        )
        np.testing.assert_array_equal(gcs.phase_offsets, phases)
        np.testing.assert_array_equal(gcs.orientations, [0.3, 0.4])

    def test_delta_distribution(self, agent_2d):
        gcs = GridCells(
            agent_2d, n=4, gridscale=0.45, gridscale_distribution="delta", seed=0
        )
        np.testing.assert_array_equal(gcs.gridscales, 0.45)

    def test_uniform_gridscale(self, agent_2d):
        gcs = GridCells(
            agent_2d,
            n=50,
            gridscale=(0.3, 0.6),
            gridscale_distribution="uniform",
            seed=0,
        )
        assert np.all((gcs.gridscales >= 0.3) & (gcs.gridscales <= 0.6))

    def test_seeded(self, agent_2d):
        a = GridCells(agent_2d, seed=9)
        b = GridCells(agent_2d, seed=9)
        np.testing.assert_array_equal(a.phase_offsets, b.phase_offsets)

    def test_phase_shape_mismatch(self, coarse_2d_env):
        with pytest.raises(ValueError, match="phase_offsets must have shape"):
            GridCellTuning(coarse_2d_env, [0.5, 0.5], [0.0, 0.0, 0.0], [0.0, 0.0])


class TestDirectionVectors:
    def test_shape_and_unit_norm(self, agent_2d):
        gcs = GridCells(agent_2d, n=6, seed=0)
        assert gcs.w.shape == (6, 3, 2)
        np.testing.assert_allclose(np.linalg.norm(gcs.w, axis=-1), 1.0)

    def test_sixty_degree_spacing(self, agent_2d):
        gcs = GridCells(agent_2d, n=3, seed=0)
        for w in gcs.w:
            angles = np.arctan2(w[:, 1], w[:, 0])
            np.testing.assert_allclose(np.diff(angles), np.pi / 3)

    def test_first_direction_follows_orientation(self, agent_2d):
        gcs = GridCells(agent_2d, n=1, orientation=np.array([0.3]), seed=0)
        np.testing.assert_allclose(gcs.w[0, 0], [np.cos(0.3), np.sin(0.3)])


class TestHexagonalTuning:
    def test_implements_protocol(self, coarse_2d_env):
        assert isinstance(hexagonal_tuning(coarse_2d_env), TuningModel)

    def test_peak_at_phase_origin(self, coarse_2d_env):
        tuning = hexagonal_tuning(coarse_2d_env, gridscale=0.5, phase=(np.pi, np.pi))
        # origin = gridscale * phase / 2pi = (0.25, 0.25)
        assert tuning.firing_rate(np.array([[0.25, 0.25]]))[0, 0] == pytest.approx(1.0)

    @pytest.mark.parametrize("description", ["rectified_cosines", "shifted_cosines"])
    def test_hexagonal_periodicity(self, coarse_2d_env, description):
        gridscale = 0.4
        tuning = hexagonal_tuning(
            coarse_2d_env, gridscale=gridscale, description=description
        )
        # Lattice vectors of the three-wave interference pattern
        lattice = gridscale * np.array([[1.0, 1 / np.sqrt(3)], [0.0, 2 / np.sqrt(3)]])
        base = np.array([[0.13, 0.27]])
        rates = tuning.firing_rate(np.vstack([base, base + lattice]))[0]
        np.testing.assert_allclose(rates, rates[0], atol=1e-12)

    def test_orientation_rotates_pattern(self, coarse_2d_env):
        displacement = np.array([0.11, 0.05])
        angle = 0.4
        rotation = np.array(
            [[np.cos(angle), -np.sin(angle)], [np.sin(angle), np.cos(angle)]]
        )
        plain = hexagonal_tuning(coarse_2d_env, orientation=0.0)
        rotated = hexagonal_tuning(coarse_2d_env, orientation=angle)
        np.testing.assert_allclose(
            plain.firing_rate(displacement[np.newaxis]),
            rotated.firing_rate((rotation @ displacement)[np.newaxis]),
            atol=1e-12,
        )

    @pytest.mark.parametrize("description", ["rectified_cosines", "shifted_cosines"])
    def test_rates_in_unit_interval(self, fine_2d_env, description):
        tuning = hexagonal_tuning(fine_2d_env, gridscale=0.3, description=description)
        rates = tuning.firing_rate(fine_2d_env.flattened_discrete_coords)
        assert rates.min() >= -1e-12
        assert rates.max() <= 1 + 1e-12

    def test_shifted_minimum_is_zero(self, coarse_2d_env):
        tuning = hexagonal_tuning(coarse_2d_env, description="shifted_cosines")
        # Mean of the three cosines bottoms out at -1/2
        assert tuning.shift(np.array(-0.5)) == pytest.approx(0.0)

    def test_rectified_is_sparse(self, fine_2d_env):
        tuning = hexagonal_tuning(fine_2d_env, gridscale=0.3)
        rates = tuning.firing_rate(fine_2d_env.flattened_discrete_coords)
        assert np.mean(rates == 0) > 0.3

    def test_narrower_fields_with_smaller_width_ratio(self, fine_2d_env):
        positions = fine_2d_env.flattened_discrete_coords
        wide = hexagonal_tuning(fine_2d_env, width_ratio=0.7).firing_rate(positions)
        narrow = hexagonal_tuning(fine_2d_env, width_ratio=0.4).firing_rate(positions)
        assert np.count_nonzero(narrow) < np.count_nonzero(wide)

    def test_width_ratio_out_of_range_warns(self, coarse_2d_env):
        with pytest.warns(UserWarning, match="width_ratio"):
            hexagonal_tuning(coarse_2d_env, width_ratio=1.5)

    def test_width_ratio_ignored_for_shifted(self, coarse_2d_env, recwarn):
        hexagonal_tuning(
            coarse_2d_env, width_ratio=1.5, description="shifted_cosines"
        )
        assert not [w for w in recwarn if "width_ratio" in str(w.message)]

    def test_unknown_description_at_evaluation(self, coarse_2d_env):
        tuning = hexagonal_tuning(coarse_2d_env)
        tuning.description = "gaussian"
        with pytest.raises(ValueError, match="Unknown grid cell description"):
            tuning.firing_rate(np.array([[0.5, 0.5]]))

    def test_rejects_non_positive_gridscale(self, coarse_2d_env):
        with pytest.raises(ValueError, match="gridscales must be positive"):
            hexagonal_tuning(coarse_2d_env, gridscale=0.0)

    def test_ground_truth(self, coarse_2d_env):
        truth = hexagonal_tuning(coarse_2d_env, gridscale=0.5).ground_truth
        np.testing.assert_array_equal(truth["gridscales"], [0.5])
        assert truth["description"] == "rectified_cosines"

    def test_rate_map_spans_rate_range(self, fine_2d_env, make_agent):
        agent = make_agent(fine_2d_env, [[0.5, 0.5]])
        gcs = GridCells(agent, n=30, gridscale=0.3, min_fr=2.0, max_fr=8.0, seed=0)
        rate_maps = gcs.get_state("all")
        assert rate_maps.max() == pytest.approx(8.0, abs=0.1)
        # Rectified cosines are silent between fields
        assert rate_maps.min() == pytest.approx(2.0)


class TestOneDimensionalGridCells:
    def test_population(self, agent_1d):
        gcs = GridCells(agent_1d, n=6, seed=0)
        assert gcs.phase_offsets.shape == (6,)
        assert gcs.orientations is None
        assert gcs.w is None
        assert gcs.get_state("all").shape == (6, 11)

    def test_peak_location(self, coarse_1d_env):
        tuning = GridCellTuning(coarse_1d_env, [0.4], [np.pi / 2])
        # cos(2 pi x / 0.4 - pi / 2) peaks at x = 0.1
        assert tuning.firing_rate(np.array([[0.1]]))[0, 0] == pytest.approx(1.0)

    def test_shifted_1d(self, coarse_1d_env):
        tuning = GridCellTuning(
            coarse_1d_env, [0.4], [0.0], description="shifted_cosines"
        )
        rates = tuning.firing_rate(np.array([[0.0], [0.1], [0.2]]))[0]
        np.testing.assert_allclose(rates, [1.0, 0.5, 0.0], atol=1e-12)

    def test_rectified_1d_threshold(self, coarse_1d_env):
        width_ratio = 0.5
        tuning = GridCellTuning(coarse_1d_env, [0.4], [0.0], width_ratio=width_ratio)
        x = 0.05
        raw = np.cos(2 * np.pi * x / 0.4)
        threshold = np.cos(width_ratio * np.pi)
        expected = max((raw - threshold) / (1 - threshold), 0.0)
        assert tuning.firing_rate(np.array([[x]]))[0, 0] == pytest.approx(expected)

    def test_periodic_in_gridscale(self, coarse_1d_env):
        tuning = GridCellTuning(coarse_1d_env, [0.3], [1.0])
        rates = tuning.firing_rate(np.array([[0.05], [0.35], [0.65]]))[0]
        np.testing.assert_allclose(rates, rates[0], atol=1e-12)


class TestGridCells2Cos:
    def test_requires_2d(self, agent_1d):
        with pytest.raises(ValueError, match="only work in 2D"):
            GridCells2Cos(agent_1d, n=3, seed=0)

    def test_direction_vectors_orthogonal(self, agent_2d):
        gcs = GridCells2Cos(agent_2d, n=6, seed=0)
        assert gcs.w.shape == (6, 2, 2)
        dots = np.einsum("nd,nd->n", gcs.w[:, 0], gcs.w[:, 1])
        np.testing.assert_allclose(dots, 0.0, atol=1e-12)

    def test_default_name(self, agent_2d):
        assert GridCells2Cos(agent_2d, n=3, seed=0).name == "GridCells2Cos"

    def test_rectangular_periodicity(self, coarse_2d_env):
        tuning = RectangularGridCellTuning(
            coarse_2d_env, [0.4], [[0.0, 0.0]], orientations=[0.0]
        )
        base = np.array([[0.13, 0.27]])
        shifted = base + np.array([[0.4, 0.0], [0.0, 0.4], [0.4, 0.4]])
        rates = tuning.firing_rate(np.vstack([base, shifted]))[0]
        np.testing.assert_allclose(rates, rates[0], atol=1e-12)

    def test_rectified_threshold(self, coarse_2d_env):
        tuning = RectangularGridCellTuning(
            coarse_2d_env, [0.4], [[0.0, 0.0]], orientations=[0.0]
        )
        # A quarter period along x: one wave at cos(pi/2) = 0, the other at 1
        raw = 0.5
        threshold = np.cos(np.sqrt(2) * np.pi * DEFAULT_WIDTH_RATIO / 2)
        expected = (raw - threshold) / (1 - threshold)
        rate = tuning.firing_rate(np.array([[0.1, 0.0]]))[0, 0]
        assert rate == pytest.approx(expected)

    def test_shifted_range(self, fine_2d_env):
        tuning = RectangularGridCellTuning(
            fine_2d_env,
            [0.3],
            [[0.0, 0.0]],
            orientations=[0.0],
            description="shifted_cosines",
        )
        rates = tuning.firing_rate(fine_2d_env.flattened_discrete_coords)
        assert rates.max() == pytest.approx(1.0)
        assert rates.min() >= 0.0

    def test_population_updates(self, agent_2d):
        gcs = GridCells2Cos(agent_2d, n=4, max_fr=10.0, seed=0)
        gcs.update()
        assert gcs.firingrate.shape == (4,)
        assert np.all((gcs.firingrate >= 0) & (gcs.firingrate <= 10.0))
