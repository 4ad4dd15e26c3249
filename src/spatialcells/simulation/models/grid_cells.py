"""Grid cell populations with periodic cosine-superposition tuning.

Two variants share parameter sampling and the phase machinery:

- :class:`GridCells` sums three plane waves at 60 degree intervals, giving
  the hexagonal firing pattern of medial entorhinal grid cells.
- :class:`GridCells2Cos` sums two orthogonal plane waves, giving a
  rectangular lattice. It is 2D only.
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Literal

import numpy as np
from numpy.typing import ArrayLike, NDArray

from spatialcells.simulation.models.base import (
    NeuronConfig,
    NeuronPopulation,
    as_positions,
    resolve_config,
)
from spatialcells.simulation.models.distributions import (
    DISTRIBUTIONS,
    sample_distribution,
)

if TYPE_CHECKING:
    from spatialcells.environment import AgentProtocol, EnvironmentProtocol

logger = logging.getLogger(__name__)

GRID_CELL_DESCRIPTIONS = ("rectified_cosines", "shifted_cosines")

GridCellDescription = Literal["rectified_cosines", "shifted_cosines"]


def rotate_vector(vector: ArrayLike, angle: float) -> NDArray[np.float64]:
    """Rotate 2D vector(s) counterclockwise by ``angle`` radians.

    Examples
    --------
    >>> np.round(rotate_vector([1.0, 0.0], np.pi / 2), 12).tolist()
    [0.0, 1.0]
    """
    rotation = np.array(
        [[np.cos(angle), -np.sin(angle)], [np.sin(angle), np.cos(angle)]]
    )
    return np.asarray(vector, dtype=np.float64) @ rotation.T


@dataclass(frozen=True)
class GridCellConfig(NeuronConfig):
    """Options for :class:`GridCells` and :class:`GridCells2Cos`.

    Per-neuron parameters are either drawn from a distribution (see
    :func:`~spatialcells.simulation.models.distributions.sample_distribution`)
    or, when passed as a ``numpy.ndarray``, used verbatim.

    Parameters
    ----------
    gridscale : float, sequence or np.ndarray
        Spatial period in meters. Tuples/lists/scalars are distribution
        parameters; an ndarray gives one scale per neuron and sets ``n``.
    gridscale_distribution : {"modules", "uniform", "delta"}
        Distribution for ``gridscale``. The default assigns neurons
        round-robin to three modules.
    orientation : float, sequence or np.ndarray
        Grid orientation in radians (2D only). An ndarray must have one
        entry per neuron.
    orientation_distribution : {"modules", "uniform", "delta"}
    phase_offset : float, sequence or np.ndarray
        Phase offset in radians. An ndarray must have shape ``(n, 2)`` in 2D
        or ``(n,)`` in 1D.
    phase_offset_distribution : {"modules", "uniform", "delta"}
    description : {"rectified_cosines", "shifted_cosines"}
        ``"rectified_cosines"`` thresholds the summed waves so that fields are
        separated by silence; ``"shifted_cosines"`` rescales them into
        ``[0, 1]`` and fires everywhere.
    width_ratio : float
        Field width relative to the grid scale, for rectified cosines. Should
        lie in ``(0, 1]``; other values only trigger a warning.
    """

    n: int = 30
    name: str = "GridCells"
    gridscale: float | Sequence[float] | NDArray[np.float64] = (0.3, 0.5, 0.8)
    gridscale_distribution: str = "modules"
    orientation: float | Sequence[float] | NDArray[np.float64] = (0.0, 0.1, 0.2)
    orientation_distribution: str = "modules"
    phase_offset: float | Sequence[float] | NDArray[np.float64] = (0.0, 2 * np.pi)
    phase_offset_distribution: str = "uniform"
    description: GridCellDescription = "rectified_cosines"
    width_ratio: float = 4 / (3 * np.sqrt(3))

    def __post_init__(self) -> None:
        super().__post_init__()
        for option in (
            "gridscale_distribution",
            "orientation_distribution",
            "phase_offset_distribution",
        ):
            value = getattr(self, option)
            if value not in DISTRIBUTIONS:
                raise ValueError(
                    f"Unknown {option} {value!r}. "
                    f"Choose one of {', '.join(DISTRIBUTIONS)}."
                )
        if self.description not in GRID_CELL_DESCRIPTIONS:
            raise ValueError(
                f"Unknown grid cell description {self.description!r}. "
                f"Choose one of {', '.join(GRID_CELL_DESCRIPTIONS)}."
            )


class GridCellTuning:
    """Hexagonal grid tuning from three cosine waves.

    For neuron ``i`` at position ``x`` in 2D:

    .. math::
        x_0 = \\lambda_i \\phi_i / 2\\pi, \\qquad
        \\theta_k = \\frac{2\\pi}{\\lambda_i} (x_0 - x) \\cdot w_{ik}, \\qquad
        g = \\frac{1}{K} \\sum_k \\cos \\theta_k

    with scale ``lambda``, phase offset ``phi`` and ``K`` unit direction
    vectors ``w`` (0, 60 and 120 degrees from the orientation). In 1D a
    single wave ``cos(2 pi x / lambda - phi)`` is used.

    Parameters
    ----------
    env : EnvironmentProtocol
        Environment (1D or 2D).
    gridscales : array-like, shape (n_cells,)
        Spatial periods in meters.
    phase_offsets : array-like, shape (n_cells, 2) or (n_cells,)
        Phase offsets in radians; 2 columns in 2D, one value per cell in 1D.
    orientations : array-like, shape (n_cells,), optional
        Orientations in radians. Required in 2D, ignored in 1D.
    description : {"rectified_cosines", "shifted_cosines"}
    width_ratio : float
        Field width relative to the scale for rectified cosines.

    Raises
    ------
    ValueError
        If the description is unknown or the parameter shapes disagree.
    """

    rotation_angles: ClassVar[tuple[float, ...]] = (0.0, np.pi / 3, 2 * np.pi / 3)

    def __init__(
        self,
        env: EnvironmentProtocol,
        gridscales: ArrayLike,
        phase_offsets: ArrayLike,
        orientations: ArrayLike | None = None,
        description: str = "rectified_cosines",
        width_ratio: float = 4 / (3 * np.sqrt(3)),
    ) -> None:
        if description not in GRID_CELL_DESCRIPTIONS:
            raise ValueError(
                f"Unknown grid cell description {description!r}. "
                f"Choose one of {', '.join(GRID_CELL_DESCRIPTIONS)}."
            )
        self.env = env
        self.gridscales = np.asarray(gridscales, dtype=np.float64).ravel()
        n_cells = len(self.gridscales)
        if np.any(self.gridscales <= 0):
            raise ValueError("gridscales must be positive")

        phase_offsets = np.asarray(phase_offsets, dtype=np.float64)
        expected = (n_cells, 2) if env.n_dims == 2 else (n_cells,)
        if phase_offsets.size != int(np.prod(expected)):
            raise ValueError(
                f"phase_offsets must have shape {expected}, got {phase_offsets.shape}"
            )
        self.phase_offsets = phase_offsets.reshape(expected)

        if env.n_dims == 2:
            if orientations is None:
                raise ValueError("orientations are required in a 2D environment")
            orientations = np.asarray(orientations, dtype=np.float64).ravel()
            if orientations.shape != (n_cells,):
                raise ValueError(
                    f"orientations must have one entry per cell ({n_cells}), "
                    f"got {orientations.size}"
                )
            self.orientations: NDArray[np.float64] | None = orientations
            self.w: NDArray[np.float64] | None = self.direction_vectors(orientations)
        else:
            self.orientations = None
            self.w = None

        self.description = description
        self.width_ratio = float(width_ratio)
        if description == "rectified_cosines" and not 0 < self.width_ratio <= 1:
            warnings.warn(
                f"width_ratio should be between 0 and 1, got {self.width_ratio:.2f}",
                UserWarning,
                stacklevel=2,
            )

    @classmethod
    def from_config(
        cls,
        env: EnvironmentProtocol,
        config: GridCellConfig,
        seed: int | np.random.Generator | None = None,
    ) -> GridCellTuning:
        """Sample (or take verbatim) per-neuron parameters and build the tuning."""
        rng = np.random.default_rng(seed)

        if isinstance(config.gridscale, np.ndarray):
            gridscales = config.gridscale.ravel()
        else:
            gridscales = sample_distribution(
                config.gridscale_distribution, config.gridscale, config.n, seed=rng
            )
        n_cells = len(gridscales)

        if isinstance(config.phase_offset, np.ndarray):
            phase_offsets = config.phase_offset
        else:
            phase_offsets = sample_distribution(
                config.phase_offset_distribution,
                config.phase_offset,
                n_cells,
                dimension=env.n_dims,
                seed=rng,
            )

        orientations = None
        if env.n_dims == 2:
            if isinstance(config.orientation, np.ndarray):
                orientations = config.orientation
            else:
                orientations = sample_distribution(
                    config.orientation_distribution,
                    config.orientation,
                    n_cells,
                    seed=rng,
                )

        return cls(
            env,
            gridscales,
            phase_offsets,
            orientations=orientations,
            description=config.description,
            width_ratio=config.width_ratio,
        )

    @classmethod
    def direction_vectors(cls, orientations: ArrayLike) -> NDArray[np.float64]:
        """Unit wave directions per cell, shape ``(n_cells, K, 2)``.

        The base direction ``[cos(theta), sin(theta)]`` rotated by each of
        ``rotation_angles``.
        """
        orientations = np.asarray(orientations, dtype=np.float64).ravel()
        base = np.column_stack([np.cos(orientations), np.sin(orientations)])
        return np.stack(
            [rotate_vector(base, angle) for angle in cls.rotation_angles], axis=1
        )

    @property
    def n_cells(self) -> int:
        """Number of grid cells."""
        return len(self.gridscales)

    def firing_rate(self, positions: NDArray[np.float64]) -> NDArray[np.float64]:
        """Normalised grid cell rates.

        Parameters
        ----------
        positions : NDArray[np.float64], shape (n_positions, n_dims)

        Returns
        -------
        NDArray[np.float64], shape (n_cells, n_positions)
        """
        positions = as_positions(positions, self.env.n_dims)
        if self.env.n_dims == 1:
            raw = np.cos(
                (2 * np.pi / self.gridscales)[:, np.newaxis] * positions[:, 0]
                - self.phase_offsets[:, np.newaxis]
            )
            return self._normalise_1d(raw)

        origin = self.gridscales[:, np.newaxis] * self.phase_offsets / (2 * np.pi)
        # (n_cells, n_positions, 2)
        vecs = origin[:, np.newaxis, :] - positions[np.newaxis, :, :]
        # (n_cells, n_positions, K)
        phases = (2 * np.pi / self.gridscales)[:, np.newaxis, np.newaxis] * np.einsum(
            "npd,nkd->npk", vecs, self.w
        )
        raw = np.cos(phases).mean(axis=-1)
        return self._normalise(raw)

    def firing_rate_at_full_width(self) -> float:
        """Summed-wave value at the edge of a field, for rectified cosines."""
        return (2 * np.cos(np.sqrt(3) * np.pi * self.width_ratio / 2) + 1) / 3

    def shift(self, raw: NDArray[np.float64]) -> NDArray[np.float64]:
        """Map the summed waves into ``[0, 1]`` for shifted cosines."""
        return (2 / 3) * (raw + 0.5)

    def _normalise(self, raw: NDArray[np.float64]) -> NDArray[np.float64]:
        if self.description == "rectified_cosines":
            return _rectify(raw, self.firing_rate_at_full_width())
        if self.description == "shifted_cosines":
            return self.shift(raw)
        raise ValueError(f"Unknown grid cell description {self.description!r}")

    def _normalise_1d(self, raw: NDArray[np.float64]) -> NDArray[np.float64]:
        if self.description == "rectified_cosines":
            return _rectify(raw, np.cos(self.width_ratio * np.pi))
        if self.description == "shifted_cosines":
            return 0.5 * (raw + 1)
        raise ValueError(f"Unknown grid cell description {self.description!r}")

    @property
    def ground_truth(self) -> dict[str, Any]:
        """Per-cell scales, orientations, phase offsets and the shape options."""
        return {
            "gridscales": self.gridscales,
            "orientations": self.orientations,
            "phase_offsets": self.phase_offsets,
            "description": self.description,
            "width_ratio": self.width_ratio,
        }


def _rectify(raw: NDArray[np.float64], full_width_rate: float) -> NDArray[np.float64]:
    rates = (raw - full_width_rate) / (1 - full_width_rate)
    return np.maximum(rates, 0.0)


class RectangularGridCellTuning(GridCellTuning):
    """Rectangular grid tuning from two orthogonal cosine waves (2D only).

    Same parameters as :class:`GridCellTuning`; directions are 0 and 90
    degrees from the orientation.

    Raises
    ------
    ValueError
        If the environment is not 2D.
    """

    rotation_angles: ClassVar[tuple[float, ...]] = (0.0, np.pi / 2)

    def __init__(
        self,
        env: EnvironmentProtocol,
        gridscales: ArrayLike,
        phase_offsets: ArrayLike,
        orientations: ArrayLike | None = None,
        description: str = "rectified_cosines",
        width_ratio: float = 4 / (3 * np.sqrt(3)),
    ) -> None:
        if env.n_dims != 2:
            raise ValueError(
                "Two-cosine grid cells only work in 2D environments, got a "
                f"{env.n_dims}D environment"
            )
        super().__init__(
            env,
            gridscales,
            phase_offsets,
            orientations=orientations,
            description=description,
            width_ratio=width_ratio,
        )

    def firing_rate_at_full_width(self) -> float:
        return float(np.cos(np.sqrt(2) * np.pi * self.width_ratio / 2))

    def shift(self, raw: NDArray[np.float64]) -> NDArray[np.float64]:
        return 0.5 * (raw + 1)


class GridCells(NeuronPopulation):
    """Population of hexagonal grid cells bound to an agent.

    Parameters
    ----------
    agent : AgentProtocol
        Agent whose position drives the cells.
    config : GridCellConfig | Mapping | None, optional
        Population options.
    seed : int | np.random.Generator | None, optional
        Random seed or generator for parameter sampling, noise and spikes.
    **params
        Overrides for individual :class:`GridCellConfig` options.

    Examples
    --------
    Three modules of ten cells each:

    >>> from spatialcells.environment import Environment
    >>> from spatialcells.simulation import Agent
    >>> env = Environment(extent=(0, 1, 0, 1), dx=0.02)
    >>> agent = Agent(env, times=[0.0], positions=[[0.3, 0.4]])
    >>> gcs = GridCells(agent, n=30, gridscale=(0.3, 0.5, 0.8), seed=0)
    >>> sorted(set(gcs.gridscales.tolist()))
    [0.3, 0.5, 0.8]
    >>> gcs.w.shape
    (30, 3, 2)
    >>> rate_maps = gcs.get_state("all")
    >>> rate_maps.shape
    (30, 2601)
    """

    config_class = GridCellConfig
    tuning_class: ClassVar[type[GridCellTuning]] = GridCellTuning

    def __init__(
        self,
        agent: AgentProtocol,
        config: GridCellConfig | Mapping[str, Any] | None = None,
        seed: int | np.random.Generator | None = None,
        **params: Any,
    ) -> None:
        config = resolve_config(GridCellConfig, config, params)
        rng = np.random.default_rng(seed)
        tuning = self.tuning_class.from_config(agent.env, config, seed=rng)
        super().__init__(agent, tuning=tuning, config=config, seed=rng)

    @property
    def gridscales(self) -> NDArray[np.float64]:
        """Spatial period per cell in meters."""
        return self.tuning.gridscales

    @property
    def orientations(self) -> NDArray[np.float64] | None:
        """Orientation per cell in radians (``None`` in 1D)."""
        return self.tuning.orientations

    @property
    def phase_offsets(self) -> NDArray[np.float64]:
        return self.tuning.phase_offsets

    @property
    def w(self) -> NDArray[np.float64] | None:
        """Unit wave directions, shape ``(n, K, 2)`` (``None`` in 1D)."""
        return self.tuning.w

    @property
    def description(self) -> str:
        return self.tuning.description

    @property
    def width_ratio(self) -> float:
        return self.tuning.width_ratio


class GridCells2Cos(GridCells):
    """Population of rectangular (two-cosine) grid cells; 2D only.

    Takes the same arguments as :class:`GridCells`.

    Raises
    ------
    ValueError
        If the agent's environment is not 2D.
    """

    tuning_class = RectangularGridCellTuning

    def __init__(
        self,
        agent: AgentProtocol,
        config: GridCellConfig | Mapping[str, Any] | None = None,
        seed: int | np.random.Generator | None = None,
        **params: Any,
    ) -> None:
        if config is None and "name" not in params:
            params["name"] = "GridCells2Cos"
        super().__init__(agent, config=config, seed=seed, **params)
