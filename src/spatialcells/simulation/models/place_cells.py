"""Place cell populations with distance-based receptive fields."""

from __future__ import annotations

import logging
import warnings
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

import numpy as np
from numpy.typing import ArrayLike, NDArray

from spatialcells.environment.core import SAMPLING_METHODS, WALL_GEOMETRIES
from spatialcells.simulation.models.base import (
    NeuronConfig,
    NeuronPopulation,
    as_positions,
    resolve_config,
)

if TYPE_CHECKING:
    from spatialcells.environment import AgentProtocol, EnvironmentProtocol

logger = logging.getLogger(__name__)

PlaceCellDescription = Literal[
    "gaussian", "gaussian_threshold", "diff_of_gaussians", "one_hot", "top_hat"
]

# Width ratio of the inhibitory surround in the difference of Gaussians
DOG_WIDTH_RATIO = 1.5


def _gaussian(
    dist: NDArray[np.float64], widths: NDArray[np.float64]
) -> NDArray[np.float64]:
    return np.exp(-(dist**2) / (2 * widths**2))


def _gaussian_threshold(
    dist: NDArray[np.float64], widths: NDArray[np.float64]
) -> NDArray[np.float64]:
    threshold = np.exp(-0.5)
    return np.maximum(0.0, _gaussian(dist, widths) - threshold) / (1 - threshold)


def _diff_of_gaussians(
    dist: NDArray[np.float64], widths: NDArray[np.float64]
) -> NDArray[np.float64]:
    r = DOG_WIDTH_RATIO
    rates = _gaussian(dist, widths) - (1 / r**2) * _gaussian(dist, r * widths)
    return rates * r**2 / (r**2 - 1)


def _one_hot(
    dist: NDArray[np.float64], widths: NDArray[np.float64]
) -> NDArray[np.float64]:
    rates = np.zeros_like(dist)
    closest = np.argmin(np.abs(dist), axis=0)
    rates[closest, np.arange(dist.shape[1])] = 1.0
    return rates


def _top_hat(
    dist: NDArray[np.float64], widths: NDArray[np.float64]
) -> NDArray[np.float64]:
    return (dist < widths).astype(np.float64)


PLACE_CELL_RESPONSES: dict[
    str, Callable[[NDArray[np.float64], NDArray[np.float64]], NDArray[np.float64]]
] = {
    "gaussian": _gaussian,
    "gaussian_threshold": _gaussian_threshold,
    "diff_of_gaussians": _diff_of_gaussians,
    "one_hot": _one_hot,
    "top_hat": _top_hat,
}


@dataclass(frozen=True)
class PlaceCellConfig(NeuronConfig):
    """Options for :class:`PlaceCells`.

    Parameters
    ----------
    description : {"gaussian", "gaussian_threshold", "diff_of_gaussians", \
"one_hot", "top_hat"}
        Shape of the receptive field as a function of distance ``d`` to the
        centre, with width ``w``:

        - ``"gaussian"``: ``exp(-d^2 / 2w^2)``
        - ``"gaussian_threshold"``: the Gaussian minus its value at ``d = w``,
          rectified and rescaled to peak at 1
        - ``"diff_of_gaussians"``: Gaussian minus a 1.5x wider Gaussian
          (surround inhibition), rescaled to peak at 1
        - ``"one_hot"``: 1 for the cell whose centre is nearest, 0 otherwise
        - ``"top_hat"``: 1 if ``d < w`` else 0
    widths : float or array-like
        Receptive field width in meters, shared or one per cell.
    place_cell_centres : None | {"random", "uniform", "uniform_jitter"} | array-like
        ``None`` or an empty array samples ``n`` centres with
        ``"uniform_jitter"``; a method name samples with that method; an
        array of shape ``(n, n_dims)`` is used verbatim and sets ``n``.
    wall_geometry : {"euclidean", "geodesic", "line_of_sight"}
        Distance metric between centres and positions.
    """

    n: int = 10
    name: str = "PlaceCells"
    description: PlaceCellDescription = "gaussian"
    widths: float | ArrayLike = 0.20
    place_cell_centres: str | ArrayLike | None = None
    wall_geometry: str = "geodesic"

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.description not in PLACE_CELL_RESPONSES:
            raise ValueError(
                f"Unknown place cell description {self.description!r}. "
                f"Choose one of {', '.join(PLACE_CELL_RESPONSES)}."
            )
        if np.any(np.asarray(self.widths, dtype=np.float64) <= 0):
            raise ValueError(f"widths must be positive (got {self.widths})")
        if self.wall_geometry not in WALL_GEOMETRIES:
            raise ValueError(
                f"Unknown wall_geometry {self.wall_geometry!r}. "
                f"Choose one of {', '.join(WALL_GEOMETRIES)}."
            )
        if (
            isinstance(self.place_cell_centres, str)
            and self.place_cell_centres not in SAMPLING_METHODS
        ):
            raise ValueError(
                "place_cell_centres must be None, an array, or one of: "
                f"{', '.join(SAMPLING_METHODS)} (got {self.place_cell_centres!r})"
            )


class PlaceCellTuning:
    """Distance-based tuning of a set of place cells.

    Parameters
    ----------
    env : EnvironmentProtocol
        Environment used for distances and for resampling centres.
    place_cell_centres : array-like, shape (n_cells, n_dims)
        Receptive field centres.
    widths : float or array-like, shape (n_cells,)
        Receptive field widths.
    description : str, default="gaussian"
        Response shape, see :class:`PlaceCellConfig`.
    wall_geometry : str, default="euclidean"
        Distance metric. ``"geodesic"`` and ``"line_of_sight"`` require solid
        boundaries and fall back to ``"euclidean"`` (with a warning) in a
        periodic environment.

    Examples
    --------
    >>> from spatialcells.environment import Environment
    >>> env = Environment(extent=(0, 1, 0, 1), dx=0.1)
    >>> tuning = PlaceCellTuning(env, [[0.5, 0.5]], widths=0.2)
    >>> float(tuning.firing_rate(np.array([[0.5, 0.5]]))[0, 0])
    1.0
    """

    def __init__(
        self,
        env: EnvironmentProtocol,
        place_cell_centres: ArrayLike,
        widths: float | ArrayLike = 0.20,
        description: str = "gaussian",
        wall_geometry: str = "euclidean",
    ) -> None:
        if description not in PLACE_CELL_RESPONSES:
            raise ValueError(
                f"Unknown place cell description {description!r}. "
                f"Choose one of {', '.join(PLACE_CELL_RESPONSES)}."
            )
        self.env = env
        self.place_cell_centres = as_positions(place_cell_centres, env.n_dims)
        n_cells = len(self.place_cell_centres)

        widths = np.asarray(widths, dtype=np.float64)
        if widths.ndim > 0 and widths.size not in (1, n_cells):
            raise ValueError(
                f"widths must be a scalar or have one entry per cell ({n_cells}), "
                f"got {widths.size}"
            )
        self.place_cell_widths = np.broadcast_to(widths.ravel(), (n_cells,)).copy()
        self.description = description

        if env.boundary_conditions == "periodic" and wall_geometry in (
            "line_of_sight",
            "geodesic",
        ):
            warnings.warn(
                f"{wall_geometry} wall geometry only works with solid boundaries. "
                "Using euclidean.",
                UserWarning,
                stacklevel=2,
            )
            wall_geometry = "euclidean"
        self.wall_geometry = wall_geometry

    @classmethod
    def from_config(
        cls,
        env: EnvironmentProtocol,
        config: PlaceCellConfig,
        seed: int | np.random.Generator | None = None,
    ) -> PlaceCellTuning:
        """Resolve centres per ``config.place_cell_centres`` and build the tuning."""
        centres = config.place_cell_centres
        if isinstance(centres, str):
            centres = env.sample_positions(config.n, centres, seed=seed)
        elif centres is None or np.size(centres) == 0:
            centres = env.sample_positions(config.n, "uniform_jitter", seed=seed)
        return cls(
            env,
            centres,
            widths=config.widths,
            description=config.description,
            wall_geometry=config.wall_geometry,
        )

    @property
    def n_cells(self) -> int:
        """Number of place cells."""
        return len(self.place_cell_centres)

    def firing_rate(self, positions: NDArray[np.float64]) -> NDArray[np.float64]:
        """Normalised place cell rates.

        Parameters
        ----------
        positions : NDArray[np.float64], shape (n_positions, n_dims)

        Returns
        -------
        NDArray[np.float64], shape (n_cells, n_positions)
        """
        dist = self.env.get_distances_between(
            self.place_cell_centres, positions, self.wall_geometry
        )
        try:
            response = PLACE_CELL_RESPONSES[self.description]
        except KeyError:
            raise ValueError(
                f"Unknown place cell description {self.description!r}"
            ) from None
        return response(dist, self.place_cell_widths[:, np.newaxis])

    def remap(self, seed: int | np.random.Generator | None = None) -> None:
        """Replace every centre with a fresh ``"uniform_jitter"`` sample."""
        self.place_cell_centres = self.env.sample_positions(
            self.n_cells, "uniform_jitter", seed=seed
        )
        logger.debug("Remapped %d place cell centres", self.n_cells)

    @property
    def ground_truth(self) -> dict[str, Any]:
        """Centres, widths, response shape and distance metric."""
        return {
            "place_cell_centres": self.place_cell_centres,
            "place_cell_widths": self.place_cell_widths,
            "description": self.description,
            "wall_geometry": self.wall_geometry,
        }


class PlaceCells(NeuronPopulation):
    """Population of place cells bound to an agent.

    Parameters
    ----------
    agent : AgentProtocol
        Agent whose position drives the cells.
    config : PlaceCellConfig | Mapping | None, optional
        Population options.
    seed : int | np.random.Generator | None, optional
        Random seed or generator for centre sampling, noise and spikes.
    **params
        Overrides for individual :class:`PlaceCellConfig` options.

    Examples
    --------
    >>> from spatialcells.environment import Environment
    >>> from spatialcells.simulation import Agent
    >>> env = Environment(extent=(0, 1, 0, 1), dx=0.05)
    >>> agent = Agent(env, times=[0.0, 0.01], positions=[[0.5, 0.5], [0.5, 0.5]])
    >>> pcs = PlaceCells(agent, place_cell_centres=np.array([[0.5, 0.5]]), max_fr=10.0)
    >>> pcs.update()
    >>> pcs.firingrate.tolist()
    [10.0]
    >>> pcs.get_state("all").shape
    (1, 441)
    """

    config_class = PlaceCellConfig

    def __init__(
        self,
        agent: AgentProtocol,
        config: PlaceCellConfig | Mapping[str, Any] | None = None,
        seed: int | np.random.Generator | None = None,
        **params: Any,
    ) -> None:
        config = resolve_config(PlaceCellConfig, config, params)
        rng = np.random.default_rng(seed)
        tuning = PlaceCellTuning.from_config(agent.env, config, seed=rng)
        super().__init__(agent, tuning=tuning, config=config, seed=rng)

    @property
    def place_cell_centres(self) -> NDArray[np.float64]:
        """Receptive field centres, shape ``(n, n_dims)``."""
        return self.tuning.place_cell_centres

    @property
    def place_cell_widths(self) -> NDArray[np.float64]:
        """Receptive field widths, shape ``(n,)``."""
        return self.tuning.place_cell_widths

    @property
    def description(self) -> str:
        return self.tuning.description

    @property
    def wall_geometry(self) -> str:
        return self.tuning.wall_geometry

    def remap(self) -> None:
        """Redraw all centres; history and other state are kept."""
        self.tuning.remap(seed=self.rng)
