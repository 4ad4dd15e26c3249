"""Neuron population engine shared by every spatially tuned cell type.

A population couples three things:

- a *tuning model* (:class:`TuningModel`), which maps positions to normalised
  firing rates and holds the fixed per-neuron parameters;
- the agent it is bound to, which supplies the current position, time and
  time step;
- the stateful part common to all cell types: the current firing rate, an
  Ornstein-Uhlenbeck noise process and an append-only history of rates and
  spikes.

Concrete cell types (:class:`~spatialcells.simulation.models.PlaceCells`,
:class:`~spatialcells.simulation.models.GridCells`, ...) build their tuning
model from a config and hand it to :class:`NeuronPopulation`.
"""

from __future__ import annotations

import logging
import numbers
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from typing import TYPE_CHECKING, Any, ClassVar, Protocol, TypeVar, runtime_checkable

import numpy as np
from numpy.typing import ArrayLike, NDArray

from spatialcells._logging import log_history_materialized, log_population_created

if TYPE_CHECKING:
    from spatialcells.environment import AgentProtocol

logger = logging.getLogger(__name__)

ConfigT = TypeVar("ConfigT", bound="NeuronConfig")


class InvalidNeuronSelectionError(ValueError):
    """Raised when a neuron selector cannot be resolved to indices.

    Valid selectors are ``"all"``, a count (number or numeric string) or an
    array of indices. See :meth:`NeuronPopulation.return_list_of_neurons`.
    """


@dataclass(frozen=True)
class NeuronConfig:
    """Options shared by every neuron population.

    Parameters
    ----------
    n : int
        Number of neurons. Cell types that derive ``n`` from explicit
        per-neuron parameters override this value.
    name : str
        Population name used in logs and figures.
    color : str | None
        Plot colour for the population.
    noise_std : float
        Standard deviation of the Ornstein-Uhlenbeck noise in Hz. ``0``
        disables noise.
    noise_coherence_time : float
        Correlation time of the noise in seconds.
    min_fr, max_fr : float
        Output firing-rate range in Hz; normalised tuning output is mapped
        linearly onto ``[min_fr, max_fr]``.
    save_history : bool
        Whether each :meth:`NeuronPopulation.update` appends to the history.

    Examples
    --------
    >>> config = NeuronConfig.from_dict({"n": 4, "max_fr": 10.0})
    >>> config.n, config.max_fr
    (4, 10.0)
    >>> NeuronConfig.from_dict({"n_cells": 4})  # doctest: +ELLIPSIS
    Traceback (most recent call last):
        ...
    ValueError: Unknown NeuronConfig option(s): n_cells. ...
    """

    n: int = 10
    name: str = "Neurons"
    color: str | None = None
    noise_std: float = 0.0
    noise_coherence_time: float = 0.5
    min_fr: float = 0.0
    max_fr: float = 1.0
    save_history: bool = True

    def __post_init__(self) -> None:
        if (
            isinstance(self.n, bool)
            or not isinstance(self.n, numbers.Integral)
            or self.n < 1
        ):
            raise ValueError(f"n must be a positive integer (got {self.n!r})")
        if self.noise_std < 0:
            raise ValueError(f"noise_std must be non-negative (got {self.noise_std})")
        if self.noise_coherence_time < 0:
            raise ValueError(
                "noise_coherence_time must be non-negative "
                f"(got {self.noise_coherence_time})"
            )

    @classmethod
    def option_names(cls) -> tuple[str, ...]:
        """Names of every recognised option."""
        return tuple(f.name for f in fields(cls))

    @classmethod
    def from_dict(cls: type[ConfigT], params: Mapping[str, Any]) -> ConfigT:
        """Build a config from a mapping, rejecting unrecognised keys."""
        _check_option_names(cls, params)
        return cls(**params)


def _check_option_names(cls: type[NeuronConfig], params: Mapping[str, Any]) -> None:
    unknown = sorted(set(params) - set(cls.option_names()))
    if unknown:
        raise ValueError(
            f"Unknown {cls.__name__} option(s): {', '.join(unknown)}. "
            f"Recognised options are: {', '.join(cls.option_names())}."
        )


def resolve_config(
    config_class: type[ConfigT],
    config: ConfigT | Mapping[str, Any] | None = None,
    params: Mapping[str, Any] | None = None,
) -> ConfigT:
    """Combine a config object (or mapping) with keyword overrides.

    Parameters
    ----------
    config_class : type
        Expected config dataclass.
    config : config_class | Mapping | None
        Base configuration; ``None`` uses the defaults.
    params : Mapping | None
        Overrides applied on top of ``config``.

    Returns
    -------
    config_class
        The validated, merged configuration.

    Raises
    ------
    TypeError
        If ``config`` is neither a ``config_class`` instance nor a mapping.
    ValueError
        If any key is not a recognised option or a value is invalid.
    """
    if config is None:
        resolved = config_class()
    elif isinstance(config, config_class):
        resolved = config
    elif isinstance(config, Mapping):
        resolved = config_class.from_dict(config)
    else:
        raise TypeError(
            f"config must be a {config_class.__name__} or a mapping, "
            f"got {type(config).__name__}"
        )
    if params:
        _check_option_names(config_class, params)
        resolved = replace(resolved, **params)
    return resolved


def as_positions(positions: ArrayLike, n_dims: int) -> NDArray[np.float64]:
    """Coerce positions to shape ``(n_positions, n_dims)``.

    Flat input is read as consecutive coordinates. 2-D input must already
    have ``n_dims`` columns.

    Raises
    ------
    ValueError
        If a 2-D array has the wrong number of columns, or the size is not a
        multiple of ``n_dims``.

    Examples
    --------
    >>> as_positions([0.1, 0.2], n_dims=2).tolist()
    [[0.1, 0.2]]
    >>> as_positions([[0.1, 0.2, 0.3]], n_dims=2)
    Traceback (most recent call last):
        ...
    ValueError: positions must have 2 columns, got shape (1, 3)
    """
    positions = np.asarray(positions, dtype=np.float64)
    if positions.ndim == 2 and positions.shape[1] != n_dims:
        raise ValueError(
            f"positions must have {n_dims} columns, got shape {positions.shape}"
        )
    if positions.ndim > 2 or positions.size % n_dims != 0:
        raise ValueError(
            f"positions of shape {positions.shape} cannot be read as "
            f"{n_dims}D coordinates"
        )
    return positions.reshape(-1, n_dims)


@runtime_checkable
class TuningModel(Protocol):
    """Protocol for the position-to-rate mapping of a population.

    A tuning model holds the fixed per-neuron parameters of a cell type and
    evaluates normalised firing rates. It never sees noise, time or history;
    those belong to :class:`NeuronPopulation`.

    Implementations must provide:

    - ``n_cells`` - number of neurons
    - ``firing_rate(positions)`` - rates of shape ``(n_cells, n_positions)``,
      normalised so that ``0`` maps to ``min_fr`` and ``1`` to ``max_fr``
    - ``ground_truth`` - dict of the model parameters

    Examples
    --------
    >>> class ConstantTuning:
    ...     n_cells = 2
    ...
    ...     def firing_rate(self, positions):
    ...         return np.ones((self.n_cells, len(positions)))
    ...
    ...     @property
    ...     def ground_truth(self):
    ...         return {}
    >>> isinstance(ConstantTuning(), TuningModel)
    True
    """

    n_cells: int

    def firing_rate(self, positions: NDArray[np.float64]) -> NDArray[np.float64]:
        """Normalised firing rates, shape ``(n_cells, n_positions)``."""
        ...

    @property
    def ground_truth(self) -> dict[str, Any]:
        """Model parameters, for validation and reproducibility."""
        ...


def ornstein_uhlenbeck_update(
    dt: float,
    x: NDArray[np.float64],
    drift: float = 0.0,
    noise_scale: float = 1.0,
    coherence_time: float = 1.0,
    seed: int | np.random.Generator | None = None,
) -> NDArray[np.float64]:
    """One Euler-Maruyama increment of an Ornstein-Uhlenbeck process.

    .. math::
        dx = -(x - drift) / \\tau \\, dt + \\sigma \\sqrt{2 dt / \\tau} \\, \\xi,
        \\quad \\xi \\sim N(0, 1)

    The stationary standard deviation of the process is ``noise_scale``.

    Parameters
    ----------
    dt : float
        Time step in seconds.
    x : NDArray[np.float64]
        Current state.
    drift : float, default=0.0
        Value the process reverts to.
    noise_scale : float, default=1.0
        Stationary standard deviation ``sigma``.
    coherence_time : float, default=1.0
        Correlation time ``tau`` in seconds.
    seed : int | np.random.Generator | None, optional
        Random seed or generator.

    Returns
    -------
    NDArray[np.float64]
        Increment with the shape of ``x``; exactly zero when ``coherence_time``
        or ``noise_scale`` is zero.
    """
    x = np.asarray(x, dtype=np.float64)
    if coherence_time == 0 or noise_scale == 0:
        return np.zeros_like(x)
    rng = np.random.default_rng(seed)
    mean_term = -(x - drift) / coherence_time * dt
    std_term = noise_scale * np.sqrt(2 * dt / coherence_time)
    return mean_term + std_term * rng.standard_normal(x.shape)


class NeuronPopulation:
    """A population of neurons driven by an agent's position.

    Parameters
    ----------
    agent : AgentProtocol
        Agent providing ``pos``, ``t``, ``dt`` and ``env``. Read only.
    tuning : TuningModel | None, optional
        Position-to-rate mapping. A population without one cannot evaluate
        firing rates (:meth:`get_state` raises ``NotImplementedError``).
    config : NeuronConfig | Mapping | None, optional
        Population options; see :class:`NeuronConfig`.
    seed : int | np.random.Generator | None, optional
        Random seed or generator for noise and spike draws.
    **params
        Overrides for individual config options.

    Attributes
    ----------
    n : int
        Number of neurons.
    firingrate : NDArray[np.float64], shape (n,)
        Rate from the latest :meth:`update`, including noise. Not clamped,
        so noise may push it below zero.
    noise : NDArray[np.float64], shape (n,)
        Current Ornstein-Uhlenbeck noise offset.
    history : dict[str, list]
        Parallel lists ``"t"``, ``"firingrate"`` and ``"spikes"``, one entry
        per saved update.
    rng : np.random.Generator
        Generator used for every stochastic draw of this population.

    Notes
    -----
    ``get_history_arrays`` caches its result. The cache is keyed on a
    revision counter that every history mutation increments, so it never
    serves stale data, even when the agent's clock does not advance between
    two updates.
    """

    config_class: ClassVar[type[NeuronConfig]] = NeuronConfig

    def __init__(
        self,
        agent: AgentProtocol,
        tuning: TuningModel | None = None,
        config: NeuronConfig | Mapping[str, Any] | None = None,
        seed: int | np.random.Generator | None = None,
        **params: Any,
    ) -> None:
        config = resolve_config(self.config_class, config, params)
        if tuning is not None and tuning.n_cells != config.n:
            config = replace(config, n=tuning.n_cells)

        self.agent = agent
        self.tuning = tuning
        self.config = config
        self.rng = np.random.default_rng(seed)

        self.n = config.n
        self.name = config.name
        self.color = config.color
        self.noise_std = config.noise_std
        self.noise_coherence_time = config.noise_coherence_time
        self.min_fr = config.min_fr
        self.max_fr = config.max_fr
        self.save_history = config.save_history

        self.firingrate = np.zeros(self.n)
        self.noise = np.zeros(self.n)

        self.history: dict[str, list[Any]] = {"t": [], "firingrate": [], "spikes": []}
        self._history_revision = 0
        self._history_arrays_cache: dict[str, NDArray[Any]] | None = None
        self._history_arrays_cache_revision = -1

        self.colormap = "inferno"

        log_population_created(type(self).__name__, self.n, self.name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, n={self.n})"

    @property
    def env(self):
        """The environment of the bound agent."""
        return self.agent.env

    @property
    def ground_truth(self) -> dict[str, Any]:
        """Tuning parameters plus the output rate range."""
        if self.tuning is None:
            raise NotImplementedError(f"{type(self).__name__} has no tuning model")
        return {
            **self.tuning.ground_truth,
            "min_fr": self.min_fr,
            "max_fr": self.max_fr,
        }

    def update(self, **kwargs: Any) -> None:
        """Advance the population by one agent time step.

        1. Step the noise process (skipped when ``noise_std == 0``).
        2. If the agent position contains NaN, the tuning contributes nothing
           and the rates equal the noise; otherwise evaluate :meth:`get_state`
           at the agent and add the noise.
        3. Append to the history if history saving is enabled.

        Parameters
        ----------
        **kwargs
            Forwarded to :meth:`get_state`.
        """
        if self.noise_std > 0:
            self.noise = self.noise + ornstein_uhlenbeck_update(
                self.agent.dt,
                self.noise,
                drift=0.0,
                noise_scale=self.noise_std,
                coherence_time=self.noise_coherence_time,
                seed=self.rng,
            )

        if np.any(np.isnan(self.agent.pos)):
            logger.debug("%s: agent position undefined, tuning set to zero", self.name)
            self.firingrate = np.zeros(self.n) + self.noise
        else:
            rates = np.asarray(self.get_state(**kwargs), dtype=np.float64)
            if rates.shape != (self.n, 1):
                raise ValueError(
                    "update() needs the rate at a single position, got state of "
                    f"shape {rates.shape}; evaluate other positions with get_state()"
                )
            self.firingrate = rates[:, 0] + self.noise

        if self.save_history:
            self.save_to_history()

    def get_state(
        self,
        evaluate_at: str | ArrayLike | None = "agent",
        pos: ArrayLike | None = None,
    ) -> NDArray[np.float64]:
        """Firing rates of every neuron at the requested positions.

        Parameters
        ----------
        evaluate_at : {"agent", "all"} | array-like | None, default="agent"
            - ``"agent"``: the agent's current position.
            - ``"all"``: every point of the environment's discretized grid.
            - array-like of shape ``(n_positions, n_dims)``: those positions.
            - ``None``: the positions given by ``pos``.
        pos : array-like, optional
            Positions used when ``evaluate_at`` is ``None``.

        Returns
        -------
        NDArray[np.float64], shape (n, n_positions)
            Rates scaled into ``[min_fr, max_fr]``, without noise.

        Raises
        ------
        NotImplementedError
            If the population has no tuning model.
        ValueError
            If ``evaluate_at`` is an unknown mode or positions are missing.
        """
        if self.tuning is None:
            raise NotImplementedError(
                f"{type(self).__name__} has no tuning model. Use a concrete cell "
                "type (PlaceCells, GridCells, GridCells2Cos) or pass tuning=."
            )
        positions = self._resolve_positions(evaluate_at, pos)
        rates = self.tuning.firing_rate(positions)
        return rates * (self.max_fr - self.min_fr) + self.min_fr

    def _resolve_positions(
        self, evaluate_at: str | ArrayLike | None, pos: ArrayLike | None
    ) -> NDArray[np.float64]:
        if isinstance(evaluate_at, str):
            if evaluate_at == "agent":
                positions = self.agent.pos
            elif evaluate_at == "all":
                positions = self.env.flattened_discrete_coords
            else:
                raise ValueError(
                    f"evaluate_at must be 'agent', 'all', an array of positions "
                    f"or None, got {evaluate_at!r}"
                )
        elif evaluate_at is None:
            if pos is None:
                raise ValueError("pos is required when evaluate_at is None")
            positions = pos
        else:
            positions = evaluate_at
        return as_positions(positions, self.env.n_dims)

    def save_to_history(self) -> None:
        """Append the current time, rate and a spike draw to the history.

        Each neuron spikes with probability ``dt * firingrate``. Probabilities
        are not clipped, so ``dt * max_fr`` should stay below one.
        """
        spikes = self.rng.random(self.n) < self.agent.dt * self.firingrate
        self.history["t"].append(float(self.agent.t))
        self.history["firingrate"].append(self.firingrate.copy())
        self.history["spikes"].append(spikes)
        self._history_revision += 1

    def reset_history(self) -> None:
        """Clear the history and its cached arrays; tuning is untouched."""
        for key in self.history:
            self.history[key] = []
        self._history_revision += 1
        self._history_arrays_cache = None
        self._history_arrays_cache_revision = -1

    def get_history_arrays(self) -> dict[str, NDArray[Any]]:
        """History as arrays.

        Returns
        -------
        dict[str, NDArray]
            ``"t"`` of shape ``(T,)``, ``"firingrate"`` of shape ``(T, n)`` and
            boolean ``"spikes"`` of shape ``(T, n)``. Empty history yields
            arrays with ``T == 0``.
        """
        if (
            self._history_arrays_cache is None
            or self._history_arrays_cache_revision != self._history_revision
        ):
            if self.history["t"]:
                arrays = {
                    "t": np.asarray(self.history["t"], dtype=np.float64),
                    "firingrate": np.vstack(self.history["firingrate"]),
                    "spikes": np.vstack(self.history["spikes"]),
                }
            else:
                arrays = {
                    "t": np.empty(0),
                    "firingrate": np.empty((0, self.n)),
                    "spikes": np.empty((0, self.n), dtype=bool),
                }
            self._history_arrays_cache = arrays
            self._history_arrays_cache_revision = self._history_revision
            log_history_materialized(self.name, len(arrays["t"]))
        return self._history_arrays_cache

    def return_list_of_neurons(
        self, chosen_neurons: str | int | float | ArrayLike = "all"
    ) -> NDArray[np.int_]:
        """Resolve a neuron selector to zero-based indices.

        Parameters
        ----------
        chosen_neurons : str | int | float | array-like, default="all"
            - ``"all"``: every neuron, in order.
            - a number ``k`` (or numeric string): ``min(n, k)`` indices evenly
              spaced from the first to the last neuron, rounded half up.
            - an array of indices: used verbatim (flattened).

        Returns
        -------
        NDArray[np.int_]

        Raises
        ------
        InvalidNeuronSelectionError
            For any other selector.

        Examples
        --------
        >>> population = NeuronPopulation(agent=None, n=7)
        >>> population.return_list_of_neurons("all").tolist()
        [0, 1, 2, 3, 4, 5, 6]
        >>> population.return_list_of_neurons(3).tolist()
        [0, 3, 6]
        >>> population.return_list_of_neurons([[4], [2]]).tolist()
        [4, 2]
        """
        if isinstance(chosen_neurons, str):
            if chosen_neurons == "all":
                return np.arange(self.n)
            try:
                count = float(chosen_neurons)
            except ValueError:
                raise InvalidNeuronSelectionError(
                    f"Invalid neuron selection {chosen_neurons!r}: expected 'all', "
                    "a number or an array of indices"
                ) from None
            return self._evenly_spaced_neurons(count)

        if isinstance(chosen_neurons, (bool, np.bool_)):
            raise InvalidNeuronSelectionError(
                f"Invalid neuron selection {chosen_neurons!r}: booleans are not "
                "a count or an index"
            )
        if isinstance(chosen_neurons, numbers.Real):
            return self._evenly_spaced_neurons(float(chosen_neurons))

        try:
            indices = np.asarray(chosen_neurons)
        except (TypeError, ValueError) as err:
            raise InvalidNeuronSelectionError(
                f"Invalid neuron selection type {type(chosen_neurons).__name__}"
            ) from err
        if indices.ndim == 0 and np.issubdtype(indices.dtype, np.number):
            return self._evenly_spaced_neurons(float(indices))
        if not (
            np.issubdtype(indices.dtype, np.integer)
            or (
                np.issubdtype(indices.dtype, np.floating)
                and np.all(np.mod(indices, 1) == 0)
            )
        ):
            raise InvalidNeuronSelectionError(
                f"Invalid neuron selection type {type(chosen_neurons).__name__} "
                f"with dtype {indices.dtype}: expected integer indices"
            )
        return indices.ravel().astype(np.int_)

    def _evenly_spaced_neurons(self, count: float) -> NDArray[np.int_]:
        if not np.isfinite(count) or count < 0:
            raise InvalidNeuronSelectionError(
                f"Invalid neuron count {count}: must be a non-negative number"
            )
        n_chosen = min(self.n, int(count))
        positions = np.linspace(0, self.n - 1, n_chosen)
        return np.floor(positions + 0.5).astype(np.int_)
