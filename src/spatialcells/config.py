"""Run-wide configuration with JSON persistence.

A :class:`SimulationConfig` bundles the defaults of every part of a run: the
environment, the agent, the shared neuron options, the place and grid cell
options and the figure style. Files only need to list what differs from the
defaults::

    {
        "environment": {"extent": [0, 2, 0, 1]},
        "neurons": {"max_fr": 10.0},
        "grid": {"n": 60, "description": "shifted_cosines"}
    }

Options in ``"neurons"`` apply to both ``"place"`` and ``"grid"``; options
given in those sections take precedence.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import numpy as np

from spatialcells.environment import Environment
from spatialcells.simulation.agent import Agent
from spatialcells.simulation.models import (
    GridCellConfig,
    NeuronConfig,
    PlaceCellConfig,
)

logger = logging.getLogger(__name__)

_CM_PER_INCH = 2.54

# Marker for explicit per-neuron arrays in JSON files
_NDARRAY_KEY = "__ndarray__"


@dataclass(frozen=True)
class EnvironmentConfig:
    """Defaults for :class:`~spatialcells.environment.Environment`."""

    extent: tuple[float, ...] = (0.0, 1.0, 0.0, 1.0)
    dimensionality: str = "2D"
    boundary_conditions: str = "solid"
    dx: float = 0.01

    def create(self) -> Environment:
        """Build the environment described by this config."""
        return Environment(
            extent=self.extent,
            dimensionality=self.dimensionality,
            boundary_conditions=self.boundary_conditions,
            dx=self.dx,
        )


@dataclass(frozen=True)
class AgentConfig:
    """Defaults for simulated trajectories.

    Parameters
    ----------
    dt : float
        Time step in seconds.
    speed_mean : float
        Mean speed in m/s.
    speed_std : float
        Speed standard deviation in m/s; only 1D trajectories vary their
        speed.
    """

    dt: float = 0.01
    speed_mean: float = 0.08
    speed_std: float = 0.0

    def __post_init__(self) -> None:
        if self.dt <= 0:
            raise ValueError(f"dt must be positive (got {self.dt})")
        if self.speed_mean < 0 or self.speed_std < 0:
            raise ValueError(
                "speed_mean and speed_std must be non-negative "
                f"(got {self.speed_mean}, {self.speed_std})"
            )

    def create(
        self,
        env: Environment,
        duration: float,
        seed: int | np.random.Generator | None = None,
        **kwargs: Any,
    ) -> Agent:
        """Build an agent on a simulated trajectory with these settings.

        Extra keyword arguments are passed to
        :func:`~spatialcells.simulation.simulate_trajectory_ou`.

        Examples
        --------
        >>> env = EnvironmentConfig(extent=(0, 2), dimensionality="1D").create()
        >>> agent = AgentConfig(dt=0.05, speed_mean=0.2).create(env, 1.0, seed=0)
        >>> agent.n_samples, agent.dt
        (20, 0.05)
        """
        return Agent.simulate(
            env,
            duration=duration,
            seed=seed,
            **{**asdict(self), **kwargs},
        )


@dataclass(frozen=True)
class PlotConfig:
    """Figure style for publication-ready plots.

    Figures are drawn at ``scale_factor`` times the physical column width
    and font size, so they can be shrunk back to ``base_width_cm`` when
    placed in a document.

    Parameters
    ----------
    base_width_cm : float
        Physical width of the figure in the document.
    base_fontsize_pt : float
        Font size in the document.
    scale_factor : float
        Drawing scale relative to the document size.
    font_name : str
        Font family.
    dpi : int
        Export resolution.
    formats : tuple of str
        Export formats.
    export_enabled : bool
        Whether plotting functions write files when given an export path.
    colormap : str
        Default colormap for rate maps.
    tick_direction : {"in", "out", "inout"}
    """

    base_width_cm: float = 8.8
    base_fontsize_pt: float = 9.0
    scale_factor: float = 2.0
    font_name: str = "Arial"
    dpi: int = 600
    formats: tuple[str, ...] = ("png", "eps")
    export_enabled: bool = False
    colormap: str = "inferno"
    tick_direction: str = "out"

    @property
    def width_cm(self) -> float:
        """Drawing width in centimeters."""
        return self.base_width_cm * self.scale_factor

    @property
    def width_inch(self) -> float:
        """Drawing width in inches."""
        return self.width_cm / _CM_PER_INCH

    @property
    def fontsize_pt(self) -> float:
        """Drawing font size in points."""
        return self.base_fontsize_pt * self.scale_factor


@dataclass(frozen=True)
class SimulationConfig:
    """Defaults for a complete run.

    Attributes
    ----------
    environment : EnvironmentConfig
    agent : AgentConfig
    neurons : NeuronConfig
        Options shared by every population type.
    place : PlaceCellConfig
    grid : GridCellConfig
    plot : PlotConfig
    """

    environment: EnvironmentConfig = field(default_factory=EnvironmentConfig)
    agent: AgentConfig = field(default_factory=AgentConfig)
    neurons: NeuronConfig = field(default_factory=NeuronConfig)
    place: PlaceCellConfig = field(default_factory=PlaceCellConfig)
    grid: GridCellConfig = field(default_factory=GridCellConfig)
    plot: PlotConfig = field(default_factory=PlotConfig)

    @classmethod
    def section_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SimulationConfig:
        """Merge a nested mapping over the defaults.

        Raises
        ------
        ValueError
            If a section or option is not recognised, or a value is invalid.

        Examples
        --------
        >>> config = SimulationConfig.from_dict({"neurons": {"max_fr": 5.0}})
        >>> config.place.max_fr, config.grid.max_fr
        (5.0, 5.0)
        >>> config.place.name
        'PlaceCells'
        """
        unknown = sorted(set(data) - set(cls.section_names()))
        if unknown:
            raise ValueError(
                f"Unknown configuration section(s): {', '.join(unknown)}. "
                f"Recognised sections are: {', '.join(cls.section_names())}."
            )

        sections = {
            name: _decode(dict(data.get(name, {}))) for name in cls.section_names()
        }
        neurons = sections["neurons"]
        shared = {k: v for k, v in neurons.items() if k != "name" and k != "n"}

        return cls(
            environment=_merge(EnvironmentConfig(), sections["environment"]),
            agent=_merge(AgentConfig(), sections["agent"]),
            neurons=_merge(NeuronConfig(), neurons),
            place=_merge(PlaceCellConfig(), {**shared, **sections["place"]}),
            grid=_merge(GridCellConfig(), {**shared, **sections["grid"]}),
            plot=_merge(PlotConfig(), sections["plot"]),
        )

    def to_dict(self) -> dict[str, dict[str, Any]]:
        """Nested plain-Python form, suitable for JSON."""
        return {
            name: _encode(asdict(getattr(self, name)))
            for name in self.section_names()
        }


def _merge(default: Any, overrides: Mapping[str, Any]) -> Any:
    names = {f.name for f in fields(default)}
    unknown = sorted(set(overrides) - names)
    if unknown:
        raise ValueError(
            f"Unknown {type(default).__name__} option(s): {', '.join(unknown)}. "
            f"Recognised options are: {', '.join(sorted(names))}."
        )
    return replace(default, **overrides)


def _decode(section: dict[str, Any]) -> dict[str, Any]:
    decoded = {}
    for key, value in section.items():
        if isinstance(value, Mapping) and set(value) == {_NDARRAY_KEY}:
            decoded[key] = np.asarray(value[_NDARRAY_KEY], dtype=np.float64)
        elif isinstance(value, list):
            decoded[key] = tuple(value)
        else:
            decoded[key] = value
    return decoded


def _encode(section: dict[str, Any]) -> dict[str, Any]:
    encoded = {}
    for key, value in section.items():
        if isinstance(value, np.ndarray):
            encoded[key] = {_NDARRAY_KEY: value.tolist()}
        elif isinstance(value, tuple):
            encoded[key] = list(value)
        elif isinstance(value, np.generic):
            encoded[key] = value.item()
        else:
            encoded[key] = value
    return encoded


def load_config(path: str | Path | None = None) -> SimulationConfig:
    """Load a run configuration from a JSON file.

    Parameters
    ----------
    path : str or Path, optional
        JSON file. ``None`` returns the defaults.

    Returns
    -------
    SimulationConfig

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist.
    ValueError
        If the file is not a JSON object or lists unknown sections/options.
    """
    if path is None:
        return SimulationConfig()
    path = Path(path)
    with path.open() as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(
            f"Configuration file {path} must contain a JSON object, "
            f"got {type(data).__name__}"
        )
    logger.info("Loaded configuration from %s", path)
    return SimulationConfig.from_dict(data)


def save_config(config: SimulationConfig, path: str | Path) -> Path:
    """Write a run configuration as JSON and return the path.

    Explicit per-neuron arrays (e.g. place cell centres) are stored so that
    :func:`load_config` restores them as arrays.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w") as f:
        json.dump(config.to_dict(), f, indent=2)
    logger.info("Saved configuration to %s", path)
    return path
