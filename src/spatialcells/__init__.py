"""Simulation of spatially tuned neuron populations.

**spatialcells** simulates place cells and grid cells driven by an agent
moving through a rectangular 1D or 2D environment. Populations produce
per-neuron firing rates as a function of position, with optional
Ornstein-Uhlenbeck noise, Bernoulli spike generation and a history of every
step, and can be rendered as rate maps.

Core Classes (Top-Level Exports)
--------------------------------
Environment : Rectangular arena
    Discretization grid, position sampling and distances.
Agent : Trajectory provider
    Replays a recorded trajectory or simulates one.

Submodule Organization
----------------------
simulation : Agents, trajectories, stepping loop and neuron populations

    >>> from spatialcells.simulation import PlaceCells, GridCells, run_session

simulation.models : Neuron engine, tuning models and parameter sampling

    >>> from spatialcells.simulation.models import sample_distribution

visualization : Rate maps, rate time series and figure export

    >>> from spatialcells.visualization import plot_rate_map

config : File-backed defaults for a whole run

    >>> from spatialcells.config import load_config, SimulationConfig

Examples
--------
Simulate a trajectory and record place cells along it::

    >>> from spatialcells import Agent, Environment
    >>> from spatialcells.simulation import PlaceCells, run_session
    >>> env = Environment(extent=(0, 1, 0, 1))
    >>> agent = Agent.simulate(env, duration=1.0, seed=0)
    >>> pcs = PlaceCells(agent, n=10, max_fr=10.0, seed=0)
    >>> session = run_session(agent, pcs)
    >>> pcs.get_history_arrays()["firingrate"].shape
    (100, 10)

Enable log output (including configuration warnings)::

    >>> from spatialcells import configure_logging
    >>> handler = configure_logging("DEBUG")  # doctest: +SKIP
"""

import logging

from spatialcells._logging import configure_logging
from spatialcells.environment import Environment
from spatialcells.simulation import Agent

# Add NullHandler so library use is silent unless the application configures logging
logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "Agent",
    "Environment",
    "__version__",
    "configure_logging",
]
