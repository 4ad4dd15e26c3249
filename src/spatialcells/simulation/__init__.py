"""Simulation subpackage: agents, trajectories and neuron populations.

This subpackage provides tools for:
- Replaying or simulating an agent's trajectory (Agent, simulate_trajectory_ou)
- Neuron populations driven by the agent (place cells, grid cells)
- A stepping loop that updates populations along the trajectory

Examples
--------
>>> from spatialcells.environment import Environment
>>> from spatialcells.simulation import Agent, GridCells, run_session
>>> env = Environment(extent=(0, 1, 0, 1))
>>> agent = Agent.simulate(env, duration=0.5, seed=1)
>>> gcs = GridCells(agent, n=6, seed=1)
>>> session = run_session(agent, [gcs])
>>> gcs.get_history_arrays()["spikes"].shape
(50, 6)

Notes
-----
All public functions and classes are importable directly from
`spatialcells.simulation`.
"""

from spatialcells.simulation.agent import Agent
from spatialcells.simulation.models import (
    DISTRIBUTIONS,
    PLACE_CELL_RESPONSES,
    GridCellConfig,
    GridCells,
    GridCells2Cos,
    GridCellTuning,
    InvalidNeuronSelectionError,
    NeuronConfig,
    NeuronPopulation,
    PlaceCellConfig,
    PlaceCells,
    PlaceCellTuning,
    RectangularGridCellTuning,
    TuningModel,
    ornstein_uhlenbeck_update,
    sample_distribution,
)
from spatialcells.simulation.session import SimulationSession, run_session
from spatialcells.simulation.trajectory import simulate_trajectory_ou

__all__ = [
    "DISTRIBUTIONS",
    "PLACE_CELL_RESPONSES",
    "Agent",
    "GridCellConfig",
    "GridCellTuning",
    "GridCells",
    "GridCells2Cos",
    "InvalidNeuronSelectionError",
    "NeuronConfig",
    "NeuronPopulation",
    "PlaceCellConfig",
    "PlaceCellTuning",
    "PlaceCells",
    "RectangularGridCellTuning",
    "SimulationSession",
    "TuningModel",
    "ornstein_uhlenbeck_update",
    "run_session",
    "sample_distribution",
    "simulate_trajectory_ou",
]
