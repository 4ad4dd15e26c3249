"""Protocols for the collaborators consumed by neuron populations.

Neuron populations only read from the agent and its environment. These
protocols spell out exactly which attributes and methods they rely on, so any
object providing them (the bundled :class:`~spatialcells.environment.Environment`
and :class:`~spatialcells.simulation.Agent`, or a user's own simulator) can
drive a population.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import numpy as np
from numpy.typing import NDArray


@runtime_checkable
class EnvironmentProtocol(Protocol):
    """Interface a population expects from its environment."""

    dimensionality: str
    boundary_conditions: str

    @property
    def n_dims(self) -> int:
        """Number of spatial dimensions (1 or 2)."""
        ...

    @property
    def flattened_discrete_coords(self) -> NDArray[np.float64]:
        """Every point of the discretized environment, shape (n_positions, n_dims)."""
        ...

    def sample_positions(
        self,
        n: int,
        method: str = "uniform_jitter",
        seed: int | np.random.Generator | None = None,
    ) -> NDArray[np.float64]:
        """Sample ``n`` positions inside the environment."""
        ...

    def get_distances_between(
        self,
        centres: NDArray[np.float64],
        positions: NDArray[np.float64],
        wall_geometry: str = "euclidean",
    ) -> NDArray[np.float64]:
        """Pairwise distances, shape (n_centres, n_positions)."""
        ...


@runtime_checkable
class AgentProtocol(Protocol):
    """Interface a population expects from the agent it is bound to.

    ``pos`` may contain NaN to signal that the agent has no valid position yet.
    """

    env: EnvironmentProtocol
    pos: NDArray[np.float64]
    t: float
    dt: float
