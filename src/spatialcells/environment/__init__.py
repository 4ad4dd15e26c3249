"""Environment collaborator for neuron populations.

- core: :class:`Environment`, a rectangular 1D/2D arena with solid or
  periodic boundaries
- _protocols: the interfaces populations consume from an environment and agent

Import Examples
---------------
    >>> from spatialcells.environment import Environment
    >>> env = Environment(extent=(0, 2), dimensionality="1D")
    >>> env.n_dims
    1
"""

from spatialcells.environment._protocols import AgentProtocol, EnvironmentProtocol
from spatialcells.environment.core import (
    SAMPLING_METHODS,
    WALL_GEOMETRIES,
    Environment,
)

__all__ = [
    "SAMPLING_METHODS",
    "WALL_GEOMETRIES",
    "AgentProtocol",
    "Environment",
    "EnvironmentProtocol",
]
