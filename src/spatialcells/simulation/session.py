"""Stepping loop that drives neuron populations along an agent's trajectory."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from tqdm.auto import tqdm

if TYPE_CHECKING:
    from spatialcells.environment import Environment
    from spatialcells.simulation.agent import Agent
    from spatialcells.simulation.models import NeuronPopulation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulationSession:
    """Result of :func:`run_session`.

    Attributes
    ----------
    env : Environment
        Environment of the run.
    agent : Agent
        The agent after the run; its history holds the visited states.
    populations : tuple[NeuronPopulation, ...]
        The updated populations; each history holds one entry per step.
    n_steps : int
        Number of steps taken.
    """

    env: Environment
    agent: Agent
    populations: tuple[NeuronPopulation, ...]
    n_steps: int

    def population(self, name: str) -> NeuronPopulation:
        """Look up a population by name.

        Raises
        ------
        KeyError
            If no population has that name.
        """
        for population in self.populations:
            if population.name == name:
                return population
        raise KeyError(
            f"No population named {name!r}. "
            f"Available: {', '.join(p.name for p in self.populations)}"
        )


def run_session(
    agent: Agent,
    populations: NeuronPopulation | Sequence[NeuronPopulation],
    n_steps: int | None = None,
    show_progress: bool = False,
) -> SimulationSession:
    """Step an agent and its populations through the trajectory.

    Each step updates every population at the agent's current state, then
    advances the agent.

    Parameters
    ----------
    agent : Agent
        Agent to drive. Stepping starts from its current sample.
    populations : NeuronPopulation or sequence of NeuronPopulation
        Populations bound to ``agent``.
    n_steps : int, optional
        Number of steps. Defaults to the remaining trajectory length, so that
        the last sample is also recorded.
    show_progress : bool, default=False
        Show a tqdm progress bar.

    Returns
    -------
    SimulationSession

    Raises
    ------
    ValueError
        If a population is bound to another agent, or ``n_steps`` is
        negative or runs past the end of the trajectory.

    Examples
    --------
    >>> from spatialcells.environment import Environment
    >>> from spatialcells.simulation import Agent, PlaceCells
    >>> env = Environment()
    >>> agent = Agent.simulate(env, duration=1.0, seed=0)
    >>> pcs = PlaceCells(agent, n=5, seed=0)
    >>> session = run_session(agent, pcs)
    >>> session.n_steps, pcs.get_history_arrays()["firingrate"].shape
    (100, (100, 5))
    """
    if not isinstance(populations, Sequence):
        populations = [populations]
    populations = tuple(populations)
    for population in populations:
        if population.agent is not agent:
            raise ValueError(
                f"Population {population.name!r} is bound to a different agent"
            )

    remaining = agent.n_samples - agent.current_step
    if n_steps is None:
        n_steps = remaining
    if n_steps < 0 or n_steps > remaining:
        raise ValueError(
            f"n_steps must be between 0 and the {remaining} remaining trajectory "
            f"samples, got {n_steps}"
        )

    logger.info(
        "Running %d steps for %d population(s): %s",
        n_steps,
        len(populations),
        ", ".join(p.name for p in populations),
    )
    for i in tqdm(range(n_steps), desc="Simulating", disable=not show_progress):
        for population in populations:
            population.update()
        if i < n_steps - 1:
            agent.step()

    return SimulationSession(
        env=agent.env, agent=agent, populations=populations, n_steps=n_steps
    )
