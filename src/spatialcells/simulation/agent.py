"""Trajectory-replaying agent that drives neuron populations."""

from __future__ import annotations

import logging
import warnings
from pathlib import Path
from typing import TYPE_CHECKING, Any

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray

from spatialcells.simulation.trajectory import simulate_trajectory_ou

if TYPE_CHECKING:
    from spatialcells.environment import Environment

logger = logging.getLogger(__name__)

# Time step assumed for a single-sample trajectory
DEFAULT_DT = 0.01

_COORD_COLUMNS = ("x", "y")


class Agent:
    """An agent that steps through a recorded (or simulated) trajectory.

    The agent exposes the current position, time and time step to neuron
    populations and keeps its own history of visited states.

    Parameters
    ----------
    env : Environment
        Environment the trajectory lives in.
    times : array-like, shape (n_time,)
        Sample times in seconds.
    positions : array-like, shape (n_time, n_dims)
        Positions at each sample. May contain NaN where the position is
        unknown.

    Attributes
    ----------
    t : float
        Current time.
    dt : float
        Time step, taken from the first two samples.
    pos : NDArray[np.float64], shape (n_dims,)
        Current position.
    velocity : NDArray[np.float64], shape (n_dims,)
        Backward-difference velocity.
    head_direction : NDArray[np.float64], shape (n_dims,)
        Unit vector along the last non-zero velocity.
    current_step : int
        Index of the current sample.
    speed_mean, speed_std : float
        Statistics of the speed over the whole trajectory.
    history : dict[str, list]
        ``"t"``, ``"pos"``, ``"vel"`` and ``"head_direction"`` per visited
        sample, starting with the first.

    Raises
    ------
    ValueError
        If ``times`` is empty or the array shapes disagree.

    Examples
    --------
    >>> from spatialcells.environment import Environment
    >>> env = Environment()
    >>> agent = Agent(env, times=[0.0, 0.1], positions=[[0.0, 0.0], [0.1, 0.0]])
    >>> agent.step()
    >>> agent.t, agent.head_direction.tolist()
    (0.1, [1.0, 0.0])
    """

    def __init__(
        self, env: Environment, times: ArrayLike, positions: ArrayLike
    ) -> None:
        times = np.asarray(times, dtype=np.float64).ravel()
        positions = np.asarray(positions, dtype=np.float64)
        if times.size == 0:
            raise ValueError("A trajectory needs at least one sample")
        if positions.size != times.size * env.n_dims:
            raise ValueError(
                f"positions must have shape ({times.size}, {env.n_dims}) to match "
                f"times, got {positions.shape}"
            )

        self.env = env
        self.times = times
        self.positions = positions.reshape(times.size, env.n_dims)

        self.current_step = 0
        self.t = float(times[0])
        self.pos = self.positions[0].copy()

        if times.size > 1:
            self.dt = float(times[1] - times[0])
            self.velocity = (self.positions[1] - self.positions[0]) / self.dt
        else:
            self.dt = DEFAULT_DT
            self.velocity = np.zeros(env.n_dims)

        self.head_direction = np.zeros(env.n_dims)
        self.head_direction[0] = 1.0
        self._update_head_direction()

        if times.size > 1:
            speeds = np.linalg.norm(np.diff(self.positions, axis=0), axis=1) / self.dt
            self.speed_mean = float(np.nanmean(speeds))
            self.speed_std = float(np.nanstd(speeds))
        else:
            self.speed_mean = 0.0
            self.speed_std = 0.0

        self.history: dict[str, list[Any]] = {
            "t": [],
            "pos": [],
            "vel": [],
            "head_direction": [],
        }
        self._save_to_history()

    def __repr__(self) -> str:
        return (
            f"Agent(n_samples={len(self.times)}, current_step={self.current_step}, "
            f"t={self.t})"
        )

    @property
    def n_samples(self) -> int:
        """Number of samples in the trajectory."""
        return len(self.times)

    @property
    def at_end(self) -> bool:
        """Whether the agent sits on the last sample."""
        return self.current_step >= self.n_samples - 1

    def step(self) -> None:
        """Advance to the next sample.

        At the end of the trajectory a ``UserWarning`` is issued and the
        state is left unchanged.
        """
        if self.at_end:
            warnings.warn("Reached end of trajectory", UserWarning, stacklevel=2)
            return

        self.current_step += 1
        self.t = float(self.times[self.current_step])
        self.pos = self.positions[self.current_step].copy()
        step_dt = self.t - float(self.times[self.current_step - 1])
        if step_dt > 0:
            self.velocity = (
                self.positions[self.current_step]
                - self.positions[self.current_step - 1]
            ) / step_dt
        self._update_head_direction()
        self._save_to_history()

    def _update_head_direction(self) -> None:
        speed = np.linalg.norm(self.velocity)
        if np.isfinite(speed) and speed > 0:
            self.head_direction = self.velocity / speed

    def _save_to_history(self) -> None:
        self.history["t"].append(self.t)
        self.history["pos"].append(self.pos.copy())
        self.history["vel"].append(self.velocity.copy())
        self.history["head_direction"].append(self.head_direction.copy())

    def get_history_arrays(self) -> dict[str, NDArray[np.float64]]:
        """History as arrays: ``t`` (T,) and ``pos``, ``vel``, ``head_direction``."""
        return {
            "t": np.asarray(self.history["t"], dtype=np.float64),
            "pos": np.vstack(self.history["pos"]),
            "vel": np.vstack(self.history["vel"]),
            "head_direction": np.vstack(self.history["head_direction"]),
        }

    def get_history_slice(
        self, t_start: float = 0.0, t_end: float | None = None
    ) -> NDArray[np.bool_]:
        """Boolean mask of history entries with ``t_start <= t <= t_end``."""
        t = self.get_history_arrays()["t"]
        if t_end is None:
            t_end = np.inf
        return (t >= t_start) & (t <= t_end)

    @classmethod
    def from_csv(cls, path: str | Path, env: Environment) -> Agent:
        """Load a trajectory from a CSV file with columns ``t,x`` or ``t,x,y``.

        Parameters
        ----------
        path : str or Path
            CSV file. Extra columns are ignored.
        env : Environment
            Environment of the trajectory; its dimensionality selects the
            coordinate columns.

        Raises
        ------
        ValueError
            If a required column is missing.
        """
        frame = pd.read_csv(path)
        columns = ["t", *_COORD_COLUMNS[: env.n_dims]]
        missing = [c for c in columns if c not in frame.columns]
        if missing:
            raise ValueError(
                f"Trajectory file {path} is missing column(s): {', '.join(missing)}. "
                f"Expected columns: {', '.join(columns)}"
            )
        logger.info("Loaded %d trajectory samples from %s", len(frame), path)
        return cls(
            env,
            times=frame["t"].to_numpy(dtype=np.float64),
            positions=frame[columns[1:]].to_numpy(dtype=np.float64),
        )

    def to_csv(self, path: str | Path) -> Path:
        """Write the full trajectory as ``t,x[,y]`` CSV and return the path."""
        path = Path(path)
        columns = list(_COORD_COLUMNS[: self.env.n_dims])
        frame = pd.DataFrame(self.positions, columns=columns)
        frame.insert(0, "t", self.times)
        frame.to_csv(path, index=False)
        return path

    @classmethod
    def simulate(
        cls,
        env: Environment,
        duration: float,
        dt: float = DEFAULT_DT,
        seed: int | np.random.Generator | None = None,
        **kwargs: Any,
    ) -> Agent:
        """Build an agent from a fresh :func:`simulate_trajectory_ou` run.

        Extra keyword arguments are passed to the trajectory simulator.
        """
        positions, times = simulate_trajectory_ou(
            env, duration=duration, dt=dt, seed=seed, **kwargs
        )
        return cls(env, times=times, positions=positions)
