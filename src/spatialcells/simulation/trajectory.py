"""Trajectory simulation for driving neuron populations."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import ArrayLike, NDArray

if TYPE_CHECKING:
    from spatialcells.environment import Environment

logger = logging.getLogger(__name__)


def simulate_trajectory_ou(
    env: Environment,
    duration: float,
    dt: float = 0.01,
    start_position: ArrayLike | None = None,
    speed_mean: float = 0.08,
    speed_std: float = 0.08,
    coherence_time: float = 0.7,
    rotational_velocity_std: float = 120 * (np.pi / 180),
    rotational_velocity_coherence_time: float = 0.08,
    seed: int | np.random.Generator | None = None,
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Simulate exploration with an Ornstein-Uhlenbeck process.

    Parameters
    ----------
    env : Environment
        Rectangular environment to explore. Solid boundaries reflect the
        agent, periodic boundaries wrap it around.
    duration : float
        Simulation duration in seconds.
    dt : float, default=0.01
        Time step in seconds.
    start_position : array-like, shape (n_dims,), optional
        Starting position. If None, drawn uniformly inside the arena.
    speed_mean : float, default=0.08
        Mean speed in m/s.
    speed_std : float, default=0.08
        Speed standard deviation in m/s (1D only).
    coherence_time : float, default=0.7
        Velocity autocorrelation time in seconds (1D only).
    rotational_velocity_std : float, default=120 deg/s
        Standard deviation of the turning rate in rad/s (2D only).
    rotational_velocity_coherence_time : float, default=0.08
        Turning-rate autocorrelation time in seconds (2D only).
    seed : int | np.random.Generator | None, optional
        Random seed or generator.

    Returns
    -------
    positions : NDArray[np.float64], shape (n_time, n_dims)
    times : NDArray[np.float64], shape (n_time,)

    Raises
    ------
    ValueError
        If ``duration`` or ``dt`` is not positive, or the start position lies
        outside the arena.

    Notes
    -----
    In 2D the heading follows a rotational-velocity OU process and speed is
    held at ``speed_mean`` (RatInABox, George et al. 2023):

    .. math::

        d\\omega = -\\omega / \\tau_r \\, dt + \\sigma_r \\sqrt{2 / \\tau_r} dW,
        \\qquad d\\theta = \\omega \\, dt

    In 1D the velocity itself is an OU process around ``speed_mean`` (the
    agent drifts forward) with stationary deviation ``speed_std``.

    At a solid wall the position is mirrored back inside and the normal
    velocity component reversed.

    Examples
    --------
    >>> from spatialcells.environment import Environment
    >>> env = Environment(extent=(0, 1, 0, 1))
    >>> positions, times = simulate_trajectory_ou(env, duration=2.0, seed=0)
    >>> positions.shape, times.shape
    ((200, 2), (200,))
    >>> bool(env.contains(positions).all())
    True
    """
    if duration <= 0:
        raise ValueError(f"duration must be positive (got {duration})")
    if dt <= 0:
        raise ValueError(f"dt must be positive (got {dt})")

    rng = np.random.default_rng(seed)
    n_dims = env.n_dims
    lo = np.array([r[0] for r in env.dimension_ranges])
    hi = np.array([r[1] for r in env.dimension_ranges])

    if start_position is None:
        position = lo + (hi - lo) * rng.random(n_dims)
    else:
        position = np.asarray(start_position, dtype=np.float64).reshape(n_dims)
        if not env.contains(position)[0]:
            raise ValueError(
                f"start_position {position.tolist()} lies outside the arena "
                f"{env.extent}"
            )

    if n_dims == 2:
        heading = rng.uniform(0, 2 * np.pi)
        velocity = speed_mean * np.array([np.cos(heading), np.sin(heading)])
        rotational_velocity = 0.0
        theta_rot = 1.0 / rotational_velocity_coherence_time
        sigma_rot = rotational_velocity_std * np.sqrt(2 * theta_rot)
    else:
        velocity = np.array([speed_mean])
        theta = 1.0 / coherence_time
        sigma = speed_std * np.sqrt(2 * theta)

    n_steps = int(round(duration / dt))
    times = np.arange(n_steps) * dt
    positions = np.zeros((n_steps, n_dims), dtype=np.float64)
    if n_steps == 0:
        return positions, times
    positions[0] = position

    for i in range(1, n_steps):
        if n_dims == 2:
            rotational_velocity += (
                -theta_rot * rotational_velocity * dt
                + sigma_rot * rng.standard_normal() * np.sqrt(dt)
            )
            dtheta = rotational_velocity * dt
            cos_dtheta, sin_dtheta = np.cos(dtheta), np.sin(dtheta)
            velocity = np.array(
                [
                    velocity[0] * cos_dtheta - velocity[1] * sin_dtheta,
                    velocity[0] * sin_dtheta + velocity[1] * cos_dtheta,
                ]
            )
        else:
            velocity = (
                velocity
                + theta * (speed_mean - velocity) * dt
                + sigma * rng.standard_normal(1) * np.sqrt(dt)
            )

        position = position + velocity * dt

        if env.boundary_conditions == "periodic":
            position = env.wrap(position)[0]
        else:
            position, velocity = _reflect(position, velocity, lo, hi)

        positions[i] = position

    logger.debug(
        "Simulated %d-step %dD trajectory (%.1f s)", n_steps, n_dims, duration
    )
    return positions, times


def _reflect(
    position: NDArray[np.float64],
    velocity: NDArray[np.float64],
    lo: NDArray[np.float64],
    hi: NDArray[np.float64],
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Mirror a position that crossed a wall and reverse its normal velocity."""
    below = position < lo
    above = position > hi
    position = np.where(below, 2 * lo - position, position)
    position = np.where(above, 2 * hi - position, position)
    velocity = np.where(below | above, -velocity, velocity)
    # A step longer than the arena can still overshoot after one mirror
    return np.clip(position, lo, hi), velocity
