"""Sampling of per-neuron tuning parameters.

Grid-cell populations draw their scales, orientations and phase offsets from a
named distribution so that a whole population can be described by a handful of
numbers (e.g. three module scales) instead of one value per neuron.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Literal

import numpy as np
from numpy.typing import NDArray

DISTRIBUTIONS = ("modules", "uniform", "delta")

DistributionName = Literal["modules", "uniform", "delta"]


def sample_distribution(
    distribution: DistributionName | str,
    params: float | Sequence[float] | NDArray[np.float64],
    n: int,
    dimension: int = 1,
    seed: int | np.random.Generator | None = None,
) -> NDArray[np.float64]:
    """Draw ``n`` parameter values from a named distribution.

    Parameters
    ----------
    distribution : {"modules", "uniform", "delta"}
        Distribution name.

        - ``"modules"``: ``params`` lists the module values; neurons are
          assigned to them round-robin (``[1, 2, 3]`` over 5 neurons gives
          ``[1, 2, 3, 1, 2]``). The values are repeated across columns.
        - ``"uniform"``: ``params`` is ``(low, high)``, or a scalar ``s``
          meaning ``(0.5 * s, 1.5 * s)``. Every entry is drawn independently.
        - ``"delta"``: ``params`` is a scalar used for every entry, or a
          vector of length ``dimension`` used for every row.
    params : float or sequence of float
        Distribution parameters, see above.
    n : int
        Number of neurons (rows).
    dimension : int, default=1
        Number of columns.
    seed : int | np.random.Generator | None, optional
        Random seed or generator. Only ``"uniform"`` is stochastic.

    Returns
    -------
    NDArray[np.float64]
        Shape ``(n,)`` when ``dimension == 1``, else ``(n, dimension)``.

    Raises
    ------
    ValueError
        If ``distribution`` is unknown or ``params`` has the wrong shape for it.

    Examples
    --------
    >>> sample_distribution("modules", [1, 2, 3], n=5).tolist()
    [1.0, 2.0, 3.0, 1.0, 2.0]
    >>> sample_distribution("delta", 5, n=4).tolist()
    [5.0, 5.0, 5.0, 5.0]
    >>> sample_distribution("delta", [0.1, 0.2], n=2, dimension=2).tolist()
    [[0.1, 0.2], [0.1, 0.2]]
    >>> samples = sample_distribution("uniform", (0, 2 * np.pi), n=10, seed=0)
    >>> bool(np.all((samples >= 0) & (samples <= 2 * np.pi)))
    True
    """
    if distribution not in DISTRIBUTIONS:
        raise ValueError(
            f"Unknown distribution {distribution!r}. "
            f"Choose one of {', '.join(DISTRIBUTIONS)}."
        )
    if n < 0:
        raise ValueError(f"n must be non-negative (got {n})")
    if dimension < 1:
        raise ValueError(f"dimension must be at least 1 (got {dimension})")

    values = _as_float_array(params, distribution)

    if distribution == "modules":
        if values.ndim > 1 or values.size == 0:
            raise ValueError(
                "modules distribution requires a scalar or a non-empty 1D "
                f"sequence of module values, got shape {values.shape}"
            )
        samples = np.resize(values.ravel(), n)
        samples = np.repeat(samples[:, np.newaxis], dimension, axis=1)

    elif distribution == "uniform":
        if values.ndim == 0:
            low, high = 0.5 * float(values), 1.5 * float(values)
        elif values.shape == (2,):
            low, high = float(values[0]), float(values[1])
        else:
            raise ValueError(
                "uniform distribution requires params of the form (low, high) "
                f"or a scalar, got shape {values.shape}"
            )
        rng = np.random.default_rng(seed)
        samples = rng.uniform(low, high, size=(n, dimension))

    else:
        if values.ndim == 0:
            samples = np.full((n, dimension), float(values))
        elif values.shape == (dimension,):
            samples = np.tile(values, (n, 1))
        else:
            raise ValueError(
                "delta distribution params must be a scalar or a vector of "
                f"length {dimension}, got shape {values.shape}"
            )

    if dimension == 1:
        return samples[:, 0]
    return samples


def _as_float_array(
    params: float | Sequence[float] | NDArray[np.float64], distribution: str
) -> NDArray[np.float64]:
    try:
        return np.asarray(params, dtype=np.float64)
    except (TypeError, ValueError) as err:
        raise ValueError(
            f"{distribution} distribution requires numeric params, got {params!r}"
        ) from err
