"""Rectangular 1D/2D environment.

The environment is the geometric collaborator of every neuron population: it
discretizes the arena into a regular grid (used for rate maps), samples
positions (used to place place-cell centres) and measures distances between
centres and query positions.

Only empty rectangular arenas are modelled. Without internal walls the
``geodesic`` and ``line_of_sight`` wall geometries coincide with the straight
line distance, so all three are served by the same Euclidean computation.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Literal

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.spatial.distance import cdist

from spatialcells._logging import log_environment_created

logger = logging.getLogger(__name__)

SAMPLING_METHODS = ("random", "uniform", "uniform_jitter")
WALL_GEOMETRIES = ("euclidean", "geodesic", "line_of_sight")

# Jitter standard deviation as a fraction of the uniform grid spacing
_JITTER_FRACTION = 0.3


class Environment:
    """Rectangular arena with solid or periodic boundaries.

    Parameters
    ----------
    extent : sequence of float, optional
        ``(xmin, xmax)`` for 1D or ``(xmin, xmax, ymin, ymax)`` for 2D, in
        meters. Defaults to the unit interval / unit square.
    dimensionality : {"1D", "2D"}, default="2D"
        Number of spatial dimensions.
    boundary_conditions : {"solid", "periodic"}, default="solid"
        Whether the arena is walled or wraps around.
    dx : float, default=0.01
        Resolution of the discretization grid in meters.

    Attributes
    ----------
    extent : tuple of float
        Arena bounds.
    dimensionality : str
        ``"1D"`` or ``"2D"``.
    boundary_conditions : str
        ``"solid"`` or ``"periodic"``.
    dx : float
        Grid resolution.
    discrete_coords : NDArray[np.float64]
        Grid coordinates, shape ``(H, W, 2)`` in 2D and ``(N, 1)`` in 1D.

    Raises
    ------
    ValueError
        If any parameter is outside its accepted set or the extent is malformed.

    Examples
    --------
    >>> env = Environment(extent=(0, 1, 0, 1), dx=0.1)
    >>> env.flattened_discrete_coords.shape
    (121, 2)
    >>> env.get_distances_between([[0.0, 0.0]], [[3.0, 4.0]]).tolist()
    [[5.0]]
    """

    def __init__(
        self,
        extent: Sequence[float] | None = None,
        dimensionality: Literal["1D", "2D"] = "2D",
        boundary_conditions: Literal["solid", "periodic"] = "solid",
        dx: float = 0.01,
    ) -> None:
        if dimensionality not in ("1D", "2D"):
            raise ValueError(
                f"dimensionality must be '1D' or '2D', got {dimensionality!r}"
            )
        if boundary_conditions not in ("solid", "periodic"):
            raise ValueError(
                "boundary_conditions must be 'solid' or 'periodic', "
                f"got {boundary_conditions!r}"
            )
        if dx <= 0:
            raise ValueError(f"dx must be positive (got {dx})")

        n_dims = 1 if dimensionality == "1D" else 2
        if extent is None:
            extent = (0.0, 1.0) * n_dims
        extent = tuple(float(e) for e in extent)
        if len(extent) != 2 * n_dims:
            raise ValueError(
                f"A {dimensionality} environment needs an extent of length "
                f"{2 * n_dims}, got {len(extent)}: {extent}"
            )
        for lo, hi in zip(extent[::2], extent[1::2], strict=True):
            if hi <= lo:
                raise ValueError(f"extent bounds must be increasing, got {extent}")

        self.extent = extent
        self.dimensionality = dimensionality
        self.boundary_conditions = boundary_conditions
        self.dx = float(dx)

        self._discretise_environment()
        log_environment_created(
            dimensionality=dimensionality,
            boundary_conditions=boundary_conditions,
            n_positions=len(self.flattened_discrete_coords),
        )

    def __repr__(self) -> str:
        return (
            f"Environment(extent={self.extent}, "
            f"dimensionality={self.dimensionality!r}, "
            f"boundary_conditions={self.boundary_conditions!r}, dx={self.dx})"
        )

    @property
    def n_dims(self) -> int:
        """Number of spatial dimensions."""
        return 1 if self.dimensionality == "1D" else 2

    @property
    def dimension_ranges(self) -> tuple[tuple[float, float], ...]:
        """``(min, max)`` per dimension."""
        return tuple(
            (self.extent[2 * d], self.extent[2 * d + 1]) for d in range(self.n_dims)
        )

    @property
    def side_lengths(self) -> NDArray[np.float64]:
        """Arena size per dimension."""
        return np.array([hi - lo for lo, hi in self.dimension_ranges])

    @property
    def flattened_discrete_coords(self) -> NDArray[np.float64]:
        """Every grid point, shape ``(n_positions, n_dims)``; x varies fastest."""
        return self._flattened_discrete_coords

    def _axis(self, lo: float, hi: float) -> NDArray[np.float64]:
        n_points = int(round((hi - lo) / self.dx)) + 1
        return np.linspace(lo, hi, n_points)

    def _discretise_environment(self) -> None:
        axes = [self._axis(lo, hi) for lo, hi in self.dimension_ranges]
        if self.n_dims == 1:
            self.discrete_coords = axes[0].reshape(-1, 1)
            self._flattened_discrete_coords = self.discrete_coords
        else:
            xx, yy = np.meshgrid(axes[0], axes[1])
            self.discrete_coords = np.stack([xx, yy], axis=-1)
            self._flattened_discrete_coords = np.column_stack(
                [xx.ravel(), yy.ravel()]
            )

    def contains(self, positions: ArrayLike) -> NDArray[np.bool_]:
        """Whether each position lies inside the arena (bounds inclusive).

        Parameters
        ----------
        positions : array-like, shape (n_positions, n_dims)

        Returns
        -------
        NDArray[np.bool_], shape (n_positions,)
        """
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, self.n_dims)
        lo = np.array([r[0] for r in self.dimension_ranges])
        hi = np.array([r[1] for r in self.dimension_ranges])
        return np.all((positions >= lo) & (positions <= hi), axis=1)

    def wrap(self, positions: ArrayLike) -> NDArray[np.float64]:
        """Map positions back into the arena across periodic boundaries."""
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, self.n_dims)
        lo = np.array([r[0] for r in self.dimension_ranges])
        return lo + np.mod(positions - lo, self.side_lengths)

    def sample_positions(
        self,
        n: int,
        method: str = "uniform_jitter",
        seed: int | np.random.Generator | None = None,
    ) -> NDArray[np.float64]:
        """Sample positions inside the arena.

        Parameters
        ----------
        n : int
            Number of positions.
        method : {"random", "uniform", "uniform_jitter"}, default="uniform_jitter"
            - ``"random"``: independent uniform draws over the arena.
            - ``"uniform"``: regular grid with ``ceil(sqrt(n))`` points per
              side (``n`` points in 1D), truncated to ``n``.
            - ``"uniform_jitter"``: the regular grid plus Gaussian jitter,
              clipped to the arena.
        seed : int | np.random.Generator | None, optional
            Random seed or generator.

        Returns
        -------
        NDArray[np.float64], shape (n, n_dims)

        Raises
        ------
        ValueError
            If ``method`` is unknown.
        """
        if method not in SAMPLING_METHODS:
            raise ValueError(
                f"Unknown sampling method {method!r}. "
                f"Choose one of {', '.join(SAMPLING_METHODS)}."
            )
        rng = np.random.default_rng(seed)
        lo = np.array([r[0] for r in self.dimension_ranges])
        hi = np.array([r[1] for r in self.dimension_ranges])

        if method == "random":
            return lo + (hi - lo) * rng.random((n, self.n_dims))

        if self.n_dims == 1:
            n_side = n
            positions = np.linspace(lo[0], hi[0], n).reshape(-1, 1)
        else:
            n_side = int(np.ceil(np.sqrt(n)))
            xx, yy = np.meshgrid(
                np.linspace(lo[0], hi[0], n_side), np.linspace(lo[1], hi[1], n_side)
            )
            positions = np.column_stack([xx.ravel(), yy.ravel()])[:n]

        if method == "uniform_jitter":
            jitter_scale = _JITTER_FRACTION * np.min(hi - lo) / max(n_side, 1)
            positions = positions + jitter_scale * rng.standard_normal(positions.shape)
            positions = np.clip(positions, lo, hi)

        return positions

    def get_distances_between(
        self,
        centres: ArrayLike,
        positions: ArrayLike,
        wall_geometry: str = "euclidean",
    ) -> NDArray[np.float64]:
        """Distances from each centre to each position.

        Parameters
        ----------
        centres : array-like, shape (n_centres, n_dims)
        positions : array-like, shape (n_positions, n_dims)
        wall_geometry : {"euclidean", "geodesic", "line_of_sight"}
            Distance metric. In an empty rectangle all three are equal.

        Returns
        -------
        NDArray[np.float64], shape (n_centres, n_positions)

        Raises
        ------
        ValueError
            If ``wall_geometry`` is unknown.

        Notes
        -----
        With periodic boundaries the minimum-image convention is used, i.e.
        each displacement is the shortest one across any wrap.
        """
        if wall_geometry not in WALL_GEOMETRIES:
            raise ValueError(
                f"Unknown wall_geometry {wall_geometry!r}. "
                f"Choose one of {', '.join(WALL_GEOMETRIES)}."
            )
        centres = np.asarray(centres, dtype=np.float64).reshape(-1, self.n_dims)
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, self.n_dims)

        if self.boundary_conditions == "periodic":
            delta = positions[np.newaxis, :, :] - centres[:, np.newaxis, :]
            lengths = self.side_lengths
            delta = delta - lengths * np.round(delta / lengths)
            return np.linalg.norm(delta, axis=-1)

        return cdist(centres, positions)
