"""Rate maps, rate time series and environment outlines."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import matplotlib.axes
import matplotlib.figure
import matplotlib.pyplot as plt
import numpy as np
from matplotlib.patches import Rectangle
from numpy.typing import ArrayLike

from spatialcells.config import PlotConfig
from spatialcells.visualization.style import apply_paper_style, export_figure

if TYPE_CHECKING:
    from spatialcells.environment import Environment
    from spatialcells.simulation.models import NeuronPopulation

logger = logging.getLogger(__name__)

# Maximum number of rate-map panels per row
MAX_COLUMNS = 5


def plot_rate_map(
    population: NeuronPopulation,
    chosen_neurons: str | int | ArrayLike = "all",
    method: str = "groundtruth",
    cmap: str | None = None,
    colorbar: bool = True,
    plot_config: PlotConfig | None = None,
    export_path: str | Path | None = None,
) -> tuple[matplotlib.figure.Figure, np.ndarray]:
    """Plot the rate map of selected neurons over the whole environment.

    Parameters
    ----------
    population : NeuronPopulation
        Population to plot. Rates are evaluated with
        ``population.get_state("all")``, so noise is not included.
    chosen_neurons : str, int or array-like, default="all"
        Neuron selector, see
        :meth:`~spatialcells.simulation.models.NeuronPopulation.return_list_of_neurons`.
    method : {"groundtruth"}, default="groundtruth"
        Rate source. Only the tuning ground truth is supported.
    cmap : str, optional
        Colormap. Defaults to ``population.colormap``.
    colorbar : bool, default=True
        Add a colorbar to the last panel (2D only).
    plot_config : PlotConfig, optional
        Figure style.
    export_path : str or Path, optional
        Save the figure here (without extension) when
        ``plot_config.export_enabled`` is set.

    Returns
    -------
    fig : matplotlib.figure.Figure
    axes : np.ndarray of matplotlib.axes.Axes
        One panel per chosen neuron (2D) or a single axes (1D).

    Raises
    ------
    NotImplementedError
        If ``method="history"``.
    ValueError
        For any other unknown ``method``.

    Examples
    --------
    >>> import matplotlib
    >>> matplotlib.use("Agg")
    >>> from spatialcells.environment import Environment
    >>> from spatialcells.simulation import Agent, PlaceCells
    >>> env = Environment(dx=0.05)
    >>> agent = Agent(env, times=[0.0], positions=[[0.5, 0.5]])
    >>> fig, axes = plot_rate_map(PlaceCells(agent, n=4, seed=0))
    >>> axes.shape
    (4,)
    >>> plt.close(fig)
    """
    if method == "history":
        raise NotImplementedError(
            "Rate maps from history are not implemented; use method='groundtruth'"
        )
    if method != "groundtruth":
        raise ValueError(f"Unknown rate map method {method!r}. Use 'groundtruth'.")

    plot_config = plot_config or PlotConfig()
    cmap = cmap or population.colormap
    env = population.env
    chosen = population.return_list_of_neurons(chosen_neurons)
    rate_maps = population.get_state("all")[chosen]

    if env.n_dims == 1:
        fig, ax = plt.subplots()
        coords = env.flattened_discrete_coords[:, 0]
        for index, rate_map in zip(chosen, rate_maps, strict=True):
            ax.plot(coords, rate_map, linewidth=1, label=f"Neuron {index}")
        ax.set_xlabel("Position (m)")
        ax.set_ylabel("Firing rate (Hz)")
        ax.set_xlim(env.extent[0], env.extent[1])
        axes = np.array([ax])
    else:
        n_cols = max(min(len(chosen), MAX_COLUMNS), 1)
        n_rows = max(int(np.ceil(len(chosen) / n_cols)), 1)
        fig, axes = plt.subplots(n_rows, n_cols, squeeze=False)
        axes = axes.ravel()
        height, width = env.discrete_coords.shape[:2]
        image = None
        for i, (index, rate_map) in enumerate(zip(chosen, rate_maps, strict=True)):
            ax = axes[i]
            image = ax.imshow(
                rate_map.reshape(height, width),
                extent=env.extent,
                origin="lower",
                cmap=cmap,
                vmin=population.min_fr,
                vmax=max(population.max_fr, population.min_fr + 1e-12),
            )
            ax.set_title(f"Neuron {index}")
            if i % n_cols == 0:
                ax.set_ylabel("y (m)")
            if i >= len(chosen) - n_cols:
                ax.set_xlabel("x (m)")
        for ax in axes[len(chosen) :]:
            ax.set_visible(False)
        axes = axes[: len(chosen)]
        if colorbar and image is not None:
            cb = fig.colorbar(image, ax=axes[-1])
            cb.set_label("Firing rate (Hz)")

    fig.suptitle(population.name)
    apply_paper_style(fig, plot_config)
    _maybe_export(fig, export_path, plot_config)
    return fig, axes


def plot_rate_timeseries(
    population: NeuronPopulation,
    chosen_neurons: str | int | ArrayLike = "all",
    t_start: float = 0.0,
    t_end: float | None = None,
    plot_config: PlotConfig | None = None,
    export_path: str | Path | None = None,
) -> tuple[matplotlib.figure.Figure, matplotlib.axes.Axes]:
    """Plot the recorded firing rates of selected neurons, stacked.

    Neuron ``k`` of the selection is drawn with an offset of ``k`` so the
    traces do not overlap; time is shown in minutes.

    Parameters
    ----------
    population : NeuronPopulation
        Population with a recorded history.
    chosen_neurons : str, int or array-like, default="all"
    t_start : float, default=0.0
        Start of the window in seconds.
    t_end : float, optional
        End of the window in seconds. Defaults to the last recorded time.
    plot_config : PlotConfig, optional
    export_path : str or Path, optional

    Returns
    -------
    fig : matplotlib.figure.Figure
    ax : matplotlib.axes.Axes

    Raises
    ------
    ValueError
        If the population has no history.
    """
    history = population.get_history_arrays()
    t = history["t"]
    if len(t) == 0:
        raise ValueError(
            f"{population.name} has no history to plot; call update() first"
        )
    if t_end is None:
        t_end = t[-1]

    in_window = (t >= t_start) & (t <= t_end)
    chosen = population.return_list_of_neurons(chosen_neurons)
    rates = history["firingrate"][in_window][:, chosen]

    fig, ax = plt.subplots()
    for i in range(len(chosen)):
        ax.plot(t[in_window] / 60, rates[:, i] + i, linewidth=1)
    ax.set_xlabel("Time (min)")
    ax.set_ylabel("Neurons")
    ax.set_ylim(-0.5, len(chosen) + 0.5)
    ax.set_yticks(np.arange(len(chosen)))
    ax.set_yticklabels([str(index) for index in chosen])
    ax.grid(True)

    apply_paper_style(fig, plot_config)
    _maybe_export(fig, export_path, plot_config or PlotConfig())
    return fig, ax


def plot_environment(
    env: Environment,
    ax: matplotlib.axes.Axes | None = None,
    plot_config: PlotConfig | None = None,
    **kwargs: Any,
) -> tuple[matplotlib.figure.Figure, matplotlib.axes.Axes]:
    """Draw the outline of an environment.

    Parameters
    ----------
    env : Environment
    ax : matplotlib.axes.Axes, optional
        Axes to draw on. A new, styled figure is created if None.
    plot_config : PlotConfig, optional
        Style for a newly created figure.
    **kwargs
        Passed to :class:`matplotlib.patches.Rectangle` (2D) or
        :meth:`~matplotlib.axes.Axes.hlines` (1D).

    Returns
    -------
    fig : matplotlib.figure.Figure
    ax : matplotlib.axes.Axes
    """
    created = ax is None
    if ax is None:
        fig, ax = plt.subplots()
    else:
        fig = ax.figure

    if env.n_dims == 1:
        xmin, xmax = env.extent
        ax.hlines(0, xmin, xmax, colors=kwargs.pop("color", "k"), linewidth=2, **kwargs)
        ax.set_xlim(xmin, xmax)
        ax.set_yticks([])
        ax.set_xlabel("x (m)")
    else:
        xmin, xmax, ymin, ymax = env.extent
        kwargs.setdefault("edgecolor", "k")
        kwargs.setdefault("linewidth", 2)
        ax.add_patch(
            Rectangle((xmin, ymin), xmax - xmin, ymax - ymin, fill=False, **kwargs)
        )
        ax.set_xlim(xmin, xmax)
        ax.set_ylim(ymin, ymax)
        ax.set_aspect("equal")
        ax.set_xlabel("x (m)")
        ax.set_ylabel("y (m)")

    if created:
        apply_paper_style(fig, plot_config)
    return fig, ax


def _maybe_export(
    fig: matplotlib.figure.Figure,
    export_path: str | Path | None,
    plot_config: PlotConfig,
) -> None:
    if export_path is None:
        return
    if not plot_config.export_enabled:
        logger.debug("Export to %s skipped: export disabled in PlotConfig", export_path)
        return
    export_figure(fig, export_path, formats=plot_config.formats, dpi=plot_config.dpi)
