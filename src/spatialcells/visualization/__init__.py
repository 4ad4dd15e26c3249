"""Plotting for neuron populations and environments.

- plots: rate maps, stacked rate time series, environment outlines
- style: publication figure style and multi-format export

Import Examples
---------------
    >>> from spatialcells.visualization import plot_rate_map, export_figure
"""

from spatialcells.visualization.plots import (
    plot_environment,
    plot_rate_map,
    plot_rate_timeseries,
)
from spatialcells.visualization.style import (
    EXPORT_FORMATS,
    apply_paper_style,
    export_figure,
)

__all__ = [
    "EXPORT_FORMATS",
    "apply_paper_style",
    "export_figure",
    "plot_environment",
    "plot_rate_map",
    "plot_rate_timeseries",
]
