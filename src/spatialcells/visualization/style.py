"""Publication figure style and export."""

from __future__ import annotations

import logging
import warnings
from collections.abc import Sequence
from pathlib import Path

import matplotlib.colorbar
import matplotlib.figure

from spatialcells.config import PlotConfig

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("png", "eps", "pdf", "svg")


def apply_paper_style(
    fig: matplotlib.figure.Figure, plot_config: PlotConfig | None = None
) -> matplotlib.figure.Figure:
    """Resize a figure and restyle its axes for publication.

    The figure width is set to ``plot_config.width_inch`` keeping the aspect
    ratio; every axes and colorbar gets the configured font and tick
    direction, and the top and right spines are hidden.

    Parameters
    ----------
    fig : matplotlib.figure.Figure
        Figure to restyle in place.
    plot_config : PlotConfig, optional
        Style options. Defaults to :class:`PlotConfig()`.

    Returns
    -------
    matplotlib.figure.Figure
        The same figure.
    """
    plot_config = plot_config or PlotConfig()
    width, height = fig.get_size_inches()
    fig.set_size_inches(plot_config.width_inch, plot_config.width_inch * height / width)
    fig.set_facecolor("white")

    colorbar_axes = set()
    for ax in fig.axes:
        colorbar = getattr(ax, "_colorbar", None)
        if isinstance(colorbar, matplotlib.colorbar.Colorbar):
            colorbar_axes.add(ax)

    for ax in fig.axes:
        for text in (ax.title, ax.xaxis.label, ax.yaxis.label):
            text.set_fontfamily(plot_config.font_name)
            text.set_fontsize(plot_config.fontsize_pt)
        ax.tick_params(
            direction=plot_config.tick_direction, labelsize=plot_config.fontsize_pt
        )
        if ax not in colorbar_axes:
            ax.spines["top"].set_visible(False)
            ax.spines["right"].set_visible(False)
    return fig


def export_figure(
    fig: matplotlib.figure.Figure,
    path: str | Path,
    formats: Sequence[str] = ("png", "eps"),
    dpi: int = 600,
) -> list[Path]:
    """Save a figure in several formats.

    Parameters
    ----------
    fig : matplotlib.figure.Figure
        Figure to save.
    path : str or Path
        Output path without extension. Missing parent directories are created.
    formats : sequence of str, default=("png", "eps")
        Formats among ``"png"``, ``"eps"``, ``"pdf"`` and ``"svg"``. Unknown
        formats are skipped with a warning.
    dpi : int, default=600
        Resolution.

    Returns
    -------
    list of Path
        Written files, in the order of ``formats``.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    written = []
    for fmt in formats:
        fmt = fmt.lower()
        if fmt not in EXPORT_FORMATS:
            warnings.warn(
                f"Unknown export format {fmt!r}, skipping. "
                f"Supported: {', '.join(EXPORT_FORMATS)}",
                UserWarning,
                stacklevel=2,
            )
            continue
        outfile = path.with_name(f"{path.name}.{fmt}")
        fig.savefig(outfile, format=fmt, dpi=dpi, bbox_inches="tight")
        logger.info("Exported %s", outfile)
        written.append(outfile)
    return written
