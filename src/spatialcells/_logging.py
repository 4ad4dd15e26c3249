"""Structured logging helpers for spatialcells.

All package modules log through ``logging.getLogger(__name__)``; these helpers
keep the messages emitted at lifecycle seams (environment construction,
population construction, history materialization) consistent so they can be
grepped and filtered.

The package root installs a ``NullHandler``, so nothing is printed unless the
application configures logging, e.g. with :func:`configure_logging`.
"""

from __future__ import annotations

import logging

logger = logging.getLogger("spatialcells")


def configure_logging(level: int | str = "INFO") -> logging.Handler:
    """Attach a stream handler to the package logger.

    Also routes :mod:`warnings` (e.g. configuration warnings such as an
    out-of-range ``width_ratio``) into the logging system.

    Parameters
    ----------
    level : int or str, default="INFO"
        Logging level for the package logger.

    Returns
    -------
    logging.Handler
        The handler that was added, so callers can remove it again.

    Examples
    --------
    >>> import logging
    >>> handler = configure_logging("DEBUG")
    >>> logging.getLogger("spatialcells").removeHandler(handler)
    >>> logging.captureWarnings(False)
    """
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(name)s %(levelname)s: %(message)s")
    )
    logger.addHandler(handler)
    logger.setLevel(level)
    logging.captureWarnings(True)
    return handler


def log_environment_created(
    dimensionality: str,
    boundary_conditions: str,
    n_positions: int,
) -> None:
    """Log creation of an environment."""
    logger.debug(
        "Environment created: dimensionality=%s, boundary_conditions=%s, "
        "n_positions=%d",
        dimensionality,
        boundary_conditions,
        n_positions,
    )


def log_population_created(population_type: str, n_cells: int, name: str) -> None:
    """Log creation of a neuron population."""
    logger.debug(
        "Population created: type=%s, name=%s, n_cells=%d",
        population_type,
        name,
        n_cells,
    )


def log_history_materialized(name: str, n_entries: int) -> None:
    """Log (re)materialization of a population's history arrays."""
    logger.debug("History arrays rebuilt for %s: %d entries", name, n_entries)
