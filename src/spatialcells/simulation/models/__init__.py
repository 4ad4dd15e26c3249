"""Spatially tuned neuron populations.

This module provides:
- NeuronPopulation: shared engine (noise, history, spikes, neuron selection)
- PlaceCells: distance-based receptive fields with five response shapes
- GridCells: hexagonal grid patterns from three cosine waves
- GridCells2Cos: rectangular grid patterns from two cosine waves (2D only)

Every population evaluates rates through a TuningModel.
"""

from spatialcells.simulation.models.base import (
    InvalidNeuronSelectionError,
    NeuronConfig,
    NeuronPopulation,
    TuningModel,
    ornstein_uhlenbeck_update,
)
from spatialcells.simulation.models.distributions import (
    DISTRIBUTIONS,
    sample_distribution,
)
from spatialcells.simulation.models.grid_cells import (
    GridCellConfig,
    GridCells,
    GridCells2Cos,
    GridCellTuning,
    RectangularGridCellTuning,
)
from spatialcells.simulation.models.place_cells import (
    PLACE_CELL_RESPONSES,
    PlaceCellConfig,
    PlaceCells,
    PlaceCellTuning,
)

__all__ = [
    "DISTRIBUTIONS",
    "PLACE_CELL_RESPONSES",
    "GridCellConfig",
    "GridCellTuning",
    "GridCells",
    "GridCells2Cos",
    "InvalidNeuronSelectionError",
    "NeuronConfig",
    "NeuronPopulation",
    "PlaceCellConfig",
    "PlaceCellTuning",
    "PlaceCells",
    "RectangularGridCellTuning",
    "TuningModel",
    "ornstein_uhlenbeck_update",
    "sample_distribution",
]
