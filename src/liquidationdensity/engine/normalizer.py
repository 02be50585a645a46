"""Accumulated grid -> sparse list of visible cells."""

from src.liquidationdensity.engine.grid import DensityGrid
from src.liquidationdensity.models.liquidation import Cell

DEFAULT_INTENSITY_EXPONENT = 0.55
DEFAULT_MIN_INTENSITY = 0.015


def normalize_grid(
    grid: DensityGrid,
    exponent: float = DEFAULT_INTENSITY_EXPONENT,
    min_intensity: float = DEFAULT_MIN_INTENSITY,
) -> list[Cell]:
    """Rescale the grid against its global maximum and emit visible cells.

    ``intensity = (value / max) ** exponent``; cells below ``min_intensity``
    are dropped. Cells are ordered by price bin, then time index.

    Returns:
        List of Cell, empty when the grid holds nothing positive
    """
    max_value = float(grid.values.max()) if grid.values.size else 0.0
    if max_value <= 0:
        return []

    cells: list[Cell] = []
    for b in range(grid.price_bins):
        price_low, price_high = grid.price_bounds(b)
        row = grid.values[b]

        for t in range(grid.time_bins):
            value = float(row[t])
            if value <= 0:
                continue

            intensity = min((value / max_value) ** exponent, 1.0)
            if intensity < min_intensity:
                continue

            cells.append(
                Cell(time_index=t, price_low=price_low, price_high=price_high, intensity=intensity)
            )

    return cells
