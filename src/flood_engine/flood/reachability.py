"""Connectivity-constrained flood fill ("bathtub with connectivity").

A cell is a candidate when its elevation is below the water level and
it is not a no-data cell.  The flooded set is every candidate reachable
from a candidate seed through 4-connected candidate cells, so basins
below the water line but walled off from open water stay dry.

The result depends only on (grid, water_level, seeds): each cell is
settled once through the visited mask regardless of queue order, and
raising the water level only grows the candidate set, so flooded sets
are monotonically non-decreasing in the water level.
"""

import logging
from collections import deque
from collections.abc import Iterable

import numpy as np
from numpy.typing import NDArray

from flood_engine.errors import ComputationCancelled
from flood_engine.flood.grid import ElevationGrid
from flood_engine.flood.types import CancelToken, Cell, FloodedCellSet, SeedSet

logger = logging.getLogger(__name__)

# Queue pops between cancellation checks
_CANCEL_CHECK_INTERVAL = 4096


def edge_seeds(grid: ElevationGrid, edges: Iterable[str] = ("west", "east", "north")) -> SeedSet:
    """Seed set made of every cell along the given grid edges."""
    cells: set[Cell] = set()
    for edge in edges:
        cells.update(grid.edge_cells(edge))
    return SeedSet(frozenset(cells))


def seeds_from_points(grid: ElevationGrid, points: Iterable[tuple[float, float]]) -> SeedSet:
    """Seed set from (lat, lng) open-water points.

    Raises:
        OutOfBoundsError: if a point is off the map.
    """
    return SeedSet(frozenset(grid.cell_at(lat, lng) for lat, lng in points))


def candidate_mask(grid: ElevationGrid, water_level: float) -> NDArray[np.bool_]:
    """Cells below the water level with a valid measurement."""
    return (grid.values < water_level) & ~grid.no_data_mask


def compute_flooded(
    grid: ElevationGrid,
    water_level: float,
    seeds: SeedSet | Iterable[Cell],
    cancel: CancelToken | None = None,
) -> FloodedCellSet:
    """Breadth-first flood fill from the seed cells.

    Seeds outside the grid are ignored; seeds at or above the water
    level contribute nothing.  An empty seed set gives an empty result.

    Raises:
        ComputationCancelled: if *cancel* is set while the fill runs.
    """
    candidates = candidate_mask(grid, water_level)
    rows, cols = grid.shape
    visited = np.zeros((rows, cols), dtype=bool)
    queue: deque[Cell] = deque()

    seed_cells = seeds.cells if isinstance(seeds, SeedSet) else seeds
    for i, j in seed_cells:
        if not (0 <= i < rows and 0 <= j < cols):
            logger.debug("Ignoring seed (%d, %d) outside %dx%d grid", i, j, rows, cols)
            continue
        if candidates[i, j] and not visited[i, j]:
            visited[i, j] = True
            queue.append((i, j))

    flooded: list[Cell] = []
    pops = 0

    while queue:
        i, j = queue.popleft()
        flooded.append((i, j))

        pops += 1
        if cancel is not None and pops % _CANCEL_CHECK_INTERVAL == 0 and cancel.cancelled:
            raise ComputationCancelled(f"Flood fill at {water_level} m cancelled")

        # 4-connectivity
        for ni, nj in ((i - 1, j), (i + 1, j), (i, j - 1), (i, j + 1)):
            if 0 <= ni < rows and 0 <= nj < cols and candidates[ni, nj] and not visited[ni, nj]:
                visited[ni, nj] = True
                queue.append((ni, nj))

    logger.debug(
        "Flood fill at %.2f m: %d of %d candidate cells connected",
        water_level,
        len(flooded),
        int(candidates.sum()),
    )
    return FloodedCellSet(cells=frozenset(flooded), water_level=water_level, shape=(rows, cols))


def isolated_low_cells(grid: ElevationGrid, flooded: FloodedCellSet) -> FloodedCellSet:
    """Candidate cells at the flooded set's water level that stay dry.

    These are the enclosed basins the connectivity rule excludes.
    """
    candidates = candidate_mask(grid, flooded.water_level)
    candidates &= ~flooded.to_mask()
    cells = frozenset((int(i), int(j)) for i, j in zip(*np.nonzero(candidates)))
    return FloodedCellSet(cells=cells, water_level=flooded.water_level, shape=grid.shape)


def connected_components(cells: Iterable[Cell]) -> list[list[Cell]]:
    """Split a cell set into 4-connected components."""
    remaining = set(cells)
    components: list[list[Cell]] = []

    for start in sorted(remaining):
        if start not in remaining:
            continue
        remaining.discard(start)
        stack = [start]
        component = []
        while stack:
            i, j = stack.pop()
            component.append((i, j))
            for n in ((i - 1, j), (i + 1, j), (i, j - 1), (i, j + 1)):
                if n in remaining:
                    remaining.discard(n)
                    stack.append(n)
        components.append(component)

    return components
