"""Drawable geometry and summary statistics for finished cartograms."""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np


@dataclass
class CellPolygon:
    """Boundary of one occupied cell with the colour of its vertex."""
    coordinate: Any
    vertex: int
    points: np.ndarray  # (k, 2) float array, counter-clockwise
    colour: Any = None


def cell_polygons(grid, colours: Optional[Dict[int, Any]] = None) -> List[CellPolygon]:
    """Per-cell polygons for a rendering backend.

    Args:
        grid: Cartogram to convert
        colours: Optional mapping from vertex index to any colour value

    Returns:
        One CellPolygon per occupied cell, in grid order
    """
    colours = colours or {}
    template = np.asarray(grid.default_boundary_points(), dtype=float)
    polygons = []
    for c, vertex in grid.cells():
        centre = np.asarray(c.to_point(), dtype=float)
        polygons.append(CellPolygon(
            coordinate=c,
            vertex=vertex.index,
            points=template + centre,
            colour=colours.get(vertex.index)
        ))
    return polygons


def grid_bounds(grid) -> np.ndarray:
    """Axis-aligned bounds ``[[min_x, min_y], [max_x, max_y]]`` of all cells."""
    if grid.number_of_cells() == 0:
        return np.zeros((2, 2))
    corners = np.vstack([p.points for p in cell_polygons(grid)])
    return np.array([corners.min(axis=0), corners.max(axis=0)])


def grid_statistics(grid) -> Dict[str, float]:
    """Error statistics over the regions of ``grid``.

    ``cell_error`` is the relative size error per region (target minus actual,
    divided by target).
    """
    regions = grid.regions()
    if not regions:
        return {'regions': 0, 'cells': 0, 'max_error': 0.0, 'mean_error': 0.0,
                'std_error': 0.0, 'total_hex_error': 0}

    targets = np.array([max(r.target_size, 1) for r in regions], dtype=float)
    sizes = np.array([r.size() for r in regions], dtype=float)
    errors = np.abs(targets - sizes) / targets
    return {
        'regions': len(regions),
        'cells': grid.number_of_cells(),
        'max_error': float(errors.max()),
        'mean_error': float(errors.mean()),
        'std_error': float(errors.std()),
        'total_hex_error': int(np.abs(targets - sizes).sum()),
    }
