"""Domain services."""
from .scoring import RegionScorer, SizeDeviationScorer, SymmetricDifferenceScorer, create_scorer
from .validity_checker import ValidityChecker, Violation, ViolationType
from .geometry import CellPolygon, cell_polygons, grid_bounds, grid_statistics

__all__ = [
    'RegionScorer', 'SizeDeviationScorer', 'SymmetricDifferenceScorer', 'create_scorer',
    'ValidityChecker', 'Violation', 'ViolationType',
    'CellPolygon', 'cell_polygons', 'grid_bounds', 'grid_statistics'
]
