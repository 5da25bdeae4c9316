"""Domain models."""
from .graph import Vertex, Edge, WeightedGraph, EdgeWeight, LENGTH_WEIGHTS, UNIT_WEIGHTS, EXPLICIT_WEIGHTS
from .coordinates import Coordinate, HexCoordinate, SquareCoordinate
from .cartogram import (
    MosaicCartogram, MosaicRegion, HexagonalCartogram, SquareCartogram, create_cartogram
)

__all__ = [
    'Vertex', 'Edge', 'WeightedGraph', 'EdgeWeight',
    'LENGTH_WEIGHTS', 'UNIT_WEIGHTS', 'EXPLICIT_WEIGHTS',
    'Coordinate', 'HexCoordinate', 'SquareCoordinate',
    'MosaicCartogram', 'MosaicRegion', 'HexagonalCartogram', 'SquareCartogram',
    'create_cartogram'
]
