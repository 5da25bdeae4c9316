"""
mosaicmap - Mosaic cartograms on hexagonal and square lattices.

Every vertex of a weighted graph becomes a connected region of lattice
cells whose size approximates the vertex weight, while regions touch
exactly when their vertices are adjacent.

Quick Start:
    from mosaicmap import WeightedGraph, CartogramBuilder

    graph = WeightedGraph()
    a = graph.add_vertex(weight=7, position=(0.0, 0.0))
    b = graph.add_vertex(weight=4, position=(3.0, 0.0))
    graph.add_edge(a, b)
    result = CartogramBuilder().build(graph)
    print(result.final_quality, result.valid)
"""

__version__ = "1.0.0"
__license__ = "MIT"

from .domain.models import (
    Vertex, Edge, WeightedGraph, LENGTH_WEIGHTS, UNIT_WEIGHTS, EXPLICIT_WEIGHTS,
    Coordinate, HexCoordinate, SquareCoordinate,
    MosaicCartogram, MosaicRegion, HexagonalCartogram, SquareCartogram, create_cartogram
)
from .domain.services import ValidityChecker, create_scorer, cell_polygons, grid_statistics
from .algorithms import IndexedPriorityQueue, MinimumSpanningTree, DijkstraShortestPath
from .algorithms.moves import ReleaseMove, SwapMove, TakeMove, SafeMoveExecutor
from .application.services import (
    GridSeeder, MosaicOptimizer, OptimizationResult, CartogramBuilder, TilePolisher
)
from .shared.configuration import ApplicationSettings, OptimizerSettings, GridSettings, ConfigManager
from .shared.exceptions import MosaicMapException

__all__ = [
    '__version__',
    'Vertex', 'Edge', 'WeightedGraph', 'LENGTH_WEIGHTS', 'UNIT_WEIGHTS', 'EXPLICIT_WEIGHTS',
    'Coordinate', 'HexCoordinate', 'SquareCoordinate',
    'MosaicCartogram', 'MosaicRegion', 'HexagonalCartogram', 'SquareCartogram', 'create_cartogram',
    'ValidityChecker', 'create_scorer', 'cell_polygons', 'grid_statistics',
    'IndexedPriorityQueue', 'MinimumSpanningTree', 'DijkstraShortestPath',
    'ReleaseMove', 'SwapMove', 'TakeMove', 'SafeMoveExecutor',
    'GridSeeder', 'MosaicOptimizer', 'OptimizationResult', 'CartogramBuilder', 'TilePolisher',
    'ApplicationSettings', 'OptimizerSettings', 'GridSettings', 'ConfigManager',
    'MosaicMapException',
]
