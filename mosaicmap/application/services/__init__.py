"""Application services."""
from .seeding import GridSeeder
from .polisher import TilePolisher
from .optimizer import MosaicOptimizer, OptimizationResult, StopReason
from .cartogram_builder import CartogramBuilder

__all__ = [
    'GridSeeder', 'TilePolisher', 'MosaicOptimizer', 'OptimizationResult', 'StopReason',
    'CartogramBuilder'
]
