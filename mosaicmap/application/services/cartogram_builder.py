"""Application service that builds a mosaic cartogram from settings."""
import logging
from typing import Dict, Iterable, Optional

from .optimizer import MosaicOptimizer, OptimizationResult
from .seeding import GridSeeder
from ...domain.models.cartogram import MosaicCartogram, create_cartogram
from ...domain.models.coordinates import Coordinate
from ...domain.models.graph import WeightedGraph
from ...domain.services.scoring import create_scorer
from ...shared.configuration.config_manager import ConfigManager
from ...shared.configuration.settings import ApplicationSettings
from ...shared.exceptions import ConfigurationError, MosaicMapException, OptimizationError

logger = logging.getLogger(__name__)


class CartogramBuilder:
    """Creates, seeds and optimizes a grid for a graph."""

    def __init__(self, settings: Optional[ApplicationSettings] = None):
        """Initialize builder.

        Args:
            settings: Application settings; defaults are used when None

        Raises:
            ConfigurationError: If the grid or optimizer settings are invalid
        """
        self.settings = settings or ApplicationSettings()
        errors = self.settings.grid.validate() + self.settings.optimizer.validate()
        if errors:
            raise ConfigurationError(f"Invalid settings: {'; '.join(errors)}",
                                     error_code="CONFIG_INVALID", details={'errors': errors})
        self.last_result: Optional[OptimizationResult] = None

    @classmethod
    def from_config(cls, manager: ConfigManager) -> 'CartogramBuilder':
        """Create a builder from the settings held by ``manager``.

        Raises:
            ConfigurationError: If any category of the managed settings is invalid
        """
        manager.require_valid()
        return cls(manager.get_settings())

    def create_grid(self, graph: WeightedGraph) -> MosaicCartogram:
        grid_settings = self.settings.grid
        return create_cartogram(grid_settings.lattice, graph, grid_settings.cell_weight,
                                create_scorer(grid_settings.scorer))

    def build(self, graph: WeightedGraph,
              guiding_shapes: Optional[Dict[int, Iterable[Coordinate]]] = None) -> OptimizationResult:
        """Seed a fresh grid and optimize it.

        Args:
            graph: Graph to lay out
            guiding_shapes: Optional guiding shape per vertex index

        Returns:
            Result of the optimizer run

        Raises:
            OptimizationError: If seeding or optimization fails
        """
        logger.info(f"Building {self.settings.grid.lattice} cartogram for "
                    f"{graph.number_of_vertices()} vertices, {graph.number_of_edges()} edges")
        try:
            grid = GridSeeder(graph, self.create_grid(graph)).seed(guiding_shapes)
        except MosaicMapException as e:
            logger.error(f"Seeding failed: {e}")
            raise OptimizationError(f"Seeding failed: {e}", stage="seed") from e

        result = MosaicOptimizer(graph, grid, self.settings.optimizer).run()
        if self.settings.optimizer.exact_tiles:
            if not result.connected:
                logger.warning("Optimized cartogram has a disconnected region")
        elif not result.valid:
            logger.warning("Optimized cartogram still violates adjacency or connectivity")
        self.last_result = result
        return result
