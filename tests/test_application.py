"""
Application service tests for mosaicmap.

Covers seeding an initial grid, the local-search optimizer with its finishing
passes, the polishing pass, and the settings-driven cartogram builder.
"""
import pytest

from mosaicmap.application.services import (
    CartogramBuilder, GridSeeder, MosaicOptimizer, StopReason, TilePolisher
)
from mosaicmap.domain.models import (
    HexagonalCartogram, HexCoordinate, SquareCartogram, SquareCoordinate, WeightedGraph
)
from mosaicmap.shared.configuration import (
    ApplicationSettings, ConfigManager, GridSettings, OptimizerSettings
)
from mosaicmap.shared.exceptions import ConfigurationError, GridError, OptimizationError

ORIGIN = HexCoordinate(0, 0, 0)
LEFT = HexCoordinate(-1, 0, 0)
B_CELL = HexCoordinate(2, 0, 0)


def guided_grid(pair_graph, missing=()):
    """Disk at the origin for A with the disk as guiding shape, B at (2, 0, 0)."""
    grid = HexagonalCartogram(pair_graph)
    a, b = pair_graph.vertices
    grid.set_guiding_shape(a, ORIGIN.disk(1))
    grid.set_guiding_shape(b, [B_CELL])
    for c in ORIGIN.disk(1):
        if c not in missing:
            grid.set_vertex(c, a)
    grid.set_vertex(B_CELL, b)
    return grid


def walled_grid():
    """Square grid where U is one cell short and every free cell next to it touches W.

    U and W are not adjacent in the graph; V sits between them.
    """
    graph = WeightedGraph()
    u = graph.add_vertex(weight=2.0, label="U")
    v = graph.add_vertex(weight=1.0, label="V")
    w = graph.add_vertex(weight=9.0, label="W")
    graph.add_edge(u, v)
    graph.add_edge(v, w)
    grid = SquareCartogram(graph)
    grid.set_vertex(SquareCoordinate(0, 0), u)
    grid.set_vertex(SquareCoordinate(1, 0), v)
    for x, y in ((-1, -1), (-2, -1), (-2, 0), (-2, 1), (-1, 1), (-1, 2), (0, 2), (1, 2), (1, 1)):
        grid.set_vertex(SquareCoordinate(x, y), w)
    return graph, grid


class TestGridSeeder:
    """Test construction of the initial grid."""

    def test_seed_pair(self, pair_graph):
        """Test that a two-vertex graph is seeded valid and at target size."""
        grid = GridSeeder(pair_graph, HexagonalCartogram(pair_graph)).seed()
        assert grid.is_valid()
        for region in grid.regions():
            assert region.size() == region.target_size
            assert region.hits == region.size()
        assert grid.quality() == 0.0

    def test_seed_places_every_vertex(self, cycle_graph):
        """Test that every vertex receives at least one cell."""
        grid = GridSeeder(cycle_graph, SquareCartogram(cycle_graph)).seed()
        assert all(region.size() >= 1 for region in grid.regions())
        assert grid.number_of_cells() == sum(r.size() for r in grid.regions())

    def test_seed_without_positions(self):
        """Test seeding a graph whose vertices carry no positions."""
        graph = WeightedGraph.from_edges(3, [(0, 1), (1, 2)])
        grid = GridSeeder(graph, HexagonalCartogram(graph)).seed()
        assert all(region.size() == 1 for region in grid.regions())
        assert grid.get_region(0).touches(grid.get_region(1))

    def test_explicit_guiding_shapes(self, pair_graph):
        """Test that supplied guiding shapes replace the grown ones."""
        shape = list(HexCoordinate(10, 0, 0).disk(1))
        grid = GridSeeder(pair_graph, HexagonalCartogram(pair_graph)).seed({0: shape})
        assert grid.get_region(0).guiding_shape == set(shape)
        assert grid.get_region(1).guiding_shape is not None

    def test_reseeding_clears_grid(self, pair_graph):
        """Test that seeding twice gives the same number of cells."""
        seeder = GridSeeder(pair_graph, HexagonalCartogram(pair_graph))
        first = seeder.seed().number_of_cells()
        assert seeder.seed().number_of_cells() == first

    def test_grid_of_other_graph_rejected(self, pair_graph, cycle_graph):
        """Test the graph consistency check."""
        with pytest.raises(GridError):
            GridSeeder(pair_graph, HexagonalCartogram(cycle_graph))


class TestMosaicOptimizer:
    """Test the local search."""

    def test_perfect_grid_stops_without_moves(self, pair_graph):
        """Test that nothing happens to an already perfect grid."""
        result = MosaicOptimizer(pair_graph, guided_grid(pair_graph)).run()
        assert result.stop_reason is StopReason.NO_MOVES
        assert result.moves_executed == 0
        assert result.final_quality == (0.0, 0.0)
        assert result.valid
        assert not result.improved

    def test_take_fills_guiding_shape(self, pair_graph):
        """Test that a region takes the missing desired cell."""
        grid = guided_grid(pair_graph, missing={LEFT})
        result = MosaicOptimizer(pair_graph, grid).run()

        assert result.initial_quality[0] == 1.0
        assert result.final_quality == (0.0, 0.0)
        assert result.moves_executed == 1
        assert result.improved
        assert result.valid
        assert result.grid.get_vertex(LEFT) is pair_graph.get_vertex(0)
        assert result.statistics['total_hex_error'] == 0

    def test_release_drops_undesired_cell(self, pair_graph):
        """Test that a region releases a cell outside its guiding shape."""
        grid = guided_grid(pair_graph)
        extra = HexCoordinate(-2, 0, 0)
        grid.set_vertex(extra, pair_graph.get_vertex(0))
        settings = OptimizerSettings(fill_alleys=False, fill_holes=False)
        result = MosaicOptimizer(pair_graph, grid, settings).run()
        assert result.grid.get_vertex(extra) is None
        assert result.final_quality == (0.0, 0.0)

    def test_move_budget(self, pair_graph):
        """Test stopping when no move may be executed."""
        grid = guided_grid(pair_graph, missing={LEFT})
        result = MosaicOptimizer(pair_graph, grid, OptimizerSettings(max_moves=0)).run()
        assert result.stop_reason is StopReason.MOVE_BUDGET
        assert result.moves_executed == 0
        assert result.grid.get_vertex(LEFT) is None

    def test_holes_are_filled(self, hex_grid):
        """Test the hole-filling pass after the search."""
        hex_grid.remove_cell(ORIGIN)
        result = MosaicOptimizer(hex_grid.graph, hex_grid).run()
        assert result.holes_filled == 1
        assert result.grid.holes() == []
        assert result.final_quality == (0.0, 0.0)

    def test_fill_alleys(self):
        """Test that an alley between two regions is closed."""
        graph = WeightedGraph.from_edges(2, [(0, 1)])
        grid = SquareCartogram(graph)
        u, v = graph.vertices
        for c in (SquareCoordinate(-1, 0), SquareCoordinate(-1, 1), SquareCoordinate(0, 1)):
            grid.set_vertex(c, u)
        for c in (SquareCoordinate(1, 0), SquareCoordinate(1, 1)):
            grid.set_vertex(c, v)
        assert grid.is_alley(SquareCoordinate(0, 0))

        optimizer = MosaicOptimizer(graph, grid)
        assert optimizer.fill_alleys() == 1
        assert grid.get_vertex(SquareCoordinate(0, 0)) is u
        assert grid.is_valid()

    def test_invalid_start_rejected(self, hex_grid):
        """Test the optional starting-grid check."""
        hex_grid.remove_cell(HexCoordinate(1, 0, 0))
        settings = OptimizerSettings(require_valid_start=True)
        with pytest.raises(OptimizationError) as excinfo:
            MosaicOptimizer(hex_grid.graph, hex_grid, settings).run()
        assert excinfo.value.error_code == "INVALID_START"
        assert excinfo.value.details['violations']

    def test_invalid_settings_rejected(self, hex_grid):
        """Test that bad settings fail before the search starts."""
        settings = OptimizerSettings(max_no_improve_iterations=0)
        with pytest.raises(OptimizationError):
            MosaicOptimizer(hex_grid.graph, hex_grid, settings).run()

    def test_swap_moves_keep_valid_grid(self, pair_graph):
        """Test a run with swap moves enabled."""
        grid = guided_grid(pair_graph, missing={LEFT})
        result = MosaicOptimizer(pair_graph, grid, OptimizerSettings(use_swap_moves=True)).run()
        assert result.valid
        assert result.final_quality <= result.initial_quality

    def test_caller_grid_untouched(self, pair_graph):
        """Test that run() optimizes a copy of the grid it was given."""
        grid = guided_grid(pair_graph, missing={LEFT})
        before = {c: v.index for c, v in grid.cells()}
        result = MosaicOptimizer(pair_graph, grid).run()

        assert result.grid is not grid
        assert result.grid.get_vertex(LEFT) is pair_graph.get_vertex(0)
        assert {c: v.index for c, v in grid.cells()} == before
        assert grid.get_vertex(LEFT) is None

    def test_polish_restores_target_size(self, hex_grid, pair_graph):
        """Test that polishing grows a region without a guiding shape to its target."""
        hex_grid.remove_cell(LEFT)
        result = MosaicOptimizer(pair_graph, hex_grid).run()

        assert result.polish_moves == 1
        assert result.statistics['total_hex_error'] == 0
        assert result.grid.get_region(0).size() == 7
        assert result.grid.holes() == []
        assert result.valid

    def test_polish_disabled(self, hex_grid, pair_graph):
        """Test that the size error stays when polishing is switched off."""
        hex_grid.remove_cell(LEFT)
        result = MosaicOptimizer(pair_graph, hex_grid, OptimizerSettings(polish=False)).run()
        assert result.polish_moves == 0
        assert result.statistics['total_hex_error'] == 1

    def test_polish_keeps_adjacency(self):
        """Test that without exact tiles no move may break an adjacency."""
        graph, grid = walled_grid()
        assert grid.is_valid()
        settings = OptimizerSettings(fill_holes=False, fill_alleys=False)
        result = MosaicOptimizer(graph, grid, settings).run()

        assert result.polish_moves == 0
        assert result.statistics['total_hex_error'] == 1
        assert result.valid

    def test_exact_tiles(self):
        """Test that exact tiles reach every target size at the cost of adjacency."""
        graph, grid = walled_grid()
        settings = OptimizerSettings(fill_holes=False, fill_alleys=False, exact_tiles=True)
        result = MosaicOptimizer(graph, grid, settings).run()

        assert result.polish_moves == 1
        assert result.statistics['total_hex_error'] == 0
        assert [r.size() for r in result.grid.regions()] == [2, 1, 9]
        assert result.connected
        assert not result.valid


class TestTilePolisher:
    """Test the polishing pass on its own."""

    def test_best_grid_kept_when_stopped(self, hex_grid, pair_graph):
        """Test that a hook raising before a move leaves the best grid in place."""
        class Stop(Exception):
            pass

        def stop():
            raise Stop()

        hex_grid.remove_cell(LEFT)
        polisher = TilePolisher(pair_graph, hex_grid, before_move=stop)
        with pytest.raises(Stop):
            polisher.polish()
        assert polisher.moves_executed == 0
        assert polisher.grid is not hex_grid
        assert polisher.grid.total_hex_error() == 1

    def test_perfect_grid_untouched(self, hex_grid, pair_graph):
        """Test that a grid without hex error is returned as is."""
        polisher = TilePolisher(pair_graph, hex_grid)
        assert polisher.polish() is hex_grid
        assert polisher.rounds == 0

    def test_shrinks_oversized_region(self, hex_grid, pair_graph):
        """Test that surplus cells are released."""
        extra = HexCoordinate(-2, 0, 0)
        hex_grid.set_vertex(extra, pair_graph.get_vertex(0))
        grid = TilePolisher(pair_graph, hex_grid).polish()
        assert grid.total_hex_error() == 0
        assert grid.get_region(0).size() == 7
        assert grid.is_valid()


class TestCartogramBuilder:
    """Test the settings-driven pipeline."""

    def test_build_hexagonal(self, pair_graph):
        """Test building with default settings."""
        builder = CartogramBuilder()
        result = builder.build(pair_graph)
        assert isinstance(result.grid, HexagonalCartogram)
        assert result.valid
        assert builder.last_result is result

    def test_build_square(self, pair_graph):
        """Test building on the square lattice with the size scorer."""
        settings = ApplicationSettings(grid=GridSettings(lattice="square", scorer="size_deviation"))
        result = CartogramBuilder(settings).build(pair_graph)
        assert isinstance(result.grid, SquareCartogram)
        assert result.grid.scorer.name == "size_deviation"
        assert sum(r.size() for r in result.grid.regions()) == 8

    def test_build_disconnected_graph(self):
        """Test that each component keeps its target size on its own island."""
        graph = WeightedGraph()
        graph.add_vertex(weight=3.0)
        graph.add_vertex(weight=3.0)
        result = CartogramBuilder().build(graph)
        assert [r.size() for r in result.grid.regions()] == [3, 3]
        assert result.holes_filled == 0
        assert result.grid.holes() == []
        assert result.valid

    def test_invalid_settings(self):
        """Test that invalid grid settings are rejected up front."""
        settings = ApplicationSettings(grid=GridSettings(lattice="triangular"))
        with pytest.raises(ConfigurationError):
            CartogramBuilder(settings)

    def test_from_config(self, tmp_path, pair_graph):
        """Test that a builder created from a manager uses its settings."""
        manager = ConfigManager(tmp_path / "config.json")
        manager.update_optimizer_settings(polish=False)
        builder = CartogramBuilder.from_config(manager)
        assert builder.settings is manager.get_settings()
        assert builder.settings.optimizer.polish is False
        assert builder.build(pair_graph).polish_moves == 0

    def test_from_config_rejects_invalid(self, tmp_path):
        """Test that invalid managed settings are reported before building."""
        manager = ConfigManager(tmp_path / "config.json")
        manager.update_grid_settings(cell_weight=-1.0)
        with pytest.raises(ConfigurationError) as exc_info:
            CartogramBuilder.from_config(manager)
        assert exc_info.value.error_code == "CONFIG_INVALID"
