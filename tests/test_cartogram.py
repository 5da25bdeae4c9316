"""Tests for the cartogram grid, its regions and the validity rules."""
import pytest

from mosaicmap.domain.models import (
    HexagonalCartogram, HexCoordinate, SquareCartogram, SquareCoordinate, WeightedGraph,
    create_cartogram
)
from mosaicmap.domain.services import (
    SizeDeviationScorer, ValidityChecker, ViolationType, create_scorer
)
from mosaicmap.shared.exceptions import ConfigurationError, GraphError, GridError, ValidationError

ORIGIN = HexCoordinate(0, 0, 0)
RIGHT = HexCoordinate(1, 0, 0)


def hex_disk(radius, centre=ORIGIN):
    return list(centre.disk(radius))


class TestGridMutation:
    """Test cell assignment and region bookkeeping."""

    def test_set_vertex_returns_previous(self, pair_graph):
        """Test occupant bookkeeping of set_vertex and remove_cell."""
        grid = HexagonalCartogram(pair_graph)
        a, b = pair_graph.vertices
        assert grid.set_vertex(ORIGIN, a) is None
        assert grid.set_vertex(ORIGIN, b) is a
        assert grid.get_vertex(ORIGIN) is b
        assert grid.get_region(a).size() == 0
        assert grid.remove_cell(ORIGIN) is b
        assert grid.remove_cell(ORIGIN) is None
        assert grid.number_of_cells() == 0

    def test_equivalent_coordinates_share_a_cell(self, pair_graph):
        """Test that barycentric representations address one cell."""
        grid = HexagonalCartogram(pair_graph)
        a = pair_graph.get_vertex(0)
        grid.set_vertex(HexCoordinate(1, 1, 1), a)
        assert grid.get_vertex(ORIGIN) is a
        assert len(grid) == 1

    def test_invalid_assignments(self, pair_graph):
        """Test rejected vertices and coordinates."""
        grid = HexagonalCartogram(pair_graph)
        with pytest.raises(GridError):
            grid.set_vertex(ORIGIN, None)
        with pytest.raises(GridError):
            grid.set_vertex(SquareCoordinate(0, 0), pair_graph.get_vertex(0))
        with pytest.raises(GraphError):
            grid.set_vertex(ORIGIN, WeightedGraph().add_vertex())

    def test_region_tracking(self, hex_grid, pair_graph):
        """Test sizes, boundaries and adjacent vertices of regions."""
        a, b = pair_graph.vertices
        region_a = hex_grid.get_region(a)
        region_b = hex_grid.get_region(1)
        assert region_a.size() == 7
        assert region_b.size() == 1
        assert hex_grid.region_at(RIGHT) is region_a
        assert hex_grid.region_at(HexCoordinate(5, 0, 0)) is None

        assert len(region_a.neighbours()) == 12
        assert HexCoordinate(2, 0, 0) in region_a.neighbours()
        assert region_a.neighbour_vertices[b] == 1
        assert region_b.neighbour_vertices[a] == 1
        assert region_a.touches(region_b)
        assert region_a.is_edge(HexCoordinate(2, 0, 0))
        assert not region_a.is_edge(HexCoordinate(5, 0, 0))

    def test_bookkeeping_survives_reassignment(self, hex_grid, pair_graph):
        """Test that moving a cell between regions updates both sides."""
        a, b = pair_graph.vertices
        hex_grid.set_vertex(RIGHT, b)
        region_a, region_b = hex_grid.get_region(a), hex_grid.get_region(b)
        assert region_a.size() == 6
        assert region_b.size() == 2
        assert region_a.neighbour_vertices[b] == region_b.neighbour_vertices[a]
        assert RIGHT in region_a.neighbours()
        assert RIGHT not in region_b.neighbours()

    def test_unknown_region(self, hex_grid):
        """Test region lookup with a bad handle."""
        with pytest.raises(GraphError):
            hex_grid.get_region(5)

    def test_push(self):
        """Test shifting a line of cells one step."""
        graph = WeightedGraph.from_edges(3, [(0, 1), (1, 2)])
        grid = SquareCartogram(graph)
        u, v, w = graph.vertices
        grid.set_vertex(SquareCoordinate(0, 0), u)
        grid.set_vertex(SquareCoordinate(1, 0), v)
        grid.set_vertex(SquareCoordinate(3, 0), w)

        grid.push(SquareCoordinate(0, 0), SquareCoordinate(2, 0), SquareCoordinate(1, 0))
        assert grid.get_vertex(SquareCoordinate(0, 0)) is None
        assert grid.get_vertex(SquareCoordinate(1, 0)) is u
        assert grid.get_vertex(SquareCoordinate(2, 0)) is v
        assert grid.get_vertex(SquareCoordinate(3, 0)) is None
        assert grid.get_region(w).size() == 0

    def test_clear_and_duplicate(self, hex_grid, pair_graph):
        """Test independent copies and clearing."""
        a = pair_graph.get_vertex(0)
        hex_grid.set_guiding_shape(a, hex_disk(1))
        copy = hex_grid.duplicate()
        hex_grid.clear()

        assert hex_grid.number_of_cells() == 0
        assert copy.number_of_cells() == 8
        assert copy.get_region(a).hits == 7
        assert copy.is_valid()

    def test_translate_regions(self, hex_grid, pair_graph):
        """Test translating a region with its guiding shape."""
        b = pair_graph.get_vertex(1)
        hex_grid.set_guiding_shape(b, [HexCoordinate(2, 0, 0)])
        hex_grid.translate_regions([1], HexCoordinate(1, 0, 0))
        region = hex_grid.get_region(b)
        assert region.occupied_coordinates() == [HexCoordinate(3, 0, 0)]
        assert region.guiding_shape == {HexCoordinate(3, 0, 0)}
        assert region.hits == 1

    def test_create_cartogram(self, pair_graph):
        """Test the lattice factory."""
        assert isinstance(create_cartogram("hexagonal", pair_graph), HexagonalCartogram)
        assert isinstance(create_cartogram("square", pair_graph), SquareCartogram)
        with pytest.raises(GridError):
            create_cartogram("triangular", pair_graph)
        with pytest.raises(ValidationError):
            HexagonalCartogram(pair_graph, cell_weight=0)


    def test_preserving_order(self, hex_grid, pair_graph):
        """Test that vacated and refilled cells return to their old position."""
        a, b = pair_graph.vertices
        region = hex_grid.get_region(a)
        cells = hex_grid.coordinates()
        occupied = region.occupied_coordinates()
        extra = HexCoordinate(-3, 0, 0)
        with hex_grid.preserving_order():
            hex_grid.remove_cell(ORIGIN)
            hex_grid.set_vertex(RIGHT, b)
            hex_grid.set_vertex(RIGHT, a)
            hex_grid.set_vertex(ORIGIN, a)
            hex_grid.set_vertex(extra, b)
        assert hex_grid.coordinates() == cells + [extra]
        assert region.occupied_coordinates() == occupied


class TestValidity:
    """Test connectivity and adjacency checks on the hand-built 7-cell region."""

    def test_starting_layout_is_valid(self, hex_grid):
        """Test that the disk plus one touching neighbour is valid."""
        assert hex_grid.is_valid()
        assert hex_grid.is_connected()
        assert ValidityChecker().report(hex_grid) == []

    def test_removing_connecting_cell_breaks_adjacency(self, hex_grid, pair_graph):
        """Test the loss of the only cell touching the neighbour."""
        a = pair_graph.get_vertex(0)
        hex_grid.remove_cell(RIGHT)
        region = hex_grid.get_region(a)
        assert region.is_connected()
        assert not hex_grid.is_valid(region)
        assert not hex_grid.is_valid()

        kinds = {v.kind for v in ValidityChecker().report(hex_grid)}
        assert kinds == {ViolationType.MISSING_ADJACENCY}

    def test_splitting_region_breaks_connectivity(self, hex_grid, pair_graph):
        """Test that a region cut in two is disconnected."""
        a = pair_graph.get_vertex(0)
        for c in (ORIGIN, HexCoordinate(0, -1, 0), HexCoordinate(0, 1, 0)):
            hex_grid.remove_cell(c)
        region = hex_grid.get_region(a)
        assert not region.is_connected()
        assert not hex_grid.is_connected(region)
        assert not hex_grid.is_valid()
        assert ViolationType.DISCONNECTED in {v.kind for v in ValidityChecker().report(hex_grid)}

    def test_foreign_adjacency(self):
        """Test that touching a non-neighbour is invalid."""
        graph = WeightedGraph.from_edges(3, [(0, 1)])
        grid = SquareCartogram(graph)
        grid.set_vertex(SquareCoordinate(0, 0), graph.get_vertex(0))
        grid.set_vertex(SquareCoordinate(1, 0), graph.get_vertex(1))
        assert grid.is_valid()
        grid.set_vertex(SquareCoordinate(-1, 0), graph.get_vertex(2))
        assert not grid.is_valid()
        violations = ValidityChecker().report(grid)
        assert {v.kind for v in violations} == {ViolationType.FOREIGN_ADJACENCY}
        assert {(v.vertex, v.other_vertex) for v in violations} == {(0, 2), (2, 0)}

    def test_empty_regions(self, pair_graph):
        """Test that empty regions are skipped by the global check only."""
        grid = HexagonalCartogram(pair_graph)
        assert grid.is_valid()
        assert not grid.is_valid(grid.get_region(0))
        report = ValidityChecker(report_empty_regions=True).report(grid)
        assert [v.kind for v in report] == [ViolationType.EMPTY_REGION] * 2

    def test_alley(self):
        """Test a cell with one open side between two regions."""
        graph = WeightedGraph.from_edges(2, [(0, 1)])
        grid = SquareCartogram(graph)
        u, v = graph.vertices
        grid.set_vertex(SquareCoordinate(1, 0), u)
        grid.set_vertex(SquareCoordinate(-1, 0), u)
        grid.set_vertex(SquareCoordinate(0, 1), v)
        assert grid.is_alley(SquareCoordinate(0, 0))
        grid.set_vertex(SquareCoordinate(0, 1), u)
        assert not grid.is_alley(SquareCoordinate(0, 0))


class TestQuality:
    """Test region scores and grid quality."""

    def test_perfect_sizes(self, hex_grid):
        """Test zero quality when every region has its target size."""
        assert hex_grid.quality() == 0.0
        assert hex_grid.quality_pair() == (0.0, 0.0)
        assert hex_grid.total_hex_error() == 0

    def test_guiding_shape_scores(self, hex_grid, pair_graph):
        """Test the symmetric difference against a guiding shape."""
        a = pair_graph.get_vertex(0)
        region = hex_grid.get_region(a)
        shape = hex_disk(1, HexCoordinate(-1, 0, 0))
        hex_grid.set_guiding_shape(a, shape)

        overlap = len(set(shape) & set(hex_disk(1)))
        assert region.hits == overlap
        assert region.symmetric_difference() == 14 - 2 * overlap
        assert region.is_desired(HexCoordinate(-2, 0, 0))
        assert not region.is_desired(RIGHT)
        assert hex_grid.quality(normalize=False) == 14 - 2 * overlap
        assert hex_grid.quality() == pytest.approx((14 - 2 * overlap) / 7)

    def test_best_overlay_recovers_alignment(self, hex_grid, pair_graph):
        """Test that the best overlay moves a shifted guide back onto its region."""
        a = pair_graph.get_vertex(0)
        region = hex_grid.get_region(a)
        hex_grid.set_guiding_shape(a, hex_disk(1, HexCoordinate(0, 2, 0)))
        region.compute_best_overlay()
        assert region.hits == 7
        assert region.symmetric_difference() == 0

    def test_size_deviation_scorer(self, pair_graph):
        """Test quality with the size-only scorer."""
        grid = HexagonalCartogram(pair_graph, scorer=SizeDeviationScorer())
        grid.set_vertex(ORIGIN, pair_graph.get_vertex(0))
        assert grid.get_region(0).symmetric_difference() == 6
        assert grid.quality(normalize=False) == 7
        assert grid.quality() == pytest.approx(6 / 7 + 1.0)

    def test_target_size_from_cell_weight(self, pair_graph):
        """Test targets derived from vertex weights."""
        grid = HexagonalCartogram(pair_graph, cell_weight=2.0)
        assert grid.get_region(0).target_size == 4
        assert grid.get_region(1).target_size == 1

    def test_unknown_scorer(self):
        """Test the scorer factory."""
        assert create_scorer("size_deviation").name == "size_deviation"
        with pytest.raises(ConfigurationError):
            create_scorer("area")


class TestHoles:
    """Test hole and hole-boundary detection."""

    def test_enclosed_cell_is_a_hole(self, hex_grid):
        """Test an empty centre surrounded by one region."""
        hex_grid.remove_cell(ORIGIN)
        holes = hex_grid.holes()
        assert holes == [{ORIGIN}]
        assert hex_grid.hole_boundaries() == [{ORIGIN}]

    def test_no_holes_in_solid_layout(self, hex_grid):
        """Test a layout without enclosed cells."""
        assert hex_grid.holes() == []

    def test_large_hole_expanded(self, pair_graph):
        """Test that holes contain interior cells beyond their boundary."""
        grid = HexagonalCartogram(pair_graph)
        a = pair_graph.get_vertex(0)
        for c in ORIGIN.ring(3):
            grid.set_vertex(c, a)
        holes = grid.holes()
        assert len(holes) == 1
        assert holes[0] == set(ORIGIN.disk(2))
        assert sum(len(b) for b in grid.hole_boundaries()) == 12

    def test_separate_islands_are_not_holes(self, pair_graph):
        """Test that the outer border of a second island is not a hole."""
        grid = HexagonalCartogram(pair_graph)
        a, b = pair_graph.vertices
        grid.set_vertex(ORIGIN, a)
        grid.set_vertex(HexCoordinate(10, 0, 0), b)
        assert grid.hole_boundaries() == []
        assert grid.holes() == []

    def test_hole_inside_second_island(self, pair_graph):
        """Test that a hole is found in an island that is not the leftmost one."""
        grid = HexagonalCartogram(pair_graph)
        a, b = pair_graph.vertices
        centre = HexCoordinate(10, 0, 0)
        grid.set_vertex(ORIGIN, a)
        for c in centre.ring(1):
            grid.set_vertex(c, b)
        assert grid.hole_boundaries() == [{centre}]
        assert grid.holes() == [{centre}]

    def test_empty_grid_has_no_holes(self, pair_graph):
        """Test hole queries on a grid without cells."""
        assert HexagonalCartogram(pair_graph).holes() == []


class TestPersistence:
    """Test the plain-text coordinate format."""

    def test_export_import(self, hex_grid, pair_graph, tmp_path):
        """Test that an exported grid reads back identically."""
        path = tmp_path / "grid.txt"
        hex_grid.export_coordinates(path)
        text = path.read_text()
        assert text.startswith("ID 0\n0 0 0\n")

        restored = HexagonalCartogram(pair_graph)
        restored.import_coordinates(path)
        assert sorted(map(repr, restored.coordinates())) == sorted(map(repr, hex_grid.coordinates()))
        for c, vertex in hex_grid.cells():
            assert restored.get_vertex(c) is vertex

    def test_malformed_file(self, pair_graph, tmp_path):
        """Test that bad input raises GridError."""
        path = tmp_path / "bad.txt"
        path.write_text("1 0 0\n")
        with pytest.raises(GridError):
            HexagonalCartogram(pair_graph).import_coordinates(path)

        path.write_text("ID 9\n0 0 0\n")
        with pytest.raises(GridError):
            HexagonalCartogram(pair_graph).import_coordinates(path)
