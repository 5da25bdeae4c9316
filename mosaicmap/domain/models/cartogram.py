"""Mosaic cartogram: the mapping from lattice cells to graph vertices."""
import logging
import math
from abc import ABC, abstractmethod
from collections import Counter, deque
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple, Type, Union

from .coordinates import Coordinate, HexCoordinate, SquareCoordinate, SQRT3
from .graph import Vertex, WeightedGraph
from ..services.scoring import RegionScorer, SymmetricDifferenceScorer
from ...shared.exceptions import GraphError, GridError
from ...shared.utils.validation_utils import validate_positive_number

logger = logging.getLogger(__name__)


def _discard_one(counter: Counter, key) -> None:
    count = counter.get(key, 0)
    if count <= 1:
        counter.pop(key, None)
    else:
        counter[key] = count - 1


def _reordered(cells: dict, order: List) -> dict:
    result = {c: cells[c] for c in order if c in cells}
    result.update(cells)
    return result


class MosaicRegion:
    """The cells currently assigned to one vertex.

    Maintained incrementally by the owning cartogram: every cell assignment
    updates the boundary multiset, the multiset of adjacent foreign vertices
    and the number of cells that fall inside the guiding shape. Connectivity
    is recomputed lazily by flood fill.
    """

    def __init__(self, grid: 'MosaicCartogram', vertex: Vertex):
        self.grid = grid
        self.vertex = vertex
        self._cells: Dict[Coordinate, None] = {}
        self._boundary: Counter = Counter()
        self._neighbour_vertices: Counter = Counter()
        self.guiding_shape: Optional[Set[Coordinate]] = None
        self.total_translation: Coordinate = grid.coordinate_type.zero()
        self.hits = 0
        self._connected = True
        self._connectivity_dirty = False

    @property
    def index(self) -> int:
        return self.vertex.index

    @property
    def target_size(self) -> int:
        """Desired number of cells."""
        if self.guiding_shape is not None:
            return len(self.guiding_shape)
        return max(1, int(round(self.vertex.weight / self.grid.cell_weight)))

    def size(self) -> int:
        return len(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self) -> Iterator[Coordinate]:
        return iter(self._cells)

    def __contains__(self, c: Coordinate) -> bool:
        return c in self._cells

    def occupied_coordinates(self) -> List[Coordinate]:
        return list(self._cells)

    def neighbours(self) -> Set[Coordinate]:
        """Cells outside the region that share a side with it."""
        return set(self._boundary)

    @property
    def neighbour_vertices(self) -> Counter:
        """Foreign vertices adjacent to the region, counted per shared side."""
        return self._neighbour_vertices

    def is_edge(self, c: Coordinate) -> bool:
        inside = outside = False
        for d in c.neighbours():
            if d in self._cells:
                inside = True
            else:
                outside = True
            if inside and outside:
                return True
        return False

    def touches(self, other: 'MosaicRegion') -> bool:
        return any(c in other for c in self._boundary)

    def is_connected(self) -> bool:
        if self._connectivity_dirty:
            self._connected = self._flood_fill_connected()
            self._connectivity_dirty = False
        return self._connected

    def is_adjacency_correct(self) -> bool:
        """True when the region touches exactly the graph neighbours of its vertex."""
        if self.vertex.degree != len(self._neighbour_vertices):
            return False
        return all(v in self._neighbour_vertices for v in self.vertex.neighbours())

    def is_valid(self) -> bool:
        return self.is_connected() and self.is_adjacency_correct()

    def is_desired(self, c: Coordinate) -> bool:
        """Whether ``c`` lies inside the guiding shape (always False without one)."""
        return self.guiding_shape is not None and c in self.guiding_shape

    def symmetric_difference(self) -> int:
        return self.grid.scorer.score(self)

    def hex_error(self) -> int:
        """Target size minus actual size."""
        return self.target_size - self.size()

    def continuous_barycenter(self) -> Tuple[float, float]:
        if not self._cells:
            raise GridError(f"Region of {self.vertex} is empty", details={'vertex': self.index})
        xs, ys = zip(*(c.to_point() for c in self._cells))
        return (sum(xs) / len(xs), sum(ys) / len(ys))

    def barycenter(self) -> Coordinate:
        return self.grid.containing_cell(*self.continuous_barycenter())

    def set_guiding_shape(self, cells: Optional[Iterable[Coordinate]]) -> None:
        """Replace the guiding shape and recount the hits."""
        self.guiding_shape = None if cells is None else set(cells)
        self.total_translation = self.grid.coordinate_type.zero()
        self._recount_hits()

    def translate_guiding_shape(self, t: Coordinate) -> None:
        if self.guiding_shape is not None:
            self.guiding_shape = {c.plus(t) for c in self.guiding_shape}
        self.total_translation = self.total_translation.plus(t)
        self._recount_hits()

    def compute_best_overlay(self, radius: int = 5) -> Coordinate:
        """Move the guiding shape to the offset (near the barycentres) with the most hits.

        Returns:
            The translation applied to the guiding shape
        """
        if not self.guiding_shape or not self._cells:
            return self.grid.coordinate_type.zero()
        center = self.guiding_shape_barycenter().minus(self.barycenter())
        best, best_hits = center, -1
        for offset in center.disk(radius):
            hits = sum(1 for c in self._cells if c.plus(offset) in self.guiding_shape)
            if hits > best_hits:
                best, best_hits = offset, hits
        translation = best.times(-1)
        self.translate_guiding_shape(translation)
        return translation

    def guiding_shape_barycenter(self) -> Coordinate:
        points = [c.to_point() for c in self.guiding_shape]
        return self.grid.containing_cell(sum(p[0] for p in points) / len(points),
                                         sum(p[1] for p in points) / len(points))

    def _recount_hits(self) -> None:
        if self.guiding_shape is None:
            self.hits = 0
        else:
            self.hits = sum(1 for c in self._cells if c in self.guiding_shape)

    def _add(self, c: Coordinate) -> None:
        if c in self._cells:
            raise GridError(f"Cell {c} already belongs to {self.vertex}", coordinate=c)
        neighbours = c.neighbours()
        if not self._cells:
            self._connected = True
            self._connectivity_dirty = False
        elif not self._connected or not any(d in self._cells for d in neighbours):
            self._connectivity_dirty = True

        self._cells[c] = None
        self._boundary.pop(c, None)
        for d in neighbours:
            if d not in self._cells:
                self._boundary[d] += 1
        if self.is_desired(c):
            self.hits += 1

        for d in neighbours:
            other = self.grid.get_vertex(d)
            if other is not None and other is not self.vertex:
                self._neighbour_vertices[other] += 1
                self.grid.get_region(other)._neighbour_vertices[self.vertex] += 1

    def _remove(self, c: Coordinate) -> None:
        if c not in self._cells:
            raise GridError(f"Cell {c} does not belong to {self.vertex}", coordinate=c)
        del self._cells[c]
        inside = 0
        for d in c.neighbours():
            if self._boundary.get(d, 0) > 0:
                _discard_one(self._boundary, d)
            else:
                inside += 1
        if inside:
            self._boundary[c] = inside
        if self.is_desired(c):
            self.hits -= 1
        self._connectivity_dirty = True

        for d in c.neighbours():
            other = self.grid.get_vertex(d)
            if other is not None and other is not self.vertex:
                _discard_one(self._neighbour_vertices, other)
                _discard_one(self.grid.get_region(other)._neighbour_vertices, self.vertex)

    def _clear(self) -> None:
        self._cells.clear()
        self._boundary.clear()
        self._neighbour_vertices.clear()
        self.hits = 0
        self._connected = True
        self._connectivity_dirty = False

    def _flood_fill_connected(self) -> bool:
        if len(self._cells) <= 1:
            return True
        start = next(iter(self._cells))
        seen = {start}
        queue = deque([start])
        while queue:
            c = queue.popleft()
            for d in c.neighbours():
                if d in self._cells and d not in seen:
                    seen.add(d)
                    queue.append(d)
        return len(seen) == len(self._cells)

    def __repr__(self) -> str:
        return f"MosaicRegion({self.vertex}, size={self.size()}, target={self.target_size})"


class MosaicCartogram(ABC):
    """Mapping from lattice coordinates to graph vertices.

    The grid owns the mapping and one ``MosaicRegion`` per graph vertex.
    ``set_vertex`` and ``remove_cell`` never check validity: moves mutate the
    grid speculatively and may leave it invalid between sub-steps. Validity is
    queried explicitly with ``is_valid``.
    """

    coordinate_type: Type[Coordinate] = Coordinate

    def __init__(self, graph: WeightedGraph, cell_weight: float = 1.0,
                 scorer: Optional[RegionScorer] = None):
        validate_positive_number(cell_weight, "cell_weight")
        self.graph = graph
        self.cell_weight = cell_weight
        self.scorer = scorer or SymmetricDifferenceScorer()
        self._cells: Dict[Coordinate, Vertex] = {}
        self._regions: List[MosaicRegion] = [MosaicRegion(self, v) for v in graph.vertices]

    # ------------------------------------------------------------------
    # Lattice geometry
    # ------------------------------------------------------------------

    @abstractmethod
    def containing_cell(self, px: float, py: float) -> Coordinate:
        """Coordinate of the cell that contains the point ``(px, py)``."""

    @abstractmethod
    def default_boundary_points(self) -> List[Tuple[float, float]]:
        """Corners of a cell centred on the origin, counter-clockwise."""

    @property
    @abstractmethod
    def cell_area(self) -> float:
        pass

    def cell_boundary(self, c: Coordinate) -> List[Tuple[float, float]]:
        """Corners of cell ``c``; corner ``i`` starts the side shared with neighbour ``i``."""
        cx, cy = c.to_point()
        return [(cx + x, cy + y) for x, y in self.default_boundary_points()]

    def unit_vectors(self) -> Tuple[Coordinate, ...]:
        return self.coordinate_type.unit_vectors()

    def zero_vector(self) -> Coordinate:
        return self.coordinate_type.zero()

    def neighbours(self, c: Coordinate) -> Tuple[Coordinate, ...]:
        return c.neighbours()

    # ------------------------------------------------------------------
    # Cell mapping
    # ------------------------------------------------------------------

    def get_vertex(self, c: Coordinate) -> Optional[Vertex]:
        return self._cells.get(c)

    def set_vertex(self, c: Coordinate, vertex: Vertex) -> Optional[Vertex]:
        """Assign cell ``c`` to ``vertex``.

        Returns:
            The previous occupant, or None when the cell was empty

        Raises:
            GridError: If the coordinate or vertex is missing or of the wrong kind
            GraphError: If the vertex belongs to a different graph
        """
        self._check_coordinate(c)
        if vertex is None:
            raise GridError(f"Cannot assign cell {c} to None; use remove_cell", coordinate=c)
        if self.graph.get_vertex(vertex.index) is not vertex:
            raise GraphError(f"Vertex {vertex} does not belong to this cartogram's graph",
                             vertex_index=vertex.index)

        old = self._cells.get(c)
        if old is vertex:
            return old
        if old is not None:
            self._regions[old.index]._remove(c)
        self._cells[c] = vertex
        self._regions[vertex.index]._add(c)
        return old

    def remove_cell(self, c: Coordinate) -> Optional[Vertex]:
        """Vacate cell ``c``, returning its previous occupant (or None)."""
        old = self._cells.get(c)
        if old is None:
            return None
        self._regions[old.index]._remove(c)
        del self._cells[c]
        return old

    def push(self, first: Coordinate, last: Coordinate, direction: Coordinate) -> None:
        """Shift the cells from ``first`` to ``last`` one step along ``direction``.

        The cell just beyond ``last`` is cleared first and ``first`` ends up
        empty. ``direction`` must be a unit vector and ``last`` must be
        reachable from ``first`` by repeatedly adding ``direction``; neither is
        checked.
        """
        current = last
        target = current.plus(direction)
        if self.get_vertex(target) is not None:
            self.remove_cell(target)
        while target != first:
            vertex = self.get_vertex(current)
            if vertex is not None:
                self.remove_cell(current)
                self.set_vertex(target, vertex)
            current = current.minus(direction)
            target = target.minus(direction)

    def coordinates(self) -> List[Coordinate]:
        return list(self._cells)

    def cells(self) -> List[Tuple[Coordinate, Vertex]]:
        return list(self._cells.items())

    def number_of_cells(self) -> int:
        return len(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, c: Coordinate) -> bool:
        return c in self._cells

    def clear(self) -> None:
        self._cells.clear()
        for region in self._regions:
            region._clear()

    @contextmanager
    def preserving_order(self):
        """Restore the iteration order of the grid and its regions on exit.

        A cell that is vacated and assigned again moves to the end of the
        iteration order; speculative changes undone inside the block leave
        ``cells()`` and ``occupied_coordinates()`` in their original order.
        Cells that are new when the block exits come last.
        """
        cell_order = list(self._cells)
        region_orders = [list(region._cells) for region in self._regions]
        try:
            yield self
        finally:
            self._cells = _reordered(self._cells, cell_order)
            for region, order in zip(self._regions, region_orders):
                region._cells = _reordered(region._cells, order)

    # ------------------------------------------------------------------
    # Regions
    # ------------------------------------------------------------------

    def regions(self) -> List[MosaicRegion]:
        return list(self._regions)

    def number_of_regions(self) -> int:
        return len(self._regions)

    def get_region(self, key: Union[Vertex, int]) -> MosaicRegion:
        index = key if isinstance(key, int) else key.index
        if index < 0 or index >= len(self._regions):
            raise GraphError(f"No region for vertex handle {index}", vertex_index=index)
        return self._regions[index]

    def region_at(self, c: Coordinate) -> Optional[MosaicRegion]:
        vertex = self.get_vertex(c)
        return None if vertex is None else self._regions[vertex.index]

    def set_guiding_shape(self, key: Union[Vertex, int], cells: Optional[Iterable[Coordinate]]) -> None:
        self.get_region(key).set_guiding_shape(cells)

    def translate_regions(self, indices: Iterable[int], t: Coordinate) -> None:
        """Translate whole regions (and their guiding shapes) by ``t``.

        Cells of other regions that end up underneath are taken over.
        """
        moved = []
        for index in list(indices):
            region = self.get_region(index)
            for c in region.occupied_coordinates():
                moved.append((c.plus(t), region.vertex))
                self.remove_cell(c)
            region.translate_guiding_shape(t)
        for c, vertex in moved:
            self.set_vertex(c, vertex)

    # ------------------------------------------------------------------
    # Validity and quality
    # ------------------------------------------------------------------

    def is_valid(self, region: Optional[MosaicRegion] = None) -> bool:
        """Check connectivity and adjacency of every non-empty region, or of one region.

        The scoped form only re-checks ``region``, the only region whose
        validity can change after a localized mutation.
        """
        if region is not None:
            return region.is_valid()
        return all(r.is_valid() for r in self._regions if r.size() > 0)

    def is_connected(self, region: Optional[MosaicRegion] = None) -> bool:
        if region is not None:
            return region.is_connected()
        return all(r.is_connected() for r in self._regions)

    def is_alley(self, c: Coordinate) -> bool:
        """Exactly one neighbour of ``c`` is empty and the rest belong to several vertices."""
        neighbours = c.neighbours()
        occupants = [self.get_vertex(d) for d in neighbours]
        occupied = [v for v in occupants if v is not None]
        if len(occupied) != len(neighbours) - 1:
            return False
        return any(v is not occupied[0] for v in occupied)

    def quality(self, normalize: bool = True) -> float:
        """Sum of the region scores; lower is better."""
        if normalize:
            return sum(self.scorer.normalized_score(r) for r in self._regions)
        return float(sum(abs(self.scorer.score(r)) for r in self._regions))

    def quality_pair(self) -> Tuple[float, float]:
        return (self.quality(False), self.quality(True))

    def total_hex_error(self) -> int:
        return sum(abs(r.hex_error()) for r in self._regions)

    # ------------------------------------------------------------------
    # Holes
    # ------------------------------------------------------------------

    def hole_boundaries(self, coordinates: Optional[Iterable[Coordinate]] = None) -> List[Set[Coordinate]]:
        """Empty cells touching ``coordinates`` that are not connected to the outside.

        Defaults to all occupied cells. Every returned set is one enclosed
        component of the empty cells bordering the occupied area. The outside
        is flood filled inside a frame around the bounding box of the cells,
        so separate islands never count as holes of each other.
        """
        occupied = set(self._cells if coordinates is None else coordinates)
        border: Dict[Coordinate, None] = {}
        for c in occupied:
            for d in c.connected_vicinity():
                if d not in occupied:
                    border[d] = None
        if not border:
            return []

        in_frame = self._frame(occupied)
        start = min(border, key=lambda c: c.to_point()[0])
        outside = {start}
        queue = deque([start])
        while queue:
            c = queue.popleft()
            for d in c.neighbours():
                if d not in outside and d not in occupied and in_frame(d):
                    outside.add(d)
                    queue.append(d)

        components = []
        seen: Set[Coordinate] = set(outside)
        for start in border:
            if start in seen:
                continue
            component = {start}
            seen.add(start)
            queue = deque([start])
            while queue:
                c = queue.popleft()
                for d in c.neighbours():
                    if d in border and d not in seen:
                        seen.add(d)
                        component.add(d)
                        queue.append(d)
            components.append(component)
        return components

    def holes(self, coordinates: Optional[Iterable[Coordinate]] = None) -> List[Set[Coordinate]]:
        """Every enclosed empty area, expanded from its boundary to all of its cells."""
        occupied = set(self._cells if coordinates is None else coordinates)
        boundaries = self.hole_boundaries(occupied)
        if not boundaries:
            return []
        in_frame = self._frame(occupied)
        holes = []
        for boundary in boundaries:
            hole = set(boundary)
            stack = list(boundary)
            while stack:
                c = stack.pop()
                for d in c.neighbours():
                    if d not in hole and d not in occupied and in_frame(d):
                        hole.add(d)
                        stack.append(d)
            holes.append(hole)
        return holes

    def _frame(self, occupied: Set[Coordinate]):
        """Predicate for cells within two cell spacings of the bounding box of ``occupied``."""
        spacing = max(math.hypot(*d.to_point()) for d in self.zero_vector().neighbours())
        margin = 2 * spacing
        points = [c.to_point() for c in occupied]
        min_x = min(p[0] for p in points) - margin
        max_x = max(p[0] for p in points) + margin
        min_y = min(p[1] for p in points) - margin
        max_y = max(p[1] for p in points) + margin

        def in_frame(c: Coordinate) -> bool:
            x, y = c.to_point()
            return min_x <= x <= max_x and min_y <= y <= max_y
        return in_frame

    # ------------------------------------------------------------------
    # Copies and persistence
    # ------------------------------------------------------------------

    def duplicate(self) -> 'MosaicCartogram':
        """Independent copy sharing the (read-only) graph and scorer."""
        copy = type(self)(self.graph, self.cell_weight, self.scorer)
        for region, other in zip(self._regions, copy._regions):
            other.guiding_shape = None if region.guiding_shape is None else set(region.guiding_shape)
            other.total_translation = region.total_translation
        for c, vertex in self._cells.items():
            copy.set_vertex(c, vertex)
        return copy

    def export_coordinates(self, path: Union[str, Path]) -> None:
        """Write every region as an ``ID n`` block.

        Each block holds the guiding shape translation followed by one line
        of integer components per cell.
        """
        lines = []
        for region in self._regions:
            lines.append(f"ID {region.index}")
            lines.append(" ".join(str(v) for v in region.total_translation.normalize().components))
            for c in region:
                lines.append(" ".join(str(v) for v in c.components))
        Path(path).write_text("\n".join(lines) + "\n", encoding="utf-8")
        logger.debug(f"Exported {len(self._cells)} cells to {path}")

    def import_coordinates(self, path: Union[str, Path]) -> None:
        """Read cells written by ``export_coordinates`` into this grid.

        Raises:
            GridError: If the file is malformed
        """
        vertex = None
        expect_translation = False
        count = 0
        for line_number, raw in enumerate(Path(path).read_text(encoding="utf-8").splitlines(), 1):
            line = raw.strip()
            if not line:
                continue
            try:
                if line.startswith("ID"):
                    vertex = self.graph.get_vertex(int(line[2:]))
                    expect_translation = True
                elif vertex is None:
                    raise ValueError("cell listed before any ID line")
                elif expect_translation:
                    self.get_region(vertex).translate_guiding_shape(self.coordinate_type.parse(line.split()))
                    expect_translation = False
                else:
                    self.set_vertex(self.coordinate_type.parse(line.split()), vertex)
                    count += 1
            except (ValueError, GraphError) as e:
                raise GridError(f"{path}:{line_number}: {e}", details={'line': raw}) from e
        logger.debug(f"Imported {count} cells from {path}")

    def _check_coordinate(self, c: Coordinate) -> None:
        if not isinstance(c, self.coordinate_type):
            raise GridError(f"Expected {self.coordinate_type.__name__}, got {type(c).__name__}",
                            coordinate=c)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(cells={len(self._cells)}, regions={len(self._regions)})"


class HexagonalCartogram(MosaicCartogram):
    """Pointy-top hexagons with unit side length."""

    coordinate_type = HexCoordinate

    SIDE = 1.0
    APOTHEM = SQRT3 / 2
    TAN30 = SQRT3 / 3
    _BOUNDARY = [(math.cos(i * math.pi / 3 - math.pi / 6), math.sin(i * math.pi / 3 - math.pi / 6))
                 for i in range(6)]

    @property
    def cell_area(self) -> float:
        return 6 * self.SIDE * self.SIDE * SQRT3 / 4

    def default_boundary_points(self) -> List[Tuple[float, float]]:
        return [(self.SIDE * x, self.SIDE * y) for x, y in self._BOUNDARY]

    def containing_cell(self, px: float, py: float) -> HexCoordinate:
        y = -int(math.floor((py + 0.5 * self.SIDE) / (1.5 * self.SIDE)))
        x = int(math.floor((px + y * self.APOTHEM + self.APOTHEM) / (2 * self.APOTHEM)))
        box_top_x = -self.APOTHEM * y + 2 * self.APOTHEM * x
        box_top_y = -1.5 * self.SIDE * y + self.SIDE
        lhs = py - box_top_y
        rhs = self.TAN30 * (px - box_top_x)
        if lhs > rhs:
            x -= 1
            y -= 1
        elif lhs > -rhs:
            y -= 1
        return HexCoordinate(x, y, 0)


class SquareCartogram(MosaicCartogram):
    """Unit squares with four-neighbour adjacency."""

    coordinate_type = SquareCoordinate

    @property
    def cell_area(self) -> float:
        return 1.0

    def default_boundary_points(self) -> List[Tuple[float, float]]:
        return [(0.5, -0.5), (0.5, 0.5), (-0.5, 0.5), (-0.5, -0.5)]

    def containing_cell(self, px: float, py: float) -> SquareCoordinate:
        return SquareCoordinate(int(round(px)), int(round(py)))


def create_cartogram(lattice: str, graph: WeightedGraph, cell_weight: float = 1.0,
                     scorer: Optional[RegionScorer] = None) -> MosaicCartogram:
    """Create an empty cartogram for the named lattice ("hexagonal" or "square")."""
    if lattice == "hexagonal":
        return HexagonalCartogram(graph, cell_weight, scorer)
    if lattice == "square":
        return SquareCartogram(graph, cell_weight, scorer)
    raise GridError(f"Unknown lattice '{lattice}'", details={'lattice': lattice})
