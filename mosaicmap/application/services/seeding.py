"""Application service that builds an initial grid assignment."""
import logging
import math
from collections import deque
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ...algorithms.shortest_path import DijkstraShortestPath
from ...algorithms.spanning_tree import DirectedTreeNode, MinimumSpanningTree
from ...domain.models.cartogram import MosaicCartogram
from ...domain.models.coordinates import Coordinate
from ...domain.models.graph import EdgeWeight, LENGTH_WEIGHTS, UNIT_WEIGHTS, Vertex, WeightedGraph
from ...shared.exceptions import GridError

logger = logging.getLogger(__name__)


class GridSeeder:
    """Places every vertex on the lattice and grows regions towards their targets.

    Vertices are placed along a minimum spanning forest of the graph: roots
    near the cell containing their position, children next to their parent.
    Graph hop distances steer children away from vertices they must not touch.
    The result may still be invalid; the optimizer repairs and improves it.
    """

    def __init__(self, graph: WeightedGraph, grid: MosaicCartogram,
                 weights: EdgeWeight = LENGTH_WEIGHTS, scale: Optional[float] = None):
        """Initialize seeder.

        Args:
            graph: Graph whose vertices are placed
            grid: Cartogram to fill; it is cleared by ``seed``
            weights: Edge weights for the spanning forest
            scale: Factor from vertex positions to lattice units (derived when None)
        """
        if grid.graph is not graph:
            raise GridError("Grid was built for a different graph")
        self.graph = graph
        self.grid = grid
        self.weights = weights
        self.scale = scale if scale is not None else self._derive_scale()
        self._hops = DijkstraShortestPath(graph, UNIT_WEIGHTS)
        self._seed_cells: Dict[int, Coordinate] = {}

    def seed(self, guiding_shapes: Optional[Dict[int, Iterable[Coordinate]]] = None) -> MosaicCartogram:
        """Fill the grid.

        Args:
            guiding_shapes: Optional guiding shape per vertex index; regions
                without one get their grown seed region as guiding shape

        Returns:
            The seeded grid
        """
        self.grid.clear()
        self._seed_cells.clear()
        forest = MinimumSpanningTree(self.graph, self.weights).compute_minimum_spanning_forest()
        logger.info(f"Seeding {self.graph.number_of_vertices()} vertices from "
                    f"{len(forest)} spanning tree(s)")

        for root in forest:
            self._place_tree(root)
        self._grow_regions()

        guiding_shapes = guiding_shapes or {}
        for region in self.grid.regions():
            shape = guiding_shapes.get(region.index)
            if shape is None:
                shape = self._grow_shape(region.occupied_coordinates(), self._target(region.vertex))
            self.grid.set_guiding_shape(region.index, shape)

        logger.info(f"Seeded grid with {self.grid.number_of_cells()} cells, "
                    f"valid={self.grid.is_valid()}")
        return self.grid

    def _derive_scale(self) -> float:
        positions = [v.position for v in self.graph if v.position is not None]
        if len(positions) < 2:
            return 1.0
        xs = [p[0] for p in positions]
        ys = [p[1] for p in positions]
        area = (max(xs) - min(xs)) * (max(ys) - min(ys))
        if area <= 0:
            return 1.0
        total_cells = sum(self._target(v) for v in self.graph)
        return math.sqrt(total_cells * self.grid.cell_area / area)

    def _target(self, vertex: Vertex) -> int:
        return max(1, int(round(vertex.weight / self.grid.cell_weight)))

    def _position(self, vertex: Vertex) -> Optional[Tuple[float, float]]:
        if vertex.position is None:
            return None
        return (vertex.position[0] * self.scale, vertex.position[1] * self.scale)

    def _is_free(self, c: Coordinate) -> bool:
        return self.grid.get_vertex(c) is None

    def _place_tree(self, root: DirectedTreeNode) -> None:
        position = self._position(root.vertex)
        start = self.grid.containing_cell(*position) if position else self.grid.zero_vector()
        # roots must not touch previously placed components
        cell = self._nearest(start, lambda c: self._is_free(c) and
                             all(self._is_free(d) for d in c.neighbours()))
        self._place(root.vertex, cell)

        stack = list(reversed(root.children))
        while stack:
            node = stack.pop()
            parent = node.incoming_edge.other_vertex(node.vertex)
            self._place(node.vertex, self._child_cell(node.vertex, parent))
            stack.extend(reversed(node.children))

    def _place(self, vertex: Vertex, cell: Coordinate) -> None:
        self.grid.set_vertex(cell, vertex)
        self._seed_cells[vertex.index] = cell

    def _child_cell(self, child: Vertex, parent: Vertex) -> Coordinate:
        region = self.grid.get_region(parent)
        candidates = [c for c in region.neighbours() if self._is_free(c)]
        if not candidates:
            return self._nearest(self._seed_cells[parent.index], self._is_free)
        position = self._position(child)
        return min(candidates, key=lambda c: (self._conflict(child, c), self._distance(c, position),
                                              c.components))

    def _conflict(self, vertex: Vertex, c: Coordinate) -> float:
        """Penalty for touching vertices that are not graph neighbours of ``vertex``.

        Touching a vertex that is close in the graph is cheaper than touching
        a distant one.
        """
        penalty = 0.0
        for d in c.neighbours():
            other = self.grid.get_vertex(d)
            if other is None or other is vertex or self.graph.has_edge(vertex, other):
                continue
            hops = self._hops.compute_shortest_path_length(vertex, other)
            penalty += hops - 1 if math.isfinite(hops) else self.graph.number_of_vertices()
        return penalty

    @staticmethod
    def _distance(c: Coordinate, position: Optional[Tuple[float, float]]) -> float:
        if position is None:
            return 0.0
        x, y = c.to_point()
        return math.hypot(x - position[0], y - position[1])

    def _grow_regions(self) -> None:
        """Add cells round-robin until no region below its target can grow."""
        growing = True
        while growing:
            growing = False
            for region in self.grid.regions():
                if region.size() == 0 or region.size() >= self._target(region.vertex):
                    continue
                cell = self._growth_cell(region)
                if cell is not None:
                    self.grid.set_vertex(cell, region.vertex)
                    growing = True

    def _growth_cell(self, region) -> Optional[Coordinate]:
        vertex = region.vertex
        seed = self._seed_cells[vertex.index]
        options = []
        for c in region.neighbours():
            if not self._is_free(c):
                continue
            touched = {self.grid.get_vertex(d) for d in c.neighbours()} - {None, vertex}
            if all(self.graph.has_edge(vertex, other) for other in touched):
                options.append(c)
        if not options:
            return None
        return min(options, key=lambda c: (c.distance(seed), c.components))

    def _grow_shape(self, cells: List[Coordinate], target: int) -> Set[Coordinate]:
        """Breadth-first extension of ``cells`` to ``target`` cells, ignoring occupancy."""
        shape: Dict[Coordinate, None] = dict.fromkeys(cells)
        queue = deque(cells)
        while queue and len(shape) < target:
            c = queue.popleft()
            for d in c.neighbours():
                if d not in shape and len(shape) < target:
                    shape[d] = None
                    queue.append(d)
        return set(shape)

    def _nearest(self, start: Coordinate, accept) -> Coordinate:
        radius = 0
        while True:
            for c in start.ring(radius):
                if accept(c):
                    return c
            radius += 1
