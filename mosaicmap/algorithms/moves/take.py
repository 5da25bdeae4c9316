"""Assign a cell to a region, taking it from empty space or another region."""
from typing import List, Optional, Set

from .base import Move


class TakeMove(Move):
    """Give cell ``c`` to ``vertex``.

    ``improves()`` is decided at construction from the guiding shapes: the
    cell must be desired by the taker, and when its current owner desires it
    too, the larger of the two normalized symmetric differences must drop.
    """

    def __init__(self, graph, grid, c, vertex, normalize: bool = True):
        super().__init__(grid, normalize)
        self.graph = graph
        self.c = c
        self.new_vertex = vertex
        self.old_vertex = grid.get_vertex(c)
        self.creates_alley = False
        self.creates_hole = False
        self._old_holes = None
        self._improves = self._compute_improves()

    def improves(self) -> bool:
        return self._improves

    def evaluate(self, old_holes: Optional[List[Set]] = None, connected_only: bool = False):
        """Evaluate the move; with ``old_holes`` also detect whether it grows the holes."""
        self._old_holes = old_holes
        return super().evaluate(connected_only)

    def _compute_improves(self) -> bool:
        if self.old_vertex is self.new_vertex:
            return False
        new_region = self.grid.get_region(self.new_vertex)
        if not new_region.is_desired(self.c):
            return False
        if self.old_vertex is None:
            return True
        old_region = self.grid.get_region(self.old_vertex)
        if not old_region.is_desired(self.c):
            return True

        new_sd = new_region.symmetric_difference()
        old_sd = old_region.symmetric_difference()
        new_size = max(new_region.target_size, 1)
        old_size = max(old_region.target_size, 1)
        current_error = max(new_sd / new_size, old_sd / old_size)
        new_error = max((new_sd - 1) / new_size, (old_sd + 1) / old_size)
        return new_error < current_error

    def _evaluate(self) -> None:
        self.creates_alley = False
        self.creates_hole = False
        if self.old_vertex is self.new_vertex:
            return
        neighbours = self.c.neighbours()
        alleys_before = [self.grid.is_alley(d) for d in neighbours]

        self.grid.set_vertex(self.c, self.new_vertex)
        try:
            self.creates_alley = any(self.grid.is_alley(d) and not before
                                     for d, before in zip(neighbours, alleys_before))
            if self._old_holes is not None:
                holes = self.grid.hole_boundaries()
                self.creates_hole = sum(len(h) for h in holes) > sum(len(h) for h in self._old_holes)
            if self._take_is_valid():
                self.valid = True
                self.quality = self._grid_quality()
                self.necessity = max(self.grid.get_region(self.new_vertex).symmetric_difference(), 1)
            self.connected = self._take_is_connected()
        finally:
            self._assign(self.c, self.old_vertex)

    def _take_is_valid(self) -> bool:
        if self.old_vertex is None:
            touches_self = False
            for d in self.c.neighbours():
                other = self.grid.get_vertex(d)
                if other is self.new_vertex:
                    touches_self = True
                elif other is not None and not self.graph.has_edge(self.new_vertex, other):
                    return False
            return touches_self
        old_region = self.grid.get_region(self.old_vertex)
        new_region = self.grid.get_region(self.new_vertex)
        return self.grid.is_valid(old_region) and self.grid.is_valid(new_region)

    def _take_is_connected(self) -> bool:
        if self.old_vertex is None:
            return any(self.grid.get_vertex(d) is self.new_vertex for d in self.c.neighbours())
        old_region = self.grid.get_region(self.old_vertex)
        new_region = self.grid.get_region(self.new_vertex)
        return self.grid.is_connected(old_region) and self.grid.is_connected(new_region)

    def _apply(self) -> None:
        self.grid.set_vertex(self.c, self.new_vertex)

    def _revert(self) -> None:
        self._assign(self.c, self.old_vertex)

    def __repr__(self) -> str:
        return (f"TakeMove({self.c}, {self.old_vertex} -> {self.new_vertex}, "
                f"quality={self.quality}, valid={self.valid})")
