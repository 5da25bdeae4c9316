"""Vacate one occupied cell."""
from .base import Move


class ReleaseMove(Move):
    """Remove cell ``c`` from the region that owns it."""

    def __init__(self, grid, c, normalize: bool = True):
        super().__init__(grid, normalize)
        self.c = c
        self._improves = False
        self._vertex = None

    def improves(self) -> bool:
        """Whether the owner's symmetric difference strictly decreases (set by evaluate)."""
        return self._improves

    def creates_hole(self) -> bool:
        """Whether every neighbour of ``c`` is occupied, so releasing it leaves a hole."""
        return all(self.grid.get_vertex(d) is not None for d in self.c.neighbours())

    def _evaluate(self) -> None:
        self._improves = False
        vertex = self.grid.get_vertex(self.c)
        if vertex is None:
            return
        region = self.grid.get_region(vertex)
        old_difference = region.symmetric_difference()

        self.grid.remove_cell(self.c)
        try:
            self.connected = self.grid.is_connected(region)
            if self.grid.is_valid(region):
                self.valid = True
                self.quality = self._grid_quality()
                self._improves = region.symmetric_difference() < old_difference
        finally:
            self.grid.set_vertex(self.c, vertex)

    def _apply(self) -> None:
        self._vertex = self.grid.remove_cell(self.c)

    def _revert(self) -> None:
        if self._vertex is not None:
            self.grid.set_vertex(self.c, self._vertex)

    def __repr__(self) -> str:
        return f"ReleaseMove({self.c}, quality={self.quality}, valid={self.valid})"
