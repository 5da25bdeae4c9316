"""Exchange the occupants of two cells."""
from .base import Move


class SwapMove(Move):
    """Swap the vertices of ``c1`` and ``c2``.

    The occupants are captured at construction; ``execute`` swaps those
    captured occupants, not whatever the cells hold at that time. Like every
    move, a swap only executes after ``evaluate`` issued a token for it;
    calling ``execute`` on an unevaluated swap raises ``MoveProtocolError``
    instead of swapping unchecked.
    """

    def __init__(self, grid, c1, c2, normalize: bool = True):
        super().__init__(grid, normalize)
        self.c1 = c1
        self.c2 = c2
        self.v1 = grid.get_vertex(c1)
        self.v2 = grid.get_vertex(c2)

    def _evaluate(self) -> None:
        if self.v1 is self.v2:
            return
        self._assign(self.c1, self.v2)
        self._assign(self.c2, self.v1)
        try:
            self.connected = self.grid.is_connected()
            if self.grid.is_valid():
                self.valid = True
                self.quality = self._grid_quality()
        finally:
            self._assign(self.c1, self.v1)
            self._assign(self.c2, self.v2)

    def _apply(self) -> None:
        self._assign(self.c1, self.v2)
        self._assign(self.c2, self.v1)

    def _revert(self) -> None:
        self._assign(self.c1, self.v1)
        self._assign(self.c2, self.v2)

    def __repr__(self) -> str:
        return f"SwapMove({self.c1}, {self.c2}, quality={self.quality}, valid={self.valid})"
