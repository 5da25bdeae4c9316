"""Polishing pass that moves boundary cells to fix region sizes."""
import logging
from typing import Callable, Dict, List, Optional, Set, Tuple

from ...algorithms.min_cost_flow import FlowArc, FlowNetwork, FlowStatus, SuccessiveShortestPathFlow
from ...algorithms.moves import ReleaseMove, TakeMove
from ...domain.models.cartogram import MosaicCartogram, MosaicRegion
from ...domain.models.coordinates import Coordinate
from ...domain.models.graph import WeightedGraph

logger = logging.getLogger(__name__)

MAX_POLISH_ROUNDS = 40


class TilePolisher:
    """Reduce the total hex error with a minimum-cost flow over boundary cells.

    Every round builds a flow network with one node per cell on a region
    boundary, one supply node per region and one node for the empty space.
    A region with too many cells supplies its surplus, a region with too few
    demands the shortfall and the empty space balances the total. An arc
    from cell ``c`` to a neighbouring cell ``d`` stands for handing ``c`` to
    the owner of ``d``, or releasing it when ``d`` is empty. Arcs exist only
    for moves that are valid and open no hole; their cost rewards moves
    towards the guiding shapes, plus one per move so that shorter chains
    of moves are preferred. The arcs that carry flow are executed in
    order, each re-evaluated first since earlier moves of the round may have
    invalidated it.

    Rounds repeat while they change the grid and some region is off target.
    In exact mode a second phase follows in which moves only need to keep
    every region connected, so adjacencies may break, and each round routes
    a single unit of flow. The grid with the lowest total hex error seen is kept.
    """

    def __init__(self, graph: WeightedGraph, grid: MosaicCartogram, exact: bool = False,
                 normalize: bool = True, before_move: Optional[Callable[[], None]] = None):
        """Initialize polisher.

        Args:
            graph: Graph of the cartogram
            grid: Grid to polish; modified in place
            exact: Whether to allow moves that break adjacencies
            normalize: Quality normalization passed to the moves
            before_move: Called before every executed move; may raise to stop
        """
        self.graph = graph
        self.grid = grid
        self.exact = exact
        self.normalize = normalize
        self.before_move = before_move
        self.moves_executed = 0
        self.rounds = 0

    def polish(self) -> MosaicCartogram:
        """Run the polishing rounds.

        ``self.grid`` is replaced by the best grid seen, also when
        ``before_move`` raises.

        Returns:
            The grid with the lowest total hex error
        """
        error = self.grid.total_hex_error()
        initial_error = error
        if error == 0:
            return self.grid
        best_grid, best_error = self.grid.duplicate(), error
        try:
            phases = [False, True] if self.exact else [False]
            for exact in phases:
                changed = True
                rounds = 0
                while changed and error > 0 and rounds < MAX_POLISH_ROUNDS:
                    changed = self._round(exact)
                    rounds += 1
                    self.rounds += 1
                    error = self.grid.total_hex_error()
                    if error <= best_error:
                        best_grid, best_error = self.grid.duplicate(), error
        finally:
            self.grid = best_grid

        logger.info(f"Polishing: hex error {initial_error} -> {best_error} after {self.rounds} round(s), "
                    f"{self.moves_executed} move(s)")
        return self.grid

    def _round(self, exact: bool) -> bool:
        network, arcs = self._build_network(exact)
        status = SuccessiveShortestPathFlow(network).solve()
        if status is not FlowStatus.FEASIBLE:
            logger.debug(f"Polishing flow only partly routed ({status.value})")

        changed = False
        for arc, c, d in arcs:
            if arc.flow <= 0:
                continue
            owner = self.grid.get_vertex(c)
            taker = self.grid.get_vertex(d)
            if owner is taker:
                continue
            if taker is None:
                move = ReleaseMove(self.grid, c, self.normalize)
                token = move.evaluate(connected_only=exact)
            else:
                move = TakeMove(self.graph, self.grid, c, taker, self.normalize)
                token = move.evaluate(old_holes=self.grid.hole_boundaries(), connected_only=exact)
                if move.creates_hole and not exact:
                    continue
            if token is None:
                continue
            if self.before_move is not None:
                self.before_move()
            token.execute()
            self.moves_executed += 1
            changed = True
        return changed

    def _build_network(self, exact: bool) -> Tuple[FlowNetwork, List[Tuple[FlowArc, Coordinate, Coordinate]]]:
        grid = self.grid
        network = FlowNetwork()
        boundary = self._boundary_cells()
        nodes = {c: network.add_node(capacity=1) for c in boundary}
        holes = grid.hole_boundaries()
        costs = _ShapeCosts()

        arcs = []
        for c in boundary:
            owner = grid.region_at(c)
            for d in c.neighbours():
                if d not in nodes:
                    continue
                taker = grid.region_at(d)
                if taker is owner:
                    continue
                if self._arc_allowed(c, owner, taker, holes, exact):
                    cost = 1
                    if owner is not None:
                        cost += costs.loss(c, owner)
                    if taker is not None:
                        cost -= costs.loss(c, taker)
                    arcs.append((network.add_arc(nodes[c], nodes[d], 1, cost), c, d))

        sea_supply = 0
        for region in grid.regions():
            supply = -region.hex_error()
            if exact:
                supply = 0 if sea_supply else max(-1, min(1, supply))
            node = network.add_node(supply)
            for c in boundary:
                if c in region:
                    network.add_arc(node, nodes[c])
                    network.add_arc(nodes[c], node)
            sea_supply -= supply
        sea = network.add_node(sea_supply)
        for c in boundary:
            if grid.get_vertex(c) is None:
                network.add_arc(sea, nodes[c])
                network.add_arc(nodes[c], sea)

        network.shift_costs_non_negative()
        return network, arcs

    def _arc_allowed(self, c: Coordinate, owner: Optional[MosaicRegion], taker: Optional[MosaicRegion],
                     holes: List[Set[Coordinate]], exact: bool) -> bool:
        if taker is None:
            move = ReleaseMove(self.grid, c, self.normalize)
            move.evaluate()
            return move.valid or (exact and move.connected)
        move = TakeMove(self.graph, self.grid, c, taker.vertex, self.normalize)
        move.evaluate(old_holes=holes)
        return (move.valid and not move.creates_hole) or (exact and move.connected)

    def _boundary_cells(self) -> Dict[Coordinate, None]:
        """Cells next to a region, plus occupied cells next to those that are empty."""
        boundary: Dict[Coordinate, None] = {}
        for region in self.grid.regions():
            for c in sorted(region.neighbours(), key=lambda c: c.normalize().components):
                boundary[c] = None
                if self.grid.get_vertex(c) is None:
                    for d in c.neighbours():
                        if self.grid.get_vertex(d) is not None:
                            boundary[d] = None
        return boundary


class _ShapeCosts:
    """Per-round cache of distances to the guiding shapes."""

    def __init__(self):
        self._rims: Dict[int, Set[Coordinate]] = {}

    def loss(self, c: Coordinate, region: MosaicRegion) -> int:
        """Cost of ``region`` losing ``c``: its depth inside the shape, or minus its distance outside."""
        shape = region.guiding_shape
        if not shape:
            return 0
        if c in shape:
            rim = self._rims.get(region.index)
            if rim is None:
                rim = {d for s in shape for d in s.neighbours() if d not in shape}
                self._rims[region.index] = rim
            return min(c.distance(d) for d in rim)
        return -min(c.distance(s) for s in shape)
