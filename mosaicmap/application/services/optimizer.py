"""Application service running the local search over a mosaic cartogram."""
import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Set, Tuple
from uuid import uuid4

from .polisher import TilePolisher
from ...algorithms.moves import Move, ReleaseMove, SwapMove, TakeMove
from ...domain.models.cartogram import MosaicCartogram
from ...domain.models.graph import WeightedGraph
from ...domain.services.geometry import grid_statistics
from ...domain.services.validity_checker import ValidityChecker
from ...shared.configuration.settings import OptimizerSettings
from ...shared.exceptions import OptimizationError
from ...shared.utils.logging_utils import get_context_logger
from ...shared.utils.performance_utils import memory_usage, timing_context

logger = logging.getLogger(__name__)


class StopReason(Enum):
    CONVERGED = "converged"
    NO_MOVES = "no_moves"
    MOVE_BUDGET = "move_budget"
    TIME_BUDGET = "time_budget"


@dataclass
class OptimizationResult:
    """Outcome of one optimizer run."""
    grid: MosaicCartogram
    initial_quality: Tuple[float, float]
    final_quality: Tuple[float, float]
    moves_executed: int
    iterations: int
    stop_reason: StopReason
    elapsed_seconds: float
    valid: bool
    holes_filled: int = 0
    alleys_filled: int = 0
    polish_moves: int = 0
    connected: bool = True
    statistics: dict = field(default_factory=dict)

    @property
    def improved(self) -> bool:
        return self.final_quality < self.initial_quality


class _BudgetExhausted(Exception):
    def __init__(self, reason: StopReason):
        super().__init__(reason.value)
        self.reason = reason


class MosaicOptimizer:
    """Local search that improves a grid with take, release and swap moves.

    Each iteration lets every region take the desired cells on its boundary
    and release the cells outside its guiding shape, always executing the best
    valid move by the move order. The search stops when an iteration changes
    nothing, when quality has not improved for ``max_no_improve_iterations``
    iterations, or when the move or time budget is spent. The best grid seen
    is kept. Holes and alleys are filled afterwards, and a polishing pass
    moves boundary cells to bring region sizes to their targets.

    ``run`` optimizes a copy: the grid passed in is left as it was and the
    result, also available as ``self.grid``, is a different object. The
    optimizer is single-threaded.
    """

    def __init__(self, graph: WeightedGraph, grid: MosaicCartogram,
                 settings: Optional[OptimizerSettings] = None):
        self.graph = graph
        self.grid = grid
        self.settings = settings or OptimizerSettings()
        self.checker = ValidityChecker()
        self.moves_executed = 0
        self._deadline: Optional[float] = None
        self._log = get_context_logger(__name__, run="-")

    def run(self) -> OptimizationResult:
        """Optimize the grid.

        Raises:
            OptimizationError: If ``require_valid_start`` is set and the grid is invalid
        """
        self._log = get_context_logger(__name__, run=uuid4().hex[:8])
        errors = self.settings.validate()
        if errors:
            raise OptimizationError(f"Invalid optimizer settings: {errors}", stage="start",
                                    details={'errors': errors})
        if self.settings.require_valid_start and not self.grid.is_valid():
            violations = self.checker.report(self.grid)
            raise OptimizationError(
                f"Starting grid has {len(violations)} violation(s)", stage="start",
                error_code="INVALID_START", details={'violations': [str(v) for v in violations]}
            )

        start = time.monotonic()
        self._deadline = (start + self.settings.time_budget_seconds
                          if self.settings.time_budget_seconds > 0 else None)
        self.moves_executed = 0
        self.grid = self.grid.duplicate()
        if self.settings.align_guiding_shapes:
            self.align_guiding_shapes()

        initial_quality = self.grid.quality_pair()
        best_quality = initial_quality
        best_grid = self.grid.duplicate()
        self._log.info(f"Starting local search: quality={initial_quality[0]:.1f}/"
                       f"{initial_quality[1]:.3f}, cells={self.grid.number_of_cells()}")

        iterations = 0
        no_improve = 0
        stop_reason = StopReason.CONVERGED
        with timing_context("local search", logging.INFO):
            while no_improve < self.settings.max_no_improve_iterations:
                iterations += 1
                try:
                    changed = self.run_iteration()
                except _BudgetExhausted as e:
                    stop_reason = e.reason
                    changed = True

                quality = self.grid.quality_pair()
                if quality < best_quality:
                    best_quality = quality
                    best_grid = self.grid.duplicate()
                    no_improve = 0
                else:
                    no_improve += 1
                self._log.debug(f"Iteration {iterations}: quality={quality[0]:.1f}/{quality[1]:.3f}, "
                                f"moves={self.moves_executed}")

                if stop_reason is not StopReason.CONVERGED:
                    break
                if not changed:
                    stop_reason = StopReason.NO_MOVES
                    break

        self.grid = best_grid
        holes_filled = alleys_filled = 0
        polisher = None
        try:
            if self.settings.fill_holes:
                holes_filled = self.fill_holes()
            if self.settings.fill_alleys:
                alleys_filled = self.fill_alleys()
            if self.settings.polish:
                polisher = TilePolisher(self.graph, self.grid, exact=self.settings.exact_tiles,
                                        normalize=self.settings.normalize_quality,
                                        before_move=self._count_move)
                polisher.polish()
        except _BudgetExhausted as e:
            if stop_reason is StopReason.CONVERGED or stop_reason is StopReason.NO_MOVES:
                stop_reason = e.reason
        if polisher is not None:
            self.grid = polisher.grid

        final_quality = self.grid.quality_pair()
        elapsed = time.monotonic() - start
        memory = memory_usage()
        self._log.info(f"Local search finished ({stop_reason.value}) after {iterations} iteration(s), "
                       f"{self.moves_executed} move(s), {elapsed:.2f}s: "
                       f"quality={final_quality[0]:.1f}/{final_quality[1]:.3f}")
        self._log.debug(f"Process memory: {memory['process_rss_mb']:.1f}MB")

        return OptimizationResult(
            grid=self.grid,
            initial_quality=initial_quality,
            final_quality=final_quality,
            moves_executed=self.moves_executed,
            iterations=iterations,
            stop_reason=stop_reason,
            elapsed_seconds=elapsed,
            valid=self.grid.is_valid(),
            holes_filled=holes_filled,
            alleys_filled=alleys_filled,
            polish_moves=0 if polisher is None else polisher.moves_executed,
            connected=self.grid.is_connected(),
            statistics=grid_statistics(self.grid),
        )

    def align_guiding_shapes(self) -> None:
        """Move every guiding shape to the overlay with the most hits on its region."""
        for region in self.grid.regions():
            translation = region.compute_best_overlay()
            if translation != self.grid.zero_vector():
                self._log.debug(f"Guiding shape of {region.vertex} moved by {translation}")

    def run_iteration(self) -> bool:
        """One take, release (and optionally swap) pass.

        Returns:
            Whether any move was executed
        """
        before = self.moves_executed
        for region in self.grid.regions():
            self._take_desired_cells(region)
        for region in self.grid.regions():
            self._release_undesired_cells(region)
        if self.settings.use_swap_moves:
            self._swap_boundary_cells()
        return self.moves_executed > before

    def _take_desired_cells(self, region) -> None:
        while True:
            candidates = []
            for c in region.neighbours():
                if not region.is_desired(c):
                    continue
                move = TakeMove(self.graph, self.grid, c, region.vertex, self.settings.normalize_quality)
                if move.improves() and move.evaluate() is not None:
                    candidates.append(move)
            if not self._execute_best(candidates):
                return

    def _release_undesired_cells(self, region) -> None:
        while True:
            candidates = []
            for c in region.occupied_coordinates():
                if region.is_desired(c):
                    continue
                move = ReleaseMove(self.grid, c, self.settings.normalize_quality)
                if move.evaluate() is not None and move.improves():
                    candidates.append(move)
            if not self._execute_best(candidates):
                return

    def _swap_boundary_cells(self) -> None:
        current = self.grid.quality(self.settings.normalize_quality)
        candidates = []
        seen: Set = set()
        for c, vertex in self.grid.cells():
            for d in c.neighbours():
                other = self.grid.get_vertex(d)
                if other is None or other is vertex or (d, c) in seen:
                    continue
                seen.add((c, d))
                move = SwapMove(self.grid, c, d, self.settings.normalize_quality)
                if move.evaluate() is not None and move.quality < current:
                    candidates.append(move)
        self._execute_best(candidates)

    def _execute_best(self, candidates: List[Move]) -> bool:
        if not candidates:
            return False
        self._check_budget()
        best = min(candidates)
        best.execute()
        self.moves_executed += 1
        return True

    def _count_move(self) -> None:
        self._check_budget()
        self.moves_executed += 1

    def _check_budget(self) -> None:
        if self.moves_executed >= self.settings.max_moves:
            raise _BudgetExhausted(StopReason.MOVE_BUDGET)
        if self._deadline is not None and time.monotonic() > self._deadline:
            raise _BudgetExhausted(StopReason.TIME_BUDGET)

    def _candidate_vertices(self, c) -> list:
        """Vertices around ``c``, most frequent first."""
        counts = Counter(v for v in (self.grid.get_vertex(d) for d in c.neighbours()) if v is not None)
        return [v for v, _ in sorted(counts.items(), key=lambda item: (-item[1], item[0].index))]

    def _try_take(self, c, vertices) -> bool:
        for vertex in vertices:
            move = TakeMove(self.graph, self.grid, c, vertex, self.settings.normalize_quality)
            if move.evaluate() is not None:
                self._check_budget()
                move.execute()
                self.moves_executed += 1
                return True
        return False

    def fill_holes(self) -> int:
        """Fill enclosed empty cells with a neighbouring region where valid.

        When no neighbour can take a hole cell, the cells of its neighbours
        bordering the hole are released, least frequent neighbour first, so
        that the hole can open up to the outside.

        Returns:
            Number of hole cells filled
        """
        filled = 0
        seen: Set = set()
        while True:
            all_seen = True
            for hole in self.grid.hole_boundaries():
                for c in hole:
                    if c in seen or self.grid.get_vertex(c) is not None:
                        continue
                    all_seen = False
                    candidates = self._candidate_vertices(c)
                    if self._try_take(c, candidates):
                        filled += 1
                        continue
                    seen.add(c)
                    for vertex in reversed(candidates):
                        for d in c.neighbours():
                            if self.grid.get_vertex(d) is vertex:
                                release = ReleaseMove(self.grid, d, self.settings.normalize_quality)
                                if release.evaluate() is not None:
                                    self._check_budget()
                                    release.execute()
                                    self.moves_executed += 1
            if all_seen:
                break
        if filled:
            self._log.info(f"Filled {filled} hole cell(s)")
        return filled

    def fill_alleys(self) -> int:
        """Fill empty cells enclosed on all but one side by several regions.

        Returns:
            Number of alley cells filled
        """
        filled = 0
        ignored: Set = set()
        while True:
            alleys = [c for c in self._alleys() if c not in ignored]
            if not alleys:
                break
            for c in alleys:
                if self.grid.get_vertex(c) is not None:
                    continue
                if self._try_take(c, self._candidate_vertices(c)):
                    filled += 1
                else:
                    ignored.add(c)
        if filled:
            self._log.info(f"Filled {filled} alley cell(s)")
        return filled

    def _alleys(self) -> List:
        alleys = {}
        for region in self.grid.regions():
            for c in region.neighbours():
                if self.grid.get_vertex(c) is None and self.grid.is_alley(c):
                    alleys[c] = None
        return list(alleys)
