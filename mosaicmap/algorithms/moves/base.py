"""Two-phase grid moves: evaluate speculatively, then execute.

``evaluate()`` may mutate the grid to test a move but always restores it,
including the iteration order of its cells, before returning. It returns an
``EvaluatedMove`` token only when the move is valid (or, when asked for
``connected_only``, when it keeps every region connected); ``execute()``
refuses to run without one. ``execute()`` does not re-check validity itself;
wrap it in ``SafeMoveExecutor`` to do so.

Moves mutate shared grid state and must never be evaluated or executed
concurrently against the same grid.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ...domain.services.validity_checker import ValidityChecker, Violation
from ...shared.exceptions import InvalidMoveError, MoveProtocolError

logger = logging.getLogger(__name__)

INVALID_QUALITY = float(2 ** 31 - 1)
MIN_NECESSITY = float(-2 ** 31)


@dataclass(frozen=True)
class EvaluatedMove:
    """Proof that a move was evaluated as executable; consumed by ``execute``."""
    move: 'Move'
    quality: float
    necessity: float
    connected: bool

    def execute(self) -> float:
        return self.move.execute()


class Move(ABC):
    """Speculative, reversible change of a cartogram.

    Moves are ordered by ascending quality, then by descending necessity.
    """

    def __init__(self, grid, normalize: bool = True):
        self.grid = grid
        self.normalize = normalize
        self.quality = INVALID_QUALITY
        self.necessity = MIN_NECESSITY
        self.valid = False
        self.connected = False
        self.executed = False
        self._evaluation: Optional[EvaluatedMove] = None

    @property
    def name(self) -> str:
        return type(self).__name__

    def evaluate(self, connected_only: bool = False) -> Optional[EvaluatedMove]:
        """Test the move without committing it.

        Sets ``quality``, ``necessity``, ``valid`` and ``connected``. Repeated
        calls on an unchanged grid give identical results.

        Args:
            connected_only: Also issue a token for a move that keeps every
                region connected but breaks adjacencies

        Returns:
            An EvaluatedMove token when the move may be executed, None otherwise
        """
        if self.executed:
            raise MoveProtocolError(f"{self.name} was already executed", move_type=self.name)
        self.quality = INVALID_QUALITY
        self.necessity = MIN_NECESSITY
        self.valid = False
        self.connected = False
        with self.grid.preserving_order():
            self._evaluate()
        executable = self.valid or (connected_only and self.connected)
        self._evaluation = (EvaluatedMove(self, self.quality, self.necessity, self.connected)
                            if executable else None)
        return self._evaluation

    def execute(self) -> float:
        """Commit the move.

        Returns:
            The grid quality recorded by the evaluation

        Raises:
            MoveProtocolError: If the move has no evaluation token or was already executed
        """
        if self.executed:
            raise MoveProtocolError(f"{self.name} was already executed", move_type=self.name)
        if self._evaluation is None:
            raise MoveProtocolError(
                f"{self.name} must be evaluated as executable before execute()",
                move_type=self.name, error_code="MOVE_NOT_EVALUATED"
            )
        self._apply()
        self.executed = True
        return self.quality

    def undo(self) -> None:
        """Revert an executed move."""
        if not self.executed:
            raise MoveProtocolError(f"{self.name} was not executed", move_type=self.name)
        self._revert()
        self.executed = False
        self._evaluation = None

    def sort_key(self) -> Tuple[float, float]:
        return (self.quality, -self.necessity)

    def __lt__(self, other: 'Move') -> bool:
        return self.sort_key() < other.sort_key()

    def _grid_quality(self) -> float:
        return self.grid.quality(self.normalize)

    def _assign(self, c, vertex) -> None:
        if vertex is None:
            self.grid.remove_cell(c)
        else:
            self.grid.set_vertex(c, vertex)

    @abstractmethod
    def _evaluate(self) -> None:
        """Fill in the evaluation attributes, leaving the grid as it was."""

    @abstractmethod
    def _apply(self) -> None:
        pass

    @abstractmethod
    def _revert(self) -> None:
        pass


def _violation_key(violation: Violation):
    return (violation.kind, violation.vertex, violation.other_vertex)


class SafeMoveExecutor:
    """Executes moves and verifies that no new invariant violation appeared.

    A move that breaks an invariant is undone and reported with
    ``InvalidMoveError``. Intended for tests and debugging; the check costs a
    full validity report before and after every move.
    """

    def __init__(self, grid, checker: Optional[ValidityChecker] = None):
        self.grid = grid
        self.checker = checker or ValidityChecker()
        self.executed_moves = 0

    def execute(self, move: Move) -> float:
        """Evaluate ``move`` if needed, execute it and verify the grid.

        Raises:
            MoveProtocolError: If the move is not valid
            InvalidMoveError: If executing the move broke an invariant
        """
        if move.grid is not self.grid:
            raise MoveProtocolError(f"{move.name} targets a different grid", move_type=move.name)
        if move._evaluation is None and not move.executed:
            move.evaluate()

        before = {_violation_key(v) for v in self.checker.report(self.grid)}
        quality = move.execute()
        introduced: List[Violation] = [v for v in self.checker.report(self.grid)
                                       if _violation_key(v) not in before]
        if introduced:
            move.undo()
            logger.warning(f"{move.name} introduced {len(introduced)} violation(s); undone")
            raise InvalidMoveError(
                f"{move.name} broke {len(introduced)} invariant(s): "
                + "; ".join(str(v) for v in introduced),
                violations=introduced, move_type=move.name
            )
        self.executed_moves += 1
        return quality
