"""Grid moves used by the local search."""
from .base import Move, EvaluatedMove, SafeMoveExecutor, INVALID_QUALITY, MIN_NECESSITY
from .release import ReleaseMove
from .swap import SwapMove
from .take import TakeMove

__all__ = [
    'Move', 'EvaluatedMove', 'SafeMoveExecutor', 'INVALID_QUALITY', 'MIN_NECESSITY',
    'ReleaseMove', 'SwapMove', 'TakeMove'
]
