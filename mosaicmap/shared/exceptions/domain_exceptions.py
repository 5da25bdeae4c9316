"""Domain-specific exceptions."""
from .base_exceptions import MosaicMapException


class MoveError(MosaicMapException):
    """Exception raised for grid move errors."""

    def __init__(self, message: str, move_type: str = None, **kwargs):
        """Initialize move error.

        Args:
            message: Error message
            move_type: Name of the move class involved
        """
        super().__init__(message, **kwargs)
        self.move_type = move_type


class MoveProtocolError(MoveError):
    """Raised when a move is executed without a successful evaluation."""
    pass


class InvalidMoveError(MoveError):
    """Raised when an executed move left the grid in an invalid state."""

    def __init__(self, message: str, violations: list = None, **kwargs):
        """Initialize invalid move error.

        Args:
            message: Error message
            violations: Violations reported by the validity checker
        """
        super().__init__(message, **kwargs)
        self.violations = violations or []


class OptimizationError(MosaicMapException):
    """Exception raised when the local search cannot run."""

    def __init__(self, message: str, stage: str = None, **kwargs):
        """Initialize optimization error.

        Args:
            message: Error message
            stage: Stage that failed ("start" or "seed")
        """
        super().__init__(message, **kwargs)
        self.stage = stage
