"""Shared exceptions for mosaicmap."""
from .base_exceptions import (
    MosaicMapException, ConfigurationError, ValidationError,
    GraphError, GridError
)
from .domain_exceptions import (
    MoveError, MoveProtocolError, InvalidMoveError, OptimizationError
)

__all__ = [
    'MosaicMapException', 'ConfigurationError', 'ValidationError',
    'GraphError', 'GridError',
    'MoveError', 'MoveProtocolError', 'InvalidMoveError', 'OptimizationError'
]
