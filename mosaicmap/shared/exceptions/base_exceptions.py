"""Base exceptions for mosaicmap."""


class MosaicMapException(Exception):
    """Base exception class for mosaicmap."""

    def __init__(self, message: str, error_code: str = None, details: dict = None):
        """Initialize exception.

        Args:
            message: Human-readable error message
            error_code: Optional error code for programmatic handling
            details: Optional additional error details
        """
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of exception."""
        base_msg = super().__str__()
        if self.error_code:
            return f"[{self.error_code}] {base_msg}"
        return base_msg


class ConfigurationError(MosaicMapException):
    """Exception raised for configuration-related errors."""
    pass


class ValidationError(MosaicMapException):
    """Exception raised for validation errors."""

    def __init__(self, message: str, field: str = None, value=None, **kwargs):
        """Initialize validation error.

        Args:
            message: Error message
            field: Field that failed validation
            value: Invalid value
        """
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value


class GraphError(MosaicMapException):
    """Exception raised for misuse of the weighted graph."""

    def __init__(self, message: str, vertex_index: int = None, **kwargs):
        """Initialize graph error.

        Args:
            message: Error message
            vertex_index: Handle of the vertex involved, if any
        """
        super().__init__(message, **kwargs)
        self.vertex_index = vertex_index


class GridError(MosaicMapException):
    """Exception raised for mosaic grid errors."""

    def __init__(self, message: str, coordinate=None, **kwargs):
        """Initialize grid error.

        Args:
            message: Error message
            coordinate: Grid coordinate that caused the error
        """
        super().__init__(message, **kwargs)
        self.coordinate = coordinate
