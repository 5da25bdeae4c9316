"""Validation utilities for mosaicmap."""
import math
from typing import Any

from ..exceptions import ValidationError


def _require_number(value: Any, field_name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(
            f"{field_name} must be numeric, got {type(value)}",
            field=field_name, value=value
        )


def validate_positive_number(value: Any, field_name: str) -> None:
    """Validate that a value is a positive finite number.

    Args:
        value: Value to validate
        field_name: Name of field for error reporting

    Raises:
        ValidationError: If value is not a positive number
    """
    _require_number(value, field_name)

    if not math.isfinite(value) or value <= 0:
        raise ValidationError(
            f"{field_name} must be positive, got {value}",
            field=field_name, value=value
        )


def validate_non_negative_number(value: Any, field_name: str, allow_infinite: bool = True) -> None:
    """Validate that a value is a non-negative number.

    Infinity is accepted unless ``allow_infinite`` is False; on edges it
    marks an unusable edge.

    Args:
        value: Value to validate
        field_name: Name of field for error reporting
        allow_infinite: Whether positive infinity passes

    Raises:
        ValidationError: If value is not non-negative
    """
    _require_number(value, field_name)

    if math.isnan(value) or value < 0:
        raise ValidationError(
            f"{field_name} must be non-negative, got {value}",
            field=field_name, value=value
        )
    if not allow_infinite and math.isinf(value):
        raise ValidationError(
            f"{field_name} must be finite, got {value}",
            field=field_name, value=value
        )
