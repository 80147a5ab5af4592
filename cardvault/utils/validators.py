"""
Validation Utilities
====================

Input validation functions with security focus.
"""

from __future__ import annotations

from typing import Optional

from cardvault.core.crypto.errors import InvalidInputError


class ValidationError(InvalidInputError):
    """Raised when validation fails."""
    pass


def validate_not_blank(value: Optional[str], field_name: str = "value") -> str:
    """
    Validate that a text value is present and not only whitespace.

    The value is returned unchanged; surrounding whitespace is not stripped.

    Raises:
        ValidationError: If value is None, not a string, or blank
    """
    if value is None:
        raise ValidationError(
            f"{field_name} cannot be null or empty",
            context={"field": field_name},
        )

    if not isinstance(value, str):
        raise ValidationError(
            f"{field_name} must be a string",
            context={"field": field_name, "type": type(value).__name__},
        )

    if not value.strip():
        raise ValidationError(
            f"{field_name} cannot be null or empty",
            context={"field": field_name},
        )

    return value
