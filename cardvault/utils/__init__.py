"""
Utils module - Hex codec and input validation helpers.
"""

from cardvault.utils import hex_codec
from cardvault.utils.validators import ValidationError, validate_not_blank

__all__ = [
    "hex_codec",
    "ValidationError",
    "validate_not_blank",
]
