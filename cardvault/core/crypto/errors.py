"""
Cryptographic Error Taxonomy
============================

Every failure inside the engine is raised as a subclass of CardVaultError.
Each subclass carries the ErrorCategory it maps to at the engine boundary,
so classification never depends on message text.

Categories:
    InvalidInput     - missing or blank card number / key text
    KeyFormatError   - hex or key-structure decode failure
    CipherError      - AEAD failure
    WrapError        - RSA-OAEP padding/size failure
    UnexpectedError  - anything not classified above
"""

from __future__ import annotations

from enum import Enum
from typing import Any, ClassVar, Dict, Optional


class ErrorCategory(Enum):
    """Failure categories reported by the encryption engine."""
    INVALID_INPUT = "InvalidInput"
    KEY_FORMAT_ERROR = "KeyFormatError"
    CIPHER_ERROR = "CipherError"
    WRAP_ERROR = "WrapError"
    UNEXPECTED_ERROR = "UnexpectedError"


class CardVaultError(Exception):
    """
    Base class for all CardVault failures.

    Attributes:
        category: Category reported when this error reaches the engine boundary
        context: Structured, non-sensitive details about the failure
    """

    category: ClassVar[ErrorCategory] = ErrorCategory.UNEXPECTED_ERROR

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.context: Dict[str, Any] = dict(context or {})


class InvalidInputError(CardVaultError):
    """Raised when a request is missing a required value."""
    category = ErrorCategory.INVALID_INPUT


class FormatError(CardVaultError):
    """Raised when hex text cannot be decoded."""
    pass


class KeyFormatError(CardVaultError):
    """Raised when public key text is not a usable RSA public key."""
    category = ErrorCategory.KEY_FORMAT_ERROR


class CipherError(CardVaultError):
    """Raised when the AEAD primitive rejects its inputs."""
    category = ErrorCategory.CIPHER_ERROR


class AuthenticityError(CipherError):
    """Raised when an authentication tag does not verify."""
    pass


class WrapError(CardVaultError):
    """Raised when RSA-OAEP key wrapping or unwrapping fails."""
    category = ErrorCategory.WRAP_ERROR


class FramingError(CardVaultError):
    """Raised when an envelope cannot be built or parsed."""
    pass
