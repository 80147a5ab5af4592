"""
Request and Outcome Value Objects
=================================

EncryptionRequest carries the caller's input. EncryptionOutcome is a
tagged union: either Success with the hex envelope, or Failure with a
category. Neither repr ever shows a full card number or a full payload.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from cardvault.core.crypto.errors import ErrorCategory


@dataclass(frozen=True, slots=True)
class EncryptionRequest:
    """A card number and the hex DER public key to protect it for."""

    rsa_public_key_hex: Optional[str]
    card_number: Optional[str]

    def __repr__(self) -> str:
        """Safe representation: key prefix and last four card digits only."""
        if self.rsa_public_key_hex is not None:
            key = self.rsa_public_key_hex[:20] + "..."
        else:
            key = "null"

        if self.card_number is not None and len(self.card_number) >= 4:
            card = "****" + self.card_number[-4:]
        else:
            card = "****"

        return f"EncryptionRequest(rsa_public_key_hex={key!r}, card_number={card!r})"


@dataclass(frozen=True, slots=True)
class Success:
    """Terminal success: the hex-encoded envelope."""

    encrypted_data_hex: str

    @property
    def is_success(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Success(encrypted_data_hex={self.encrypted_data_hex[:40]!r}...)"


@dataclass(frozen=True, slots=True)
class Failure:
    """
    Terminal failure.

    Attributes:
        category: Which class of error stopped the pipeline
        message: Human-readable description, free of sensitive data
        failed_state: Name of the engine state the failure occurred in
        context: Structured details carried from the raised error
    """

    category: ErrorCategory
    message: str
    failed_state: str = ""
    context: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return False

    def __str__(self) -> str:
        return f"{self.category.value}: {self.message}"


EncryptionOutcome = Union[Success, Failure]
