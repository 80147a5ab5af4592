"""
CardVault - Hybrid Encryption of Payment Card Numbers
=====================================================

Protects a card number for transport to the holder of an RSA key pair:
AES-256-GCM for the card number, RSA-OAEP to wrap the AES key, and a
length-prefixed binary envelope delivered as hex text.

Security Notice:
- No card numbers or keys are logged
- Fail-closed: encrypt() returns a Failure instead of partial output
- Fresh symmetric key and nonce on every call
"""

from cardvault.core.config import EngineConfig
from cardvault.core.crypto.errors import ErrorCategory
from cardvault.core.crypto.hybrid_engine import HybridCryptoEngine
from cardvault.core.logging import get_secure_logger
from cardvault.core.models import (
    EncryptionOutcome,
    EncryptionRequest,
    Failure,
    Success,
)
from cardvault.security.hardening import bootstrap

__version__ = "0.1.0"
__author__ = "CardVault Team"

__all__ = [
    "EngineConfig",
    "ErrorCategory",
    "HybridCryptoEngine",
    "get_secure_logger",
    "EncryptionOutcome",
    "EncryptionRequest",
    "Failure",
    "Success",
    "bootstrap",
    "__version__",
]
