"""
CardVault Cryptographic Core
============================

Hybrid envelope encryption of card numbers.

Architecture:
    1. AES-256-GCM: seals the card number under a per-call key
    2. RSA-OAEP (SHA-256 / MGF1-SHA-256): wraps the per-call key
    3. Envelope framing: length-prefixed nonce and sealed payload,
       followed by the unprefixed wrapped key

Security Properties:
    - All payload encryption is authenticated (AEAD)
    - Fresh key and nonce for every call
    - Keys are never persisted or logged

WARNING: This module handles sensitive cryptographic material.
         Incorrect usage can compromise security.
"""

from cardvault.core.crypto.aes_gcm import AesGcmCipher
from cardvault.core.crypto.envelope import Envelope, frame, unframe
from cardvault.core.crypto.errors import (
    AuthenticityError,
    CardVaultError,
    CipherError,
    ErrorCategory,
    FormatError,
    FramingError,
    InvalidInputError,
    KeyFormatError,
    WrapError,
)
from cardvault.core.crypto.hybrid_engine import EngineState, HybridCryptoEngine
from cardvault.core.crypto.provider import CryptoProvider
from cardvault.core.crypto.rsa_oaep import RsaKeyWrapper

__all__ = [
    "AesGcmCipher",
    "Envelope",
    "frame",
    "unframe",
    "AuthenticityError",
    "CardVaultError",
    "CipherError",
    "ErrorCategory",
    "FormatError",
    "FramingError",
    "InvalidInputError",
    "KeyFormatError",
    "WrapError",
    "EngineState",
    "HybridCryptoEngine",
    "CryptoProvider",
    "RsaKeyWrapper",
]
