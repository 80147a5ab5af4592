"""
AES-256-GCM Authenticated Encryption
====================================

Seals the card number under a fresh per-operation key and nonce.

Security Properties:
    - 256-bit key (128-bit security level)
    - 96-bit nonce (NIST recommended)
    - 128-bit authentication tag, appended to the ciphertext
    - No associated data

NIST SP 800-38D Compliance:
    - GCM mode with 96-bit IV
    - Unique nonce for each encryption under same key

WARNING:
    - Never reuse (key, nonce) pairs
    - Always verify tag before using plaintext
    - Keys must not outlive the operation that created them
"""

from __future__ import annotations

from typing import Final, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from cardvault.core.crypto.errors import AuthenticityError, CipherError
from cardvault.core.crypto.provider import CryptoProvider
from cardvault.security.constants import (
    IV_LENGTH_BYTES,
    KEY_LENGTH_BYTES,
    TAG_LENGTH_BYTES,
)

AES_KEY_SIZE: Final[int] = KEY_LENGTH_BYTES
AES_NONCE_SIZE: Final[int] = IV_LENGTH_BYTES
AES_TAG_SIZE: Final[int] = TAG_LENGTH_BYTES


class AesGcmCipher:
    """
    AES-256-GCM Authenticated Encryption with Associated Data (AEAD).

    Usage:
        cipher = AesGcmCipher()
        key = cipher.generate_key()
        nonce = cipher.generate_nonce()

        sealed = cipher.seal(b"4532123456789012", key, nonce)
        plaintext = cipher.open(sealed, key, nonce)

    Security Notes:
        - Key and nonce are drawn independently from the provider's CSPRNG
        - The sealed output is ciphertext || 16-byte tag
        - The key must be wrapped before it leaves the process
    """

    __slots__ = ("_provider",)

    def __init__(self, provider: Optional[CryptoProvider] = None) -> None:
        self._provider = provider or CryptoProvider.default()

    def generate_key(self) -> bytes:
        """
        Generate a cryptographically secure random AES-256 key.

        Returns:
            32 bytes of cryptographic random data
        """
        return self._draw(AES_KEY_SIZE)

    def generate_nonce(self) -> bytes:
        """
        Generate a cryptographically secure random nonce.

        Returns:
            12 bytes of cryptographic random data

        Security:
            96-bit random nonces have negligible collision probability
            for up to 2^32 encryptions under same key.
        """
        return self._draw(AES_NONCE_SIZE)

    def seal(self, plaintext: bytes, key: bytes, nonce: bytes) -> bytes:
        """
        Encrypt and authenticate plaintext.

        Args:
            plaintext: Data to encrypt (can be empty)
            key: 32-byte key
            nonce: 12-byte nonce, never reused with the same key

        Returns:
            Ciphertext with the 16-byte authentication tag appended

        Raises:
            CipherError: If key or nonce has the wrong size, or the primitive fails
        """
        self._check_sizes(key, nonce)

        try:
            return AESGCM(key).encrypt(nonce, plaintext, None)
        except (ValueError, TypeError, OverflowError) as e:
            raise CipherError(f"AES-GCM encryption failed: {e}") from e

    def open(self, sealed: bytes, key: bytes, nonce: bytes) -> bytes:
        """
        Verify and decrypt a sealed payload.

        Args:
            sealed: Ciphertext with authentication tag
            key: The 32-byte key used to seal
            nonce: The nonce used to seal

        Returns:
            Decrypted plaintext bytes

        Raises:
            CipherError: If sizes are invalid
            AuthenticityError: If the tag does not verify

        Security Notes:
            - Integrity is verified BEFORE any plaintext is returned
            - A tag failure means tampering or a wrong key/nonce
        """
        self._check_sizes(key, nonce)
        if len(sealed) < AES_TAG_SIZE:
            raise CipherError(
                "Ciphertext too short (missing authentication tag)",
                context={"length": len(sealed)},
            )

        try:
            return AESGCM(key).decrypt(nonce, sealed, None)
        except InvalidTag as e:
            raise AuthenticityError("Authentication tag verification failed") from e

    def _draw(self, size: int) -> bytes:
        data = self._provider.random_bytes(size)
        if len(data) != size:
            raise CipherError(
                f"Random source returned {len(data)} bytes, expected {size}",
                context={"expected": size, "actual": len(data)},
            )
        return data

    @staticmethod
    def _check_sizes(key: bytes, nonce: bytes) -> None:
        if len(key) != AES_KEY_SIZE:
            raise CipherError(
                f"Key must be exactly {AES_KEY_SIZE} bytes",
                context={"key_length": len(key)},
            )
        if len(nonce) != AES_NONCE_SIZE:
            raise CipherError(
                f"Nonce must be exactly {AES_NONCE_SIZE} bytes",
                context={"nonce_length": len(nonce)},
            )
