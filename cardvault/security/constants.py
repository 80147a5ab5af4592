"""
Security Constants
==================

Wire-level constants for the card envelope format.
These values are part of the interoperability contract with every
consumer that opens an envelope and must not be changed.
"""

from typing import Final

# Symmetric layer
ENCRYPTION_ALGORITHM: Final[str] = "AES-256-GCM"
KEY_LENGTH_BYTES: Final[int] = 32  # 256 bits
IV_LENGTH_BYTES: Final[int] = 12  # 96 bits for GCM
TAG_LENGTH_BYTES: Final[int] = 16  # 128 bits

# Key wrapping
KEY_WRAP_ALGORITHM: Final[str] = "RSA-OAEP-SHA256-MGF1-SHA256"
OAEP_HASH_LENGTH_BYTES: Final[int] = 32  # SHA-256 digest size

# Envelope framing
LENGTH_PREFIX_BYTES: Final[int] = 4  # unsigned 32-bit big-endian
MAX_FIELD_LENGTH: Final[int] = 0xFFFFFFFF

# Text encoding of the card number before sealing
PLAINTEXT_ENCODING: Final[str] = "utf-8"

# Minimum RSA modulus accepted by startup self-tests
MIN_SELF_TEST_RSA_BITS: Final[int] = 2048
