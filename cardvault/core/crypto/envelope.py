"""
Card Envelope Framing
=====================

Binary layout of an encrypted card number.

Format (all integers unsigned 32-bit big-endian):
    NONCE_LEN (4) | NONCE | SEALED_LEN (4) | SEALED | WRAPPED_KEY

SEALED is the AES-GCM ciphertext with its 16-byte tag. WRAPPED_KEY has
no length prefix: it is everything after SEALED. This only works because
it is the last field, so no field may ever be appended after it.
Field order and the missing trailing prefix are fixed for compatibility
with existing parsers.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Final, Tuple

from cardvault.core.crypto.errors import FramingError
from cardvault.security.constants import LENGTH_PREFIX_BYTES, MAX_FIELD_LENGTH

_LENGTH_FORMAT: Final[str] = ">I"


@dataclass(frozen=True, slots=True)
class Envelope:
    """
    Immutable container for the three envelope fields.

    Attributes:
        nonce: AES-GCM nonce (12 bytes when produced by the engine)
        sealed: Ciphertext with appended authentication tag
        wrapped_key: RSA-OAEP wrapped AES key
    """

    nonce: bytes
    sealed: bytes
    wrapped_key: bytes

    def to_bytes(self) -> bytes:
        """
        Serialize the envelope.

        Raises:
            FramingError: If a prefixed field does not fit a 32-bit length
        """
        for name, value in (("nonce", self.nonce), ("sealed", self.sealed)):
            if len(value) > MAX_FIELD_LENGTH:
                raise FramingError(
                    f"{name} is too long to frame",
                    context={"field": name, "length": len(value)},
                )

        parts = [
            struct.pack(_LENGTH_FORMAT, len(self.nonce)),
            self.nonce,
            struct.pack(_LENGTH_FORMAT, len(self.sealed)),
            self.sealed,
            self.wrapped_key,
        ]

        return b"".join(parts)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Envelope":
        """
        Deserialize an envelope.

        Raises:
            FramingError: If a header is truncated or a declared length
                runs past the end of the buffer
        """
        offset = 0

        nonce, offset = _read_prefixed(data, offset, "nonce")
        sealed, offset = _read_prefixed(data, offset, "sealed")
        wrapped_key = bytes(data[offset:])

        return cls(nonce=nonce, sealed=sealed, wrapped_key=wrapped_key)

    def __repr__(self) -> str:
        """Safe representation."""
        return (
            f"Envelope(nonce_len={len(self.nonce)}, "
            f"sealed_len={len(self.sealed)}, "
            f"wrapped_key_len={len(self.wrapped_key)})"
        )


def _read_prefixed(data: bytes, offset: int, name: str) -> Tuple[bytes, int]:
    if len(data) - offset < LENGTH_PREFIX_BYTES:
        raise FramingError(
            f"Envelope truncated before {name} length",
            context={"field": name, "offset": offset, "size": len(data)},
        )

    length = struct.unpack_from(_LENGTH_FORMAT, data, offset)[0]
    offset += LENGTH_PREFIX_BYTES

    remaining = len(data) - offset
    if length > remaining:
        raise FramingError(
            f"Declared {name} length {length} exceeds remaining {remaining} bytes",
            context={"field": name, "declared": length, "remaining": remaining},
        )

    return bytes(data[offset : offset + length]), offset + length


def frame(nonce: bytes, sealed: bytes, wrapped_key: bytes) -> bytes:
    """Build the binary envelope from its three fields."""
    return Envelope(nonce=nonce, sealed=sealed, wrapped_key=wrapped_key).to_bytes()


def unframe(data: bytes) -> Tuple[bytes, bytes, bytes]:
    """Split a binary envelope into (nonce, sealed, wrapped_key)."""
    envelope = Envelope.from_bytes(data)
    return envelope.nonce, envelope.sealed, envelope.wrapped_key
