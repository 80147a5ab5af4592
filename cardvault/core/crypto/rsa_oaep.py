"""
RSA-OAEP Key Wrapping
=====================

Wraps the per-operation AES key under the recipient's RSA public key.

Padding parameters (interoperability contract):
    - OAEP main hash: SHA-256
    - Mask generation: MGF1 with SHA-256
    - Label: empty

A consumer configured with MGF1-SHA-1 (a common default) cannot unwrap
keys produced here. Do not change these parameters.

Public keys arrive as hex-encoded DER SubjectPublicKeyInfo.
"""

from __future__ import annotations

from typing import Final

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from cardvault.core.crypto.errors import FormatError, KeyFormatError, WrapError
from cardvault.security.constants import OAEP_HASH_LENGTH_BYTES
from cardvault.utils import hex_codec

_OAEP_OVERHEAD: Final[int] = 2 * OAEP_HASH_LENGTH_BYTES + 2


def _oaep() -> padding.OAEP:
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=hashes.SHA256()),
        algorithm=hashes.SHA256(),
        label=None,
    )


class RsaKeyWrapper:
    """
    RSA-OAEP (SHA-256 / MGF1-SHA-256) key wrap and unwrap.

    Stateless: keys are passed per call and never cached.
    """

    __slots__ = ()

    @staticmethod
    def parse_public_key(encoded_hex: str) -> rsa.RSAPublicKey:
        """
        Parse a hex-encoded DER SubjectPublicKeyInfo into an RSA public key.

        Raises:
            KeyFormatError: If the hex is malformed, the DER does not parse,
                the key is not an RSA key, or the DER is not in SubjectPublicKeyInfo
                form (a bare PKCS#1 RSAPublicKey is rejected)
        """
        try:
            der = hex_codec.decode(encoded_hex)
        except FormatError as e:
            raise KeyFormatError(
                f"Invalid RSA public key hex: {e}", context=e.context
            ) from e

        try:
            public_key = serialization.load_der_public_key(der)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise KeyFormatError(
                "Failed to parse RSA public key",
                context={"der_length": len(der)},
            ) from e

        if not isinstance(public_key, rsa.RSAPublicKey):
            raise KeyFormatError(
                f"Expected an RSA public key, got {type(public_key).__name__}",
                context={"key_type": type(public_key).__name__},
            )

        # load_der_public_key also takes a bare PKCS#1 RSAPublicKey
        spki = public_key.public_bytes(
            serialization.Encoding.DER,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        if spki != der:
            raise KeyFormatError(
                "RSA public key is not a DER SubjectPublicKeyInfo",
                context={"der_length": len(der)},
            )

        return public_key

    @staticmethod
    def max_wrappable_bytes(public_key: rsa.RSAPublicKey) -> int:
        """Largest payload OAEP-SHA-256 can wrap under this key."""
        modulus_bytes = (public_key.key_size + 7) // 8
        return modulus_bytes - _OAEP_OVERHEAD

    def wrap(self, key_bytes: bytes, public_key: rsa.RSAPublicKey) -> bytes:
        """
        Encrypt a symmetric key under the recipient's public key.

        Returns:
            Wrapped key, exactly as long as the RSA modulus in bytes

        Raises:
            WrapError: If the payload is too large for the key or encryption fails
        """
        limit = self.max_wrappable_bytes(public_key)
        if len(key_bytes) > limit:
            raise WrapError(
                f"Payload of {len(key_bytes)} bytes exceeds OAEP limit of "
                f"{limit} bytes for a {public_key.key_size}-bit key",
                context={"payload_length": len(key_bytes), "limit": limit},
            )

        try:
            return public_key.encrypt(bytes(key_bytes), _oaep())
        except (ValueError, TypeError) as e:
            raise WrapError(f"RSA-OAEP encryption failed: {e}") from e

    @staticmethod
    def unwrap(wrapped_key: bytes, private_key: rsa.RSAPrivateKey) -> bytes:
        """
        Recover a wrapped symmetric key with the matching private key.

        Raises:
            WrapError: If decryption or padding verification fails
        """
        try:
            return private_key.decrypt(bytes(wrapped_key), _oaep())
        except ValueError as e:
            raise WrapError("RSA-OAEP decryption failed") from e
