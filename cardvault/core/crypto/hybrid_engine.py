"""
Hybrid Card Encryption Engine
=============================

Envelope encryption of a card number for the holder of an RSA key pair.

Encryption Flow:
    card number (UTF-8)
        ↓ AES-256-GCM (fresh key, fresh 96-bit nonce)
    sealed = ciphertext || tag
        ↓ RSA-OAEP-SHA256/MGF1-SHA256 (recipient public key)
    wrapped_key
        ↓ frame(nonce, sealed, wrapped_key)
    envelope
        ↓ uppercase hex
    encrypted_data_hex

Pipeline states:
    VALIDATING → KEY_GENERATED → PAYLOAD_SEALED → KEY_WRAPPED → FRAMED → ENCODED
    Any state may move to FAILED. Nothing is retried or resumed; a caller
    that wants another attempt issues a new request.

WARNING:
    - encrypt() never raises; every failure becomes a Failure outcome
    - The AES key lives only for the duration of one call
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Any, Dict, Optional

from cryptography.hazmat.primitives.asymmetric import rsa

from cardvault.core.crypto.aes_gcm import AesGcmCipher
from cardvault.core.crypto.envelope import frame, unframe
from cardvault.core.crypto.errors import (
    CardVaultError,
    ErrorCategory,
    InvalidInputError,
)
from cardvault.core.crypto.provider import CryptoProvider
from cardvault.core.crypto.rsa_oaep import RsaKeyWrapper
from cardvault.core.models import (
    EncryptionOutcome,
    EncryptionRequest,
    Failure,
    Success,
)
from cardvault.security.constants import PLAINTEXT_ENCODING
from cardvault.utils import hex_codec
from cardvault.utils.validators import validate_not_blank


class EngineState(Enum):
    """States of a single encrypt() pipeline run."""
    VALIDATING = auto()
    KEY_GENERATED = auto()
    PAYLOAD_SEALED = auto()
    KEY_WRAPPED = auto()
    FRAMED = auto()
    ENCODED = auto()
    FAILED = auto()


class HybridCryptoEngine:
    """
    AES-256-GCM + RSA-OAEP envelope encryption for card numbers.

    Usage:
        provider = cardvault.bootstrap()
        engine = HybridCryptoEngine(provider)

        outcome = engine.encrypt_card_number("4532123456789012", public_key_hex)
        if outcome.is_success:
            send(outcome.encrypted_data_hex)

    Security Notes:
        - A new AES key and nonce are drawn for every call
        - The engine holds no per-call state; instances may be shared
          between threads
        - Card numbers and key material are never logged
    """

    __slots__ = ("_provider", "_aes", "_wrapper", "_log")

    def __init__(self, provider: Optional[CryptoProvider] = None) -> None:
        """
        Initialize the engine.

        Args:
            provider: Crypto capability from bootstrap(); defaults to the
                OS CSPRNG provider
        """
        self._provider = provider or CryptoProvider.default()
        self._aes = AesGcmCipher(self._provider)
        self._wrapper = RsaKeyWrapper()
        self._log = logging.getLogger("cardvault.engine")

    @property
    def provider(self) -> CryptoProvider:
        """Get the injected crypto provider."""
        return self._provider

    def generate_key(self) -> bytes:
        """Generate a fresh 256-bit AES key."""
        return self._aes.generate_key()

    def encrypt_card_number(
        self,
        card_number: Optional[str],
        rsa_public_key_hex: Optional[str],
    ) -> EncryptionOutcome:
        """Encrypt a card number; see encrypt()."""
        return self.encrypt(
            EncryptionRequest(
                rsa_public_key_hex=rsa_public_key_hex,
                card_number=card_number,
            )
        )

    def encrypt(self, request: Optional[EncryptionRequest]) -> EncryptionOutcome:
        """
        Run the full encryption pipeline for one request.

        Args:
            request: Card number and recipient public key (hex DER SPKI)

        Returns:
            Success with the hex envelope, or Failure with a category:
                INVALID_INPUT     - missing or blank field
                CIPHER_ERROR      - AES-GCM sealing failed
                KEY_FORMAT_ERROR  - key hex or DER malformed
                WRAP_ERROR        - RSA-OAEP wrapping failed
                UNEXPECTED_ERROR  - anything else
        """
        state = EngineState.VALIDATING
        self._log.debug("Starting encryption for %r", request)

        try:
            plaintext = self._validate(request)

            key = self._aes.generate_key()
            nonce = self._aes.generate_nonce()
            state = self._advance(EngineState.KEY_GENERATED)

            sealed = self._aes.seal(plaintext, key, nonce)
            state = self._advance(EngineState.PAYLOAD_SEALED)

            public_key = self._wrapper.parse_public_key(request.rsa_public_key_hex)
            wrapped_key = self._wrapper.wrap(key, public_key)
            state = self._advance(EngineState.KEY_WRAPPED)

            envelope = frame(nonce, sealed, wrapped_key)
            state = self._advance(EngineState.FRAMED)

            encrypted_data_hex = hex_codec.encode(envelope)
            state = self._advance(EngineState.ENCODED)

        except CardVaultError as e:
            return self._fail(state, e.category, str(e), e.context)
        except Exception as e:
            self._log.exception("Unexpected error during encryption")
            return self._fail(
                state,
                ErrorCategory.UNEXPECTED_ERROR,
                f"Unexpected error: {e}",
                {"exception": type(e).__name__},
            )

        self._log.info(
            "Encryption completed successfully, output size: %d hex chars",
            len(encrypted_data_hex),
        )
        return Success(encrypted_data_hex=encrypted_data_hex)

    def decrypt(self, encrypted_data_hex: str, private_key: rsa.RSAPrivateKey) -> str:
        """
        Open an envelope produced by encrypt().

        This is the recipient's side of the exchange, provided for
        verification and for consumers written in Python.

        Args:
            encrypted_data_hex: Success payload from encrypt()
            private_key: RSA private key matching the public key used

        Returns:
            The original card number

        Raises:
            FormatError: If the hex text is malformed
            FramingError: If the envelope layout is invalid
            WrapError: If the AES key cannot be unwrapped
            CipherError: If the nonce or key has the wrong size
            AuthenticityError: If the payload fails authentication
        """
        nonce, sealed, wrapped_key = unframe(hex_codec.decode(encrypted_data_hex))
        key = self._wrapper.unwrap(wrapped_key, private_key)
        plaintext = self._aes.open(sealed, key, nonce)
        return plaintext.decode(PLAINTEXT_ENCODING)

    @staticmethod
    def _validate(request: Optional[EncryptionRequest]) -> bytes:
        """Check the request and return the plaintext bytes to seal."""
        if request is None:
            raise InvalidInputError("Request cannot be null")

        card_number = validate_not_blank(request.card_number, "Card number")
        validate_not_blank(request.rsa_public_key_hex, "RSA public key")

        try:
            return card_number.encode(PLAINTEXT_ENCODING)
        except UnicodeEncodeError as e:
            raise InvalidInputError(
                "Card number is not valid Unicode text",
                context={"position": e.start},
            ) from e

    def _advance(self, state: EngineState) -> EngineState:
        self._log.debug("Engine state: %s", state.name, extra={"engine_state": state.name})
        return state

    def _fail(
        self,
        state: EngineState,
        category: ErrorCategory,
        message: str,
        context: Dict[str, Any],
    ) -> Failure:
        level = logging.WARNING if category is ErrorCategory.INVALID_INPUT else logging.ERROR
        self._log.log(
            level,
            "Engine state: %s -> %s [%s] %s",
            state.name,
            EngineState.FAILED.name,
            category.value,
            message,
            extra={"engine_state": state.name, "error_category": category.value},
        )
        return Failure(
            category=category,
            message=message,
            failed_state=state.name,
            context=dict(context),
        )
