"""
Encryption engine: end-to-end scenarios, error categories, freshness,
concurrency.
"""

import logging
import struct
from concurrent.futures import ThreadPoolExecutor

import pytest
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from cardvault import (
    EncryptionRequest,
    ErrorCategory,
    Failure,
    HybridCryptoEngine,
    Success,
)
from cardvault.core.crypto.errors import (
    AuthenticityError,
    FormatError,
    FramingError,
    WrapError,
)
from cardvault.core.crypto.provider import CryptoProvider
from cardvault.core.crypto.rsa_oaep import RsaKeyWrapper

CARD = "4532123456789012"


def reference_decrypt(encrypted_data_hex, private_key):
    """Open an envelope using only the cryptography primitives."""
    data = bytes.fromhex(encrypted_data_hex)
    nonce_len = struct.unpack(">I", data[:4])[0]
    nonce = data[4:4 + nonce_len]
    offset = 4 + nonce_len
    sealed_len = struct.unpack(">I", data[offset:offset + 4])[0]
    sealed = data[offset + 4:offset + 4 + sealed_len]
    wrapped_key = data[offset + 4 + sealed_len:]

    aes_key = private_key.decrypt(
        wrapped_key,
        padding.OAEP(
            mgf=padding.MGF1(algorithm=hashes.SHA256()),
            algorithm=hashes.SHA256(),
            label=None,
        ),
    )
    return AESGCM(aes_key).decrypt(nonce, sealed, None).decode("utf-8")


@pytest.fixture
def engine():
    return HybridCryptoEngine()


# ── Success path ──────────────────────────────────────────────────────────────
def test_encrypt_card_number_succeeds(engine, rsa_public_key_hex):
    outcome = engine.encrypt(EncryptionRequest(rsa_public_key_hex, CARD))
    assert isinstance(outcome, Success)
    assert outcome.is_success


def test_output_size_for_2048_bit_key(engine, rsa_public_key_hex):
    outcome = engine.encrypt_card_number(CARD, rsa_public_key_hex)
    # 4 + 12 + 4 + (16 + 16) + 256
    assert len(bytes.fromhex(outcome.encrypted_data_hex)) == 308
    assert len(outcome.encrypted_data_hex) == 616


def test_output_is_uppercase_hex(engine, rsa_public_key_hex):
    outcome = engine.encrypt_card_number(CARD, rsa_public_key_hex)
    assert outcome.encrypted_data_hex == outcome.encrypted_data_hex.upper()


def test_length_fields_match_layout(engine, rsa_public_key_hex):
    data = bytes.fromhex(engine.encrypt_card_number(CARD, rsa_public_key_hex).encrypted_data_hex)
    assert struct.unpack(">I", data[:4])[0] == 12
    assert struct.unpack(">I", data[16:20])[0] == len(CARD) + 16
    assert len(data) - 20 - (len(CARD) + 16) == 256


def test_reference_implementation_recovers_card(engine, rsa_private_key, rsa_public_key_hex):
    outcome = engine.encrypt_card_number(CARD, rsa_public_key_hex)
    assert reference_decrypt(outcome.encrypted_data_hex, rsa_private_key) == CARD


def test_engine_decrypt_recovers_card(engine, rsa_private_key, rsa_public_key_hex):
    outcome = engine.encrypt_card_number(CARD, rsa_public_key_hex)
    assert engine.decrypt(outcome.encrypted_data_hex, rsa_private_key) == CARD


def test_lowercase_public_key_hex_is_accepted(engine, rsa_private_key, rsa_public_key_hex):
    outcome = engine.encrypt_card_number(CARD, rsa_public_key_hex.lower())
    assert reference_decrypt(outcome.encrypted_data_hex, rsa_private_key) == CARD


@pytest.mark.parametrize("card", ["4532123456789012", "5425233430109903", "374245455400126", "1"])
def test_multiple_card_numbers(engine, rsa_private_key, rsa_public_key_hex, card):
    outcome = engine.encrypt_card_number(card, rsa_public_key_hex)
    assert reference_decrypt(outcome.encrypted_data_hex, rsa_private_key) == card


def test_non_ascii_plaintext_is_sealed_as_utf8(engine, rsa_private_key, rsa_public_key_hex):
    card = "4532 1234 5678 901€"
    outcome = engine.encrypt_card_number(card, rsa_public_key_hex)
    data = bytes.fromhex(outcome.encrypted_data_hex)
    assert struct.unpack(">I", data[16:20])[0] == len(card.encode("utf-8")) + 16
    assert reference_decrypt(outcome.encrypted_data_hex, rsa_private_key) == card


@pytest.mark.parametrize("bits", [2048, 3072, 4096])
def test_wrapped_key_scales_with_modulus(engine, rsa_keys_by_size, hex_of, bits):
    private_key = rsa_keys_by_size[bits]
    outcome = engine.encrypt_card_number(CARD, hex_of(private_key))
    data = bytes.fromhex(outcome.encrypted_data_hex)

    assert len(data) == 4 + 12 + 4 + 32 + bits // 8
    assert reference_decrypt(outcome.encrypted_data_hex, private_key) == CARD


# ── Freshness ─────────────────────────────────────────────────────────────────
def test_identical_requests_produce_different_output(engine, rsa_public_key_hex):
    first = engine.encrypt_card_number(CARD, rsa_public_key_hex).encrypted_data_hex
    second = engine.encrypt_card_number(CARD, rsa_public_key_hex).encrypted_data_hex
    assert first != second
    # nonce and sealed payload both differ, not only the randomized OAEP block
    assert first[8:32] != second[8:32]
    assert first[40:104] != second[40:104]


def test_generate_key_is_fresh(engine):
    keys = {engine.generate_key() for _ in range(100)}
    assert len(keys) == 100
    assert all(len(key) == 32 for key in keys)


def test_injected_provider_supplies_key_and_nonce(rsa_private_key, rsa_public_key_hex):
    draws = iter([b"\x11" * 32, b"\x22" * 12])
    engine = HybridCryptoEngine(CryptoProvider(random_bytes=lambda n: next(draws), name="fixed"))

    outcome = engine.encrypt_card_number(CARD, rsa_public_key_hex)
    data = bytes.fromhex(outcome.encrypted_data_hex)
    assert data[4:16] == b"\x22" * 12

    unwrapped = RsaKeyWrapper.unwrap(data[52:], rsa_private_key)
    assert unwrapped == b"\x11" * 32


def test_concurrent_encryptions_are_independent(engine, rsa_private_key, rsa_public_key_hex):
    cards = [f"45321234567890{i:02d}" for i in range(32)]
    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(pool.map(lambda c: engine.encrypt_card_number(c, rsa_public_key_hex), cards))

    assert all(o.is_success for o in outcomes)
    assert len({o.encrypted_data_hex[8:32] for o in outcomes}) == len(cards)
    assert [reference_decrypt(o.encrypted_data_hex, rsa_private_key) for o in outcomes] == cards


# ── Invalid input ─────────────────────────────────────────────────────────────
def test_none_request(engine):
    outcome = engine.encrypt(None)
    assert isinstance(outcome, Failure)
    assert outcome.category is ErrorCategory.INVALID_INPUT
    assert outcome.failed_state == "VALIDATING"


@pytest.mark.parametrize("card", [None, "", "   ", "\t\n"])
def test_missing_or_blank_card_number(engine, rsa_public_key_hex, card):
    outcome = engine.encrypt_card_number(card, rsa_public_key_hex)
    assert outcome.category is ErrorCategory.INVALID_INPUT
    assert "Card number" in outcome.message


@pytest.mark.parametrize("key_hex", [None, "", "  "])
def test_missing_or_blank_public_key(engine, key_hex):
    outcome = engine.encrypt_card_number(CARD, key_hex)
    assert outcome.category is ErrorCategory.INVALID_INPUT
    assert "RSA public key" in outcome.message


def test_unencodable_card_number(engine, rsa_public_key_hex):
    outcome = engine.encrypt_card_number("4532\ud800", rsa_public_key_hex)
    assert outcome.category is ErrorCategory.INVALID_INPUT


# ── Key format ────────────────────────────────────────────────────────────────
def test_invalid_hex_key(engine):
    outcome = engine.encrypt_card_number(CARD, "INVALID_HEX")
    assert isinstance(outcome, Failure)
    assert outcome.category is ErrorCategory.KEY_FORMAT_ERROR
    assert not outcome.is_success
    assert not hasattr(outcome, "encrypted_data_hex")


def test_non_hex_even_length_key(engine):
    outcome = engine.encrypt_card_number(CARD, "GG" * 40)
    assert outcome.category is ErrorCategory.KEY_FORMAT_ERROR
    assert outcome.context["position"] == 0


def test_structurally_invalid_key(engine):
    outcome = engine.encrypt_card_number(CARD, "3082" + "00" * 60)
    assert outcome.category is ErrorCategory.KEY_FORMAT_ERROR
    assert outcome.failed_state == "PAYLOAD_SEALED"


def test_pkcs1_public_key_is_rejected(engine, rsa_private_key):
    pkcs1_hex = rsa_private_key.public_key().public_bytes(
        serialization.Encoding.DER,
        serialization.PublicFormat.PKCS1,
    ).hex().upper()
    outcome = engine.encrypt_card_number(CARD, pkcs1_hex)

    assert isinstance(outcome, Failure)
    assert outcome.category is ErrorCategory.KEY_FORMAT_ERROR
    assert outcome.failed_state == "PAYLOAD_SEALED"


# ── Other categories ──────────────────────────────────────────────────────────
def test_cipher_failure_is_reported(monkeypatch, engine, rsa_public_key_hex):
    class BrokenAESGCM:
        def __init__(self, key):
            pass

        def encrypt(self, nonce, data, aad):
            raise ValueError("primitive rejected input")

    monkeypatch.setattr("cardvault.core.crypto.aes_gcm.AESGCM", BrokenAESGCM)
    outcome = engine.encrypt_card_number(CARD, rsa_public_key_hex)

    assert outcome.category is ErrorCategory.CIPHER_ERROR
    assert outcome.failed_state == "KEY_GENERATED"


def test_wrap_failure_is_reported(monkeypatch, engine, rsa_public_key_hex):
    monkeypatch.setattr(RsaKeyWrapper, "max_wrappable_bytes", staticmethod(lambda public_key: 16))
    outcome = engine.encrypt_card_number(CARD, rsa_public_key_hex)

    assert outcome.category is ErrorCategory.WRAP_ERROR
    assert outcome.context == {"payload_length": 32, "limit": 16}


def test_unexpected_exception_is_caught(monkeypatch, engine, rsa_public_key_hex):
    def explode(*args):
        raise RuntimeError("boom")

    monkeypatch.setattr("cardvault.core.crypto.hybrid_engine.frame", explode)
    outcome = engine.encrypt_card_number(CARD, rsa_public_key_hex)

    assert outcome.category is ErrorCategory.UNEXPECTED_ERROR
    assert outcome.failed_state == "KEY_WRAPPED"
    assert "boom" in outcome.message


def test_unclassified_library_error_maps_to_unexpected(monkeypatch, engine, rsa_public_key_hex):
    def too_long(*args):
        raise FramingError("nonce is too long to frame")

    monkeypatch.setattr("cardvault.core.crypto.hybrid_engine.frame", too_long)
    outcome = engine.encrypt_card_number(CARD, rsa_public_key_hex)
    assert outcome.category is ErrorCategory.UNEXPECTED_ERROR


def test_failure_str_carries_category():
    failure = Failure(category=ErrorCategory.WRAP_ERROR, message="too big")
    assert str(failure) == "WrapError: too big"


# ── Decrypt path errors ───────────────────────────────────────────────────────
def test_decrypt_rejects_tampered_ciphertext(engine, rsa_private_key, rsa_public_key_hex):
    data = bytearray.fromhex(engine.encrypt_card_number(CARD, rsa_public_key_hex).encrypted_data_hex)
    data[20] ^= 0x01
    with pytest.raises(AuthenticityError):
        engine.decrypt(bytes(data).hex(), rsa_private_key)


def test_decrypt_rejects_tampered_nonce(engine, rsa_private_key, rsa_public_key_hex):
    data = bytearray.fromhex(engine.encrypt_card_number(CARD, rsa_public_key_hex).encrypted_data_hex)
    data[4] ^= 0x01
    with pytest.raises(AuthenticityError):
        engine.decrypt(bytes(data).hex(), rsa_private_key)


def test_decrypt_with_wrong_private_key(engine, rsa_keys_by_size, rsa_public_key_hex):
    outcome = engine.encrypt_card_number(CARD, rsa_public_key_hex)
    with pytest.raises(WrapError):
        engine.decrypt(outcome.encrypted_data_hex, rsa_keys_by_size[2048])


def test_decrypt_rejects_malformed_hex(engine, rsa_private_key):
    with pytest.raises(FormatError):
        engine.decrypt("ABC", rsa_private_key)


def test_decrypt_rejects_truncated_envelope(engine, rsa_private_key):
    with pytest.raises(FramingError):
        engine.decrypt("0000000C0011", rsa_private_key)


# ── Logging hygiene ───────────────────────────────────────────────────────────
def test_card_number_never_logged(engine, rsa_public_key_hex, caplog):
    with caplog.at_level(logging.DEBUG, logger="cardvault"):
        engine.encrypt_card_number(CARD, rsa_public_key_hex)
        engine.encrypt_card_number(CARD, "INVALID_HEX")

    assert caplog.records
    assert CARD not in caplog.text
    assert rsa_public_key_hex not in caplog.text
