"""
Shared fixtures: RSA key pairs (generated once per session), hex-encoded
public keys, and isolation of process-wide configuration and logging.
"""

import logging
from typing import Iterator

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from cardvault.core.config import EngineConfig


def public_key_hex(private_key) -> str:
    der = private_key.public_key().public_bytes(
        serialization.Encoding.DER,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return der.hex().upper()


@pytest.fixture(scope="session")
def rsa_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def rsa_public_key_hex(rsa_private_key) -> str:
    return public_key_hex(rsa_private_key)


@pytest.fixture(scope="session")
def rsa_keys_by_size():
    return {
        bits: rsa.generate_private_key(public_exponent=65537, key_size=bits)
        for bits in (2048, 3072, 4096)
    }


@pytest.fixture(autouse=True)
def _reset_config() -> Iterator[None]:
    EngineConfig.reset_instance()
    yield
    EngineConfig.reset_instance()


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    """Undo configure_root_logger() changes made by a test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


@pytest.fixture(scope="session")
def hex_of():
    """Hex-encoded DER SubjectPublicKeyInfo for a private key's public half."""
    return public_key_hex
