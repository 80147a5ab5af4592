"""
Crypto Provider Handle
======================

The capability the engine draws randomness from.

The process bootstrap builds one provider and hands it to every engine,
instead of the engine reaching for global state on import. Tests inject
a deterministic source through the same seam.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from typing import Callable

import cryptography
from cryptography.hazmat.backends.openssl import backend as _openssl_backend

RandomSource = Callable[[int], bytes]


def _backend_version() -> str:
    return f"cryptography {cryptography.__version__} ({_openssl_backend.openssl_version_text()})"


@dataclass(frozen=True, slots=True)
class CryptoProvider:
    """
    Immutable handle to the primitives used by the engine.

    Attributes:
        random_bytes: Callable returning n bytes from a CSPRNG. Must be safe
            to call from several threads at once.
        name: Human-readable description of the backing library
    """

    random_bytes: RandomSource = secrets.token_bytes
    name: str = field(default_factory=_backend_version)

    @classmethod
    def default(cls) -> CryptoProvider:
        """Provider backed by the OS CSPRNG via the secrets module."""
        return cls()

    def __repr__(self) -> str:
        return f"CryptoProvider({self.name})"
