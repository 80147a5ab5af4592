"""
Security module - Wire constants and startup hardening.

Security Considerations:
- Only approved primitives: AES-256-GCM and RSA-OAEP with SHA-256
- Fail-closed startup: no provider is handed out if self-tests fail
- No custom cryptography implementations

The hardening submodule is imported explicitly
(cardvault.security.hardening) because it depends on cardvault.core.
"""

from cardvault.security.constants import (
    ENCRYPTION_ALGORITHM,
    KEY_WRAP_ALGORITHM,
    KEY_LENGTH_BYTES,
    IV_LENGTH_BYTES,
    TAG_LENGTH_BYTES,
)

__all__ = [
    "ENCRYPTION_ALGORITHM",
    "KEY_WRAP_ALGORITHM",
    "KEY_LENGTH_BYTES",
    "IV_LENGTH_BYTES",
    "TAG_LENGTH_BYTES",
]
