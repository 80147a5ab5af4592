"""
CardVault Demo
==============

End-to-end run of the encryption flow, as an API consumer would see it:

    1. generate an RSA key pair and hex-encode its SubjectPublicKeyInfo
    2. encrypt a card number with HybridCryptoEngine
    3. report the envelope layout and open it again with the private key

Usage:
    python -m cardvault [--card-number N] [--key-size BITS] [--skip-self-tests]
"""

from __future__ import annotations

import argparse
import dataclasses
import sys
from typing import List, Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from cardvault.core.config import EngineConfig
from cardvault.core.crypto.envelope import unframe
from cardvault.core.crypto.errors import CardVaultError
from cardvault.core.crypto.hybrid_engine import HybridCryptoEngine
from cardvault.core.logging import get_secure_logger
from cardvault.security.hardening import bootstrap
from cardvault.utils import hex_codec

DEMO_CARD_NUMBER = "4532123456789012"


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="cardvault",
        description="Encrypt a card number for a freshly generated RSA key pair.",
    )
    parser.add_argument("--card-number", default=DEMO_CARD_NUMBER)
    parser.add_argument("--key-size", type=int, default=2048, help="RSA modulus size in bits")
    parser.add_argument(
        "--skip-self-tests",
        action="store_true",
        help="do not run the startup crypto self-tests",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Run the demo; returns the process exit code."""
    args = _parse_args(argv)

    config = EngineConfig.get_instance()
    if args.skip_self_tests:
        config = EngineConfig(
            paths=config.paths,
            logging=config.logging,
            crypto=dataclasses.replace(config.crypto, run_self_tests=False),
            app=config.app,
        )

    log = get_secure_logger("cardvault.demo", config.logging, config.paths.log_dir)
    log.info("=== %s %s demo ===", config.app.app_name, config.app.version)

    try:
        provider = bootstrap(config)
    except RuntimeError as e:
        log.error("Startup self-tests failed: %s", e)
        return 1

    log.info("Step 1: generating %d-bit RSA key pair", args.key_size)
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=args.key_size)
    public_key_hex = hex_codec.encode(
        private_key.public_key().public_bytes(
            serialization.Encoding.DER,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    )
    log.info("Public key (hex SPKI): %s...", public_key_hex[:20])

    card_number = args.card_number
    log.info("Step 2: encrypting card number %s****", card_number[:4])
    engine = HybridCryptoEngine(provider)
    outcome = engine.encrypt_card_number(card_number, public_key_hex)

    if not outcome.is_success:
        log.error("Encryption failed in state %s: %s", outcome.failed_state, outcome)
        return 1

    encrypted_data_hex = outcome.encrypted_data_hex
    nonce, sealed, wrapped_key = unframe(hex_codec.decode(encrypted_data_hex))
    log.info("Step 3: encrypted data: %s... (%d hex characters)", encrypted_data_hex[:24], len(encrypted_data_hex))
    log.info("Envelope layout:")
    log.info("  nonce        %4d bytes (AES-GCM IV)", len(nonce))
    log.info("  sealed       %4d bytes (AES-256-GCM ciphertext + tag)", len(sealed))
    log.info("  wrapped key  %4d bytes (RSA-OAEP, SHA-256/MGF1-SHA-256)", len(wrapped_key))

    try:
        recovered = engine.decrypt(encrypted_data_hex, private_key)
    except CardVaultError as e:
        log.error("Round trip failed: %s", e)
        return 1

    if recovered != card_number:
        log.error("Round trip returned a different card number")
        return 1

    log.info("Round trip verified with the private key")
    return 0


if __name__ == "__main__":
    sys.exit(main())
