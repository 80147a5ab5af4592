"""
Security Hardening Module
=========================

Cryptographic self-tests and one-time process bootstrap.

This module implements:
- AES-256-GCM seal/open and tamper-rejection self-tests
- RSA-OAEP (SHA-256 / MGF1-SHA-256) wrap/unwrap self-test
- CSPRNG sanity check
- bootstrap(): configuration, logging and provider set-up, run once
  by the hosting process before any engine is created
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional

from cryptography.hazmat.primitives.asymmetric import rsa

from cardvault.core.config import EngineConfig
from cardvault.core.crypto.aes_gcm import AesGcmCipher
from cardvault.core.crypto.errors import AuthenticityError
from cardvault.core.crypto.provider import CryptoProvider
from cardvault.core.crypto.rsa_oaep import RsaKeyWrapper
from cardvault.core.logging import configure_root_logger
from cardvault.security.constants import KEY_LENGTH_BYTES, MIN_SELF_TEST_RSA_BITS


class SecurityCheckResult(Enum):
    """Result of a security check."""
    PASS = auto()
    WARN = auto()
    FAIL = auto()


@dataclass
class CheckResult:
    """Individual security check result."""
    name: str
    result: SecurityCheckResult
    message: str
    details: Optional[str] = None


class CryptoSelfTest:
    """
    Cryptographic algorithm self-tests.

    Run on startup to verify the primitives behind the engine work as
    configured on this interpreter and OpenSSL build.
    """

    def __init__(
        self,
        provider: Optional[CryptoProvider] = None,
        rsa_bits: int = MIN_SELF_TEST_RSA_BITS,
    ) -> None:
        self._provider = provider or CryptoProvider.default()
        self._rsa_bits = rsa_bits

    def test_aes_gcm(self) -> CheckResult:
        """Seal and open a card-number-sized payload."""
        try:
            cipher = AesGcmCipher(self._provider)
            plaintext = b"4111111111111111"
            key = cipher.generate_key()
            nonce = cipher.generate_nonce()

            sealed = cipher.seal(plaintext, key, nonce)
            opened = cipher.open(sealed, key, nonce)

            if opened == plaintext and len(sealed) == len(plaintext) + 16:
                return CheckResult("AES-256-GCM", SecurityCheckResult.PASS, "Self-test passed")
            return CheckResult("AES-256-GCM", SecurityCheckResult.FAIL, "Decryption mismatch")

        except Exception as e:
            return CheckResult("AES-256-GCM", SecurityCheckResult.FAIL, f"Self-test failed: {e}")

    def test_aes_gcm_tamper(self) -> CheckResult:
        """A flipped ciphertext bit must be rejected."""
        try:
            cipher = AesGcmCipher(self._provider)
            key = cipher.generate_key()
            nonce = cipher.generate_nonce()
            sealed = bytearray(cipher.seal(b"tamper check", key, nonce))
            sealed[0] ^= 0x01

            try:
                cipher.open(bytes(sealed), key, nonce)
            except AuthenticityError:
                return CheckResult("AES-GCM Tamper", SecurityCheckResult.PASS, "Tampering detected")

            return CheckResult("AES-GCM Tamper", SecurityCheckResult.FAIL, "Tampered ciphertext accepted")

        except Exception as e:
            return CheckResult("AES-GCM Tamper", SecurityCheckResult.FAIL, f"Self-test failed: {e}")

    def test_rsa_oaep(self) -> CheckResult:
        """Wrap and unwrap a key under a throwaway RSA key pair."""
        try:
            private_key = rsa.generate_private_key(public_exponent=65537, key_size=self._rsa_bits)
            wrapper = RsaKeyWrapper()
            key = self._provider.random_bytes(KEY_LENGTH_BYTES)

            wrapped = wrapper.wrap(key, private_key.public_key())
            unwrapped = wrapper.unwrap(wrapped, private_key)

            if unwrapped != key:
                return CheckResult("RSA-OAEP", SecurityCheckResult.FAIL, "Unwrap mismatch")
            if len(wrapped) != (private_key.key_size + 7) // 8:
                return CheckResult(
                    "RSA-OAEP",
                    SecurityCheckResult.FAIL,
                    f"Unexpected wrapped key length: {len(wrapped)}",
                )
            return CheckResult("RSA-OAEP", SecurityCheckResult.PASS, "Self-test passed")

        except Exception as e:
            return CheckResult("RSA-OAEP", SecurityCheckResult.FAIL, f"Self-test failed: {e}")

    def test_random_generator(self) -> CheckResult:
        """Test the provider's random source."""
        try:
            random1 = self._provider.random_bytes(32)
            random2 = self._provider.random_bytes(32)

            if len(random1) != 32 or len(random2) != 32:
                return CheckResult("CSPRNG", SecurityCheckResult.FAIL, "Wrong output length")

            if random1 == random2:
                return CheckResult("CSPRNG", SecurityCheckResult.FAIL, "Random bytes not unique")

            unique_bytes = len(set(random1))
            if unique_bytes < 20:  # At least 20 unique bytes in 32
                return CheckResult("CSPRNG", SecurityCheckResult.WARN, f"Low entropy: {unique_bytes}/32 unique")

            return CheckResult("CSPRNG", SecurityCheckResult.PASS, "Self-test passed")

        except Exception as e:
            return CheckResult("CSPRNG", SecurityCheckResult.FAIL, f"Self-test failed: {e}")

    def run_all_tests(self) -> List[CheckResult]:
        """Run all cryptographic self-tests."""
        return [
            self.test_random_generator(),
            self.test_aes_gcm(),
            self.test_aes_gcm_tamper(),
            self.test_rsa_oaep(),
        ]


class StartupSecurityValidator:
    """
    Runs the self-tests and decides whether the process may start
    serving encryption requests.
    """

    def __init__(self, self_test: Optional[CryptoSelfTest] = None, strict_mode: bool = False):
        self._self_test = self_test or CryptoSelfTest()
        self._strict = strict_mode
        self._results: List[CheckResult] = []
        self._log = logging.getLogger("cardvault.security")

    def run_all_checks(self) -> bool:
        """
        Run all security checks.

        Returns:
            True if safe to proceed, False on any failure (or any warning
            in strict mode)
        """
        self._results.clear()

        self._log.info("Running cryptographic self-tests...")
        self._results.extend(self._self_test.run_all_tests())

        failures = [r for r in self._results if r.result == SecurityCheckResult.FAIL]
        warnings = [r for r in self._results if r.result == SecurityCheckResult.WARN]

        for result in self._results:
            level = {
                SecurityCheckResult.PASS: logging.INFO,
                SecurityCheckResult.WARN: logging.WARNING,
                SecurityCheckResult.FAIL: logging.ERROR,
            }[result.result]
            self._log.log(level, "[%s] %s: %s", result.result.name, result.name, result.message)

        if failures:
            self._log.critical("Security validation failed: %d critical failures", len(failures))
            return False

        if warnings and self._strict:
            self._log.critical("Security validation failed: %d warnings in strict mode", len(warnings))
            return False

        self._log.info("Security validation passed")
        return True

    def get_results(self) -> List[CheckResult]:
        """Get all check results."""
        return self._results.copy()

    def get_summary(self) -> str:
        """Get a summary of check results."""
        passed = sum(1 for r in self._results if r.result == SecurityCheckResult.PASS)
        warned = sum(1 for r in self._results if r.result == SecurityCheckResult.WARN)
        failed = sum(1 for r in self._results if r.result == SecurityCheckResult.FAIL)

        return f"Security Check Summary: {passed} passed, {warned} warnings, {failed} failures"


def bootstrap(
    config: Optional[EngineConfig] = None,
    provider: Optional[CryptoProvider] = None,
) -> CryptoProvider:
    """
    One-time process set-up for the encryption engine.

    Configures the root logger from the configuration, runs the crypto
    self-tests (unless disabled) and returns the provider handle to pass
    to HybridCryptoEngine.

    Args:
        config: Configuration; defaults to EngineConfig.get_instance()
        provider: Provider to validate and return; defaults to the OS CSPRNG

    Returns:
        The validated CryptoProvider

    Raises:
        RuntimeError: If the self-tests fail
    """
    config = config or EngineConfig.get_instance()
    provider = provider or CryptoProvider.default()

    configure_root_logger(config.logging, config.paths.log_dir)
    log = logging.getLogger("cardvault.bootstrap")
    log.info("Starting %s %s with %r", config.app.app_name, config.app.version, provider)

    if config.crypto.run_self_tests:
        validator = StartupSecurityValidator(
            CryptoSelfTest(provider, rsa_bits=config.crypto.self_test_rsa_bits),
            strict_mode=config.crypto.strict_self_tests,
        )
        if not validator.run_all_checks():
            raise RuntimeError(validator.get_summary())

    return provider
