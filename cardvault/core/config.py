"""
Engine Configuration Module
===========================

Immutable, environment-aware configuration for the process hosting the
encryption engine.

Only operational settings live here (logging, log paths, startup
self-tests). Wire parameters such as key, nonce and tag sizes or the
OAEP hashes are fixed in cardvault.security.constants and cannot be
overridden.
"""

from __future__ import annotations

import hashlib
import os
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final, Optional

from cardvault.security.constants import MIN_SELF_TEST_RSA_BITS


_SENSITIVE_KEYS: Final[frozenset[str]] = frozenset({
    "password", "secret", "key", "token", "api_key",
    "private", "credential", "auth", "salt", "card", "pan",
})

_VALID_LEVELS: Final[frozenset[str]] = frozenset({
    "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL",
})


def _is_sensitive_key(key: str) -> bool:
    """Check if a configuration key might contain sensitive data."""
    key_lower = key.lower()
    return any(sensitive in key_lower for sensitive in _SENSITIVE_KEYS)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_default_log_dir() -> Path:
    """Get OS-appropriate default log directory."""
    system = platform.system().lower()

    if system == "windows":
        base = Path(os.environ.get("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
        return base / "CardVault" / "Logs"
    elif system == "darwin":
        return Path.home() / "Library" / "Logs" / "CardVault"
    else:  # Linux and others
        return Path(os.environ.get("XDG_STATE_HOME", Path.home() / ".local" / "state")) / "CardVault" / "logs"


@dataclass(frozen=True, slots=True)
class PathConfig:
    """Immutable path configuration with OS-aware defaults."""

    log_dir: Path = field(default_factory=_get_default_log_dir)

    def __post_init__(self) -> None:
        if not self.log_dir.is_absolute():
            raise ValueError(f"log_dir must be an absolute path: {self.log_dir}")


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Immutable logging configuration."""

    level: str = "INFO"
    max_file_size_bytes: int = 10 * 1024 * 1024  # 10 MB
    backup_count: int = 5
    enable_console: bool = True
    enable_file: bool = False
    enable_json: bool = False
    include_checksums: bool = False

    def __post_init__(self) -> None:
        if self.level.upper() not in _VALID_LEVELS:
            raise ValueError(f"Invalid log level: {self.level}")
        if self.backup_count < 0:
            raise ValueError("backup_count cannot be negative")


@dataclass(frozen=True, slots=True)
class CryptoConfig:
    """Startup self-test settings."""

    run_self_tests: bool = True
    strict_self_tests: bool = False  # treat warnings as failures
    self_test_rsa_bits: int = MIN_SELF_TEST_RSA_BITS

    def __post_init__(self) -> None:
        if self.self_test_rsa_bits < MIN_SELF_TEST_RSA_BITS:
            raise ValueError(
                f"self_test_rsa_bits must be at least {MIN_SELF_TEST_RSA_BITS}"
            )


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Immutable application identity."""

    app_name: str = "CardVault"
    version: str = "0.1.0"


class EngineConfig:
    """
    Centralized, immutable configuration loader with environment override support.

    Usage:
        config = EngineConfig.load()
        level = config.logging.level
        run_tests = config.crypto.run_self_tests
    """

    __slots__ = ("_paths", "_logging", "_crypto", "_app", "_frozen", "_config_hash")

    _instance: Optional[EngineConfig] = None

    def __init__(
        self,
        paths: Optional[PathConfig] = None,
        logging: Optional[LoggingConfig] = None,
        crypto: Optional[CryptoConfig] = None,
        app: Optional[AppConfig] = None,
    ) -> None:
        """Initialize configuration. Use EngineConfig.load() for standard initialization."""
        object.__setattr__(self, "_frozen", False)
        object.__setattr__(self, "_paths", paths or PathConfig())
        object.__setattr__(self, "_logging", logging or LoggingConfig())
        object.__setattr__(self, "_crypto", crypto or CryptoConfig())
        object.__setattr__(self, "_app", app or AppConfig())
        object.__setattr__(self, "_config_hash", self._compute_hash())
        object.__setattr__(self, "_frozen", True)

    def _compute_hash(self) -> str:
        """Compute a hash of the configuration for integrity checking."""
        config_str = f"{self._paths}|{self._logging}|{self._crypto}|{self._app}"
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]

    @property
    def paths(self) -> PathConfig:
        return self._paths

    @property
    def logging(self) -> LoggingConfig:
        return self._logging

    @property
    def crypto(self) -> CryptoConfig:
        return self._crypto

    @property
    def app(self) -> AppConfig:
        return self._app

    @property
    def config_hash(self) -> str:
        """Get configuration integrity hash."""
        return self._config_hash

    @classmethod
    def load(cls, env_prefix: str = "CARDVAULT") -> EngineConfig:
        """
        Load configuration with environment variable overrides.

        Environment variables use the prefix followed by an underscore and
        double underscores between section and key.

        Examples:
            CARDVAULT_LOGGING__LEVEL=DEBUG
            CARDVAULT_LOGGING__ENABLE_FILE=true
            CARDVAULT_PATHS__LOG_DIR=/var/log/cardvault
            CARDVAULT_CRYPTO__RUN_SELF_TESTS=false

        Args:
            env_prefix: Prefix for environment variables (default: CARDVAULT)

        Returns:
            Configured EngineConfig instance
        """
        env_overrides = cls._parse_env_overrides(env_prefix)

        paths_kwargs: dict[str, Any] = {}
        if "paths.log_dir" in env_overrides:
            paths_kwargs["log_dir"] = Path(env_overrides["paths.log_dir"])

        logging_kwargs: dict[str, Any] = {}
        if "logging.level" in env_overrides:
            logging_kwargs["level"] = env_overrides["logging.level"]
        for flag in ("enable_console", "enable_file", "enable_json", "include_checksums"):
            if f"logging.{flag}" in env_overrides:
                logging_kwargs[flag] = _parse_bool(env_overrides[f"logging.{flag}"])

        crypto_kwargs: dict[str, Any] = {}
        for flag in ("run_self_tests", "strict_self_tests"):
            if f"crypto.{flag}" in env_overrides:
                crypto_kwargs[flag] = _parse_bool(env_overrides[f"crypto.{flag}"])
        if "crypto.self_test_rsa_bits" in env_overrides:
            crypto_kwargs["self_test_rsa_bits"] = int(env_overrides["crypto.self_test_rsa_bits"])

        return cls(
            paths=PathConfig(**paths_kwargs) if paths_kwargs else None,
            logging=LoggingConfig(**logging_kwargs) if logging_kwargs else None,
            crypto=CryptoConfig(**crypto_kwargs) if crypto_kwargs else None,
        )

    @staticmethod
    def _parse_env_overrides(prefix: str) -> dict[str, str]:
        """Parse environment variables with the given prefix."""
        overrides: dict[str, str] = {}
        prefix_upper = f"{prefix.upper()}_"

        for key, value in os.environ.items():
            if key.startswith(prefix_upper):
                # CARDVAULT_SECTION__KEY -> section.key
                config_key = key[len(prefix_upper):].lower().replace("__", ".")

                # SECURITY: Skip sensitive keys from environment
                if _is_sensitive_key(config_key):
                    continue

                overrides[config_key] = value

        return overrides

    @classmethod
    def get_instance(cls) -> EngineConfig:
        """Get or create the singleton configuration instance."""
        if cls._instance is None:
            cls._instance = cls.load()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset the singleton instance. Use only for testing."""
        cls._instance = None

    def __repr__(self) -> str:
        """Safe string representation without sensitive data."""
        return f"EngineConfig(hash={self._config_hash}, app={self._app.app_name})"

    def __setattr__(self, name: str, value: Any) -> None:
        """Prevent modification after initialization."""
        if hasattr(self, "_frozen") and self._frozen:
            raise AttributeError("EngineConfig is immutable after initialization")
        super().__setattr__(name, value)
