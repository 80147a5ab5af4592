"""
Secure Logging Module
=====================

Logging for a process that handles card numbers and key material.

Security Features:
- Card numbers (PANs) and secret-looking values are redacted before
  any handler sees them
- Rotating log files with size limits
- Optional per-line integrity checksums
- Optional JSON output for log aggregation
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Optional, Pattern

from cardvault.core.config import EngineConfig, LoggingConfig


# Patterns for sensitive data detection
_SENSITIVE_PATTERNS: Final[list[tuple[str, Pattern[str]]]] = [
    ("password", re.compile(r'(?i)(password|passwd|pwd)\s*[=:]\s*["\']?[^\s"\']+["\']?')),
    ("token", re.compile(r'(?i)(token|bearer)\s*[=:]\s*["\']?[^\s"\']+["\']?')),
    ("secret", re.compile(r'(?i)(secret|private[_-]?key)\s*[=:]\s*["\']?[^\s"\']+["\']?')),
    # Hex encoded keys and envelopes (longer than 32 chars)
    ("hex_secret", re.compile(r'(?i)(?:0x)?[a-f0-9]{32,}')),
    ("base64_secret", re.compile(r'[A-Za-z0-9+/]{40,}={0,2}')),
    # Primary account numbers: 13-19 digits, optionally grouped by spaces or dashes
    ("card_number", re.compile(r'(?<!\d)(?:\d[ -]?){12,18}\d(?!\d)')),
]

_REDACTED_TEXT: Final[str] = "[REDACTED]"

# Attributes set by HybridCryptoEngine via ``extra``
_ENGINE_FIELDS: Final[tuple[str, ...]] = ("engine_state", "error_category")

_CONSOLE_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_FILE_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"


class SecureLogFilter(logging.Filter):
    """
    Log filter that removes sensitive information from log messages.

    Matches are replaced with "<kind>=[REDACTED]". The record is always
    kept, only sanitized.
    """

    def __init__(self, name: str = "", additional_patterns: Optional[list[Pattern[str]]] = None) -> None:
        """
        Initialize the secure log filter.

        Args:
            name: Logger name filter (empty string matches all)
            additional_patterns: Additional regex patterns to redact
        """
        super().__init__(name)
        self._additional_patterns = additional_patterns or []

    def filter(self, record: logging.LogRecord) -> bool:
        if record.msg and isinstance(record.msg, str):
            record.msg = self._sanitize(record.msg)

        if record.args:
            if isinstance(record.args, dict):
                record.args = {k: self._sanitize(v) if isinstance(v, str) else v
                               for k, v in record.args.items()}
            elif isinstance(record.args, tuple):
                record.args = tuple(
                    self._sanitize(arg) if isinstance(arg, str) else arg
                    for arg in record.args
                )

        return True

    def _sanitize(self, text: str) -> str:
        """Remove sensitive data from text."""
        result = text

        for name, pattern in _SENSITIVE_PATTERNS:
            result = pattern.sub(f"{name}={_REDACTED_TEXT}", result)

        for pattern in self._additional_patterns:
            result = pattern.sub(_REDACTED_TEXT, result)

        return result


class TamperAwareFormatter(logging.Formatter):
    """
    Log formatter that adds integrity checksums to log entries.

    Each entry carries a checksum over its sequence number, timestamp and
    text, so edits to a log file after the fact are detectable.
    """

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        include_checksum: bool = True,
    ) -> None:
        super().__init__(fmt, datefmt)
        self._include_checksum = include_checksum
        self._sequence = 0

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)

        if self._include_checksum:
            self._sequence += 1
            checksum_data = f"{self._sequence}:{record.created}:{message}"
            checksum = hashlib.sha256(checksum_data.encode()).hexdigest()[:12]
            message = f"{message} |CHK:{checksum}"

        return message


class StructuredLogFormatter(logging.Formatter):
    """
    Formatter that outputs one JSON object per record.

    Engine records carry their pipeline state and failure category as
    separate keys (passed through ``extra``), so failures can be counted
    per category without parsing message text.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
        }

        for key in _ENGINE_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class SecureRotatingFileHandler(RotatingFileHandler):
    """
    Rotating file handler that creates its directory and rejects
    path traversal in the log file name.
    """

    def __init__(
        self,
        filename: str | Path,
        mode: str = "a",
        maxBytes: int = 10 * 1024 * 1024,
        backupCount: int = 5,
        encoding: str = "utf-8",
    ) -> None:
        if ".." in Path(filename).parts:
            raise ValueError("Log path cannot contain path traversal sequences")

        log_path = Path(filename).resolve()
        log_path.parent.mkdir(parents=True, exist_ok=True)

        super().__init__(
            str(log_path),
            mode=mode,
            maxBytes=maxBytes,
            backupCount=backupCount,
            encoding=encoding,
        )


def _file_formatter(enable_json: bool, include_checksums: bool) -> logging.Formatter:
    if enable_json:
        return StructuredLogFormatter()
    if include_checksums:
        return TamperAwareFormatter(_CONSOLE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    return logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def _attach_handlers(
    logger: logging.Logger,
    config: LoggingConfig,
    log_dir: Optional[Path],
    file_name: str,
) -> None:
    """Add the console and file handlers selected by config, each redacting."""
    secure_filter = SecureLogFilter()

    if config.enable_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT, datefmt="%H:%M:%S"))
        console_handler.addFilter(secure_filter)
        logger.addHandler(console_handler)

    if config.enable_file and log_dir:
        file_handler = SecureRotatingFileHandler(
            filename=log_dir / file_name,
            maxBytes=config.max_file_size_bytes,
            backupCount=config.backup_count,
        )
        file_handler.setFormatter(_file_formatter(config.enable_json, config.include_checksums))
        file_handler.addFilter(secure_filter)
        logger.addHandler(file_handler)


def get_secure_logger(
    name: str,
    config: Optional[LoggingConfig] = None,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """
    Create a standalone logger that does not propagate to the root logger.

    For tools that run next to the engine (the demo, operator scripts) and
    must keep their own output apart from the service log. File output goes
    to ``<log_dir>/<name with dots as underscores>.log``.

    Args:
        name: Logger name, e.g. "cardvault.demo"
        config: Logging settings; defaults to the process EngineConfig
        log_dir: Directory for log files; defaults to the configured log_dir

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    if config is None or log_dir is None:
        engine_config = EngineConfig.get_instance()
        config = config or engine_config.logging
        log_dir = log_dir or engine_config.paths.log_dir

    logger.setLevel(getattr(logging, config.level.upper()))
    _attach_handlers(logger, config, log_dir, f"{name.replace('.', '_')}.log")
    logger.propagate = False

    return logger


def configure_root_logger(
    config: LoggingConfig,
    log_dir: Optional[Path] = None,
) -> None:
    """
    Configure the root logger with secure defaults.

    Called once by bootstrap() so that every "cardvault.*" logger inherits
    the redacting handlers.

    Args:
        config: Logging settings
        log_dir: Directory for log files (file output needs both this and
            config.enable_file)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.level.upper()))

    # Clear existing handlers
    root_logger.handlers.clear()

    _attach_handlers(root_logger, config, log_dir, "cardvault.log")
