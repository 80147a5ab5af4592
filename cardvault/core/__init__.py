"""
Core module - Contains configuration, logging, value objects and the crypto engine.
"""

from cardvault.core.config import EngineConfig
from cardvault.core.logging import get_secure_logger, SecureLogFilter

__all__ = ["EngineConfig", "get_secure_logger", "SecureLogFilter"]
