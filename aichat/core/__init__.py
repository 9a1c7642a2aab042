"""
Core module - Configuration and cross-cutting concerns.

- config.py         : Environment-based configuration management
- logging_config.py : Centralized logging setup
- exceptions.py     : Application error hierarchy
- rate_limiter.py   : Per-user request throttling
- validators.py     : Input sanitization and validation
- audit.py          : Request audit and security-header middleware
"""
from aichat.core.config import get_settings, Settings
from aichat.core.logging_config import setup_logging, get_logger

__all__ = [
    "get_settings",
    "Settings",
    "setup_logging",
    "get_logger",
]
