"""Custom exceptions for configuration management."""


class ConfigError(Exception):
    """Raised when configuration data or custom rule files cannot be processed."""
