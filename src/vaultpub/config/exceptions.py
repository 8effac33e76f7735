"""Custom exceptions for configuration management."""


class ConfigError(Exception):
    """Raised when configuration data cannot be read, parsed, or validated."""
