"""Custom exceptions used across Keste."""


class KesteError(Exception):
    """Base error for the application."""


class ConfigError(KesteError):
    """Configuration related error."""
